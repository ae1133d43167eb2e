"""Remote snapshot reconciliation and collaborator presence."""

from nodecanvas.sync.presence import (
    Collaborator,
    active_collaborators,
    apply_presence_locks,
    remote_drag_positions,
)
from nodecanvas.sync.reconciler import (
    ReconcileReport,
    Snapshot,
    SnapshotInbox,
    parse_snapshot,
    reconcile,
)

__all__ = [
    "Collaborator",
    "ReconcileReport",
    "Snapshot",
    "SnapshotInbox",
    "active_collaborators",
    "apply_presence_locks",
    "parse_snapshot",
    "reconcile",
    "remote_drag_positions",
]
