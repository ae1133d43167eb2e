"""Collaborator presence.

Every session publishes what it is dragging or editing. A node another
active session is working on gets ``locked_by`` set to that session, which
is what ``check_permission`` consults. Sessions silent for longer than the
presence timeout no longer hold anything.
"""

from __future__ import annotations

import time
from collections.abc import Iterable

from pydantic import Field

from nodecanvas.graph.model import Graph
from nodecanvas.graph.nodes import Position
from nodecanvas.wire import WireModel, WirePosition


class Collaborator(WireModel):
    """Presence record of one session. ``last_active`` is in milliseconds."""

    id: str
    x: float = 0.0
    y: float = 0.0
    color: str = ""
    last_active: float = Field(alias="lastActive")
    dragging_node_id: str | None = Field(default=None, alias="draggingNodeId")
    dragging_position: WirePosition | None = Field(default=None, alias="draggingPosition")
    editing_node_id: str | None = Field(default=None, alias="editingNodeId")


def _now_ms() -> float:
    return time.time() * 1000


def active_collaborators(
    collaborators: Iterable[Collaborator],
    session_id: str,
    now: float | None = None,
    timeout: float = 30.0,
) -> list[Collaborator]:
    """Other sessions seen within ``timeout`` seconds of ``now`` (ms)."""
    now = _now_ms() if now is None else now
    return [
        c for c in collaborators if c.id != session_id and now - c.last_active < timeout * 1000
    ]


def apply_presence_locks(
    graph: Graph,
    collaborators: Iterable[Collaborator],
    session_id: str,
    now: float | None = None,
    timeout: float = 30.0,
) -> dict[str, str]:
    """Lock nodes other active sessions are dragging or editing.

    Locks held by sessions that are no longer active are cleared; locks
    held by ``session_id`` itself are left alone.

    Returns:
        Node id to holding session id, for every lock set.
    """
    holders: dict[str, str] = {}
    for c in active_collaborators(collaborators, session_id, now, timeout):
        for node_id in (c.editing_node_id, c.dragging_node_id):
            if node_id and node_id in graph:
                holders.setdefault(node_id, c.id)

    for node in graph:
        holder = holders.get(node.id)
        if holder is not None:
            node.locked_by = holder
        elif node.locked_by is not None and node.locked_by != session_id:
            node.locked_by = None
    return holders


def remote_drag_positions(
    collaborators: Iterable[Collaborator],
    session_id: str,
    now: float | None = None,
    timeout: float = 30.0,
) -> dict[str, Position]:
    """Where other sessions are currently dragging nodes to, for display."""
    positions: dict[str, Position] = {}
    for c in active_collaborators(collaborators, session_id, now, timeout):
        if c.dragging_node_id and c.dragging_position is not None:
            positions.setdefault(
                c.dragging_node_id, Position(c.dragging_position.x, c.dragging_position.y)
            )
    return positions
