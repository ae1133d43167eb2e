"""Merge remote graph snapshots into the local graph.

Remote writes win field by field, except where a local gesture is in
progress: a node being dragged keeps its local position, a node being
edited keeps its local content and title. Every other field of the node is
taken from the snapshot, even mid-gesture.

This is the only place nodes are replaced wholesale.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import AliasChoices, Field, ValidationError

from nodecanvas.errors import SnapshotError
from nodecanvas.graph.connections import Connection
from nodecanvas.graph.locks import Interaction
from nodecanvas.graph.model import Graph
from nodecanvas.graph.nodes import Node, Position
from nodecanvas.logging import get_logger, log_failure
from nodecanvas.wire import WireModel, WirePosition

log = get_logger("sync")


class Snapshot(WireModel):
    """A full or partial remote snapshot. Absent fields leave local state alone."""

    nodes: list[dict[str, Any]] | None = None
    connections: list[dict[str, Any]] | None = None
    running_ids: list[str] | None = Field(
        default=None,
        validation_alias=AliasChoices("runningIds", "runningPreviewIds", "running_ids"),
    )
    pan: WirePosition | None = None
    zoom: float | None = None


def parse_snapshot(data: Any) -> Snapshot:
    """Validate a raw snapshot payload.

    Raises:
        SnapshotError: The payload is not a snapshot.
    """
    if isinstance(data, Snapshot):
        return data
    try:
        return Snapshot.model_validate(data)
    except ValidationError as e:
        raise SnapshotError(f"Invalid snapshot: {e.error_count()} errors") from e


@dataclass(slots=True)
class ReconcileReport:
    added: list[str] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)
    protected: list[str] = field(default_factory=list)  # ids whose local fields were kept


def reconcile(graph: Graph, snapshot: Snapshot | dict[str, Any]) -> ReconcileReport:
    """Apply a remote snapshot to ``graph``.

    The snapshot is parsed completely before anything changes, so a
    malformed snapshot leaves the graph untouched.

    Raises:
        SnapshotError: The snapshot, or a node or connection in it, is malformed.
    """
    snapshot = parse_snapshot(snapshot)
    incoming = [Node.from_dict(d) for d in snapshot.nodes] if snapshot.nodes is not None else None
    connections = (
        [Connection.from_dict(d) for d in snapshot.connections]
        if snapshot.connections is not None
        else None
    )

    report = ReconcileReport()

    if incoming is not None:
        merged: list[Node] = []
        for node in incoming:
            local = graph.get_node(node.id)
            if local is None:
                report.added.append(node.id)
            else:
                interaction = graph.interactions.get(node.id)
                if interaction is Interaction.DRAGGING:
                    node.position = local.position
                    report.protected.append(node.id)
                elif interaction is Interaction.EDITING:
                    node.content = local.content
                    node.title = local.title
                    report.protected.append(node.id)
            merged.append(node)

        keep = {n.id for n in merged}
        report.dropped = [n.id for n in graph.nodes if n.id not in keep]
        graph.replace_nodes(merged)
        for node_id in report.dropped:
            graph.logs.pop(node_id, None)
            graph.interactions.forget(node_id)

    if connections is not None:
        graph.connections = []
        for connection in connections:
            graph.connect(connection)
    else:
        graph.connections = [
            c for c in graph.connections if c.source_node_id in graph and c.target_node_id in graph
        ]

    if snapshot.running_ids is not None:
        graph.running_preview_ids = [i for i in snapshot.running_ids if i in graph]
    else:
        graph.running_preview_ids = [i for i in graph.running_preview_ids if i in graph]

    if snapshot.pan is not None:
        graph.set_pan(Position(snapshot.pan.x, snapshot.pan.y))
    if snapshot.zoom is not None:
        graph.set_zoom(snapshot.zoom)

    log.debug(
        "Reconciled snapshot: %d added, %d dropped, %d protected",
        len(report.added),
        len(report.dropped),
        len(report.protected),
    )
    return report


class SnapshotInbox:
    """Coalesce incoming snapshots and apply only the latest.

    Runs on its own delay, independent of preview recompiles.

    Args:
        graph: Graph to reconcile into.
        delay: Seconds of quiet before applying.
        on_applied: Called with the report after each applied snapshot.
    """

    def __init__(
        self,
        graph: Graph,
        delay: float = 0.8,
        on_applied: Callable[[ReconcileReport], None] | None = None,
    ) -> None:
        self._graph = graph
        self._delay = delay
        self._on_applied = on_applied
        self._latest: Any = None
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        return self._latest is not None

    def push(self, payload: Any) -> None:
        """Queue a snapshot, replacing any not yet applied.

        Must be called from within an async context.
        """
        self._latest = payload
        if self._task is not None:
            self._task.cancel()
        self._task = asyncio.create_task(self._delayed_apply())

    async def _delayed_apply(self) -> None:
        await asyncio.sleep(self._delay)
        self._task = None
        self.flush()

    def flush(self) -> ReconcileReport | None:
        """Apply the queued snapshot now. Malformed snapshots are dropped."""
        payload, self._latest = self._latest, None
        if payload is None:
            return None
        try:
            report = reconcile(self._graph, payload)
        except SnapshotError as e:
            log_failure(log, e, "Dropping remote snapshot: %s", e)
            return None
        if self._on_applied is not None:
            self._on_applied(report)
        return report

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._latest = None
