"""Connections and the rules for adding and removing them.

Connections are the only relationship primitive: folder membership, import
dependencies and "feeds a preview" are all connections, told apart by the
role of the target port.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from nodecanvas.errors import SnapshotError
from nodecanvas.graph.ports import is_singular_input
from nodecanvas.logging import get_logger

log = get_logger("graph")


@dataclass(frozen=True, slots=True)
class Connection:
    id: str
    source_node_id: str
    source_port_id: str
    target_node_id: str
    target_port_id: str

    @property
    def key(self) -> tuple[str, str, str, str]:
        """Identity of the edge, ignoring its id."""
        return (self.source_node_id, self.source_port_id, self.target_node_id, self.target_port_id)

    def touches(self, node_id: str) -> bool:
        return self.source_node_id == node_id or self.target_node_id == node_id

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "sourceNodeId": self.source_node_id,
            "sourcePortId": self.source_port_id,
            "targetNodeId": self.target_node_id,
            "targetPortId": self.target_port_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Connection:
        try:
            return cls(
                id=str(data["id"]),
                source_node_id=str(data["sourceNodeId"]),
                source_port_id=str(data["sourcePortId"]),
                target_node_id=str(data["targetNodeId"]),
                target_port_id=str(data["targetPortId"]),
            )
        except KeyError as e:
            raise SnapshotError(f"Connection is missing field {e.args[0]!r}") from e


def new_connection(
    source_node_id: str,
    source_port_id: str,
    target_node_id: str,
    target_port_id: str,
    *,
    prefix: str = "conn",
) -> Connection:
    return Connection(
        id=f"{prefix}-{uuid.uuid4().hex[:12]}",
        source_node_id=source_node_id,
        source_port_id=source_port_id,
        target_node_id=target_node_id,
        target_port_id=target_port_id,
    )


def connect(connections: list[Connection], candidate: Connection) -> bool:
    """Append ``candidate`` unless a rule rejects it.

    Rejections are silent: an identical edge already exists, or the target
    is a singular input that is already occupied. Cycles are allowed here;
    traversals deal with them.

    Returns:
        True if the connection was added.
    """
    if any(c.key == candidate.key for c in connections):
        log.debug("Ignoring duplicate connection %s", candidate.key)
        return False

    if is_singular_input(candidate.target_port_id) and any(
        c.target_port_id == candidate.target_port_id for c in connections
    ):
        log.debug("Port %s already has a connection", candidate.target_port_id)
        return False

    connections.append(candidate)
    return True


def disconnect(connections: list[Connection], identifier: str) -> list[Connection]:
    """Remove every connection whose id or either port id equals ``identifier``.

    Returns:
        The removed connections.
    """
    removed = [
        c
        for c in connections
        if identifier in (c.id, c.source_port_id, c.target_port_id)
    ]
    if removed:
        connections[:] = [c for c in connections if c not in removed]
    return removed
