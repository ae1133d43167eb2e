"""The canvas graph.

The Graph owns every node (insertion-ordered, keyed by id) and the flat
connection edge list, plus the per-canvas state that hangs off nodes:
preview logs, running previews, the selection mode and local gesture state.

Invariants maintained here:
- every connection references live nodes; removing a node removes every
  connection that touches it
- connections are added idempotently (see ``connections.connect``)
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from nodecanvas.graph import connections as rules
from nodecanvas.graph.connections import Connection
from nodecanvas.graph.locks import InteractionTable
from nodecanvas.graph.nodes import (
    NODE_DEFAULTS,
    ChatMessage,
    ChatRole,
    Node,
    NodeKind,
    Position,
    Size,
)
from nodecanvas.logging import get_logger

log = get_logger("graph")


class LogChannel(Enum):
    LOG = "log"
    WARN = "warn"
    ERROR = "error"
    INFO = "info"


@dataclass(slots=True)
class LogEntry:
    """One console line captured from a running preview."""

    channel: LogChannel
    text: str
    timestamp: float = field(default_factory=lambda: time.time() * 1000)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.channel.value, "message": self.text, "timestamp": self.timestamp}


@dataclass(slots=True)
class SelectionMode:
    """A chat node picking context files on the canvas."""

    active: bool = False
    requesting_node_id: str = ""
    selected_ids: list[str] = field(default_factory=list)


class Graph:
    """Nodes, connections and canvas state."""

    def __init__(
        self,
        nodes: list[Node] | None = None,
        connections: list[Connection] | None = None,
    ) -> None:
        self._nodes: dict[str, Node] = {}
        self.connections: list[Connection] = []
        self.pan = Position()
        self.zoom = 1.0
        self.logs: dict[str, list[LogEntry]] = {}
        self.running_preview_ids: list[str] = []
        self.selection = SelectionMode()
        self.interactions = InteractionTable()

        for node in nodes or []:
            self.add_node(node)
        for connection in connections or []:
            self.connect(connection)

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    @property
    def nodes(self) -> list[Node]:
        """All nodes in stable (insertion) order."""
        return list(self._nodes.values())

    def add_node(self, node: Node) -> str:
        self._nodes[node.id] = node
        return node.id

    def get_node(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def nodes_of_kind(self, kind: NodeKind) -> list[Node]:
        return [n for n in self._nodes.values() if n.kind is kind]

    def remove_node(self, node_id: str) -> bool:
        """Remove a node and everything hanging off it.

        Cascades: connections touching the node, its logs, its running
        preview entry, gesture state, selection membership and references
        from chat context lists.
        """
        if self._nodes.pop(node_id, None) is None:
            return False

        self.connections = [c for c in self.connections if not c.touches(node_id)]
        self.logs.pop(node_id, None)
        self.running_preview_ids = [i for i in self.running_preview_ids if i != node_id]
        self.interactions.forget(node_id)

        if node_id in self.selection.selected_ids:
            self.selection.selected_ids.remove(node_id)
        if self.selection.requesting_node_id == node_id:
            self.selection = SelectionMode()

        for other in self._nodes.values():
            if node_id in other.context_node_ids:
                other.context_node_ids = [i for i in other.context_node_ids if i != node_id]

        log.debug("Removed node %s", node_id)
        return True

    def replace_nodes(self, nodes: list[Node]) -> None:
        """Swap the whole node set. Only the reconciler should call this."""
        self._nodes = {n.id: n for n in nodes}

    # -------------------------------------------------------------------------
    # Connections
    # -------------------------------------------------------------------------

    def connect(self, candidate: Connection) -> bool:
        """Add a connection; silently rejected if a rule forbids it."""
        if candidate.source_node_id not in self._nodes or candidate.target_node_id not in self._nodes:
            log.debug("Ignoring connection %s with a dead endpoint", candidate.id)
            return False
        return rules.connect(self.connections, candidate)

    def disconnect(self, identifier: str) -> int:
        """Remove connections by connection id or by either port id."""
        return len(rules.disconnect(self.connections, identifier))

    def connections_from(self, node_id: str) -> list[Connection]:
        return [c for c in self.connections if c.source_node_id == node_id]

    def connections_to(self, node_id: str) -> list[Connection]:
        return [c for c in self.connections if c.target_node_id == node_id]

    # -------------------------------------------------------------------------
    # Field updates
    # -------------------------------------------------------------------------

    def update_content(self, node_id: str, content: str) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            return False
        node.content = content
        return True

    def update_title(self, node_id: str, title: str) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            return False
        node.title = title
        return True

    def update_position(self, node_id: str, position: Position) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            return False
        node.position = position
        return True

    def update_size(self, node_id: str, size: Size) -> bool:
        """Resize a node; a manual size turns off auto height."""
        node = self._nodes.get(node_id)
        if node is None:
            return False
        node.size = size
        node.auto_height = False
        return True

    def set_loading(self, node_id: str, loading: bool) -> None:
        node = self._nodes.get(node_id)
        if node is not None:
            node.is_loading = loading

    def add_message(self, node_id: str, role: ChatRole, text: str) -> None:
        node = self._nodes.get(node_id)
        if node is not None:
            node.messages.append(ChatMessage(role, text))

    def update_last_message(self, node_id: str, text: str) -> None:
        node = self._nodes.get(node_id)
        if node is not None and node.messages:
            node.messages[-1] = ChatMessage(node.messages[-1].role, text)

    def set_context_nodes(self, node_id: str, node_ids: list[str]) -> None:
        node = self._nodes.get(node_id)
        if node is not None:
            node.context_node_ids = [i for i in node_ids if i in self._nodes]

    def set_shared_state(self, node_id: str, state: Any) -> None:
        node = self._nodes.get(node_id)
        if node is not None:
            node.shared_state = state

    def toggle_minimize(self, node_id: str) -> None:
        """Collapse a node to its title bar, or restore its previous size."""
        node = self._nodes.get(node_id)
        if node is None:
            return
        if node.is_minimized:
            if node.expanded_size is not None:
                node.size = node.expanded_size
            else:
                defaults = NODE_DEFAULTS[NodeKind.CODE]
                node.size = Size(defaults.width, defaults.height)
                node.auto_height = True
            node.expanded_size = None
            node.is_minimized = False
        else:
            width = min(400, max(160, len(node.title) * 9 + 120))
            node.expanded_size = node.size
            node.size = Size(width, 40)
            node.is_minimized = True

    def set_selection_mode(
        self,
        active: bool,
        requesting_node_id: str = "",
        selected_ids: list[str] | None = None,
    ) -> None:
        self.selection = SelectionMode(active, requesting_node_id, list(selected_ids or []))

    def set_pan(self, pan: Position) -> None:
        self.pan = pan

    def set_zoom(self, zoom: float) -> None:
        self.zoom = zoom

    # -------------------------------------------------------------------------
    # Locks
    # -------------------------------------------------------------------------

    def acquire_lock(self, node_id: str, identity: str) -> bool:
        """Lock a node for ``identity``. Fails if someone else holds it."""
        node = self._nodes.get(node_id)
        if node is None:
            return False
        if node.locked_by not in (None, identity):
            return False
        node.locked_by = identity
        return True

    def release_lock(self, node_id: str, identity: str | None = None) -> bool:
        """Release a lock; with ``identity`` only that holder's lock."""
        node = self._nodes.get(node_id)
        if node is None or node.locked_by is None:
            return False
        if identity is not None and node.locked_by != identity:
            return False
        node.locked_by = None
        return True

    # -------------------------------------------------------------------------
    # Preview state
    # -------------------------------------------------------------------------

    def add_log(self, node_id: str, entry: LogEntry) -> None:
        self.logs.setdefault(node_id, []).append(entry)

    def clear_logs(self, node_id: str) -> None:
        self.logs[node_id] = []

    def set_running(self, node_id: str, running: bool) -> None:
        if running:
            if node_id not in self.running_preview_ids:
                self.running_preview_ids.append(node_id)
        else:
            self.running_preview_ids = [i for i in self.running_preview_ids if i != node_id]

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the snapshot wire format."""
        return {
            "nodes": [n.to_dict() for n in self._nodes.values()],
            "connections": [c.to_dict() for c in self.connections],
            "runningPreviewIds": list(self.running_preview_ids),
            "pan": {"x": self.pan.x, "y": self.pan.y},
            "zoom": self.zoom,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Graph:
        graph = cls(
            nodes=[Node.from_dict(n) for n in data.get("nodes") or []],
            connections=[Connection.from_dict(c) for c in data.get("connections") or []],
        )
        graph.running_preview_ids = [
            str(i) for i in data.get("runningPreviewIds") or [] if str(i) in graph
        ]
        pan = data.get("pan") or {}
        graph.pan = Position(float(pan.get("x", 0)), float(pan.get("y", 0)))
        graph.zoom = float(data.get("zoom", 1.0))
        return graph

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self._nodes.values()))
