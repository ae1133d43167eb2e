"""Derived ports.

Ports are never stored. A port id is a pure function of the owning node id,
the direction and a role label, so any component can rebuild it:

    "<node_id>-in-imports", "<node_id>-out-dom", "<node_id>-in-files", ...
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from nodecanvas.graph.nodes import Node, NodeKind

# Role labels
IMPORTS = "imports"
DOM = "dom"
LOGS = "logs"
SOURCE = "source"
PACKAGE = "pkg"
FILES = "files"
FOLDER = "folder"

# Input roles that carry at most one connection
SINGULAR_INPUT_ROLES = frozenset({DOM})


class PortDirection(Enum):
    INPUT = "in"
    OUTPUT = "out"


@dataclass(frozen=True, slots=True)
class Port:
    id: str
    node_id: str
    direction: PortDirection
    role: str
    label: str
    accepts: frozenset[NodeKind] | None = None

    @property
    def singular(self) -> bool:
        return self.direction is PortDirection.INPUT and self.role in SINGULAR_INPUT_ROLES

    def accepts_kind(self, kind: NodeKind) -> bool:
        return self.accepts is None or kind in self.accepts


def port_id(node_id: str, direction: PortDirection, role: str) -> str:
    return f"{node_id}-{direction.value}-{role}"


def input_port_id(node_id: str, role: str) -> str:
    return port_id(node_id, PortDirection.INPUT, role)


def output_port_id(node_id: str, role: str) -> str:
    return port_id(node_id, PortDirection.OUTPUT, role)


def role_of(pid: str) -> str:
    """Role label of a port id (the text after the last hyphen)."""
    return pid.rsplit("-", 1)[-1]


def direction_of(pid: str) -> PortDirection | None:
    parts = pid.rsplit("-", 2)
    if len(parts) != 3:
        return None
    try:
        return PortDirection(parts[1])
    except ValueError:
        return None


def role_matches(pid: str, role: str) -> bool:
    """Substring match of ``role`` against the port's role label."""
    return role.lower() in role_of(pid).lower()


def is_singular_input(pid: str) -> bool:
    return direction_of(pid) is PortDirection.INPUT and role_of(pid) in SINGULAR_INPUT_ROLES


_CODE_LIKE = frozenset({NodeKind.CODE, NodeKind.PACKAGE_SEARCH, NodeKind.FOLDER})

# (direction, role, label, accepts) per kind
_PORT_TABLE: dict[NodeKind, tuple[tuple[PortDirection, str, str, frozenset[NodeKind] | None], ...]] = {
    NodeKind.CODE: (
        (PortDirection.INPUT, IMPORTS, "Imports", _CODE_LIKE),
        (PortDirection.OUTPUT, DOM, "DOM/File", None),
    ),
    NodeKind.PREVIEW: (
        (PortDirection.INPUT, DOM, "DOM", frozenset({NodeKind.CODE})),
        (PortDirection.OUTPUT, LOGS, "Logs", None),
    ),
    NodeKind.TERMINAL: (
        (PortDirection.INPUT, SOURCE, "Source", frozenset({NodeKind.PREVIEW})),
    ),
    NodeKind.PACKAGE_SEARCH: (
        (PortDirection.OUTPUT, PACKAGE, "Package", None),
    ),
    NodeKind.FOLDER: (
        (PortDirection.INPUT, FILES, "Files", frozenset({NodeKind.CODE, NodeKind.IMAGE, NodeKind.TEXT})),
        (PortDirection.OUTPUT, FOLDER, "Export", None),
    ),
    NodeKind.IMAGE: (
        (PortDirection.OUTPUT, DOM, "File", None),
    ),
    NodeKind.TEXT: (
        (PortDirection.OUTPUT, DOM, "File", None),
    ),
    NodeKind.AI_CHAT: (),
}


def ports_for(node_id: str, kind: NodeKind) -> list[Port]:
    """All ports a node of ``kind`` exposes."""
    return [
        Port(
            id=port_id(node_id, direction, role),
            node_id=node_id,
            direction=direction,
            role=role,
            label=label,
            accepts=accepts,
        )
        for direction, role, label, accepts in _PORT_TABLE[kind]
    ]


def output_port_for(node: Node) -> str | None:
    """Primary output port id of a node, or None if it has none."""
    for port in ports_for(node.id, node.kind):
        if port.direction is PortDirection.OUTPUT:
            return port.id
    return None
