"""Graph data model: nodes, derived ports, connections and traversal."""

from nodecanvas.graph.connections import Connection, connect, disconnect, new_connection
from nodecanvas.graph.locks import (
    Interaction,
    InteractionTable,
    LockedBy,
    NodeStatus,
    Unlocked,
    permission_for,
    status_of,
)
from nodecanvas.graph.model import Graph, LogChannel, LogEntry, SelectionMode
from nodecanvas.graph.nodes import (
    FILE_KINDS,
    NODE_DEFAULTS,
    ChatMessage,
    ChatRole,
    EmptyPayload,
    ImagePayload,
    MarkdownPayload,
    Node,
    NodeKind,
    Position,
    QueryPayload,
    ScriptPayload,
    Size,
    create_node,
    make_payload,
)
from nodecanvas.graph.paths import folder_of, path_of, resolve, split_path
from nodecanvas.graph.ports import Port, PortDirection, ports_for
from nodecanvas.graph.traversal import all_sources, closure, related_nodes, single_source

__all__ = [
    "ChatMessage",
    "ChatRole",
    "Connection",
    "EmptyPayload",
    "FILE_KINDS",
    "Graph",
    "ImagePayload",
    "Interaction",
    "InteractionTable",
    "LockedBy",
    "LogChannel",
    "LogEntry",
    "MarkdownPayload",
    "NODE_DEFAULTS",
    "Node",
    "NodeKind",
    "NodeStatus",
    "Port",
    "PortDirection",
    "Position",
    "QueryPayload",
    "ScriptPayload",
    "SelectionMode",
    "Size",
    "Unlocked",
    "all_sources",
    "closure",
    "connect",
    "create_node",
    "disconnect",
    "folder_of",
    "make_payload",
    "new_connection",
    "path_of",
    "permission_for",
    "ports_for",
    "related_nodes",
    "resolve",
    "single_source",
    "split_path",
    "status_of",
]
