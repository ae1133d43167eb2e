"""Virtual paths derived from folder wiring.

A file wired into a Folder node's ``files`` input lives at
``"<folder title>/<file title>"``; an unwired file lives at its title.
Folders nest exactly one level.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from nodecanvas.graph.connections import Connection
from nodecanvas.graph.nodes import Node, NodeKind
from nodecanvas.graph.ports import FILES, role_matches


def folder_of(
    node: Node,
    nodes: Iterable[Node],
    connections: Iterable[Connection],
) -> Node | None:
    """The folder a node is organized under, if any."""
    by_id = {n.id: n for n in nodes}
    for c in connections:
        if c.source_node_id != node.id or not role_matches(c.target_port_id, FILES):
            continue
        target = by_id.get(c.target_node_id)
        if target is not None and target.kind is NodeKind.FOLDER:
            return target
    return None


def path_of(
    node: Node,
    nodes: Iterable[Node],
    connections: Iterable[Connection],
) -> str:
    folder = folder_of(node, nodes, connections)
    if folder is not None:
        return f"{folder.title}/{node.title}"
    return node.title


def resolve(
    path_or_title: str,
    nodes: Sequence[Node],
    connections: Sequence[Connection],
) -> Node | None:
    """Find a node by title first, then by virtual path.

    Title equality across all nodes wins over path equality, so a root file
    titled ``"lib/a.js"`` shadows ``a.js`` inside folder ``lib``.
    """
    for node in nodes:
        if node.title == path_or_title:
            return node
    for node in nodes:
        if path_of(node, nodes, connections) == path_or_title:
            return node
    return None


def split_path(path: str) -> tuple[str, str | None]:
    """Split ``"folder/file"`` into ``("file", "folder")``; no folder gives None."""
    parts = path.split("/")
    filename = parts.pop()
    folder = "/".join(parts) if parts else None
    return filename, folder or None
