"""Graph traversal: who feeds a port, and the dependency closure of a file.

Every walk keeps an explicit visited set and a worklist, so arbitrary
cycles in the connection graph are safe.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Sequence

from nodecanvas.graph.connections import Connection
from nodecanvas.graph.nodes import Node, NodeKind
from nodecanvas.graph.ports import FILES, IMPORTS, role_matches


def _index(nodes: Sequence[Node]) -> dict[str, Node]:
    return {n.id: n for n in nodes}


def single_source(
    node_id: str,
    role: str,
    nodes: Sequence[Node],
    connections: Sequence[Connection],
) -> Node | None:
    """Source of the first connection into ``role`` of ``node_id``."""
    by_id = _index(nodes)
    for c in connections:
        if c.target_node_id == node_id and role_matches(c.target_port_id, role):
            return by_id.get(c.source_node_id)
    return None


def all_sources(
    node_id: str,
    role: str,
    nodes: Sequence[Node],
    connections: Sequence[Connection],
) -> list[Node]:
    """Sources of every connection into ``role`` of ``node_id``, in edge order."""
    by_id = _index(nodes)
    return [
        by_id[c.source_node_id]
        for c in connections
        if c.target_node_id == node_id
        and role_matches(c.target_port_id, role)
        and c.source_node_id in by_id
    ]


def closure(
    root: Node,
    nodes: Sequence[Node],
    connections: Sequence[Connection],
) -> list[Node]:
    """Dependency closure of ``root`` following ``imports`` edges.

    A Folder wired into an ``imports`` input stands for its member files:
    each file in its ``files`` input is included as if imported directly.
    Each node appears once, in depth-first discovery order; the root itself
    is never part of the result.
    """
    visited: set[str] = {root.id}
    result: list[Node] = []

    def expand(node: Node) -> list[Node]:
        deps: list[Node] = []
        for dep in all_sources(node.id, IMPORTS, nodes, connections):
            if dep.kind is NodeKind.FOLDER:
                deps.extend(all_sources(dep.id, FILES, nodes, connections))
            else:
                deps.append(dep)
        return deps

    # Stack entries are iterators over a node's direct dependencies, which
    # keeps the order identical to a recursive depth-first walk.
    stack = [iter(expand(root))]
    while stack:
        dep = next(stack[-1], None)
        if dep is None:
            stack.pop()
            continue
        if dep.id in visited:
            continue
        visited.add(dep.id)
        result.append(dep)
        stack.append(iter(expand(dep)))

    return result


def related_nodes(
    start_id: str,
    nodes: Sequence[Node],
    connections: Sequence[Connection],
    kind: NodeKind | None = None,
) -> list[Node]:
    """Every node reachable from ``start_id`` ignoring edge direction.

    Breadth-first; the start node is included when it matches ``kind``.
    """
    by_id = _index(nodes)
    neighbours: dict[str, list[str]] = {}
    for c in connections:
        neighbours.setdefault(c.source_node_id, []).append(c.target_node_id)
        neighbours.setdefault(c.target_node_id, []).append(c.source_node_id)

    visited: set[str] = set()
    queue = deque([start_id])
    related: list[Node] = []

    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)

        node = by_id.get(current)
        if node is not None and (kind is None or node.kind is kind):
            related.append(node)

        for nid in neighbours.get(current, []):
            if nid not in visited:
                queue.append(nid)

    return related


def consumers(node_id: str, connections: Sequence[Connection]) -> list[str]:
    """Ids of the nodes ``node_id`` feeds, without duplicates."""
    seen: list[str] = []
    for c in connections:
        if c.source_node_id == node_id and c.target_node_id not in seen:
            seen.append(c.target_node_id)
    return seen
