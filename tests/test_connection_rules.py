"""Tests for derived ports and the connect/disconnect rules."""

from __future__ import annotations

from nodecanvas.graph.connections import Connection, connect, disconnect, new_connection
from nodecanvas.graph.model import Graph
from nodecanvas.graph.nodes import NodeKind
from nodecanvas.graph.ports import (
    DOM,
    FILES,
    IMPORTS,
    PortDirection,
    input_port_id,
    is_singular_input,
    output_port_for,
    ports_for,
    role_matches,
    role_of,
)
from tests.utils import build_graph, make_code, make_node, wire


def _edge(cid: str, src: str, tgt: str, role: str = IMPORTS) -> Connection:
    return Connection(cid, src, f"{src}-out-dom", tgt, input_port_id(tgt, role))


class TestPorts:
    """Test port derivation."""

    def test_port_ids_are_derived(self) -> None:
        ports = {p.id for p in ports_for("n1", NodeKind.CODE)}
        assert ports == {"n1-in-imports", "n1-out-dom"}

    def test_role_of(self) -> None:
        assert role_of("node-abc-123-in-imports") == "imports"
        assert role_of("folder-1-out-folder") == "folder"

    def test_role_matching_is_substring(self) -> None:
        assert role_matches("n1-in-imports", "import")
        assert not role_matches("n1-in-files", "dom")

    def test_only_preview_dom_is_singular(self) -> None:
        singular = [
            p.id
            for kind in NodeKind
            for p in ports_for("n", kind)
            if p.singular
        ]
        assert singular == ["n-in-dom"]
        assert is_singular_input("p1-in-dom")
        assert not is_singular_input("c1-out-dom")
        assert not is_singular_input("c1-in-imports")

    def test_folder_accepts_file_kinds(self) -> None:
        files = next(p for p in ports_for("f", NodeKind.FOLDER) if p.direction is PortDirection.INPUT)
        assert files.accepts_kind(NodeKind.IMAGE)
        assert not files.accepts_kind(NodeKind.PREVIEW)

    def test_output_port_for(self) -> None:
        assert output_port_for(make_code("a.js")) == "a-js-out-dom"
        assert output_port_for(make_node(NodeKind.FOLDER, "lib")) == "lib-out-folder"
        assert output_port_for(make_node(NodeKind.PACKAGE_SEARCH, "NPM", node_id="npm")) == "npm-out-pkg"
        assert output_port_for(make_node(NodeKind.AI_CHAT, "Chat")) is None


class TestConnect:
    """Test connection rules on a plain edge list."""

    def test_connect_is_idempotent(self) -> None:
        """Test that connecting the same tuple twice leaves one edge."""
        connections: list[Connection] = []
        assert connect(connections, _edge("c1", "a", "b"))
        assert not connect(connections, _edge("c2", "a", "b"))
        assert [c.id for c in connections] == ["c1"]

    def test_singular_input_keeps_first_connection(self) -> None:
        connections: list[Connection] = []
        assert connect(connections, _edge("c1", "a", "p", DOM))
        assert not connect(connections, _edge("c2", "b", "p", DOM))
        assert [(c.source_node_id, c.target_port_id) for c in connections] == [("a", "p-in-dom")]

    def test_plural_input_accepts_many(self) -> None:
        connections: list[Connection] = []
        connect(connections, _edge("c1", "a", "f", FILES))
        connect(connections, _edge("c2", "b", "f", FILES))
        assert len(connections) == 2

    def test_cycles_are_allowed(self) -> None:
        connections: list[Connection] = []
        assert connect(connections, _edge("c1", "a", "b"))
        assert connect(connections, _edge("c2", "b", "a"))

    def test_new_connection_ids_are_unique(self) -> None:
        a = new_connection("a", "a-out-dom", "b", "b-in-imports")
        b = new_connection("a", "a-out-dom", "b", "b-in-imports")
        assert a.id != b.id
        assert a.key == b.key


class TestDisconnect:
    """Test removal by connection id or port id."""

    def test_by_connection_id(self) -> None:
        connections = [_edge("c1", "a", "b"), _edge("c2", "c", "b")]
        removed = disconnect(connections, "c1")
        assert [c.id for c in removed] == ["c1"]
        assert [c.id for c in connections] == ["c2"]

    def test_by_port_id_removes_every_match(self) -> None:
        connections = [_edge("c1", "a", "b"), _edge("c2", "c", "b"), _edge("c3", "a", "d")]
        removed = disconnect(connections, "b-in-imports")
        assert {c.id for c in removed} == {"c1", "c2"}
        assert [c.id for c in connections] == ["c3"]

    def test_unknown_identifier_is_noop(self) -> None:
        connections = [_edge("c1", "a", "b")]
        assert disconnect(connections, "nothing") == []
        assert len(connections) == 1


class TestGraphConnections:
    """Test the Graph's connection entry points."""

    def test_rejects_dead_endpoint(self) -> None:
        graph = build_graph(make_code("a.js"))
        assert not graph.connect(_edge("c1", "a-js", "ghost"))
        assert graph.connections == []

    def test_second_source_into_preview_is_rejected(self) -> None:
        """Test that a preview keeps its first DOM source."""
        a = make_code("a.js")
        b = make_code("b.js")
        preview = make_node(NodeKind.PREVIEW, "Preview")
        graph = build_graph(a, b, preview)
        wire(graph, a, preview, DOM)
        wire(graph, b, preview, DOM)
        assert [c.source_node_id for c in graph.connections_to(preview.id)] == [a.id]

    def test_disconnect_returns_count(self, graph: Graph) -> None:
        a = make_code("a.js")
        b = make_code("b.js")
        graph.add_node(a)
        graph.add_node(b)
        connection = wire(graph, a, b, IMPORTS)
        assert graph.disconnect(connection.id) == 1
        assert graph.disconnect(connection.id) == 0
