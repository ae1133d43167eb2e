"""Tests for graph nodes and the Graph container."""

from __future__ import annotations

import pytest

from nodecanvas.errors import SnapshotError
from nodecanvas.graph.model import Graph, LogChannel, LogEntry
from nodecanvas.graph.nodes import (
    NODE_DEFAULTS,
    ChatMessage,
    ChatRole,
    EmptyPayload,
    MarkdownPayload,
    Node,
    NodeKind,
    Position,
    QueryPayload,
    ScriptPayload,
    Size,
    create_node,
)
from nodecanvas.graph.ports import DOM, FILES, IMPORTS, SOURCE
from tests.utils import build_graph, make_code, make_node, wire


class TestNodes:
    """Test node creation and payloads."""

    def test_create_node_uses_kind_defaults(self) -> None:
        node = create_node(NodeKind.CODE)
        defaults = NODE_DEFAULTS[NodeKind.CODE]
        assert node.title == defaults.title
        assert node.content == defaults.content
        assert node.size == Size(defaults.width, defaults.height)
        assert node.id.startswith("node-")

    def test_folder_ids_have_folder_prefix(self) -> None:
        assert create_node(NodeKind.FOLDER).id.startswith("folder-")

    def test_ids_are_unique(self) -> None:
        ids = {create_node(NodeKind.CODE).id for _ in range(50)}
        assert len(ids) == 50

    def test_payload_matches_kind(self) -> None:
        assert isinstance(create_node(NodeKind.CODE).payload, ScriptPayload)
        assert isinstance(create_node(NodeKind.PACKAGE_SEARCH).payload, QueryPayload)
        assert isinstance(create_node(NodeKind.TEXT).payload, MarkdownPayload)
        assert isinstance(create_node(NodeKind.PREVIEW).payload, EmptyPayload)

    def test_content_writes_rewrap_payload(self) -> None:
        node = create_node(NodeKind.PACKAGE_SEARCH, content="react")
        node.content = "lodash"
        assert node.payload == QueryPayload("lodash")
        assert node.content == "lodash"

    def test_is_file(self) -> None:
        assert create_node(NodeKind.CODE).is_file
        assert create_node(NodeKind.IMAGE).is_file
        assert not create_node(NodeKind.FOLDER).is_file
        assert not create_node(NodeKind.PREVIEW).is_file


class TestNodeSerialization:
    """Test the camelCase wire format."""

    def test_round_trip_keeps_fields(self) -> None:
        node = create_node(NodeKind.AI_CHAT, node_id="chat", position=Position(10, 20))
        node.messages.append(ChatMessage(ChatRole.USER, "hi"))
        node.context_node_ids = ["a", "b"]
        node.locked_by = "alice"
        node.is_minimized = True
        node.expanded_size = Size(350, 450)

        restored = Node.from_dict(node.to_dict())

        assert restored.id == "chat"
        assert restored.kind is NodeKind.AI_CHAT
        assert restored.position == Position(10, 20)
        assert restored.context_node_ids == ["a", "b"]
        assert restored.locked_by == "alice"
        assert restored.is_minimized
        assert restored.expanded_size == Size(350, 450)
        assert restored.messages[0].text == "hi"

    def test_wire_names(self) -> None:
        node = create_node(NodeKind.PACKAGE_SEARCH, node_id="pkg", content="react")
        node.auto_height = True
        data = node.to_dict()
        assert data["type"] == "NPM"
        assert data["autoHeight"] is True
        assert data["content"] == "react"

    def test_unknown_kind_raises(self) -> None:
        with pytest.raises(SnapshotError):
            Node.from_dict({"id": "x", "type": "SPREADSHEET"})

    def test_missing_id_raises(self) -> None:
        with pytest.raises(SnapshotError):
            Node.from_dict({"type": "CODE"})


class TestGraphNodes:
    """Test adding, looking up and removing nodes."""

    def test_nodes_keep_insertion_order(self, graph: Graph) -> None:
        for title in ("c.js", "a.js", "b.js"):
            graph.add_node(make_code(title))
        assert [n.title for n in graph.nodes] == ["c.js", "a.js", "b.js"]

    def test_contains_and_len(self, graph: Graph) -> None:
        graph.add_node(make_code("a.js"))
        assert "a-js" in graph
        assert "missing" not in graph
        assert len(graph) == 1

    def test_nodes_of_kind(self) -> None:
        graph = build_graph(make_code("a.js"), make_node(NodeKind.FOLDER, "lib"))
        assert [n.title for n in graph.nodes_of_kind(NodeKind.FOLDER)] == ["lib"]

    def test_remove_node_cascades_connections(self) -> None:
        """Test that deleting a node removes every connection touching it."""
        app = make_code("app.js")
        util = make_code("util.js")
        folder = make_node(NodeKind.FOLDER, "lib")
        preview = make_node(NodeKind.PREVIEW, "Preview")
        graph = build_graph(app, util, folder, preview)
        wire(graph, util, app, IMPORTS)
        wire(graph, util, folder, FILES)
        wire(graph, app, preview, DOM)

        assert graph.remove_node(util.id)

        assert all(not c.touches(util.id) for c in graph.connections)
        assert len(graph.connections) == 1

    def test_remove_node_clears_preview_state(self) -> None:
        preview = make_node(NodeKind.PREVIEW, "Preview")
        graph = build_graph(preview)
        graph.set_running(preview.id, True)
        graph.add_log(preview.id, LogEntry(LogChannel.LOG, "hi"))

        graph.remove_node(preview.id)

        assert graph.running_preview_ids == []
        assert preview.id not in graph.logs

    def test_remove_node_drops_chat_context_reference(self) -> None:
        chat = make_node(NodeKind.AI_CHAT, "Chat")
        app = make_code("app.js")
        graph = build_graph(chat, app)
        graph.set_context_nodes(chat.id, [app.id])
        graph.set_selection_mode(True, chat.id, [app.id])

        graph.remove_node(app.id)

        assert chat.context_node_ids == []
        assert graph.selection.selected_ids == []

    def test_remove_missing_node_returns_false(self, graph: Graph) -> None:
        assert not graph.remove_node("nope")


class TestGraphUpdates:
    """Test field mutations."""

    def test_update_content_and_title(self) -> None:
        node = make_code("a.js", "old")
        graph = build_graph(node)
        assert graph.update_content(node.id, "new")
        assert graph.update_title(node.id, "b.js")
        assert node.content == "new"
        assert node.title == "b.js"

    def test_updates_on_missing_node_return_false(self, graph: Graph) -> None:
        assert not graph.update_content("nope", "x")
        assert not graph.update_position("nope", Position(1, 1))

    def test_update_size_turns_off_auto_height(self) -> None:
        node = make_node(NodeKind.TEXT, "Note.md")
        node.auto_height = True
        graph = build_graph(node)
        graph.update_size(node.id, Size(100, 100))
        assert not node.auto_height
        assert node.size == Size(100, 100)

    def test_toggle_minimize_restores_size(self) -> None:
        node = make_code("a.js")
        original = node.size
        graph = build_graph(node)

        graph.toggle_minimize(node.id)
        assert node.is_minimized
        assert node.size.height == 40
        assert node.expanded_size == original

        graph.toggle_minimize(node.id)
        assert not node.is_minimized
        assert node.size == original
        assert node.expanded_size is None

    def test_chat_messages(self) -> None:
        chat = make_node(NodeKind.AI_CHAT, "Chat")
        graph = build_graph(chat)
        graph.add_message(chat.id, ChatRole.USER, "hello")
        graph.add_message(chat.id, ChatRole.MODEL, "")
        graph.update_last_message(chat.id, "hi there")
        assert [(m.role, m.text) for m in chat.messages] == [
            (ChatRole.USER, "hello"),
            (ChatRole.MODEL, "hi there"),
        ]

    def test_set_context_nodes_ignores_unknown_ids(self) -> None:
        chat = make_node(NodeKind.AI_CHAT, "Chat")
        app = make_code("app.js")
        graph = build_graph(chat, app)
        graph.set_context_nodes(chat.id, [app.id, "ghost"])
        assert chat.context_node_ids == [app.id]

    def test_set_running_is_idempotent(self) -> None:
        preview = make_node(NodeKind.PREVIEW, "Preview")
        graph = build_graph(preview)
        graph.set_running(preview.id, True)
        graph.set_running(preview.id, True)
        assert graph.running_preview_ids == [preview.id]
        graph.set_running(preview.id, False)
        assert graph.running_preview_ids == []


class TestGraphLocks:
    """Test advisory lock acquisition."""

    def test_acquire_and_release(self) -> None:
        node = make_code("a.js")
        graph = build_graph(node)
        assert graph.acquire_lock(node.id, "alice")
        assert not graph.acquire_lock(node.id, "bob")
        assert graph.acquire_lock(node.id, "alice")
        assert not graph.release_lock(node.id, "bob")
        assert graph.release_lock(node.id, "alice")
        assert node.locked_by is None


class TestGraphSerialization:
    """Test whole-graph snapshots."""

    def test_round_trip(self) -> None:
        app = make_code("app.js", "console.log(1)")
        preview = make_node(NodeKind.PREVIEW, "Preview")
        terminal = make_node(NodeKind.TERMINAL, "Terminal")
        graph = build_graph(app, preview, terminal)
        wire(graph, app, preview, DOM)
        wire(graph, preview, terminal, SOURCE)
        graph.set_running(preview.id, True)
        graph.set_zoom(1.5)

        restored = Graph.from_dict(graph.to_dict())

        assert [n.id for n in restored.nodes] == [app.id, preview.id, terminal.id]
        assert [c.key for c in restored.connections] == [c.key for c in graph.connections]
        assert restored.running_preview_ids == [preview.id]
        assert restored.zoom == 1.5

    def test_from_dict_drops_dangling_connections(self) -> None:
        data = {
            "nodes": [make_code("a.js").to_dict()],
            "connections": [
                {
                    "id": "c1",
                    "sourceNodeId": "a-js",
                    "sourcePortId": "a-js-out-dom",
                    "targetNodeId": "ghost",
                    "targetPortId": "ghost-in-dom",
                }
            ],
            "runningPreviewIds": ["ghost"],
        }
        graph = Graph.from_dict(data)
        assert graph.connections == []
        assert graph.running_preview_ids == []
