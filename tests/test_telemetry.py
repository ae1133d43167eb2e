"""Tests for preview console telemetry."""

from __future__ import annotations

from typing import Any

from nodecanvas.compiler.document import TELEMETRY_SOURCE
from nodecanvas.compiler.telemetry import record_telemetry, terminal_log
from nodecanvas.graph.model import Graph, LogChannel
from nodecanvas.graph.nodes import NodeKind
from nodecanvas.graph.ports import SOURCE
from tests.utils import build_graph, make_node, wire


def message(node_id: str = "preview", **overrides: Any) -> dict[str, Any]:
    payload = {
        "source": TELEMETRY_SOURCE,
        "nodeId": node_id,
        "channel": "log",
        "text": "hello",
        "timestamp": 1700000000000,
    }
    payload.update(overrides)
    return payload


def preview_and_terminal() -> Graph:
    preview = make_node(NodeKind.PREVIEW, "Preview", node_id="preview")
    terminal = make_node(NodeKind.TERMINAL, "Terminal", node_id="terminal")
    graph = build_graph(preview, terminal)
    wire(graph, preview, terminal, SOURCE)
    return graph


class TestRecordTelemetry:
    """Test routing posted messages into preview logs."""

    def test_message_is_appended(self) -> None:
        graph = preview_and_terminal()
        entry = record_telemetry(graph, message(channel="warn", text="careful"))

        assert entry is not None
        assert entry.channel is LogChannel.WARN
        assert [e.text for e in graph.logs["preview"]] == ["careful"]

    def test_order_is_kept(self) -> None:
        graph = preview_and_terminal()
        for text in ("one", "two", "three"):
            record_telemetry(graph, message(text=text))
        assert [e.text for e in graph.logs["preview"]] == ["one", "two", "three"]

    def test_other_sources_are_ignored(self) -> None:
        graph = preview_and_terminal()
        assert record_telemetry(graph, message(source="react-devtools")) is None
        assert record_telemetry(graph, "not a dict") is None
        assert "preview" not in graph.logs

    def test_malformed_payload_is_dropped(self) -> None:
        graph = preview_and_terminal()
        assert record_telemetry(graph, message(channel="debug")) is None
        assert record_telemetry(graph, {"source": TELEMETRY_SOURCE, "nodeId": "preview"}) is None

    def test_non_preview_targets_are_dropped(self) -> None:
        graph = preview_and_terminal()
        assert record_telemetry(graph, message(node_id="terminal")) is None
        assert record_telemetry(graph, message(node_id="ghost")) is None
        assert graph.logs == {}


class TestTerminalLog:
    def test_terminal_shows_its_preview_log(self) -> None:
        graph = preview_and_terminal()
        record_telemetry(graph, message(text="booted"))
        assert [e.text for e in terminal_log(graph, "terminal")] == ["booted"]

    def test_unwired_terminal_is_empty(self) -> None:
        terminal = make_node(NodeKind.TERMINAL, "Terminal", node_id="terminal")
        graph = build_graph(terminal)
        assert terminal_log(graph, "terminal") == []
