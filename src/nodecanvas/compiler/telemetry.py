"""Host side of the preview telemetry contract.

A compiled document posts one message per console call or uncaught error:

    {"source": "nodecanvas-preview", "nodeId": "...", "channel": "log",
     "text": "...", "timestamp": 1700000000000}

Terminals show the log of the preview wired into their ``source`` input.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, ValidationError

from nodecanvas.compiler.document import TELEMETRY_SOURCE
from nodecanvas.graph.model import Graph, LogChannel, LogEntry
from nodecanvas.graph.nodes import NodeKind
from nodecanvas.graph.ports import SOURCE
from nodecanvas.graph.traversal import single_source
from nodecanvas.logging import get_logger
from nodecanvas.wire import WireModel

log = get_logger("compiler")


class TelemetryMessage(WireModel):
    """One console line posted by a running preview."""

    source: Literal["nodecanvas-preview"] = TELEMETRY_SOURCE
    node_id: str = Field(alias="nodeId")
    channel: Literal["log", "warn", "error", "info"]
    text: str
    timestamp: float

    def to_entry(self) -> LogEntry:
        return LogEntry(LogChannel(self.channel), self.text, self.timestamp)


def record_telemetry(graph: Graph, payload: Any) -> LogEntry | None:
    """Append a posted message to its preview's log.

    Messages from other sources, malformed payloads and messages for nodes
    that are not previews are dropped.
    """
    if not isinstance(payload, dict) or payload.get("source") != TELEMETRY_SOURCE:
        return None
    try:
        message = TelemetryMessage.model_validate(payload)
    except ValidationError as e:
        log.debug("Dropping malformed telemetry: %s", e)
        return None

    node = graph.get_node(message.node_id)
    if node is None or node.kind is not NodeKind.PREVIEW:
        log.debug("Dropping telemetry for unknown preview %s", message.node_id)
        return None

    entry = message.to_entry()
    graph.add_log(node.id, entry)
    return entry


def terminal_log(graph: Graph, terminal_id: str) -> list[LogEntry]:
    """Log lines a terminal shows: those of the preview feeding it."""
    preview = single_source(terminal_id, SOURCE, graph.nodes, graph.connections)
    if preview is None:
        return []
    return list(graph.logs.get(preview.id, []))
