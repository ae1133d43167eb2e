"""Shared test utilities and fixtures for nodecanvas tests."""

from __future__ import annotations

from typing import Any

from nodecanvas.assistant.provider import ToolCallingResponse
from nodecanvas.errors import TransformError
from nodecanvas.graph.connections import Connection, new_connection
from nodecanvas.graph.model import Graph
from nodecanvas.graph.nodes import Node, NodeKind, Position, create_node
from nodecanvas.graph.ports import input_port_id, output_port_for


def make_node(
    kind: NodeKind,
    title: str | None = None,
    content: str | None = None,
    *,
    node_id: str | None = None,
    position: Position | None = None,
) -> Node:
    """Create a node with a readable id derived from its title."""
    if node_id is None:
        base = title or kind.value.lower()
        node_id = base.replace("/", "-").replace(".", "-")
    return create_node(kind, title=title, content=content, position=position, node_id=node_id)


def make_code(title: str, content: str = "", **kwargs: Any) -> Node:
    return make_node(NodeKind.CODE, title, content, **kwargs)


def wire(graph: Graph, source: Node, target: Node, role: str) -> Connection:
    """Connect ``source``'s primary output to ``target``'s ``role`` input.

    Returns:
        The candidate connection (whether or not the graph accepted it).
    """
    source_port = output_port_for(source)
    assert source_port is not None, f"{source.kind} has no output port"
    connection = new_connection(source.id, source_port, target.id, input_port_id(target.id, role))
    graph.connect(connection)
    return connection


def build_graph(*nodes: Node) -> Graph:
    graph = Graph()
    for node in nodes:
        graph.add_node(node)
    return graph


class FakeTransform:
    """Source transform that tags its output and fails on request.

    Args:
        failing: Filenames that raise TransformError.
    """

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[tuple[str, str]] = []

    def __call__(self, source: str, *, filename: str) -> str:
        self.calls.append((filename, source))
        if filename in self.failing:
            raise TransformError(filename, "Unexpected token (1:4)")
        return f"/* compiled {filename} */\n{source}"

    def source_for(self, filename: str) -> str:
        """The source text the transform was given for ``filename``."""
        for name, source in self.calls:
            if name == filename:
                return source
        raise KeyError(filename)


class FakeProvider:
    """Tool-calling provider that replays scripted outcomes.

    Each outcome is a ToolCallingResponse to return or an exception to
    raise; attempts record the API key used.
    """

    def __init__(self, *outcomes: ToolCallingResponse | BaseException) -> None:
        self.outcomes = list(outcomes)
        self.keys: list[str] = []
        self.prompts: list[tuple[str, str]] = []
        self.tools: list[list[str]] = []

    async def generate(
        self,
        system: str,
        prompt: str,
        tools: list[dict[str, Any]],
        api_key: str,
    ) -> ToolCallingResponse:
        self.keys.append(api_key)
        self.prompts.append((system, prompt))
        self.tools.append([t["function"]["name"] for t in tools])
        outcome = self.outcomes.pop(0) if self.outcomes else ToolCallingResponse()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class StatusError(Exception):
    """Service error carrying an HTTP-like status code."""

    def __init__(self, status_code: int, message: str = "service error") -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code


def create_tool_call(name: str, **args: Any) -> dict[str, Any]:
    return {"name": name, "args": args}
