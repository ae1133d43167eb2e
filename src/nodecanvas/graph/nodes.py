"""Node entities for the canvas graph.

A node is a typed unit on the canvas: a code file, a folder, a live
preview, a terminal, an AI chat, a package search, an image or a note.
The kind decides which payload the node carries and which ports it has.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from nodecanvas.errors import SnapshotError


class NodeKind(Enum):
    """Closed set of node kinds. Values are the snapshot wire names."""

    CODE = "CODE"
    PREVIEW = "PREVIEW"
    TERMINAL = "TERMINAL"
    AI_CHAT = "AI_CHAT"
    PACKAGE_SEARCH = "NPM"
    IMAGE = "IMAGE"
    TEXT = "TEXT"
    FOLDER = "FOLDER"

    def __str__(self) -> str:
        return self.value


# Kinds that can live inside a folder
FILE_KINDS = frozenset({NodeKind.CODE, NodeKind.IMAGE, NodeKind.TEXT})


@dataclass(slots=True)
class Position:
    x: float = 0.0
    y: float = 0.0

    def offset(self, dx: float, dy: float) -> Position:
        return Position(self.x + dx, self.y + dy)


@dataclass(slots=True)
class Size:
    width: float = 0.0
    height: float = 0.0


class ChatRole(Enum):
    USER = "user"
    MODEL = "model"


@dataclass(slots=True)
class ChatMessage:
    """One entry of an AI chat transcript."""

    role: ChatRole
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatMessage:
        try:
            role = ChatRole(data.get("role", "model"))
        except ValueError as e:
            raise SnapshotError(f"Unknown chat role {data.get('role')!r}") from e
        return cls(role=role, text=str(data.get("text", "")))


# -----------------------------------------------------------------------------
# Payloads
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ScriptPayload:
    """Source text of a code file."""

    text: str = ""

    @property
    def raw(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class QueryPayload:
    """Package search query."""

    query: str = ""

    @property
    def raw(self) -> str:
        return self.query


@dataclass(frozen=True, slots=True)
class MarkdownPayload:
    """Markdown body of a note."""

    markdown: str = ""

    @property
    def raw(self) -> str:
        return self.markdown


@dataclass(frozen=True, slots=True)
class ImagePayload:
    """Encoded image, usually a data URL."""

    data: str = ""

    @property
    def raw(self) -> str:
        return self.data


@dataclass(frozen=True, slots=True)
class EmptyPayload:
    """Kinds whose content is runtime state, not user data."""

    note: str = ""

    @property
    def raw(self) -> str:
        return self.note


Payload = ScriptPayload | QueryPayload | MarkdownPayload | ImagePayload | EmptyPayload

_PAYLOAD_TYPES: dict[NodeKind, type] = {
    NodeKind.CODE: ScriptPayload,
    NodeKind.PACKAGE_SEARCH: QueryPayload,
    NodeKind.TEXT: MarkdownPayload,
    NodeKind.IMAGE: ImagePayload,
}


def make_payload(kind: NodeKind, text: str) -> Payload:
    """Wrap raw text in the payload type the kind accepts."""
    payload_type = _PAYLOAD_TYPES.get(kind, EmptyPayload)
    return payload_type(text)


# -----------------------------------------------------------------------------
# Defaults
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NodeDefaults:
    width: float
    height: float
    title: str
    content: str = ""
    auto_height: bool = False


NODE_DEFAULTS: dict[NodeKind, NodeDefaults] = {
    NodeKind.CODE: NodeDefaults(450, 300, "script.js", "// Write HTML, CSS, or JS here"),
    NodeKind.PREVIEW: NodeDefaults(500, 400, "Preview Output"),
    NodeKind.TERMINAL: NodeDefaults(400, 200, "Terminal"),
    NodeKind.AI_CHAT: NodeDefaults(350, 450, "AI Assistant"),
    NodeKind.PACKAGE_SEARCH: NodeDefaults(300, 350, "NPM Packages"),
    NodeKind.IMAGE: NodeDefaults(300, 300, "Image"),
    NodeKind.TEXT: NodeDefaults(
        300, 300, "Note.md", "# New Note\n\nDouble-click to edit this markdown note."
    ),
    NodeKind.FOLDER: NodeDefaults(250, 300, "components"),
}


def new_node_id(prefix: str = "node") -> str:
    """Generate an opaque, stable node id."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


# -----------------------------------------------------------------------------
# Node
# -----------------------------------------------------------------------------


@dataclass
class Node:
    """A node on the canvas.

    ``content`` is a view over ``payload``: reads return the payload's text,
    writes re-wrap the text in the payload type for this node's kind.
    """

    id: str
    kind: NodeKind
    title: str
    payload: Payload = field(default_factory=EmptyPayload)
    position: Position = field(default_factory=Position)
    size: Size = field(default_factory=Size)
    auto_height: bool = False
    is_minimized: bool = False
    expanded_size: Size | None = None
    is_loading: bool = False
    locked_by: str | None = None
    messages: list[ChatMessage] = field(default_factory=list)
    context_node_ids: list[str] = field(default_factory=list)
    shared_state: Any = None

    @property
    def content(self) -> str:
        return self.payload.raw

    @content.setter
    def content(self, text: str) -> None:
        self.payload = make_payload(self.kind, text)

    @property
    def is_file(self) -> bool:
        return self.kind in FILE_KINDS

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the snapshot wire format."""
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.kind.value,
            "title": self.title,
            "content": self.content,
            "position": {"x": self.position.x, "y": self.position.y},
            "size": {"width": self.size.width, "height": self.size.height},
        }
        if self.auto_height:
            data["autoHeight"] = True
        if self.is_minimized:
            data["isMinimized"] = True
        if self.expanded_size is not None:
            data["expandedSize"] = {
                "width": self.expanded_size.width,
                "height": self.expanded_size.height,
            }
        if self.is_loading:
            data["isLoading"] = True
        if self.locked_by is not None:
            data["lockedBy"] = self.locked_by
        if self.messages:
            data["messages"] = [m.to_dict() for m in self.messages]
        if self.context_node_ids:
            data["contextNodeIds"] = list(self.context_node_ids)
        if self.shared_state is not None:
            data["sharedState"] = self.shared_state
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Node:
        """Deserialize from the snapshot wire format."""
        try:
            kind = NodeKind(data["type"])
            node_id = str(data["id"])
        except KeyError as e:
            raise SnapshotError(f"Node is missing field {e.args[0]!r}") from e
        except ValueError as e:
            raise SnapshotError(f"Unknown node type {data.get('type')!r}") from e

        pos = data.get("position") or {}
        size = data.get("size") or {}
        expanded = data.get("expandedSize")
        try:
            return cls(
                id=node_id,
                kind=kind,
                title=str(data.get("title", "")),
                payload=make_payload(kind, str(data.get("content") or "")),
                position=Position(float(pos.get("x", 0)), float(pos.get("y", 0))),
                size=Size(float(size.get("width", 0)), float(size.get("height", 0))),
                auto_height=bool(data.get("autoHeight", False)),
                is_minimized=bool(data.get("isMinimized", False)),
                expanded_size=(
                    Size(float(expanded.get("width", 0)), float(expanded.get("height", 0)))
                    if isinstance(expanded, dict)
                    else None
                ),
                is_loading=bool(data.get("isLoading", False)),
                locked_by=data.get("lockedBy"),
                messages=[ChatMessage.from_dict(m) for m in data.get("messages") or []],
                context_node_ids=[str(i) for i in data.get("contextNodeIds") or []],
                shared_state=data.get("sharedState"),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise SnapshotError(f"Node {node_id!r} has a malformed field: {e}") from e


def create_node(
    kind: NodeKind,
    *,
    title: str | None = None,
    content: str | None = None,
    position: Position | None = None,
    node_id: str | None = None,
) -> Node:
    """Create a node filled in with the defaults for its kind."""
    defaults = NODE_DEFAULTS[kind]
    return Node(
        id=node_id or new_node_id("folder" if kind is NodeKind.FOLDER else "node"),
        kind=kind,
        title=title if title is not None else defaults.title,
        payload=make_payload(kind, content if content is not None else defaults.content),
        position=position or Position(),
        size=Size(defaults.width, defaults.height),
        auto_height=defaults.auto_height,
    )
