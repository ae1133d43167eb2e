"""Apply a batch of tool commands to the graph.

The engine keeps a shadow list of nodes that reflects earlier commands in
the same batch, so "create a file, then rename it" works in one batch.
Decisions about existing wiring read the connections as they were before
the batch started.

A command that cannot be applied (unknown file, locked node, invalid
arguments) adds an error line to the transcript and is skipped; the rest
of the batch still runs.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from nodecanvas.config.schema import ToolsConfig
from nodecanvas.errors import CommandValidationError
from nodecanvas.graph.connections import Connection, new_connection
from nodecanvas.graph.model import Graph
from nodecanvas.graph.nodes import FILE_KINDS, Node, NodeKind, Position, create_node
from nodecanvas.graph.paths import path_of, resolve, split_path
from nodecanvas.graph.ports import FILES, IMPORTS, input_port_id, output_port_for
from nodecanvas.logging import get_logger, log_failure
from nodecanvas.tools.commands import (
    Command,
    ConnectFiles,
    DeleteFile,
    MoveFile,
    RenameFile,
    UpdateFile,
    parse_tool_call,
)

log = get_logger("tools")

# Kinds a file can import from
_IMPORTABLE = frozenset({NodeKind.CODE, NodeKind.PACKAGE_SEARCH, NodeKind.FOLDER})
# Targets of edges that express organization rather than consumption
_STRUCTURAL = frozenset({NodeKind.FOLDER, NodeKind.CODE})


@dataclass(slots=True)
class BatchResult:
    """What a batch did, one annotation per effect or failure."""

    annotations: list[str] = field(default_factory=list)
    touched_ids: list[str] = field(default_factory=list)

    @property
    def transcript(self) -> str:
        return "\n".join(self.annotations)

    @property
    def errors(self) -> list[str]:
        return [a for a in self.annotations if a.startswith("[Error")]


class ToolMutationEngine:
    """Runs tool-call batches against a graph.

    Args:
        graph: Graph to mutate.
        check_permission: ``node_id -> bool``; consulted before any change
            to an existing node. Defaults to allowing everything.
        on_highlight: Called with the id of each node a command changed.
        anchor_node_id: Node the batch was issued from (usually a CODE
            node or chat). New nodes are placed next to it.
        config: Placement offsets.
    """

    def __init__(
        self,
        graph: Graph,
        check_permission: Callable[[str], bool] | None = None,
        on_highlight: Callable[[str], None] | None = None,
        anchor_node_id: str | None = None,
        config: ToolsConfig | None = None,
    ) -> None:
        self.graph = graph
        self.check_permission = check_permission or (lambda node_id: True)
        self.on_highlight = on_highlight
        self.anchor_node_id = anchor_node_id
        self.config = config or ToolsConfig()

        self._shadow: list[Node] = []
        self._snapshot: list[Connection] = []
        self._result = BatchResult()

    def run(self, calls: Iterable[Any]) -> BatchResult:
        """Apply ``calls`` in order and return the batch result."""
        self._shadow = list(self.graph.nodes)
        self._snapshot = list(self.graph.connections)
        self._result = BatchResult()

        for call in calls:
            try:
                command = parse_tool_call(call)
            except CommandValidationError as e:
                log_failure(log, e, "Skipping invalid tool call: %s", e)
                self._annotate(f"Error: {e}")
                continue
            self._apply(command)

        result = self._result
        log.info("Tool batch applied: %d annotations, %d errors", len(result.annotations), len(result.errors))
        return result

    def _apply(self, command: Command) -> None:
        if isinstance(command, UpdateFile):
            self._update(command)
        elif isinstance(command, DeleteFile):
            self._delete(command)
        elif isinstance(command, MoveFile):
            self._move(command)
        elif isinstance(command, RenameFile):
            self._rename(command)
        elif isinstance(command, ConnectFiles):
            self._connect(command)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def _update(self, command: UpdateFile) -> None:
        filename, folder_name = split_path(command.path)

        target = resolve(command.path, self._shadow, self._snapshot)
        if target is None:
            target = self._find(filename, {NodeKind.CODE})

        if target is not None:
            if not self.check_permission(target.id):
                self._annotate(f"Error: {filename} is locked")
                return
            self.graph.update_content(target.id, command.content)
            self._annotate(f"Updated {target.title}", target.id)
            if folder_name is None:
                return
            if path_of(target, self._shadow, self._snapshot).startswith(folder_name + "/"):
                return
        else:
            target = self._create_file(filename, command.content)
            if folder_name is None:
                anchor = self._anchor()
                if anchor is not None and anchor.kind is NodeKind.CODE:
                    self._wire(target, anchor, IMPORTS)
                return

        folder = self._ensure_folder(folder_name, self._near_anchor(self.config.folder_offset))
        self._detach(target)
        self._wire(target, folder, FILES)
        self._annotate(f"Wired {target.title} to {folder.title}", target.id)

        anchor = self._anchor()
        if anchor is not None and anchor.kind is NodeKind.CODE and anchor.id != target.id:
            linked = any(
                c.source_node_id == folder.id and c.target_node_id == anchor.id for c in self._snapshot
            )
            if not linked:
                self._wire(folder, anchor, IMPORTS)

    def _move(self, command: MoveFile) -> None:
        target = self._find(command.title, FILE_KINDS)
        if target is None:
            self._annotate(f"Error: Could not find {command.title} to move")
            return
        if not self.check_permission(target.id):
            self._annotate(f"Error: {command.title} is locked")
            return

        self._detach(target)
        if command.target_folder:
            dx, dy = self.config.move_folder_offset
            folder = self._ensure_folder(command.target_folder, target.position.offset(dx, dy))
            self._wire(target, folder, FILES)
            self._annotate(f"Moved {target.title} to {folder.title}", target.id)
        else:
            self._annotate(f"Moved {target.title} to root", target.id)

    def _rename(self, command: RenameFile) -> None:
        target = self._find(command.old_title, {NodeKind.CODE})
        if target is None:
            self._annotate(f"Error: Could not find {command.old_title}")
            return
        if not self.check_permission(target.id):
            self._annotate(f"Error: {command.old_title} is locked")
            return
        self.graph.update_title(target.id, command.new_title)
        self._annotate(f"Renamed {command.old_title} to {command.new_title}", target.id)

    def _delete(self, command: DeleteFile) -> None:
        target = self._find(command.title, {NodeKind.CODE})
        if target is None:
            self._annotate(f"Error: Could not find {command.title}")
            return
        if not self.check_permission(target.id):
            self._annotate(f"Error: {command.title} is locked")
            return
        self.graph.remove_node(target.id)
        self._shadow = [n for n in self._shadow if n.id != target.id]
        self._annotate(f"Deleted {command.title}")

    def _connect(self, command: ConnectFiles) -> None:
        source = self._find(command.source_title)
        if source is None:
            self._annotate(f"Error: Could not find {command.source_title}")
            return
        target = self._find(command.target_title)
        if target is None:
            self._annotate(f"Error: Could not find {command.target_title}")
            return

        if target.kind is NodeKind.FOLDER:
            if source.kind not in FILE_KINDS:
                self._annotate(f"Error: {source.title} cannot be placed in a folder")
                return
            if not self.check_permission(source.id):
                self._annotate(f"Error: {source.title} is locked")
                return
            self._detach(source)
            self._wire(source, target, FILES)
            self._annotate(f"Wired {source.title} to {target.title}", source.id)
        elif target.kind is NodeKind.CODE:
            if source.kind not in _IMPORTABLE:
                self._annotate(f"Error: {target.title} cannot import {source.title}")
                return
            if self._wire(source, target, IMPORTS):
                self._annotate(f"Connected {source.title} -> {target.title}", target.id)
            else:
                self._annotate(f"{source.title} is already connected to {target.title}")
        else:
            self._annotate(f"Error: Cannot connect {source.title} to {target.title}")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _annotate(self, text: str, node_id: str | None = None) -> None:
        self._result.annotations.append(f"[{text}]")
        if node_id is None:
            return
        if node_id not in self._result.touched_ids:
            self._result.touched_ids.append(node_id)
        if self.on_highlight is not None:
            self.on_highlight(node_id)

    def _find(self, title: str, kinds: Iterable[NodeKind] | None = None) -> Node | None:
        allowed = set(kinds) if kinds is not None else None
        for node in self._shadow:
            if node.title == title and (allowed is None or node.kind in allowed):
                return node
        return None

    def _anchor(self) -> Node | None:
        if self.anchor_node_id is None:
            return None
        for node in self._shadow:
            if node.id == self.anchor_node_id:
                return node
        return None

    def _near_anchor(self, offset: tuple[float, float]) -> Position:
        anchor = self._anchor()
        if anchor is None:
            return Position(*self.config.fallback_position)
        return anchor.position.offset(*offset)

    def _create_file(self, title: str, content: str) -> Node:
        node = create_node(
            NodeKind.CODE,
            title=title,
            content=content,
            position=self._near_anchor(self.config.file_offset),
        )
        self.graph.add_node(node)
        self._shadow.append(node)
        self._annotate(f"Created {title}", node.id)
        return node

    def _ensure_folder(self, title: str, position: Position) -> Node:
        folder = self._find(title, {NodeKind.FOLDER})
        if folder is not None:
            return folder
        folder = create_node(NodeKind.FOLDER, title=title, position=position)
        self.graph.add_node(folder)
        self._shadow.append(folder)
        self._annotate(f"Created folder {title}", folder.id)
        return folder

    def _detach(self, node: Node) -> None:
        """Remove the node's edges into folders and code files.

        Edges into previews and terminals stay: they are consumption, not
        organization.
        """
        kinds = {n.id: n.kind for n in self._shadow}
        for c in self._snapshot:
            if c.source_node_id == node.id and kinds.get(c.target_node_id) in _STRUCTURAL:
                self.graph.disconnect(c.id)

    def _wire(self, source: Node, target: Node, role: str) -> bool:
        source_port = output_port_for(source)
        if source_port is None:
            return False
        return self.graph.connect(
            new_connection(source.id, source_port, target.id, input_port_id(target.id, role))
        )
