"""Chat turns against the tool-calling service.

A turn works on the chat node's whole connected subgraph plus whatever the
user picked as context. Those nodes show a loading state for the duration
of the turn; the state is cleared however the turn ends.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from typing import Any

from nodecanvas.assistant import prompts
from nodecanvas.assistant.failover import call_with_failover, keys_from_env
from nodecanvas.assistant.provider import ToolCallingProvider, ToolCallingResponse
from nodecanvas.compiler.preview import package_name
from nodecanvas.config.schema import Config
from nodecanvas.errors import ExternalServiceError
from nodecanvas.graph.locks import permission_for
from nodecanvas.graph.model import Graph
from nodecanvas.graph.nodes import ChatRole, Node, NodeKind
from nodecanvas.graph.paths import folder_of
from nodecanvas.graph.ports import SOURCE
from nodecanvas.graph.traversal import consumers, related_nodes, single_source
from nodecanvas.logging import get_logger
from nodecanvas.tools.declarations import TOOL_DECLARATIONS, UPDATE_FILE
from nodecanvas.tools.engine import BatchResult, ToolMutationEngine

log = get_logger("assistant")


class AssistantSession:
    """Connects chat and code nodes to a tool-calling provider.

    Args:
        graph: The canvas graph.
        provider: Tool-calling provider.
        config: Full configuration (assistant timeouts, tool placement).
        api_keys: Keys to fail over between; defaults to the configured
            environment variables.
        identity: Session identity used for the default permission check.
        check_permission: Overrides the lock-based permission check.
        on_highlight: Called for each node a tool call changed.
    """

    def __init__(
        self,
        graph: Graph,
        provider: ToolCallingProvider,
        *,
        config: Config | None = None,
        api_keys: Sequence[str] | None = None,
        identity: str | None = None,
        check_permission: Callable[[str], bool] | None = None,
        on_highlight: Callable[[str], None] | None = None,
    ) -> None:
        self.graph = graph
        self.provider = provider
        self.config = config or Config()
        self.api_keys = list(api_keys) if api_keys is not None else keys_from_env(self.config.assistant)
        self.check_permission = check_permission or permission_for(graph, identity)
        self.on_highlight = on_highlight

    # -------------------------------------------------------------------------
    # Turns
    # -------------------------------------------------------------------------

    async def send(self, chat_node_id: str, text: str) -> BatchResult | None:
        """Send a chat message and apply the tool calls that come back.

        Returns:
            The tool batch result, or None if the chat node does not exist.

        Raises:
            ExternalServiceError: The service failed; an ``Error: ...``
                message has been added to the chat.
        """
        chat = self.graph.get_node(chat_node_id)
        if chat is None:
            log.warning("Chat node %s not found", chat_node_id)
            return None

        scope = self.chat_scope(chat)
        files = [n for n in scope if n.kind is NodeKind.CODE]
        loading = self._loading_set(scope, files)

        self.graph.add_message(chat_node_id, ChatRole.USER, text)
        self._set_loading(loading, True)
        try:
            nodes, connections = self.graph.nodes, self.graph.connections
            response = await self._call(
                prompts.system_prompt(nodes, connections),
                prompts.chat_prompt(text, files, nodes, connections),
            )
            self.graph.add_message(chat_node_id, ChatRole.MODEL, response.text)

            result = BatchResult()
            if response.tool_calls:
                result = self._engine(chat_node_id).run(response.tool_calls)
                if result.annotations:
                    reply = "\n".join(p for p in (response.text, result.transcript) if p)
                    self.graph.update_last_message(chat_node_id, reply)
            return result
        except ExternalServiceError as e:
            self.graph.add_message(chat_node_id, ChatRole.MODEL, f"Error: {e}")
            raise
        finally:
            self._set_loading(loading, False)

    async def generate(self, code_node_id: str, request: str | None = None) -> BatchResult | None:
        """Ask for changes focused on one code file.

        With no ``request`` the file is optimized. A reply without tool
        calls replaces the file's content.

        Returns:
            The tool batch result, or None if nothing was sent (missing,
            non-code or locked node).

        Raises:
            ExternalServiceError: The service failed.
        """
        node = self.graph.get_node(code_node_id)
        if node is None or node.kind is not NodeKind.CODE or not self.check_permission(code_node_id):
            return None

        targets = {
            n.id
            for n in related_nodes(code_node_id, self.graph.nodes, self.graph.connections)
            if n.kind in (NodeKind.CODE, NodeKind.FOLDER)
        }
        self._set_loading(targets, True)
        try:
            response = await self._call(
                prompts.system_prompt(self.graph.nodes, self.graph.connections),
                prompts.focus_prompt(node, request),
            )
            if response.tool_calls:
                return self._engine(code_node_id).run(response.tool_calls)
            if response.text:
                self.graph.update_content(code_node_id, prompts.clean_code_reply(response.text))
                if self.on_highlight is not None:
                    self.on_highlight(code_node_id)
            return BatchResult()
        finally:
            self._set_loading(targets, False)

    async def fix_error(self, terminal_id: str, error_text: str) -> BatchResult | None:
        """Ask the service to repair the code behind a terminal's preview.

        The files sent are the code nodes related to whatever feeds the
        preview wired into the terminal. Only ``updateFile`` is offered, and
        any other call in the reply is dropped.

        Returns:
            The tool batch result, or None if the terminal has no preview or
            the preview has no code behind it.

        Raises:
            ExternalServiceError: The service failed.
        """
        terminal = self.graph.get_node(terminal_id)
        if terminal is None or terminal.kind is not NodeKind.TERMINAL:
            return None
        nodes, connections = self.graph.nodes, self.graph.connections
        preview = single_source(terminal_id, SOURCE, nodes, connections)
        if preview is None:
            log.debug("Terminal %s has no preview to fix", terminal_id)
            return None

        files: dict[str, Node] = {}
        for c in connections:
            if c.target_node_id == preview.id:
                for node in related_nodes(c.source_node_id, nodes, connections, NodeKind.CODE):
                    files.setdefault(node.id, node)
        if not files:
            return None

        loading = set(files)
        self._set_loading(loading, True)
        try:
            response = await self._call(
                prompts.FIX_INSTRUCTIONS,
                prompts.fix_prompt(error_text, list(files.values()), nodes, connections),
                tools=[UPDATE_FILE],
            )
            calls = [c for c in response.tool_calls if isinstance(c, dict) and c.get("name") == "updateFile"]
            if len(calls) < len(response.tool_calls):
                log.debug("Dropped %d non-update calls from a fix", len(response.tool_calls) - len(calls))
            return self._engine(None).run(calls)
        finally:
            self._set_loading(loading, False)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def chat_scope(self, chat: Node) -> list[Node]:
        """The chat's connected subgraph, its picked context and the chat itself."""
        related = related_nodes(chat.id, self.graph.nodes, self.graph.connections)
        ids: list[str] = []
        for node_id in [*(n.id for n in related), *chat.context_node_ids, chat.id]:
            if node_id not in ids:
                ids.append(node_id)
        return [n for n in (self.graph.get_node(i) for i in ids) if n is not None]

    def _loading_set(self, scope: list[Node], files: list[Node]) -> set[str]:
        loading = {n.id for n in scope}
        for file in files:
            folder = folder_of(file, self.graph.nodes, self.graph.connections)
            if folder is not None:
                loading.add(folder.id)
        return loading

    def _set_loading(self, node_ids: set[str], loading: bool) -> None:
        for node_id in node_ids:
            self.graph.set_loading(node_id, loading)

    async def _call(
        self, system: str, prompt: str, tools: list[dict[str, Any]] | None = None
    ) -> ToolCallingResponse:
        offered = tools if tools is not None else TOOL_DECLARATIONS
        return await call_with_failover(
            lambda key: self.provider.generate(system, prompt, offered, key),
            self.api_keys,
            self.config.assistant.timeout,
        )

    def _engine(self, anchor_node_id: str | None) -> ToolMutationEngine:
        return ToolMutationEngine(
            self.graph,
            check_permission=self.check_permission,
            on_highlight=self.on_highlight,
            anchor_node_id=anchor_node_id,
            config=self.config.tools,
        )


def inject_package_import(
    graph: Graph,
    package_node_id: str,
    *,
    package_cdn: str = "https://esm.sh/",
    check_permission: Callable[[str], bool] | None = None,
) -> int:
    """Prepend a namespace import of a package to every code file it feeds.

    Files that already mention the package URL are left alone.

    Returns:
        Number of files changed.
    """
    package = graph.get_node(package_node_id)
    if package is None or package.kind is not NodeKind.PACKAGE_SEARCH:
        return 0
    name = package_name(package)
    if not name:
        return 0

    url = package_cdn + name
    line = f"import * as {re.sub(r'[^a-zA-Z0-9]', '_', name)} from '{url}';\n"
    changed = 0
    for target_id in consumers(package_node_id, graph.connections):
        target = graph.get_node(target_id)
        if target is None or target.kind is not NodeKind.CODE or url in target.content:
            continue
        if check_permission is not None and not check_permission(target_id):
            continue
        graph.update_content(target_id, line + target.content)
        changed += 1

    if changed == 0:
        log.info("Package %s feeds no code file that needs an import", name)
    return changed
