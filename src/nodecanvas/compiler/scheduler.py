"""Debounced recompilation of running previews.

Callers ``notify()`` after every graph change. The scheduler fingerprints
the fields a compile depends on; if the fingerprint moved it (re)arms a
delay timer, so a burst of edits produces one recompile once the graph has
been quiet for ``delay`` seconds.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
from collections.abc import Callable

from nodecanvas.compiler.document import stopped_document
from nodecanvas.compiler.preview import PreviewCompiler
from nodecanvas.graph.model import Graph
from nodecanvas.logging import get_logger

log = get_logger("compiler")

DocumentCallback = Callable[[str, str], None]


def graph_fingerprint(graph: Graph) -> str:
    """Hash of everything a compile pass reads."""
    watched = {
        "nodes": [[n.id, n.kind.value, n.title, n.content] for n in graph.nodes],
        "connections": [list(c.key) for c in graph.connections],
        "running": list(graph.running_preview_ids),
    }
    data = json.dumps(watched, separators=(",", ":"), sort_keys=True)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


class RecompileScheduler:
    """Recompile running previews when the graph settles.

    Args:
        graph: The graph to watch.
        compiler: Compiler used for every pass.
        on_document: Called with ``(preview_id, html)`` for each new document.
        delay: Seconds of quiet before recompiling.
    """

    def __init__(
        self,
        graph: Graph,
        compiler: PreviewCompiler,
        on_document: DocumentCallback,
        delay: float = 0.3,
    ) -> None:
        self._graph = graph
        self._compiler = compiler
        self._on_document = on_document
        self._delay = delay
        self._fingerprint: str | None = None
        self._task: asyncio.Task[None] | None = None
        self._delivered: dict[str, str] = {}  # preview id -> document fingerprint

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def notify(self) -> bool:
        """Note a possible change. Returns True if a recompile was scheduled.

        Must be called from within an async context.
        """
        fingerprint = graph_fingerprint(self._graph)
        if fingerprint == self._fingerprint:
            return False
        self._fingerprint = fingerprint

        if self._task is not None:
            self._task.cancel()
        self._task = asyncio.create_task(self._delayed_compile())
        return True

    async def _delayed_compile(self) -> None:
        await asyncio.sleep(self._delay)
        self._task = None
        self.compile_all()

    def compile_all(self) -> int:
        """Compile every running preview now; returns documents delivered."""
        delivered = 0
        running = set(self._graph.running_preview_ids)

        for preview_id in list(self._delivered):
            if preview_id not in running:
                del self._delivered[preview_id]
                if preview_id in self._graph:
                    self._on_document(preview_id, stopped_document())

        for preview_id in self._graph.running_preview_ids:
            result = self._compiler.compile(preview_id, self._graph.nodes, self._graph.connections)
            if self._delivered.get(preview_id) == result.fingerprint:
                continue
            self._delivered[preview_id] = result.fingerprint
            log.debug("Delivering new document for preview %s", preview_id)
            self._on_document(preview_id, result.html)
            delivered += 1
        return delivered

    def reload(self, preview_id: str) -> str:
        """Recompile one preview immediately, forcing a fresh document."""
        result = self._compiler.compile(
            preview_id, self._graph.nodes, self._graph.connections, force_reload=True
        )
        self._delivered[preview_id] = result.fingerprint
        self._on_document(preview_id, result.html)
        return result.html

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
