"""Compile a preview's wired files into one self-contained HTML document.

The root is whatever feeds the preview's ``dom`` input. Its dependency
closure is classified by file extension:

- style (``.css``): concatenated into one ``<style>`` block
- markup (``.html``/``.htm``): the root's body, with scripts rewired
- script (anything else): transformed and registered in the import map

Nothing in here raises for a malformed graph. A missing root gives a
placeholder document, a module that fails to transform becomes a stub that
reports the failure on the preview's error channel.
"""

from __future__ import annotations

import base64
import hashlib
import re
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from nodecanvas.compiler import document
from nodecanvas.compiler.transform import SourceTransform, transform_from_config
from nodecanvas.config.schema import CompilerConfig
from nodecanvas.errors import TransformError
from nodecanvas.graph.connections import Connection
from nodecanvas.graph.nodes import Node, NodeKind
from nodecanvas.graph.paths import path_of
from nodecanvas.graph.ports import DOM, IMPORTS
from nodecanvas.graph.traversal import all_sources, closure, single_source
from nodecanvas.logging import get_logger, log_failure

log = get_logger("compiler")

MODULE_URL_PREFIX = "data:text/javascript;base64,"

_STYLESHEET_LINK = re.compile(r"<link\b[^>]*\brel\s*=\s*[\"']?stylesheet[\"']?[^>]*>", re.IGNORECASE)
_SCRIPT_TAG = re.compile(r"<script\b([^>]*)>", re.IGNORECASE)
_SRC_ATTR = re.compile(r"\s*(?<![\w-])src\s*=\s*(?:\"([^\"]*)\"|'([^']*)'|([^\s>]+))", re.IGNORECASE)
_TYPE_ATTR = re.compile(r"\s*(?<![\w-])type\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s>]+)", re.IGNORECASE)
_NON_IDENTIFIER = re.compile(r"[^A-Za-z0-9_$]")


class FileRole(Enum):
    STYLE = "style"
    MARKUP = "markup"
    SCRIPT = "script"


def classify(node: Node) -> FileRole | None:
    """Role of a node in a compiled document, from its title alone."""
    if node.kind is not NodeKind.CODE:
        return None
    title = node.title.lower()
    if title.endswith(".css"):
        return FileRole.STYLE
    if title.endswith((".html", ".htm")):
        return FileRole.MARKUP
    return FileRole.SCRIPT


def strip_extension(name: str) -> str:
    base, dot, _ = name.rpartition(".")
    if dot and base and "/" not in name[len(base):]:
        return base
    return name


def sanitize_identifier(name: str) -> str:
    """JavaScript identifier for a file or package name.

    >>> sanitize_identifier("my-utils.js")
    'my_utils'
    """
    ident = _NON_IDENTIFIER.sub("_", strip_extension(name.rsplit("/", 1)[-1])) or "_"
    if ident[0].isdigit():
        ident = "_" + ident
    return ident


def module_handle(code: str) -> str:
    """In-memory module handle the document can import."""
    data = code.encode("utf-8", errors="replace")
    return MODULE_URL_PREFIX + base64.b64encode(data).decode("ascii")


def reference_keys(node: Node, nodes: Sequence[Node], connections: Sequence[Connection]) -> list[str]:
    """Every spelling a consumer might use to import ``node``."""
    keys: list[str] = []
    for name in (node.title, path_of(node, nodes, connections)):
        for variant in (name, strip_extension(name)):
            for spelling in (variant, f"./{variant}", f"/{variant}"):
                if spelling not in keys:
                    keys.append(spelling)
    return keys


def package_name(node: Node) -> str:
    """Package a PACKAGE_SEARCH node stands for: its query, else its title."""
    return node.content.strip() or node.title.strip()


@dataclass(slots=True)
class CompiledDocument:
    """Result of one compile pass.

    ``fingerprint`` hashes the document without its reload trailer, so two
    compiles of the same inputs share it even when one was forced.
    """

    preview_id: str
    html: str
    fingerprint: str
    root_id: str | None = None
    modules: dict[str, str] = field(default_factory=dict)  # node id -> module handle
    failures: list[str] = field(default_factory=list)


class PreviewCompiler:
    """Builds preview documents from the graph.

    Args:
        config: Compiler settings (runtime imports, package CDN, stylesheets).
        transform: Module transform; defaults to the one named in config.
    """

    def __init__(
        self,
        config: CompilerConfig | None = None,
        transform: SourceTransform | None = None,
    ) -> None:
        self.config = config or CompilerConfig()
        self.transform = transform if transform is not None else transform_from_config(self.config)

    def compile(
        self,
        preview_id: str,
        nodes: Sequence[Node],
        connections: Sequence[Connection],
        force_reload: bool = False,
    ) -> CompiledDocument:
        root = single_source(preview_id, DOM, nodes, connections)
        if root is None:
            html = document.placeholder_document()
            return CompiledDocument(preview_id, html, _fingerprint(html))

        deps = closure(root, nodes, connections)
        members = [root, *deps]
        log.debug("Compiling preview %s: root %s, %d dependencies", preview_id, root.title, len(deps))

        table: dict[str, str] = dict(self.config.runtime_imports)
        compiled = CompiledDocument(preview_id, "", "", root_id=root.id)

        for node in members:
            if node.kind is NodeKind.PACKAGE_SEARCH:
                name = package_name(node)
                if name:
                    table.setdefault(name, self.config.package_cdn + name)

        for node in members:
            if classify(node) is not FileRole.SCRIPT:
                continue
            code = self._compile_module(node, nodes, connections, compiled.failures)
            handle = module_handle(code)
            compiled.modules[node.id] = handle
            for key in reference_keys(node, nodes, connections):
                table.setdefault(key, handle)

        css = "".join(
            f"\n/* {node.title} */\n{node.content}\n"
            for node in members
            if classify(node) is FileRole.STYLE
        )

        role = classify(root)
        entry = ""
        if role is FileRole.MARKUP:
            body = rewrite_markup(root.content, table)
        else:
            body = f'<div id="{document.MOUNT_POINT_ID}"></div>'
            if role is FileRole.SCRIPT:
                entry = document.entry_module(compiled.modules[root.id])

        html = document.assemble_document(
            node_id=preview_id,
            css=css,
            import_map={"imports": table},
            body=body,
            entry=entry,
            stylesheets=self.config.stylesheets,
        )
        compiled.fingerprint = _fingerprint(html)
        if force_reload:
            html += f"<!-- reload: {time.time_ns()} -->\n"
        compiled.html = html
        return compiled

    def _compile_module(
        self,
        node: Node,
        nodes: Sequence[Node],
        connections: Sequence[Connection],
        failures: list[str],
    ) -> str:
        source = with_synthetic_imports(node, nodes, connections, self.config.package_cdn)
        try:
            return self.transform(source, filename=node.title)
        except TransformError as e:
            failure: Exception = e
            message = f"Failed to compile {node.title}: {e.message}"
        except Exception as e:
            failure = e
            message = f"Failed to compile {node.title}: {type(e).__name__}: {e}"
        log_failure(log, failure, message)
        failures.append(message)
        return document.error_stub_module(message)


def with_synthetic_imports(
    node: Node,
    nodes: Sequence[Node],
    connections: Sequence[Connection],
    package_cdn: str,
) -> str:
    """Prepend an import line for each wired dependency the text never mentions."""
    text = node.content
    lines: list[str] = []
    for dep in all_sources(node.id, IMPORTS, nodes, connections):
        if dep.kind is NodeKind.PACKAGE_SEARCH:
            name = package_name(dep)
            if not name:
                continue
            spellings = [name]
            specifier = package_cdn + name
        elif classify(dep) is FileRole.SCRIPT:
            spellings = [dep.title, path_of(dep, nodes, connections)]
            specifier = f"./{dep.title}"
        else:
            continue

        ident = sanitize_identifier(name if dep.kind is NodeKind.PACKAGE_SEARCH else dep.title)
        if any(s in text for s in spellings) or re.search(rf"(?<![\w$]){re.escape(ident)}(?![\w$])", text):
            continue
        lines.append(f'import * as {ident} from "{specifier}";')

    if not lines:
        return text
    return "\n".join(lines) + "\n" + text


def rewrite_markup(markup: str, table: dict[str, str]) -> str:
    """Drop stylesheet links and point known ``<script src>`` tags at modules."""
    markup = _STYLESHEET_LINK.sub("", markup)

    def rewrite(match: re.Match[str]) -> str:
        attrs = match.group(1)
        src_match = _SRC_ATTR.search(attrs)
        if src_match is None:
            return match.group(0)
        src = next(g for g in src_match.groups() if g is not None)
        handle = _lookup(src, table)
        if handle is None:
            return match.group(0)
        rest = _SRC_ATTR.sub("", attrs, count=1)
        rest = _TYPE_ATTR.sub("", rest).rstrip()
        return f'<script type="module" src="{handle}"{rest}>'

    return _SCRIPT_TAG.sub(rewrite, markup)


def _lookup(src: str, table: dict[str, str]) -> str | None:
    bare = re.sub(r"^(\./|/)", "", src)
    for candidate in (src, bare, f"./{bare}"):
        handle = table.get(candidate)
        if handle is not None and handle.startswith(MODULE_URL_PREFIX):
            return handle
    return None


def _fingerprint(html: str) -> str:
    return hashlib.sha256(html.encode("utf-8", errors="surrogatepass")).hexdigest()


def compile_preview(
    preview_id: str,
    nodes: Sequence[Node],
    connections: Sequence[Connection],
    force_reload: bool = False,
    *,
    config: CompilerConfig | None = None,
    transform: SourceTransform | None = None,
) -> str:
    """Compile a preview and return just the document string."""
    compiler = PreviewCompiler(config, transform)
    return compiler.compile(preview_id, nodes, connections, force_reload).html
