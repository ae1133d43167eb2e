"""Text sent to the tool-calling service.

The project listing uses virtual paths so the model refers to files the
way ``updateFile`` resolves them.
"""

from __future__ import annotations

from collections.abc import Sequence

from nodecanvas.graph.connections import Connection
from nodecanvas.graph.nodes import Node, NodeKind
from nodecanvas.graph.paths import path_of

SYSTEM_INSTRUCTIONS = """You are a coding assistant working on a node-based project canvas.

Rules:
1. To edit or create a file use updateFile. A path like "folder/file.ext" places the file in that folder.
2. To move an existing file use moveFile. Leave targetFolderName empty to move it to the root.
3. To rename a file use renameFile. Never put a folder in the new name.
4. To make a file import another file or package, or to put a file in a folder, use connectFiles.
5. Files wired into a folder node are inside it; keep the entry point (usually index.html) at the root.
6. You may edit any file listed below, not only the one currently selected.
"""


def project_listing(nodes: Sequence[Node], connections: Sequence[Connection]) -> str:
    lines = []
    for node in nodes:
        if node.kind is NodeKind.FOLDER:
            lines.append(f"[FOLDER] {node.title}")
        elif node.is_file:
            lines.append(f"- {path_of(node, nodes, connections)} ({node.kind.value})")
    return "\n".join(lines)


def system_prompt(nodes: Sequence[Node], connections: Sequence[Connection]) -> str:
    return (
        f"{SYSTEM_INSTRUCTIONS}\n"
        "Project files (you have authority over these):\n"
        f"{project_listing(nodes, connections)}\n"
    )


def chat_prompt(text: str, files: Sequence[Node], nodes: Sequence[Node], connections: Sequence[Connection]) -> str:
    context = "\n\n".join(
        f"File Path: {path_of(n, nodes, connections)}\nContent:\n{n.content}" for n in files
    )
    return f"Query: {text}\n\nSelected File Content Context:\n{context}"


def focus_prompt(node: Node, request: str | None) -> str:
    """Prompt for a request aimed at one code file; no request means optimize it."""
    if request is None:
        return f"Optimize the file {node.title}."
    return f"Request: {request}\n\n(Focus on {node.title})"


def clean_code_reply(text: str) -> str:
    """Strip a surrounding Markdown code fence from a model reply."""
    lines = text.strip("\n").split("\n")
    if lines and lines[0].startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines)


FIX_INSTRUCTIONS = "You are an automated error fixer. Analyze the error and fix it using updateFile."


def fix_prompt(error_text: str, files: Sequence[Node], nodes: Sequence[Node], connections: Sequence[Connection]) -> str:
    """Prompt for repairing the files behind a preview that reported an error."""
    context = "\n\n".join(
        f"Filename: {path_of(n, nodes, connections)}\nContent:\n{n.content}" for n in files
    )
    return f"Error Message: {error_text}\n\nFiles:\n{context}\n\nFix the error using the updateFile tool."
