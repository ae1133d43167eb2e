"""Tool commands from the assistant, validated and applied to the graph."""

from nodecanvas.tools.commands import (
    Command,
    ConnectFiles,
    DeleteFile,
    MoveFile,
    RenameFile,
    UpdateFile,
    parse_tool_call,
)
from nodecanvas.tools.declarations import TOOL_DECLARATIONS
from nodecanvas.tools.engine import BatchResult, ToolMutationEngine

__all__ = [
    "BatchResult",
    "Command",
    "ConnectFiles",
    "DeleteFile",
    "MoveFile",
    "RenameFile",
    "TOOL_DECLARATIONS",
    "ToolMutationEngine",
    "UpdateFile",
    "parse_tool_call",
]
