"""nodecanvas: a node-graph project canvas with live previews and tool-driven edits."""

__version__ = "0.1.0"

# Public API
from nodecanvas.assistant import AssistantSession, LiteLLMToolProvider, inject_package_import
from nodecanvas.compiler import PreviewCompiler, RecompileScheduler, compile_preview
from nodecanvas.config import Config, get_config, load_config
from nodecanvas.errors import (
    CommandValidationError,
    ExternalServiceError,
    InteractionConflictError,
    NodeCanvasError,
    SnapshotError,
    TransformError,
)
from nodecanvas.graph import Connection, Graph, Node, NodeKind, create_node
from nodecanvas.sync import SnapshotInbox, reconcile
from nodecanvas.tools import BatchResult, ToolMutationEngine, parse_tool_call

__all__ = [
    "__version__",
    # Graph
    "Connection",
    "Graph",
    "Node",
    "NodeKind",
    "create_node",
    # Components
    "AssistantSession",
    "BatchResult",
    "LiteLLMToolProvider",
    "PreviewCompiler",
    "RecompileScheduler",
    "SnapshotInbox",
    "ToolMutationEngine",
    "compile_preview",
    "inject_package_import",
    "parse_tool_call",
    "reconcile",
    # Config
    "Config",
    "get_config",
    "load_config",
    # Errors
    "CommandValidationError",
    "ExternalServiceError",
    "InteractionConflictError",
    "NodeCanvasError",
    "SnapshotError",
    "TransformError",
]
