"""Preview compilation: graph files to one runnable HTML document."""

from nodecanvas.compiler.document import placeholder_document, stopped_document
from nodecanvas.compiler.preview import (
    CompiledDocument,
    FileRole,
    PreviewCompiler,
    classify,
    compile_preview,
)
from nodecanvas.compiler.scheduler import RecompileScheduler, graph_fingerprint
from nodecanvas.compiler.telemetry import TelemetryMessage, record_telemetry, terminal_log
from nodecanvas.compiler.transform import (
    BabelTransform,
    PassthroughTransform,
    SourceTransform,
    transform_from_config,
)

__all__ = [
    "BabelTransform",
    "CompiledDocument",
    "FileRole",
    "PassthroughTransform",
    "PreviewCompiler",
    "RecompileScheduler",
    "SourceTransform",
    "TelemetryMessage",
    "classify",
    "compile_preview",
    "graph_fingerprint",
    "placeholder_document",
    "record_telemetry",
    "stopped_document",
    "terminal_log",
    "transform_from_config",
]
