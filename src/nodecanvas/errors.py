"""Exception taxonomy for nodecanvas.

Only ExternalServiceError is meant to reach callers. The other errors are
raised inside a component and turned into a degraded result there: a
skipped tool call, an error-emitting stub module, a rejected snapshot.
"""

from __future__ import annotations


class NodeCanvasError(Exception):
    """Base class for all nodecanvas errors."""


class TransformError(NodeCanvasError):
    """A single module could not be turned into executable code."""

    def __init__(self, filename: str, message: str) -> None:
        super().__init__(f"{filename}: {message}")
        self.filename = filename
        self.message = message


class CommandValidationError(NodeCanvasError):
    """A tool call did not match any known command shape."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(f"{name}: {message}")
        self.name = name
        self.message = message


class SnapshotError(NodeCanvasError):
    """An incoming graph snapshot could not be parsed."""


class InteractionConflictError(NodeCanvasError):
    """A gesture was started on a node that already has one in progress."""


class ExternalServiceError(NodeCanvasError):
    """The tool-calling service failed and no local recovery is possible.

    Attributes:
        status: HTTP-like status of the last failure, if known.
        attempts: Number of API keys that were tried.
    """

    def __init__(self, message: str, *, status: int | None = None, attempts: int = 0) -> None:
        super().__init__(message)
        self.status = status
        self.attempts = attempts
