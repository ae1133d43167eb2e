"""Assistant boundary: tool-calling provider, key failover and chat turns."""

from nodecanvas.assistant.failover import call_with_failover, keys_from_env
from nodecanvas.assistant.provider import (
    LiteLLMToolProvider,
    ToolCallingProvider,
    ToolCallingResponse,
)
from nodecanvas.assistant.session import AssistantSession, inject_package_import

__all__ = [
    "AssistantSession",
    "LiteLLMToolProvider",
    "ToolCallingProvider",
    "ToolCallingResponse",
    "call_with_failover",
    "inject_package_import",
    "keys_from_env",
]
