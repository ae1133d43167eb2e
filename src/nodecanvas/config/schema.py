"""Configuration schema dataclasses for nodecanvas.

Defines the structure of configuration at all levels (system, user, project).
Every field has a default so partial configs merge together.
"""

from __future__ import annotations

from dataclasses import dataclass, field


def _default_runtime_imports() -> dict[str, str]:
    return {
        "react": "https://esm.sh/react@18.2.0",
        "react-dom/client": "https://esm.sh/react-dom@18.2.0/client",
    }


@dataclass
class CompilerConfig:
    """Preview compiler configuration.

    Example config.yaml:
        compiler:
          transform: babel
          babel_presets: [react]
          debounce: 0.3
          runtime_imports:
            react: https://esm.sh/react@18.2.0
    """

    runtime_imports: dict[str, str] = field(default_factory=_default_runtime_imports)
    package_cdn: str = "https://esm.sh/"
    stylesheets: list[str] = field(default_factory=lambda: ["https://cdn.tailwindcss.com"])
    transform: str = "babel"  # "babel" or "none"
    babel_presets: list[str] = field(default_factory=lambda: ["react"])
    debounce: float = 0.3  # Seconds of quiet before a recompile


@dataclass
class ToolsConfig:
    """Placement of nodes created by tool calls, relative to their anchor."""

    file_offset: tuple[float, float] = (50.0, 50.0)
    folder_offset: tuple[float, float] = (-250.0, 0.0)
    move_folder_offset: tuple[float, float] = (-200.0, 0.0)
    fallback_position: tuple[float, float] = (100.0, 100.0)


@dataclass
class AssistantConfig:
    """Tool-calling service configuration.

    API keys are read from the listed environment variables, in order.
    """

    model: str | None = None
    api_key_env: list[str] = field(
        default_factory=lambda: ["NODECANVAS_API_KEY", "NODECANVAS_API_KEY_2", "NODECANVAS_API_KEY_3"]
    )
    timeout: float = 60.0


@dataclass
class SyncConfig:
    """Remote snapshot reconciliation settings."""

    debounce: float = 0.8
    presence_timeout: float = 30.0  # Seconds before a collaborator counts as gone


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, overrides level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    compiler: CompilerConfig = field(default_factory=CompilerConfig)
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    assistant: AssistantConfig = field(default_factory=AssistantConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
