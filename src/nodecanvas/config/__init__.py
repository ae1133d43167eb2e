"""Configuration management for nodecanvas.

Provides hierarchical YAML-based configuration with:
- System-level config (/etc/nodecanvas/ or %PROGRAMDATA%)
- User-level config (~/.config/nodecanvas/ or %APPDATA%)
- Project-level config ($project_root/.nodecanvas/)
- Environment variable overrides (highest priority)

Example usage:
    from nodecanvas.config import load_config

    config = load_config(project_root="/path/to/project")
    print(config.compiler.debounce)
"""

from nodecanvas.config.loader import (
    dict_to_config,
    get_config,
    load_config,
    reset_config,
)
from nodecanvas.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from nodecanvas.config.schema import (
    AssistantConfig,
    CompilerConfig,
    Config,
    LoggingConfig,
    SyncConfig,
    ToolsConfig,
)

__all__ = [
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    "dict_to_config",
    "AssistantConfig",
    "CompilerConfig",
    "LoggingConfig",
    "SyncConfig",
    "ToolsConfig",
    "get_config_paths",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
