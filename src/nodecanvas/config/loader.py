"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Environment variable overrides
- Config caching with reset support
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from nodecanvas.config.merge import merge_configs
from nodecanvas.config.paths import get_config_paths
from nodecanvas.config.schema import (
    AssistantConfig,
    CompilerConfig,
    Config,
    LoggingConfig,
    SyncConfig,
    ToolsConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("nodecanvas.config")

_cached_config: Config | None = None


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning an empty dict if missing or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def env_overrides() -> dict[str, Any]:
    """Build a config dict from environment variables (highest priority)."""
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("NODECANVAS_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    model = os.environ.get("NODECANVAS_MODEL")
    if model:
        overrides.setdefault("assistant", {})["model"] = model

    return overrides


def _pair(value: Any, default: tuple[float, float]) -> tuple[float, float]:
    if isinstance(value, (list, tuple)) and len(value) == 2:
        try:
            return (float(value[0]), float(value[1]))
        except (TypeError, ValueError):
            pass
    return default


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert a merged dict to the typed Config dataclass."""
    compiler_data = data.get("compiler", {})
    compiler_defaults = CompilerConfig()
    runtime_imports = compiler_data.get("runtime_imports")
    compiler = CompilerConfig(
        runtime_imports=(
            {str(k): str(v) for k, v in runtime_imports.items()}
            if isinstance(runtime_imports, dict)
            else compiler_defaults.runtime_imports
        ),
        package_cdn=compiler_data.get("package_cdn", compiler_defaults.package_cdn),
        stylesheets=[
            s for s in compiler_data.get("stylesheets", compiler_defaults.stylesheets)
            if isinstance(s, str)
        ],
        transform=compiler_data.get("transform", compiler_defaults.transform),
        babel_presets=[
            p for p in compiler_data.get("babel_presets", compiler_defaults.babel_presets)
            if isinstance(p, str)
        ],
        debounce=float(compiler_data.get("debounce", compiler_defaults.debounce)),
    )

    tools_data = data.get("tools", {})
    tools_defaults = ToolsConfig()
    tools = ToolsConfig(
        file_offset=_pair(tools_data.get("file_offset"), tools_defaults.file_offset),
        folder_offset=_pair(tools_data.get("folder_offset"), tools_defaults.folder_offset),
        move_folder_offset=_pair(
            tools_data.get("move_folder_offset"), tools_defaults.move_folder_offset
        ),
        fallback_position=_pair(
            tools_data.get("fallback_position"), tools_defaults.fallback_position
        ),
    )

    assistant_data = data.get("assistant", {})
    assistant_defaults = AssistantConfig()
    assistant = AssistantConfig(
        model=assistant_data.get("model"),
        api_key_env=[
            k for k in assistant_data.get("api_key_env", assistant_defaults.api_key_env)
            if isinstance(k, str)
        ],
        timeout=float(assistant_data.get("timeout", assistant_defaults.timeout)),
    )

    sync_data = data.get("sync", {})
    sync_defaults = SyncConfig()
    sync = SyncConfig(
        debounce=float(sync_data.get("debounce", sync_defaults.debounce)),
        presence_timeout=float(
            sync_data.get("presence_timeout", sync_defaults.presence_timeout)
        ),
    )

    log_data = data.get("logging", {})
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    return Config(
        compiler=compiler,
        tools=tools,
        assistant=assistant,
        sync=sync,
        logging=logging_config,
    )


def load_config(project_root: str | os.PathLike[str] | None = None) -> Config:
    """Load configuration from all layers and cache it.

    Args:
        project_root: Optional project directory for project-level config.

    Returns:
        The merged, typed Config.
    """
    global _cached_config

    layers = [load_yaml_file(path) for path in get_config_paths(project_root)]
    layers.append(env_overrides())

    _cached_config = dict_to_config(merge_configs(*layers))
    return _cached_config


def get_config() -> Config:
    """Get the cached config, loading defaults on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Clear the cached config (mainly for tests)."""
    global _cached_config
    _cached_config = None
