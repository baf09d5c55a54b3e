"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for pagecache:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.pagecache/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`. The page cache itself defaults to
  ``~/.pagecache/static-cache`` on every platform.
* **Global config** -- A single :class:`~pagecache.models.GlobalConfig`
  JSON file storing defaults (cache directory, TTL, footer, output format).
* **Project config** -- An optional ``./pagecache.json`` next to the site
  being served, holding a partial ``GlobalConfig``.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  final effective configuration.

All file writes go through :func:`~pagecache.cache.store.write_atomic`
(temp file then rename) so a crash never leaves a truncated config behind.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from pagecache.cache.store import write_atomic
from pagecache.exceptions import ConfigError
from pagecache.models import GlobalConfig

_APP_NAME = "pagecache"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "pagecache.json"

ENV_CACHE_DIR = "PAGECACHE_DIR"
ENV_TTL_SECONDS = "PAGECACHE_TTL_SECONDS"
ENV_ENABLED = "PAGECACHE_ENABLED"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/pagecache/`` (default ``~/.config/pagecache/``).
    On macOS/Windows: ``~/.pagecache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/pagecache/`` (default ``~/.local/share/pagecache/``).
    On macOS/Windows: ``~/.pagecache/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def _read_json(path: Path, label: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~pagecache.models.GlobalConfig`, or a default
        instance if the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    data = _read_json(path, "global config")
    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    text = json.dumps(data, indent=2) + "\n"
    write_atomic(_global_config_path(), text.encode("utf-8"))


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./pagecache.json``.

    The file holds a partial :class:`~pagecache.models.GlobalConfig`, for
    example ``{"cache": {"directory": "var/page-cache"}}``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _coerce_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigError(f"Environment variable {name} must be a boolean, got: {value!r}")


def _coerce_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigError(
            f"Environment variable {name} must be an integer, got: {value!r}"
        ) from None


# --- Precedence resolution ---


def resolve_config(
    cli_cache_dir: Optional[str] = None,
    cli_ttl: Optional[int] = None,
) -> GlobalConfig:
    """Resolve config with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_cache_dir``, ``cli_ttl``)
        2. Environment variables (``PAGECACHE_DIR``, ``PAGECACHE_TTL_SECONDS``,
           ``PAGECACHE_ENABLED``)
        3. Project config (``./pagecache.json``)
        4. User config (``~/.config/pagecache/config.json``)
        5. Defaults

    Raises:
        ConfigError: If any layer holds an invalid value.
    """
    # 5 + 4. Base global config (fills in defaults automatically)
    data = load_global_config().model_dump(mode="json")

    # 3. Project-local config
    project = load_project_config()
    if project is not None:
        data = _deep_merge(data, project)

    cache = data.setdefault("cache", {})

    # 2. Environment variables
    env_dir = os.environ.get(ENV_CACHE_DIR)
    if env_dir:
        cache["directory"] = env_dir
    env_ttl = os.environ.get(ENV_TTL_SECONDS)
    if env_ttl:
        cache["ttl_seconds"] = _coerce_int(ENV_TTL_SECONDS, env_ttl)
    env_enabled = os.environ.get(ENV_ENABLED)
    if env_enabled:
        cache["enabled"] = _coerce_bool(ENV_ENABLED, env_enabled)

    # 1. CLI flags (highest precedence)
    if cli_cache_dir is not None:
        cache["directory"] = cli_cache_dir
    if cli_ttl is not None:
        cache["ttl_seconds"] = cli_ttl

    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
