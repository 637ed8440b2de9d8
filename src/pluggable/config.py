"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for pluggable:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.pluggable/`` on macOS and Windows. See :func:`get_config_dir`.
* **Global config** -- A single :class:`~pluggable.models.GlobalConfig`
  JSON file storing the dispatch prefix and log level.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  effective configuration.
* **Wiring** -- :func:`resolver_from_config` builds the
  :class:`~pluggable.resolver.DispatchResolver` a host passes to its
  pluggable objects; :func:`configure_logging` installs a Rich log handler.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from pluggable.exceptions import ConfigError
from pluggable.models import GlobalConfig
from pluggable.resolver import DispatchResolver

_APP_NAME = "pluggable"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "pluggable.json"

ENV_METHOD_PREFIX = "PLUGGABLE_METHOD_PREFIX"
ENV_LOG_LEVEL = "PLUGGABLE_LOG_LEVEL"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/pluggable/`` (default ``~/.config/pluggable/``).
    On macOS/Windows: ``~/.pluggable/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def _read_json(path: Path, label: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~pluggable.models.GlobalConfig`, or a
        default instance if the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
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
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local overrides from ``./pluggable.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# --- Precedence resolution ---


def resolve_config(
    cli_prefix: Optional[str] = None,
    cli_log_level: Optional[str] = None,
) -> GlobalConfig:
    """Resolve config with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_prefix``, ``cli_log_level``)
        2. Environment variables (``PLUGGABLE_METHOD_PREFIX``,
           ``PLUGGABLE_LOG_LEVEL``)
        3. Project config (``./pluggable.json``)
        4. User config (``~/.config/pluggable/config.json``)
        5. Defaults

    Raises:
        ConfigError: If any layer produces an invalid value.
    """
    data = load_global_config().model_dump(mode="json")

    project = load_project_config()
    if project is not None:
        data = _merge(data, project)

    if not isinstance(data.get("dispatch"), dict):
        raise ConfigError("Invalid configuration: 'dispatch' must be a JSON object")

    env_prefix = os.environ.get(ENV_METHOD_PREFIX)
    if env_prefix:
        data["dispatch"]["method_prefix"] = env_prefix
    env_level = os.environ.get(ENV_LOG_LEVEL)
    if env_level:
        data["log_level"] = env_level

    if cli_prefix is not None:
        data["dispatch"]["method_prefix"] = cli_prefix
    if cli_log_level is not None:
        data["log_level"] = cli_log_level

    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


# --- Wiring ---


def resolver_from_config(config: GlobalConfig) -> DispatchResolver:
    """Build the :class:`~pluggable.resolver.DispatchResolver` *config* describes."""
    return DispatchResolver(prefix=config.dispatch.method_prefix)


def configure_logging(level: str = "WARNING") -> None:
    """Route the ``pluggable`` loggers through a stderr :class:`RichHandler`.

    Calling it again only changes the level.
    """
    root = logging.getLogger(_APP_NAME)
    root.setLevel(level.upper())
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(
            console=Console(stderr=True), show_path=False, rich_tracebacks=True
        )
        root.addHandler(handler)
