"""Configuration with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for oaslink:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.oaslink/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **User config** -- ``<config_dir>/config.json``, a partial
  :class:`~oaslink.models.LinkConfig`.
* **Project config** -- ``./oaslink.json`` in the working directory, same
  shape, pinning settings for one repository of description documents.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  ``OASLINK_*`` environment variables, project config, and user config into
  the effective :class:`~oaslink.models.LinkConfig`.

Augmented documents written by ``oaslink inject`` go through
:func:`atomic_write` (temp file, then rename) so an interrupted run never
leaves a half-written document behind.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from oaslink.exceptions import ConfigError
from oaslink.models import LinkConfig

_APP_NAME = "oaslink"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "oaslink.json"

_ENV_KEY_STRATEGY = "OASLINK_KEY_STRATEGY"
_ENV_AUTO_LINKS = "OASLINK_AUTO_LINKS"
_ENV_MAX_WORKERS = "OASLINK_MAX_WORKERS"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    return Path.home().joinpath(*default_segments)


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/oaslink/`` (default ``~/.config/oaslink/``).
    On macOS/Windows: ``~/.oaslink/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/oaslink/`` (default ``~/.local/share/oaslink/``).
    On macOS/Windows: ``~/.oaslink/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed and the original file, if any, is left untouched.
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
        fd = None  # prevent double-close below
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


# --- Config files ---


def _read_json_object(path: Path, what: str) -> Optional[dict[str, Any]]:
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid {what} at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {what} at {path}: expected a JSON object")
    return data


def load_user_config() -> Optional[dict[str, Any]]:
    """Load ``<config_dir>/config.json`` as a raw dict, or ``None`` if absent.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    return _read_json_object(get_config_dir() / _CONFIG_FILENAME, "user config")


def load_project_config() -> Optional[dict[str, Any]]:
    """Load ``./oaslink.json`` as a raw dict, or ``None`` if absent.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    return _read_json_object(Path.cwd() / _PROJECT_CONFIG_FILENAME, "project config")


# --- Environment ---


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean (true/false), got '{raw}'")


def load_env_config() -> dict[str, Any]:
    """Collect settings from ``OASLINK_*`` environment variables.

    Empty variables are ignored.

    Raises:
        ConfigError: If a variable holds an unparseable value.
    """
    overrides: dict[str, Any] = {}

    strategy = os.environ.get(_ENV_KEY_STRATEGY, "")
    if strategy:
        overrides["key_strategy"] = strategy.strip().lower()

    auto_links = os.environ.get(_ENV_AUTO_LINKS, "")
    if auto_links:
        overrides["auto_links"] = _parse_bool(_ENV_AUTO_LINKS, auto_links)

    workers = os.environ.get(_ENV_MAX_WORKERS, "")
    if workers:
        try:
            overrides["max_workers"] = int(workers)
        except ValueError as exc:
            raise ConfigError(
                f"{_ENV_MAX_WORKERS} must be an integer, got '{workers}'"
            ) from exc

    return overrides


# --- Precedence resolution ---


def resolve_config(
    cli_key_strategy: Optional[str] = None,
    cli_auto_links: Optional[bool] = None,
    cli_max_workers: Optional[int] = None,
) -> LinkConfig:
    """Resolve the effective engine config with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_*`` arguments that are not ``None``)
        2. Environment variables (``OASLINK_KEY_STRATEGY``,
           ``OASLINK_AUTO_LINKS``, ``OASLINK_MAX_WORKERS``)
        3. Project config (``./oaslink.json``)
        4. User config (``~/.config/oaslink/config.json``)
        5. Defaults

    Raises:
        ConfigError: If any layer is unreadable or the merged values fail
            validation.
    """
    merged: dict[str, Any] = {}

    # 4. User config
    merged.update(load_user_config() or {})
    # 3. Project config
    merged.update(load_project_config() or {})
    # 2. Environment
    merged.update(load_env_config())
    # 1. CLI flags
    if cli_key_strategy is not None:
        merged["key_strategy"] = cli_key_strategy
    if cli_auto_links is not None:
        merged["auto_links"] = cli_auto_links
    if cli_max_workers is not None:
        merged["max_workers"] = cli_max_workers

    try:
        return LinkConfig.model_validate(merged)
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
