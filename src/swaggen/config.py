"""Configuration management with XDG paths, atomic writes, and environment overrides.

This module handles all persistent configuration for swaggen:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.swaggen/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Global config** -- A single :class:`~swaggen.models.GlobalConfig`
  JSON file storing cache, fetch and template settings.
* **Precedence resolution** -- :func:`resolve_config` layers environment
  variables over the config file, which in turn overrides the defaults.
* **Bootstrapping** -- :func:`ensure_default_config` writes the default
  config file on first start.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) so that a reader never observes a partial file.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional, Union

from swaggen.exceptions import ConfigError
from swaggen.models import GlobalConfig

logger = logging.getLogger(__name__)

_APP_NAME = "swaggen"
_CONFIG_FILENAME = "config.json"

ENV_CACHE_DIR = "SWAGGEN_CACHE_DIR"
ENV_CACHE_TTL_MINUTES = "SWAGGEN_CACHE_TTL_MINUTES"
ENV_TEMPLATES_DIR = "SWAGGEN_TEMPLATES_DIR"


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

    On Linux/BSD: ``$XDG_CONFIG_HOME/swaggen/`` (default ``~/.config/swaggen/``).
    On macOS/Windows: ``~/.swaggen/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the on-disk document cache. Cached data can be safely deleted at
    any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/swaggen/`` (default ``~/.cache/swaggen/``).
    On macOS/Windows: ``~/.swaggen/cache/``.

    Returns:
        Absolute path to the cache directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/swaggen/`` (default ``~/.local/share/swaggen/``).
    On macOS/Windows: ``~/.swaggen/data/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_document_cache_dir() -> Path:
    """Return the default on-disk cache tier directory (``<cache_dir>/documents``)."""
    return get_cache_dir() / "documents"


def default_templates_dir() -> Path:
    """Return the default directory for user-supplied templates (``<config_dir>/templates``)."""
    return get_config_dir() / "templates"


# --- Atomic file writes ---


def atomic_write(path: Path, data: Union[str, bytes]) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On success the temp file is renamed over *path*; on any failure the temp
    file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    binary = isinstance(data, bytes)
    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="wb" if binary else "w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding=None if binary else "utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
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
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~swaggen.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk.

    Args:
        config: The configuration to save.
    """
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


def ensure_default_config() -> Path:
    """Write the default global config if none exists yet.

    An existing file is never touched, even if it is invalid.

    Returns:
        The path of the global config file.
    """
    path = _global_config_path()
    if not path.exists():
        save_global_config(GlobalConfig())
        logger.info("Created default configuration at %s", path)
    return path


# --- Precedence resolution ---


def resolve_config() -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. Environment variables (``SWAGGEN_CACHE_DIR``,
           ``SWAGGEN_CACHE_TTL_MINUTES``, ``SWAGGEN_TEMPLATES_DIR``)
        2. User config (``~/.config/swaggen/config.json``)
        3. Defaults

    Returns:
        The effective :class:`~swaggen.models.GlobalConfig`.

    Raises:
        ConfigError: If the config file is invalid or an environment
            variable holds a malformed value.
    """
    config = load_global_config()

    env_cache_dir = os.environ.get(ENV_CACHE_DIR)
    if env_cache_dir:
        config.cache.directory = env_cache_dir

    env_ttl = os.environ.get(ENV_CACHE_TTL_MINUTES)
    if env_ttl:
        try:
            config.cache.ttl_minutes = int(env_ttl)
        except ValueError as exc:
            raise ConfigError(
                f"{ENV_CACHE_TTL_MINUTES} must be an integer (got {env_ttl!r})"
            ) from exc

    env_templates_dir = os.environ.get(ENV_TEMPLATES_DIR)
    if env_templates_dir:
        config.templates_dir = env_templates_dir

    return config
