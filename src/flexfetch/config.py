"""Where flexfetch keeps its files, and which settings win.

Directories follow the XDG Base Directory layout on Linux and the BSDs
and live under ``~/.flexfetch/`` elsewhere:

=========  ===================================  =======================
kind       XDG                                  fallback
=========  ===================================  =======================
config     ``$XDG_CONFIG_HOME/flexfetch``       ``~/.flexfetch``
cache      ``$XDG_CACHE_HOME/flexfetch``        ``~/.flexfetch/cache``
data       ``$XDG_DATA_HOME/flexfetch``         ``~/.flexfetch/logs``
=========  ===================================  =======================

Each endpoint gets its own subdirectory of the cache directory (see
:func:`endpoint_cache_dir`), so responses from a mirror never shadow the
default origin's.

Settings are resolved by :func:`resolve_config`: CLI flags, then the
``FLEXFETCH_ENDPOINT`` / ``FLEXFETCH_PROJECT`` environment variables, then
``config.json`` in the config directory, then model defaults.
"""

from __future__ import annotations

import json
import os
import platform
import re
import tempfile
from pathlib import Path
from typing import Optional

from flexfetch.exceptions import ConfigError
from flexfetch.models import GlobalConfig

_APP_NAME = "flexfetch"
_CONFIG_FILENAME = "config.json"

ENV_ENDPOINT = "FLEXFETCH_ENDPOINT"
ENV_PROJECT = "FLEXFETCH_PROJECT"

# kind -> (XDG variable, default under $HOME, subdirectory of ~/.flexfetch)
_DIRECTORIES: dict[str, tuple[str, tuple[str, ...], Optional[str]]] = {
    "config": ("XDG_CONFIG_HOME", (".config",), None),
    "cache": ("XDG_CACHE_HOME", (".cache",), "cache"),
    "data": ("XDG_DATA_HOME", (".local", "share"), "logs"),
}

_UNSAFE_DIR_CHARS = re.compile(r"[^a-z0-9.]", re.IGNORECASE)


# --- Directories ---


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(kind: str) -> Path:
    """Return (and create) the flexfetch directory of the given *kind*."""
    env_var, home_segments, fallback_sub = _DIRECTORIES[kind]
    if _is_xdg_platform():
        base = os.environ.get(env_var)
        root = Path(base) if base else Path.home().joinpath(*home_segments)
        path = root / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
        if fallback_sub:
            path = path / fallback_sub
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Directory holding ``config.json``."""
    return _app_dir("config")


def get_cache_dir() -> Path:
    """Root of the per-endpoint response caches. Safe to delete at any time."""
    return _app_dir("cache")


def get_data_dir() -> Path:
    """Directory for crash logs."""
    return _app_dir("data")


def normalize_endpoint(endpoint: str) -> str:
    return endpoint.rstrip("/")


def endpoint_cache_dir(endpoint: str) -> Path:
    """Return the cache directory for *endpoint*.

    Characters outside ``[a-z0-9.]`` become ``-``, so
    ``https://flex.symfony.com`` is cached in
    ``<cache dir>/https---flex.symfony.com``.
    """
    return get_cache_dir() / _UNSAFE_DIR_CHARS.sub("-", normalize_endpoint(endpoint))


# --- Persistence ---


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* in one rename.

    The content is written and fsynced to a hidden sibling file first; a
    failure at any point removes that file and leaves *path* untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as handle:
        staged = Path(handle.name)
        try:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        except BaseException:
            handle.close()
            staged.unlink(missing_ok=True)
            raise
    try:
        os.replace(staged, path)
    except BaseException:
        staged.unlink(missing_ok=True)
        raise


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Read ``config.json``, or return defaults when it does not exist.

    Raises:
        ConfigError: The file is not JSON or does not match
            :class:`~flexfetch.models.GlobalConfig`.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        return GlobalConfig.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except ValueError as exc:
        # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors.
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    payload = json.dumps(config.model_dump(mode="json"), indent=2)
    _atomic_write(_global_config_path(), payload + "\n")


# --- Precedence ---


def resolve_config(
    cli_endpoint: Optional[str] = None,
    cli_project: Optional[str] = None,
) -> GlobalConfig:
    """Merge CLI flags, environment and ``config.json`` into one config.

    Empty values never override: an empty ``FLEXFETCH_ENDPOINT`` leaves
    the configured endpoint in place.
    """
    config = load_global_config()

    endpoint = cli_endpoint or os.environ.get(ENV_ENDPOINT)
    if endpoint:
        config.endpoint = normalize_endpoint(endpoint)

    project = cli_project or os.environ.get(ENV_PROJECT)
    if project:
        config.project_id = project

    return config
