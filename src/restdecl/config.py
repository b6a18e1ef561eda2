"""Configuration loading with XDG paths, atomic writes, and precedence resolution.

The client core never reads files: it is handed a
:class:`~restdecl.models.ClientConfig`. This module builds that object for
the CLI.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.restdecl/`` elsewhere. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- one :class:`~restdecl.models.GlobalConfig` JSON file.
* **Project config** -- an optional ``./restdecl.json`` with the same shape,
  deep-merged over the global file.
* **Precedence** -- :func:`resolve_config` applies CLI flags over
  environment variables over project config over global config.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from restdecl.exceptions import ConfigError
from restdecl.models import GlobalConfig

_APP_NAME = "restdecl"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "restdecl.json"

ENV_BASE_URL = "RESTDECL_BASE_URL"
ENV_MAX_ATTEMPTS = "RESTDECL_MAX_ATTEMPTS"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True on platforms following the XDG Base Directory spec."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _xdg_dir(env_var: str, default_segments: tuple[str, ...], fallback: str) -> Path:
    if _is_xdg_platform():
        env_value = os.environ.get(env_var, "")
        base = Path(env_value) if env_value else Path.home().joinpath(*default_segments)
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / fallback
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/restdecl/`` (default ``~/.config/restdecl/``).
    Elsewhere: ``~/.restdecl/config/``.
    """
    return _xdg_dir("XDG_CONFIG_HOME", (".config",), "config")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/restdecl/`` (default ``~/.local/share/restdecl/``).
    Elsewhere: ``~/.restdecl/data/``.
    """
    return _xdg_dir("XDG_DATA_HOME", (".local", "share"), "data")


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* via a temp file in the same directory plus rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path: Optional[str] = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as fd:
            tmp_path = fd.name
            fd.write(data)
            fd.flush()
            os.fsync(fd.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


# --- Global and project config ---


def global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def _read_json(path: Path, label: str) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {label} at {path}: expected a JSON object")
    return data


def load_global_config() -> GlobalConfig:
    """Load the global configuration, or defaults if no file exists.

    Raises:
        ConfigError: If the file is not valid JSON or fails validation.
    """
    path = global_config_path()
    if not path.is_file():
        return GlobalConfig()
    data = _read_json(path, "global config")
    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically."""
    data = config.model_dump(mode="json")
    _atomic_write(global_config_path(), json.dumps(data, indent=2) + "\n")


def load_project_config() -> Optional[dict[str, Any]]:
    """Load ``./restdecl.json`` as a raw dict, or ``None`` if absent.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    return _read_json(path, "project config")


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# --- Precedence resolution ---


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_max_attempts: Optional[int] = None,
) -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (``cli_base_url``, ``cli_max_attempts``)
        2. Environment (``RESTDECL_BASE_URL``, ``RESTDECL_MAX_ATTEMPTS``)
        3. Project config (``./restdecl.json``)
        4. User config (``~/.config/restdecl/config.json``)
        5. Defaults

    Raises:
        ConfigError: If any layer is invalid.
    """
    data = load_global_config().model_dump(mode="json")

    project = load_project_config()
    if project is not None:
        data = _deep_merge(data, project)

    client = _section(data, "client")
    retry = _section(client, "retry", prefix="client.")

    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        client["base_url"] = env_base_url
    env_attempts = os.environ.get(ENV_MAX_ATTEMPTS)
    if env_attempts:
        try:
            retry["max_attempts"] = int(env_attempts)
        except ValueError:
            raise ConfigError(
                f"{ENV_MAX_ATTEMPTS} must be an integer, got {env_attempts!r}"
            ) from None

    if cli_base_url is not None:
        client["base_url"] = cli_base_url
    if cli_max_attempts is not None:
        retry["max_attempts"] = cli_max_attempts

    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def _section(data: dict[str, Any], key: str, prefix: str = "") -> dict[str, Any]:
    """Return the nested object at *key*, creating it when absent."""
    value = data.setdefault(key, {})
    if not isinstance(value, dict):
        raise ConfigError(
            f"Invalid configuration: '{prefix}{key}' must be an object, got {value!r}"
        )
    return value
