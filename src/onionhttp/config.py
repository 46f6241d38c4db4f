"""Client configuration files, environment overrides, and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.onionhttp/`` on macOS and Windows. See :func:`get_config_dir`.
* **User config** -- ``<config_dir>/config.json`` holding
  :class:`~onionhttp.models.ClientConfig` fields.
* **Project config** -- ``./onionhttp.json`` in the working directory.
* **Precedence resolution** -- :func:`resolve_client_config` merges CLI
  flags, environment variables, project config, and user config into the
  effective :class:`~onionhttp.models.ClientConfig`.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

import pydantic

from onionhttp.exceptions import ConfigError
from onionhttp.models import ClientConfig

_APP_NAME = "onionhttp"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "onionhttp.json"

ENV_PREFIX = "ONIONHTTP_PREFIX"
ENV_TIMEOUT = "ONIONHTTP_TIMEOUT"
ENV_VERIFY_SSL = "ONIONHTTP_VERIFY_SSL"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory spec (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory without creating it.

    On Linux/BSD: ``$XDG_CONFIG_HOME/onionhttp/`` (default ``~/.config/onionhttp/``).
    On macOS/Windows: ``~/.onionhttp/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        return base / _APP_NAME
    return Path.home() / f".{_APP_NAME}"


# --- Config files ---


def _read_json_object(path: Path, label: str) -> Optional[dict[str, Any]]:
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {label} config at {path}: expected a JSON object")
    return data


def load_user_config() -> dict[str, Any]:
    """Load ``<config_dir>/config.json``.

    Returns:
        The parsed JSON object, or an empty dict when the file is missing.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    return _read_json_object(get_config_dir() / _CONFIG_FILENAME, "user") or {}


def load_project_config() -> dict[str, Any]:
    """Load ``./onionhttp.json`` from the current working directory.

    Returns:
        The parsed JSON object, or an empty dict when the file is missing.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    return _read_json_object(Path.cwd() / _PROJECT_CONFIG_FILENAME, "project") or {}


# --- Environment ---


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"Environment variable {name} must be a boolean, got {value!r}")


def load_env_config() -> dict[str, Any]:
    """Read ``ONIONHTTP_PREFIX``, ``ONIONHTTP_TIMEOUT`` and ``ONIONHTTP_VERIFY_SSL``.

    Unset or empty variables are skipped.

    Raises:
        ConfigError: If a value cannot be parsed.
    """
    values: dict[str, Any] = {}

    prefix = os.environ.get(ENV_PREFIX)
    if prefix:
        values["prefix"] = prefix

    timeout = os.environ.get(ENV_TIMEOUT)
    if timeout:
        try:
            values["timeout"] = float(timeout)
        except ValueError:
            raise ConfigError(
                f"Environment variable {ENV_TIMEOUT} must be a number, got {timeout!r}"
            ) from None

    verify = os.environ.get(ENV_VERIFY_SSL)
    if verify:
        values["verify_ssl"] = _parse_bool(ENV_VERIFY_SSL, verify)

    return values


# --- Precedence resolution ---


def resolve_client_config(**cli_overrides: Any) -> ClientConfig:
    """Resolve the effective client config.

    Precedence (high to low):
        1. CLI flags (*cli_overrides*; ``None`` values are ignored)
        2. Environment variables (``ONIONHTTP_*``)
        3. Project config (``./onionhttp.json``)
        4. User config (``~/.config/onionhttp/config.json``)
        5. Defaults

    Headers and params are merged key by key across layers.

    Raises:
        ConfigError: If any layer is unreadable or the merged values fail
            validation.
    """
    layers = [
        load_user_config(),
        load_project_config(),
        load_env_config(),
        {k: v for k, v in cli_overrides.items() if v is not None},
    ]

    merged: dict[str, Any] = {}
    for layer in layers:
        for key, value in layer.items():
            if key in ("headers", "params") and isinstance(value, dict):
                merged[key] = {**merged.get(key, {}), **value}
            else:
                merged[key] = value

    try:
        return ClientConfig.model_validate(merged)
    except pydantic.ValidationError as exc:
        raise ConfigError(f"Invalid client configuration: {exc}") from exc
