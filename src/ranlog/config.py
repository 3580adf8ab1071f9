"""Scan configuration.

Resolution order, later wins: built-in defaults, an optional JSON file,
environment variables, then explicit overrides (CLI flags)::

    {
      "documents_dir": "captures",
      "extensions": [".txt", ".log"],
      "encoding": "utf-8",
      "legacy_ril_fallback": false
    }

Environment:
    RANLOG_DOCUMENTS_DIR         directory holding capture files
    RANLOG_LEGACY_RIL_FALLBACK   1/0, true/false, yes/no, on/off
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import orjson

from ranlog.io_utils import load_json

ENV_DOCUMENTS_DIR = "RANLOG_DOCUMENTS_DIR"
ENV_LEGACY_RIL_FALLBACK = "RANLOG_LEGACY_RIL_FALLBACK"

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


class ConfigError(ValueError):
    """Raised for unknown keys or malformed values in a scan configuration."""


@dataclass(frozen=True, slots=True)
class ScanConfig:
    """Where capture files live and how they are read."""

    documents_dir: Path = Path("uploads")
    extensions: tuple[str, ...] = (".txt", ".log")
    encoding: str = "utf-8"
    legacy_ril_fallback: bool = True


def parse_bool(value: object, *, key: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"{key}: expected a boolean, got {value!r}")


def _coerce(key: str, value: Any) -> Any:
    if key == "documents_dir":
        return Path(value)
    if key == "extensions":
        if isinstance(value, str):
            value = [value]
        elif not isinstance(value, (list, tuple)):
            raise ConfigError(f"extensions: expected a list of suffixes, got {value!r}")
        exts = tuple(str(v).lower() for v in value)
        for ext in exts:
            if not ext.startswith("."):
                raise ConfigError(f"extensions: {ext!r} must start with '.'")
        return exts
    if key == "encoding":
        return str(value)
    if key == "legacy_ril_fallback":
        return parse_bool(value, key=key)
    raise ConfigError(f"unknown configuration key {key!r}")


def apply_overrides(config: ScanConfig, overrides: Mapping[str, Any]) -> ScanConfig:
    """Return *config* with non-None *overrides* applied and validated."""
    known = {f.name for f in fields(ScanConfig)}
    changes: dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in known:
            raise ConfigError(f"unknown configuration key {key!r}")
        if value is not None:
            changes[key] = _coerce(key, value)
    return replace(config, **changes)


def load_config(
    path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> ScanConfig:
    """Resolve a :class:`ScanConfig` from file, environment and overrides."""
    config = ScanConfig()
    if path is not None:
        try:
            data = load_json(path)
        except orjson.JSONDecodeError as exc:
            raise ConfigError(f"{path}: invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a JSON object")
        config = apply_overrides(config, data)

    env = os.environ if environ is None else environ
    from_env: dict[str, Any] = {}
    if env.get(ENV_DOCUMENTS_DIR):
        from_env["documents_dir"] = env[ENV_DOCUMENTS_DIR]
    if env.get(ENV_LEGACY_RIL_FALLBACK):
        from_env["legacy_ril_fallback"] = env[ENV_LEGACY_RIL_FALLBACK]
    config = apply_overrides(config, from_env)

    return apply_overrides(config, overrides)
