"""Configuration loading pipeline."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, cast

import yaml
from platformdirs import user_config_dir

from .schema import GelfConfig, build_config, default_config

_ENV_PREFIX = "GELFUDP__"
_FILENAMES = ("gelfudp.toml", "gelfudp.yaml", "gelfudp.yml")


def _load_toml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("rb") as fh:
        return tomllib.load(fh)


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if isinstance(data, Mapping):
        return {str(key): value for key, value in data.items()}
    return {}


def _load_file(path: Path) -> Dict[str, Any]:
    return _load_toml(path) if path.suffix == ".toml" else _load_yaml(path)


def _merge(base: Dict[str, Any], incoming: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in incoming.items():
        existing = base.get(key)
        if isinstance(value, Mapping):
            nested = dict(existing) if isinstance(existing, Mapping) else {}
            base[key] = _merge(nested, value)
        else:
            base[key] = value
    return base


def _load_directory(directory: Path) -> Dict[str, Any]:
    if not directory.exists():
        return {}
    data: Dict[str, Any] = {}
    for filename in _FILENAMES:
        payload = _load_file(directory / filename)
        if payload:
            data = _merge(data, payload)
    return data


def _load_user_config() -> Dict[str, Any]:
    return _load_directory(Path(user_config_dir("gelfudp")))


def _load_local_config() -> Dict[str, Any]:
    return _load_directory(Path.cwd())


def _load_pyproject() -> Dict[str, Any]:
    path = Path("pyproject.toml")
    if not path.exists():
        return {}
    data = _load_toml(path)
    tool = data.get("tool", {})
    if not isinstance(tool, Mapping):
        return {}
    section = tool.get("gelfudp", {})
    if isinstance(section, Mapping):
        return {str(key): value for key, value in section.items()}
    return {}


def _coerce_value(value: str) -> Any:
    stripped = value.strip()
    lowered = stripped.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if stripped.lstrip("-").isdigit():
        return int(stripped)
    return stripped


def _env_config() -> Dict[str, Any]:
    """Read ``GELFUDP__SECTION__KEY`` variables into a nested mapping.

    Section names are lower-cased. Keys under ``defaults`` keep their case so
    that ``GELFUDP__DEFAULTS__requestId`` yields a ``requestId`` field.
    """

    data: Dict[str, Any] = {}
    for env_key, raw_value in os.environ.items():
        if not env_key.startswith(_ENV_PREFIX):
            continue
        path = env_key[len(_ENV_PREFIX) :].split("__")
        target: Dict[str, Any] = data
        for segment in path[:-1]:
            seg = segment.lower()
            child = target.setdefault(seg, {})
            target = cast(Dict[str, Any], child)
        leaf = path[-1] if path[0].lower() == "defaults" and len(path) > 1 else path[-1].lower()
        target[leaf] = _coerce_value(raw_value)
    return data


def load_configuration(overrides: Dict[str, Any] | None = None) -> GelfConfig:
    """Load configuration from supported sources in precedence order."""

    merged = default_config()
    for layer in (_load_user_config(), _load_local_config(), _load_pyproject(), _env_config(), overrides or {}):
        _merge(merged, layer)
    return build_config(merged)
