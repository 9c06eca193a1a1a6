"""Configuration loading and persistence."""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # Python 3.9-3.10
    import tomli as tomllib  # type: ignore[no-redef]

from netmeter.core.constants import DEFAULT_CHECK_URL, PROBE_BACKENDS


class ConfigError(RuntimeError):
    """Raised when config file parsing or validation fails."""


_SECTIONS = ("probe", "watch", "policy", "reachability")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def expand_path(path_str: str) -> Path:
    """Expand user/env vars and return absolute path."""
    return Path(os.path.expandvars(path_str)).expanduser().resolve()


def default_data_dir() -> Path:
    """Resolve XDG-style data directory with env override."""
    raw = os.getenv("NETMETER_DATA_DIR", "~/.local/share/netmeter")
    return expand_path(raw)


def default_config_path() -> Path:
    """Get default config file path."""
    raw = os.getenv("NETMETER_CONFIG_FILE", "~/.config/netmeter/config.toml")
    return expand_path(raw)


def default_config() -> Dict[str, Any]:
    data_dir = default_data_dir()
    return {
        "probe": {
            "backend": "nmcli",
            "nmcli_path": "nmcli",
            "timeout_seconds": 5,
            "state_file": str(data_dir / "network-state.json"),
        },
        "watch": {
            "interval_seconds": 5.0,
            "emit_initial": True,
        },
        "policy": {
            "on_probe_unavailable": "metered",
        },
        "reachability": {
            "url": DEFAULT_CHECK_URL,
            "expected_status": 204,
            "timeout_seconds": 5,
        },
    }


def _read_config(path: Path) -> Dict[str, Any]:
    suffix = path.suffix.lower()
    text = path.read_text()
    try:
        if suffix in {".toml", ""}:
            loaded = tomllib.loads(text)
        else:
            loaded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    except Exception as exc:
        if suffix in {".toml", ""}:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
        raise ConfigError(f"Failed to parse config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain an object/table at the root")
    return loaded


def _coerce_number(config: Dict[str, Any], section: str, key: str, cast: Callable[[Any], Any]) -> None:
    value = config[section].get(key)
    try:
        if isinstance(value, bool):
            raise TypeError("booleans are not numbers")
        number = cast(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{section}.{key} must be a number, got {value!r}") from exc
    if number <= 0:
        raise ConfigError(f"{section}.{key} must be greater than zero")
    config[section][key] = number


def _validate(config: Dict[str, Any]) -> None:
    for name in _SECTIONS:
        if not isinstance(config.get(name), dict):
            raise ConfigError(f"[{name}] must be a table")

    policy = config["policy"].get("on_probe_unavailable")
    if policy not in {"metered", "error"}:
        raise ConfigError(
            f"policy.on_probe_unavailable must be 'metered' or 'error', got {policy!r}"
        )

    _coerce_number(config, "watch", "interval_seconds", float)
    _coerce_number(config, "probe", "timeout_seconds", float)
    _coerce_number(config, "reachability", "timeout_seconds", float)
    _coerce_number(config, "reachability", "expected_status", int)


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from disk, merged with defaults."""
    cfg_path = path or default_config_path()
    cfg = default_config()

    if cfg_path.exists():
        loaded = _read_config(cfg_path)
        cfg = _deep_merge(cfg, loaded)

    _validate(cfg)
    return cfg


def _toml_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    raise TypeError(f"Unsupported TOML value type: {type(value)!r}")


def _dict_to_toml(data: Dict[str, Any], prefix: Optional[str] = None) -> str:
    lines = []
    plain_keys = []
    nested_keys = []

    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, dict):
            nested_keys.append((key, value))
        else:
            plain_keys.append((key, value))

    if prefix is not None:
        lines.append(f"[{prefix}]")

    for key, value in plain_keys:
        lines.append(f"{key} = {_toml_literal(value)}")

    if plain_keys and nested_keys:
        lines.append("")

    for index, (key, value) in enumerate(nested_keys):
        table_name = key if prefix is None else f"{prefix}.{key}"
        lines.append(_dict_to_toml(value, prefix=table_name))
        if index != len(nested_keys) - 1:
            lines.append("")

    return "\n".join(lines)


def save_config(config: Dict[str, Any], path: Optional[Path] = None) -> Path:
    """Save configuration to disk as TOML (default) or JSON."""
    cfg_path = path or default_config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)

    if cfg_path.suffix.lower() == ".json":
        cfg_path.write_text(json.dumps(config, indent=2) + "\n")
        return cfg_path

    cfg_path.write_text(_dict_to_toml(config).strip() + "\n")
    return cfg_path


def resolve_probe_backend(config: Dict[str, Any], explicit: Optional[str] = None) -> str:
    """Resolve probe backend with CLI override first, then env, then config."""
    raw = explicit or os.getenv("NETMETER_PROBE") or config.get("probe", {}).get("backend") or "nmcli"
    backend = str(raw).strip().lower()
    if backend not in PROBE_BACKENDS:
        raise ConfigError(
            f"Unknown probe backend {backend!r}; expected one of: {', '.join(PROBE_BACKENDS)}"
        )
    return backend


def resolve_state_file(config: Dict[str, Any]) -> Path:
    """Resolve the state document path used by the file probe."""
    raw = os.getenv("NETMETER_STATE_FILE") or config.get("probe", {}).get("state_file")
    if not raw:
        raw = str(default_data_dir() / "network-state.json")
    return expand_path(raw)
