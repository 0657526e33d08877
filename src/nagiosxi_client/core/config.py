from __future__ import annotations

import os
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import find_dotenv, load_dotenv


class ConfigError(ValueError):
    """Raised when runtime configuration cannot be resolved."""


# ---------- Typed sections ----------

@dataclass
class AppSection:
    run_id: Optional[str] = None


@dataclass
class NagiosSection:
    url: str = ""
    token: str = ""          # secret – never log in clear text
    verify_tls: bool = True


@dataclass
class LoggingSection:
    base_dir: str = "logs"
    console_level: str = "WARNING"
    file_level: str = "DEBUG"
    to_file: bool = False


@dataclass
class AppConfig:
    """Typed configuration object built by `load_config`."""
    app: AppSection
    nagios: NagiosSection
    logging: LoggingSection

    @property
    def run_id(self) -> str:
        """
        Return a stable run identifier for this process.
        Generated lazily when first accessed if not provided.
        """
        if not self.app.run_id:
            self.app.run_id = uuid.uuid4().hex[:12]
        return self.app.run_id


# ---------- Defaults ----------

DEFAULT_FILES: Tuple[str, ...] = (
    "./nagiosxi.yml",
    os.path.expanduser("~/.config/nagiosxi/config.yml"),
    "/etc/nagiosxi/config.yml",
)

_DEFAULTS: Dict[str, Any] = {
    "app": {"run_id": None},
    "nagios": {"url": "", "token": "", "verify_tls": True},
    "logging": {"base_dir": "logs", "console_level": "WARNING", "file_level": "DEBUG", "to_file": False},
}

# Plain variable names understood for compatibility with existing scripts
_LEGACY_ENV = {
    "NAGIOS_URL": ("nagios", "url"),
    "API_TOKEN": ("nagios", "token"),
}

_BOOL_KEYS = {"verify_tls", "to_file"}


# ---------- Utilities ----------

def _deep_merge(base: Dict[str, Any], ext: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Deep-merge for dicts: maps merge recursively, lists/scalars override.
    `ext` wins over `base`. Returns a new dict.
    """
    if not ext:
        return dict(base)
    out: Dict[str, Any] = dict(base)
    for k, v in ext.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _read_yaml_file(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top-level YAML must be a mapping: {path}")
    return data


def _load_first_existing(files: Tuple[str, ...]) -> Dict[str, Any]:
    for p in files:
        if os.path.exists(p):
            return _read_yaml_file(p)
    return {}


def _load_dotenv() -> None:
    env_path = find_dotenv(usecwd=True)
    if env_path:
        load_dotenv(env_path, override=False)


def _env_to_dict(prefix: str = "NAGIOSXI_") -> Dict[str, Any]:
    """
    Convert NAGIOSXI_FOO__BAR=val to {"foo": {"bar": "val"}} (lowercased keys).
    NAGIOS_URL / API_TOKEN are mapped to nagios.url / nagios.token.
    """
    out: Dict[str, Any] = {}
    for key, (section, name) in _LEGACY_ENV.items():
        val = os.environ.get(key)
        if val:
            out.setdefault(section, {})[name] = val

    plen = len(prefix)
    for key, val in os.environ.items():
        if not key.startswith(prefix):
            continue
        path = key[plen:].lower().split("__")
        cursor = out
        for part in path[:-1]:
            cursor = cursor.setdefault(part, {})
        cursor[path[-1]] = val
    return out


def _interpolate_env(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace values like "${VAR}" with os.environ["VAR"] when present.
    """
    def repl(v: Any) -> Any:
        if isinstance(v, str) and v.startswith("${") and v.endswith("}"):
            return os.environ.get(v[2:-1], "")
        return v

    def walk(obj: Any) -> Any:
        if isinstance(obj, dict):
            return {k: walk(repl(v)) for k, v in obj.items()}
        if isinstance(obj, list):
            return [walk(x) for x in obj]
        return repl(obj)

    return walk(cfg)


def _coerce_types(cfg: Dict[str, Any]) -> Dict[str, Any]:
    def to_bool(x: Any) -> bool:
        return str(x).strip().lower() in {"1", "true", "yes", "y", "on"}

    def walk(obj: Any, key: str = "") -> Any:
        if isinstance(obj, dict):
            return {k: walk(v, k) for k, v in obj.items()}
        if key in _BOOL_KEYS:
            return to_bool(obj)
        return obj

    return walk(cfg)


def _validate(cfg: Dict[str, Any]) -> None:
    missing = []
    if not cfg.get("nagios", {}).get("url"):
        missing.append("nagios.url")
    if not cfg.get("nagios", {}).get("token"):
        missing.append("nagios.token")
    if missing:
        raise ConfigError(
            "Missing required configuration: " + ", ".join(missing)
            + ". Set them in nagiosxi.yml, NAGIOSXI_NAGIOS__URL / NAGIOSXI_NAGIOS__TOKEN"
            " (or NAGIOS_URL / API_TOKEN), or pass --url / --token."
        )


def _section(merged: Dict[str, Any], name: str, cls: type) -> Any:
    raw = merged.get(name, {}) or {}
    known = {k: v for k, v in raw.items() if k in cls.__dataclass_fields__}
    return cls(**known)


# ---------- Public API ----------

def load_config(
    cli_overrides: Optional[Dict[str, Any]] = None,
    files: Tuple[str, ...] = DEFAULT_FILES,
    env_prefix: str = "NAGIOSXI_",
    *,
    require_credentials: bool = True,
) -> AppConfig:
    """
    Build an AppConfig from (in precedence order):
      1) CLI overrides
      2) Environment variables (prefix NAGIOSXI_, nested via __; `.env` loaded first)
      3) YAML file (first existing)
      4) Built-in defaults

    Raises:
        ConfigError: nagios.url / nagios.token missing (when required) or bad YAML.
    """
    _load_dotenv()
    file_cfg = _load_first_existing(files)
    env_cfg = _env_to_dict(env_prefix)

    # Empty CLI values mean "not given"
    cli = {
        section: {k: v for k, v in (values or {}).items() if v not in (None, "")}
        for section, values in (cli_overrides or {}).items()
    }

    merged = _deep_merge(_DEFAULTS, file_cfg)
    merged = _deep_merge(merged, env_cfg)
    merged = _deep_merge(merged, cli)

    merged = _interpolate_env(merged)
    merged = _coerce_types(merged)

    if require_credentials:
        _validate(merged)

    return AppConfig(
        app=_section(merged, "app", AppSection),
        nagios=_section(merged, "nagios", NagiosSection),
        logging=_section(merged, "logging", LoggingSection),
    )
