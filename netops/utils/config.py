from __future__ import annotations
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar
import logging
import os

import yaml

log = logging.getLogger("AppConfig")

T = TypeVar("T")

DEFAULT_CONFIG_PATH = "configs/netops.yaml"


@dataclass
class AppConfig:
    data: dict

    @classmethod
    def load(cls, path: Optional[str] = None) -> "AppConfig":
        path = path or os.getenv("NETOPS_CONFIG") or DEFAULT_CONFIG_PATH
        p = Path(path)
        if not p.exists():
            log.warning("Config %s not found. Using defaults.", path)
            return cls(data={})
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls(data=data)

    def y(self, key: str, default: Any = None) -> Any:
        cur = self.data
        for part in key.split('.'):
            if isinstance(cur, dict) and part in cur:
                cur = cur[part]
            else:
                return default
        return cur

    def section(self, key: str) -> Dict[str, Any]:
        value = self.y(key, {})
        return value if isinstance(value, dict) else {}


def build_dataclass(cls: Type[T], raw: Dict[str, Any], env_prefix: str = "") -> T:
    """
    Build a config dataclass from a raw dict, coercing each known field to the
    type of its default. ``{env_prefix}{FIELD}`` environment variables win over
    the dict. Unknown keys are ignored with a warning.
    """
    known = {f.name: f for f in fields(cls)}
    for key in raw:
        if key not in known:
            log.warning("%s: ignoring unknown config key %r", cls.__name__, key)

    defaults = cls()
    kwargs: Dict[str, Any] = {}
    for name in known:
        default = getattr(defaults, name)
        value = raw.get(name, default)
        if env_prefix:
            env_val = os.getenv(f"{env_prefix}{name.upper()}", "").strip()
            if env_val:
                value = env_val
        kwargs[name] = _coerce(value, default)
    return cls(**kwargs)


def _coerce(value: Any, default: Any) -> Any:
    if value is None or default is None:
        return value
    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    if isinstance(default, int):
        return int(float(value))
    if isinstance(default, float):
        return float(value)
    if isinstance(default, str):
        return str(value)
    if isinstance(default, tuple):
        if isinstance(value, str):
            return tuple(v.strip() for v in value.split(",") if v.strip())
        return tuple(value)
    return value


def tool_config(
    cls: Type[T],
    app: AppConfig,
    key: str,
    defaults: Optional[Dict[str, Any]] = None,
    env_prefix: str = "",
) -> T:
    """Defaults dict, then the YAML section, then environment overrides."""
    known = {f.name for f in fields(cls)}
    raw = {k: v for k, v in (defaults or {}).items() if k in known}
    raw.update(app.section(key))
    return build_dataclass(cls, raw, env_prefix=env_prefix)
