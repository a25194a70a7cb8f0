"""Config file helpers: YAML loading and lookups with defaults."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import yaml

from .core import DEFAULT_SHELL
from .errors import InvalidInvocation


def _get(d: Dict, *keys, default=None):
    cur = d
    for k in keys:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(k)
        if cur is None:
            return default
    return cur


def load_config(path: str | Path) -> dict:
    p = Path(path)
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise InvalidInvocation(f"Cannot read config {p}: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise InvalidInvocation(f"Invalid config {p}: {e}") from e
    if not isinstance(data, dict):
        raise InvalidInvocation(f"Invalid config {p}: expected a mapping")
    return data


def variables(cfg: Dict, defaults: Dict | None = None) -> Dict[str, str]:
    merged = {k: str(v) for k, v in (defaults or {}).items()}
    overrides = _get(cfg, "variables", default={})
    if not isinstance(overrides, dict):
        raise InvalidInvocation("Config 'variables' must be a mapping")
    merged.update({str(k): str(v) for k, v in overrides.items()})
    return merged


def shell(cfg: Dict) -> List[str]:
    value = _get(cfg, "shell", default=list(DEFAULT_SHELL))
    if isinstance(value, str):
        value = value.split()
    if not value:
        raise InvalidInvocation("Config 'shell' must not be empty")
    return [str(v) for v in value]
