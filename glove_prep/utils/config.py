# glove_prep/utils/config.py
from __future__ import annotations
import copy
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from glove_prep.utils.errors import UsageError

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _read_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    with open(path, "r") as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise UsageError(f"config {path} must be a mapping, got {type(cfg).__name__}")
    return cfg


def load_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Packaged defaults, with the YAML file at `path` (if any) merged on top."""
    cfg = _read_yaml(DEFAULT_CONFIG_PATH)
    if path is not None:
        cfg = _deep_merge(cfg, _read_yaml(path))
    return cfg


def resolve(section: Dict[str, Any], cli: Dict[str, Any]) -> Dict[str, Any]:
    """Command-line values that were actually given (not None) win over the config section."""
    out = dict(section)
    for k, v in cli.items():
        if v is not None:
            out[k] = v
    return out


def require_int(cfg: Dict[str, Any], key: str, minimum: int) -> int:
    raw = cfg.get(key)
    try:
        val = int(raw)
    except (TypeError, ValueError):
        raise UsageError(f"{key} must be an integer, got {raw!r}") from None
    if val < minimum:
        raise UsageError(f"{key} must be >= {minimum}, got {val}")
    return val


def require_path(cfg: Dict[str, Any], key: str) -> Path:
    raw = cfg.get(key)
    if not raw:
        raise UsageError(f"missing required path: --{key.replace('_', '-')}")
    return Path(raw)
