"""Loader for server configuration with dotted-path lookups."""
from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional

from game import constants

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "configs" / "defaults.json"

DEFAULTS: Dict[str, Any] = {
    "server": {
        "name": "LAN Arena",
        "host": "0.0.0.0",
        "port": 3000,
        "tick_hz": constants.TICK_HZ,
        "respawn_seconds": constants.RESPAWN_SECONDS,
        "max_message_bytes": 65536,
    },
    "gameplay": {
        "eye_height": constants.EYE_HEIGHT,
        "body_center_y": constants.BODY_CENTER_Y,
        "body_radius": constants.BODY_RADIUS,
        "head_center_y": constants.HEAD_CENTER_Y,
        "head_radius": constants.HEAD_RADIUS,
        "max_health": constants.MAX_HEALTH,
        "min_y": constants.MIN_Y,
        "max_y": constants.MAX_Y,
        "pitch_limit": constants.PITCH_LIMIT,
        "default_weapon": constants.DEFAULT_WEAPON,
    },
    "flash": {
        "fuse_ms": 1200,
        "cooldown_ms": 4500,
        "max_radius": 150,
        "throw_speed_min": 7,
        "throw_speed_max": 60,
        "up_boost": 3.2,
        "gravity": 26,
        "min_pitch": -0.2,
        "max_pitch": 0.35,
        "max_y": 6.0,
    },
    "weapons": "configs/weapons.json",
    "map": "configs/maps/arena.json",
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


class Config:
    """Merged view over DEFAULTS and an optional JSON document."""

    def __init__(self, data: Optional[Dict[str, Any]] = None, base_dir: Optional[Path] = None) -> None:
        self.data = _merge(DEFAULTS, data or {})
        self.base_dir = base_dir or DEFAULT_CONFIG_PATH.parent.parent

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        cfg_path = Path(path) if path else DEFAULT_CONFIG_PATH
        with cfg_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"{cfg_path}: top-level config must be an object")
        # Relative asset paths resolve against the project root (the parent of configs/).
        return cls(data, base_dir=cfg_path.resolve().parent.parent)

    def get(self, path: str, default: Any = None) -> Any:
        """Return a config value using dotted paths, or default when missing."""
        if not path:
            return self.data
        current: Any = self.data
        for segment in path.split('.'):
            if isinstance(current, dict) and segment in current:
                current = current[segment]
            else:
                return default
        return current

    def section(self, name: str) -> Dict[str, Any]:
        value = self.get(name, {})
        return value if isinstance(value, dict) else {}

    def resolve_path(self, key: str) -> Path:
        p = Path(str(self.get(key)))
        return p if p.is_absolute() else self.base_dir / p
