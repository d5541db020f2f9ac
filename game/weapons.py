from dataclasses import dataclass
from typing import Any, Dict
import json
import math

@dataclass(frozen=True)
class Weapon:
    id: str
    label: str
    damage: float
    headshot: float
    range: float
    fire_rate: float      # seconds between accepted shots
    spread: float         # radians
    pellets: int
    magazine: int
    reload_time: float    # seconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "damage": self.damage,
            "headshot": self.headshot,
            "range": self.range,
            "fireRate": self.fire_rate,
            "spread": self.spread,
            "pellets": self.pellets,
            "magazine": self.magazine,
            "reloadTime": self.reload_time,
        }


@dataclass
class WeaponState:
    """Magazine and reload timer for one weapon held by one player.

    Reload completion is lazy: nothing fires when the timer expires, the next
    call to refresh() notices and refills the magazine.
    """
    ammo: int
    magazine: int
    reload_end: float = 0.0

    def refresh(self, now: float) -> None:
        if self.reload_end and now >= self.reload_end:
            self.ammo = self.magazine
            self.reload_end = 0.0

    def reloading(self, now: float) -> bool:
        self.refresh(now)
        return self.reload_end > 0.0

    def begin_reload(self, now: float, reload_time: float) -> bool:
        if self.reloading(now) or self.ammo >= self.magazine:
            return False
        self.reload_end = now + reload_time
        return True

    def refill(self) -> None:
        self.ammo = self.magazine
        self.reload_end = 0.0


def _field(wid: str, cfg: Dict[str, Any], key: str, default: Any = None) -> float:
    value = cfg.get(key, default)
    if value is None or isinstance(value, bool):
        raise ValueError(f"Weapon '{wid}' is missing numeric field '{key}'")
    try:
        fval = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Weapon '{wid}' field '{key}' must be numeric") from exc
    if not math.isfinite(fval) or fval < 0.0:
        raise ValueError(f"Weapon '{wid}' field '{key}' must be a finite non-negative number")
    return fval


def weapons_from_dict(data: Dict[str, Any]) -> Dict[str, Weapon]:
    if not isinstance(data, dict) or not data:
        raise ValueError("Weapon table must be a non-empty object")
    weapons: Dict[str, Weapon] = {}
    for wid, cfg in data.items():
        if not isinstance(cfg, dict):
            raise ValueError(f"Weapon '{wid}' must be an object")
        weapons[wid] = Weapon(id=wid,
                              label=str(cfg.get('label', wid)),
                              damage=_field(wid, cfg, 'damage'),
                              headshot=_field(wid, cfg, 'headshot', 1.0),
                              range=_field(wid, cfg, 'range'),
                              fire_rate=_field(wid, cfg, 'fireRate'),
                              spread=_field(wid, cfg, 'spread', 0.0),
                              pellets=max(1, int(_field(wid, cfg, 'pellets', 1))),
                              magazine=max(1, int(_field(wid, cfg, 'magazine'))),
                              reload_time=_field(wid, cfg, 'reloadTime'))
    return weapons


def load_weapons(path: str) -> Dict[str, Weapon]:
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return weapons_from_dict(data)
