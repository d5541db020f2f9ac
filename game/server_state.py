# game/server_state.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import random
import re

from .constants import MAX_HEALTH, NAME_MAX_LEN, DEFAULT_WEAPON
from .transform import Vec3, vec_to_dict
from .weapons import Weapon, WeaponState

_CONTROL_CHARS = re.compile(r"[\u0000-\u001F\u007F]")
_WHITESPACE = re.compile(r"\s+")


def default_name(pid: str) -> str:
    return f"Player {pid}"


def sanitize_name(name: Any, pid: str) -> str:
    """Strip control characters, collapse whitespace, trim and cap the length."""
    if not isinstance(name, str):
        return default_name(pid)
    cleaned = _WHITESPACE.sub(" ", _CONTROL_CHARS.sub("", name)).strip()
    if not cleaned:
        return default_name(pid)
    return cleaned[:NAME_MAX_LEN]


@dataclass
class Player:
    id: str
    name: str
    position: Vec3 = (0.0, 0.0, 0.0)   # feet
    yaw: float = 0.0                    # radians, 0 faces -Z
    pitch: float = 0.0                  # radians, + looks up
    health: int = MAX_HEALTH
    weapon: str = DEFAULT_WEAPON
    stance: str = "stand"
    last_shot_at: float = 0.0
    last_flash_at: float = 0.0
    kills: int = 0
    deaths: int = 0
    dead: bool = False
    arsenal: Dict[str, WeaponState] = field(default_factory=dict)

    def weapon_state(self, weapon: Weapon) -> WeaponState:
        state = self.arsenal.get(weapon.id)
        if state is None:
            state = WeaponState(ammo=weapon.magazine, magazine=weapon.magazine)
            self.arsenal[weapon.id] = state
        return state

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "position": vec_to_dict(self.position),
            "yaw": self.yaw,
            "pitch": self.pitch,
            "health": self.health,
            "weapon": self.weapon,
            "stance": self.stance,
            "dead": self.dead,
            "kills": self.kills,
            "deaths": self.deaths,
        }


@dataclass
class GameState:
    """Single owner of every mutable Player, keyed by connection-assigned id."""
    players: Dict[str, Player] = field(default_factory=dict)
    next_id: int = 1
    max_health: int = MAX_HEALTH
    default_weapon: str = DEFAULT_WEAPON

    def add_player(self, spawn: Vec3, weapons: Optional[Dict[str, Weapon]] = None) -> Player:
        pid = str(self.next_id)
        self.next_id += 1
        p = Player(id=pid, name=default_name(pid), position=spawn,
                   health=self.max_health, weapon=self.default_weapon)
        for w in (weapons or {}).values():
            p.weapon_state(w)
        self.players[pid] = p
        return p

    def remove_player(self, pid: str) -> Optional[Player]:
        return self.players.pop(pid, None)

    def get(self, pid: str) -> Optional[Player]:
        return self.players.get(pid)

    def __contains__(self, pid: object) -> bool:
        return pid in self.players

    def __len__(self) -> int:
        return len(self.players)

    def living(self) -> List[Player]:
        return [p for p in self.players.values() if not p.dead]

    def snapshot(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in self.players.values()]


def random_spawn(spawns, rng: Optional[random.Random] = None) -> Vec3:
    r = rng or random
    s = spawns[r.randrange(len(spawns))]
    return (float(s[0]), float(s[1]), float(s[2]))
