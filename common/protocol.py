# common/protocol.py
"""Inbound client commands, validated before any field reaches the simulation."""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from game.constants import STANCES
from game.transform import Vec3, finite_float, vec_from_dict


@dataclass(frozen=True)
class StateUpdate:
    position: Optional[Vec3] = None
    yaw: Optional[float] = None
    pitch: Optional[float] = None
    weapon: Optional[str] = None
    stance: Optional[str] = None

@dataclass(frozen=True)
class SetName:
    name: Any = None   # sanitized by the registry, which owns the fallback name

@dataclass(frozen=True)
class Shoot:
    pass

@dataclass(frozen=True)
class SwitchWeapon:
    weapon: str

@dataclass(frozen=True)
class ThrowFlash:
    charge: Optional[float] = None

@dataclass(frozen=True)
class Reload:
    pass


Command = Union[StateUpdate, SetName, Shoot, SwitchWeapon, ThrowFlash, Reload]


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _state(msg: Dict[str, Any]) -> StateUpdate:
    stance = _text(msg.get("stance"))
    return StateUpdate(
        position=vec_from_dict(msg.get("position")),
        yaw=finite_float(msg.get("yaw")),
        pitch=finite_float(msg.get("pitch")),
        weapon=_text(msg.get("weapon")),
        stance=stance if stance in STANCES else None,
    )

def _switch(msg: Dict[str, Any]) -> Optional[SwitchWeapon]:
    weapon = _text(msg.get("weapon"))
    return SwitchWeapon(weapon) if weapon else None


_PARSERS: Dict[str, Callable[[Dict[str, Any]], Optional[Command]]] = {
    "state": _state,
    "set_name": lambda msg: SetName(msg.get("name")),
    "shoot": lambda msg: Shoot(),
    "switch_weapon": _switch,
    "throw_flash": lambda msg: ThrowFlash(finite_float(msg.get("charge"))),
    "reload": lambda msg: Reload(),
}


def parse_command(msg: Any) -> Optional[Command]:
    """Map a decoded JSON message to a Command, or None when it is not one."""
    if not isinstance(msg, dict):
        return None
    kind = msg.get("type")
    if not isinstance(kind, str):
        return None
    parser = _PARSERS.get(kind)
    if parser is None:
        return None
    return parser(msg)
