"""Authoritative weapon firing, hit resolution, damage and respawns."""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from game.event_bus import EventBus
from game.geometry import nearest_obstacle, ray_sphere
from game.map_data import MapData, Target
from game.scheduler import Scheduler
from game.server_state import GameState, Player, random_spawn
from game.transform import Vec3, apply_spread, dir_from_yaw_pitch, round_half_up, vec_to_dict
from game.weapons import Weapon

log = logging.getLogger(__name__)

HEAD = "head"
BODY = "body"


@dataclass
class Impact:
    kind: str                        # "player" | "target" | "obstacle"
    target_id: Optional[str] = None
    part: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"type": self.kind}
        if self.target_id is not None:
            d["targetId"] = self.target_id
        if self.part is not None:
            d["part"] = self.part
        return d


@dataclass
class PelletTrace:
    direction: Vec3
    distance: float
    impact: Optional[Impact] = None
    victim: Optional[Player] = None
    part: Optional[str] = None
    target: Optional[Target] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dir": vec_to_dict(self.direction),
            "distance": self.distance,
            "impact": self.impact.to_dict() if self.impact else None,
        }


@dataclass
class ShotHit:
    target_id: str
    distance: float
    kind: str = "player"
    part: Optional[str] = None
    damage: int = 0
    remaining: int = 0

    def to_dict(self) -> Dict[str, Any]:
        if self.kind == "target":
            return {"targetId": self.target_id, "type": "target", "distance": self.distance}
        return {
            "targetId": self.target_id,
            "type": "player",
            "part": self.part,
            "damage": self.damage,
            "remaining": self.remaining,
            "distance": self.distance,
        }


@dataclass
class ShotResult:
    shooter_id: str
    origin: Vec3
    weapon: str
    traces: List[PelletTrace] = field(default_factory=list)
    hits: List[ShotHit] = field(default_factory=list)

    def to_message(self) -> Dict[str, Any]:
        return {
            "type": "shot",
            "shooterId": self.shooter_id,
            "origin": vec_to_dict(self.origin),
            "weapon": self.weapon,
            "traces": [t.to_dict() for t in self.traces],
            "hits": [h.to_dict() for h in self.hits],
        }


class CombatSystem:
    """Handles weapon firing, reloads, hit resolution and the death/respawn cycle."""

    def __init__(
        self,
        state: GameState,
        mapdata: MapData,
        weapons: Dict[str, Weapon],
        gameplay_cfg: Dict[str, Any],
        server_cfg: Dict[str, Any],
        scheduler: Scheduler,
        bus: EventBus,
        now_fn: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.state = state
        self.mapdata = mapdata
        self.weapons = weapons
        self.scheduler = scheduler
        self.bus = bus
        self._now = now_fn
        self.rng = rng or random.Random()
        self.respawn_seconds = float(server_cfg.get("respawn_seconds", 3.0))
        self.eye_height = float(gameplay_cfg.get("eye_height", 1.6))
        self.body_center_y = float(gameplay_cfg.get("body_center_y", 0.95))
        self.body_radius = float(gameplay_cfg.get("body_radius", 0.45))
        self.head_center_y = float(gameplay_cfg.get("head_center_y", 1.65))
        self.head_radius = float(gameplay_cfg.get("head_radius", 0.25))
        self.max_health = int(gameplay_cfg.get("max_health", 100))

    # ---------- Weapon state machine ----------
    def eye_origin(self, p: Player) -> Vec3:
        x, y, z = p.position
        return (x, y + self.eye_height, z)

    def reload(self, pid: str) -> bool:
        """Start reloading the equipped weapon; False when already reloading or full."""
        p = self.state.get(pid)
        if p is None or p.dead:
            return False
        weapon = self.weapons.get(p.weapon)
        if weapon is None:
            return False
        return p.weapon_state(weapon).begin_reload(self._now(), weapon.reload_time)

    def fire(self, pid: str) -> Optional[ShotResult]:
        """Fire the equipped weapon. Returns None for every rejected request."""
        p = self.state.get(pid)
        if p is None or p.dead:
            return None
        weapon = self.weapons.get(p.weapon)
        if weapon is None:
            return None

        now_t = self._now()
        if now_t - p.last_shot_at < weapon.fire_rate:
            return None

        ws = p.weapon_state(weapon)
        if ws.reloading(now_t):
            return None
        if ws.ammo <= 0:
            ws.begin_reload(now_t, weapon.reload_time)
            return None

        p.last_shot_at = now_t
        ws.ammo -= 1

        origin = self.eye_origin(p)
        base_dir = dir_from_yaw_pitch(p.yaw, p.pitch)
        result = ShotResult(shooter_id=p.id, origin=origin, weapon=weapon.id)

        for _ in range(weapon.pellets):
            direction = apply_spread(base_dir, weapon.spread, self.rng)
            trace = self.resolve_pellet(origin, direction, weapon, p.id)
            result.traces.append(trace)

            if trace.victim is not None:
                result.hits.append(self._apply_damage(p, trace.victim, trace.part, weapon, trace.distance))
            elif trace.target is not None:
                result.hits.append(ShotHit(target_id=trace.target.id, distance=trace.distance, kind="target"))

        self.bus.broadcast(result.to_message())
        return result

    # ---------- Hit resolution ----------
    def resolve_pellet(self, origin: Vec3, direction: Vec3, weapon: Weapon, shooter_id: str) -> PelletTrace:
        occluder = nearest_obstacle(origin, direction, weapon.range, self.mapdata.obstacles)
        player_hit = self._find_player_hit(origin, direction, weapon.range, shooter_id, occluder)
        target_hit = self._find_target_hit(origin, direction, weapon.range, occluder)

        if player_hit is not None and (target_hit is None or player_hit[2] <= target_hit[1]):
            victim, part, t = player_hit
            return PelletTrace(direction, t, Impact("player", victim.id, part), victim=victim, part=part)
        if target_hit is not None:
            target, t = target_hit
            return PelletTrace(direction, t, Impact("target", target.id), target=target)
        if occluder is not None:
            return PelletTrace(direction, occluder, Impact("obstacle"))
        return PelletTrace(direction, weapon.range, None)

    def hitbox_distance(self, origin: Vec3, direction: Vec3, p: Player) -> Optional[Tuple[str, float]]:
        """Nearest hitbox along the ray; the head wins ties with the body."""
        x, y, z = p.position
        body_t = ray_sphere(origin, direction, (x, y + self.body_center_y, z), self.body_radius)
        head_t = ray_sphere(origin, direction, (x, y + self.head_center_y, z), self.head_radius)
        if head_t is not None and (body_t is None or head_t <= body_t):
            return HEAD, head_t
        if body_t is not None:
            return BODY, body_t
        return None

    def _find_player_hit(self, origin: Vec3, direction: Vec3, max_range: float,
                         shooter_id: str, occluder: Optional[float]) -> Optional[Tuple[Player, str, float]]:
        best: Optional[Tuple[Player, str, float]] = None
        for other in self.state.players.values():
            if other.id == shooter_id or other.dead:
                continue
            hit = self.hitbox_distance(origin, direction, other)
            if hit is None:
                continue
            part, t = hit
            if t > max_range:
                continue
            if occluder is not None and t >= occluder:
                continue
            if best is None or t < best[2]:
                best = (other, part, t)
        return best

    def _find_target_hit(self, origin: Vec3, direction: Vec3, max_range: float,
                         occluder: Optional[float]) -> Optional[Tuple[Target, float]]:
        best: Optional[Tuple[Target, float]] = None
        for target in self.mapdata.targets:
            t = ray_sphere(origin, direction, target.position, target.radius)
            if t is None or t > max_range:
                continue
            if occluder is not None and t >= occluder:
                continue
            if best is None or t < best[1]:
                best = (target, t)
        return best

    # ---------- Damage / death ----------
    @staticmethod
    def damage_for(weapon: Weapon, part: Optional[str]) -> int:
        return round_half_up(weapon.damage * (weapon.headshot if part == HEAD else 1.0))

    def _apply_damage(self, shooter: Player, victim: Player, part: Optional[str],
                      weapon: Weapon, distance: float) -> ShotHit:
        damage = self.damage_for(weapon, part)
        victim.health = max(0, victim.health - damage)
        hit = ShotHit(target_id=victim.id, distance=distance, part=part,
                      damage=damage, remaining=victim.health)
        if victim.health <= 0 and not victim.dead:
            self._kill(shooter, victim)
        return hit

    def _kill(self, killer: Player, victim: Player) -> None:
        victim.dead = True
        victim.deaths += 1
        killer.kills += 1
        log.info("[death] victim=%s killer=%s weapon=%s", victim.id, killer.id, killer.weapon)
        self.bus.broadcast({"type": "death", "id": victim.id, "killerId": killer.id})
        victim_id = victim.id
        self.scheduler.schedule(self.respawn_seconds, lambda: self.respawn(victim_id),
                                label=f"respawn:{victim_id}")

    def respawn(self, pid: str) -> bool:
        p = self.state.get(pid)
        if p is None or not p.dead:
            # left the server (or already back): nothing to do
            return False
        p.position = random_spawn(self.mapdata.spawns, self.rng)
        p.health = self.max_health
        p.dead = False
        p.stance = "stand"
        for ws in p.arsenal.values():
            ws.refill()
        log.info("[respawn] pid=%s at (%.1f, %.1f, %.1f)", pid, *p.position)
        return True
