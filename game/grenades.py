"""Flash grenade throws, detonation prediction and blindness strength."""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, Iterable, Optional

from game.event_bus import EventBus
from game.geometry import segment_blocked
from game.map_data import Bounds
from game.scheduler import Scheduler
from game.server_state import GameState
from game.transform import Vec3, clamp, dir_from_yaw_pitch, dot, finite_float, length, normalize, sub, vec_to_dict

log = logging.getLogger(__name__)

DEFAULT_FOV = math.radians(75.0)
# Strength multiplier when the flash is directly behind the viewer.
BEHIND_WEIGHT = 0.2


@dataclass(frozen=True)
class FlashSpec:
    fuse_ms: float = 1200.0
    cooldown_ms: float = 4500.0
    max_radius: float = 150.0
    throw_speed_min: float = 7.0
    throw_speed_max: float = 60.0
    up_boost: float = 3.2
    gravity: float = 26.0
    min_pitch: float = -0.2
    max_pitch: float = 0.35
    max_y: float = 6.0

    @property
    def fuse(self) -> float:
        return self.fuse_ms / 1000.0

    @property
    def cooldown(self) -> float:
        return self.cooldown_ms / 1000.0


def load_flash(cfg: Dict[str, Any]) -> FlashSpec:
    defaults = FlashSpec()
    return FlashSpec(**{
        f.name: float(cfg.get(f.name, getattr(defaults, f.name)))
        for f in fields(FlashSpec)
    })


def throw_speed(spec: FlashSpec, charge: Any) -> float:
    """Interpolate throw speed by charge; a missing or non-numeric charge counts as full."""
    value = finite_float(charge)
    c = 1.0 if value is None else clamp(value, 0.0, 1.0)
    return spec.throw_speed_min + (spec.throw_speed_max - spec.throw_speed_min) * c


def throw_velocity(spec: FlashSpec, yaw: float, pitch: float, charge: Any) -> Vec3:
    speed = throw_speed(spec, charge)
    dx, dy, dz = dir_from_yaw_pitch(yaw, clamp(pitch, spec.min_pitch, spec.max_pitch))
    return (dx * speed, dy * speed + spec.up_boost, dz * speed)


def predict_detonation(origin: Vec3, velocity: Vec3, fuse: float, gravity: float,
                       bounds: Bounds, max_y: float) -> Vec3:
    """Closed-form projectile position at fuse expiry, clamped into the arena."""
    x = origin[0] + velocity[0] * fuse
    y = origin[1] + velocity[1] * fuse - 0.5 * gravity * fuse * fuse
    z = origin[2] + velocity[2] * fuse
    x, z = bounds.clamp_xz(x, z)
    return (x, clamp(y, 0.0, max_y), z)


def flash_strength(eye: Vec3, view_dir: Vec3, origin: Vec3, radius: float,
                   obstacles: Iterable = (), fov: float = DEFAULT_FOV) -> float:
    """How blinded a viewer is by a detonation, in [0, 1].

    Linear distance falloff to zero at ``radius``, full weight inside half the
    field of view easing to BEHIND_WEIGHT directly behind, and zero when an
    obstacle blocks the line of sight.
    """
    if radius <= 0.0:
        return 0.0
    to_flash = sub(origin, eye)
    dist = length(to_flash)
    if dist >= radius:
        return 0.0
    obstacles = tuple(obstacles)
    if obstacles and segment_blocked(eye, origin, obstacles):
        return 0.0

    falloff = 1.0 - dist / radius
    if dist < 1e-6:
        return clamp(falloff, 0.0, 1.0)

    view = normalize(view_dir)
    cos_a = dot(view, (to_flash[0] / dist, to_flash[1] / dist, to_flash[2] / dist))
    angle = math.acos(clamp(cos_a, -1.0, 1.0))
    half = 0.5 * clamp(fov, 0.0, 2.0 * math.pi)
    if angle <= half:
        weight = 1.0
    else:
        span = max(1e-6, math.pi - half)
        weight = 1.0 - (1.0 - BEHIND_WEIGHT) * clamp((angle - half) / span, 0.0, 1.0)
    return clamp(falloff * weight, 0.0, 1.0)


class FlashSystem:
    """Accepts throws, announces the flight and schedules the detonation."""

    def __init__(
        self,
        state: GameState,
        bounds: Bounds,
        spec: FlashSpec,
        gameplay_cfg: Dict[str, Any],
        scheduler: Scheduler,
        bus: EventBus,
        now_fn: Callable[[], float] = time.time,
    ) -> None:
        self.state = state
        self.bounds = bounds
        self.spec = spec
        self.scheduler = scheduler
        self.bus = bus
        self._now = now_fn
        self.eye_height = float(gameplay_cfg.get("eye_height", 1.6))

    def throw(self, pid: str, charge: Any = 1.0) -> Optional[Vec3]:
        """Returns the predicted detonation point, or None when the throw is refused."""
        p = self.state.get(pid)
        if p is None or p.dead:
            return None
        now_t = self._now()
        if now_t - p.last_flash_at < self.spec.cooldown:
            return None
        p.last_flash_at = now_t

        x, y, z = p.position
        start = (x, y + self.eye_height, z)
        velocity = throw_velocity(self.spec, p.yaw, p.pitch, charge)
        detonation = predict_detonation(start, velocity, self.spec.fuse, self.spec.gravity,
                                        self.bounds, self.spec.max_y)

        self.bus.broadcast({
            "type": "flash_throw",
            "origin": vec_to_dict(start),
            "velocity": vec_to_dict(velocity),
            "fuseMs": self.spec.fuse_ms,
        })
        log.info("[flash] thrown by=%s detonates at (%.1f, %.1f, %.1f)", pid, *detonation)
        self.scheduler.schedule(self.spec.fuse, lambda: self.detonate(pid, detonation),
                                label=f"flash:{pid}")
        return detonation

    def detonate(self, pid: str, origin: Vec3) -> bool:
        if pid not in self.state:
            # thrower disconnected before the fuse ran out
            return False
        self.bus.broadcast({
            "type": "flash",
            "origin": vec_to_dict(origin),
            "radius": self.spec.max_radius,
        })
        return True
