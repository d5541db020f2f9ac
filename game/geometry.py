"""Ray intersection primitives used for hitscan and line-of-sight tests."""
from __future__ import annotations

import math
from typing import Iterable, Optional

from game.transform import Vec3

AXIS_EPS = 1e-6


def ray_sphere(origin: Vec3, direction: Vec3, center: Vec3, radius: float) -> Optional[float]:
    """Distance to the nearest strictly positive sphere intersection.

    ``direction`` must be unit length. Returns None when the ray misses or the
    sphere lies entirely behind the origin.
    """
    ocx = origin[0] - center[0]
    ocy = origin[1] - center[1]
    ocz = origin[2] - center[2]
    b = ocx * direction[0] + ocy * direction[1] + ocz * direction[2]
    c = ocx * ocx + ocy * ocy + ocz * ocz - radius * radius
    h = b * b - c
    if h < 0.0:
        return None
    sqrt_h = math.sqrt(h)
    t = -b - sqrt_h
    if t > 0.0:
        return t
    t2 = -b + sqrt_h
    return t2 if t2 > 0.0 else None


def ray_aabb(origin: Vec3, direction: Vec3, box_min: Vec3, box_max: Vec3) -> Optional[float]:
    """Slab test against an axis-aligned box.

    Returns the entry distance, or the exit distance when the origin is inside
    the box. None if the ray misses or the box is behind the origin.
    """
    tmin = -math.inf
    tmax = math.inf
    for o, d, lo, hi in zip(origin, direction, box_min, box_max):
        if abs(d) < AXIS_EPS:
            # parallel to this slab: must already be inside it
            if o < lo or o > hi:
                return None
            continue
        t1 = (lo - o) / d
        t2 = (hi - o) / d
        if t1 > t2:
            t1, t2 = t2, t1
        tmin = max(tmin, t1)
        tmax = min(tmax, t2)
        if tmin > tmax:
            return None
    if tmax < 0.0:
        return None
    return tmin if tmin >= 0.0 else tmax


def nearest_obstacle(origin: Vec3, direction: Vec3, max_range: float, obstacles: Iterable) -> Optional[float]:
    """Closest obstacle hit within ``max_range``; obstacles expose ``min``/``max`` corners."""
    nearest: Optional[float] = None
    for obstacle in obstacles:
        t = ray_aabb(origin, direction, obstacle.min, obstacle.max)
        if t is not None and t <= max_range:
            if nearest is None or t < nearest:
                nearest = t
    return nearest


def segment_blocked(start: Vec3, end: Vec3, obstacles: Iterable) -> bool:
    """True when any obstacle sits strictly between ``start`` and ``end``."""
    dx, dy, dz = end[0] - start[0], end[1] - start[1], end[2] - start[2]
    dist = math.sqrt(dx * dx + dy * dy + dz * dz)
    if dist <= 1e-9:
        return False
    direction = (dx / dist, dy / dist, dz / dist)
    t = nearest_obstacle(start, direction, dist, obstacles)
    return t is not None and t < dist
