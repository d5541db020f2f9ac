# game/transform.py
import math
import random
from typing import Any, Dict, Optional, Tuple

Vec3 = Tuple[float, float, float]

# ---- Scalars ---------------------------------------------------------------

def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))

def wrap_pi(a: float) -> float:
    """Wrap radians into [-pi, pi]."""
    return ((a + math.pi) % (2 * math.pi)) - math.pi

def finite_float(value: Any) -> Optional[float]:
    """float(value) for real numbers that fit a finite double, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        fval = float(value)
    except OverflowError:
        # JSON integers are unbounded
        return None
    return fval if math.isfinite(fval) else None

def round_half_up(value: float) -> int:
    """Round .5 away from zero toward +inf, matching the browser client's Math.round."""
    return int(math.floor(value + 0.5))

# ---- Vectors ---------------------------------------------------------------

def add(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])

def sub(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])

def scale(a: Vec3, k: float) -> Vec3:
    return (a[0] * k, a[1] * k, a[2] * k)

def dot(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]

def length(a: Vec3) -> float:
    return math.sqrt(dot(a, a))

def normalize(a: Vec3) -> Vec3:
    n = length(a)
    if n <= 1e-12:
        return (0.0, 0.0, 0.0)
    return (a[0] / n, a[1] / n, a[2] / n)

def vec_to_dict(v: Vec3) -> Dict[str, float]:
    return {"x": v[0], "y": v[1], "z": v[2]}

def vec_from_dict(d: Any) -> Optional[Vec3]:
    """Parse an {x, y, z} mapping; None unless all three are finite numbers."""
    if not isinstance(d, dict):
        return None
    out = []
    for key in ("x", "y", "z"):
        v = finite_float(d.get(key))
        if v is None:
            return None
        out.append(v)
    return (out[0], out[1], out[2])

# ---- Browser camera space (X right, Y up, -Z forward) ---------------------
# Yaw rotates around +Y; yaw=0 faces -Z; +yaw turns left.
# Pitch rotates around the local horizontal axis; +pitch looks up.

def dir_from_yaw_pitch(yaw: float, pitch: float) -> Vec3:
    """
    Unit forward vector:
      X = -sin(yaw) * cos(pitch)
      Y =  sin(pitch)
      Z = -cos(yaw) * cos(pitch)
    """
    cp = math.cos(pitch)
    return (-math.sin(yaw) * cp, math.sin(pitch), -math.cos(yaw) * cp)

def yaw_pitch_from_dir(d: Vec3) -> Tuple[float, float]:
    """Inverse of dir_from_yaw_pitch for a unit vector."""
    return math.atan2(-d[0], -d[2]), math.asin(clamp(d[1], -1.0, 1.0))

def apply_spread(d: Vec3, spread: float, rng: Optional[random.Random] = None) -> Vec3:
    """
    Perturb a unit direction uniformly in yaw/pitch space by up to +-spread/2
    on each angle. A zero spread returns the direction unchanged.
    """
    if not spread:
        return d
    r = rng or random
    yaw, pitch = yaw_pitch_from_dir(d)
    yaw += (r.random() - 0.5) * spread
    pitch += (r.random() - 0.5) * spread
    return dir_from_yaw_pitch(yaw, pitch)
