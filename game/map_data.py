# game/map_data.py
from dataclasses import dataclass
from typing import List, Tuple, Dict, Any, Union
import math
import json

from game.transform import Vec3, clamp

@dataclass(frozen=True)
class Bounds:
    min_x: float
    max_x: float
    min_z: float
    max_z: float

    def clamp_xz(self, x: float, z: float) -> Tuple[float, float]:
        return clamp(x, self.min_x, self.max_x), clamp(z, self.min_z, self.max_z)

@dataclass(frozen=True)
class Obstacle:
    id: str
    position: Vec3   # box center
    size: Vec3       # full extents

    @property
    def half(self) -> Vec3:
        return (self.size[0] * 0.5, self.size[1] * 0.5, self.size[2] * 0.5)

    @property
    def min(self) -> Vec3:
        h = self.half
        return (self.position[0] - h[0], self.position[1] - h[1], self.position[2] - h[2])

    @property
    def max(self) -> Vec3:
        h = self.half
        return (self.position[0] + h[0], self.position[1] + h[1], self.position[2] + h[2])

@dataclass(frozen=True)
class Target:
    id: str
    position: Vec3
    radius: float

@dataclass(frozen=True)
class MapData:
    bounds: Bounds
    spawns: Tuple[Vec3, ...]
    obstacles: Tuple[Obstacle, ...] = ()
    targets: Tuple[Target, ...] = ()

# ---------- Serialization helpers ----------

Number = Union[int, float]


def _encode_number(value: Any) -> Number:
    """Return ints for whole numbers to keep JSON tidy, otherwise floats."""
    fval = float(value)
    if math.isfinite(fval) and abs(fval - round(fval)) < 1e-9:
        return int(round(fval))
    return fval

def _encode_vec(v: Vec3) -> Dict[str, Number]:
    return {"x": _encode_number(v[0]), "y": _encode_number(v[1]), "z": _encode_number(v[2])}

def _number(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"Field '{name}' must be numeric")
    try:
        fval = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Field '{name}' must be numeric") from exc
    if not math.isfinite(fval):
        raise ValueError(f"Field '{name}' must be finite")
    return fval

def _to_vec(values: Any, name: str) -> Vec3:
    """Convert an {x, y, z} mapping into a tuple of floats."""
    if not isinstance(values, dict):
        raise ValueError(f"Field '{name}' must be an object with x, y, z")
    return (
        _number(values.get("x"), f"{name}.x"),
        _number(values.get("y"), f"{name}.y"),
        _number(values.get("z"), f"{name}.z"),
    )


def mapdata_to_dict(mapdata: MapData) -> Dict[str, Any]:
    """Convert a MapData instance into the JSON shape sent to clients."""
    b = mapdata.bounds
    return {
        "bounds": {
            "minX": _encode_number(b.min_x),
            "maxX": _encode_number(b.max_x),
            "minZ": _encode_number(b.min_z),
            "maxZ": _encode_number(b.max_z),
        },
        "spawns": [_encode_vec(s) for s in mapdata.spawns],
        "obstacles": [
            {"id": o.id, "position": _encode_vec(o.position), "size": _encode_vec(o.size)}
            for o in mapdata.obstacles
        ],
        "targets": [
            {"id": t.id, "position": _encode_vec(t.position), "radius": _encode_number(t.radius)}
            for t in mapdata.targets
        ],
    }


def mapdata_from_dict(data: Dict[str, Any]) -> MapData:
    """Create a MapData instance from a dictionary (inverse of mapdata_to_dict)."""
    if not isinstance(data, dict):
        raise TypeError("Map data must be a JSON object/dict")

    raw_bounds = data.get("bounds")
    if not isinstance(raw_bounds, dict):
        raise ValueError("Field 'bounds' must be an object with minX/maxX/minZ/maxZ")
    bounds = Bounds(
        min_x=_number(raw_bounds.get("minX"), "bounds.minX"),
        max_x=_number(raw_bounds.get("maxX"), "bounds.maxX"),
        min_z=_number(raw_bounds.get("minZ"), "bounds.minZ"),
        max_z=_number(raw_bounds.get("maxZ"), "bounds.maxZ"),
    )
    if bounds.min_x > bounds.max_x or bounds.min_z > bounds.max_z:
        raise ValueError("Map bounds are inverted")

    spawns_data = data.get("spawns")
    if not isinstance(spawns_data, list) or not spawns_data:
        raise ValueError("Field 'spawns' must be a non-empty list")
    spawns = tuple(_to_vec(s, f"spawns[{i}]") for i, s in enumerate(spawns_data))

    obstacles_data = data.get("obstacles", [])
    if not isinstance(obstacles_data, list):
        raise ValueError("Field 'obstacles' must be a list")
    obstacles: List[Obstacle] = []
    for i, node in enumerate(obstacles_data):
        if not isinstance(node, dict):
            raise ValueError(f"obstacles[{i}] must be an object")
        size = _to_vec(node.get("size"), f"obstacles[{i}].size")
        if min(size) < 0.0:
            raise ValueError(f"obstacles[{i}].size must be non-negative")
        obstacles.append(Obstacle(
            id=str(node.get("id", f"obstacle-{i}")),
            position=_to_vec(node.get("position"), f"obstacles[{i}].position"),
            size=size,
        ))

    targets_data = data.get("targets", [])
    if not isinstance(targets_data, list):
        raise ValueError("Field 'targets' must be a list")
    targets: List[Target] = []
    for i, node in enumerate(targets_data):
        if not isinstance(node, dict):
            raise ValueError(f"targets[{i}] must be an object")
        radius = _number(node.get("radius"), f"targets[{i}].radius")
        if radius <= 0.0:
            raise ValueError(f"targets[{i}].radius must be positive")
        targets.append(Target(
            id=str(node.get("id", f"target-{i}")),
            position=_to_vec(node.get("position"), f"targets[{i}].position"),
            radius=radius,
        ))

    return MapData(bounds=bounds, spawns=spawns, obstacles=tuple(obstacles), targets=tuple(targets))


def load_from_file(path: str) -> MapData:
    """Load MapData from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return mapdata_from_dict(data)
