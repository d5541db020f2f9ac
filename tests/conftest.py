import json
import random
from pathlib import Path

import pytest

from game.map_data import Bounds, MapData
from game.weapons import load_weapons

ROOT = Path(__file__).resolve().parent.parent


class FakeClock:
    def __init__(self, t: float = 1000.0):
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, dt: float) -> float:
        self.t += dt
        return self.t


class NoSpread(random.Random):
    """random() pinned to the midpoint, so spread sampling adds no deviation."""
    def random(self):
        return 0.5


class FakeSession:
    def __init__(self):
        self.open = True
        self.sent = []

    def send(self, payload: str) -> None:
        self.sent.append(json.loads(payload))

    def of_type(self, kind):
        return [m for m in self.sent if m.get("type") == kind]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def weapons():
    return load_weapons(str(ROOT / "configs" / "weapons.json"))


@pytest.fixture
def open_map():
    return MapData(
        bounds=Bounds(-38.0, 38.0, -38.0, 38.0),
        spawns=((-20.0, 0.0, -20.0), (20.0, 0.0, 20.0)),
    )
