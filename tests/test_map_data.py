import pytest

from game.map_data import load_from_file, mapdata_from_dict, mapdata_to_dict

from conftest import ROOT


def test_arena_map_loads():
    m = load_from_file(str(ROOT / "configs" / "maps" / "arena.json"))
    assert (m.bounds.min_x, m.bounds.max_x, m.bounds.min_z, m.bounds.max_z) == (-38, 38, -38, 38)
    assert len(m.spawns) == 7
    assert len(m.targets) == 6
    crate = next(o for o in m.obstacles if o.id == "crate-a")
    assert crate.min == pytest.approx((-7.5, 0.0, -5.5))
    assert crate.max == pytest.approx((-4.5, 2.4, -2.5))


def test_client_shape_uses_camel_case_bounds():
    m = load_from_file(str(ROOT / "configs" / "maps" / "arena.json"))
    d = mapdata_to_dict(m)
    assert d["bounds"] == {"minX": -38, "maxX": 38, "minZ": -38, "maxZ": 38}
    assert d["obstacles"][0]["size"] == {"x": 3, "y": 2.4, "z": 3}
    assert d["targets"][0]["radius"] == 0.55


def test_bounds_clamp():
    m = load_from_file(str(ROOT / "configs" / "maps" / "arena.json"))
    assert m.bounds.clamp_xz(100.0, -100.0) == (38.0, -38.0)


@pytest.mark.parametrize("doc", [
    {"bounds": {"minX": -1, "maxX": 1, "minZ": -1, "maxZ": 1}, "spawns": []},
    {"bounds": {"minX": 1, "maxX": -1, "minZ": -1, "maxZ": 1}, "spawns": [{"x": 0, "y": 0, "z": 0}]},
    {"bounds": {"minX": -1, "maxX": 1, "minZ": -1, "maxZ": 1}, "spawns": [{"x": 0, "y": 0}]},
    {"bounds": {"minX": -1, "maxX": 1, "minZ": -1, "maxZ": 1}, "spawns": [{"x": 0, "y": 0, "z": 0}],
     "targets": [{"id": "t", "position": {"x": 0, "y": 0, "z": 0}, "radius": 0}]},
])
def test_invalid_maps_rejected(doc):
    with pytest.raises(ValueError):
        mapdata_from_dict(doc)
