import json

import pytest

from game.weapons import WeaponState, load_weapons, weapons_from_dict


def test_weapon_table(weapons):
    assert set(weapons) == {"pistol", "deagle", "rifle", "sniper", "shotgun"}
    rifle = weapons["rifle"]
    assert rifle.damage == 14
    assert rifle.headshot == 1.5
    assert rifle.fire_rate == pytest.approx(0.1)
    assert weapons["shotgun"].pellets == 8
    assert weapons["deagle"].fire_rate == pytest.approx(0.5)


def test_weapon_wire_shape(weapons):
    d = weapons["sniper"].to_dict()
    assert d["fireRate"] == pytest.approx(1.2)
    assert d["reloadTime"] == pytest.approx(2.8)
    assert d["magazine"] == 5


def test_missing_numeric_field_rejected():
    with pytest.raises(ValueError):
        weapons_from_dict({"rifle": {"damage": 14, "range": 90, "magazine": 30, "reloadTime": 1}})


def test_negative_field_rejected():
    with pytest.raises(ValueError):
        weapons_from_dict({"rifle": {"damage": -1, "range": 90, "fireRate": 0.1,
                                     "magazine": 30, "reloadTime": 1}})


def test_load_weapons_from_file(tmp_path):
    path = tmp_path / "w.json"
    path.write_text(json.dumps({"blaster": {"damage": 10, "range": 20, "fireRate": 0.2,
                                           "magazine": 3, "reloadTime": 1.0}}))
    table = load_weapons(str(path))
    assert table["blaster"].pellets == 1
    assert table["blaster"].spread == 0.0
    assert table["blaster"].label == "blaster"


def test_reload_completes_lazily():
    ws = WeaponState(ammo=0, magazine=5)
    assert ws.begin_reload(10.0, 2.0)
    assert ws.ammo == 0
    assert ws.reloading(11.9)
    assert not ws.reloading(12.0)
    assert ws.ammo == 5
    assert ws.reload_end == 0.0


def test_reload_is_noop_when_reloading_or_full():
    ws = WeaponState(ammo=5, magazine=5)
    assert not ws.begin_reload(0.0, 1.0)
    ws.ammo = 2
    assert ws.begin_reload(0.0, 1.0)
    end = ws.reload_end
    assert not ws.begin_reload(0.5, 1.0)
    assert ws.reload_end == end
