import json

import pytest

from engine.config import DEFAULT_CONFIG_PATH, Config


def test_defaults_and_dotted_get():
    cfg = Config()
    assert cfg.get("server.tick_hz") == 20
    assert cfg.get("gameplay.head_radius") == 0.25
    assert cfg.get("flash.fuse_ms") == 1200
    assert cfg.get("server.nope", "fallback") == "fallback"
    assert cfg.get("server.port.deeper") is None


def test_override_merges_into_defaults():
    cfg = Config({"server": {"port": 4000}, "flash": {"gravity": 9.8}})
    assert cfg.get("server.port") == 4000
    assert cfg.get("server.tick_hz") == 20
    assert cfg.section("flash")["gravity"] == 9.8
    assert cfg.section("flash")["fuse_ms"] == 1200
    assert Config().get("server.port") == 3000


def test_bundled_file_loads():
    cfg = Config.load(str(DEFAULT_CONFIG_PATH))
    assert cfg.get("server.respawn_seconds") == 3.0
    assert cfg.resolve_path("map").name == "arena.json"
    assert cfg.resolve_path("map").exists()


def test_load_resolves_assets_against_project_root(tmp_path):
    (tmp_path / "configs").mkdir()
    path = tmp_path / "configs" / "lan.json"
    path.write_text(json.dumps({"server": {"port": 3100}, "map": "maps/small.json"}))
    cfg = Config.load(str(path))
    assert cfg.get("server.port") == 3100
    assert cfg.resolve_path("map") == tmp_path.resolve() / "maps" / "small.json"


def test_non_object_config_rejected(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("[1, 2]")
    with pytest.raises(ValueError):
        Config.load(str(path))
