import pytest

from common.net import decode_message, encode_message
from common.protocol import (
    Reload,
    SetName,
    Shoot,
    StateUpdate,
    SwitchWeapon,
    ThrowFlash,
    parse_command,
)


def test_state_command():
    cmd = parse_command({"type": "state", "position": {"x": 1, "y": 0, "z": -2},
                         "yaw": 0.5, "pitch": -0.1, "weapon": "sniper", "stance": "crouch"})
    assert cmd == StateUpdate(position=(1.0, 0.0, -2.0), yaw=0.5, pitch=-0.1,
                              weapon="sniper", stance="crouch")


def test_state_command_drops_bad_fields():
    cmd = parse_command({"type": "state", "position": {"x": 1, "y": "up", "z": 0},
                         "yaw": True, "pitch": None, "weapon": 7, "stance": "prone"})
    assert cmd == StateUpdate()


@pytest.mark.parametrize("msg, expected", [
    ({"type": "set_name", "name": "Ada"}, SetName("Ada")),
    ({"type": "shoot"}, Shoot()),
    ({"type": "switch_weapon", "weapon": "deagle"}, SwitchWeapon("deagle")),
    ({"type": "throw_flash", "charge": 0.25}, ThrowFlash(0.25)),
    ({"type": "throw_flash"}, ThrowFlash(None)),
    ({"type": "reload"}, Reload()),
])
def test_simple_commands(msg, expected):
    assert parse_command(msg) == expected


@pytest.mark.parametrize("msg", [
    None,
    [1, 2],
    {"type": 5},
    {"kind": "shoot"},
    {"type": "teleport"},
    {"type": "switch_weapon"},
    {"type": "switch_weapon", "weapon": ""},
])
def test_rejected_commands(msg):
    assert parse_command(msg) is None


def test_decode_accepts_text_and_bytes():
    assert decode_message('{"type":"shoot"}') == {"type": "shoot"}
    assert decode_message(b'{"type":"shoot"}') == {"type": "shoot"}


@pytest.mark.parametrize("data", [
    "not json",
    "[1,2,3]",
    '"shoot"',
    '{"type":"state","yaw":NaN}',
    b"\xff\xfe",
])
def test_decode_rejects_malformed(data):
    assert decode_message(data) is None


def test_encode_is_compact_and_finite():
    assert encode_message({"type": "death", "id": "1"}) == '{"type":"death","id":"1"}'
    with pytest.raises(ValueError):
        encode_message({"x": float("inf")})
