# game/constants.py
# Defaults for values that configs/defaults.json may override.

TICK_HZ = 20
RESPAWN_SECONDS = 3.0
MAX_HEALTH = 100

# Player hitboxes, measured up from the feet position.
EYE_HEIGHT = 1.6
BODY_CENTER_Y = 0.95
BODY_RADIUS = 0.45
HEAD_CENTER_Y = 1.65
HEAD_RADIUS = 0.25

# Legal ranges for client-reported state.
MIN_Y = 0.0
MAX_Y = 5.0
PITCH_LIMIT = 1.3

NAME_MAX_LEN = 16
STANCES = ("stand", "crouch")
DEFAULT_WEAPON = "rifle"
