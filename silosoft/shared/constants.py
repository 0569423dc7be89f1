"""
Game constants for Silosoft.
Point values and requirements are expressed in resource value units.
"""

# Players
MIN_PLAYERS = 2
MAX_PLAYERS = 4

# Rounds and table limits
MAX_ROUNDS = 10
MAX_HAND_SIZE = 7
INITIAL_HAND_SIZE = 4  # One feature plus resources
MAX_FEATURES_IN_PLAY = 5
INITIAL_FEATURES_IN_PLAY = 3

# Resource level -> value
LEVEL_VALUES = {
    "entry": 1,
    "junior": 2,
    "senior": 3,
}

# Feature points -> complexity tier
POINT_COMPLEXITY = {
    3: "basic",
    5: "complex",
    8: "epic",
}

ROLE_NAMES = {
    "dev": "Developer",
    "pm": "Product Manager",
    "ux": "UX Designer",
}

LEVEL_NAMES = {
    "entry": "Entry",
    "junior": "Junior",
    "senior": "Senior",
}

# Required `action` value for each event type when an event definition names one
EVENT_ACTIONS = {
    "layoff": "random_discard",
    "pto": "resource_lock",
    "plm": "resource_lock",
    "competition": "deadline_pressure",
    "bonus": "draw_resources",
    "reorg": "reassign_resources",
    "contractor": "add_wildcard",
}

# Scoring
EARLY_COMPLETION_MULTIPLIER = 1.5
PERFECT_MATCH_MULTIPLIER = 1.2
TEAMWORK_MULTIPLIER = 1.1
DEADLINE_MULTIPLIER = 2.0
LATE_GAME_THRESHOLD = 0.75
LATE_GAME_COMPLEXITY_BONUS = {
    "basic": 0,
    "complex": 1,
    "epic": 2,
}
UNASSIGNED_RESOURCE_PENALTY = 1
SPEED_BONUS_PER_ROUND = 2
EFFICIENCY_THRESHOLD = 1.5
EFFICIENCY_BONUS_FACTOR = 3
COOPERATION_MAX_SPREAD = 5
COOPERATION_MIN_FEATURES = 3
COOPERATION_BONUS = 5

# Serialization
SCHEMA_VERSION = "1.0"
