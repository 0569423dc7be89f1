"""
Enumerations used throughout the game.
"""
from enum import Enum


class CardKind(str, Enum):
    """Discriminant of the three card variants."""
    FEATURE = "feature"
    RESOURCE = "resource"
    EVENT = "event"


class Role(str, Enum):
    """Team roles a resource can fill and a feature can require."""
    DEV = "dev"
    PM = "pm"
    UX = "ux"


class Level(str, Enum):
    """Seniority of a resource card."""
    ENTRY = "entry"
    JUNIOR = "junior"
    SENIOR = "senior"


class Complexity(str, Enum):
    """Feature tier derived from its point value."""
    BASIC = "basic"
    COMPLEX = "complex"
    EPIC = "epic"


class EventType(str, Enum):
    """Types of HR event cards."""
    LAYOFF = "layoff"
    PTO = "pto"
    PLM = "plm"
    COMPETITION = "competition"
    BONUS = "bonus"
    REORG = "reorg"
    CONTRACTOR = "contractor"


class GamePhase(str, Enum):
    """Lifecycle phase of a game."""
    SETUP = "setup"
    LOBBY = "lobby"
    PLAYING = "playing"
    ENDED = "ended"


class EndReason(str, Enum):
    """Why a game ended."""
    ALL_FEATURES_COMPLETED = "all_features_completed"
    MAX_ROUNDS_REACHED = "max_rounds_reached"


class ActionType(str, Enum):
    """Kinds of actions recorded in a game's last_action audit record."""
    GAME_START = "game_start"
    DRAW = "draw"
    ASSIGN = "assign"
    EVENT = "event"
    TRADE = "trade"
    END_TURN = "end_turn"
    GAME_END = "game_end"


class ErrorKind(str, Enum):
    """Families of rule violations, used by hosts to pick a response status."""
    STATE = "state"
    VALIDATION = "validation"
    RESOURCE_CONFLICT = "resource_conflict"
    CAPACITY = "capacity"
