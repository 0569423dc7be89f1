"""
Rule violation results and the exceptions raised for them.
"""
from dataclasses import dataclass
from enum import Enum, auto

from silosoft.shared.enums import ErrorKind


class ActionResult(Enum):
    """Result of attempting an action."""
    SUCCESS = auto()
    # State
    NOT_YOUR_TURN = auto()
    GAME_OVER = auto()
    GAME_NOT_STARTED = auto()
    GAME_ALREADY_STARTED = auto()
    ALREADY_TRIGGERED = auto()
    NOT_TRIGGERED = auto()
    ALREADY_RESOLVED = auto()
    TRADE_LIMIT_REACHED = auto()
    # Validation
    PLAYER_NOT_FOUND = auto()
    CARD_NOT_FOUND = auto()
    FEATURE_NOT_FOUND = auto()
    NOT_A_RESOURCE = auto()
    INVALID_PLAYER_COUNT = auto()
    INVALID_PLAYER_NAME = auto()
    INVALID_TRADE = auto()
    INVALID_CARD = auto()
    INVALID_EFFECT = auto()
    INSUFFICIENT_FEATURES = auto()
    INSUFFICIENT_RESOURCES = auto()
    GAME_NOT_FOUND = auto()
    INVALID_SNAPSHOT = auto()
    # Resource conflicts
    RESOURCE_ASSIGNED = auto()
    RESOURCE_UNAVAILABLE = auto()
    FEATURE_COMPLETED = auto()
    # Capacity
    HAND_FULL = auto()
    DECK_EMPTY = auto()
    TOO_MANY_FEATURES = auto()
    TOO_MANY_PLAYERS = auto()


_RESULT_KINDS = {
    ActionResult.NOT_YOUR_TURN: ErrorKind.STATE,
    ActionResult.GAME_OVER: ErrorKind.STATE,
    ActionResult.GAME_NOT_STARTED: ErrorKind.STATE,
    ActionResult.GAME_ALREADY_STARTED: ErrorKind.STATE,
    ActionResult.ALREADY_TRIGGERED: ErrorKind.STATE,
    ActionResult.NOT_TRIGGERED: ErrorKind.STATE,
    ActionResult.ALREADY_RESOLVED: ErrorKind.STATE,
    ActionResult.TRADE_LIMIT_REACHED: ErrorKind.STATE,
    ActionResult.PLAYER_NOT_FOUND: ErrorKind.VALIDATION,
    ActionResult.CARD_NOT_FOUND: ErrorKind.VALIDATION,
    ActionResult.FEATURE_NOT_FOUND: ErrorKind.VALIDATION,
    ActionResult.NOT_A_RESOURCE: ErrorKind.VALIDATION,
    ActionResult.INVALID_PLAYER_COUNT: ErrorKind.VALIDATION,
    ActionResult.INVALID_PLAYER_NAME: ErrorKind.VALIDATION,
    ActionResult.INVALID_TRADE: ErrorKind.VALIDATION,
    ActionResult.INVALID_CARD: ErrorKind.VALIDATION,
    ActionResult.INVALID_EFFECT: ErrorKind.VALIDATION,
    ActionResult.INSUFFICIENT_FEATURES: ErrorKind.VALIDATION,
    ActionResult.INSUFFICIENT_RESOURCES: ErrorKind.VALIDATION,
    ActionResult.GAME_NOT_FOUND: ErrorKind.VALIDATION,
    ActionResult.INVALID_SNAPSHOT: ErrorKind.VALIDATION,
    ActionResult.RESOURCE_ASSIGNED: ErrorKind.RESOURCE_CONFLICT,
    ActionResult.RESOURCE_UNAVAILABLE: ErrorKind.RESOURCE_CONFLICT,
    ActionResult.FEATURE_COMPLETED: ErrorKind.RESOURCE_CONFLICT,
    ActionResult.HAND_FULL: ErrorKind.CAPACITY,
    ActionResult.DECK_EMPTY: ErrorKind.CAPACITY,
    ActionResult.TOO_MANY_FEATURES: ErrorKind.CAPACITY,
    ActionResult.TOO_MANY_PLAYERS: ErrorKind.CAPACITY,
}


class GameError(Exception):
    """Base class for every rule violation raised by the engine."""

    kind: ErrorKind = ErrorKind.STATE

    def __init__(self, result: ActionResult, message: str = ""):
        super().__init__(message or result.name)
        self.result = result
        self.message = message or result.name

    @property
    def code(self) -> str:
        """Stable discriminant for outer layers."""
        return self.result.name

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
        }


class StateError(GameError):
    """Wrong phase or wrong turn."""
    kind = ErrorKind.STATE


class ValidationError(GameError):
    """Malformed card data, bad player count, unknown ids."""
    kind = ErrorKind.VALIDATION


class ResourceConflictError(GameError):
    """Card already assigned or unavailable, feature already completed."""
    kind = ErrorKind.RESOURCE_CONFLICT


class CapacityError(GameError):
    """Hand full, deck empty, table full."""
    kind = ErrorKind.CAPACITY


class GameNotFoundError(ValidationError):
    """No game with the requested id exists in the store."""

    def __init__(self, game_id: str):
        super().__init__(ActionResult.GAME_NOT_FOUND, f"Game {game_id} not found")
        self.game_id = game_id


_KIND_ERRORS = {
    ErrorKind.STATE: StateError,
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.RESOURCE_CONFLICT: ResourceConflictError,
    ErrorKind.CAPACITY: CapacityError,
}


def error_for(result: ActionResult, message: str = "") -> GameError:
    """Build the exception matching an action result."""
    kind = _RESULT_KINDS.get(result, ErrorKind.STATE)
    return _KIND_ERRORS[kind](result, message)


@dataclass
class ValidationResult:
    """Result of validating an action."""
    valid: bool
    result: ActionResult
    message: str = ""

    @classmethod
    def success(cls, message: str = "") -> "ValidationResult":
        return cls(valid=True, result=ActionResult.SUCCESS, message=message)

    @classmethod
    def failure(cls, result: ActionResult, message: str = "") -> "ValidationResult":
        return cls(valid=False, result=result, message=message)

    def raise_if_invalid(self) -> None:
        """Raise the matching GameError when validation failed."""
        if not self.valid:
            raise error_for(self.result, self.message)
