"""
Game engine package.
"""
from .errors import (
    ActionResult, ValidationResult, GameError, StateError, ValidationError,
    ResourceConflictError, CapacityError, GameNotFoundError, error_for
)
from .rng import GameRng
from .cards import (
    Card, FeatureCard, ResourceCard, EventCard, EventEffect, card_from_dict, parse_effect,
    LayoffEffect, ResourceLockEffect, DeadlinePressureEffect, RoleEscalationEffect,
    BonusDrawEffect, ReorgEffect, ContractorEffect
)
from .player import Player
from .deck import DeckBuilder, GameDeck
from .rules import RuleEngine
from .events import EventDispatcher, EventOutcome
from .scoring import (
    ScoreEngine, FeatureScore, PlayerScore, TeamBonuses, TeamScore, LeaderboardEntry
)
from .game import Game, GameEvent

__all__ = [
    "ActionResult",
    "ValidationResult",
    "GameError",
    "StateError",
    "ValidationError",
    "ResourceConflictError",
    "CapacityError",
    "GameNotFoundError",
    "error_for",
    "GameRng",
    "Card",
    "FeatureCard",
    "ResourceCard",
    "EventCard",
    "EventEffect",
    "card_from_dict",
    "parse_effect",
    "LayoffEffect",
    "ResourceLockEffect",
    "DeadlinePressureEffect",
    "RoleEscalationEffect",
    "BonusDrawEffect",
    "ReorgEffect",
    "ContractorEffect",
    "Player",
    "DeckBuilder",
    "GameDeck",
    "RuleEngine",
    "EventDispatcher",
    "EventOutcome",
    "ScoreEngine",
    "FeatureScore",
    "PlayerScore",
    "TeamBonuses",
    "TeamScore",
    "LeaderboardEntry",
    "Game",
    "GameEvent",
]
