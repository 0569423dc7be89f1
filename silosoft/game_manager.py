"""
Game manager for handling multiple game instances.

Owns the game store and exposes the in-process API an outer request
layer calls: creating games, routing player actions to the right game,
scoring queries and JSON snapshots. Every mutating call on a game runs
under that game's lock.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from silosoft.config import config
from silosoft.shared.card_definitions import load_card_definitions
from silosoft.shared.constants import MIN_PLAYERS, MAX_PLAYERS
from silosoft.game_engine import (
    ActionResult, Card, DeckBuilder, EventCard, EventOutcome, Game, GameNotFoundError,
    GameRng, LeaderboardEntry, TeamScore, ValidationError
)


logger = logging.getLogger(__name__)


@dataclass
class ManagedGame:
    """Wrapper around a Game with its lock and bookkeeping."""
    game: Game
    lock: threading.Lock = field(default_factory=threading.Lock)
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def game_id(self) -> str:
        return self.game.id

    @property
    def is_finished(self) -> bool:
        return self.game.is_game_over


# =========================================================================
# Stores
# =========================================================================

class GameStore(ABC):
    """Keyed storage for live games."""

    @abstractmethod
    def get(self, game_id: str) -> ManagedGame | None:
        ...

    @abstractmethod
    def put(self, managed: ManagedGame) -> None:
        ...

    @abstractmethod
    def delete(self, game_id: str) -> bool:
        ...

    @abstractmethod
    def list_ids(self) -> list[str]:
        ...


class InMemoryGameStore(GameStore):
    """Dictionary-backed store; one instance per manager."""

    def __init__(self):
        # game_id -> ManagedGame
        self._games: dict[str, ManagedGame] = {}
        self._lock = threading.Lock()

    def get(self, game_id: str) -> ManagedGame | None:
        with self._lock:
            return self._games.get(game_id)

    def put(self, managed: ManagedGame) -> None:
        with self._lock:
            self._games[managed.game_id] = managed

    def delete(self, game_id: str) -> bool:
        with self._lock:
            return self._games.pop(game_id, None) is not None

    def list_ids(self) -> list[str]:
        with self._lock:
            return list(self._games)


# =========================================================================
# Manager
# =========================================================================

class GameManager:
    """
    Manages multiple game instances.

    Provides methods for:
    - Creating and dealing new games
    - Routing draw/assign/trade/end-turn/event calls to a game
    - Stats, leaderboard and team score queries
    - Snapshotting and restoring games
    """

    def __init__(
        self,
        store: GameStore | None = None,
        builder_factory: Callable[[GameRng], DeckBuilder] | None = None
    ):
        """
        Args:
            store: Game store; a fresh in-memory store when omitted
            builder_factory: Builds the deck builder for a new game's RNG
        """
        self._store = store or InMemoryGameStore()
        self._builder_factory = builder_factory or self._default_builder

    @staticmethod
    def _default_builder(rng: GameRng) -> DeckBuilder:
        return DeckBuilder(rng, load_card_definitions(config.CARD_DEFINITIONS_PATH))

    def _get_managed(self, game_id: str) -> ManagedGame:
        managed = self._store.get(game_id)
        if managed is None:
            raise GameNotFoundError(game_id)
        return managed

    def _locked(self, game_id: str, action: Callable[[Game], Any]) -> Any:
        managed = self._get_managed(game_id)
        with managed.lock:
            return action(managed.game)

    # =========================================================================
    # Game Creation
    # =========================================================================

    def create_game(self, player_names: list[str], seed: int | str | None = None) -> Game:
        """
        Create, deal and start a new game.

        Args:
            player_names: 2-4 non-empty display names, in seat order
            seed: RNG seed; falls back to GAME_SEED, then to a random seed

        Returns:
            The started game

        Raises:
            ValidationError: Bad player list or card catalog
        """
        if not isinstance(player_names, (list, tuple)) or not MIN_PLAYERS <= len(player_names) <= MAX_PLAYERS:
            raise ValidationError(
                ActionResult.INVALID_PLAYER_COUNT,
                f"Need {MIN_PLAYERS}-{MAX_PLAYERS} player names"
            )
        if not all(isinstance(name, str) and name.strip() for name in player_names):
            raise ValidationError(
                ActionResult.INVALID_PLAYER_NAME, "Player names must be non-empty strings"
            )

        rng = GameRng(seed if seed is not None else config.GAME_SEED)
        game = Game(
            rng=rng,
            max_rounds=config.MAX_ROUNDS,
            max_hand_size=config.MAX_HAND_SIZE,
            max_features_in_play=config.MAX_FEATURES_IN_PLAY,
        )

        for name in player_names:
            game.add_player(name)

        game.setup(self._builder_factory(rng), config.INITIAL_FEATURES_IN_PLAY)
        game.start_game()

        self._store.put(ManagedGame(game=game))
        logger.info(f"Game {game.id} created for {', '.join(player_names)} (seed={rng.seed})")

        return game

    # =========================================================================
    # Lookup
    # =========================================================================

    def get_game(self, game_id: str) -> Game:
        return self._get_managed(game_id).game

    def list_games(self) -> list[dict]:
        """Stats for every stored game."""
        games = []
        for game_id in self._store.list_ids():
            managed = self._store.get(game_id)
            if managed is not None:
                games.append(managed.game.get_stats())
        return games

    def delete_game(self, game_id: str) -> bool:
        deleted = self._store.delete(game_id)
        if deleted:
            logger.info(f"Game {game_id} deleted")
        return deleted

    # =========================================================================
    # Player Actions
    # =========================================================================

    def draw_card(self, game_id: str, player_id: str) -> Card:
        return self._locked(game_id, lambda game: game.draw_card(player_id))

    def assign_resource(self, game_id: str, player_id: str, resource_id: str, feature_id: str) -> bool:
        return self._locked(
            game_id, lambda game: game.assign_resource(player_id, resource_id, feature_id)
        )

    def trade_card(self, game_id: str, from_player_id: str, to_player_id: str, card_id: str) -> Card:
        return self._locked(
            game_id, lambda game: game.trade_card(from_player_id, to_player_id, card_id)
        )

    def end_turn(self, game_id: str, player_id: str) -> Game:
        def action(game: Game) -> Game:
            game.end_turn(player_id)
            return game
        return self._locked(game_id, action)

    def apply_event_effect(
        self,
        game_id: str,
        event: EventCard,
        player_id: str | None = None
    ) -> EventOutcome:
        return self._locked(game_id, lambda game: game.apply_event_effect(event, player_id))

    # =========================================================================
    # Scores and Stats
    # =========================================================================

    def get_game_stats(self, game_id: str) -> dict:
        return self._locked(game_id, lambda game: game.get_stats())

    def get_leaderboard(self, game_id: str) -> list[LeaderboardEntry]:
        return self._locked(game_id, lambda game: game.scoring.get_leaderboard(game))

    def get_team_score(self, game_id: str) -> TeamScore:
        return self._locked(game_id, lambda game: game.scoring.calculate_team_score(game))

    # =========================================================================
    # Snapshots
    # =========================================================================

    def snapshot(self, game_id: str) -> dict:
        """JSON-compatible snapshot of a game."""
        return self._locked(game_id, lambda game: game.to_dict())

    def restore(self, data: dict) -> Game:
        """Load a snapshot into the store, replacing any game with the same id."""
        game = Game.from_dict(data)
        self._store.put(ManagedGame(game=game))
        logger.info(f"Game {game.id} restored at round {game.current_round}")
        return game
