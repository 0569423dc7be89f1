"""
Main game orchestration - ties all components together.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from silosoft.shared.constants import (
    MAX_ROUNDS, MAX_HAND_SIZE, MAX_FEATURES_IN_PLAY, INITIAL_FEATURES_IN_PLAY,
    SCHEMA_VERSION
)
from silosoft.shared.enums import GamePhase, EndReason, ActionType

from .cards import Card, FeatureCard, EventCard, card_from_dict
from .deck import DeckBuilder, GameDeck
from .errors import ActionResult, StateError, ValidationError
from .events import EventDispatcher, EventOutcome
from .player import Player
from .rng import GameRng
from .rules import RuleEngine
from .scoring import ScoreEngine


logger = logging.getLogger(__name__)


@dataclass
class GameEvent:
    """Represents something that happened in the game."""
    event_type: str
    data: dict
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "event_type": self.event_type,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GameEvent":
        return cls(
            event_type=data["event_type"],
            data=data.get("data", {}),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


@dataclass
class Game:
    """
    Main game class that orchestrates all gameplay.

    All state changes go through the public operations below; each one
    validates against the RuleEngine first and raises a GameError
    subclass without touching state when the action is not allowed.
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    # Game components
    rng: GameRng = field(default_factory=GameRng)
    rules: RuleEngine = field(init=False)
    dispatcher: EventDispatcher = field(init=False)
    scoring: ScoreEngine = field(init=False)

    # Players
    players: List[Player] = field(default_factory=list)
    current_player_index: int = 0

    # Cards
    deck: List[Card] = field(default_factory=list)
    discard_pile: List[Card] = field(default_factory=list)
    features_in_play: List[FeatureCard] = field(default_factory=list)
    feature_backlog: List[FeatureCard] = field(default_factory=list)

    # Game state
    phase: GamePhase = GamePhase.SETUP
    current_round: int = 1
    win_condition: bool = False
    end_reason: Optional[EndReason] = None
    final_scores: Dict[str, int] = field(default_factory=dict)
    last_action: Optional[dict] = None
    trade_completed_this_turn: bool = False

    # Event log
    events: List[GameEvent] = field(default_factory=list)

    # Configuration
    max_rounds: int = MAX_ROUNDS
    max_hand_size: int = MAX_HAND_SIZE
    max_features_in_play: int = MAX_FEATURES_IN_PLAY

    def __post_init__(self):
        self.rules = RuleEngine(self.max_hand_size, self.max_features_in_play)
        self.dispatcher = EventDispatcher()
        self.scoring = ScoreEngine()

    @property
    def current_player(self) -> Optional[Player]:
        """Get the current player."""
        if not self.players:
            return None
        return self.players[self.current_player_index]

    @property
    def is_game_over(self) -> bool:
        """Ended, past the round limit, or every feature completed."""
        return (
            self.phase == GamePhase.ENDED
            or self.current_round > self.max_rounds
            or self.win_condition
        )

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def _log_event(self, event_type: str, data: dict) -> GameEvent:
        """Log a game event."""
        event = GameEvent(event_type=event_type, data=data)
        self.events.append(event)
        self.updated_at = event.timestamp
        return event

    def _record_action(self, action_type: ActionType, data: dict) -> None:
        """Store the last action and append it to the event log."""
        event = self._log_event(action_type.value, data)
        self.last_action = {"type": action_type.value, **data, "timestamp": event.timestamp.isoformat()}

    def _ensure_mutable(self) -> None:
        self.rules.validate_mutation(self.phase, self.is_game_over).raise_if_invalid()

    def _current_player_id(self) -> str:
        return self.current_player.id if self.current_player else ""

    # =========== Player Management ===========

    def add_player(self, name: str) -> Player:
        """
        Seat a new player before the game starts.

        Raises:
            StateError: Game already started
            CapacityError: Table is full
            ValidationError: Empty name
        """
        self.rules.validate_add_player(self.phase, len(self.players)).raise_if_invalid()

        if not isinstance(name, str) or not name.strip():
            raise ValidationError(ActionResult.INVALID_PLAYER_NAME, "Player name must be a non-empty string")

        player = Player(id=f"player-{len(self.players) + 1}", name=name.strip())
        self.players.append(player)
        self.phase = GamePhase.LOBBY

        self._log_event("player_joined", {"player_id": player.id, "player_name": player.name})
        return player

    # =========== Setup ===========

    def setup(self, builder: DeckBuilder, initial_features: int = INITIAL_FEATURES_IN_PLAY) -> GameDeck:
        """
        Build the deck, deal opening hands and lay out the first features.

        Args:
            builder: Deck builder sharing this game's RNG
            initial_features: Feature cards moved from the deck into play
        """
        cards_dealt = bool(
            self.deck or self.features_in_play or self.feature_backlog or self.discard_pile
            or any(p.hand for p in self.players)
        )
        self.rules.validate_setup(self.phase, len(self.players), cards_dealt).raise_if_invalid()

        game_deck = builder.create_game_deck(self.players)
        self.deck = game_deck.deck

        for _ in range(min(initial_features, self.max_features_in_play)):
            if not self._place_feature_from_deck():
                break

        self._log_event("game_setup", {
            **game_deck.to_dict(),
            "features_in_play": [f.id for f in self.features_in_play],
        })
        return game_deck

    def start_game(self) -> None:
        """Move from setup/lobby into play."""
        self.rules.validate_start(self.phase, len(self.players)).raise_if_invalid()

        self.phase = GamePhase.PLAYING
        self.current_player_index = 0
        self.current_round = 1

        self._record_action(ActionType.GAME_START, {
            "player_ids": [p.id for p in self.players],
            "seed": self.rng.seed,
        })
        logger.info(f"Game {self.id} started with {len(self.players)} players")

    # =========== Features ===========

    def find_feature(self, feature_id: str) -> Optional[FeatureCard]:
        """
        Locate an open or pending feature.

        Lookup order: features in play, then each player's hand in seat
        order, then the backlog.
        """
        for feature in self.features_in_play:
            if feature.id == feature_id:
                return feature

        for player in self.players:
            card = player.find_card(feature_id)
            if isinstance(card, FeatureCard):
                return card

        for feature in self.feature_backlog:
            if feature.id == feature_id:
                return feature

        return None

    def _place_feature_from_deck(self) -> bool:
        for card in self.deck:
            if isinstance(card, FeatureCard):
                self.deck.remove(card)
                self.features_in_play.append(card)
                return True
        return False

    def _introduce_feature(self, feature: FeatureCard) -> None:
        if self.rules.has_table_room(len(self.features_in_play)):
            self.features_in_play.append(feature)
        else:
            self.feature_backlog.append(feature)

    def _refill_features(self) -> Optional[FeatureCard]:
        if not self.rules.has_table_room(len(self.features_in_play)):
            return None

        if self.feature_backlog:
            feature = self.feature_backlog.pop(0)
            self.features_in_play.append(feature)
            return feature

        if self._place_feature_from_deck():
            return self.features_in_play[-1]

        return None

    def _take_feature_off_table(self, feature: FeatureCard) -> bool:
        """Remove a feature from wherever it sits; True if it was in play."""
        if feature in self.features_in_play:
            self.features_in_play.remove(feature)
            return True

        for player in self.players:
            if player.find_card(feature.id) is feature:
                player.remove_card(feature.id)
                return False

        if feature in self.feature_backlog:
            self.feature_backlog.remove(feature)
        return False

    # =========== Actions ===========

    def draw_card(self, player_id: str) -> Card:
        """
        Draw the top card of the deck.

        Drawn events resolve immediately; drawn features go into play, or
        into the backlog when the table is full.

        Raises:
            StateError: Game over or not this player's turn
            CapacityError: Deck empty or hand full
        """
        self._ensure_mutable()
        player = self.get_player(player_id)
        self.rules.validate_draw(player, self._current_player_id(), len(self.deck)).raise_if_invalid()

        card = self.deck.pop()
        player.add_card(card, self.max_hand_size)
        logger.debug(f"Game {self.id}: {player.name} drew {card.id}")

        outcome: Optional[EventOutcome] = None
        if isinstance(card, EventCard):
            outcome = self.dispatcher.dispatch(self, card, player)
        elif isinstance(card, FeatureCard):
            player.remove_card(card.id)
            self._introduce_feature(card)

        self._record_action(ActionType.DRAW, {
            "player_id": player.id,
            "card_id": card.id,
            "card_type": card.card_type.value,
            "event": outcome.to_dict() if outcome else None,
        })
        return card

    def assign_resource(self, player_id: str, resource_id: str, feature_id: str) -> bool:
        """
        Attach a resource from the player's hand to a feature.

        Returns:
            True if the assignment completed the feature

        Raises:
            StateError: Game over or not started
            ValidationError: Unknown player, card or feature
            ResourceConflictError: Resource assigned or unavailable, feature completed
        """
        self._ensure_mutable()
        player = self.get_player(player_id)
        resource = player.find_card(resource_id) if player else None
        feature = self.find_feature(feature_id)

        self.rules.validate_assign(
            player, resource, resource_id, feature, feature_id, self.current_round
        ).raise_if_invalid()

        player.remove_card(resource.id)
        resource.assign(feature.id, player.id)
        feature.assigned_resources.append(resource)
        logger.debug(f"Game {self.id}: {player.name} assigned {resource.id} to {feature.id}")

        completed = self.check_feature_completion(feature)

        # Completion can end the game and record its own last action
        if not completed or self.phase != GamePhase.ENDED:
            self._record_action(ActionType.ASSIGN, {
                "player_id": player.id,
                "resource_id": resource.id,
                "feature_id": feature.id,
                "completed": completed,
                "completion_score": feature.completion_score,
            })
        return completed

    def check_feature_completion(self, feature: FeatureCard) -> bool:
        """
        Complete the feature if every role requirement is met.

        Each contributing player gains the feature's points once. The
        feature moves to the discard pile and a freed table slot is refilled.

        Returns:
            True only on the transition to completed
        """
        if feature.completed or not feature.meets_requirements():
            return False

        contributors = feature.contributors()
        score = self.scoring.calculate_feature_points(
            feature, self, multiple_contributors=len(contributors) > 1
        )

        feature.completed = True
        feature.completed_round = self.current_round
        feature.completion_score = score.to_dict()

        for contributor_id in contributors:
            contributor = self.get_player(contributor_id)
            if contributor:
                contributor.add_score(feature.points)

        was_in_play = self._take_feature_off_table(feature)
        self.discard_pile.append(feature)
        replacement = self._refill_features() if was_in_play else None

        self._log_event("feature_completed", {
            "feature_id": feature.id,
            "contributors": contributors,
            "points": feature.points,
            "score": score.to_dict(),
            "replacement_id": replacement.id if replacement else None,
        })
        logger.info(
            f"Game {self.id}: feature {feature.id} completed in round {self.current_round} "
            f"by {', '.join(contributors) or 'nobody'}"
        )

        self.check_win_condition()
        return True

    def apply_event_effect(self, event: EventCard, player_id: Optional[str] = None) -> EventOutcome:
        """
        Resolve an event that was not drawn through draw_card.

        Args:
            event: Event card to apply; taken out of the deck if it is there
            player_id: Affected player, the current player by default
        """
        self._ensure_mutable()
        player = self.get_player(player_id) if player_id else self.current_player
        if player is None:
            raise ValidationError(ActionResult.PLAYER_NOT_FOUND, f"Player {player_id} not found")

        event.ensure_pending()
        if event in self.deck:
            self.deck.remove(event)

        outcome = self.dispatcher.dispatch(self, event, player)
        self._record_action(ActionType.EVENT, {"player_id": player.id, **outcome.to_dict()})
        return outcome

    def trade_card(self, from_player_id: str, to_player_id: str, card_id: str) -> Card:
        """
        Give a resource card from the current player's hand to a teammate.

        One trade is allowed per turn.

        Raises:
            StateError: Game over, not this player's turn, or already traded this turn
            ValidationError: Unknown player or card, not a resource, trading with yourself
            ResourceConflictError: The resource is locked
            CapacityError: The receiving hand is full
        """
        self._ensure_mutable()
        giver = self.get_player(from_player_id)
        receiver = self.get_player(to_player_id)
        card = giver.find_card(card_id) if giver else None

        self.rules.validate_trade(
            giver, receiver, card, card_id, self._current_player_id(),
            self.trade_completed_this_turn, self.current_round
        ).raise_if_invalid()

        giver.remove_card(card.id)
        receiver.add_card(card, self.max_hand_size)
        self.trade_completed_this_turn = True
        logger.debug(f"Game {self.id}: {giver.name} traded {card.id} to {receiver.name}")

        self._record_action(ActionType.TRADE, {
            "player_id": giver.id,
            "to_player_id": receiver.id,
            "card_id": card.id,
        })
        return card

    # =========== Turn Management ===========

    def end_turn(self, player_id: str) -> None:
        """
        End the current player's turn.

        Wrapping back to the first seat starts a new round; passing the
        round limit ends the game.
        """
        self._ensure_mutable()
        player = self.get_player(player_id)
        self.rules.validate_end_turn(player, self._current_player_id()).raise_if_invalid()

        self.current_player_index = (self.current_player_index + 1) % len(self.players)
        self.trade_completed_this_turn = False

        round_advanced = self.current_player_index == 0
        if round_advanced:
            self.current_round += 1
            self._apply_round_effects()

        self._record_action(ActionType.END_TURN, {
            "player_id": player.id,
            "next_player_id": self._current_player_id(),
            "round": self.current_round,
            "round_advanced": round_advanced,
        })

        if self.current_round > self.max_rounds:
            self.end_game(EndReason.MAX_ROUNDS_REACHED)

    def _apply_round_effects(self) -> None:
        """Restore locked resources, release expired contractors, flag missed deadlines."""
        restored: List[str] = []
        expired: List[str] = []

        for player in self.players:
            restored.extend(r.id for r in player.restore_available_resources(self.current_round))

            for resource in player.resource_cards():
                if resource.is_contractor and resource.is_expired(self.current_round):
                    player.remove_card(resource.id)
                    self.discard_pile.append(resource)
                    expired.append(resource.id)

        missed = []
        for feature in self.features_in_play:
            if (not feature.completed and feature.deadline is not None
                    and self.current_round > feature.deadline and not feature.deadline_missed):
                feature.deadline_missed = True
                missed.append(feature.id)

        self._log_event("round_started", {
            "round": self.current_round,
            "restored": restored,
            "expired_contractors": expired,
            "missed_deadlines": missed,
        })
        logger.info(f"Game {self.id}: round {self.current_round} started")

    # =========== Game End ===========

    def check_win_condition(self) -> bool:
        """
        The team wins when every feature introduced so far is completed.

        The total is derived from the features in play plus the features
        in the discard pile.
        """
        discarded = [c for c in self.discard_pile if isinstance(c, FeatureCard)]
        completed = [f for f in discarded if f.completed]
        total = len(self.features_in_play) + len(discarded)

        if total == 0 or len(completed) != total:
            return False

        self.win_condition = True
        if self.phase != GamePhase.ENDED:
            self.end_game(EndReason.ALL_FEATURES_COMPLETED)
        return True

    def end_game(self, reason: EndReason = EndReason.MAX_ROUNDS_REACHED) -> Dict[str, int]:
        """
        Freeze the game and record final scores.

        Raises:
            StateError: The game has already ended
        """
        if self.phase == GamePhase.ENDED:
            raise StateError(ActionResult.GAME_OVER, "Game is over")

        self.phase = GamePhase.ENDED
        self.end_reason = EndReason(reason)
        self.final_scores = {
            p.id: self.scoring.calculate_player_score(p, self).final_score
            for p in self.players
        }

        self._record_action(ActionType.GAME_END, {
            "reason": self.end_reason.value,
            "win_condition": self.win_condition,
            "final_scores": dict(self.final_scores),
        })
        logger.info(f"Game {self.id} ended ({self.end_reason.value}), win={self.win_condition}")
        return self.final_scores

    # =========== Queries ===========

    def card_ids(self) -> List[str]:
        """Every card id in the game, wherever it sits."""
        ids = [c.id for c in self.deck]
        for player in self.players:
            ids.extend(c.id for c in player.hand)
        for card in self.discard_pile:
            ids.append(card.id)
            if isinstance(card, FeatureCard):
                ids.extend(r.id for r in card.assigned_resources)
        for feature in self.features_in_play + self.feature_backlog:
            ids.append(feature.id)
            ids.extend(r.id for r in feature.assigned_resources)
        # Features still sitting in hands may already hold resources
        for player in self.players:
            for feature in player.feature_cards():
                ids.extend(r.id for r in feature.assigned_resources)
        return ids

    def get_stats(self) -> dict:
        return {
            "id": self.id,
            "phase": self.phase.value,
            "current_round": self.current_round,
            "max_rounds": self.max_rounds,
            "current_player_id": self.current_player.id if self.current_player else None,
            "player_count": len(self.players),
            "deck_size": len(self.deck),
            "features_in_play": len(self.features_in_play),
            "features_completed": len(self.scoring.completed_features(self)),
            "total_score": sum(p.score for p in self.players),
            "is_game_over": self.is_game_over,
            "win_condition": self.win_condition,
        }

    def get_state_for_player(self, player_id: str) -> dict:
        """
        Get game state formatted for a specific player.
        Other players' hands are reduced to counts.
        """
        if self.get_player(player_id) is None:
            raise ValidationError(ActionResult.PLAYER_NOT_FOUND, f"Player {player_id} not found")

        players = []
        for player in self.players:
            if player.id == player_id:
                players.append(player.to_dict())
            else:
                players.append({
                    "id": player.id,
                    "name": player.name,
                    "score": player.score,
                    "hand_size": len(player.hand),
                    "unavailable_count": len(player.temporarily_unavailable),
                })

        return {
            "game_id": self.id,
            "phase": self.phase.value,
            "current_round": self.current_round,
            "max_rounds": self.max_rounds,
            "current_player_id": self.current_player.id if self.current_player else None,
            "is_your_turn": self.current_player is not None and self.current_player.id == player_id,
            "players": players,
            "deck_size": len(self.deck),
            "features_in_play": [f.to_dict() for f in self.features_in_play],
            "feature_backlog": [f.to_dict() for f in self.feature_backlog],
            "discard_pile_size": len(self.discard_pile),
            "win_condition": self.win_condition,
            "can_trade": not self.trade_completed_this_turn,
            "last_action": self.last_action,
        }

    # =========== Serialization ===========

    def to_dict(self) -> dict:
        """Convert game state to dictionary for saving/transmission."""
        return {
            "schema_version": SCHEMA_VERSION,
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "phase": self.phase.value,
            "current_round": self.current_round,
            "max_rounds": self.max_rounds,
            "max_hand_size": self.max_hand_size,
            "max_features_in_play": self.max_features_in_play,
            "current_player_index": self.current_player_index,
            "win_condition": self.win_condition,
            "end_reason": self.end_reason.value if self.end_reason else None,
            "final_scores": dict(self.final_scores),
            "last_action": self.last_action,
            "trade_completed_this_turn": self.trade_completed_this_turn,
            "players": [p.to_dict() for p in self.players],
            "deck": [c.to_dict() for c in self.deck],
            "discard_pile": [c.to_dict() for c in self.discard_pile],
            "features_in_play": [f.to_dict() for f in self.features_in_play],
            "feature_backlog": [f.to_dict() for f in self.feature_backlog],
            "rng": self.rng.to_dict(),
            "events": [e.to_dict() for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Game":
        """
        Create game from dictionary.

        Raises:
            ValidationError: Unknown schema version or malformed cards
        """
        version = data.get("schema_version")
        if version != SCHEMA_VERSION:
            raise ValidationError(
                ActionResult.INVALID_SNAPSHOT,
                f"Unsupported schema version {version!r} (expected {SCHEMA_VERSION})"
            )

        game = cls(
            id=data["id"],
            rng=GameRng.from_dict(data["rng"]),
            max_rounds=data.get("max_rounds", MAX_ROUNDS),
            max_hand_size=data.get("max_hand_size", MAX_HAND_SIZE),
            max_features_in_play=data.get("max_features_in_play", MAX_FEATURES_IN_PLAY),
        )

        game.created_at = datetime.fromisoformat(data["created_at"])
        game.updated_at = datetime.fromisoformat(data["updated_at"])
        game.phase = GamePhase(data["phase"])
        game.current_round = data["current_round"]
        game.current_player_index = data["current_player_index"]
        game.win_condition = data.get("win_condition", False)
        game.end_reason = EndReason(data["end_reason"]) if data.get("end_reason") else None
        game.final_scores = dict(data.get("final_scores", {}))
        game.last_action = data.get("last_action")
        game.trade_completed_this_turn = data.get("trade_completed_this_turn", False)

        game.players = [Player.from_dict(p) for p in data.get("players", [])]
        game.deck = [card_from_dict(c) for c in data.get("deck", [])]
        game.discard_pile = [card_from_dict(c) for c in data.get("discard_pile", [])]
        game.features_in_play = [FeatureCard.from_dict(f) for f in data.get("features_in_play", [])]
        game.feature_backlog = [FeatureCard.from_dict(f) for f in data.get("feature_backlog", [])]
        game.events = [GameEvent.from_dict(e) for e in data.get("events", [])]

        return game
