"""
Rule enforcement and validation for Silosoft.
"""
from typing import Optional

from silosoft.shared.constants import (
    MIN_PLAYERS, MAX_PLAYERS, MAX_HAND_SIZE, MAX_FEATURES_IN_PLAY
)
from silosoft.shared.enums import GamePhase

from .cards import Card, FeatureCard, ResourceCard
from .errors import ActionResult, ValidationResult
from .player import Player


class RuleEngine:
    """
    Enforces the table rules and validates actions.
    """

    def __init__(
        self,
        max_hand_size: int = MAX_HAND_SIZE,
        max_features_in_play: int = MAX_FEATURES_IN_PLAY
    ):
        self.max_hand_size = max_hand_size
        self.max_features_in_play = max_features_in_play

    def validate_mutation(self, phase: GamePhase, is_game_over: bool) -> ValidationResult:
        """Validate that the game accepts state-changing actions."""
        if phase == GamePhase.ENDED or is_game_over:
            return ValidationResult.failure(ActionResult.GAME_OVER, "Game is over")

        if phase != GamePhase.PLAYING:
            return ValidationResult.failure(
                ActionResult.GAME_NOT_STARTED, "Game has not started"
            )

        return ValidationResult.success()

    def validate_add_player(self, phase: GamePhase, player_count: int) -> ValidationResult:
        if phase not in (GamePhase.SETUP, GamePhase.LOBBY):
            return ValidationResult.failure(
                ActionResult.GAME_ALREADY_STARTED, "Game has already started"
            )

        if player_count >= MAX_PLAYERS:
            return ValidationResult.failure(
                ActionResult.TOO_MANY_PLAYERS,
                f"Game is full ({MAX_PLAYERS} players maximum)"
            )

        return ValidationResult.success()

    def validate_start(self, phase: GamePhase, player_count: int) -> ValidationResult:
        if phase not in (GamePhase.SETUP, GamePhase.LOBBY):
            return ValidationResult.failure(
                ActionResult.GAME_ALREADY_STARTED, "Game is not in setup or lobby phase"
            )

        if not MIN_PLAYERS <= player_count <= MAX_PLAYERS:
            return ValidationResult.failure(
                ActionResult.INVALID_PLAYER_COUNT,
                f"Need {MIN_PLAYERS}-{MAX_PLAYERS} players to start"
            )

        return ValidationResult.success()

    def validate_setup(self, phase: GamePhase, player_count: int, cards_dealt: bool) -> ValidationResult:
        """Validate that the deck can be built and dealt, which happens once."""
        start = self.validate_start(phase, player_count)
        if not start.valid:
            return start

        if cards_dealt:
            return ValidationResult.failure(
                ActionResult.GAME_ALREADY_STARTED, "Cards have already been dealt"
            )

        return ValidationResult.success()

    def validate_trade(
        self,
        from_player: Optional[Player],
        to_player: Optional[Player],
        card: Optional[Card],
        card_id: str,
        current_player_id: str,
        traded_this_turn: bool,
        current_round: int
    ) -> ValidationResult:
        """Validate handing a resource card to a teammate."""
        turn = self.validate_turn(from_player, current_player_id)
        if not turn.valid:
            return turn

        if to_player is None:
            return ValidationResult.failure(
                ActionResult.PLAYER_NOT_FOUND, "Receiving player not found"
            )

        if to_player.id == from_player.id:
            return ValidationResult.failure(ActionResult.INVALID_TRADE, "Cannot trade with yourself")

        if traded_this_turn:
            return ValidationResult.failure(
                ActionResult.TRADE_LIMIT_REACHED, "Only one trade is allowed per turn"
            )

        if card is None:
            return ValidationResult.failure(
                ActionResult.CARD_NOT_FOUND, f"Card {card_id} not found in player's hand"
            )

        if not isinstance(card, ResourceCard):
            return ValidationResult.failure(
                ActionResult.NOT_A_RESOURCE, f"Only resource cards can be traded, not {card_id}"
            )

        if not card.is_available(current_round):
            return ValidationResult.failure(
                ActionResult.RESOURCE_UNAVAILABLE, f"Resource {card_id} is not available to trade"
            )

        if not to_player.has_room(self.max_hand_size):
            return ValidationResult.failure(
                ActionResult.HAND_FULL,
                f"{to_player.name}'s hand is full ({self.max_hand_size} cards)"
            )

        return ValidationResult.success()

    def validate_turn(self, player: Optional[Player], current_player_id: str) -> ValidationResult:
        """Validate that the player exists and holds the turn."""
        if player is None:
            return ValidationResult.failure(ActionResult.PLAYER_NOT_FOUND, "Player not found")

        if player.id != current_player_id:
            return ValidationResult.failure(ActionResult.NOT_YOUR_TURN, "Not your turn")

        return ValidationResult.success()

    def validate_draw(
        self,
        player: Optional[Player],
        current_player_id: str,
        deck_size: int
    ) -> ValidationResult:
        """Validate if player can draw a card."""
        turn = self.validate_turn(player, current_player_id)
        if not turn.valid:
            return turn

        if deck_size == 0:
            return ValidationResult.failure(ActionResult.DECK_EMPTY, "Deck is empty")

        if not player.has_room(self.max_hand_size):
            return ValidationResult.failure(
                ActionResult.HAND_FULL,
                f"Player hand is full ({self.max_hand_size} cards)"
            )

        return ValidationResult.success()

    def validate_assign(
        self,
        player: Optional[Player],
        resource: Optional[Card],
        resource_id: str,
        feature: Optional[FeatureCard],
        feature_id: str,
        current_round: int
    ) -> ValidationResult:
        """Validate assigning a resource from a hand to a feature."""
        if player is None:
            return ValidationResult.failure(ActionResult.PLAYER_NOT_FOUND, "Player not found")

        if resource is None:
            return ValidationResult.failure(
                ActionResult.CARD_NOT_FOUND,
                f"Resource {resource_id} not found in player's hand"
            )

        if not isinstance(resource, ResourceCard):
            return ValidationResult.failure(
                ActionResult.NOT_A_RESOURCE, f"Card {resource_id} is not a resource card"
            )

        if feature is None:
            return ValidationResult.failure(
                ActionResult.FEATURE_NOT_FOUND, f"Feature {feature_id} not found"
            )

        if feature.completed:
            return ValidationResult.failure(
                ActionResult.FEATURE_COMPLETED, f"Feature {feature_id} is already completed"
            )

        if resource.assigned_to is not None:
            return ValidationResult.failure(
                ActionResult.RESOURCE_ASSIGNED,
                f"Resource {resource_id} is already assigned to {resource.assigned_to}"
            )

        if resource.is_unavailable(current_round):
            return ValidationResult.failure(
                ActionResult.RESOURCE_UNAVAILABLE,
                f"Resource {resource_id} is unavailable until round {resource.unavailable_until}"
            )

        if resource.is_expired(current_round):
            return ValidationResult.failure(
                ActionResult.RESOURCE_UNAVAILABLE,
                f"Contract for {resource_id} expired in round {resource.contractor_expires_at}"
            )

        return ValidationResult.success()

    def validate_end_turn(self, player: Optional[Player], current_player_id: str) -> ValidationResult:
        """Validate if player can end their turn."""
        return self.validate_turn(player, current_player_id)

    def has_table_room(self, features_in_play: int) -> bool:
        """Check if another feature fits in play."""
        return features_in_play < self.max_features_in_play
