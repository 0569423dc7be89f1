"""
Deck construction, shuffling and the initial deal.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from silosoft.shared.card_definitions import load_card_definitions
from silosoft.shared.constants import MIN_PLAYERS, MAX_PLAYERS, INITIAL_HAND_SIZE
from silosoft.shared.enums import Role, Level, Complexity, EventType

from .cards import Card, FeatureCard, ResourceCard, EventCard
from .errors import ActionResult, GameError, ValidationError
from .player import Player
from .rng import GameRng


logger = logging.getLogger(__name__)


@dataclass
class GameDeck:
    """Result of building and dealing a full game deck."""
    deck: List[Card]
    total_cards: int
    dealt_cards: int
    remaining_cards: int

    def to_dict(self) -> dict:
        return {
            "total_cards": self.total_cards,
            "dealt_cards": self.dealt_cards,
            "remaining_cards": self.remaining_cards,
        }


def _definition_id(card_data) -> str:
    if isinstance(card_data, dict):
        return str(card_data.get("id", "<missing id>"))
    return "<malformed definition>"


class DeckBuilder:
    """Builds card instances from definitions and deals them."""

    def __init__(self, rng: GameRng, definitions: Optional[dict] = None):
        """
        Initialize the builder.

        Args:
            rng: The game's random stream; every shuffle draws from it
            definitions: Card catalog; the built-in catalog when omitted
        """
        self.rng = rng
        self.definitions = definitions if definitions is not None else load_card_definitions()

    @property
    def _cards(self) -> dict:
        return self.definitions.get("cards", {})

    # =========== Card Construction ===========

    @staticmethod
    def create_feature_card(card_data: dict) -> FeatureCard:
        return FeatureCard(
            id=card_data["id"],
            name=card_data["name"],
            requirements=card_data["requirements"],
            points=card_data["points"],
            description=card_data.get("description", ""),
        )

    @staticmethod
    def create_resource_card(card_data: dict) -> ResourceCard:
        return ResourceCard.from_dict(card_data)

    @staticmethod
    def create_event_card(card_data: dict) -> EventCard:
        return EventCard.create(
            card_data["id"],
            card_data["type"],
            card_data["effect"],
            name=card_data.get("name", ""),
            description=card_data.get("description", ""),
        )

    def create_deck(self) -> List[Card]:
        """
        Instantiate one card per definition.

        Malformed definitions are logged and skipped.
        """
        deck: List[Card] = []
        pools = (
            ("feature", self._cards.get("features", []), self.create_feature_card),
            ("resource", self._cards.get("resources", []), self.create_resource_card),
            ("event", self._cards.get("events", []), self.create_event_card),
        )

        for kind, definitions, factory in pools:
            for card_data in definitions:
                try:
                    deck.append(factory(card_data))
                except (GameError, KeyError, TypeError, ValueError) as e:
                    logger.warning(f"Skipping malformed {kind} card {_definition_id(card_data)}: {e}")

        return deck

    def get_card_by_id(self, card_id: str) -> Card:
        """Build a fresh card from its definition."""
        for card_data in self._cards.get("features", []):
            if card_data.get("id") == card_id:
                return self.create_feature_card(card_data)
        for card_data in self._cards.get("resources", []):
            if card_data.get("id") == card_id:
                return self.create_resource_card(card_data)
        for card_data in self._cards.get("events", []):
            if card_data.get("id") == card_id:
                return self.create_event_card(card_data)
        raise ValidationError(ActionResult.CARD_NOT_FOUND, f"Card with id {card_id} not found")

    # =========== Shuffling and Dealing ===========

    def shuffle_deck(self, deck: Sequence[Card]) -> List[Card]:
        """Fisher-Yates shuffle; returns a new list."""
        return self.rng.shuffle(deck)

    def deal_initial_cards(self, deck: Sequence[Card], players: Sequence[Player]) -> List[Card]:
        """
        Deal one feature to each player, then fill hands with resources.

        Args:
            deck: Cards to deal from (not mutated)
            players: 2-4 players receiving cards

        Returns:
            The cards left after dealing

        Raises:
            ValidationError: Bad player list, or not enough features/resources
        """
        if not isinstance(players, (list, tuple)) or not all(isinstance(p, Player) for p in players):
            raise ValidationError(ActionResult.INVALID_PLAYER_COUNT, "Players must be a list of players")

        if not MIN_PLAYERS <= len(players) <= MAX_PLAYERS:
            raise ValidationError(
                ActionResult.INVALID_PLAYER_COUNT,
                f"Must have {MIN_PLAYERS}-{MAX_PLAYERS} players"
            )

        working = self.shuffle_deck(deck)

        features = [card for card in working if isinstance(card, FeatureCard)]
        if len(features) < len(players):
            raise ValidationError(
                ActionResult.INSUFFICIENT_FEATURES,
                f"Not enough feature cards for all players ({len(features)} < {len(players)})"
            )

        resources = [card for card in working if isinstance(card, ResourceCard)]
        needed = sum(max(0, INITIAL_HAND_SIZE - len(p.hand) - 1) for p in players)
        if len(resources) < needed:
            raise ValidationError(
                ActionResult.INSUFFICIENT_RESOURCES,
                f"Not enough resource cards to deal ({len(resources)} < {needed})"
            )

        dealt_ids = set()

        for player, feature in zip(players, features):
            player.hand.append(feature)
            dealt_ids.add(feature.id)

        # Round-robin until every hand reaches the target size
        resource_iter = iter(resources)
        while any(len(p.hand) < INITIAL_HAND_SIZE for p in players):
            for player in players:
                if len(player.hand) < INITIAL_HAND_SIZE:
                    resource = next(resource_iter)
                    player.hand.append(resource)
                    dealt_ids.add(resource.id)

        return [card for card in working if card.id not in dealt_ids]

    def create_game_deck(self, players: Sequence[Player]) -> GameDeck:
        """Build the full deck, deal the initial hands and reshuffle the rest."""
        full_deck = self.create_deck()
        remaining = self.deal_initial_cards(full_deck, players)

        result = GameDeck(
            deck=self.shuffle_deck(remaining),
            total_cards=len(full_deck),
            dealt_cards=len(full_deck) - len(remaining),
            remaining_cards=len(remaining),
        )
        logger.debug(
            f"Dealt {result.dealt_cards} of {result.total_cards} cards to {len(players)} players"
        )
        return result

    # =========== Diagnostics ===========

    @staticmethod
    def deck_composition(deck: Sequence[Card]) -> Dict:
        """Count cards by variant and sub-type."""
        composition = {
            "features": {c.value: 0 for c in Complexity},
            "resources": {
                role.value: {level.value: 0 for level in Level} for role in Role
            },
            "events": {t.value: 0 for t in EventType},
            "contractors": 0,
            "total": len(deck),
        }
        composition["features"]["total"] = 0
        composition["resources"]["total"] = 0
        composition["events"]["total"] = 0

        for card in deck:
            if isinstance(card, FeatureCard):
                composition["features"][card.complexity.value] += 1
                composition["features"]["total"] += 1
            elif isinstance(card, ResourceCard):
                composition["resources"][card.role][card.level] += 1
                composition["resources"]["total"] += 1
                if card.is_contractor:
                    composition["contractors"] += 1
            elif isinstance(card, EventCard):
                composition["events"][card.type.value] += 1
                composition["events"]["total"] += 1
            else:
                raise ValidationError(ActionResult.INVALID_CARD, f"Unknown card {card!r}")

        return composition

    @staticmethod
    def validate_deck(deck: Sequence[Card]) -> Dict[str, int]:
        """
        Count cards per variant and reject duplicate ids.

        Raises:
            ValidationError: Unknown card object or duplicate id
        """
        stats = {"features": 0, "resources": 0, "events": 0, "total": len(deck)}
        seen = set()

        for card in deck:
            if isinstance(card, FeatureCard):
                stats["features"] += 1
            elif isinstance(card, ResourceCard):
                stats["resources"] += 1
            elif isinstance(card, EventCard):
                stats["events"] += 1
            else:
                raise ValidationError(ActionResult.INVALID_CARD, f"Invalid card type for {card!r}")

            if card.id in seen:
                raise ValidationError(ActionResult.INVALID_CARD, f"Duplicate card id {card.id}")
            seen.add(card.id)

        return stats
