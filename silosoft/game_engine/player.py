"""
Player state management.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from silosoft.shared.constants import MAX_HAND_SIZE

from .cards import Card, FeatureCard, ResourceCard, card_from_dict
from .errors import ActionResult, CapacityError, ValidationError


@dataclass
class Player:
    """Represents a player in the game."""

    id: str
    name: str
    hand: List[Card] = field(default_factory=list)
    score: int = 0

    # Resources in hand that are locked by PTO/PLM or contractor onboarding
    temporarily_unavailable: List[ResourceCard] = field(default_factory=list)

    # Session tracking, owned by the host
    is_connected: bool = False
    is_ready: bool = False

    def has_room(self, limit: int = MAX_HAND_SIZE) -> bool:
        """Check if another card fits in the hand."""
        return len(self.hand) < limit

    def add_card(self, card: Card, limit: int = MAX_HAND_SIZE) -> None:
        """
        Add a card to the hand.

        Raises:
            CapacityError: The hand is at its limit
        """
        if not self.has_room(limit):
            raise CapacityError(
                ActionResult.HAND_FULL,
                f"Cannot add card: hand size limit of {limit} reached"
            )
        self.hand.append(card)

    def find_card(self, card_id: str) -> Optional[Card]:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None

    def remove_card(self, card_id: str) -> Card:
        """Remove and return a card from the hand."""
        for index, card in enumerate(self.hand):
            if card.id == card_id:
                removed = self.hand.pop(index)
                if isinstance(removed, ResourceCard):
                    self._forget_unavailable(removed.id)
                return removed
        raise ValidationError(
            ActionResult.CARD_NOT_FOUND, f"Card {card_id} not found in {self.name}'s hand"
        )

    def resource_cards(self) -> List[ResourceCard]:
        return [card for card in self.hand if isinstance(card, ResourceCard)]

    def feature_cards(self) -> List[FeatureCard]:
        return [card for card in self.hand if isinstance(card, FeatureCard)]

    def add_score(self, points: int) -> int:
        """Add points; the score never drops below zero."""
        self.score = max(0, self.score + points)
        return self.score

    def make_resource_unavailable(self, resource: ResourceCard, until_round: int) -> None:
        """Lock a resource in this player's hand until the given round."""
        resource.make_unavailable(until_round)
        if all(r.id != resource.id for r in self.temporarily_unavailable):
            self.temporarily_unavailable.append(resource)

    def restore_available_resources(self, current_round: int) -> List[ResourceCard]:
        """
        Unlock resources whose lock has run out.

        Returns:
            The resources that became available
        """
        restored = []
        for resource in self.resource_cards():
            if resource.unavailable_until is not None and resource.unavailable_until <= current_round:
                resource.make_available()
                restored.append(resource)
        self.sync_unavailable()
        return restored

    def sync_unavailable(self) -> None:
        """Rebuild the unavailable list from the cards currently in hand."""
        self.temporarily_unavailable = [
            r for r in self.resource_cards() if r.unavailable_until is not None
        ]

    def _forget_unavailable(self, card_id: str) -> None:
        self.temporarily_unavailable = [
            r for r in self.temporarily_unavailable if r.id != card_id
        ]

    def to_dict(self) -> dict:
        """Convert player to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "hand": [card.to_dict() for card in self.hand],
            "score": self.score,
            "temporarily_unavailable": [r.id for r in self.temporarily_unavailable],
            "is_connected": self.is_connected,
            "is_ready": self.is_ready,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Player":
        """Create player from dictionary."""
        player = cls(
            id=data["id"],
            name=data["name"],
            hand=[card_from_dict(c) for c in data.get("hand", [])],
            score=data.get("score", 0),
            is_connected=data.get("is_connected", False),
            is_ready=data.get("is_ready", False),
        )
        locked = set(data.get("temporarily_unavailable", []))
        player.temporarily_unavailable = [
            r for r in player.resource_cards() if r.id in locked
        ]
        return player
