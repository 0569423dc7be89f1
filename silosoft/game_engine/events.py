"""
Event card effect resolution.

A drawn event is triggered, taken out of the drawing player's hand,
handed to the handler for its type, resolved and discarded. Every random
pick goes through the game's GameRng so a seeded game replays the same
targets.
"""
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, List, Tuple

from silosoft.shared.constants import ROLE_NAMES, LEVEL_NAMES
from silosoft.shared.enums import EventType

from .cards import (
    EventCard, ResourceCard, LayoffEffect, ResourceLockEffect, DeadlinePressureEffect,
    RoleEscalationEffect, BonusDrawEffect, ContractorEffect
)
from .errors import ActionResult, ValidationError
from .player import Player

if TYPE_CHECKING:
    from .game import Game


logger = logging.getLogger(__name__)

# (applied, affected card ids, detail)
HandlerResult = Tuple[bool, List[str], str]


@dataclass
class EventOutcome:
    """What an event did to the game."""
    event_id: str
    event_type: EventType
    applied: bool
    description: str
    affected_card_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "applied": self.applied,
            "description": self.description,
            "affected_card_ids": list(self.affected_card_ids),
        }


class EventDispatcher:
    """Routes event cards to the handler for their type."""

    def __init__(self):
        self._handlers: Dict[EventType, Callable[["Game", EventCard, Player], HandlerResult]] = {
            EventType.LAYOFF: self._handle_layoff,
            EventType.PTO: self._handle_resource_lock,
            EventType.PLM: self._handle_resource_lock,
            EventType.COMPETITION: self._handle_competition,
            EventType.BONUS: self._handle_bonus,
            EventType.REORG: self._handle_reorg,
            EventType.CONTRACTOR: self._handle_contractor,
        }

    def dispatch(self, game: "Game", event: EventCard, player: Player) -> EventOutcome:
        """
        Run an event card through its full lifecycle.

        Args:
            game: Game being mutated
            event: The event card, drawn or applied directly
            player: Player who drew the event

        Returns:
            EventOutcome describing the effect

        Raises:
            StateError: The event was already triggered or resolved
        """
        handler = self._handlers.get(event.type)
        if handler is None:
            raise ValidationError(ActionResult.INVALID_CARD, f"No handler for event type {event.type}")

        event.trigger()
        if player.find_card(event.id) is event:
            player.remove_card(event.id)

        if event.can_be_applied(game, player):
            applied, affected, detail = handler(game, event, player)
        else:
            applied, affected, detail = False, [], f"Nothing to apply: {event.effect_description()}"

        event.resolve()
        game.discard_pile.append(event)

        if applied:
            logger.info(f"Game {game.id}: {event.type.value} event {event.id} resolved for {player.name}: {detail}")
        else:
            logger.warning(f"Game {game.id}: {event.type.value} event {event.id} had no effect: {detail}")

        return EventOutcome(
            event_id=event.id,
            event_type=event.type,
            applied=applied,
            description=detail,
            affected_card_ids=affected,
        )

    # =========== Handlers ===========

    def _handle_layoff(self, game: "Game", event: EventCard, player: Player) -> HandlerResult:
        effect: LayoffEffect = event.effect
        candidates = [r for r in player.resource_cards() if not r.is_assigned]
        laid_off = game.rng.sample(candidates, effect.count)
        for resource in laid_off:
            player.remove_card(resource.id)
            game.discard_pile.append(resource)

        return True, [r.id for r in laid_off], f"{player.name} lost {len(laid_off)} resource(s)"

    def _handle_resource_lock(self, game: "Game", event: EventCard, player: Player) -> HandlerResult:
        effect: ResourceLockEffect = event.effect
        current_round = game.current_round

        def lockable(owner: Player) -> List[Tuple[Player, ResourceCard]]:
            return [
                (owner, r) for r in owner.resource_cards()
                if r.is_available(current_round) and r.unavailable_until is None
            ]

        pool = lockable(player)
        if not pool:
            pool = [pair for p in game.players for pair in lockable(p)]

        until_round = current_round + effect.duration
        locked = game.rng.sample(pool, effect.count)
        for owner, resource in locked:
            owner.make_resource_unavailable(resource, until_round)

        return (
            True,
            [r.id for _, r in locked],
            f"{len(locked)} resource(s) unavailable until round {until_round}",
        )

    def _handle_competition(self, game: "Game", event: EventCard, player: Player) -> HandlerResult:
        effect = event.effect
        open_features = [f for f in game.features_in_play if not f.completed]

        if isinstance(effect, DeadlinePressureEffect):
            deadline = game.current_round + effect.rounds
            for feature in open_features:
                feature.deadline = deadline
                feature.deadline_penalty = effect.failure_penalty
                feature.deadline_bonus = effect.success_bonus
                feature.deadline_missed = False
            detail = f"{len(open_features)} feature(s) due by round {deadline}"
        else:
            escalation: RoleEscalationEffect = effect
            for feature in open_features:
                feature.requirements[escalation.role] += escalation.additional
            detail = (f"{len(open_features)} feature(s) need {escalation.additional} "
                      f"more {escalation.role}")

        return True, [f.id for f in open_features], detail

    def _handle_bonus(self, game: "Game", event: EventCard, player: Player) -> HandlerResult:
        effect: BonusDrawEffect = event.effect
        room = game.max_hand_size - len(player.hand)
        candidates = [c for c in game.deck if isinstance(c, ResourceCard)]

        drawn = game.rng.sample(candidates, min(effect.count, room))
        drawn_ids = {c.id for c in drawn}
        game.deck = [c for c in game.deck if c.id not in drawn_ids]
        for card in drawn:
            player.add_card(card, game.max_hand_size)

        return True, [c.id for c in drawn], f"{player.name} drew {len(drawn)} bonus resource(s)"

    def _handle_reorg(self, game: "Game", event: EventCard, player: Player) -> HandlerResult:
        sizes = [len(p.hand) for p in game.players]
        pool = [card for p in game.players for card in p.hand]

        shuffled = game.rng.shuffle(pool)
        start = 0
        for p, size in zip(game.players, sizes):
            p.hand = shuffled[start:start + size]
            p.sync_unavailable()
            start += size

        return True, [c.id for c in shuffled], f"{len(pool)} card(s) reassigned across the team"

    def _handle_contractor(self, game: "Game", event: EventCard, player: Player) -> HandlerResult:
        effect: ContractorEffect = event.effect
        serial = sum(1 for card_id in game.card_ids() if card_id.startswith("contractor-")) + 1
        until_round = game.current_round + effect.duration
        contractor = ResourceCard(
            id=f"contractor-{event.id}-{game.current_round}-{serial}",
            role=effect.role,
            level=effect.level,
            name=f"Contractor {LEVEL_NAMES[effect.level]} {ROLE_NAMES[effect.role]}",
            is_contractor=True,
            contractor_expires_at=until_round + effect.contract_rounds,
        )
        player.add_card(contractor, game.max_hand_size)
        if effect.duration > 0:
            player.make_resource_unavailable(contractor, until_round)

        return True, [contractor.id], f"{contractor.display_name} joins {player.name}'s team"
