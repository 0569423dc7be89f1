"""
Feature, Resource and Event cards and the typed event effect payloads.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from silosoft.shared.constants import (
    LEVEL_VALUES, POINT_COMPLEXITY, ROLE_NAMES, LEVEL_NAMES, EVENT_ACTIONS
)
from silosoft.shared.enums import CardKind, Role, Level, Complexity, EventType

from .errors import ActionResult, ValidationError, ResourceConflictError, StateError


ROLES = [role.value for role in Role]


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _is_non_negative_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _invalid_card(message: str) -> ValidationError:
    return ValidationError(ActionResult.INVALID_CARD, message)


def _invalid_effect(message: str) -> ValidationError:
    return ValidationError(ActionResult.INVALID_EFFECT, message)


# =========== Resource Cards ===========

@dataclass
class ResourceCard:
    """A team member with a role and seniority level."""

    id: str
    role: str
    level: str
    name: str = ""
    assigned_to: Optional[str] = None
    unavailable_until: Optional[int] = None
    contributed_by: Optional[str] = None
    is_contractor: bool = False
    contractor_expires_at: Optional[int] = None

    card_type = CardKind.RESOURCE

    def __post_init__(self):
        if not self.id:
            raise _invalid_card("ResourceCard must have an id")
        if self.role not in ROLES:
            raise _invalid_card(f"Role must be one of: {', '.join(ROLES)}")
        if self.level not in LEVEL_VALUES:
            raise _invalid_card(f"Level must be one of: {', '.join(LEVEL_VALUES)}")

    @property
    def value(self) -> int:
        """Skill value, fixed by level."""
        return LEVEL_VALUES[self.level]

    @property
    def display_name(self) -> str:
        return self.name or f"{LEVEL_NAMES[self.level]} {ROLE_NAMES[self.role]}"

    @property
    def is_assigned(self) -> bool:
        return self.assigned_to is not None

    def is_unavailable(self, current_round: int) -> bool:
        """Check if the card is locked for the given round."""
        return self.unavailable_until is not None and self.unavailable_until > current_round

    def is_expired(self, current_round: int) -> bool:
        """Check if a contractor's contract has run out."""
        return self.contractor_expires_at is not None and current_round >= self.contractor_expires_at

    def is_available(self, current_round: int) -> bool:
        """Check if the card can be assigned this round."""
        if self.is_expired(current_round) or self.is_unavailable(current_round):
            return False
        return not self.is_assigned

    def assign(self, feature_id: str, player_id: Optional[str] = None) -> None:
        """Attach the card to a feature."""
        if self.assigned_to is not None:
            raise ResourceConflictError(
                ActionResult.RESOURCE_ASSIGNED,
                f"Resource {self.id} is already assigned to {self.assigned_to}"
            )
        self.assigned_to = feature_id
        self.contributed_by = player_id

    def unassign(self) -> None:
        if self.assigned_to is None:
            raise ResourceConflictError(
                ActionResult.RESOURCE_ASSIGNED, f"Resource {self.id} is not assigned"
            )
        self.assigned_to = None
        self.contributed_by = None

    def make_unavailable(self, until_round: int) -> None:
        """Lock the card until the given round."""
        if self.assigned_to is not None:
            raise ResourceConflictError(
                ActionResult.RESOURCE_ASSIGNED,
                f"Cannot make assigned resource {self.id} unavailable"
            )
        self.unavailable_until = until_round

    def make_available(self) -> None:
        self.unavailable_until = None

    def to_dict(self) -> dict:
        """Convert card to dictionary."""
        return {
            "card_type": self.card_type.value,
            "id": self.id,
            "role": self.role,
            "level": self.level,
            "value": self.value,
            "name": self.name,
            "assigned_to": self.assigned_to,
            "unavailable_until": self.unavailable_until,
            "contributed_by": self.contributed_by,
            "is_contractor": self.is_contractor,
            "contractor_expires_at": self.contractor_expires_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ResourceCard":
        """Create card from dictionary; a stated value must match the level."""
        if "value" in data and data.get("level") in LEVEL_VALUES:
            if data["value"] != LEVEL_VALUES[data["level"]]:
                raise _invalid_card(
                    f"Value {data['value']} does not match level {data['level']}"
                )
        return cls(
            id=data.get("id", ""),
            role=data.get("role", ""),
            level=data.get("level", ""),
            name=data.get("name", ""),
            assigned_to=data.get("assigned_to"),
            unavailable_until=data.get("unavailable_until"),
            contributed_by=data.get("contributed_by"),
            is_contractor=data.get("is_contractor", False),
            contractor_expires_at=data.get("contractor_expires_at"),
        )


# =========== Feature Cards ===========

@dataclass
class FeatureCard:
    """A project that needs per-role resource value to complete."""

    id: str
    name: str
    requirements: Dict[str, int]
    points: int
    description: str = ""
    assigned_resources: List[ResourceCard] = field(default_factory=list)
    completed: bool = False
    completed_round: Optional[int] = None
    completion_score: Optional[dict] = None

    # Deadline pressure from competition events
    deadline: Optional[int] = None
    deadline_penalty: int = 0
    deadline_bonus: int = 0
    deadline_missed: bool = False

    card_type = CardKind.FEATURE

    def __post_init__(self):
        if not self.id or not self.name:
            raise _invalid_card("FeatureCard must have id, name, requirements, and points")
        if not isinstance(self.requirements, dict):
            raise _invalid_card("Requirements must be a mapping of role to value")

        unknown = set(self.requirements) - set(ROLES)
        if unknown:
            raise _invalid_card(f"Unknown roles in requirements: {', '.join(sorted(unknown))}")

        normalized = {role: self.requirements.get(role, 0) for role in ROLES}
        if not all(_is_non_negative_int(v) for v in normalized.values()):
            raise _invalid_card("Requirements must be non-negative integers")
        if sum(normalized.values()) == 0:
            raise _invalid_card("Feature must require at least one resource")
        self.requirements = normalized

        if self.points not in POINT_COMPLEXITY:
            raise _invalid_card("FeatureCard points must be 3, 5, or 8")

    @property
    def complexity(self) -> Complexity:
        return Complexity(POINT_COMPLEXITY[self.points])

    @property
    def total_required(self) -> int:
        return sum(self.requirements.values())

    def assigned_value(self, role: str) -> int:
        """Sum of assigned resource value for one role."""
        return sum(r.value for r in self.assigned_resources if r.role == role)

    def remaining_requirements(self) -> Dict[str, int]:
        return {
            role: max(0, self.requirements[role] - self.assigned_value(role))
            for role in ROLES
        }

    def meets_requirements(self) -> bool:
        """Check if every role's assigned value meets its requirement."""
        return all(
            self.assigned_value(role) >= required
            for role, required in self.requirements.items()
        )

    def completion_percentage(self) -> float:
        achieved = sum(
            min(self.assigned_value(role), required)
            for role, required in self.requirements.items()
        )
        return min(100.0, round(achieved / self.total_required * 100, 2))

    def contributors(self) -> List[str]:
        """Player ids that contributed resources, in first-contribution order."""
        seen = []
        for resource in self.assigned_resources:
            if resource.contributed_by and resource.contributed_by not in seen:
                seen.append(resource.contributed_by)
        return seen

    def to_dict(self) -> dict:
        """Convert card to dictionary."""
        return {
            "card_type": self.card_type.value,
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "requirements": dict(self.requirements),
            "points": self.points,
            "complexity": self.complexity.value,
            "assigned_resources": [r.to_dict() for r in self.assigned_resources],
            "completed": self.completed,
            "completed_round": self.completed_round,
            "completion_score": self.completion_score,
            "deadline": self.deadline,
            "deadline_penalty": self.deadline_penalty,
            "deadline_bonus": self.deadline_bonus,
            "deadline_missed": self.deadline_missed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FeatureCard":
        """Create card from dictionary."""
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            requirements=data.get("requirements"),
            points=data.get("points"),
            description=data.get("description", ""),
            assigned_resources=[
                ResourceCard.from_dict(r) for r in data.get("assigned_resources", [])
            ],
            completed=data.get("completed", False),
            completed_round=data.get("completed_round"),
            completion_score=data.get("completion_score"),
            deadline=data.get("deadline"),
            deadline_penalty=data.get("deadline_penalty", 0),
            deadline_bonus=data.get("deadline_bonus", 0),
            deadline_missed=data.get("deadline_missed", False),
        )


# =========== Event Effects ===========

@dataclass(frozen=True)
class LayoffEffect:
    """Discard random unassigned resources from the drawing player."""
    count: int

    def to_dict(self) -> dict:
        return {"action": "random_discard", "count": self.count}


@dataclass(frozen=True)
class ResourceLockEffect:
    """PTO/PLM: lock random resources for a number of rounds."""
    duration: int
    count: int = 1

    def to_dict(self) -> dict:
        return {"action": "resource_lock", "duration": self.duration, "count": self.count}


@dataclass(frozen=True)
class DeadlinePressureEffect:
    """Competition: stamp a deadline on every open feature."""
    rounds: int
    failure_penalty: int
    success_bonus: int = 0

    def to_dict(self) -> dict:
        return {
            "action": "deadline_pressure",
            "rounds": self.rounds,
            "failure_penalty": self.failure_penalty,
            "success_bonus": self.success_bonus,
        }


@dataclass(frozen=True)
class RoleEscalationEffect:
    """Competition: raise one role's requirement on every open feature."""
    role: str
    additional: int = 1

    def to_dict(self) -> dict:
        return {"action": "role_escalation", "role": self.role, "additional": self.additional}


@dataclass(frozen=True)
class BonusDrawEffect:
    """Draw random resources from the deck."""
    count: int

    def to_dict(self) -> dict:
        return {"action": "draw_resources", "count": self.count}


@dataclass(frozen=True)
class ReorgEffect:
    """Redistribute every hand across the team."""

    def to_dict(self) -> dict:
        return {"action": "reassign_resources"}


@dataclass(frozen=True)
class ContractorEffect:
    """Add a temporary contractor resource to the drawing player's hand."""
    role: str
    level: str = Level.SENIOR.value
    duration: int = 1
    contract_rounds: int = 3

    def to_dict(self) -> dict:
        return {
            "action": "add_wildcard",
            "role": self.role,
            "level": self.level,
            "duration": self.duration,
            "contract_rounds": self.contract_rounds,
        }


EventEffect = Union[
    LayoffEffect, ResourceLockEffect, DeadlinePressureEffect, RoleEscalationEffect,
    BonusDrawEffect, ReorgEffect, ContractorEffect,
]


def _param(params: dict, name: str, alias: str | None = None, default=None):
    if name in params:
        return params[name]
    if alias and alias in params:
        return params[alias]
    return default


def parse_effect(event_type: str, params) -> EventEffect:
    """
    Validate raw effect parameters for an event type.

    Args:
        event_type: One of the EventType values
        params: Raw parameter mapping from a card definition or snapshot

    Returns:
        The typed effect payload

    Raises:
        ValidationError: Unknown type or malformed parameters
    """
    try:
        etype = EventType(event_type)
    except ValueError:
        raise _invalid_card(
            f"Event type must be one of: {', '.join(t.value for t in EventType)}"
        ) from None

    if not isinstance(params, dict):
        raise _invalid_effect("Effect must be a mapping")

    action = params.get("action")
    if etype != EventType.COMPETITION and action is not None and action != EVENT_ACTIONS[etype.value]:
        raise _invalid_effect(
            f"{etype.value} event must have action: {EVENT_ACTIONS[etype.value]}"
        )

    if etype == EventType.LAYOFF:
        count = params.get("count")
        if not _is_positive_int(count):
            raise _invalid_effect("Layoff event must specify count")
        return LayoffEffect(count=count)

    if etype in (EventType.PTO, EventType.PLM):
        duration = params.get("duration")
        count = params.get("count", 1)
        if not _is_positive_int(duration):
            raise _invalid_effect(f"{etype.value} event must specify duration")
        if not _is_positive_int(count):
            raise _invalid_effect(f"{etype.value} event count must be a positive integer")
        return ResourceLockEffect(duration=duration, count=count)

    if etype == EventType.COMPETITION:
        if action == EVENT_ACTIONS["competition"]:
            rounds = params.get("rounds")
            penalty = _param(params, "failure_penalty", "failurePenalty")
            bonus = _param(params, "success_bonus", "successBonus", 0)
            if not _is_positive_int(rounds):
                raise _invalid_effect("Competition event must specify rounds")
            if not isinstance(penalty, int) or isinstance(penalty, bool):
                raise _invalid_effect("Competition event must specify failure_penalty")
            if not isinstance(bonus, int) or isinstance(bonus, bool):
                raise _invalid_effect("Competition success_bonus must be an integer")
            return DeadlinePressureEffect(rounds=rounds, failure_penalty=penalty, success_bonus=bonus)

        role = params.get("role")
        additional = params.get("additional", 1)
        if role not in ROLES:
            raise _invalid_effect(f"Competition role must be one of: {', '.join(ROLES)}")
        if not _is_positive_int(additional):
            raise _invalid_effect("Competition additional must be a positive integer")
        return RoleEscalationEffect(role=role, additional=additional)

    if etype == EventType.BONUS:
        count = params.get("count")
        if not _is_positive_int(count):
            raise _invalid_effect("Bonus event must specify count")
        return BonusDrawEffect(count=count)

    if etype == EventType.REORG:
        return ReorgEffect()

    if etype == EventType.CONTRACTOR:
        role = params.get("role")
        level = params.get("level", Level.SENIOR.value)
        duration = params.get("duration", 1)
        contract_rounds = _param(params, "contract_rounds", "contractRounds", 3)
        if role not in ROLES:
            raise _invalid_effect(f"Contractor role must be one of: {', '.join(ROLES)}")
        if level not in LEVEL_VALUES:
            raise _invalid_effect(f"Contractor level must be one of: {', '.join(LEVEL_VALUES)}")
        if not _is_non_negative_int(duration):
            raise _invalid_effect("Contractor duration must be a non-negative integer")
        if not _is_positive_int(contract_rounds):
            raise _invalid_effect("Contractor contract_rounds must be a positive integer")
        return ContractorEffect(
            role=role, level=level, duration=duration, contract_rounds=contract_rounds
        )

    raise _invalid_card(f"Unhandled event type: {etype.value}")


# =========== Event Cards ===========

@dataclass
class EventCard:
    """An HR disruption with a trigger/resolve lifecycle."""

    id: str
    type: EventType
    effect: EventEffect
    name: str = ""
    description: str = ""
    triggered: bool = False
    resolved: bool = False

    card_type = CardKind.EVENT

    def __post_init__(self):
        if not self.id:
            raise _invalid_card("EventCard must have an id")
        self.type = EventType(self.type)

    @classmethod
    def create(cls, card_id: str, event_type: str, effect_params: dict,
               name: str = "", description: str = "") -> "EventCard":
        """Build an event card from raw effect parameters."""
        effect = parse_effect(event_type, effect_params)
        return cls(
            id=card_id,
            type=EventType(event_type),
            effect=effect,
            name=name,
            description=description,
        )

    def ensure_pending(self) -> None:
        """
        Raises:
            StateError: The event has already been triggered
        """
        if self.triggered:
            raise StateError(
                ActionResult.ALREADY_TRIGGERED, f"Event {self.id} has already been triggered"
            )

    def trigger(self) -> None:
        self.ensure_pending()
        self.triggered = True

    def resolve(self) -> None:
        if not self.triggered:
            raise StateError(
                ActionResult.NOT_TRIGGERED, f"Event {self.id} must be triggered before resolving"
            )
        if self.resolved:
            raise StateError(
                ActionResult.ALREADY_RESOLVED, f"Event {self.id} has already been resolved"
            )
        self.resolved = True

    def effect_description(self) -> str:
        """Human readable summary of the effect."""
        effect = self.effect
        if isinstance(effect, LayoffEffect):
            return f"Randomly discard {effect.count} resource card(s)"
        if isinstance(effect, ResourceLockEffect):
            return f"{effect.count} resource(s) unavailable for {effect.duration} round(s)"
        if isinstance(effect, DeadlinePressureEffect):
            return (f"Complete features within {effect.rounds} rounds "
                    f"or lose {abs(effect.failure_penalty)} points")
        if isinstance(effect, RoleEscalationEffect):
            return f"All open features require {effect.additional} more {effect.role}"
        if isinstance(effect, BonusDrawEffect):
            return f"Draw {effect.count} extra resource cards"
        if isinstance(effect, ReorgEffect):
            return "Reassign cards between teammates"
        if isinstance(effect, ContractorEffect):
            return f"Add a {effect.level} {effect.role} contractor after {effect.duration} round(s)"
        return self.description

    def can_be_applied(self, game, player) -> bool:
        """
        Check whether the effect would change anything.

        Args:
            game: Game the event resolves in
            player: Player who drew the event, with the event already out of hand
        """
        effect = self.effect
        current_round = game.current_round
        if isinstance(effect, LayoffEffect):
            return any(not r.is_assigned for r in player.resource_cards())
        if isinstance(effect, ResourceLockEffect):
            return any(
                r.is_available(current_round) and r.unavailable_until is None
                for p in game.players for r in p.resource_cards()
            )
        if isinstance(effect, (DeadlinePressureEffect, RoleEscalationEffect)):
            return any(not f.completed for f in game.features_in_play)
        if isinstance(effect, BonusDrawEffect):
            return (player.has_room(game.max_hand_size)
                    and any(isinstance(c, ResourceCard) for c in game.deck))
        if isinstance(effect, ReorgEffect):
            return any(p.hand for p in game.players)
        if isinstance(effect, ContractorEffect):
            return player.has_room(game.max_hand_size)
        return False

    def to_dict(self) -> dict:
        """Convert card to dictionary."""
        return {
            "card_type": self.card_type.value,
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "description": self.description,
            "effect": self.effect.to_dict(),
            "triggered": self.triggered,
            "resolved": self.resolved,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EventCard":
        """Create card from dictionary."""
        card = cls.create(
            data.get("id", ""),
            data.get("type", ""),
            data.get("effect"),
            name=data.get("name", ""),
            description=data.get("description", ""),
        )
        card.triggered = data.get("triggered", False)
        card.resolved = data.get("resolved", False)
        return card


Card = Union[FeatureCard, ResourceCard, EventCard]


def card_from_dict(data: dict) -> Card:
    """Decode any card from its dictionary form using the card_type discriminant."""
    kind = data.get("card_type")
    if kind == CardKind.FEATURE.value:
        return FeatureCard.from_dict(data)
    if kind == CardKind.RESOURCE.value:
        return ResourceCard.from_dict(data)
    if kind == CardKind.EVENT.value:
        return EventCard.from_dict(data)
    raise _invalid_card(f"Unknown card_type: {kind!r}")
