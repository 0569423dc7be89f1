"""
Tests for event effect resolution.

Run with: python3 tests/test_game_engine/test_events.py
"""

import sys
import unittest
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from silosoft.game_engine import (
    ActionResult, StateError, ValidationError, EventCard, FeatureCard, Game, GameRng,
    ResourceCard
)
from silosoft.shared.enums import EventType


def make_game(names=("Alice", "Bob"), seed="event-tests") -> Game:
    game = Game(rng=GameRng(seed))
    for name in names:
        game.add_player(name)
    game.start_game()
    return game


def resource(card_id: str, role: str = "dev", level: str = "junior") -> ResourceCard:
    return ResourceCard(id=card_id, role=role, level=level)


def feature(card_id: str, requirements: dict, points: int = 5) -> FeatureCard:
    return FeatureCard(id=card_id, name=card_id.title(), requirements=requirements, points=points)


class EventTestCase(unittest.TestCase):
    """Two-player game with Alice to act."""

    def setUp(self):
        self.game = make_game()
        self.alice, self.bob = self.game.players

    def draw_event(self, event_type: str, effect: dict, card_id: str = "event-1") -> EventCard:
        event = EventCard.create(card_id, event_type, effect)
        self.game.deck.append(event)
        self.game.draw_card("player-1")
        return event


class TestDispatchLifecycle(EventTestCase):

    def test_event_discarded_after_resolution(self):
        event = self.draw_event("reorg", {})
        self.assertTrue(event.triggered)
        self.assertTrue(event.resolved)
        self.assertIs(self.game.discard_pile[-1], event)
        self.assertIsNone(self.alice.find_card(event.id))

    def test_resolved_event_cannot_be_applied_again(self):
        event = self.draw_event("reorg", {})
        with self.assertRaises(StateError) as ctx:
            self.game.apply_event_effect(event)
        self.assertEqual(ctx.exception.result, ActionResult.ALREADY_TRIGGERED)

    def test_apply_defaults_to_current_player(self):
        self.alice.hand = [resource("r1")]
        outcome = self.game.apply_event_effect(EventCard.create("e1", "layoff", {"count": 1}))
        self.assertEqual(outcome.affected_card_ids, ["r1"])
        self.assertEqual(self.game.last_action["type"], "event")
        self.assertEqual(self.game.last_action["player_id"], "player-1")

    def test_apply_to_unknown_player(self):
        with self.assertRaises(ValidationError):
            self.game.apply_event_effect(EventCard.create("e1", "reorg", {}), "player-9")

    def test_apply_takes_event_out_of_deck(self):
        event = EventCard.create("e1", "reorg", {})
        self.game.deck = [resource("r1"), event]
        self.game.apply_event_effect(event, "player-2")
        self.assertEqual([c.id for c in self.game.deck], ["r1"])
        self.assertIn(event, self.game.discard_pile)

    def test_rejected_apply_leaves_deck_intact(self):
        event = EventCard.create("e1", "reorg", {})
        event.triggered = True
        self.game.deck = [resource("r1"), event]

        with self.assertRaises(StateError) as ctx:
            self.game.apply_event_effect(event, "player-1")

        self.assertEqual(ctx.exception.result, ActionResult.ALREADY_TRIGGERED)
        self.assertEqual([c.id for c in self.game.deck], ["r1", "e1"])
        self.assertNotIn(event, self.game.discard_pile)
        self.assertFalse(event.resolved)


class TestLayoff(EventTestCase):

    def test_single_resource_laid_off(self):
        target = resource("r1")
        self.alice.hand = [feature("f1", {"dev": 2}), target]
        hand_before = len(self.alice.hand)

        self.draw_event("layoff", {"count": 1})

        self.assertEqual(len(self.alice.hand), hand_before - 1)
        self.assertIsNone(self.alice.find_card("r1"))
        self.assertIn(target, self.game.discard_pile)
        self.assertIsNotNone(self.alice.find_card("f1"))

    def test_count_capped_by_hand(self):
        self.alice.hand = [resource("r1"), resource("r2")]
        self.draw_event("layoff", {"count": 5})
        self.assertEqual(self.alice.resource_cards(), [])

    def test_other_players_untouched(self):
        self.bob.hand = [resource("r1")]
        self.draw_event("layoff", {"count": 2})
        self.assertEqual(len(self.bob.hand), 1)
        self.assertFalse(self.game.last_action["event"]["applied"])

    def test_locked_resources_included(self):
        locked = resource("r1")
        self.alice.hand = [locked]
        self.alice.make_resource_unavailable(locked, 3)
        self.draw_event("layoff", {"count": 1})
        self.assertEqual(self.alice.hand, [])
        self.assertEqual(self.alice.temporarily_unavailable, [])


class TestResourceLock(EventTestCase):

    def test_pto_locks_drawing_players_resource(self):
        self.alice.hand = [resource("r1")]
        self.bob.hand = [resource("r2")]

        self.draw_event("pto", {"duration": 1})

        self.assertEqual(self.alice.hand[0].unavailable_until, 2)
        self.assertEqual(self.alice.temporarily_unavailable, self.alice.hand)
        self.assertIsNone(self.bob.hand[0].unavailable_until)

    def test_falls_back_to_other_players(self):
        self.bob.hand = [resource("r2")]
        self.draw_event("plm", {"duration": 2})
        self.assertEqual(self.bob.hand[0].unavailable_until, 3)
        self.assertEqual(len(self.bob.temporarily_unavailable), 1)

    def test_count_respected(self):
        self.alice.hand = [resource(f"r{i}") for i in range(4)]
        self.draw_event("pto", {"duration": 1, "count": 2})
        locked = [r for r in self.alice.hand if r.unavailable_until is not None]
        self.assertEqual(len(locked), 2)

    def test_already_locked_skipped(self):
        locked = resource("r1")
        self.alice.hand = [locked, resource("r2")]
        self.alice.make_resource_unavailable(locked, 4)
        outcome_event = self.draw_event("pto", {"duration": 1})
        self.assertTrue(outcome_event.resolved)
        self.assertEqual(self.game.last_action["event"]["affected_card_ids"], ["r2"])
        self.assertEqual(locked.unavailable_until, 4)

    def test_nothing_to_lock(self):
        self.draw_event("pto", {"duration": 1})
        self.assertFalse(self.game.last_action["event"]["applied"])

    def test_lock_lifts_at_round_boundary(self):
        self.alice.hand = [resource("r1")]
        self.draw_event("pto", {"duration": 1})
        self.game.end_turn("player-1")
        self.game.end_turn("player-2")
        self.assertTrue(self.alice.hand[0].is_available(self.game.current_round))
        self.assertEqual(self.alice.temporarily_unavailable, [])


class TestCompetition(EventTestCase):

    def test_deadline_pressure(self):
        open_feature = feature("f1", {"dev": 3})
        self.game.features_in_play = [open_feature]

        self.draw_event(
            "competition",
            {"action": "deadline_pressure", "rounds": 2, "failure_penalty": 3, "success_bonus": 4},
        )

        self.assertEqual(open_feature.deadline, 3)
        self.assertEqual(open_feature.deadline_penalty, 3)
        self.assertEqual(open_feature.deadline_bonus, 4)
        self.assertEqual(open_feature.requirements["dev"], 3)

    def test_role_escalation(self):
        first = feature("f1", {"dev": 3})
        second = feature("f2", {"pm": 2})
        self.game.features_in_play = [first, second]

        self.draw_event("competition", {"role": "ux", "additional": 2})

        self.assertEqual(first.requirements["ux"], 2)
        self.assertEqual(second.requirements["ux"], 2)
        self.assertIsNone(first.deadline)

    def test_hand_features_unaffected(self):
        in_hand = feature("f1", {"dev": 3})
        self.bob.hand = [in_hand]
        self.game.features_in_play = [feature("f2", {"pm": 2})]
        self.draw_event("competition", {"role": "dev"})
        self.assertEqual(in_hand.requirements["dev"], 3)


class TestBonus(EventTestCase):

    def test_draws_resources_from_deck(self):
        self.game.deck = [resource("r1"), feature("f9", {"dev": 1}), resource("r2"), resource("r3")]
        self.draw_event("bonus", {"count": 2})

        drawn = self.alice.resource_cards()
        self.assertEqual(len(drawn), 2)
        self.assertEqual(len(self.game.deck), 2)
        self.assertIn("f9", [c.id for c in self.game.deck])
        self.assertFalse({c.id for c in drawn} & {c.id for c in self.game.deck})

    def test_hand_cap(self):
        self.alice.hand = [resource(f"h{i}") for i in range(6)]
        self.game.deck = [resource("r1"), resource("r2"), resource("r3")]
        self.draw_event("bonus", {"count": 3})
        self.assertEqual(len(self.alice.hand), 7)
        self.assertEqual(len(self.game.deck), 2)

    def test_deck_without_resources(self):
        self.game.deck = [feature("f9", {"dev": 1})]
        self.draw_event("bonus", {"count": 2})
        self.assertEqual(self.alice.hand, [])
        self.assertEqual(len(self.game.deck), 1)


class TestReorg(EventTestCase):

    def test_hand_sizes_kept(self):
        game = make_game(names=("Alice", "Bob", "Carol"), seed="reorg")
        hands = [
            [resource("a1"), resource("a2"), feature("fa", {"dev": 1})],
            [resource("b1")],
            [resource("c1", "ux"), resource("c2", "pm")],
        ]
        for player, hand in zip(game.players, hands):
            player.hand = list(hand)
        before = sorted(c.id for hand in hands for c in hand)

        game.apply_event_effect(EventCard.create("e1", "reorg", {}))

        self.assertEqual([len(p.hand) for p in game.players], [3, 1, 2])
        self.assertEqual(sorted(c.id for p in game.players for c in p.hand), before)

    def test_locks_follow_cards(self):
        locked = resource("r1")
        self.alice.hand = [locked, resource("r2")]
        self.bob.hand = [resource("r3"), resource("r4")]
        self.alice.make_resource_unavailable(locked, 5)

        self.game.apply_event_effect(EventCard.create("e1", "reorg", {}))

        owner = self.alice if self.alice.find_card("r1") else self.bob
        other = self.bob if owner is self.alice else self.alice
        self.assertEqual([r.id for r in owner.temporarily_unavailable], ["r1"])
        self.assertEqual(other.temporarily_unavailable, [])

    def test_same_seed_same_redistribution(self):
        def redistribute(seed):
            game = make_game(seed=seed)
            game.players[0].hand = [resource(f"a{i}") for i in range(4)]
            game.players[1].hand = [resource(f"b{i}") for i in range(4)]
            game.apply_event_effect(EventCard.create("e1", "reorg", {}))
            return [[c.id for c in p.hand] for p in game.players]

        self.assertEqual(redistribute("same"), redistribute("same"))


class TestContractor(EventTestCase):

    def test_contractor_joins_locked(self):
        self.draw_event("contractor", {"role": "dev", "duration": 1})

        contractor = self.alice.resource_cards()[0]
        self.assertTrue(contractor.id.startswith("contractor-event-1-"))
        self.assertTrue(contractor.is_contractor)
        self.assertEqual(contractor.level, "senior")
        self.assertEqual(contractor.value, 3)
        self.assertEqual(contractor.unavailable_until, 2)
        self.assertEqual(contractor.contractor_expires_at, 5)
        self.assertEqual(self.alice.temporarily_unavailable, [contractor])

    def test_contractor_usable_after_onboarding(self):
        self.game.features_in_play = [feature("f1", {"ux": 2}), feature("f2", {"dev": 5})]
        self.draw_event("contractor", {"role": "ux", "level": "junior", "duration": 1})
        contractor = self.alice.resource_cards()[0]

        self.game.end_turn("player-1")
        self.game.end_turn("player-2")

        self.assertTrue(self.game.assign_resource("player-1", contractor.id, "f1"))

    def test_full_hand_skips_hire(self):
        self.alice.hand = [resource(f"h{i}") for i in range(6)]
        self.game.deck.append(EventCard.create("e1", "contractor", {"role": "pm"}))
        self.game.deck.append(resource("r-last"))
        self.game.draw_card("player-1")
        self.game.apply_event_effect(self.game.deck.pop(), "player-1")

        self.assertEqual(len(self.alice.hand), 7)
        self.assertFalse(self.game.last_action["applied"])
        self.assertFalse(any(c.id.startswith("contractor-") for c in self.alice.hand))

    def test_unique_ids(self):
        self.draw_event("contractor", {"role": "dev", "duration": 0}, card_id="event-a")
        self.draw_event("contractor", {"role": "dev", "duration": 0}, card_id="event-b")
        ids = [c.id for c in self.alice.resource_cards()]
        self.assertEqual(len(set(ids)), 2)
        self.assertTrue(all(self.alice.find_card(i).unavailable_until is None for i in ids))


class TestOutcome(EventTestCase):

    def test_outcome_serializes(self):
        self.alice.hand = [resource("r1")]
        outcome = self.game.apply_event_effect(EventCard.create("e1", "layoff", {"count": 1}))
        data = outcome.to_dict()
        self.assertEqual(data["event_type"], EventType.LAYOFF.value)
        self.assertTrue(data["applied"])
        self.assertEqual(data["affected_card_ids"], ["r1"])

    def test_no_effect_skips_handler(self):
        rng_position = self.game.rng.position
        outcome = self.game.apply_event_effect(
            EventCard.create("e1", "competition", {"role": "dev"})
        )

        self.assertFalse(outcome.applied)
        self.assertTrue(outcome.description.startswith("Nothing to apply"))
        self.assertEqual(outcome.affected_card_ids, [])
        self.assertEqual(self.game.rng.position, rng_position)
        self.assertTrue(self.game.discard_pile[-1].resolved)


def run_tests():
    """Run all event tests."""
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    test_classes = [
        TestDispatchLifecycle,
        TestLayoff,
        TestResourceLock,
        TestCompetition,
        TestBonus,
        TestReorg,
        TestContractor,
        TestOutcome,
    ]

    for test_class in test_classes:
        suite.addTests(loader.loadTestsFromTestCase(test_class))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return result.wasSuccessful()


if __name__ == "__main__":
    success = run_tests()
    sys.exit(0 if success else 1)
