"""
Tests for deck construction, shuffling and dealing.

Run with: python3 tests/test_game_engine/test_deck.py
"""

import copy
import sys
import unittest
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from silosoft.game_engine import (
    ActionResult, ValidationError, DeckBuilder, GameRng, Player,
    FeatureCard, ResourceCard, EventCard
)
from silosoft.shared.card_definitions import CARD_DEFINITIONS


def make_players(count: int) -> list[Player]:
    return [Player(id=f"player-{i + 1}", name=f"Player {i + 1}") for i in range(count)]


class TestDeckConstruction(unittest.TestCase):
    """Building cards from definitions."""

    def test_full_catalog(self):
        deck = DeckBuilder(GameRng("build")).create_deck()
        stats = DeckBuilder.validate_deck(deck)
        self.assertEqual(stats, {"features": 20, "resources": 27, "events": 12, "total": 59})

    def test_malformed_definitions_skipped(self):
        definitions = copy.deepcopy(CARD_DEFINITIONS)
        definitions["cards"]["features"].append(
            {"id": "feature-bad", "name": "Broken", "requirements": {"dev": 1}, "points": 4}
        )
        definitions["cards"]["resources"].append({"id": "resource-bad", "role": "qa", "level": "entry"})
        definitions["cards"]["events"].append({"id": "event-bad", "type": "layoff", "effect": {}})
        definitions["cards"]["events"].append({"type": "bonus"})

        builder = DeckBuilder(GameRng("build"), definitions)
        with self.assertLogs("silosoft.game_engine.deck", level="WARNING") as logs:
            deck = builder.create_deck()

        self.assertEqual(len(deck), 59)
        self.assertEqual(len(logs.output), 4)
        self.assertTrue(any("feature-bad" in line for line in logs.output))

    def test_get_card_by_id(self):
        builder = DeckBuilder(GameRng("build"))
        self.assertIsInstance(builder.get_card_by_id("feature-03"), FeatureCard)
        self.assertIsInstance(builder.get_card_by_id("resource-ux-senior-2"), ResourceCard)
        self.assertIsInstance(builder.get_card_by_id("event-reorg-1"), EventCard)

        with self.assertRaises(ValidationError) as ctx:
            builder.get_card_by_id("feature-99")
        self.assertEqual(ctx.exception.result, ActionResult.CARD_NOT_FOUND)

    def test_duplicate_ids_rejected(self):
        card = ResourceCard(id="resource-dev-entry-1", role="dev", level="entry")
        with self.assertRaises(ValidationError):
            DeckBuilder.validate_deck([card, ResourceCard(id=card.id, role="dev", level="entry")])

    def test_composition(self):
        deck = DeckBuilder(GameRng("build")).create_deck()
        composition = DeckBuilder.deck_composition(deck)
        self.assertEqual(composition["features"]["basic"], 5)
        self.assertEqual(composition["features"]["epic"], 6)
        self.assertEqual(composition["resources"]["dev"]["entry"], 4)
        self.assertEqual(composition["resources"]["total"], 27)
        self.assertEqual(composition["events"]["competition"], 2)
        self.assertEqual(composition["total"], 59)


class TestShuffle(unittest.TestCase):
    """Fisher-Yates shuffle through the game RNG."""

    def test_input_untouched(self):
        builder = DeckBuilder(GameRng("shuffle"))
        deck = builder.create_deck()
        original_ids = [c.id for c in deck]

        shuffled = builder.shuffle_deck(deck)

        self.assertEqual([c.id for c in deck], original_ids)
        self.assertEqual(sorted(c.id for c in shuffled), sorted(original_ids))
        self.assertNotEqual([c.id for c in shuffled], original_ids)

    def test_reproducible_with_seed(self):
        first = DeckBuilder(GameRng(42))
        second = DeckBuilder(GameRng(42))
        self.assertEqual(
            [c.id for c in first.shuffle_deck(first.create_deck())],
            [c.id for c in second.shuffle_deck(second.create_deck())],
        )


class TestDealing(unittest.TestCase):
    """Initial deal and its preconditions."""

    def setUp(self):
        self.builder = DeckBuilder(GameRng("deal"))

    def test_two_players_minimal_deck(self):
        deck = [
            FeatureCard(id="f1", name="A", requirements={"dev": 2}, points=3),
            FeatureCard(id="f2", name="B", requirements={"pm": 2}, points=3),
        ] + [
            ResourceCard(id=f"r{i}", role="dev", level="entry") for i in range(6)
        ]
        players = make_players(2)

        remaining = self.builder.deal_initial_cards(deck, players)

        for player in players:
            self.assertEqual(len(player.feature_cards()), 1)
            self.assertEqual(len(player.hand), 4)
        self.assertEqual(remaining, [])
        self.assertEqual(len(deck), 8)

    def test_remaining_deck_excludes_dealt(self):
        deck = self.builder.create_deck()
        players = make_players(4)

        remaining = self.builder.deal_initial_cards(deck, players)

        dealt = [c.id for p in players for c in p.hand]
        self.assertEqual(len(dealt), 16)
        self.assertEqual(len(remaining), 59 - 16)
        self.assertFalse(set(dealt) & {c.id for c in remaining})

    def test_too_few_players(self):
        with self.assertRaises(ValidationError) as ctx:
            self.builder.deal_initial_cards(self.builder.create_deck(), make_players(1))
        self.assertEqual(ctx.exception.result, ActionResult.INVALID_PLAYER_COUNT)

    def test_too_many_players(self):
        with self.assertRaises(ValidationError):
            self.builder.deal_initial_cards(self.builder.create_deck(), make_players(5))

    def test_players_must_be_a_list(self):
        with self.assertRaises(ValidationError):
            self.builder.deal_initial_cards(self.builder.create_deck(), "player-1,player-2")

    def test_insufficient_features(self):
        deck = [FeatureCard(id="f1", name="A", requirements={"dev": 2}, points=3)] + [
            ResourceCard(id=f"r{i}", role="dev", level="entry") for i in range(10)
        ]
        players = make_players(2)

        with self.assertRaises(ValidationError) as ctx:
            self.builder.deal_initial_cards(deck, players)

        self.assertEqual(ctx.exception.result, ActionResult.INSUFFICIENT_FEATURES)
        self.assertTrue(all(not p.hand for p in players))

    def test_insufficient_resources(self):
        deck = [
            FeatureCard(id="f1", name="A", requirements={"dev": 2}, points=3),
            FeatureCard(id="f2", name="B", requirements={"pm": 2}, points=3),
            ResourceCard(id="r1", role="dev", level="entry"),
        ]
        with self.assertRaises(ValidationError) as ctx:
            self.builder.deal_initial_cards(deck, make_players(2))
        self.assertEqual(ctx.exception.result, ActionResult.INSUFFICIENT_RESOURCES)

    def test_create_game_deck(self):
        players = make_players(3)
        game_deck = self.builder.create_game_deck(players)

        self.assertEqual(game_deck.total_cards, 59)
        self.assertEqual(game_deck.dealt_cards, 12)
        self.assertEqual(game_deck.remaining_cards, 47)
        self.assertEqual(len(game_deck.deck), 47)


def run_tests():
    """Run all deck tests."""
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    test_classes = [
        TestDeckConstruction,
        TestShuffle,
        TestDealing,
    ]

    for test_class in test_classes:
        suite.addTests(loader.loadTestsFromTestCase(test_class))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return result.wasSuccessful()


if __name__ == "__main__":
    success = run_tests()
    sys.exit(0 if success else 1)
