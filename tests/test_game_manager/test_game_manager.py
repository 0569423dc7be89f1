"""
Tests for the game manager and game stores.

Run with: python3 tests/test_game_manager/test_game_manager.py
"""

import json
import logging
import sys
import tempfile
import threading
import unittest
from pathlib import Path
from unittest import mock

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from silosoft.config import Config, config
from silosoft.game_manager import GameManager, InMemoryGameStore, ManagedGame
from silosoft.game_engine import (
    ActionResult, DeckBuilder, EventCard, Game, GameNotFoundError,
    StateError, ValidationError
)
from silosoft.shared.card_definitions import CARD_DEFINITIONS
from silosoft.shared.enums import GamePhase


class TestInMemoryGameStore(unittest.TestCase):

    def test_put_get_delete(self):
        store = InMemoryGameStore()
        managed = ManagedGame(game=Game())

        store.put(managed)
        self.assertIs(store.get(managed.game_id), managed)
        self.assertEqual(store.list_ids(), [managed.game_id])

        self.assertTrue(store.delete(managed.game_id))
        self.assertFalse(store.delete(managed.game_id))
        self.assertIsNone(store.get(managed.game_id))

    def test_stores_are_isolated(self):
        first = GameManager(store=InMemoryGameStore())
        second = GameManager(store=InMemoryGameStore())

        game = first.create_game(["Alice", "Bob"], seed=1)

        self.assertIs(first.get_game(game.id), game)
        with self.assertRaises(GameNotFoundError):
            second.get_game(game.id)


class TestGameCreation(unittest.TestCase):

    def setUp(self):
        self.manager = GameManager()

    def test_create_game(self):
        game = self.manager.create_game(["Alice", "Bob", "Carol"], seed="create")

        self.assertEqual(game.phase, GamePhase.PLAYING)
        self.assertEqual([p.id for p in game.players], ["player-1", "player-2", "player-3"])
        self.assertEqual(game.rng.seed, "create")
        self.assertEqual(len(game.features_in_play), config.INITIAL_FEATURES_IN_PLAY)
        self.assertEqual(len(game.card_ids()), 59)
        self.assertEqual(self.manager.list_games()[0]["id"], game.id)

    def test_same_seed_same_deal(self):
        first = self.manager.create_game(["Alice", "Bob"], seed=99)
        second = self.manager.create_game(["Alice", "Bob"], seed=99)
        self.assertNotEqual(first.id, second.id)
        self.assertEqual([c.id for c in first.deck], [c.id for c in second.deck])
        self.assertEqual(
            [[c.id for c in p.hand] for p in first.players],
            [[c.id for c in p.hand] for p in second.players],
        )

    def test_configured_seed(self):
        with mock.patch.object(config, "GAME_SEED", "from-env"):
            game = self.manager.create_game(["Alice", "Bob"])
        self.assertEqual(game.rng.seed, "from-env")

    def test_player_count(self):
        for names in (["Solo"], ["A", "B", "C", "D", "E"], []):
            with self.assertRaises(ValidationError) as ctx:
                self.manager.create_game(names)
            self.assertEqual(ctx.exception.result, ActionResult.INVALID_PLAYER_COUNT)

    def test_blank_names(self):
        with self.assertRaises(ValidationError) as ctx:
            self.manager.create_game(["Alice", " "])
        self.assertEqual(ctx.exception.result, ActionResult.INVALID_PLAYER_NAME)
        with self.assertRaises(ValidationError):
            self.manager.create_game(["Alice", None])
        self.assertEqual(self.manager.list_games(), [])

    def test_custom_builder(self):
        manager = GameManager(builder_factory=lambda rng: DeckBuilder(rng, CARD_DEFINITIONS))
        game = manager.create_game(["Alice", "Bob"], seed=5)
        self.assertEqual(len(game.card_ids()), 59)

    def test_definitions_from_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "cards.json"
            definitions = json.loads(json.dumps(CARD_DEFINITIONS))
            definitions["cards"]["events"] = []
            path.write_text(json.dumps(definitions), encoding="utf-8")

            with mock.patch.object(config, "CARD_DEFINITIONS_PATH", path):
                game = GameManager().create_game(["Alice", "Bob"], seed=5)

        self.assertEqual(len(game.card_ids()), 47)


class TestRouting(unittest.TestCase):

    def setUp(self):
        self.manager = GameManager()
        self.game = self.manager.create_game(["Alice", "Bob"], seed="routing")

    def test_draw_and_end_turn(self):
        deck_size = len(self.game.deck)
        self.manager.draw_card(self.game.id, "player-1")
        self.assertEqual(len(self.game.deck), deck_size - 1)

        self.manager.end_turn(self.game.id, "player-1")
        self.assertEqual(self.manager.get_game_stats(self.game.id)["current_player_id"], "player-2")

    def test_errors_propagate(self):
        with self.assertRaises(StateError) as ctx:
            self.manager.draw_card(self.game.id, "player-2")
        self.assertEqual(ctx.exception.result, ActionResult.NOT_YOUR_TURN)
        self.assertEqual(ctx.exception.to_dict()["kind"], "state")

    def test_unknown_game(self):
        with self.assertRaises(GameNotFoundError) as ctx:
            self.manager.end_turn("missing", "player-1")
        self.assertEqual(ctx.exception.code, "GAME_NOT_FOUND")

    def test_assign_resource(self):
        alice = self.game.players[0]
        card = alice.resource_cards()[0]
        target = self.game.features_in_play[0]

        self.manager.assign_resource(self.game.id, "player-1", card.id, target.id)

        self.assertIn(card, target.assigned_resources)

    def test_trade_card(self):
        card = self.game.players[0].resource_cards()[0]

        self.manager.trade_card(self.game.id, "player-1", "player-2", card.id)

        self.assertIs(self.game.players[1].find_card(card.id), card)
        with self.assertRaises(StateError) as ctx:
            self.manager.trade_card(
                self.game.id, "player-1", "player-2", "any-card"
            )
        self.assertEqual(ctx.exception.code, "TRADE_LIMIT_REACHED")

    def test_apply_event_effect(self):
        outcome = self.manager.apply_event_effect(
            self.game.id, EventCard.create("event-x", "reorg", {}), "player-2"
        )
        self.assertTrue(outcome.applied)

    def test_scores(self):
        board = self.manager.get_leaderboard(self.game.id)
        self.assertEqual([e.rank for e in board], [1, 2])
        team = self.manager.get_team_score(self.game.id)
        self.assertEqual(team.features_completed, 0)

    def test_delete(self):
        self.assertTrue(self.manager.delete_game(self.game.id))
        self.assertFalse(self.manager.delete_game(self.game.id))
        with self.assertRaises(GameNotFoundError):
            self.manager.get_game_stats(self.game.id)


class TestConcurrency(unittest.TestCase):

    def test_concurrent_draws_serialized(self):
        manager = GameManager()
        game = manager.create_game(["Alice", "Bob"], seed="threads")
        game.players[0].hand = []
        results = []
        barrier = threading.Barrier(8)

        def draw():
            barrier.wait()
            try:
                manager.draw_card(game.id, "player-1")
                results.append("ok")
            except Exception as e:
                results.append(type(e).__name__)

        threads = [threading.Thread(target=draw) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        ids = game.card_ids()
        self.assertEqual(len(ids), len(set(ids)))
        self.assertEqual(len(results), 8)
        self.assertGreater(results.count("ok"), 0)
        self.assertTrue(set(results) <= {"ok", "CapacityError"})
        self.assertEqual(
            len([e for e in game.events if e.event_type == "draw"]), results.count("ok")
        )
        self.assertLessEqual(len(game.players[0].hand), 7)


class TestSnapshots(unittest.TestCase):

    def test_snapshot_and_restore(self):
        manager = GameManager()
        game = manager.create_game(["Alice", "Bob"], seed="snap")
        manager.draw_card(game.id, "player-1")
        manager.end_turn(game.id, "player-1")

        data = json.loads(json.dumps(manager.snapshot(game.id)))
        other = GameManager()
        restored = other.restore(data)

        self.assertEqual(restored.id, game.id)
        self.assertEqual(restored.to_dict(), data)
        self.assertIs(other.get_game(game.id), restored)
        self.assertEqual(restored.current_player.id, "player-2")

    def test_restore_rejects_bad_version(self):
        data = GameManager().create_game(["Alice", "Bob"], seed=1).to_dict()
        data["schema_version"] = "2.0"
        with self.assertRaises(ValidationError):
            GameManager().restore(data)


class TestConfig(unittest.TestCase):

    def test_configure_logging_uses_level(self):
        with mock.patch.object(Config, "LOG_LEVEL", "debug"), \
                mock.patch("logging.basicConfig") as basic_config:
            Config.configure_logging()
        self.assertEqual(basic_config.call_args.kwargs["level"], logging.DEBUG)
        self.assertIn("%(name)s", basic_config.call_args.kwargs["format"])

    def test_unknown_level_falls_back_to_info(self):
        with mock.patch.object(Config, "LOG_LEVEL", "chatty"), \
                mock.patch("logging.basicConfig") as basic_config:
            config.configure_logging()
        self.assertEqual(basic_config.call_args.kwargs["level"], logging.INFO)


def run_tests():
    """Run all game manager tests."""
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    test_classes = [
        TestInMemoryGameStore,
        TestGameCreation,
        TestRouting,
        TestConcurrency,
        TestSnapshots,
        TestConfig,
    ]

    for test_class in test_classes:
        suite.addTests(loader.loadTestsFromTestCase(test_class))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return result.wasSuccessful()


if __name__ == "__main__":
    success = run_tests()
    sys.exit(0 if success else 1)
