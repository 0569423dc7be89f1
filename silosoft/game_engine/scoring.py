"""
Feature, player and team scoring.
"""
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from silosoft.shared.constants import (
    POINT_COMPLEXITY,
    EARLY_COMPLETION_MULTIPLIER, PERFECT_MATCH_MULTIPLIER, TEAMWORK_MULTIPLIER,
    DEADLINE_MULTIPLIER, LATE_GAME_THRESHOLD, LATE_GAME_COMPLEXITY_BONUS,
    UNASSIGNED_RESOURCE_PENALTY, SPEED_BONUS_PER_ROUND, EFFICIENCY_THRESHOLD,
    EFFICIENCY_BONUS_FACTOR, COOPERATION_MAX_SPREAD, COOPERATION_MIN_FEATURES,
    COOPERATION_BONUS
)

from .cards import FeatureCard, ResourceCard, ROLES
from .errors import ActionResult, ValidationError
from .player import Player

if TYPE_CHECKING:
    from .game import Game


@dataclass
class FeatureScore:
    """Points for one completed (or hypothetical) feature."""
    feature_id: str
    base_points: int
    bonuses: int
    penalties: int
    total_points: int
    adjustments: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "feature_id": self.feature_id,
            "base_points": self.base_points,
            "bonuses": self.bonuses,
            "penalties": self.penalties,
            "total_points": self.total_points,
            "breakdown": {
                "base": self.base_points,
                "adjustments": list(self.adjustments),
            },
        }


@dataclass
class PlayerScore:
    player_id: str
    current_score: int
    feature_contributions: int
    bonuses: int
    penalties: int
    final_score: int

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "current_score": self.current_score,
            "feature_contributions": self.feature_contributions,
            "bonuses": self.bonuses,
            "penalties": self.penalties,
            "final_score": self.final_score,
            "breakdown": {
                "base": self.current_score,
                "features": self.feature_contributions,
                "bonuses": self.bonuses,
                "penalties": -self.penalties,
            },
        }


@dataclass
class TeamBonuses:
    speed_bonus: int = 0
    efficiency_bonus: int = 0
    cooperation_bonus: int = 0

    @property
    def total(self) -> int:
        return self.speed_bonus + self.efficiency_bonus + self.cooperation_bonus

    def to_dict(self) -> dict:
        return {
            "speed_bonus": self.speed_bonus,
            "efficiency_bonus": self.efficiency_bonus,
            "cooperation_bonus": self.cooperation_bonus,
            "total": self.total,
        }


@dataclass
class TeamScore:
    total_score: int
    average_score: float
    features_completed: int
    features_remaining: int
    rounds_used: int
    rounds_remaining: int
    efficiency: float
    bonuses: TeamBonuses

    def to_dict(self) -> dict:
        return {
            "total_score": self.total_score,
            "average_score": self.average_score,
            "features_completed": self.features_completed,
            "features_remaining": self.features_remaining,
            "rounds_used": self.rounds_used,
            "rounds_remaining": self.rounds_remaining,
            "efficiency": self.efficiency,
            "bonuses": self.bonuses.to_dict(),
        }


@dataclass
class LeaderboardEntry:
    rank: int
    player_id: str
    player_name: str
    score: int
    feature_contributions: int
    bonuses: int
    penalties: int

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "player_id": self.player_id,
            "player_name": self.player_name,
            "score": self.score,
            "feature_contributions": self.feature_contributions,
            "bonuses": self.bonuses,
            "penalties": self.penalties,
        }


def _factor_bonus(base: int, multiplier: float) -> int:
    return math.floor(base * (multiplier - 1))


class ScoreEngine:
    """
    Computes feature points with bonuses and penalties, and aggregates
    per-player and team results.
    """

    # =========== Feature Scoring ===========

    def calculate_feature_points(
        self,
        feature: FeatureCard,
        game: Optional["Game"] = None,
        multiple_contributors: bool = False
    ) -> FeatureScore:
        """
        Score a feature at its current round.

        Args:
            feature: Feature being completed
            game: Game supplying the round; round-based bonuses are skipped without it
            multiple_contributors: More than one player contributed resources

        Returns:
            FeatureScore with the adjustment breakdown

        Raises:
            ValidationError: Not a feature card, or base points not 3/5/8
        """
        if not isinstance(feature, FeatureCard):
            raise ValidationError(ActionResult.INVALID_CARD, "Invalid feature card")

        base = feature.points
        if base not in POINT_COMPLEXITY:
            raise ValidationError(ActionResult.INVALID_CARD, "Invalid base points for feature")

        adjustments = []

        def adjust(reason: str, amount: int) -> None:
            if amount:
                adjustments.append({"reason": reason, "amount": amount})

        if game is not None and game.current_round <= game.max_rounds // 2:
            adjust("early_completion", _factor_bonus(base, EARLY_COMPLETION_MULTIPLIER))

        if self.is_perfect_resource_match(feature):
            adjust("perfect_match", _factor_bonus(base, PERFECT_MATCH_MULTIPLIER))

        if multiple_contributors:
            adjust("teamwork", _factor_bonus(base, TEAMWORK_MULTIPLIER))

        if feature.deadline:
            if game is not None and game.current_round <= feature.deadline:
                adjust("deadline_met", feature.deadline_bonus or _factor_bonus(base, DEADLINE_MULTIPLIER))
            else:
                adjust("deadline_missed", -abs(feature.deadline_penalty))

        if game is not None and game.current_round > math.floor(game.max_rounds * LATE_GAME_THRESHOLD):
            adjust("late_game_complexity", LATE_GAME_COMPLEXITY_BONUS[feature.complexity.value])

        bonuses = sum(a["amount"] for a in adjustments if a["amount"] > 0)
        penalties = -sum(a["amount"] for a in adjustments if a["amount"] < 0)

        return FeatureScore(
            feature_id=feature.id,
            base_points=base,
            bonuses=bonuses,
            penalties=penalties,
            total_points=max(0, base + bonuses - penalties),
            adjustments=adjustments,
        )

    @staticmethod
    def is_perfect_resource_match(feature: FeatureCard) -> bool:
        """Assigned value equals the requirement exactly for every role."""
        if not feature.assigned_resources:
            return False
        return all(feature.assigned_value(role) == feature.requirements[role] for role in ROLES)

    # =========== Player Scoring ===========

    @staticmethod
    def completed_features(game: "Game") -> List[FeatureCard]:
        return [c for c in game.discard_pile if isinstance(c, FeatureCard) and c.completed]

    def calculate_player_score(self, player: Player, game: Optional["Game"] = None) -> PlayerScore:
        """
        Score one player.

        Feature contributions are reported for information only; their
        points are already part of the running score.
        """
        if player is None:
            raise ValidationError(ActionResult.PLAYER_NOT_FOUND, "Player is required")

        contributions = 0
        penalties = 0

        if game is not None:
            for feature in self.completed_features(game):
                if player.id in feature.contributors():
                    contributions += feature.points

            if game.is_game_over:
                unassigned = [
                    c for c in player.hand
                    if isinstance(c, ResourceCard) and not c.is_assigned
                ]
                penalties += len(unassigned) * UNASSIGNED_RESOURCE_PENALTY

        bonuses = 0
        return PlayerScore(
            player_id=player.id,
            current_score=player.score,
            feature_contributions=contributions,
            bonuses=bonuses,
            penalties=penalties,
            final_score=max(0, player.score + bonuses - penalties),
        )

    # =========== Team Scoring ===========

    def calculate_team_score(self, game: "Game") -> TeamScore:
        if game is None or not game.players:
            raise ValidationError(ActionResult.INVALID_PLAYER_COUNT, "Valid game state is required")

        scores = [self.calculate_player_score(p, game).final_score for p in game.players]
        completed = len(self.completed_features(game))
        remaining = len([f for f in game.features_in_play if not f.completed])

        efficiency = 0.0
        if game.current_round > 1:
            efficiency = completed / (game.current_round - 1)

        bonuses = self.calculate_team_bonuses(game, completed, efficiency, scores)
        total = sum(scores)

        return TeamScore(
            total_score=total + bonuses.total,
            average_score=total / len(game.players),
            features_completed=completed,
            features_remaining=remaining,
            rounds_used=game.current_round,
            rounds_remaining=max(0, game.max_rounds - game.current_round),
            efficiency=efficiency,
            bonuses=bonuses,
        )

    def calculate_team_bonuses(
        self,
        game: "Game",
        features_completed: int,
        efficiency: float,
        player_scores: List[int]
    ) -> TeamBonuses:
        bonuses = TeamBonuses()

        if game.win_condition and game.current_round < game.max_rounds:
            bonuses.speed_bonus = (game.max_rounds - game.current_round) * SPEED_BONUS_PER_ROUND

        if efficiency > EFFICIENCY_THRESHOLD:
            bonuses.efficiency_bonus = math.floor(efficiency * EFFICIENCY_BONUS_FACTOR)

        if player_scores:
            spread = max(player_scores) - min(player_scores)
            if spread <= COOPERATION_MAX_SPREAD and features_completed > COOPERATION_MIN_FEATURES:
                bonuses.cooperation_bonus = COOPERATION_BONUS

        return bonuses

    def get_leaderboard(self, game: "Game") -> List[LeaderboardEntry]:
        """Players by final score, highest first; ties keep seat order."""
        if game is None or not game.players:
            raise ValidationError(ActionResult.INVALID_PLAYER_COUNT, "Valid game state is required")

        scored = [(p, self.calculate_player_score(p, game)) for p in game.players]
        scored.sort(key=lambda pair: pair[1].final_score, reverse=True)

        return [
            LeaderboardEntry(
                rank=index + 1,
                player_id=player.id,
                player_name=player.name,
                score=score.final_score,
                feature_contributions=score.feature_contributions,
                bonuses=score.bonuses,
                penalties=score.penalties,
            )
            for index, (player, score) in enumerate(scored)
        ]

    # =========== Projections ===========

    def projected_score(self, game: "Game", player: Player, feature: FeatureCard) -> dict:
        """What the player's score would be after completing a feature now."""
        current = self.calculate_player_score(player, game)
        feature_score = self.calculate_feature_points(feature, game)
        return {
            "current": current.final_score,
            "projected": current.final_score + feature_score.total_points,
            "gain": feature_score.total_points,
            "feature_breakdown": feature_score.to_dict()["breakdown"],
        }

    def score_history(self, game: "Game") -> dict:
        return {
            "game_id": game.id,
            "current_round": game.current_round,
            "player_scores": [entry.to_dict() for entry in self.get_leaderboard(game)],
            "team_score": self.calculate_team_score(game).to_dict(),
        }
