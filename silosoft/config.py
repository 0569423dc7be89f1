"""
Engine configuration loaded from environment variables.
"""
import logging
import os
from pathlib import Path
from dotenv import load_dotenv

from silosoft.shared import constants

load_dotenv()


def _optional(name: str) -> str | None:
    value = os.getenv(name)
    return value if value else None


class Config:
    """Engine configuration."""

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Game settings
    MAX_ROUNDS: int = int(os.getenv("MAX_ROUNDS", str(constants.MAX_ROUNDS)))
    MAX_HAND_SIZE: int = int(os.getenv("MAX_HAND_SIZE", str(constants.MAX_HAND_SIZE)))
    MAX_FEATURES_IN_PLAY: int = int(
        os.getenv("MAX_FEATURES_IN_PLAY", str(constants.MAX_FEATURES_IN_PLAY))
    )
    INITIAL_FEATURES_IN_PLAY: int = int(
        os.getenv("INITIAL_FEATURES_IN_PLAY", str(constants.INITIAL_FEATURES_IN_PLAY))
    )

    # Seed applied to new games when the caller does not pass one
    GAME_SEED: str | None = _optional("GAME_SEED")

    # Card catalog override
    CARD_DEFINITIONS_PATH: Path | None = (
        Path(os.environ["CARD_DEFINITIONS_PATH"]) if _optional("CARD_DEFINITIONS_PATH") else None
    )

    @classmethod
    def configure_logging(cls) -> None:
        """Configure root logging for a host process."""
        logging.basicConfig(
            level=getattr(logging, cls.LOG_LEVEL.upper(), logging.INFO),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )


config = Config()
settings = config  # Alias for backward compatibility
