"""
Game configuration.

All tunables are read from the environment once, at application start.
Values that differed between historical versions of the game (starting
points, flat bonus) live here instead of in the scoring rules.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
import os


DEFAULT_MASTER_PASSWORD = "quiz"


def _int_env(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _origins_env(name: str, default: str = "*") -> list[str]:
    return [o.strip() for o in os.getenv(name, default).split(",") if o.strip()]


@dataclass(frozen=True)
class GameConfig:
    """Tunable rules and server settings."""
    master_password: str = DEFAULT_MASTER_PASSWORD
    starting_points: int = 5

    # Correct answer when betting is disabled
    flat_bonus: int = 1
    # Correct answer with a zero bet
    participation_bonus: int = 1

    spotlight_correct_points: int = 10
    spotlight_wrong_penalty: int = 2
    spotlight_prediction_points: int = 5

    poker_ante_percent: int = 10
    # Balances below this go all-in instead of paying the percentage ante
    poker_all_in_below: int = 10

    allowed_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> GameConfig:
        """Build a config from QUIZ_* environment variables."""
        return cls(
            master_password=os.getenv("QUIZ_MASTER_PASSWORD", DEFAULT_MASTER_PASSWORD),
            starting_points=_int_env("QUIZ_STARTING_POINTS", 5),
            flat_bonus=_int_env("QUIZ_FLAT_BONUS", 1),
            spotlight_correct_points=_int_env("QUIZ_SPOTLIGHT_CORRECT_POINTS", 10),
            spotlight_wrong_penalty=_int_env("QUIZ_SPOTLIGHT_WRONG_PENALTY", 2),
            spotlight_prediction_points=_int_env("QUIZ_SPOTLIGHT_PREDICTION_POINTS", 5),
            poker_ante_percent=_int_env("QUIZ_POKER_ANTE_PERCENT", 10),
            poker_all_in_below=_int_env("QUIZ_POKER_ALL_IN_BELOW", 10),
            allowed_origins=_origins_env("QUIZ_ALLOWED_ORIGINS"),
            log_level=os.getenv("QUIZ_LOG_LEVEL", "INFO").upper(),
        )

    @property
    def uses_default_password(self) -> bool:
        return self.master_password == DEFAULT_MASTER_PASSWORD

    def with_overrides(self, **kwargs) -> GameConfig:
        """Return a copy with some fields replaced."""
        return replace(self, **kwargs)

    def describe(self) -> dict[str, object]:
        """Effective settings for display, password masked."""
        return {
            "master_password": "(default)" if self.uses_default_password else "********",
            "starting_points": self.starting_points,
            "flat_bonus": self.flat_bonus,
            "participation_bonus": self.participation_bonus,
            "spotlight_correct_points": self.spotlight_correct_points,
            "spotlight_wrong_penalty": self.spotlight_wrong_penalty,
            "spotlight_prediction_points": self.spotlight_prediction_points,
            "poker_ante_percent": self.poker_ante_percent,
            "poker_all_in_below": self.poker_all_in_below,
            "allowed_origins": ",".join(self.allowed_origins),
            "log_level": self.log_level,
        }
