"""
Engine Core - Quiz state, commands and scoring.

The engine is the runtime that:
1. Holds the GameState
2. Checks commands against the phase table
3. Applies commands via the reducer
4. Computes point deltas per round type
"""

from .state import (
    GameState,
    GamePhase,
    Player,
    RoundEntry,
    Prediction,
    AuctionWinner,
    SpotlightResult,
    PokerResult,
    PokerWinner,
)
from .action import Command, CommandType, CommandPayload, CommandResult
from .reducer import Reducer, apply_command, is_allowed, PHASE_RULES

__all__ = [
    "GameState",
    "GamePhase",
    "Player",
    "RoundEntry",
    "Prediction",
    "AuctionWinner",
    "SpotlightResult",
    "PokerResult",
    "PokerWinner",
    "Command",
    "CommandType",
    "CommandPayload",
    "CommandResult",
    "Reducer",
    "apply_command",
    "is_allowed",
    "PHASE_RULES",
]
