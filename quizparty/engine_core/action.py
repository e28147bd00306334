"""
Command System - Commands, payloads, and results.

Commands represent:
1. Quiz master controls (phase changes, grading, score fixes)
2. Player submissions (bets, answers, predictions, focus telemetry)

All state changes flow through commands.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CommandType(Enum):
    """Types of commands, named after their API routes."""
    # Quiz master: phase transitions
    START_QUIZ = "start-quiz"
    ADVANCE_TO_ANSWERING = "advance-to-answering"
    SHOW_RESULTS = "show-results"
    NEXT_ROUND = "next-round"
    START_AUCTION = "start-auction"
    END_AUCTION = "end-auction"
    START_SPOTLIGHT = "start-spotlight"
    GRADE_SPOTLIGHT = "grade-spotlight"
    START_POKER = "start-poker"
    POKER_TO_ANSWERING = "poker-to-answering"
    SHOW_POKER_RESULTS = "show-poker-results"
    END_GAME = "end-game"
    RESET_GAME = "reset-game"

    # Quiz master: in-phase controls
    TOGGLE_BETTING = "toggle-betting"
    LOCK_ANSWERING = "lock-answering"
    MARK_ANSWER = "mark-answer"
    UNDO_GRADING = "undo-grading"
    ADJUST_SCORE = "adjust-score"
    REMOVE_PLAYER = "remove-player"

    # Player actions
    REGISTER = "register"
    SUBMIT_BET = "submit-bet"
    SUBMIT_ANSWER = "submit-answer"
    LOG_FOCUS_LOSS = "log-focus-loss"
    SUBMIT_PREDICTION = "submit-prediction"


@dataclass
class CommandPayload:
    """
    Payload for a command - contains the command parameters.

    Different command types use different fields.
    This is a generic container; validation happens in the reducer.
    """
    player_id: str | None = None
    name: str | None = None

    # Toggles and grading
    enabled: bool | None = None
    locked: bool | None = None
    correct: bool | None = None

    # Amounts
    amount: int | None = None

    # Submissions
    answer: str | None = None
    time_taken: float | None = None
    prediction: str | None = None
    focus_losses: int | None = None
    focus_lost_time: float | None = None
    round: int | None = None

    # Clock reading supplied by the session
    timestamp: float | None = None


@dataclass
class Command:
    """
    A complete command to be applied to the game state.

    Commands are validated against the phase table and applied
    atomically by the reducer.
    """
    command_type: CommandType
    payload: CommandPayload = field(default_factory=CommandPayload)

    @classmethod
    def simple(cls, command_type: CommandType) -> Command:
        """Factory for commands without arguments."""
        return cls(command_type=command_type)

    @classmethod
    def toggle_betting(cls, enabled: bool) -> Command:
        return cls(CommandType.TOGGLE_BETTING, CommandPayload(enabled=enabled))

    @classmethod
    def lock_answering(cls, locked: bool) -> Command:
        return cls(CommandType.LOCK_ANSWERING, CommandPayload(locked=locked))

    @classmethod
    def mark_answer(cls, player_id: str, correct: bool) -> Command:
        return cls(CommandType.MARK_ANSWER, CommandPayload(player_id=player_id, correct=correct))

    @classmethod
    def undo_grading(cls, player_id: str) -> Command:
        return cls(CommandType.UNDO_GRADING, CommandPayload(player_id=player_id))

    @classmethod
    def adjust_score(cls, player_id: str, change: int) -> Command:
        return cls(CommandType.ADJUST_SCORE, CommandPayload(player_id=player_id, amount=change))

    @classmethod
    def remove_player(cls, player_id: str) -> Command:
        return cls(CommandType.REMOVE_PLAYER, CommandPayload(player_id=player_id))

    @classmethod
    def start_spotlight(cls, player_id: str) -> Command:
        return cls(CommandType.START_SPOTLIGHT, CommandPayload(player_id=player_id))

    @classmethod
    def grade_spotlight(cls, correct: bool) -> Command:
        return cls(CommandType.GRADE_SPOTLIGHT, CommandPayload(correct=correct))

    @classmethod
    def register(cls, player_id: str, name: str) -> Command:
        """Factory for registration. The session picks the id."""
        return cls(CommandType.REGISTER, CommandPayload(player_id=player_id, name=name))

    @classmethod
    def submit_bet(cls, player_id: str, bet: int) -> Command:
        return cls(CommandType.SUBMIT_BET, CommandPayload(player_id=player_id, amount=bet))

    @classmethod
    def submit_answer(
        cls,
        player_id: str,
        answer: str,
        time_taken: float | None = None,
    ) -> Command:
        return cls(
            CommandType.SUBMIT_ANSWER,
            CommandPayload(player_id=player_id, answer=answer, time_taken=time_taken),
        )

    @classmethod
    def log_focus_loss(
        cls,
        player_id: str,
        focus_losses: int,
        focus_lost_time: float | None = None,
        round: int | None = None,
    ) -> Command:
        return cls(
            CommandType.LOG_FOCUS_LOSS,
            CommandPayload(
                player_id=player_id,
                focus_losses=focus_losses,
                focus_lost_time=focus_lost_time,
                round=round,
            ),
        )

    @classmethod
    def submit_prediction(cls, player_id: str, prediction: str) -> Command:
        return cls(
            CommandType.SUBMIT_PREDICTION,
            CommandPayload(player_id=player_id, prediction=prediction),
        )


@dataclass
class CommandResult:
    """
    Result of applying a command.

    Contains:
    - Whether the command succeeded
    - New state (if succeeded)
    - Error and error code (if failed)
    - Human-readable changes for the log
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None
    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> CommandResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(cls, state: Any, changes: list[str] | None = None) -> CommandResult:
        """Create a success result with new state."""
        return cls(success=True, new_state=state, state_changes=changes or [])
