"""
Game Session - Owns the one shared quiz.

LIFECYCLE:
1. Server starts -> one GameSession, empty state, registration phase
2. Players register -> each gets a generated id, kept by their device
3. Quiz master and players send commands -> applied one at a time
4. Clients poll snapshots of the state
5. reset-game or process restart -> everything is gone

CONCURRENCY RULES:
- Every command runs under one lock, start to finish
- The reducer mutates a clone; the session swaps it in on success
- Readers get deep copies, never the live object

There is no persistence. A restart loses the game.
"""

from __future__ import annotations
from typing import Callable
import logging
import secrets
import threading
import time
import uuid

from ..config import GameConfig
from ..errors import InvalidCredentials, NotFound, error_for_code
from ..engine_core.state import GameState
from ..engine_core.action import Command, CommandResult
from ..engine_core.reducer import Reducer


logger = logging.getLogger(__name__)


def generate_player_id() -> str:
    """Unique, unguessable player id."""
    return uuid.uuid4().hex


class GameSession:
    """
    The quiz session.

    Responsibilities:
    - Serialise every command behind a single lock
    - Generate player identities
    - Check the quiz master password
    - Hand out state snapshots

    Usage:
        session = GameSession(GameConfig())
        player_id = session.register_player("Alice")
        session.dispatch(Command.simple(CommandType.START_QUIZ))
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = generate_player_id,
    ):
        self.config = config or GameConfig()
        self.reducer = Reducer(self.config)
        self._state = GameState()
        self._lock = threading.Lock()
        self._clock = clock
        self._id_factory = id_factory

    # =========================================================================
    # Commands
    # =========================================================================

    def dispatch(self, command: Command) -> GameState:
        """
        Apply a command and return a snapshot of the new state.

        Raises the QuizError matching the failure if the command is rejected.
        """
        with self._lock:
            result = self._apply_locked(command)
            return result.new_state.clone()

    def _apply_locked(self, command: Command) -> CommandResult:
        command.payload.timestamp = self._clock()
        result = self.reducer.apply(self._state, command)
        if not result.success:
            logger.warning(
                "[command-rejected] type=%s phase=%s error=%s",
                command.command_type.value, self._state.phase.value, result.error,
            )
            raise error_for_code(
                result.error_code,
                result.error or "Command failed",
                details={"command": command.command_type.value, "phase": self._state.phase.value},
            )

        self._state = result.new_state
        logger.info(
            "[command] type=%s phase=%s round=%d players=%d",
            command.command_type.value, self._state.phase.value,
            self._state.current_round, len(self._state.players),
        )
        for change in result.state_changes:
            logger.debug("[change] %s", change)
        return result

    def register_player(self, name: str) -> str:
        """Create a new player and return their id. Never idempotent."""
        with self._lock:
            player_id = self._id_factory()
            while player_id in self._state.players:
                player_id = self._id_factory()
            self._apply_locked(Command.register(player_id, name))
            return player_id

    # =========================================================================
    # Reads
    # =========================================================================

    def snapshot(self) -> GameState:
        """Deep copy of the current state."""
        with self._lock:
            return self._state.clone()

    def require_player(self, player_id: str) -> GameState:
        """
        Snapshot the state, checking the player exists.

        Clients drop their cached identity on the resulting NotFound.
        """
        state = self.snapshot()
        if player_id not in state.players:
            raise NotFound(f"Player {player_id} not found")
        return state

    # =========================================================================
    # Authentication
    # =========================================================================

    def check_password(self, password: str | None) -> None:
        """Compare against the shared quiz master password."""
        if not secrets.compare_digest(
            (password or "").encode("utf-8"),
            self.config.master_password.encode("utf-8"),
        ):
            logger.warning("[login] rejected quiz master password")
            raise InvalidCredentials("Invalid password")
        logger.info("[login] quiz master logged in")
