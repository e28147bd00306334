"""
Pytest fixtures for Quiz Party tests.
"""

import itertools

import pytest

from ..config import GameConfig
from ..engine_core.state import GameState, GamePhase, Player
from ..engine_core.reducer import Reducer
from ..session import GameSession
from ..api.service import QuizService


class FakeClock:
    """Manually advanced clock for answer timing."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def config() -> GameConfig:
    """Default game rules."""
    return GameConfig()


@pytest.fixture
def reducer(config: GameConfig) -> Reducer:
    return Reducer(config)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session(config: GameConfig, clock: FakeClock) -> GameSession:
    """Session with predictable player ids p1, p2, ..."""
    counter = itertools.count(1)
    return GameSession(config, clock=clock, id_factory=lambda: f"p{next(counter)}")


@pytest.fixture
def service(session: GameSession) -> QuizService:
    return QuizService(session=session)


@pytest.fixture
def results_state() -> GameState:
    """
    Three players sitting in the results phase of round 1.

    Alice 20, Bob 8, Carol 35, registered in that order.
    """
    return GameState(
        phase=GamePhase.RESULTS,
        current_round=1,
        players={
            "alice": Player(name="Alice", points=20),
            "bob": Player(name="Bob", points=8),
            "carol": Player(name="Carol", points=35),
        },
    )
