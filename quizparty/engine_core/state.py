"""
Game State - The single shared quiz state.

Design principles:
- One GameState per session, held for the lifetime of the process
- Mutated only by the reducer, which works on a clone
- Plain dataclasses, serialised by the API layer
"""

from __future__ import annotations
from dataclasses import dataclass, field
from copy import deepcopy
from enum import Enum


class GamePhase(Enum):
    """Phases of the quiz, as shown to every client."""
    REGISTRATION = "registration"
    BETTING = "betting"
    ANSWERING = "answering"
    RESULTS = "results"
    AUCTION = "auction"
    AUCTION_RESULTS = "auction-results"
    LEADERBOARD = "leaderboard"
    SPOTLIGHT = "spotlight"
    POKER = "poker"
    POKER_ANSWERING = "poker-answering"

    @property
    def is_answering(self) -> bool:
        return self in (GamePhase.ANSWERING, GamePhase.POKER_ANSWERING)


class Prediction(Enum):
    """A spectator's call on the spotlight player's answer."""
    CORRECT = "correct"
    WRONG = "wrong"

    @classmethod
    def from_outcome(cls, correct: bool) -> Prediction:
        return cls.CORRECT if correct else cls.WRONG


@dataclass
class Player:
    """A registered player."""
    name: str
    points: int = 0


@dataclass
class RoundEntry:
    """
    One player's submissions and grading for the current round.

    Created lazily on the first submission; every field stays None
    until something sets it.
    """
    bet: int | None = None
    answer: str | None = None
    time_taken: float | None = None  # seconds
    focus_losses: int | None = None
    focus_lost_time: float | None = None  # seconds
    points_at_bid: int | None = None  # auction tie-break snapshot

    graded: bool = False
    correct: bool | None = None
    points_change: int | None = None

    poker_winnings: int | None = None
    poker_loss: int | None = None

    @property
    def has_bet(self) -> bool:
        return self.bet is not None

    @property
    def has_answer(self) -> bool:
        return bool(self.answer)

    def clear_grading(self) -> None:
        self.graded = False
        self.correct = None
        self.points_change = None


@dataclass
class AuctionWinner:
    id: str
    name: str
    bid: int


@dataclass
class SpotlightResult:
    """Outcome of the last spotlight round, kept for one display cycle."""
    player_id: str
    player_name: str
    correct: bool
    points_change: int
    predictions: dict[str, Prediction] = field(default_factory=dict)
    rewarded_player_ids: list[str] = field(default_factory=list)


@dataclass
class PokerWinner:
    id: str
    name: str
    winnings: int


@dataclass
class PokerResult:
    """Summary of a finished pot round."""
    pot: int
    share: int
    remainder: int
    winners: list[PokerWinner] = field(default_factory=list)
    loser_ids: list[str] = field(default_factory=list)


@dataclass
class GameState:
    """
    The complete quiz state.

    `players` keeps registration order, which is also the iteration
    order used to break full auction ties.
    """
    phase: GamePhase = GamePhase.REGISTRATION
    current_round: int = 0

    players: dict[str, Player] = field(default_factory=dict)
    answers: dict[str, RoundEntry] = field(default_factory=dict)

    betting_enabled: bool = True
    answering_locked: bool = False
    answering_started_at: float | None = None

    auction_winner: AuctionWinner | None = None

    spotlight_player_id: str | None = None
    spotlight_predictions: dict[str, Prediction] = field(default_factory=dict)
    spotlight_result: SpotlightResult | None = None

    poker_pot: int = 0
    poker_bets: dict[str, int] = field(default_factory=dict)
    poker_result: PokerResult | None = None

    def get_player(self, player_id: str) -> Player | None:
        return self.players.get(player_id)

    def get_entry(self, player_id: str) -> RoundEntry | None:
        return self.answers.get(player_id)

    def ensure_entry(self, player_id: str) -> RoundEntry:
        """Get the player's round entry, creating it on first use."""
        entry = self.answers.get(player_id)
        if entry is None:
            entry = RoundEntry()
            self.answers[player_id] = entry
        return entry

    def ranked_players(self) -> list[tuple[str, Player]]:
        """Players by points, highest first. Ties keep registration order."""
        return sorted(self.players.items(), key=lambda item: -item[1].points)

    def clear_round(self) -> None:
        """Drop per-round submissions and any leftover special-round results."""
        self.answers = {}
        self.answering_locked = False
        self.answering_started_at = None
        self.auction_winner = None
        self.clear_spotlight()
        self.spotlight_result = None
        self.poker_pot = 0
        self.poker_bets = {}
        self.poker_result = None

    def clear_spotlight(self) -> None:
        self.spotlight_player_id = None
        self.spotlight_predictions = {}

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)
