"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract with the master, player and
leaderboard clients. Field names are snake_case in Python and camelCase
on the wire.

Error Codes:
- INVALID_CREDENTIALS: Wrong quiz master password
- ANSWERING_LOCKED: Answer submitted while answering is locked
- PLAYER_NOT_FOUND: Player id unknown (client should forget it)
- INVALID_COMMAND: Command not allowed in the current phase
- VALIDATION_ERROR: Command arguments break a game rule
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from ..errors import ErrorCode


# =============================================================================
# Enums
# =============================================================================

class Phase(str, Enum):
    """Game phase values."""
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


class PredictionValue(str, Enum):
    """Spotlight prediction values."""
    CORRECT = "correct"
    WRONG = "wrong"


class WireModel(BaseModel):
    """Base model: camelCase aliases, populated by either name."""
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


# =============================================================================
# Shared Models
# =============================================================================

class PlayerInfo(WireModel):
    """A player as stored in the game state."""
    name: str
    points: int


class RoundEntryInfo(WireModel):
    """One player's submissions and grading for the current round."""
    bet: Optional[int] = None
    answer: Optional[str] = None
    time_taken: Optional[float] = Field(None, description="Seconds from answering open to submission")
    focus_losses: Optional[int] = None
    focus_lost_time: Optional[float] = Field(None, description="Seconds spent away from the page")
    points_at_bid: Optional[int] = None
    graded: bool = False
    correct: Optional[bool] = None
    points_change: Optional[int] = None
    poker_winnings: Optional[int] = None
    poker_loss: Optional[int] = None


class AuctionWinnerInfo(WireModel):
    id: str
    name: str
    bid: int


class SpotlightResultInfo(WireModel):
    """Outcome of the last spotlight round."""
    player_id: str
    player_name: str
    correct: bool
    points_change: int
    predictions: dict[str, PredictionValue] = Field(default_factory=dict)
    rewarded_player_ids: list[str] = Field(default_factory=list)


class PokerWinnerInfo(WireModel):
    id: str
    name: str
    winnings: int


class PokerResultInfo(WireModel):
    """Summary of a finished pot round."""
    pot: int
    share: int
    remainder: int = Field(description="Points left in the pot after an uneven split")
    winners: list[PokerWinnerInfo] = Field(default_factory=list)
    loser_ids: list[str] = Field(default_factory=list)


# =============================================================================
# Request Models
# =============================================================================

class LoginRequest(WireModel):
    password: str = ""


class ToggleBettingRequest(WireModel):
    enabled: bool


class LockAnsweringRequest(WireModel):
    locked: bool = True


class MarkAnswerRequest(WireModel):
    player_id: str
    correct: bool


class AdjustScoreRequest(WireModel):
    player_id: str
    change: int


class PlayerIdRequest(WireModel):
    """Body for commands that only name a player."""
    player_id: str


class GradeSpotlightRequest(WireModel):
    correct: bool


class RegisterRequest(WireModel):
    name: str


class SubmitBetRequest(WireModel):
    player_id: str
    bet: int


class SubmitAnswerRequest(WireModel):
    player_id: str
    answer: str
    time_taken: Optional[float] = Field(None, description="Seconds; computed server-side when omitted")


class FocusLossRequest(WireModel):
    player_id: str
    focus_loss_count: int
    total_focus_lost_time: Optional[float] = None
    round: Optional[int] = None


class PredictionRequest(WireModel):
    player_id: str
    prediction: PredictionValue


# =============================================================================
# Response Models
# =============================================================================

class GameStateResponse(WireModel):
    """The full game state, as seen by the quiz master."""
    phase: Phase
    current_round: int
    players: dict[str, PlayerInfo] = Field(default_factory=dict)
    answers: dict[str, RoundEntryInfo] = Field(default_factory=dict)
    betting_enabled: bool
    answering_locked: bool
    answering_started_at: Optional[float] = None
    auction_winner: Optional[AuctionWinnerInfo] = None
    spotlight_player_id: Optional[str] = None
    spotlight_predictions: dict[str, PredictionValue] = Field(default_factory=dict)
    spotlight_result: Optional[SpotlightResultInfo] = None
    poker_pot: int = 0
    poker_bets: dict[str, int] = Field(default_factory=dict)
    poker_result: Optional[PokerResultInfo] = None


class PlayerResultInfo(WireModel):
    """The player's own grading for the round."""
    correct: Optional[bool] = None
    bet: Optional[int] = None
    points_change: Optional[int] = None


class PlayerSpotlightInfo(WireModel):
    """Spotlight context from one player's point of view."""
    player_id: Optional[str] = None
    player_name: Optional[str] = None
    is_spotlighted: bool = False
    prediction: Optional[PredictionValue] = None
    has_predicted: bool = False
    result: Optional[SpotlightResultInfo] = None


class PlayerPokerInfo(WireModel):
    """Pot round context from one player's point of view."""
    pot: int = 0
    ante: Optional[int] = None
    winnings: Optional[int] = None
    loss: Optional[int] = None
    result: Optional[PokerResultInfo] = None


class PlayerStateResponse(WireModel):
    """Player-scoped projection of the game state."""
    success: bool = True
    phase: Phase
    current_round: int
    player: PlayerInfo
    betting_enabled: bool
    answering_locked: bool
    has_submitted_bet: bool = False
    has_submitted_answer: bool = False
    is_graded: bool = False
    auction_winner: Optional[AuctionWinnerInfo] = None
    result: Optional[PlayerResultInfo] = None
    spotlight: PlayerSpotlightInfo = Field(default_factory=PlayerSpotlightInfo)
    poker: PlayerPokerInfo = Field(default_factory=PlayerPokerInfo)


class RegisterResponse(WireModel):
    player_id: str
    player: PlayerInfo


class LoginResponse(WireModel):
    success: bool = True


class LeaderboardEntry(WireModel):
    id: str
    name: str
    points: int


class LeaderboardResponse(WireModel):
    """Public ranking, highest points first."""
    players: list[LeaderboardEntry] = Field(default_factory=list)
    current_round: int
    phase: Phase


class ErrorResponse(WireModel):
    """Structured error response."""
    success: bool = False
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class HealthResponse(WireModel):
    status: str = "healthy"
    service: str = "quizparty"
    version: str
