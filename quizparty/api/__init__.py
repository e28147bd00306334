"""
API Module - HTTP interface for the quiz clients.

Three kinds of clients poll the same game:
1. The quiz master panel drives phases and grades answers
2. Player devices register, bet, answer and predict
3. The public leaderboard display shows rankings

All state lives in one in-memory GameSession. No accounts; the quiz
master is identified by a single shared password.
"""

from .schemas import (
    # Requests
    LoginRequest,
    RegisterRequest,
    SubmitBetRequest,
    SubmitAnswerRequest,
    PredictionRequest,
    # Responses
    GameStateResponse,
    PlayerStateResponse,
    RegisterResponse,
    LeaderboardResponse,
    ErrorResponse,
    # Shared
    PlayerInfo,
    RoundEntryInfo,
)
from .service import QuizService
from .app import create_app

__all__ = [
    # Requests
    "LoginRequest",
    "RegisterRequest",
    "SubmitBetRequest",
    "SubmitAnswerRequest",
    "PredictionRequest",
    # Responses
    "GameStateResponse",
    "PlayerStateResponse",
    "RegisterResponse",
    "LeaderboardResponse",
    "ErrorResponse",
    # Shared
    "PlayerInfo",
    "RoundEntryInfo",
    # Service
    "QuizService",
    "create_app",
]
