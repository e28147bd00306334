"""
Tests for the wire schemas and configuration.
"""

import pytest
from pydantic import ValidationError

from ..config import GameConfig
from ..errors import ErrorCode
from ..api.schemas import (
    ErrorResponse,
    FocusLossRequest,
    LeaderboardResponse,
    LeaderboardEntry,
    PlayerInfo,
    PredictionRequest,
    PredictionValue,
    RoundEntryInfo,
    SubmitAnswerRequest,
)


class TestWireFormat:
    """Tests for camelCase aliases."""

    def test_camel_case_dump(self):
        entry = RoundEntryInfo(bet=3, time_taken=2.5, points_change=3, graded=True)
        data = entry.model_dump(by_alias=True)

        assert data["timeTaken"] == 2.5
        assert data["pointsChange"] == 3
        assert "time_taken" not in data

    def test_accepts_camel_case_input(self):
        request = FocusLossRequest.model_validate(
            {"playerId": "p1", "focusLossCount": 2, "totalFocusLostTime": 3.5, "round": 1}
        )
        assert request.player_id == "p1"
        assert request.focus_loss_count == 2

    def test_accepts_field_names(self):
        request = SubmitAnswerRequest(player_id="p1", answer="Paris")
        assert request.time_taken is None

    def test_invalid_prediction_rejected(self):
        with pytest.raises(ValidationError):
            PredictionRequest.model_validate({"playerId": "p1", "prediction": "maybe"})

    def test_prediction_enum(self):
        request = PredictionRequest.model_validate({"playerId": "p1", "prediction": "wrong"})
        assert request.prediction == PredictionValue.WRONG

    def test_leaderboard_phase_serialised_as_string(self):
        board = LeaderboardResponse(
            players=[LeaderboardEntry(id="p1", name="Alice", points=7)],
            current_round=2,
            phase="auction-results",
        )
        data = board.model_dump(mode="json", by_alias=True)
        assert data == {
            "players": [{"id": "p1", "name": "Alice", "points": 7}],
            "currentRound": 2,
            "phase": "auction-results",
        }

    def test_error_response(self):
        error = ErrorResponse(error="Invalid password", error_code=ErrorCode.INVALID_CREDENTIALS)
        data = error.model_dump(mode="json", by_alias=True)

        assert data["success"] is False
        assert data["errorCode"] == "INVALID_CREDENTIALS"
        assert data["details"] is None

    def test_player_info(self):
        assert PlayerInfo(name="Bob", points=-2).model_dump() == {"name": "Bob", "points": -2}


class TestConfig:
    """Tests for environment configuration."""

    def test_defaults(self, monkeypatch):
        for name in ("QUIZ_MASTER_PASSWORD", "QUIZ_STARTING_POINTS", "QUIZ_ALLOWED_ORIGINS"):
            monkeypatch.delenv(name, raising=False)
        config = GameConfig.from_env()

        assert config.master_password == "quiz"
        assert config.uses_default_password
        assert config.starting_points == 5
        assert config.allowed_origins == ["*"]

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("QUIZ_MASTER_PASSWORD", "hunter2")
        monkeypatch.setenv("QUIZ_STARTING_POINTS", "0")
        monkeypatch.setenv("QUIZ_FLAT_BONUS", "2")
        monkeypatch.setenv("QUIZ_ALLOWED_ORIGINS", "http://a.test, http://b.test")
        monkeypatch.setenv("QUIZ_LOG_LEVEL", "debug")
        config = GameConfig.from_env()

        assert config.master_password == "hunter2"
        assert not config.uses_default_password
        assert config.starting_points == 0
        assert config.flat_bonus == 2
        assert config.allowed_origins == ["http://a.test", "http://b.test"]
        assert config.log_level == "DEBUG"

    def test_describe_masks_password(self):
        config = GameConfig(master_password="hunter2")
        assert config.describe()["master_password"] == "********"

    def test_with_overrides(self):
        config = GameConfig().with_overrides(starting_points=10)
        assert config.starting_points == 10
        assert config.flat_bonus == 1
