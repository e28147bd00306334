"""
API Service - Business logic layer between the API and the session.

The service:
1. Translates API requests to commands
2. Runs them through the game session
3. Builds master, player and leaderboard views of the state

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
Errors surface as QuizError subclasses raised by the session.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from ..config import GameConfig
from ..engine_core.state import GameState, RoundEntry
from ..engine_core.action import Command, CommandType
from ..session import GameSession
from .schemas import (
    # Requests
    LoginRequest,
    ToggleBettingRequest,
    LockAnsweringRequest,
    MarkAnswerRequest,
    AdjustScoreRequest,
    PlayerIdRequest,
    GradeSpotlightRequest,
    RegisterRequest,
    SubmitBetRequest,
    SubmitAnswerRequest,
    FocusLossRequest,
    PredictionRequest,
    # Responses
    GameStateResponse,
    PlayerStateResponse,
    RegisterResponse,
    LoginResponse,
    LeaderboardResponse,
    LeaderboardEntry,
    # Shared
    PlayerInfo,
    RoundEntryInfo,
    AuctionWinnerInfo,
    SpotlightResultInfo,
    PokerResultInfo,
    PokerWinnerInfo,
    PlayerResultInfo,
    PlayerSpotlightInfo,
    PlayerPokerInfo,
)


@dataclass
class QuizService:
    """
    Main API service for the quiz clients.

    Usage:
        service = QuizService()

        # Player joins
        registered = service.register(RegisterRequest(name="Alice"))

        # Quiz master drives the game
        state = service.run(CommandType.START_QUIZ)

        # Player polls
        view = service.get_player_state(registered.player_id)
    """
    session: GameSession = field(default_factory=GameSession)

    @classmethod
    def from_config(cls, config: GameConfig) -> QuizService:
        return cls(session=GameSession(config))

    # =========================================================================
    # Quiz master
    # =========================================================================

    def login(self, request: LoginRequest) -> LoginResponse:
        self.session.check_password(request.password)
        return LoginResponse(success=True)

    def get_master_state(self) -> GameStateResponse:
        return self._build_game_state(self.session.snapshot())

    def run(self, command_type: CommandType) -> GameStateResponse:
        """Apply a command that takes no arguments."""
        return self._command(Command.simple(command_type))

    def toggle_betting(self, request: ToggleBettingRequest) -> GameStateResponse:
        return self._command(Command.toggle_betting(request.enabled))

    def lock_answering(self, request: LockAnsweringRequest) -> GameStateResponse:
        return self._command(Command.lock_answering(request.locked))

    def mark_answer(self, request: MarkAnswerRequest) -> GameStateResponse:
        return self._command(Command.mark_answer(request.player_id, request.correct))

    def undo_grading(self, request: PlayerIdRequest) -> GameStateResponse:
        return self._command(Command.undo_grading(request.player_id))

    def adjust_score(self, request: AdjustScoreRequest) -> GameStateResponse:
        return self._command(Command.adjust_score(request.player_id, request.change))

    def remove_player(self, request: PlayerIdRequest) -> GameStateResponse:
        return self._command(Command.remove_player(request.player_id))

    def start_spotlight(self, request: PlayerIdRequest) -> GameStateResponse:
        return self._command(Command.start_spotlight(request.player_id))

    def grade_spotlight(self, request: GradeSpotlightRequest) -> GameStateResponse:
        return self._command(Command.grade_spotlight(request.correct))

    def _command(self, command: Command) -> GameStateResponse:
        return self._build_game_state(self.session.dispatch(command))

    # =========================================================================
    # Players
    # =========================================================================

    def register(self, request: RegisterRequest) -> RegisterResponse:
        """Create a player. Every call creates a new identity."""
        player_id = self.session.register_player(request.name)
        player = self.session.require_player(player_id).players[player_id]
        return RegisterResponse(
            player_id=player_id,
            player=PlayerInfo(name=player.name, points=player.points),
        )

    def get_player_state(self, player_id: str) -> PlayerStateResponse:
        """Player-scoped view. Raises NotFound for unknown ids."""
        return self._build_player_state(self.session.require_player(player_id), player_id)

    def submit_bet(self, request: SubmitBetRequest) -> PlayerStateResponse:
        return self._player_command(
            request.player_id, Command.submit_bet(request.player_id, request.bet)
        )

    def submit_answer(self, request: SubmitAnswerRequest) -> PlayerStateResponse:
        return self._player_command(
            request.player_id,
            Command.submit_answer(request.player_id, request.answer, request.time_taken),
        )

    def log_focus_loss(self, request: FocusLossRequest) -> PlayerStateResponse:
        return self._player_command(
            request.player_id,
            Command.log_focus_loss(
                request.player_id,
                request.focus_loss_count,
                request.total_focus_lost_time,
                request.round,
            ),
        )

    def submit_prediction(self, request: PredictionRequest) -> PlayerStateResponse:
        return self._player_command(
            request.player_id,
            Command.submit_prediction(request.player_id, request.prediction.value),
        )

    def _player_command(self, player_id: str, command: Command) -> PlayerStateResponse:
        return self._build_player_state(self.session.dispatch(command), player_id)

    # =========================================================================
    # Public
    # =========================================================================

    def get_leaderboard(self) -> LeaderboardResponse:
        state = self.session.snapshot()
        return LeaderboardResponse(
            players=[
                LeaderboardEntry(id=player_id, name=player.name, points=player.points)
                for player_id, player in state.ranked_players()
            ],
            current_round=state.current_round,
            phase=state.phase.value,
        )

    # =========================================================================
    # Conversion Helpers
    # =========================================================================

    def _build_game_state(self, state: GameState) -> GameStateResponse:
        return GameStateResponse(
            phase=state.phase.value,
            current_round=state.current_round,
            players={
                player_id: PlayerInfo(name=p.name, points=p.points)
                for player_id, p in state.players.items()
            },
            answers={
                player_id: self._convert_entry(entry)
                for player_id, entry in state.answers.items()
            },
            betting_enabled=state.betting_enabled,
            answering_locked=state.answering_locked,
            answering_started_at=state.answering_started_at,
            auction_winner=self._convert_auction_winner(state),
            spotlight_player_id=state.spotlight_player_id,
            spotlight_predictions={
                player_id: prediction.value
                for player_id, prediction in state.spotlight_predictions.items()
            },
            spotlight_result=self._convert_spotlight_result(state),
            poker_pot=state.poker_pot,
            poker_bets=dict(state.poker_bets),
            poker_result=self._convert_poker_result(state),
        )

    def _build_player_state(self, state: GameState, player_id: str) -> PlayerStateResponse:
        """
        Project the state onto one player.

        Only the player's own round entry is exposed; other players'
        answers stay with the quiz master.
        """
        player = state.players[player_id]
        entry = state.get_entry(player_id)

        result = None
        if entry:
            result = PlayerResultInfo(
                correct=entry.correct,
                bet=entry.bet,
                points_change=entry.points_change,
            )

        spotlight_name = None
        if state.spotlight_player_id in state.players:
            spotlight_name = state.players[state.spotlight_player_id].name
        prediction = state.spotlight_predictions.get(player_id)

        return PlayerStateResponse(
            phase=state.phase.value,
            current_round=state.current_round,
            player=PlayerInfo(name=player.name, points=player.points),
            betting_enabled=state.betting_enabled,
            answering_locked=state.answering_locked,
            has_submitted_bet=bool(entry and entry.has_bet),
            has_submitted_answer=bool(entry and entry.has_answer),
            is_graded=bool(entry and entry.graded),
            auction_winner=self._convert_auction_winner(state),
            result=result,
            spotlight=PlayerSpotlightInfo(
                player_id=state.spotlight_player_id,
                player_name=spotlight_name,
                is_spotlighted=state.spotlight_player_id == player_id,
                prediction=prediction.value if prediction else None,
                has_predicted=prediction is not None,
                result=self._convert_spotlight_result(state),
            ),
            poker=PlayerPokerInfo(
                pot=state.poker_pot,
                ante=state.poker_bets.get(player_id),
                winnings=entry.poker_winnings if entry else None,
                loss=entry.poker_loss if entry else None,
                result=self._convert_poker_result(state),
            ),
        )

    def _convert_entry(self, entry: RoundEntry) -> RoundEntryInfo:
        return RoundEntryInfo(
            bet=entry.bet,
            answer=entry.answer,
            time_taken=entry.time_taken,
            focus_losses=entry.focus_losses,
            focus_lost_time=entry.focus_lost_time,
            points_at_bid=entry.points_at_bid,
            graded=entry.graded,
            correct=entry.correct,
            points_change=entry.points_change,
            poker_winnings=entry.poker_winnings,
            poker_loss=entry.poker_loss,
        )

    def _convert_auction_winner(self, state: GameState) -> AuctionWinnerInfo | None:
        winner = state.auction_winner
        if not winner:
            return None
        return AuctionWinnerInfo(id=winner.id, name=winner.name, bid=winner.bid)

    def _convert_spotlight_result(self, state: GameState) -> SpotlightResultInfo | None:
        result = state.spotlight_result
        if not result:
            return None
        return SpotlightResultInfo(
            player_id=result.player_id,
            player_name=result.player_name,
            correct=result.correct,
            points_change=result.points_change,
            predictions={pid: p.value for pid, p in result.predictions.items()},
            rewarded_player_ids=list(result.rewarded_player_ids),
        )

    def _convert_poker_result(self, state: GameState) -> PokerResultInfo | None:
        result = state.poker_result
        if not result:
            return None
        return PokerResultInfo(
            pot=result.pot,
            share=result.share,
            remainder=result.remainder,
            winners=[
                PokerWinnerInfo(id=w.id, name=w.name, winnings=w.winnings)
                for w in result.winners
            ],
            loser_ids=list(result.loser_ids),
        )
