"""
FastAPI Application - REST API for the quiz clients.

Endpoints:
    POST   /api/master/login                Check the quiz master password
    GET    /api/master/state                Full game state
    POST   /api/master/<command>            Phase and scoring commands
    POST   /api/player/register             Join the game
    GET    /api/player/state/{player_id}    Player-scoped state
    POST   /api/player/<action>             Bets, answers, predictions
    GET    /api/leaderboard                 Public ranking

Polling Flow:
    Every client polls its state endpoint about once a second.
    Every command responds with the state it produced, so clients
    can resynchronise without waiting for the next poll.

All requests and responses are JSON with explicit Pydantic schemas.
"""

import logging

logger = logging.getLogger(__name__)


def create_app(service=None, config=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional QuizService instance (creates new if not provided)
        config: Optional GameConfig (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Request
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .. import __version__
    from ..config import GameConfig
    from ..errors import QuizError
    from ..engine_core.action import CommandType
    from .service import QuizService
    from .schemas import (
        # Request models
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
        # Response models
        GameStateResponse,
        PlayerStateResponse,
        RegisterResponse,
        LoginResponse,
        LeaderboardResponse,
        ErrorResponse,
        HealthResponse,
    )

    if service is None:
        service = QuizService.from_config(config or GameConfig.from_env())
    game_config = service.session.config

    if game_config.uses_default_password:
        logger.warning("[startup] quiz master password is the default; set QUIZ_MASTER_PASSWORD")

    app = FastAPI(
        title="Quiz Party API",
        description="""
Live party quiz - one quiz master, many players, one leaderboard.

## Phases

`registration` → `betting` → `answering` → `results`, with optional
`auction`, `spotlight` and `poker` rounds from `results`, and
`leaderboard` at the end. Commands issued in the wrong phase are
rejected with `INVALID_COMMAND`.

## Error Codes

| Code | Description |
|------|-------------|
| `INVALID_CREDENTIALS` | Wrong quiz master password |
| `ANSWERING_LOCKED` | Answering is locked |
| `PLAYER_NOT_FOUND` | Unknown player id |
| `INVALID_COMMAND` | Not allowed in the current phase |
| `VALIDATION_ERROR` | Bet, answer or name breaks a rule |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=game_config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.quiz_service = service

    # =========================================================================
    # Error handling
    # =========================================================================

    @app.exception_handler(QuizError)
    async def quiz_error_handler(request: Request, exc: QuizError) -> JSONResponse:
        """Render game errors as structured responses."""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=exc.message,
                error_code=exc.error_code,
                details=exc.details,
            ).model_dump(mode="json", by_alias=True),
        )

    error_responses = {
        400: {"model": ErrorResponse, "description": "Rule violation"},
        404: {"model": ErrorResponse, "description": "Player not found"},
        409: {"model": ErrorResponse, "description": "Wrong phase"},
    }

    # =========================================================================
    # Quiz Master Endpoints
    # =========================================================================

    @app.post(
        "/api/master/login",
        response_model=LoginResponse,
        responses={401: {"model": ErrorResponse}},
        tags=["Master"],
        summary="Check the quiz master password",
    )
    async def login(body: LoginRequest) -> LoginResponse:
        return service.login(body)

    @app.get(
        "/api/master/state",
        response_model=GameStateResponse,
        tags=["Master"],
        summary="Get the full game state",
    )
    async def get_master_state() -> GameStateResponse:
        return service.get_master_state()

    def add_simple_command(command_type: CommandType, summary: str) -> None:
        """Register a POST route for a command without a body."""

        async def run_command() -> GameStateResponse:
            return service.run(command_type)

        app.add_api_route(
            f"/api/master/{command_type.value}",
            run_command,
            methods=["POST"],
            response_model=GameStateResponse,
            responses=error_responses,
            tags=["Master"],
            summary=summary,
            name=command_type.value.replace("-", "_"),
        )

    add_simple_command(CommandType.START_QUIZ, "Start the quiz at round 1")
    add_simple_command(CommandType.NEXT_ROUND, "Open the next round")
    add_simple_command(CommandType.ADVANCE_TO_ANSWERING, "Close betting and open answering")
    add_simple_command(CommandType.SHOW_RESULTS, "Charge missing answers and show results")
    add_simple_command(CommandType.START_AUCTION, "Open an auction")
    add_simple_command(CommandType.END_AUCTION, "Close the auction and charge the winner")
    add_simple_command(CommandType.START_POKER, "Collect antes and open a pot round")
    add_simple_command(CommandType.POKER_TO_ANSWERING, "Open answering for the pot round")
    add_simple_command(CommandType.SHOW_POKER_RESULTS, "Split the pot between correct answers")
    add_simple_command(CommandType.END_GAME, "Show the final leaderboard")
    add_simple_command(CommandType.RESET_GAME, "Wipe players and return to registration")

    @app.post(
        "/api/master/toggle-betting",
        response_model=GameStateResponse,
        responses=error_responses,
        tags=["Master"],
        summary="Enable or disable betting rounds",
    )
    async def toggle_betting(body: ToggleBettingRequest) -> GameStateResponse:
        return service.toggle_betting(body)

    @app.post(
        "/api/master/lock-answering",
        response_model=GameStateResponse,
        responses=error_responses,
        tags=["Master"],
        summary="Lock or unlock answer submission",
    )
    async def lock_answering(body: LockAnsweringRequest) -> GameStateResponse:
        return service.lock_answering(body)

    @app.post(
        "/api/master/mark-answer",
        response_model=GameStateResponse,
        responses=error_responses,
        tags=["Master"],
        summary="Grade a player's answer",
    )
    async def mark_answer(body: MarkAnswerRequest) -> GameStateResponse:
        return service.mark_answer(body)

    @app.post(
        "/api/master/undo-grading",
        response_model=GameStateResponse,
        responses=error_responses,
        tags=["Master"],
        summary="Reverse a grading",
    )
    async def undo_grading(body: PlayerIdRequest) -> GameStateResponse:
        return service.undo_grading(body)

    @app.post(
        "/api/master/adjust-score",
        response_model=GameStateResponse,
        responses=error_responses,
        tags=["Master"],
        summary="Add or remove points by hand",
    )
    async def adjust_score(body: AdjustScoreRequest) -> GameStateResponse:
        return service.adjust_score(body)

    @app.post(
        "/api/master/remove-player",
        response_model=GameStateResponse,
        responses=error_responses,
        tags=["Master"],
        summary="Remove a player from the game",
    )
    async def remove_player(body: PlayerIdRequest) -> GameStateResponse:
        return service.remove_player(body)

    @app.post(
        "/api/master/start-spotlight",
        response_model=GameStateResponse,
        responses=error_responses,
        tags=["Master"],
        summary="Put one player in the spotlight",
    )
    async def start_spotlight(body: PlayerIdRequest) -> GameStateResponse:
        return service.start_spotlight(body)

    @app.post(
        "/api/master/grade-spotlight",
        response_model=GameStateResponse,
        responses=error_responses,
        tags=["Master"],
        summary="Grade the spotlight answer and pay predictions",
    )
    async def grade_spotlight(body: GradeSpotlightRequest) -> GameStateResponse:
        return service.grade_spotlight(body)

    # =========================================================================
    # Player Endpoints
    # =========================================================================

    @app.post(
        "/api/player/register",
        response_model=RegisterResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Player"],
        summary="Join the game",
    )
    async def register(body: RegisterRequest) -> RegisterResponse:
        return service.register(body)

    @app.get(
        "/api/player/state/{player_id}",
        response_model=PlayerStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Player"],
        summary="Get the player's view of the game",
    )
    async def get_player_state(player_id: str) -> PlayerStateResponse:
        return service.get_player_state(player_id)

    @app.post(
        "/api/player/submit-bet",
        response_model=PlayerStateResponse,
        responses=error_responses,
        tags=["Player"],
        summary="Place a bet, or an auction bid",
    )
    async def submit_bet(body: SubmitBetRequest) -> PlayerStateResponse:
        return service.submit_bet(body)

    @app.post(
        "/api/player/submit-answer",
        response_model=PlayerStateResponse,
        responses={**error_responses, 403: {"model": ErrorResponse, "description": "Answering locked"}},
        tags=["Player"],
        summary="Submit an answer",
    )
    async def submit_answer(body: SubmitAnswerRequest) -> PlayerStateResponse:
        return service.submit_answer(body)

    @app.post(
        "/api/player/log-focus-loss",
        response_model=PlayerStateResponse,
        responses=error_responses,
        tags=["Player"],
        summary="Report the player leaving the page",
    )
    async def log_focus_loss(body: FocusLossRequest) -> PlayerStateResponse:
        return service.log_focus_loss(body)

    @app.post(
        "/api/player/submit-prediction",
        response_model=PlayerStateResponse,
        responses=error_responses,
        tags=["Player"],
        summary="Predict the spotlight outcome",
    )
    async def submit_prediction(body: PredictionRequest) -> PlayerStateResponse:
        return service.submit_prediction(body)

    # =========================================================================
    # Public Endpoints
    # =========================================================================

    @app.get(
        "/api/leaderboard",
        response_model=LeaderboardResponse,
        tags=["Public"],
        summary="Players ranked by points",
    )
    async def get_leaderboard() -> LeaderboardResponse:
        return service.get_leaderboard()

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        return HealthResponse(status="healthy", service="quizparty", version=__version__)

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Quiz Party API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn quizparty.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
