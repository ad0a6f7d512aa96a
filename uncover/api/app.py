"""
FastAPI Application - REST API for the effect engine.

Endpoints:
    GET    /api/v1/health                 Health check
    POST   /api/v1/catalog/validate       Validate a catalog (JSON body)
    POST   /api/v1/games                  Create game (standard or scenario)
    GET    /api/v1/games                  List active games
    GET    /api/v1/games/{id}             Get game state
    DELETE /api/v1/games/{id}             End game
    GET    /api/v1/games/{id}/decision    Get the Awaiting decision
    POST   /api/v1/games/{id}/decision    Answer the Awaiting decision
    GET    /api/v1/games/{id}/queue       Inspect the Pending Effect Queue
    POST   /api/v1/games/{id}/play        Play a card
    POST   /api/v1/games/{id}/draw        Draw cards
    POST   /api/v1/games/{id}/end-turn    End the turn

Decision Flow:
    1. A play (or draw, or end turn) runs effects until one needs a choice
    2. Choices for the automated side are answered inside the same request
    3. A choice for the human side comes back as `decision` in the response
    4. POST /decision answers it; the engine drains the queue and continues

Endpoints are plain (sync) functions: FastAPI runs them on a thread pool
and the session lock keeps calls into one game serialized.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Any, Union
import logging
import os

from fastapi import FastAPI, Body, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..catalog import DataIntegrityError, load_catalog_file
from .service import GameService
from .schemas import (
    # Request models
    CreateGameRequest,
    DecisionRequest,
    PlayRequest,
    DrawRequest,
    EndTurnRequest,
    # Response models
    GameStateResponse,
    DecisionResponse,
    QueueResponse,
    CatalogValidationResponse,
    ErrorResponse,
    GameListResponse,
    EndGameResponse,
    HealthResponse,
    # Enums
    ErrorCode,
)

logger = logging.getLogger(__name__)

# Environment configuration
UNCOVER_ENV = os.getenv("UNCOVER_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

ERROR_STATUS = {
    ErrorCode.GAME_NOT_FOUND: 404,
    ErrorCode.INVALID_SELECTION: 422,
    ErrorCode.ILLEGAL_ACTION: 409,
    ErrorCode.STATE_VIOLATION: 409,
    ErrorCode.INVALID_CATALOG: 422,
    ErrorCode.UNKNOWN_SCENARIO: 400,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INTERNAL_ERROR: 500,
}


def create_app(service: GameService | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional GameService instance (creates new if not provided).
            Without one, UNCOVER_CATALOG_PATH selects the catalog file; the
            bundled main set is used when it is unset.

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Uncover Effect Engine API",
        description="""
Effect resolution engine for a two-player lane card game.

## Error Codes

| Code | Description |
|------|-------------|
| `GAME_NOT_FOUND` | Game does not exist or has ended |
| `INVALID_SELECTION` | Answer is not legal for the Awaiting decision; retry |
| `ILLEGAL_ACTION` | Play/draw/end turn not allowed right now |
| `STATE_VIOLATION` | Nothing is Awaiting, or a second decision was attempted |
| `INVALID_CATALOG` | Catalog failed validation |
| `UNKNOWN_SCENARIO` | Scenario name not recognised |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if service is None:
        catalog_path = os.getenv("UNCOVER_CATALOG_PATH")
        if catalog_path:
            logger.info("Loading catalog from %s", catalog_path)
            service = GameService(catalog=load_catalog_file(catalog_path))
        else:
            service = GameService()
    api_service = service

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=ERROR_STATUS.get(error.error_code, 400),
            content=error.model_dump(mode="json"),
        )

    def respond(result):
        if isinstance(result, ErrorResponse):
            return make_error_response(result)
        return result

    @app.exception_handler(DataIntegrityError)
    def data_integrity_handler(request, exc: DataIntegrityError):
        return make_error_response(ErrorResponse(
            error=str(exc),
            error_code=ErrorCode.INVALID_CATALOG,
            details={"errors": exc.errors},
        ))

    # =========================================================================
    # System Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    def health_check() -> HealthResponse:
        """Check API health status."""
        return HealthResponse(
            status="healthy",
            service="uncover",
            version=__version__,
            environment=UNCOVER_ENV,
        )

    @app.post(
        "/api/v1/catalog/validate",
        response_model=CatalogValidationResponse,
        tags=["Catalog"],
        summary="Validate a card catalog",
    )
    def validate_catalog(
        catalog: Any = Body(..., description="Catalog: protocol name -> list of cards"),
    ) -> CatalogValidationResponse:
        """
        Validate a catalog without loading it.

        Always 200; check `valid`, `errors` and `warnings`.
        """
        return api_service.validate_catalog(catalog)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=GameStateResponse,
        status_code=201,
        responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Create a new game",
    )
    def create_game(request: CreateGameRequest) -> Union[GameStateResponse, JSONResponse]:
        """
        Create a new game.

        Use `scenario=standard` for seeded decks, or a named scenario such
        as `psychic3_uncover` for a prepared board.
        """
        return respond(api_service.create_game(request))

    @app.get(
        "/api/v1/games",
        response_model=GameListResponse,
        tags=["Games"],
        summary="List active games",
    )
    def list_games() -> GameListResponse:
        games = api_service.list_games()
        return GameListResponse(games=games, count=len(games))

    @app.get(
        "/api/v1/games/{game_id}",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Get game state",
    )
    def get_game(game_id: str) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.get_game(game_id))

    @app.delete(
        "/api/v1/games/{game_id}",
        response_model=EndGameResponse,
        tags=["Games"],
        summary="End a game",
    )
    def end_game(
        game_id: str,
        reason: str = Query("user_ended", description="Reason for ending"),
    ) -> EndGameResponse:
        """End a game; any Awaiting decision and queued effects are dropped."""
        success = api_service.end_game(game_id, reason)
        return EndGameResponse(success=success, game_id=game_id)

    # =========================================================================
    # Decision Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/games/{game_id}/decision",
        response_model=DecisionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Decisions"],
        summary="Get the Awaiting decision",
    )
    def get_decision(game_id: str) -> Union[DecisionResponse, JSONResponse]:
        return respond(api_service.get_decision(game_id))

    @app.post(
        "/api/v1/games/{game_id}/decision",
        response_model=GameStateResponse,
        responses={
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Nothing is awaiting"},
            422: {"model": ErrorResponse, "description": "Illegal selection, retry"},
        },
        tags=["Decisions"],
        summary="Answer the Awaiting decision",
    )
    def submit_decision(
        game_id: str, request: DecisionRequest
    ) -> Union[GameStateResponse, JSONResponse]:
        """
        Answer the Awaiting decision.

        On INVALID_SELECTION the decision stays open and can be answered again.
        """
        return respond(api_service.submit_decision(game_id, request))

    @app.post(
        "/api/v1/games/{game_id}/advance",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Decisions"],
        summary="Retry the automated side's answer",
    )
    def advance(game_id: str) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.advance(game_id))

    @app.get(
        "/api/v1/games/{game_id}/queue",
        response_model=QueueResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Decisions"],
        summary="Inspect the Pending Effect Queue",
    )
    def get_queue(game_id: str) -> Union[QueueResponse, JSONResponse]:
        return respond(api_service.get_queue(game_id))

    # =========================================================================
    # Action Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games/{game_id}/play",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Actions"],
        summary="Play a card from hand",
    )
    def play_card(game_id: str, request: PlayRequest) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.play_card(game_id, request))

    @app.post(
        "/api/v1/games/{game_id}/draw",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Actions"],
        summary="Draw cards",
    )
    def draw(game_id: str, request: DrawRequest) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.draw(game_id, request))

    @app.post(
        "/api/v1/games/{game_id}/end-turn",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Actions"],
        summary="End the turn",
    )
    def end_turn(game_id: str, request: EndTurnRequest) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.end_turn(game_id, request))

    return app
