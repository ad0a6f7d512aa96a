"""
API Module - REST interface to the effect engine.

Exposes the engine via REST API. A client:
1. Creates a game (standard or a prepared scenario)
2. Plays cards, draws, ends turns
3. Answers decisions the engine raises for the human side
4. Inspects the Awaiting decision and the Pending Effect Queue

All state is session-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    CreateGameRequest,
    DecisionRequest,
    PlayRequest,
    DrawRequest,
    EndTurnRequest,
    # Responses
    GameStateResponse,
    DecisionResponse,
    QueueResponse,
    CatalogValidationResponse,
    ErrorResponse,
    # Shared
    CardInfo,
    LaneInfo,
    PlayerInfo,
    DecisionInfo,
    QueuedEffectInfo,
    ErrorCode,
)
from .service import GameService
from .app import create_app

__all__ = [
    # Requests
    "CreateGameRequest",
    "DecisionRequest",
    "PlayRequest",
    "DrawRequest",
    "EndTurnRequest",
    # Responses
    "GameStateResponse",
    "DecisionResponse",
    "QueueResponse",
    "CatalogValidationResponse",
    "ErrorResponse",
    # Shared
    "CardInfo",
    "LaneInfo",
    "PlayerInfo",
    "DecisionInfo",
    "QueuedEffectInfo",
    "ErrorCode",
    # Service
    "GameService",
    "create_app",
]
