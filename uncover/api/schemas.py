"""
Pydantic Schemas for API - Proper request/response models for OpenAPI.

These models define the exact contract between a client (board UI, test
harness) and the engine. All responses include explicit types for OpenAPI
schema generation.

Error Codes:
- GAME_NOT_FOUND: Game does not exist or has ended
- INVALID_SELECTION: Submitted answer is not legal for the Awaiting decision (retryable)
- ILLEGAL_ACTION: Play/draw/end turn not allowed right now
- STATE_VIOLATION: Operation would break the single-decision rule
- INVALID_CATALOG: Catalog failed validation
- UNKNOWN_SCENARIO: Scenario name not recognised
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SideName(str, Enum):
    """The two seats at the table."""
    PLAYER = "player"
    OPPONENT = "opponent"


class GameStatus(str, Enum):
    """Game status values."""
    ACTIVE = "active"
    AWAITING_DECISION = "awaiting_decision"
    GAME_OVER = "game_over"


class ErrorCode(str, Enum):
    """Structured error codes."""
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    INVALID_SELECTION = "INVALID_SELECTION"
    ILLEGAL_ACTION = "ILLEGAL_ACTION"
    STATE_VIOLATION = "STATE_VIOLATION"
    INVALID_CATALOG = "INVALID_CATALOG"
    UNKNOWN_SCENARIO = "UNKNOWN_SCENARIO"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """Card information for display."""
    card_id: str
    name: str
    owner: SideName
    face_up: bool = True
    value: int = Field(description="Printed value")
    effective_value: int = Field(description="Value counted in the lane (face-down = 2)")

    model_config = {"from_attributes": True}


class LaneInfo(BaseModel):
    """One lane of one side; cards listed bottom to top."""
    lane_index: int
    protocol: Optional[str] = None
    cards: list[CardInfo] = Field(default_factory=list)
    value: int = 0


class PlayerInfo(BaseModel):
    """Player information for display."""
    side: SideName
    is_human: bool
    is_current_turn: bool = False
    hand: list[CardInfo] = Field(default_factory=list)
    deck_count: int = 0
    discard: list[CardInfo] = Field(default_factory=list)
    lanes: list[LaneInfo] = Field(default_factory=list)


class DecisionInfo(BaseModel):
    """The decision currently Awaiting an answer."""
    choice_id: str
    kind: str = Field(description="select_board_cards, select_hand_cards, select_lane")
    actor: SideName = Field(description="Side that must answer")
    prompt: str
    options: list[str] = Field(description="Card instance IDs, or lane indexes for select_lane")
    min_choices: int = 1
    max_choices: int = 1
    optional: bool = False
    source_effect_id: str
    source_card_id: str
    subject_card_id: Optional[str] = None


class QueuedEffectInfo(BaseModel):
    """An effect waiting in the Pending Effect Queue."""
    seq: int
    effect_id: str
    source_card_id: str
    owner: SideName
    cause: str
    box: Optional[str] = None


class SkippedEffectInfo(BaseModel):
    """An effect skipped because nothing matched its target."""
    effect_id: str
    source_card_id: str
    owner: SideName
    reason: str


# =============================================================================
# Request Models
# =============================================================================

class CreateGameRequest(BaseModel):
    """Request to create a new game."""
    scenario: str = Field("standard", description="standard or psychic3_uncover")
    random_seed: Optional[int] = Field(None, description="Seed for reproducible games")


class DecisionRequest(BaseModel):
    """Answer to the Awaiting decision."""
    side: SideName = SideName.PLAYER
    values: list[str] = Field(
        default_factory=list,
        description="Selected options; empty only for optional decisions",
    )


class PlayRequest(BaseModel):
    """Play a card from hand."""
    side: SideName = SideName.PLAYER
    card_id: str
    lane_index: int = Field(..., ge=0, le=2)
    face_up: bool = True


class DrawRequest(BaseModel):
    """Draw cards."""
    side: SideName = SideName.PLAYER
    count: int = Field(1, ge=1)


class EndTurnRequest(BaseModel):
    """End the side's turn."""
    side: SideName = SideName.PLAYER


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameStateResponse(BaseModel):
    """Complete game state for display."""
    game_id: str
    status: GameStatus
    phase: str
    turn: SideName
    turn_number: int
    players: list[PlayerInfo] = Field(default_factory=list)
    decision: Optional[DecisionInfo] = None
    pending: list[QueuedEffectInfo] = Field(default_factory=list)
    skipped: list[SkippedEffectInfo] = Field(default_factory=list)
    executed: list[str] = Field(default_factory=list)
    log: list[str] = Field(default_factory=list)
    adapter_error: Optional[str] = None
    api_version: str = "v1"


class DecisionResponse(BaseModel):
    """The Awaiting decision, if any."""
    game_id: str
    idle: bool
    decision: Optional[DecisionInfo] = None
    api_version: str = "v1"


class QueueResponse(BaseModel):
    """Read-only view of the Pending Effect Queue."""
    game_id: str
    decision: Optional[DecisionInfo] = None
    pending: list[QueuedEffectInfo] = Field(default_factory=list)
    count: int = 0
    api_version: str = "v1"


class CatalogValidationResponse(BaseModel):
    """Result of validating a catalog."""
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    card_count: int = 0
    api_version: str = "v1"


class GameListResponse(BaseModel):
    """Response listing active games."""
    games: list[str]
    count: int


class EndGameResponse(BaseModel):
    """Response after ending a game."""
    success: bool
    game_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    environment: str
