"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between a host app and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has been ended
- UNKNOWN_THEME: No theme with that id
- INVALID_THEME: Theme failed validation (details carry the error list)
- VALIDATION_ERROR: Request body is malformed
- INTERNAL_ERROR: The engine hit an invariant violation; nothing was committed

Refused game actions (card not in hand, wrong phase, ...) are not HTTP
errors: they come back as ActionResponse with success=false and a
PlayerErrorCode.
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..errors import PlayerErrorCode


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    CREATED = "created"
    ACTIVE = "active"
    GAME_OVER = "game_over"
    ABANDONED = "abandoned"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    UNKNOWN_THEME = "UNKNOWN_THEME"
    INVALID_THEME = "INVALID_THEME"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """A card instance with its definition, for display."""
    instance_id: str
    card_id: str
    name: str
    card_type: str
    description: str = ""
    cost: int = 0
    rarity: Optional[str] = None
    tags: list[str] = Field(default_factory=list)


class StatusInfo(BaseModel):
    """An active status on a player. `duration` 0 or less means permanent."""
    status_id: str
    name: str
    duration: int
    stacks: int = 1


class PlayerInfo(BaseModel):
    """Player information for display."""
    player_id: str
    name: str
    is_current_turn: bool = False
    stats: dict[str, float] = Field(default_factory=dict)
    resources: dict[str, float] = Field(default_factory=dict)
    hand: list[CardInfo] = Field(default_factory=list)
    statuses: list[StatusInfo] = Field(default_factory=list)
    deck_size: int = 0
    discard_size: int = 0
    eliminated: bool = False


class PoolInfo(BaseModel):
    """Live state of a shared resource pool."""
    pool_id: str
    name: str
    remaining: int
    total_amount: int
    renewable: bool = False
    turns_until_renewal: Optional[int] = None
    claimed_by: dict[str, int] = Field(default_factory=dict)


class ComboHintInfo(BaseModel):
    """The single combo currently worth surfacing."""
    combo_id: str
    combo_name: str
    reward: str = ""
    progress: float = Field(ge=0.0, le=1.0)
    completed: bool = False
    already_played: list[str] = Field(default_factory=list)
    still_needed: list[str] = Field(default_factory=list)
    still_needed_count: int = 0


class OutcomeInfo(BaseModel):
    """Which condition ended the game."""
    reason: str = Field(description="stat_threshold, resource_threshold or turn_limit")
    turn: int
    player_id: Optional[str] = None
    outcome: Optional[str] = Field(None, description="victory or defeat for threshold endings")
    description: str = ""


class EventInfo(BaseModel):
    """A published game event."""
    event_type: str
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: float


# =============================================================================
# Requests
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Seat players at a built-in theme."""
    theme_id: str = Field(description="Id from GET /api/v1/themes")
    player_ids: list[str] = Field(min_length=1, description="Seat order")
    names: dict[str, str] = Field(default_factory=dict, description="Display names by player id")
    seed: Optional[int] = Field(None, description="RNG seed for a reproducible game")
    auto_start: bool = Field(True, description="Deal immediately")


class StartGameRequest(BaseModel):
    seed: Optional[int] = None


class PlayCardRequest(BaseModel):
    player_id: str
    instance_id: str


class DiscardCardRequest(BaseModel):
    player_id: str
    instance_id: str


class ClaimRequest(BaseModel):
    pool_id: str
    player_id: str


class ContestRequest(BaseModel):
    """Simultaneous claims: at most one candidate wins."""
    pool_id: str
    player_ids: list[str] = Field(min_length=1)


# =============================================================================
# Responses
# =============================================================================

class GameStateResponse(BaseModel):
    """Complete game state for display."""
    session_id: str
    theme_id: str
    phase: str
    turn_number: int
    current_player_id: Optional[str] = None
    players: list[PlayerInfo]
    pools: list[PoolInfo] = Field(default_factory=list)
    played_this_turn: list[str] = Field(default_factory=list)
    combo_hint: Optional[ComboHintInfo] = None
    outcome: Optional[OutcomeInfo] = None
    seed: Optional[int] = None

    api_version: str = "v1"


class SessionResponse(BaseModel):
    """Session status."""
    session_id: str
    theme_id: str
    status: SessionStatus
    player_ids: list[str]
    created_at: float
    game_state: Optional[GameStateResponse] = None

    api_version: str = "v1"


class ActionResponse(BaseModel):
    """Result of one host action."""
    session_id: str
    success: bool
    error: Optional[str] = None
    error_code: Optional[PlayerErrorCode] = None
    winner_id: Optional[str] = Field(None, description="Claim winner for claim/contest")
    events: list[EventInfo] = Field(default_factory=list)
    game_state: Optional[GameStateResponse] = None

    api_version: str = "v1"


class ComboHintResponse(BaseModel):
    session_id: str
    player_id: str
    hint: Optional[ComboHintInfo] = None


class EventHistoryResponse(BaseModel):
    session_id: str
    events: list[EventInfo]


class ThemeInfo(BaseModel):
    """Summary of an available theme."""
    theme_id: str
    name: str
    version: str
    description: str = ""
    min_players: int
    max_players: int
    card_count: int
    stats: list[str] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)
    shared_resources: list[str] = Field(default_factory=list)


class ThemeListResponse(BaseModel):
    themes: list[ThemeInfo]
    count: int


class ThemeValidationResponse(BaseModel):
    """Result of checking a theme document without installing it."""
    valid: bool
    theme_id: Optional[str] = None
    errors: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None

    api_version: str = "v1"


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    environment: str
