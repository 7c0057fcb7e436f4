"""
API Module - Host app interface.

Exposes the engine via REST API. A host app:
1. Lists themes and seats players in a session
2. Sends actions (play, claim, end turn, ...)
3. Renders the returned state, events and combo hint
4. Optionally listens on the session WebSocket for events

All state is session-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    PlayCardRequest,
    ClaimRequest,
    ContestRequest,
    # Responses
    ActionResponse,
    SessionResponse,
    GameStateResponse,
    ThemeListResponse,
    ErrorResponse,
    # Shared
    PlayerInfo,
    PoolInfo,
    CardInfo,
    ComboHintInfo,
    EventInfo,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "PlayCardRequest",
    "ClaimRequest",
    "ContestRequest",
    # Responses
    "ActionResponse",
    "SessionResponse",
    "GameStateResponse",
    "ThemeListResponse",
    "ErrorResponse",
    # Shared
    "PlayerInfo",
    "PoolInfo",
    "CardInfo",
    "ComboHintInfo",
    "EventInfo",
    # Service
    "APIService",
    "create_app",
]
