"""
FastAPI Application - REST API for host apps.

Endpoints:
    GET    /api/v1/themes                       List available themes
    POST   /api/v1/themes/validate              Check a theme document
    POST   /api/v1/sessions                     Create game session
    GET    /api/v1/sessions                     List active sessions
    GET    /api/v1/sessions/{id}                Get session status
    DELETE /api/v1/sessions/{id}                End session
    GET    /api/v1/sessions/{id}/state          Get game state
    GET    /api/v1/sessions/{id}/events         Recent events
    GET    /api/v1/sessions/{id}/combo-hint     Combo hint for a player
    POST   /api/v1/sessions/{id}/start          Deal (when auto_start was off)
    POST   /api/v1/sessions/{id}/reset          Deal again from scratch
    POST   /api/v1/sessions/{id}/play           Play a card
    POST   /api/v1/sessions/{id}/discard        Discard a card
    POST   /api/v1/sessions/{id}/claim          Claim from a shared pool
    POST   /api/v1/sessions/{id}/contest        Simultaneous claims
    POST   /api/v1/sessions/{id}/advance-phase  Step to the next phase
    POST   /api/v1/sessions/{id}/end-turn       End the current turn
    WS     /api/v1/sessions/{id}/ws             WebSocket for real-time events

Action Flow:
    1. Each action resolves completely before the response is sent
    2. A refused action returns 200 with success=false and a player error code;
       the game state is unchanged
    3. A successful action returns its events in order and the new state;
       the same events are pushed to WebSocket listeners

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Any, Optional, Union
import json
import logging
import os

from fastapi import Body, FastAPI, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..errors import ConfigurationError, InvariantViolation
from .service import APIService
from .schemas import (
    # Request models
    CreateSessionRequest,
    StartGameRequest,
    PlayCardRequest,
    DiscardCardRequest,
    ClaimRequest,
    ContestRequest,
    # Response models
    ActionResponse,
    ComboHintResponse,
    EventHistoryResponse,
    GameStateResponse,
    SessionResponse,
    ThemeListResponse,
    ThemeValidationResponse,
    ErrorResponse,
    SessionListResponse,
    EndSessionResponse,
    HealthResponse,
    # Enums
    ErrorCode,
)

logger = logging.getLogger(__name__)

# Environment configuration
THEMECARDS_ENV = os.getenv("THEMECARDS_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


def create_app(service: Optional[APIService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Themecards Engine API",
        description="""
Theme-driven card game rules engine.

## Actions

Every action endpoint returns an `ActionResponse`. A refused action is not an
HTTP error: `success` is false, `error_code` names the reason and the game
state is unchanged.

| Player error code | Meaning |
|-------------------|---------|
| `CARD_NOT_IN_HAND` | The instance id is not in that player's hand |
| `WRONG_PHASE` | Cards can only be played in the main/action phases |
| `INSUFFICIENT_COST` | Not enough of the theme's cost resource |
| `NOT_YOUR_TURN` | Only the current player may play |
| `POOL_EXHAUSTED` | The shared pool has nothing left |
| `CLAIM_REJECTED` | The pool's claim rules exclude this player |
| `GAME_OVER` | The game has ended |

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `UNKNOWN_THEME` | No theme with that id |
| `INVALID_THEME` | Theme failed validation |
| `VALIDATION_ERROR` | Request could not be applied |
| `INTERNAL_ERROR` | Engine invariant violated; nothing was committed |
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

    # Service instance
    api_service = service or APIService()

    # WebSocket connections
    ws_connections: dict[str, list[WebSocket]] = {}

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def error_status(response: ErrorResponse) -> int:
        if response.error_code in (ErrorCode.SESSION_NOT_FOUND, ErrorCode.UNKNOWN_THEME):
            return 404
        if response.error_code == ErrorCode.INVALID_THEME:
            return 422
        return 400

    def to_error(response: ErrorResponse) -> JSONResponse:
        return make_error_response(
            response.error_code,
            response.error,
            status_code=error_status(response),
            details=response.details,
        )

    @app.exception_handler(InvariantViolation)
    async def invariant_violation_handler(request: Request, exc: InvariantViolation) -> JSONResponse:
        logger.error("Invariant violation on %s: %s", request.url.path, exc)
        return make_error_response(ErrorCode.INTERNAL_ERROR, str(exc), status_code=500)

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        logger.error("Theme configuration error on %s: %s", request.url.path, exc)
        return make_error_response(ErrorCode.INTERNAL_ERROR, str(exc), status_code=500)

    async def broadcast_to_session(session_id: str, message: dict):
        """Broadcast a message to all WebSocket connections for a session."""
        if session_id in ws_connections:
            dead_connections = []
            for ws in ws_connections[session_id]:
                try:
                    await ws.send_json(message)
                except (WebSocketDisconnect, RuntimeError):
                    dead_connections.append(ws)
            for ws in dead_connections:
                ws_connections[session_id].remove(ws)

    async def finish_action(
        session_id: str,
        response: Union[ActionResponse, ErrorResponse],
    ) -> Union[ActionResponse, JSONResponse]:
        if isinstance(response, ErrorResponse):
            return to_error(response)
        if response.success:
            await broadcast_to_session(session_id, {
                "type": "events",
                "payload": [e.model_dump(mode="json") for e in response.events],
            })
        return response

    # =========================================================================
    # Theme Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/themes",
        response_model=ThemeListResponse,
        tags=["Themes"],
        summary="List available themes",
    )
    async def list_themes() -> ThemeListResponse:
        """Built-in themes plus any JSON themes in THEMECARDS_THEME_DIR."""
        return api_service.list_themes()

    @app.post(
        "/api/v1/themes/validate",
        response_model=ThemeValidationResponse,
        tags=["Themes"],
        summary="Validate a theme document",
    )
    async def validate_theme(
        document: Annotated[dict[str, Any], Body(description="Theme document as JSON")],
    ) -> ThemeValidationResponse:
        """Parse and cross-check a theme document without installing it."""
        return api_service.validate_theme_document(document)

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Seating rejected by the theme"},
            404: {"model": ErrorResponse, "description": "Unknown theme"},
            422: {"model": ErrorResponse, "description": "Theme failed validation"},
        },
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(request: CreateSessionRequest) -> Union[SessionResponse, JSONResponse]:
        """
        Seat players at a theme.

        With `auto_start` (the default) hands are dealt and the first turn is
        open when this returns.
        """
        response = api_service.create_session(request)
        if isinstance(response, ErrorResponse):
            return to_error(response)
        return response

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        """Get the current status of a game session."""
        response = api_service.get_session(session_id)
        if isinstance(response, ErrorResponse):
            return to_error(response)
        return response

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(
        session_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> EndSessionResponse:
        """End a game session and release all of its state."""
        success = api_service.end_session(session_id, reason)
        for ws in ws_connections.pop(session_id, []):
            await ws.close()
        return EndSessionResponse(success=success, session_id=session_id)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        """List all active session IDs."""
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game State"],
        summary="Get current game state",
    )
    async def get_game_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        response = api_service.get_game_state(session_id)
        if isinstance(response, ErrorResponse):
            return to_error(response)
        return response

    @app.get(
        "/api/v1/sessions/{session_id}/events",
        response_model=EventHistoryResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game State"],
        summary="Recent events",
    )
    async def get_events(
        session_id: str,
        limit: Annotated[Optional[int], Query(ge=0, description="Most recent N events")] = None,
    ) -> Union[EventHistoryResponse, JSONResponse]:
        response = api_service.get_events(session_id, limit)
        if isinstance(response, ErrorResponse):
            return to_error(response)
        return response

    @app.get(
        "/api/v1/sessions/{session_id}/combo-hint",
        response_model=ComboHintResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game State"],
        summary="Best combo hint for a player",
    )
    async def get_combo_hint(
        session_id: str,
        player_id: Annotated[str, Query(description="Player to compute the hint for")],
    ) -> Union[ComboHintResponse, JSONResponse]:
        response = api_service.combo_hint(session_id, player_id)
        if isinstance(response, ErrorResponse):
            return to_error(response)
        return response

    # =========================================================================
    # Action Endpoints
    # =========================================================================

    action_responses = {404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}

    @app.post(
        "/api/v1/sessions/{session_id}/start",
        response_model=ActionResponse,
        responses=action_responses,
        tags=["Actions"],
        summary="Deal the game",
    )
    async def start_game(
        session_id: str,
        request: Optional[StartGameRequest] = None,
    ) -> Union[ActionResponse, JSONResponse]:
        seed = request.seed if request else None
        return await finish_action(session_id, api_service.start_game(session_id, seed))

    @app.post(
        "/api/v1/sessions/{session_id}/reset",
        response_model=ActionResponse,
        responses=action_responses,
        tags=["Actions"],
        summary="Deal again from scratch",
    )
    async def reset_game(session_id: str) -> Union[ActionResponse, JSONResponse]:
        return await finish_action(session_id, api_service.reset_game(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/play",
        response_model=ActionResponse,
        responses=action_responses,
        tags=["Actions"],
        summary="Play a card from hand",
    )
    async def play_card(session_id: str, request: PlayCardRequest) -> Union[ActionResponse, JSONResponse]:
        response = api_service.play_card(session_id, request.player_id, request.instance_id)
        return await finish_action(session_id, response)

    @app.post(
        "/api/v1/sessions/{session_id}/discard",
        response_model=ActionResponse,
        responses=action_responses,
        tags=["Actions"],
        summary="Discard a card from hand",
    )
    async def discard_card(session_id: str, request: DiscardCardRequest) -> Union[ActionResponse, JSONResponse]:
        response = api_service.discard_card(session_id, request.player_id, request.instance_id)
        return await finish_action(session_id, response)

    @app.post(
        "/api/v1/sessions/{session_id}/claim",
        response_model=ActionResponse,
        responses=action_responses,
        tags=["Actions"],
        summary="Claim one unit of a shared pool",
    )
    async def claim(session_id: str, request: ClaimRequest) -> Union[ActionResponse, JSONResponse]:
        response = api_service.claim(session_id, request.pool_id, request.player_id)
        return await finish_action(session_id, response)

    @app.post(
        "/api/v1/sessions/{session_id}/contest",
        response_model=ActionResponse,
        responses=action_responses,
        tags=["Actions"],
        summary="Resolve simultaneous claims",
    )
    async def contest(session_id: str, request: ContestRequest) -> Union[ActionResponse, JSONResponse]:
        """At most one candidate is awarded; `winner_id` names them."""
        response = api_service.contest(session_id, request.pool_id, request.player_ids)
        return await finish_action(session_id, response)

    @app.post(
        "/api/v1/sessions/{session_id}/advance-phase",
        response_model=ActionResponse,
        responses=action_responses,
        tags=["Actions"],
        summary="Advance to the next phase",
    )
    async def advance_phase(session_id: str) -> Union[ActionResponse, JSONResponse]:
        return await finish_action(session_id, api_service.advance_phase(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/end-turn",
        response_model=ActionResponse,
        responses=action_responses,
        tags=["Actions"],
        summary="End the current turn",
    )
    async def end_turn(session_id: str) -> Union[ActionResponse, JSONResponse]:
        return await finish_action(session_id, api_service.end_turn(session_id))

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/sessions/{session_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, session_id: str):
        """
        WebSocket for real-time updates.

        Messages from server:
        - state_update: Current game state on connect
        - events: Events of each successful action, in order
        - error: Error occurred

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()

        if session_id not in ws_connections:
            ws_connections[session_id] = []
        ws_connections[session_id].append(websocket)

        try:
            # Send initial state
            response = api_service.get_game_state(session_id)
            if not isinstance(response, ErrorResponse):
                await websocket.send_json({
                    "type": "state_update",
                    "payload": response.model_dump(mode="json"),
                })

            # Listen for messages
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                    if message.get("type") == "ping":
                        await websocket.send_json({"type": "pong"})
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })

        except WebSocketDisconnect:
            logger.debug("WebSocket closed for session %s", session_id)
        finally:
            if session_id in ws_connections:
                if websocket in ws_connections[session_id]:
                    ws_connections[session_id].remove(websocket)

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
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="themecards-engine",
            version=__version__,
            environment=THEMECARDS_ENV,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Themecards Engine API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# Create default app instance
app = create_app()
