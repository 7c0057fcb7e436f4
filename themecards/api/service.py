"""
API Service - Business logic layer between API and engine.

The service:
1. Resolves themes and creates sessions
2. Forwards host actions to the session
3. Formats engine state and events as response models

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Any
import logging

from .schemas import (
    # Requests
    CreateSessionRequest,
    # Responses
    ActionResponse,
    ComboHintResponse,
    ErrorResponse,
    EventHistoryResponse,
    GameStateResponse,
    SessionResponse,
    ThemeListResponse,
    ThemeValidationResponse,
    # Shared
    CardInfo,
    ComboHintInfo,
    EventInfo,
    OutcomeInfo,
    PlayerInfo,
    PoolInfo,
    StatusInfo,
    ThemeInfo,
    # Enums
    ErrorCode,
    SessionStatus,
)
from ..engine_core.action import ActionResult
from ..engine_core.card_engine import effective_cost
from ..engine_core.events import GameEvent
from ..engine_core.state import CardInstance, ComboHint, GameState
from ..errors import ConfigurationError
from ..session import Session, SessionManager, SessionState
from ..spec_schema import ThemeSpec, ThemeValidationError, theme_from_dict
from .. import themes

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service for host apps.

    Usage:
        service = APIService()

        # Create session
        session_response = service.create_session(request)

        # Play
        action_response = service.play_card(session_id, "alice", "overtime#3")
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # Themes are immutable once loaded, so one copy serves every session
    _themes: dict[str, ThemeSpec] = field(default_factory=dict)

    # =========================================================================
    # Themes
    # =========================================================================

    def get_theme(self, theme_id: str) -> ThemeSpec:
        """
        Load a theme, caching it.

        Raises:
            ThemeValidationError: the theme exists but is malformed
            ConfigurationError: no such theme
        """
        theme = self._themes.get(theme_id)
        if theme is None:
            theme = themes.get_theme(theme_id)
            self._themes[theme_id] = theme
        return theme

    def list_themes(self) -> ThemeListResponse:
        infos = []
        for theme_id in themes.list_themes():
            try:
                theme = self.get_theme(theme_id)
            except ConfigurationError as e:
                logger.warning("Skipping theme %s: %s", theme_id, e)
                continue
            infos.append(self._theme_info(theme))
        return ThemeListResponse(themes=infos, count=len(infos))

    def validate_theme_document(self, document: dict[str, Any]) -> ThemeValidationResponse:
        """Check a JSON theme document. Nothing is cached or installed."""
        try:
            theme = theme_from_dict(document)
        except ThemeValidationError as e:
            return ThemeValidationResponse(valid=False, theme_id=document.get("id"), errors=e.errors)
        return ThemeValidationResponse(valid=True, theme_id=theme.theme_id)

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, request: CreateSessionRequest) -> SessionResponse | ErrorResponse:
        """
        Create a new game session, dealing immediately unless auto_start is off.
        """
        try:
            theme = self.get_theme(request.theme_id)
        except ThemeValidationError as e:
            return ErrorResponse(
                error=str(e),
                error_code=ErrorCode.INVALID_THEME,
                details={"errors": e.errors},
            )
        except ConfigurationError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.UNKNOWN_THEME)

        session = self.session_manager.create_session(
            theme,
            request.player_ids,
            names=request.names,
            seed=request.seed,
        )
        if request.auto_start:
            result = session.start_game()
            if not result.success:
                # Seating rejected by the theme (too many players, ...)
                self.session_manager.end_session(session.session_id, reason="start_failed")
                return ErrorResponse(
                    error=result.error,
                    error_code=ErrorCode.VALIDATION_ERROR,
                    details={"player_error": result.error_code.value},
                )

        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        """
        Get session status.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        return self._session_to_response(session)

    def get_game_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        if session.game_state is None:
            return ErrorResponse(
                error="Game has not started",
                error_code=ErrorCode.VALIDATION_ERROR,
            )
        return self._build_game_state(session)

    def end_session(self, session_id: str, reason: str = "user_ended") -> bool:
        return self.session_manager.end_session(session_id, reason)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    def get_events(self, session_id: str, limit: int | None = None) -> EventHistoryResponse | ErrorResponse:
        """Recently published events, oldest first."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        history = session.bus.history
        if limit is not None:
            history = history[-limit:] if limit > 0 else []
        return EventHistoryResponse(
            session_id=session_id,
            events=[self._event_info(e) for e in history],
        )

    def combo_hint(self, session_id: str, player_id: str) -> ComboHintResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        hint = session.combo_hint(player_id)
        return ComboHintResponse(
            session_id=session_id,
            player_id=player_id,
            hint=self._hint_info(hint),
        )

    # =========================================================================
    # Actions
    # =========================================================================

    def start_game(self, session_id: str, seed: int | None = None) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda s: s.start_game(seed))

    def reset_game(self, session_id: str) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda s: s.reset_game())

    def play_card(self, session_id: str, player_id: str, instance_id: str) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda s: s.play_card(player_id, instance_id))

    def discard_card(self, session_id: str, player_id: str, instance_id: str) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda s: s.discard_card(player_id, instance_id))

    def end_turn(self, session_id: str) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda s: s.end_turn())

    def advance_phase(self, session_id: str) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda s: s.advance_phase())

    def claim(self, session_id: str, pool_id: str, player_id: str) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda s: s.claim(pool_id, player_id))

    def contest(self, session_id: str, pool_id: str, player_ids: list[str]) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda s: s.contest(pool_id, player_ids))

    def _run(self, session_id: str, call) -> ActionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        result = call(session)
        return self._action_to_response(session, result)

    # =========================================================================
    # Conversion
    # =========================================================================

    @staticmethod
    def _not_found(session_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Session {session_id} not found",
            error_code=ErrorCode.SESSION_NOT_FOUND,
        )

    def _session_to_response(self, session: Session) -> SessionResponse:
        return SessionResponse(
            session_id=session.session_id,
            theme_id=session.theme.theme_id,
            status=self._session_state_to_status(session.state),
            player_ids=list(session.player_ids),
            created_at=session.created_at,
            game_state=self._build_game_state(session) if session.game_state else None,
        )

    @staticmethod
    def _session_state_to_status(state: SessionState) -> SessionStatus:
        mapping = {
            SessionState.CREATED: SessionStatus.CREATED,
            SessionState.ACTIVE: SessionStatus.ACTIVE,
            SessionState.GAME_OVER: SessionStatus.GAME_OVER,
            SessionState.ABANDONED: SessionStatus.ABANDONED,
        }
        return mapping[state]

    def _action_to_response(self, session: Session, result: ActionResult) -> ActionResponse:
        return ActionResponse(
            session_id=session.session_id,
            success=result.success,
            error=result.error,
            error_code=result.error_code,
            winner_id=result.winner_id,
            events=[self._event_info(e) for e in result.events],
            game_state=self._build_game_state(session) if session.game_state else None,
        )

    def _build_game_state(self, session: Session) -> GameStateResponse:
        state: GameState = session.game_state
        theme = session.theme
        current_id = state.current_player.player_id if state.players and not state.is_over else None

        players = [
            PlayerInfo(
                player_id=p.player_id,
                name=p.name,
                is_current_turn=p.player_id == current_id,
                stats=dict(p.stats),
                resources=dict(p.resources),
                hand=[self._card_info(theme, card) for card in p.hand],
                statuses=[
                    StatusInfo(
                        status_id=s.status_id,
                        name=_status_name(theme, s.status_id),
                        duration=s.duration,
                        stacks=s.stacks,
                    )
                    for s in p.statuses
                ],
                deck_size=len(p.deck),
                discard_size=len(p.discard_pile),
                eliminated=p.eliminated,
            )
            for p in state.players
        ]

        pools = []
        for definition in theme.shared_resources:
            pool = state.pools.get(definition.id)
            if pool is None:
                continue
            pools.append(PoolInfo(
                pool_id=pool.pool_id,
                name=definition.name or definition.id,
                remaining=pool.remaining,
                total_amount=definition.total_amount,
                renewable=definition.renewable,
                turns_until_renewal=pool.turns_until_renewal,
                claimed_by=dict(pool.claimed_by),
            ))

        outcome = None
        if state.outcome:
            outcome = OutcomeInfo(
                reason=state.outcome.reason.value,
                turn=state.outcome.turn,
                player_id=state.outcome.player_id,
                outcome=state.outcome.outcome,
                description=state.outcome.description,
            )

        return GameStateResponse(
            session_id=session.session_id,
            theme_id=theme.theme_id,
            phase=state.phase.value,
            turn_number=state.turn_number,
            current_player_id=current_id,
            players=players,
            pools=pools,
            played_this_turn=list(state.combo_state.played_this_turn),
            combo_hint=self._hint_info(state.combo_state.hint),
            outcome=outcome,
            seed=state.random_seed,
        )

    @staticmethod
    def _card_info(theme: ThemeSpec, card: CardInstance) -> CardInfo:
        definition = theme.get_card(card.definition_id)
        if definition is None:
            return CardInfo(
                instance_id=card.instance_id,
                card_id=card.definition_id,
                name=card.definition_id,
                card_type="unknown",
            )
        return CardInfo(
            instance_id=card.instance_id,
            card_id=definition.id,
            name=definition.name,
            card_type=definition.card_type.value,
            description=definition.description,
            cost=effective_cost(definition, card),
            rarity=definition.rarity.value if definition.rarity else None,
            tags=list(definition.tags),
        )

    @staticmethod
    def _hint_info(hint: ComboHint | None) -> ComboHintInfo | None:
        if hint is None:
            return None
        return ComboHintInfo(**asdict(hint))

    @staticmethod
    def _event_info(event: GameEvent) -> EventInfo:
        return EventInfo(
            event_type=event.event_type.value,
            data=_jsonable(event.data),
            timestamp=event.timestamp,
        )

    @staticmethod
    def _theme_info(theme: ThemeSpec) -> ThemeInfo:
        return ThemeInfo(
            theme_id=theme.theme_id,
            name=theme.name,
            version=theme.version,
            description=theme.description,
            min_players=theme.config.min_players,
            max_players=theme.config.max_players,
            card_count=len(theme.cards),
            stats=[s.id for s in theme.stats],
            resources=[r.id for r in theme.resources],
            shared_resources=[p.id for p in theme.shared_resources],
        )


def _jsonable(value: Any) -> Any:
    """Event payloads may carry enums; flatten them for the wire."""
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if hasattr(value, "value") and not isinstance(value, (int, float, str, bool)):
        return value.value
    return value


def _status_name(theme: ThemeSpec, status_id: str) -> str:
    definition = theme.get_status(status_id)
    if definition is None or not definition.name:
        return status_id
    return definition.name
