"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Host picks a theme and the seated players -> create_session()
2. start_game() deals hands and opens the first turn
3. During the game the host calls play_card / claim / end_turn ...
   - each call resolves completely before returning
   - the new state is committed, then its events are published
4. reset_game() replays the same seating from scratch
5. end_session() drops the session and ALL of its state

PERSISTENCE RULES:
- Sessions live in memory only
- Each session owns its GameState and EventBus; nothing is shared
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import logging
import time
import uuid

from ..errors import PlayerErrorCode
from ..engine_core.action import Action, ActionResult
from ..engine_core.events import EventBus, EventType, GameEvent
from ..engine_core.state import ComboHint, GameState
from ..engine_core.turn_machine import TurnStateMachine
from ..spec_schema import ThemeSpec

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    CREATED = "created"  # Seated, not dealt
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # A game-ending condition fired
    ABANDONED = "abandoned"  # Host ended the session early


@dataclass
class Session:
    """
    One in-memory game session.

    Contains:
    - The theme and the state machine built for it
    - The committed GameState (None until start_game)
    - The session's EventBus

    The session is destroyed when the host ends it.
    """
    session_id: str
    theme: ThemeSpec
    player_ids: list[str]
    created_at: float

    names: dict[str, str] = field(default_factory=dict)
    seed: int | None = None
    state: SessionState = SessionState.CREATED
    game_state: GameState | None = None

    machine: TurnStateMachine | None = None
    bus: EventBus = field(default_factory=EventBus)

    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.machine is None:
            self.machine = TurnStateMachine(self.theme)

    def is_active(self) -> bool:
        return self.state in {SessionState.CREATED, SessionState.ACTIVE}

    # =========================================================================
    # Inbound host calls
    # =========================================================================

    def start_game(self, seed: int | None = None) -> ActionResult:
        """Deal a fresh game for the seated players."""
        if self.game_state is not None:
            return ActionResult.failure(
                "Game already started; use reset_game to deal again",
                PlayerErrorCode.WRONG_PHASE,
            )
        if seed is not None:
            self.seed = seed
        fresh = self.machine.new_game(
            self.player_ids,
            names=self.names,
            game_id=self.session_id,
            seed=self.seed,
        )
        result = self.machine.apply(fresh, Action.start_game())
        return self._commit(result)

    def reset_game(self) -> ActionResult:
        """Throw the current game away and deal again. Subscribers are kept."""
        self.game_state = None
        self.state = SessionState.CREATED
        self.bus.clear_history()
        logger.info("Session %s reset", self.session_id)
        return self.start_game()

    def play_card(self, player_id: str, instance_id: str) -> ActionResult:
        return self.dispatch(Action.play_card(player_id, instance_id))

    def discard_card(self, player_id: str, instance_id: str) -> ActionResult:
        return self.dispatch(Action.discard_card(player_id, instance_id))

    def end_turn(self) -> ActionResult:
        return self.dispatch(Action.end_turn())

    def advance_phase(self) -> ActionResult:
        return self.dispatch(Action.advance_phase())

    def claim(self, pool_id: str, player_id: str) -> ActionResult:
        return self.dispatch(Action.claim(pool_id, player_id))

    def contest(self, pool_id: str, player_ids: list[str]) -> ActionResult:
        return self.dispatch(Action.contest(pool_id, player_ids))

    def combo_hint(self, player_id: str) -> ComboHint | None:
        """Best combo hint for a player right now (not stored, no event)."""
        if self.game_state is None or self.game_state.is_over:
            return None
        return self.machine.hint_for(self.game_state, player_id)

    def dispatch(self, action: Action) -> ActionResult:
        if self.game_state is None:
            return ActionResult.failure("Game has not started", PlayerErrorCode.GAME_NOT_STARTED)
        return self._commit(self.machine.apply(self.game_state, action))

    def _commit(self, result: ActionResult) -> ActionResult:
        if not result.success:
            logger.debug("Session %s refused action: %s", self.session_id, result.error_code)
            return result

        self.game_state = result.new_state
        self.state = SessionState.GAME_OVER if self.game_state.is_over else SessionState.ACTIVE
        self.bus.publish_all(result.events)
        return result

    # =========================================================================
    # Observability
    # =========================================================================

    def subscribe(
        self,
        event_type: EventType | str,
        handler: Callable[[GameEvent], None],
        priority: int = 0,
        once: bool = False,
    ) -> Callable[[], None]:
        return self.bus.subscribe(event_type, handler, priority=priority, once=once)

    def unsubscribe(self, event_type: EventType | str, handler: Callable[[GameEvent], None]) -> bool:
        return self.bus.unsubscribe(event_type, handler)


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions for a theme
    - Track active sessions
    - Clean up finished sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self):
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        theme: ThemeSpec,
        player_ids: list[str],
        names: dict[str, str] | None = None,
        seed: int | None = None,
    ) -> Session:
        """
        Create a new game session.

        Args:
            theme: Validated theme
            player_ids: Seat order
            names: Optional display names by player id
            seed: RNG seed; random when omitted

        Returns:
            New Session, not yet started
        """
        session = Session(
            session_id=str(uuid.uuid4()),
            theme=theme,
            player_ids=list(player_ids),
            names=dict(names or {}),
            seed=seed,
            created_at=time.time(),
        )
        self._sessions[session.session_id] = session
        logger.info("Created session %s (theme=%s)", session.session_id, theme.theme_id)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and drop all of its state.

        Returns False if the session does not exist.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False

        if reason != "completed":
            session.state = SessionState.ABANDONED
        session.game_state = None
        session.bus.clear_listeners()
        session.bus.clear_history()
        logger.info("Ended session %s (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Drop finished sessions older than max_age.

        Called periodically to free memory.
        """
        current_time = time.time()
        stale = [
            session_id for session_id, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds and not session.is_active()
        ]
        for session_id in stale:
            self.end_session(session_id, reason="stale")
        return len(stale)
