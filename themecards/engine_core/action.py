"""
Action System - Host actions, payloads, and results.

Actions represent one discrete host call (play a card, end the turn, claim
a pool). All state changes flow through actions, and every action resolves
completely before the next is accepted.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..errors import PlayerErrorCode


class ActionType(Enum):
    """Types of actions in the system."""
    # Player actions
    PLAY_CARD = "play_card"
    DISCARD_CARD = "discard_card"
    CLAIM_SHARED = "claim_shared"

    # Host/system actions
    START_GAME = "start_game"
    CONTEST_SHARED = "contest_shared"
    ADVANCE_PHASE = "advance_phase"
    END_TURN = "end_turn"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields; validation happens in
    the state machine.
    """
    player_id: str | None = None
    instance_id: str | None = None
    pool_id: str | None = None
    player_ids: list[str] = field(default_factory=list)
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class Action:
    """
    A complete action to be applied to the game state.

    Actions are:
    - Logged for replay
    - Validated before application
    - Applied atomically by the TurnStateMachine
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)

    @classmethod
    def start_game(cls) -> Action:
        return cls(action_type=ActionType.START_GAME)

    @classmethod
    def play_card(cls, player_id: str, instance_id: str) -> Action:
        """Factory for play card action."""
        return cls(
            action_type=ActionType.PLAY_CARD,
            payload=ActionPayload(player_id=player_id, instance_id=instance_id),
        )

    @classmethod
    def discard_card(cls, player_id: str, instance_id: str) -> Action:
        return cls(
            action_type=ActionType.DISCARD_CARD,
            payload=ActionPayload(player_id=player_id, instance_id=instance_id),
        )

    @classmethod
    def claim(cls, pool_id: str, player_id: str) -> Action:
        """Factory for a single claim request."""
        return cls(
            action_type=ActionType.CLAIM_SHARED,
            payload=ActionPayload(player_id=player_id, pool_id=pool_id),
        )

    @classmethod
    def contest(cls, pool_id: str, player_ids: list[str]) -> Action:
        """Factory for simultaneous claims resolved in one pass."""
        return cls(
            action_type=ActionType.CONTEST_SHARED,
            payload=ActionPayload(pool_id=pool_id, player_ids=list(player_ids)),
        )

    @classmethod
    def advance_phase(cls) -> Action:
        return cls(action_type=ActionType.ADVANCE_PHASE)

    @classmethod
    def end_turn(cls) -> Action:
        return cls(action_type=ActionType.END_TURN)


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Error and PlayerErrorCode (if refused)
    - Events to publish once the new state is committed
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: PlayerErrorCode | None = None

    events: list[Any] = field(default_factory=list)  # GameEvent
    effects_resolved: list[Any] = field(default_factory=list)  # EffectOutcome
    winner_id: str | None = None  # CONTEST_SHARED only

    @classmethod
    def failure(cls, error: str, error_code: PlayerErrorCode | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        events: list[Any] | None = None,
        effects: list[Any] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            events=events or [],
            effects_resolved=effects or [],
        )
