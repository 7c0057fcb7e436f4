"""
Engine Core - Deterministic rules evaluation for themed card games.

The engine is the runtime that:
1. Takes a ThemeSpec
2. Manages GameState for one session
3. Applies host actions via the TurnStateMachine
4. Resolves card, claim and combo effects
5. Reports what happened as GameEvents
"""

from .state import (
    GameState,
    PlayerState,
    PlayerStatus,
    CardInstance,
    CardModifier,
    CardState,
    GamePhase,
    GameOutcome,
    EndReason,
    ComboHint,
    ComboHintState,
    SharedResourcePoolState,
    PLAYABLE_PHASES,
)
from .action import Action, ActionType, ActionPayload, ActionResult
from .events import EventBus, EventType, GameEvent, WILDCARD
from .effect_resolver import EffectResolver, EffectOutcome
from .card_engine import CardResolutionEngine
from .arbiter import SharedResourceArbiter, ClaimResult
from .combo_detector import ComboDetector
from .turn_machine import TurnStateMachine, apply_action

__all__ = [
    "GameState",
    "PlayerState",
    "PlayerStatus",
    "CardInstance",
    "CardModifier",
    "CardState",
    "GamePhase",
    "GameOutcome",
    "EndReason",
    "ComboHint",
    "ComboHintState",
    "SharedResourcePoolState",
    "PLAYABLE_PHASES",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "EventBus",
    "EventType",
    "GameEvent",
    "WILDCARD",
    "EffectResolver",
    "EffectOutcome",
    "CardResolutionEngine",
    "SharedResourceArbiter",
    "ClaimResult",
    "ComboDetector",
    "TurnStateMachine",
    "apply_action",
]
