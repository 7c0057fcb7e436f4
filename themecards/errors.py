"""
Error taxonomy for the rules core.

- Player errors are routine and never raised: they come back as a failed
  ActionResult carrying a PlayerErrorCode.
- ConfigurationError marks a theme-authoring defect (unknown effect kind,
  dangling combo reference, ...). Raised at theme-load time where possible.
- InvariantViolation marks a resolver bug: a bound that clamping should
  have made unreachable. The current action is abandoned, nothing commits.
"""

from __future__ import annotations
from enum import Enum


class PlayerErrorCode(str, Enum):
    """Reasons a host action is refused."""
    CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
    WRONG_PHASE = "WRONG_PHASE"
    INSUFFICIENT_COST = "INSUFFICIENT_COST"
    GAME_OVER = "GAME_OVER"
    GAME_NOT_STARTED = "GAME_NOT_STARTED"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    UNKNOWN_PLAYER = "UNKNOWN_PLAYER"
    UNKNOWN_POOL = "UNKNOWN_POOL"
    POOL_EXHAUSTED = "POOL_EXHAUSTED"
    CLAIM_REJECTED = "CLAIM_REJECTED"
    NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
    TOO_MANY_PLAYERS = "TOO_MANY_PLAYERS"


class ConfigurationError(Exception):
    """Raised when theme content is malformed."""


class InvariantViolation(RuntimeError):
    """Raised when session state breaks a bound after clamping."""
