"""
Win-condition evaluation.

Checked after every mutation. The first satisfied theme condition (in
declaration order, players in seat order) ends the game; otherwise the
turn ceiling does once it has been passed.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from ..spec_schema import WinConditionType
from .state import EndReason, GameOutcome, GameState

if TYPE_CHECKING:
    from ..spec_schema import ThemeSpec


def evaluate(theme: ThemeSpec, state: GameState) -> GameOutcome | None:
    for condition in theme.win_conditions:
        for player in state.active_players():
            if condition.condition_type == WinConditionType.STAT_THRESHOLD:
                actual = player.stats.get(condition.target_id, 0)
                reason = EndReason.STAT_THRESHOLD
            else:
                actual = player.resources.get(condition.target_id, 0)
                reason = EndReason.RESOURCE_THRESHOLD
            if condition.operator.compare(actual, condition.threshold):
                return GameOutcome(
                    reason=reason,
                    turn=state.turn_number,
                    player_id=player.player_id,
                    outcome=condition.outcome.value,
                    description=condition.description
                    or f"{condition.target_id} {condition.operator.value} {condition.threshold}",
                )
    return None


def turn_limit_reached(theme: ThemeSpec, state: GameState, next_turn: int) -> GameOutcome | None:
    """Ends the game when advancing would start a turn past max_turns."""
    if next_turn > theme.config.max_turns:
        return GameOutcome(
            reason=EndReason.TURN_LIMIT,
            turn=state.turn_number,
            description=f"Turn limit of {theme.config.max_turns} reached",
        )
    return None
