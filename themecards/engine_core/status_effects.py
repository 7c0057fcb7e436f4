"""
Status Effects - Lasting conditions on players.

A status is declared by the theme (StatusDefinition) and carried by the
player as a PlayerStatus:
- apply(): a new status is added and its on_apply effects run. Applying a
  status the player already has only refreshes its duration and, when the
  status is stackable, adds a stack up to max_stacks.
- turn_start() / turn_end(): the holder's hooks run once per stack. At turn
  end a timed status loses one turn and expires when none are left.
- remove(): the status is dropped and its on_remove effects run.

Every hook runs through the EffectResolver with the holder as the acting
player, so clamping and invariant checks are the same as for cards.
"""

from __future__ import annotations
from typing import TYPE_CHECKING
import logging

from ..errors import ConfigurationError
from ..spec_schema import EffectType, StatusDefinition
from .effect_resolver import EffectOutcome
from .events import EventType, GameEvent
from .state import GameState, PlayerState, PlayerStatus

if TYPE_CHECKING:
    from ..spec_schema import ThemeSpec
    from .effect_resolver import EffectResolver

logger = logging.getLogger(__name__)


class StatusEffectSystem:
    """Applies, ticks and removes theme statuses. Status state lives on PlayerState."""

    def __init__(self, theme: ThemeSpec, resolver: EffectResolver):
        self.theme = theme
        self.resolver = resolver

    def definition_of(self, status_id: str) -> StatusDefinition:
        definition = self.theme.get_status(status_id)
        if definition is None:
            raise ConfigurationError(f"Status '{status_id}' not in theme {self.theme.theme_id}")
        return definition

    def apply(
        self,
        state: GameState,
        player_id: str,
        status_id: str,
        events: list[GameEvent],
    ) -> list[EffectOutcome]:
        definition = self.definition_of(status_id)
        player = state.get_player(player_id)
        if player is None:
            return []

        existing = player.get_status(status_id)
        if existing is not None:
            before = existing.stacks
            if definition.stackable:
                existing.stacks += 1
                if definition.max_stacks is not None:
                    existing.stacks = min(existing.stacks, definition.max_stacks)
            existing.duration = definition.duration
            logger.debug("%s refreshed %s (stacks %d -> %d)", player_id, status_id, before, existing.stacks)
            return [EffectOutcome(EffectType.APPLY_STATUS, player_id, status_id, before, existing.stacks)]

        player.statuses.append(PlayerStatus(status_id=status_id, duration=definition.duration))
        events.append(GameEvent(EventType.STATUS_APPLIED, {
            "player_id": player_id,
            "status_id": status_id,
            "status_name": definition.name or status_id,
            "duration": definition.duration,
            "stacks": 1,
        }))
        logger.debug("%s gained status %s", player_id, status_id)

        outcomes = [EffectOutcome(EffectType.APPLY_STATUS, player_id, status_id, 0, 1)]
        outcomes.extend(self.resolver.apply_all(definition.on_apply, player_id, state))
        return outcomes

    def remove(
        self,
        state: GameState,
        player_id: str,
        status_id: str,
        events: list[GameEvent],
        reason: str = "removed",
    ) -> list[EffectOutcome]:
        """Drop a status. Removing one the player does not have is a no-op."""
        player = state.get_player(player_id)
        status = player.get_status(status_id) if player else None
        if status is None:
            return []

        definition = self.definition_of(status_id)
        player.statuses.remove(status)
        events.append(GameEvent(EventType.STATUS_REMOVED, {
            "player_id": player_id,
            "status_id": status_id,
            "status_name": definition.name or status_id,
            "reason": reason,
        }))
        logger.debug("%s lost status %s (%s)", player_id, status_id, reason)

        outcomes = [EffectOutcome(EffectType.REMOVE_STATUS, player_id, status_id, status.stacks, 0)]
        outcomes.extend(self.resolver.apply_all(definition.on_remove, player_id, state))
        return outcomes

    # =========================================================================
    # Turn boundaries
    # =========================================================================

    def turn_start(self, state: GameState, player_id: str) -> list[EffectOutcome]:
        player = state.get_player(player_id)
        if player is None:
            return []
        outcomes = []
        for status in list(player.statuses):
            if not _holds(player, status):
                continue
            definition = self.definition_of(status.status_id)
            for _ in range(status.stacks):
                outcomes.extend(self.resolver.apply_all(definition.on_turn_start, player_id, state))
        return outcomes

    def turn_end(self, state: GameState, player_id: str, events: list[GameEvent]) -> list[EffectOutcome]:
        """Run on_turn_end hooks, then count down timed statuses and expire them."""
        player = state.get_player(player_id)
        if player is None:
            return []
        outcomes = []
        for status in list(player.statuses):
            if not _holds(player, status):
                continue
            definition = self.definition_of(status.status_id)
            for _ in range(status.stacks):
                outcomes.extend(self.resolver.apply_all(definition.on_turn_end, player_id, state))

            if status.duration <= 0 or not _holds(player, status):
                continue
            status.duration -= 1
            events.append(GameEvent(EventType.STATUS_TICK, {
                "player_id": player_id,
                "status_id": status.status_id,
                "remaining": status.duration,
            }))
            if status.duration == 0:
                outcomes.extend(self.remove(state, player_id, status.status_id, events, reason="expired"))
        return outcomes


def _holds(player: PlayerState, status: PlayerStatus) -> bool:
    """True while `status` itself (not a re-applied copy) is still on the player."""
    return any(s is status for s in player.statuses)
