"""
Effect Resolver - Applies one atomic effect to the session state.

This module handles:
- Target resolution (self, opponent, all, weakest/strongest opponent, ...)
- Effect conditions
- Stat changes, clamped to each stat's declared range
- Resource changes, floored at zero (and capped when the theme declares a max)
- Competitive effects (damage, transfer, steal)
- Hand-offs to the arbiter (claim_shared), to the card engine (draw_cards)
  and to the status system (apply_status, remove_status)

Out-of-range requests are clamped, never rejected, so play always
progresses. An unknown effect kind is a theme defect and raises
ConfigurationError. A bound broken after clamping is a resolver bug and
raises InvariantViolation.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, TYPE_CHECKING
import logging

from ..errors import ConfigurationError, InvariantViolation
from ..spec_schema.effect_dsl import (
    ConditionType,
    Effect,
    EffectTarget,
    EffectType,
)
from .state import CardState, GameState, PlayerState

if TYPE_CHECKING:
    from ..spec_schema import ThemeSpec

logger = logging.getLogger(__name__)


@dataclass
class EffectOutcome:
    """
    What one effect did to one player.

    `key` is the stat/resource id, "hand" for card movement, or the status
    id for status effects (before/after are then stack counts).
    """
    effect_type: EffectType
    player_id: str
    key: str | None
    before: float
    after: float

    @property
    def delta(self) -> float:
        return self.after - self.before

    @property
    def is_stat(self) -> bool:
        return self.effect_type in {
            EffectType.MODIFY_STAT,
            EffectType.DAMAGE_STAT,
            EffectType.TRANSFER_STAT,
        }

    @property
    def is_status(self) -> bool:
        return self.effect_type in {EffectType.APPLY_STATUS, EffectType.REMOVE_STATUS}


# (state, pool_id, player_id) -> outcomes of the claim effects, [] if refused
ClaimHook = Callable[[GameState, str, str], list[EffectOutcome]]
# (state, player_id, count) -> cards drawn
DrawHook = Callable[[GameState, str, int], list]
# (state, player_id, status_id, remove) -> outcomes of applying or removing the status
StatusHook = Callable[[GameState, str, str, bool], list[EffectOutcome]]
CustomEffectHandler = Callable[[Effect, str, GameState], list[EffectOutcome]]


class EffectResolver:
    """
    Resolves effects against a GameState.

    The resolver is stateless between calls; the hooks are wired by the
    TurnStateMachine so claims, draws and statuses go through their owners.
    """

    def __init__(
        self,
        theme: ThemeSpec,
        claim_hook: ClaimHook | None = None,
        draw_hook: DrawHook | None = None,
        status_hook: StatusHook | None = None,
    ):
        self.theme = theme
        self.claim_hook = claim_hook
        self.draw_hook = draw_hook
        self.status_hook = status_hook
        self._custom_handlers: dict[EffectType, CustomEffectHandler] = {}

    def register_handler(self, effect_type: EffectType, handler: CustomEffectHandler) -> None:
        """Override the built-in handling of an effect type."""
        self._custom_handlers[effect_type] = handler

    def apply(
        self,
        effect: Effect,
        acting_player_id: str,
        state: GameState,
        target_player_id: str | None = None,
    ) -> list[EffectOutcome]:
        """
        Apply one effect.

        Returns the outcomes (one per touched player/key). A false condition
        yields no outcomes.
        """
        if not isinstance(effect.effect_type, EffectType):
            raise ConfigurationError(f"Unknown effect type: {effect.effect_type!r}")

        acting = state.get_player(acting_player_id)
        if acting is None:
            raise ConfigurationError(f"Unknown acting player '{acting_player_id}'")

        if effect.condition and not self.check_condition(effect, acting, state):
            logger.debug("Condition false, skipping %s for %s", effect.effect_type.value, acting_player_id)
            return []

        handler = self._custom_handlers.get(effect.effect_type)
        if handler:
            outcomes = handler(effect, acting_player_id, state)
        else:
            builtin = self._get_handler(effect.effect_type)
            if builtin is None:
                raise ConfigurationError(f"No handler for effect type: {effect.effect_type.value}")
            targets = self.resolve_targets(effect, acting, state, target_player_id)
            outcomes = builtin(effect, acting, targets, state)

        self.check_invariants(state)

        for outcome in outcomes:
            logger.debug(
                "%s %s.%s: %s -> %s",
                outcome.effect_type.value, outcome.player_id, outcome.key,
                outcome.before, outcome.after,
            )
        return outcomes

    def apply_all(
        self,
        effects: tuple[Effect, ...] | list[Effect],
        acting_player_id: str,
        state: GameState,
        target_player_id: str | None = None,
    ) -> list[EffectOutcome]:
        """Apply effects in declared order; later effects see earlier results."""
        outcomes: list[EffectOutcome] = []
        for effect in effects:
            outcomes.extend(self.apply(effect, acting_player_id, state, target_player_id))
        return outcomes

    # =========================================================================
    # Conditions and targets
    # =========================================================================

    def check_condition(self, effect: Effect, player: PlayerState, state: GameState) -> bool:
        condition = effect.condition
        if condition.condition_type == ConditionType.STAT_CHECK:
            actual = player.stats.get(condition.key or "", 0)
        elif condition.condition_type == ConditionType.CARD_COUNT:
            actual = len(player.hand)
        else:
            actual = state.turn_number
        return condition.operator.compare(actual, condition.value)

    def resolve_targets(
        self,
        effect: Effect,
        acting: PlayerState,
        state: GameState,
        target_player_id: str | None = None,
    ) -> list[PlayerState]:
        target = effect.target
        opponents = state.opponents_of(acting.player_id)

        if target == EffectTarget.SELF:
            return [acting]
        if target == EffectTarget.OPPONENT:
            if target_player_id:
                chosen = [p for p in opponents if p.player_id == target_player_id]
                if chosen:
                    return chosen
            return opponents[:1]
        if target == EffectTarget.ALL:
            return state.active_players()
        if target == EffectTarget.ALL_OPPONENTS:
            return opponents
        if target == EffectTarget.RANDOM_PLAYER:
            players = state.active_players()
            return [state.rng.choice(players)] if players else []

        stat_id = effect.stat or effect.metadata.get("rank_stat", "")
        if target == EffectTarget.WEAKEST_OPPONENT:
            ranked = sorted(opponents, key=lambda p: p.stats.get(stat_id, 0))
            return ranked[:1]
        if target == EffectTarget.STRONGEST_OPPONENT:
            ranked = sorted(opponents, key=lambda p: -p.stats.get(stat_id, 0))
            return ranked[:1]

        raise ConfigurationError(f"Unknown effect target: {target!r}")

    # =========================================================================
    # Clamping helpers
    # =========================================================================

    def _set_stat(self, player: PlayerState, stat_id: str, raw: float) -> tuple[float, float]:
        definition = self.theme.get_stat(stat_id)
        before = player.stats.get(stat_id, definition.min)
        after = min(max(raw, definition.min), definition.max)
        player.stats[stat_id] = after
        return before, after

    def _set_resource(self, player: PlayerState, resource_id: str, raw: float) -> tuple[float, float]:
        definition = self.theme.get_resource(resource_id)
        before = player.resources.get(resource_id, 0)
        after = max(raw, 0)
        if definition.max is not None:
            after = min(after, definition.max)
        player.resources[resource_id] = after
        return before, after

    def change_stat(self, player: PlayerState, stat_id: str, delta: float,
                    effect_type: EffectType = EffectType.MODIFY_STAT) -> EffectOutcome:
        current = player.stats.get(stat_id, self.theme.get_stat(stat_id).min)
        before, after = self._set_stat(player, stat_id, current + delta)
        return EffectOutcome(effect_type, player.player_id, stat_id, before, after)

    def change_resource(self, player: PlayerState, resource_id: str, delta: float,
                        effect_type: EffectType = EffectType.GAIN_RESOURCE) -> EffectOutcome:
        current = player.resources.get(resource_id, 0)
        before, after = self._set_resource(player, resource_id, current + delta)
        return EffectOutcome(effect_type, player.player_id, resource_id, before, after)

    def check_invariants(self, state: GameState) -> None:
        """Raise InvariantViolation if any bound is broken."""
        for player in state.players:
            for stat_id, value in player.stats.items():
                definition = self.theme.get_stat(stat_id)
                if value < definition.min or value > definition.max:
                    raise InvariantViolation(
                        f"Stat {player.player_id}.{stat_id}={value} outside "
                        f"[{definition.min}, {definition.max}]"
                    )
            for resource_id, value in player.resources.items():
                if value < 0:
                    raise InvariantViolation(f"Resource {player.player_id}.{resource_id}={value} is negative")
        for pool_id, pool in state.pools.items():
            definition = self.theme.get_shared_resource(pool_id)
            total = definition.total_amount if definition else pool.remaining
            if pool.remaining < 0 or pool.remaining > total:
                raise InvariantViolation(f"Pool {pool_id} remaining={pool.remaining} outside [0, {total}]")

    # =========================================================================
    # Built-in handlers
    # =========================================================================

    def _get_handler(self, effect_type: EffectType):
        handlers = {
            EffectType.MODIFY_STAT: self._modify_stat,
            EffectType.DAMAGE_STAT: self._damage_stat,
            EffectType.TRANSFER_STAT: self._transfer_stat,
            EffectType.GAIN_RESOURCE: self._gain_resource,
            EffectType.LOSE_RESOURCE: self._lose_resource,
            EffectType.STEAL_RESOURCE: self._steal_resource,
            EffectType.CLAIM_SHARED: self._claim_shared,
            EffectType.DRAW_CARDS: self._draw_cards,
            EffectType.DISCARD_CARDS: self._discard_cards,
            EffectType.APPLY_STATUS: self._apply_status,
            EffectType.REMOVE_STATUS: self._remove_status,
        }
        return handlers.get(effect_type)

    def _modify_stat(self, effect, acting, targets, state):
        return [self.change_stat(p, effect.stat, effect.value) for p in targets]

    def _damage_stat(self, effect, acting, targets, state):
        return [
            self.change_stat(p, effect.stat, -abs(effect.value), EffectType.DAMAGE_STAT)
            for p in targets
        ]

    def _transfer_stat(self, effect, acting, targets, state):
        if not targets:
            return []
        target = targets[0]
        value = effect.value
        if effect.metadata.get("direction", "to_target") == "to_target":
            giver, receiver = acting, target
        else:
            giver, receiver = target, acting
        return [
            self.change_stat(giver, effect.stat, -value, EffectType.TRANSFER_STAT),
            self.change_stat(receiver, effect.stat, value, EffectType.TRANSFER_STAT),
        ]

    def _gain_resource(self, effect, acting, targets, state):
        return [
            self.change_resource(p, effect.resource, effect.value, EffectType.GAIN_RESOURCE)
            for p in targets
        ]

    def _lose_resource(self, effect, acting, targets, state):
        return [
            self.change_resource(p, effect.resource, -effect.value, EffectType.LOSE_RESOURCE)
            for p in targets
        ]

    def _steal_resource(self, effect, acting, targets, state):
        if not targets:
            return []
        target = targets[0]
        available = target.resources.get(effect.resource, 0)
        stolen = min(effect.value, available)
        return [
            self.change_resource(target, effect.resource, -stolen, EffectType.STEAL_RESOURCE),
            self.change_resource(acting, effect.resource, stolen, EffectType.STEAL_RESOURCE),
        ]

    def _claim_shared(self, effect, acting, targets, state):
        pool_id = effect.metadata.get("pool_id")
        if self.claim_hook is None:
            logger.debug("No claim hook wired, ignoring claim on %s", pool_id)
            return []
        return self.claim_hook(state, pool_id, acting.player_id)

    def _draw_cards(self, effect, acting, targets, state):
        outcomes = []
        if self.draw_hook is None:
            return outcomes
        for player in targets:
            before = len(player.hand)
            self.draw_hook(state, player.player_id, int(effect.value))
            outcomes.append(EffectOutcome(EffectType.DRAW_CARDS, player.player_id, "hand", before, len(player.hand)))
        return outcomes

    def _discard_cards(self, effect, acting, targets, state):
        outcomes = []
        for player in targets:
            before = len(player.hand)
            for _ in range(min(int(effect.value), len(player.hand))):
                card = player.hand.pop()
                card.state = CardState.DISCARDED
                player.discard_pile.append(card)
            outcomes.append(EffectOutcome(EffectType.DISCARD_CARDS, player.player_id, "hand", before, len(player.hand)))
        return outcomes

    def _apply_status(self, effect, acting, targets, state):
        return self._change_status(effect, targets, state, remove=False)

    def _remove_status(self, effect, acting, targets, state):
        return self._change_status(effect, targets, state, remove=True)

    def _change_status(self, effect, targets, state, remove):
        if self.status_hook is None:
            logger.debug("No status hook wired, ignoring %s", effect.effect_type.value)
            return []
        outcomes = []
        for player in targets:
            outcomes.extend(self.status_hook(state, player.player_id, effect.status_id, remove))
        return outcomes
