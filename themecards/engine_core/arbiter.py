"""
Shared Resource Arbiter - Finite pools contested by every player.

Two entry points:
- claim(): one player asks for one unit. Every claim rule of the pool is an
  eligibility check (highest_stat: nobody else strictly higher).
- contest(): several players ask at once. The pool's rules are applied in
  order as filters over the candidate list; stable input order breaks any
  tie that is left.

A successful claim takes exactly one unit and applies the pool's claim
effects to the winner. Requests against an empty pool fail without
mutation. Renewable pools refill on a countdown ticked once per turn;
non-renewable pools stay empty for the rest of the session.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, TYPE_CHECKING
import logging

from ..errors import InvariantViolation, PlayerErrorCode
from ..spec_schema import ClaimRule, ClaimRuleType, SharedResourceDefinition
from .events import EventType, GameEvent
from .state import GameState, PlayerState, SharedResourcePoolState

if TYPE_CHECKING:
    from ..spec_schema import ThemeSpec
    from .effect_resolver import EffectOutcome, EffectResolver

logger = logging.getLogger(__name__)


# (state, player, pool definition) -> is the player allowed to claim
CustomClaimRule = Callable[[GameState, PlayerState, SharedResourceDefinition], bool]


@dataclass
class ClaimResult:
    """Outcome of a claim or contest. `player_id` is the winner when claimed."""
    claimed: bool
    pool_id: str
    player_id: str | None = None
    remaining: int = 0
    error: str | None = None
    error_code: PlayerErrorCode | None = None
    outcomes: list[EffectOutcome] = field(default_factory=list)
    events: list[GameEvent] = field(default_factory=list)

    @classmethod
    def rejected(cls, pool_id: str, error: str, code: PlayerErrorCode, remaining: int = 0) -> ClaimResult:
        return cls(claimed=False, pool_id=pool_id, remaining=remaining, error=error, error_code=code)


class SharedResourceArbiter:
    """
    Arbitrates claims on the theme's shared pools.

    Pool state lives in GameState.pools; the arbiter itself only holds the
    theme, the resolver used for claim effects and any custom rules.
    """

    def __init__(self, theme: ThemeSpec, resolver: EffectResolver | None = None):
        self.theme = theme
        self.resolver = resolver
        self._custom_rules: dict[str, CustomClaimRule] = {}

    def register_custom_rule(self, rule_id: str, rule: CustomClaimRule) -> None:
        self._custom_rules[rule_id] = rule

    def init_pools(self, state: GameState) -> None:
        """Create every pool full, with its renewal countdown armed."""
        state.pools = {}
        for definition in self.theme.shared_resources:
            state.pools[definition.id] = SharedResourcePoolState(
                pool_id=definition.id,
                remaining=definition.total_amount,
                turns_until_renewal=definition.renewal_interval if definition.renewable else None,
            )

    # =========================================================================
    # Claims
    # =========================================================================

    def claim(self, state: GameState, pool_id: str, player_id: str) -> ClaimResult:
        """One player requests one unit."""
        definition, pool, rejection = self._lookup(state, pool_id)
        if rejection:
            return rejection

        player = state.get_player(player_id)
        if player is None or player.eliminated:
            return ClaimResult.rejected(pool_id, f"Unknown player '{player_id}'",
                                        PlayerErrorCode.UNKNOWN_PLAYER, pool.remaining)

        for rule in definition.claim_rules:
            if not self._is_eligible(state, rule, player, definition):
                logger.info("Claim on %s by %s rejected by %s rule", pool_id, player_id, rule.rule_type.value)
                return ClaimResult.rejected(
                    pool_id, f"Claim rejected by {rule.rule_type.value} rule",
                    PlayerErrorCode.CLAIM_REJECTED, pool.remaining,
                )

        return self._award(state, definition, pool, player)

    def contest(self, state: GameState, pool_id: str, candidate_ids: list[str]) -> ClaimResult:
        """Several players request the same unit; at most one wins."""
        definition, pool, rejection = self._lookup(state, pool_id)
        if rejection:
            return rejection

        candidates: list[PlayerState] = []
        for candidate_id in candidate_ids:
            player = state.get_player(candidate_id)
            if player is None:
                return ClaimResult.rejected(pool_id, f"Unknown player '{candidate_id}'",
                                            PlayerErrorCode.UNKNOWN_PLAYER, pool.remaining)
            if not player.eliminated and player not in candidates:
                candidates.append(player)

        winner = self.select_winner(state, definition, candidates)
        if winner is None:
            return ClaimResult.rejected(pool_id, "No eligible candidate",
                                        PlayerErrorCode.CLAIM_REJECTED, pool.remaining)
        return self._award(state, definition, pool, winner)

    def select_winner(
        self,
        state: GameState,
        definition: SharedResourceDefinition,
        candidates: list[PlayerState],
    ) -> PlayerState | None:
        """Apply the pool's rules as successive filters. First survivor wins."""
        remaining = list(candidates)
        for rule in definition.claim_rules:
            if not remaining:
                break
            remaining = self._filter(state, rule, remaining, definition)
        return remaining[0] if remaining else None

    def _filter(
        self,
        state: GameState,
        rule: ClaimRule,
        candidates: list[PlayerState],
        definition: SharedResourceDefinition,
    ) -> list[PlayerState]:
        if rule.rule_type == ClaimRuleType.HIGHEST_STAT:
            best = max(p.stats.get(rule.stat_id, 0) for p in candidates)
            return [p for p in candidates if p.stats.get(rule.stat_id, 0) == best]
        if rule.rule_type == ClaimRuleType.LOWEST_STAT:
            best = min(p.stats.get(rule.stat_id, 0) for p in candidates)
            return [p for p in candidates if p.stats.get(rule.stat_id, 0) == best]
        if rule.rule_type == ClaimRuleType.FIRST_COME:
            return candidates[:1]
        if rule.rule_type == ClaimRuleType.RANDOM:
            return [state.rng.choice(candidates)]
        custom = self._custom_rule(rule)
        return [p for p in candidates if custom(state, p, definition)]

    def _is_eligible(
        self,
        state: GameState,
        rule: ClaimRule,
        player: PlayerState,
        definition: SharedResourceDefinition,
    ) -> bool:
        if rule.rule_type in (ClaimRuleType.HIGHEST_STAT, ClaimRuleType.LOWEST_STAT):
            mine = player.stats.get(rule.stat_id, 0)
            for other in state.opponents_of(player.player_id):
                theirs = other.stats.get(rule.stat_id, 0)
                if rule.rule_type == ClaimRuleType.HIGHEST_STAT and theirs > mine:
                    return False
                if rule.rule_type == ClaimRuleType.LOWEST_STAT and theirs < mine:
                    return False
            return True
        if rule.rule_type == ClaimRuleType.FIRST_COME:
            return True
        if rule.rule_type == ClaimRuleType.RANDOM:
            return state.rng.random() < 0.5
        return self._custom_rule(rule)(state, player, definition)

    def _custom_rule(self, rule: ClaimRule) -> CustomClaimRule:
        custom = self._custom_rules.get(rule.custom_rule_id or "")
        if custom is None:
            # Unregistered custom rules never admit anyone
            logger.warning("Custom claim rule %r is not registered", rule.custom_rule_id)
            return lambda state, player, definition: False
        return custom

    def _lookup(self, state: GameState, pool_id: str):
        definition = self.theme.get_shared_resource(pool_id)
        pool = state.pools.get(pool_id)
        if definition is None or pool is None:
            return None, None, ClaimResult.rejected(pool_id, f"Unknown pool '{pool_id}'",
                                                    PlayerErrorCode.UNKNOWN_POOL)
        if pool.remaining <= 0:
            return definition, pool, ClaimResult.rejected(pool_id, f"Pool '{pool_id}' is exhausted",
                                                          PlayerErrorCode.POOL_EXHAUSTED)
        return definition, pool, None

    def _award(
        self,
        state: GameState,
        definition: SharedResourceDefinition,
        pool: SharedResourcePoolState,
        player: PlayerState,
    ) -> ClaimResult:
        pool.remaining -= 1
        pool.claimed_by[player.player_id] = pool.claimed_by.get(player.player_id, 0) + 1
        self._check_pool(definition, pool)

        outcomes = []
        if self.resolver is not None:
            outcomes = self.resolver.apply_all(definition.claim_effects, player.player_id, state)

        logger.info("%s claimed %s (%d left)", player.player_id, definition.id, pool.remaining)
        events = [GameEvent(EventType.RESOURCE_CLAIMED, {
            "pool_id": definition.id,
            "player_id": player.player_id,
            "remaining": pool.remaining,
        })]
        if pool.remaining == 0:
            events.append(GameEvent(EventType.SHARED_RESOURCE_DEPLETED, {"pool_id": definition.id}))

        return ClaimResult(
            claimed=True,
            pool_id=definition.id,
            player_id=player.player_id,
            remaining=pool.remaining,
            outcomes=outcomes,
            events=events,
        )

    # =========================================================================
    # Renewal and reporting
    # =========================================================================

    def tick_renewals(self, state: GameState) -> list[GameEvent]:
        """Advance every renewable pool's countdown by one turn."""
        events = []
        for definition in self.theme.shared_resources:
            pool = state.pools.get(definition.id)
            if pool is None or not definition.renewable:
                continue
            pool.turns_until_renewal -= 1
            if pool.turns_until_renewal > 0:
                continue

            pool.turns_until_renewal = definition.renewal_interval
            before = pool.remaining
            pool.remaining = min(pool.remaining + definition.renewal_amount, definition.total_amount)
            self._check_pool(definition, pool)
            if pool.remaining > before:
                logger.debug("Pool %s renewed %d -> %d", definition.id, before, pool.remaining)
                events.append(GameEvent(EventType.SHARED_RESOURCE_RENEWED, {
                    "pool_id": definition.id,
                    "amount": pool.remaining - before,
                    "remaining": pool.remaining,
                }))
        return events

    def ranking(self, state: GameState, pool_id: str) -> list[tuple[str, int]]:
        """Players ordered by how many units of the pool they have claimed."""
        pool = state.pools.get(pool_id)
        if pool is None:
            return []
        return sorted(pool.claimed_by.items(), key=lambda item: -item[1])

    def _check_pool(self, definition: SharedResourceDefinition, pool: SharedResourcePoolState) -> None:
        if pool.remaining < 0 or pool.remaining > definition.total_amount:
            raise InvariantViolation(
                f"Pool {pool.pool_id} remaining={pool.remaining} outside [0, {definition.total_amount}]"
            )
