"""
Effect DSL - Data-only card effects.

Effects are pure data: a type, a target, a numeric value and the key of the
stat or resource they touch. They never execute themselves; the
EffectResolver interprets them against a session.

Key design decisions:
- Kinds are closed enums, so an unknown kind is rejected at theme-load time
- Conditions are structured (kind + operator + value)
- Order of effects on a card is part of the gameplay contract
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EffectType(Enum):
    """Kinds of atomic effects."""
    MODIFY_STAT = "modify_stat"
    GAIN_RESOURCE = "gain_resource"
    LOSE_RESOURCE = "lose_resource"

    # Competitive effects
    DAMAGE_STAT = "damage_stat"
    TRANSFER_STAT = "transfer_stat"
    STEAL_RESOURCE = "steal_resource"
    CLAIM_SHARED = "claim_shared"

    # Card movement
    DRAW_CARDS = "draw_cards"
    DISCARD_CARDS = "discard_cards"

    # Player statuses (metadata["status_id"])
    APPLY_STATUS = "apply_status"
    REMOVE_STATUS = "remove_status"


class EffectTarget(Enum):
    """Who an effect lands on, relative to the acting player."""
    SELF = "self"
    OPPONENT = "opponent"
    ALL = "all"
    ALL_OPPONENTS = "all_opponents"
    RANDOM_PLAYER = "random_player"
    WEAKEST_OPPONENT = "weakest_opponent"
    STRONGEST_OPPONENT = "strongest_opponent"


class Comparison(Enum):
    """Comparison operators shared by conditions and win conditions."""
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    EQ = "=="
    NE = "!="

    def compare(self, actual: float, expected: float) -> bool:
        if self is Comparison.GT:
            return actual > expected
        if self is Comparison.LT:
            return actual < expected
        if self is Comparison.GE:
            return actual >= expected
        if self is Comparison.LE:
            return actual <= expected
        if self is Comparison.EQ:
            return actual == expected
        return actual != expected


class ConditionType(Enum):
    """What an effect condition inspects."""
    STAT_CHECK = "stat_check"
    CARD_COUNT = "card_count"
    TURN_COUNT = "turn_count"


@dataclass(frozen=True)
class EffectCondition:
    """
    Gate on an effect. When it evaluates false the effect is skipped.

    Examples:
    - EffectCondition(ConditionType.STAT_CHECK, Comparison.LT, 30, key="health")
    - EffectCondition(ConditionType.TURN_COUNT, Comparison.GE, 5)
    """
    condition_type: ConditionType
    operator: Comparison
    value: float
    key: str | None = None  # stat id for STAT_CHECK


@dataclass(frozen=True)
class Effect:
    """
    One atomic effect.

    `metadata` names the stat or resource affected ("stat" / "resource")
    and carries kind-specific extras ("pool_id" for claim_shared,
    "direction" for transfer_stat, "status_id" for apply_status and
    remove_status).
    """
    effect_type: EffectType
    target: EffectTarget = EffectTarget.SELF
    value: float = 0
    metadata: dict[str, Any] = field(default_factory=dict)
    condition: EffectCondition | None = None

    @property
    def stat(self) -> str | None:
        return self.metadata.get("stat")

    @property
    def resource(self) -> str | None:
        return self.metadata.get("resource")

    @property
    def status_id(self) -> str | None:
        return self.metadata.get("status_id")


# ============================================================================
# Factory functions for common effect patterns
# ============================================================================

def modify_stat(stat: str, value: float, target: EffectTarget = EffectTarget.SELF) -> Effect:
    """Create a stat change effect."""
    return Effect(
        effect_type=EffectType.MODIFY_STAT,
        target=target,
        value=value,
        metadata={"stat": stat},
    )


def gain_resource(resource: str, value: float, target: EffectTarget = EffectTarget.SELF) -> Effect:
    """Create a resource gain effect."""
    return Effect(
        effect_type=EffectType.GAIN_RESOURCE,
        target=target,
        value=value,
        metadata={"resource": resource},
    )


def lose_resource(resource: str, value: float, target: EffectTarget = EffectTarget.SELF) -> Effect:
    """Create a resource loss effect."""
    return Effect(
        effect_type=EffectType.LOSE_RESOURCE,
        target=target,
        value=value,
        metadata={"resource": resource},
    )


def damage_stat(stat: str, value: float, target: EffectTarget = EffectTarget.OPPONENT) -> Effect:
    """Create an effect that lowers an opponent's stat."""
    return Effect(
        effect_type=EffectType.DAMAGE_STAT,
        target=target,
        value=value,
        metadata={"stat": stat},
    )


def transfer_stat(
    stat: str,
    value: float,
    direction: str = "to_target",
    target: EffectTarget = EffectTarget.OPPONENT,
) -> Effect:
    """Create a stat transfer between the acting player and a target."""
    return Effect(
        effect_type=EffectType.TRANSFER_STAT,
        target=target,
        value=value,
        metadata={"stat": stat, "direction": direction},
    )


def steal_resource(resource: str, value: float, target: EffectTarget = EffectTarget.OPPONENT) -> Effect:
    """Create a resource steal effect."""
    return Effect(
        effect_type=EffectType.STEAL_RESOURCE,
        target=target,
        value=value,
        metadata={"resource": resource},
    )


def claim_shared(pool_id: str) -> Effect:
    """Create an effect that claims one unit of a shared pool for the acting player."""
    return Effect(
        effect_type=EffectType.CLAIM_SHARED,
        target=EffectTarget.SELF,
        value=1,
        metadata={"pool_id": pool_id},
    )


def draw_cards(count: int = 1, target: EffectTarget = EffectTarget.SELF) -> Effect:
    """Create a draw effect."""
    return Effect(effect_type=EffectType.DRAW_CARDS, target=target, value=count)


def apply_status(status_id: str, target: EffectTarget = EffectTarget.SELF) -> Effect:
    """Create an effect that puts a theme status on the target (or stacks/refreshes it)."""
    return Effect(
        effect_type=EffectType.APPLY_STATUS,
        target=target,
        value=1,
        metadata={"status_id": status_id},
    )


def remove_status(status_id: str, target: EffectTarget = EffectTarget.SELF) -> Effect:
    return Effect(
        effect_type=EffectType.REMOVE_STATUS,
        target=target,
        value=1,
        metadata={"status_id": status_id},
    )
