"""
Theme Specification - The complete, immutable content of one theme.

A theme supplies everything game-specific:
- Stats and resources (with their bounds)
- Card definitions and the starting deck
- Shared resource pools and their claim rules
- Combos
- Player statuses
- Win conditions
- Game configuration (hand sizes, turn ceiling, per-turn changes)

The engine never embeds content; it only evaluates a ThemeSpec.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .effect_dsl import Effect, Comparison


DEFAULT_STAT_MIN = 0
DEFAULT_STAT_MAX = 100
DEFAULT_MAX_TURNS = 30


class CardType(Enum):
    ACTION = "action"
    EVENT = "event"
    RESOURCE = "resource"
    CHARACTER = "character"
    MODIFIER = "modifier"


class Rarity(Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        return _RARITY_RANK[self]


_RARITY_RANK = {
    Rarity.COMMON: 0,
    Rarity.UNCOMMON: 1,
    Rarity.RARE: 2,
    Rarity.LEGENDARY: 3,
}


@dataclass(frozen=True)
class StatDefinition:
    """A bounded player attribute (performance, health, ...)."""
    id: str
    name: str = ""
    min: float = DEFAULT_STAT_MIN
    max: float = DEFAULT_STAT_MAX
    description: str = ""


@dataclass(frozen=True)
class ResourceDefinition:
    """A floor-zero player quantity (money, energy, ...). `max` is optional."""
    id: str
    name: str = ""
    max: float | None = None
    description: str = ""


@dataclass(frozen=True)
class CardDefinition:
    """
    A card as authored by the theme.

    Loaded once, never mutated. Runtime copies are CardInstances.
    """
    id: str
    name: str
    card_type: CardType = CardType.ACTION
    description: str = ""
    effects: tuple[Effect, ...] = ()
    cost: int = 0
    rarity: Rarity | None = None
    tags: tuple[str, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)


# ============================================================================
# Shared resources
# ============================================================================

class ClaimRuleType(Enum):
    """How a contested pool picks its winner."""
    HIGHEST_STAT = "highest_stat"
    LOWEST_STAT = "lowest_stat"
    FIRST_COME = "first_come"
    RANDOM = "random"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ClaimRule:
    rule_type: ClaimRuleType
    stat_id: str | None = None  # HIGHEST_STAT / LOWEST_STAT
    custom_rule_id: str | None = None  # CUSTOM
    description: str = ""


@dataclass(frozen=True)
class SharedResourceDefinition:
    """
    A pool contested by every player in the session.

    Renewable pools regain `renewal_amount` every `renewal_interval` turns,
    never past `total_amount`. Non-renewable pools stay empty once drained.
    """
    id: str
    name: str = ""
    total_amount: int = 1
    renewable: bool = False
    renewal_interval: int = 5
    renewal_amount: int = 1
    claim_rules: tuple[ClaimRule, ...] = ()
    claim_effects: tuple[Effect, ...] = ()
    description: str = ""


# ============================================================================
# Combos
# ============================================================================

class ComboTriggerType(Enum):
    SEQUENCE = "sequence"  # cards in exact order, as the tail of this turn's plays
    COMBINATION = "combination"  # all cards this turn, any order
    TAG_SEQUENCE = "tag_sequence"  # tags in order (subsequence)
    TAG_COUNT = "tag_count"  # N cards carrying one tag


@dataclass(frozen=True)
class ComboTrigger:
    trigger_type: ComboTriggerType
    cards: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    count: int | None = None  # tag_count: N; tag_sequence: minimum matching tags played


@dataclass(frozen=True)
class ComboDefinition:
    id: str
    name: str
    trigger: ComboTrigger
    reward: str = ""  # human-readable reward description
    effects: tuple[Effect, ...] = ()
    rarity: Rarity = Rarity.COMMON
    cooldown: int = 0  # turns between triggers, 0 = every time

    @property
    def reward_value(self) -> float:
        """Magnitude of the combo's reward, used to rank hints."""
        return sum(abs(e.value) for e in self.effects)


# ============================================================================
# Statuses
# ============================================================================

@dataclass(frozen=True)
class StatusDefinition:
    """
    A lasting condition on a player (burnout risk, mentored, ...).

    `duration` counts the holder's own turn ends; 0 or less never expires.
    Re-applying refreshes the duration and, for stackable statuses, adds a
    stack up to `max_stacks`. Turn hooks run once per stack.
    """
    id: str
    name: str = ""
    description: str = ""
    duration: int = -1
    stackable: bool = False
    max_stacks: int | None = None
    on_apply: tuple[Effect, ...] = ()
    on_turn_start: tuple[Effect, ...] = ()
    on_turn_end: tuple[Effect, ...] = ()
    on_remove: tuple[Effect, ...] = ()

    @property
    def is_permanent(self) -> bool:
        return self.duration <= 0

    def all_effects(self) -> tuple[Effect, ...]:
        return self.on_apply + self.on_turn_start + self.on_turn_end + self.on_remove


# ============================================================================
# Win conditions
# ============================================================================

class WinConditionType(Enum):
    STAT_THRESHOLD = "stat_threshold"
    RESOURCE_THRESHOLD = "resource_threshold"


class Outcome(Enum):
    VICTORY = "victory"
    DEFEAT = "defeat"


@dataclass(frozen=True)
class WinCondition:
    """
    Checked after every mutation. The first satisfied condition ends the game.

    `outcome` tells the host whether the player who met the condition won
    (performance >= 100) or lost (health <= 0).
    """
    condition_type: WinConditionType
    target_id: str
    operator: Comparison
    threshold: float
    outcome: Outcome = Outcome.VICTORY
    description: str = ""


# ============================================================================
# Game configuration and the complete theme
# ============================================================================

@dataclass(frozen=True)
class GameConfig:
    min_players: int = 1
    max_players: int = 4
    initial_hand_size: int = 5
    max_hand_size: int = 10
    draw_per_turn: int = 1
    max_turns: int = DEFAULT_MAX_TURNS
    cost_resource: str = "energy"
    initial_stats: dict[str, float] = field(default_factory=dict)
    initial_resources: dict[str, float] = field(default_factory=dict)

    # Applied to every player on entering the end phase
    per_turn_stat_changes: dict[str, float] = field(default_factory=dict)
    per_turn_resource_changes: dict[str, float] = field(default_factory=dict)

    # Set at the start of each player's turn (e.g. energy back to 3)
    per_turn_resource_refill: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ThemeSpec:
    """
    Complete definition of one theme.

    `starting_deck` lists card definition ids (repeated for copies). When it
    is empty every card definition goes into the deck once.
    """
    theme_id: str
    name: str
    version: str = "1.0.0"
    description: str = ""
    config: GameConfig = field(default_factory=GameConfig)
    stats: tuple[StatDefinition, ...] = ()
    resources: tuple[ResourceDefinition, ...] = ()
    cards: tuple[CardDefinition, ...] = ()
    starting_deck: tuple[str, ...] = ()
    shared_resources: tuple[SharedResourceDefinition, ...] = ()
    combos: tuple[ComboDefinition, ...] = ()
    statuses: tuple[StatusDefinition, ...] = ()
    win_conditions: tuple[WinCondition, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)

    def get_card(self, card_id: str) -> CardDefinition | None:
        for card in self.cards:
            if card.id == card_id:
                return card
        return None

    def get_stat(self, stat_id: str) -> StatDefinition:
        """Declared stat, or the default [0, 100] range for undeclared ones."""
        for stat in self.stats:
            if stat.id == stat_id:
                return stat
        return StatDefinition(id=stat_id)

    def get_resource(self, resource_id: str) -> ResourceDefinition:
        for resource in self.resources:
            if resource.id == resource_id:
                return resource
        return ResourceDefinition(id=resource_id)

    def get_status(self, status_id: str) -> StatusDefinition | None:
        for status in self.statuses:
            if status.id == status_id:
                return status
        return None

    def get_shared_resource(self, pool_id: str) -> SharedResourceDefinition | None:
        for pool in self.shared_resources:
            if pool.id == pool_id:
                return pool
        return None

    def deck_list(self) -> list[str]:
        if self.starting_deck:
            return list(self.starting_deck)
        return [card.id for card in self.cards]
