"""
Theme Loader - Parses theme documents (JSON / dict) into a ThemeSpec.

Theme authors write loosely structured documents; this module is the one
place where they become typed data. Parsing goes through pydantic models,
so an unknown effect kind, claim rule or comparison operator is rejected
here, at load time, instead of deep inside a game.

Any failure is raised as ThemeValidationError.
"""

from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from .effect_dsl import (
    Comparison,
    ConditionType,
    Effect,
    EffectCondition,
    EffectTarget,
    EffectType,
)
from .theme_spec import (
    CardDefinition,
    CardType,
    ClaimRule,
    ClaimRuleType,
    ComboDefinition,
    ComboTrigger,
    ComboTriggerType,
    GameConfig,
    Outcome,
    Rarity,
    ResourceDefinition,
    SharedResourceDefinition,
    StatDefinition,
    StatusDefinition,
    ThemeSpec,
    WinCondition,
    WinConditionType,
    DEFAULT_MAX_TURNS,
)
from .validation import ThemeValidationError, validate_theme


# =============================================================================
# Document models
# =============================================================================

class _Strict(BaseModel):
    model_config = {"extra": "forbid"}


class ConditionDoc(_Strict):
    type: ConditionType
    operator: Comparison
    value: float
    key: Optional[str] = None


class EffectDoc(_Strict):
    type: EffectType
    target: EffectTarget = EffectTarget.SELF
    value: float = 0
    metadata: dict[str, Any] = Field(default_factory=dict)
    condition: Optional[ConditionDoc] = None


class StatDoc(_Strict):
    id: str
    name: str = ""
    min: float = 0
    max: float = 100
    description: str = ""


class ResourceDoc(_Strict):
    id: str
    name: str = ""
    max: Optional[float] = None
    description: str = ""


class CardDoc(_Strict):
    id: str
    name: str
    type: CardType = CardType.ACTION
    description: str = ""
    effects: list[EffectDoc] = Field(default_factory=list)
    cost: int = Field(default=0, ge=0)
    rarity: Optional[Rarity] = None
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ClaimRuleDoc(_Strict):
    type: ClaimRuleType
    stat_id: Optional[str] = None
    custom_rule_id: Optional[str] = None
    description: str = ""


class SharedResourceDoc(_Strict):
    id: str
    name: str = ""
    description: str = ""
    total_amount: int = Field(default=1, ge=1)
    renewable: bool = False
    renewal_interval: int = 5
    renewal_amount: int = 1
    claim_rules: list[ClaimRuleDoc] = Field(default_factory=list)
    claim_effects: list[EffectDoc] = Field(default_factory=list)


class ComboTriggerDoc(_Strict):
    type: ComboTriggerType
    cards: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    count: Optional[int] = None


class ComboDoc(_Strict):
    id: str
    name: str
    trigger: ComboTriggerDoc
    reward: str = ""
    effects: list[EffectDoc] = Field(default_factory=list)
    rarity: Rarity = Rarity.COMMON
    cooldown: int = Field(default=0, ge=0)


class StatusDoc(_Strict):
    id: str
    name: str = ""
    description: str = ""
    duration: int = -1
    stackable: bool = False
    max_stacks: Optional[int] = Field(default=None, ge=1)
    on_apply: list[EffectDoc] = Field(default_factory=list)
    on_turn_start: list[EffectDoc] = Field(default_factory=list)
    on_turn_end: list[EffectDoc] = Field(default_factory=list)
    on_remove: list[EffectDoc] = Field(default_factory=list)


class WinConditionDoc(_Strict):
    type: WinConditionType
    target: str
    operator: Comparison
    value: float
    outcome: Outcome = Outcome.VICTORY
    description: str = ""


class GameConfigDoc(_Strict):
    min_players: int = 1
    max_players: int = 4
    initial_hand_size: int = 5
    max_hand_size: int = 10
    draw_per_turn: int = 1
    max_turns: int = DEFAULT_MAX_TURNS
    cost_resource: str = "energy"
    initial_stats: dict[str, float] = Field(default_factory=dict)
    initial_resources: dict[str, float] = Field(default_factory=dict)
    per_turn_stat_changes: dict[str, float] = Field(default_factory=dict)
    per_turn_resource_changes: dict[str, float] = Field(default_factory=dict)
    per_turn_resource_refill: dict[str, float] = Field(default_factory=dict)


class ThemeDoc(_Strict):
    id: str
    name: str
    version: str = "1.0.0"
    description: str = ""
    config: GameConfigDoc = Field(default_factory=GameConfigDoc)
    stats: list[StatDoc] = Field(default_factory=list)
    resources: list[ResourceDoc] = Field(default_factory=list)
    cards: list[CardDoc] = Field(default_factory=list)
    starting_deck: list[str] = Field(default_factory=list)
    shared_resources: list[SharedResourceDoc] = Field(default_factory=list)
    combos: list[ComboDoc] = Field(default_factory=list)
    statuses: list[StatusDoc] = Field(default_factory=list)
    win_conditions: list[WinConditionDoc] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Conversion
# =============================================================================

def _effect(doc: EffectDoc) -> Effect:
    condition = None
    if doc.condition:
        condition = EffectCondition(
            condition_type=doc.condition.type,
            operator=doc.condition.operator,
            value=doc.condition.value,
            key=doc.condition.key,
        )
    return Effect(
        effect_type=doc.type,
        target=doc.target,
        value=doc.value,
        metadata=dict(doc.metadata),
        condition=condition,
    )


def _effects(docs: list[EffectDoc]) -> tuple[Effect, ...]:
    return tuple(_effect(d) for d in docs)


def _to_spec(doc: ThemeDoc) -> ThemeSpec:
    return ThemeSpec(
        theme_id=doc.id,
        name=doc.name,
        version=doc.version,
        description=doc.description,
        config=GameConfig(**doc.config.model_dump()),
        stats=tuple(StatDefinition(**s.model_dump()) for s in doc.stats),
        resources=tuple(ResourceDefinition(**r.model_dump()) for r in doc.resources),
        cards=tuple(
            CardDefinition(
                id=c.id,
                name=c.name,
                card_type=c.type,
                description=c.description,
                effects=_effects(c.effects),
                cost=c.cost,
                rarity=c.rarity,
                tags=tuple(c.tags),
                metadata=dict(c.metadata),
            )
            for c in doc.cards
        ),
        starting_deck=tuple(doc.starting_deck),
        shared_resources=tuple(
            SharedResourceDefinition(
                id=p.id,
                name=p.name,
                description=p.description,
                total_amount=p.total_amount,
                renewable=p.renewable,
                renewal_interval=p.renewal_interval,
                renewal_amount=p.renewal_amount,
                claim_rules=tuple(
                    ClaimRule(
                        rule_type=r.type,
                        stat_id=r.stat_id,
                        custom_rule_id=r.custom_rule_id,
                        description=r.description,
                    )
                    for r in p.claim_rules
                ),
                claim_effects=_effects(p.claim_effects),
            )
            for p in doc.shared_resources
        ),
        combos=tuple(
            ComboDefinition(
                id=c.id,
                name=c.name,
                trigger=ComboTrigger(
                    trigger_type=c.trigger.type,
                    cards=tuple(c.trigger.cards),
                    tags=tuple(c.trigger.tags),
                    count=c.trigger.count,
                ),
                reward=c.reward,
                effects=_effects(c.effects),
                rarity=c.rarity,
                cooldown=c.cooldown,
            )
            for c in doc.combos
        ),
        statuses=tuple(
            StatusDefinition(
                id=s.id,
                name=s.name,
                description=s.description,
                duration=s.duration,
                stackable=s.stackable,
                max_stacks=s.max_stacks,
                on_apply=_effects(s.on_apply),
                on_turn_start=_effects(s.on_turn_start),
                on_turn_end=_effects(s.on_turn_end),
                on_remove=_effects(s.on_remove),
            )
            for s in doc.statuses
        ),
        win_conditions=tuple(
            WinCondition(
                condition_type=w.type,
                target_id=w.target,
                operator=w.operator,
                threshold=w.value,
                outcome=w.outcome,
                description=w.description,
            )
            for w in doc.win_conditions
        ),
        metadata=dict(doc.metadata),
    )


def theme_from_dict(data: dict[str, Any]) -> ThemeSpec:
    """
    Parse and validate a theme document.

    Raises:
        ThemeValidationError: on unknown kinds, missing fields or
            failed reference checks
    """
    try:
        doc = ThemeDoc.model_validate(data)
    except ValidationError as e:
        raise ThemeValidationError(
            [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        ) from e

    spec = _to_spec(doc)
    validate_theme(spec).raise_for_errors()
    return spec


def load_theme(path: str | Path) -> ThemeSpec:
    """Load a theme from a JSON file."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ThemeValidationError([f"{path}: invalid JSON ({e})"]) from e
    return theme_from_dict(data)
