"""
Theme Validation - Checks a ThemeSpec before any session uses it.

Validates that:
1. Required fields are present
2. References are valid (card ids in decks and combos, pools in claim effects,
   statuses in apply_status / remove_status effects)
3. Effects carry the stat/resource key their kind needs
4. Invariants hold (min <= max, totals positive, renewal interval >= 1)
"""

from __future__ import annotations
from dataclasses import dataclass
import logging

from ..errors import ConfigurationError
from .theme_spec import (
    ThemeSpec,
    CardDefinition,
    ClaimRuleType,
    ComboTriggerType,
    SharedResourceDefinition,
)
from .effect_dsl import Effect, EffectType, ConditionType

logger = logging.getLogger(__name__)

_STAT_EFFECTS = {EffectType.MODIFY_STAT, EffectType.DAMAGE_STAT, EffectType.TRANSFER_STAT}
_RESOURCE_EFFECTS = {EffectType.GAIN_RESOURCE, EffectType.LOSE_RESOURCE, EffectType.STEAL_RESOURCE}
_STATUS_EFFECTS = {EffectType.APPLY_STATUS, EffectType.REMOVE_STATUS}


class ThemeValidationError(ConfigurationError):
    """Raised when theme validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Theme validation failed with {len(errors)} error(s): {'; '.join(errors[:3])}")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str]
    warnings: list[str]

    def raise_for_errors(self) -> None:
        if not self.valid:
            raise ThemeValidationError(self.errors)


def validate_theme(theme: ThemeSpec) -> ValidationResult:
    """
    Validate a complete theme.

    Returns ValidationResult with errors and warnings; call
    `raise_for_errors()` to turn errors into a ThemeValidationError.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not theme.theme_id:
        errors.append("theme_id is required")
    if not theme.name:
        errors.append("name is required")

    config = theme.config
    if config.min_players < 1:
        errors.append("min_players must be >= 1")
    if config.max_players < config.min_players:
        errors.append("max_players must be >= min_players")
    if config.max_turns < 1:
        errors.append("max_turns must be >= 1")
    if config.initial_hand_size > config.max_hand_size:
        errors.append("initial_hand_size must be <= max_hand_size")

    for stat in theme.stats:
        if stat.min > stat.max:
            errors.append(f"Stat '{stat.id}' has min > max")

    card_ids = [card.id for card in theme.cards]
    seen: set[str] = set()
    for card_id in card_ids:
        if card_id in seen:
            errors.append(f"Duplicate card id '{card_id}'")
        seen.add(card_id)

    pool_ids = {pool.id for pool in theme.shared_resources}
    status_ids = {status.id for status in theme.statuses}

    for card in theme.cards:
        errors.extend(_validate_card(card, pool_ids, status_ids))

    for card_id in theme.starting_deck:
        if card_id not in seen:
            errors.append(f"Starting deck references unknown card '{card_id}'")

    for pool in theme.shared_resources:
        errors.extend(_validate_pool(pool, pool_ids, status_ids))

    for combo in theme.combos:
        trigger = combo.trigger
        if trigger.trigger_type in {ComboTriggerType.SEQUENCE, ComboTriggerType.COMBINATION}:
            if not trigger.cards:
                errors.append(f"Combo '{combo.id}' has no cards in its trigger")
            for card_id in trigger.cards:
                if card_id not in seen:
                    errors.append(f"Combo '{combo.id}' references unknown card '{card_id}'")
        else:
            if not trigger.tags:
                errors.append(f"Combo '{combo.id}' has no tags in its trigger")
            if trigger.trigger_type == ComboTriggerType.TAG_COUNT and not trigger.count:
                errors.append(f"Combo '{combo.id}' tag_count trigger needs a count")
            if trigger.count is not None and trigger.count < 1:
                errors.append(f"Combo '{combo.id}' trigger count must be >= 1")
        for effect in combo.effects:
            errors.extend(f"Combo '{combo.id}': {e}" for e in _validate_effect(effect, pool_ids, status_ids))

    seen_statuses: set[str] = set()
    for status in theme.statuses:
        if status.id in seen_statuses:
            errors.append(f"Duplicate status id '{status.id}'")
        seen_statuses.add(status.id)
        if status.max_stacks is not None and status.max_stacks < 1:
            errors.append(f"Status '{status.id}' needs max_stacks >= 1")
        for effect in status.all_effects():
            errors.extend(f"Status '{status.id}': {e}" for e in _validate_effect(effect, pool_ids, status_ids))

    stat_ids = {s.id for s in theme.stats}
    for key in config.per_turn_stat_changes:
        if stat_ids and key not in stat_ids:
            warnings.append(f"Per-turn change for undeclared stat '{key}'")

    if not theme.cards:
        warnings.append("No cards defined - theme may be incomplete")
    if not theme.win_conditions:
        warnings.append("No win conditions defined - only the turn limit ends the game")

    for warning in warnings:
        logger.warning("Theme '%s': %s", theme.theme_id, warning)

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def _validate_card(card: CardDefinition, pool_ids: set[str], status_ids: set[str]) -> list[str]:
    """Validate a single card definition."""
    errors = []
    if not card.id:
        errors.append("Card has empty id")
    if not card.name:
        errors.append(f"Card '{card.id}' has empty name")
    if card.cost < 0:
        errors.append(f"Card '{card.id}' has negative cost")

    for effect in card.effects:
        errors.extend(f"Card '{card.id}': {e}" for e in _validate_effect(effect, pool_ids, status_ids))

    return errors


def _validate_pool(pool: SharedResourceDefinition, pool_ids: set[str], status_ids: set[str]) -> list[str]:
    errors = []
    if pool.total_amount < 1:
        errors.append(f"Shared resource '{pool.id}' needs total_amount >= 1")
    if pool.renewable:
        if pool.renewal_interval < 1:
            errors.append(f"Shared resource '{pool.id}' needs renewal_interval >= 1")
        if pool.renewal_amount < 1:
            errors.append(f"Shared resource '{pool.id}' needs renewal_amount >= 1")
    if not pool.claim_rules:
        errors.append(f"Shared resource '{pool.id}' has no claim rules")
    for rule in pool.claim_rules:
        if rule.rule_type in {ClaimRuleType.HIGHEST_STAT, ClaimRuleType.LOWEST_STAT} and not rule.stat_id:
            errors.append(f"Shared resource '{pool.id}': {rule.rule_type.value} rule needs stat_id")
        if rule.rule_type == ClaimRuleType.CUSTOM and not rule.custom_rule_id:
            errors.append(f"Shared resource '{pool.id}': custom rule needs custom_rule_id")
    for effect in pool.claim_effects:
        if effect.effect_type == EffectType.CLAIM_SHARED:
            errors.append(f"Shared resource '{pool.id}': claim effects cannot claim another pool")
            continue
        errors.extend(f"Shared resource '{pool.id}': {e}" for e in _validate_effect(effect, pool_ids, status_ids))
    return errors


def _validate_effect(effect: Effect, pool_ids: set[str], status_ids: set[str]) -> list[str]:
    """Validate that an effect carries what its kind needs."""
    errors = []

    if not isinstance(effect.effect_type, EffectType):
        errors.append(f"Unknown effect type '{effect.effect_type}'")
        return errors

    if effect.effect_type in _STAT_EFFECTS and not effect.stat:
        errors.append(f"{effect.effect_type.value} effect has no 'stat' in metadata")
    if effect.effect_type in _RESOURCE_EFFECTS and not effect.resource:
        errors.append(f"{effect.effect_type.value} effect has no 'resource' in metadata")
    if effect.effect_type == EffectType.CLAIM_SHARED:
        pool_id = effect.metadata.get("pool_id")
        if pool_id not in pool_ids:
            errors.append(f"claim_shared effect references unknown shared resource '{pool_id}'")
    if effect.effect_type in _STATUS_EFFECTS and effect.status_id not in status_ids:
        errors.append(f"{effect.effect_type.value} effect references unknown status '{effect.status_id}'")
    if effect.effect_type == EffectType.TRANSFER_STAT:
        if effect.metadata.get("direction", "to_target") not in {"to_target", "from_target"}:
            errors.append("transfer_stat direction must be 'to_target' or 'from_target'")

    condition = effect.condition
    if condition and condition.condition_type == ConditionType.STAT_CHECK and not condition.key:
        errors.append("stat_check condition has no stat key")

    return errors
