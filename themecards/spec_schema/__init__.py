"""Theme specification schema - game-agnostic content definitions."""

from .theme_spec import (
    ThemeSpec,
    GameConfig,
    CardDefinition,
    CardType,
    Rarity,
    StatDefinition,
    ResourceDefinition,
    SharedResourceDefinition,
    ClaimRule,
    ClaimRuleType,
    ComboDefinition,
    ComboTrigger,
    ComboTriggerType,
    StatusDefinition,
    WinCondition,
    WinConditionType,
    Outcome,
)
from .effect_dsl import (
    Effect,
    EffectType,
    EffectTarget,
    EffectCondition,
    ConditionType,
    Comparison,
)
from .validation import validate_theme, ThemeValidationError, ValidationResult
from .loader import load_theme, theme_from_dict

__all__ = [
    "ThemeSpec",
    "GameConfig",
    "CardDefinition",
    "CardType",
    "Rarity",
    "StatDefinition",
    "ResourceDefinition",
    "SharedResourceDefinition",
    "ClaimRule",
    "ClaimRuleType",
    "ComboDefinition",
    "ComboTrigger",
    "ComboTriggerType",
    "StatusDefinition",
    "WinCondition",
    "WinConditionType",
    "Outcome",
    "Effect",
    "EffectType",
    "EffectTarget",
    "EffectCondition",
    "ConditionType",
    "Comparison",
    "validate_theme",
    "ThemeValidationError",
    "ValidationResult",
    "load_theme",
    "theme_from_dict",
]
