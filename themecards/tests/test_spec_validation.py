"""
Tests for theme loading and validation.

Tests:
- The built-in themes load and validate
- JSON documents with unknown kinds are rejected at load time
- Cross-reference checks (decks, combos, pools)
"""

import copy
import json

import pytest

from ..spec_schema import (
    ClaimRuleType,
    ComboDefinition,
    ComboTrigger,
    ComboTriggerType,
    Comparison,
    EffectType,
    ThemeValidationError,
    WinConditionType,
    load_theme,
    theme_from_dict,
    validate_theme,
)
from ..spec_schema.theme_spec import StatDefinition
from ..themes import DATA_DIR, create_bigtech_worker_theme
from .conftest import make_theme


@pytest.fixture
def startup_doc():
    with open(DATA_DIR / "startup.json", encoding="utf-8") as f:
        return json.load(f)


class TestBuiltInThemes:
    """Shipped content is valid."""

    def test_bigtech_worker_validates(self):
        result = validate_theme(create_bigtech_worker_theme())
        assert result.valid, result.errors

    def test_bigtech_worker_pools(self):
        theme = create_bigtech_worker_theme()
        promotion = theme.get_shared_resource("promotion_slots")
        assert promotion.total_amount == 1
        assert promotion.claim_rules[0].rule_type == ClaimRuleType.HIGHEST_STAT
        assert theme.get_shared_resource("project_opportunities").renewable

    def test_startup_json_loads(self):
        theme = load_theme(DATA_DIR / "startup.json")

        assert theme.theme_id == "startup"
        assert theme.get_resource("energy").max == 6
        assert theme.get_card("pivot").effects[-1].effect_type == EffectType.DRAW_CARDS
        assert theme.win_conditions[1].condition_type == WinConditionType.RESOURCE_THRESHOLD
        assert theme.win_conditions[1].operator == Comparison.LE

    def test_startup_condition_parsed(self):
        theme = load_theme(DATA_DIR / "startup.json")
        condition = theme.get_card("growth_campaign").effects[-1].condition
        assert condition.key == "product_quality"
        assert condition.operator == Comparison.GE
        assert condition.value == 40


class TestLoaderRejects:
    """Malformed documents fail at load time."""

    def test_unknown_effect_kind(self, startup_doc):
        startup_doc["cards"][0]["effects"][0]["type"] = "teleport"
        with pytest.raises(ThemeValidationError) as exc_info:
            theme_from_dict(startup_doc)
        assert any("cards.0.effects.0.type" in e for e in exc_info.value.errors)

    def test_unknown_claim_rule(self, startup_doc):
        startup_doc["shared_resources"][0]["claim_rules"][0]["type"] = "bribery"
        with pytest.raises(ThemeValidationError):
            theme_from_dict(startup_doc)

    def test_unknown_operator(self, startup_doc):
        startup_doc["win_conditions"][0]["operator"] = "=>"
        with pytest.raises(ThemeValidationError):
            theme_from_dict(startup_doc)

    def test_unknown_field(self, startup_doc):
        startup_doc["cards"][0]["power_level"] = 9000
        with pytest.raises(ThemeValidationError):
            theme_from_dict(startup_doc)

    def test_negative_cost(self, startup_doc):
        startup_doc["cards"][1]["cost"] = -1
        with pytest.raises(ThemeValidationError):
            theme_from_dict(startup_doc)

    def test_dangling_deck_reference(self, startup_doc):
        startup_doc["starting_deck"].append("missing_card")
        with pytest.raises(ThemeValidationError) as exc_info:
            theme_from_dict(startup_doc)
        assert any("missing_card" in e for e in exc_info.value.errors)

    def test_dangling_combo_reference(self, startup_doc):
        startup_doc["combos"][0]["trigger"]["cards"] = ["ship_feature", "nonexistent"]
        with pytest.raises(ThemeValidationError):
            theme_from_dict(startup_doc)

    def test_claim_of_unknown_pool(self, startup_doc):
        startup_doc["cards"][6]["effects"][0]["metadata"]["pool_id"] = "no_such_pool"
        with pytest.raises(ThemeValidationError):
            theme_from_dict(startup_doc)

    def test_invalid_json_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ThemeValidationError):
            load_theme(path)

    def test_original_document_untouched(self, startup_doc):
        original = copy.deepcopy(startup_doc)
        theme_from_dict(startup_doc)
        assert startup_doc == original


class TestValidateTheme:
    """validate_theme on Python-built themes."""

    def test_test_theme_valid(self, theme):
        assert validate_theme(theme).valid

    def test_stat_min_above_max(self):
        theme = make_theme(stats=(StatDefinition(id="score", min=10, max=5),))
        result = validate_theme(theme)
        assert not result.valid
        assert any("min > max" in e for e in result.errors)

    def test_missing_win_conditions_is_warning(self):
        result = validate_theme(make_theme(win_conditions=()))
        assert result.valid
        assert result.warnings

    def test_raise_for_errors(self):
        result = validate_theme(make_theme(starting_deck=("ghost",)))
        with pytest.raises(ThemeValidationError):
            result.raise_for_errors()

    def test_trigger_count_below_one(self):
        combo = ComboDefinition(
            id="empty_run",
            name="Empty Run",
            trigger=ComboTrigger(ComboTriggerType.TAG_SEQUENCE, tags=("life", "work"), count=0),
        )
        result = validate_theme(make_theme(combos=(combo,)))
        assert not result.valid
        assert any("count must be >= 1" in e for e in result.errors)
