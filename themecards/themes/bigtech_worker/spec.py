"""
Big-tech Worker Theme Specification

Survive life at a large tech company: push performance to 100 for a
promotion without letting health or happiness hit zero.

The theme defines:
- Stats (performance, health, happiness, influence) and resources
- Shared pools (promotion slots, project opportunities, mentor slots)
- Combos and the statuses they (and cards) apply
- Win conditions
"""

from ...spec_schema.effect_dsl import Comparison, apply_status, gain_resource, modify_stat
from ...spec_schema.theme_spec import (
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
)
from .cards import ALL_CARDS, STARTING_DECK


def create_bigtech_worker_theme() -> ThemeSpec:
    """Create the big-tech worker theme."""
    return ThemeSpec(
        theme_id="bigtech_worker",
        name="Big-tech Worker",
        version="1.0.0",
        description="Balance performance, health and happiness at a big tech company.",
        config=GameConfig(
            min_players=1,
            max_players=4,
            initial_hand_size=5,
            max_hand_size=10,
            draw_per_turn=2,
            max_turns=30,
            cost_resource="energy",
            initial_stats={"performance": 50, "health": 80, "happiness": 60, "influence": 10},
            initial_resources={"money": 2, "energy": 5, "connections": 3, "skills": 2},
            per_turn_stat_changes={"health": -1},
            per_turn_resource_refill={"energy": 5},
        ),
        stats=_define_stats(),
        resources=_define_resources(),
        cards=ALL_CARDS,
        starting_deck=STARTING_DECK,
        shared_resources=_define_shared_resources(),
        combos=_define_combos(),
        statuses=_define_statuses(),
        win_conditions=_define_win_conditions(),
    )


def _define_stats() -> tuple[StatDefinition, ...]:
    return (
        StatDefinition(id="performance", name="Performance", description="Reach 100 to get promoted"),
        StatDefinition(id="health", name="Health", description="Drop to 0 and you burn out"),
        StatDefinition(id="happiness", name="Happiness", description="Work-life balance"),
        StatDefinition(id="influence", name="Influence", description="Say in company decisions"),
    )


def _define_resources() -> tuple[ResourceDefinition, ...]:
    return (
        ResourceDefinition(id="money", name="Salary"),
        ResourceDefinition(id="energy", name="Energy", max=10, description="Spent to play cards"),
        ResourceDefinition(id="connections", name="Connections"),
        ResourceDefinition(id="skills", name="Skill points"),
    )


def _define_shared_resources() -> tuple[SharedResourceDefinition, ...]:
    """Company-wide opportunities every player competes for."""
    return (
        SharedResourceDefinition(
            id="promotion_slots",
            name="Promotion Slot",
            description="Only one promotion this cycle; it goes to the top performer.",
            total_amount=1,
            renewable=False,
            claim_rules=(ClaimRule(ClaimRuleType.HIGHEST_STAT, stat_id="performance"),),
            claim_effects=(modify_stat("performance", 30), gain_resource("money", 5)),
        ),
        SharedResourceDefinition(
            id="project_opportunities",
            name="Project Opportunity",
            description="High-visibility projects, first come first served.",
            total_amount=3,
            renewable=True,
            renewal_interval=5,
            renewal_amount=1,
            claim_rules=(ClaimRule(ClaimRuleType.FIRST_COME),),
            claim_effects=(modify_stat("performance", 10), modify_stat("influence", 3)),
        ),
        SharedResourceDefinition(
            id="mentor_slots",
            name="Mentor Slot",
            description="Senior mentors pick the most influential mentees.",
            total_amount=2,
            renewable=False,
            claim_rules=(ClaimRule(ClaimRuleType.HIGHEST_STAT, stat_id="influence"),),
            claim_effects=(gain_resource("skills", 5), modify_stat("influence", 5)),
        ),
    )


def _define_combos() -> tuple[ComboDefinition, ...]:
    return (
        ComboDefinition(
            id="night_warrior",
            name="Night Warrior",
            reward="Overtime with coffee: extra performance +5",
            trigger=ComboTrigger(ComboTriggerType.COMBINATION, cards=("overtime", "coffee_break")),
            effects=(modify_stat("performance", 5),),
        ),
        ComboDefinition(
            id="workplace_mentor",
            name="Workplace Mentor",
            reward="Teach and grow: extra influence +5",
            trigger=ComboTrigger(ComboTriggerType.COMBINATION, cards=("code_review", "mentor_meeting")),
            effects=(modify_stat("influence", 5),),
            rarity=Rarity.UNCOMMON,
        ),
        ComboDefinition(
            id="efficient_learning",
            name="Efficient Learning",
            reward="Learn then certify: skills +3",
            trigger=ComboTrigger(ComboTriggerType.SEQUENCE, cards=("online_course", "certification")),
            effects=(gain_resource("skills", 3),),
            rarity=Rarity.UNCOMMON,
        ),
        ComboDefinition(
            id="workaholic",
            name="Workaholic",
            reward="Three work cards in one turn: performance +10 and workaholic mode",
            trigger=ComboTrigger(ComboTriggerType.TAG_COUNT, tags=("work",), count=3),
            effects=(modify_stat("performance", 10), apply_status("workaholic_mode")),
            rarity=Rarity.RARE,
            cooldown=3,
        ),
        ComboDefinition(
            id="life_balance",
            name="Life Balance",
            reward="Gym and family: happiness +10, health +5",
            trigger=ComboTrigger(ComboTriggerType.COMBINATION, cards=("gym", "family_time")),
            effects=(modify_stat("happiness", 10), modify_stat("health", 5)),
        ),
        ComboDefinition(
            id="paid_break",
            name="Paid Break",
            reward="Slack off over coffee: health +8, happiness +3",
            trigger=ComboTrigger(ComboTriggerType.COMBINATION, cards=("slacking", "coffee_break")),
            effects=(modify_stat("health", 8), modify_stat("happiness", 3)),
        ),
        ComboDefinition(
            id="social_butterfly",
            name="Social Butterfly",
            reward="Social then growth: connections +3, influence +3",
            trigger=ComboTrigger(ComboTriggerType.TAG_SEQUENCE, tags=("social", "growth")),
            effects=(gain_resource("connections", 3), modify_stat("influence", 3)),
        ),
    )


def _define_statuses() -> tuple[StatusDefinition, ...]:
    return (
        StatusDefinition(
            id="mode_996",
            name="996 Mode",
            description="Working to the limit while the body pays for it.",
            duration=3,
            on_turn_start=(modify_stat("performance", 5), modify_stat("health", -3)),
        ),
        StatusDefinition(
            id="workaholic_mode",
            name="Workaholic Mode",
            description="Performance soars, health suffers.",
            duration=2,
            on_turn_start=(modify_stat("performance", 5), modify_stat("health", -5)),
        ),
    )


def _define_win_conditions() -> tuple[WinCondition, ...]:
    return (
        WinCondition(
            WinConditionType.STAT_THRESHOLD, "performance", Comparison.GE, 100,
            outcome=Outcome.VICTORY, description="Promoted",
        ),
        WinCondition(
            WinConditionType.STAT_THRESHOLD, "health", Comparison.LE, 0,
            outcome=Outcome.DEFEAT, description="Burned out",
        ),
        WinCondition(
            WinConditionType.STAT_THRESHOLD, "happiness", Comparison.LE, 0,
            outcome=Outcome.DEFEAT, description="Quit in despair",
        ),
    )
