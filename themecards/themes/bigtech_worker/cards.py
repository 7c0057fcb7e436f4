"""
Big-tech worker cards.

Card families:
- work: performance at the cost of health
- rest / life: recover health and happiness
- social / growth: influence, connections, skills
- event: things that happen to you
- competitive: damage, transfers, steals and shared-pool claims
"""

from ...spec_schema.effect_dsl import (
    EffectTarget,
    apply_status,
    claim_shared,
    damage_stat,
    draw_cards,
    gain_resource,
    lose_resource,
    modify_stat,
    steal_resource,
    transfer_stat,
)
from ...spec_schema.theme_spec import CardDefinition, CardType, Rarity


# ============================================================================
# Work
# ============================================================================

OVERTIME = CardDefinition(
    id="overtime",
    name="Overtime",
    card_type=CardType.EVENT,
    description="Stay late to ship the project. Performance +10, health -5, energy -2.",
    effects=(
        modify_stat("performance", 10),
        modify_stat("health", -5),
        lose_resource("energy", 2),
    ),
    rarity=Rarity.COMMON,
    tags=("work", "overtime"),
)

BUG_FIX = CardDefinition(
    id="bug_fix",
    name="Production Bug Fix",
    description="Fix an outage at 3am. Performance +15, health -10.",
    effects=(modify_stat("performance", 15), modify_stat("health", -10)),
    cost=2,
    rarity=Rarity.UNCOMMON,
    tags=("work", "urgent"),
)

PROJECT_DELIVERY = CardDefinition(
    id="project_delivery",
    name="Project Delivery",
    description="Ship an important project. Performance +20, influence +5.",
    effects=(modify_stat("performance", 20), modify_stat("influence", 5)),
    cost=3,
    rarity=Rarity.RARE,
    tags=("work", "project"),
)

CODE_REVIEW = CardDefinition(
    id="code_review",
    name="Code Review",
    description="Review a teammate's change. Influence +3, connections +1.",
    effects=(modify_stat("influence", 3), gain_resource("connections", 1)),
    cost=1,
    rarity=Rarity.COMMON,
    tags=("work", "social"),
)

MODE_996 = CardDefinition(
    id="mode_996",
    name="996 Schedule",
    description="Work 9am to 9pm, six days a week. For 3 turns: performance +5, health -3 each turn.",
    effects=(apply_status("mode_996"),),
    cost=1,
    rarity=Rarity.RARE,
    tags=("work", "overtime"),
)

PPT_PRESENTATION = CardDefinition(
    id="ppt_presentation",
    name="Slide Deck Review",
    description="Present to leadership. Performance +8, happiness -3.",
    effects=(modify_stat("performance", 8), modify_stat("happiness", -3)),
    cost=1,
    rarity=Rarity.COMMON,
    tags=("work", "meeting"),
)

# ============================================================================
# Rest and life
# ============================================================================

SLACKING = CardDefinition(
    id="slacking",
    name="Slacking Off",
    description="Health +5, happiness +5, performance -3.",
    effects=(
        modify_stat("health", 5),
        modify_stat("happiness", 5),
        modify_stat("performance", -3),
    ),
    rarity=Rarity.COMMON,
    tags=("rest", "risk"),
)

COFFEE_BREAK = CardDefinition(
    id="coffee_break",
    name="Coffee Break",
    description="Health +3, energy +1.",
    effects=(modify_stat("health", 3), gain_resource("energy", 1)),
    rarity=Rarity.COMMON,
    tags=("rest",),
)

GYM = CardDefinition(
    id="gym",
    name="Gym Session",
    description="Health +10, energy +1.",
    effects=(modify_stat("health", 10), gain_resource("energy", 1)),
    cost=1,
    rarity=Rarity.COMMON,
    tags=("life", "health"),
)

FAMILY_TIME = CardDefinition(
    id="family_time",
    name="Family Time",
    description="Happiness +10, health +5.",
    effects=(modify_stat("happiness", 10), modify_stat("health", 5)),
    cost=1,
    rarity=Rarity.COMMON,
    tags=("life", "family"),
)

VACATION = CardDefinition(
    id="vacation",
    name="Vacation",
    description="Health +20, happiness +15, performance -5.",
    effects=(
        modify_stat("health", 20),
        modify_stat("happiness", 15),
        modify_stat("performance", -5),
    ),
    cost=2,
    rarity=Rarity.UNCOMMON,
    tags=("life", "rest"),
)

# ============================================================================
# Social and growth
# ============================================================================

TEAM_DINNER = CardDefinition(
    id="team_dinner",
    name="Team Dinner",
    card_type=CardType.EVENT,
    description="Connections +2, happiness +5, health -3.",
    effects=(
        gain_resource("connections", 2),
        modify_stat("happiness", 5),
        modify_stat("health", -3),
    ),
    cost=1,
    rarity=Rarity.COMMON,
    tags=("social",),
)

MENTOR_MEETING = CardDefinition(
    id="mentor_meeting",
    name="Mentor 1:1",
    description="Influence +5, skills +2.",
    effects=(modify_stat("influence", 5), gain_resource("skills", 2)),
    cost=1,
    rarity=Rarity.UNCOMMON,
    tags=("social", "growth"),
)

NETWORKING = CardDefinition(
    id="networking",
    name="Networking",
    description="Connections +3, influence +2.",
    effects=(gain_resource("connections", 3), modify_stat("influence", 2)),
    cost=2,
    rarity=Rarity.UNCOMMON,
    tags=("social", "growth"),
)

ONLINE_COURSE = CardDefinition(
    id="online_course",
    name="Online Course",
    description="Skills +3, energy -1.",
    effects=(gain_resource("skills", 3), lose_resource("energy", 1)),
    cost=1,
    rarity=Rarity.COMMON,
    tags=("growth",),
)

CERTIFICATION = CardDefinition(
    id="certification",
    name="Certification",
    description="Performance +10, influence +5, energy -3.",
    effects=(
        modify_stat("performance", 10),
        modify_stat("influence", 5),
        lose_resource("energy", 3),
    ),
    cost=3,
    rarity=Rarity.RARE,
    tags=("growth",),
)

# ============================================================================
# Events
# ============================================================================

LAYOFF_RUMOR = CardDefinition(
    id="layoff_rumor",
    name="Layoff Rumor",
    card_type=CardType.EVENT,
    description="Happiness -10, health -5.",
    effects=(modify_stat("happiness", -10), modify_stat("health", -5)),
    rarity=Rarity.UNCOMMON,
    tags=("event", "negative"),
)

BONUS = CardDefinition(
    id="bonus",
    name="Year-End Bonus",
    card_type=CardType.EVENT,
    description="Money +5, happiness +15.",
    effects=(gain_resource("money", 5), modify_stat("happiness", 15)),
    rarity=Rarity.RARE,
    tags=("event", "positive"),
)

SLACKING_CAUGHT = CardDefinition(
    id="slacking_caught",
    name="Caught Slacking",
    card_type=CardType.EVENT,
    description="Performance -15, then draw 2 cards.",
    effects=(modify_stat("performance", -15), draw_cards(2)),
    rarity=Rarity.UNCOMMON,
    tags=("rest", "risk", "reversal"),
)

# ============================================================================
# Competitive
# ============================================================================

BLAME_SHIFTING = CardDefinition(
    id="blame_shifting",
    name="Blame Shifting",
    description="Hand 10 performance of blame to an opponent.",
    effects=(transfer_stat("performance", 10, direction="to_target"),),
    cost=2,
    rarity=Rarity.UNCOMMON,
    tags=("competitive", "attack", "blame"),
)

CREDIT_STEALING = CardDefinition(
    id="credit_stealing",
    name="Credit Stealing",
    description="Take 8 performance from an opponent.",
    effects=(transfer_stat("performance", 8, direction="from_target"),),
    cost=2,
    rarity=Rarity.UNCOMMON,
    tags=("competitive", "attack", "steal"),
)

GOSSIP = CardDefinition(
    id="gossip",
    name="Office Gossip",
    description="The strongest opponent loses 8 influence.",
    effects=(damage_stat("influence", 8, target=EffectTarget.STRONGEST_OPPONENT),),
    cost=1,
    rarity=Rarity.COMMON,
    tags=("competitive", "attack", "social"),
)

POACH_CONTACT = CardDefinition(
    id="poach_contact",
    name="Poach a Contact",
    description="Steal 2 connections from an opponent.",
    effects=(steal_resource("connections", 2),),
    cost=2,
    rarity=Rarity.UNCOMMON,
    tags=("competitive", "attack", "steal"),
)

CLAIM_PROMOTION = CardDefinition(
    id="claim_promotion",
    name="Go For Promotion",
    description="Claim the promotion slot if nobody outperforms you.",
    effects=(claim_shared("promotion_slots"),),
    cost=3,
    rarity=Rarity.RARE,
    tags=("competitive", "shared_resource"),
)

GRAB_PROJECT = CardDefinition(
    id="grab_project",
    name="Grab a Project",
    description="Claim a project opportunity, then performance +5.",
    effects=(claim_shared("project_opportunities"), modify_stat("performance", 5)),
    cost=2,
    rarity=Rarity.UNCOMMON,
    tags=("competitive", "shared_resource", "work"),
)


ALL_CARDS = (
    OVERTIME,
    BUG_FIX,
    PROJECT_DELIVERY,
    CODE_REVIEW,
    PPT_PRESENTATION,
    MODE_996,
    SLACKING,
    COFFEE_BREAK,
    GYM,
    FAMILY_TIME,
    VACATION,
    TEAM_DINNER,
    MENTOR_MEETING,
    NETWORKING,
    ONLINE_COURSE,
    CERTIFICATION,
    LAYOFF_RUMOR,
    BONUS,
    SLACKING_CAUGHT,
    BLAME_SHIFTING,
    CREDIT_STEALING,
    GOSSIP,
    POACH_CONTACT,
    CLAIM_PROMOTION,
    GRAB_PROJECT,
)

# Two copies of the everyday cards, one of the rest
STARTING_DECK = tuple(
    card.id
    for card in ALL_CARDS
    for _ in range(2 if card.rarity == Rarity.COMMON else 1)
)
