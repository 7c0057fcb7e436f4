"""
Pytest fixtures for themecards tests.
"""

import pytest

from ..spec_schema import (
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
    ThemeSpec,
    WinCondition,
    WinConditionType,
    Comparison,
)
from ..spec_schema.theme_spec import CardDefinition
from ..spec_schema.effect_dsl import (
    EffectTarget,
    claim_shared,
    damage_stat,
    gain_resource,
    modify_stat,
)
from ..engine_core.action import Action
from ..engine_core.state import CardInstance, CardState, GameState
from ..engine_core.turn_machine import TurnStateMachine
from ..session import SessionManager


def make_theme(**overrides) -> ThemeSpec:
    """A small theme whose numbers are easy to reason about in tests."""
    config = overrides.pop("config", GameConfig(
        min_players=1,
        max_players=4,
        initial_hand_size=3,
        max_hand_size=5,
        draw_per_turn=1,
        max_turns=5,
        cost_resource="energy",
        initial_stats={"score": 50, "health": 50, "influence": 10},
        initial_resources={"energy": 3, "gold": 2},
        per_turn_resource_refill={"energy": 3},
    ))
    fields = dict(
        theme_id="test_theme",
        name="Test Theme",
        config=config,
        stats=(
            StatDefinition(id="score", name="Score"),
            StatDefinition(id="health", name="Health"),
            StatDefinition(id="influence", name="Influence"),
        ),
        resources=(
            ResourceDefinition(id="energy", name="Energy", max=10),
            ResourceDefinition(id="gold", name="Gold"),
        ),
        cards=(
            CardDefinition(id="work", name="Work", effects=(modify_stat("score", 10),), cost=1, tags=("work",)),
            CardDefinition(id="rest", name="Rest", effects=(modify_stat("health", 5),), tags=("life",)),
            CardDefinition(id="big_push", name="Big Push", effects=(modify_stat("score", 30),), cost=2,
                           rarity=Rarity.UNCOMMON, tags=("work",)),
            CardDefinition(id="expensive", name="Expensive", effects=(modify_stat("score", 1),), cost=9),
            CardDefinition(id="sabotage", name="Sabotage",
                           effects=(damage_stat("health", 10, EffectTarget.OPPONENT),), tags=("competitive",)),
            CardDefinition(id="grab_trophy", name="Grab Trophy", effects=(claim_shared("trophy"),)),
        ),
        starting_deck=("work",) * 4 + ("rest",) * 4 + ("big_push",) * 2,
        shared_resources=(
            SharedResourceDefinition(
                id="trophy",
                name="Trophy",
                total_amount=1,
                claim_rules=(ClaimRule(ClaimRuleType.HIGHEST_STAT, stat_id="score"),),
                claim_effects=(modify_stat("score", 30),),
            ),
            SharedResourceDefinition(
                id="projects",
                name="Projects",
                total_amount=3,
                renewable=True,
                renewal_interval=5,
                renewal_amount=1,
                claim_rules=(ClaimRule(ClaimRuleType.FIRST_COME),),
                claim_effects=(gain_resource("gold", 1),),
            ),
        ),
        combos=(
            ComboDefinition(
                id="one_two",
                name="One-Two",
                reward="Work then push: score +5",
                trigger=ComboTrigger(ComboTriggerType.SEQUENCE, cards=("work", "big_push")),
                effects=(modify_stat("score", 5),),
                rarity=Rarity.UNCOMMON,
            ),
            ComboDefinition(
                id="balanced",
                name="Balanced Day",
                reward="Work and rest: health +5",
                trigger=ComboTrigger(ComboTriggerType.COMBINATION, cards=("work", "rest")),
                effects=(modify_stat("health", 5),),
            ),
        ),
        win_conditions=(
            WinCondition(WinConditionType.STAT_THRESHOLD, "score", Comparison.GE, 100,
                         outcome=Outcome.VICTORY, description="Top score"),
            WinCondition(WinConditionType.STAT_THRESHOLD, "health", Comparison.LE, 0,
                         outcome=Outcome.DEFEAT, description="Collapsed"),
        ),
    )
    fields.update(overrides)
    return ThemeSpec(**fields)


def give_card(state: GameState, player_id: str, definition_id: str) -> CardInstance:
    """Put a fresh card instance straight into a player's hand."""
    card = CardInstance(
        instance_id=state.new_instance_id(definition_id),
        definition_id=definition_id,
        state=CardState.IN_HAND,
    )
    state.get_player(player_id).hand.append(card)
    return card


@pytest.fixture
def theme() -> ThemeSpec:
    """Small deterministic theme."""
    return make_theme()


@pytest.fixture
def machine(theme: ThemeSpec) -> TurnStateMachine:
    return TurnStateMachine(theme)


@pytest.fixture
def setup_state(machine: TurnStateMachine) -> GameState:
    """Two seated players, not yet dealt."""
    return machine.new_game(["alice", "bob"], names={"alice": "Alice", "bob": "Bob"}, seed=7)


@pytest.fixture
def started_state(machine: TurnStateMachine, setup_state: GameState) -> GameState:
    """A dealt two-player game in alice's main phase."""
    result = machine.apply(setup_state, Action.start_game())
    assert result.success
    return result.new_state


@pytest.fixture
def session_manager() -> SessionManager:
    return SessionManager()


@pytest.fixture
def session(session_manager: SessionManager, theme: ThemeSpec):
    """A started session on the test theme."""
    session = session_manager.create_session(theme, ["alice", "bob"], seed=7)
    assert session.start_game().success
    return session
