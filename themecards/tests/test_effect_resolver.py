"""
Tests for the effect resolver.

Tests:
- Clamping of stats and resources
- Target resolution
- Competitive effects (damage, transfer, steal)
- Conditions
- Errors for malformed effects and broken invariants
"""

import pytest

from ..engine_core.effect_resolver import EffectResolver
from ..errors import ConfigurationError, InvariantViolation
from ..spec_schema.effect_dsl import (
    Comparison,
    ConditionType,
    Effect,
    EffectCondition,
    EffectTarget,
    EffectType,
    damage_stat,
    draw_cards,
    gain_resource,
    lose_resource,
    modify_stat,
    steal_resource,
    transfer_stat,
)


@pytest.fixture
def resolver(theme):
    return EffectResolver(theme)


@pytest.fixture
def three_player_state(machine):
    return machine.new_game(["alice", "bob", "carol"], seed=3)


class TestClamping:
    """Out-of-range changes are clamped, never rejected."""

    def test_stat_clamped_at_max(self, resolver, setup_state):
        """95 + 30 lands on the declared max of 100."""
        alice = setup_state.get_player("alice")
        alice.stats["score"] = 95

        outcomes = resolver.apply(modify_stat("score", 30), "alice", setup_state)

        assert alice.stats["score"] == 100
        assert outcomes[0].before == 95
        assert outcomes[0].after == 100
        assert outcomes[0].delta == 5

    def test_stat_clamped_at_min(self, resolver, setup_state):
        """Stats never drop below their minimum."""
        resolver.apply(modify_stat("health", -500), "alice", setup_state)
        assert setup_state.get_player("alice").stats["health"] == 0

    def test_resource_floored_at_zero(self, resolver, setup_state):
        """Losing more than you have leaves zero."""
        resolver.apply(lose_resource("gold", 50), "alice", setup_state)
        assert setup_state.get_player("alice").resources["gold"] == 0

    def test_resource_capped_at_declared_max(self, resolver, setup_state):
        """Energy declares max=10."""
        resolver.apply(gain_resource("energy", 50), "alice", setup_state)
        assert setup_state.get_player("alice").resources["energy"] == 10

    def test_uncapped_resource_grows(self, resolver, setup_state):
        resolver.apply(gain_resource("gold", 1000), "alice", setup_state)
        assert setup_state.get_player("alice").resources["gold"] == 1002


class TestTargets:
    """Target resolution relative to the acting player."""

    def test_self_target(self, resolver, setup_state):
        resolver.apply(modify_stat("score", 5), "bob", setup_state)
        assert setup_state.get_player("bob").stats["score"] == 55
        assert setup_state.get_player("alice").stats["score"] == 50

    def test_opponent_defaults_to_first_opponent(self, resolver, three_player_state):
        """Without an explicit target, the first opponent in seat order is hit."""
        resolver.apply(damage_stat("health", 10), "alice", three_player_state)
        assert three_player_state.get_player("bob").stats["health"] == 40
        assert three_player_state.get_player("carol").stats["health"] == 50

    def test_explicit_opponent(self, resolver, three_player_state):
        resolver.apply(damage_stat("health", 10), "alice", three_player_state, target_player_id="carol")
        assert three_player_state.get_player("bob").stats["health"] == 50
        assert three_player_state.get_player("carol").stats["health"] == 40

    def test_all_opponents(self, resolver, three_player_state):
        effect = modify_stat("score", -10, EffectTarget.ALL_OPPONENTS)
        resolver.apply(effect, "alice", three_player_state)
        assert three_player_state.get_player("alice").stats["score"] == 50
        assert three_player_state.get_player("bob").stats["score"] == 40
        assert three_player_state.get_player("carol").stats["score"] == 40

    def test_all_players(self, resolver, three_player_state):
        outcomes = resolver.apply(modify_stat("score", 1, EffectTarget.ALL), "alice", three_player_state)
        assert len(outcomes) == 3
        assert all(p.stats["score"] == 51 for p in three_player_state.players)

    def test_strongest_opponent(self, resolver, three_player_state):
        """Ranked by the effect's own stat."""
        three_player_state.get_player("carol").stats["influence"] = 40
        effect = damage_stat("influence", 5, EffectTarget.STRONGEST_OPPONENT)
        resolver.apply(effect, "alice", three_player_state)
        assert three_player_state.get_player("carol").stats["influence"] == 35
        assert three_player_state.get_player("bob").stats["influence"] == 10

    def test_weakest_opponent(self, resolver, three_player_state):
        three_player_state.get_player("bob").stats["health"] = 20
        effect = modify_stat("health", 10, EffectTarget.WEAKEST_OPPONENT)
        resolver.apply(effect, "alice", three_player_state)
        assert three_player_state.get_player("bob").stats["health"] == 30

    def test_random_player_is_reproducible(self, theme, machine):
        """The same seed picks the same player."""
        picks = []
        for _ in range(2):
            state = machine.new_game(["alice", "bob", "carol"], seed=99)
            resolver = EffectResolver(theme)
            outcomes = resolver.apply(modify_stat("score", 1, EffectTarget.RANDOM_PLAYER), "alice", state)
            picks.append(outcomes[0].player_id)
        assert picks[0] == picks[1]

    def test_eliminated_players_are_skipped(self, resolver, three_player_state):
        three_player_state.get_player("bob").eliminated = True
        resolver.apply(damage_stat("health", 10), "alice", three_player_state)
        assert three_player_state.get_player("bob").stats["health"] == 50
        assert three_player_state.get_player("carol").stats["health"] == 40


class TestCompetitiveEffects:
    """Damage, transfer and steal."""

    def test_damage_uses_magnitude(self, resolver, setup_state):
        """A negative damage value still lowers the stat."""
        resolver.apply(damage_stat("health", -10), "alice", setup_state)
        assert setup_state.get_player("bob").stats["health"] == 40

    def test_transfer_to_target(self, resolver, setup_state):
        """Blame shifting: the actor loses, the target gains."""
        resolver.apply(transfer_stat("score", 10, direction="to_target"), "alice", setup_state)
        assert setup_state.get_player("alice").stats["score"] == 40
        assert setup_state.get_player("bob").stats["score"] == 60

    def test_transfer_from_target(self, resolver, setup_state):
        """Credit stealing: the target loses, the actor gains."""
        resolver.apply(transfer_stat("score", 10, direction="from_target"), "alice", setup_state)
        assert setup_state.get_player("alice").stats["score"] == 60
        assert setup_state.get_player("bob").stats["score"] == 40

    def test_steal_limited_to_holdings(self, resolver, setup_state):
        """Only what the target holds can be stolen."""
        outcomes = resolver.apply(steal_resource("gold", 5), "alice", setup_state)
        assert setup_state.get_player("bob").resources["gold"] == 0
        assert setup_state.get_player("alice").resources["gold"] == 4
        assert [o.delta for o in outcomes] == [-2, 2]

    def test_solo_competitive_effect_is_noop(self, theme, machine):
        """With no opponents, opponent-targeted effects touch nobody."""
        state = machine.new_game(["alice"], seed=1)
        resolver = EffectResolver(theme)
        assert resolver.apply(steal_resource("gold", 1), "alice", state) == []
        assert resolver.apply(transfer_stat("score", 5), "alice", state) == []


class TestConditions:
    """Conditional effects are skipped when the condition is false."""

    def _gated(self, threshold):
        return Effect(
            effect_type=EffectType.MODIFY_STAT,
            value=10,
            metadata={"stat": "score"},
            condition=EffectCondition(ConditionType.STAT_CHECK, Comparison.LT, threshold, key="health"),
        )

    def test_condition_true_applies(self, resolver, setup_state):
        resolver.apply(self._gated(60), "alice", setup_state)
        assert setup_state.get_player("alice").stats["score"] == 60

    def test_condition_false_skips(self, resolver, setup_state):
        outcomes = resolver.apply(self._gated(30), "alice", setup_state)
        assert outcomes == []
        assert setup_state.get_player("alice").stats["score"] == 50

    def test_turn_count_condition(self, resolver, setup_state):
        effect = Effect(
            effect_type=EffectType.GAIN_RESOURCE,
            value=1,
            metadata={"resource": "gold"},
            condition=EffectCondition(ConditionType.TURN_COUNT, Comparison.GE, 3),
        )
        setup_state.turn_number = 2
        assert resolver.apply(effect, "alice", setup_state) == []
        setup_state.turn_number = 3
        assert len(resolver.apply(effect, "alice", setup_state)) == 1

    def test_effects_apply_in_order(self, resolver, setup_state):
        """A later effect sees what an earlier one did."""
        effects = [
            modify_stat("health", -45),
            Effect(
                effect_type=EffectType.MODIFY_STAT,
                value=20,
                metadata={"stat": "score"},
                condition=EffectCondition(ConditionType.STAT_CHECK, Comparison.LE, 5, key="health"),
            ),
        ]
        resolver.apply_all(effects, "alice", setup_state)
        assert setup_state.get_player("alice").stats["score"] == 70


class TestErrors:
    """Theme defects and invariant breaks are raised."""

    def test_unknown_effect_type_raises(self, resolver, setup_state):
        effect = Effect(effect_type="teleport", value=1)
        with pytest.raises(ConfigurationError):
            resolver.apply(effect, "alice", setup_state)

    def test_unknown_acting_player_raises(self, resolver, setup_state):
        with pytest.raises(ConfigurationError):
            resolver.apply(modify_stat("score", 1), "nobody", setup_state)

    def test_invariant_violation_detected(self, resolver, setup_state):
        setup_state.get_player("alice").stats["score"] = 150
        with pytest.raises(InvariantViolation):
            resolver.check_invariants(setup_state)

    def test_custom_handler_overrides_builtin(self, resolver, setup_state):
        calls = []
        resolver.register_handler(EffectType.DRAW_CARDS, lambda effect, actor, state: calls.append(actor) or [])
        resolver.apply(draw_cards(2), "alice", setup_state)
        assert calls == ["alice"]
