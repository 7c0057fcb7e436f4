"""
Turn/Phase State Machine - The single point of state mutation.

Phases: setup -> draw -> main -> action -> resolve -> end -> draw ... and,
from anywhere once a game-ending condition holds, game_over (terminal).

Every action runs against a clone of the session state. The clone is
returned in the ActionResult only when the action succeeds; a refused
action, or a ConfigurationError/InvariantViolation raised midway, leaves
the caller's state untouched.

The machine owns the turn-scoped combo memory and clears it on the
end -> draw transition, before turn_started is emitted.
"""

from __future__ import annotations
from dataclasses import asdict
from typing import TYPE_CHECKING
import logging
import random
import uuid

from ..errors import PlayerErrorCode
from .action import Action, ActionResult, ActionType
from .arbiter import SharedResourceArbiter
from .card_engine import CardResolutionEngine
from .combo_detector import ComboDetector
from .effect_resolver import EffectOutcome, EffectResolver
from .events import EventType, GameEvent
from .state import GameOutcome, GamePhase, GameState, PlayerState
from .status_effects import StatusEffectSystem
from . import win_conditions

if TYPE_CHECKING:
    from ..spec_schema import ThemeSpec

logger = logging.getLogger(__name__)


_NEXT_PHASE = {
    GamePhase.DRAW: GamePhase.MAIN,
    GamePhase.MAIN: GamePhase.ACTION,
    GamePhase.ACTION: GamePhase.RESOLVE,
    GamePhase.RESOLVE: GamePhase.END,
}


class TurnStateMachine:
    """
    Drives one theme's rules.

    Stateless between actions: all session data is in the GameState passed
    to apply(). The components are wired so that claim_shared effects reach
    the arbiter, draw_cards effects reach the card engine and status effects
    reach the status system.
    """

    def __init__(self, theme: ThemeSpec):
        self.theme = theme
        self.resolver = EffectResolver(
            theme,
            claim_hook=self._claim_hook,
            draw_hook=self._draw_hook,
            status_hook=self._status_hook,
        )
        self.cards = CardResolutionEngine(theme, self.resolver)
        self.arbiter = SharedResourceArbiter(theme, self.resolver)
        self.combos = ComboDetector(theme)
        self.statuses = StatusEffectSystem(theme, self.resolver)
        self._events: list[GameEvent] = []
        self._final_events: list[GameEvent] = []

    # =========================================================================
    # Session creation
    # =========================================================================

    def new_game(
        self,
        player_ids: list[str],
        names: dict[str, str] | None = None,
        game_id: str | None = None,
        seed: int | None = None,
    ) -> GameState:
        """Build a session in SETUP: players seeded, decks shuffled, pools full."""
        if seed is None:
            seed = random.randrange(2 ** 32)
        names = names or {}
        config = self.theme.config

        state = GameState(
            game_id=game_id or uuid.uuid4().hex,
            theme_id=self.theme.theme_id,
            random_seed=seed,
            rng=random.Random(seed),
        )
        for player_id in player_ids:
            player = PlayerState(player_id=player_id, name=names.get(player_id, player_id))
            for stat in self.theme.stats:
                initial = config.initial_stats.get(stat.id, stat.min)
                player.stats[stat.id] = min(max(initial, stat.min), stat.max)
            for resource in self.theme.resources:
                player.resources[resource.id] = max(config.initial_resources.get(resource.id, 0), 0)
            self.cards.build_deck(state, player)
            state.players.append(player)

        self.arbiter.init_pools(state)
        return state

    # =========================================================================
    # Action dispatch
    # =========================================================================

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to a copy of `state`.

        Returns ActionResult with the new state, or a PlayerErrorCode.
        """
        if state.is_over and action.action_type != ActionType.START_GAME:
            return ActionResult.failure("Game is over", PlayerErrorCode.GAME_OVER)

        handler = self._get_handler(action.action_type)
        working = state.clone()
        self._events = []
        self._final_events = []

        result = handler(working, action)
        if not result.success:
            return result

        working.action_history.append(action)
        result.new_state = working
        return result

    def _get_handler(self, action_type: ActionType):
        handlers = {
            ActionType.START_GAME: self._handle_start_game,
            ActionType.PLAY_CARD: self._handle_play_card,
            ActionType.DISCARD_CARD: self._handle_discard_card,
            ActionType.CLAIM_SHARED: self._handle_claim,
            ActionType.CONTEST_SHARED: self._handle_contest,
            ActionType.ADVANCE_PHASE: self._handle_advance_phase,
            ActionType.END_TURN: self._handle_end_turn,
        }
        return handlers[action_type]

    # =========================================================================
    # Handlers
    # =========================================================================

    def _handle_start_game(self, state: GameState, action: Action) -> ActionResult:
        if state.phase != GamePhase.SETUP:
            return ActionResult.failure("Game already started", PlayerErrorCode.WRONG_PHASE)

        config = self.theme.config
        if state.num_players < config.min_players:
            return ActionResult.failure(
                f"Need at least {config.min_players} players", PlayerErrorCode.NOT_ENOUGH_PLAYERS,
            )
        if state.num_players > config.max_players:
            return ActionResult.failure(
                f"At most {config.max_players} players", PlayerErrorCode.TOO_MANY_PLAYERS,
            )

        for player in state.players:
            self.cards.draw_cards(state, player.player_id, config.initial_hand_size, self._events)

        state.turn_number = 1
        state.current_player_idx = 0
        self._events.append(GameEvent(EventType.GAME_STARTED, {
            "game_id": state.game_id,
            "theme_id": state.theme_id,
            "players": [p.player_id for p in state.players],
            "seed": state.random_seed,
        }))
        logger.info("Game %s started: theme=%s players=%d", state.game_id, state.theme_id, state.num_players)

        outcomes = self._begin_turn(state, draw=False)
        self._check_game_over(state)
        return self._success(state, outcomes)

    def _handle_play_card(self, state: GameState, action: Action) -> ActionResult:
        payload = action.payload
        result = self.cards.play_card(state, payload.player_id, payload.instance_id, self._events)
        if not result.success:
            return result

        outcomes = list(result.effects_resolved)
        outcomes.extend(self._resolve_combos(state, payload.player_id))
        self._update_hint(state, payload.player_id)
        self._check_game_over(state)
        return self._success(state, outcomes)

    def _handle_discard_card(self, state: GameState, action: Action) -> ActionResult:
        if state.phase == GamePhase.SETUP:
            return ActionResult.failure("Game has not started", PlayerErrorCode.GAME_NOT_STARTED)
        payload = action.payload
        return self.cards.discard_card(state, payload.player_id, payload.instance_id)

    def _handle_claim(self, state: GameState, action: Action) -> ActionResult:
        if state.phase == GamePhase.SETUP:
            return ActionResult.failure("Game has not started", PlayerErrorCode.GAME_NOT_STARTED)
        claim = self.arbiter.claim(state, action.payload.pool_id, action.payload.player_id)
        if not claim.claimed:
            return ActionResult.failure(claim.error, claim.error_code)

        self._events.extend(claim.events)
        self._check_game_over(state)
        result = self._success(state, claim.outcomes)
        result.winner_id = claim.player_id
        return result

    def _handle_contest(self, state: GameState, action: Action) -> ActionResult:
        if state.phase == GamePhase.SETUP:
            return ActionResult.failure("Game has not started", PlayerErrorCode.GAME_NOT_STARTED)
        claim = self.arbiter.contest(state, action.payload.pool_id, action.payload.player_ids)
        if not claim.claimed:
            return ActionResult.failure(claim.error, claim.error_code)

        self._events.extend(claim.events)
        self._check_game_over(state)
        result = self._success(state, claim.outcomes)
        result.winner_id = claim.player_id
        return result

    def _handle_advance_phase(self, state: GameState, action: Action) -> ActionResult:
        if state.phase == GamePhase.SETUP:
            return ActionResult.failure("Game has not started", PlayerErrorCode.GAME_NOT_STARTED)
        next_phase = _NEXT_PHASE.get(state.phase)
        if next_phase == GamePhase.END:
            return self._handle_end_turn(state, action)
        self._set_phase(state, next_phase)
        return self._success(state, [])

    def _handle_end_turn(self, state: GameState, action: Action) -> ActionResult:
        if state.phase == GamePhase.SETUP:
            return ActionResult.failure("Game has not started", PlayerErrorCode.GAME_NOT_STARTED)

        config = self.theme.config
        ending = state.current_player
        outcomes: list[EffectOutcome] = []

        # END: upkeep
        self._set_phase(state, GamePhase.END)
        self.cards.cleanup_turn(state, ending)
        self._events.extend(self.arbiter.tick_renewals(state))
        for player in state.active_players():
            for stat_id, delta in config.per_turn_stat_changes.items():
                outcomes.append(self.resolver.change_stat(player, stat_id, delta))
            for resource_id, delta in config.per_turn_resource_changes.items():
                outcomes.append(self.resolver.change_resource(player, resource_id, delta))
        if not ending.eliminated:
            outcomes.extend(self.statuses.turn_end(state, ending.player_id, self._events))
        self.resolver.check_invariants(state)

        self._events.append(GameEvent(EventType.TURN_ENDED, {
            "player_id": ending.player_id,
            "turn": state.turn_number,
        }))
        if self._check_game_over(state):
            return self._success(state, outcomes)

        next_idx, next_turn = self._next_seat(state)
        limit = win_conditions.turn_limit_reached(self.theme, state, next_turn)
        if limit:
            self._end_game(state, limit)
            return self._success(state, outcomes)

        state.current_player_idx = next_idx
        state.turn_number = next_turn
        self.combos.reset_hints(state.combo_state)

        outcomes.extend(self._begin_turn(state, draw=True))
        self._check_game_over(state)
        return self._success(state, outcomes)

    # =========================================================================
    # Turn helpers
    # =========================================================================

    def _begin_turn(self, state: GameState, draw: bool) -> list[EffectOutcome]:
        """DRAW phase (draw, refill), then turn_started and MAIN."""
        config = self.theme.config
        player = state.current_player
        outcomes = []

        self._set_phase(state, GamePhase.DRAW)
        if draw:
            self.cards.draw_cards(state, player.player_id, config.draw_per_turn, self._events)
        for resource_id, amount in config.per_turn_resource_refill.items():
            current = player.resources.get(resource_id, 0)
            outcomes.append(self.resolver.change_resource(player, resource_id, amount - current))
        outcomes.extend(self.statuses.turn_start(state, player.player_id))

        self._events.append(GameEvent(EventType.TURN_STARTED, {
            "player_id": player.player_id,
            "turn": state.turn_number,
        }))
        self._set_phase(state, GamePhase.MAIN)
        return outcomes

    def _next_seat(self, state: GameState) -> tuple[int, int]:
        """Next non-eliminated seat; the turn number grows on wrap-around."""
        idx = state.current_player_idx
        turn = state.turn_number
        for _ in range(state.num_players):
            idx = (idx + 1) % state.num_players
            if idx == 0:
                turn += 1
            if not state.players[idx].eliminated:
                break
        return idx, turn

    def _set_phase(self, state: GameState, phase: GamePhase) -> None:
        if state.phase == phase:
            return
        previous = state.phase
        state.phase = phase
        self._events.append(GameEvent(EventType.PHASE_CHANGED, {
            "from": previous.value,
            "to": phase.value,
            "turn": state.turn_number,
        }))

    def _resolve_combos(self, state: GameState, player_id: str) -> list[EffectOutcome]:
        """Apply rewards of combos completed by this play, once per turn each."""
        combo_state = state.combo_state
        cooldowns = state.combo_cooldowns.setdefault(player_id, {})
        outcomes = []
        for combo in self.combos.detect_completed(
            combo_state.played_this_turn,
            already_triggered=combo_state.triggered_this_turn,
            cooldowns=cooldowns,
            turn=state.turn_number,
        ):
            outcomes.extend(self.resolver.apply_all(combo.effects, player_id, state))
            combo_state.triggered_this_turn.append(combo.id)
            cooldowns[combo.id] = state.turn_number
            self._events.append(GameEvent(EventType.COMBO_TRIGGERED, {
                "player_id": player_id,
                "combo_id": combo.id,
                "combo_name": combo.name,
                "reward": combo.reward,
            }))
            logger.info("%s triggered combo %s", player_id, combo.id)
        return outcomes

    def hint_for(self, state: GameState, player_id: str):
        player = state.get_player(player_id)
        if player is None:
            return None
        return self.combos.check_combo_opportunity(
            player.hand_definition_ids(),
            state.combo_state.played_this_turn,
            exclude=state.combo_state.triggered_this_turn,
            cooldowns=state.combo_cooldowns.get(player_id, {}),
            turn=state.turn_number,
        )

    def _update_hint(self, state: GameState, player_id: str) -> None:
        hint = self.hint_for(state, player_id)
        state.combo_state.hint = hint
        if hint:
            self._events.append(GameEvent(EventType.COMBO_HINT, {"player_id": player_id, **asdict(hint)}))

    # =========================================================================
    # Game over
    # =========================================================================

    def _check_game_over(self, state: GameState) -> bool:
        if state.is_over:
            return True
        outcome = win_conditions.evaluate(self.theme, state)
        if outcome:
            self._end_game(state, outcome)
            return True
        return False

    def _end_game(self, state: GameState, outcome: GameOutcome) -> None:
        """Enter GAME_OVER. Its events are published after everything else."""
        state.outcome = outcome
        self._final_events.append(GameEvent(EventType.PHASE_CHANGED, {
            "from": state.phase.value,
            "to": GamePhase.GAME_OVER.value,
            "turn": state.turn_number,
        }))
        state.phase = GamePhase.GAME_OVER
        self._final_events.append(GameEvent(EventType.GAME_OVER, {
            "reason": outcome.reason.value,
            "player_id": outcome.player_id,
            "outcome": outcome.outcome,
            "turn": outcome.turn,
            "description": outcome.description,
        }))
        logger.info("Game %s over: %s (%s)", state.game_id, outcome.reason.value, outcome.description)

    # =========================================================================
    # Events
    # =========================================================================

    def _claim_hook(self, state: GameState, pool_id: str, player_id: str) -> list[EffectOutcome]:
        claim = self.arbiter.claim(state, pool_id, player_id)
        self._events.extend(claim.events)
        return claim.outcomes

    def _draw_hook(self, state: GameState, player_id: str, count: int) -> list:
        return self.cards.draw_cards(state, player_id, count, self._events)

    def _status_hook(self, state: GameState, player_id: str, status_id: str, remove: bool) -> list[EffectOutcome]:
        if remove:
            return self.statuses.remove(state, player_id, status_id, self._events)
        return self.statuses.apply(state, player_id, status_id, self._events)

    def _success(self, state: GameState, outcomes: list[EffectOutcome]) -> ActionResult:
        events = self._events + self._outcome_events(outcomes) + self._final_events
        return ActionResult.success_with_state(state, events, outcomes)

    @staticmethod
    def _outcome_events(outcomes: list[EffectOutcome]) -> list[GameEvent]:
        events = []
        for outcome in outcomes:
            if outcome.key == "hand" or outcome.is_status or outcome.delta == 0:
                continue
            if outcome.is_stat:
                event_type, key_name = EventType.STAT_CHANGED, "stat"
            else:
                event_type, key_name = EventType.RESOURCE_CHANGED, "resource"
            events.append(GameEvent(event_type, {
                "player_id": outcome.player_id,
                key_name: outcome.key,
                "before": outcome.before,
                "after": outcome.after,
                "delta": outcome.delta,
                "source": outcome.effect_type.value,
            }))
        return events


def apply_action(theme: ThemeSpec, state: GameState, action: Action) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a TurnStateMachine and applies the action.
    """
    return TurnStateMachine(theme).apply(state, action)
