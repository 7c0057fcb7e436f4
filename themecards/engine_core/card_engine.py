"""
Card Resolution Engine - Moves cards between zones and resolves plays.

play_card() checks every precondition before touching anything:
- the game is running and the phase permits plays
- it is the player's turn and the instance is in their hand
- the player can pay the cost (GameConfig.cost_resource)

Only then is the cost deducted, the card taken out of the hand and its
effects applied in authored order. Refusals come back as failed
ActionResults carrying a PlayerErrorCode.
"""

from __future__ import annotations
from typing import TYPE_CHECKING
import logging

from ..errors import ConfigurationError, PlayerErrorCode
from ..spec_schema import EffectType
from .action import ActionResult
from .events import EventType, GameEvent
from .state import PLAYABLE_PHASES, CardInstance, CardState, GamePhase, GameState, PlayerState

if TYPE_CHECKING:
    from ..spec_schema import CardDefinition, ThemeSpec
    from .effect_resolver import EffectResolver

logger = logging.getLogger(__name__)


def effective_cost(definition: CardDefinition, card: CardInstance) -> int:
    """Printed cost adjusted by the instance's "cost" modifiers, never below 0."""
    cost = definition.cost
    for modifier in card.modifiers:
        if modifier.modifier_type == "cost" and not isinstance(modifier.value, (bool, str)):
            cost += modifier.value
    return max(0, int(cost))


class CardResolutionEngine:
    """Card zones (deck, hand, play area, discard pile) and card plays."""

    def __init__(self, theme: ThemeSpec, resolver: EffectResolver):
        self.theme = theme
        self.resolver = resolver

    # =========================================================================
    # Decks and drawing
    # =========================================================================

    def build_deck(self, state: GameState, player: PlayerState) -> None:
        """Create fresh instances of the starting deck and shuffle them."""
        player.deck = []
        for definition_id in self.theme.deck_list():
            player.deck.append(CardInstance(
                instance_id=state.new_instance_id(definition_id),
                definition_id=definition_id,
            ))
        state.rng.shuffle(player.deck)

    def draw_cards(
        self,
        state: GameState,
        player_id: str,
        count: int,
        events: list[GameEvent] | None = None,
    ) -> list[CardInstance]:
        """
        Draw up to `count` cards.

        An empty deck is refilled by shuffling the discard pile. Cards that
        would take the hand past max_hand_size go straight to the discard pile.
        """
        player = state.get_player(player_id)
        if player is None:
            return []
        if events is None:
            events = []

        drawn = []
        for _ in range(count):
            if not player.deck:
                if not player.discard_pile:
                    break
                self._reshuffle(state, player)

            card = player.deck.pop(0)
            if len(player.hand) >= self.theme.config.max_hand_size:
                card.state = CardState.DISCARDED
                player.discard_pile.append(card)
                events.append(GameEvent(EventType.CARD_DISCARDED, {
                    "player_id": player_id,
                    "instance_id": card.instance_id,
                    "card_id": card.definition_id,
                    "reason": "hand_full",
                }))
                continue

            card.state = CardState.IN_HAND
            player.hand.append(card)
            drawn.append(card)
            events.append(GameEvent(EventType.CARD_DRAWN, {
                "player_id": player_id,
                "instance_id": card.instance_id,
                "card_id": card.definition_id,
            }))
        return drawn

    def _reshuffle(self, state: GameState, player: PlayerState) -> None:
        logger.debug("Reshuffling %d discarded cards into %s's deck", len(player.discard_pile), player.player_id)
        for card in player.discard_pile:
            card.state = CardState.IN_DECK
        player.deck = player.discard_pile
        player.discard_pile = []
        state.rng.shuffle(player.deck)

    # =========================================================================
    # Playing and discarding
    # =========================================================================

    def check_play(self, state: GameState, player_id: str, instance_id: str) -> ActionResult | None:
        """Return a failure if the play is not allowed, else None."""
        if state.is_over:
            return ActionResult.failure("Game is over", PlayerErrorCode.GAME_OVER)
        if state.phase == GamePhase.SETUP:
            return ActionResult.failure("Game has not started", PlayerErrorCode.GAME_NOT_STARTED)
        if state.phase not in PLAYABLE_PHASES:
            return ActionResult.failure(f"Cannot play cards during {state.phase.value}", PlayerErrorCode.WRONG_PHASE)

        player = state.get_player(player_id)
        if player is None:
            return ActionResult.failure(f"Unknown player '{player_id}'", PlayerErrorCode.UNKNOWN_PLAYER)
        if state.current_player.player_id != player_id:
            return ActionResult.failure(f"Not {player_id}'s turn", PlayerErrorCode.NOT_YOUR_TURN)

        card = player.find_in_hand(instance_id)
        if card is None:
            return ActionResult.failure(f"Card {instance_id} not in hand", PlayerErrorCode.CARD_NOT_IN_HAND)

        definition = self.definition_of(card)
        cost = self.effective_cost(card)
        cost_resource = self.theme.config.cost_resource
        available = player.resources.get(cost_resource, 0)
        if cost > available:
            return ActionResult.failure(
                f"{definition.name} costs {cost} {cost_resource}, have {available}",
                PlayerErrorCode.INSUFFICIENT_COST,
            )
        return None

    def play_card(
        self,
        state: GameState,
        player_id: str,
        instance_id: str,
        events: list[GameEvent] | None = None,
    ) -> ActionResult:
        """
        Play a card from hand.

        Mutates `state` only when every precondition holds. Events are
        appended to `events` in the order they happen.
        """
        refusal = self.check_play(state, player_id, instance_id)
        if refusal:
            return refusal

        player = state.get_player(player_id)
        card = player.find_in_hand(instance_id)
        definition = self.definition_of(card)
        cost = self.effective_cost(card)

        outcomes = []
        if cost:
            outcomes.append(self.resolver.change_resource(
                player, self.theme.config.cost_resource, -cost, EffectType.LOSE_RESOURCE,
            ))

        player.hand.remove(card)
        card.state = CardState.PLAYED
        player.play_area.append(card)

        if events is None:
            events = []
        events.append(GameEvent(EventType.CARD_PLAYED, {
            "player_id": player_id,
            "instance_id": instance_id,
            "card_id": definition.id,
            "card_name": definition.name,
            "cost": cost,
        }))

        outcomes.extend(self.resolver.apply_all(definition.effects, player_id, state))

        state.combo_state.played_this_turn.append(definition.id)

        logger.debug("%s played %s", player_id, definition.id)
        return ActionResult.success_with_state(state, events, outcomes)

    def discard_card(self, state: GameState, player_id: str, instance_id: str) -> ActionResult:
        if state.is_over:
            return ActionResult.failure("Game is over", PlayerErrorCode.GAME_OVER)
        player = state.get_player(player_id)
        if player is None:
            return ActionResult.failure(f"Unknown player '{player_id}'", PlayerErrorCode.UNKNOWN_PLAYER)
        card = player.find_in_hand(instance_id)
        if card is None:
            return ActionResult.failure(f"Card {instance_id} not in hand", PlayerErrorCode.CARD_NOT_IN_HAND)

        player.hand.remove(card)
        card.state = CardState.DISCARDED
        player.discard_pile.append(card)
        return ActionResult.success_with_state(state, [GameEvent(EventType.CARD_DISCARDED, {
            "player_id": player_id,
            "instance_id": instance_id,
            "card_id": card.definition_id,
            "reason": "discarded",
        })])

    def cleanup_turn(self, state: GameState, player: PlayerState) -> None:
        """End-of-turn upkeep: tick modifier durations, clear the play area."""
        for other in state.players:
            for card in other.hand + other.deck + other.discard_pile + other.play_area:
                self._tick_modifiers(card)

        for card in player.play_area:
            card.state = CardState.DISCARDED
            player.discard_pile.append(card)
        player.play_area = []

    @staticmethod
    def _tick_modifiers(card: CardInstance) -> None:
        kept = []
        for modifier in card.modifiers:
            if modifier.duration < 0:
                kept.append(modifier)
                continue
            modifier.duration -= 1
            if modifier.duration > 0:
                kept.append(modifier)
        card.modifiers = kept

    def definition_of(self, card: CardInstance) -> CardDefinition:
        definition = self.theme.get_card(card.definition_id)
        if definition is None:
            raise ConfigurationError(f"Card definition '{card.definition_id}' not in theme {self.theme.theme_id}")
        return definition

    def effective_cost(self, card: CardInstance) -> int:
        return effective_cost(self.definition_of(card), card)
