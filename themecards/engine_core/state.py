"""
Game State - The per-session state container.

Design principles:
- One container per session, owned by the session, passed explicitly into
  every engine call (no ambient/global state)
- Cloneable: actions run against a working copy that is committed only on
  success, which keeps every action all-or-nothing
- Theme-agnostic: stats and resources are plain mappings keyed by the ids
  the theme declares
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
from copy import deepcopy
from enum import Enum
import random


class GamePhase(Enum):
    """Turn phases. GAME_OVER is terminal."""
    SETUP = "setup"
    DRAW = "draw"
    MAIN = "main"
    ACTION = "action"
    RESOLVE = "resolve"
    END = "end"
    GAME_OVER = "game_over"


PLAYABLE_PHASES = frozenset({GamePhase.MAIN, GamePhase.ACTION})


class CardState(Enum):
    IN_DECK = "in_deck"
    IN_HAND = "in_hand"
    PLAYED = "played"
    DISCARDED = "discarded"


class EndReason(Enum):
    """Why the game ended. The host decides what counts as a victory."""
    STAT_THRESHOLD = "stat_threshold"
    RESOURCE_THRESHOLD = "resource_threshold"
    TURN_LIMIT = "turn_limit"


@dataclass
class CardModifier:
    """A temporary adjustment attached to a card instance."""
    id: str
    modifier_type: str
    value: float | str | bool
    duration: int = -1  # turns remaining, -1 for permanent
    source: str | None = None


@dataclass
class CardInstance:
    """
    A card copy in play.

    Note: This is a runtime instance, not the definition.
    The definition lives in ThemeSpec.cards.
    """
    instance_id: str
    definition_id: str
    state: CardState = CardState.IN_DECK
    modifiers: list[CardModifier] = field(default_factory=list)

    def __hash__(self):
        return hash(self.instance_id)

    def __eq__(self, other):
        if not isinstance(other, CardInstance):
            return False
        return self.instance_id == other.instance_id


@dataclass
class PlayerStatus:
    """An active theme status on a player."""
    status_id: str
    duration: int  # turn ends left, 0 or less for permanent
    stacks: int = 1


@dataclass
class PlayerState:
    """
    State for a single player.

    Stats and resources are only ever mutated through the EffectResolver.
    """
    player_id: str
    name: str
    stats: dict[str, float] = field(default_factory=dict)
    resources: dict[str, float] = field(default_factory=dict)
    hand: list[CardInstance] = field(default_factory=list)
    deck: list[CardInstance] = field(default_factory=list)
    discard_pile: list[CardInstance] = field(default_factory=list)
    play_area: list[CardInstance] = field(default_factory=list)
    statuses: list[PlayerStatus] = field(default_factory=list)
    eliminated: bool = False

    def find_in_hand(self, instance_id: str) -> CardInstance | None:
        for card in self.hand:
            if card.instance_id == instance_id:
                return card
        return None

    def hand_definition_ids(self) -> list[str]:
        return [card.definition_id for card in self.hand]

    def get_status(self, status_id: str) -> PlayerStatus | None:
        for status in self.statuses:
            if status.status_id == status_id:
                return status
        return None


@dataclass
class SharedResourcePoolState:
    """Live state of one shared pool. Invariant: 0 <= remaining <= total."""
    pool_id: str
    remaining: int
    turns_until_renewal: int | None = None  # None for non-renewable pools
    claimed_by: dict[str, int] = field(default_factory=dict)


@dataclass
class ComboHint:
    """
    The single combo surfaced to the UI.

    `completed` is True when the pattern is already matched by this turn's
    plays; otherwise `still_needed` lists what the player can still play
    from hand to finish it.
    """
    combo_id: str
    combo_name: str
    reward: str
    progress: float
    completed: bool
    already_played: list[str] = field(default_factory=list)
    still_needed: list[str] = field(default_factory=list)
    still_needed_count: int = 0


@dataclass
class ComboHintState:
    """Turn-scoped combo memory, cleared by the state machine on every new turn."""
    played_this_turn: list[str] = field(default_factory=list)
    triggered_this_turn: list[str] = field(default_factory=list)
    hint: ComboHint | None = None

    def reset(self) -> None:
        self.played_this_turn.clear()
        self.triggered_this_turn.clear()
        self.hint = None


@dataclass
class GameOutcome:
    """Which condition ended the game, and for whom."""
    reason: EndReason
    turn: int
    player_id: str | None = None
    outcome: str | None = None  # "victory" / "defeat" for threshold endings
    description: str = ""


@dataclass
class GameState:
    """
    Complete session state at a point in time.

    This is the canonical state that the engine operates on.
    All state changes go through the TurnStateMachine.
    """
    game_id: str
    theme_id: str

    phase: GamePhase = GamePhase.SETUP
    turn_number: int = 0
    current_player_idx: int = 0

    players: list[PlayerState] = field(default_factory=list)
    pools: dict[str, SharedResourcePoolState] = field(default_factory=dict)

    combo_state: ComboHintState = field(default_factory=ComboHintState)
    # player_id -> combo_id -> turn last triggered
    combo_cooldowns: dict[str, dict[str, int]] = field(default_factory=dict)

    outcome: GameOutcome | None = None

    # History (for replay, logging)
    action_history: list[Any] = field(default_factory=list)

    next_instance_id: int = 1
    random_seed: int | None = None
    rng: random.Random = field(default_factory=random.Random)

    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def current_player(self) -> PlayerState:
        return self.players[self.current_player_idx]

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def is_over(self) -> bool:
        return self.phase == GamePhase.GAME_OVER

    def get_player(self, player_id: str) -> PlayerState | None:
        """Get player by ID."""
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def active_players(self) -> list[PlayerState]:
        return [p for p in self.players if not p.eliminated]

    def opponents_of(self, player_id: str) -> list[PlayerState]:
        return [p for p in self.active_players() if p.player_id != player_id]

    def new_instance_id(self, definition_id: str) -> str:
        instance_id = f"{definition_id}#{self.next_instance_id}"
        self.next_instance_id += 1
        return instance_id

    def clone(self) -> GameState:
        """Deep copy the state, RNG included."""
        return deepcopy(self)
