"""
Combo Detector - Matches this turn's plays against the theme's combos.

Trigger kinds:
- sequence: the required cards are the tail of this turn's plays, in order
- combination: every required card was played this turn, any order
- tag_sequence: the required tags appear in order among the played tags, and
  at least `count` played tags (default: one per required tag) are among them
- tag_count: at least `count` played cards carry the tag

The detector is advisory: check_combo_opportunity() surfaces at most one
hint, and detect_completed() tells the state machine which rewards are due.
All memory is turn-scoped and lives in GameState.combo_state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..spec_schema import ComboDefinition, ComboTriggerType
from .state import ComboHint, ComboHintState

if TYPE_CHECKING:
    from ..spec_schema import ThemeSpec


@dataclass
class ComboProgress:
    combo: ComboDefinition
    progress: float
    completed: bool
    can_complete: bool
    already_played: list[str] = field(default_factory=list)
    still_needed: list[str] = field(default_factory=list)
    still_needed_count: int = 0


class ComboDetector:
    def __init__(self, theme: ThemeSpec):
        self.theme = theme

    def tags_of(self, card_ids: list[str]) -> list[str]:
        tags: list[str] = []
        for card_id in card_ids:
            definition = self.theme.get_card(card_id)
            if definition:
                tags.extend(definition.tags)
        return tags

    # =========================================================================
    # Completion
    # =========================================================================

    def is_triggered(self, combo: ComboDefinition, played: list[str]) -> bool:
        trigger = combo.trigger
        if trigger.trigger_type == ComboTriggerType.SEQUENCE:
            required = list(trigger.cards)
            return len(played) >= len(required) and played[-len(required):] == required
        if trigger.trigger_type == ComboTriggerType.COMBINATION:
            return set(trigger.cards) <= set(played)
        if trigger.trigger_type == ComboTriggerType.TAG_SEQUENCE:
            played_tags = self.tags_of(played)
            return (
                _subsequence_length(list(trigger.tags), played_tags) == len(trigger.tags)
                and _count_among(played_tags, trigger.tags) >= _tag_sequence_total(trigger)
            )
        return self.tags_of(played).count(trigger.tags[0]) >= (trigger.count or 1)

    @staticmethod
    def on_cooldown(combo: ComboDefinition, last_triggered: int | None, turn: int) -> bool:
        return last_triggered is not None and combo.cooldown > 0 and turn - last_triggered < combo.cooldown

    def detect_completed(
        self,
        cards_played_this_turn: list[str],
        combos: tuple[ComboDefinition, ...] | None = None,
        already_triggered: list[str] | tuple[str, ...] = (),
        cooldowns: dict[str, int] | None = None,
        turn: int = 0,
    ) -> list[ComboDefinition]:
        """Combos satisfied by this turn's plays that have not fired yet this turn."""
        combos = self.theme.combos if combos is None else combos
        cooldowns = cooldowns or {}
        return [
            combo for combo in combos
            if combo.id not in already_triggered
            and not self.on_cooldown(combo, cooldowns.get(combo.id), turn)
            and self.is_triggered(combo, cards_played_this_turn)
        ]

    # =========================================================================
    # Hints
    # =========================================================================

    def analyze(
        self,
        combo: ComboDefinition,
        played: list[str],
        hand: list[str],
    ) -> ComboProgress | None:
        """Progress of one combo, or None when it has not started and cannot be finished from hand."""
        trigger = combo.trigger
        completed = self.is_triggered(combo, played)

        if trigger.trigger_type in (ComboTriggerType.SEQUENCE, ComboTriggerType.COMBINATION):
            required = list(trigger.cards)
            if trigger.trigger_type == ComboTriggerType.SEQUENCE:
                already = required[:len(required) if completed else _tail_overlap(required, played)]
                needed = required[len(already):]
            else:
                already = [c for c in required if c in played]
                needed = [c for c in required if c not in played]
            can_complete = completed or _covers(hand, needed)
            if not already and not can_complete:
                return None
            return ComboProgress(
                combo=combo,
                progress=1.0 if completed else len(already) / len(required),
                completed=completed,
                can_complete=can_complete,
                already_played=already,
                still_needed=[] if completed else needed,
                still_needed_count=0 if completed else len(needed),
            )

        played_tags = self.tags_of(played)
        hand_tags = self.tags_of(hand)
        if trigger.trigger_type == ComboTriggerType.TAG_SEQUENCE:
            required = list(trigger.tags)
            total = _tag_sequence_total(trigger)
            relevant = _count_among(played_tags, required)
            needed = required[_subsequence_length(required, played_tags):]
            # plays still owed to a count above len(tags), any of the tags will do
            extra = max(0, total - relevant - len(needed))
            needed_count = len(needed) + extra
            matched = total - needed_count
            can_complete = completed or (
                _covers(hand_tags, needed)
                and relevant + _count_among(hand_tags, required) >= total
            )
        else:
            tag = trigger.tags[0]
            total = trigger.count or 1
            matched = min(played_tags.count(tag), total)
            needed = [tag] * (total - matched)
            needed_count = len(needed)
            can_complete = completed or matched + hand_tags.count(tag) >= total

        if matched == 0 and not can_complete:
            return None
        return ComboProgress(
            combo=combo,
            progress=1.0 if completed else matched / total,
            completed=completed,
            can_complete=can_complete,
            still_needed=[] if completed else needed,
            still_needed_count=0 if completed else needed_count,
        )

    def check_combo_opportunity(
        self,
        remaining_hand: list[str],
        cards_played_this_turn: list[str],
        combos: tuple[ComboDefinition, ...] | None = None,
        exclude: list[str] | tuple[str, ...] = (),
        cooldowns: dict[str, int] | None = None,
        turn: int = 0,
    ) -> ComboHint | None:
        """
        The single combo worth surfacing.

        Only combos already completed this turn, or completable with cards
        still in hand, qualify. Priority: rarity, then reward size, then
        declaration order.
        """
        combos = self.theme.combos if combos is None else combos
        cooldowns = cooldowns or {}

        candidates = []
        for index, combo in enumerate(combos):
            if combo.id in exclude or self.on_cooldown(combo, cooldowns.get(combo.id), turn):
                continue
            progress = self.analyze(combo, cards_played_this_turn, remaining_hand)
            if progress and progress.can_complete:
                candidates.append((-combo.rarity.rank, -combo.reward_value, index, progress))

        if not candidates:
            return None
        best = min(candidates, key=lambda item: item[:3])[3]
        return ComboHint(
            combo_id=best.combo.id,
            combo_name=best.combo.name,
            reward=best.combo.reward,
            progress=best.progress,
            completed=best.completed,
            already_played=best.already_played,
            still_needed=best.still_needed,
            still_needed_count=best.still_needed_count,
        )

    @staticmethod
    def reset_hints(combo_state: ComboHintState) -> None:
        """Forget the surfaced hint and this turn's partial progress."""
        combo_state.reset()


def _subsequence_length(required: list[str], seen: list[str]) -> int:
    """How many leading items of `required` appear in order within `seen`."""
    index = 0
    for item in seen:
        if index < len(required) and item == required[index]:
            index += 1
    return index


def _covers(available: list[str], needed: list[str]) -> bool:
    pool = list(available)
    for item in needed:
        if item not in pool:
            return False
        pool.remove(item)
    return True


def _tail_overlap(required: list[str], played: list[str]) -> int:
    """Longest tail of `played` that is a head of `required`."""
    for length in range(min(len(required), len(played)), 0, -1):
        if played[-length:] == required[:length]:
            return length
    return 0


def _count_among(tags: list[str], wanted) -> int:
    wanted = set(wanted)
    return sum(1 for tag in tags if tag in wanted)


def _tag_sequence_total(trigger) -> int:
    return max(trigger.count or 0, len(trigger.tags))
