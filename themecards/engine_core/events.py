"""
Event Bus - Publish/subscribe channel between the engine and presentation.

UI, sound and haptics react to events without being part of the core.

Contract:
- subscribe() returns an unsubscribe callable; unsubscribe() also works
- "*" subscribes to every event type
- Event types may be given as EventType members or their string values;
  unknown names raise ValueError
- Higher priority handlers run first; equal priorities run in subscription order
- Every event published during a session reaches every subscriber that was
  registered when it was published (at-least-once within the session)
- A failing handler is logged and never aborts delivery to the others
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import logging
import time

logger = logging.getLogger(__name__)


class EventType(Enum):
    GAME_STARTED = "game_started"
    TURN_STARTED = "turn_started"
    TURN_ENDED = "turn_ended"
    PHASE_CHANGED = "phase_changed"
    CARD_DRAWN = "card_drawn"
    CARD_PLAYED = "card_played"
    CARD_DISCARDED = "card_discarded"
    STAT_CHANGED = "stat_changed"
    RESOURCE_CHANGED = "resource_changed"
    RESOURCE_CLAIMED = "resource_claimed"
    SHARED_RESOURCE_DEPLETED = "shared_resource_depleted"
    SHARED_RESOURCE_RENEWED = "shared_resource_renewed"
    COMBO_TRIGGERED = "combo_triggered"
    COMBO_HINT = "combo_hint"
    STATUS_APPLIED = "status_applied"
    STATUS_REMOVED = "status_removed"
    STATUS_TICK = "status_tick"
    GAME_OVER = "game_over"


WILDCARD = "*"


@dataclass
class GameEvent:
    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


EventHandler = Callable[[GameEvent], None]


def _key(event_type: EventType | str) -> EventType | str:
    """Map event names such as "turn_started" onto EventType; "*" stays as is."""
    if isinstance(event_type, EventType) or event_type == WILDCARD:
        return event_type
    try:
        return EventType(event_type)
    except ValueError:
        raise ValueError(f"Unknown event type '{event_type}'") from None


@dataclass
class _Listener:
    handler: EventHandler
    once: bool
    priority: int
    seq: int


class EventBus:
    """
    Session-scoped event channel.

    Usage:
        bus = EventBus()
        unsubscribe = bus.subscribe(EventType.GAME_OVER, on_game_over)
        bus.publish(GameEvent(EventType.GAME_OVER, {"reason": "turn_limit"}))
        unsubscribe()
    """

    def __init__(self, max_history: int = 100):
        self._listeners: dict[EventType | str, list[_Listener]] = {}
        self._history: deque[GameEvent] = deque(maxlen=max_history)
        self._seq = 0

    def subscribe(
        self,
        event_type: EventType | str,
        handler: EventHandler,
        priority: int = 0,
        once: bool = False,
    ) -> Callable[[], None]:
        """Register a handler. Returns a callable that removes it."""
        key = _key(event_type)
        self._seq += 1
        listener = _Listener(handler=handler, once=once, priority=priority, seq=self._seq)
        self._listeners.setdefault(key, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def once(self, event_type: EventType | str, handler: EventHandler, priority: int = 0) -> Callable[[], None]:
        return self.subscribe(event_type, handler, priority=priority, once=True)

    def unsubscribe(self, event_type: EventType | str, handler: EventHandler) -> bool:
        """Remove the first registration of `handler`. Returns False if absent."""
        listeners = self._listeners.get(_key(event_type), [])
        for listener in listeners:
            if listener.handler == handler:
                listeners.remove(listener)
                return True
        return False

    def publish(self, event: GameEvent) -> None:
        self._history.append(event)

        specific = self._listeners.get(event.event_type, [])
        wildcard = self._listeners.get(WILDCARD, [])
        targets = sorted(
            [(event.event_type, l) for l in specific] + [(WILDCARD, l) for l in wildcard],
            key=lambda pair: (-pair[1].priority, pair[1].seq),
        )

        for key, listener in targets:
            if listener.once:
                bucket = self._listeners.get(key, [])
                if listener in bucket:
                    bucket.remove(listener)
            try:
                listener.handler(event)
            except Exception:
                logger.exception("Event handler failed for %s", event.event_type.value)

    def publish_all(self, events: list[GameEvent]) -> None:
        for event in events:
            self.publish(event)

    @property
    def history(self) -> list[GameEvent]:
        return list(self._history)

    def events_of_type(self, event_type: EventType) -> list[GameEvent]:
        return [e for e in self._history if e.event_type == event_type]

    def clear_history(self) -> None:
        self._history.clear()

    def clear_listeners(self) -> None:
        self._listeners.clear()
