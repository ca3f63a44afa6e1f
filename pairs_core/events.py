from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple, Type, Union


@dataclass(frozen=True)
class BoardBuilt:
    """A new board replaced the old one; listeners should rebind to the new cards."""
    rows: int
    columns: int


@dataclass(frozen=True)
class CardRevealed:
    index: int


@dataclass(frozen=True)
class PairResolved:
    matched: bool
    indices: Tuple[int, int]


@dataclass(frozen=True)
class GameOver:
    final_score: int


Event = Union[BoardBuilt, CardRevealed, PairResolved, GameOver]
EVENT_TYPES: Tuple[Type[Any], ...] = (BoardBuilt, CardRevealed, PairResolved, GameOver)

Handler = Callable[[Any], None]


def event_to_json(event: Event) -> Dict[str, Any]:
    if isinstance(event, BoardBuilt):
        return {"type": "BoardBuilt", "rows": event.rows, "columns": event.columns}
    if isinstance(event, CardRevealed):
        return {"type": "CardRevealed", "index": event.index}
    if isinstance(event, PairResolved):
        return {"type": "PairResolved", "matched": event.matched, "indices": list(event.indices)}
    if isinstance(event, GameOver):
        return {"type": "GameOver", "finalScore": event.final_score}
    raise TypeError(f'unknown event: {event!r}')


class EventBus:
    """Synchronous publish/subscribe keyed by event class. Handlers run in subscription order."""

    def __init__(self) -> None:
        self._handlers: Dict[Type[Any], List[Handler]] = {t: [] for t in EVENT_TYPES}

    def subscribe(self, event_type: Type[Any], handler: Handler) -> None:
        if event_type not in self._handlers:
            raise TypeError(f'unknown event type: {event_type!r}')
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: Type[Any], handler: Handler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def subscribe_all(self, handler: Handler) -> None:
        for t in EVENT_TYPES:
            self.subscribe(t, handler)

    def unsubscribe_all(self, handler: Handler) -> None:
        for t in EVENT_TYPES:
            self.unsubscribe(t, handler)

    def emit(self, event: Event) -> None:
        # Copy so a handler may unsubscribe itself while being notified.
        for handler in list(self._handlers.get(type(event), [])):
            handler(event)
