"""
Segment lifecycle events.

Listeners are plain callables. They run synchronously, in registration
order, on whichever thread emits the event (the caller's thread for the
priority phase, the background thread afterwards).
"""

import threading
from typing import Any, Callable, Optional

from loguru import logger

from ..models.segment import SegmentEvent, SegmentEventType

SegmentEventListener = Callable[[SegmentEvent], None]


class SegmentEventBus:
    """Synchronous listener registry for one generation run."""

    def __init__(self):
        self._listeners: list[SegmentEventListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: SegmentEventListener) -> Callable[[], None]:
        """Register a listener. Returns a function that removes it again."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, event: SegmentEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"Error in listener for {event.type.value} ({event.segment_id})")

    def publish(
        self,
        event_type: SegmentEventType,
        segment_id: str,
        data: Optional[dict[str, Any]] = None,
    ) -> SegmentEvent:
        event = SegmentEvent(type=event_type, segment_id=segment_id, data=data or {})
        self.emit(event)
        return event
