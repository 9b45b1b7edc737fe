from __future__ import annotations

import logging
import threading
from typing import Any, Callable

log = logging.getLogger(__name__)


class EventBus:
    """Lightweight publish/subscribe bus for transport and session events.

    Thread-safe: the playback ticker emits position updates from its own
    thread while control actions emit from the caller's thread.  A handler
    that raises is logged and does not stop delivery to the others.

    Event types used by the library::

        transport.state     state, previous
        transport.position  position, duration
        transport.gain      gain_db
        transport.finished
        session.loaded      track, analysis
        session.profile_selected  profile_id, gain_db
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Callable[..., Any]]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: str, handler: Callable[..., Any]) -> Callable[[], None]:
        """Register a handler for an event type.

        Returns a callable that removes the handler again.
        """
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
        return lambda: self.unsubscribe(event_type, handler)

    def unsubscribe(self, event_type: str, handler: Callable[..., Any]) -> None:
        """Remove a handler."""
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

    def emit(self, event_type: str, **data: Any) -> None:
        """Fire all handlers for an event type."""
        with self._lock:
            handlers = list(self._handlers.get(event_type, []))
        for handler in handlers:
            try:
                handler(**data)
            except Exception:
                log.exception("handler for %s failed", event_type)
