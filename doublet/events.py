"""Event subscriptions on a mock (``add_<name>`` / ``remove_<name>``)."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence

LOG = logging.getLogger("doublet.events")


class EventRegistry:
    """Handlers subscribed to a mock's events, keyed by event name."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handlers: Dict[str, List[Callable[..., Any]]] = {}

    def add(self, event_name: str, handler: Callable[..., Any]) -> None:
        with self._lock:
            self._handlers.setdefault(event_name, []).append(handler)
        LOG.debug("Subscribed %r to event %s", handler, event_name)

    def remove(self, event_name: str, handler: Callable[..., Any]) -> bool:
        """Unsubscribe the most recent registration of *handler*; False if absent."""
        with self._lock:
            handlers = self._handlers.get(event_name, [])
            for index in range(len(handlers) - 1, -1, -1):
                if handlers[index] == handler:
                    del handlers[index]
                    return True
        return False

    def handlers(self, event_name: str) -> List[Callable[..., Any]]:
        with self._lock:
            return list(self._handlers.get(event_name, ()))

    def raise_event(self, event_name: str, args: Sequence[Any] = ()) -> int:
        """
        Invoke every handler subscribed to *event_name* with *args*.

        Every handler runs even if an earlier one raises; the first
        exception is re-raised afterwards.

        Returns:
            Number of handlers invoked.
        """
        handlers = self.handlers(event_name)
        first_error: Optional[BaseException] = None
        for handler in handlers:
            try:
                handler(*args)
            except Exception as exc:
                LOG.debug("Handler %r for event %s raised %r", handler, event_name, exc)
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error
        return len(handlers)

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()
