"""Backing storage for properties that behave like real fields."""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict

_MISSING = object()


class PropertyStore:
    """
    Values of stubbed properties, keyed by property name.

    A getter dispatch for a stored name returns the stored value and a
    setter dispatch replaces it, so the mock remembers what was assigned.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._values: Dict[str, Any] = {}

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._values

    def get(self, name: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(name, default)

    def set(self, name: str, value: Any) -> None:
        with self._lock:
            self._values[name] = value

    def get_or_insert(self, name: str, factory: Callable[[], Any]) -> Any:
        """Return the stored value, storing ``factory()`` first if absent."""
        with self._lock:
            value = self._values.get(name, _MISSING)
        if value is not _MISSING:
            return value
        created = factory()
        with self._lock:
            return self._values.setdefault(name, created)

    def clear(self) -> None:
        with self._lock:
            self._values.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)
