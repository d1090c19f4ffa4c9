"""
Ordered setup storage for one mock instance.

Resolution is strictly first-registered-wins: the earliest setup whose
signature and argument specs accept a call is selected, even when a later
setup would also match. Setups are indexed by signature so a dispatch
only scans candidates for the member being called; the per-signature
sub-lists keep registration order.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterator, List, Optional, Sequence

from doublet.matchers import ArgumentSpec
from doublet.setup import Setup

LOG = logging.getLogger("doublet.registry")


class SetupRegistry:
    """Thread-safe, append-only (until cleared) list of setups."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._setups: List[Setup] = []
        self._by_signature: Dict[str, List[Setup]] = {}
        self._counter = 0

    def add(self, signature: str, argument_specs: Sequence[ArgumentSpec]) -> Setup:
        """Create, register and return a new setup."""
        with self._lock:
            setup = Setup(
                signature=signature,
                argument_specs=tuple(argument_specs),
                registration_index=self._counter,
            )
            self._counter += 1
            self._setups.append(setup)
            self._by_signature.setdefault(signature, []).append(setup)
        LOG.debug("Registered setup #%d %s", setup.registration_index, setup.describe())
        return setup

    def find_first_match(
        self, signature: str, args: Sequence[Any], exact_arity: bool = True
    ) -> Optional[Setup]:
        """Return the earliest registered setup matching the call, or None."""
        for setup in self.candidates(signature):
            if setup.matches(signature, args, exact_arity):
                return setup
        return None

    def candidates(self, signature: str) -> List[Setup]:
        with self._lock:
            return list(self._by_signature.get(signature, ()))

    def snapshot(self) -> List[Setup]:
        with self._lock:
            return list(self._setups)

    def clear(self) -> None:
        with self._lock:
            self._setups.clear()
            self._by_signature.clear()

    def reset_call_counts(self) -> None:
        for setup in self.snapshot():
            setup.reset_call_count()

    def __len__(self) -> int:
        with self._lock:
            return len(self._setups)

    def __iter__(self) -> Iterator[Setup]:
        return iter(self.snapshot())
