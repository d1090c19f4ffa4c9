"""
Ordering tokens shared between setups.

A setup bound to a MockSequence receives a step number when it is bound.
When it fires, the sequence checks that the step is the next one expected
and advances; firing early or late is a hard failure. One sequence may be
shared by several mocks to enforce a global order across them.
"""

from __future__ import annotations

import logging
import threading

from doublet.exceptions import SequenceViolationError

LOG = logging.getLogger("doublet.sequence")


class MockSequence:
    """Thread-safe step counters for ordered setups."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._next_setup_step = 0
        self._next_expected_invocation_step = 0

    @property
    def next_setup_step(self) -> int:
        with self._lock:
            return self._next_setup_step

    @property
    def next_expected_invocation_step(self) -> int:
        with self._lock:
            return self._next_expected_invocation_step

    def register_step(self) -> int:
        """Reserve and return the next step number for a setup being bound."""
        with self._lock:
            step = self._next_setup_step
            self._next_setup_step += 1
            return step

    def check_and_advance(self, assigned_step: int, signature: str) -> None:
        """
        Record that the setup at *assigned_step* fired.

        Raises:
            SequenceViolationError: If *assigned_step* is not the next expected step.
        """
        with self._lock:
            expected = self._next_expected_invocation_step
            if assigned_step != expected:
                LOG.debug(
                    "Sequence violation on %s: expected step %d, got %d",
                    signature, expected, assigned_step,
                )
                raise SequenceViolationError(signature, expected, assigned_step)
            self._next_expected_invocation_step += 1

    def __repr__(self) -> str:
        return (
            f"MockSequence(registered={self._next_setup_step}, "
            f"fired={self._next_expected_invocation_step})"
        )
