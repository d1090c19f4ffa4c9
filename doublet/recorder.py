"""Invocation history for one mock instance."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

from doublet.matchers import ArgumentSpec, arguments_match, unwrap_argument

LOG = logging.getLogger("doublet.recorder")


@dataclass(eq=False)
class Invocation:
    """
    One dispatched call.

    ``arguments`` is a snapshot taken at dispatch time: the container is
    copied and ``Ref`` boxes are replaced by the value they held, so later
    output writes do not change the history. Other argument objects are
    kept as they are. ``verified`` is the only field changed after creation.
    """

    signature: str
    arguments: Tuple[Any, ...]
    sequence_number: int = 0
    verified: bool = False

    def matches(self, signature: str, specs: Sequence[ArgumentSpec], exact_arity: bool = True) -> bool:
        if self.signature != signature:
            return False
        return arguments_match(signature, specs, self.arguments, exact_arity)

    def describe(self) -> str:
        return f"{self.signature}({', '.join(repr(a) for a in self.arguments)})"

    def __repr__(self) -> str:
        flag = " [verified]" if self.verified else ""
        return f"Invocation(#{self.sequence_number} {self.describe()}{flag})"


class InvocationRecorder:
    """Append-only (until cleared) list of invocations, safe for concurrent use."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._invocations: List[Invocation] = []
        self._numbers = itertools.count()

    def record(self, signature: str, arguments: Sequence[Any]) -> Invocation:
        with self._lock:
            invocation = Invocation(
                signature=signature,
                arguments=tuple(unwrap_argument(a) for a in arguments),
                sequence_number=next(self._numbers),
            )
            self._invocations.append(invocation)
        return invocation

    def snapshot(self) -> List[Invocation]:
        with self._lock:
            return list(self._invocations)

    def matching(
        self, signature: str, specs: Sequence[ArgumentSpec], exact_arity: bool = True
    ) -> List[Invocation]:
        return [inv for inv in self.snapshot() if inv.matches(signature, specs, exact_arity)]

    def for_signature(self, signature: str) -> List[Invocation]:
        return [inv for inv in self.snapshot() if inv.signature == signature]

    def unverified(self) -> List[Invocation]:
        return [inv for inv in self.snapshot() if not inv.verified]

    def mark_verified(self, invocations: Sequence[Invocation]) -> None:
        with self._lock:
            for invocation in invocations:
                invocation.verified = True

    def clear(self) -> None:
        with self._lock:
            self._invocations.clear()
        LOG.debug("Invocation history cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._invocations)
