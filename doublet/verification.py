"""
Verification engine.

Invocation-centric checks (``verify``, ``verify_no_other_calls``) read the
recorder; setup-centric checks (``verify_all``) read the registry. A
successful ``verify`` flags the invocations it counted as verified, which
is what ``verify_no_other_calls`` later relies on.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from doublet.exceptions import VerificationError
from doublet.matchers import ArgumentSpec, describe_specs
from doublet.recorder import Invocation, InvocationRecorder
from doublet.registry import SetupRegistry
from doublet.times import Times

LOG = logging.getLogger("doublet.verification")

# Cap on how many recorded calls a failure message lists.
_MAX_LISTED_CALLS = 10


class VerificationEngine:
    """Checks recorded calls and setup usage for one mock instance."""

    def __init__(self, recorder: InvocationRecorder, registry: SetupRegistry) -> None:
        self._recorder = recorder
        self._registry = registry

    def verify(
        self,
        signature: str,
        specs: Sequence[ArgumentSpec],
        times: Times,
        exact_arity: bool = True,
    ) -> List[Invocation]:
        """
        Check that calls matching *signature* and *specs* satisfy *times*.

        Returns:
            The matching invocations (now flagged verified).

        Raises:
            VerificationError: If the matching call count violates *times*.
        """
        matches = self._recorder.matching(signature, specs, exact_arity)
        count = len(matches)
        if not times.validate(count):
            message = (
                f"Verification failed: Expected {times.description} call(s) to "
                f"'{signature}({describe_specs(specs)})', but was called {count} time(s)."
            )
            performed = self._recorder.for_signature(signature)
            if performed:
                message += "\nPerformed calls to this member:\n" + _list_calls(performed)
            LOG.debug("%s", message)
            raise VerificationError(
                message, signature=signature, expected=times.description, actual=count
            )
        self._recorder.mark_verified(matches)
        LOG.debug("Verified %s: %d call(s), %s", signature, count, times.description)
        return matches

    def verify_no_other_calls(self) -> None:
        """
        Raises:
            VerificationError: If any recorded invocation was never verified.
        """
        unverified = self._recorder.unverified()
        if unverified:
            first = unverified[0]
            raise VerificationError(
                f"Verification failed: Expected no other calls, but found {len(unverified)} "
                f"unverified call(s). First unverified call: '{first.signature}'.\n"
                + _list_calls(unverified),
                signature=first.signature,
                expected="no other calls",
                actual=len(unverified),
            )

    def verify_all(self, include_unmarked: bool = False) -> None:
        """
        Fail if any verifiable setup never fired.

        Args:
            include_unmarked: Also require setups not marked verifiable to
                have fired.

        Raises:
            VerificationError: Naming the first uncalled setup.
        """
        uncalled = [
            s for s in self._registry.snapshot()
            if (s.verifiable or include_unmarked) and s.call_count == 0
        ]
        if not uncalled:
            return
        first = uncalled[0]
        if include_unmarked:
            message = (
                f"Verification failed: Expected all setups to be called, "
                f"but '{first.signature}' was not."
            )
        else:
            message = (
                f"Verification failed: Expected setup for '{first.signature}' "
                f"to be called, but it was not."
            )
        if len(uncalled) > 1:
            message += f" ({len(uncalled)} uncalled setups: " + ", ".join(
                s.describe() for s in uncalled
            ) + ")"
        raise VerificationError(message, signature=first.signature, expected="at least 1", actual=0)


def _list_calls(invocations: Sequence[Invocation]) -> str:
    lines = [f"  {inv.describe()}" for inv in invocations[:_MAX_LISTED_CALLS]]
    if len(invocations) > _MAX_LISTED_CALLS:
        lines.append(f"  ... and {len(invocations) - _MAX_LISTED_CALLS} more")
    return "\n".join(lines)
