"""
Exception taxonomy for the invocation engine.

Every error the engine raises on its own behalf derives from MockError.
Exceptions configured by the test author (``throws(...)``, chaos
``possible_exceptions``) are never wrapped and do not appear here.

MockError subclasses AssertionError so that test runners report
verification failures as assertion failures rather than crashes.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class MockError(AssertionError):
    """Base class for all engine-raised errors."""

    pass


class UnsetMemberError(MockError):
    """Raised in strict mode when no setup matches an invocation."""

    def __init__(self, signature: str, arguments: Sequence[Any] = ()) -> None:
        self.signature = signature
        self.arguments = tuple(arguments)
        super().__init__(
            f"[Strict Mode] Call to '{signature}' was not setup "
            f"(arguments: {list(self.arguments)!r})."
        )


class VerificationError(MockError):
    """Raised when recorded calls do not satisfy a verification."""

    def __init__(
        self,
        message: str,
        signature: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[int] = None,
    ) -> None:
        self.signature = signature
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class SequenceViolationError(MockError):
    """Raised when a setup bound to a MockSequence fires out of order."""

    def __init__(self, signature: str, expected_step: int, actual_step: int) -> None:
        self.signature = signature
        self.expected_step = expected_step
        self.actual_step = actual_step
        super().__init__(
            f"Method '{signature}' invoked out of sequence. "
            f"Expected step {expected_step}, but method is at step {actual_step}."
        )


class ArgumentShapeError(MockError):
    """
    Raised when a setup or verification and a call disagree on arity.

    This indicates a binding-layer bug (the same signature was bound with
    a different parameter count), not a test condition.
    """

    def __init__(self, signature: str, expected: int, actual: int) -> None:
        self.signature = signature
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Argument count mismatch for '{signature}': "
            f"specification has {expected} argument(s), call has {actual}."
        )


class SetupSealedError(MockError):
    """Raised when a setup is reconfigured after it has already fired."""

    pass


class RecursiveMockError(MockError):
    """Raised when nested mock construction re-enters a type under construction."""

    def __init__(self, chain: Sequence[type]) -> None:
        self.chain = tuple(chain)
        names = " -> ".join(getattr(t, "__name__", repr(t)) for t in self.chain)
        super().__init__(f"Recursive mock construction cycle detected: {names}")


class NotAMockError(MockError, TypeError):
    """Raised when an object that is not a doublet mock is used as one."""

    pass
