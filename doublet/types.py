"""
Core value types shared by the engine: behavior modes, result kinds and
dispatch outcomes.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union


class MockBehavior(str, Enum):
    """Controls what happens when no setup matches an invocation."""

    LOOSE = "loose"
    STRICT = "strict"


class DefaultValue(str, Enum):
    """Strategy used to build results for unmatched invocations in loose mode."""

    EMPTY = "empty"
    MOCK = "mock"


class Range(str, Enum):
    """Bound handling for range matchers."""

    INCLUSIVE = "inclusive"
    EXCLUSIVE = "exclusive"


@dataclass(frozen=True)
class ResultKind:
    """
    Declared result of the member being dispatched.

    ``has_value`` is False for members whose declared result is the
    "no value" sentinel (``None`` annotation); ``result_type`` is the
    declared type otherwise, or None when undeclared.
    """

    has_value: bool
    result_type: Any = None

    @classmethod
    def none(cls) -> "ResultKind":
        return cls(has_value=False)

    @classmethod
    def value(cls, result_type: Any = None) -> "ResultKind":
        return cls(has_value=True, result_type=result_type)

    @classmethod
    def from_annotation(cls, annotation: Any) -> "ResultKind":
        """Build a ResultKind from a return annotation (as returned by get_type_hints)."""
        if annotation is None or annotation is type(None):
            return cls.none()
        if annotation is inspect.Signature.empty:
            return cls.value(None)
        return cls.value(annotation)

    def describe(self) -> str:
        if not self.has_value:
            return "none"
        return f"value({getattr(self.result_type, '__name__', self.result_type)})"


# ─── Dispatch outcomes ────────────────────────────────────────────────


@dataclass(frozen=True)
class Returned:
    """The invocation produced a value."""

    value: Any = None


@dataclass(frozen=True)
class NoValue:
    """The invocation completed and the member has no result."""

    pass


@dataclass(frozen=True)
class CallBaseRequested:
    """No setup matched and the base implementation should run instead."""

    pass


@dataclass(frozen=True)
class OutputChannelsApplied:
    """
    A matched setup wrote side-channel values.

    ``assignments`` maps parameter index to the value the adapter must
    write into that output/reference parameter; ``value`` is the primary
    result (None for members without one).
    """

    assignments: Dict[int, Any] = field(default_factory=dict)
    value: Any = None


@dataclass(frozen=True)
class Threw:
    """The invocation raised; only produced by ``MockHandler.dispatch_safely``."""

    error: BaseException


DispatchOutcome = Union[Returned, NoValue, CallBaseRequested, OutputChannelsApplied, Threw]


def outcome_value(outcome: DispatchOutcome) -> Optional[Any]:
    """Return the primary value carried by an outcome, re-raising Threw."""
    if isinstance(outcome, Threw):
        raise outcome.error
    if isinstance(outcome, (Returned, OutputChannelsApplied)):
        return outcome.value
    return None
