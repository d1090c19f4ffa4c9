"""
Argument specifications and the matching rules that evaluate them.

A setup or verification carries one ArgumentSpec per formal parameter.
A call is selected only if every spec accepts the argument in its
position (conjunction). Plain values handed to the public API are wrapped
into ``Exact``; the ``It`` namespace builds the wildcard variants:

    It.is_any(int)                  any int (or None)
    It.is_(lambda v: v > 0)         custom predicate
    It.is_in("a", "b")              membership
    It.is_not_null()                anything but None
    It.is_regex(r"^\\d+$")          string matching a pattern
    It.out()                        output channel position, matches anything

Output/reference positions carry ``is_output_channel``; the matcher still
gates selection, the written value comes from the setup's output specs.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from doublet.exceptions import ArgumentShapeError
from doublet.typeinfo import is_instance_of
from doublet.types import Range

LOG = logging.getLogger("doublet.matchers")


class ArgumentSpec(ABC):
    """One parameter position of a setup or verification expression."""

    is_output_channel: bool = False
    is_output_only: bool = False

    @abstractmethod
    def matches(self, value: Any) -> bool:
        """Return True when *value* satisfies this spec."""
        ...

    @property
    def description(self) -> str:
        return repr(self)

    def as_output(self) -> "ArgumentSpec":
        """Mark this position as an output/reference parameter."""
        self.is_output_channel = True
        return self


class Exact(ArgumentSpec):
    """Structural equality against a fixed value."""

    def __init__(self, value: Any) -> None:
        self.value = value

    def matches(self, value: Any) -> bool:
        return values_equivalent(self.value, value)

    def __repr__(self) -> str:
        return repr(self.value)


class Predicate(ArgumentSpec):
    """
    Custom predicate matcher.

    A predicate that raises does not match. The exception is logged with
    its traceback and kept on ``last_error`` so a test can inspect why a
    setup was skipped.
    """

    def __init__(self, fn: Callable[[Any], bool], description: Optional[str] = None) -> None:
        self.fn = fn
        self._description = description
        self.last_error: Optional[BaseException] = None

    def matches(self, value: Any) -> bool:
        try:
            return bool(self.fn(value))
        except Exception as exc:
            self.last_error = exc
            LOG.warning(
                "Predicate %s raised %s for value %r; treating as no match",
                self.description, type(exc).__name__, value,
                exc_info=True,
            )
            return False

    @property
    def description(self) -> str:
        if self._description:
            return self._description
        name = getattr(self.fn, "__name__", "predicate")
        return f"It.is_({name})"

    def __repr__(self) -> str:
        return self.description


class AnyOfType(ArgumentSpec):
    """Any value assignable to ``expected_type``, including None."""

    def __init__(self, expected_type: Any = None) -> None:
        self.expected_type = expected_type

    def matches(self, value: Any) -> bool:
        if value is None:
            return True
        return is_instance_of(value, self.expected_type)

    def __repr__(self) -> str:
        if self.expected_type is None:
            return "It.is_any()"
        return f"It.is_any({getattr(self.expected_type, '__name__', self.expected_type)})"


class InSet(ArgumentSpec):
    """Value equal to any member of ``values``."""

    def __init__(self, values: Iterable[Any]) -> None:
        self.values = list(values)

    def matches(self, value: Any) -> bool:
        return any(values_equivalent(candidate, value) for candidate in self.values)

    def __repr__(self) -> str:
        return f"It.is_in({', '.join(repr(v) for v in self.values)})"


class NotInSet(ArgumentSpec):
    """Value equal to none of ``values``."""

    def __init__(self, values: Iterable[Any]) -> None:
        self.values = list(values)

    def matches(self, value: Any) -> bool:
        return not any(values_equivalent(candidate, value) for candidate in self.values)

    def __repr__(self) -> str:
        return f"It.is_not_in({', '.join(repr(v) for v in self.values)})"


class NotNull(ArgumentSpec):
    """Any value except None."""

    def matches(self, value: Any) -> bool:
        return value is not None

    def __repr__(self) -> str:
        return "It.is_not_null()"


class MatchesRegex(ArgumentSpec):
    """A string matched by ``pattern`` (``re.search`` semantics)."""

    def __init__(self, pattern: str, flags: int = 0) -> None:
        self.pattern = pattern
        self.flags = flags
        self._compiled = re.compile(pattern, flags)

    def matches(self, value: Any) -> bool:
        if not isinstance(value, str):
            return False
        return self._compiled.search(value) is not None

    def __repr__(self) -> str:
        return f"It.is_regex({self.pattern!r})"


class InRange(ArgumentSpec):
    """A comparable value between ``low`` and ``high``."""

    def __init__(self, low: Any, high: Any, kind: Range = Range.INCLUSIVE) -> None:
        self.low = low
        self.high = high
        self.kind = Range(kind)

    def matches(self, value: Any) -> bool:
        if value is None:
            return False
        try:
            if self.kind == Range.INCLUSIVE:
                return self.low <= value <= self.high
            return self.low < value < self.high
        except TypeError:
            return False

    def __repr__(self) -> str:
        return f"It.is_in_range({self.low!r}, {self.high!r}, {self.kind.value})"


class It:
    """Factory namespace for argument specs."""

    @staticmethod
    def is_any(expected_type: Any = None) -> AnyOfType:
        return AnyOfType(expected_type)

    @staticmethod
    def is_(fn: Callable[[Any], bool], description: Optional[str] = None) -> Predicate:
        return Predicate(fn, description)

    @staticmethod
    def is_in(*values: Any) -> InSet:
        return InSet(_flatten_single_iterable(values))

    @staticmethod
    def is_not_in(*values: Any) -> NotInSet:
        return NotInSet(_flatten_single_iterable(values))

    @staticmethod
    def is_in_range(low: Any, high: Any, kind: Range = Range.INCLUSIVE) -> InRange:
        return InRange(low, high, kind)

    @staticmethod
    def is_not_null() -> NotNull:
        return NotNull()

    @staticmethod
    def is_regex(pattern: str, flags: int = 0) -> MatchesRegex:
        return MatchesRegex(pattern, flags)

    @staticmethod
    def out(expected_type: Any = None) -> AnyOfType:
        """
        Output-only position: accepts whatever the caller passes.

        When a call leaves the position unwritten it receives the default
        value of *expected_type*.
        """
        spec = AnyOfType(expected_type).as_output()
        spec.is_output_only = True
        return spec

    @staticmethod
    def ref(spec: Any = None) -> ArgumentSpec:
        """Reference position: gated by *spec* (any value when omitted)."""
        if spec is None:
            return AnyOfType().as_output()
        return as_spec(spec).as_output()


def match_create(fn: Callable[[Any], bool], description: Optional[str] = None) -> Predicate:
    """Build a reusable custom matcher with a readable description."""
    return Predicate(fn, description or getattr(fn, "__name__", None))


def as_spec(value: Any) -> ArgumentSpec:
    """Wrap a plain value into ``Exact``; specs pass through."""
    if isinstance(value, ArgumentSpec):
        return value
    return Exact(value)


def as_specs(values: Iterable[Any]) -> Tuple[ArgumentSpec, ...]:
    return tuple(as_spec(v) for v in values)


def unwrap_argument(value: Any) -> Any:
    """Output boxes (anything exposing ``__doublet_ref__``) match on their content."""
    if getattr(type(value), "__doublet_ref__", False):
        return value.value
    return value


def values_equivalent(expected: Any, actual: Any) -> bool:
    """
    Equality used by ``Exact`` and the set matchers.

    Specs nested inside an expected list/tuple keep acting as matchers, so
    ``[1, It.is_any(int)]`` matches ``[1, 7]``.
    """
    if isinstance(expected, ArgumentSpec):
        return expected.matches(actual)
    if isinstance(expected, (list, tuple)) and isinstance(actual, (list, tuple)):
        if len(expected) != len(actual):
            return False
        return all(values_equivalent(e, a) for e, a in zip(expected, actual))
    if expected is None:
        return actual is None
    try:
        return bool(expected == actual)
    except Exception:
        LOG.debug("Equality between %r and %r raised; treating as unequal", expected, actual, exc_info=True)
        return False


def arguments_match(
    signature: str,
    specs: Sequence[ArgumentSpec],
    args: Sequence[Any],
    exact_arity: bool = True,
) -> bool:
    """
    Evaluate every spec against its argument position.

    With *exact_arity* off, a call of a different length simply does not
    match; members without a declared signature are matched that way.

    Raises:
        ArgumentShapeError: If the arity of *specs* and *args* differ and
            *exact_arity* is on.
    """
    if len(specs) != len(args):
        if not exact_arity:
            return False
        raise ArgumentShapeError(signature, len(specs), len(args))
    for spec, arg in zip(specs, args):
        if not spec.matches(unwrap_argument(arg)):
            return False
    return True


def describe_specs(specs: Sequence[ArgumentSpec]) -> str:
    return ", ".join(spec.description for spec in specs)


def _flatten_single_iterable(values: Tuple[Any, ...]) -> List[Any]:
    # It.is_in([1, 2, 3]) and It.is_in(1, 2, 3) mean the same thing.
    if len(values) == 1 and isinstance(values[0], (list, tuple, set, frozenset)):
        return list(values[0])
    return list(values)
