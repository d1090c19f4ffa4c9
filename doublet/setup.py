"""
Setup data model: one registered behavior rule per instance.

A Setup is created by ``MockHandler.register_setup`` and configured through
a SetupBuilder until it first fires, at which point it is sealed.
"""

from __future__ import annotations

import inspect
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from doublet.exceptions import SetupSealedError
from doublet.matchers import ArgumentSpec, arguments_match, describe_specs
from doublet.sequence import MockSequence


# ─── Return strategies ────────────────────────────────────────────────


@dataclass(frozen=True)
class NoReturn:
    """Nothing configured; the resolver returns None."""

    pass


@dataclass(frozen=True)
class StaticValue:
    value: Any = None


@dataclass(frozen=True)
class ComputedValue:
    """Recomputed from the call arguments on every match."""

    fn: Callable[..., Any]


@dataclass(frozen=True)
class Raise:
    """Entry of a sequential strategy that raises instead of returning."""

    error: BaseException


class SequentialValues:
    """
    Values returned one per call; the last one repeats forever.

    The cursor is guarded by the owning setup's lock.
    """

    def __init__(self, values: Sequence[Any]) -> None:
        self.values: List[Any] = list(values)
        self.cursor = 0

    def next_value(self) -> Any:
        if not self.values:
            return None
        value = self.values[self.cursor]
        if self.cursor < len(self.values) - 1:
            self.cursor += 1
        if isinstance(value, Raise):
            raise value.error
        return value

    def __repr__(self) -> str:
        return f"SequentialValues({self.values!r}, cursor={self.cursor})"


ReturnStrategy = Any  # NoReturn | StaticValue | ComputedValue | SequentialValues


# ─── Output channels ──────────────────────────────────────────────────


@dataclass(frozen=True)
class StaticOutput:
    value: Any = None


@dataclass(frozen=True)
class ComputedOutput:
    fn: Callable[..., Any]


OutputSpec = Any  # StaticOutput | ComputedOutput


@dataclass(frozen=True)
class SequenceBinding:
    sequence: MockSequence
    assigned_step: int


def call_with_arguments(fn: Callable[..., Any], args: Sequence[Any]) -> Any:
    """
    Call a user callable with the invocation arguments.

    Arguments are passed positionally. A callable that declares no
    parameters is called with none, so ``returns_computed(lambda: 1)``
    works on members that take arguments.
    """
    if not args:
        return fn()
    try:
        params = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        return fn(*args)
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        return fn(*args)
    positional = [
        p for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    return fn(*args[: len(positional)])


@dataclass(eq=False)
class Setup:
    """A registered rule mapping matching invocations to a configured outcome."""

    signature: str
    argument_specs: Tuple[ArgumentSpec, ...]
    return_strategy: ReturnStrategy = field(default_factory=NoReturn)
    thrown: Optional[BaseException] = None
    callback: Optional[Callable[..., Any]] = None
    output_specs: Dict[int, OutputSpec] = field(default_factory=dict)
    output_callback: Optional[Callable[[List[Any]], Any]] = None
    sequence_binding: Optional[SequenceBinding] = None
    event_to_raise: Optional[str] = None
    event_args: Tuple[Any, ...] = ()
    verifiable: bool = False
    call_count: int = 0
    sealed: bool = False
    registration_index: int = 0

    def __post_init__(self) -> None:
        self.argument_specs = tuple(self.argument_specs)
        self._lock = threading.Lock()

    def matches(self, signature: str, args: Sequence[Any], exact_arity: bool = True) -> bool:
        """
        Decide whether this setup applies to an invocation.

        Raises:
            ArgumentShapeError: Same signature bound with a different arity.
        """
        if self.signature != signature:
            return False
        return arguments_match(signature, self.argument_specs, args, exact_arity)

    @property
    def has_output_channels(self) -> bool:
        return bool(self.output_specs) or self.output_callback is not None

    @property
    def output_indices(self) -> List[int]:
        return [i for i, spec in enumerate(self.argument_specs) if spec.is_output_channel]

    def record_call(self) -> int:
        """Atomically seal the setup and bump its call count."""
        with self._lock:
            self.sealed = True
            self.call_count += 1
            return self.call_count

    def reset_call_count(self) -> None:
        with self._lock:
            self.call_count = 0

    def next_sequential_value(self) -> Any:
        with self._lock:
            return self.return_strategy.next_value()

    def ensure_configurable(self) -> None:
        if self.sealed:
            raise SetupSealedError(
                f"Setup for '{self.signature}' has already been used and can no longer be configured."
            )

    def describe(self) -> str:
        return f"{self.signature}({describe_specs(self.argument_specs)})"

    def __repr__(self) -> str:
        return (
            f"Setup({self.describe()}, strategy={type(self.return_strategy).__name__}, "
            f"calls={self.call_count}, verifiable={self.verifiable})"
        )
