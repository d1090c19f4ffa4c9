"""
Fluent configuration of a registered setup.

    mock.setup("parse", "42", It.out(int)) \\
        .out_value(1, 42) \\
        .returns(True)

    mock.setup_sequence("next_id") \\
        .returns(1) \\
        .returns(2) \\
        .throws(StopIteration())

Each method returns the builder. Configuring a setup after it has fired
raises SetupSealedError.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Union

from doublet.defaults.awaitables import Completed
from doublet.sequence import MockSequence
from doublet.setup import (
    ComputedOutput,
    ComputedValue,
    Raise,
    SequenceBinding,
    SequentialValues,
    Setup,
    StaticOutput,
    StaticValue,
)

LOG = logging.getLogger("doublet.builder")

ExceptionLike = Union[BaseException, type]


def _as_exception(error: ExceptionLike) -> BaseException:
    if isinstance(error, BaseException):
        return error
    if isinstance(error, type) and issubclass(error, BaseException):
        return error()
    raise TypeError(f"Expected an exception instance or class, got {error!r}")


class SetupBuilder:
    """Configures one Setup."""

    def __init__(self, setup: Setup) -> None:
        self.setup = setup

    def returns(self, value: Any) -> "SetupBuilder":
        self.setup.ensure_configurable()
        self.setup.return_strategy = StaticValue(value)
        return self

    def returns_async(self, value: Any) -> "SetupBuilder":
        """Return an already-completed awaitable resolving to *value*."""
        return self.returns(Completed(value))

    def returns_in_order(self, *values: Any) -> "SetupBuilder":
        """Return *values* one per call; the last one repeats."""
        self.setup.ensure_configurable()
        self.setup.return_strategy = SequentialValues(values)
        return self

    def returns_computed(self, fn: Callable[..., Any]) -> "SetupBuilder":
        """Compute the result from the call arguments on every call."""
        self.setup.ensure_configurable()
        self.setup.return_strategy = ComputedValue(fn)
        return self

    def callback(self, fn: Callable[..., Any]) -> "SetupBuilder":
        self.setup.ensure_configurable()
        self.setup.callback = fn
        return self

    def throws(self, error: ExceptionLike) -> "SetupBuilder":
        self.setup.ensure_configurable()
        self.setup.thrown = _as_exception(error)
        return self

    def out_value(self, index: int, value: Any) -> "SetupBuilder":
        """Write *value* into the output parameter at *index*."""
        self._check_output_index(index)
        self.setup.output_specs[index] = StaticOutput(value)
        return self

    def out_value_func(self, index: int, fn: Callable[..., Any]) -> "SetupBuilder":
        """Write ``fn(*args)`` into the output parameter at *index*."""
        self._check_output_index(index)
        self.setup.output_specs[index] = ComputedOutput(fn)
        return self

    # Reference parameters are written exactly like output parameters.
    ref_value = out_value
    ref_value_func = out_value_func

    def callback_ref_out(self, fn: Callable[[List[Any]], Any]) -> "SetupBuilder":
        """
        Run *fn* with a mutable list of the call arguments.

        Every position *fn* rebinds is written back to the caller's
        output/reference parameter.
        """
        self.setup.ensure_configurable()
        self.setup.output_callback = fn
        return self

    def raises(self, event_name: str, *args: Any) -> "SetupBuilder":
        """Raise the subscribed event *event_name* with *args* when this setup fires."""
        self.setup.ensure_configurable()
        self.setup.event_to_raise = event_name
        self.setup.event_args = tuple(args)
        return self

    def verifiable(self) -> "SetupBuilder":
        self.setup.ensure_configurable()
        self.setup.verifiable = True
        return self

    def in_sequence(self, sequence: MockSequence) -> "SetupBuilder":
        """Bind this setup to the next step of *sequence*."""
        self.setup.ensure_configurable()
        if self.setup.sequence_binding is not None:
            raise ValueError(f"Setup for '{self.setup.signature}' is already bound to a sequence")
        self.setup.sequence_binding = SequenceBinding(sequence, sequence.register_step())
        LOG.debug(
            "Bound %s to sequence step %d",
            self.setup.describe(), self.setup.sequence_binding.assigned_step,
        )
        return self

    def _check_output_index(self, index: int) -> None:
        self.setup.ensure_configurable()
        specs = self.setup.argument_specs
        if not 0 <= index < len(specs):
            raise IndexError(
                f"Output index {index} out of range for '{self.setup.signature}' "
                f"with {len(specs)} argument(s)"
            )
        if not specs[index].is_output_channel:
            raise ValueError(
                f"Argument {index} of '{self.setup.signature}' is not an output/reference "
                f"position; use It.out() or It.ref() when setting it up"
            )

    def __repr__(self) -> str:
        return f"SetupBuilder({self.setup!r})"


class SequenceSetupBuilder:
    """Configures the per-call results of a ``setup_sequence`` setup."""

    def __init__(self, setup: Setup) -> None:
        self.setup = setup
        if not isinstance(setup.return_strategy, SequentialValues):
            setup.return_strategy = SequentialValues(())

    def returns(self, value: Any) -> "SequenceSetupBuilder":
        self.setup.ensure_configurable()
        self.setup.return_strategy.values.append(value)
        return self

    def returns_async(self, value: Any) -> "SequenceSetupBuilder":
        return self.returns(Completed(value))

    def throws(self, error: ExceptionLike) -> "SequenceSetupBuilder":
        self.setup.ensure_configurable()
        self.setup.return_strategy.values.append(Raise(_as_exception(error)))
        return self

    def __repr__(self) -> str:
        return f"SequenceSetupBuilder({self.setup!r})"
