"""
Return resolver: turns a matched setup into a dispatch outcome.

Priority, first applicable wins:

1. sequence binding is checked and advanced (a violation aborts the call)
2. call count is bumped, the callback runs, a configured event is raised
3. a configured exception is raised unaltered
4. output channels produce assignments, combined with the value from 5-8
5. members without a result yield NoValue
6. sequential values
7. computed value
8. static value
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from doublet.matchers import unwrap_argument
from doublet.setup import (
    ComputedOutput,
    ComputedValue,
    SequentialValues,
    Setup,
    StaticOutput,
    StaticValue,
    call_with_arguments,
)
from doublet.types import DispatchOutcome, NoValue, OutputChannelsApplied, ResultKind, Returned

LOG = logging.getLogger("doublet.resolver")

EventRaiser = Callable[[str, Sequence[Any]], None]


class ReturnResolver:
    """Applies a matched setup to one invocation."""

    def __init__(self, raise_event: Optional[EventRaiser] = None) -> None:
        self._raise_event = raise_event

    def resolve(self, setup: Setup, args: Sequence[Any], result_kind: ResultKind) -> DispatchOutcome:
        """
        Produce the outcome of *setup* for an invocation with *args*.

        Raises:
            SequenceViolationError: The setup fired out of its sequence order.
            BaseException: The setup's configured exception, unaltered.
        """
        values = [unwrap_argument(a) for a in args]

        binding = setup.sequence_binding
        if binding is not None:
            binding.sequence.check_and_advance(binding.assigned_step, setup.signature)

        count = setup.record_call()
        LOG.debug("Setup %s fired (call #%d)", setup.describe(), count)

        if setup.callback is not None:
            call_with_arguments(setup.callback, values)

        if setup.event_to_raise is not None and self._raise_event is not None:
            self._raise_event(setup.event_to_raise, setup.event_args)

        if setup.thrown is not None:
            LOG.debug("Setup %s raising %r", setup.signature, setup.thrown)
            raise setup.thrown

        if setup.has_output_channels:
            assignments = self._compute_outputs(setup, values)
            value = self._compute_value(setup, values) if result_kind.has_value else None
            return OutputChannelsApplied(assignments=assignments, value=value)

        if not result_kind.has_value:
            return NoValue()

        return Returned(self._compute_value(setup, values))

    @staticmethod
    def _compute_value(setup: Setup, values: Sequence[Any]) -> Any:
        strategy = setup.return_strategy
        if isinstance(strategy, SequentialValues):
            return setup.next_sequential_value()
        if isinstance(strategy, ComputedValue):
            return call_with_arguments(strategy.fn, values)
        if isinstance(strategy, StaticValue):
            return strategy.value
        return None

    @staticmethod
    def _compute_outputs(setup: Setup, values: Sequence[Any]) -> Dict[int, Any]:
        assignments: Dict[int, Any] = {}
        for index, spec in sorted(setup.output_specs.items()):
            if isinstance(spec, ComputedOutput):
                assignments[index] = call_with_arguments(spec.fn, values)
            elif isinstance(spec, StaticOutput):
                assignments[index] = spec.value

        if setup.output_callback is not None:
            before: List[Any] = list(values)
            working: List[Any] = list(values)
            setup.output_callback(working)
            for index, (old, new) in enumerate(zip(before, working)):
                if new is not old:
                    assignments[index] = new
        return assignments
