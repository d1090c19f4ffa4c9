"""
Invocation engine for one mock instance.

MockHandler owns the setups, call history, property storage, event
subscriptions, chaos state and nested-mock cache of a single mock, and
exposes the contract the boundary adapter talks to:

    handler.register_setup(signature, specs) -> Setup
    handler.dispatch(signature, args, result_kind, can_call_base) -> outcome
    handler.verify(signature, specs, times)
    handler.verify_no_other_calls() / handler.verify_all()
    handler.configure_chaos(policy) / handler.chaos_statistics
    handler.reset() / handler.reset_calls()

Per-invocation flow: record, chaos, first matching setup (resolved by the
ReturnResolver), otherwise property/event shortcuts, call-base, strict
check and finally the default value.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from doublet.chaos import ChaosInjector, ChaosPolicy, ChaosStatistics
from doublet.defaults.awaitables import Completed
from doublet.defaults.provider import DefaultValueProvider, build_default_value_provider, natural_zero
from doublet.events import EventRegistry
from doublet.exceptions import UnsetMemberError
from doublet.matchers import as_specs
from doublet.properties import PropertyStore
from doublet.recorder import Invocation, InvocationRecorder
from doublet.registry import SetupRegistry
from doublet.resolver import ReturnResolver
from doublet.setup import Setup
from doublet.times import Times
from doublet.typeinfo import awaitable_result
from doublet.types import (
    CallBaseRequested,
    DefaultValue,
    DispatchOutcome,
    MockBehavior,
    NoValue,
    ResultKind,
    Returned,
    Threw,
)
from doublet.verification import VerificationEngine

LOG = logging.getLogger("doublet.handler")

NestedFactory = Callable[[type], Any]


class MockHandler:
    """
    Engine state and dispatch for one mock.

    Args:
        behavior: What unmatched calls do (loose default or strict error).
        default_value: Default-value strategy; None keeps natural zero values.
        call_base: Request the base implementation for unmatched calls
            where the adapter allows it.
        nested_factory: Builds nested mocks for the MOCK strategy; takes the
            abstract type and returns the substitute object.
        exact_arity: Treat a call whose argument count differs from a
            setup or verification as an ArgumentShapeError. Off for members
            without a declared signature, where such a call just does not
            match.
    """

    def __init__(
        self,
        behavior: MockBehavior = MockBehavior.LOOSE,
        default_value: Optional[DefaultValue] = None,
        call_base: bool = False,
        nested_factory: Optional[NestedFactory] = None,
        exact_arity: bool = True,
    ) -> None:
        self._lock = threading.RLock()
        self.exact_arity = exact_arity
        self.behavior = MockBehavior(behavior)
        self.call_base = call_base
        self.nested_factory = nested_factory

        self._registry = SetupRegistry()
        self._recorder = InvocationRecorder()
        self._chaos = ChaosInjector()
        self._events = EventRegistry()
        self._properties = PropertyStore()
        self._resolver = ReturnResolver(raise_event=self.raise_event)
        self._verifier = VerificationEngine(self._recorder, self._registry)

        self._explicit_strategy: Optional[DefaultValue] = None
        self._strategy_provider: Optional[DefaultValueProvider] = None
        self._custom_provider: Optional[DefaultValueProvider] = None
        self._default_overrides: Dict[Any, Any] = {}
        self._nested: Dict[Tuple[str, Any], Any] = {}

        if default_value is not None:
            self.default_value_strategy = default_value

    # ─── Configuration ────────────────────────────────────────────────

    @property
    def default_value_strategy(self) -> DefaultValue:
        return self._explicit_strategy or DefaultValue.EMPTY

    @default_value_strategy.setter
    def default_value_strategy(self, strategy: DefaultValue) -> None:
        strategy = DefaultValue(strategy)
        with self._lock:
            self._explicit_strategy = strategy
            self._strategy_provider = build_default_value_provider(strategy)

    @property
    def has_explicit_default_strategy(self) -> bool:
        return self._explicit_strategy is not None

    @property
    def default_value_provider(self) -> Optional[DefaultValueProvider]:
        """Custom provider consulted before any built-in default handling."""
        return self._custom_provider

    @default_value_provider.setter
    def default_value_provider(self, provider: Optional[DefaultValueProvider]) -> None:
        self._custom_provider = provider

    def returns_default(self, result_type: Any, value: Any) -> None:
        """Return *value* for every unmatched call whose result type is *result_type*."""
        with self._lock:
            self._default_overrides[result_type] = value

    # ─── Setups and dispatch ──────────────────────────────────────────

    def register_setup(self, signature: str, argument_specs: Iterable[Any] = ()) -> Setup:
        return self._registry.add(signature, as_specs(argument_specs))

    @property
    def setups(self) -> List[Setup]:
        return self._registry.snapshot()

    @property
    def invocations(self) -> List[Invocation]:
        return self._recorder.snapshot()

    def dispatch(
        self,
        signature: str,
        args: Sequence[Any] = (),
        result_kind: Optional[ResultKind] = None,
        can_call_base: bool = False,
    ) -> DispatchOutcome:
        """
        Resolve one invocation.

        Returns:
            Returned, NoValue, CallBaseRequested or OutputChannelsApplied.

        Raises:
            UnsetMemberError: Strict mock and nothing matched.
            SequenceViolationError: A sequenced setup fired out of order.
            ArgumentShapeError: Same signature used with a different arity.
            BaseException: Configured or chaos exceptions, unaltered.
        """
        if result_kind is None:
            result_kind = ResultKind.none()
        args = tuple(args)

        self._recorder.record(signature, args)
        self._chaos.apply(signature)

        setup = self._registry.find_first_match(signature, args, self.exact_arity)
        if setup is not None:
            return self._resolver.resolve(setup, args, result_kind)
        LOG.debug("No setup matched %s%r", signature, args)
        return self._dispatch_unmatched(signature, args, result_kind, can_call_base)

    def dispatch_safely(
        self,
        signature: str,
        args: Sequence[Any] = (),
        result_kind: Optional[ResultKind] = None,
        can_call_base: bool = False,
    ) -> DispatchOutcome:
        """Like ``dispatch`` but returns ``Threw(error)`` instead of raising."""
        try:
            return self.dispatch(signature, args, result_kind, can_call_base)
        except Exception as exc:
            return Threw(exc)

    def _dispatch_unmatched(
        self,
        signature: str,
        args: Tuple[Any, ...],
        result_kind: ResultKind,
        can_call_base: bool,
    ) -> DispatchOutcome:
        shortcut = self._member_shortcut(signature, args)
        if shortcut is not None:
            return shortcut

        if self.call_base and can_call_base:
            return CallBaseRequested()

        if self.behavior == MockBehavior.STRICT:
            raise UnsetMemberError(signature, args)

        if not result_kind.has_value:
            return NoValue()
        return Returned(self.default_value(result_kind.result_type, signature))

    def _member_shortcut(self, signature: str, args: Tuple[Any, ...]) -> Optional[DispatchOutcome]:
        if signature.startswith("get_") and not args:
            name = signature[4:]
            if name in self._properties:
                return Returned(self._properties.get(name))
        elif signature.startswith("set_") and len(args) == 1:
            name = signature[4:]
            if name in self._properties:
                self._properties.set(name, args[0])
                return NoValue()

        if signature.startswith("add_") and len(args) == 1 and callable(args[0]):
            self._events.add(signature[4:], args[0])
            return NoValue()
        if signature.startswith("remove_") and len(args) == 1 and callable(args[0]):
            self._events.remove(signature[7:], args[0])
            return NoValue()
        return None

    # ─── Default values ───────────────────────────────────────────────

    def default_value(self, result_type: Any, signature: str = "") -> Any:
        """
        Result of an unmatched call on a loose mock.

        Order: per-type override, custom provider, completed awaitable
        around the default of the inner type, natural zero when no
        strategy was ever chosen, then the strategy's provider.
        """
        with self._lock:
            try:
                if result_type in self._default_overrides:
                    return self._default_overrides[result_type]
            except TypeError:
                LOG.debug("Unhashable result type %r skips overrides", result_type)
            custom = self._custom_provider
            strategy_provider = self._strategy_provider

        if custom is not None:
            return custom.get_default_value(result_type, self, signature)

        is_awaitable, inner = awaitable_result(result_type)
        if is_awaitable:
            return Completed(self.default_value(inner, signature))

        if strategy_provider is None:
            return natural_zero(result_type)
        return strategy_provider.get_default_value(result_type, self, signature)

    def get_or_create_nested(self, signature: str, result_type: Any, create: Callable[[], Any]) -> Any:
        """Cached nested mock for (*signature*, *result_type*), built once."""
        key = (signature, result_type)
        with self._lock:
            if key not in self._nested:
                self._nested[key] = create()
            return self._nested[key]

    # ─── Properties and events ────────────────────────────────────────

    def setup_property(self, name: str, default: Any = None) -> None:
        self._properties.set(name, default)

    def setup_all_properties(self, properties: Dict[str, Any]) -> None:
        """
        Give every property in *properties* (name to type) backing storage.

        Properties that already have storage keep their value.
        """
        for name, result_type in properties.items():
            self._properties.get_or_insert(
                name, lambda rt=result_type, n=name: self.default_value(rt, "get_" + n)
            )

    def has_property_storage(self, name: str) -> bool:
        return name in self._properties

    def raise_event(self, event_name: str, args: Sequence[Any] = ()) -> int:
        return self._events.raise_event(event_name, args)

    def event_handlers(self, event_name: str) -> List[Callable[..., Any]]:
        return self._events.handlers(event_name)

    # ─── Verification ─────────────────────────────────────────────────

    def verify(
        self,
        signature: str,
        argument_specs: Iterable[Any] = (),
        times: Optional[Times] = None,
    ) -> List[Invocation]:
        return self._verifier.verify(
            signature, as_specs(argument_specs), times or Times.once(), self.exact_arity
        )

    def verify_no_other_calls(self) -> None:
        self._verifier.verify_no_other_calls()

    def verify_all(self, include_unmarked: bool = False) -> None:
        self._verifier.verify_all(include_unmarked)

    # ─── Chaos ────────────────────────────────────────────────────────

    def configure_chaos(self, policy: Optional[ChaosPolicy]) -> None:
        self._chaos.configure(policy)

    @property
    def chaos_policy(self) -> Optional[ChaosPolicy]:
        return self._chaos.policy

    @property
    def chaos_statistics(self) -> ChaosStatistics:
        """Counters as of now; a copy, so two runs can be compared afterwards."""
        return self._chaos.snapshot()

    def reset_chaos_statistics(self) -> None:
        self._chaos.reset_statistics()

    # ─── Reset ────────────────────────────────────────────────────────

    def reset(self) -> None:
        """Forget setups, history, property values, subscriptions and nested mocks."""
        with self._lock:
            self._registry.clear()
            self._recorder.clear()
            self._properties.clear()
            self._events.clear()
            self._nested.clear()
        LOG.info("Mock handler reset")

    def reset_calls(self) -> None:
        """Forget call history and setup call counts; setups stay."""
        with self._lock:
            self._recorder.clear()
            self._registry.reset_call_counts()
        LOG.debug("Mock call history reset")
