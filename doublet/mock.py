"""
Runtime boundary between Python objects and the invocation engine.

``Mock`` is the controller a test talks to; ``Mock.object`` is the
substitute handed to the code under test. The substitute is an instance
of a class generated per mock: it subclasses the mocked type (so
``isinstance`` holds) and overrides every method and property, single
underscore ones included (see ``ProtectedMock``), with a member that
forwards to ``MockHandler.dispatch``:

    method call      -> dispatch("<name>", bound arguments, declared result)
    property read    -> dispatch("get_<name>", ())
    property write   -> dispatch("set_<name>", (value,))

Call arguments are bound against the member's signature with defaults
applied, so every call of a member carries the same number of arguments.
Setups and verifications bind their argument specs the same way.

Output parameters are modeled with ``Ref`` boxes: pass a ``Ref`` in the
output position and a matching setup with ``out_value`` writes into it.

    class Parser(ABC):
        @abstractmethod
        def try_parse(self, text: str, result: Ref) -> bool: ...

    mock = MockFactory().create(Parser)
    mock.setup("try_parse", "42", It.out(int)).out_value(1, 42).returns(True)

    box = Ref()
    assert mock.object.try_parse("42", box) is True
    assert box.value == 42

Positions declared ``Out[T]`` (or set up with ``It.out(T)``) that a call
does not write receive the default value of ``T``.
"""

from __future__ import annotations

import abc
import inspect
import logging
import types
import typing
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

from doublet.builder import SequenceSetupBuilder, SetupBuilder
from doublet.chaos import ChaosPolicy, ChaosStatistics
from doublet.exceptions import NotAMockError
from doublet.handler import MockHandler
from doublet.matchers import AnyOfType, ArgumentSpec, as_spec
from doublet.recorder import Invocation
from doublet.setup import Setup
from doublet.times import Times
from doublet.types import (
    CallBaseRequested,
    DefaultValue,
    DispatchOutcome,
    MockBehavior,
    OutputChannelsApplied,
    ResultKind,
    outcome_value,
)

LOG = logging.getLogger("doublet.mock")

_CONTROLLER_ATTR = "_doublet_mock"

T = TypeVar("T")


class Ref(Generic[T]):
    """
    Mutable box standing in for an output or reference parameter.

    Matchers see the boxed value; setups with output channels write the
    new value back into the box.
    """

    __doublet_ref__ = True

    def __init__(self, value: Optional[T] = None) -> None:
        self.value = value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


class Out(Ref[T]):
    """
    Annotation for output-only parameters: ``result: Out[int]``.

    A call that does not write the position leaves the natural default of
    ``T`` in the box, whether or not a setup matched.
    """


def _output_types(params: Sequence[inspect.Parameter], hints: Dict[str, Any]) -> Dict[int, Any]:
    """Positions annotated ``Out[T]``, mapped to ``T`` (None for a bare ``Out``)."""
    found: Dict[int, Any] = {}
    for index, param in enumerate(params):
        hint = hints.get(param.name, param.annotation)
        if hint is Out:
            found[index] = None
        elif typing.get_origin(hint) is Out:
            args = typing.get_args(hint)
            found[index] = args[0] if args else None
    return found


# ─── Member model ─────────────────────────────────────────────────────


class MemberKind(str, Enum):
    METHOD = "method"
    PROPERTY = "property"


BaseCall = Callable[[Any, Tuple[Any, ...], Dict[str, Any]], Any]


@dataclass
class Member:
    """One mockable member of a mocked type; ``protected`` for ``_name`` members."""

    name: str
    kind: MemberKind
    result_type: Any = inspect.Signature.empty
    signature: Optional[inspect.Signature] = None
    is_async: bool = False
    doc: Optional[str] = None
    base_call: Optional[BaseCall] = None
    base_get: Optional[Callable[[Any], Any]] = None
    base_set: Optional[Callable[[Any, Any], Any]] = None
    output_types: Dict[int, Any] = field(default_factory=dict)
    protected: bool = False

    @property
    def result_kind(self) -> ResultKind:
        return ResultKind.from_annotation(self.result_type)

    def bind(self, args: Sequence[Any], kwargs: Dict[str, Any]) -> Tuple[Any, ...]:
        """
        Bind call (or spec) arguments to positions, defaults applied.

        Raises:
            TypeError: The arguments do not fit the member's signature.
        """
        if self.signature is None:
            if kwargs:
                raise TypeError(f"{self.name}() on an untyped mock takes positional arguments only")
            return tuple(args)
        bound = self.signature.bind(*args, **kwargs)
        bound.apply_defaults()
        return tuple(bound.arguments[name] for name in self.signature.parameters)


def _type_hints(obj: Any) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(obj)
    except Exception:
        LOG.debug("Could not resolve type hints of %r", obj, exc_info=True)
        raw = getattr(obj, "__annotations__", None) or {}
        return {k: v for k, v in raw.items() if not isinstance(v, str)}


def _is_protocol(spec_type: type) -> bool:
    return bool(getattr(spec_type, "_is_protocol", False))


def _method_member(spec_type: type, name: str, attr: Any) -> Member:
    is_static = isinstance(attr, staticmethod)
    is_class = isinstance(attr, classmethod)
    func = attr.__func__ if (is_static or is_class) else attr

    signature = inspect.signature(func)
    params = list(signature.parameters.values())
    if not is_static and params:
        params = params[1:]
    hints = _type_hints(func)
    result_type = hints.get("return", signature.return_annotation)
    if isinstance(result_type, str):
        result_type = inspect.Signature.empty

    base_call: Optional[BaseCall] = None
    if not getattr(func, "__isabstractmethod__", False) and not _is_protocol(spec_type):
        if is_static:
            base_call = lambda proxy, a, kw: func(*a, **kw)  # noqa: E731
        elif is_class:
            base_call = lambda proxy, a, kw: func(type(proxy), *a, **kw)  # noqa: E731
        else:
            base_call = lambda proxy, a, kw: func(proxy, *a, **kw)  # noqa: E731

    return Member(
        name=name,
        kind=MemberKind.METHOD,
        result_type=result_type,
        signature=signature.replace(parameters=params),
        is_async=inspect.iscoroutinefunction(func),
        doc=func.__doc__,
        base_call=base_call,
        output_types=_output_types(params, hints),
    )


def _property_member(spec_type: type, name: str, prop: property) -> Member:
    result_type: Any = inspect.Signature.empty
    if prop.fget is not None:
        result_type = _type_hints(prop.fget).get("return", inspect.Signature.empty)
    concrete = not _is_protocol(spec_type)
    base_get = prop.fget if concrete and prop.fget is not None and not getattr(
        prop.fget, "__isabstractmethod__", False) else None
    base_set = prop.fset if concrete and prop.fset is not None and not getattr(
        prop.fset, "__isabstractmethod__", False) else None
    return Member(
        name=name,
        kind=MemberKind.PROPERTY,
        result_type=result_type,
        doc=prop.__doc__,
        base_get=base_get,
        base_set=base_set,
    )


def _attribute_annotations(spec_type: type) -> Dict[str, Any]:
    try:
        hints = typing.get_type_hints(spec_type)
    except Exception:
        LOG.debug("Could not resolve attribute annotations of %r", spec_type, exc_info=True)
        hints = {}
        for klass in reversed(spec_type.__mro__):
            hints.update(klass.__dict__.get("__annotations__", {}))
    result = {}
    for name, tp in hints.items():
        if typing.get_origin(tp) is typing.ClassVar:
            continue
        if isinstance(tp, str):
            if "ClassVar" in tp:
                continue
            tp = inspect.Signature.empty
        result[name] = tp
    return result


_FRAMEWORK_PACKAGES = frozenset({"builtins", "abc", "collections", "typing", "typing_extensions", "pydantic"})


def _is_protected_name(name: str) -> bool:
    return name.startswith("_") and "__" not in name


def _member_names(spec_type: type) -> List[str]:
    """Public names plus single-underscore names defined by user classes."""
    names = [name for name in dir(spec_type) if not name.startswith("_")]
    for klass in spec_type.__mro__:
        if klass.__module__.split(".")[0] in _FRAMEWORK_PACKAGES:
            continue
        for name in vars(klass):
            if _is_protected_name(name) and name not in names:
                names.append(name)
    return names


def collect_members(spec_type: Optional[type]) -> Dict[str, Member]:
    """
    Methods, properties and annotated attributes of *spec_type*.

    Single-underscore methods and properties are collected as protected
    members: the proxy overrides them, but they are only reachable for
    setup and verification through ``Mock.protected()``. Dunder and
    name-mangled attributes are never mocked.
    """
    members: Dict[str, Member] = {}
    if spec_type is None:
        return members
    for name in _member_names(spec_type):
        try:
            attr = inspect.getattr_static(spec_type, name)
        except AttributeError:
            continue
        if isinstance(attr, property):
            member = _property_member(spec_type, name, attr)
        elif isinstance(attr, (staticmethod, classmethod)) or inspect.isfunction(attr):
            member = _method_member(spec_type, name, attr)
        else:
            continue
        member.protected = name.startswith("_")
        members[name] = member
    for name, annotation in _attribute_annotations(spec_type).items():
        if name.startswith("_") or name in members:
            continue
        members[name] = Member(name=name, kind=MemberKind.PROPERTY, result_type=annotation)
    return members


# ─── Proxy class ──────────────────────────────────────────────────────


def _is_ref(value: Any) -> bool:
    return bool(getattr(type(value), "__doublet_ref__", False))


def _controller_of(obj: Any) -> Optional["Mock"]:
    if not getattr(type(obj), "__doublet_proxy__", False):
        return None
    try:
        state = object.__getattribute__(obj, "__dict__")
    except AttributeError:
        return None
    return state.get(_CONTROLLER_ATTR)


def _require_controller(obj: Any) -> "Mock":
    controller = _controller_of(obj)
    if controller is None:
        raise NotAMockError(f"{obj!r} is not attached to a mock")
    return controller


def _method_impl(member: Member) -> Callable[..., Any]:
    if member.is_async:
        async def method(self, *args, **kwargs):
            value = _require_controller(self).invoke(self, member, args, kwargs)
            if inspect.isawaitable(value):
                value = await value
            return value
    else:
        def method(self, *args, **kwargs):
            return _require_controller(self).invoke(self, member, args, kwargs)
    method.__name__ = member.name
    method.__qualname__ = member.name
    method.__doc__ = member.doc
    return method


def _property_impl(member: Member) -> property:
    def fget(self):
        return _require_controller(self).get_property(self, member)

    def fset(self, value):
        _require_controller(self).set_property(self, member, value)

    return property(fget, fset, doc=member.doc)


def _proxy_getattr(self: Any, name: str) -> Any:
    if name.startswith("_"):
        raise AttributeError(name)
    controller = _controller_of(self)
    if controller is None:
        raise AttributeError(name)
    return controller.dynamic_attribute(self, name)


def _proxy_repr(self: Any) -> str:
    controller = _controller_of(self)
    return f"<mock {controller.name if controller else '?'}>"


def _proxy_eq(self: Any, other: Any) -> bool:
    return self is other


def _build_proxy_class(spec_type: Optional[type], members: Dict[str, Member]) -> type:
    namespace: Dict[str, Any] = {
        "__doublet_proxy__": True,
        "__getattr__": _proxy_getattr,
        "__repr__": _proxy_repr,
        "__eq__": _proxy_eq,
        "__hash__": object.__hash__,
    }
    for member in members.values():
        if member.kind == MemberKind.PROPERTY:
            namespace[member.name] = _property_impl(member)
        else:
            namespace[member.name] = _method_impl(member)

    name = f"{spec_type.__name__}Mock" if spec_type is not None else "Mock"
    bases: Tuple[type, ...] = (spec_type,) if spec_type is not None else (object,)
    try:
        cls = types.new_class(name, bases, exec_body=lambda ns: ns.update(namespace))
    except TypeError:
        LOG.debug("Cannot subclass %r; proxy will not pass isinstance checks", spec_type, exc_info=True)
        cls = types.new_class(name, (object,), exec_body=lambda ns: ns.update(namespace))
    if getattr(cls, "__abstractmethods__", None):
        cls.__abstractmethods__ = frozenset()
    return cls


def _instantiate(cls: type) -> Any:
    try:
        return object.__new__(cls)
    except TypeError:
        LOG.debug("object.__new__ rejected %r, falling back to a plain proxy", cls, exc_info=True)
        fallback = types.new_class(
            cls.__name__, (object,),
            exec_body=lambda ns: ns.update({k: v for k, v in vars(cls).items() if k not in ("__dict__", "__weakref__")}),
        )
        return object.__new__(fallback)


# ─── Controller ───────────────────────────────────────────────────────


class Mock:
    """
    Controller of one substitute object.

    Args:
        spec_type: Class, ABC or Protocol to imitate; None creates an
            untyped mock on which every attribute is a method.
        handler: Engine instance; a loose handler is created when omitted.
        name: Label used in reprs and log messages.
        chaos_seed: Seed applied by ``configure_chaos`` when none is given.
    """

    def __init__(
        self,
        spec_type: Optional[type] = None,
        handler: Optional[MockHandler] = None,
        name: Optional[str] = None,
        chaos_seed: Optional[int] = None,
    ) -> None:
        self.spec_type = spec_type
        self.handler = handler or MockHandler()
        if spec_type is None:
            self.handler.exact_arity = False
        self.name = name or (spec_type.__name__ if spec_type is not None else "mock")
        self.chaos_seed = chaos_seed
        self.interfaces: List[type] = []
        self._members = collect_members(spec_type)
        self._extra_members: Dict[str, Member] = {}

        proxy_class = _build_proxy_class(spec_type, self._members)
        self.object = _instantiate(proxy_class)
        object.__setattr__(self.object, _CONTROLLER_ATTR, self)
        LOG.debug("Created mock %s (%s)", self.name, self.handler.behavior.value)

    @staticmethod
    def get(obj: Any) -> "Mock":
        """
        Return the controller behind a substitute object.

        Raises:
            NotAMockError: *obj* is not a doublet substitute.
        """
        if isinstance(obj, Mock):
            return obj
        controller = _controller_of(obj)
        if controller is None:
            raise NotAMockError(f"Object of type {type(obj).__name__} is not a doublet mock")
        return controller

    # ─── Engine pass-through ──────────────────────────────────────────

    @property
    def behavior(self) -> MockBehavior:
        return self.handler.behavior

    @behavior.setter
    def behavior(self, value: MockBehavior) -> None:
        self.handler.behavior = MockBehavior(value)

    @property
    def default_value(self) -> DefaultValue:
        return self.handler.default_value_strategy

    @default_value.setter
    def default_value(self, value: DefaultValue) -> None:
        self.handler.default_value_strategy = value

    @property
    def call_base(self) -> bool:
        return self.handler.call_base

    @call_base.setter
    def call_base(self, value: bool) -> None:
        self.handler.call_base = value

    @property
    def invocations(self) -> List[Invocation]:
        return self.handler.invocations

    @property
    def setups(self) -> List[Setup]:
        return self.handler.setups

    # ─── Members ──────────────────────────────────────────────────────

    def member(self, name: str) -> Member:
        """
        Raises:
            AttributeError: The mocked type has no public member *name*.
        """
        found = self._members.get(name) or self._extra_members.get(name)
        if found is not None:
            if found.protected:
                raise AttributeError(
                    f"'{name}' is a protected member of '{self.name}'; use protected() to set it up"
                )
            return found
        if self.spec_type is None:
            return Member(name=name, kind=MemberKind.METHOD)
        raise AttributeError(f"'{self.name}' has no mockable member '{name}'")

    def protected_member(self, name: str) -> Member:
        """
        Raises:
            AttributeError: *name* is public, dunder or not a member of the mocked type.
        """
        if not _is_protected_name(name):
            raise AttributeError(
                f"'{name}' is not a protected member name; set it up on the mock directly"
            )
        found = self._members.get(name) or self._extra_members.get(name)
        if found is not None:
            return found
        if self.spec_type is None:
            return Member(name=name, kind=MemberKind.METHOD, protected=True)
        raise AttributeError(f"'{self.name}' has no protected member '{name}'")

    def dynamic_attribute(self, proxy: Any, name: str) -> Any:
        member = self.member(name)
        if member.kind == MemberKind.PROPERTY:
            return self.get_property(proxy, member)
        return types.MethodType(_method_impl(member), proxy)

    def invoke(self, proxy: Any, member: Member, args: Sequence[Any], kwargs: Dict[str, Any]) -> Any:
        bound = member.bind(args, kwargs)
        outcome = self.handler.dispatch(
            member.name, bound, member.result_kind, can_call_base=member.base_call is not None
        )
        if isinstance(outcome, CallBaseRequested):
            LOG.debug("Calling base implementation of %s.%s", self.name, member.name)
            return member.base_call(proxy, tuple(args), dict(kwargs))
        return self._apply(member, outcome, bound)

    def get_property(self, proxy: Any, member: Member) -> Any:
        result_type = None if member.result_type is inspect.Signature.empty else member.result_type
        outcome = self.handler.dispatch(
            "get_" + member.name,
            (),
            ResultKind.value(result_type),
            can_call_base=member.base_get is not None,
        )
        if isinstance(outcome, CallBaseRequested):
            return member.base_get(proxy)
        return outcome_value(outcome)

    def set_property(self, proxy: Any, member: Member, value: Any) -> None:
        outcome = self.handler.dispatch(
            "set_" + member.name,
            (value,),
            ResultKind.none(),
            can_call_base=member.base_set is not None,
        )
        if isinstance(outcome, CallBaseRequested):
            member.base_set(proxy, value)

    def _apply(self, member: Member, outcome: DispatchOutcome, bound: Tuple[Any, ...]) -> Any:
        assignments: Dict[int, Any] = {}
        if isinstance(outcome, OutputChannelsApplied):
            assignments.update(outcome.assignments)
        for index, result_type in self._output_only_positions(member).items():
            if index not in assignments and index < len(bound) and _is_ref(bound[index]):
                assignments[index] = self.handler.default_value(result_type, member.name)

        for index, value in assignments.items():
            target = bound[index] if index < len(bound) else None
            if _is_ref(target):
                target.value = value
            else:
                LOG.debug(
                    "Argument %d of %s is not a Ref; output value %r dropped",
                    index, member.name, value,
                )
        return outcome_value(outcome)

    def _output_only_positions(self, member: Member) -> Dict[int, Any]:
        """``Out[T]`` annotations plus ``It.out(T)`` positions of the member's setups."""
        positions = dict(member.output_types)
        for setup in self.handler.setups:
            if setup.signature != member.name:
                continue
            for index, spec in enumerate(setup.argument_specs):
                if spec.is_output_only and index not in positions:
                    positions[index] = getattr(spec, "expected_type", None)
        return positions

    def _bind_specs(self, member: Member, args: Sequence[Any], kwargs: Dict[str, Any]) -> Tuple[ArgumentSpec, ...]:
        return tuple(as_spec(v) for v in member.bind(args, kwargs))

    def _require_property(self, member: Member) -> Member:
        if member.kind != MemberKind.PROPERTY and self.spec_type is not None:
            raise AttributeError(f"'{member.name}' is a method of '{self.name}', not a property")
        return member

    def _property(self, name: str) -> Member:
        return self._require_property(self.member(name))

    # ─── Setup ────────────────────────────────────────────────────────

    def setup(self, name: str, *args: Any, **kwargs: Any) -> SetupBuilder:
        """
        Register a setup for method *name*; arguments are values or ``It`` specs.

        Setting up a property by name is the same as ``setup_get(name)``.
        """
        return self._setup_member(self.member(name), args, kwargs)

    def setup_sequence(self, name: str, *args: Any, **kwargs: Any) -> SequenceSetupBuilder:
        """Register a setup whose results are given one per call."""
        member = self.member(name)
        if member.kind == MemberKind.PROPERTY:
            return SequenceSetupBuilder(self.handler.register_setup("get_" + name, ()))
        specs = self._bind_specs(member, args, kwargs)
        return SequenceSetupBuilder(self.handler.register_setup(name, specs))

    def setup_get(self, name: str) -> SetupBuilder:
        return self._setup_get_member(self.member(name))

    def setup_set(self, name: str, value: Any = None) -> SetupBuilder:
        """Setup for assigning property *name*; any value matches when *value* is omitted."""
        return self._setup_set_member(self.member(name), value)

    def _setup_member(self, member: Member, args: Sequence[Any], kwargs: Dict[str, Any]) -> SetupBuilder:
        if member.kind == MemberKind.PROPERTY:
            return self._setup_get_member(member)
        specs = self._bind_specs(member, args, kwargs)
        return SetupBuilder(self.handler.register_setup(member.name, specs))

    def _setup_get_member(self, member: Member) -> SetupBuilder:
        self._require_property(member)
        return SetupBuilder(self.handler.register_setup("get_" + member.name, ()))

    def _setup_set_member(self, member: Member, value: Any) -> SetupBuilder:
        self._require_property(member)
        spec = AnyOfType() if value is None else as_spec(value)
        return SetupBuilder(self.handler.register_setup("set_" + member.name, (spec,)))

    def setup_property(self, name: str, default: Any = None) -> "Mock":
        """Give property *name* backing storage initialised to *default*."""
        self._property(name)
        self.handler.setup_property(name, default)
        return self

    def setup_all_properties(self) -> "Mock":
        """Give every public property backing storage; existing storage is kept."""
        properties = {
            m.name: m.result_type
            for m in list(self._members.values()) + list(self._extra_members.values())
            if m.kind == MemberKind.PROPERTY and not m.protected
        }
        self.handler.setup_all_properties(properties)
        return self

    def returns_default(self, result_type: Any, value: Any) -> "Mock":
        self.handler.returns_default(result_type, value)
        return self

    def raise_event(self, event_name: str, *args: Any) -> int:
        """Invoke every handler subscribed through ``add_<event_name>``."""
        return self.handler.raise_event(event_name, args)

    def as_(self, interface: type) -> "Mock":
        """
        Make the substitute also implement *interface* (an ABC or Protocol).

        Raises:
            TypeError: *interface* cannot register virtual subclasses.
        """
        if interface in self.interfaces:
            return self
        if not isinstance(interface, abc.ABCMeta):
            raise TypeError(f"as_() needs an ABC or Protocol, got {interface!r}")
        interface.register(type(self.object))
        self.interfaces.append(interface)
        for name, member in collect_members(interface).items():
            if name not in self._members:
                self._extra_members[name] = member
        LOG.debug("Mock %s now also implements %s", self.name, interface.__name__)
        return self

    def protected(self) -> "ProtectedMock":
        """Setups and verifications for ``_name`` members, addressed by name."""
        return ProtectedMock(self)

    # ─── Verification ─────────────────────────────────────────────────

    def verify(self, name: str, *args: Any, times: Optional[Times] = None, **kwargs: Any) -> List[Invocation]:
        return self._verify_member(self.member(name), args, kwargs, times)

    def verify_get(self, name: str, times: Optional[Times] = None) -> List[Invocation]:
        return self._verify_get_member(self.member(name), times)

    def verify_set(self, name: str, value: Any = None, times: Optional[Times] = None) -> List[Invocation]:
        return self._verify_set_member(self.member(name), value, times)

    def _verify_member(
        self, member: Member, args: Sequence[Any], kwargs: Dict[str, Any], times: Optional[Times]
    ) -> List[Invocation]:
        if member.kind == MemberKind.PROPERTY:
            return self._verify_get_member(member, times)
        specs = self._bind_specs(member, args, kwargs)
        return self.handler.verify(member.name, specs, times)

    def _verify_get_member(self, member: Member, times: Optional[Times]) -> List[Invocation]:
        self._require_property(member)
        return self.handler.verify("get_" + member.name, (), times)

    def _verify_set_member(self, member: Member, value: Any, times: Optional[Times]) -> List[Invocation]:
        self._require_property(member)
        spec = AnyOfType() if value is None else as_spec(value)
        return self.handler.verify("set_" + member.name, (spec,), times)

    def verify_add(self, event_name: str, handler: Any = None, times: Optional[Times] = None) -> List[Invocation]:
        spec = AnyOfType() if handler is None else as_spec(handler)
        return self.handler.verify("add_" + event_name, (spec,), times)

    def verify_remove(self, event_name: str, handler: Any = None, times: Optional[Times] = None) -> List[Invocation]:
        spec = AnyOfType() if handler is None else as_spec(handler)
        return self.handler.verify("remove_" + event_name, (spec,), times)

    def verify_no_other_calls(self) -> None:
        self.handler.verify_no_other_calls()

    def verify_all(self, include_unmarked: bool = False) -> None:
        self.handler.verify_all(include_unmarked)

    # ─── Chaos and reset ──────────────────────────────────────────────

    def configure_chaos(self, policy: Optional[ChaosPolicy] = None, **options: Any) -> "Mock":
        """
        Enable chaos with *policy*, or build one from keyword options.

        ``configure_chaos()`` with neither disables chaos.
        """
        if policy is None and options:
            options.setdefault("seed", self.chaos_seed)
            policy = ChaosPolicy(**options)
        self.handler.configure_chaos(policy)
        return self

    @property
    def chaos_statistics(self) -> ChaosStatistics:
        return self.handler.chaos_statistics

    def reset_chaos_statistics(self) -> None:
        self.handler.reset_chaos_statistics()

    def reset(self) -> None:
        self.handler.reset()

    def reset_calls(self) -> None:
        self.handler.reset_calls()

    def __repr__(self) -> str:
        return f"Mock({self.name}, behavior={self.handler.behavior.value})"


class ProtectedMock:
    """
    Setup and verification of a mock's ``_name`` members.

    Protected members are addressed by name only; the public surface of
    ``Mock`` rejects them so a typo in a public name cannot silently reach
    an internal helper.

        mock = factory.create(Report, call_base=True)
        mock.protected().setup("_header").returns("HEAD")
        assert mock.object.render() == "HEAD\\nbody"
        mock.protected().verify("_header")
    """

    def __init__(self, mock: Mock) -> None:
        self._mock = mock

    def setup(self, name: str, *args: Any, **kwargs: Any) -> SetupBuilder:
        return self._mock._setup_member(self._mock.protected_member(name), args, kwargs)

    def setup_get(self, name: str) -> SetupBuilder:
        return self._mock._setup_get_member(self._mock.protected_member(name))

    def setup_set(self, name: str, value: Any = None) -> SetupBuilder:
        return self._mock._setup_set_member(self._mock.protected_member(name), value)

    def verify(self, name: str, *args: Any, times: Optional[Times] = None, **kwargs: Any) -> List[Invocation]:
        return self._mock._verify_member(self._mock.protected_member(name), args, kwargs, times)

    def verify_get(self, name: str, times: Optional[Times] = None) -> List[Invocation]:
        return self._mock._verify_get_member(self._mock.protected_member(name), times)

    def verify_set(self, name: str, value: Any = None, times: Optional[Times] = None) -> List[Invocation]:
        return self._mock._verify_set_member(self._mock.protected_member(name), value, times)

    def __repr__(self) -> str:
        return f"ProtectedMock({self._mock.name})"
