"""
Runtime helpers over type annotations.

Matchers and default-value providers receive types as written in
annotations (``int``, ``List[str]``, ``Optional[Foo]``, ``Awaitable[int]``).
These helpers reduce them to something ``isinstance`` and constructors
can work with.
"""

from __future__ import annotations

import asyncio
import collections.abc
import inspect
import types as _pytypes
import typing
from typing import Any, Optional, Tuple

_NONE_TYPE = type(None)

_AWAITABLE_ORIGINS = (
    collections.abc.Awaitable,
    collections.abc.Coroutine,
    asyncio.Future,
    asyncio.Task,
)


def is_wildcard_type(tp: Any) -> bool:
    """True for annotations that accept any value."""
    return tp is None or tp is Any or tp is object or tp is inspect.Signature.empty


def union_members(tp: Any) -> Optional[Tuple[Any, ...]]:
    """Return the members of a Union (including ``X | Y``), or None."""
    origin = typing.get_origin(tp)
    if origin is typing.Union:
        return typing.get_args(tp)
    union_type = getattr(_pytypes, "UnionType", None)
    if union_type is not None and isinstance(tp, union_type):
        return typing.get_args(tp)
    return None


def unwrap_optional(tp: Any) -> Tuple[Any, bool]:
    """
    Strip ``None`` from ``Optional[X]``.

    Returns:
        (inner type, whether None was part of the union). Unions with more
        than one non-None member are returned unchanged.
    """
    members = union_members(tp)
    if members is None or _NONE_TYPE not in members:
        return tp, False
    rest = tuple(m for m in members if m is not _NONE_TYPE)
    if len(rest) == 1:
        return rest[0], True
    return typing.Union[rest], True  # type: ignore[return-value]


def runtime_class(tp: Any) -> Optional[type]:
    """Return the runtime class behind an annotation, or None if there is none."""
    if isinstance(tp, type) and typing.get_origin(tp) is None:
        return tp
    origin = typing.get_origin(tp)
    if isinstance(origin, type):
        return origin
    return None


def is_instance_of(value: Any, tp: Any) -> bool:
    """``isinstance`` that understands typing constructs."""
    if is_wildcard_type(tp):
        return True
    members = union_members(tp)
    if members is not None:
        return any(is_instance_of(value, m) for m in members)
    if tp is _NONE_TYPE:
        return value is None
    if typing.get_origin(tp) is typing.Literal:
        return value in typing.get_args(tp)
    cls = runtime_class(tp)
    if cls is None:
        # TypeVar, NewType and friends: nothing to check against.
        return True
    try:
        return isinstance(value, cls)
    except TypeError:
        return True


def awaitable_result(tp: Any) -> Tuple[bool, Any]:
    """
    Detect awaitable result annotations.

    Returns:
        (is_awaitable, inner result type). ``Coroutine[Y, S, R]`` yields R;
        bare ``Awaitable`` yields None.
    """
    cls = runtime_class(tp)
    if cls is None or not any(_safe_issubclass(cls, o) for o in _AWAITABLE_ORIGINS):
        return False, None
    args = typing.get_args(tp)
    if not args:
        return True, None
    if _safe_issubclass(cls, collections.abc.Coroutine) and len(args) == 3:
        return True, args[2]
    return True, args[0]


def is_abstract_type(tp: Any) -> bool:
    """True for ABCs with abstract members and for typing.Protocol classes."""
    cls = runtime_class(tp)
    if cls is None or cls.__module__ in ("builtins", "typing", "collections.abc"):
        return False
    if getattr(cls, "_is_protocol", False):
        return True
    return inspect.isabstract(cls)


def _safe_issubclass(cls: Any, parent: type) -> bool:
    try:
        return issubclass(cls, parent)
    except TypeError:
        return False
