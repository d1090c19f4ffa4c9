"""Empty strategy: zero values, empty strings and empty collections."""

from __future__ import annotations

import collections.abc
import logging
from typing import Any

from doublet.defaults.provider import DefaultValueProvider, natural_zero
from doublet.typeinfo import runtime_class, unwrap_optional

LOG = logging.getLogger("doublet.defaults.empty")

# Checked in order; the first class the result type is a subclass of wins.
_EMPTY_FACTORIES = (
    (str, str),
    (bytes, bytes),
    (bytearray, bytearray),
    (frozenset, frozenset),
    (tuple, tuple),
    (list, list),
    (dict, dict),
    (set, set),
)

# Abstract collection types resolve to a concrete empty container.
_ABSTRACT_COLLECTIONS = (
    (collections.abc.MutableMapping, dict),
    (collections.abc.Mapping, dict),
    (collections.abc.MutableSet, set),
    (collections.abc.Set, frozenset),
    (collections.abc.MutableSequence, list),
    (collections.abc.Sequence, tuple),
    (collections.abc.Iterator, lambda: iter(())),
    (collections.abc.Collection, list),
    (collections.abc.Iterable, list),
)


class EmptyDefaultValueProvider(DefaultValueProvider):
    """Builds language-default values and empty collections."""

    def get_default_value(self, result_type: Any, handler: Any, signature: str) -> Any:
        return empty_value(result_type)


def empty_value(result_type: Any) -> Any:
    """Empty value for *result_type*, or None when there is no natural one."""
    inner, optional = unwrap_optional(result_type)
    if optional:
        return None
    zero = natural_zero(inner)
    if zero is not None:
        return zero

    cls = runtime_class(inner)
    if cls is None:
        return None

    for base, factory in _EMPTY_FACTORIES:
        if _subclass(cls, base):
            try:
                return cls() if cls is not base else factory()
            except Exception:
                LOG.debug("Could not instantiate %r, using %r", cls, base, exc_info=True)
                return factory()

    for base, factory in _ABSTRACT_COLLECTIONS:
        if cls is base or (cls.__module__ == "collections.abc" and _subclass(cls, base)):
            return factory()
    return None


def _subclass(cls: type, base: type) -> bool:
    try:
        return issubclass(cls, base)
    except TypeError:
        return False
