"""
Mock strategy: nested substitutes for abstract result types.

Scalars, strings and collections get the same values as the empty
strategy. Abstract result types (ABCs with abstract members, Protocols)
get a loose nested mock, created once per (member signature, type) and
cached on the handler, so ``a.b.c`` keeps returning the same object.

Construction goes through the handler's ``nested_factory``. A per-thread
stack of types under construction detects factories that re-enter the
construction of a type they are already building. Only a custom nested
factory can trip it: the default one from ``MockFactory`` returns a mock
whose own nested members are built lazily on first access, after the
outer construction has finished, so self-referencing types like
``Node.child -> Node`` never raise.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, List

from doublet.defaults.empty import empty_value
from doublet.defaults.provider import DefaultValueProvider
from doublet.exceptions import RecursiveMockError
from doublet.typeinfo import is_abstract_type, runtime_class, unwrap_optional

LOG = logging.getLogger("doublet.defaults.nested")

_IN_PROGRESS = threading.local()


def _construction_stack() -> List[type]:
    stack = getattr(_IN_PROGRESS, "stack", None)
    if stack is None:
        stack = []
        _IN_PROGRESS.stack = stack
    return stack


class MockDefaultValueProvider(DefaultValueProvider):
    """Empty values for data types, cached nested mocks for abstract types."""

    def get_default_value(self, result_type: Any, handler: Any, signature: str) -> Any:
        inner, _ = unwrap_optional(result_type)
        value = empty_value(inner)
        if value is not None or not is_abstract_type(inner):
            return value

        cls = runtime_class(inner)
        factory = handler.nested_factory
        if factory is None:
            LOG.debug("No nested factory configured; %s returns None", signature)
            return None
        return handler.get_or_create_nested(signature, cls, lambda: self._construct(cls, factory))

    @staticmethod
    def _construct(cls: type, factory: Any) -> Any:
        stack = _construction_stack()
        if cls in stack:
            raise RecursiveMockError(stack[stack.index(cls):] + [cls])
        stack.append(cls)
        try:
            LOG.debug("Creating nested mock for %s", cls.__name__)
            return factory(cls)
        finally:
            stack.pop()
