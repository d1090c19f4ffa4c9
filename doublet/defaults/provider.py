"""
Abstract default-value provider interface.

A provider supplies the result of an unmatched invocation on a loose mock.
Strategies are selected at runtime through ``build_default_value_provider``;
test authors can also plug in their own subclass.
"""

from __future__ import annotations

import decimal
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from doublet.typeinfo import unwrap_optional
from doublet.types import DefaultValue

if TYPE_CHECKING:
    from doublet.handler import MockHandler

LOG = logging.getLogger("doublet.defaults.provider")

_NATURAL_ZEROS = {
    bool: False,
    int: 0,
    float: 0.0,
    complex: 0j,
    decimal.Decimal: decimal.Decimal(0),
}


class DefaultValueProvider(ABC):
    """
    Interface for default-value strategies.

    Implementations must return a value assignable to *result_type*, or
    None when they have nothing better to offer.
    """

    @abstractmethod
    def get_default_value(self, result_type: Any, handler: "MockHandler", signature: str) -> Any:
        """
        Produce the default result for an unmatched call.

        Args:
            result_type: Declared result type of the member (may be None).
            handler: The mock handler dispatching the call.
            signature: Member signature, used to key cached nested mocks.
        """
        ...


def natural_zero(result_type: Any) -> Any:
    """
    Zero value for numeric and boolean types, None for everything else.

    ``Optional[X]`` resolves to None.
    """
    inner, optional = unwrap_optional(result_type)
    if optional:
        return None
    if isinstance(inner, type):
        for cls, zero in _NATURAL_ZEROS.items():
            if inner is cls:
                return zero
        # IntEnum and friends are left alone; plain numeric subclasses are not.
        for cls, zero in _NATURAL_ZEROS.items():
            if issubclass(inner, cls) and not hasattr(inner, "__members__"):
                try:
                    return inner(zero)
                except Exception:
                    LOG.debug("Could not build zero for %r", inner, exc_info=True)
                    return None
    return None


def build_default_value_provider(strategy: DefaultValue) -> DefaultValueProvider:
    """
    Factory: create the provider for a default-value strategy.

    Args:
        strategy: DefaultValue.EMPTY or DefaultValue.MOCK

    Returns:
        DefaultValueProvider instance

    Raises:
        ValueError: Unknown strategy
    """
    strategy = DefaultValue(strategy)
    if strategy == DefaultValue.EMPTY:
        from doublet.defaults.empty import EmptyDefaultValueProvider

        return EmptyDefaultValueProvider()

    elif strategy == DefaultValue.MOCK:
        from doublet.defaults.nested import MockDefaultValueProvider

        return MockDefaultValueProvider()

    else:
        raise ValueError(f"Unknown default value strategy: {strategy!r}. Supported: 'empty', 'mock'")
