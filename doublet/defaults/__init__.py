"""
Default values for unmatched invocations on loose mocks.
"""

from doublet.defaults.awaitables import Completed
from doublet.defaults.empty import EmptyDefaultValueProvider, empty_value
from doublet.defaults.nested import MockDefaultValueProvider
from doublet.defaults.provider import DefaultValueProvider, build_default_value_provider, natural_zero

__all__ = [
    "Completed",
    "DefaultValueProvider",
    "EmptyDefaultValueProvider",
    "MockDefaultValueProvider",
    "build_default_value_provider",
    "empty_value",
    "natural_zero",
]
