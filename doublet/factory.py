"""
Mock construction.

MockFactory is an explicit object rather than a global: it carries the
settings new mocks start from and builds the nested mocks the MOCK
default-value strategy asks for.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from doublet.config import MockSettings
from doublet.handler import MockHandler
from doublet.mock import Mock
from doublet.types import DefaultValue, MockBehavior

LOG = logging.getLogger("doublet.factory")


class MockFactory:
    """Creates mocks configured from a MockSettings instance."""

    def __init__(self, settings: Optional[MockSettings] = None) -> None:
        self.settings = settings or MockSettings()

    def create(
        self,
        spec_type: Optional[type] = None,
        behavior: Optional[MockBehavior] = None,
        default_value: Optional[DefaultValue] = None,
        call_base: Optional[bool] = None,
        name: Optional[str] = None,
    ) -> Mock:
        """
        Create a mock of *spec_type*.

        Arguments left as None come from the factory settings.
        """
        handler = MockHandler(
            behavior=behavior if behavior is not None else self.settings.behavior,
            default_value=default_value if default_value is not None else self.settings.default_value,
            call_base=call_base if call_base is not None else self.settings.call_base,
        )
        handler.nested_factory = lambda tp: self._create_nested(tp, handler)
        return Mock(spec_type, handler, name=name, chaos_seed=self.settings.chaos_seed)

    def _create_nested(self, spec_type: type, parent: MockHandler) -> Any:
        strategy = parent.default_value_strategy if parent.has_explicit_default_strategy else None
        nested = self.create(spec_type, behavior=MockBehavior.LOOSE, default_value=strategy)
        return nested.object


def mock_of(spec_type: type, factory: Optional[MockFactory] = None, **property_values: Any) -> Any:
    """
    Build a substitute whose properties return the given values.

        user = mock_of(User, name="ada", age=36)
        assert user.name == "ada"

    Returns:
        The substitute object; ``Mock.get`` returns its controller.
    """
    mock = (factory or MockFactory()).create(spec_type)
    for name, value in property_values.items():
        mock.setup_get(name).returns(value)
    return mock.object
