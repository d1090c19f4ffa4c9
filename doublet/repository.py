"""Groups of mocks sharing defaults and verified together."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Any, List, Optional

from doublet.config import MockSettings
from doublet.factory import MockFactory
from doublet.mock import Mock
from doublet.types import DefaultValue, MockBehavior

LOG = logging.getLogger("doublet.repository")


class MockRepository:
    """
    Creates mocks with shared behavior and default-value strategy and runs
    batch verification and resets over all of them.

        repo = MockRepository(MockBehavior.STRICT)
        users = repo.create(UserStore)
        mailer = repo.create(Mailer)
        ...
        repo.verify_all()
    """

    def __init__(
        self,
        behavior: Optional[MockBehavior] = None,
        default_value: Optional[DefaultValue] = None,
        settings: Optional[MockSettings] = None,
    ) -> None:
        settings = replace(settings) if settings is not None else MockSettings()
        if behavior is not None:
            settings.behavior = MockBehavior(behavior)
        if default_value is not None:
            settings.default_value = DefaultValue(default_value)
        self.factory = MockFactory(settings)
        self._lock = threading.Lock()
        self._mocks: List[Mock] = []

    @property
    def behavior(self) -> MockBehavior:
        return self.factory.settings.behavior

    @property
    def default_value(self) -> Optional[DefaultValue]:
        return self.factory.settings.default_value

    @property
    def mocks(self) -> List[Mock]:
        with self._lock:
            return list(self._mocks)

    def create(
        self,
        spec_type: Optional[type] = None,
        behavior: Optional[MockBehavior] = None,
        default_value: Optional[DefaultValue] = None,
        **options: Any,
    ) -> Mock:
        """Create and register a mock; unset arguments use the repository defaults."""
        mock = self.factory.create(spec_type, behavior=behavior, default_value=default_value, **options)
        self.register(mock)
        return mock

    def register(self, mock: Any) -> None:
        """
        Add an existing mock (controller or substitute object).

        Raises:
            NotAMockError: *mock* is not a doublet mock.
        """
        controller = Mock.get(mock)
        with self._lock:
            if not any(m is controller for m in self._mocks):
                self._mocks.append(controller)

    def verify(self) -> None:
        """Check the verifiable setups of every registered mock."""
        for mock in self.mocks:
            mock.verify_all()

    def verify_all(self) -> None:
        """Check that every setup of every registered mock fired."""
        for mock in self.mocks:
            mock.verify_all(include_unmarked=True)

    def verify_no_other_calls(self) -> None:
        for mock in self.mocks:
            mock.verify_no_other_calls()

    def reset(self) -> None:
        for mock in self.mocks:
            mock.reset()
        LOG.info("Reset %d mock(s)", len(self.mocks))

    def reset_calls(self) -> None:
        for mock in self.mocks:
            mock.reset_calls()
