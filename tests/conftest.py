"""
Shared test fixtures and pytest configuration.

Markers:
    @pytest.mark.concurrency: Spawns threads against a single mock
    @pytest.mark.slow: Sleeps (chaos latency) or runs many iterations

Run subsets:
    pytest -m concurrency             # only thread-safety tests
    pytest -m "not slow"              # skip slow tests (fast CI)
"""

import logging

import pytest

from doublet import MockFactory, MockHandler, MockSettings


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "concurrency: spawns threads against a single mock")
    config.addinivalue_line("markers", "slow: sleeps or runs many iterations")


@pytest.fixture
def factory():
    """Factory with plain defaults (loose, natural zero values)."""
    return MockFactory(MockSettings())


@pytest.fixture
def handler():
    """Bare engine, no adapter in front of it."""
    return MockHandler()


@pytest.fixture
def strict_handler():
    return MockHandler(behavior="strict")


@pytest.fixture
def doublet_logs(caplog):
    """Capture doublet log records at DEBUG."""
    caplog.set_level(logging.DEBUG, logger="doublet")
    return caplog
