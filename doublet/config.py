"""Configuration management for doublet.

Loads mock defaults from environment variables with sensible defaults.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from doublet.types import DefaultValue, MockBehavior

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class MockSettings:
    """Defaults applied to every mock a factory or repository creates."""
    behavior: MockBehavior = MockBehavior.LOOSE
    default_value: Optional[DefaultValue] = None  # None = natural zero values
    call_base: bool = False
    log_level: str = "WARNING"
    chaos_seed: Optional[int] = None

    @classmethod
    def from_env(cls) -> "MockSettings":
        default_value = os.getenv("DOUBLET_DEFAULT_VALUE", "unset").strip().lower()
        chaos_seed = os.getenv("DOUBLET_CHAOS_SEED", "").strip()
        return cls(
            behavior=MockBehavior(os.getenv("DOUBLET_BEHAVIOR", "loose").strip().lower()),
            default_value=None if default_value in ("", "unset") else DefaultValue(default_value),
            call_base=os.getenv("DOUBLET_CALL_BASE", "false").strip().lower() in _TRUE_VALUES,
            log_level=os.getenv("DOUBLET_LOG_LEVEL", "WARNING").strip().upper(),
            chaos_seed=int(chaos_seed) if chaos_seed else None,
        )


def configure_logging(level: Optional[str] = None) -> None:
    """Send doublet logs to stderr; for scripts, the library never calls this itself."""
    logging.basicConfig(
        level=level or MockSettings.from_env().log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
