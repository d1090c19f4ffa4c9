"""
Chaos mode: probabilistic fault and latency injection.

Applied to every dispatched invocation before setup matching, so it can
fail calls whether or not a setup would have matched. With a seed the
sequence of triggered/untriggered outcomes is reproducible for a fixed
call sequence.

Example::

    handler.configure_chaos(ChaosPolicy(
        failure_rate=0.3,
        possible_exceptions=[TimeoutError("slow"), ConnectionError()],
        timeout_ms=0,
        seed=42,
    ))
"""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass, replace
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

LOG = logging.getLogger("doublet.chaos")

# Shared by every unseeded policy in the process; draws are serialized.
_PROCESS_RNG = random.Random()
_PROCESS_RNG_LOCK = threading.Lock()


class ChaosPolicy(BaseModel):
    """Validated chaos configuration."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    failure_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    possible_exceptions: List[Any] = Field(default_factory=list)
    timeout_ms: int = Field(default=0, ge=0)
    seed: Optional[int] = None

    @field_validator("possible_exceptions", mode="before")
    @classmethod
    def _none_means_empty(cls, value: Any) -> Any:
        if value is None:
            return []
        return list(value)

    @field_validator("possible_exceptions")
    @classmethod
    def _only_exceptions(cls, value: List[Any]) -> List[Any]:
        for item in value:
            is_instance = isinstance(item, BaseException)
            is_class = isinstance(item, type) and issubclass(item, BaseException)
            if not (is_instance or is_class):
                raise ValueError(
                    f"possible_exceptions entries must be exceptions, got {item!r}"
                )
        return value


@dataclass
class ChaosStatistics:
    """Monotonic counters for one mock instance (until reset)."""

    total_invocations: int = 0
    chaos_triggered_count: int = 0
    timeout_triggered_count: int = 0

    @property
    def actual_failure_rate(self) -> float:
        if self.total_invocations == 0:
            return 0.0
        return self.chaos_triggered_count / self.total_invocations

    def reset(self) -> None:
        self.total_invocations = 0
        self.chaos_triggered_count = 0
        self.timeout_triggered_count = 0

    def to_dict(self) -> dict:
        return {
            "total_invocations": self.total_invocations,
            "chaos_triggered_count": self.chaos_triggered_count,
            "timeout_triggered_count": self.timeout_triggered_count,
            "actual_failure_rate": self.actual_failure_rate,
        }


class ChaosInjector:
    """
    Applies a ChaosPolicy to invocations of one mock.

    Statistics survive policy changes; ``configure(None)`` turns chaos off.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._policy: Optional[ChaosPolicy] = None
        self._rng: Optional[random.Random] = None
        self.statistics = ChaosStatistics()

    @property
    def policy(self) -> Optional[ChaosPolicy]:
        return self._policy

    @property
    def enabled(self) -> bool:
        return self._policy is not None

    def configure(self, policy: Optional[ChaosPolicy]) -> None:
        with self._lock:
            self._policy = policy
            if policy is not None and policy.seed is not None:
                self._rng = random.Random(policy.seed)
            else:
                self._rng = None
        if policy is None:
            LOG.info("Chaos mode disabled")
        else:
            LOG.info(
                "Chaos mode enabled: failure_rate=%.3f, timeout_ms=%d, exceptions=%d, seed=%s",
                policy.failure_rate, policy.timeout_ms,
                len(policy.possible_exceptions), policy.seed,
            )

    def apply(self, signature: str) -> None:
        """
        Run the policy for one invocation.

        Raises:
            The selected configured exception when the draw triggers.
        """
        policy = self._policy
        if policy is None:
            return

        with self._lock:
            self.statistics.total_invocations += 1
            if policy.timeout_ms > 0:
                self.statistics.timeout_triggered_count += 1

        if policy.timeout_ms > 0:
            LOG.debug("Chaos delay of %dms on %s", policy.timeout_ms, signature)
            time.sleep(policy.timeout_ms / 1000.0)

        error = None
        with self._lock:
            triggered, index = self._draw(policy)
            if triggered:
                self.statistics.chaos_triggered_count += 1
                if index is not None:
                    error = policy.possible_exceptions[index]

        if triggered:
            if error is None:
                LOG.debug("Chaos triggered on %s with no exceptions configured", signature)
                return
            LOG.debug("Chaos raising %r on %s", error, signature)
            raise error

    def _draw(self, policy: ChaosPolicy) -> tuple:
        if self._rng is not None:
            return self._draw_from(self._rng, policy)
        with _PROCESS_RNG_LOCK:
            return self._draw_from(_PROCESS_RNG, policy)

    @staticmethod
    def _draw_from(rng: random.Random, policy: ChaosPolicy) -> tuple:
        if rng.random() >= policy.failure_rate:
            return False, None
        if not policy.possible_exceptions:
            return True, None
        return True, rng.randrange(len(policy.possible_exceptions))

    def snapshot(self) -> ChaosStatistics:
        """Copy of the counters; later invocations do not change it."""
        with self._lock:
            return replace(self.statistics)

    def reset_statistics(self) -> None:
        with self._lock:
            self.statistics.reset()
