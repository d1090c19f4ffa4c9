"""Cardinality expressions used by verification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Times:
    """
    Inclusive bounds on how many times a member may have been called.

    ``maximum`` of None means unbounded. Instances are built through the
    classmethods rather than directly:

        Times.once()          exactly 1
        Times.never()         exactly 0
        Times.exactly(3)
        Times.at_least(2)
        Times.at_most(5)
        Times.between(1, 3)   1, 2 or 3
    """

    minimum: int
    maximum: Optional[int]
    description: str

    def __post_init__(self) -> None:
        if self.minimum < 0:
            raise ValueError(f"call count must be >= 0, got {self.minimum}")
        if self.maximum is not None and self.maximum < self.minimum:
            raise ValueError(
                f"upper bound {self.maximum} is lower than lower bound {self.minimum}"
            )

    def validate(self, count: int) -> bool:
        if count < self.minimum:
            return False
        return self.maximum is None or count <= self.maximum

    @classmethod
    def once(cls) -> "Times":
        return cls(1, 1, "exactly 1")

    @classmethod
    def never(cls) -> "Times":
        return cls(0, 0, "exactly 0")

    @classmethod
    def exactly(cls, count: int) -> "Times":
        return cls(count, count, f"exactly {count}")

    @classmethod
    def at_least(cls, count: int) -> "Times":
        return cls(count, None, f"at least {count}")

    @classmethod
    def at_least_once(cls) -> "Times":
        return cls.at_least(1)

    @classmethod
    def at_most(cls, count: int) -> "Times":
        if count < 0:
            raise ValueError(f"call count must be >= 0, got {count}")
        return cls(0, count, f"at most {count}")

    @classmethod
    def between(cls, low: int, high: int) -> "Times":
        return cls(low, high, f"between {low} and {high}")

    def __str__(self) -> str:
        return self.description
