"""Already-completed awaitables for asynchronous result types."""

from __future__ import annotations

from typing import Any, Generator


class Completed:
    """
    An awaitable that is already resolved to ``result``.

    Unlike a coroutine it may be awaited any number of times, so a single
    instance can back a static ``returns_async`` setup.
    """

    __slots__ = ("result",)

    def __init__(self, result: Any = None) -> None:
        self.result = result

    def __await__(self) -> Generator[Any, None, Any]:
        return self.result
        yield  # pragma: no cover

    def done(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Completed({self.result!r})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Completed):
            return self.result == other.result
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("Completed", repr(self.result)))
