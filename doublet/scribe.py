"""
Recording proxy around a real object.

A ``Scribe`` wraps an existing implementation and records every public
call and attribute read made through ``scribe.object``: arguments bound
against the real signature, the result or raised exception, and the
wall time the call took. Calls still run against the real object.

    scribe = Scribe(RealPricing())
    scribe.object.quote("AAPL")
    scribe.recordings        # [Recording(quote('AAPL') -> 187.5)]
    scribe.invocations       # the same calls as engine Invocations

The recordings can then stand in for the real object or check that code
run against a mock makes the same calls:

    mock = scribe.replay()                  # setups answering as the real object did
    ReplayContext(scribe.recordings).verify_mock(mock)
"""

from __future__ import annotations

import csv
import inspect
import io
import json
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from doublet.builder import SequenceSetupBuilder
from doublet.exceptions import VerificationError
from doublet.factory import MockFactory
from doublet.matchers import as_specs
from doublet.mock import Mock
from doublet.recorder import Invocation, InvocationRecorder

LOG = logging.getLogger("doublet.scribe")

_SCRIBE_ATTR = "_doublet_scribe"
_CSV_COLUMNS = ("signature", "arguments", "result", "error", "duration_ms", "timestamp")


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return repr(value)


@dataclass(frozen=True)
class Recording:
    """One call made through a scribe proxy."""

    signature: str
    arguments: Tuple[Any, ...] = ()
    result: Any = None
    error: Optional[BaseException] = None
    duration_ms: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def describe(self) -> str:
        call = f"{self.signature}({', '.join(repr(a) for a in self.arguments)})"
        if self.error is not None:
            return f"{call} raised {self.error!r}"
        return f"{call} -> {self.result!r}"

    def to_json(self) -> Dict[str, Any]:
        return {
            "signature": self.signature,
            "arguments": _jsonable(self.arguments),
            "result": _jsonable(self.result),
            "error": repr(self.error) if self.error is not None else None,
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp.isoformat(),
        }

    def __repr__(self) -> str:
        return f"Recording({self.describe()})"


def _bind(fn: Callable[..., Any], args: Sequence[Any], kwargs: Dict[str, Any]) -> Tuple[Any, ...]:
    """Arguments in parameter order with defaults applied, as mocks bind them."""
    try:
        bound = inspect.signature(fn).bind(*args, **kwargs)
    except (TypeError, ValueError):
        return tuple(args) + tuple(kwargs.values())
    bound.apply_defaults()
    return tuple(bound.arguments.values())


class _ScribeProxy:
    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self.__dict__[_SCRIBE_ATTR].read(name)

    def __setattr__(self, name: str, value: Any) -> None:
        self.__dict__[_SCRIBE_ATTR].write(name, value)

    def __repr__(self) -> str:
        return f"<scribe {self.__dict__[_SCRIBE_ATTR].name}>"


class Scribe:
    """
    Records the calls made to *target* through ``Scribe.object``.

    Args:
        target: The real implementation; every call is forwarded to it.
        name: Label used in log messages; defaults to the target's class name.
    """

    def __init__(self, target: Any, name: Optional[str] = None) -> None:
        self.target = target
        self.name = name or type(target).__name__
        self._lock = threading.Lock()
        self._recordings: List[Recording] = []
        self._recorder = InvocationRecorder()
        self.object = object.__new__(_ScribeProxy)
        object.__setattr__(self.object, _SCRIBE_ATTR, self)

    @property
    def recordings(self) -> List[Recording]:
        with self._lock:
            return list(self._recordings)

    @property
    def invocations(self) -> List[Invocation]:
        """The recorded calls as engine invocations, in call order."""
        return self._recorder.snapshot()

    def clear(self) -> None:
        with self._lock:
            self._recordings.clear()
        self._recorder.clear()

    # ─── Capture ──────────────────────────────────────────────────────

    def read(self, name: str) -> Any:
        static = inspect.getattr_static(self.target, name, None)
        if not (inspect.isroutine(static) or isinstance(static, (staticmethod, classmethod))):
            return self._capture("get_" + name, (), lambda: getattr(self.target, name))

        value = getattr(self.target, name)
        if inspect.iscoroutinefunction(value):
            async def async_method(*args: Any, **kwargs: Any) -> Any:
                arguments = _bind(value, args, kwargs)
                return await self._capture_async(name, arguments, lambda: value(*args, **kwargs))
            return async_method

        def method(*args: Any, **kwargs: Any) -> Any:
            return self._capture(name, _bind(value, args, kwargs), lambda: value(*args, **kwargs))
        return method

    def write(self, name: str, value: Any) -> None:
        self._capture("set_" + name, (value,), lambda: setattr(self.target, name, value))

    def _capture(self, signature: str, arguments: Tuple[Any, ...], fn: Callable[[], Any]) -> Any:
        self._recorder.record(signature, arguments)
        started = time.monotonic()
        try:
            result = fn()
        except Exception as exc:
            self._store(signature, arguments, None, exc, started)
            raise
        self._store(signature, arguments, result, None, started)
        return result

    async def _capture_async(self, signature: str, arguments: Tuple[Any, ...], fn: Callable[[], Any]) -> Any:
        self._recorder.record(signature, arguments)
        started = time.monotonic()
        try:
            result = await fn()
        except Exception as exc:
            self._store(signature, arguments, None, exc, started)
            raise
        self._store(signature, arguments, result, None, started)
        return result

    def _store(
        self,
        signature: str,
        arguments: Tuple[Any, ...],
        result: Any,
        error: Optional[BaseException],
        started: float,
    ) -> None:
        recording = Recording(
            signature=signature,
            arguments=arguments,
            result=result,
            error=error,
            duration_ms=(time.monotonic() - started) * 1000.0,
        )
        with self._lock:
            self._recordings.append(recording)
        LOG.debug("%s: %s", self.name, recording.describe())

    # ─── Export and replay ────────────────────────────────────────────

    def export_json(self, indent: Optional[int] = 2) -> str:
        return export_json(self.recordings, indent)

    def export_csv(self) -> str:
        return export_csv(self.recordings)

    def replay(self, factory: Optional[MockFactory] = None, spec_type: Optional[type] = None) -> Mock:
        """Mock of the target's type answering every recorded call as the target did."""
        return replay_mock(self.recordings, spec_type or type(self.target), factory)


def export_json(recordings: Sequence[Recording], indent: Optional[int] = 2) -> str:
    """Recordings as a JSON array; values JSON cannot hold are written as their repr."""
    return json.dumps([r.to_json() for r in recordings], indent=indent)


def export_csv(recordings: Sequence[Recording]) -> str:
    """Recordings as CSV with a header row; arguments and result are JSON encoded."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(_CSV_COLUMNS)
    for recording in recordings:
        data = recording.to_json()
        writer.writerow([
            data["signature"],
            json.dumps(data["arguments"]),
            json.dumps(data["result"]),
            data["error"] or "",
            f"{data['duration_ms']:.3f}",
            data["timestamp"],
        ])
    return buffer.getvalue()


def replay_mock(
    recordings: Sequence[Recording],
    spec_type: Optional[type],
    factory: Optional[MockFactory] = None,
) -> Mock:
    """
    Build a loose mock whose setups reproduce *recordings*.

    Calls with equal signature and arguments are answered in recorded
    order; the last answer repeats. Recorded exceptions are raised again.
    Property reads are replayed as ``get_<name>`` setups.
    """
    mock = (factory or MockFactory()).create(spec_type)

    groups: List[Tuple[str, Tuple[Any, ...], List[Recording]]] = []
    for recording in recordings:
        for signature, arguments, members in groups:
            if signature == recording.signature and arguments == recording.arguments:
                members.append(recording)
                break
        else:
            groups.append((recording.signature, recording.arguments, [recording]))

    for signature, arguments, members in groups:
        if signature.startswith("set_"):
            continue
        builder = SequenceSetupBuilder(mock.handler.register_setup(signature, as_specs(arguments)))
        for recording in members:
            if recording.error is not None:
                builder.throws(recording.error)
            else:
                builder.returns(recording.result)
    LOG.debug("Replaying %d recorded call(s) through %r", len(recordings), mock)
    return mock


class ReplayContext:
    """
    Walks a list of recordings in order and checks calls against them.

        replay = ReplayContext(scribe.recordings)
        assert replay.verify_next("quote", "AAPL")
    """

    def __init__(self, recordings: Sequence[Recording]) -> None:
        self._recordings = list(recordings)
        self._position = 0
        self._lock = threading.Lock()

    @property
    def recordings(self) -> List[Recording]:
        return list(self._recordings)

    @property
    def position(self) -> int:
        return self._position

    def next_expected(self) -> Optional[Recording]:
        with self._lock:
            if self._position < len(self._recordings):
                return self._recordings[self._position]
            return None

    def verify_next(self, signature: str, *arguments: Any) -> bool:
        """True, and advance, when the next recording is *signature* with *arguments*."""
        with self._lock:
            if self._position >= len(self._recordings):
                return False
            expected = self._recordings[self._position]
            if expected.signature != signature or expected.arguments != tuple(arguments):
                return False
            self._position += 1
            return True

    def verify_mock(self, mock: Mock) -> None:
        """
        Check that *mock* received exactly the recorded calls, in order.

        Raises:
            VerificationError: A call differs from its recording, or the
                numbers of calls and recordings differ.
        """
        invocations = mock.invocations
        for invocation in invocations:
            expected = self.next_expected()
            if not self.verify_next(invocation.signature, *invocation.arguments):
                wanted = expected.describe() if expected is not None else "no further calls"
                raise VerificationError(
                    f"Replay mismatch at call {self._position}: expected {wanted}, "
                    f"got {invocation.describe()}",
                    signature=invocation.signature,
                )
        remaining = len(self._recordings) - self._position
        if remaining:
            raise VerificationError(
                f"Replay incomplete: {remaining} recorded call(s) were not made, "
                f"next is {self._recordings[self._position].describe()}",
                signature=self._recordings[self._position].signature,
            )

    def reset(self) -> None:
        with self._lock:
            self._position = 0
