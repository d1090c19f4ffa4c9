"""Tests for doublet.chaos: fault injection policy, statistics and determinism."""

import pytest
from pydantic import ValidationError

from doublet import ChaosPolicy, MockHandler, ResultKind, Times
from doublet.chaos import ChaosInjector


def _run(handler, calls):
    outcomes = []
    for _ in range(calls):
        try:
            handler.dispatch("fetch", (), ResultKind.value(int))
            outcomes.append(None)
        except (TimeoutError, ConnectionError) as exc:
            outcomes.append(type(exc))
    return outcomes


class TestChaosPolicy:
    def test_defaults(self):
        policy = ChaosPolicy()
        assert policy.failure_rate == 0.0
        assert policy.possible_exceptions == []
        assert policy.timeout_ms == 0
        assert policy.seed is None

    def test_failure_rate_bounds(self):
        with pytest.raises(ValidationError):
            ChaosPolicy(failure_rate=1.5)
        with pytest.raises(ValidationError):
            ChaosPolicy(failure_rate=-0.1)

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValidationError):
            ChaosPolicy(timeout_ms=-1)

    def test_exceptions_only(self):
        with pytest.raises(ValidationError):
            ChaosPolicy(possible_exceptions=["not an exception"])
        policy = ChaosPolicy(possible_exceptions=[TimeoutError, ValueError("bad")])
        assert len(policy.possible_exceptions) == 2

    def test_none_exceptions_means_empty(self):
        assert ChaosPolicy(possible_exceptions=None).possible_exceptions == []


class TestChaosInjection:
    def test_seeded_runs_are_identical(self):
        def policy():
            return ChaosPolicy(
                failure_rate=0.3,
                possible_exceptions=[TimeoutError("slow"), ConnectionError("down")],
                seed=42,
            )

        first, second = MockHandler(), MockHandler()
        first.configure_chaos(policy())
        second.configure_chaos(policy())

        a = _run(first, 100)
        b = _run(second, 100)
        assert a == b
        triggered = sum(1 for o in a if o is not None)
        assert first.chaos_statistics.total_invocations == 100
        assert first.chaos_statistics.chaos_triggered_count == triggered
        # 0.3 over 100 draws: far from both extremes
        assert 5 < triggered < 60

    def test_rate_one_always_raises(self):
        handler = MockHandler()
        handler.configure_chaos(ChaosPolicy(failure_rate=1.0, possible_exceptions=[TimeoutError("x")]))
        for _ in range(5):
            with pytest.raises(TimeoutError, match="x"):
                handler.dispatch("fetch")
        assert handler.chaos_statistics.actual_failure_rate == 1.0

    def test_rate_zero_never_raises(self):
        handler = MockHandler()
        handler.configure_chaos(ChaosPolicy(failure_rate=0.0, possible_exceptions=[TimeoutError()]))
        assert _run(handler, 50) == [None] * 50
        assert handler.chaos_statistics.chaos_triggered_count == 0
        assert handler.chaos_statistics.actual_failure_rate == 0.0

    def test_configured_exception_raised_unaltered(self):
        error = ConnectionError("exact instance")
        handler = MockHandler()
        handler.configure_chaos(ChaosPolicy(failure_rate=1.0, possible_exceptions=[error]))
        with pytest.raises(ConnectionError) as exc_info:
            handler.dispatch("fetch")
        assert exc_info.value is error

    def test_exception_class_is_raised(self):
        handler = MockHandler()
        handler.configure_chaos(ChaosPolicy(failure_rate=1.0, possible_exceptions=[KeyError]))
        with pytest.raises(KeyError):
            handler.dispatch("fetch")

    def test_empty_exception_list_counts_but_does_not_raise(self):
        handler = MockHandler()
        handler.configure_chaos(ChaosPolicy(failure_rate=1.0))
        handler.dispatch("fetch")
        assert handler.chaos_statistics.chaos_triggered_count == 1

    def test_chaos_terminated_calls_are_recorded(self):
        handler = MockHandler()
        handler.configure_chaos(ChaosPolicy(failure_rate=1.0, possible_exceptions=[TimeoutError()]))
        with pytest.raises(TimeoutError):
            handler.dispatch("fetch", (1,))
        handler.verify("fetch", [1], Times.once())

    def test_chaos_applies_before_setups(self):
        handler = MockHandler()
        handler.register_setup("fetch", ())
        handler.configure_chaos(ChaosPolicy(failure_rate=1.0, possible_exceptions=[TimeoutError()]))
        with pytest.raises(TimeoutError):
            handler.dispatch("fetch", (), ResultKind.value(int))
        assert handler.setups[0].call_count == 0

    def test_disable_with_none(self):
        handler = MockHandler()
        handler.configure_chaos(ChaosPolicy(failure_rate=1.0, possible_exceptions=[TimeoutError()]))
        handler.configure_chaos(None)
        handler.dispatch("fetch")
        assert handler.chaos_policy is None

    @pytest.mark.slow
    def test_timeout_counts_and_delays(self):
        import time

        handler = MockHandler()
        handler.configure_chaos(ChaosPolicy(timeout_ms=20))
        start = time.monotonic()
        handler.dispatch("fetch")
        handler.dispatch("fetch")
        assert time.monotonic() - start >= 0.035
        assert handler.chaos_statistics.timeout_triggered_count == 2


class TestChaosStatistics:
    def test_reset_and_to_dict(self):
        injector = ChaosInjector()
        injector.configure(ChaosPolicy(failure_rate=1.0, possible_exceptions=[TimeoutError()]))
        with pytest.raises(TimeoutError):
            injector.apply("a")
        data = injector.statistics.to_dict()
        assert data == {
            "total_invocations": 1,
            "chaos_triggered_count": 1,
            "timeout_triggered_count": 0,
            "actual_failure_rate": 1.0,
        }
        injector.reset_statistics()
        assert injector.statistics.total_invocations == 0
        assert injector.statistics.actual_failure_rate == 0.0

    def test_statistics_survive_policy_change(self):
        injector = ChaosInjector()
        injector.configure(ChaosPolicy(failure_rate=0.0))
        injector.apply("a")
        injector.configure(ChaosPolicy(failure_rate=0.0, seed=1))
        injector.apply("a")
        assert injector.statistics.total_invocations == 2
        assert injector.enabled

    def test_handler_statistics_are_a_snapshot(self):
        handler = MockHandler()
        handler.configure_chaos(ChaosPolicy(failure_rate=0.0))
        handler.dispatch("fetch", ())
        before = handler.chaos_statistics
        handler.dispatch("fetch", ())
        assert before.total_invocations == 1
        assert handler.chaos_statistics.total_invocations == 2

    def test_handler_reset_statistics(self):
        handler = MockHandler()
        handler.configure_chaos(ChaosPolicy(failure_rate=1.0, possible_exceptions=[TimeoutError()]))
        with pytest.raises(TimeoutError):
            handler.dispatch("fetch", ())
        handler.reset_chaos_statistics()
        assert handler.chaos_statistics.total_invocations == 0
        assert handler.chaos_statistics.chaos_triggered_count == 0
        assert handler.chaos_policy is not None
