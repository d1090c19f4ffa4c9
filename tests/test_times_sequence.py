"""Tests for doublet.times and doublet.sequence."""

import pytest

from doublet import MockSequence, SequenceViolationError, Times


class TestTimes:
    def test_once(self):
        t = Times.once()
        assert t.validate(1)
        assert not t.validate(0)
        assert not t.validate(2)
        assert t.description == "exactly 1"

    def test_never(self):
        assert Times.never().validate(0)
        assert not Times.never().validate(1)

    def test_exactly(self):
        t = Times.exactly(3)
        assert t.validate(3)
        assert not t.validate(2)
        assert str(t) == "exactly 3"

    def test_at_least(self):
        t = Times.at_least(2)
        assert not t.validate(1)
        assert t.validate(2)
        assert t.validate(1000)
        assert t.description == "at least 2"

    def test_at_least_once(self):
        assert Times.at_least_once().validate(5)
        assert not Times.at_least_once().validate(0)

    def test_at_most(self):
        t = Times.at_most(2)
        assert t.validate(0)
        assert t.validate(2)
        assert not t.validate(3)

    def test_between_is_inclusive(self):
        t = Times.between(1, 3)
        assert [t.validate(n) for n in range(5)] == [False, True, True, True, False]
        assert t.description == "between 1 and 3"

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            Times.exactly(-1)
        with pytest.raises(ValueError):
            Times.at_most(-1)

    def test_inverted_bounds_rejected(self):
        with pytest.raises(ValueError, match="lower than lower bound"):
            Times.between(5, 2)


class TestMockSequence:
    def test_register_step_counts_up(self):
        seq = MockSequence()
        assert seq.register_step() == 0
        assert seq.register_step() == 1
        assert seq.next_setup_step == 2
        assert seq.next_expected_invocation_step == 0

    def test_in_order_advances(self):
        seq = MockSequence()
        first, second = seq.register_step(), seq.register_step()
        seq.check_and_advance(first, "open")
        seq.check_and_advance(second, "close")
        assert seq.next_expected_invocation_step == 2

    def test_out_of_order_raises(self):
        seq = MockSequence()
        seq.register_step()
        second = seq.register_step()
        with pytest.raises(SequenceViolationError, match="Expected step 0, but method is at step 1") as exc_info:
            seq.check_and_advance(second, "close")
        assert exc_info.value.signature == "close"
        assert exc_info.value.expected_step == 0
        assert exc_info.value.actual_step == 1
        # A failed check does not advance the sequence
        assert seq.next_expected_invocation_step == 0

    def test_repeated_step_raises(self):
        seq = MockSequence()
        step = seq.register_step()
        seq.register_step()
        seq.check_and_advance(step, "open")
        with pytest.raises(SequenceViolationError):
            seq.check_and_advance(step, "open")
