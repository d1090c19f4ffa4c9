"""Tests for doublet.matchers: argument specs and positional matching."""

import logging
from typing import List, Optional

import pytest

from doublet import ArgumentShapeError, It, Range, Ref, match_create
from doublet.matchers import (
    AnyOfType,
    Exact,
    InRange,
    MatchesRegex,
    Predicate,
    arguments_match,
    as_spec,
    as_specs,
    describe_specs,
    values_equivalent,
)


class TestExact:
    def test_equal_values_match(self):
        assert Exact(42).matches(42)
        assert Exact("abc").matches("abc")

    def test_different_values_do_not_match(self):
        assert not Exact(42).matches(43)
        assert not Exact("abc").matches("ABC")

    def test_none_matches_only_none(self):
        assert Exact(None).matches(None)
        assert not Exact(None).matches(0)
        assert not Exact(None).matches("")

    def test_sequences_compare_elementwise(self):
        assert Exact([1, 2, 3]).matches([1, 2, 3])
        assert Exact((1, 2)).matches([1, 2])
        assert not Exact([1, 2, 3]).matches([1, 2])

    def test_nested_specs_inside_sequences(self):
        spec = Exact([1, It.is_any(int)])
        assert spec.matches([1, 7])
        assert not spec.matches([2, 7])
        assert not spec.matches([1, "x"])

    def test_raising_equality_is_unequal(self):
        class Grumpy:
            def __eq__(self, other):
                raise RuntimeError("no comparisons")

        assert not values_equivalent(Grumpy(), 1)


class TestAnyOfType:
    def test_matches_instances(self):
        assert It.is_any(int).matches(5)
        assert not It.is_any(int).matches("5")

    def test_none_always_matches(self):
        assert It.is_any(int).matches(None)
        assert It.is_any(str).matches(None)

    def test_untyped_matches_everything(self):
        assert It.is_any().matches(object())
        assert It.is_any(object).matches("anything")

    def test_generic_aliases_use_origin(self):
        assert AnyOfType(List[int]).matches([1, 2])
        assert not AnyOfType(List[int]).matches((1, 2))

    def test_optional_unwrapped(self):
        assert AnyOfType(Optional[int]).matches(3)
        assert not AnyOfType(Optional[int]).matches("3")


class TestPredicate:
    def test_truthiness_decides(self):
        positive = It.is_(lambda v: v > 0)
        assert positive.matches(1)
        assert not positive.matches(-1)

    def test_raising_predicate_does_not_match(self, caplog):
        caplog.set_level(logging.WARNING, logger="doublet.matchers")
        spec = It.is_(lambda v: v.upper() == "X")
        assert not spec.matches(5)
        assert isinstance(spec.last_error, AttributeError)
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert warnings
        assert warnings[0].exc_info is not None

    def test_description(self):
        assert Predicate(lambda v: True, "always").description == "always"

        def is_even(v):
            return v % 2 == 0

        assert "is_even" in It.is_(is_even).description

    def test_match_create(self):
        even = match_create(lambda v: v % 2 == 0, "even number")
        assert even.matches(4)
        assert not even.matches(3)
        assert even.description == "even number"


class TestSetMatchers:
    def test_is_in(self):
        spec = It.is_in(1, 2, 3)
        assert spec.matches(2)
        assert not spec.matches(4)

    def test_is_in_accepts_single_iterable(self):
        assert It.is_in([1, 2]).matches(1)
        assert It.is_in({"a", "b"}).matches("b")

    def test_is_not_in(self):
        spec = It.is_not_in("admin", "root")
        assert spec.matches("guest")
        assert not spec.matches("root")


class TestScalarMatchers:
    def test_not_null(self):
        assert It.is_not_null().matches(0)
        assert It.is_not_null().matches("")
        assert not It.is_not_null().matches(None)

    def test_regex_searches_strings(self):
        spec = It.is_regex(r"^\d+$")
        assert spec.matches("123")
        assert not spec.matches("12a")

    def test_regex_rejects_non_strings(self):
        assert not MatchesRegex(r"\d").matches(123)
        assert not MatchesRegex(r".*").matches(None)

    def test_regex_flags(self):
        import re

        assert It.is_regex("hello", re.IGNORECASE).matches("HELLO world")

    def test_inclusive_range(self):
        spec = It.is_in_range(1, 5)
        assert spec.matches(1)
        assert spec.matches(5)
        assert not spec.matches(6)

    def test_exclusive_range(self):
        spec = It.is_in_range(1, 5, Range.EXCLUSIVE)
        assert spec.matches(3)
        assert not spec.matches(1)
        assert not spec.matches(5)

    def test_range_rejects_incomparable(self):
        assert not InRange(1, 5).matches("3")
        assert not InRange(1, 5).matches(None)


class TestOutputChannels:
    def test_out_is_output_channel(self):
        spec = It.out(int)
        assert spec.is_output_channel
        assert spec.matches(None)

    def test_ref_gates_on_inner_spec(self):
        spec = It.ref(5)
        assert spec.is_output_channel
        assert spec.matches(5)
        assert not spec.matches(6)

    def test_plain_specs_are_not_output_channels(self):
        assert not Exact(1).is_output_channel
        assert not It.is_any(int).is_output_channel


class TestArgumentsMatch:
    def test_all_positions_must_match(self):
        specs = as_specs([1, It.is_any(str)])
        assert arguments_match("f", specs, (1, "x"))
        assert not arguments_match("f", specs, (2, "x"))

    def test_no_arguments(self):
        assert arguments_match("f", (), ())

    def test_arity_mismatch_raises(self):
        with pytest.raises(ArgumentShapeError, match="specification has 1 argument"):
            arguments_match("f", as_specs([1]), (1, 2))

    def test_arity_mismatch_without_exact_arity_is_no_match(self):
        assert not arguments_match("f", as_specs([1]), (1, 2), exact_arity=False)
        assert arguments_match("f", as_specs([1]), (1,), exact_arity=False)

    def test_out_is_output_only_and_ref_is_not(self):
        out = It.out(int)
        ref = It.ref(5)
        assert out.is_output_channel and out.is_output_only
        assert ref.is_output_channel and not ref.is_output_only

    def test_ref_boxes_are_unwrapped(self):
        assert arguments_match("f", as_specs([3]), (Ref(3),))
        assert not arguments_match("f", as_specs([3]), (Ref(4),))

    def test_as_spec_passes_specs_through(self):
        spec = It.is_not_null()
        assert as_spec(spec) is spec
        assert isinstance(as_spec(7), Exact)

    def test_describe_specs(self):
        text = describe_specs(as_specs([1, It.is_any(int), "a"]))
        assert text == "1, It.is_any(int), 'a'"
