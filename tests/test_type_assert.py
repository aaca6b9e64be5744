"""
Tests for runtime type assertions.

Validates:
  - check_type() against classes, unions, TOP and hierarchy names
  - assert_type() recovery loop and attempt limit
  - Failure records and error messages
"""

import pytest
from typecase.analysis.oracle import TOP, HierarchyOracle, union
from typecase.errors import TypeAssertionError
from typecase.runtime.type_assert import TypeCheckFailure, assert_type, check_type


# ---------- check_type() ----------

class TestCheckType:
    def test_match_returns_none(self):
        assert check_type(3, int) is None
        assert check_type(True, int) is None
        assert check_type('x', union(str, bytes)) is None

    def test_top_matches_anything(self):
        assert check_type(object(), TOP) is None
        assert check_type(None, TOP) is None

    def test_mismatch_record(self):
        failure = check_type('3', int)
        assert failure == TypeCheckFailure(value='3', expected=int)
        assert str(failure).startswith('TypeCheck[int]: got str')

    def test_pep604_union(self):
        assert check_type(None, int | None) is None
        assert check_type(1.5, int | None) is not None

    def test_hierarchy_predicate(self):
        oracle = HierarchyOracle({}, tests={'Even': lambda v: v % 2 == 0})
        assert check_type(4, 'Even', oracle) is None
        assert check_type(5, 'Even', oracle) is not None


# ---------- assert_type() ----------

class TestAssertType:
    def test_passes_value_through(self):
        value = [1, 2]
        assert assert_type(value, list) is value

    def test_no_recover_raises(self):
        with pytest.raises(TypeAssertionError) as exc_info:
            assert_type('3', int)
        assert exc_info.value.value == '3'
        assert exc_info.value.expected is int
        assert exc_info.value.attempts == 0

    def test_is_type_error(self):
        with pytest.raises(TypeError):
            assert_type(1.0, str)

    def test_recover_replaces_value(self):
        assert assert_type('3', int, recover=lambda failure: int(failure.value)) == 3

    def test_recover_sees_attempt_numbers(self):
        seen = []

        def recover(failure):
            seen.append(failure.attempt)
            return failure.value if failure.attempt < 2 else 7

        assert assert_type('x', int, recover=recover) == 7
        assert seen == [1, 2]

    def test_attempts_exhausted(self):
        calls = []

        def recover(failure):
            calls.append(failure)
            return failure.value

        with pytest.raises(TypeAssertionError, match='after 3 recovery attempt'):
            assert_type('x', int, recover=recover)
        assert len(calls) == 3

    def test_custom_attempt_limit(self):
        calls = []
        with pytest.raises(TypeAssertionError) as exc_info:
            assert_type('x', int, recover=lambda f: calls.append(f) or f.value, max_attempts=1)
        assert len(calls) == 1
        assert exc_info.value.attempts == 1

    def test_error_reports_last_value(self):
        with pytest.raises(TypeAssertionError) as exc_info:
            assert_type('x', int, recover=lambda f: 2.5, max_attempts=2)
        assert exc_info.value.value == 2.5
