"""
Unit tests for the three-valued policy result.
"""

import pytest

from service_hallway.app.policy.result import PolicyResult

PASSED = PolicyResult.PASSED
NOT_PASSED = PolicyResult.NOT_PASSED
EMPTY = PolicyResult.EMPTY


class TestPolicyResult:
    """Test cases for PolicyResult."""

    @pytest.mark.parametrize("left,right,expected", [
        (PASSED, PASSED, PASSED),
        (PASSED, NOT_PASSED, PASSED),
        (NOT_PASSED, PASSED, PASSED),
        (PASSED, EMPTY, PASSED),
        (EMPTY, PASSED, PASSED),
        (NOT_PASSED, NOT_PASSED, NOT_PASSED),
        (NOT_PASSED, EMPTY, NOT_PASSED),
        (EMPTY, NOT_PASSED, NOT_PASSED),
        (EMPTY, EMPTY, EMPTY),
    ])
    def test_merge_is_priority_or(self, left, right, expected):
        """Definite answers dominate; EMPTY only survives against EMPTY."""
        assert left + right is expected
        assert left.merge(right) is expected

    def test_invert(self):
        """Inversion swaps the definite answers and keeps EMPTY."""
        assert ~PASSED is NOT_PASSED
        assert ~NOT_PASSED is PASSED
        assert ~EMPTY is EMPTY

    def test_double_inversion_is_identity(self):
        for result in PolicyResult:
            assert ~~result is result

    def test_from_bool(self):
        assert PolicyResult.from_bool(True) is PASSED
        assert PolicyResult.from_bool(False) is NOT_PASSED

    def test_to_bool_reads_empty_as_default(self):
        assert EMPTY.to_bool(True) is True
        assert EMPTY.to_bool(False) is False
        assert PASSED.to_bool(False) is True
        assert NOT_PASSED.to_bool(True) is False

    def test_string_form(self):
        assert str(PASSED) == "passed"
        assert str(NOT_PASSED) == "not passed"
        assert str(EMPTY) == "empty"

    def test_adding_other_types_is_unsupported(self):
        with pytest.raises(TypeError):
            PASSED + 1
