"""Unit tests for where-condition key parsing."""

import pytest

from hefestos.conditions import parse_condition_key
from hefestos.exceptions import InvalidConditionError


class TestParseConditionKey:
    """Tests for parse_condition_key."""

    def test_bare_column_defaults_to_equals(self):
        """Test that a key without operator compares with '='."""
        assert parse_condition_key("status") == ("status", "=")

    @pytest.mark.parametrize(
        "key, expected",
        [
            ("age >=", ("age", ">=")),
            ("age >= ", ("age", ">=")),
            ("age>=", ("age", ">=")),
            ("age <=", ("age", "<=")),
            ("age <", ("age", "<")),
            ("age >", ("age", ">")),
            ("status =", ("status", "=")),
            ("status !=", ("status", "!=")),
            ("status <>", ("status", "<>")),
        ],
    )
    def test_trailing_operator_is_detected(self, key, expected):
        """Test symbol operators with and without surrounding spaces."""
        assert parse_condition_key(key) == expected

    @pytest.mark.parametrize("key", ["name LIKE", "name like", "name Like "])
    def test_like_is_case_insensitive(self, key):
        """Test that LIKE is recognised in any case and normalised to upper case."""
        assert parse_condition_key(key) == ("name", "LIKE")

    def test_not_like(self):
        """Test the two-word NOT LIKE operator."""
        assert parse_condition_key("name not   like") == ("name", "NOT LIKE")

    def test_dots_are_stripped(self):
        """Test that qualifier dots are removed from the column."""
        assert parse_condition_key("users.age >") == ("usersage", ">")

    def test_word_ending_in_like_is_a_column(self):
        """A column name that merely ends in 'like' is not split."""
        assert parse_condition_key("unlike") == ("unlike", "=")

    @pytest.mark.parametrize(
        "key",
        ["", "   ", "age ==", "age => ", "first name", "age >= 1", "1age", "age; DROP TABLE x"],
    )
    def test_malformed_keys_are_rejected(self, key):
        """Test that unrecognised trailing tokens raise instead of defaulting to '='."""
        with pytest.raises(InvalidConditionError):
            parse_condition_key(key)

    def test_non_string_key_rejected(self):
        """Test that non-string keys raise InvalidConditionError."""
        with pytest.raises(InvalidConditionError, match="strings"):
            parse_condition_key(3)  # type: ignore[arg-type]

    def test_error_is_a_value_error(self):
        """InvalidConditionError can be caught as ValueError."""
        with pytest.raises(ValueError):
            parse_condition_key("age ~")
