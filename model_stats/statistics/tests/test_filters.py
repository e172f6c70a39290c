"""
Tests for statistics.filters module.
"""
from __future__ import annotations

import pytest

from model_stats.statistics.exceptions import UnknownFilterKey
from model_stats.statistics.filters import (
    CompiledCondition,
    ConditionFragment,
    compile_filters,
    count_placeholders,
    merge_conditions,
    validate_condition,
    validate_template,
)


GLOBALS = {"channel": "channel = ?", "user_id": "user_id = ?", "since": "DATE(created_at) > ?"}


class TestValidateTemplate:
    """Tests for template validation."""

    def test_single_placeholder(self):
        assert validate_template("channel", "channel = ?") == "channel = ?"

    def test_no_placeholder(self):
        with pytest.raises(ValueError, match="exactly one"):
            validate_template("channel", "channel = 'web'")

    def test_two_placeholders(self):
        with pytest.raises(ValueError, match="found 2"):
            validate_template("range", "amount BETWEEN ? AND ?")

    def test_not_a_string(self):
        with pytest.raises(ValueError, match="must be a string"):
            validate_template("channel", 42)

    def test_escaped_question_mark_is_not_a_placeholder(self):
        assert count_placeholders("title = '??' AND id = ?") == 1
        assert validate_template("title", "title LIKE '%??%' OR title = ?") == "title LIKE '%??%' OR title = ?"


class TestValidateCondition:
    """Tests for checking registered conditions."""

    @pytest.mark.parametrize("condition", [None, "status <> '?'", ["amount > ?", 5], ("status <> '??'",)])
    def test_valid(self, condition):
        assert validate_condition(condition) is condition

    @pytest.mark.parametrize("condition", [[], (), {"amount": 5}, 42, [5, "web"]])
    def test_wrong_shape(self, condition):
        with pytest.raises(ValueError, match="must be a string or"):
            validate_condition(condition, "Count")

    def test_placeholder_mismatch(self):
        with pytest.raises(ValueError, match="2 placeholders but 1 parameters"):
            validate_condition(["amount BETWEEN ? AND ?", 5], "Range")


class TestCompileFilters:
    """Tests for compile_filters."""

    def test_no_filters(self):
        """Test that no filters compile to an empty condition."""
        assert compile_filters({}, {}, GLOBALS).is_empty()
        assert compile_filters(None, None, None).is_empty()

    def test_global_template(self):
        compiled = compile_filters({"channel": "web"}, {}, GLOBALS)

        assert compiled.expression == "channel = ?"
        assert compiled.params == ("web",)

    def test_override_takes_precedence(self):
        """Test that a statistic's own template wins over the global one."""
        overrides = {"channel": "orders.channel <> ?"}

        compiled = compile_filters({"channel": "web"}, overrides, GLOBALS)

        assert compiled.expression == "orders.channel <> ?"

    def test_unknown_key_raises(self):
        with pytest.raises(UnknownFilterKey) as exc_info:
            compile_filters({"colour": "red"}, {}, GLOBALS, statistic="Basic Count")

        assert exc_info.value.key == "colour"
        assert "Basic Count" in str(exc_info.value)

    def test_none_and_false_are_skipped(self):
        """Test that absent values do not require a template."""
        compiled = compile_filters({"channel": None, "colour": None, "user_id": False}, {}, GLOBALS)

        assert compiled.is_empty()

    def test_zero_and_empty_string_are_applied(self):
        compiled = compile_filters({"user_id": 0, "channel": ""}, {}, GLOBALS)

        assert compiled.params == (0, "")

    def test_insertion_order(self):
        compiled = compile_filters({"user_id": 1, "channel": "web"}, {}, GLOBALS)

        assert compiled.expression == "user_id = ? AND channel = ?"
        assert compiled.params == (1, "web")

    def test_value_is_never_interpolated(self):
        """Test that values stay out of the condition text."""
        hostile = "web' OR '1'='1"

        compiled = compile_filters({"channel": hostile}, {}, GLOBALS)

        assert hostile not in compiled.expression
        assert compiled.params == (hostile,)

    def test_sequence_value_expands_placeholder(self):
        compiled = compile_filters({"channel": ["web", "store"]}, {"channel": "channel IN (?)"}, {})

        assert compiled.expression == "channel IN (?, ?)"
        assert compiled.params == ("web", "store")

    def test_empty_sequence_renders_null(self):
        compiled = compile_filters({"channel": []}, {"channel": "channel IN (?)"}, {})

        assert compiled.expression == "channel IN (NULL)"
        assert compiled.params == ()

    def test_templates_are_not_modified(self):
        overrides = {"channel": "channel = ?"}
        globals_before = dict(GLOBALS)

        compile_filters({"channel": "web", "user_id": 3}, overrides, GLOBALS)

        assert GLOBALS == globals_before
        assert overrides == {"channel": "channel = ?"}

    def test_filter_order_does_not_change_fragments(self):
        """Test that compiling the same filters in either order gives the same fragments."""
        first = compile_filters({"channel": "web", "user_id": 1}, {}, GLOBALS)
        second = compile_filters({"user_id": 1, "channel": "web"}, {}, GLOBALS)

        assert set(first.fragments) == set(second.fragments)

    def test_fresh_condition_each_call(self):
        first = compile_filters({"channel": "web"}, {}, GLOBALS)
        second = compile_filters({"channel": "web"}, {}, GLOBALS)

        assert first == second
        assert first is not second


class TestMergeConditions:
    """Tests for merging compiled conditions into existing ones."""

    @pytest.fixture
    def compiled(self):
        return CompiledCondition((
            ConditionFragment("channel = ?", ("web",)),
            ConditionFragment("user_id = ?", (1,)),
        ))

    def test_nothing_compiled_keeps_existing(self):
        existing = ["amount > ?", 5]

        assert merge_conditions(existing, CompiledCondition()) is existing
        assert merge_conditions(None, CompiledCondition()) is None

    def test_no_existing_condition(self, compiled):
        merged = merge_conditions(None, compiled)

        assert merged == ["channel = ? AND user_id = ?", "web", 1]

    def test_existing_string(self, compiled):
        merged = merge_conditions("amount > 5", compiled)

        assert merged == ["amount > 5 AND channel = ? AND user_id = ?", "web", 1]

    def test_existing_string_question_mark_is_escaped(self, compiled):
        """Test that a literal '?' in a plain string does not become a placeholder."""
        merged = merge_conditions("status <> '?'", compiled)

        assert merged == ["status <> '??' AND channel = ? AND user_id = ?", "web", 1]
        assert count_placeholders(merged[0]) == len(merged) - 1

    def test_existing_positional_list(self, compiled):
        existing = ["amount > ?", 5]

        merged = merge_conditions(existing, compiled)

        assert merged == ["amount > ? AND channel = ? AND user_id = ?", 5, "web", 1]
        assert existing == ["amount > ?", 5]

    def test_existing_positional_tuple(self, compiled):
        merged = merge_conditions(("amount > ?", 5), compiled)

        assert merged == ["amount > ? AND channel = ? AND user_id = ?", 5, "web", 1]

    def test_string_and_list_forms_are_equivalent(self, compiled):
        """Test that both representations end with the same predicate and values."""
        from_string = merge_conditions("status = 'paid'", compiled)
        from_list = merge_conditions(["status = 'paid'"], compiled)

        assert from_string == from_list

    def test_unsupported_representation(self, compiled):
        with pytest.raises(TypeError):
            merge_conditions({"amount": 5}, compiled)
        with pytest.raises(TypeError):
            merge_conditions([], compiled)
