import pytest

from fieldops.automation.conditions import (
    describe_condition,
    evaluate_condition,
    evaluate_conditions,
    to_number,
)
from fieldops.automation.models import ConditionLogic, ConditionOperator


def test_equals_matches_raw_value(make_condition):
    cond = make_condition("unit_status", "equals", "damaged")
    assert evaluate_condition(cond, {"unit_status": "damaged"})
    assert not evaluate_condition(cond, {"unit_status": "Damaged"})
    assert not evaluate_condition(cond, {})


def test_equals_does_not_coerce_types(make_condition):
    assert not evaluate_condition(make_condition("count", "equals", 1), {"count": "1"})
    assert not evaluate_condition(make_condition("flag", "equals", True), {"flag": 1})
    assert evaluate_condition(make_condition("flag", "equals", True), {"flag": True})


def test_not_equals_is_true_for_missing_field(make_condition):
    cond = make_condition("unit_status", "not_equals", "ok")
    assert evaluate_condition(cond, {})
    assert not evaluate_condition(cond, {"unit_status": "ok"})


@pytest.mark.parametrize(
    "field_value,expected",
    [(150, True), ("150", True), (100, False), ("abc", False), (None, False), (True, False)],
)
def test_greater_than_coerces_to_numbers(make_condition, field_value, expected):
    cond = make_condition("volume_gallons", "greater_than", 100)
    assert evaluate_condition(cond, {"volume_gallons": field_value}) is expected


def test_less_than_with_string_threshold(make_condition):
    cond = make_condition("service_hour", "less_than", "7")
    assert evaluate_condition(cond, {"service_hour": 6})
    assert not evaluate_condition(cond, {"service_hour": 7})
    assert not evaluate_condition(cond, {})


def test_to_number_rules():
    assert to_number("") == 0
    assert to_number(" 12.5 ") == 12.5
    assert to_number(False) == 0
    assert to_number("1_000") != to_number("1_000")  # NaN
    assert to_number({"a": 1}) != to_number({"a": 1})


def test_contains_stringifies_both_sides(make_condition):
    cond = make_condition("notes", "contains", "leak")
    assert evaluate_condition(cond, {"notes": "small leak at base"})
    assert not evaluate_condition(cond, {"notes": "all good"})
    assert not evaluate_condition(cond, {})
    assert evaluate_condition(make_condition("code", "contains", 12), {"code": "A-123"})


def test_in_list_requires_list_value(make_condition):
    cond = make_condition("unit_type", "in_list", ["ADA", "Deluxe"])
    assert evaluate_condition(cond, {"unit_type": "ADA"})
    assert not evaluate_condition(cond, {"unit_type": "Standard"})
    assert not evaluate_condition(make_condition("unit_type", "in_list", "ADA"), {"unit_type": "ADA"})


def test_unknown_operator_is_false_and_kept_as_text(make_condition):
    cond = make_condition("unit_type", "starts_with", "A")
    assert cond.operator == "starts_with"
    assert not isinstance(cond.operator, ConditionOperator)
    assert evaluate_condition(cond, {"unit_type": "ADA"}) is False


def test_known_operator_and_logic_parse_to_enums(make_condition):
    cond = make_condition("a", "greater_than", 1, logic="OR")
    assert cond.operator is ConditionOperator.GREATER_THAN
    assert cond.logic is ConditionLogic.OR


def test_empty_condition_set_never_triggers():
    assert evaluate_conditions([], {"anything": 1}) is False
    assert evaluate_conditions([], {}) is False
    assert evaluate_conditions(None, {}) is False


def test_and_requires_every_condition(make_condition):
    conds = [
        make_condition("unit_relocated", "equals", True),
        make_condition("relocation_distance", "greater_than", 25, logic="AND"),
    ]
    assert evaluate_conditions(conds, {"unit_relocated": True, "relocation_distance": 30})
    assert not evaluate_conditions(conds, {"unit_relocated": True, "relocation_distance": 10})


def test_single_or_marker_switches_whole_set_to_or(make_condition):
    # The first condition carries no logic marker, yet the set is OR because the
    # second one says OR. This is global, not pairwise.
    conds = [
        make_condition("a", "equals", 1),
        make_condition("b", "equals", 2, logic="OR"),
    ]
    assert evaluate_conditions(conds, {"a": 1, "b": 0})
    assert evaluate_conditions(conds, {"a": 0, "b": 2})
    assert not evaluate_conditions(conds, {"a": 0, "b": 0})


def test_or_marker_anywhere_applies_to_three_conditions(make_condition):
    conds = [
        make_condition("a", "equals", 1, logic="AND"),
        make_condition("b", "equals", 2, logic="AND"),
        make_condition("c", "equals", 3, logic="OR"),
    ]
    assert evaluate_conditions(conds, {"b": 2})


def test_describe_condition_replaces_first_underscore(make_condition):
    assert describe_condition(make_condition("blue_used", "greater_than", 16)) == "blue_used greater than 16"
    assert describe_condition(make_condition("flag", "equals", True)) == "flag equals true"
