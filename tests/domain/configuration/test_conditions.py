from __future__ import annotations

import pytest

from printconf.domain.configuration import (
    condition_from_dict,
    condition_to_dict,
    evaluate_condition,
)
from printconf.domain.model import AllOf, AnyOf, Contains, Equals, Not, NotEquals, OneOf, Truthy


def test_missing_selection_semantics() -> None:
    values: dict[str, object] = {}

    assert evaluate_condition(Equals("n1", "a"), values) is False
    assert evaluate_condition(NotEquals("n1", "a"), values) is True
    assert evaluate_condition(Truthy("n1"), values) is False
    assert evaluate_condition(Contains("n1", "a"), values) is False
    assert evaluate_condition(OneOf("n1", ("a", "b")), values) is False


def test_absent_condition_always_holds() -> None:
    assert evaluate_condition(None, {}) is True


def test_equals_does_not_confuse_booleans_and_numbers() -> None:
    assert evaluate_condition(Equals("n1", 1), {"n1": True}) is False
    assert evaluate_condition(Equals("n1", True), {"n1": True}) is True


def test_contains_checks_multiselect_membership() -> None:
    values = {"finish": ["matte", "gloss"]}

    assert evaluate_condition(Contains("finish", "gloss"), values) is True
    assert evaluate_condition(Contains("finish", "satin"), values) is False


def test_contains_is_false_for_single_select_values() -> None:
    values = {"size": "large"}

    assert evaluate_condition(Contains("size", "a"), values) is False
    assert evaluate_condition(Contains("size", "large"), values) is False


def test_combinators() -> None:
    values = {"size": "large", "rush": True}
    condition = AllOf(
        (
            OneOf("size", ("medium", "large")),
            AnyOf((Truthy("rush"), Equals("size", "small"))),
            Not(Equals("size", "small")),
        )
    )

    assert evaluate_condition(condition, values) is True
    assert evaluate_condition(condition, {**values, "rush": False}) is False


def test_truthy_treats_blank_values_as_absent() -> None:
    assert evaluate_condition(Truthy("note"), {"note": "  "}) is False
    assert evaluate_condition(Truthy("note"), {"note": "hello"}) is True
    assert evaluate_condition(Truthy("finish"), {"finish": []}) is False


def test_document_codec_round_trip() -> None:
    raw = {
        "op": "and",
        "args": [
            {"op": "equals", "nodeId": "size", "value": "large"},
            {"op": "in", "nodeId": "tier", "values": ["a", "b"]},
            {"op": "not", "arg": {"op": "truthy", "nodeId": "rush"}},
            {"op": "or", "args": [{"op": "contains", "nodeId": "f", "value": "x"}]},
            {"op": "notEquals", "nodeId": "size", "value": "small"},
        ],
    }

    condition = condition_from_dict(raw)

    assert isinstance(condition, AllOf)
    assert condition_to_dict(condition) == raw


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ({"op": "bogus", "nodeId": "n1"}, "unsupported condition op"),
        ({"op": "equals", "nodeId": "n1"}, "requires a 'value'"),
        ({"op": "truthy"}, "requires a 'nodeId'"),
        ({"op": "and", "args": "nope"}, "requires an 'args' list"),
        ({"op": "in", "nodeId": "n1", "values": "a"}, "requires a 'values' list"),
    ],
)
def test_malformed_conditions_are_rejected(raw: dict[str, object], message: str) -> None:
    with pytest.raises(ValueError, match=message):
        condition_from_dict(raw)
