"""Evaluate condition predicates against effective selection values."""

from __future__ import annotations

from collections.abc import Mapping
from functools import singledispatch
from typing import TYPE_CHECKING

from printconf.domain.model import (
    AllOf,
    AnyOf,
    Contains,
    Equals,
    Not,
    NotEquals,
    OneOf,
    Truthy,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from printconf.domain.model import Condition


def is_present(value: object) -> bool:
    """Whether a selection value counts as supplied."""

    if value is None or value is False:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) > 0  # pyright: ignore[reportUnknownArgumentType]
    return True


def evaluate_condition(condition: Condition | None, values: Mapping[str, object]) -> bool:
    """Return whether ``condition`` holds; an absent condition always holds."""

    if condition is None:
        return True
    return _evaluate(condition, values)


@singledispatch
def _evaluate(condition: object, _values: Mapping[str, object]) -> bool:
    raise TypeError(f"Unsupported condition: {type(condition).__name__}")


@_evaluate.register
def _(condition: Equals, values: Mapping[str, object]) -> bool:
    if condition.node_id not in values:
        return False
    return _same(values[condition.node_id], condition.value)


@_evaluate.register
def _(condition: NotEquals, values: Mapping[str, object]) -> bool:
    if condition.node_id not in values:
        return True
    return not _same(values[condition.node_id], condition.value)


@_evaluate.register
def _(condition: Truthy, values: Mapping[str, object]) -> bool:
    return is_present(values.get(condition.node_id))


@_evaluate.register
def _(condition: Contains, values: Mapping[str, object]) -> bool:
    value = values.get(condition.node_id)
    if isinstance(value, (list, tuple)):
        return any(_same(item, condition.value) for item in value)  # pyright: ignore[reportUnknownVariableType]
    return False


@_evaluate.register
def _(condition: OneOf, values: Mapping[str, object]) -> bool:
    if condition.node_id not in values:
        return False
    value = values[condition.node_id]
    return any(_same(value, option) for option in condition.options)


@_evaluate.register
def _(condition: AllOf, values: Mapping[str, object]) -> bool:
    return all(_evaluate(inner, values) for inner in condition.conditions)


@_evaluate.register
def _(condition: AnyOf, values: Mapping[str, object]) -> bool:
    return any(_evaluate(inner, values) for inner in condition.conditions)


@_evaluate.register
def _(condition: Not, values: Mapping[str, object]) -> bool:
    return not _evaluate(condition.condition, values)


def _same(left: object, right: object) -> bool:
    # booleans never equal numbers here, unlike plain ``==``
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    return left == right


def condition_depth(condition: Condition | None) -> int:
    """Nesting depth of a condition tree; leaves count as 1."""

    if condition is None:
        return 0
    if isinstance(condition, (AllOf, AnyOf)):
        return 1 + max((condition_depth(inner) for inner in condition.conditions), default=0)
    if isinstance(condition, Not):
        return 1 + condition_depth(condition.condition)
    return 1


def referenced_node_ids(condition: Condition | None) -> Iterator[str]:
    if condition is None:
        return
    if isinstance(condition, (AllOf, AnyOf)):
        for inner in condition.conditions:
            yield from referenced_node_ids(inner)
    elif isinstance(condition, Not):
        yield from referenced_node_ids(condition.condition)
    else:
        yield condition.node_id


# Document codec -------------------------------------------------------------


def condition_from_dict(raw: Mapping[str, object]) -> Condition:
    """Decode the persisted ``{"op": ...}`` form; raises ``ValueError`` when malformed."""

    op = raw.get("op")
    if op in {"and", "or"}:
        args = raw.get("args")
        if not isinstance(args, list):
            raise ValueError(f"condition '{op}' requires an 'args' list")
        inner = tuple(condition_from_dict(_as_mapping(arg)) for arg in args)  # pyright: ignore[reportUnknownVariableType]
        return AllOf(inner) if op == "and" else AnyOf(inner)
    if op == "not":
        return Not(condition_from_dict(_as_mapping(raw.get("arg"))))

    node_id = raw.get("nodeId")
    if not isinstance(node_id, str) or not node_id:
        raise ValueError(f"condition '{op}' requires a 'nodeId'")
    if op == "truthy":
        return Truthy(node_id)
    if op in {"equals", "notEquals", "contains"}:
        if "value" not in raw:
            raise ValueError(f"condition '{op}' requires a 'value'")
        value = raw["value"]
        if op == "equals":
            return Equals(node_id, value)
        if op == "notEquals":
            return NotEquals(node_id, value)
        return Contains(node_id, value)
    if op == "in":
        options = raw.get("values")
        if not isinstance(options, list):
            raise ValueError("condition 'in' requires a 'values' list")
        return OneOf(node_id, tuple(options))  # pyright: ignore[reportUnknownArgumentType]
    raise ValueError(f"unsupported condition op: {op!r}")


def condition_to_dict(condition: Condition) -> dict[str, object]:
    if isinstance(condition, AllOf):
        return {"op": "and", "args": [condition_to_dict(inner) for inner in condition.conditions]}
    if isinstance(condition, AnyOf):
        return {"op": "or", "args": [condition_to_dict(inner) for inner in condition.conditions]}
    if isinstance(condition, Not):
        return {"op": "not", "arg": condition_to_dict(condition.condition)}
    if isinstance(condition, Truthy):
        return {"op": "truthy", "nodeId": condition.node_id}
    if isinstance(condition, OneOf):
        return {"op": "in", "nodeId": condition.node_id, "values": list(condition.options)}
    op = {Equals: "equals", NotEquals: "notEquals", Contains: "contains"}[type(condition)]
    return {"op": op, "nodeId": condition.node_id, "value": condition.value}


def _as_mapping(value: object) -> Mapping[str, object]:
    if not isinstance(value, Mapping):
        raise ValueError("condition must be an object")
    return value  # pyright: ignore[reportUnknownVariableType]
