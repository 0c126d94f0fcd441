"""Condition predicates over selections.

The vocabulary is deliberately small: equality, presence and membership tests on a
single node's selected value, combined with boolean connectives.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Equals:
    node_id: str
    value: object


@dataclass(frozen=True, slots=True)
class NotEquals:
    node_id: str
    value: object


@dataclass(frozen=True, slots=True)
class Truthy:
    """Holds when the node carries a selected value."""

    node_id: str


@dataclass(frozen=True, slots=True)
class Contains:
    """Holds when a multiselect value (or a text value) contains ``value``."""

    node_id: str
    value: object


@dataclass(frozen=True, slots=True)
class OneOf:
    node_id: str
    options: tuple[object, ...]


@dataclass(frozen=True, slots=True)
class AllOf:
    conditions: tuple[Condition, ...]


@dataclass(frozen=True, slots=True)
class AnyOf:
    conditions: tuple[Condition, ...]


@dataclass(frozen=True, slots=True)
class Not:
    condition: Condition


type Condition = Equals | NotEquals | Truthy | Contains | OneOf | AllOf | AnyOf | Not
