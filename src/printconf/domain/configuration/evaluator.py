"""Graph evaluator: reduce the visible, selected nodes of a graph into effects.

Stages, in order:
- structural validation of the graph version
- validation of the explicit selections against the graph
- visible node resolution over effective values (explicit selections over defaults)
- per-node reduction of pricing, weight, material and child-item effects

The evaluator is a pure function of its inputs. Unsupported pricing, weight and
material modes are skipped; malformed child-item effects abort the evaluation.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from printconf.domain.errors import EvaluationError
from printconf.domain.model import (
    AddFlat,
    AddPerQty,
    AddPerSqft,
    ChildItemKind,
    ChildItemProposal,
    EntityStatus,
    EnvQuantity,
    Evaluation,
    FixedQuantity,
    InputType,
    InvoiceVisibility,
    MaterialUsage,
    Multiplier,
    NodeKind,
    PercentOfBase,
    PerQtyQuantity,
    PricingAddons,
    PricingLine,
    Rounding,
    UnsupportedPricingEffect,
    WeightLine,
    WeightMode,
    WeightResult,
)
from printconf.domain.model.numbers import is_finite_number, round_half_up

from .conditions import evaluate_condition, is_present
from .environment import QUANTITY, SQFT, numeric
from .validation import DEFAULT_MAX_CONDITION_DEPTH, validate_graph
from .visibility import resolve_visible_nodes

if TYPE_CHECKING:
    from printconf.domain.model import (
        ChildItemEffect,
        Choice,
        MaterialEffect,
        Node,
        OptionGraph,
        PricingEffect,
        QuantitySource,
    )

log = logging.getLogger(__name__)


def evaluate(
    graph: OptionGraph,
    selections: Mapping[str, object],
    environment: Mapping[str, object],
    *,
    max_condition_depth: int = DEFAULT_MAX_CONDITION_DEPTH,
) -> Evaluation:
    """Evaluate ``graph`` for one configuration attempt.

    Raises:
        ValidationError: the graph is structurally invalid.
        EvaluationError: a selection references an unknown node or choice, the
            environment has no usable quantity, or a child-item effect is malformed.
    """

    validate_graph(graph, max_condition_depth=max_condition_depth)
    nodes = graph.nodes_by_id()
    check_selections(nodes, selections)

    quantity = numeric(environment, QUANTITY)
    if quantity is None or quantity <= 0:
        raise EvaluationError("environment must carry a positive numeric quantity")

    values = effective_values(nodes, selections)
    visible = resolve_visible_nodes(graph, values)
    reducer = _Reducer(
        values=values,
        environment=environment,
        quantity=quantity,
        sqft=numeric(environment, SQFT),
    )
    reducer.add_base_weight(graph.base_weight_oz)
    for node_id in visible:
        node = nodes[node_id]
        if is_selected(node, values.get(node_id)):
            reducer.reduce_node(node, values.get(node_id))

    return reducer.result(visible)


def effective_values(
    nodes: Mapping[str, Node], selections: Mapping[str, object]
) -> dict[str, object]:
    """Explicit selections overlaid on node-declared defaults."""

    values: dict[str, object] = {}
    for node in nodes.values():
        if node.status == EntityStatus.DELETED or node.input is None:
            continue
        if node.input.default is not None:
            values[node.id] = node.input.default
    values.update(selections)
    return values


def is_selected(node: Node, value: object) -> bool:
    """Whether a visible node contributes its effects.

    Group and computed nodes contribute whenever they are visible.
    """

    if node.kind != NodeKind.QUESTION:
        return True
    input_type = node.input_type
    if value is None:
        return False
    if input_type == InputType.BOOLEAN:
        return value is True
    if input_type == InputType.SELECT:
        return isinstance(value, str) and bool(value.strip())
    if input_type == InputType.MULTISELECT:
        return isinstance(value, (list, tuple)) and len(value) > 0  # pyright: ignore[reportUnknownArgumentType]
    if input_type in {InputType.NUMBER, InputType.DIMENSION}:
        return is_finite_number(value)
    return is_present(value)


def check_selections(nodes: Mapping[str, Node], selections: Mapping[str, object]) -> None:
    for node_id, value in selections.items():
        node = nodes.get(node_id)
        if node is None or node.status == EntityStatus.DELETED:
            raise EvaluationError(f"Selection references unknown node '{node_id}'")
        if node.kind != NodeKind.QUESTION:
            raise EvaluationError(f"Selection targets non-question node '{node_id}'")
        if value is not None:
            _check_value(node, value)


def _check_value(node: Node, value: object) -> None:
    input_type = node.input_type
    if input_type == InputType.BOOLEAN and not isinstance(value, bool):
        raise EvaluationError(f"Selection for '{node.id}' must be true or false")
    if input_type == InputType.SELECT:
        if not isinstance(value, str):
            raise EvaluationError(f"Selection for '{node.id}' must be a choice value")
        if value.strip() and node.choices and node.choice(value) is None:
            raise EvaluationError(f"Selection for '{node.id}' references unknown choice '{value}'")
    if input_type == InputType.MULTISELECT:
        if not isinstance(value, (list, tuple)):
            raise EvaluationError(f"Selection for '{node.id}' must be a list of choice values")
        for item in value:  # pyright: ignore[reportUnknownVariableType]
            if node.choices and node.choice(item) is None:
                raise EvaluationError(
                    f"Selection for '{node.id}' references unknown choice '{item}'"
                )
    if input_type in {InputType.NUMBER, InputType.DIMENSION} and not is_finite_number(value):
        raise EvaluationError(f"Selection for '{node.id}' must be a finite number")


def selected_choices(node: Node, value: object) -> tuple[Choice, ...]:
    if node.input_type == InputType.SELECT:
        choice = node.choice(value)
        return (choice,) if choice is not None else ()
    if node.input_type == InputType.MULTISELECT and isinstance(value, (list, tuple)):
        found = (node.choice(item) for item in value)  # pyright: ignore[reportUnknownVariableType]
        return tuple(choice for choice in found if choice is not None)
    return ()


def resolve_quantity(
    source: QuantitySource,
    environment: Mapping[str, object],
    quantity: float,
) -> float | None:
    """Quantity produced by a source, or ``None`` when the source is malformed.

    An environment source whose key is absent yields ``0.0`` (nothing to produce).
    """

    if isinstance(source, FixedQuantity):
        return float(source.value) if is_finite_number(source.value) else None
    if isinstance(source, PerQtyQuantity):
        return float(source.value) * quantity if is_finite_number(source.value) else None
    if isinstance(source, EnvQuantity):
        if not source.divisor or not is_finite_number(source.divisor):
            return None
        raw = numeric(environment, source.key)
        if raw is None:
            return 0.0
        scaled = raw / source.divisor * source.multiplier
        return _apply_rounding(scaled, source.rounding)
    return None


def _apply_rounding(value: float, rounding: Rounding | str) -> float | None:
    if rounding == Rounding.NONE:
        return value
    if rounding == Rounding.CEIL:
        return float(math.ceil(value))
    if rounding == Rounding.FLOOR:
        return float(math.floor(value))
    if rounding == Rounding.ROUND:
        return float(round_half_up(value))
    return None


@dataclass(slots=True, kw_only=True)
class _Reducer:
    values: Mapping[str, object]
    environment: Mapping[str, object]
    quantity: float
    sqft: float | None

    add_on_cents: int = 0
    breakdown: list[PricingLine] = field(default_factory=list[PricingLine])
    percent_of_base: list[float] = field(default_factory=list[float])
    multipliers: list[float] = field(default_factory=list[float])
    total_oz: float = 0.0
    weight_lines: list[WeightLine] = field(default_factory=list[WeightLine])
    materials: list[MaterialUsage] = field(default_factory=list[MaterialUsage])
    child_items: list[ChildItemProposal] = field(default_factory=list[ChildItemProposal])

    def add_base_weight(self, base_weight_oz: float) -> None:
        if is_finite_number(base_weight_oz) and base_weight_oz:
            self._add_weight("Base weight", base_weight_oz)

    def reduce_node(self, node: Node, value: object) -> None:
        node_label = node.label or node.id
        for effect in node.pricing:
            self._add_pricing(node.id, node_label, effect)
        for choice in selected_choices(node, value):
            choice_label = f"{node_label}: {choice.label}"
            for effect in choice.pricing:
                self._add_pricing(node.id, choice_label, effect)
            if choice.weight_oz is not None and is_finite_number(choice.weight_oz):
                self._add_weight(choice_label, choice.weight_oz * self.quantity)
        for weight in node.weight:
            if evaluate_condition(weight.apply_when, self.values):
                self._add_node_weight(node, weight.mode, weight.oz, weight.label)
        for material in node.materials:
            self._add_material(node, material)
        for index, child in enumerate(node.child_items):
            self._add_child_item(node, index, child)

    def _add_pricing(self, node_id: str, label: str, effect: PricingEffect) -> None:
        if not evaluate_condition(effect.apply_when, self.values):
            return
        if isinstance(effect, UnsupportedPricingEffect):
            log.debug("Skipping unsupported pricing mode %r on node %s", effect.raw_mode, node_id)
            return
        if isinstance(effect, PercentOfBase):
            self.percent_of_base.append(effect.percent)
            return
        if isinstance(effect, Multiplier):
            self.multipliers.append(effect.factor)
            return

        amount = self._pricing_amount(effect)
        if amount is None:
            log.debug("Skipping per-area pricing on node %s: no area in environment", node_id)
            return
        self.add_on_cents += amount
        self.breakdown.append(
            PricingLine(
                node_id=node_id,
                label=effect.label or label,
                mode=effect.mode,
                amount_cents=amount,
            )
        )

    def _pricing_amount(self, effect: AddFlat | AddPerQty | AddPerSqft) -> int | None:
        if isinstance(effect, AddFlat):
            return effect.amount_cents
        if isinstance(effect, AddPerQty):
            return round_half_up(effect.amount_cents * self.quantity)
        if self.sqft is None:
            return None
        return round_half_up(effect.amount_cents * self.sqft * self.quantity)

    def _add_node_weight(self, node: Node, mode: str, oz: float, label: str | None) -> None:
        if not is_finite_number(oz):
            return
        if mode == WeightMode.ADD_FLAT:
            contribution = oz
        elif mode == WeightMode.ADD_PER_QTY:
            contribution = oz * self.quantity
        elif mode == WeightMode.ADD_PER_SQFT:
            if self.sqft is None:
                return
            contribution = oz * self.sqft * self.quantity
        else:
            log.debug("Skipping unsupported weight mode %r on node %s", mode, node.id)
            return
        self._add_weight(label or f"Weight: {node.label or node.id}", contribution)

    def _add_weight(self, label: str, oz: float) -> None:
        if oz:
            self.total_oz += oz
            self.weight_lines.append(WeightLine(label=label, oz=oz))

    def _add_material(self, node: Node, material: MaterialEffect) -> None:
        if not evaluate_condition(material.apply_when, self.values):
            return
        qty = resolve_quantity(material.quantity, self.environment, self.quantity)
        if qty is None:
            log.debug("Skipping material %s on node %s: bad quantity", material.sku_ref, node.id)
            return
        if qty <= 0:
            return
        self.materials.append(
            MaterialUsage(
                source_node_id=node.id,
                sku_ref=material.sku_ref,
                uom=material.uom,
                qty=qty,
            )
        )

    def _add_child_item(self, node: Node, index: int, effect: ChildItemEffect) -> None:
        kind, visibility = _validated_child_item(node, index, effect)
        if not evaluate_condition(effect.apply_when, self.values):
            return
        qty = resolve_quantity(effect.quantity, self.environment, self.quantity)
        if qty is None:
            raise EvaluationError(
                f"Child item effect {index} on node '{node.id}' has an unsupported quantity"
            )
        if qty <= 0:
            return
        amount = (
            round_half_up(qty * effect.unit_price_cents)
            if effect.unit_price_cents is not None
            else None
        )
        self.child_items.append(
            ChildItemProposal(
                kind=kind,
                title=effect.title or "",
                source_node_id=node.id,
                effect_index=index,
                qty=qty,
                sku_ref=effect.sku_ref,
                child_product_id=effect.child_product_id,
                unit_price_cents=effect.unit_price_cents,
                amount_cents=amount,
                invoice_visibility=visibility,
            )
        )

    def result(self, visible: tuple[str, ...]) -> Evaluation:
        return Evaluation(
            visible_node_ids=visible,
            pricing=PricingAddons(
                add_on_cents=self.add_on_cents,
                breakdown=tuple(self.breakdown),
                percent_of_base=tuple(self.percent_of_base),
                multipliers=tuple(self.multipliers),
            ),
            weight=WeightResult(total_oz=self.total_oz, breakdown=tuple(self.weight_lines)),
            materials=tuple(self.materials),
            child_items=tuple(sorted(self.child_items, key=_proposal_order)),
        )


def _validated_child_item(
    node: Node, index: int, effect: ChildItemEffect
) -> tuple[ChildItemKind, InvoiceVisibility]:
    where = f"Child item effect {index} on node '{node.id}'"
    try:
        kind = ChildItemKind(effect.kind)
    except ValueError as exc:
        raise EvaluationError(f"{where} has unsupported kind '{effect.kind}'") from exc
    try:
        visibility = InvoiceVisibility(effect.invoice_visibility or InvoiceVisibility.ROLLUP)
    except ValueError as exc:
        raise EvaluationError(
            f"{where} has unsupported invoice visibility '{effect.invoice_visibility}'"
        ) from exc
    if not effect.title or not effect.title.strip():
        raise EvaluationError(f"{where} has no title")
    if kind is ChildItemKind.INLINE_SKU and not effect.sku_ref:
        raise EvaluationError(f"{where} is an inline SKU without skuRef")
    if kind is ChildItemKind.PRODUCT_REF and not effect.child_product_id:
        raise EvaluationError(f"{where} is a product reference without childProductId")
    return kind, visibility


def _proposal_order(proposal: ChildItemProposal) -> tuple[str, int]:
    return (proposal.source_node_id, proposal.effect_index or 0)
