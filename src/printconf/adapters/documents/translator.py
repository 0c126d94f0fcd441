"""Translate graph and snapshot documents to and from domain values.

Graph documents are authored elsewhere and may be malformed; any structural failure
is reported as a domain :class:`~printconf.domain.errors.ValidationError` so callers
see one error type for "this graph cannot be used". Snapshot documents are written by
this package and read back tolerantly, including legacy ones that predate
``effectIndex``; one that still does not parse raises
:class:`~printconf.domain.errors.IncompleteSnapshotError`.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from printconf.domain.configuration import (
    condition_from_dict,
    condition_to_dict,
    decode_pricing_effect,
    encode_pricing_effect,
)
from printconf.domain.errors import IncompleteSnapshotError, ValidationError
from printconf.domain.model import (
    ChildItemEffect,
    ChildItemProposal,
    Choice,
    Edge,
    EnvQuantity,
    FixedQuantity,
    InputSpec,
    InputType,
    MaterialEffect,
    MaterialUsage,
    Node,
    OptionGraph,
    PerQtyQuantity,
    PricingAddons,
    PricingLine,
    QuantityMode,
    Snapshot,
    UnsupportedQuantity,
    WeightEffect,
    WeightLine,
    WeightResult,
)

from .schema import (
    ChildItemEffectPayload,
    ChildItemPayload,
    ChoicePayload,
    EdgePayload,
    GraphDocument,
    MaterialEffectPayload,
    NodePayload,
    PricingPayload,
    RawCondition,
    RawQuantity,
    SnapshotDocument,
    WeightImpactPayload,
    WeightPayload,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from printconf.domain.model import Condition, Evaluation, QuantitySource

log = getLogger(__name__)


# Graph documents -------------------------------------------------------------


def graph_from_document(raw: GraphDocument | Mapping[str, Any]) -> OptionGraph:
    """Parse a graph document into an :class:`OptionGraph`.

    Only the document's shape is checked here; graph-level rules (roots, cycles,
    reachability) are enforced by ``validate_graph``.
    """

    try:
        document = raw if isinstance(raw, GraphDocument) else GraphDocument.model_validate(raw)
        return OptionGraph(
            root_node_ids=tuple(document.root_node_ids),
            nodes=tuple(_build_node(node) for node in document.nodes.values()),
            edges=tuple(_build_edge(edge) for edge in document.edges),
            base_weight_oz=document.meta.base_weight_oz,
        )
    except PydanticValidationError as exc:
        raise ValidationError(_problems(exc)) from exc
    except ValueError as exc:
        raise ValidationError([str(exc)]) from exc


def _problems(exc: PydanticValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in error['loc']) or 'document'}: {error['msg']}"
        for error in exc.errors()
    ]


def graph_to_document(graph: OptionGraph) -> dict[str, Any]:
    return {
        "rootNodeIds": list(graph.root_node_ids),
        "nodes": {node.id: _node_document(node) for node in graph.nodes},
        "edges": [_edge_document(edge) for edge in graph.edges],
        "meta": {"baseWeightOz": graph.base_weight_oz},
    }


def _build_node(payload: NodePayload) -> Node:
    return Node(
        id=payload.id,
        kind=payload.kind,
        label=payload.label,
        status=payload.status,
        input=_build_input(payload),
        choices=tuple(_build_choice(choice) for choice in payload.choices),
        pricing=tuple(decode_pricing_effect(raw) for raw in payload.pricing_impact),
        weight=tuple(_build_weight(raw) for raw in payload.weight_impact),
        materials=tuple(_build_material(raw) for raw in payload.material_effects),
        child_items=tuple(_build_child_item(raw) for raw in payload.child_item_effects),
    )


def _build_input(payload: NodePayload) -> InputSpec | None:
    if payload.input is None:
        return None
    raw_type = payload.input.type
    input_type: InputType | str = InputType(raw_type) if raw_type in InputType else raw_type
    return InputSpec(
        type=input_type,
        required=payload.input.required,
        default=payload.input.default,
        constraints=dict(payload.input.constraints),
    )


def _build_choice(payload: ChoicePayload) -> Choice:
    return Choice(
        value=payload.value,
        label=payload.label or payload.value,
        weight_oz=payload.weight_oz,
        pricing=tuple(decode_pricing_effect(raw) for raw in payload.pricing_impact),
    )


def _build_edge(payload: EdgePayload) -> Edge:
    return Edge(
        id=payload.id,
        from_node_id=payload.from_node_id,
        to_node_id=payload.to_node_id,
        condition=_condition(payload.condition),
        priority=payload.priority,
        status=payload.status,
    )


def _build_weight(payload: WeightImpactPayload) -> WeightEffect:
    return WeightEffect(
        mode=payload.mode,
        oz=payload.oz,
        label=payload.label,
        apply_when=_condition(payload.apply_when),
    )


def _build_material(payload: MaterialEffectPayload) -> MaterialEffect:
    return MaterialEffect(
        sku_ref=payload.sku_ref,
        quantity=quantity_from_document(payload.qty),
        uom=payload.uom,
        label=payload.label,
        apply_when=_condition(payload.apply_when),
    )


def _build_child_item(payload: ChildItemEffectPayload) -> ChildItemEffect:
    return ChildItemEffect(
        kind=payload.kind,
        title=payload.title,
        quantity=quantity_from_document(payload.qty),
        sku_ref=payload.sku_ref,
        child_product_id=payload.child_product_id,
        unit_price_cents=payload.unit_price_cents,
        invoice_visibility=payload.invoice_visibility,
        apply_when=_condition(payload.apply_when),
    )


def _condition(raw: RawCondition | None) -> Condition | None:
    return condition_from_dict(raw) if raw is not None else None


def quantity_from_document(raw: RawQuantity) -> QuantitySource:
    """A bare number is a fixed quantity; objects select a mode explicitly."""

    if isinstance(raw, (int, float)):
        return FixedQuantity(float(raw))
    mode = raw.get("mode")
    if mode == QuantityMode.FIXED:
        return FixedQuantity(_number(raw.get("value"), 0.0))
    if mode == QuantityMode.PER_QTY:
        return PerQtyQuantity(_number(raw.get("value"), 1.0))
    if mode == QuantityMode.ENV:
        key = raw.get("key")
        if not isinstance(key, str) or not key:
            raise ValueError("env quantity needs a non-empty key")
        return EnvQuantity(
            key=key,
            divisor=_number(raw.get("divisor"), 1.0),
            multiplier=_number(raw.get("multiplier"), 1.0),
            rounding=str(raw.get("rounding") or "none"),
        )
    log.debug("Unknown quantity mode %r", mode)
    return UnsupportedQuantity(str(mode))


def quantity_to_document(source: QuantitySource) -> dict[str, Any]:
    if isinstance(source, FixedQuantity):
        return {"mode": str(QuantityMode.FIXED), "value": source.value}
    if isinstance(source, PerQtyQuantity):
        return {"mode": str(QuantityMode.PER_QTY), "value": source.value}
    if isinstance(source, EnvQuantity):
        return {
            "mode": str(QuantityMode.ENV),
            "key": source.key,
            "divisor": source.divisor,
            "multiplier": source.multiplier,
            "rounding": str(source.rounding),
        }
    return {"mode": source.raw_mode}


def _number(value: object, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value)


def _node_document(node: Node) -> dict[str, Any]:
    document: dict[str, Any] = {
        "id": node.id,
        "kind": str(node.kind),
        "label": node.label,
        "status": str(node.status),
    }
    if node.input is not None:
        document["input"] = {
            "type": str(node.input.type),
            "required": node.input.required,
            "default": node.input.default,
            "constraints": dict(node.input.constraints),
        }
    if node.choices:
        document["choices"] = [_choice_document(choice) for choice in node.choices]
    if node.pricing:
        document["pricingImpact"] = [encode_pricing_effect(effect) for effect in node.pricing]
    if node.weight:
        document["weightImpact"] = [
            _with_condition({"mode": effect.mode, "oz": effect.oz, "label": effect.label}, effect)
            for effect in node.weight
        ]
    if node.materials:
        document["materialEffects"] = [
            _with_condition(
                {
                    "skuRef": effect.sku_ref,
                    "uom": effect.uom,
                    "qty": quantity_to_document(effect.quantity),
                    "label": effect.label,
                },
                effect,
            )
            for effect in node.materials
        ]
    if node.child_items:
        document["childItemEffects"] = [
            _with_condition(
                {
                    "kind": effect.kind,
                    "title": effect.title,
                    "skuRef": effect.sku_ref,
                    "childProductId": effect.child_product_id,
                    "qty": quantity_to_document(effect.quantity),
                    "unitPriceCents": effect.unit_price_cents,
                    "invoiceVisibility": effect.invoice_visibility,
                },
                effect,
            )
            for effect in node.child_items
        ]
    return document


def _choice_document(choice: Choice) -> dict[str, Any]:
    document: dict[str, Any] = {"value": choice.value, "label": choice.label}
    if choice.weight_oz is not None:
        document["weightOz"] = choice.weight_oz
    if choice.pricing:
        document["pricingImpact"] = [encode_pricing_effect(effect) for effect in choice.pricing]
    return document


def _edge_document(edge: Edge) -> dict[str, Any]:
    return {
        "id": edge.id,
        "fromNodeId": edge.from_node_id,
        "toNodeId": edge.to_node_id,
        "condition": condition_to_dict(edge.condition) if edge.condition is not None else None,
        "priority": edge.priority,
        "status": str(edge.status),
    }


def _with_condition(
    document: dict[str, Any], effect: WeightEffect | MaterialEffect | ChildItemEffect
) -> dict[str, Any]:
    if effect.apply_when is not None:
        document["applyWhen"] = condition_to_dict(effect.apply_when)
    return {key: value for key, value in document.items() if value is not None}


# Snapshot documents ----------------------------------------------------------


def snapshot_from_document(raw: SnapshotDocument | Mapping[str, Any]) -> Snapshot:
    try:
        document = (
            raw if isinstance(raw, SnapshotDocument) else SnapshotDocument.model_validate(raw)
        )
    except PydanticValidationError as exc:
        raise IncompleteSnapshotError(_problems(exc)) from exc
    return Snapshot(
        graph_version_id=document.graph_version_id,
        evaluated_at=document.evaluated_at,
        input_signature=document.input_signature,
        explicit_selections=document.explicit_selections,
        environment=document.env,
        pricing=_build_pricing(document.pricing),
        weight=_build_weight_result(document.weight),
        materials=tuple(
            MaterialUsage(
                source_node_id=material.source_node_id,
                sku_ref=material.sku_ref,
                uom=material.uom,
                qty=material.qty,
            )
            for material in document.materials
        ),
        child_items=(
            tuple(_build_proposal(item) for item in document.child_items)
            if document.child_items is not None
            else None
        ),
        details=dict(document.details),
    )


def snapshot_to_document(snapshot: Snapshot) -> dict[str, Any]:
    document: dict[str, Any] = {
        "graphVersionId": str(snapshot.graph_version_id) if snapshot.graph_version_id else None,
        "evaluatedAt": snapshot.evaluated_at.isoformat(),
        "inputSignature": snapshot.input_signature,
        "explicitSelections": (
            dict(snapshot.explicit_selections)
            if snapshot.explicit_selections is not None
            else None
        ),
        "env": dict(snapshot.environment) if snapshot.environment is not None else None,
        "materials": _materials_document(snapshot.materials),
        "childItems": (
            [_proposal_document(item) for item in snapshot.child_items]
            if snapshot.child_items is not None
            else None
        ),
        "details": dict(snapshot.details),
    }
    if snapshot.pricing is not None:
        document["pricing"] = _pricing_document(snapshot.pricing)
    if snapshot.weight is not None:
        document["weight"] = _weight_document(snapshot.weight)
    return document


def evaluation_to_document(evaluation: Evaluation) -> dict[str, Any]:
    """JSON view of an evaluation using the same shapes as the snapshot document."""

    return {
        "visibleNodeIds": list(evaluation.visible_node_ids),
        "pricing": _pricing_document(evaluation.pricing),
        "weight": _weight_document(evaluation.weight),
        "materials": _materials_document(evaluation.materials),
        "childItems": [_proposal_document(item) for item in evaluation.child_items],
    }


def _pricing_document(pricing: PricingAddons) -> dict[str, Any]:
    return {
        "addOnCents": pricing.add_on_cents,
        "breakdown": [
            {
                "nodeId": line.node_id,
                "label": line.label,
                "mode": str(line.mode),
                "amountCents": line.amount_cents,
            }
            for line in pricing.breakdown
        ],
        "percentOfBase": list(pricing.percent_of_base),
        "multipliers": list(pricing.multipliers),
    }


def _weight_document(weight: WeightResult) -> dict[str, Any]:
    return {
        "totalOz": weight.total_oz,
        "breakdown": [{"label": line.label, "oz": line.oz} for line in weight.breakdown],
    }


def _materials_document(materials: Iterable[MaterialUsage]) -> list[dict[str, Any]]:
    return [
        {
            "sourceNodeId": material.source_node_id,
            "skuRef": material.sku_ref,
            "uom": material.uom,
            "qty": material.qty,
        }
        for material in materials
    ]


def _build_pricing(payload: PricingPayload | None) -> PricingAddons | None:
    if payload is None:
        return None
    return PricingAddons(
        add_on_cents=payload.add_on_cents,
        breakdown=tuple(
            PricingLine(
                node_id=line.node_id,
                label=line.label,
                mode=line.mode,
                amount_cents=line.amount_cents,
            )
            for line in payload.breakdown
        ),
        percent_of_base=tuple(payload.percent_of_base),
        multipliers=tuple(payload.multipliers),
    )


def _build_weight_result(payload: WeightPayload | None) -> WeightResult | None:
    if payload is None:
        return None
    return WeightResult(
        total_oz=payload.total_oz,
        breakdown=tuple(WeightLine(label=line.label, oz=line.oz) for line in payload.breakdown),
    )


def _build_proposal(payload: ChildItemPayload) -> ChildItemProposal:
    return ChildItemProposal(
        kind=payload.kind,
        title=payload.title,
        source_node_id=payload.source_node_id,
        effect_index=payload.effect_index,
        qty=payload.qty,
        sku_ref=payload.sku_ref,
        child_product_id=payload.child_product_id,
        unit_price_cents=payload.unit_price_cents,
        amount_cents=payload.amount_cents,
        invoice_visibility=payload.invoice_visibility,
    )


def _proposal_document(proposal: ChildItemProposal) -> dict[str, Any]:
    return {
        "kind": str(proposal.kind),
        "title": proposal.title,
        "sourceNodeId": proposal.source_node_id,
        "effectIndex": proposal.effect_index,
        "qty": proposal.qty,
        "skuRef": proposal.sku_ref,
        "childProductId": proposal.child_product_id,
        "unitPriceCents": proposal.unit_price_cents,
        "amountCents": proposal.amount_cents,
        "invoiceVisibility": (
            str(proposal.invoice_visibility) if proposal.invoice_visibility is not None else None
        ),
    }
