"""Pydantic schemas for graph version and snapshot documents.

Graph documents arrive from the authoring side as JSON; snapshot documents are the
persisted form of :class:`printconf.domain.model.Snapshot`. Both are parsed leniently:
unknown keys are ignored, and effect modes stay open strings so that the evaluator,
not the parser, decides what an unsupported mode means.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from typing import Any
from uuid import UUID  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from printconf.domain.model import (
    ChildItemKind,
    EntityStatus,
    InvoiceVisibility,
    NodeKind,
    PricingMode,
)

type RawCondition = dict[str, Any]
type RawQuantity = dict[str, Any] | float


class DocumentModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# Graph documents -------------------------------------------------------------


class InputPayload(DocumentModel):
    type: str
    required: bool = False
    default: Any = None
    constraints: dict[str, Any] = Field(default_factory=dict)


class ChoicePayload(DocumentModel):
    value: str
    label: str = ""
    weight_oz: float | None = Field(default=None, alias="weightOz")
    pricing_impact: list[dict[str, Any]] = Field(default_factory=list, alias="pricingImpact")


class WeightImpactPayload(DocumentModel):
    mode: str
    oz: float = 0.0
    label: str | None = None
    apply_when: RawCondition | None = Field(default=None, alias="applyWhen")


class MaterialEffectPayload(DocumentModel):
    sku_ref: str = Field(alias="skuRef")
    uom: str = "ea"
    qty: RawQuantity = 1.0
    label: str | None = None
    apply_when: RawCondition | None = Field(default=None, alias="applyWhen")


class ChildItemEffectPayload(DocumentModel):
    kind: str
    title: str | None = None
    sku_ref: str | None = Field(default=None, alias="skuRef")
    child_product_id: str | None = Field(default=None, alias="childProductId")
    qty: RawQuantity = 1.0
    unit_price_cents: int | None = Field(default=None, alias="unitPriceCents")
    invoice_visibility: str | None = Field(default=None, alias="invoiceVisibility")
    apply_when: RawCondition | None = Field(default=None, alias="applyWhen")

    @model_validator(mode="before")
    @classmethod
    def _accept_applies_when(cls, data: Any) -> Any:
        # older documents spell the condition key "appliesWhen"
        if isinstance(data, dict) and "applyWhen" not in data and "appliesWhen" in data:
            return {**data, "applyWhen": data["appliesWhen"]}  # pyright: ignore[reportUnknownVariableType]
        return data  # pyright: ignore[reportUnknownVariableType]


class NodePayload(DocumentModel):
    id: str = Field(min_length=1)
    kind: NodeKind
    label: str = ""
    status: EntityStatus = EntityStatus.ENABLED
    input: InputPayload | None = None
    choices: list[ChoicePayload] = Field(default_factory=list)
    pricing_impact: list[dict[str, Any]] = Field(default_factory=list, alias="pricingImpact")
    weight_impact: list[WeightImpactPayload] = Field(default_factory=list, alias="weightImpact")
    material_effects: list[MaterialEffectPayload] = Field(
        default_factory=list, alias="materialEffects"
    )
    child_item_effects: list[ChildItemEffectPayload] = Field(
        default_factory=list, alias="childItemEffects"
    )


class EdgePayload(DocumentModel):
    id: str = Field(min_length=1)
    from_node_id: str = Field(alias="fromNodeId")
    to_node_id: str = Field(alias="toNodeId")
    condition: RawCondition | None = None
    priority: int = 0
    status: EntityStatus = EntityStatus.ENABLED


class GraphMetaPayload(DocumentModel):
    base_weight_oz: float = Field(default=0.0, alias="baseWeightOz")


class GraphDocument(DocumentModel):
    root_node_ids: list[str] = Field(alias="rootNodeIds")
    nodes: dict[str, NodePayload]
    edges: list[EdgePayload] = Field(default_factory=list)
    meta: GraphMetaPayload = Field(default_factory=GraphMetaPayload)

    @field_validator("nodes", mode="before")
    @classmethod
    def _index_node_list(cls, value: Any) -> Any:
        if isinstance(value, list):
            indexed: dict[str, Any] = {}
            for item in value:  # pyright: ignore[reportUnknownVariableType]
                node_id = item.get("id") if isinstance(item, dict) else None  # pyright: ignore[reportUnknownMemberType]
                if not isinstance(node_id, str):
                    raise ValueError("every node in a node list needs a string id")
                if node_id in indexed:
                    raise ValueError(f"duplicate node id '{node_id}'")
                indexed[node_id] = item
            return indexed
        return value

    @model_validator(mode="after")
    def _keys_match_ids(self) -> GraphDocument:
        for key, node in self.nodes.items():
            if key != node.id:
                raise ValueError(f"node key '{key}' does not match node id '{node.id}'")
        return self


# Snapshot documents ----------------------------------------------------------


class PricingLinePayload(DocumentModel):
    node_id: str = Field(alias="nodeId")
    label: str
    mode: PricingMode
    amount_cents: int = Field(alias="amountCents")


class PricingPayload(DocumentModel):
    add_on_cents: int = Field(default=0, alias="addOnCents")
    breakdown: list[PricingLinePayload] = Field(default_factory=list)
    percent_of_base: list[float] = Field(default_factory=list, alias="percentOfBase")
    multipliers: list[float] = Field(default_factory=list)


class WeightLinePayload(DocumentModel):
    label: str
    oz: float


class WeightPayload(DocumentModel):
    total_oz: float = Field(default=0.0, alias="totalOz")
    breakdown: list[WeightLinePayload] = Field(default_factory=list)


class MaterialUsagePayload(DocumentModel):
    source_node_id: str = Field(alias="sourceNodeId")
    sku_ref: str = Field(alias="skuRef")
    uom: str = "ea"
    qty: float


class ChildItemPayload(DocumentModel):
    kind: ChildItemKind
    title: str
    source_node_id: str = Field(alias="sourceNodeId")
    effect_index: int | None = Field(default=None, alias="effectIndex")
    qty: float
    sku_ref: str | None = Field(default=None, alias="skuRef")
    child_product_id: str | None = Field(default=None, alias="childProductId")
    unit_price_cents: int | None = Field(default=None, alias="unitPriceCents")
    amount_cents: int | None = Field(default=None, alias="amountCents")
    invoice_visibility: InvoiceVisibility | None = Field(default=None, alias="invoiceVisibility")


class SnapshotDocument(DocumentModel):
    graph_version_id: UUID | None = Field(default=None, alias="graphVersionId")
    evaluated_at: datetime = Field(alias="evaluatedAt")
    input_signature: str | None = Field(default=None, alias="inputSignature")
    explicit_selections: dict[str, Any] | None = Field(default=None, alias="explicitSelections")
    env: dict[str, Any] | None = None
    pricing: PricingPayload | None = None
    weight: WeightPayload | None = None
    materials: list[MaterialUsagePayload] = Field(default_factory=list)
    child_items: list[ChildItemPayload] | None = Field(default=None, alias="childItems")
    details: dict[str, Any] = Field(default_factory=dict)
