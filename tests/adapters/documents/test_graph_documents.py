from __future__ import annotations

from typing import Any

import pytest

from printconf.adapters.documents import (
    graph_from_document,
    graph_to_document,
    quantity_from_document,
    quantity_to_document,
)
from printconf.domain.configuration import validate_graph
from printconf.domain.errors import ValidationError
from printconf.domain.model import (
    AddFlat,
    EnvQuantity,
    Equals,
    FixedQuantity,
    InputType,
    NodeKind,
    PerQtyQuantity,
    Truthy,
    UnsupportedQuantity,
)


def _banner_document() -> dict[str, Any]:
    return {
        "rootNodeIds": ["root"],
        "nodes": {
            "root": {"id": "root", "kind": "group", "label": "Options"},
            "size": {
                "id": "size",
                "kind": "question",
                "label": "Size",
                "input": {"type": "select", "required": True, "default": "small"},
                "choices": [
                    {"value": "small", "label": "Small"},
                    {
                        "value": "large",
                        "label": "Large",
                        "weightOz": 3.5,
                        "pricingImpact": [{"mode": "addFlat", "amountCents": 400}],
                    },
                ],
            },
            "grommets": {
                "id": "grommets",
                "kind": "question",
                "label": "Grommets",
                "input": {"type": "boolean"},
                "pricingImpact": [{"mode": "addPerQty", "amountCents": 50}],
                "materialEffects": [
                    {
                        "skuRef": "SKU-GROMMET",
                        "qty": {
                            "mode": "env",
                            "key": "perimeter_in",
                            "divisor": 12,
                            "rounding": "ceil",
                        },
                    }
                ],
                "childItemEffects": [
                    {
                        "kind": "inlineSku",
                        "title": "Grommet kit",
                        "skuRef": "SKU-KIT",
                        "qty": {"mode": "perQty", "value": 1},
                        "unitPriceCents": 150,
                        "appliesWhen": {"op": "equals", "nodeId": "size", "value": "large"},
                    }
                ],
            },
        },
        "edges": [
            {"id": "e1", "fromNodeId": "root", "toNodeId": "size"},
            {
                "id": "e2",
                "fromNodeId": "size",
                "toNodeId": "grommets",
                "condition": {"op": "truthy", "nodeId": "size"},
                "priority": 1,
            },
        ],
        "meta": {"baseWeightOz": 12},
    }


def test_parses_a_graph_document() -> None:
    graph = graph_from_document(_banner_document())

    assert graph.root_node_ids == ("root",)
    assert graph.base_weight_oz == 12.0
    nodes = graph.nodes_by_id()
    size = nodes["size"]
    assert size.kind is NodeKind.QUESTION
    assert size.input is not None
    assert size.input.type is InputType.SELECT
    assert size.choices[1].pricing == (AddFlat(amount_cents=400),)

    grommets = nodes["grommets"]
    assert grommets.materials[0].quantity == EnvQuantity(
        key="perimeter_in", divisor=12.0, rounding="ceil"
    )
    child = grommets.child_items[0]
    assert child.quantity == PerQtyQuantity(1.0)
    assert child.apply_when == Equals("size", "large")
    assert graph.edges[1].condition == Truthy("size")

    validate_graph(graph)


def test_round_trips_through_the_document_form() -> None:
    graph = graph_from_document(_banner_document())

    document = graph_to_document(graph)

    assert graph_from_document(document) == graph
    assert document["nodes"]["grommets"]["childItemEffects"][0]["applyWhen"] == {
        "op": "equals",
        "nodeId": "size",
        "value": "large",
    }


def test_accepts_a_node_list() -> None:
    document = _banner_document()
    document["nodes"] = list(document["nodes"].values())

    graph = graph_from_document(document)

    assert [node.id for node in graph.nodes] == ["root", "size", "grommets"]


def test_rejects_duplicate_node_ids_in_a_list() -> None:
    document = _banner_document()
    document["nodes"] = [document["nodes"]["root"], document["nodes"]["root"]]

    with pytest.raises(ValidationError, match="duplicate node id 'root'"):
        graph_from_document(document)


def test_rejects_mismatched_node_keys() -> None:
    document = _banner_document()
    document["nodes"]["renamed"] = document["nodes"].pop("size")

    with pytest.raises(ValidationError, match="does not match node id 'size'"):
        graph_from_document(document)


def test_reports_schema_problems_by_location() -> None:
    document = _banner_document()
    document["nodes"]["size"]["kind"] = "widget"

    with pytest.raises(ValidationError) as excinfo:
        graph_from_document(document)

    assert any(problem.startswith("nodes.size.kind") for problem in excinfo.value.problems)


def test_rejects_malformed_conditions() -> None:
    document = _banner_document()
    document["edges"][1]["condition"] = {"op": "between", "nodeId": "size"}

    with pytest.raises(ValidationError, match="unsupported condition op"):
        graph_from_document(document)


def test_quantity_documents() -> None:
    assert quantity_from_document(3) == FixedQuantity(3.0)
    assert quantity_from_document({"mode": "fixed", "value": 2}) == FixedQuantity(2.0)
    assert quantity_from_document({"mode": "lookup"}) == UnsupportedQuantity("lookup")
    assert quantity_to_document(PerQtyQuantity(0.5)) == {"mode": "perQty", "value": 0.5}

    with pytest.raises(ValueError, match="non-empty key"):
        quantity_from_document({"mode": "env", "key": ""})
