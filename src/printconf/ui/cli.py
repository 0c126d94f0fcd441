# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from dotenv import load_dotenv

from printconf.adapters.documents import evaluation_to_document
from printconf.app import (
    accept_line_item_components,
    apply_line_item_components,
    compute_input_signature,
    evaluate_graph_document,
    keep_existing_line_item_snapshot,
    line_item_status,
    recompute_line_item,
    void_line_item_component,
)
from printconf.config import configure_logging
from printconf.domain.model import PricingTier

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

_LINE_ITEM_COMMANDS = ("recompute", "apply", "accept", "keep-existing", "status")


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evaluate product configurations")
    subparsers = parser.add_subparsers(dest="command", required=True)

    evaluate = subparsers.add_parser("evaluate", help="Evaluate a graph document file")
    evaluate.add_argument("graph", type=str, help="Path to a graph document (JSON)")
    evaluate.add_argument("--selections", type=str, help="Path to explicit selections (JSON)")
    evaluate.add_argument("--quantity", type=float, default=1, help="Ordered quantity")
    evaluate.add_argument("--width", type=float, help="Width in inches")
    evaluate.add_argument("--height", type=float, help="Height in inches")
    evaluate.add_argument(
        "--tier",
        type=str,
        choices=[tier.value for tier in PricingTier],
        help="Pricing tier",
    )
    evaluate.add_argument("--env", type=str, help="Path to extra environment values (JSON)")

    signature = subparsers.add_parser("signature", help="Compute an input signature")
    signature.add_argument("graph_version_id", type=str, help="Graph version id")
    signature.add_argument(
        "--selections",
        type=str,
        required=True,
        help="Path to explicit selections (JSON)",
    )
    signature.add_argument("--env", type=str, help="Path to the environment (JSON)")

    recompute = subparsers.add_parser("recompute", help="Recompute a line item snapshot")
    recompute.add_argument("line_item_id", type=str)
    recompute.add_argument("--env", type=str, help="Path to extra environment values (JSON)")

    apply = subparsers.add_parser("apply", help="Reconcile components with the snapshot")
    apply.add_argument("line_item_id", type=str)

    accept = subparsers.add_parser("accept", help="Accept the snapshot's proposals")
    accept.add_argument("line_item_id", type=str)

    keep = subparsers.add_parser("keep-existing", help="Proceed with the current snapshot")
    keep.add_argument("line_item_id", type=str)
    keep.add_argument("--note", type=str, help="Reason recorded in the audit trail")

    void = subparsers.add_parser("void", help="Void one accepted component")
    void.add_argument("component_id", type=str)
    void.add_argument("--note", type=str, help="Reason recorded in the audit trail")

    status = subparsers.add_parser("status", help="Report snapshot staleness")
    status.add_argument("line_item_id", type=str)

    for sub in (recompute, apply, accept, keep, void):
        sub.add_argument("--actor", type=str, help="Who is making the change")

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _load_json_object(path: str | None) -> dict[str, Any]:
    if path is None:
        return {}
    try:
        loaded = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ValueError(f"Cannot read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        raise ValueError(f"Expected a JSON object in {path}")
    return loaded  # pyright: ignore[reportUnknownVariableType]


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True, default=str))


def _run(args: argparse.Namespace, inputs: dict[str, Any]) -> None:
    if args.command == "evaluate":
        evaluation = evaluate_graph_document(
            inputs["graph"],
            inputs["selections"],
            quantity=args.quantity,
            width_in=args.width,
            height_in=args.height,
            pricing_tier=args.tier,
            extras=inputs["env"],
        )
        _print_json(evaluation_to_document(evaluation))
    elif args.command == "signature":
        print(compute_input_signature(inputs["id"], inputs["selections"], inputs["env"]))
    elif args.command == "recompute":
        snapshot = recompute_line_item(inputs["id"], extras=inputs["env"], actor=args.actor)
        log.info("Snapshot signature: %s", snapshot.input_signature)
    elif args.command == "apply":
        result = apply_line_item_components(inputs["id"], actor=args.actor)
        _print_json(
            {
                "added": result.added,
                "removed": result.removed,
                "modified": result.modified,
                "voided": result.voided,
                "upserted": result.upserted,
            }
        )
    elif args.command == "accept":
        accepted = accept_line_item_components(inputs["id"], actor=args.actor)
        _print_json({"upserted": accepted.upserted, "accepted": len(accepted.accepted)})
    elif args.command == "keep-existing":
        event = keep_existing_line_item_snapshot(inputs["id"], note=args.note, actor=args.actor)
        log.info("Recorded audit event %s", event.id)
    elif args.command == "void":
        component = void_line_item_component(inputs["id"], actor=args.actor, note=args.note)
        log.info("Component %s is %s", component.id, component.status)
    elif args.command == "status":
        report = line_item_status(inputs["id"])
        _print_json(
            {
                "lineItemId": str(report.line_item_id),
                "stale": report.stale,
                "storedSignature": report.stored_signature,
                "currentSignature": report.current_signature,
                "graphVersionId": (
                    str(report.graph_version_id) if report.graph_version_id else None
                ),
            }
        )
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def _collect_inputs(args: argparse.Namespace) -> dict[str, Any]:
    inputs: dict[str, Any] = {"env": _load_json_object(getattr(args, "env", None))}
    if args.command == "evaluate":
        inputs["graph"] = _load_json_object(args.graph)
        inputs["selections"] = _load_json_object(args.selections)
    elif args.command == "signature":
        inputs["id"] = _parse_uuid(args.graph_version_id)
        inputs["selections"] = _load_json_object(args.selections)
    elif args.command in _LINE_ITEM_COMMANDS:
        inputs["id"] = _parse_uuid(args.line_item_id)
    elif args.command == "void":
        inputs["id"] = _parse_uuid(args.component_id)
    return inputs


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        inputs = _collect_inputs(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _run(parsed_args, inputs)
    except Exception:
        log.exception("Command %s failed", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
