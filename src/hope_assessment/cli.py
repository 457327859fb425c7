from __future__ import annotations

import argparse
import json
import logging
from datetime import date
from pathlib import Path

from .assembler import variants_to_dict
from .rules import DEFAULT_RULE_SET, RuleSet, load_rule_set_file
from .serialization import load_payload_file
from .session import (
    AssessmentSession,
    active_set_to_dict,
    finalize_report_to_dict,
)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _parse_today(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as error:
        raise argparse.ArgumentTypeError("--today must be in format YYYY-MM-DD") from error


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hope-assessment",
        description="Skip-pattern evaluation and finalize checks for HOPE assessment records.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    evaluate_cmd = subparsers.add_parser(
        "evaluate",
        help="Load a record, reconcile it and print the active field set.",
    )
    evaluate_cmd.add_argument("record_json", help="Path to nested record JSON")
    evaluate_cmd.add_argument("--rules", help="Optional rule-set JSON replacing the built-in table")
    evaluate_cmd.add_argument("--output-json", help="Optional path for the evaluation JSON")

    validate_cmd = subparsers.add_parser(
        "validate",
        help="Run finalize checks on a record; exit code 1 when it would be rejected.",
    )
    validate_cmd.add_argument("record_json", help="Path to nested record JSON")
    validate_cmd.add_argument("--rules", help="Optional rule-set JSON replacing the built-in table")
    validate_cmd.add_argument(
        "--today",
        type=_parse_today,
        default=None,
        help="Reference date for the future-date check (YYYY-MM-DD). Default: today",
    )
    validate_cmd.add_argument("--output-json", help="Optional path for the report JSON")

    subparsers.add_parser("variants", help="Print the reason-for-record variant mapping.")

    rules_cmd = subparsers.add_parser("rules", help="Validate and list a rule table.")
    rules_cmd.add_argument("--rules", help="Rule-set JSON to validate. Default: built-in table")

    return parser


def _load_rules(path: str | None) -> RuleSet:
    if path is None:
        return DEFAULT_RULE_SET
    rules_path = Path(path)
    if not rules_path.exists():
        raise FileNotFoundError(rules_path)
    return load_rule_set_file(rules_path)


def _open_session(args: argparse.Namespace) -> AssessmentSession:
    record_json = Path(args.record_json)
    if not record_json.exists():
        raise FileNotFoundError(record_json)
    payload = load_payload_file(record_json)
    return AssessmentSession(payload=payload, rule_set=_load_rules(args.rules))


def _write_json(path: str | None, payload: dict[str, object]) -> None:
    if not path:
        return
    output_json = Path(path)
    output_json.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    print(f"JSON written: {output_json}")


def _handle_evaluate(args: argparse.Namespace) -> int:
    session = _open_session(args)
    active = session.active

    print(f"Reason for record: {session.reason_for_record or '<empty>'}")
    print(f"Variant: {session.variant or 'uninitialized'}")
    print(f"Status: {session.status}")
    print(f"Active fields: {len(active.fields)}")
    print(f"Required: {len(active.required)}")
    for path in session.initial_cleared:
        print(f"PURGED: {path}")

    _write_json(
        args.output_json,
        {
            "reason_for_record": session.reason_for_record,
            "variant": session.variant,
            "status": session.status,
            "active": active_set_to_dict(active),
            "purged": list(session.initial_cleared),
            "payload": session.to_payload(),
        },
    )
    return 0


def _handle_validate(args: argparse.Namespace) -> int:
    session = _open_session(args)
    report = session.validate(today=args.today)
    record_json = Path(args.record_json)

    if report.accepted:
        print(f"Record accepted: {record_json}")
    else:
        print(f"Record REJECTED: {record_json}")
    for violation in report.violations:
        print(f"ERROR: [{violation.code}] {violation.message}")
    for warning in report.warnings:
        print(f"WARNING: [{warning.code}] {warning.message}")

    _write_json(args.output_json, finalize_report_to_dict(report))
    return 0 if report.accepted else 1


def _handle_variants() -> int:
    for item in variants_to_dict():
        print(f"{item['reason_for_record']}: {item['variant']} - {item['label']}")
    return 0


def _handle_rules(args: argparse.Namespace) -> int:
    rule_set = _load_rules(args.rules)
    print(f"Rule set {rule_set.config_version}: {len(rule_set.rules)} rules")
    for rule in rule_set.rules:
        print(f"{rule.section} {rule.rule_id} [{rule.effect}] -> {', '.join(rule.targets)}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    if args.command == "evaluate":
        return _handle_evaluate(args)
    if args.command == "validate":
        return _handle_validate(args)
    if args.command == "variants":
        return _handle_variants()
    if args.command == "rules":
        return _handle_rules(args)

    parser.error(f"unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
