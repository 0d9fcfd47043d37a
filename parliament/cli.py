"""Command line interface for Parliament."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

from parliament.config import get_config
from parliament.engine import InputError
from parliament.intent import classify_intent, extract_signals
from parliament.ledger import JsonlAuditLog, LedgerError, export_records, summarize, verify_record
from parliament.pipeline import ParliamentPipeline
from parliament.types import Direction


def _print(obj: Any) -> None:
    print(json.dumps(obj, indent=2))


def _read_text(args: argparse.Namespace) -> str:
    if args.text is not None:
        return args.text
    if getattr(args, "input_file", None):
        return Path(args.input_file).read_text()
    return sys.stdin.read()


def _load_payload(args: argparse.Namespace) -> dict:
    payload: dict[str, Any] = {}
    if args.payload:
        try:
            payload = json.loads(Path(args.payload).read_text())
        except json.JSONDecodeError as exc:
            raise InputError(f"payload is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise InputError("payload must be a JSON object")
    if args.text is not None or "text" not in payload:
        payload["text"] = _read_text(args)
    if args.session_id:
        payload["session_id"] = args.session_id
    if args.failure_reason:
        payload["failure_reasons"] = list(payload.get("failure_reasons") or []) + args.failure_reason
    if args.failed_direction:
        payload["failed_direction"] = args.failed_direction
    if args.meta:
        metadata = dict(payload.get("metadata") or {})
        for item in args.meta:
            key, _, value = item.partition("=")
            metadata[key] = value
        payload["metadata"] = metadata
    if payload.get("metadata") is None:
        payload["metadata"] = {}
    if isinstance(payload["metadata"], dict):
        payload["metadata"].setdefault("source", "cli")
    return payload


def cmd_evaluate(args: argparse.Namespace) -> None:
    config = get_config()
    pipeline = ParliamentPipeline(config)
    payload = _load_payload(args)
    run_kwargs = dict(
        text=payload.get("text"),
        session_id=payload.get("session_id"),
        failure_reasons=payload.get("failure_reasons"),
        failed_direction=payload.get("failed_direction"),
        prior_votes=payload.get("prior_votes"),
        metadata=payload.get("metadata"),
    )
    if args.parallel:
        with ThreadPoolExecutor(max_workers=5) as executor:
            result = pipeline.run(executor=executor, **run_kwargs)
    else:
        result = pipeline.run(**run_kwargs)
    _print(result.to_dict())
    if args.fail_on_reject and result.aggregate.direction == Direction.REJECT:
        raise SystemExit(2)


def cmd_classify(args: argparse.Namespace) -> None:
    text = _read_text(args)
    _print({"intent": classify_intent(text).value})


def cmd_extract(args: argparse.Namespace) -> None:
    text = _read_text(args)
    _print(extract_signals(text).to_dict())


def cmd_ledger(args: argparse.Namespace) -> None:
    config = get_config()
    ledger = JsonlAuditLog(config.ledger_path)
    if args.ledger_cmd == "list":
        _print({"records": [r.to_dict() for r in ledger.read_all(limit=args.limit)]})
    elif args.ledger_cmd == "session":
        _print({"session_id": args.session_id, "records": [r.to_dict() for r in ledger.read_by_session(args.session_id)]})
    elif args.ledger_cmd == "export":
        output = export_records(ledger.read_all(limit=args.limit), fmt=args.format)
        if args.output:
            Path(args.output).write_text(output)
            _print({"ok": True, "output": args.output})
        else:
            print(output)
    elif args.ledger_cmd == "verify":
        records = [ledger.get(args.request_id)] if args.request_id else ledger.read_all()
        results = [
            {"request_id": r.request_id, "valid": verify_record(r)}
            for r in records if r is not None
        ]
        if args.request_id and not results:
            raise SystemExit(f"Unknown request: {args.request_id}")
        _print({"records": results})
        if any(not item["valid"] for item in results):
            raise SystemExit(2)
    elif args.ledger_cmd == "redact":
        pipeline = ParliamentPipeline(config, ledger=ledger)
        try:
            event = pipeline.redact(args.request_id, args.reason, redacted_by=args.by)
        except KeyError:
            raise SystemExit(f"Unknown request: {args.request_id}")
        _print(event.to_dict())
    elif args.ledger_cmd == "summary":
        _print(summarize(ledger.read_all()))
    else:
        raise SystemExit("ledger requires a subcommand")


def _add_text_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--text")
    parser.add_argument("--input-file")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="parliament")
    sub = parser.add_subparsers(dest="command")

    evaluate = sub.add_parser("evaluate", help="Run a full parliament pass and record it")
    _add_text_args(evaluate)
    evaluate.add_argument("--payload", help="JSON file with text, failure_reasons, prior_votes, ...")
    evaluate.add_argument("--session-id")
    evaluate.add_argument("--failure-reason", action="append")
    evaluate.add_argument("--failed-direction", choices=[d.value for d in Direction], type=str.upper)
    evaluate.add_argument("--meta", action="append", help="key=value metadata")
    evaluate.add_argument("--parallel", action="store_true")
    evaluate.add_argument("--fail-on-reject", action="store_true")

    classify = sub.add_parser("classify")
    _add_text_args(classify)

    extract = sub.add_parser("extract")
    _add_text_args(extract)

    ledger = sub.add_parser("ledger")
    ledger_sub = ledger.add_subparsers(dest="ledger_cmd")
    list_cmd = ledger_sub.add_parser("list")
    list_cmd.add_argument("--limit", type=int, default=20)
    session = ledger_sub.add_parser("session")
    session.add_argument("session_id")
    export = ledger_sub.add_parser("export")
    export.add_argument("--format", choices=["json", "csv"], default="json")
    export.add_argument("--limit", type=int)
    export.add_argument("--output")
    verify = ledger_sub.add_parser("verify")
    verify.add_argument("--request-id")
    redact = ledger_sub.add_parser("redact")
    redact.add_argument("request_id")
    redact.add_argument("--reason", required=True)
    redact.add_argument("--by", default="operator")
    ledger_sub.add_parser("summary")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = get_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        if args.command == "evaluate":
            cmd_evaluate(args)
        elif args.command == "classify":
            cmd_classify(args)
        elif args.command == "extract":
            cmd_extract(args)
        elif args.command == "ledger":
            cmd_ledger(args)
        else:
            parser.print_help()
    except InputError as exc:
        print(f"parliament: invalid input: {exc}", file=sys.stderr)
        raise SystemExit(2)
    except LedgerError as exc:
        print(f"parliament: ledger error: {exc}", file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
