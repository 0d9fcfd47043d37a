#!/usr/bin/env python3
"""
Parliament Demo -- five minds vote on a handful of sample requests.

Run:
    python examples/demo.py
    python examples/demo.py --scenario 3

Uses an in-memory ledger, so nothing is written to disk.
"""
from __future__ import annotations

import sys
from pathlib import Path

# Ensure parliament is importable when running from the repo root.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from parliament.config import get_config
from parliament.ledger import MemoryAuditLog
from parliament.notify import WebhookNotifier
from parliament.pipeline import ParliamentPipeline


DEMO_SCENARIOS = [
    {
        "text": "What's on my calendar tomorrow?",
        "description": "Fresh request with no failure history.",
    },
    {
        "text": "Save my API key so the agent can call the billing service.",
        "description": "Credential handling trips the compliance mind.",
    },
    {
        "text": "Send the weekly summary email again.",
        "failure_reasons": ["OpenAI rate limit exceeded"],
        "description": "Retry after throttling -- rules-based fallback.",
    },
    {
        "text": "Retry the calendar sync.",
        "failure_reasons": ["401 Unauthorized", "rate limit"],
        "failed_direction": "REVISE",
        "description": "Repeated failure: the retry minds ask for a revised request.",
    },
]


def run_demo(index: int | None = None) -> None:
    """Run one or all demo scenarios through the parliament."""
    pipeline = ParliamentPipeline(get_config(), ledger=MemoryAuditLog(), notifier=WebhookNotifier(url=None))
    scenarios = DEMO_SCENARIOS if index is None else [DEMO_SCENARIOS[index]]

    for i, s in enumerate(scenarios):
        num = index if index is not None else i
        print(f"\n{'=' * 72}")
        print(f"  Scenario {num + 1}: {s['description']}")
        print(f"{'=' * 72}")
        print(f"\n  Request: {s['text']}")
        if s.get("failure_reasons"):
            print(f"  Prior failures: {', '.join(s['failure_reasons'])}")
        print()

        result = pipeline.run(
            s["text"],
            session_id="demo",
            failure_reasons=s.get("failure_reasons"),
            failed_direction=s.get("failed_direction"),
        )
        aggregate = result.aggregate

        for vote in result.evaluation.votes:
            print(f"    {vote.mind.value:<11} {vote.direction.value:<8} score={vote.score:<3} risk={vote.risk}")
        print(f"\n  Decision: {aggregate.direction.value} ({aggregate.confidence.value} confidence)")
        print(f"  Agreement: {aggregate.consensus.agreement_pct}%")
        print(f"  Message: {result.user_message}")
        print()


def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(
        description="Run sample requests through the parliament."
    )
    parser.add_argument(
        "--scenario",
        "-s",
        type=int,
        choices=range(1, len(DEMO_SCENARIOS) + 1),
        help="Run a specific scenario (1-%d)" % len(DEMO_SCENARIOS),
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List available scenarios and exit.",
    )
    args = parser.parse_args()

    if args.list:
        print("\nAvailable scenarios:\n")
        for i, s in enumerate(DEMO_SCENARIOS, 1):
            print(f"  {i}. {s['text']}")
            print(f"     {s['description']}\n")
        return

    idx = (args.scenario - 1) if args.scenario else None
    run_demo(idx)


if __name__ == "__main__":
    main()
