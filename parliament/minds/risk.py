"""RISK mind: judges whether retrying a failed operation compounds the failure."""
from __future__ import annotations

from typing import Tuple

from parliament.minds.base import Rule, fired, reasons_mention, retry_direction, tally
from parliament.types import Direction, FailureContext, MindId, MindVote, RetryTag

BASE_SCORE = 50


def _repeating_revision(ctx: FailureContext) -> bool:
    return ctx.failed_direction is Direction.REVISE


RULES: Tuple[Rule[FailureContext], ...] = (
    Rule(
        name="repeated_failure",
        when=_repeating_revision,
        reason="Re-attempting the same failed request; may cause a retry loop.",
        cap=10,
        retry_tags=(RetryTag.BLOCKED, RetryTag.CRITICAL),
        next_steps=("Change the request before retrying; do not resubmit it unchanged.",),
    ),
    Rule(
        name="transient_network",
        when=reasons_mention("timeout", "network"),
        reason="Network issues are usually transient.",
        floor=40,
        retry_tags=(RetryTag.TRANSIENT, RetryTag.RETRY),
        next_steps=("Retry with backoff once connectivity recovers.",),
    ),
)


def risk_mind(ctx: FailureContext) -> MindVote:
    return tally(
        MindId.RISK,
        fired(RULES, ctx),
        score=BASE_SCORE,
        risk=None,
        direction_for=retry_direction,
    )
