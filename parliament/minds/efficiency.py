"""EFFICIENCY mind: weighs whether another attempt is worth its cost."""
from __future__ import annotations

from typing import Tuple

from parliament.minds.base import Rule, fired, retry_direction, tally
from parliament.types import Direction, FailureContext, MindId, MindVote, RetryTag

BASE_SCORE = 50
MAX_ACCUMULATED_FAILURES = 3


def _quick_retry(ctx: FailureContext) -> bool:
    if ctx.failed_direction is not Direction.APPROVE:
        return False
    return any(RetryTag.RETRY in vote.retry_tags for vote in ctx.prior_votes)


def _too_many_failures(ctx: FailureContext) -> bool:
    return len(ctx.reasons) > MAX_ACCUMULATED_FAILURES


RULES: Tuple[Rule[FailureContext], ...] = (
    Rule(
        name="quick_retry",
        when=_quick_retry,
        reason="Quick retry acceptable.",
        floor=60,
    ),
    Rule(
        name="accumulated_failures",
        when=_too_many_failures,
        reason="Too many accumulated failures.",
        cap=30,
        next_steps=("Stop retrying and surface the failure to the user.",),
    ),
)


def efficiency_mind(ctx: FailureContext) -> MindVote:
    return tally(
        MindId.EFFICIENCY,
        fired(RULES, ctx),
        score=BASE_SCORE,
        risk=None,
        direction_for=retry_direction,
    )
