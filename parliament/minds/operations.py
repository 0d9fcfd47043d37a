"""OPERATIONS mind: reacts to throttling and service availability failures."""
from __future__ import annotations

from typing import Tuple

from parliament.minds.base import Rule, fired, reasons_mention, retry_direction, tally
from parliament.types import FailureContext, MindId, MindVote, RiskTag

BASE_SCORE = 50

RATE_LIMIT_KEYWORDS = ("rate limit", "rate-limit", "quota")

RULES: Tuple[Rule[FailureContext], ...] = (
    Rule(
        name="throttled",
        when=reasons_mention(*RATE_LIMIT_KEYWORDS),
        reason="API throttling detected; operational constraint.",
        cap=30,
        risk_tags=(RiskTag.OPERATIONAL,),
        evidence=("API throttling detected; operational constraint",),
    ),
    Rule(
        name="maintenance",
        when=reasons_mention("maintenance", "unavailable"),
        reason="Upstream service is in a maintenance window or unavailable.",
        cap=20,
        risk_tags=(RiskTag.OPERATIONAL,),
        evidence=("Service maintenance window",),
    ),
)


def operations_mind(ctx: FailureContext) -> MindVote:
    return tally(
        MindId.OPERATIONS,
        fired(RULES, ctx),
        score=BASE_SCORE,
        risk=None,
        direction_for=retry_direction,
    )
