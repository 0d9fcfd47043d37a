"""EVIDENCE mind: reads client and auth errors out of the failure history."""
from __future__ import annotations

from typing import Tuple

from parliament.minds.base import Rule, fired, reasons_mention, retry_direction, tally
from parliament.types import FailureContext, MindId, MindVote, RiskTag

BASE_SCORE = 50

RULES: Tuple[Rule[FailureContext], ...] = (
    Rule(
        name="client_error",
        when=reasons_mention("400", "invalid"),
        reason="Client error: bad request format.",
        cap=20,
        next_steps=("Fix the request payload before retrying.",),
    ),
    Rule(
        name="auth_error",
        when=reasons_mention("401", "403"),
        reason="Auth error: credential issue.",
        cap=10,
        risk_tags=(RiskTag.SECURITY,),
        next_steps=("Re-authorize the connected account before retrying.",),
    ),
)


def evidence_mind(ctx: FailureContext) -> MindVote:
    return tally(
        MindId.EVIDENCE,
        fired(RULES, ctx),
        score=BASE_SCORE,
        risk=None,
        direction_for=retry_direction,
    )
