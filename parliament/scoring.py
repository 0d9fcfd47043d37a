"""Vote aggregation: folds a list of mind votes into one parliament decision."""
from __future__ import annotations

from typing import Dict, Sequence

from parliament.types import Confidence, Consensus, Direction, MindVote, ParliamentAggregate
from parliament.utils import clamp, round_half_up, uniq

RISK_WEIGHT = 0.55
DISSENT_WEIGHT = 0.35
SCORE_CAPS = {Direction.REJECT: 25, Direction.REVISE: 65}
# Ties resolve toward caution: revision before rejection before approval.
TIE_PRIORITY = (Direction.REVISE, Direction.REJECT, Direction.APPROVE)
MAX_REASON_POOL = 40
MAX_TOP_REASONS = 12
MAX_NEXT_STEPS = 20


def bucket_counts(votes: Sequence[MindVote]) -> Dict[Direction, int]:
    counts = {direction: 0 for direction in Direction}
    for vote in votes:
        counts[vote.direction] += 1
    return counts


def agreement_pct(counts: Dict[Direction, int], total: int) -> int:
    if total == 0:
        return 0
    return round_half_up(max(counts.values()) / total * 100)


def margin(counts: Dict[Direction, int]) -> int:
    ordered = sorted(counts.values(), reverse=True)
    return ordered[0] - ordered[1]


def decide_direction(counts: Dict[Direction, int]) -> Direction:
    top = max(counts.values())
    for direction in TIE_PRIORITY:
        if counts[direction] == top:
            return direction
    raise AssertionError("unreachable")


def confidence_for(total: int, agreement: int, spread: int, risk: int) -> Confidence:
    if total < 3:
        return Confidence.LOW
    if agreement >= 80 and spread >= 2 and risk <= 35:
        return Confidence.HIGH
    if agreement >= 60 and spread >= 1 and risk <= 60:
        return Confidence.MEDIUM
    return Confidence.LOW


def aggregate_votes(votes: Sequence[MindVote]) -> ParliamentAggregate:
    """Aggregate votes into a decision. Pure and total, including for no votes."""
    total = len(votes)
    counts = bucket_counts(votes)
    agreement = agreement_pct(counts, total)
    spread = margin(counts)
    direction = decide_direction(counts)

    mean_score = sum(v.score for v in votes) / total if total else 0.0
    mean_risk = sum(v.risk for v in votes) / total if total else 0.0
    dissent = 100 - agreement

    score = int(clamp(round_half_up(mean_score - RISK_WEIGHT * mean_risk - DISSENT_WEIGHT * dissent)))
    if direction in SCORE_CAPS:
        score = min(score, SCORE_CAPS[direction])
    risk = int(clamp(round_half_up(mean_risk)))

    reason_pool = [f"{vote.mind.value}: {reason}" for vote in votes for reason in vote.reasons]
    return ParliamentAggregate(
        direction=direction,
        score=score,
        risk=risk,
        confidence=confidence_for(total, agreement, spread, risk),
        consensus=Consensus(
            approvals=counts[Direction.APPROVE],
            revises=counts[Direction.REVISE],
            rejects=counts[Direction.REJECT],
            total=total,
            agreement_pct=agreement,
            margin=spread,
        ),
        top_reasons=tuple(uniq(reason_pool[:MAX_REASON_POOL])[:MAX_TOP_REASONS]),
        next_steps=tuple(uniq(step for vote in votes for step in vote.next_steps)[:MAX_NEXT_STEPS]),
        risk_tags=tuple(uniq(tag for vote in votes for tag in vote.risk_tags)),
        signals=tuple(uniq(tag for vote in votes for tag in vote.signals)),
        retry_tags=tuple(uniq(tag for vote in votes for tag in vote.retry_tags)),
    )
