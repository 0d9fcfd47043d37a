"""Rule tables and the vote tally shared by every mind."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar

from parliament.types import (
    Direction,
    FailureContext,
    MindId,
    MindVote,
    RetryTag,
    RiskTag,
    SignalTag,
    TextContext,
)
from parliament.utils import clamp, includes_any, normalize_text

C = TypeVar("C")


@dataclass(frozen=True)
class Rule(Generic[C]):
    """One independent condition check of a mind.

    Deltas are summed; floors and caps are applied after the sum, caps last,
    so the outcome depends only on which rules fired.
    """
    name: str
    when: Callable[[C], bool]
    reason: str
    score_delta: int = 0
    risk_delta: int = 0
    floor: Optional[int] = None
    cap: Optional[int] = None
    risk_tags: Tuple[RiskTag, ...] = ()
    signals: Tuple[SignalTag, ...] = ()
    retry_tags: Tuple[RetryTag, ...] = ()
    next_steps: Tuple[str, ...] = ()
    evidence: Tuple[str, ...] = ()


def text_mentions(*keywords: str) -> Callable[[TextContext], bool]:
    def _check(ctx: TextContext) -> bool:
        return includes_any(normalize_text(ctx.text), keywords)
    return _check


def reasons_mention(*keywords: str) -> Callable[[FailureContext], bool]:
    def _check(ctx: FailureContext) -> bool:
        return any(includes_any(reason, keywords) for reason in ctx.reasons)
    return _check


def risk_direction(score: int, risk: int) -> Direction:
    if risk >= 70:
        return Direction.REJECT
    if risk >= 40:
        return Direction.REVISE
    return Direction.APPROVE


def retry_direction(score: int, risk: int) -> Direction:
    # A middling score means "stop", a low one means "change the request".
    if score >= 70:
        return Direction.APPROVE
    if score >= 40:
        return Direction.REJECT
    return Direction.REVISE


def fired(rules: Sequence[Rule[C]], ctx: C) -> List[Rule[C]]:
    return [rule for rule in rules if rule.when(ctx)]


def tally(
    mind: MindId,
    rules: Iterable[Rule],
    *,
    score: int,
    risk: Optional[int],
    direction_for: Callable[[int, int], Direction],
) -> MindVote:
    """Fold the rules that fired into a vote.

    ``risk=None`` derives the risk as the complement of the final score.
    """
    rules = list(rules)
    raw_score = score + sum(rule.score_delta for rule in rules)
    floors = [rule.floor for rule in rules if rule.floor is not None]
    caps = [rule.cap for rule in rules if rule.cap is not None]
    if floors:
        raw_score = max(raw_score, *floors)
    if caps:
        raw_score = min(raw_score, *caps)
    final_score = int(clamp(raw_score))
    if risk is None:
        final_risk = 100 - final_score
    else:
        final_risk = int(clamp(risk + sum(rule.risk_delta for rule in rules)))
    return MindVote(
        mind=mind,
        direction=direction_for(final_score, final_risk),
        score=final_score,
        risk=final_risk,
        risk_tags=tuple(tag for rule in rules for tag in rule.risk_tags),
        signals=tuple(tag for rule in rules for tag in rule.signals),
        retry_tags=tuple(tag for rule in rules for tag in rule.retry_tags),
        reasons=tuple(rule.reason for rule in rules),
        next_steps=tuple(step for rule in rules for step in rule.next_steps),
        evidence=tuple(item for rule in rules for item in rule.evidence),
    )
