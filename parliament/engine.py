"""Evaluation entry point: validates a context, runs the panel, aggregates."""
from __future__ import annotations

from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
import logging

from parliament.minds import FAILURE_PANEL, TEXT_PANEL
from parliament.scoring import aggregate_votes
from parliament.types import Direction, EvaluationContext, MindVote, ParliamentAggregate

logger = logging.getLogger(__name__)


class InputError(Exception):
    """Raised when an evaluation context is malformed."""
    pass


class MindEvaluationError(Exception):
    """Raised when a mind fails; the whole pass is aborted."""

    def __init__(self, mind: str, cause: BaseException) -> None:
        super().__init__(f"mind {mind} failed: {cause}")
        self.mind = mind


@dataclass(frozen=True)
class Evaluation:
    votes: Tuple[MindVote, ...]
    aggregate: ParliamentAggregate

    def to_dict(self) -> Dict[str, Any]:
        return {
            "votes": [vote.to_dict() for vote in self.votes],
            "aggregate": self.aggregate.to_dict(),
        }


def validate_context(ctx: EvaluationContext) -> None:
    if not isinstance(ctx, EvaluationContext):
        raise InputError(f"expected EvaluationContext, got {type(ctx).__name__}")
    if not isinstance(ctx.text, str):
        raise InputError("text is required and must be a string")
    if ctx.session_id is not None and not isinstance(ctx.session_id, str):
        raise InputError("session_id must be a string")
    if isinstance(ctx.failure_reasons, str) or not all(isinstance(r, str) for r in ctx.failure_reasons):
        raise InputError("failure_reasons must be a list of strings")
    if ctx.failed_direction is not None and not isinstance(ctx.failed_direction, Direction):
        raise InputError(f"failed_direction must be one of {[d.value for d in Direction]}")
    if not all(isinstance(vote, MindVote) for vote in ctx.prior_votes):
        raise InputError("prior_votes must contain MindVote entries")
    if not isinstance(ctx.metadata, Mapping):
        raise InputError("metadata must be a mapping")


def build_context(payload: Mapping[str, Any]) -> EvaluationContext:
    """Build a context from a loosely typed payload (CLI or JSON input)."""
    if not isinstance(payload, Mapping):
        raise InputError("payload must be a mapping")
    text = payload.get("text")
    if text is None:
        raise InputError("text is required")
    failed = payload.get("failed_direction")
    try:
        failed_direction = Direction(str(failed).upper()) if failed else None
    except ValueError as exc:
        raise InputError(f"unknown failed_direction: {failed}") from exc
    reasons = payload.get("failure_reasons") or ()
    if isinstance(reasons, str):
        reasons = (reasons,)
    try:
        prior_votes = tuple(
            vote if isinstance(vote, MindVote) else MindVote.from_dict(vote)
            for vote in payload.get("prior_votes") or ()
        )
    except (KeyError, ValueError, TypeError, AttributeError) as exc:
        raise InputError(f"invalid prior_votes: {exc}") from exc
    ctx = EvaluationContext(
        text=text,
        session_id=payload.get("session_id"),
        failure_reasons=tuple(reasons),
        failed_direction=failed_direction,
        prior_votes=prior_votes,
        metadata=payload.get("metadata") or {},
    )
    validate_context(ctx)
    return ctx


def _run_mind(mind: Callable[[Any], MindVote], ctx: Any) -> MindVote:
    try:
        return mind(ctx)
    except Exception as exc:
        name = getattr(mind, "__name__", repr(mind))
        logger.error(f"Mind {name} failed: {exc}")
        raise MindEvaluationError(name, exc) from exc


def evaluate(ctx: EvaluationContext, executor: Optional[Executor] = None) -> Evaluation:
    """Run every mind over its own view of ``ctx`` and aggregate the votes.

    With an ``executor`` the minds run concurrently; votes are still collected
    in panel order, so the result is identical to a sequential pass.
    """
    validate_context(ctx)
    jobs: List[Tuple[Callable[[Any], MindVote], Any]] = []
    text_ctx = ctx.text_context()
    failure_ctx = ctx.failure_context()
    jobs.extend((mind, text_ctx) for mind in TEXT_PANEL)
    jobs.extend((mind, failure_ctx) for mind in FAILURE_PANEL)

    if executor is None:
        votes = tuple(_run_mind(mind, view) for mind, view in jobs)
    else:
        futures = [executor.submit(_run_mind, mind, view) for mind, view in jobs]
        votes = tuple(future.result() for future in futures)
    return Evaluation(votes=votes, aggregate=aggregate_votes(votes))
