"""End-to-end decision pass: evaluate, persist, fall back, notify."""
from __future__ import annotations

from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging

from parliament.config import Config, get_config
from parliament.engine import Evaluation, build_context, evaluate, validate_context
from parliament.fallback import select_fallback
from parliament.intent import classify_intent, extract_signals
from parliament.ledger import (
    AuditLog,
    AuditRecord,
    DecisionOutput,
    JsonlAuditLog,
    RedactionEvent,
    redact_sensitive,
    redact_text,
    seal,
)
from parliament.notify import NotifyResult, WebhookNotifier
from parliament.types import Direction, EvaluationContext, ParliamentAggregate
from parliament.utils import make_request_id, utc_now_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    record: AuditRecord
    evaluation: Evaluation
    notification: Optional[NotifyResult] = None

    @property
    def aggregate(self) -> ParliamentAggregate:
        return self.evaluation.aggregate

    @property
    def user_message(self) -> str:
        return self.record.output.user_message

    def to_dict(self) -> Dict[str, Any]:
        data = self.record.to_dict()
        if self.notification is not None:
            data["notification"] = {
                "ok": self.notification.ok,
                "status": self.notification.status,
                "error": self.notification.error,
            }
        return data


def compose_message(aggregate: ParliamentAggregate, fallback_message: Optional[str] = None) -> str:
    if aggregate.direction == Direction.REJECT and fallback_message:
        return fallback_message
    summary = (
        f"Parliament decision: {aggregate.direction.value} "
        f"(score {aggregate.score}, risk {aggregate.risk}, confidence {aggregate.confidence.value})."
    )
    if aggregate.next_steps:
        summary += f" Next step: {aggregate.next_steps[0]}."
    return summary


def redact_context(ctx: EvaluationContext, keys: Sequence[str]) -> EvaluationContext:
    return EvaluationContext(
        text=redact_text(ctx.text),
        session_id=ctx.session_id,
        failure_reasons=tuple(redact_text(reason) for reason in ctx.failure_reasons),
        failed_direction=ctx.failed_direction,
        prior_votes=ctx.prior_votes,
        metadata=redact_sensitive(ctx.metadata, keys),
    )


class ParliamentPipeline:
    """Routing-layer seam around the engine.

    Every pass is written to the ledger, whatever the decision. Only a
    REJECT carries a fallback message.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        ledger: Optional[AuditLog] = None,
        notifier: Optional[WebhookNotifier] = None,
    ) -> None:
        self.config = config or get_config()
        self.ledger = ledger if ledger is not None else JsonlAuditLog(self.config.ledger_path)
        self.notifier = notifier if notifier is not None else WebhookNotifier.from_config(self.config)

    def run(
        self,
        text: Any,
        session_id: Optional[str] = None,
        failure_reasons: Optional[Sequence[str]] = None,
        failed_direction: Optional[Any] = None,
        prior_votes: Optional[Sequence[Any]] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        request_id: Optional[str] = None,
        executor: Optional[Executor] = None,
    ) -> PipelineResult:
        ctx = build_context({
            "text": text,
            "session_id": session_id,
            "failure_reasons": failure_reasons,
            "failed_direction": failed_direction.value if isinstance(failed_direction, Direction) else failed_direction,
            "prior_votes": prior_votes,
            "metadata": metadata,
        })
        return self.run_context(ctx, request_id=request_id, executor=executor)

    def run_context(
        self,
        ctx: EvaluationContext,
        request_id: Optional[str] = None,
        executor: Optional[Executor] = None,
    ) -> PipelineResult:
        validate_context(ctx)
        intent = classify_intent(ctx.text)
        evaluation = evaluate(ctx, executor=executor)
        aggregate = evaluation.aggregate

        fallback = None
        if aggregate.direction == Direction.REJECT:
            fallback = select_fallback(intent, ctx.failure_reasons)
        message = compose_message(aggregate, fallback.message if fallback else None)

        stored_ctx = redact_context(ctx, self.config.redact_keys)
        record = seal(AuditRecord(
            request_id=request_id or make_request_id(),
            created_at=utc_now_iso(),
            context=stored_ctx,
            intent=intent,
            # signals are taken from the redacted text
            extracted=extract_signals(stored_ctx.text),
            votes=evaluation.votes,
            aggregate=aggregate,
            output=DecisionOutput(user_message=message, fallback=fallback),
        ))
        self.ledger.append(record)

        notification = None
        if self.notifier.enabled:
            notification = self.notifier.notify(record)

        logger.info(
            f"Decision {record.request_id}: {aggregate.direction.value} "
            f"score={aggregate.score} risk={aggregate.risk} confidence={aggregate.confidence.value} "
            f"intent={intent.value}"
        )
        return PipelineResult(record=record, evaluation=evaluation, notification=notification)

    def history(self, session_id: str) -> List[AuditRecord]:
        return self.ledger.read_by_session(session_id)

    def recent(self, limit: int = 20) -> List[AuditRecord]:
        return self.ledger.read_all(limit=limit)

    def redact(self, request_id: str, reason: str, redacted_by: str = "operator") -> RedactionEvent:
        if self.ledger.get(request_id) is None:
            raise KeyError(request_id)
        event = RedactionEvent(request_id=request_id, reason=reason, redacted_by=redacted_by)
        self.ledger.record_redaction(event)
        logger.info(f"Redaction recorded for {request_id} by {redacted_by}: {reason}")
        return event
