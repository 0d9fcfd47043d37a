"""Outbound webhook for parliament decisions."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional
import logging

import httpx

from parliament.config import Config
from parliament.utils import utc_now_iso

logger = logging.getLogger(__name__)

DEFAULT_EVENTS = ("decision.reject",)


@dataclass(frozen=True)
class NotifyResult:
    ok: bool
    request_id: str
    status: Optional[int] = None
    error: Optional[str] = None


def decision_event(record: Any) -> Dict[str, Any]:
    """Webhook payload for an audit record."""
    aggregate = record.aggregate
    return {
        "event_type": f"decision.{aggregate.direction.value.lower()}",
        "request_id": record.request_id,
        "session_id": record.session_id,
        "timestamp": utc_now_iso(),
        "intent": record.intent.value,
        "decision": {
            "direction": aggregate.direction.value,
            "score": aggregate.score,
            "risk": aggregate.risk,
            "confidence": aggregate.confidence.value,
            "top_reasons": list(aggregate.top_reasons[:3]),
        },
        "tags": [tag.value for tag in (*aggregate.risk_tags, *aggregate.retry_tags)],
    }


class WebhookNotifier:
    def __init__(
        self,
        url: Optional[str],
        events: Iterable[str] = DEFAULT_EVENTS,
        timeout: float = 8.0,
    ) -> None:
        self.url = url
        self.events = frozenset(events)
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Config) -> "WebhookNotifier":
        notify = config.notify
        return cls(
            url=notify.get("webhook_url"),
            events=notify.get("events") or DEFAULT_EVENTS,
            timeout=float(notify.get("timeout_seconds", 8.0)),
        )

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    def allows(self, event_type: str) -> bool:
        return event_type in self.events

    def notify(self, record: Any) -> NotifyResult:
        """Post the decision event for ``record``. Never raises."""
        event = decision_event(record)
        request_id = event["request_id"]
        if not self.url:
            logger.debug("Webhook URL not configured; skipping")
            return NotifyResult(ok=False, request_id=request_id, error="not configured")
        if not self.allows(event["event_type"]):
            logger.info(f"Event {event['event_type']} not in allow-list; skipping")
            return NotifyResult(ok=False, request_id=request_id, error="not allowed")
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.post(self.url, json=event)
        except httpx.HTTPError as exc:
            logger.warning(f"Webhook call failed for {request_id}: {exc}")
            return NotifyResult(ok=False, request_id=request_id, error=str(exc))
        if resp.status_code >= 400:
            logger.warning(f"Webhook returned {resp.status_code} for {request_id}: {resp.text[:200]}")
            return NotifyResult(
                ok=False,
                request_id=request_id,
                status=resp.status_code,
                error=f"HTTP {resp.status_code}",
            )
        return NotifyResult(ok=True, request_id=request_id, status=resp.status_code)
