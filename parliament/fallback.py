"""User-facing fallback message for rejected decisions."""
from __future__ import annotations

from typing import Optional, Sequence

from parliament.minds.operations import RATE_LIMIT_KEYWORDS
from parliament.types import FallbackMode, FallbackResponse, IntentType
from parliament.utils import includes_any, utc_now_iso


def select_fallback(
    intent: IntentType,
    failure_reasons: Sequence[str],
    now: Optional[str] = None,
) -> FallbackResponse:
    timestamp = now or utc_now_iso()
    if any(includes_any(reason, RATE_LIMIT_KEYWORDS) for reason in failure_reasons):
        return FallbackResponse(
            message="The assistant is temporarily unavailable due to rate limits.",
            suggestion="Please retry in a few moments.",
            mode=FallbackMode.RULES_BASED,
            timestamp=timestamp,
        )
    return FallbackResponse(
        message=f"Unable to process this {intent.label} request.",
        suggestion="The system encountered an issue. Please check the audit log for details.",
        mode=FallbackMode.STATIC,
        timestamp=timestamp,
    )
