"""COMPLIANCE mind: screens live request text for unsafe intents."""
from __future__ import annotations

from typing import Tuple

from parliament.minds.base import Rule, fired, risk_direction, tally, text_mentions
from parliament.types import MindId, MindVote, RiskTag, SignalTag, TextContext

BASE_SCORE = 70
BASE_RISK = 20

RULES: Tuple[Rule[TextContext], ...] = (
    Rule(
        name="credentials",
        when=text_mentions("api key", "secret", "token", "password"),
        reason="Sensitive credential handling detected; must avoid logging or echoing secrets.",
        score_delta=-25,
        risk_delta=25,
        risk_tags=(RiskTag.SECURITY, RiskTag.PRIVACY),
        signals=(SignalTag.USER_CONFIRMATION_REQUIRED,),
        next_steps=("Ensure secrets are never returned in responses or logs; redact before persistence.",),
    ),
    Rule(
        name="legal",
        when=text_mentions("lawsuit", "sue", "criminal", "fraud", "tax evasion"),
        reason="Potential legal-sensitive domain; keep guidance informational and non-illicit.",
        score_delta=-15,
        risk_delta=20,
        risk_tags=(RiskTag.LEGAL, RiskTag.REPUTATION),
        next_steps=("Add policy guardrails for legal or regulated requests; route to safe templates.",),
    ),
    Rule(
        name="concealment",
        when=text_mentions("delete logs", "hide", "cover up"),
        reason="Request implies concealment; must not assist wrongdoing.",
        score_delta=-30,
        risk_delta=30,
        risk_tags=(RiskTag.LEGAL, RiskTag.REPUTATION),
        signals=(SignalTag.HIGH_IMPACT,),
        next_steps=("Refuse concealment requests; offer compliant alternatives (retention policy, redaction).",),
    ),
    Rule(
        name="production",
        when=text_mentions("production", "deploy", "render", "health"),
        reason="Operational deployment context detected; keep safe defaults and auditability.",
        next_steps=("Confirm health endpoints do not expose sensitive info; ensure rate limits.",),
        evidence=("Mentions production/deployment context; apply operational compliance (env vars, secrets, logs).",),
    ),
)


def compliance_mind(ctx: TextContext) -> MindVote:
    return tally(
        MindId.COMPLIANCE,
        fired(RULES, ctx),
        score=BASE_SCORE,
        risk=BASE_RISK,
        direction_for=risk_direction,
    )
