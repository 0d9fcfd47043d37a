"""Intent classification and signal extraction for incoming requests.

Both functions are plain keyword rules. The intent table is a priority
cascade: the first rule whose keywords appear in the normalised text wins.
"""
from __future__ import annotations

from typing import List, Tuple
import re

from parliament.types import ExtractedSignals, IntentType
from parliament.utils import includes_any, normalize_text, uniq

INTENT_RULES: Tuple[Tuple[IntentType, Tuple[str, ...]], ...] = (
    (IntentType.GOVERNANCE_REQUEST, ("vote", "parliament", "governance", "consensus", "multi-mind")),
    (IntentType.DEBUG_REQUEST, ("error", "stack", "bug", "500", "debug", "fix", "broken")),
    (IntentType.STATUS_REQUEST, ("status", "health", "live", "deployment", "render", "is it up")),
    (IntentType.DECISION_REQUEST, ("should i", "what should", "decide", "best course", "recommend")),
    (IntentType.PLAN_REQUEST, ("plan", "roadmap", "steps", "workflow", "sequence")),
    (IntentType.EXECUTION_REQUEST, ("do this", "execute", "implement", "build", "ship")),
)

CONSTRAINT_WORDS = ("must", "only", "exact", "no", "without", "include", "exclude", "never", "always")

MAX_QUESTIONS = 10
MAX_CONSTRAINTS = 25
MAX_ENTITIES = 25
CONSTRAINT_CONTEXT_CHARS = 120

_QUESTION = re.compile(r"[^.?!]*\?")
_URL = re.compile(r"https?://[^\s)]+")
_CAPITALIZED = re.compile(r"\b[A-Z][a-zA-Z0-9_-]{2,}\b")
_CONSTRAINT_PATTERNS = tuple(
    re.compile(rf"\b{word}\b[^.?!]{{0,{CONSTRAINT_CONTEXT_CHARS}}}", re.IGNORECASE)
    for word in CONSTRAINT_WORDS
)


def classify_intent(text: str) -> IntentType:
    normalized = normalize_text(text).lower()
    for intent, keywords in INTENT_RULES:
        if includes_any(normalized, keywords):
            return intent
    if normalized:
        return IntentType.INFO_REQUEST
    return IntentType.UNKNOWN


def extract_signals(text: str) -> ExtractedSignals:
    normalized = normalize_text(text)
    questions = [q.strip() for q in _QUESTION.findall(normalized)]
    constraints: List[str] = []
    for pattern in _CONSTRAINT_PATTERNS:
        constraints.extend(match.group(0).strip() for match in pattern.finditer(normalized))
    urls = _URL.findall(normalized)
    capitalized = _CAPITALIZED.findall(normalized)
    return ExtractedSignals(
        entities=tuple(uniq(urls + capitalized)[:MAX_ENTITIES]),
        constraints=tuple(uniq(constraints)[:MAX_CONSTRAINTS]),
        questions=tuple(uniq(questions)[:MAX_QUESTIONS]),
    )
