"""Small text and number helpers used across the engine."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, TypeVar
import hashlib
import json
import math
import re
import secrets

T = TypeVar("T")

_WHITESPACE = re.compile(r"\s+")
_DOUBLE_QUOTES = re.compile("[“”]")
_SINGLE_QUOTES = re.compile("[‘’]")


def clamp(n: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, n))


def round_half_up(n: float) -> int:
    return int(math.floor(n + 0.5))


def uniq(items: Iterable[T]) -> List[T]:
    """Deduplicate, keeping first-seen order."""
    result: List[T] = []
    for item in items:
        if item not in result:
            result.append(item)
    return result


def normalize_text(text: str) -> str:
    text = _WHITESPACE.sub(" ", text)
    text = _DOUBLE_QUOTES.sub('"', text)
    text = _SINGLE_QUOTES.sub("'", text)
    return text.strip()


def includes_any(haystack: str, needles: Iterable[str]) -> bool:
    lowered = haystack.lower()
    return any(needle.lower() in lowered for needle in needles)


def canonical_json(payload) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def stable_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def make_request_id(prefix: str = "req") -> str:
    return f"{prefix}_{secrets.token_hex(12)}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")
