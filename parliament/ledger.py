"""Append-only audit ledger for parliament decisions.

Records are appended once and never rewritten. Redaction is itself an
appended event that references the original record by request id.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence
import csv
import io
import json
import logging
import re
import threading
import uuid

from parliament.types import (
    EvaluationContext,
    ExtractedSignals,
    FallbackResponse,
    IntentType,
    MindVote,
    ParliamentAggregate,
)
from parliament.utils import canonical_json, stable_hash, utc_now_iso

try:
    import fcntl  # type: ignore
except Exception:  # pragma: no cover - non-POSIX environments
    fcntl = None

logger = logging.getLogger(__name__)

# Bump whenever a field is added, removed or retyped.
SCHEMA_VERSION = "1"
RECORD_MODE = "FALLBACK_PARLIAMENT"
REDACTED = "[REDACTED]"

_SECRET_ASSIGNMENT = re.compile(
    r"(?i)\b(api[ _-]?key|password|secret|token)(\s*[:=]\s*|\s+is\s+)([^\s&]+)"
)


class LedgerError(Exception):
    """Raised when the ledger cannot be written."""
    pass


@dataclass(frozen=True)
class DecisionOutput:
    user_message: str
    fallback: Optional[FallbackResponse] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_message": self.user_message,
            "fallback": self.fallback.to_dict() if self.fallback else None,
        }


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


@dataclass(frozen=True)
class AuditRecord:
    request_id: str
    created_at: str
    context: EvaluationContext
    intent: IntentType
    extracted: ExtractedSignals
    votes: Sequence[MindVote]
    aggregate: ParliamentAggregate
    output: DecisionOutput
    version: str = SCHEMA_VERSION
    mode: str = RECORD_MODE
    integrity_hash: str = ""

    @property
    def session_id(self) -> Optional[str]:
        return self.context.session_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "mode": self.mode,
            "request_id": self.request_id,
            "created_at": self.created_at,
            "session_id": self.session_id,
            "context": self.context.to_dict(),
            "intent": self.intent.value,
            "extracted": self.extracted.to_dict(),
            "votes": [vote.to_dict() for vote in self.votes],
            "aggregate": self.aggregate.to_dict(),
            "output": self.output.to_dict(),
            "integrity_hash": self.integrity_hash,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuditRecord":
        """Parse a stored record of any schema version, defaulting missing fields."""
        context = dict(_mapping(data.get("context")))
        context.setdefault("session_id", data.get("session_id"))
        output = data.get("output")
        if isinstance(output, str):
            output = {"user_message": output}
        output = _mapping(output)
        fallback = output.get("fallback")
        return cls(
            request_id=str(data["request_id"]),
            created_at=str(data.get("created_at", "")),
            context=EvaluationContext.from_dict(context),
            intent=IntentType(data.get("intent", IntentType.UNKNOWN.value)),
            extracted=ExtractedSignals.from_dict(_mapping(data.get("extracted"))),
            votes=tuple(MindVote.from_dict(v) for v in data.get("votes") or []),
            aggregate=ParliamentAggregate.from_dict(_mapping(data.get("aggregate"))),
            output=DecisionOutput(
                user_message=str(output.get("user_message", "")),
                fallback=FallbackResponse.from_dict(fallback) if isinstance(fallback, dict) else None,
            ),
            version=str(data.get("version", "0")),
            mode=str(data.get("mode", RECORD_MODE)),
            integrity_hash=str(data.get("integrity_hash", "")),
        )


@dataclass(frozen=True)
class RedactionEvent:
    request_id: str
    reason: str
    redacted_by: str
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, str]:
        return {
            "event_id": self.event_id,
            "request_id": self.request_id,
            "reason": self.reason,
            "redacted_by": self.redacted_by,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RedactionEvent":
        return cls(
            request_id=str(data["request_id"]),
            reason=str(data.get("reason", "")),
            redacted_by=str(data.get("redacted_by", "")),
            event_id=str(data.get("event_id", "")),
            created_at=str(data.get("created_at", "")),
        )


def _redact_value(value: Any, needles: List[str]) -> Any:
    if isinstance(value, Mapping):
        return redact_sensitive(value, needles)
    if isinstance(value, (list, tuple)):
        return [_redact_value(item, needles) for item in value]
    return value


def redact_sensitive(payload: Mapping[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    """Replace values whose key contains a sensitive name, recursing into mappings and lists."""
    needles = [k.lower() for k in keys]
    redacted: Dict[str, Any] = {}
    for key, value in payload.items():
        if any(needle in str(key).lower() for needle in needles):
            redacted[key] = REDACTED
        else:
            redacted[key] = _redact_value(value, needles)
    return redacted


def redact_text(text: str) -> str:
    """Mask values assigned to credential-like words, e.g. ``password: hunter2``."""
    return _SECRET_ASSIGNMENT.sub(lambda m: f"{m.group(1)}{m.group(2)}{REDACTED}", text)


def compute_hash(record: AuditRecord) -> str:
    payload = record.to_dict()
    payload.pop("integrity_hash", None)
    return stable_hash(canonical_json(payload))


def seal(record: AuditRecord) -> AuditRecord:
    return replace(record, integrity_hash=compute_hash(record))


def verify_record(record: AuditRecord) -> bool:
    return bool(record.integrity_hash) and record.integrity_hash == compute_hash(record)


class AuditLog(Protocol):
    def append(self, record: AuditRecord) -> None:
        ...

    def read_by_session(self, session_id: str) -> List[AuditRecord]:
        ...

    def read_all(self, limit: Optional[int] = None) -> List[AuditRecord]:
        ...

    def get(self, request_id: str) -> Optional[AuditRecord]:
        ...

    def record_redaction(self, event: RedactionEvent) -> None:
        ...

    def redactions(self, request_id: Optional[str] = None) -> List[RedactionEvent]:
        ...


def _tail(records: List[AuditRecord], limit: Optional[int]) -> List[AuditRecord]:
    if limit is None:
        return records
    if limit <= 0:
        return []
    return records[-limit:]


class MemoryAuditLog:
    """In-process ledger, mainly for tests and embedding."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: List[AuditRecord] = []
        self._redactions: List[RedactionEvent] = []

    def append(self, record: AuditRecord) -> None:
        with self._lock:
            self._records.append(record)

    def read_by_session(self, session_id: str) -> List[AuditRecord]:
        with self._lock:
            return [r for r in self._records if r.session_id == session_id]

    def read_all(self, limit: Optional[int] = None) -> List[AuditRecord]:
        with self._lock:
            return _tail(list(self._records), limit)

    def get(self, request_id: str) -> Optional[AuditRecord]:
        with self._lock:
            for record in self._records:
                if record.request_id == request_id:
                    return record
        return None

    def record_redaction(self, event: RedactionEvent) -> None:
        with self._lock:
            self._redactions.append(event)

    def redactions(self, request_id: Optional[str] = None) -> List[RedactionEvent]:
        with self._lock:
            return [e for e in self._redactions if request_id is None or e.request_id == request_id]


@dataclass
class JsonlAuditLog:
    """File-backed ledger: one JSON object per line, tagged with a ``kind``."""
    path: Path

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        self._lock = threading.Lock()

    def append(self, record: AuditRecord) -> None:
        self._write_line({"kind": "audit_record", **record.to_dict()})

    def record_redaction(self, event: RedactionEvent) -> None:
        self._write_line({"kind": "redaction", **event.to_dict()})

    def read_by_session(self, session_id: str) -> List[AuditRecord]:
        return [r for r in self._records() if r.session_id == session_id]

    def read_all(self, limit: Optional[int] = None) -> List[AuditRecord]:
        return _tail(self._records(), limit)

    def get(self, request_id: str) -> Optional[AuditRecord]:
        for record in self._records():
            if record.request_id == request_id:
                return record
        return None

    def redactions(self, request_id: Optional[str] = None) -> List[RedactionEvent]:
        events = []
        for entry in self._entries("redaction"):
            try:
                event = RedactionEvent.from_dict(entry)
            except (KeyError, ValueError, TypeError, AttributeError) as exc:
                logger.warning(f"Skipping unreadable redaction in {self.path}: {exc}")
                continue
            if request_id is None or event.request_id == request_id:
                events.append(event)
        return events

    def _records(self) -> List[AuditRecord]:
        records = []
        for entry in self._entries("audit_record"):
            try:
                records.append(AuditRecord.from_dict(entry))
            except (KeyError, ValueError, TypeError, AttributeError) as exc:
                logger.warning(
                    f"Skipping unreadable audit record (version {entry.get('version')}) in {self.path}: {exc}"
                )
        return records

    def _entries(self, kind: str) -> List[Dict[str, Any]]:
        """Parse every line of the given kind.

        Each read scans the whole file; there is no index. Lookups by session
        or request id are linear in the number of lines.
        """
        if not self.path.exists():
            return []
        entries = []
        with self._lock:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        for number, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                logger.warning(f"Skipping corrupt ledger line {number} in {self.path}")
                continue
            if not isinstance(entry, dict):
                continue
            # Lines written before the kind tag existed are audit records.
            if entry.get("kind", "audit_record") == kind:
                entries.append(entry)
        return entries

    def _write_line(self, payload: Dict[str, Any]) -> None:
        line = json.dumps(payload, ensure_ascii=False) + "\n"
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._lock, self.path.open("a", encoding="utf-8") as handle:
                if fcntl is not None:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
                try:
                    handle.write(line)
                    handle.flush()
                finally:
                    if fcntl is not None:
                        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        except OSError as exc:
            raise LedgerError(f"failed to append to {self.path}: {exc}") from exc


def export_records(records: Sequence[AuditRecord], fmt: str = "json") -> str:
    if fmt == "csv":
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["created_at", "request_id", "session_id", "intent", "direction", "confidence", "score", "risk", "integrity_hash"])
        for record in records:
            writer.writerow([
                record.created_at,
                record.request_id,
                record.session_id or "",
                record.intent.value,
                record.aggregate.direction.value,
                record.aggregate.confidence.value,
                record.aggregate.score,
                record.aggregate.risk,
                record.integrity_hash,
            ])
        return buffer.getvalue()
    if fmt == "json":
        return json.dumps([record.to_dict() for record in records], indent=2, ensure_ascii=False)
    raise ValueError(f"unsupported export format: {fmt}")


def summarize(records: Sequence[AuditRecord]) -> Dict[str, Any]:
    by_direction: Dict[str, int] = {}
    by_confidence: Dict[str, int] = {}
    for record in records:
        direction = record.aggregate.direction.value
        confidence = record.aggregate.confidence.value
        by_direction[direction] = by_direction.get(direction, 0) + 1
        by_confidence[confidence] = by_confidence.get(confidence, 0) + 1
    return {
        "total": len(records),
        "by_direction": by_direction,
        "by_confidence": by_confidence,
        "recent": [record.request_id for record in list(records)[-5:][::-1]],
    }
