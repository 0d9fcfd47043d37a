"""Value types shared by the parliament engine, ledger and pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from parliament.utils import uniq


class MindId(str, Enum):
    COMPLIANCE = "COMPLIANCE"
    RISK = "RISK"
    OPERATIONS = "OPERATIONS"
    EVIDENCE = "EVIDENCE"
    EFFICIENCY = "EFFICIENCY"


class Direction(str, Enum):
    APPROVE = "APPROVE"
    REVISE = "REVISE"
    REJECT = "REJECT"


class Confidence(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class RiskTag(str, Enum):
    SAFETY = "SAFETY"
    LEGAL = "LEGAL"
    PRIVACY = "PRIVACY"
    SECURITY = "SECURITY"
    FINANCIAL = "FINANCIAL"
    REPUTATION = "REPUTATION"
    OPERATIONAL = "OPERATIONAL"


class SignalTag(str, Enum):
    MISSING_INFO = "MISSING_INFO"
    CONTRADICTION = "CONTRADICTION"
    HIGH_IMPACT = "HIGH_IMPACT"
    REVERSIBLE = "REVERSIBLE"
    IRREVERSIBLE = "IRREVERSIBLE"
    TIME_SENSITIVE = "TIME_SENSITIVE"
    USER_CONFIRMATION_REQUIRED = "USER_CONFIRMATION_REQUIRED"


class RetryTag(str, Enum):
    """Retry classification raised by the failure-retry minds."""
    BLOCKED = "BLOCKED"
    CRITICAL = "CRITICAL"
    TRANSIENT = "TRANSIENT"
    RETRY = "RETRY"


class IntentType(str, Enum):
    INFO_REQUEST = "INFO_REQUEST"
    PLAN_REQUEST = "PLAN_REQUEST"
    DECISION_REQUEST = "DECISION_REQUEST"
    EXECUTION_REQUEST = "EXECUTION_REQUEST"
    STATUS_REQUEST = "STATUS_REQUEST"
    DEBUG_REQUEST = "DEBUG_REQUEST"
    GOVERNANCE_REQUEST = "GOVERNANCE_REQUEST"
    UNKNOWN = "UNKNOWN"

    @property
    def label(self) -> str:
        """Short human label, e.g. ``"info"`` for INFO_REQUEST."""
        return self.value.replace("_REQUEST", "").lower()


class FallbackMode(str, Enum):
    STATIC = "STATIC"
    RULES_BASED = "RULES_BASED"
    HYBRID = "HYBRID"


@dataclass(frozen=True)
class MindVote:
    mind: MindId
    direction: Direction
    score: int
    risk: int
    risk_tags: Tuple[RiskTag, ...] = ()
    signals: Tuple[SignalTag, ...] = ()
    retry_tags: Tuple[RetryTag, ...] = ()
    reasons: Tuple[str, ...] = ()
    next_steps: Tuple[str, ...] = ()
    evidence: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "risk_tags", tuple(uniq(self.risk_tags)))
        object.__setattr__(self, "signals", tuple(uniq(self.signals)))
        object.__setattr__(self, "retry_tags", tuple(uniq(self.retry_tags)))
        object.__setattr__(self, "reasons", tuple(self.reasons))
        object.__setattr__(self, "next_steps", tuple(self.next_steps))
        object.__setattr__(self, "evidence", tuple(self.evidence))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mind": self.mind.value,
            "direction": self.direction.value,
            "score": self.score,
            "risk": self.risk,
            "risk_tags": [tag.value for tag in self.risk_tags],
            "signals": [tag.value for tag in self.signals],
            "retry_tags": [tag.value for tag in self.retry_tags],
            "reasons": list(self.reasons),
            "next_steps": list(self.next_steps),
            "evidence": list(self.evidence),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MindVote":
        return cls(
            mind=MindId(data["mind"]),
            direction=Direction(data["direction"]),
            score=int(data.get("score", 0)),
            risk=int(data.get("risk", 0)),
            risk_tags=tuple(RiskTag(t) for t in data.get("risk_tags") or []),
            signals=tuple(SignalTag(t) for t in data.get("signals") or []),
            retry_tags=tuple(RetryTag(t) for t in data.get("retry_tags") or []),
            reasons=tuple(data.get("reasons") or []),
            next_steps=tuple(data.get("next_steps") or []),
            evidence=tuple(data.get("evidence") or []),
        )


@dataclass(frozen=True)
class Consensus:
    approvals: int = 0
    revises: int = 0
    rejects: int = 0
    total: int = 0
    agreement_pct: int = 0
    margin: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "approvals": self.approvals,
            "revises": self.revises,
            "rejects": self.rejects,
            "total": self.total,
            "agreement_pct": self.agreement_pct,
            "margin": self.margin,
        }


@dataclass(frozen=True)
class ParliamentAggregate:
    direction: Direction
    score: int
    risk: int
    confidence: Confidence
    consensus: Consensus
    top_reasons: Tuple[str, ...] = ()
    next_steps: Tuple[str, ...] = ()
    risk_tags: Tuple[RiskTag, ...] = ()
    signals: Tuple[SignalTag, ...] = ()
    retry_tags: Tuple[RetryTag, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction.value,
            "score": self.score,
            "risk": self.risk,
            "confidence": self.confidence.value,
            "consensus": self.consensus.to_dict(),
            "top_reasons": list(self.top_reasons),
            "next_steps": list(self.next_steps),
            "risk_tags": [tag.value for tag in self.risk_tags],
            "signals": [tag.value for tag in self.signals],
            "retry_tags": [tag.value for tag in self.retry_tags],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParliamentAggregate":
        consensus = data.get("consensus") or {}
        return cls(
            direction=Direction(data.get("direction", Direction.REVISE.value)),
            score=int(data.get("score", 0)),
            risk=int(data.get("risk", 0)),
            confidence=Confidence(data.get("confidence", Confidence.LOW.value)),
            consensus=Consensus(**{k: int(v) for k, v in consensus.items() if k in Consensus.__dataclass_fields__}),
            top_reasons=tuple(data.get("top_reasons") or []),
            next_steps=tuple(data.get("next_steps") or []),
            risk_tags=tuple(RiskTag(t) for t in data.get("risk_tags") or []),
            signals=tuple(SignalTag(t) for t in data.get("signals") or []),
            retry_tags=tuple(RetryTag(t) for t in data.get("retry_tags") or []),
        )


@dataclass(frozen=True)
class TextContext:
    """Live user text, the only input the COMPLIANCE mind sees."""
    text: str


@dataclass(frozen=True)
class FailureContext:
    """History of a failed attempt, the only input the retry minds see."""
    failed_direction: Optional[Direction] = None
    reasons: Tuple[str, ...] = ()
    prior_votes: Tuple[MindVote, ...] = ()


@dataclass(frozen=True)
class EvaluationContext:
    text: str
    session_id: Optional[str] = None
    failure_reasons: Tuple[str, ...] = ()
    failed_direction: Optional[Direction] = None
    prior_votes: Tuple[MindVote, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.failure_reasons is None:
            object.__setattr__(self, "failure_reasons", ())
        elif not isinstance(self.failure_reasons, str):
            object.__setattr__(self, "failure_reasons", tuple(self.failure_reasons))
        object.__setattr__(self, "prior_votes", tuple(self.prior_votes or ()))
        if isinstance(self.metadata, Mapping):
            object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def text_context(self) -> TextContext:
        return TextContext(text=self.text)

    def failure_context(self) -> FailureContext:
        return FailureContext(
            failed_direction=self.failed_direction,
            reasons=self.failure_reasons,
            prior_votes=self.prior_votes,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "session_id": self.session_id,
            "failure_reasons": list(self.failure_reasons),
            "failed_direction": self.failed_direction.value if self.failed_direction else None,
            "prior_votes": [vote.to_dict() for vote in self.prior_votes],
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EvaluationContext":
        failed = data.get("failed_direction")
        return cls(
            text=data.get("text", ""),
            session_id=data.get("session_id"),
            failure_reasons=tuple(data.get("failure_reasons") or []),
            failed_direction=Direction(failed) if failed else None,
            prior_votes=tuple(MindVote.from_dict(v) for v in data.get("prior_votes") or []),
            metadata=data.get("metadata") or {},
        )


@dataclass(frozen=True)
class ExtractedSignals:
    entities: Tuple[str, ...] = ()
    constraints: Tuple[str, ...] = ()
    questions: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, list]:
        return {
            "entities": list(self.entities),
            "constraints": list(self.constraints),
            "questions": list(self.questions),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtractedSignals":
        return cls(
            entities=tuple(data.get("entities") or []),
            constraints=tuple(data.get("constraints") or []),
            questions=tuple(data.get("questions") or []),
        )


@dataclass(frozen=True)
class FallbackResponse:
    message: str
    suggestion: str
    mode: FallbackMode
    timestamp: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "message": self.message,
            "suggestion": self.suggestion,
            "mode": self.mode.value,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FallbackResponse":
        return cls(
            message=data.get("message", ""),
            suggestion=data.get("suggestion", ""),
            mode=FallbackMode(data.get("mode", FallbackMode.STATIC.value)),
            timestamp=data.get("timestamp", ""),
        )
