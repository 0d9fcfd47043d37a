"""The fixed mind panel.

COMPLIANCE evaluates live request text; the other four evaluate the history
of a failed attempt. The two panels take different context types.
"""
from __future__ import annotations

from typing import Callable, Tuple

from parliament.minds.compliance import compliance_mind
from parliament.minds.efficiency import efficiency_mind
from parliament.minds.evidence import evidence_mind
from parliament.minds.operations import operations_mind
from parliament.minds.risk import risk_mind
from parliament.types import FailureContext, MindVote, TextContext

TextMind = Callable[[TextContext], MindVote]
FailureMind = Callable[[FailureContext], MindVote]

TEXT_PANEL: Tuple[TextMind, ...] = (compliance_mind,)
FAILURE_PANEL: Tuple[FailureMind, ...] = (risk_mind, operations_mind, evidence_mind, efficiency_mind)

__all__ = [
    "TEXT_PANEL",
    "FAILURE_PANEL",
    "compliance_mind",
    "risk_mind",
    "operations_mind",
    "evidence_mind",
    "efficiency_mind",
]
