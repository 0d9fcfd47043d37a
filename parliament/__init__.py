"""Parliament: a consent-gated decision engine built from rule-based minds."""
from parliament.engine import Evaluation, InputError, MindEvaluationError, evaluate
from parliament.intent import classify_intent, extract_signals
from parliament.scoring import aggregate_votes
from parliament.types import Direction, EvaluationContext, MindVote, ParliamentAggregate

__version__ = "0.1.0"

__all__ = [
    "Direction",
    "Evaluation",
    "EvaluationContext",
    "InputError",
    "MindEvaluationError",
    "MindVote",
    "ParliamentAggregate",
    "aggregate_votes",
    "classify_intent",
    "evaluate",
    "extract_signals",
]
