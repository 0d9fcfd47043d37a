import unittest
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

from parliament.engine import InputError, MindEvaluationError, build_context, evaluate, validate_context
from parliament.types import Confidence, Direction, EvaluationContext, MindId, RetryTag


class TestEvaluate(unittest.TestCase):
    def test_panel_order_and_fresh_request(self):
        result = evaluate(EvaluationContext(text="hello there"))
        self.assertEqual(
            [v.mind for v in result.votes],
            [MindId.COMPLIANCE, MindId.RISK, MindId.OPERATIONS, MindId.EVIDENCE, MindId.EFFICIENCY],
        )
        agg = result.aggregate
        self.assertEqual(agg.direction, Direction.REJECT)
        self.assertEqual((agg.score, agg.risk, agg.confidence), (23, 44, Confidence.MEDIUM))

    def test_retry_after_revision(self):
        ctx = EvaluationContext(
            text="please retry",
            failure_reasons=("rate limit exceeded", "401 unauthorized"),
            failed_direction=Direction.REVISE,
        )
        agg = evaluate(ctx).aggregate
        self.assertEqual(agg.direction, Direction.REVISE)
        self.assertEqual(agg.score, 0)
        self.assertEqual(agg.risk, 64)
        self.assertEqual(agg.confidence, Confidence.LOW)
        self.assertEqual(agg.retry_tags, (RetryTag.BLOCKED, RetryTag.CRITICAL))

    def test_parallel_matches_sequential(self):
        ctx = EvaluationContext(
            text="store my password and deploy",
            failure_reasons=("network timeout", "quota exceeded"),
            failed_direction=Direction.APPROVE,
        )
        with ThreadPoolExecutor(max_workers=5) as executor:
            parallel = evaluate(ctx, executor=executor)
        self.assertEqual(parallel, evaluate(ctx))

    def test_contexts_are_disjoint(self):
        # failure history never reaches COMPLIANCE, user text never reaches the retry minds
        ctx = EvaluationContext(text="network timeout quota 401", failure_reasons=("password leaked",))
        votes = {v.mind: v for v in evaluate(ctx).votes}
        self.assertEqual(votes[MindId.COMPLIANCE].risk, 20)
        for mind in (MindId.RISK, MindId.OPERATIONS, MindId.EVIDENCE):
            self.assertEqual(votes[mind].score, 50)

    def test_mind_failure_aborts_pass(self):
        def broken_mind(ctx):
            raise RuntimeError("boom")

        with patch("parliament.engine.FAILURE_PANEL", (broken_mind,)):
            with self.assertLogs("parliament.engine", level="ERROR"):
                with self.assertRaises(MindEvaluationError) as caught:
                    evaluate(EvaluationContext(text="hi"))
        self.assertEqual(caught.exception.mind, "broken_mind")
        self.assertIsInstance(caught.exception.__cause__, RuntimeError)

    def test_empty_text_is_valid(self):
        self.assertEqual(len(evaluate(EvaluationContext(text="")).votes), 5)


class TestValidation(unittest.TestCase):
    def test_missing_text(self):
        with self.assertRaises(InputError):
            build_context({})

    def test_non_string_text(self):
        with self.assertRaises(InputError):
            build_context({"text": 42})

    def test_failure_reasons_must_be_strings(self):
        with self.assertRaises(InputError):
            build_context({"text": "x", "failure_reasons": ["ok", 3]})
        with self.assertRaises(InputError):
            validate_context(EvaluationContext(text="x", failure_reasons="timeout"))

    def test_bad_failed_direction(self):
        with self.assertRaises(InputError):
            build_context({"text": "x", "failed_direction": "maybe"})

    def test_bad_metadata(self):
        with self.assertRaises(InputError):
            build_context({"text": "x", "metadata": ["a"]})

    def test_bad_prior_votes(self):
        with self.assertRaises(InputError):
            build_context({"text": "x", "prior_votes": [{"mind": "NOBODY"}]})

    def test_build_context_normalises_input(self):
        ctx = build_context({
            "text": "x",
            "session_id": "s1",
            "failure_reasons": "timeout",
            "failed_direction": "revise",
            "prior_votes": [{"mind": "RISK", "direction": "REJECT", "score": 50, "risk": 50, "retry_tags": ["RETRY"]}],
            "metadata": {"source": "test"},
        })
        self.assertEqual(ctx.failure_reasons, ("timeout",))
        self.assertEqual(ctx.failed_direction, Direction.REVISE)
        self.assertEqual(ctx.prior_votes[0].retry_tags, (RetryTag.RETRY,))
        self.assertEqual(ctx.metadata["source"], "test")

    def test_evaluate_rejects_plain_dict(self):
        with self.assertRaises(InputError):
            evaluate({"text": "x"})


if __name__ == "__main__":
    unittest.main()
