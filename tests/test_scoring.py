import random
import unittest

from parliament.scoring import aggregate_votes
from parliament.types import Confidence, Direction, MindId, MindVote, RetryTag, RiskTag


def vote(direction, score=50, risk=50, mind=MindId.RISK, **kwargs):
    return MindVote(mind=mind, direction=direction, score=score, risk=risk, **kwargs)


def random_votes(rng, n):
    minds = list(MindId)
    directions = list(Direction)
    tags = list(RiskTag)
    return [
        MindVote(
            mind=rng.choice(minds),
            direction=rng.choice(directions),
            score=rng.randint(0, 100),
            risk=rng.randint(0, 100),
            risk_tags=tuple(rng.sample(tags, rng.randint(0, 2))),
            reasons=(f"reason {rng.randint(0, 30)}",),
            next_steps=(f"step {rng.randint(0, 40)}",),
        )
        for _ in range(n)
    ]


class TestAggregateVotes(unittest.TestCase):
    def test_empty_input(self):
        agg = aggregate_votes([])
        consensus = agg.consensus
        self.assertEqual(
            (consensus.approvals, consensus.revises, consensus.rejects, consensus.total, consensus.agreement_pct, consensus.margin),
            (0, 0, 0, 0, 0, 0),
        )
        self.assertEqual(agg.confidence, Confidence.LOW)
        self.assertEqual(agg.direction, Direction.REVISE)
        self.assertEqual((agg.score, agg.risk), (0, 0))
        self.assertEqual((agg.top_reasons, agg.next_steps, agg.risk_tags), ((), (), ()))

    def test_tie_breaks_toward_revise(self):
        votes = [vote(Direction.APPROVE), vote(Direction.APPROVE), vote(Direction.REVISE), vote(Direction.REVISE)]
        self.assertEqual(aggregate_votes(votes).direction, Direction.REVISE)

    def test_reject_beats_approve_on_tie(self):
        votes = [vote(Direction.APPROVE), vote(Direction.REJECT)]
        self.assertEqual(aggregate_votes(votes).direction, Direction.REJECT)

    def test_direction_caps_score(self):
        rejects = [vote(Direction.REJECT, score=100, risk=0) for _ in range(3)]
        self.assertEqual(aggregate_votes(rejects).score, 25)
        revises = [vote(Direction.REVISE, score=100, risk=0) for _ in range(3)]
        self.assertEqual(aggregate_votes(revises).score, 65)

    def test_unanimous_approval(self):
        agg = aggregate_votes([vote(Direction.APPROVE, score=100, risk=0) for _ in range(3)])
        self.assertEqual(agg.score, 100)
        self.assertEqual(agg.confidence, Confidence.HIGH)
        self.assertEqual((agg.consensus.agreement_pct, agg.consensus.margin), (100, 3))

    def test_high_confidence_needs_three_votes(self):
        agg = aggregate_votes([vote(Direction.APPROVE, score=100, risk=0) for _ in range(2)])
        self.assertEqual(agg.confidence, Confidence.LOW)

    def test_medium_confidence(self):
        votes = [vote(Direction.REJECT) for _ in range(4)] + [vote(Direction.APPROVE, score=70, risk=20)]
        agg = aggregate_votes(votes)
        self.assertEqual(agg.direction, Direction.REJECT)
        self.assertEqual(agg.consensus.agreement_pct, 80)
        # mean score 54, mean risk 44, dissent 20: 54 - 24.2 - 7 = 22.8
        self.assertEqual(agg.score, 23)
        self.assertEqual(agg.risk, 44)
        self.assertEqual(agg.confidence, Confidence.MEDIUM)

    def test_agreement_rounds_half_up(self):
        votes = [vote(Direction.APPROVE)] * 3 + [vote(Direction.REVISE)] * 3 + [vote(Direction.REJECT)] * 2
        agg = aggregate_votes(votes)
        self.assertEqual(agg.consensus.agreement_pct, 38)
        self.assertEqual(agg.consensus.margin, 0)
        self.assertEqual(agg.direction, Direction.REVISE)

    def test_reasons_and_steps(self):
        votes = [
            vote(Direction.REJECT, mind=MindId.COMPLIANCE, reasons=("a", "b"), next_steps=("x",)),
            vote(Direction.REJECT, mind=MindId.COMPLIANCE, reasons=("a",), next_steps=("x", "y")),
            vote(Direction.REJECT, mind=MindId.RISK, reasons=("a",), retry_tags=(RetryTag.RETRY,)),
        ]
        agg = aggregate_votes(votes)
        self.assertEqual(agg.top_reasons, ("COMPLIANCE: a", "COMPLIANCE: b", "RISK: a"))
        self.assertEqual(agg.next_steps, ("x", "y"))
        self.assertEqual(agg.retry_tags, (RetryTag.RETRY,))

    def test_reason_limits(self):
        votes = [
            vote(Direction.REVISE, reasons=tuple(f"r{i}" for i in range(30)), next_steps=tuple(f"s{i}" for i in range(30)))
        ]
        agg = aggregate_votes(votes)
        self.assertEqual(len(agg.top_reasons), 12)
        self.assertEqual(len(agg.next_steps), 20)

    def test_properties_over_random_inputs(self):
        rng = random.Random(7)
        for n in (0, 1, 2, 3, 4, 5, 10, 50, 200, 1000):
            votes = random_votes(rng, n)
            agg = aggregate_votes(votes)
            with self.subTest(n=n):
                self.assertEqual(agg, aggregate_votes(list(votes)))
                self.assertTrue(0 <= agg.score <= 100)
                self.assertTrue(0 <= agg.risk <= 100)
                self.assertTrue(0 <= agg.consensus.agreement_pct <= 100)
                self.assertEqual(agg.consensus.total, n)
                if agg.direction == Direction.REJECT:
                    self.assertLessEqual(agg.score, 25)
                if agg.direction == Direction.REVISE:
                    self.assertLessEqual(agg.score, 65)
                if agg.confidence == Confidence.HIGH:
                    self.assertGreaterEqual(n, 3)
                self.assertLessEqual(len(agg.top_reasons), 12)
                self.assertEqual(len(agg.top_reasons), len(set(agg.top_reasons)))


if __name__ == "__main__":
    unittest.main()
