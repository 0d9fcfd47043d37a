import unittest
from unittest.mock import MagicMock

from parliament.config import Config
from parliament.engine import InputError
from parliament.ledger import REDACTED, MemoryAuditLog, verify_record
from parliament.notify import NotifyResult, WebhookNotifier
from parliament.pipeline import ParliamentPipeline
from parliament.types import Direction, EvaluationContext, FallbackMode, IntentType


class TestParliamentPipeline(unittest.TestCase):
    def setUp(self):
        self.ledger = MemoryAuditLog()
        self.pipeline = ParliamentPipeline(Config({}), ledger=self.ledger, notifier=WebhookNotifier(url=None))

    def test_reject_carries_static_fallback(self):
        result = self.pipeline.run("hello there", session_id="s1")
        record = result.record
        self.assertEqual(result.aggregate.direction, Direction.REJECT)
        self.assertEqual(record.intent, IntentType.INFO_REQUEST)
        self.assertEqual(record.output.fallback.mode, FallbackMode.STATIC)
        self.assertEqual(result.user_message, "Unable to process this info request.")
        self.assertEqual(record.mode, "FALLBACK_PARLIAMENT")
        self.assertTrue(record.request_id.startswith("req_"))
        self.assertTrue(verify_record(record))
        self.assertEqual(self.ledger.read_all(), [record])
        self.assertIsNone(result.notification)

    def test_rate_limited_fallback(self):
        result = self.pipeline.run("try again", failure_reasons=["Rate limit exceeded"])
        self.assertEqual(result.aggregate.direction, Direction.REJECT)
        self.assertEqual(result.record.output.fallback.mode, FallbackMode.RULES_BASED)

    def test_non_reject_has_no_fallback(self):
        result = self.pipeline.run(
            "please retry",
            failure_reasons=["rate limit exceeded", "401 unauthorized"],
            failed_direction="revise",
            request_id="req_fixed",
        )
        self.assertEqual(result.aggregate.direction, Direction.REVISE)
        self.assertIsNone(result.record.output.fallback)
        self.assertIn("REVISE", result.user_message)
        self.assertIn("Next step: Change the request before retrying", result.user_message)
        self.assertEqual(self.ledger.get("req_fixed"), result.record)

    def test_accepts_direction_enum(self):
        result = self.pipeline.run("x", failed_direction=Direction.REVISE)
        self.assertEqual(result.record.context.failed_direction, Direction.REVISE)

    def test_input_error_records_nothing(self):
        with self.assertRaises(InputError):
            self.pipeline.run(None)
        with self.assertRaises(InputError):
            self.pipeline.run("x", failed_direction="sideways")
        self.assertEqual(self.ledger.read_all(), [])

    def test_malformed_context_raises_input_error(self):
        with self.assertRaises(InputError):
            self.pipeline.run_context(EvaluationContext(text=None))
        self.assertEqual(self.ledger.read_all(), [])

    def test_sensitive_data_is_redacted_before_persistence(self):
        result = self.pipeline.run(
            "my password: hunter2, must keep it",
            metadata={"api_key": "sk-123", "channel": "voice"},
        )
        context = result.record.context
        self.assertNotIn("hunter2", context.text)
        self.assertEqual(context.metadata["api_key"], REDACTED)
        self.assertEqual(context.metadata["channel"], "voice")
        self.assertTrue(all("hunter2" not in c for c in result.record.extracted.constraints))
        # the live pass still sees the raw text
        compliance = result.evaluation.votes[0]
        self.assertGreaterEqual(compliance.risk, 45)

    def test_entities_are_taken_from_redacted_text(self):
        record = self.pipeline.run("my password is Hunter2Secret").record
        self.assertNotIn("Hunter2Secret", record.context.text)
        self.assertNotIn("Hunter2Secret", record.extracted.entities)

        record = self.pipeline.run("fetch https://api.example.com/x?token=abc123").record
        self.assertTrue(all("abc123" not in e for e in record.extracted.entities))
        self.assertIn(f"https://api.example.com/x?token={REDACTED}", record.extracted.entities)

    def test_metadata_lists_are_redacted(self):
        record = self.pipeline.run("hi", metadata={"accounts": [{"token": "abc", "name": "a"}]}).record
        self.assertEqual(record.context.metadata["accounts"], [{"token": REDACTED, "name": "a"}])
        self.assertTrue(verify_record(self.ledger.get(record.request_id)))

    def test_history_recent_and_redact(self):
        first = self.pipeline.run("a", session_id="s1").record
        self.pipeline.run("b", session_id="s2")
        third = self.pipeline.run("c", session_id="s1").record
        self.assertEqual(self.pipeline.history("s1"), [first, third])
        self.assertEqual(self.pipeline.recent(limit=1), [third])

        event = self.pipeline.redact(first.request_id, "user asked", redacted_by="support")
        self.assertEqual(self.ledger.redactions(first.request_id), [event])
        self.assertEqual(self.ledger.get(first.request_id), first)
        with self.assertRaises(KeyError):
            self.pipeline.redact("req_missing", "n/a")

    def test_notifier_is_called_when_enabled(self):
        notifier = MagicMock()
        notifier.enabled = True
        notifier.notify.return_value = NotifyResult(ok=True, request_id="r", status=200)
        pipeline = ParliamentPipeline(Config({}), ledger=self.ledger, notifier=notifier)
        with self.assertLogs("parliament.pipeline", level="INFO"):
            result = pipeline.run("hello")
        notifier.notify.assert_called_once_with(result.record)
        self.assertTrue(result.to_dict()["notification"]["ok"])


if __name__ == "__main__":
    unittest.main()
