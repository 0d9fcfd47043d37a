import unittest

from parliament.intent import classify_intent, extract_signals
from parliament.types import IntentType
from parliament.utils import normalize_text


class TestClassifyIntent(unittest.TestCase):
    def test_governance_outranks_question(self):
        self.assertEqual(classify_intent("Should we vote on this in parliament?"), IntentType.GOVERNANCE_REQUEST)

    def test_empty_and_default(self):
        self.assertEqual(classify_intent(""), IntentType.UNKNOWN)
        self.assertEqual(classify_intent("   \n\t "), IntentType.UNKNOWN)
        self.assertEqual(classify_intent("hello there"), IntentType.INFO_REQUEST)

    def test_rule_table_order(self):
        cases = {
            "We hit a 500 on checkout": IntentType.DEBUG_REQUEST,
            "Is the deployment live": IntentType.STATUS_REQUEST,
            "What should I do next": IntentType.DECISION_REQUEST,
            "Draft a roadmap for Q3": IntentType.PLAN_REQUEST,
            "Please implement the parser": IntentType.EXECUTION_REQUEST,
            # debug keywords win over plan keywords
            "plan how to fix the bug": IntentType.DEBUG_REQUEST,
        }
        for text, expected in cases.items():
            with self.subTest(text=text):
                self.assertEqual(classify_intent(text), expected)

    def test_case_and_whitespace_insensitive(self):
        self.assertEqual(classify_intent("  CHECK   THE\nSTATUS "), IntentType.STATUS_REQUEST)

    def test_label(self):
        self.assertEqual(IntentType.INFO_REQUEST.label, "info")
        self.assertEqual(IntentType.UNKNOWN.label, "unknown")


class TestNormalizeText(unittest.TestCase):
    def test_quotes_and_whitespace(self):
        self.assertEqual(normalize_text("  “hi”   there ‘x’ "), "\"hi\" there 'x'")


class TestExtractSignals(unittest.TestCase):
    def test_basic_extraction(self):
        signals = extract_signals("You must include Alpha. Is Beta ready? See https://example.com/docs now!")
        self.assertEqual(signals.questions, ("Is Beta ready?",))
        self.assertEqual(signals.constraints, ("must include Alpha", "include Alpha"))
        self.assertEqual(
            signals.entities,
            ("https://example.com/docs", "You", "Alpha", "Beta", "See"),
        )

    def test_constraints_are_whole_words(self):
        signals = extract_signals("nothing known about notes")
        self.assertEqual(signals.constraints, ())

    def test_constraint_context_is_bounded(self):
        signals = extract_signals("never " + "x" * 300)
        self.assertEqual(len(signals.constraints[0]), len("never ") + 120 - 1)

    def test_duplicates_removed(self):
        signals = extract_signals("Why? Why? Acme and Acme")
        self.assertEqual(signals.questions, ("Why?",))
        self.assertEqual(signals.entities, ("Why", "Acme"))

    def test_caps(self):
        musts = ". ".join(f"you must do thing {i}" for i in range(30))
        self.assertEqual(len(extract_signals(musts).constraints), 25)

        questions = " ".join(f"question {i}?" for i in range(15))
        self.assertEqual(len(extract_signals(questions).questions), 10)

        names = " ".join(f"Item{i}" for i in range(40))
        self.assertEqual(len(extract_signals(names).entities), 25)

    def test_empty_text(self):
        signals = extract_signals("")
        self.assertEqual((signals.entities, signals.constraints, signals.questions), ((), (), ()))


if __name__ == "__main__":
    unittest.main()
