"""
Tests for problem_classifier.py and grade_gate.py.
"""

import pytest

from nova_tutor.content.curriculum import GRADE_CURRICULUM, get_available_topics, is_topic_in_grade
from nova_tutor.tutor import grade_gate
from nova_tutor.tutor.problem_classifier import (
    GENERAL, WORD_PROBLEM, ClassifierRule, classify, extract_numbers, match_rules,
)


# ─── Classifier ──────────────────────────────────────────────────────────────

class TestClassify:
    @pytest.mark.parametrize("text,expected", [
        ("7 + 7", "addition"),
        ("suma 12 y 4", "addition"),
        ("20 - 8", "subtraction"),
        ("resta 9 de 15", "subtraction"),
        ("6 x 7", "multiplication"),
        ("8 × 3", "multiplication"),
        ("89 ÷ 3", "division"),
        ("divide 84 by 4", "division"),
        ("area 5 and 3", "area"),
        ("perímetro 4 6", "perimeter"),
        ("3/4", "fractions"),
        ("1/2 + 1/4", "fraction_addition"),
        ("3/4 - 1/4", "fraction_subtraction"),
        ("2.5 + 1.5", "decimal_addition"),
        ("0.75", "decimals"),
        ("shape with 4 sides", "geometry"),
    ])
    def test_cascade(self, text, expected):
        assert classify(text) == expected

    def test_long_text_with_digit_is_word_problem(self):
        assert classify("Maria has 12 apples and gives 5 to Juan") == WORD_PROBLEM

    def test_long_text_without_digits_is_not_word_problem(self):
        assert classify("I want to learn something fun today please") == GENERAL

    def test_empty_is_general(self):
        assert classify("") == GENERAL
        assert classify("   ") == GENERAL

    def test_nothing_matched_is_general(self):
        assert classify("hello") == GENERAL

    def test_pure_and_deterministic(self):
        text = "How many times does 3 fit in 89"
        assert classify(text, 3, "en") == classify(text, 5, "es") == classify(text)

    def test_division_before_multiplication(self):
        # "/" and "x" both present: the cascade order decides
        assert classify("12 / 4 x") == "division"


class TestRuleTable:
    def test_custom_rules(self):
        rules = (ClassifierRule("money", lambda t, l: "$" in t, "money"),)
        assert match_rules("$5 and $3", rules) == "money"
        assert match_rules("5 and 3", rules) == GENERAL


class TestExtractNumbers:
    def test_in_order(self):
        assert extract_numbers("89 ÷ 3") == [89, 3]

    def test_none(self):
        assert extract_numbers("no numbers") == []

    def test_none_input(self):
        assert extract_numbers(None) == []


# ─── Grade Gate ──────────────────────────────────────────────────────────────

class TestGradeGate:
    def test_division_refused_in_grade_1(self):
        assert grade_gate.is_allowed("division", 1) is False

    def test_division_allowed_in_grade_3(self):
        assert grade_gate.is_allowed("division", 3) is True

    def test_remediation_mode_opens_everything(self):
        assert grade_gate.is_allowed("fraction_division", 1, remediation_mode_active=True)

    def test_general_always_allowed(self):
        assert grade_gate.is_allowed(GENERAL, 1)

    def test_word_problem_allowed(self):
        assert grade_gate.is_allowed(WORD_PROBLEM, 1)

    def test_reviewed_prerequisite_refused(self):
        # Grade 4 reviews addition but it is not one of its topics
        assert "addition" in GRADE_CURRICULUM[4].prerequisites
        assert is_topic_in_grade("addition", 4) is False
        assert grade_gate.is_allowed("addition", 4, False) is False
        assert grade_gate.is_allowed("subtraction", 5) is False

    def test_reviewed_prerequisite_open_in_remediation(self):
        assert grade_gate.is_allowed("addition", 4, remediation_mode_active=True)

    def test_unknown_grade(self):
        assert not is_topic_in_grade("addition", 9)

    def test_refusal_message(self):
        assert grade_gate.refusal_message("division", "en").startswith("Division is a topic for higher grades")
        assert grade_gate.refusal_message("division", "es").startswith("División es un tema")


class TestAvailableTopics:
    def test_grade_only(self):
        topics = get_available_topics(1)
        assert "addition" in topics
        assert "multiplication" not in topics

    def test_include_lower(self):
        topics = get_available_topics(3, include_lower=True)
        assert "shapes_2d" in topics      # grade 1
        assert "division" in topics       # grade 3
        assert topics == sorted(topics)

    def test_unknown_grade(self):
        assert get_available_topics(0) == []
