"""
Nova Tutor v9.0 - Answer Evaluator
Checks a learner's answer against the current question step.

DETERMINISTIC PYTHON. No LLM. Order of checks:
  1. Pull the first integer out of the text ("14", "it's 14!", "-3").
     Number words in the session language count when there are no
     digits ("catorce"). "zero"/"cero"/"no" count as 0 only when the
     step expects 0.
  2. Keyword steps: any keyword as a case-insensitive substring is correct.
  3. Numeric steps: exact integer equality, no tolerance.
  4. Open-ended steps accept any number.
  5. Nothing usable: NO_ANSWER. The attempt is not counted.
"""

import re
from dataclasses import dataclass
from typing import Optional

from nova_tutor.tutor.error_diagnoser import diagnose
from nova_tutor.tutor.steps import Step

CORRECT = "CORRECT"
INCORRECT = "INCORRECT"
NO_ANSWER = "NO_ANSWER"


@dataclass
class Verdict:
    """Result of evaluating one answer."""
    correct: bool
    outcome: str                     # CORRECT | INCORRECT | NO_ANSWER
    value: Optional[int] = None      # number we parsed, if any
    diagnosis: Optional[str] = None  # misconception message, incorrect answers only

    @property
    def counts_as_attempt(self) -> bool:
        return self.outcome != NO_ANSWER


# ─── Number Words ────────────────────────────────────────────────────────────

ZERO_WORDS = {
    "en": {"zero", "no", "none"},
    "es": {"cero", "no", "ninguno"},
}

ENGLISH_NUMBERS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14,
    "fifteen": 15, "sixteen": 16, "seventeen": 17, "eighteen": 18,
    "nineteen": 19, "twenty": 20, "thirty": 30, "forty": 40,
    "fifty": 50, "sixty": 60, "seventy": 70, "eighty": 80,
    "ninety": 90, "hundred": 100,
    "once": 1, "twice": 2,
}

SPANISH_NUMBERS = {
    "uno": 1, "una": 1, "dos": 2, "tres": 3, "cuatro": 4, "cinco": 5,
    "seis": 6, "siete": 7, "ocho": 8, "nueve": 9, "diez": 10,
    "once": 11, "doce": 12, "trece": 13, "catorce": 14, "quince": 15,
    "dieciséis": 16, "dieciseis": 16, "diecisiete": 17, "dieciocho": 18,
    "diecinueve": 19, "veinte": 20, "treinta": 30, "cuarenta": 40,
    "cincuenta": 50, "sesenta": 60, "setenta": 70, "ochenta": 80,
    "noventa": 90, "cien": 100,
}

NUMBER_WORDS = {"en": ENGLISH_NUMBERS, "es": SPANISH_NUMBERS}

_INTEGER = re.compile(r"(?<![\d.])-?\d+")
_WORD = re.compile(r"[a-záéíóúñü]+")


def parse_number(text: str, expected: Optional[int] = None, language: str = "en") -> Optional[int]:
    """First integer in the learner's text, or None.

    A leading minus is kept only when it is glued to the digits ("-3").
    Number words are read in the session language only: "once" is 1 in
    English and 11 in Spanish.
    """
    if not text:
        return None
    match = _INTEGER.search(text)
    if match:
        return int(match.group())

    table = NUMBER_WORDS.get(language, ENGLISH_NUMBERS)
    zero_words = ZERO_WORDS.get(language, ZERO_WORDS["en"])
    words = _WORD.findall(text.lower())
    for word in words:
        if word in table:
            return table[word]
    if expected == 0 and any(word in zero_words for word in words):
        return 0
    return None


def _matches_keyword(text: str, keywords) -> bool:
    lower = text.lower()
    return any(k.lower() in lower for k in keywords)


# ─── Evaluation ──────────────────────────────────────────────────────────────

def evaluate(learner_text: str, step: Step, problem=None, language: str = "en") -> Verdict:
    """Evaluate an answer for a question step.

    problem (operation or type, operand_a, operand_b) is only used to
    diagnose a wrong number; without it the verdict carries no diagnosis.
    """
    text = (learner_text or "").strip()
    value = parse_number(text, step.expected_answer, language)

    if step.expected_keywords:
        if text and _matches_keyword(text, step.expected_keywords):
            return Verdict(True, CORRECT, value)
        if step.expected_answer is None:
            # Keyword-only step: any real attempt that misses is wrong
            if not text:
                return Verdict(False, NO_ANSWER)
            return Verdict(False, INCORRECT, value)

    if value is None:
        return Verdict(False, NO_ANSWER)

    if step.expected_answer is not None:
        if value == step.expected_answer:
            return Verdict(True, CORRECT, value)
        diagnosis = None
        if problem is not None:
            problem_type = getattr(problem, "operation", None) or problem.type
            diagnosis = diagnose(
                step.expected_answer, value, problem_type,
                problem.operand_a, problem.operand_b, language,
            )
        return Verdict(False, INCORRECT, value, diagnosis)

    if step.accepts_any_number:
        return Verdict(True, CORRECT, value)

    return Verdict(False, NO_ANSWER, value)
