"""
Nova Tutor v9.0 - Problem Classifier

Maps raw learner text to a problem type tag. Deterministic and side-effect
free: an ordered rule table evaluated by one matcher, first match wins.

Cascade:
    word_problem     : more than 5 tokens and at least one digit
    fraction_*       : "fracc"/"fraction" or an n/m pattern, split by operator cue
    decimal_*        : "decimal" or an n.m pattern, split by operator cue
    area / perimeter / geometry
    division, multiplication, addition, subtraction (keyword or symbol)
    general          : nothing matched
"""

import re
from dataclasses import dataclass
from typing import Callable

GENERAL = "general"
WORD_PROBLEM = "word_problem"

# ─── Patterns ────────────────────────────────────────────────────────────────

_DIGIT = re.compile(r"\d")
_INTEGER = re.compile(r"\d+")
_FRACTION = re.compile(r"\d+/\d+")
_DECIMAL = re.compile(r"\d+\.\d+")

# Operator cues, substring matched against the lowercased text
ADD_CUES = ("sum", "más", "plus", "add", "+")
SUB_CUES = ("rest", "menos", "minus", "subtract", "-")

DIVISION_CUES = ("divi", "cociente", "÷", "/")
MULTIPLICATION_CUES = ("multi", "por", "times", "×", "x", "*")
ADDITION_CUES = ("suma", "más", "adici", "add", "plus", "+")
SUBTRACTION_CUES = ("resta", "menos", "diferencia", "minus", "subtract", "-")


def _has_any(lower: str, cues) -> bool:
    return any(cue in lower for cue in cues)


# ─── Rule Table ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ClassifierRule:
    """One row of the cascade. `matcher` sees the raw and lowercased text."""
    name: str
    matcher: Callable[[str, str], bool]
    result: str


def _is_word_problem(text: str, lower: str) -> bool:
    return len(text.split(" ")) > 5 and bool(_DIGIT.search(text))


def _is_fraction(text: str, lower: str) -> bool:
    return "fracc" in lower or "fraction" in lower or bool(_FRACTION.search(lower))


def _is_decimal(text: str, lower: str) -> bool:
    return "decimal" in lower or bool(_DECIMAL.search(lower))


RULES: tuple[ClassifierRule, ...] = (
    ClassifierRule("word_problem", _is_word_problem, WORD_PROBLEM),

    ClassifierRule("fraction_addition",
                   lambda t, l: _is_fraction(t, l) and _has_any(l, ADD_CUES),
                   "fraction_addition"),
    ClassifierRule("fraction_subtraction",
                   lambda t, l: _is_fraction(t, l) and _has_any(l, SUB_CUES),
                   "fraction_subtraction"),
    ClassifierRule("fractions", _is_fraction, "fractions"),

    ClassifierRule("decimal_addition",
                   lambda t, l: _is_decimal(t, l) and _has_any(l, ADD_CUES),
                   "decimal_addition"),
    ClassifierRule("decimal_subtraction",
                   lambda t, l: _is_decimal(t, l) and _has_any(l, SUB_CUES),
                   "decimal_subtraction"),
    ClassifierRule("decimals", _is_decimal, "decimals"),

    ClassifierRule("area", lambda t, l: _has_any(l, ("área", "area")), "area"),
    ClassifierRule("perimeter", lambda t, l: _has_any(l, ("perímetro", "perimeter")), "perimeter"),
    ClassifierRule("geometry",
                   lambda t, l: _has_any(l, ("geo", "figur", "angul", "angle", "shape")),
                   "geometry"),

    ClassifierRule("division", lambda t, l: _has_any(l, DIVISION_CUES), "division"),
    ClassifierRule("multiplication", lambda t, l: _has_any(l, MULTIPLICATION_CUES), "multiplication"),
    ClassifierRule("addition", lambda t, l: _has_any(l, ADDITION_CUES), "addition"),
    ClassifierRule("subtraction", lambda t, l: _has_any(l, SUBTRACTION_CUES), "subtraction"),
)


def match_rules(text: str, rules=RULES) -> str:
    """Run a rule table over text. First matching rule wins."""
    lower = text.lower()
    for rule in rules:
        if rule.matcher(text, lower):
            return rule.result
    return GENERAL


def classify(text: str, grade: int = 3, language: str = "en") -> str:
    """Classify learner text into a problem type.

    grade and language are accepted so callers pass the whole learner
    context; the cascade itself does not vary with them.
    """
    if not text or not text.strip():
        return GENERAL
    return match_rules(text.strip())


def extract_numbers(text: str) -> list[int]:
    """All integer substrings, in order of appearance."""
    return [int(n) for n in _INTEGER.findall(text or "")]
