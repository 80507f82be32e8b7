"""
Nova Tutor v9.0 - Error Diagnoser
Names the misconception behind a wrong number, when there is a known one.

Rules, first match wins:
    addition, answer == a*b        multiplied instead of adding
    addition, answer == |a-b|      subtracted instead of adding
    multiplication, answer == a+b  added instead of multiplying
    subtraction, answer == a+b     added instead of subtracting
    off by at most 2, expected > 10    near miss
Anything else returns None and the step's own hint ladder is used.
"""

from typing import Optional

_DIAGNOSES = {
    "multiplied_not_added": {
        "en": "You multiplied instead of adding. Look at the sign (+).",
        "es": "Multiplicaste en vez de sumar. Fíjate en el signo (+).",
    },
    "subtracted_not_added": {
        "en": "You subtracted instead of adding.",
        "es": "Restaste en lugar de sumar.",
    },
    "added_not_multiplied": {
        "en": "You added instead of multiplying. Remember 'times' means repeated groups.",
        "es": "Sumaste en vez de multiplicar. Recuerda que 'veces' significa grupos repetidos.",
    },
    "added_not_subtracted": {
        "en": "You added. In subtraction we must take away, not add.",
        "es": "Sumaste. En la resta debemos quitar, no poner.",
    },
    "near_miss": {
        "en": "Oops! You were very close. Check your mental math.",
        "es": "¡Uy! Estuviste muy cerca. Revisa tus dedos o tu cálculo mental.",
    },
}

NEAR_MISS_DISTANCE = 2
NEAR_MISS_MIN_EXPECTED = 10


def diagnose_key(expected: int, actual: int, problem_type: str, a: int, b: int) -> Optional[str]:
    """Which misconception applies, as a key into the message table."""
    if problem_type == "addition" and actual == a * b:
        return "multiplied_not_added"
    if problem_type == "addition" and actual == abs(a - b):
        return "subtracted_not_added"
    if problem_type == "multiplication" and actual == a + b:
        return "added_not_multiplied"
    if problem_type == "subtraction" and actual == a + b:
        return "added_not_subtracted"
    if abs(expected - actual) <= NEAR_MISS_DISTANCE and expected > NEAR_MISS_MIN_EXPECTED:
        return "near_miss"
    return None


def diagnose(
    expected: int,
    actual: int,
    problem_type: str,
    operand_a: int,
    operand_b: int,
    language: str = "en",
) -> Optional[str]:
    key = diagnose_key(expected, actual, problem_type, operand_a, operand_b)
    if key is None:
        return None
    messages = _DIAGNOSES[key]
    return messages.get(language, messages["en"])
