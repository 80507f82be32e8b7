"""
Nova Tutor v9.0 - Grade Curriculum Map

Which topics belong to each grade (1-5), which lower-grade topics a grade
reviews, and the fixed topic -> prerequisite table used for remediation.

The remediation table is grade independent: struggling with fractions sends
every learner back to multiplication and division.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class GradeCurriculum:
    """Topics taught in one grade plus the lower-grade topics it reviews."""
    grade: int
    topics: frozenset
    prerequisites: frozenset = field(default_factory=frozenset)


# ─── Grade Map ───────────────────────────────────────────────────────────────

_G1 = (
    "addition", "subtraction", "patterns", "shapes_2d",
    "measurement", "time", "money", "word_problem",
)

_G2 = _G1 + ("multiplication", "graphs")

_G3 = (
    "addition", "subtraction", "multiplication", "division",
    "fractions", "fraction_addition",
    "geometry", "area", "perimeter",
    "measurement", "time", "money", "word_problem", "graphs", "patterns",
)

_G4 = (
    "multiplication", "division",
    "fractions", "fraction_addition", "fraction_subtraction",
    "fraction_multiplication", "equivalent_fractions",
    "decimals", "decimal_addition", "decimal_subtraction",
    "geometry", "area", "perimeter", "angles", "shapes_2d", "shapes_3d",
    "measurement", "length", "weight", "volume",
    "statistics", "graphs", "word_problem", "patterns",
)

_G5 = (
    "multiplication", "division",
    "fractions", "fraction_addition", "fraction_subtraction",
    "fraction_multiplication", "fraction_division",
    "mixed_numbers", "equivalent_fractions",
    "decimals", "decimal_addition", "decimal_subtraction",
    "decimal_multiplication", "decimal_division",
    "geometry", "area", "perimeter", "angles", "shapes_2d", "shapes_3d",
    "measurement", "length", "weight", "volume", "time", "money",
    "statistics", "data", "graphs", "probability",
    "word_problem", "patterns",
)

GRADE_CURRICULUM: dict[int, GradeCurriculum] = {
    1: GradeCurriculum(1, frozenset(_G1)),
    2: GradeCurriculum(
        2, frozenset(_G2),
        frozenset({"addition", "subtraction", "patterns", "shapes_2d"}),
    ),
    3: GradeCurriculum(
        3, frozenset(_G3),
        frozenset({"addition", "subtraction", "multiplication", "shapes_2d", "measurement"}),
    ),
    4: GradeCurriculum(
        4, frozenset(_G4),
        frozenset({"addition", "subtraction", "multiplication", "division",
                   "fractions", "geometry"}),
    ),
    5: GradeCurriculum(
        5, frozenset(_G5),
        frozenset({"addition", "subtraction", "multiplication", "division",
                   "fractions", "decimals", "geometry", "measurement"}),
    ),
}


# ─── Remediation Table ───────────────────────────────────────────────────────
# Order matters: the first entry is the topic suggested first.

REMEDIATION_TOPICS: dict[str, tuple[str, ...]] = {
    "fractions": ("multiplication", "division"),
    "fraction_addition": ("addition", "fractions"),
    "fraction_subtraction": ("subtraction", "fractions"),
    "fraction_multiplication": ("multiplication", "fractions"),
    "fraction_division": ("division", "fractions"),

    "decimals": ("fractions",),
    "decimal_addition": ("addition", "decimals"),
    "decimal_subtraction": ("subtraction", "decimals"),
    "decimal_multiplication": ("multiplication", "decimals"),
    "decimal_division": ("division", "decimals"),

    "division": ("multiplication", "subtraction"),
    "multiplication": ("addition",),

    "area": ("multiplication", "shapes_2d"),
    "perimeter": ("addition", "shapes_2d"),
    "angles": ("shapes_2d",),

    "statistics": ("addition", "division"),
    "data": ("graphs", "statistics"),
}


# ─── Display Names ───────────────────────────────────────────────────────────

TOPIC_NAMES: dict[str, dict[str, str]] = {
    "division": {"en": "Division", "es": "División"},
    "multiplication": {"en": "Multiplication", "es": "Multiplicación"},
    "addition": {"en": "Addition", "es": "Suma"},
    "subtraction": {"en": "Subtraction", "es": "Resta"},
    "geometry": {"en": "Geometry", "es": "Geometría"},
    "area": {"en": "Area", "es": "Área"},
    "perimeter": {"en": "Perimeter", "es": "Perímetro"},
    "fractions": {"en": "Fractions", "es": "Fracciones"},
    "fraction_addition": {"en": "Fraction Addition", "es": "Suma de Fracciones"},
    "fraction_subtraction": {"en": "Fraction Subtraction", "es": "Resta de Fracciones"},
    "decimals": {"en": "Decimals", "es": "Decimales"},
    "decimal_addition": {"en": "Decimal Addition", "es": "Suma de Decimales"},
    "decimal_subtraction": {"en": "Decimal Subtraction", "es": "Resta de Decimales"},
    "word_problem": {"en": "Word Problem", "es": "Problema Escrito"},
    "shapes_2d": {"en": "2D Shapes", "es": "Figuras 2D"},
    "angles": {"en": "Angles", "es": "Ángulos"},
    "graphs": {"en": "Graphs", "es": "Gráficas"},
    "statistics": {"en": "Statistics", "es": "Estadística"},
}


# ─── Lookups ─────────────────────────────────────────────────────────────────

def get_grade(grade: int) -> Optional[GradeCurriculum]:
    return GRADE_CURRICULUM.get(grade)


def is_topic_in_grade(topic: str, grade: int) -> bool:
    """True when the topic is in the grade's own topic set.

    Reviewed prerequisites do not count: grades 4 and 5 review addition
    but "7 + 7" is refused there unless remediation is active.
    """
    curriculum = GRADE_CURRICULUM.get(grade)
    return curriculum is not None and topic in curriculum.topics


def get_available_topics(grade: int, include_lower: bool = False) -> list[str]:
    """Topics for a grade, optionally with every lower grade's topics.

    The widened list is what a remediation session may revisit.
    """
    if grade not in GRADE_CURRICULUM:
        return []
    if not include_lower:
        return sorted(GRADE_CURRICULUM[grade].topics)

    topics: set[str] = set()
    for g in range(1, grade + 1):
        topics |= GRADE_CURRICULUM[g].topics
    return sorted(topics)


def get_remediation_topics(topic: str) -> list[str]:
    return list(REMEDIATION_TOPICS.get(topic, ()))


def topic_name(topic: str, language: str = "en") -> str:
    """Learner-facing name of a topic tag. Unknown tags are shown as-is."""
    names = TOPIC_NAMES.get(topic)
    if not names:
        return topic
    return names.get(language, names["en"])
