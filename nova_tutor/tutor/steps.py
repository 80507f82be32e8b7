"""
Nova Tutor v9.0 - Socratic Steps

A problem is taught as an ordered list of immutable steps:
    explanation  : the tutor says something, no input expected
    question     : the tutor waits for an answer (number or keyword)
    action       : the tutor says something and updates the board

StepSequence holds the steps and a cursor that only moves forward.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from nova_tutor.tutor.board import BoardDirective


class StepKind(str, Enum):
    EXPLANATION = "explanation"
    QUESTION = "question"
    ACTION = "action"


@dataclass(frozen=True)
class Step:
    id: int
    kind: StepKind
    text: dict                                   # {"en": ..., "es": ...}
    expected_answer: Optional[int] = None
    expected_keywords: Optional[frozenset] = None
    failure_hints: dict = field(default_factory=dict)  # {"en": (...), "es": (...)}
    board_directive: Optional[BoardDirective] = None
    accepts_any_number: bool = False             # open-ended result questions

    def say(self, language: str = "en") -> str:
        return self.text.get(language) or self.text.get("en", "")

    @property
    def awaits_input(self) -> bool:
        return self.kind == StepKind.QUESTION


def hint_for_attempt(step: Step, attempt: int, language: str = "en") -> Optional[str]:
    """Hint for the Nth incorrect attempt (1-based).

    Once the ladder runs out the last hint repeats, and the last hint is
    allowed to give the answer away.
    """
    hints = step.failure_hints.get(language) or step.failure_hints.get("en") or ()
    if not hints or attempt < 1:
        return None
    return hints[min(attempt - 1, len(hints) - 1)]


# ─── Builders ────────────────────────────────────────────────────────────────

def explanation(step_id: int, en: str, es: str, board=None) -> Step:
    return Step(step_id, StepKind.EXPLANATION, {"en": en, "es": es}, board_directive=board)


def action(step_id: int, en: str, es: str, board=None) -> Step:
    return Step(step_id, StepKind.ACTION, {"en": en, "es": es}, board_directive=board)


def question(
    step_id: int,
    en: str,
    es: str,
    expected: Optional[int] = None,
    hints_en=(),
    hints_es=(),
    keywords=None,
    accepts_any_number: bool = False,
) -> Step:
    return Step(
        step_id,
        StepKind.QUESTION,
        {"en": en, "es": es},
        expected_answer=expected,
        expected_keywords=frozenset(k.lower() for k in keywords) if keywords else None,
        failure_hints={"en": tuple(hints_en), "es": tuple(hints_es)},
        accepts_any_number=accepts_any_number,
    )


# ─── Sequence ────────────────────────────────────────────────────────────────

class StepSequence:
    """Ordered steps plus a forward-only cursor."""

    def __init__(self, steps=None, provisional: bool = False):
        self.steps: list[Step] = list(steps or [])
        self.cursor: int = 0
        # Placeholder steps shown while a word problem is still being read
        self.provisional = provisional

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    @property
    def current(self) -> Optional[Step]:
        if 0 <= self.cursor < len(self.steps):
            return self.steps[self.cursor]
        return None

    @property
    def is_last(self) -> bool:
        return self.cursor == len(self.steps) - 1

    @property
    def is_complete(self) -> bool:
        return self.cursor >= len(self.steps)

    def advance(self) -> Optional[Step]:
        """Move one step forward. Returns the new current step, None when done."""
        if self.cursor < len(self.steps):
            self.cursor += 1
        return self.current

    def questions(self) -> list[Step]:
        return [s for s in self.steps if s.kind == StepKind.QUESTION]

    def __repr__(self):
        return f"StepSequence({len(self.steps)} steps, cursor={self.cursor})"
