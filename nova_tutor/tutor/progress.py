"""
Nova Tutor v9.0 - Session Progress Tracker

Counts what happened in one tutoring session and turns it into a
SessionReport (accuracy, time spent, badges) when the session ends.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from nova_tutor.config import (
    BADGE_ACCURACY_PERCENT, BADGE_MINUTES_PRACTICED, BADGE_QUESTIONS_ATTEMPTED,
)

BADGE_TEXT = {
    "accuracy": {
        "en": "Excellent accuracy! (90%+)",
        "es": "¡Excelente precisión! (90%+)",
    },
    "dedication": {
        "en": "Great dedication! (20+ questions)",
        "es": "¡Gran dedicación! (20+ preguntas)",
    },
    "extended_practice": {
        "en": "Extended practice session! (30+ minutes)",
        "es": "¡Sesión de práctica extendida! (30+ minutos)",
    },
    "mastery": {
        "en": "Complete mastery of all topics!",
        "es": "¡Dominio completo de todos los temas!",
    },
}


@dataclass
class SessionStats:
    topics_practiced: set = field(default_factory=set)
    questions_attempted: int = 0
    questions_correct: int = 0
    struggling_topics: set = field(default_factory=set)
    started_at: datetime = field(default_factory=datetime.now)


@dataclass
class SessionReport:
    learner_name: str
    grade: int
    language: str
    session_date: datetime
    topics_practiced: list
    questions_attempted: int
    questions_correct: int
    accuracy: float                  # 0.0 - 1.0
    minutes_spent: int
    struggling_topics: list
    remediation_suggested: bool
    remediation_topics: list
    badges: list                     # badge keys, see BADGE_TEXT

    @property
    def questions_incorrect(self) -> int:
        return self.questions_attempted - self.questions_correct

    @property
    def accuracy_percent(self) -> int:
        return round(self.accuracy * 100)

    def badge_texts(self, language: Optional[str] = None) -> list[str]:
        lang = language or self.language
        return [BADGE_TEXT[b].get(lang, BADGE_TEXT[b]["en"]) for b in self.badges]


def compute_badges(accuracy: float, attempted: int, minutes: int, struggling) -> list[str]:
    badges = []
    if accuracy * 100 >= BADGE_ACCURACY_PERCENT:
        badges.append("accuracy")
    if attempted >= BADGE_QUESTIONS_ATTEMPTED:
        badges.append("dedication")
    if minutes >= BADGE_MINUTES_PRACTICED:
        badges.append("extended_practice")
    if not struggling:
        badges.append("mastery")
    return badges


class ProgressTracker:
    """Session statistics for one learner. Flushed by finalize()."""

    def __init__(
        self,
        learner_name: str = "",
        grade: int = 3,
        language: str = "en",
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.learner_name = learner_name
        self.grade = grade
        self.language = language
        self.clock = clock
        self.stats = SessionStats(started_at=clock())

    def record_outcome(self, correct: bool) -> None:
        self.stats.questions_attempted += 1
        if correct:
            self.stats.questions_correct += 1

    def record_topic(self, topic: str) -> None:
        self.stats.topics_practiced.add(topic)

    def mark_struggling(self, topic: str) -> None:
        self.stats.struggling_topics.add(topic)

    @property
    def minutes_spent(self) -> int:
        return round((self.clock() - self.stats.started_at).total_seconds() / 60)

    def finalize(self, remediation_topics=()) -> SessionReport:
        s = self.stats
        accuracy = s.questions_correct / s.questions_attempted if s.questions_attempted else 0.0
        minutes = self.minutes_spent
        return SessionReport(
            learner_name=self.learner_name,
            grade=self.grade,
            language=self.language,
            session_date=self.clock(),
            topics_practiced=sorted(s.topics_practiced),
            questions_attempted=s.questions_attempted,
            questions_correct=s.questions_correct,
            accuracy=accuracy,
            minutes_spent=minutes,
            struggling_topics=sorted(s.struggling_topics),
            remediation_suggested=bool(remediation_topics),
            remediation_topics=list(remediation_topics),
            badges=compute_badges(accuracy, s.questions_attempted, minutes, s.struggling_topics),
        )
