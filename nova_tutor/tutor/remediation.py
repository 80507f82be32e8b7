"""
Nova Tutor v9.0 - Remediation Policy

After repeated wrong answers on the same step, suggest lower-level topics
to review and switch the session into remediation mode (which opens the
grade gate). The suggestion fires at most once per step and never moves
the step cursor.
"""

import logging

from nova_tutor.config import (
    REMEDIATION_SLOW_DOWN_FALLBACK, REMEDIATION_THRESHOLD, STICKY_REMEDIATION,
)
from nova_tutor.content.curriculum import get_remediation_topics, topic_name
from nova_tutor.content.messages import msg

logger = logging.getLogger("nova.remediation")


def needs_remediation(incorrect_attempts: int, threshold: int = REMEDIATION_THRESHOLD) -> bool:
    return incorrect_attempts >= threshold


class RemediationPolicy:
    """Per-session remediation state.

    sticky=True keeps remediation mode on for the rest of the session once
    it is entered. sticky=False clears it on the next correct answer.
    """

    def __init__(
        self,
        threshold: int = REMEDIATION_THRESHOLD,
        sticky: bool = STICKY_REMEDIATION,
        slow_down_fallback: bool = REMEDIATION_SLOW_DOWN_FALLBACK,
    ):
        self.threshold = threshold
        self.sticky = sticky
        self.slow_down_fallback = slow_down_fallback
        self.active = False
        self.suggested_topics: list[str] = []
        self._fired: set = set()
        self.slow_down = False

    def check_and_suggest(
        self,
        topic: str,
        grade: int,
        incorrect_attempts: int,
        step_key=None,
    ) -> list[str]:
        """Prerequisite topics to review, or [] when nothing should fire.

        step_key identifies the step (e.g. (generation, step_id)); a step
        that already fired stays quiet for the rest of its attempts.
        When the topic has no prerequisites and slow_down_fallback is on,
        `slow_down` is set instead so the caller can ease the pace.
        """
        self.slow_down = False
        if not needs_remediation(incorrect_attempts, self.threshold):
            return []
        if step_key is not None and step_key in self._fired:
            return []

        topics = get_remediation_topics(topic)
        if not topics:
            logger.info(f"No prerequisites for '{topic}' (grade {grade})")
            if self.slow_down_fallback:
                self.slow_down = True
                self._mark(step_key)
            return []

        self._mark(step_key)
        self.active = True
        for t in topics:
            if t not in self.suggested_topics:
                self.suggested_topics.append(t)
        logger.info(f"Remediation for '{topic}' (grade {grade}): {topics}")
        return topics

    def _mark(self, step_key) -> None:
        if step_key is not None:
            self._fired.add(step_key)

    def on_correct(self) -> None:
        if not self.sticky and self.active:
            logger.info("Remediation mode cleared after a correct answer")
            self.active = False


def suggestion_message(topics: list[str], language: str = "en") -> str:
    names = ", ".join(topic_name(t, language) for t in topics)
    return msg("remediation_suggestion", language, topics=names)


def slow_down_message(language: str = "en") -> str:
    return msg("slow_down", language)
