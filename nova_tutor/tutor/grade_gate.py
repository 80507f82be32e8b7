"""
Nova Tutor v9.0 - Grade-Appropriateness Gate

Keeps topics above the learner's grade out of the tutoring flow.
Remediation mode opens every topic, since remediation deliberately
revisits lower-grade material.
"""

from nova_tutor.content.curriculum import is_topic_in_grade, topic_name
from nova_tutor.content.messages import msg
from nova_tutor.tutor.problem_classifier import GENERAL


def is_allowed(topic: str, grade: int, remediation_mode_active: bool = False) -> bool:
    if remediation_mode_active:
        return True
    if topic == GENERAL:
        return True
    return is_topic_in_grade(topic, grade)


def refusal_message(topic: str, language: str = "en") -> str:
    return msg("higher_grade_topic", language, topic=topic_name(topic, language))
