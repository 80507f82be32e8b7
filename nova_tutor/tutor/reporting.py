"""
Nova Tutor v9.0 - Session Reports

Parent-facing progress report text, and the sink port finished reports
are handed to. Delivery (database, messaging) sits behind ReportSink.
"""

import logging
from typing import Protocol

from nova_tutor.content.curriculum import topic_name
from nova_tutor.tutor.progress import SessionReport

logger = logging.getLogger("nova.reporting")

_LABELS = {
    "en": {
        "title": "📊 *Progress Report - Nova Tutor*",
        "student": "👤 *Student:* {name} (Grade {grade})",
        "date": "📅 *Date:* {date}",
        "time": "⏱️ *Practice time:* {minutes} minutes",
        "topics": "📚 *Topics practiced:*",
        "performance": "📈 *Performance:*",
        "correct": "  ✅ Correct answers: {correct}/{attempted}",
        "accuracy": "  📊 Accuracy rate: {accuracy}%",
        "struggling": "⚠️ *Areas needing reinforcement:*",
        "recommendation": "💡 *Tutor recommendation:*",
        "review": "We suggest reviewing the following topics:",
        "achievements": "🏆 *Today's achievements:*",
        "footer": "✨ *Nova Schola - Personalized Education*",
        "date_format": "%m/%d/%Y",
    },
    "es": {
        "title": "📊 *Reporte de Progreso - Nova Tutor*",
        "student": "👤 *Estudiante:* {name} (Grado {grade})",
        "date": "📅 *Fecha:* {date}",
        "time": "⏱️ *Tiempo de práctica:* {minutes} minutos",
        "topics": "📚 *Temas practicados:*",
        "performance": "📈 *Rendimiento:*",
        "correct": "  ✅ Respuestas correctas: {correct}/{attempted}",
        "accuracy": "  📊 Tasa de precisión: {accuracy}%",
        "struggling": "⚠️ *Áreas que necesitan refuerzo:*",
        "recommendation": "💡 *Recomendación del tutor:*",
        "review": "Se sugiere repasar los siguientes temas:",
        "achievements": "🏆 *Logros de hoy:*",
        "footer": "✨ *Nova Schola - Educación Personalizada*",
        "date_format": "%d/%m/%Y",
    },
}


def format_progress_report(report: SessionReport, language: str = "en") -> str:
    """Multi-line report for parents (WhatsApp-style markup)."""
    t = _LABELS.get(language, _LABELS["en"])

    def bullets(topics, marker="•"):
        return [f"  {marker} {topic_name(x, language)}" for x in topics]

    lines = [
        t["title"],
        "",
        t["student"].format(name=report.learner_name, grade=report.grade),
        t["date"].format(date=report.session_date.strftime(t["date_format"])),
        t["time"].format(minutes=report.minutes_spent),
        "",
        t["topics"],
        *bullets(report.topics_practiced),
        "",
        t["performance"],
        t["correct"].format(correct=report.questions_correct, attempted=report.questions_attempted),
        t["accuracy"].format(accuracy=report.accuracy_percent),
    ]

    if report.struggling_topics:
        lines += ["", t["struggling"], *bullets(report.struggling_topics)]

    if report.remediation_suggested:
        lines += ["", t["recommendation"], t["review"], *bullets(report.remediation_topics)]

    badges = report.badge_texts(language)
    if badges:
        lines += ["", t["achievements"], *[f"  ⭐ {b}" for b in badges]]

    lines += ["", t["footer"]]
    return "\n".join(lines)


# ─── Sink Port ───────────────────────────────────────────────────────────────

class ReportSink(Protocol):
    async def submit(self, report: SessionReport) -> bool:
        """Deliver a finished report. Returns False on failure, never raises."""
        ...


class LoggingReportSink:
    """Writes the formatted report to the log. Default when nothing else is wired."""

    def __init__(self):
        self.submitted: list[SessionReport] = []

    async def submit(self, report: SessionReport) -> bool:
        self.submitted.append(report)
        logger.info(
            f"Session report for {report.learner_name or 'learner'}:\n"
            f"{format_progress_report(report, report.language)}"
        )
        return True
