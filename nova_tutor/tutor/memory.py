"""
Nova Tutor v9.0 - Memory (ledgers and reports in SQL)
SQL-backed implementations of the usage LedgerStore and the ReportSink,
plus the read used to greet a returning learner.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from nova_tutor.models import SessionReportRecord, UsageLedgerRecord
from nova_tutor.tutor.progress import SessionReport
from nova_tutor.tutor.usage_governor import UsageLedger

logger = logging.getLogger("nova.memory")


# ─── Usage Ledgers ───────────────────────────────────────────────────────────

class SqlLedgerStore:
    """LedgerStore over the usage_ledgers table. One row per learner."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get(self, learner_id: str) -> UsageLedger:
        db: DBSession = self.session_factory()
        try:
            row = db.get(UsageLedgerRecord, learner_id)
            if row is None:
                return UsageLedger()
            return UsageLedger(
                daily_narration_count=row.daily_narration_count,
                daily_narration_date=row.daily_narration_date,
                lifetime_question_count=row.lifetime_question_count,
            )
        finally:
            db.close()

    def set(self, learner_id: str, ledger: UsageLedger) -> None:
        db: DBSession = self.session_factory()
        try:
            row = db.get(UsageLedgerRecord, learner_id)
            if row is None:
                row = UsageLedgerRecord(learner_id=learner_id)
                db.add(row)
            row.daily_narration_count = ledger.daily_narration_count
            row.daily_narration_date = ledger.daily_narration_date
            row.lifetime_question_count = ledger.lifetime_question_count
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()


# ─── Session Reports ─────────────────────────────────────────────────────────

def save_report(db: DBSession, learner_id: str, report: SessionReport) -> SessionReportRecord:
    row = SessionReportRecord(
        learner_id=learner_id,
        learner_name=report.learner_name,
        grade=report.grade,
        language=report.language,
        session_date=report.session_date,
        topics_practiced=list(report.topics_practiced),
        questions_attempted=report.questions_attempted,
        questions_correct=report.questions_correct,
        accuracy=report.accuracy,
        minutes_spent=report.minutes_spent,
        struggling_topics=list(report.struggling_topics),
        remediation_suggested=report.remediation_suggested,
        remediation_topics=list(report.remediation_topics),
        badges=list(report.badges),
    )
    db.add(row)
    db.commit()
    return row


def get_last_struggling_topic(db: DBSession, learner_id: str) -> Optional[str]:
    """First struggling topic of the learner's most recent report, if any."""
    row = (
        db.query(SessionReportRecord)
        .filter(SessionReportRecord.learner_id == learner_id)
        .order_by(SessionReportRecord.session_date.desc())
        .first()
    )
    if row is None or not row.struggling_topics:
        return None
    return row.struggling_topics[0]


class SqlReportSink:
    """ReportSink that stores reports in session_reports.

    The write runs in a worker thread so the event loop is never blocked.
    """

    def __init__(self, session_factory, learner_id: str):
        self.session_factory = session_factory
        self.learner_id = learner_id

    def _write(self, report: SessionReport) -> None:
        db: DBSession = self.session_factory()
        try:
            save_report(db, self.learner_id, report)
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()

    async def submit(self, report: SessionReport) -> bool:
        try:
            await asyncio.to_thread(self._write, report)
        except SQLAlchemyError as e:
            logger.error(f"Failed to store report for {self.learner_id}: {e}")
            return False
        logger.info(f"Stored session report for {self.learner_id}")
        return True
