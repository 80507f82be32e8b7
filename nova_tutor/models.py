"""
Nova Tutor v9.0 - ORM Models
Usage ledgers (quota + trial counters) and finished session reports.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import String, Integer, Float, Boolean, Date, DateTime, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column

from nova_tutor.database import Base


# ─── Helpers ─────────────────────────────────────────────────────────────────

def _uuid() -> str:
    return str(uuid.uuid4())

def _now() -> datetime:
    return datetime.now(timezone.utc)


# ─── Usage Ledger ────────────────────────────────────────────────────────────

class UsageLedgerRecord(Base):
    __tablename__ = "usage_ledgers"

    learner_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    daily_narration_count: Mapped[int] = mapped_column(Integer, default=0)
    daily_narration_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    lifetime_question_count: Mapped[int] = mapped_column(Integer, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_now, onupdate=_now)


# ─── Session Reports ─────────────────────────────────────────────────────────

class SessionReportRecord(Base):
    __tablename__ = "session_reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    learner_id: Mapped[str] = mapped_column(String(64), index=True)
    learner_name: Mapped[str] = mapped_column(String(100), default="")
    grade: Mapped[int] = mapped_column(Integer)
    language: Mapped[str] = mapped_column(String(5), default="en")
    session_date: Mapped[datetime] = mapped_column(DateTime, default=_now)
    topics_practiced: Mapped[list] = mapped_column(JSON, default=list)
    questions_attempted: Mapped[int] = mapped_column(Integer, default=0)
    questions_correct: Mapped[int] = mapped_column(Integer, default=0)
    accuracy: Mapped[float] = mapped_column(Float, default=0.0)
    minutes_spent: Mapped[int] = mapped_column(Integer, default=0)
    struggling_topics: Mapped[list] = mapped_column(JSON, default=list)
    remediation_suggested: Mapped[bool] = mapped_column(Boolean, default=False)
    remediation_topics: Mapped[list] = mapped_column(JSON, default=list)
    badges: Mapped[list] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)

    __table_args__ = (
        Index("ix_session_reports_learner_date", "learner_id", "session_date"),
    )
