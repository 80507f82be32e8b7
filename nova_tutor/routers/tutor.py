"""
Nova Tutor v9.0 - Tutor Session Router
Thin HTTP shell around TutorEngine. One engine per session, kept in a
process-local registry. Speech and drawing happen on the client: responses
carry the text to narrate (with the voice the quota allows) and the board
directives to draw.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from openai import AsyncOpenAI
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session as DBSession

from nova_tutor.config import OPENAI_API_KEY, SESSION_IDLE_SECONDS, ConfigError, TutorConfig
from nova_tutor.database import SessionLocal, get_db
from nova_tutor.tutor.board import RecordingBoard, directive_to_dict
from nova_tutor.tutor.engine import TrialLimitReached, TutorEngine, TutorTurn
from nova_tutor.tutor.extraction import KeywordExtractor, OpenAIExtractor, Personalization
from nova_tutor.tutor.memory import SqlLedgerStore, SqlReportSink, get_last_struggling_topic
from nova_tutor.tutor.reporting import format_progress_report
from nova_tutor.voice.narration import ClientNarrator, NarrationService, speakable_text

logger = logging.getLogger("nova.router")
router = APIRouter(prefix="/api/tutor", tags=["tutor"])

_openai_client: Optional[AsyncOpenAI] = None


def get_openai_client() -> AsyncOpenAI:
    global _openai_client
    if _openai_client is None:
        _openai_client = AsyncOpenAI(api_key=OPENAI_API_KEY)
    return _openai_client


def make_extractor():
    if OPENAI_API_KEY:
        return OpenAIExtractor(get_openai_client())
    logger.info("OPENAI_API_KEY not set, word problems use the keyword extractor")
    return KeywordExtractor()


# ─── Session Registry ────────────────────────────────────────────────────────

@dataclass
class TutorSession:
    engine: TutorEngine
    board: RecordingBoard
    narration: NarrationService
    last_seen: float = field(default_factory=time.monotonic)


_sessions: dict[str, TutorSession] = {}


def get_session(session_id: str) -> TutorSession:
    session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(404, "Session not found")
    session.last_seen = time.monotonic()
    return session


def evict_idle_sessions(max_idle: float = SESSION_IDLE_SECONDS) -> list[str]:
    """Close sessions nobody has touched for max_idle seconds. Their reports are still filed."""
    cutoff = time.monotonic() - max_idle
    stale = [sid for sid, s in _sessions.items() if s.last_seen < cutoff]
    for sid in stale:
        session = _sessions.pop(sid)
        session.engine.end_session()
        logger.info(f"Session {sid} closed after {max_idle:.0f}s idle")
    return stale


# ─── Request/Response Models ─────────────────────────────────────────────────

class SessionStartRequest(BaseModel):
    learner_id: str = "default"
    learner_name: str = ""
    language: str = "en"
    grade: int = 3
    curriculum: str = "colombia"
    plan: str = "standard"
    interests: list[str] = Field(default_factory=list)
    favorite_animals: list[str] = Field(default_factory=list)

class SessionStartResponse(BaseModel):
    session_id: str
    greeting: str
    state: str

class InputRequest(BaseModel):
    text: str
    new_problem: bool = False

class Narration(BaseModel):
    voice: str            # "premium" | "basic"
    text: str

class TurnResponse(BaseModel):
    messages: list[str]
    narration: list[Narration]
    board: list[dict]
    notices: list[str]
    state: str
    problem_type: Optional[str] = None
    step_id: Optional[int] = None
    step_kind: Optional[str] = None
    awaiting_input: bool = False
    verdict: Optional[str] = None

class ReportResponse(BaseModel):
    learner_name: str
    grade: int
    topics_practiced: list[str]
    questions_attempted: int
    questions_correct: int
    accuracy_percent: int
    minutes_spent: int
    struggling_topics: list[str]
    remediation_topics: list[str]
    badges: list[str]
    report_text: str


def _drain(session: TutorSession, turn: Optional[TutorTurn] = None) -> TurnResponse:
    """Everything produced since the last call: turn output plus timer output."""
    engine = session.engine
    narration = [Narration(voice=v, text=speakable_text(t, engine.language))
                 for v, t in session.narration.log]
    session.narration.log.clear()
    notices, engine.notices = engine.notices, []

    step = engine.current_step
    return TurnResponse(
        messages=engine.drain_outbox(),
        narration=narration,
        board=[directive_to_dict(d) for d in session.board.drain()],
        notices=notices,
        state=engine.state.value,
        problem_type=(turn.problem_type if turn else None)
                     or (engine.problem.type if engine.problem else None),
        step_id=step.id if step else None,
        step_kind=step.kind.value if step else None,
        awaiting_input=engine.awaiting_input,
        verdict=turn.verdict.outcome if turn and turn.verdict else None,
    )


# ─── Endpoints ───────────────────────────────────────────────────────────────

@router.post("/sessions", response_model=SessionStartResponse)
async def start_session(req: SessionStartRequest, db: DBSession = Depends(get_db)):
    evict_idle_sessions()
    try:
        config = TutorConfig(req.language, req.grade, req.curriculum, req.plan)
    except ConfigError as e:
        raise HTTPException(422, str(e))

    ledgers = SqlLedgerStore(SessionLocal)
    board = RecordingBoard()
    engine = TutorEngine(
        config,
        learner_id=req.learner_id,
        learner_name=req.learner_name,
        board=board,
        extractor=make_extractor(),
        report_sink=SqlReportSink(SessionLocal, req.learner_id),
        ledger_store=ledgers,
        personalization=Personalization(req.interests, req.favorite_animals),
    )
    narration = NarrationService(
        engine.governor, config.plan,
        premium=ClientNarrator("premium"), basic=ClientNarrator("basic"),
        language=config.language,
    )
    engine.narration = narration

    session_id = str(uuid.uuid4())
    _sessions[session_id] = TutorSession(engine, board, narration)

    greeting = engine.greeting(get_last_struggling_topic(db, req.learner_id))
    # Returned here, so it is not repeated by the first drain
    engine.drain_outbox()
    logger.info(f"Session {session_id} started: grade {config.grade}, {config.language}, {config.plan}")
    return SessionStartResponse(session_id=session_id, greeting=greeting, state=engine.state.value)


@router.post("/sessions/{session_id}/input", response_model=TurnResponse)
async def send_input(session_id: str, req: InputRequest):
    session = get_session(session_id)
    try:
        turn = session.engine.handle_input(req.text, new_problem=req.new_problem)
    except TrialLimitReached as e:
        raise HTTPException(402, e.message)
    # Let the narration tasks queued by this turn run before draining
    await asyncio.sleep(0)
    return _drain(session, turn)


@router.post("/sessions/{session_id}/next", response_model=TurnResponse)
async def next_step(session_id: str):
    session = get_session(session_id)
    turn = session.engine.advance()
    await asyncio.sleep(0)
    return _drain(session, turn)


@router.get("/sessions/{session_id}/events", response_model=TurnResponse)
async def poll_events(session_id: str):
    return _drain(get_session(session_id))


@router.post("/sessions/{session_id}/end", response_model=ReportResponse)
async def end_session(session_id: str):
    session = _sessions.pop(session_id, None)
    if session is None:
        raise HTTPException(404, "Session not found")

    report = session.engine.end_session()
    logger.info(f"Session {session_id} closed")
    return ReportResponse(
        learner_name=report.learner_name,
        grade=report.grade,
        topics_practiced=report.topics_practiced,
        questions_attempted=report.questions_attempted,
        questions_correct=report.questions_correct,
        accuracy_percent=report.accuracy_percent,
        minutes_spent=report.minutes_spent,
        struggling_topics=report.struggling_topics,
        remediation_topics=report.remediation_topics,
        badges=report.badges,
        report_text=format_progress_report(report, report.language),
    )
