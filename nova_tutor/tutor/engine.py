"""
Nova Tutor v9.0 - Tutoring State Machine
THE BRAIN. Python decides what happens; the board, the voices and the
extraction model are collaborators behind ports.

Per problem:
    IDLE → ANALYZING (classify + grade gate) → ACTIVE → COMPLETE | ABANDONED
Inside ACTIVE, question steps wait for input (AWAITING_INPUT), each answer
is evaluated, and the tutor either advances or gives a hint and waits again.

Every problem gets a new generation number. Anything that finishes later
(word-problem extraction, dwell timer, remediation message) checks its
generation first and is dropped if the learner has moved on.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Callable, Optional

from nova_tutor.config import DWELL_SECONDS, REMEDIATION_DELAY_SECONDS, TutorConfig
from nova_tutor.content.curriculum import topic_name
from nova_tutor.content.messages import OPERATION_WORDS, msg
from nova_tutor.tutor import grade_gate
from nova_tutor.tutor.answer_evaluator import CORRECT, INCORRECT, Verdict, evaluate
from nova_tutor.tutor.board import Board, RecordingBoard
from nova_tutor.tutor.extraction import (
    ExtractionResult, KeywordExtractor, Personalization, SemanticExtractor,
)
from nova_tutor.tutor.problem_classifier import GENERAL, WORD_PROBLEM, classify, extract_numbers
from nova_tutor.tutor.progress import ProgressTracker, SessionReport
from nova_tutor.tutor.remediation import RemediationPolicy, slow_down_message, suggestion_message
from nova_tutor.tutor.reporting import LoggingReportSink, ReportSink
from nova_tutor.tutor.scheduler import AsyncioScheduler, Scheduler
from nova_tutor.tutor.solver import (
    generate, solve_word_problem, structural_layout, word_problem_board,
)
from nova_tutor.tutor.steps import Step, StepKind, StepSequence, hint_for_attempt
from nova_tutor.tutor.usage_governor import InMemoryLedgerStore, LedgerStore, UsageGovernor

logger = logging.getLogger("nova.engine")

GREETING_WORDS = {"hola", "hi", "hello", "hey", "buenas"}


class ProblemState(str, Enum):
    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    ACTIVE = "ACTIVE"
    COMPLETE = "COMPLETE"
    ABANDONED = "ABANDONED"


class TrialLimitReached(Exception):
    """Free trial used up. Carries the paywall message for the learner."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass
class Problem:
    type: str
    operand_a: int
    operand_b: int
    grade: int
    language: str
    text: str = ""
    numbers: list = field(default_factory=list)
    generation: int = 0
    # Operation actually practiced; differs from type for word problems
    operation: str = ""

    def __post_init__(self):
        if not self.operation:
            self.operation = self.type


@dataclass
class AttemptState:
    incorrect_attempts: int = 0

    def reset(self):
        self.incorrect_attempts = 0


@dataclass
class TutorTurn:
    """What one call into the engine produced."""
    messages: list = field(default_factory=list)
    state: ProblemState = ProblemState.IDLE
    step: Optional[Step] = None
    verdict: Optional[Verdict] = None
    problem_type: Optional[str] = None


class TutorEngine:
    def __init__(
        self,
        config: TutorConfig,
        *,
        learner_id: str = "default",
        learner_name: str = "",
        board: Optional[Board] = None,
        narration=None,                          # NarrationService
        extractor: Optional[SemanticExtractor] = None,
        report_sink: Optional[ReportSink] = None,
        ledger_store: Optional[LedgerStore] = None,
        scheduler: Optional[Scheduler] = None,
        remediation: Optional[RemediationPolicy] = None,
        personalization: Optional[Personalization] = None,
        dwell_seconds: float = DWELL_SECONDS,
        remediation_delay: float = REMEDIATION_DELAY_SECONDS,
        today: Callable[[], date] = date.today,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.language = config.language
        self.learner_id = learner_id
        self.learner_name = learner_name
        self.board = board if board is not None else RecordingBoard()
        self.narration = narration
        self.extractor = extractor or KeywordExtractor()
        self.report_sink = report_sink or LoggingReportSink()
        self.scheduler = scheduler or AsyncioScheduler()
        self.remediation = remediation or RemediationPolicy()
        self.personalization = personalization
        self.dwell_seconds = dwell_seconds
        self.remediation_delay = remediation_delay
        self.clock = clock

        self.governor = UsageGovernor(
            ledger_store or InMemoryLedgerStore(), learner_id, self.language, today=today,
        )
        self.progress = ProgressTracker(learner_name, config.grade, self.language, clock)

        self.state = ProblemState.IDLE
        self.problem: Optional[Problem] = None
        self.sequence: Optional[StepSequence] = None
        self.attempts = AttemptState()
        self.generation = 0

        self.outbox: list[str] = []       # everything said, until drained
        self.notices: list[str] = []      # one-off notices (quota depleted)
        self._turn: Optional[TutorTurn] = None
        self._dwell = None

    # ─── Public API ──────────────────────────────────────────────────────────

    def greeting(self, struggling_topic: Optional[str] = None) -> str:
        """Opening line, pitched to the learner's grade band."""
        name = (self.learner_name.split(" ")[0] if self.learner_name
                else msg("default_name", self.language))
        grade = self.config.grade
        if grade <= 2:
            text = msg("greeting_playful", self.language, name=name)
        elif grade <= 4:
            text = msg("greeting_champion", self.language, name=name)
        else:
            text = msg("greeting_partner", self.language, name=name)
        if struggling_topic:
            text += msg("greeting_comeback", self.language,
                        topic=topic_name(struggling_topic, self.language))
        self._say(text)
        return text

    def handle_input(self, text: str, new_problem: bool = False) -> TutorTurn:
        """Process one learner utterance.

        Raises TrialLimitReached when a free plan has no interactions left.
        new_problem=True starts a problem even while a question is pending.
        """
        self._turn = TutorTurn()
        try:
            gate = self.governor.gate_interaction(self.config.plan)
            if not gate.allowed:
                self._say(gate.message)
                raise TrialLimitReached(gate.message)

            if not new_problem and self.awaiting_input:
                self._answer(text)
            else:
                self._start_problem(text)
            return self._finish_turn()
        finally:
            self._turn = None

    def advance(self) -> TutorTurn:
        """Manual "next". Cancels any pending dwell auto-advance."""
        self._turn = TutorTurn()
        try:
            self._cancel_dwell()
            if self.state == ProblemState.ACTIVE and self.sequence is not None:
                self._step_forward()
            return self._finish_turn()
        finally:
            self._turn = None

    def end_session(self) -> SessionReport:
        """Finalize progress and hand the report to the sink (fire-and-forget)."""
        self._cancel_dwell()
        if self.state == ProblemState.ACTIVE:
            self._abandon()

        report = self.progress.finalize(self.remediation.suggested_topics)
        logger.info(
            f"Session ended: {report.questions_correct}/{report.questions_attempted} correct, "
            f"{report.minutes_spent} min, badges={report.badges}"
        )
        self.scheduler.spawn(self._submit_report(report))
        self.progress = ProgressTracker(self.learner_name, self.config.grade, self.language, self.clock)
        return report

    def drain_outbox(self) -> list[str]:
        out, self.outbox = self.outbox, []
        return out

    @property
    def current_step(self) -> Optional[Step]:
        return self.sequence.current if self.sequence is not None else None

    @property
    def awaiting_input(self) -> bool:
        step = self.current_step
        return self.state == ProblemState.ACTIVE and step is not None and step.awaits_input

    @property
    def remediation_active(self) -> bool:
        return self.remediation.active

    # ─── New Problems ────────────────────────────────────────────────────────

    def _start_problem(self, text: str) -> None:
        """Classify the input and, when it is a usable problem, replace the current one.

        Anything that does not build a new Problem (chatter, a refused topic,
        missing numbers) only gets a reply. An ACTIVE problem keeps running.
        """
        grade = self.config.grade
        problem_type = classify(text, grade, self.language)
        self._turn.problem_type = problem_type
        logger.info(f"[gen {self.generation}] '{text[:60]}' → {problem_type}")

        if not grade_gate.is_allowed(problem_type, grade, self.remediation.active):
            logger.info(f"Grade gate refused {problem_type} for grade {grade}")
            self._reply_only(grade_gate.refusal_message(problem_type, self.language))
            return

        if problem_type == GENERAL:
            words = set(text.lower().replace("!", " ").replace(",", " ").split())
            if words & GREETING_WORDS:
                self.greeting()
                self._reply_only()
            else:
                self._reply_only(msg("open_prompt", self.language))
            return

        numbers = extract_numbers(text)
        if len(numbers) < 2:
            self._reply_only(msg("need_numbers", self.language, topic=topic_name(problem_type, self.language)))
            return

        self._cancel_dwell()
        if self.state == ProblemState.ACTIVE:
            self._abandon()
        self.generation += 1
        self.state = ProblemState.ANALYZING
        logger.info(f"[gen {self.generation}] new {problem_type} problem")

        a, b = numbers[0], numbers[1]
        self.problem = Problem(
            type=problem_type, operand_a=a, operand_b=b, grade=grade,
            language=self.language, text=text, numbers=numbers,
            generation=self.generation,
        )
        self.attempts.reset()
        self.progress.record_topic(problem_type)

        for directive in structural_layout(problem_type, a, b, grade, self.config.style, text):
            self.board.apply(directive)

        self.sequence = generate(problem_type, a, b, grade, self.config.style)
        self.state = ProblemState.ACTIVE

        if problem_type == WORD_PROBLEM:
            self.scheduler.spawn(self._extract(text, self.generation))

        first = self.sequence.current
        intro = msg("problem_intro", self.language, reading=self._reading(self.problem))
        self._say(f"{intro} {first.say(self.language)}" if first else intro)
        self._present_current(announce=False)

    def _reply_only(self, text: Optional[str] = None) -> None:
        """Answer without starting a problem. A finished problem is cleared."""
        if text:
            self._say(text)
        if self.state != ProblemState.ACTIVE:
            self._go_idle()

    def _reading(self, problem: Problem) -> str:
        """How the problem is read back ("7 plus 7")."""
        if problem.type == WORD_PROBLEM:
            return "Un problema de análisis" if self.language == "es" else "An analysis problem"
        words = OPERATION_WORDS.get(problem.type)
        if words:
            return f"{problem.operand_a} {words.get(self.language, words['en'])} {problem.operand_b}"
        return problem.text

    # ─── Answers ─────────────────────────────────────────────────────────────

    def _answer(self, text: str) -> None:
        step = self.current_step
        verdict = evaluate(text, step, self.problem, self.language)
        self._turn.verdict = verdict

        if verdict.outcome == CORRECT:
            self.attempts.reset()
            self.progress.record_outcome(True)
            self.remediation.on_correct()
            self._say(msg("correct", self.language))
            logger.info(f"[gen {self.generation}] step {step.id} correct ({verdict.value})")
            self._step_forward()
            return

        if verdict.outcome == INCORRECT:
            self.attempts.incorrect_attempts += 1
            attempt = self.attempts.incorrect_attempts
            self.progress.record_outcome(False)

            hint = (verdict.diagnosis
                    or hint_for_attempt(step, attempt, self.language)
                    or msg("try_again", self.language))
            if verdict.value is not None:
                self._say(msg("not_value", self.language, value=verdict.value, hint=hint))
            else:
                self._say(hint)
            logger.info(f"[gen {self.generation}] step {step.id} incorrect #{attempt} ({verdict.value})")
            self._check_remediation(step, attempt)
            return

        # NO_ANSWER: nothing counted, the question stays open
        logger.debug(f"[gen {self.generation}] no answer in '{text[:40]}'")

    def _check_remediation(self, step: Step, attempt: int) -> None:
        topic = self.problem.operation
        topics = self.remediation.check_and_suggest(
            topic, self.config.grade, attempt, step_key=(self.generation, step.id),
        )
        if topics:
            self.progress.mark_struggling(topic)
            text = suggestion_message(topics, self.language)
        elif self.remediation.slow_down:
            text = slow_down_message(self.language)
        else:
            return

        generation = self.generation

        def deliver():
            if generation != self.generation:
                logger.info(f"Dropping remediation message for stale generation {generation}")
                return
            self._say(text)

        self.scheduler.call_later(self.remediation_delay, deliver)

    # ─── Step Progression ────────────────────────────────────────────────────

    def _step_forward(self) -> None:
        self.sequence.advance()
        if self.sequence.is_complete:
            self._complete()
            return
        self._present_current()

    def _present_current(self, announce: bool = True) -> None:
        """Say the current step, draw its directive, schedule the dwell."""
        step = self.sequence.current
        if step is None:
            return
        if announce:
            self._say(step.say(self.language))
        if step.board_directive is not None:
            self.board.apply(step.board_directive)

        if step.kind != StepKind.QUESTION:
            if self.sequence.is_last:
                if not self.sequence.provisional:
                    self._complete()
            else:
                self._schedule_dwell()

    def _complete(self) -> None:
        self.state = ProblemState.COMPLETE
        logger.info(f"[gen {self.generation}] problem complete")

    def _abandon(self) -> None:
        logger.info(f"[gen {self.generation}] problem abandoned at step {self.sequence.cursor if self.sequence else '-'}")
        self.state = ProblemState.ABANDONED

    def _go_idle(self) -> None:
        self.state = ProblemState.IDLE
        self.problem = None
        self.sequence = None

    # ─── Dwell Auto-Advance ──────────────────────────────────────────────────

    def _schedule_dwell(self) -> None:
        self._cancel_dwell()
        generation, cursor = self.generation, self.sequence.cursor

        def fire():
            if (generation != self.generation or self.sequence is None
                    or self.sequence.cursor != cursor or self.state != ProblemState.ACTIVE):
                logger.debug(f"Dwell for gen {generation} step {cursor} is stale")
                return
            self._dwell = None
            self._step_forward()

        self._dwell = self.scheduler.call_later(self.dwell_seconds, fire)

    def _cancel_dwell(self) -> None:
        if self._dwell is not None:
            self._dwell.cancel()
            self._dwell = None

    # ─── Word Problem Extraction ─────────────────────────────────────────────

    async def _extract(self, text: str, generation: int) -> None:
        result = await self.extractor.extract(text, self.language, self.personalization)
        self.apply_extraction(result, generation)

    def apply_extraction(self, result: Optional[ExtractionResult], generation: int) -> bool:
        """Swap the provisional steps for real ones. False if dropped."""
        if generation != self.generation:
            logger.info(f"Discarding extraction for generation {generation} (current {self.generation})")
            return False
        if result is None:
            logger.warning(f"[gen {generation}] extraction failed, keeping provisional steps")
            return False
        if self.state != ProblemState.ACTIVE or not (self.sequence and self.sequence.provisional):
            logger.info(f"[gen {generation}] extraction arrived after the problem moved on")
            return False

        if len(result.numbers) >= 2:
            self.problem.operand_a, self.problem.operand_b = result.numbers[0], result.numbers[1]
            self.problem.numbers = list(result.numbers)
        self.problem.operation = result.operation

        self._cancel_dwell()
        self.sequence = solve_word_problem(result)
        for directive in word_problem_board(result):
            self.board.apply(directive)

        if not result.metaphor:
            story = result.object or ("algo" if self.language == "es" else "something")
            self._say(msg("story_about", self.language, object=story))
        logger.info(f"[gen {generation}] word problem ready: {result.operation}, numbers={result.numbers}")
        self._present_current()
        return True

    # ─── Output ──────────────────────────────────────────────────────────────

    def _say(self, text: str) -> None:
        self.outbox.append(text)
        if self._turn is not None:
            self._turn.messages.append(text)
        if self.narration is not None:
            self.scheduler.spawn(self._narrate(text))

    async def _narrate(self, text: str) -> None:
        outcome = await self.narration.speak(text)
        if outcome.notice:
            self.notices.append(outcome.notice)

    async def _submit_report(self, report: SessionReport) -> None:
        ok = await self.report_sink.submit(report)
        if not ok:
            logger.error(f"Report for {report.learner_name or self.learner_id} was not delivered")

    def _finish_turn(self) -> TutorTurn:
        turn = self._turn
        turn.state = self.state
        turn.step = self.current_step
        if turn.problem_type is None and self.problem is not None:
            turn.problem_type = self.problem.type
        return turn
