"""
End-to-end tests for the tutoring state machine (engine.py).
Timers and background work run through the manual scheduler in conftest.
"""

import pytest

from nova_tutor.tutor.answer_evaluator import CORRECT, INCORRECT, NO_ANSWER
from nova_tutor.tutor.board import Clear, DrawStructuralLayout, HighlightRegion, WriteFinalAnswer
from nova_tutor.tutor.engine import ProblemState, TrialLimitReached
from nova_tutor.tutor.extraction import ExtractionResult
from nova_tutor.tutor.reporting import LoggingReportSink
from nova_tutor.tutor.steps import StepKind
from nova_tutor.voice.narration import MockNarrator, NarrationService

WORD_PROBLEM = "Maria had 12 apples and gave away 5, how many are left"


def start_at_question(engine, scheduler, text):
    """Start a problem and let the dwell timers run up to the first question."""
    engine.handle_input(text)
    while not engine.awaiting_input and scheduler.fire_next():
        pass
    assert engine.awaiting_input
    return engine.current_step


# ─── Problem Intake ──────────────────────────────────────────────────────────

class TestIntake:
    def test_new_problem(self, make_engine):
        engine = make_engine(grade=2)
        turn = engine.handle_input("7 + 7")
        assert turn.messages == ["Perfect. 7 plus 7. Let's start. Let's add 7 + 7."]
        assert turn.state == ProblemState.ACTIVE
        assert turn.problem_type == "addition"
        assert turn.step.id == 1
        assert engine.generation == 1
        assert engine.board.history == [
            Clear(), DrawStructuralLayout("number_bond", (None, 7, 7), "colombia"),
        ]

    def test_spanish_intro(self, make_engine):
        engine = make_engine(language="es")
        turn = engine.handle_input("20 - 8")
        assert turn.messages == ["Perfecto. 20 menos 8. Empecemos. Vamos a restar 20 - 8."]

    def test_grade_gate_refuses(self, make_engine):
        engine = make_engine(grade=1)
        turn = engine.handle_input("84 ÷ 4")
        assert turn.messages == [
            "Division is a topic for higher grades. Would you like to try something at your level?"
        ]
        assert turn.state == ProblemState.IDLE
        assert engine.sequence is None
        assert engine.board.history == []

    def test_needs_two_numbers(self, make_engine):
        turn = make_engine().handle_input("divide please")
        assert turn.messages == ["Got it, Division. What are the numbers?"]
        assert turn.state == ProblemState.IDLE

    def test_greeting_words(self, make_engine):
        turn = make_engine(grade=2, learner_name="Ana Gómez").handle_input("hello!")
        assert turn.messages[0].startswith("Hello my little genius Ana!")

    def test_open_prompt(self, make_engine):
        turn = make_engine().handle_input("what?")
        assert turn.messages[0].startswith("I'm right here with you!")

    def test_each_problem_gets_new_generation(self, make_engine):
        engine = make_engine()
        engine.handle_input("7 + 7")
        engine.handle_input("what?")
        assert engine.generation == 1
        engine.handle_input("6 x 7")
        assert engine.generation == 2

    @pytest.mark.parametrize("grade,text", [
        (3, "ok"), (3, "hello"), (3, "divide please"), (1, "84 ÷ 4"),
    ])
    def test_chatter_keeps_active_problem(self, make_engine, scheduler, grade, text):
        engine = make_engine(grade=grade)
        engine.handle_input("7 + 7")
        dwell = scheduler.pending[0]

        turn = engine.handle_input(text)
        assert turn.messages
        assert turn.state == ProblemState.ACTIVE
        assert engine.generation == 1
        assert engine.problem.type == "addition"
        assert not dwell.cancelled

    def test_chatter_after_completion_goes_idle(self, make_engine, scheduler):
        engine = make_engine()
        start_at_question(engine, scheduler, "7 + 7")
        engine.handle_input("14")
        assert engine.state == ProblemState.COMPLETE
        assert engine.handle_input("ok").state == ProblemState.IDLE
        assert engine.problem is None


# ─── Answers ─────────────────────────────────────────────────────────────────

class TestAnswers:
    def test_correct_answer_advances_to_closing(self, make_engine, scheduler):
        engine = make_engine(grade=2)
        start_at_question(engine, scheduler, "7 + 7")

        turn = engine.handle_input("14")
        assert turn.verdict.outcome == CORRECT
        assert turn.messages == ["Correct!", "Perfect! 7 + 7 = 14"]
        assert engine.sequence.cursor == 2
        assert engine.state == ProblemState.COMPLETE
        assert engine.progress.stats.questions_correct == 1
        assert engine.progress.stats.questions_attempted == 1
        assert engine.board.history[-1] == WriteFinalAnswer(14)

    def test_wrong_answer_gives_first_hint(self, make_engine, scheduler):
        engine = make_engine(grade=2)
        start_at_question(engine, scheduler, "7 + 7")

        turn = engine.handle_input("21")
        assert turn.verdict.outcome == INCORRECT
        assert turn.verdict.diagnosis is None
        assert turn.messages == ["It's not 21. Add the numbers: 7 + 7"]
        assert engine.sequence.cursor == 1
        assert engine.awaiting_input
        assert engine.attempts.incorrect_attempts == 1
        assert engine.progress.stats.questions_attempted == 1
        assert engine.progress.stats.questions_correct == 0

    def test_hint_ladder_then_correct_resets_attempts(self, make_engine, scheduler):
        engine = make_engine(grade=2)
        start_at_question(engine, scheduler, "7 + 7")
        engine.handle_input("21")
        turn = engine.handle_input("30")
        assert turn.messages == ["It's not 30. The answer is 14"]
        turn = engine.handle_input("31")
        assert turn.messages == ["It's not 31. The answer is 14"]
        engine.handle_input("14")
        assert engine.attempts.incorrect_attempts == 0

    def test_diagnosis_replaces_hint(self, make_engine, scheduler):
        engine = make_engine()
        start_at_question(engine, scheduler, "5 + 3")
        turn = engine.handle_input("15")
        assert turn.messages == ["It's not 15. You multiplied instead of adding. Look at the sign (+)."]

    def test_no_answer_is_not_counted(self, make_engine, scheduler):
        engine = make_engine()
        start_at_question(engine, scheduler, "7 + 7")
        turn = engine.handle_input("hmm")
        assert turn.verdict.outcome == NO_ANSWER
        assert turn.messages == []
        assert engine.awaiting_input
        assert engine.progress.stats.questions_attempted == 0

    def test_number_words(self, make_engine, scheduler):
        engine = make_engine(language="es")
        start_at_question(engine, scheduler, "7 + 7")
        assert engine.handle_input("catorce").verdict.outcome == CORRECT

    def test_new_problem_while_question_pending(self, make_engine, scheduler):
        engine = make_engine()
        start_at_question(engine, scheduler, "7 + 7")
        turn = engine.handle_input("9 + 3", new_problem=True)
        assert engine.generation == 2
        assert engine.problem.operand_a == 9
        assert turn.state == ProblemState.ACTIVE

    def test_generic_ladder(self, make_engine, scheduler):
        engine = make_engine()
        step = start_at_question(engine, scheduler, "3/4")
        assert step.id == 902
        assert engine.handle_input("fractions").verdict.outcome == CORRECT

        # 903 explanation, 904 action (highlight), then 905 question
        while not engine.awaiting_input and scheduler.fire_next():
            pass
        assert engine.current_step.id == 905
        assert HighlightRegion() in engine.board.history
        assert engine.handle_input("4").verdict.outcome == CORRECT


# ─── Dwell Auto-Advance ──────────────────────────────────────────────────────

class TestDwell:
    def test_explanations_auto_advance(self, make_engine, scheduler):
        engine = make_engine()
        engine.handle_input("7 + 7")
        assert len(scheduler.pending) == 1
        assert scheduler.pending[0].delay == engine.dwell_seconds
        scheduler.fire_next()
        assert engine.current_step.kind == StepKind.QUESTION
        assert engine.outbox[-1] == "What is 7 plus 7?"

    def test_manual_advance_cancels_dwell(self, make_engine, scheduler):
        engine = make_engine()
        engine.handle_input("7 + 7")
        turn = engine.advance()
        assert turn.messages == ["What is 7 plus 7?"]
        assert scheduler.pending == []
        assert engine.sequence.cursor == 1

    def test_no_dwell_on_questions(self, make_engine, scheduler):
        engine = make_engine()
        start_at_question(engine, scheduler, "7 + 7")
        assert scheduler.pending == []

    def test_stale_dwell_ignored(self, make_engine, scheduler):
        engine = make_engine()
        engine.handle_input("7 + 7")
        stale = scheduler.pending[0]
        engine.handle_input("6 x 7")
        # The first timer was cancelled; calling it anyway must not move the new problem
        stale.callback()
        assert engine.sequence.cursor == 0
        assert engine.problem.type == "multiplication"

    def test_advance_when_idle_is_harmless(self, make_engine):
        turn = make_engine().advance()
        assert turn.messages == []
        assert turn.state == ProblemState.IDLE


# ─── Remediation ─────────────────────────────────────────────────────────────

class TestRemediation:
    def test_suggestion_after_two_misses(self, make_engine, scheduler):
        engine = make_engine(grade=2)
        start_at_question(engine, scheduler, "6 x 7")
        engine.handle_input("10")
        assert scheduler.pending == []

        engine.handle_input("10")
        assert len(scheduler.pending) == 1
        assert scheduler.pending[0].delay == engine.remediation_delay
        scheduler.fire_next()

        assert engine.outbox[-1] == "I see you need practice. I suggest reviewing: Addition."
        assert engine.remediation_active
        assert engine.progress.stats.struggling_topics == {"multiplication"}
        # Suggestion never moves the cursor
        assert engine.sequence.cursor == 1

    def test_fires_once_per_step(self, make_engine, scheduler):
        engine = make_engine(grade=2)
        start_at_question(engine, scheduler, "6 x 7")
        for _ in range(5):
            engine.handle_input("10")
        assert len(scheduler.timers) == 2      # the dwell, then one remediation message

    def test_stale_suggestion_dropped(self, make_engine, scheduler):
        engine = make_engine(grade=2)
        start_at_question(engine, scheduler, "6 x 7")
        engine.handle_input("10")
        engine.handle_input("10")
        engine.handle_input("8 + 1", new_problem=True)
        scheduler.fire_next()
        assert not any("I suggest reviewing" in m for m in engine.outbox)

    def test_remediation_opens_grade_gate(self, make_engine, scheduler):
        engine = make_engine(grade=2)
        start_at_question(engine, scheduler, "6 x 7")
        engine.handle_input("10")
        engine.handle_input("10")
        turn = engine.handle_input("84 ÷ 4", new_problem=True)
        assert turn.problem_type == "division"
        assert turn.state == ProblemState.ACTIVE


# ─── Word Problems ───────────────────────────────────────────────────────────

class TestWordProblems:
    def test_provisional_then_extracted(self, make_engine, scheduler):
        engine = make_engine()
        turn = engine.handle_input(WORD_PROBLEM)
        assert turn.messages == ["Perfect. An analysis problem. Let's start. Analyzing the problem..."]
        assert engine.sequence.provisional

        scheduler.run_spawned()
        assert not engine.sequence.provisional
        assert engine.problem.operation == "subtraction"
        assert engine.outbox[-2:] == [
            "Ah! It's a story about something. Let's organize it on the board.",
            "The problem is about someone and things.",
        ]

        while not engine.awaiting_input and scheduler.fire_next():
            pass
        assert engine.current_step.id == 203

        turn = engine.handle_input("17")
        assert turn.messages == ["It's not 17. You added. In subtraction we must take away, not add."]
        turn = engine.handle_input("7")
        assert turn.state == ProblemState.COMPLETE

    def test_spanish_word_problem_intro(self, make_engine):
        turn = make_engine(language="es").handle_input(
            "María tenía 12 manzanas y regaló 5, cuántas le quedan"
        )
        assert turn.messages[0].startswith("Perfecto. Un problema de análisis. Empecemos.")

    def test_chatter_while_analyzing_keeps_problem(self, make_engine, scheduler):
        engine = make_engine()
        engine.handle_input(WORD_PROBLEM)
        generation = engine.generation

        turn = engine.handle_input("ok")
        assert turn.state == ProblemState.ACTIVE
        assert engine.generation == generation
        assert engine.sequence.provisional

        scheduler.run_spawned()
        assert not engine.sequence.provisional
        assert engine.problem.operation == "subtraction"

    def test_stale_extraction_discarded(self, make_engine, scheduler):
        engine = make_engine()
        engine.handle_input(WORD_PROBLEM)
        engine.handle_input("9 + 3")
        scheduler.run_spawned()

        assert engine.problem.type == "addition"
        assert [s.id for s in engine.sequence] == [1, 2, 3]
        assert not any("story about" in m for m in engine.outbox)

    def test_apply_extraction_checks_generation(self, make_engine):
        engine = make_engine()
        engine.handle_input(WORD_PROBLEM)
        result = ExtractionResult(numbers=[12, 5], operation="subtraction")
        assert engine.apply_extraction(result, engine.generation - 1) is False
        assert engine.apply_extraction(result, engine.generation) is True

    def test_failed_extraction_keeps_provisional_steps(self, make_engine):
        engine = make_engine()
        engine.handle_input(WORD_PROBLEM)
        assert engine.apply_extraction(None, engine.generation) is False
        assert engine.sequence.provisional
        assert engine.state == ProblemState.ACTIVE

    def test_metaphor_is_spoken(self, make_engine):
        engine = make_engine()
        engine.handle_input(WORD_PROBLEM)
        result = ExtractionResult(subject="Maria", object="apples", numbers=[12, 5],
                                  operation="subtraction", metaphor="Imagine 12 dragons eating apples!")
        engine.apply_extraction(result, engine.generation)
        assert engine.outbox[-1] == "Imagine 12 dragons eating apples!"
        assert DrawStructuralLayout("bar_model", (12, 5), label="apples") in engine.board.history


# ─── Usage Limits ────────────────────────────────────────────────────────────

class TestUsage:
    def test_trial_limit_is_a_hard_stop(self, make_engine):
        engine = make_engine(plan="free")
        for _ in range(5):
            engine.handle_input("hello")
        with pytest.raises(TrialLimitReached) as exc:
            engine.handle_input("7 + 7")
        assert exc.value.message.startswith("Wow, you are so curious!")
        assert engine.outbox[-1] == exc.value.message
        assert engine.problem is None

    def test_paid_plan_not_limited(self, make_engine):
        engine = make_engine(plan="standard")
        for _ in range(10):
            engine.handle_input("hello")
        assert engine.governor.ledger.lifetime_question_count == 10

    def test_narration_falls_back_when_quota_used(self, make_engine, scheduler):
        engine = make_engine(plan="standard")
        premium, basic = MockNarrator("premium"), MockNarrator("basic")
        engine.narration = NarrationService(engine.governor, "standard", premium, basic)
        engine.governor.narration_limits = {"standard": 1}

        engine.handle_input("7 + 7")
        engine.advance()
        scheduler.run_spawned()

        assert premium.spoken == [("Perfect. 7 plus 7. Let's start. Let's add 7 plus 7.", "en")]
        assert basic.spoken == [("What is 7 plus 7?", "en")]
        assert engine.notices == ["⚡ Voice energy depleted for today. Using basic voice."]


# ─── Session ─────────────────────────────────────────────────────────────────

class TestSession:
    def test_end_session_submits_report(self, make_engine, scheduler):
        sink = LoggingReportSink()
        engine = make_engine(grade=2, learner_name="Ana", report_sink=sink)
        start_at_question(engine, scheduler, "7 + 7")
        engine.handle_input("14")

        report = engine.end_session()
        assert report.questions_attempted == 1
        assert report.questions_correct == 1
        assert report.topics_practiced == ["addition"]
        assert report.badges == ["accuracy", "mastery"]

        scheduler.run_spawned()
        assert sink.submitted == [report]
        # Stats start over after the flush
        assert engine.progress.stats.questions_attempted == 0

    def test_end_session_abandons_active_problem(self, make_engine, scheduler):
        engine = make_engine()
        engine.handle_input("7 + 7")
        engine.end_session()
        assert engine.state == ProblemState.ABANDONED
        assert scheduler.pending == []

    def test_remediation_topics_in_report(self, make_engine, scheduler):
        engine = make_engine(grade=2)
        start_at_question(engine, scheduler, "6 x 7")
        engine.handle_input("10")
        engine.handle_input("10")
        report = engine.end_session()
        assert report.remediation_suggested
        assert report.remediation_topics == ["addition"]
        assert report.struggling_topics == ["multiplication"]


class TestGreeting:
    def test_grade_bands(self, make_engine):
        assert make_engine(grade=1).greeting().startswith("Hello my little genius Friend!")
        assert make_engine(grade=3, learner_name="Leo").greeting().startswith("Hello champion Leo!")
        assert make_engine(grade=5, learner_name="Leo").greeting() == \
            "Hi Leo! 👋 Great to see you. Where shall we start?"

    def test_comeback_topic(self, make_engine):
        text = make_engine(grade=4, language="es", learner_name="Sofía").greeting("division")
        assert text.endswith("¿Estás listo para dominar División hoy? ¡La última vez estuviste muy cerca!")
