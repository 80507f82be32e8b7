"""
Tests for usage_governor.py: daily narration quota and the free trial.
"""

from datetime import date

from nova_tutor.tutor.usage_governor import InMemoryLedgerStore, UsageGovernor, UsageLedger


class Clock:
    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today


def make_governor(today=date(2026, 3, 2), **kwargs):
    clock = Clock(today)
    store = InMemoryLedgerStore()
    return UsageGovernor(store, "ana", today=clock, **kwargs), store, clock


class TestLedger:
    def test_same_day_unchanged(self):
        ledger = UsageLedger(7, date(2026, 3, 2), 3)
        assert ledger.for_day(date(2026, 3, 2)) is ledger

    def test_new_day_resets_count_and_date_together(self):
        ledger = UsageLedger(7, date(2026, 3, 1), 3).for_day(date(2026, 3, 2))
        assert ledger == UsageLedger(0, date(2026, 3, 2), 3)


class TestNarrationQuota:
    def test_standard_plan_counts_up_to_limit(self):
        governor, store, _ = make_governor(narration_limits={"standard": 3})
        gates = [governor.gate_narration("standard") for _ in range(4)]
        assert [g.allowed for g in gates] == [True, True, True, False]
        assert gates[3].uses_fallback
        assert store.get("ana").daily_narration_count == 3

    def test_depleted_notice_once(self):
        governor, _, _ = make_governor(narration_limits={"standard": 2})
        notices = [governor.gate_narration("standard").depleted_notice for _ in range(4)]
        assert notices == [None, "⚡ Voice energy depleted for today. Using basic voice.", None, None]

    def test_free_plan_never_premium(self):
        governor, _, _ = make_governor()
        gate = governor.gate_narration("free")
        assert not gate.allowed and gate.uses_fallback

    def test_premium_unlimited(self):
        governor, store, _ = make_governor()
        for _ in range(500):
            assert governor.gate_narration("premium").allowed
        assert store.get("ana").daily_narration_count == 500

    def test_resets_next_day(self):
        governor, store, clock = make_governor(narration_limits={"standard": 1})
        assert governor.gate_narration("standard").allowed
        assert not governor.gate_narration("standard").allowed

        clock.today = date(2026, 3, 3)
        assert governor.gate_narration("standard").allowed
        assert store.get("ana").daily_narration_date == date(2026, 3, 3)

    def test_stale_date_persisted_even_when_blocked(self):
        governor, store, _ = make_governor()
        store.set("ana", UsageLedger(0, date(2026, 2, 1), 0))
        governor.gate_narration("free")
        assert store.get("ana").daily_narration_date == date(2026, 3, 2)


class TestTrial:
    def test_free_plan_blocked_after_limit(self):
        governor, store, _ = make_governor(trial_limit=5)
        gates = [governor.gate_interaction("free") for _ in range(6)]
        assert [g.allowed for g in gates] == [True] * 5 + [False]
        assert gates[5].message.startswith("Wow, you are so curious!")
        # A blocked attempt is not counted
        assert store.get("ana").lifetime_question_count == 5

    def test_paid_plans_never_blocked(self):
        governor, store, _ = make_governor(trial_limit=1)
        for _ in range(10):
            assert governor.gate_interaction("standard").allowed
        assert store.get("ana").lifetime_question_count == 10

    def test_lifetime_count_survives_day_change(self):
        governor, store, clock = make_governor(trial_limit=2)
        governor.gate_interaction("free")
        clock.today = date(2026, 4, 1)
        governor.gate_narration("free")
        governor.gate_interaction("free")
        assert not governor.gate_interaction("free").allowed

    def test_spanish_paywall(self):
        governor, _, _ = make_governor(trial_limit=0)
        governor.language = "es"
        assert governor.gate_interaction("free").message.startswith("¡Wow, eres muy curioso!")
