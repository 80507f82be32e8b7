"""
Nova Tutor v9.0 - Usage Governor
=================================
Plan limits for one learner.

Narration (premium voice), per day:
    free = 0, standard = 100, premium = unlimited
    Past the quota the tutor keeps talking through the basic voice.

Interaction (free plan only):
    TRIAL_QUESTION_LIMIT lifetime interactions, then a hard paywall.

Counters live in a UsageLedger read and written through a LedgerStore,
so the governor itself holds no global state. One writer per learner.
"""

import logging
import threading
from dataclasses import dataclass, replace
from datetime import date
from typing import Callable, Optional, Protocol

from nova_tutor.config import PLAN_NARRATION_LIMITS, TRIAL_QUESTION_LIMIT
from nova_tutor.content.messages import msg

logger = logging.getLogger("nova.usage")


# ─── Ledger ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class UsageLedger:
    daily_narration_count: int = 0
    daily_narration_date: Optional[date] = None
    lifetime_question_count: int = 0

    def for_day(self, today: date) -> "UsageLedger":
        """Daily count and date reset together when the day changed."""
        if self.daily_narration_date == today:
            return self
        return replace(self, daily_narration_count=0, daily_narration_date=today)


class LedgerStore(Protocol):
    def get(self, learner_id: str) -> UsageLedger: ...
    def set(self, learner_id: str, ledger: UsageLedger) -> None: ...


class InMemoryLedgerStore:
    """Process-local store. Lifetime counts survive for the process only."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ledgers: dict[str, UsageLedger] = {}

    def get(self, learner_id: str) -> UsageLedger:
        with self._lock:
            return self._ledgers.get(learner_id, UsageLedger())

    def set(self, learner_id: str, ledger: UsageLedger) -> None:
        with self._lock:
            self._ledgers[learner_id] = ledger


# ─── Gate Results ────────────────────────────────────────────────────────────

@dataclass
class NarrationGate:
    allowed: bool                          # premium narration may be used
    uses_fallback: bool                    # speak through the basic voice
    depleted_notice: Optional[str] = None  # set once, when the quota is hit


@dataclass
class InteractionGate:
    allowed: bool
    message: Optional[str] = None          # paywall text when blocked


# ─── Governor ────────────────────────────────────────────────────────────────

class UsageGovernor:
    def __init__(
        self,
        store: LedgerStore,
        learner_id: str = "default",
        language: str = "en",
        today: Callable[[], date] = date.today,
        trial_limit: int = TRIAL_QUESTION_LIMIT,
        narration_limits: Optional[dict] = None,
    ):
        self.store = store
        self.learner_id = learner_id
        self.language = language
        self.today = today
        self.trial_limit = trial_limit
        self.narration_limits = narration_limits or PLAN_NARRATION_LIMITS

    @property
    def ledger(self) -> UsageLedger:
        return self.store.get(self.learner_id)

    def gate_narration(self, plan: str) -> NarrationGate:
        """Decide premium vs basic voice for the next narration.

        The stored day is rolled over before comparing against the quota.
        An allowed narration is counted immediately.
        """
        ledger = self.store.get(self.learner_id).for_day(self.today())
        limit = self.narration_limits.get(plan, 0)

        if limit is None:
            self.store.set(self.learner_id, replace(
                ledger, daily_narration_count=ledger.daily_narration_count + 1))
            return NarrationGate(allowed=True, uses_fallback=False)

        if ledger.daily_narration_count < limit:
            count = ledger.daily_narration_count + 1
            self.store.set(self.learner_id, replace(ledger, daily_narration_count=count))
            notice = None
            if count == limit:
                notice = msg("voice_depleted", self.language)
                logger.info(f"Narration quota reached for {self.learner_id} ({plan}: {limit}/day)")
            return NarrationGate(allowed=True, uses_fallback=False, depleted_notice=notice)

        # Persist the rollover even when nothing is counted
        self.store.set(self.learner_id, ledger)
        logger.debug(f"Narration quota exhausted for {self.learner_id}, using basic voice")
        return NarrationGate(allowed=False, uses_fallback=True)

    def gate_interaction(self, plan: str) -> InteractionGate:
        """Hard stop for exhausted free trials. Counts every allowed attempt."""
        ledger = self.store.get(self.learner_id)

        if plan == "free" and ledger.lifetime_question_count >= self.trial_limit:
            logger.info(
                f"Trial limit reached for {self.learner_id} "
                f"({ledger.lifetime_question_count}/{self.trial_limit})"
            )
            return InteractionGate(allowed=False, message=msg("trial_limit", self.language))

        self.store.set(self.learner_id, replace(
            ledger, lifetime_question_count=ledger.lifetime_question_count + 1))
        return InteractionGate(allowed=True)
