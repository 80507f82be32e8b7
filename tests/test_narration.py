"""
Tests for narration.py: speakable text and premium/basic routing.
"""

import asyncio
from datetime import date

import pytest

from nova_tutor.tutor.usage_governor import InMemoryLedgerStore, UsageGovernor
from nova_tutor.voice.narration import (
    ClientNarrator, MockNarrator, NarrationService, fractions_to_words, speakable_text,
)


class TestSpeakableText:
    @pytest.mark.parametrize("text,language,expected", [
        ("3/5 + 1/2", "en", "3 fifths plus one half"),
        ("9 ÷ 3 = 3", "es", "9 entre 3 igual a 3"),
        ("8 × 3", "en", "8 times 3"),
        ("2/3", "es", "2 tercios"),
        ("1/4", "en", "one quarter"),
        ("7/12", "en", "7 over 12"),
        ("50%", "es", "50 por ciento"),
        ("5 ≤ 7", "en", "5 less than or equal to 7"),
    ])
    def test_conversions(self, text, language, expected):
        assert speakable_text(text, language) == expected

    def test_loose_slash(self):
        assert speakable_text("12 / 4", "en") == "12 divided by 4"

    def test_empty(self):
        assert speakable_text("", "en") == ""

    def test_fraction_words_only(self):
        assert fractions_to_words("1/2 and 3/4", "es") == "un medio and 3 cuartos"


def make_service(plan="standard", premium_fails=False, limit=2):
    governor = UsageGovernor(
        InMemoryLedgerStore(), "ana", today=lambda: date(2026, 3, 2),
        narration_limits={"free": 0, "standard": limit, "premium": None},
    )
    premium = MockNarrator("premium", fail=premium_fails)
    basic = MockNarrator("basic")
    return NarrationService(governor, plan, premium, basic), premium, basic


class TestNarrationService:
    def test_premium_within_quota(self):
        service, premium, basic = make_service()
        outcome = asyncio.run(service.speak("7 + 7"))
        assert outcome.voice == "premium"
        assert premium.spoken == [("7 plus 7", "en")]
        assert basic.spoken == []

    def test_basic_after_quota(self):
        service, premium, basic = make_service(limit=1)
        first = asyncio.run(service.speak("one"))
        second = asyncio.run(service.speak("two"))
        assert first.voice == "premium" and first.notice is not None
        assert second.voice == "basic" and second.notice is None
        assert service.log == [("premium", "one"), ("basic", "two")]

    def test_free_plan_uses_basic(self):
        service, premium, basic = make_service(plan="free")
        assert asyncio.run(service.speak("hola")).voice == "basic"
        assert premium.spoken == []

    @pytest.mark.asyncio
    async def test_premium_failure_falls_back(self):
        service, premium, basic = make_service(premium_fails=True)
        outcome = await service.speak("hello")
        assert outcome.voice == "basic"
        assert basic.spoken == [("hello", "en")]


def test_client_narrator_keeps_nothing():
    narrator = ClientNarrator("premium")
    for _ in range(3):
        assert asyncio.run(narrator.narrate("7 plus 7", "en")) is True
    assert not hasattr(narrator, "spoken")
