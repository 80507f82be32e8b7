"""
Nova Tutor v9.0 - Narration
Speaks tutor text through a premium voice while the plan allows it, and
through the basic voice otherwise.

speakable_text() is a PURE FUNCTION: fractions and math symbols become
words so a speech engine reads "3/5 + 1" as "3 fifths plus 1".
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Protocol

logger = logging.getLogger("nova.narration")


# ─── Fractions ───────────────────────────────────────────────────────────────

_EN_DENOMINATORS = {
    3: "thirds", 5: "fifths", 6: "sixths", 7: "sevenths",
    8: "eighths", 9: "ninths", 10: "tenths",
}
_ES_DENOMINATORS = {
    5: "quintos", 6: "sextos", 7: "séptimos", 8: "octavos",
    9: "novenos", 10: "décimos",
}

_FRACTION = re.compile(r"(\d+)/(\d+)")


def _fraction_en(n: int, d: int) -> str:
    if d == 2:
        return "one half" if n == 1 else f"{n} halves"
    if d == 4:
        return "one quarter" if n == 1 else f"{n} quarters"
    if d in _EN_DENOMINATORS:
        return f"{n} {_EN_DENOMINATORS[d]}"
    return f"{n} over {d}"


def _fraction_es(n: int, d: int) -> str:
    if d == 2:
        return "un medio" if n == 1 else f"{n} medios"
    if d == 3:
        return "un tercio" if n == 1 else f"{n} tercios"
    if d == 4:
        return "un cuarto" if n == 1 else f"{n} cuartos"
    if d in _ES_DENOMINATORS:
        return f"{n} {_ES_DENOMINATORS[d]}"
    return f"{n} sobre {d}"


def fractions_to_words(text: str, language: str = "en") -> str:
    spell = _fraction_es if language == "es" else _fraction_en
    return _FRACTION.sub(lambda m: spell(int(m.group(1)), int(m.group(2))), text)


# ─── Symbols ─────────────────────────────────────────────────────────────────
# Multi-character symbols first so "≤" is not read as "<"

_SYMBOLS = {
    "en": [
        ("≠", "does not equal"), ("≤", "less than or equal to"),
        ("≥", "greater than or equal to"), ("+", "plus"), ("-", "minus"),
        ("×", "times"), ("*", "times"), ("÷", "divided by"), ("=", "equals"),
        ("<", "less than"), (">", "greater than"), ("%", "percent"), ("°", "degrees"),
    ],
    "es": [
        ("≠", "no es igual a"), ("≤", "menor o igual que"),
        ("≥", "mayor o igual que"), ("+", "más"), ("-", "menos"),
        ("×", "por"), ("*", "por"), ("÷", "entre"), ("=", "igual a"),
        ("<", "menor que"), (">", "mayor que"), ("%", "por ciento"), ("°", "grados"),
    ],
}

_LOOSE_SLASH = re.compile(r"(?<!\d)/(?!\d)")
_SPACES = re.compile(r"\s{2,}")


def speakable_text(text: str, language: str = "en") -> str:
    """
    Text as it should be spoken.

    Examples:
        "3/5 + 1/2" (en)  → "3 fifths plus one half"
        "9 ÷ 3 = 3" (es)  → "9 entre 3 igual a 3"
    """
    if not text:
        return text
    lang = language if language in _SYMBOLS else "en"

    result = fractions_to_words(text, lang)
    result = _LOOSE_SLASH.sub(" entre " if lang == "es" else " divided by ", result)
    for symbol, word in _SYMBOLS[lang]:
        result = result.replace(symbol, f" {word} ")
    return _SPACES.sub(" ", result).strip()


# ─── Narrator Port ───────────────────────────────────────────────────────────

class Narrator(Protocol):
    async def narrate(self, text: str, language: str) -> bool:
        """Speak text. Returns False when the voice could not be produced."""
        ...


class MockNarrator:
    """Records what would have been spoken. For local testing only."""

    def __init__(self, name: str = "mock", fail: bool = False):
        self.name = name
        self.fail = fail
        self.spoken: list[tuple[str, str]] = []

    async def narrate(self, text: str, language: str) -> bool:
        if self.fail:
            logger.info(f"Narration [{self.name}] failed: '{text[:50]}'")
            return False
        logger.info(f"Narration [{self.name}]: '{text[:50]}'")
        self.spoken.append((text, language))
        return True


class ClientNarrator:
    """Voice rendered by the client app. The server only tags the text, nothing is kept."""

    def __init__(self, name: str):
        self.name = name

    async def narrate(self, text: str, language: str) -> bool:
        logger.debug(f"Narration [{self.name}] handed to client: '{text[:50]}'")
        return True


# ─── Narration Service ───────────────────────────────────────────────────────

@dataclass
class NarrationOutcome:
    voice: str                     # "premium" | "basic" | "none"
    notice: Optional[str] = None   # quota-depleted notice to show once


@dataclass
class NarrationService:
    """Routes each utterance to the premium or basic narrator.

    The usage governor decides; a premium failure falls back to the basic
    voice so the learner always hears the tutor.
    """
    governor: object                   # UsageGovernor
    plan: str
    premium: Narrator
    basic: Narrator
    language: str = "en"
    log: list = field(default_factory=list)

    async def speak(self, text: str) -> NarrationOutcome:
        spoken = speakable_text(text, self.language)
        gate = self.governor.gate_narration(self.plan)

        if gate.allowed:
            if await self.premium.narrate(spoken, self.language):
                self.log.append(("premium", text))
                return NarrationOutcome("premium", gate.depleted_notice)
            logger.warning("Premium narration failed, switching to basic voice")

        if await self.basic.narrate(spoken, self.language):
            self.log.append(("basic", text))
            return NarrationOutcome("basic", gate.depleted_notice)

        logger.warning(f"No voice available for: '{text[:50]}'")
        return NarrationOutcome("none", gate.depleted_notice)
