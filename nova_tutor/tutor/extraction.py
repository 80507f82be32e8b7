"""
Nova Tutor v9.0 - Semantic Extraction (word problems)

Reads a word problem into structured data: who it is about, what is
being counted, the numbers, the operation, and an optional metaphor built
from the learner's interests.

    OpenAIExtractor   gpt-4o-mini in JSON mode (production)
    KeywordExtractor  offline, numbers + operation keywords only

Failures never raise: extract() returns None and the tutor keeps showing
its provisional "analyzing" steps.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import openai
from openai import AsyncOpenAI

from nova_tutor.config import (
    EXTRACTION_MODEL, EXTRACTION_TEMPERATURE, EXTRACTION_TIMEOUT_SECONDS,
)
from nova_tutor.tutor.problem_classifier import extract_numbers

logger = logging.getLogger("nova.extraction")


@dataclass
class ExtractionResult:
    subject: Optional[str] = None
    object: Optional[str] = None
    numbers: list = field(default_factory=list)
    operation: str = "general"
    metaphor: Optional[str] = None
    question: Optional[str] = None


@dataclass
class Personalization:
    interests: list = field(default_factory=list)
    favorite_animals: list = field(default_factory=list)


class SemanticExtractor(Protocol):
    async def extract(
        self,
        text: str,
        language: str,
        personalization: Optional[Personalization] = None,
    ) -> Optional[ExtractionResult]: ...


# ─── Parsing ─────────────────────────────────────────────────────────────────

# Model answers in either language; the tutor works with the English tags
_OPERATION_ALIASES = {
    "addition": "addition", "suma": "addition", "add": "addition",
    "subtraction": "subtraction", "resta": "subtraction", "subtract": "subtraction",
    "multiplication": "multiplication", "multiplicación": "multiplication",
    "multiplicacion": "multiplication", "multiply": "multiplication",
    "division": "division", "división": "division", "divide": "division",
    "fractions": "fractions", "fracciones": "fractions",
    "geometry": "geometry", "geometría": "geometry",
}


def normalize_operation(value) -> str:
    if not isinstance(value, str):
        return "general"
    return _OPERATION_ALIASES.get(value.strip().lower(), "general")


def _clean_numbers(values) -> list[int]:
    numbers = []
    for v in values or []:
        try:
            numbers.append(int(float(v)))
        except (TypeError, ValueError):
            continue
    return numbers


def parse_extraction(raw: str) -> Optional[ExtractionResult]:
    """Parse the model's JSON. Returns None when it is not a usable object."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        # Some responses wrap the JSON in prose; take the outermost object
        if not isinstance(raw, str) or "{" not in raw:
            return None
        try:
            data = json.loads(raw[raw.index("{"):raw.rindex("}") + 1])
        except (json.JSONDecodeError, ValueError):
            return None

    if not isinstance(data, dict):
        return None

    return ExtractionResult(
        subject=data.get("subject") or None,
        object=data.get("object") or None,
        numbers=_clean_numbers(data.get("numbers")),
        operation=normalize_operation(data.get("type")),
        metaphor=data.get("personalized_metaphor") or None,
        question=data.get("question") or None,
    )


# ─── OpenAI ──────────────────────────────────────────────────────────────────

EXTRACTION_SYSTEM = """You are a math parser for elementary students. Extract structured data AND generate a personalized metaphor.

If interests or favorite animals are provided, use them to create a brief "metaphor" or "story twist" that makes the math problem more engaging for the student.

Schema:
{{
  "type": "addition" | "subtraction" | "multiplication" | "division" | "fractions" | "geometry" | "word_problem",
  "subject": "Main person/entity name",
  "object": "Item being counted/measured",
  "numbers": [numbers found],
  "question": "The actual question",
  "personalized_metaphor": "A 1-sentence funny or engaging connection to their interests."
}}

Language: {language}. Interests: {interests}. Animals: {animals}.
Respond ONLY with JSON."""


class OpenAIExtractor:
    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = EXTRACTION_MODEL,
        timeout: float = EXTRACTION_TIMEOUT_SECONDS,
    ):
        self.client = client
        self.model = model
        self.timeout = timeout

    async def extract(
        self,
        text: str,
        language: str,
        personalization: Optional[Personalization] = None,
    ) -> Optional[ExtractionResult]:
        p = personalization or Personalization()
        prompt = EXTRACTION_SYSTEM.format(
            language=language,
            interests=", ".join(p.interests) or "none",
            animals=", ".join(p.favorite_animals) or "none",
        )
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": prompt},
                        {"role": "user", "content": text},
                    ],
                    temperature=EXTRACTION_TEMPERATURE,
                    response_format={"type": "json_object"},
                ),
                timeout=self.timeout,
            )
            content = response.choices[0].message.content
        except (openai.OpenAIError, asyncio.TimeoutError, IndexError) as e:
            logger.warning(f"Extraction failed: {type(e).__name__}: {e}")
            return None

        result = parse_extraction(content)
        if result is None:
            logger.warning(f"Extraction returned unusable JSON: {content!r:.200}")
        return result


# ─── Offline ─────────────────────────────────────────────────────────────────

class KeywordExtractor:
    """No-network extractor: numbers from the text, operation from keywords."""

    _RULES = (
        ("division", ("divid", "share", "reparte", "repartir", "each get", "cada uno")),
        ("multiplication", ("times", "veces", "multipl", "groups of", "grupos de", "×")),
        ("subtraction", ("left", "quedan", "quedó", "gave away", "regaló", "ate", "comió", "minus", "menos")),
        ("addition", ("total", "altogether", "en total", "more", "más", "plus", "suma")),
    )

    async def extract(
        self,
        text: str,
        language: str,
        personalization: Optional[Personalization] = None,
    ) -> Optional[ExtractionResult]:
        numbers = extract_numbers(text)
        if not numbers:
            return None
        lower = text.lower()
        operation = "general"
        for name, cues in self._RULES:
            if any(cue in lower for cue in cues):
                operation = name
                break
        return ExtractionResult(numbers=numbers, operation=operation)
