"""
Nova Tutor v9.0 - Configuration
All environment variables and constants. Single source of truth.
No other file reads os.environ directly.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# ─── Paths ───────────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

# ─── API Keys ────────────────────────────────────────────────────────────────
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")

# ─── Database ────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"sqlite:///{BASE_DIR / 'nova_tutor.db'}"
)
# Hosted Postgres hands out "postgres://", SQLAlchemy wants "postgresql://"
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# ─── Semantic Extraction (word problems) ─────────────────────────────────────
EXTRACTION_MODEL = os.getenv("EXTRACTION_MODEL", "gpt-4o-mini")
EXTRACTION_TEMPERATURE = float(os.getenv("EXTRACTION_TEMPERATURE", "0.2"))
EXTRACTION_TIMEOUT_SECONDS = float(os.getenv("EXTRACTION_TIMEOUT_SECONDS", "15"))

# ─── Tutoring Pacing ─────────────────────────────────────────────────────────
DWELL_SECONDS = float(os.getenv("DWELL_SECONDS", "2.0"))  # auto-advance after explanations
REMEDIATION_DELAY_SECONDS = float(os.getenv("REMEDIATION_DELAY_SECONDS", "2.0"))
REMEDIATION_THRESHOLD = int(os.getenv("REMEDIATION_THRESHOLD", "2"))
# Once a learner enters remediation mode it stays on for the session
STICKY_REMEDIATION = os.getenv("STICKY_REMEDIATION", "true").lower() == "true"
# Say "let's slow down" when a topic has no prerequisites to suggest
REMEDIATION_SLOW_DOWN_FALLBACK = os.getenv(
    "REMEDIATION_SLOW_DOWN_FALLBACK", "false"
).lower() == "true"

# ─── Plans & Usage ───────────────────────────────────────────────────────────
PLANS = ("free", "standard", "premium")
# Premium narrations per day. None = unlimited.
PLAN_NARRATION_LIMITS = {
    "free": 0,
    "standard": int(os.getenv("STANDARD_DAILY_NARRATIONS", "100")),
    "premium": None,
}
TRIAL_QUESTION_LIMIT = int(os.getenv("TRIAL_QUESTION_LIMIT", "5"))

# ─── Learners ────────────────────────────────────────────────────────────────
SUPPORTED_LANGUAGES = {
    "en": "English",
    "es": "Español",
}
MIN_GRADE = 1
MAX_GRADE = 5
SUPPORTED_CURRICULA = ("ib-pyp", "cambridge-primary", "common-core", "national", "colombia")
# Curricula taught with the IB notation, everything else uses the Colombian layout
IB_STYLE_CURRICULA = ("ib-pyp", "common-core")

# ─── Progress Badges ─────────────────────────────────────────────────────────
BADGE_ACCURACY_PERCENT = 90
BADGE_QUESTIONS_ATTEMPTED = 20
BADGE_MINUTES_PRACTICED = 30

# ─── Sessions ────────────────────────────────────────────────────────────────
# Sessions with no request for this long are closed and their report filed
SESSION_IDLE_SECONDS = float(os.getenv("SESSION_IDLE_SECONDS", "1800"))

# ─── CORS ────────────────────────────────────────────────────────────────────
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

# ─── Logging ─────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class ConfigError(ValueError):
    """Raised when a tutor is constructed with unsupported settings."""


@dataclass(frozen=True)
class TutorConfig:
    """Construction surface of one tutoring session."""
    language: str = "en"
    grade: int = 3
    curriculum: str = "colombia"
    plan: str = "standard"

    def __post_init__(self):
        if self.language not in SUPPORTED_LANGUAGES:
            raise ConfigError(f"Unsupported language: {self.language!r}")
        if not isinstance(self.grade, int) or not MIN_GRADE <= self.grade <= MAX_GRADE:
            raise ConfigError(f"Grade must be {MIN_GRADE}..{MAX_GRADE}, got {self.grade!r}")
        if self.curriculum not in SUPPORTED_CURRICULA:
            raise ConfigError(f"Unsupported curriculum: {self.curriculum!r}")
        if self.plan not in PLANS:
            raise ConfigError(f"Unsupported plan: {self.plan!r}")

    @property
    def style(self) -> str:
        """Board notation: 'ib' or 'colombia'."""
        return "ib" if self.curriculum in IB_STYLE_CURRICULA else "colombia"
