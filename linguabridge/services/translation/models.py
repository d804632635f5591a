"""Value types shared across the translation pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class Script(str, Enum):
    """Writing system a language is natively written in, or text is typed in."""

    LATIN = "latin"
    NATIVE = "native"


class TranslationPath(str, Enum):
    PASSTHROUGH = "passthrough"
    DIRECT_MODEL = "direct_model"
    PIVOT_THROUGH_ENGLISH = "pivot_through_english"
    FALLBACK = "fallback"


class TranslationOutcome(str, Enum):
    TRANSLATED = "translated"
    NOT_NEEDED = "not_needed"
    DEGRADED = "degraded"


class DegradedReason(str, Enum):
    """Why a result carries the original text instead of a translation."""

    UNRESOLVED_LANGUAGE = "unresolved_language"
    UNSUPPORTED_LANGUAGE = "unsupported_language"
    MODEL_UNAVAILABLE = "model_unavailable"
    MODEL_TIMEOUT = "model_timeout"
    MODEL_ERROR = "model_error"
    EMPTY_OUTPUT = "empty_output"
    TRANSLITERATION_FAILED = "transliteration_failed"


class ModelStatus(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class LanguageProfile:
    """Immutable description of one language known to the registry."""

    id: str
    display_name: str
    native_name: str
    script: Script
    model_supported: bool
    nllb_code: Optional[str] = None
    script_name: str = "Latin"
    aliases: tuple[str, ...] = ()

    @property
    def is_latin(self) -> bool:
        return self.script is Script.LATIN


@dataclass(frozen=True)
class ScriptDetection:
    """Result of classifying a piece of text by script."""

    script: Script
    guessed_language: Optional[str] = None
    confidence: float = 0.0
    is_phonetic: bool = False


@dataclass(frozen=True)
class TransliterationResult:
    text: str
    is_translated: bool
    degraded_reason: Optional[DegradedReason] = None


@dataclass(frozen=True)
class TranslationResult:
    """Outcome of translating one text along one path.

    ``is_translated`` is False for every degraded result, in which case
    ``text`` equals ``original_text``.
    """

    text: str
    original_text: str
    source_language: str
    target_language: str
    path: TranslationPath
    is_translated: bool
    detected_language: Optional[str] = None
    confidence: float = 0.0
    outcome: TranslationOutcome = TranslationOutcome.NOT_NEEDED
    degraded_reason: Optional[DegradedReason] = None
    pivot_text: Optional[str] = None
    cached: bool = False

    @property
    def is_degraded(self) -> bool:
        return self.outcome is TranslationOutcome.DEGRADED


@dataclass(frozen=True)
class ChatMessageViews:
    """The three renderings of a chat message. Never persisted here."""

    sender_view: str
    receiver_view: str
    english_pivot: str
    path: TranslationPath
    is_translated: bool
    degraded_reason: Optional[DegradedReason] = None
    detected_language: Optional[str] = None


@dataclass(frozen=True)
class ModelState:
    """Snapshot of the translation model lifecycle."""

    status: ModelStatus
    progress: int = 0
    error: Optional[str] = None
    model_name: Optional[str] = None


@dataclass
class CacheEntry:
    data: Any
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at >= self.ttl
