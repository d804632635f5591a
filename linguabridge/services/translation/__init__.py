"""Translation package for chat message views.

This package provides:
- LanguageRegistry: Resolves language identifiers to profiles
- ScriptDetector: Classifies text as Latin or native script and guesses its language
- SpellCorrector / Transliterator: Romanised input to native script
- TranslationRouter: Chooses passthrough, direct, pivot or fallback
- TranslationModelManager: Lifecycle of the NLLB-200 translation model
- TranslationExecutor: Runs a routed translation through the cache
- TieredCache: Memory, session and persistent caching
- MessageViewComposer: Sender, receiver and English views of a message
"""

from linguabridge.services.translation.cache import (
    MemoryBackend,
    SQLiteBackend,
    TieredCache,
    make_cache_key,
)
from linguabridge.services.translation.composer import (
    MessageViewComposer,
    build_composer,
)
from linguabridge.services.translation.executor import TranslationExecutor
from linguabridge.services.translation.language_registry import (
    LanguageRegistry,
    normalize_identifier,
)
from linguabridge.services.translation.model_manager import (
    HuggingFaceModelLoader,
    TranslationModelManager,
)
from linguabridge.services.translation.models import (
    ChatMessageViews,
    DegradedReason,
    LanguageProfile,
    ModelState,
    ModelStatus,
    Script,
    ScriptDetection,
    TranslationOutcome,
    TranslationPath,
    TranslationResult,
    TransliterationResult,
)
from linguabridge.services.translation.preview import PreviewDebouncer
from linguabridge.services.translation.router import TranslationRouter, route
from linguabridge.services.translation.script_detector import ScriptDetector
from linguabridge.services.translation.spell_corrector import SpellCorrector
from linguabridge.services.translation.transliteration import Transliterator

__all__ = [
    "ChatMessageViews",
    "DegradedReason",
    "HuggingFaceModelLoader",
    "LanguageProfile",
    "LanguageRegistry",
    "MemoryBackend",
    "MessageViewComposer",
    "ModelState",
    "ModelStatus",
    "PreviewDebouncer",
    "SQLiteBackend",
    "Script",
    "ScriptDetection",
    "ScriptDetector",
    "SpellCorrector",
    "TieredCache",
    "TranslationExecutor",
    "TranslationModelManager",
    "TranslationOutcome",
    "TranslationPath",
    "TranslationResult",
    "TranslationRouter",
    "Transliterator",
    "TransliterationResult",
    "build_composer",
    "make_cache_key",
    "normalize_identifier",
    "route",
]
