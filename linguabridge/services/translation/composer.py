"""Message View Composer: the library boundary of the translation pipeline.

Takes a chat message typed by the sender and produces the sender view
(native script), the receiver view (translated) and an English pivot.
"""

import logging
from typing import Any, Callable, Dict, Optional

from linguabridge.core.config import Settings, get_settings
from linguabridge.core.exceptions import InvalidArgumentError
from linguabridge.services.translation.cache import (
    MemoryBackend,
    SQLiteBackend,
    TieredCache,
    make_cache_key,
)
from linguabridge.services.translation.executor import TranslationExecutor
from linguabridge.services.translation.language_registry import LanguageRegistry
from linguabridge.services.translation.model_manager import (
    ModelLoader,
    ProgressCallback,
    TranslationModelManager,
)
from linguabridge.services.translation.models import (
    ChatMessageViews,
    LanguageProfile,
    Script,
    ScriptDetection,
    TranslationPath,
    TranslationResult,
)
from linguabridge.services.translation.preview import PreviewDebouncer
from linguabridge.services.translation.router import TranslationRouter
from linguabridge.services.translation.script_detector import ScriptDetector
from linguabridge.services.translation.spell_corrector import SpellCorrector
from linguabridge.services.translation.transliteration import Transliterator
from linguabridge.utils.logging import redact_text

logger = logging.getLogger(__name__)

DETECT_TARGET = "any"


class MessageViewComposer:
    """Composes the three views of a chat message.

    Flow:
    1. Detect the script of the typed text (cached)
    2. Spell-correct and transliterate romanised input for native-script
       senders (cached)
    3. Route the language pair
    4. Translate directly or through English, each model call cached

    Only InvalidArgumentError is raised; every other failure yields views
    with ``is_translated=False`` and ``receiver_view == sender_view``.
    """

    def __init__(
        self,
        model_manager: TranslationModelManager,
        cache: TieredCache,
        registry: Optional[LanguageRegistry] = None,
        detector: Optional[ScriptDetector] = None,
        transliterator: Optional[Transliterator] = None,
        spell_corrector: Optional[SpellCorrector] = None,
        router: Optional[TranslationRouter] = None,
        executor: Optional[TranslationExecutor] = None,
        preview_delay: float = 0.3,
    ):
        self.registry = registry or LanguageRegistry()
        self.model_manager = model_manager
        self.cache = cache
        self.detector = detector or ScriptDetector(registry=self.registry)
        self.transliterator = transliterator or Transliterator(
            registry=self.registry, detector=self.detector
        )
        self.spell_corrector = spell_corrector or SpellCorrector(registry=self.registry)
        self.router = router or TranslationRouter(self.registry)
        self.executor = executor or TranslationExecutor(
            model_manager, registry=self.registry, cache=cache
        )
        self.preview_delay = preview_delay

        self.stats = {
            "messages_composed": 0,
            "previews": 0,
            "transliterated": 0,
            "spell_corrections": 0,
        }

    async def compose_views(
        self, text: str, sender_language_id: str, receiver_language_id: str
    ) -> ChatMessageViews:
        """Build sender, receiver and English views for one message.

        Args:
            text: The message as typed.
            sender_language_id: Sender's language (code, name or NLLB code).
            receiver_language_id: Receiver's language.

        Returns:
            ChatMessageViews for the message.

        Raises:
            InvalidArgumentError: ``text`` is not a string or a language
                identifier is empty or not a string.
        """
        self._validate_text(text)
        self._validate_language(sender_language_id, "sender_language_id")
        self._validate_language(receiver_language_id, "receiver_language_id")
        self.stats["messages_composed"] += 1

        detection = await self._detect(text, sender_language_id)
        sender_profile = self.registry.resolve(sender_language_id)

        sender_view = text
        if detection.script is Script.LATIN and self._is_native(sender_profile):
            sender_view = await self._transliterate(text, sender_profile)

        path = self.router.route(sender_language_id, receiver_language_id)
        result = await self.executor.execute(
            sender_view,
            sender_language_id,
            receiver_language_id,
            path=path,
            detected_language=detection.guessed_language,
            confidence=detection.confidence,
        )

        receiver_view = result.text if result.is_translated else sender_view
        views = ChatMessageViews(
            sender_view=sender_view,
            receiver_view=receiver_view,
            english_pivot=self._english_pivot(
                text, sender_view, receiver_view, result, sender_language_id
            ),
            path=path,
            is_translated=result.is_translated,
            degraded_reason=result.degraded_reason,
            detected_language=detection.guessed_language,
        )
        logger.debug(
            f"Composed views {sender_language_id} -> {receiver_language_id} "
            f"via {path.value}: {redact_text(text)}"
        )
        return views

    def _english_pivot(
        self,
        original: str,
        sender_view: str,
        receiver_view: str,
        result: TranslationResult,
        sender_language_id: str,
    ) -> str:
        path = result.path
        sender_is_english = self.registry.is_english(sender_language_id)

        if path is TranslationPath.PASSTHROUGH:
            return sender_view if sender_is_english else original

        if path is TranslationPath.DIRECT_MODEL:
            if sender_is_english:
                return sender_view
            if result.is_translated and self.registry.is_english(result.target_language):
                return receiver_view
            return original

        if path is TranslationPath.PIVOT_THROUGH_ENGLISH and result.pivot_text:
            return result.pivot_text

        return original

    async def get_typing_preview(self, text: str, language_id: str) -> str:
        """Native-script preview of romanised input for live typing.

        Returns ``""`` for empty input and the input itself whenever no
        preview can be produced.
        """
        self._validate_text(text)
        if not text.strip():
            return ""
        self.stats["previews"] += 1

        profile = self.registry.resolve(language_id) if language_id else None
        if not self._is_native(profile):
            return text
        if self.detector.detect(text).script is not Script.LATIN:
            return text
        return await self._transliterate(text, profile)

    def preview_debouncer(
        self, on_result: Optional[Callable[[str], None]] = None
    ) -> PreviewDebouncer:
        """Debouncer that feeds keystrokes into ``get_typing_preview``."""
        return PreviewDebouncer(
            self.get_typing_preview, delay=self.preview_delay, on_result=on_result
        )

    async def load_model(
        self,
        size_hint: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bool:
        """Warm up the translation model. Safe to call repeatedly."""
        return await self.model_manager.load(size_hint=size_hint, on_progress=on_progress)

    async def invalidate(self, key: str) -> None:
        await self.cache.invalidate(key)

    async def clear_all(self) -> None:
        await self.cache.clear()
        logger.info("Translation caches cleared")

    async def start_session(self, session_id: Optional[str] = None) -> None:
        await self.cache.start_session(session_id)

    def get_stats(self) -> Dict[str, Any]:
        """Get composer, executor, cache and model statistics."""
        state = self.model_manager.state
        return {
            **self.stats,
            "executor": self.executor.get_stats(),
            "cache": self.cache.get_stats(),
            "model": {
                "status": state.status.value,
                "progress": state.progress,
                "error": state.error,
                "model_name": state.model_name,
            },
        }

    async def _detect(self, text: str, hint_language: str) -> ScriptDetection:
        key = make_cache_key(
            "detect", text, hint_language, DETECT_TARGET, registry=self.registry
        )

        async def fetch() -> Dict[str, Any]:
            detection = self.detector.detect(text, hint_language=hint_language)
            return {
                "script": detection.script.value,
                "guessed_language": detection.guessed_language,
                "confidence": detection.confidence,
                "is_phonetic": detection.is_phonetic,
            }

        cached = await self.cache.get_or_fetch(key, fetch)
        return ScriptDetection(
            script=Script(cached["script"]),
            guessed_language=cached.get("guessed_language"),
            confidence=float(cached.get("confidence", 0.0)),
            is_phonetic=bool(cached.get("is_phonetic", False)),
        )

    async def _transliterate(self, text: str, profile: LanguageProfile) -> str:
        key = make_cache_key("translit", text, profile.id, profile.id)

        async def fetch() -> Optional[str]:
            corrected, corrections = self.spell_corrector.apply(text, profile.id)
            if corrections:
                self.stats["spell_corrections"] += len(corrections)
                logger.debug(f"Spell corrections for {profile.id}: {corrections}")
            result = self.transliterator.to_native_script(corrected, profile.id)
            if not result.is_translated:
                # Degraded transliterations are not cached
                return None
            self.stats["transliterated"] += 1
            return result.text

        native = await self.cache.get_or_fetch(key, fetch)
        return native if native is not None else text

    @staticmethod
    def _is_native(profile: Optional[LanguageProfile]) -> bool:
        return profile is not None and not profile.is_latin

    @staticmethod
    def _validate_text(text: Any) -> None:
        if not isinstance(text, str):
            raise InvalidArgumentError(
                f"text must be a string, got {type(text).__name__}"
            )

    @staticmethod
    def _validate_language(identifier: Any, name: str) -> None:
        if not isinstance(identifier, str) or not identifier.strip():
            raise InvalidArgumentError(f"{name} must be a non-empty string")


def build_cache(settings: Settings) -> TieredCache:
    """Build the memory, session and persistent tiers from settings."""
    backends = [
        MemoryBackend(
            max_entries=settings.CACHE_MEMORY_MAX_ENTRIES,
            default_ttl=settings.CACHE_MEMORY_TTL_SECONDS,
        )
    ]
    if settings.CACHE_ENABLE_SESSION_TIER:
        backends.append(
            SQLiteBackend.session(
                settings.CACHE_DB_PATH,
                default_ttl=settings.CACHE_SESSION_TTL_SECONDS,
            )
        )
    if settings.CACHE_ENABLE_PERSISTENT_TIER:
        backends.append(
            SQLiteBackend(
                settings.CACHE_DB_PATH,
                namespace="persistent",
                default_ttl=settings.CACHE_PERSISTENT_TTL_SECONDS,
            )
        )
    return TieredCache(backends)


def build_composer(
    settings: Optional[Settings] = None,
    model_loader: Optional[ModelLoader] = None,
) -> MessageViewComposer:
    """Wire a MessageViewComposer with default components.

    Args:
        settings: Configuration; defaults to ``get_settings()``.
        model_loader: Model loader; defaults to the HuggingFace NLLB-200 loader.
    """
    settings = settings or get_settings()
    settings.ensure_data_dirs()

    registry = LanguageRegistry()
    detector = ScriptDetector(
        min_confidence=settings.DETECTION_MIN_CONFIDENCE, registry=registry
    )
    model_manager = TranslationModelManager(loader=model_loader, settings=settings)
    composer = MessageViewComposer(
        model_manager=model_manager,
        cache=build_cache(settings),
        registry=registry,
        detector=detector,
        preview_delay=settings.PREVIEW_DEBOUNCE_SECONDS,
    )
    logger.info(
        f"Translation pipeline ready (model size {settings.TRANSLATION_MODEL_SIZE}, "
        f"data dir {settings.DATA_DIR})"
    )
    return composer
