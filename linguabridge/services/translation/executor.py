"""Runs a routed translation against the model, one or two hops.

Every model call goes through the tiered cache so identical requests share
one inference. Model failures never propagate: they become degraded results
that carry the original text.
"""

import logging
import time
from typing import Any, Dict, Optional, Tuple

from linguabridge.core.exceptions import (
    ModelInferenceError,
    ModelTimeoutError,
    ModelUnavailableError,
)
from linguabridge.metrics.translation_metrics import (
    translation_degraded_total,
    translation_operation_duration_seconds,
)
from linguabridge.services.translation.cache import TieredCache, make_cache_key
from linguabridge.services.translation.language_registry import (
    ENGLISH_ID,
    LanguageRegistry,
)
from linguabridge.services.translation.model_manager import TranslationModelManager
from linguabridge.services.translation.models import (
    DegradedReason,
    LanguageProfile,
    TranslationOutcome,
    TranslationPath,
    TranslationResult,
)
from linguabridge.services.translation.router import route
from linguabridge.utils.logging import redact_text

logger = logging.getLogger(__name__)


class TranslationExecutor:
    """Executes DIRECT_MODEL and PIVOT_THROUGH_ENGLISH paths.

    PASSTHROUGH and FALLBACK are answered without touching the model.
    """

    def __init__(
        self,
        model_manager: TranslationModelManager,
        registry: Optional[LanguageRegistry] = None,
        cache: Optional[TieredCache] = None,
    ):
        """Initialize the executor.

        Args:
            model_manager: Owner of the translation model.
            registry: Language registry used to resolve identifiers.
            cache: Optional tiered cache for model outputs (kind ``translate``).
        """
        self.model_manager = model_manager
        self.registry = registry or LanguageRegistry()
        self.cache = cache

        # Statistics
        self.stats = {
            "requests": 0,
            "translated": 0,
            "not_needed": 0,
            "degraded": 0,
            "model_calls": 0,
            "cache_served": 0,
        }

    async def execute(
        self,
        text: str,
        source_id: str,
        target_id: str,
        path: Optional[TranslationPath] = None,
        detected_language: Optional[str] = None,
        confidence: float = 0.0,
    ) -> TranslationResult:
        """Translate ``text`` from ``source_id`` to ``target_id``.

        Args:
            text: Text in the source language's native script.
            source_id: Source language identifier.
            target_id: Target language identifier.
            path: Pre-computed route; computed here when omitted.
            detected_language: Detector guess, copied into the result.
            confidence: Detector confidence, copied into the result.

        Returns:
            TranslationResult. Never raises for model or cache failures.
        """
        start_time = time.perf_counter()
        self.stats["requests"] += 1

        source = self.registry.resolve(source_id)
        target = self.registry.resolve(target_id)
        if path is None:
            path = route(source, target)

        base: Dict[str, Any] = {
            "original_text": text,
            "source_language": source.id if source else source_id,
            "target_language": target.id if target else target_id,
            "path": path,
            "detected_language": detected_language,
            "confidence": confidence,
        }

        try:
            if path is TranslationPath.PASSTHROUGH or not text.strip():
                return self._not_needed(text, base)

            if path is TranslationPath.FALLBACK:
                reason = (
                    DegradedReason.UNRESOLVED_LANGUAGE
                    if source is None or target is None
                    else DegradedReason.UNSUPPORTED_LANGUAGE
                )
                return self._degraded(text, reason, base)

            if source is None or target is None:
                return self._degraded(text, DegradedReason.UNRESOLVED_LANGUAGE, base)
            if not (source.model_supported and target.model_supported):
                return self._degraded(text, DegradedReason.UNSUPPORTED_LANGUAGE, base)

            if path is TranslationPath.DIRECT_MODEL:
                translated, reason, cached = await self._model_call(text, source, target)
                if reason is not None:
                    return self._degraded(text, reason, base)
                return self._translated(translated, base, cached=cached)

            # Pivot: source -> English -> target
            english = self.registry.get(ENGLISH_ID)
            if english is None:
                return self._degraded(text, DegradedReason.UNSUPPORTED_LANGUAGE, base)
            pivot, reason, first_cached = await self._model_call(text, source, english)
            if reason is not None:
                return self._degraded(text, reason, base)

            translated, reason, second_cached = await self._model_call(
                pivot, english, target
            )
            if reason is not None:
                return self._degraded(text, reason, base, pivot_text=pivot)
            return self._translated(
                translated, base, pivot_text=pivot, cached=first_cached and second_cached
            )
        finally:
            translation_operation_duration_seconds.labels(path=path.value).observe(
                max(0.0, time.perf_counter() - start_time)
            )

    async def _model_call(
        self, text: str, source: LanguageProfile, target: LanguageProfile
    ) -> Tuple[Optional[str], Optional[DegradedReason], bool]:
        """One model hop through the cache.

        Returns:
            Tuple of (translated_text, degraded_reason, served_without_inference).
        """
        fetched = False

        async def fetch() -> Optional[str]:
            nonlocal fetched
            fetched = True
            self.stats["model_calls"] += 1
            output = await self.model_manager.translate(
                text, source.nllb_code, target.nllb_code
            )
            output = (output or "").strip()
            return output or None

        try:
            if self.cache is not None:
                key = make_cache_key(
                    "translate", text, source.id, target.id, registry=self.registry
                )
                translated = await self.cache.get_or_fetch(key, fetch)
            else:
                translated = await fetch()
        except ModelTimeoutError:
            return None, DegradedReason.MODEL_TIMEOUT, False
        except ModelUnavailableError:
            return None, DegradedReason.MODEL_UNAVAILABLE, False
        except ModelInferenceError:
            return None, DegradedReason.MODEL_ERROR, False

        if translated is None:
            return None, DegradedReason.EMPTY_OUTPUT, False
        if not fetched:
            self.stats["cache_served"] += 1
        return translated, None, not fetched

    def _not_needed(self, text: str, base: Dict[str, Any]) -> TranslationResult:
        self.stats["not_needed"] += 1
        return TranslationResult(
            text=text,
            is_translated=False,
            outcome=TranslationOutcome.NOT_NEEDED,
            **base,
        )

    def _translated(
        self,
        text: str,
        base: Dict[str, Any],
        pivot_text: Optional[str] = None,
        cached: bool = False,
    ) -> TranslationResult:
        self.stats["translated"] += 1
        return TranslationResult(
            text=text,
            is_translated=True,
            outcome=TranslationOutcome.TRANSLATED,
            pivot_text=pivot_text,
            cached=cached,
            **base,
        )

    def _degraded(
        self,
        text: str,
        reason: DegradedReason,
        base: Dict[str, Any],
        pivot_text: Optional[str] = None,
    ) -> TranslationResult:
        self.stats["degraded"] += 1
        translation_degraded_total.labels(reason=reason.value).inc()
        logger.warning(
            f"Translation {base['source_language']} -> {base['target_language']} "
            f"degraded ({reason.value}): {redact_text(text)}"
        )
        return TranslationResult(
            text=text,
            is_translated=False,
            outcome=TranslationOutcome.DEGRADED,
            degraded_reason=reason,
            pivot_text=pivot_text,
            **base,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get executor statistics.

        Returns:
            Dict with request counts by outcome and model/cache usage.
        """
        requests = self.stats["requests"]
        return {
            **self.stats,
            "degraded_ratio": self.stats["degraded"] / requests if requests > 0 else 0,
        }
