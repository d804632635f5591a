"""Translation path selection."""

import logging
from typing import Optional

from linguabridge.metrics.translation_metrics import route_decisions_total
from linguabridge.services.translation.language_registry import (
    ENGLISH_ID,
    LanguageRegistry,
)
from linguabridge.services.translation.models import LanguageProfile, TranslationPath

logger = logging.getLogger(__name__)


def route(
    source: Optional[LanguageProfile], target: Optional[LanguageProfile]
) -> TranslationPath:
    """Choose how to get from ``source`` to ``target``.

    Rules are evaluated in order:

    1. Either side unresolved: FALLBACK
    2. Same language: PASSTHROUGH
    3. One side English, other model-supported: DIRECT_MODEL
    4. One side English, other unsupported: FALLBACK
    5. Both model-supported Latin-script languages: DIRECT_MODEL
    6. Anything else: PIVOT_THROUGH_ENGLISH
    """
    if source is None or target is None:
        return TranslationPath.FALLBACK

    if source.id == target.id:
        return TranslationPath.PASSTHROUGH

    if source.id == ENGLISH_ID or target.id == ENGLISH_ID:
        if source.model_supported and target.model_supported:
            return TranslationPath.DIRECT_MODEL
        return TranslationPath.FALLBACK

    if (
        source.model_supported
        and target.model_supported
        and source.is_latin
        and target.is_latin
    ):
        return TranslationPath.DIRECT_MODEL

    return TranslationPath.PIVOT_THROUGH_ENGLISH


def route_languages(
    registry: LanguageRegistry, source_id: Optional[str], target_id: Optional[str]
) -> TranslationPath:
    """Resolve two identifiers and route between them. Never raises."""
    return route(registry.resolve(source_id), registry.resolve(target_id))


class TranslationRouter:
    """Registry-bound router that records each decision."""

    def __init__(self, registry: Optional[LanguageRegistry] = None):
        self.registry = registry or LanguageRegistry()

    def route(
        self, source_id: Optional[str], target_id: Optional[str]
    ) -> TranslationPath:
        path = route_languages(self.registry, source_id, target_id)
        route_decisions_total.labels(path=path.value).inc()
        logger.debug(f"Routed {source_id} -> {target_id}: {path.value}")
        return path
