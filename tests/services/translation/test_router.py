"""Tests for translation path selection."""

import pytest
from linguabridge.services.translation.models import TranslationPath
from linguabridge.services.translation.router import (
    TranslationRouter,
    route,
    route_languages,
)


class TestRouteDecisionTable:
    @pytest.mark.parametrize(
        "source,target,expected",
        [
            ("hindi", "hi", TranslationPath.PASSTHROUGH),
            ("english", "en-US", TranslationPath.PASSTHROUGH),
            ("english", "telugu", TranslationPath.DIRECT_MODEL),
            ("tamil", "english", TranslationPath.DIRECT_MODEL),
            ("english", "spanish", TranslationPath.DIRECT_MODEL),
            ("english", "tulu", TranslationPath.FALLBACK),
            ("konkani", "english", TranslationPath.FALLBACK),
            ("spanish", "french", TranslationPath.DIRECT_MODEL),
            ("telugu", "tamil", TranslationPath.PIVOT_THROUGH_ENGLISH),
            ("hindi", "spanish", TranslationPath.PIVOT_THROUGH_ENGLISH),
            ("german", "russian", TranslationPath.PIVOT_THROUGH_ENGLISH),
            ("tulu", "hindi", TranslationPath.PIVOT_THROUGH_ENGLISH),
            ("klingon", "english", TranslationPath.FALLBACK),
            ("hindi", "", TranslationPath.FALLBACK),
        ],
    )
    def test_route_languages(self, registry, source, target, expected):
        assert route_languages(registry, source, target) is expected

    def test_same_unsupported_language_passes_through(self, registry):
        assert route_languages(registry, "tulu", "tcy") is TranslationPath.PASSTHROUGH

    def test_route_is_pure_over_profiles(self, registry):
        hindi = registry.resolve("hi")

        assert route(None, hindi) is TranslationPath.FALLBACK
        assert route(hindi, None) is TranslationPath.FALLBACK
        assert route(hindi, hindi) is TranslationPath.PASSTHROUGH

    def test_same_language_always_passes_through(self, registry):
        for profile in registry.profiles():
            assert route(profile, profile) is TranslationPath.PASSTHROUGH


class TestTranslationRouter:
    def test_router_never_raises(self, registry):
        router = TranslationRouter(registry)

        assert router.route(None, None) is TranslationPath.FALLBACK
        assert router.route("hi", "te") is TranslationPath.PIVOT_THROUGH_ENGLISH
