"""Tests for LanguageRegistry and the identifier normalisation rule."""

import pytest
from linguabridge.services.translation.language_registry import (
    LanguageRegistry,
    normalize_identifier,
)
from linguabridge.services.translation.models import LanguageProfile, Script


class TestNormalizeIdentifier:
    """normalize_identifier is the single place the matching rule lives."""

    def test_casefolds_and_trims(self):
        assert normalize_identifier("  HINDI ") == "hindi"

    def test_collapses_separators(self):
        assert normalize_identifier("hin_Deva") == "hin-deva"
        assert normalize_identifier("Bahasa   Indonesia") == "bahasa-indonesia"
        assert normalize_identifier("zh__-- Hans") == "zh-hans"

    def test_drops_combining_marks(self):
        assert normalize_identifier("Español") == "espanol"
        assert normalize_identifier("Français") == "francais"

    def test_empty_input_normalises_to_empty(self):
        assert normalize_identifier("   ") == ""
        assert normalize_identifier("--") == ""


class TestResolve:
    """Every accepted identifier form resolves to the same profile."""

    @pytest.mark.parametrize(
        "identifier", ["hindi", "hi", "Hindi", "hin_Deva", "हिन्दी", "HIN-DEVA", "hin"]
    )
    def test_hindi_identifiers_resolve_to_one_profile(self, registry, identifier):
        profile = registry.resolve(identifier)

        assert profile is not None
        assert profile.id == "hi"

    def test_region_suffix_is_dropped(self, registry):
        assert registry.resolve("hi-IN").id == "hi"
        assert registry.resolve("en_US").id == "en"
        assert registry.resolve("pt-BR").id == "pt"

    def test_aliases_resolve(self, registry):
        assert registry.resolve("farsi").id == "fa"
        assert registry.resolve("oriya").id == "or"
        assert registry.resolve("filipino").id == "tl"

    def test_unknown_identifiers_do_not_resolve(self, registry):
        assert registry.resolve("klingon") is None
        assert registry.resolve("") is None
        assert registry.resolve(None) is None
        assert registry.resolve(42) is None

    def test_profiles_are_immutable(self, registry):
        profile = registry.resolve("telugu")

        with pytest.raises(AttributeError):
            profile.id = "xx"


class TestLanguageQueries:
    def test_is_english(self, registry):
        assert registry.is_english("English")
        assert registry.is_english("en-GB")
        assert not registry.is_english("hindi")
        assert not registry.is_english("unknown-language")

    def test_is_same_language(self, registry):
        assert registry.is_same_language("hindi", "hi")
        assert registry.is_same_language("tel_Telu", "Telugu")
        assert not registry.is_same_language("hindi", "marathi")

    def test_unresolved_is_never_same_language(self, registry):
        """Even an unresolved identifier compared with itself is not the same."""
        assert not registry.is_same_language("klingon", "klingon")
        assert not registry.is_same_language("klingon", "hindi")

    def test_script_and_support(self, registry):
        assert registry.resolve("spanish").script is Script.LATIN
        assert registry.resolve("tamil").script is Script.NATIVE
        assert registry.resolve("tamil").script_name == "Tamil"
        assert registry.resolve("tulu").model_supported is False
        assert registry.resolve("konkani").model_supported is False

    def test_display_name_is_native_name(self, registry):
        assert registry.display_name("te") == "తెలుగు"
        assert registry.display_name("klingon") == "klingon"

    def test_canonical_id(self, registry):
        assert registry.canonical_id("Hindi") == "hi"
        assert registry.canonical_id("Some Dialect") == "some-dialect"

    def test_supported_by_model_excludes_unsupported(self, registry):
        supported = {p.id for p in registry.supported_by_model()}

        assert {"en", "hi", "te", "ta"} <= supported
        assert "tcy" not in supported
        assert "doi" not in supported

    def test_contains_and_len(self, registry):
        assert "hindi" in registry
        assert "klingon" not in registry
        assert len(registry) == len(registry.profiles())


class TestCustomRegistry:
    def test_duplicate_ids_rejected(self):
        profile = LanguageProfile(
            id="xx",
            display_name="Test",
            native_name="Test",
            script=Script.LATIN,
            model_supported=False,
        )

        with pytest.raises(ValueError):
            LanguageRegistry([profile, profile])

    def test_canonical_id_wins_over_alias(self):
        """An alias equal to another profile's id does not steal it."""
        first = LanguageProfile(
            id="aa",
            display_name="First",
            native_name="First",
            script=Script.LATIN,
            model_supported=True,
            aliases=("bb",),
        )
        second = LanguageProfile(
            id="bb",
            display_name="Second",
            native_name="Second",
            script=Script.LATIN,
            model_supported=True,
        )

        registry = LanguageRegistry([first, second])

        assert registry.resolve("bb").id == "bb"
        assert registry.resolve("first").id == "aa"
