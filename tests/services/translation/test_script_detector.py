"""Tests for ScriptDetector classification and language guessing."""

import pytest
from linguabridge.services.translation.models import Script
from linguabridge.services.translation.script_detector import (
    DEFAULT_ENGLISH_CONFIDENCE,
    NATIVE_BLOCK_CONFIDENCE,
    ScriptDetector,
)


@pytest.fixture
def detector(registry):
    return ScriptDetector(min_confidence=0.3, registry=registry)


class TestScriptClassification:
    """Latin vs native decision by letter ratio."""

    def test_empty_input_is_native_without_guess(self, detector):
        for text in ["", "   ", "\n\t"]:
            result = detector.detect(text)
            assert result.script is Script.NATIVE
            assert result.guessed_language is None

    def test_no_letters_is_native_without_guess(self, detector):
        result = detector.detect("1234 !!! ??")

        assert result.script is Script.NATIVE
        assert result.guessed_language is None

    def test_ascii_text_is_latin(self, detector):
        assert detector.detect("Hello there, friend").script is Script.LATIN

    def test_digits_and_punctuation_are_ignored(self, detector):
        assert detector.detect("ok!!! 12345 ... ?").script is Script.LATIN
        assert detector.detect("नमस्ते 12345!!!").script is Script.NATIVE

    def test_mostly_native_text_is_native(self, detector):
        assert detector.detect("నమస్కారం ok").script is Script.NATIVE

    def test_non_string_input_never_raises(self, detector):
        assert detector.detect(None).script is Script.NATIVE


class TestNativeGuessing:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("नमस्ते", "hi"),
            ("నమస్కారం", "te"),
            ("வணக்கம்", "ta"),
            ("ನಮಸ್ಕಾರ", "kn"),
            ("നമസ്കാരം", "ml"),
            ("নমস্কার", "bn"),
            ("ਸਤ ਸ੍ਰੀ ਅਕਾਲ", "pa"),
            ("નમસ્તે", "gu"),
            ("ସ୍ୱାଗତ", "or"),
            ("ආයුබෝවන්", "si"),
            ("สวัสดี", "th"),
            ("안녕하세요", "ko"),
            ("你好", "zh"),
            ("مرحبا", "ar"),
            ("שלום", "he"),
            ("Привет", "ru"),
            ("Γειά σου", "el"),
            ("Բարեւ", "hy"),
            ("გამარჯობა", "ka"),
        ],
    )
    def test_unicode_block_guess(self, detector, text, expected):
        result = detector.detect(text)

        assert result.script is Script.NATIVE
        assert result.guessed_language == expected
        assert result.confidence == NATIVE_BLOCK_CONFIDENCE
        assert result.is_phonetic is False

    def test_kana_wins_over_han(self, detector):
        """Japanese mixes kanji with kana; any kana means Japanese."""
        assert detector.detect("日本語を話します").guessed_language == "ja"


class TestLatinGuessing:
    def test_romanised_hindi_is_phonetic(self, detector):
        result = detector.detect("namaste dost")

        assert result.script is Script.LATIN
        assert result.guessed_language == "hi"
        assert result.is_phonetic is True
        assert result.confidence == pytest.approx(0.8)

    def test_romanised_telugu(self, detector):
        result = detector.detect("namaskaram anna, bagundi")

        assert result.guessed_language == "te"
        assert result.confidence == pytest.approx(1.0)

    def test_romanised_tamil(self, detector):
        assert detector.detect("vanakkam nanban").guessed_language == "ta"

    def test_phonetic_confidence_is_capped(self, detector):
        result = detector.detect("namaste dost bhai ghar paani khana")

        assert result.confidence == 1.0

    def test_hint_boosts_matching_language(self, detector):
        """'kya' is shared by Hindi and Urdu; the hint decides."""
        without_hint = detector.detect("kya")
        with_hint = detector.detect("kya", hint_language="urdu")

        assert without_hint.is_phonetic is False
        assert with_hint.guessed_language == "ur"
        assert with_hint.confidence == pytest.approx(0.5)

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Tôi yêu bạn", "vi"),
            ("¿Dónde está la estación?", "es"),
            ("Je suis très content", "fr"),
            ("Ich bin müde", "de"),
            ("Não sei, muito obrigado", "pt"),
            ("Merhaba arkadaşım", "tr"),
        ],
    )
    def test_european_markers(self, detector, text, expected):
        result = detector.detect(text)

        assert result.script is Script.LATIN
        assert result.guessed_language == expected
        assert result.is_phonetic is False

    def test_defaults_to_english(self, detector):
        result = detector.detect("Hello, how are you doing today?")

        assert result.guessed_language == "en"
        assert result.confidence == DEFAULT_ENGLISH_CONFIDENCE

    @pytest.mark.parametrize("text", ["I will call you", "this is it", "Is it raining?"])
    def test_plain_i_is_not_turkish(self, detector, text):
        """Dotless i must not match ASCII "i" through case folding."""
        result = detector.detect(text)

        assert result.guessed_language == "en"

    def test_turkish_capital_letters(self, detector):
        assert detector.detect("İstanbul ŞEHRİ").guessed_language == "tr"

    def test_low_confidence_guess_is_not_reported(self, registry):
        strict = ScriptDetector(min_confidence=0.9, registry=registry)

        result = strict.detect("Hello friend")

        assert result.script is Script.LATIN
        assert result.guessed_language is None


class TestDetectorContract:
    def test_deterministic(self, detector):
        texts = ["namaste dost", "नमस्ते", "Hello", "", "Ich bin hier"]

        first = [detector.detect(t) for t in texts]
        second = [detector.detect(t) for t in texts]

        assert first == second

    def test_rejects_out_of_range_threshold(self, registry):
        with pytest.raises(ValueError):
            ScriptDetector(min_confidence=1.5, registry=registry)
