"""Script detector: Latin-vs-native classification plus a best-effort language guess.

Pure and deterministic. Native text is guessed from Unicode block ranges,
Latin text from phonetic word lists for romanised Indian languages and from
European marker patterns.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import ClassVar, Dict, List, Optional, Tuple

from linguabridge.metrics.translation_metrics import script_detection_total
from linguabridge.services.translation.language_registry import (
    ENGLISH_ID,
    LanguageRegistry,
)
from linguabridge.services.translation.models import Script, ScriptDetection

logger = logging.getLogger(__name__)

LATIN_RATIO_THRESHOLD = 0.7
NATIVE_BLOCK_CONFIDENCE = 0.95
DEFAULT_ENGLISH_CONFIDENCE = 0.5
HINT_BOOST = 0.3

# (first, last, language id); kana is checked before Han separately
UNICODE_BLOCKS: Tuple[Tuple[int, int, str], ...] = (
    (0x0900, 0x097F, "hi"),  # Devanagari
    (0x0980, 0x09FF, "bn"),  # Bengali
    (0x0A00, 0x0A7F, "pa"),  # Gurmukhi
    (0x0A80, 0x0AFF, "gu"),  # Gujarati
    (0x0B00, 0x0B7F, "or"),  # Odia
    (0x0B80, 0x0BFF, "ta"),  # Tamil
    (0x0C00, 0x0C7F, "te"),  # Telugu
    (0x0C80, 0x0CFF, "kn"),  # Kannada
    (0x0D00, 0x0D7F, "ml"),  # Malayalam
    (0x0D80, 0x0DFF, "si"),  # Sinhala
    (0x0E00, 0x0E7F, "th"),  # Thai
    (0x0E80, 0x0EFF, "lo"),  # Lao
    (0x1000, 0x109F, "my"),  # Myanmar
    (0x1780, 0x17FF, "km"),  # Khmer
    (0x3040, 0x30FF, "ja"),  # Hiragana and Katakana
    (0xAC00, 0xD7AF, "ko"),  # Hangul syllables
    (0x1100, 0x11FF, "ko"),  # Hangul jamo
    (0x4E00, 0x9FFF, "zh"),  # CJK unified ideographs
    (0x0600, 0x06FF, "ar"),  # Arabic
    (0x0590, 0x05FF, "he"),  # Hebrew
    (0x0400, 0x04FF, "ru"),  # Cyrillic
    (0x0370, 0x03FF, "el"),  # Greek
    (0x0530, 0x058F, "hy"),  # Armenian
    (0x10A0, 0x10FF, "ka"),  # Georgian
    (0x1200, 0x137F, "am"),  # Ethiopic
)


def _block_language(ch: str) -> Optional[str]:
    code = ord(ch)
    for first, last, language_id in UNICODE_BLOCKS:
        if first <= code <= last:
            return language_id
    return None


def _is_latin_letter(ch: str) -> bool:
    """ASCII letters plus the accented Latin ranges used by European languages."""
    code = ord(ch)
    return (
        ("a" <= ch <= "z")
        or ("A" <= ch <= "Z")
        or 0x00C0 <= code <= 0x024F
        or 0x1E00 <= code <= 0x1EFF
    )


class ScriptDetector:
    """Classify text as Latin or native script and guess its language."""

    # Romanised Indian languages: marker function words score 1, content words 2
    PHONETIC_PATTERNS: ClassVar[Dict[str, Dict[str, frozenset]]] = {
        "hi": {
            "markers": frozenset(
                "kya kaise kab kahan kaun kyun aur mein hai hain tha thi hoga "
                "hogi kar karo karna jao aao bolo dekho suno".split()
            ),
            "words": frozenset(
                "namaste dhanyawad kripya acha theek bahut pyar dost bhai "
                "behan maa papa ghar kaam paani khana sona jaana".split()
            ),
        },
        "te": {
            "markers": frozenset(
                "emi ela eppudu ekkada evaru enduku mariyu nenu meeru undi "
                "unnaru cheppu chepandi randi poda".split()
            ),
            "words": frozenset(
                "namaskaram dhanyavadalu manchiga bagundi chala prema sneham "
                "anna akka amma nanna illu pani neeru bhojanam nidra "
                "vellali".split()
            ),
        },
        "ta": {
            "markers": frozenset(
                "enna eppadi eppo enga yaar mattum naan neenga irukku irukken "
                "sollu sollungal vaanga ponga".split()
            ),
            "words": frozenset(
                "vanakkam nandri nalla romba kadhal nanban amma appa veedu "
                "velai thanni saapadu thookkam pogalam".split()
            ),
        },
        "kn": {
            "markers": frozenset(
                "enu hege yavaga elli yaru yaake mattu naanu neevu ide "
                "iddare helu heliri banni hogi".split()
            ),
            "words": frozenset(
                "namaskara dhanyavadagalu chennagi tumba preeti gelaya mane "
                "kelasa oota nidde hogona".split()
            ),
        },
        "ml": {
            "markers": frozenset(
                "enthu engane eppol evide enthinau njan ningal undu undayo "
                "para parayoo varee".split()
            ),
            "words": frozenset(
                "nanni nallath valare koottukar chettan chechi achan vellam "
                "bhakshanam urakam pokam".split()
            ),
        },
        "mr": {
            "markers": frozenset(
                "kay kasa keva kuthe kon ani tumhi aahe aahes sang sanga "
                "jaa".split()
            ),
            "words": frozenset(
                "namaskar changle khup prem mitra dada tai aai baba jevan "
                "jhop jaauya".split()
            ),
        },
        "bn": {
            "markers": frozenset(
                "kemon kokhon kothay keno ebong ami tumi ache achho bolun "
                "eso esho".split()
            ),
            "words": frozenset(
                "dhanyabad bhalo onek bhalobasha bondhu didi bari kaj jol "
                "khabar ghum".split()
            ),
        },
        "gu": {
            "markers": frozenset(
                "kem kyare ane tame che chho kaho kahejo aavo aavjo jajo".split()
            ),
            "words": frozenset(
                "aabhar saru ghanu jaman jaiye".split()
            ),
        },
        "pa": {
            "markers": frozenset(
                "kivein kado kithe tusi dasso dasao aajo jaao".split()
            ),
            "words": frozenset(
                "dhanyawad changi yaar bhain pita neend chaliye".split()
            ),
        },
        "ur": {
            "markers": frozenset(
                "kya kaise kab kahan kaun kyun aur mein hai hain tha thi "
                "hoga hogi".split()
            ),
            "words": frozenset(
                "assalam shukriya meharbani mohabbat ammi abbu".split()
            ),
        },
    }

    # Checked in order; the first match wins
    EUROPEAN_MARKERS: ClassVar[List[Tuple[str, "re.Pattern[str]", float]]] = [
        (
            "vi",
            re.compile(r"[ăắằẳẵặơớờởỡợưứừửữựđảạẻẽẹỉịỏọủụỳỷỹỵ]", re.IGNORECASE),
            0.9,
        ),
        (
            "es",
            re.compile(
                r"[ñ¿¡]|\b(que|como|cuando|donde|por|para|esta|pero|muy|con)\b",
                re.IGNORECASE,
            ),
            0.8,
        ),
        (
            "fr",
            re.compile(
                r"[àâçèêëîïôùû]|\b(je|tu|il|elle|nous|vous|est|sont|avoir|dans|pour|avec|qui)\b",
                re.IGNORECASE,
            ),
            0.8,
        ),
        (
            "de",
            re.compile(
                r"[äöüß]|\b(ich|du|er|wir|ihr|ist|sind|haben|sein|und|oder|aber|mit|für)\b",
                re.IGNORECASE,
            ),
            0.8,
        ),
        (
            "pt",
            re.compile(
                r"[ãõ]|\b(quando|onde|mas|muito|não|você)\b",
                re.IGNORECASE,
            ),
            0.8,
        ),
        (
            "it",
            re.compile(
                r"\b(che|come|dove|perché|questa|molto|non|sono|sei|siamo)\b",
                re.IGNORECASE,
            ),
            0.7,
        ),
        (
            "tr",
            re.compile(
                # Case-sensitive letters: under IGNORECASE dotless i matches "i"
                r"[ğĞıİşŞ]|(?i:\b(bir|bu|ve|ile|için|var|yok|evet|hayır|merhaba)\b)",
            ),
            0.8,
        ),
        (
            "id",
            re.compile(
                r"\b(apa|bagaimana|kapan|dimana|siapa|mengapa|dan|atau|tapi|dengan|untuk|ini|itu|yang|adalah)\b",
                re.IGNORECASE,
            ),
            0.7,
        ),
    ]

    _WORD_SPLIT = re.compile(r"[^\w]+", re.UNICODE)

    def __init__(
        self,
        min_confidence: float = 0.3,
        registry: Optional[LanguageRegistry] = None,
    ):
        """Initialize the detector.

        Args:
            min_confidence: Guesses below this confidence are not reported.
            registry: Used to resolve ``hint_language`` identifiers.
        """
        if not 0.0 <= min_confidence <= 1.0:
            raise ValueError(
                f"min_confidence must be between 0.0 and 1.0, got {min_confidence}"
            )
        self.min_confidence = min_confidence
        self.registry = registry or LanguageRegistry()

    def detect(self, text: str, hint_language: Optional[str] = None) -> ScriptDetection:
        """Classify ``text`` and guess its language.

        Never raises; non-string input is treated as empty.
        """
        if not isinstance(text, str) or not text.strip():
            return self._record(ScriptDetection(script=Script.NATIVE))

        letters = [ch for ch in text if unicodedata.category(ch).startswith("L")]
        if not letters:
            return self._record(ScriptDetection(script=Script.NATIVE))

        latin_count = sum(1 for ch in letters if _is_latin_letter(ch))
        if latin_count / len(letters) > LATIN_RATIO_THRESHOLD:
            return self._record(self._detect_latin(text, hint_language))
        return self._record(self._detect_native(letters))

    def _detect_native(self, letters: List[str]) -> ScriptDetection:
        counts: Dict[str, int] = {}
        for ch in letters:
            language_id = _block_language(ch)
            if language_id:
                counts[language_id] = counts.get(language_id, 0) + 1

        if not counts:
            return ScriptDetection(script=Script.NATIVE)

        # Japanese mixes kana with Han; any kana decides it
        if "ja" in counts:
            guess = "ja"
        else:
            guess = max(counts, key=lambda k: counts[k])
        return self._guess(Script.NATIVE, guess, NATIVE_BLOCK_CONFIDENCE, False)

    def _detect_latin(
        self, text: str, hint_language: Optional[str]
    ) -> ScriptDetection:
        scores = self._phonetic_scores(text)

        hint_id = None
        if hint_language:
            profile = self.registry.resolve(hint_language)
            hint_id = profile.id if profile else None

        best_id = None
        best_confidence = 0.0
        for language_id, score in scores.items():
            confidence = min(score / 5, 1.0)
            if language_id == hint_id:
                confidence = min(confidence + HINT_BOOST, 1.0)
            if confidence > best_confidence:
                best_id, best_confidence = language_id, confidence

        if best_id is not None and best_confidence >= self.min_confidence:
            return ScriptDetection(
                script=Script.LATIN,
                guessed_language=best_id,
                confidence=best_confidence,
                is_phonetic=True,
            )

        for language_id, pattern, confidence in self.EUROPEAN_MARKERS:
            if pattern.search(text):
                return self._guess(Script.LATIN, language_id, confidence, False)

        return self._guess(Script.LATIN, ENGLISH_ID, DEFAULT_ENGLISH_CONFIDENCE, False)

    def _phonetic_scores(self, text: str) -> Dict[str, int]:
        words = [w for w in self._WORD_SPLIT.split(text.casefold()) if w]
        scores: Dict[str, int] = {}
        for language_id, table in self.PHONETIC_PATTERNS.items():
            score = 0
            for word in words:
                if word in table["words"]:
                    score += 2
                elif word in table["markers"]:
                    score += 1
            if score > 0:
                scores[language_id] = score
        return scores

    def _guess(
        self, script: Script, language_id: str, confidence: float, is_phonetic: bool
    ) -> ScriptDetection:
        if confidence < self.min_confidence:
            return ScriptDetection(script=script, confidence=confidence)
        return ScriptDetection(
            script=script,
            guessed_language=language_id,
            confidence=confidence,
            is_phonetic=is_phonetic,
        )

    @staticmethod
    def _record(detection: ScriptDetection) -> ScriptDetection:
        script_detection_total.labels(
            script=detection.script.value,
            guess=detection.guessed_language or "none",
        ).inc()
        return detection
