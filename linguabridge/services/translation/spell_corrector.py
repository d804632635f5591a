"""Spell corrections for romanised chat input.

Common misspellings of romanised Hindi, Telugu and Tamil words are fixed
before transliteration so the native-script output spells the intended word.
Latin-script languages get a table of frequent English typos.
"""

import re
from typing import ClassVar, Dict, List, Optional, Tuple

from linguabridge.services.translation.language_registry import LanguageRegistry

_LATIN_RUN = re.compile(r"[a-zA-Z]{3,}")
_EDGE_PUNCTUATION = ".,!?;:'\"()"


class SpellCorrector:
    """Word-level corrections keyed by canonical language id."""

    HINDI_CORRECTIONS: ClassVar[Dict[str, str]] = {
        "namste": "namaste",
        "namestey": "namaste",
        "namasthe": "namaste",
        "namaskaar": "namaskar",
        "dhanyvaad": "dhanyavaad",
        "dhanyawad": "dhanyavaad",
        "dhanyabad": "dhanyavaad",
        "sukria": "shukriya",
        "acha": "accha",
        "thik": "theek",
        "teek": "theek",
        "kese": "kaise",
        "kaisey": "kaise",
        "kiyu": "kyon",
        "kyo": "kyon",
        "nahi": "nahin",
        "nai": "nahin",
        "ap": "aap",
        "karunga": "karoonga",
        "jaenge": "jaayenge",
        "jayenge": "jaayenge",
        "ayega": "aayega",
        "pyar": "pyaar",
        "dosth": "dost",
    }

    TELUGU_CORRECTIONS: ClassVar[Dict[str, str]] = {
        "namaskaramulu": "namaskaralu",
        "elunnaru": "ela unnaru",
        "bagunnara": "baagunnaaraa",
        "bagunara": "baagunnaaraa",
        "bagundhi": "baagundi",
        "bagundi": "baagundi",
        "dhanyavadalu": "dhanyavaadaalu",
        "dhanyavadamulu": "dhanyavaadaalu",
        "neenu": "nenu",
        "miru": "meeru",
        "endkuu": "enduku",
        "avnu": "avunu",
        "kadhu": "kaadu",
        "kadu": "kaadu",
        "kaadhu": "kaadu",
        "randi": "raandi",
        "vacchindi": "vachindi",
        "chestuna": "chestunnaanu",
        "chepandi": "cheppandi",
        "chudu": "choodu",
        "chodu": "choodu",
    }

    TAMIL_CORRECTIONS: ClassVar[Dict[str, str]] = {
        "vanakam": "vanakkam",
        "nanri": "nandri",
        "epdi": "eppadi",
        "nala": "nalla",
        "iruken": "irukken",
        "irukireen": "irukkireen",
        "nan": "naan",
        "ninga": "neenga",
        "ena": "enna",
        "yenna": "enna",
        "yen": "yaen",
        "amam": "aamaam",
        "illa": "illai",
        "ile": "illai",
        "vanthen": "vandhen",
        "poom": "povom",
        "kadhal": "kaadhal",
    }

    UNIVERSAL_LATIN_CORRECTIONS: ClassVar[Dict[str, str]] = {
        "teh": "the",
        "hte": "the",
        "taht": "that",
        "adn": "and",
        "yuo": "you",
        "nto": "not",
        "wiht": "with",
        "ahve": "have",
        "jsut": "just",
        "liek": "like",
        "konw": "know",
        "watn": "want",
        "thier": "their",
        "recieve": "receive",
        "beleive": "believe",
        "occured": "occurred",
        "definately": "definitely",
        "seperate": "separate",
        "untill": "until",
        "tommorrow": "tomorrow",
        "neccessary": "necessary",
        "wierd": "weird",
        "freind": "friend",
        "truely": "truly",
        "begining": "beginning",
        "comming": "coming",
        "completly": "completely",
        "enviroment": "environment",
        "goverment": "government",
        "immediatly": "immediately",
        "intresting": "interesting",
        "realy": "really",
        "suprise": "surprise",
        "totaly": "totally",
        "writting": "writing",
    }

    def __init__(self, registry: Optional[LanguageRegistry] = None):
        self.registry = registry or LanguageRegistry()
        self.tables: Dict[str, Dict[str, str]] = {
            "hi": self.HINDI_CORRECTIONS,
            "te": self.TELUGU_CORRECTIONS,
            "ta": self.TAMIL_CORRECTIONS,
        }

    def corrections_for(self, language_id: str) -> Dict[str, str]:
        """Correction table for a language.

        Native-script languages without their own table get none; Latin-script
        languages fall back to the universal typo table.
        """
        profile = self.registry.resolve(language_id)
        if profile is None:
            return {}
        if profile.id in self.tables:
            return self.tables[profile.id]
        if profile.is_latin:
            return self.UNIVERSAL_LATIN_CORRECTIONS
        return {}

    def apply(self, text: str, language_id: str) -> Tuple[str, List[str]]:
        """Apply word-level corrections.

        Args:
            text: Romanised input text.
            language_id: Language the text is meant to be in.

        Returns:
            Tuple of (corrected_text, corrections) where corrections are
            ``"old -> new"`` strings in input order. Whitespace runs in the
            input are preserved; uncorrected words keep their case.
        """
        table = self.corrections_for(language_id)
        if not table or not text:
            return text, []

        corrections: List[str] = []
        parts = re.split(r"(\s+)", text)
        for index, part in enumerate(parts):
            if not part or part.isspace():
                continue
            core = part.strip(_EDGE_PUNCTUATION)
            if not core:
                continue
            replacement = table.get(core.lower())
            if replacement is None or replacement == core.lower():
                continue
            start = part.find(core)
            parts[index] = part[:start] + replacement + part[start + len(core) :]
            corrections.append(f"{core.lower()} -> {replacement}")

        return "".join(parts), corrections

    def suggest(self, word: str, language_id: str, limit: int = 3) -> List[str]:
        """Suggest up to ``limit`` corrections for a single word."""
        table = self.corrections_for(language_id)
        lower = word.lower()
        suggestions: List[str] = []
        if lower in table:
            suggestions.append(table[lower])
        for key, value in table.items():
            if key != lower and _is_similar(lower, key) and value not in suggestions:
                suggestions.append(value)
        return suggestions[:limit]


def _is_similar(a: str, b: str) -> bool:
    if abs(len(a) - len(b)) > 2:
        return False
    shorter, longer = (a, b) if len(a) < len(b) else (b, a)
    matches = sum(1 for i, ch in enumerate(shorter) if ch == longer[i])
    return matches >= len(shorter) * 0.7


def validate_transliteration(input_text: str, output_text: str) -> Tuple[bool, List[str]]:
    """Check native-script output for signs of a failed conversion.

    Returns:
        Tuple of (is_valid, errors).
    """
    errors: List[str] = []

    leftovers = _LATIN_RUN.findall(output_text)
    if leftovers:
        errors.append(f"Unconverted text detected: {', '.join(leftovers)}")

    if input_text.strip() and not output_text.strip():
        errors.append("Empty output for non-empty input")

    if "\ufffd" in output_text:
        errors.append("Invalid Unicode characters detected")

    return not errors, errors
