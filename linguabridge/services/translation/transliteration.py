"""Transliteration engine: romanised (Latin) text to a language's native script.

Conversion is a greedy longest match (up to four Latin characters) over a
per-script map. Vowels following a consonant become dependent vowel signs,
consecutive consonants are joined with the script's virama, and digits map to
native digits. Failures never raise: the original text comes back with a
degraded reason.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Optional

from linguabridge.metrics.translation_metrics import transliteration_total
from linguabridge.services.translation.language_registry import LanguageRegistry
from linguabridge.services.translation.models import (
    DegradedReason,
    Script,
    TransliterationResult,
)
from linguabridge.services.translation.script_detector import ScriptDetector
from linguabridge.services.translation.spell_corrector import validate_transliteration

logger = logging.getLogger(__name__)

MAX_MATCH_LENGTH = 4

# A capital followed only by lower-case letters is auto-capitalisation, not retroflex
_CAPITALISED_WORD = re.compile(r"\b([A-Z])([a-z]+)\b")
_VOWEL_INITIALS = "aeiou"


@dataclass(frozen=True)
class ScriptMap:
    """Romanised keys to native characters for one writing system."""

    letters: Dict[str, str]
    vowel_signs: Dict[str, str] = field(default_factory=dict)
    digits: str = ""
    virama: str = ""


DEVANAGARI = ScriptMap(
    letters={
        "a": "अ", "aa": "आ", "i": "इ", "ee": "ई", "ii": "ई", "u": "उ", "oo": "ऊ", "uu": "ऊ",
        "e": "ए", "ai": "ऐ", "o": "ओ", "au": "औ", "ou": "औ",
        "k": "क", "kh": "ख", "g": "ग", "gh": "घ", "ng": "ङ",
        "ch": "च", "chh": "छ", "j": "ज", "jh": "झ", "ny": "ञ",
        "T": "ट", "Th": "ठ", "D": "ड", "Dh": "ढ", "N": "ण",
        "t": "त", "th": "थ", "d": "द", "dh": "ध", "n": "न",
        "p": "प", "ph": "फ", "f": "फ", "b": "ब", "bh": "भ", "m": "म",
        "y": "य", "r": "र", "l": "ल", "v": "व", "w": "व",
        "sh": "श", "shh": "ष", "s": "स", "h": "ह",
        "ksh": "क्ष", "tr": "त्र", "gy": "ज्ञ",
        "q": "क़", "x": "क्स", "z": "ज़",
        ".": "।", "|": "।", "||": "॥",
    },
    vowel_signs={
        "a": "", "aa": "ा", "i": "ि", "ee": "ी", "ii": "ी", "u": "ु", "oo": "ू", "uu": "ू",
        "e": "े", "ai": "ै", "o": "ो", "au": "ौ", "ou": "ौ",
    },
    digits="०१२३४५६७८९",
    virama="्",
)

TELUGU = ScriptMap(
    letters={
        "a": "అ", "aa": "ఆ", "i": "ఇ", "ee": "ఈ", "ii": "ఈ", "u": "ఉ", "oo": "ఊ", "uu": "ఊ",
        "e": "ఎ", "ae": "ఏ", "ai": "ఐ", "o": "ఒ", "oe": "ఓ", "au": "ఔ", "ou": "ఔ",
        "k": "క", "kh": "ఖ", "g": "గ", "gh": "ఘ", "ng": "ఙ",
        "ch": "చ", "chh": "ఛ", "j": "జ", "jh": "ఝ", "ny": "ఞ",
        "T": "ట", "Th": "ఠ", "D": "డ", "Dh": "ఢ", "N": "ణ",
        "t": "త", "th": "థ", "d": "ద", "dh": "ధ", "n": "న",
        "p": "ప", "ph": "ఫ", "f": "ఫ", "b": "బ", "bh": "భ", "m": "మ",
        "y": "య", "r": "ర", "l": "ల", "v": "వ", "w": "వ",
        "sh": "శ", "shh": "ష", "s": "స", "h": "హ",
        "L": "ళ", "R": "ఱ",
    },
    vowel_signs={
        "a": "", "aa": "ా", "i": "ి", "ee": "ీ", "ii": "ీ", "u": "ు", "oo": "ూ", "uu": "ూ",
        "e": "ె", "ae": "ే", "ai": "ై", "o": "ొ", "oe": "ో", "au": "ౌ", "ou": "ౌ",
    },
    digits="౦౧౨౩౪౫౬౭౮౯",
    virama="్",
)

TAMIL = ScriptMap(
    letters={
        "a": "அ", "aa": "ஆ", "i": "இ", "ee": "ஈ", "ii": "ஈ", "u": "உ", "oo": "ஊ", "uu": "ஊ",
        "e": "எ", "ae": "ஏ", "ai": "ஐ", "o": "ஒ", "oe": "ஓ", "au": "ஔ", "ou": "ஔ",
        "k": "க", "g": "க", "ng": "ங",
        "ch": "ச", "j": "ஜ", "ny": "ஞ",
        "T": "ட", "D": "ட", "N": "ண",
        "t": "த", "d": "த", "n": "ந", "nn": "ன",
        "p": "ப", "b": "ப", "m": "ம",
        "y": "ய", "r": "ர", "R": "ற", "l": "ல", "L": "ள", "zh": "ழ",
        "v": "வ", "w": "வ",
        "sh": "ஷ", "s": "ச", "h": "ஹ",
    },
    vowel_signs={
        "a": "", "aa": "ா", "i": "ி", "ee": "ீ", "ii": "ீ", "u": "ு", "oo": "ூ", "uu": "ூ",
        "e": "ெ", "ae": "ே", "ai": "ை", "o": "ொ", "oe": "ோ", "au": "ௌ", "ou": "ௌ",
    },
    digits="௦௧௨௩௪௫௬௭௮௯",
    virama="்",
)

KANNADA = ScriptMap(
    letters={
        "a": "ಅ", "aa": "ಆ", "i": "ಇ", "ee": "ಈ", "ii": "ಈ", "u": "ಉ", "oo": "ಊ", "uu": "ಊ",
        "e": "ಎ", "ae": "ಏ", "ai": "ಐ", "o": "ಒ", "oe": "ಓ", "au": "ಔ", "ou": "ಔ",
        "k": "ಕ", "kh": "ಖ", "g": "ಗ", "gh": "ಘ", "ng": "ಙ",
        "ch": "ಚ", "chh": "ಛ", "j": "ಜ", "jh": "ಝ", "ny": "ಞ",
        "T": "ಟ", "Th": "ಠ", "D": "ಡ", "Dh": "ಢ", "N": "ಣ",
        "t": "ತ", "th": "ಥ", "d": "ದ", "dh": "ಧ", "n": "ನ",
        "p": "ಪ", "ph": "ಫ", "f": "ಫ", "b": "ಬ", "bh": "ಭ", "m": "ಮ",
        "y": "ಯ", "r": "ರ", "l": "ಲ", "v": "ವ", "w": "ವ",
        "sh": "ಶ", "shh": "ಷ", "s": "ಸ", "h": "ಹ",
        "L": "ಳ",
    },
    vowel_signs={
        "a": "", "aa": "ಾ", "i": "ಿ", "ee": "ೀ", "ii": "ೀ", "u": "ು", "oo": "ೂ", "uu": "ೂ",
        "e": "ೆ", "ae": "ೇ", "ai": "ೈ", "o": "ೊ", "oe": "ೋ", "au": "ೌ", "ou": "ೌ",
    },
    digits="೦೧೨೩೪೫೬೭೮೯",
    virama="್",
)

MALAYALAM = ScriptMap(
    letters={
        "a": "അ", "aa": "ആ", "i": "ഇ", "ee": "ഈ", "ii": "ഈ", "u": "ഉ", "oo": "ഊ", "uu": "ഊ",
        "e": "എ", "ae": "ഏ", "ai": "ഐ", "o": "ഒ", "oe": "ഓ", "au": "ഔ", "ou": "ഔ",
        "k": "ക", "kh": "ഖ", "g": "ഗ", "gh": "ഘ", "ng": "ങ",
        "ch": "ച", "chh": "ഛ", "j": "ജ", "jh": "ഝ", "ny": "ഞ",
        "T": "ട", "Th": "ഠ", "D": "ഡ", "Dh": "ഢ", "N": "ണ",
        "t": "ത", "th": "ഥ", "d": "ദ", "dh": "ധ", "n": "ന",
        "p": "പ", "ph": "ഫ", "f": "ഫ", "b": "ബ", "bh": "ഭ", "m": "മ",
        "y": "യ", "r": "ര", "l": "ല", "v": "വ", "w": "വ",
        "sh": "ശ", "shh": "ഷ", "s": "സ", "h": "ഹ",
        "L": "ള", "zh": "ഴ", "R": "റ",
    },
    vowel_signs={
        "a": "", "aa": "ാ", "i": "ി", "ee": "ീ", "ii": "ീ", "u": "ു", "oo": "ൂ", "uu": "ൂ",
        "e": "െ", "ae": "േ", "ai": "ൈ", "o": "ൊ", "oe": "ോ", "au": "ൌ", "ou": "ൌ",
    },
    digits="൦൧൨൩൪൫൬൭൮൯",
    virama="്",
)

BENGALI = ScriptMap(
    letters={
        "a": "অ", "aa": "আ", "i": "ই", "ee": "ঈ", "ii": "ঈ", "u": "উ", "oo": "ঊ", "uu": "ঊ",
        "e": "এ", "ai": "ঐ", "o": "ও", "au": "ঔ", "ou": "ঔ",
        "k": "ক", "kh": "খ", "g": "গ", "gh": "ঘ", "ng": "ঙ",
        "ch": "চ", "chh": "ছ", "j": "জ", "jh": "ঝ", "ny": "ঞ",
        "T": "ট", "Th": "ঠ", "D": "ড", "Dh": "ঢ", "N": "ণ",
        "t": "ত", "th": "থ", "d": "দ", "dh": "ধ", "n": "ন",
        "p": "প", "ph": "ফ", "f": "ফ", "b": "ব", "bh": "ভ", "m": "ম",
        "y": "য", "r": "র", "l": "ল", "v": "ব", "w": "ও",
        "sh": "শ", "shh": "ষ", "s": "স", "h": "হ",
    },
    vowel_signs={
        "a": "", "aa": "া", "i": "ি", "ee": "ী", "ii": "ী", "u": "ু", "oo": "ূ", "uu": "ূ",
        "e": "ে", "ai": "ৈ", "o": "ো", "au": "ৌ", "ou": "ৌ",
    },
    digits="০১২৩৪৫৬৭৮৯",
    virama="্",
)

GUJARATI = ScriptMap(
    letters={
        "a": "અ", "aa": "આ", "i": "ઇ", "ee": "ઈ", "ii": "ઈ", "u": "ઉ", "oo": "ઊ", "uu": "ઊ",
        "e": "એ", "ai": "ઐ", "o": "ઓ", "au": "ઔ", "ou": "ઔ",
        "k": "ક", "kh": "ખ", "g": "ગ", "gh": "ઘ", "ng": "ઙ",
        "ch": "ચ", "chh": "છ", "j": "જ", "jh": "ઝ", "ny": "ઞ",
        "T": "ટ", "Th": "ઠ", "D": "ડ", "Dh": "ઢ", "N": "ણ",
        "t": "ત", "th": "થ", "d": "દ", "dh": "ધ", "n": "ન",
        "p": "પ", "ph": "ફ", "f": "ફ", "b": "બ", "bh": "ભ", "m": "મ",
        "y": "ય", "r": "ર", "l": "લ", "v": "વ", "w": "વ",
        "sh": "શ", "shh": "ષ", "s": "સ", "h": "હ",
        "L": "ળ",
    },
    vowel_signs={
        "a": "", "aa": "ા", "i": "િ", "ee": "ી", "ii": "ી", "u": "ુ", "oo": "ૂ", "uu": "ૂ",
        "e": "ે", "ai": "ૈ", "o": "ો", "au": "ૌ", "ou": "ૌ",
    },
    digits="૦૧૨૩૪૫૬૭૮૯",
    virama="્",
)

GURMUKHI = ScriptMap(
    letters={
        "a": "ਅ", "aa": "ਆ", "i": "ਇ", "ee": "ਈ", "ii": "ਈ", "u": "ਉ", "oo": "ਊ", "uu": "ਊ",
        "e": "ਏ", "ai": "ਐ", "o": "ਓ", "au": "ਔ", "ou": "ਔ",
        "k": "ਕ", "kh": "ਖ", "g": "ਗ", "gh": "ਘ", "ng": "ਙ",
        "ch": "ਚ", "chh": "ਛ", "j": "ਜ", "jh": "ਝ", "ny": "ਞ",
        "T": "ਟ", "Th": "ਠ", "D": "ਡ", "Dh": "ਢ", "N": "ਣ",
        "t": "ਤ", "th": "ਥ", "d": "ਦ", "dh": "ਧ", "n": "ਨ",
        "p": "ਪ", "ph": "ਫ", "f": "ਫ਼", "b": "ਬ", "bh": "ਭ", "m": "ਮ",
        "y": "ਯ", "r": "ਰ", "l": "ਲ", "v": "ਵ", "w": "ਵ",
        "sh": "ਸ਼", "s": "ਸ", "h": "ਹ",
        "L": "ਲ਼",
    },
    vowel_signs={
        "a": "", "aa": "ਾ", "i": "ਿ", "ee": "ੀ", "ii": "ੀ", "u": "ੁ", "oo": "ੂ", "uu": "ੂ",
        "e": "ੇ", "ai": "ੈ", "o": "ੋ", "au": "ੌ", "ou": "ੌ",
    },
    digits="੦੧੨੩੪੫੬੭੮੯",
    virama="੍",
)

ODIA = ScriptMap(
    letters={
        "a": "ଅ", "aa": "ଆ", "i": "ଇ", "ee": "ଈ", "ii": "ଈ", "u": "ଉ", "oo": "ଊ", "uu": "ଊ",
        "e": "ଏ", "ai": "ଐ", "o": "ଓ", "au": "ଔ", "ou": "ଔ",
        "k": "କ", "kh": "ଖ", "g": "ଗ", "gh": "ଘ", "ng": "ଙ",
        "ch": "ଚ", "chh": "ଛ", "j": "ଜ", "jh": "ଝ", "ny": "ଞ",
        "T": "ଟ", "Th": "ଠ", "D": "ଡ", "Dh": "ଢ", "N": "ଣ",
        "t": "ତ", "th": "ଥ", "d": "ଦ", "dh": "ଧ", "n": "ନ",
        "p": "ପ", "ph": "ଫ", "f": "ଫ", "b": "ବ", "bh": "ଭ", "m": "ମ",
        "y": "ଯ", "r": "ର", "l": "ଲ", "v": "ଵ", "w": "ଵ",
        "sh": "ଶ", "shh": "ଷ", "s": "ସ", "h": "ହ",
        "L": "ଳ",
    },
    vowel_signs={
        "a": "", "aa": "ା", "i": "ି", "ee": "ୀ", "ii": "ୀ", "u": "ୁ", "oo": "ୂ", "uu": "ୂ",
        "e": "େ", "ai": "ୈ", "o": "ୋ", "au": "ୌ", "ou": "ୌ",
    },
    digits="୦୧୨୩୪୫୬୭୮୯",
    virama="୍",
)

SINHALA = ScriptMap(
    letters={
        "a": "අ", "aa": "ආ", "i": "ඉ", "ee": "ඊ", "ii": "ඊ", "u": "උ", "oo": "ඌ", "uu": "ඌ",
        "e": "එ", "ai": "ඓ", "o": "ඔ", "au": "ඖ", "ou": "ඖ",
        "k": "ක", "kh": "ඛ", "g": "ග", "gh": "ඝ", "ng": "ඞ",
        "ch": "ච", "chh": "ඡ", "j": "ජ", "jh": "ඣ", "ny": "ඤ",
        "T": "ට", "Th": "ඨ", "D": "ඩ", "Dh": "ඪ", "N": "ණ",
        "t": "ත", "th": "ථ", "d": "ද", "dh": "ධ", "n": "න",
        "p": "ප", "ph": "ඵ", "f": "ෆ", "b": "බ", "bh": "භ", "m": "ම",
        "y": "ය", "r": "ර", "l": "ල", "v": "ව", "w": "ව",
        "sh": "ශ", "shh": "ෂ", "s": "ස", "h": "හ",
    },
    vowel_signs={
        "a": "", "aa": "ා", "i": "ි", "ee": "ී", "ii": "ී", "u": "ු", "oo": "ූ", "uu": "ූ",
        "e": "ෙ", "ai": "ෛ", "o": "ො", "au": "ෞ", "ou": "ෞ",
    },
    virama="්",
)

# Perso-Arabic (Urdu, Arabic, Persian, Sindhi, Kashmiri)
ARABIC = ScriptMap(
    letters={
        "a": "ا", "aa": "آ", "i": "ی", "ee": "ی", "u": "و", "oo": "و",
        "e": "ے", "ai": "ے", "o": "و", "au": "و",
        "b": "ب", "p": "پ", "t": "ت", "th": "ث", "s": "س", "j": "ج",
        "ch": "چ", "h": "ح", "kh": "خ", "d": "د", "dh": "ذ", "r": "ر",
        "z": "ز", "zh": "ژ", "sh": "ش", "gh": "غ", "f": "ف", "q": "ق",
        "k": "ک", "g": "گ", "l": "ل", "m": "م", "n": "ن", "w": "و",
        "v": "و", "y": "ی", "N": "ں",
    },
    digits="۰۱۲۳۴۵۶۷۸۹",
)

THAI = ScriptMap(
    letters={
        "k": "ก", "kh": "ข", "g": "ค", "ng": "ง",
        "ch": "จ", "j": "จ", "s": "ซ", "sh": "ช",
        "d": "ด", "t": "ต", "th": "ท", "n": "น",
        "b": "บ", "p": "ป", "ph": "พ", "f": "ฟ", "m": "ม",
        "y": "ย", "r": "ร", "l": "ล", "w": "ว", "h": "ห",
        "a": "อ", "aa": "า", "i": "ิ", "ee": "ี", "u": "ุ", "oo": "ู",
        "e": "เ", "ai": "ไ", "o": "โ",
    },
    digits="๐๑๒๓๔๕๖๗๘๙",
)

CYRILLIC = ScriptMap(
    letters={
        "a": "а", "b": "б", "v": "в", "g": "г", "d": "д", "e": "е",
        "yo": "ё", "zh": "ж", "z": "з", "i": "и", "y": "й", "k": "к",
        "l": "л", "m": "м", "n": "н", "o": "о", "p": "п", "r": "р",
        "s": "с", "t": "т", "u": "у", "f": "ф", "h": "х", "kh": "х",
        "ts": "ц", "ch": "ч", "sh": "ш", "shch": "щ", "yu": "ю", "ya": "я",
    },
)

GREEK = ScriptMap(
    letters={
        "a": "α", "b": "β", "g": "γ", "d": "δ", "e": "ε", "z": "ζ",
        "ee": "η", "th": "θ", "i": "ι", "k": "κ", "l": "λ", "m": "μ",
        "n": "ν", "x": "ξ", "o": "ο", "p": "π", "r": "ρ", "s": "σ",
        "t": "τ", "u": "υ", "ph": "φ", "f": "φ", "ch": "χ", "ps": "ψ", "oo": "ω",
    },
)

HEBREW = ScriptMap(
    letters={
        "a": "א", "b": "ב", "v": "ב", "g": "ג", "d": "ד", "h": "ה",
        "w": "ו", "z": "ז", "kh": "ח", "ch": "ח", "t": "ט", "y": "י",
        "k": "כ", "l": "ל", "m": "מ", "n": "נ", "s": "ס", "p": "פ",
        "f": "פ", "ts": "צ", "q": "ק", "r": "ר", "sh": "ש", "th": "ת",
    },
)

# Keyed by LanguageProfile.script_name
SCRIPT_MAPS: Dict[str, ScriptMap] = {
    "Devanagari": DEVANAGARI,
    "Telugu": TELUGU,
    "Tamil": TAMIL,
    "Kannada": KANNADA,
    "Malayalam": MALAYALAM,
    "Bengali": BENGALI,
    "Gujarati": GUJARATI,
    "Gurmukhi": GURMUKHI,
    "Odia": ODIA,
    "Sinhala": SINHALA,
    "Arabic": ARABIC,
    "Thai": THAI,
    "Cyrillic": CYRILLIC,
    "Greek": GREEK,
    "Hebrew": HEBREW,
}


def _is_vowel_key(key: str) -> bool:
    return key[0].lower() in _VOWEL_INITIALS


def _is_consonant_key(key: str) -> bool:
    return key[0].isalpha() and not _is_vowel_key(key)


def soften_capitals(text: str) -> str:
    """Lower-case the first letter of capitalised words such as "Namaste".

    Single capitals and mixed-case words ("TamaTar") keep their case.
    """
    return _CAPITALISED_WORD.sub(lambda m: m.group(1).lower() + m.group(2), text)


def convert(text: str, script_map: ScriptMap) -> str:
    """Convert romanised ``text`` with ``script_map``. No validation."""
    letters = script_map.letters
    result = []
    i = 0
    prev_was_consonant = False

    while i < len(text):
        matched = False
        for length in range(min(MAX_MATCH_LENGTH, len(text) - i), 0, -1):
            chunk = text[i : i + length]
            # Exact case first so retroflex capitals (T, D, N, L) win
            key = chunk if chunk in letters else chunk.lower()
            if key not in letters:
                continue

            if _is_vowel_key(key):
                if prev_was_consonant and key.lower() in script_map.vowel_signs:
                    result.append(script_map.vowel_signs[key.lower()])
                else:
                    result.append(letters[key])
                prev_was_consonant = False
            elif _is_consonant_key(key):
                if prev_was_consonant:
                    result.append(script_map.virama)
                result.append(letters[key])
                prev_was_consonant = True
            else:
                result.append(letters[key])
                prev_was_consonant = False

            i += length
            matched = True
            break

        if not matched:
            ch = text[i]
            if "0" <= ch <= "9" and script_map.digits:
                result.append(script_map.digits[int(ch)])
            else:
                result.append(ch)
            prev_was_consonant = False
            i += 1

    return "".join(result)


class Transliterator:
    """Latin-to-native transliteration with a best-effort reverse mapping."""

    def __init__(
        self,
        registry: Optional[LanguageRegistry] = None,
        detector: Optional[ScriptDetector] = None,
        script_maps: Optional[Dict[str, ScriptMap]] = None,
    ):
        self.registry = registry or LanguageRegistry()
        self.detector = detector or ScriptDetector(registry=self.registry)
        self.script_maps = script_maps if script_maps is not None else SCRIPT_MAPS
        self._inverse_cache: Dict[str, Dict[str, str]] = {}

    def supports(self, language_id: str) -> bool:
        profile = self.registry.resolve(language_id)
        return profile is not None and profile.script_name in self.script_maps

    def to_native_script(self, text: str, language_id: str) -> TransliterationResult:
        """Convert romanised text into the native script of ``language_id``.

        Native-script input and Latin-script languages come back unchanged and
        untranslated. Every failure returns the original text with a reason.
        """
        if not text or not text.strip():
            return TransliterationResult(text=text, is_translated=False)

        profile = self.registry.resolve(language_id)
        if profile is None:
            return self._degraded(text, DegradedReason.UNRESOLVED_LANGUAGE)
        if profile.is_latin:
            return TransliterationResult(text=text, is_translated=False)

        if self.detector.detect(text).script is Script.NATIVE:
            transliteration_total.labels(outcome="already_native").inc()
            return TransliterationResult(text=text, is_translated=False)

        script_map = self.script_maps.get(profile.script_name)
        if script_map is None:
            logger.debug(f"No script map for {profile.id} ({profile.script_name})")
            return self._degraded(text, DegradedReason.TRANSLITERATION_FAILED)

        try:
            output = convert(soften_capitals(text), script_map)
        except Exception as e:
            logger.error(f"Transliteration to {profile.id} failed: {e}", exc_info=True)
            return self._degraded(text, DegradedReason.TRANSLITERATION_FAILED)

        if not output.strip():
            return self._degraded(text, DegradedReason.EMPTY_OUTPUT)

        is_valid, errors = validate_transliteration(text, output)
        if not is_valid:
            logger.debug(f"Transliteration to {profile.id} rejected: {'; '.join(errors)}")
            return self._degraded(text, DegradedReason.TRANSLITERATION_FAILED)

        transliteration_total.labels(outcome="converted").inc()
        return TransliterationResult(text=output, is_translated=True)

    def reverse(self, text: str, language_id: str) -> str:
        """Map native-script text back to Latin. Lossy; unknown characters pass through."""
        profile = self.registry.resolve(language_id)
        if not text or profile is None:
            return text
        script_map = self.script_maps.get(profile.script_name)
        if script_map is None:
            return text

        inverse = self._inverse(profile.script_name, script_map)
        signs = {sign: key for key, sign in script_map.vowel_signs.items() if sign}
        longest = max((len(k) for k in inverse), default=1)

        out = []
        i = 0
        while i < len(text):
            for length in range(min(longest, len(text) - i), 0, -1):
                chunk = text[i : i + length]
                if chunk in inverse:
                    key = inverse[chunk]
                    out.append(key)
                    i += length
                    if script_map.vowel_signs and _is_consonant_key(key):
                        i = self._inherent_vowel(text, i, script_map, signs, out)
                    break
            else:
                ch = text[i]
                if script_map.digits and ch in script_map.digits:
                    out.append(str(script_map.digits.index(ch)))
                else:
                    out.append(ch)
                i += 1
        return "".join(out)

    @staticmethod
    def _inherent_vowel(
        text: str, i: int, script_map: ScriptMap, signs: Dict[str, str], out: list
    ) -> int:
        """Emit the vowel following a consonant and return the next index."""
        if i < len(text):
            nxt = text[i]
            if nxt == script_map.virama:
                return i + 1
            if nxt in signs:
                out.append(signs[nxt])
                return i + 1
            if nxt.isalpha():
                out.append("a")
        return i

    def _inverse(self, script_name: str, script_map: ScriptMap) -> Dict[str, str]:
        inverse = self._inverse_cache.get(script_name)
        if inverse is None:
            inverse = {}
            for key, value in script_map.letters.items():
                if value and key.isalpha():
                    inverse.setdefault(value, key)
            self._inverse_cache[script_name] = inverse
        return inverse

    @staticmethod
    def _degraded(text: str, reason: DegradedReason) -> TransliterationResult:
        transliteration_total.labels(outcome=reason.value).inc()
        return TransliterationResult(text=text, is_translated=False, degraded_reason=reason)
