"""Language registry: one canonical profile per language.

Every identifier a caller may hand us (ISO code, English name, native name,
NLLB-200 code, alias, BCP 47 tag with region) resolves through
``normalize_identifier`` to a single ``LanguageProfile``.
"""

import logging
import re
import unicodedata
from typing import Dict, Iterable, List, Optional, Tuple

from linguabridge.services.translation.models import LanguageProfile, Script

logger = logging.getLogger(__name__)

ENGLISH_ID = "en"

_SEPARATORS = re.compile(r"[\s_\-]+")


def _latin(
    id: str,
    name: str,
    native: str,
    nllb: Optional[str],
    aliases: Tuple[str, ...] = (),
    supported: bool = True,
) -> LanguageProfile:
    return LanguageProfile(
        id=id,
        display_name=name,
        native_name=native,
        script=Script.LATIN,
        model_supported=supported,
        nllb_code=nllb,
        script_name="Latin",
        aliases=aliases,
    )


def _native(
    id: str,
    name: str,
    native: str,
    nllb: Optional[str],
    script_name: str,
    aliases: Tuple[str, ...] = (),
    supported: bool = True,
) -> LanguageProfile:
    return LanguageProfile(
        id=id,
        display_name=name,
        native_name=native,
        script=Script.NATIVE,
        model_supported=supported,
        nllb_code=nllb,
        script_name=script_name,
        aliases=aliases,
    )


DEFAULT_PROFILES: Tuple[LanguageProfile, ...] = (
    # English and European languages
    _latin("en", "English", "English", "eng_Latn", ("eng",)),
    _latin("es", "Spanish", "Español", "spa_Latn", ("castilian",)),
    _latin("fr", "French", "Français", "fra_Latn"),
    _latin("de", "German", "Deutsch", "deu_Latn"),
    _latin("pt", "Portuguese", "Português", "por_Latn"),
    _latin("it", "Italian", "Italiano", "ita_Latn"),
    _latin("nl", "Dutch", "Nederlands", "nld_Latn", ("flemish",)),
    _latin("pl", "Polish", "Polski", "pol_Latn"),
    _latin("ro", "Romanian", "Română", "ron_Latn"),
    _latin("cs", "Czech", "Čeština", "ces_Latn"),
    _latin("hu", "Hungarian", "Magyar", "hun_Latn"),
    _latin("sv", "Swedish", "Svenska", "swe_Latn"),
    _latin("da", "Danish", "Dansk", "dan_Latn"),
    _latin("fi", "Finnish", "Suomi", "fin_Latn"),
    _latin("tr", "Turkish", "Türkçe", "tur_Latn"),
    # Southeast Asian and African Latin-script languages
    _latin("vi", "Vietnamese", "Tiếng Việt", "vie_Latn"),
    _latin("id", "Indonesian", "Bahasa Indonesia", "ind_Latn"),
    _latin("ms", "Malay", "Bahasa Melayu", "zsm_Latn"),
    _latin("tl", "Tagalog", "Tagalog", "tgl_Latn", ("filipino", "fil")),
    _latin("sw", "Swahili", "Kiswahili", "swh_Latn"),
    # Indian scheduled languages
    _native("hi", "Hindi", "हिन्दी", "hin_Deva", "Devanagari", ("हिंदी",)),
    _native("mr", "Marathi", "मराठी", "mar_Deva", "Devanagari"),
    _native("ne", "Nepali", "नेपाली", "npi_Deva", "Devanagari"),
    _native("sa", "Sanskrit", "संस्कृतम्", "san_Deva", "Devanagari"),
    _native("mai", "Maithili", "मैथिली", "mai_Deva", "Devanagari"),
    _native("bn", "Bengali", "বাংলা", "ben_Beng", "Bengali", ("bangla",)),
    _native("as", "Assamese", "অসমীয়া", "asm_Beng", "Bengali"),
    _native("mni", "Manipuri", "মৈতৈলোন্", "mni_Beng", "Bengali", ("meitei",)),
    _native("te", "Telugu", "తెలుగు", "tel_Telu", "Telugu"),
    _native("ta", "Tamil", "தமிழ்", "tam_Taml", "Tamil"),
    _native("kn", "Kannada", "ಕನ್ನಡ", "kan_Knda", "Kannada"),
    _native("ml", "Malayalam", "മലയാളം", "mal_Mlym", "Malayalam"),
    _native("gu", "Gujarati", "ગુજરાતી", "guj_Gujr", "Gujarati"),
    _native("pa", "Punjabi", "ਪੰਜਾਬੀ", "pan_Guru", "Gurmukhi", ("panjabi",)),
    _native("or", "Odia", "ଓଡ଼ିଆ", "ory_Orya", "Odia", ("oriya",)),
    _native("ur", "Urdu", "اردو", "urd_Arab", "Arabic"),
    _native("sd", "Sindhi", "سنڌي", "snd_Arab", "Arabic"),
    _native("ks", "Kashmiri", "كٲشُر", "kas_Arab", "Arabic"),
    _native("si", "Sinhala", "සිංහල", "sin_Sinh", "Sinhala", ("sinhalese",)),
    # Resolvable but without model support; these always degrade
    _native("tcy", "Tulu", "ತುಳು", None, "Kannada", supported=False),
    _native("kok", "Konkani", "कोंकणी", None, "Devanagari", supported=False),
    _native("doi", "Dogri", "डोगरी", None, "Devanagari", supported=False),
    _native("brx", "Bodo", "बड़ो", None, "Devanagari", supported=False),
    # Middle Eastern
    _native("ar", "Arabic", "العربية", "arb_Arab", "Arabic"),
    _native("fa", "Persian", "فارسی", "pes_Arab", "Arabic", ("farsi",)),
    _native("he", "Hebrew", "עברית", "heb_Hebr", "Hebrew", ("iw",)),
    # Cyrillic and Greek
    _native("ru", "Russian", "Русский", "rus_Cyrl", "Cyrillic"),
    _native("uk", "Ukrainian", "Українська", "ukr_Cyrl", "Cyrillic"),
    _native("bg", "Bulgarian", "Български", "bul_Cyrl", "Cyrillic"),
    _native("el", "Greek", "Ελληνικά", "ell_Grek", "Greek"),
    # East and Southeast Asian
    _native("zh", "Chinese", "中文", "zho_Hans", "Han", ("mandarin",)),
    _native("ja", "Japanese", "日本語", "jpn_Jpan", "Japanese"),
    _native("ko", "Korean", "한국어", "kor_Hang", "Hangul"),
    _native("th", "Thai", "ไทย", "tha_Thai", "Thai"),
    _native("lo", "Lao", "ລາວ", "lao_Laoo", "Lao"),
    _native("my", "Burmese", "မြန်မာ", "mya_Mymr", "Myanmar", ("myanmar",)),
    _native("km", "Khmer", "ខ្មែរ", "khm_Khmr", "Khmer", ("cambodian",)),
    # Caucasus and Horn of Africa
    _native("hy", "Armenian", "Հայերեն", "hye_Armn", "Armenian"),
    _native("ka", "Georgian", "ქართული", "kat_Geor", "Georgian"),
    _native("am", "Amharic", "አማርኛ", "amh_Ethi", "Ethiopic"),
)


def normalize_identifier(identifier: str) -> str:
    """Normalize a language identifier for lookup.

    Unicode NFKD, combining marks dropped, casefolded, trimmed, and runs of
    whitespace, ``-`` and ``_`` collapsed into a single ``-``.
    """
    decomposed = unicodedata.normalize("NFKD", identifier)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    folded = stripped.casefold().strip()
    return _SEPARATORS.sub("-", folded).strip("-")


class LanguageRegistry:
    """Resolves language identifiers to immutable profiles."""

    def __init__(self, profiles: Optional[Iterable[LanguageProfile]] = None):
        self._profiles: Dict[str, LanguageProfile] = {}
        self._index: Dict[str, LanguageProfile] = {}

        for profile in profiles if profiles is not None else DEFAULT_PROFILES:
            if profile.id in self._profiles:
                raise ValueError(f"Duplicate language profile id: {profile.id}")
            self._profiles[profile.id] = profile

        # Canonical ids and full codes win over names and aliases
        for profile in self._profiles.values():
            self._add_key(profile.id, profile)
            if profile.nllb_code:
                self._add_key(profile.nllb_code, profile)
        for profile in self._profiles.values():
            for key in (profile.display_name, profile.native_name, *profile.aliases):
                self._add_key(key, profile)
        # ISO 639-3 prefix of the NLLB code, unless already taken
        for profile in self._profiles.values():
            if profile.nllb_code:
                self._add_key(profile.nllb_code.split("_")[0], profile)

        logger.debug(
            f"Language registry built: {len(self._profiles)} profiles, "
            f"{len(self._index)} lookup keys"
        )

    def _add_key(self, key: str, profile: LanguageProfile) -> None:
        normalized = normalize_identifier(key)
        if not normalized:
            return
        existing = self._index.get(normalized)
        if existing is not None and existing.id != profile.id:
            logger.debug(
                f"Lookup key '{normalized}' already maps to {existing.id}, "
                f"not remapping to {profile.id}"
            )
            return
        self._index[normalized] = profile

    def resolve(self, identifier: Optional[str]) -> Optional[LanguageProfile]:
        """Resolve any supported identifier to its profile.

        Args:
            identifier: ISO code, English or native name, NLLB code, alias
                or BCP 47 tag.

        Returns:
            The matching profile, or None when the identifier is unknown.
        """
        if not isinstance(identifier, str):
            return None
        normalized = normalize_identifier(identifier)
        if not normalized:
            return None

        profile = self._index.get(normalized)
        if profile is not None:
            return profile

        # BCP 47 tag with region/script subtag, e.g. "hi-IN" -> "hi"
        if "-" in normalized:
            return self._index.get(normalized.split("-", 1)[0])
        return None

    def get(self, language_id: str) -> Optional[LanguageProfile]:
        """Look up a profile by its canonical id only."""
        return self._profiles.get(language_id)

    def is_english(self, identifier: Optional[str]) -> bool:
        profile = self.resolve(identifier)
        return profile is not None and profile.id == ENGLISH_ID

    def is_same_language(self, a: Optional[str], b: Optional[str]) -> bool:
        """Two identifiers are the same language iff both resolve to one profile."""
        profile_a = self.resolve(a)
        profile_b = self.resolve(b)
        if profile_a is None or profile_b is None:
            return False
        return profile_a.id == profile_b.id

    def display_name(self, identifier: str) -> str:
        """Native name for an identifier, falling back to the identifier itself."""
        profile = self.resolve(identifier)
        return profile.native_name if profile else identifier

    def canonical_id(self, identifier: str) -> str:
        """Profile id when resolvable, otherwise the normalized identifier."""
        profile = self.resolve(identifier)
        return profile.id if profile else normalize_identifier(identifier)

    def profiles(self) -> List[LanguageProfile]:
        return list(self._profiles.values())

    def supported_by_model(self) -> List[LanguageProfile]:
        return [p for p in self._profiles.values() if p.model_supported]

    def __contains__(self, identifier: object) -> bool:
        return isinstance(identifier, str) and self.resolve(identifier) is not None

    def __len__(self) -> int:
        return len(self._profiles)
