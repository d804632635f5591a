"""Fakes standing in for the NLLB model in tests."""

import asyncio
from typing import Dict, List, Optional, Tuple

# (text, source NLLB code, target NLLB code) -> translation
KNOWN_TRANSLATIONS: Dict[Tuple[str, str, str], str] = {
    ("Hello", "eng_Latn", "tel_Telu"): "హలో",
    ("Hello", "eng_Latn", "hin_Deva"): "नमस्ते",
    ("Hello", "eng_Latn", "spa_Latn"): "Hola",
    ("నమస్కారం", "tel_Telu", "eng_Latn"): "Greetings",
    ("Greetings", "eng_Latn", "tam_Taml"): "வணக்கம்",
    ("नमस्ते", "hin_Deva", "eng_Latn"): "Hello",
    ("नमस्ते", "hin_Deva", "tel_Telu"): "నమస్తే",
    ("Hola", "spa_Latn", "fra_Latn"): "Bonjour",
}


class FakeTranslationBackend:
    """Deterministic stand-in for the NLLB pipeline."""

    def __init__(self, translations: Optional[Dict[Tuple[str, str, str], str]] = None):
        self.translations = translations if translations is not None else KNOWN_TRANSLATIONS
        self.calls: List[Tuple[str, str, str]] = []

    def translate(self, text: str, source_code: str, target_code: str) -> str:
        self.calls.append((text, source_code, target_code))
        return self.translations.get(
            (text, source_code, target_code), f"[{target_code}] {text}"
        )


class FakeModelLoader:
    """Model loader that reports staged progress and returns a fake backend."""

    def __init__(
        self,
        backend: Optional[FakeTranslationBackend] = None,
        delay: float = 0.0,
        error: Optional[Exception] = None,
        progress_steps: Tuple[int, ...] = (10, 50, 90),
    ):
        self.backend = backend or FakeTranslationBackend()
        self.delay = delay
        self.error = error
        self.progress_steps = progress_steps
        self.load_calls = 0

    def model_name(self, size_hint: str) -> str:
        return f"fake-nllb-{size_hint}"

    async def load(self, size_hint, on_progress):
        self.load_calls += 1
        for step in self.progress_steps:
            on_progress(step)
            if self.delay:
                await asyncio.sleep(self.delay / len(self.progress_steps))
        if self.error is not None:
            raise self.error
        return self.backend


