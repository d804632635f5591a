"""
Pytest configuration and fixtures for the linguabridge test suite.

This module provides:
- Test settings with an isolated data directory
- A fake model loader so no test downloads a real model
- Cache and composer factories wired to the fakes
"""

from typing import Optional

import pytest
from linguabridge.core.config import Settings
from linguabridge.services.translation.cache import (
    MemoryBackend,
    SQLiteBackend,
    TieredCache,
)
from linguabridge.services.translation.composer import (
    MessageViewComposer,
    build_composer,
)
from linguabridge.services.translation.language_registry import LanguageRegistry
from linguabridge.services.translation.model_manager import TranslationModelManager
from tests.fakes import FakeModelLoader, FakeTranslationBackend


@pytest.fixture
def test_data_dir(tmp_path) -> str:
    """Isolated data directory for one test."""
    return str(tmp_path / "data")


@pytest.fixture
def test_settings(test_data_dir: str) -> Settings:
    """Settings pointing at the temporary data directory.

    Timeouts are short so failure paths finish quickly.
    """
    return Settings(
        DATA_DIR=test_data_dir,
        MODEL_LOAD_TIMEOUT_SECONDS=5.0,
        TRANSLATION_TIMEOUT_SECONDS=2.0,
        PREVIEW_DEBOUNCE_SECONDS=0.05,
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def registry() -> LanguageRegistry:
    return LanguageRegistry()


@pytest.fixture
def fake_backend() -> FakeTranslationBackend:
    return FakeTranslationBackend()


@pytest.fixture
def fake_loader(fake_backend: FakeTranslationBackend) -> FakeModelLoader:
    return FakeModelLoader(backend=fake_backend)


@pytest.fixture
def model_manager(fake_loader: FakeModelLoader, test_settings: Settings):
    return TranslationModelManager(loader=fake_loader, settings=test_settings)


@pytest.fixture
def memory_cache() -> TieredCache:
    """Single-tier in-memory cache."""
    return TieredCache([MemoryBackend(max_entries=100)])


@pytest.fixture
def tiered_cache(tmp_path) -> TieredCache:
    """Memory, session and persistent tiers over a temporary SQLite file."""
    db_path = str(tmp_path / "cache.db")
    return TieredCache(
        [
            MemoryBackend(max_entries=100),
            SQLiteBackend.session(db_path, session_id="test"),
            SQLiteBackend(db_path, namespace="persistent"),
        ]
    )


@pytest.fixture
def composer(model_manager, memory_cache, registry) -> MessageViewComposer:
    """Composer over the fake model and an in-memory cache."""
    return MessageViewComposer(
        model_manager=model_manager, cache=memory_cache, registry=registry
    )


@pytest.fixture
def composer_factory(test_settings: Settings):
    """Build fully wired composers (SQLite tiers included) with a fake loader."""

    def factory(loader: Optional[FakeModelLoader] = None) -> MessageViewComposer:
        return build_composer(
            settings=test_settings, model_loader=loader or FakeModelLoader()
        )

    return factory
