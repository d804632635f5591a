"""Tests for the translation model lifecycle manager."""

import asyncio
import time

import pytest
from linguabridge.core.config import Settings
from linguabridge.core.exceptions import (
    ModelInferenceError,
    ModelTimeoutError,
    ModelUnavailableError,
)
from linguabridge.services.translation.model_manager import (
    HuggingFaceModelLoader,
    TranslationModelManager,
)
from linguabridge.services.translation.models import ModelStatus
from pybreaker import CircuitBreaker

from tests.fakes import FakeModelLoader, FakeTranslationBackend


class SlowBackend:
    def __init__(self, seconds: float):
        self.seconds = seconds

    def translate(self, text, source_code, target_code):
        time.sleep(self.seconds)
        return text


class BrokenBackend:
    def __init__(self):
        self.calls = 0

    def translate(self, text, source_code, target_code):
        self.calls += 1
        raise ValueError("CUDA out of memory")


class TestLoad:
    @pytest.mark.asyncio
    async def test_load_reaches_ready_with_monotonic_progress(self, model_manager):
        progress = []

        assert await model_manager.load(on_progress=progress.append) is True

        state = model_manager.state
        assert state.status is ModelStatus.READY
        assert state.progress == 100
        assert state.model_name == "fake-nllb-small"
        assert progress == sorted(progress)
        assert progress[-1] == 100

    @pytest.mark.asyncio
    async def test_load_when_ready_is_idempotent(self, model_manager, fake_loader):
        await model_manager.load()
        progress = []

        assert await model_manager.load(on_progress=progress.append) is True
        assert fake_loader.load_calls == 1
        assert progress == [100]

    @pytest.mark.asyncio
    async def test_concurrent_loads_share_one_task(self, test_settings):
        loader = FakeModelLoader(delay=0.05)
        manager = TranslationModelManager(loader=loader, settings=test_settings)

        results = await asyncio.gather(*(manager.load() for _ in range(5)))

        assert results == [True] * 5
        assert loader.load_calls == 1

    @pytest.mark.asyncio
    async def test_joining_listener_sees_current_progress(self, test_settings):
        loader = FakeModelLoader(delay=0.09)
        manager = TranslationModelManager(loader=loader, settings=test_settings)
        first = asyncio.create_task(manager.load())
        await asyncio.sleep(0.04)

        late_progress = []
        assert await manager.load(on_progress=late_progress.append) is True
        await first

        assert late_progress[0] > 0
        assert late_progress == sorted(late_progress)
        assert late_progress[-1] == 100

    @pytest.mark.asyncio
    async def test_progress_is_clamped_and_never_decreases(self, test_settings):
        loader = FakeModelLoader(progress_steps=(40, 30, -5, 150))
        manager = TranslationModelManager(loader=loader, settings=test_settings)
        progress = []

        await manager.load(on_progress=progress.append)

        assert progress == [40, 100]

    @pytest.mark.asyncio
    async def test_raising_progress_callback_does_not_break_load(self, model_manager):
        def callback(value):
            raise RuntimeError("UI went away")

        assert await model_manager.load(on_progress=callback) is True

    @pytest.mark.asyncio
    async def test_load_timeout_sets_error(self, test_settings):
        loader = FakeModelLoader(delay=1.0)
        manager = TranslationModelManager(loader=loader, settings=test_settings)

        assert await manager.load(timeout=0.05) is False

        state = manager.state
        assert state.status is ModelStatus.ERROR
        assert "timed out" in state.error

    @pytest.mark.asyncio
    async def test_load_failure_sets_error_and_retry_recovers(self, test_settings):
        loader = FakeModelLoader(error=RuntimeError("weights missing"))
        manager = TranslationModelManager(loader=loader, settings=test_settings)

        assert await manager.load() is False
        assert manager.state.status is ModelStatus.ERROR
        assert "weights missing" in manager.state.error

        loader.error = None
        assert await manager.load() is True
        assert manager.state.status is ModelStatus.READY
        assert manager.state.error is None

    @pytest.mark.asyncio
    async def test_size_hint_selects_model(self, model_manager):
        await model_manager.load(size_hint="large")

        assert model_manager.state.model_name == "fake-nllb-large"


class TestUnload:
    @pytest.mark.asyncio
    async def test_unload_returns_to_unloaded(self, model_manager, fake_loader):
        await model_manager.load()

        model_manager.unload()

        assert model_manager.state.status is ModelStatus.UNLOADED
        assert model_manager.state.progress == 0
        # The next translation loads again
        await model_manager.translate("Hello", "eng_Latn", "tel_Telu")
        assert fake_loader.load_calls == 2

    @pytest.mark.asyncio
    async def test_unload_during_load_discards_late_completion(self, test_settings):
        loader = FakeModelLoader(delay=0.05)
        manager = TranslationModelManager(loader=loader, settings=test_settings)
        loading = asyncio.create_task(manager.load())
        await asyncio.sleep(0.01)

        manager.unload()

        assert await loading is False
        assert manager.state.status is ModelStatus.UNLOADED
        assert manager.is_ready is False


class TestTranslate:
    @pytest.mark.asyncio
    async def test_translate_loads_on_demand(self, model_manager, fake_backend):
        result = await model_manager.translate("Hello", "eng_Latn", "tel_Telu")

        assert result == "హలో"
        assert model_manager.is_ready
        assert fake_backend.calls == [("Hello", "eng_Latn", "tel_Telu")]

    @pytest.mark.asyncio
    async def test_translate_in_error_state_retries_load(self, test_settings):
        """A failed load is retried from scratch by the next translation."""
        loader = FakeModelLoader(error=RuntimeError("weights missing"))
        manager = TranslationModelManager(loader=loader, settings=test_settings)
        await manager.load()
        assert manager.state.status is ModelStatus.ERROR

        loader.error = None
        result = await manager.translate("Hello", "eng_Latn", "tel_Telu")

        assert result == "హలో"
        assert loader.load_calls == 2
        assert manager.state.status is ModelStatus.READY

    @pytest.mark.asyncio
    async def test_translate_in_error_state_fails_when_retry_fails(self, test_settings):
        loader = FakeModelLoader(error=RuntimeError("weights missing"))
        manager = TranslationModelManager(loader=loader, settings=test_settings)
        await manager.load()

        with pytest.raises(ModelUnavailableError):
            await manager.translate("Hello", "eng_Latn", "tel_Telu")
        assert loader.load_calls == 2
        assert "weights missing" in manager.state.error

    @pytest.mark.asyncio
    async def test_translate_when_load_fails(self, test_settings):
        loader = FakeModelLoader(error=RuntimeError("weights missing"))
        manager = TranslationModelManager(loader=loader, settings=test_settings)

        with pytest.raises(ModelUnavailableError):
            await manager.translate("Hello", "eng_Latn", "tel_Telu")

    @pytest.mark.asyncio
    async def test_inference_timeout(self, test_data_dir):
        settings = Settings(DATA_DIR=test_data_dir, TRANSLATION_TIMEOUT_SECONDS=0.05)
        loader = FakeModelLoader(backend=SlowBackend(0.5))
        manager = TranslationModelManager(loader=loader, settings=settings)

        with pytest.raises(ModelTimeoutError) as exc_info:
            await manager.translate("Hello", "eng_Latn", "tel_Telu")
        assert exc_info.value.timeout == 0.05

    @pytest.mark.asyncio
    async def test_backend_failure_is_inference_error(self, test_settings):
        loader = FakeModelLoader(backend=BrokenBackend())
        manager = TranslationModelManager(loader=loader, settings=test_settings)

        with pytest.raises(ModelInferenceError) as exc_info:
            await manager.translate("Hello", "eng_Latn", "tel_Telu")
        assert "out of memory" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_open_breaker_fails_fast(self, test_settings):
        backend = BrokenBackend()
        manager = TranslationModelManager(
            loader=FakeModelLoader(backend=backend),
            settings=test_settings,
            breaker=CircuitBreaker(fail_max=2, reset_timeout=60),
        )

        with pytest.raises(ModelInferenceError):
            await manager.translate("a", "eng_Latn", "tel_Telu")
        with pytest.raises((ModelInferenceError, ModelUnavailableError)):
            await manager.translate("b", "eng_Latn", "tel_Telu")
        with pytest.raises(ModelUnavailableError):
            await manager.translate("c", "eng_Latn", "tel_Telu")

        assert backend.calls == 2


class TestHuggingFaceModelLoader:
    def test_model_names_by_size(self):
        loader = HuggingFaceModelLoader()

        assert loader.model_name("small") == "facebook/nllb-200-distilled-600M"
        assert loader.model_name("medium") == "facebook/nllb-200-distilled-1.3B"
        assert loader.model_name("large") == "facebook/nllb-200-3.3B"

    def test_backend_extracts_translation_text(self):
        from linguabridge.services.translation.model_manager import (
            HuggingFaceTranslationBackend,
        )

        calls = []

        def pipeline(text, **kwargs):
            calls.append(kwargs)
            return [{"translation_text": "హలో"}]

        backend = HuggingFaceTranslationBackend(pipeline, max_length=64)

        assert backend.translate("Hello", "eng_Latn", "tel_Telu") == "హలో"
        assert calls == [
            {"src_lang": "eng_Latn", "tgt_lang": "tel_Telu", "max_length": 64}
        ]

    @pytest.mark.asyncio
    async def test_fake_loader_satisfies_protocol(self, fake_loader):
        backend = await fake_loader.load("small", lambda value: None)

        assert isinstance(backend, FakeTranslationBackend)
