"""Lifecycle manager for the multilingual translation model.

The manager is an explicitly owned service: callers construct one and pass it
where it is needed. Loading is single-flight, reports monotonic progress and
is bounded by a timeout; inference runs in a worker thread behind a circuit
breaker and a bounded wait.
"""

import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional, Protocol, runtime_checkable

from pybreaker import CircuitBreaker, CircuitBreakerError

from linguabridge.core.config import Settings, get_settings
from linguabridge.core.exceptions import (
    ModelInferenceError,
    ModelTimeoutError,
    ModelUnavailableError,
)
from linguabridge.metrics.translation_metrics import (
    model_inference_errors_total,
    model_load_duration_seconds,
    model_state,
)
from linguabridge.services.translation.models import ModelState, ModelStatus

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

_STATE_GAUGE = {
    ModelStatus.UNLOADED: 0,
    ModelStatus.LOADING: 1,
    ModelStatus.READY: 2,
    ModelStatus.ERROR: 3,
}


@runtime_checkable
class TranslationBackend(Protocol):
    """A loaded model. ``translate`` is blocking and runs in a worker thread."""

    def translate(self, text: str, source_code: str, target_code: str) -> str:
        ...


@runtime_checkable
class ModelLoader(Protocol):
    """Builds a TranslationBackend, reporting progress as it goes."""

    def model_name(self, size_hint: str) -> str:
        ...

    async def load(
        self, size_hint: str, on_progress: ProgressCallback
    ) -> TranslationBackend:
        ...


class HuggingFaceTranslationBackend:
    """NLLB-200 inference through a ``transformers`` translation pipeline."""

    def __init__(self, translator, max_length: int = 512):
        self._translator = translator
        self.max_length = max_length

    def translate(self, text: str, source_code: str, target_code: str) -> str:
        outputs = self._translator(
            text,
            src_lang=source_code,
            tgt_lang=target_code,
            max_length=self.max_length,
        )
        if not outputs:
            return ""
        return outputs[0].get("translation_text", "")


class HuggingFaceModelLoader:
    """Loads NLLB-200 from the HuggingFace hub on CPU or CUDA."""

    MODEL_NAMES: Dict[str, str] = {
        "small": "facebook/nllb-200-distilled-600M",
        "medium": "facebook/nllb-200-distilled-1.3B",
        "large": "facebook/nllb-200-3.3B",
    }

    def __init__(self, device: str = "auto", max_length: int = 512):
        self.device = device
        self.max_length = max_length

    def model_name(self, size_hint: str) -> str:
        return self.MODEL_NAMES.get(size_hint, self.MODEL_NAMES["small"])

    async def load(
        self, size_hint: str, on_progress: ProgressCallback
    ) -> TranslationBackend:
        model_name = self.model_name(size_hint)
        on_progress(5)

        device = await asyncio.to_thread(self._resolve_device)
        on_progress(15)
        logger.info(f"Loading translation model {model_name} on {device}")

        translator = await asyncio.to_thread(self._build_pipeline, model_name, device)
        on_progress(95)

        return HuggingFaceTranslationBackend(translator, max_length=self.max_length)

    def _resolve_device(self) -> str:
        if self.device != "auto":
            return self.device
        import torch

        return "cuda" if torch.cuda.is_available() else "cpu"

    @staticmethod
    def _build_pipeline(model_name: str, device: str):
        from transformers import pipeline

        return pipeline(
            "translation",
            model=model_name,
            device=0 if device == "cuda" else -1,
        )


class TranslationModelManager:
    """Owns the translation model and its UNLOADED/LOADING/READY/ERROR lifecycle.

    ``load`` is single-flight: concurrent callers share one loading task. A
    generation counter discards the completion of any load that was
    superseded by ``unload`` or by a later load.
    """

    def __init__(
        self,
        loader: Optional[ModelLoader] = None,
        settings: Optional[Settings] = None,
        breaker: Optional[CircuitBreaker] = None,
    ):
        self.settings = settings or get_settings()
        self.loader = loader or HuggingFaceModelLoader(
            device=self.settings.TRANSLATION_MODEL_DEVICE,
            max_length=self.settings.TRANSLATION_MAX_LENGTH,
        )
        self.size_hint = self.settings.TRANSLATION_MODEL_SIZE
        self.load_timeout = self.settings.MODEL_LOAD_TIMEOUT_SECONDS
        self.inference_timeout = self.settings.TRANSLATION_TIMEOUT_SECONDS
        self._breaker = breaker or CircuitBreaker(
            fail_max=self.settings.MODEL_BREAKER_FAIL_MAX,
            reset_timeout=self.settings.MODEL_BREAKER_RESET_SECONDS,
        )

        self._status = ModelStatus.UNLOADED
        self._progress = 0
        self._error: Optional[str] = None
        self._model_name: Optional[str] = None
        self._backend: Optional[TranslationBackend] = None
        self._generation = 0
        self._load_task: Optional["asyncio.Task[bool]"] = None
        self._listeners: List[ProgressCallback] = []
        model_state.set(_STATE_GAUGE[self._status])

    @property
    def state(self) -> ModelState:
        return ModelState(
            status=self._status,
            progress=self._progress,
            error=self._error,
            model_name=self._model_name,
        )

    @property
    def is_ready(self) -> bool:
        return self._status is ModelStatus.READY

    async def load(
        self,
        size_hint: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        timeout: Optional[float] = None,
    ) -> bool:
        """Load the model, or join the load already in flight.

        Args:
            size_hint: small, medium or large. Only used when a new load starts.
            on_progress: Receives non-decreasing ints in 0..100.
            timeout: Seconds before the load is abandoned as ERROR.

        Returns:
            True once the model is READY, False if loading failed.
        """
        if self._status is ModelStatus.READY:
            if on_progress:
                self._notify(on_progress, 100)
            return True

        if self._status is ModelStatus.LOADING and self._load_task is not None:
            if on_progress:
                self._listeners.append(on_progress)
                self._notify(on_progress, self._progress)
            return await asyncio.shield(self._load_task)

        self._generation += 1
        generation = self._generation
        size = size_hint or self.size_hint
        self._model_name = self.loader.model_name(size)
        self._progress = 0
        self._error = None
        self._listeners = [on_progress] if on_progress else []
        self._set_status(ModelStatus.LOADING)

        logger.info(f"Starting translation model load: {self._model_name}")
        self._load_task = asyncio.create_task(
            self._run_load(generation, size, timeout or self.load_timeout)
        )
        return await asyncio.shield(self._load_task)

    async def _run_load(self, generation: int, size_hint: str, timeout: float) -> bool:
        started = time.perf_counter()
        try:
            backend = await asyncio.wait_for(
                self.loader.load(
                    size_hint, lambda value: self._report_progress(generation, value)
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            model_load_duration_seconds.labels(result="timeout").observe(
                time.perf_counter() - started
            )
            logger.error(f"Translation model load timed out after {timeout:.1f}s")
            self._fail(generation, f"Model load timed out after {timeout:.1f}s")
            return False
        except Exception as e:
            model_load_duration_seconds.labels(result="error").observe(
                time.perf_counter() - started
            )
            logger.error(f"Translation model load failed: {e}", exc_info=True)
            self._fail(generation, f"Model load failed: {e}")
            return False

        if generation != self._generation:
            logger.info("Discarding completed model load superseded by a newer request")
            return False

        model_load_duration_seconds.labels(result="success").observe(
            time.perf_counter() - started
        )
        self._backend = backend
        self._report_progress(generation, 100)
        self._set_status(ModelStatus.READY)
        self._listeners = []
        logger.info(f"Translation model ready: {self._model_name}")
        return True

    def _fail(self, generation: int, message: str) -> None:
        if generation != self._generation:
            return
        self._error = message
        self._backend = None
        self._listeners = []
        self._set_status(ModelStatus.ERROR)

    def unload(self) -> None:
        """Drop the model. An in-flight load is superseded, not awaited."""
        self._generation += 1
        self._backend = None
        self._progress = 0
        self._listeners = []
        self._load_task = None
        self._set_status(ModelStatus.UNLOADED)
        logger.info("Translation model unloaded")

    async def translate(self, text: str, source_code: str, target_code: str) -> str:
        """Translate ``text`` between two NLLB-200 language codes.

        Loads the model first whenever it is not READY. A model in ERROR is
        retried from scratch.

        Raises:
            ModelUnavailableError: The model is not loaded and cannot be.
            ModelTimeoutError: Inference exceeded ``inference_timeout``.
            ModelInferenceError: The backend failed to translate.
        """
        if self._status is not ModelStatus.READY:
            if not await self.load():
                raise ModelUnavailableError(
                    self._error or "Translation model failed to load"
                )

        backend = self._backend
        if backend is None:
            raise ModelUnavailableError("Translation model was unloaded")

        try:
            # The breaker is synchronous; run it with the blocking call in a thread
            return await asyncio.wait_for(
                asyncio.to_thread(
                    self._breaker.call,
                    backend.translate,
                    text,
                    source_code,
                    target_code,
                ),
                timeout=self.inference_timeout,
            )
        except asyncio.TimeoutError as e:
            model_inference_errors_total.labels(kind="timeout").inc()
            logger.warning(
                f"Translation {source_code}->{target_code} timed out after "
                f"{self.inference_timeout:.1f}s"
            )
            raise ModelTimeoutError(self.inference_timeout) from e
        except CircuitBreakerError as e:
            model_inference_errors_total.labels(kind="circuit_open").inc()
            logger.warning(f"Translation circuit breaker open: {e}")
            raise ModelUnavailableError(f"Translation backend unavailable: {e}") from e
        except Exception as e:
            model_inference_errors_total.labels(kind="error").inc()
            logger.error(
                f"Translation {source_code}->{target_code} failed: {e}", exc_info=True
            )
            raise ModelInferenceError(str(e)) from e

    def _report_progress(self, generation: int, value: float) -> None:
        if generation != self._generation:
            return
        clamped = max(0, min(100, int(value)))
        if clamped <= self._progress:
            return
        self._progress = clamped
        for listener in list(self._listeners):
            self._notify(listener, self._progress)

    @staticmethod
    def _notify(listener: ProgressCallback, value: int) -> None:
        try:
            listener(value)
        except Exception as e:
            logger.warning(f"Model progress callback raised: {e}")

    def _set_status(self, status: ModelStatus) -> None:
        self._status = status
        model_state.set(_STATE_GAUGE[status])
