"""
Exception hierarchy for the translation pipeline.

Only InvalidArgumentError is meant to reach callers of the message view
composer; everything else is absorbed into degraded results.
"""

from typing import Optional


class TranslationPipelineError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, detail: str, error_code: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.error_code = error_code or self.__class__.__name__


class InvalidArgumentError(TranslationPipelineError, ValueError):
    """Raised for programmer errors such as an empty language identifier."""

    def __init__(self, detail: str):
        super().__init__(detail, error_code="INVALID_ARGUMENT")


# Model Exceptions


class ModelUnavailableError(TranslationPipelineError):
    """Raised when the translation model cannot be loaded."""

    def __init__(self, detail: str = "Translation model unavailable"):
        super().__init__(detail, error_code="MODEL_UNAVAILABLE")


class ModelTimeoutError(TranslationPipelineError):
    """Raised when an inference call exceeds its bounded wait."""

    def __init__(self, timeout: float):
        super().__init__(
            f"Translation did not complete within {timeout:.1f}s",
            error_code="MODEL_TIMEOUT",
        )
        self.timeout = timeout


class ModelInferenceError(TranslationPipelineError):
    """Raised when the loaded model fails to translate."""

    def __init__(self, detail: str):
        super().__init__(detail, error_code="MODEL_INFERENCE_ERROR")


# Cache Exceptions


class CacheBackendError(TranslationPipelineError):
    """Raised by a cache tier whose storage is unavailable."""

    def __init__(self, tier: str, detail: str):
        super().__init__(f"{tier}: {detail}", error_code="CACHE_BACKEND_ERROR")
        self.tier = tier
