import logging
import os
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # Directory settings
    DATA_DIR: str = "data"
    CACHE_DB_FILENAME: str = "translation_cache.db"

    # Cache tiers
    CACHE_MEMORY_MAX_ENTRIES: int = 1000  # LRU bound for the in-process tier
    CACHE_MEMORY_TTL_SECONDS: int = 1800  # 30 minutes
    CACHE_SESSION_TTL_SECONDS: int = 7200  # 2 hours
    CACHE_PERSISTENT_TTL_SECONDS: int = 604800  # 7 days
    CACHE_ENABLE_SESSION_TIER: bool = True
    CACHE_ENABLE_PERSISTENT_TIER: bool = True

    # Translation model
    TRANSLATION_MODEL_SIZE: str = "small"  # small | medium | large
    TRANSLATION_MODEL_DEVICE: str = "auto"  # auto | cpu | cuda
    TRANSLATION_MAX_LENGTH: int = 512
    MODEL_LOAD_TIMEOUT_SECONDS: float = 600.0
    TRANSLATION_TIMEOUT_SECONDS: float = 20.0

    # Circuit breaker around model inference
    MODEL_BREAKER_FAIL_MAX: int = 5
    MODEL_BREAKER_RESET_SECONDS: int = 60

    # Script/language detection
    DETECTION_MIN_CONFIDENCE: float = (
        0.3  # Guesses below this confidence are not reported (0.0-1.0)
    )

    # Typing preview
    PREVIEW_DEBOUNCE_SECONDS: float = 0.3

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="LINGUABRIDGE_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def CACHE_DB_PATH(self) -> str:
        """Complete path to the SQLite cache database"""
        return os.path.join(self.DATA_DIR, self.CACHE_DB_FILENAME)

    @field_validator("DETECTION_MIN_CONFIDENCE")
    @classmethod
    def validate_detection_threshold(cls, v: float) -> float:
        """Validate detection confidence threshold is within valid range.

        Raises:
            ValueError: If threshold is outside valid range
        """
        if not 0.0 <= v <= 1.0:
            raise ValueError(
                f"DETECTION_MIN_CONFIDENCE must be between 0.0 and 1.0, got {v}"
            )
        return v

    @field_validator("TRANSLATION_MODEL_SIZE")
    @classmethod
    def validate_model_size(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in {"small", "medium", "large"}:
            raise ValueError(
                f"TRANSLATION_MODEL_SIZE must be small, medium or large, got '{v}'"
            )
        return v

    @field_validator("TRANSLATION_MODEL_DEVICE")
    @classmethod
    def validate_model_device(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in {"auto", "cpu", "cuda"}:
            raise ValueError(
                f"TRANSLATION_MODEL_DEVICE must be auto, cpu or cuda, got '{v}'"
            )
        return v

    @field_validator(
        "CACHE_MEMORY_MAX_ENTRIES",
        "CACHE_MEMORY_TTL_SECONDS",
        "CACHE_SESSION_TTL_SECONDS",
        "CACHE_PERSISTENT_TTL_SECONDS",
        "MODEL_BREAKER_FAIL_MAX",
    )
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    @field_validator(
        "MODEL_LOAD_TIMEOUT_SECONDS",
        "TRANSLATION_TIMEOUT_SECONDS",
    )
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Make paths absolute
        self.DATA_DIR = os.path.abspath(self.DATA_DIR)

    def ensure_data_dirs(self) -> None:
        """Create the data directory if it doesn't exist.

        Called when the durable cache tiers are built, to avoid
        import-time side effects.
        """
        Path(self.DATA_DIR).mkdir(parents=True, exist_ok=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance with lazy initialization.

    Returns:
        Settings: Library settings object
    """
    return Settings()


def reset_settings() -> None:
    """Reset the cached settings instance.

    Useful for testing when you need to reload settings with different values.
    """
    get_settings.cache_clear()
