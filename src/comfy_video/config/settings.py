import os
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ComfyUI backend settings
    COMFYUI_API_URL: str = "http://127.0.0.1:8188"
    COMFYUI_API_KEY: Optional[str] = None

    # Deadline applied to every single HTTP call against the backend
    REQUEST_TIMEOUT_SECONDS: float = 300.0

    # Polling settings
    POLL_WARMUP_SECONDS: float = 5.0
    POLL_INTERVAL_SECONDS: float = 1.0
    DEFAULT_TIMEOUT_MINUTES: float = 30

    # API settings
    API_PORT: int = int(os.getenv("API_PORT", 8001))
    API_KEY: Optional[str] = None

    LOG_LEVEL: str = "INFO"


@lru_cache()
def get_settings():
    """
    Get cached settings to avoid reloading from environment each time.
    """
    return Settings()
