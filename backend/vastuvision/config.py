"""
Application Settings

Environment-driven configuration for the VastuVision capture service.
"""

import functools
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings, read from environment variables or a .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Service
    app_name: str = "VastuVision Capture API"
    app_version: str = "1.0.0"
    debug: bool = False
    api_prefix: str = "/api/v1"
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    # Gemini
    google_api_key: Optional[str] = None
    model_name: str = "gemini-2.5-flash"

    # Projection engine
    viewport_size: float = 200.0
    projection_padding_deg: float = 0.00005
    projection_min_span_deg: float = 0.00001
    zoom_min: float = 0.4
    zoom_max: float = 8.0
    marker_base_radius: float = 6.0
    line_base_width: float = 3.0

    # Sessions
    session_idle_timeout_s: float = 7200.0

    # Interaction
    desktop_min_width: int = 1024


@functools.lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
