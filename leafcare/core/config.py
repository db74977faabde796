"""
Application configuration with environment-based settings.

Configuration is centralized here to allow easy swapping between
development, field-device and server deployments.
"""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    app_name: str = "LeafCare Diagnosis API"
    app_version: str = "0.1.0"
    debug: bool = False
    api_prefix: str = "/api/v1"

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000

    # Model artifacts (one .tflite file per crop)
    artifact_dir: str = "./models"

    # Optional JSON override for the banned substance registry
    substance_registry_path: Optional[str] = None

    # Frame sampling: at most one diagnosis per interval (~3 per second)
    min_frame_interval_ms: int = Field(default=333, ge=0)

    # Image upload limits
    max_image_size_mb: float = 10.0

    # Browser clients allowed to call the API
    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "LEAFCARE_"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
