"""
Base configuration for recognition services.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List, Optional


class RecognitionSettings(BaseSettings):
    """Settings for the sign recognition pipeline and service."""

    # Local match acceptance (combined confidence must exceed this)
    acceptance_threshold: float = 0.75
    feature_length: int = 5
    dataset_refresh_seconds: int = 300  # 0 disables the periodic reload

    # Fallback label policy
    fallback_label: str = "hello"
    sentinel_labels: List[str] = ["unknown", "no"]
    remote_confidence: float = 0.9
    degraded_confidence: float = 0.80

    # Service configuration
    service_name: str = "sign-recognizer"
    host: str = "0.0.0.0"
    port: int = 8010
    debug: bool = True
    mock_providers: bool = False  # Use scripted providers instead of Gemini

    # File handling
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    allowed_image_types: list = ["jpg", "jpeg", "png", "bmp", "webp"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra environment variables

    @field_validator("degraded_confidence")
    @classmethod
    def validate_degraded_confidence(cls, v):
        """Degraded answers stay inside the documented reduced range."""
        if not 0.75 <= v <= 0.88:
            raise ValueError(f"degraded_confidence must be within [0.75, 0.88], got {v}")
        return v

    @field_validator("acceptance_threshold", "remote_confidence")
    @classmethod
    def validate_unit_interval(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"Value must be within [0, 1], got {v}")
        return v

    @field_validator("fallback_label")
    @classmethod
    def validate_fallback_label(cls, v):
        if not v.strip():
            raise ValueError("fallback_label must not be empty")
        return v.strip().lower()


class GeminiSettings(BaseSettings):
    """Settings for the Google Gemini provider."""

    gemini_api_key: Optional[str] = None
    flash_model: str = "gemini-1.5-flash"
    pro_model: str = "gemini-1.5-pro"
    temperature: float = 0.2
    max_output_tokens: int = 1024

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
