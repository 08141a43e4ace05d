"""
Configuration management for the AdTrack analytics application.
Handles the backend API location, API keys, and analytics settings.
"""

import logging
import os
import streamlit as st
from typing import Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class AppConfig:
    """Application configuration settings."""
    api_base_url: str
    api_token: Optional[str] = None
    request_timeout_seconds: int = 30
    cache_ttl_minutes: int = 5
    min_allocation_percentage: float = 5.0
    default_currency: str = "USD"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    max_upload_size_mb: int = 10
    app_url: str = ""
    supported_file_formats: list = None

    def __post_init__(self):
        if self.supported_file_formats is None:
            self.supported_file_formats = ['.csv', '.xlsx', '.xls']


class ConfigManager:
    """Manages application configuration and settings."""

    def __init__(self):
        self._config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """Load configuration from Streamlit secrets and environment."""
        if self._config is not None:
            return self._config

        api_base_url = self._get_secret_or_env("ADTRACK_API_URL")

        if not api_base_url:
            raise ValueError(
                "AdTrack API URL not found. Please set ADTRACK_API_URL in "
                "Streamlit secrets or environment variables."
            )

        self._config = AppConfig(
            api_base_url=api_base_url.rstrip('/'),
            api_token=self._get_secret_or_env("ADTRACK_API_TOKEN"),
            request_timeout_seconds=self._get_int_setting("REQUEST_TIMEOUT_SECONDS", 30),
            cache_ttl_minutes=self._get_int_setting("CACHE_TTL_MINUTES", 5),
            min_allocation_percentage=self._get_float_setting("MIN_ALLOCATION_PERCENTAGE", 5.0),
            default_currency=self._get_setting("DEFAULT_CURRENCY", "USD"),
            openai_api_key=self._get_secret_or_env("OPENAI_API_KEY"),
            openai_model=self._get_setting("OPENAI_MODEL", "gpt-4o"),
            max_upload_size_mb=self._get_int_setting("MAX_UPLOAD_SIZE_MB", 10),
            app_url=self._get_setting("ADTRACK_APP_URL", "")
        )

        return self._config

    def reset(self):
        """Forget the loaded configuration so the next load re-reads settings."""
        self._config = None

    def _get_secret_or_env(self, key: str) -> Optional[str]:
        """Get value from Streamlit secrets or environment variables."""
        # Streamlit raises when no secrets file exists
        try:
            if hasattr(st, 'secrets') and key in st.secrets:
                return st.secrets[key]
        except Exception as e:
            logger.debug(f"Streamlit secrets unavailable for {key}: {str(e)}")

        return os.getenv(key)

    def _get_setting(self, key: str, default: str) -> str:
        """Get string setting with default value."""
        value = self._get_secret_or_env(key)
        return value if value is not None else default

    def _get_int_setting(self, key: str, default: int) -> int:
        """Get integer setting with default value."""
        value = self._get_secret_or_env(key)
        if value is not None:
            try:
                return int(value)
            except ValueError:
                pass
        return default

    def _get_float_setting(self, key: str, default: float) -> float:
        """Get float setting with default value."""
        value = self._get_secret_or_env(key)
        if value is not None:
            try:
                return float(value)
            except ValueError:
                pass
        return default

    def get_api_base_url(self) -> str:
        """Get the AdTrack backend base URL."""
        return self.load_config().api_base_url

    def get_min_allocation_percentage(self) -> float:
        """Get the per-channel budget allocation floor."""
        return self.load_config().min_allocation_percentage

    def is_valid_file_format(self, filename: str) -> bool:
        """Check if an upload file format is supported."""
        config = self.load_config()
        return any(filename.lower().endswith(fmt) for fmt in config.supported_file_formats)

    def get_max_file_size_bytes(self) -> int:
        """Get maximum upload size in bytes."""
        config = self.load_config()
        return config.max_upload_size_mb * 1024 * 1024


# Global configuration manager instance
config_manager = ConfigManager()
