"""
Configuration management for the Format Bridge.

Uses pydantic-settings to load configuration from environment variables
and .env files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 3001
    log_level: str = "INFO"
    api_title: str = "Format Bridge API"
    api_version: str = "1.0.0"

    # Drop zones and output folders (relative to base_dir)
    base_dir: Path = Path(".")
    input_dir: str = "input"
    output_dir: str = "output"
    api_bridge_dir: str = "api-bridge"
    exports_dir: str = "exports"
    samples_dir: str = "samples"

    # Watcher Configuration
    watch_enabled: bool = True
    settle_delay: float = 0.2  # seconds
    debounce_window: float = 0.5  # seconds

    # Bridge Configuration
    transactions_url: Optional[str] = None
    bridge_timeout: float = 10.0

    # Event Bus Configuration
    subscriber_queue_size: int = 256
    file_transforms_topic: str = "file-transforms"
    transactions_topic: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def _resolve(self, name: str) -> Path:
        return Path(self.base_dir).expanduser() / name

    def input_path(self) -> Path:
        return self._resolve(self.input_dir)

    def output_path(self) -> Path:
        return self._resolve(self.output_dir)

    def api_bridge_path(self) -> Path:
        return self._resolve(self.api_bridge_dir)

    def exports_path(self) -> Path:
        return self._resolve(self.exports_dir)

    def samples_path(self) -> Path:
        return self._resolve(self.samples_dir)

    def get_directories(self) -> dict[str, Path]:
        """All managed directories keyed by role."""
        return {
            "input": self.input_path(),
            "output": self.output_path(),
            "api-bridge": self.api_bridge_path(),
            "exports": self.exports_path(),
            "samples": self.samples_path(),
        }

    def get_transactions_url(self) -> str:
        """URL the file-to-API bridge posts records to."""
        if self.transactions_url:
            return self.transactions_url
        return f"http://localhost:{self.api_port}/api/transactions"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
