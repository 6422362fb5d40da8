"""
Configuration settings for the examdeck practice engine.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are read with the EXAMDECK_ prefix (e.g. EXAMDECK_DATA_DIR).
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EXAMDECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".examdeck",
        description="Application-private directory holding the catalog and exam stores",
    )
    store_extension: str = Field(
        default="db",
        description="File extension used for every store file",
    )
    catalog_name: str = Field(
        default="list",
        description="Base name of the catalog store file",
    )

    # ========================================
    # Ingestion
    # ========================================
    bundle_dir: Path = Field(
        default=Path("exams"),
        description="Directory scanned for exam JSON documents",
    )
    excluded_bundles: list[str] = Field(
        default_factory=lambda: ["template.json"],
        description="Document file names skipped during discovery",
    )
    max_questions_per_exam: int = Field(
        default=1500,
        description="Hard limit on questions per document (larger documents are rejected)",
    )
    strict_validation: bool = Field(
        default=True,
        description="Reject structurally present but wrong-typed fields",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Helper Methods
    # ========================================
    def catalog_path(self) -> Path:
        """Path of the process-lifetime catalog store."""
        return self.data_dir / f"{self.catalog_name}.{self.store_extension}"

    def exam_store_path(self, file_name: str) -> Path:
        """Path of the store backing one exam file name."""
        return self.data_dir / f"{file_name}.{self.store_extension}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
