# scan_hub/settings.py
"""
Scan Hub Settings - data root, logging and persistence tuning.
"""
from __future__ import annotations
from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices

class Settings(BaseSettings):
    # =========================================================================
    # File Storage (JSON documents, scan logs, exports)
    # =========================================================================
    SCAN_HUB_DATA_ROOT: Path = Field(
        default=(Path(__file__).resolve().parents[2] / "scan-data"),
        validation_alias=AliasChoices("SCAN_HUB_DATA_ROOT", "scan_hub_data_root", "data_root"),
    )

    # Delay before the write-behind queue flushes a document (0 = write as soon as possible)
    SCAN_HUB_WRITE_DELAY_MS: int = Field(default=200, ge=0, validation_alias="SCAN_HUB_WRITE_DELAY_MS")

    # How often the settings listener checks settings.json for changes made by other processes
    SCAN_HUB_SETTINGS_POLL_MS: int = Field(default=250, ge=10, validation_alias="SCAN_HUB_SETTINGS_POLL_MS")

    # =========================================================================
    # Logging
    # =========================================================================
    SCAN_HUB_LOG_LEVEL: str = Field(default="INFO", validation_alias="SCAN_HUB_LOG_LEVEL")
    SCAN_HUB_LOG_TO_FILE: bool = Field(default=True, validation_alias="SCAN_HUB_LOG_TO_FILE")

    # =========================================================================
    # HTTP
    # =========================================================================
    SCAN_HUB_CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:8000",
        ],
        validation_alias="SCAN_HUB_CORS_ORIGINS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

settings = Settings()
