"""
cadence.settings
================

Configuration settings for the Cadence application.

This module provides centralized configuration options that can be used across
the Cadence application. It includes default values that can be overridden
via environment variables or a ``.env`` file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Base directories
# ---------------------------------------------------------------------------
# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent.parent

# API settings
# ---------------------------------------------------------------------------
API_HOST = os.environ.get("CADENCE_API_HOST", "127.0.0.1")
API_PORT = int(os.environ.get("CADENCE_API_PORT", "3001"))
API_DEBUG = os.environ.get("CADENCE_API_DEBUG", "False").lower() == "true"


# ---------------------------------------------------------------------------
# Pydantic settings model, loaded from environment variables
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Pydantic model for application settings, loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="",  # no prefix, use variable names as-is
        env_file=".env",  # load from .env file if present
        case_sensitive=False,  # case-insensitive environment variables
        extra="ignore",
    )

    # Weekly cycle
    mode: Literal["TEST", "PRODUCTION"] = Field("TEST", description="Schedule set used by the cycle clock")
    recency_days: int = Field(7, ge=0, description="Owners updated within this many days are not reminded")
    public_base_url: HttpUrl = Field(
        default=f"http://localhost:{API_PORT}",
        description="Base URL used in 'Mark as Complete' and feedback links",
    )
    enable_scheduler: bool = Field(False, description="Start the cron scheduler with the API")

    # Record store
    store_backend: Literal["json", "db"] = Field("json", description="Which record store adapter to use")
    records_file: Path = Field(BASE_DIR / "reminders.json", description="JSON record store location")
    db_url: str = Field(f"sqlite:///{BASE_DIR / 'cadence.db'}", description="SQLModel record store URL")

    # Gmail delivery (token acquisition happens elsewhere)
    gmail_access_token: Optional[str] = Field(None, description="OAuth bearer token for the Gmail API")
    gmail_api_base: HttpUrl = Field(
        default="https://gmail.googleapis.com/gmail/v1",
        description="Gmail REST API base URL",
    )
    dispatch_timeout: float = Field(30.0, gt=0, description="Per-message send timeout in seconds")
    test_mode: bool = Field(False, description="Redirect every email to test_mode_address")
    test_mode_address: str = Field("dev@example.com", description="Recipient used when test_mode is on")
    completion_notify_address: Optional[str] = Field(
        None, description="Coordinator notified whenever an owner completes"
    )

    # Box document monitoring
    box_access_token: Optional[str] = Field(None, description="OAuth bearer token for the Box API")
    box_api_base: HttpUrl = Field(default="https://api.box.com/2.0", description="Box API base URL")
    box_file_id: Optional[str] = Field(None, description="Id of the tracker document to watch")
    box_poll_minutes: int = Field(5, gt=0, description="Minutes between document checks")
    document_file: Path = Field(BASE_DIR / "box-config.json", description="Monitored-document state file")


# Initialize settings
settings = Settings()
