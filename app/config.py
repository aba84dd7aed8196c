# app/config.py
"""
Configuration management using Pydantic Settings.
"""
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
    DATABASE_URL: str = "sqlite+aiosqlite:///./files_gateway.db"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"
    SLACK_WEBHOOK_URL: Optional[str] = None

    # HTTP surface
    PORT: int = 8080
    # Base URL used in synthesized links (e.g. zipped mail threads); derived from PORT when unset
    PUBLIC_BASE_URL: Optional[str] = None

    # Scratch space for staged uploads, generated mail files and served archives
    CACHE_DIR: Path = Path("./.files_gateway_cache")
    # Root of the `local` provider; requests can never escape it
    LOCAL_BASE_PATH: Path = Path("./data")
    ENABLED_PROVIDERS: List[str] = Field(
        default_factory=lambda: ["local", "googledrive", "onedrive", "gmail"]
    )

    # Upstream APIs
    GOOGLE_API_BASE_URL: str = "https://www.googleapis.com"
    MS_GRAPH_BASE_URL: str = "https://graph.microsoft.com/v1.0"

    # Listing bounds
    DRIVE_PAGE_SIZE: int = 50
    ONEDRIVE_PAGE_SIZE: int = 25
    LIST_SOFT_CAP: int = 50
    GMAIL_DEFAULT_LIMIT: int = 50

    @property
    def public_base_url(self) -> str:
        if self.PUBLIC_BASE_URL:
            return self.PUBLIC_BASE_URL.rstrip("/")
        return f"http://localhost:{self.PORT}"


settings = Settings()
