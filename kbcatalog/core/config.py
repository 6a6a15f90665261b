"""Application configuration using pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-level settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="KBCATALOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "KBManager"
    version: str = "0.3.0"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Per-user repository config
    config_dir: Path | None = Field(
        default=None,
        description="Override for the per-user config root (platform default when unset)",
    )
    config_file_name: str = "config.json"

    # Catalog layout inside a repository
    catalog_dir_name: str = Field(
        default=".kbdatabase",
        description="Hidden directory holding the catalog database",
    )
    catalog_db_name: str = Field(
        default="KbInfo.db",
        description="SQLite file name inside the catalog directory",
    )

    # Scanner
    reserved_dirs: list[str] = Field(
        default=[".git", ".kbdatabase"],
        description="Directory names never scanned (matched case-insensitively)",
    )
    max_path_length: int = Field(
        default=500,
        ge=1,
        description="Longest relative path stored in the catalog",
    )
    max_tag_length: int = Field(
        default=100,
        ge=1,
        description="Longest tag name stored in the catalog",
    )

    # Version control
    git_executable: str = "git"
    git_timeout: float = Field(
        default=300.0,
        gt=0,
        description="Seconds before a git subprocess is killed",
    )

    def catalog_path(self, repository_root: Path) -> Path:
        """Get the catalog directory for a repository."""
        return Path(repository_root) / self.catalog_dir_name


# Global settings instance
settings = Settings()
