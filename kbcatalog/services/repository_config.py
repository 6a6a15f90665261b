"""Per-user repository configuration stored as a small JSON file.

The file lives at ``<config root>/KBManager/config.json`` where the config
root is ``%APPDATA%`` on Windows, ``~/.config`` on Linux and the home
directory elsewhere. Keys use the PascalCase names of the established settings
file so existing configs keep loading.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import aiofiles
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_pascal

from kbcatalog.core.config import settings
from kbcatalog.core.logging import get_logger
from kbcatalog.utils.validation import is_valid_email, is_valid_remote_address

logger = get_logger(__name__)


class RepositoryConfig(BaseModel):
    """Repository location, git identity and remote addresses."""

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    user_name: str | None = Field(default=None, description="Git author name")
    user_email: str | None = Field(default=None, description="Git author email")
    remote_address_https: str | None = Field(
        default=None, description="e.g. https://github.com/username/repo.git"
    )
    remote_address_ssh: str | None = Field(
        default=None, description="e.g. git@github.com:username/repo.git"
    )
    repository_directory: str | None = Field(
        default=None, description="Local repository directory path"
    )

    def core_config_errors(self) -> list[str]:
        """Problems preventing catalog and commit operations."""
        errors = []
        if not self.repository_directory:
            errors.append("RepositoryDirectory cannot be empty")
        if not self.user_name or not self.user_email:
            errors.append("UserName and UserEmail cannot be empty")
        elif not is_valid_email(self.user_email):
            errors.append("UserEmail format is invalid (example: user@example.com)")
        return errors

    def clone_config_errors(self) -> list[str]:
        """Problems preventing a clone."""
        errors = []
        remotes = [r for r in (self.remote_address_https, self.remote_address_ssh) if r]
        if not remotes:
            errors.append("RemoteAddress cannot be both empty")
        for remote in remotes:
            if not is_valid_remote_address(remote):
                errors.append(f"RemoteAddress format is invalid: {remote}")
        if not self.repository_directory:
            errors.append("RepositoryDirectory cannot be empty")
        return errors

    def validate_core_config(self) -> bool:
        """Check the core config, logging each problem found."""
        return _report("core", self.core_config_errors())

    def validate_clone_config(self) -> bool:
        """Check the clone config, logging each problem found."""
        return _report("clone", self.clone_config_errors())


def _report(kind: str, errors: list[str]) -> bool:
    for error in errors:
        logger.warning("config_validation_failed", kind=kind, error=error)
    return not errors


def default_config_root() -> Path:
    """Get the platform's per-user config root."""
    if settings.config_dir is not None:
        return settings.config_dir

    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        return Path(appdata) if appdata else Path.home()
    if sys.platform.startswith("linux"):
        return Path.home() / ".config"
    return Path.home()


class ConfigProvider:
    """Reads and writes the repository config file."""

    def __init__(self, app_name: str | None = None, config_root: Path | None = None):
        """Initialize the provider.

        Args:
            app_name: Subdirectory under the config root. Defaults to settings.
            config_root: Override for the config root directory.
        """
        root = config_root or default_config_root()
        self.config_dir = root / (app_name or settings.app_name)
        self.config_file_path = self.config_dir / settings.config_file_name

    async def read_config(self) -> RepositoryConfig:
        """Load the config, falling back to an empty one.

        A missing file is normal on first run; an unreadable or malformed file
        is logged and treated as empty.
        """
        if not self.config_file_path.exists():
            return RepositoryConfig()

        try:
            async with aiofiles.open(self.config_file_path, encoding="utf-8") as f:
                content = await f.read()
            return RepositoryConfig.model_validate_json(content)
        except (OSError, PydanticValidationError) as e:
            logger.warning(
                "config_read_failed",
                path=str(self.config_file_path),
                error=str(e),
            )
            return RepositoryConfig()

    async def write_config(self, config: RepositoryConfig) -> bool:
        """Validate and save the config.

        Returns:
            True if the file was written.
        """
        if not config.validate_core_config() or not config.validate_clone_config():
            logger.warning("config_not_saved", reason="validation failed")
            return False

        content = json.dumps(
            config.model_dump(by_alias=True),
            indent=2,
            ensure_ascii=False,
        )
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(self.config_file_path, "w", encoding="utf-8") as f:
                await f.write(content)
        except OSError as e:
            logger.error(
                "config_write_failed",
                path=str(self.config_file_path),
                error=str(e),
                exc_info=True,
            )
            return False

        logger.info("config_saved", path=str(self.config_file_path))
        return True
