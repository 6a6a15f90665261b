"""Interactive command-line menu for the catalog and its git repository.

Usage:
    kbcatalog [--repository PATH] [--log-level LEVEL]

Options:
    --repository    Repository directory (default: RepositoryDirectory from
                    the per-user config file)
    --log-level     DEBUG, INFO, WARNING or ERROR
"""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from kbcatalog.core.config import settings
from kbcatalog.core.exceptions import ValidationError
from kbcatalog.core.logging import get_logger, setup_logging
from kbcatalog.schemas.catalog import CatalogResult
from kbcatalog.services.catalog import CatalogService
from kbcatalog.services.repository_config import ConfigProvider, RepositoryConfig
from kbcatalog.services.version_control import VersionControlService

logger = get_logger(__name__)

SEPARATOR = "=" * 37
DIVIDER = "-" * 37

InputFunc = Callable[[str], str]
OutputFunc = Callable[[str], None]


class CatalogMenu:
    """Numbered menu dispatching to the catalog, config and git services."""

    def __init__(
        self,
        provider: ConfigProvider,
        git: VersionControlService | None = None,
        repository: str | None = None,
        input_func: InputFunc = input,
        output_func: OutputFunc = print,
    ):
        self.provider = provider
        self.git = git or VersionControlService()
        self.repository = repository
        self.input = input_func
        self.output = output_func
        self.actions: list[tuple[str, Callable[[], Awaitable[None]]]] = [
            ("Clone remote repository to local path", self.clone),
            ("Stage all changed files", self.stage_all),
            ("Commit staged changes", self.commit),
            ("Push commits to remote", self.push),
            ("Save repository config", self.save_config),
            ("Show repository config", self.show_config),
            ("Create catalog", self.create_catalog),
            ("Add file to catalog", self.add_file),
            ("List files with tags", self.list_files),
            ("Add tag to file", self.attach_tag),
            ("Find files by tag", self.search_by_tag),
            ("Remove tag from file", self.detach_tag),
            ("Remove file", self.delete_file),
            ("Show all tags", self.list_tags),
            ("Scan repository into catalog", self.reconcile),
        ]

    @property
    def exit_choice(self) -> int:
        """Menu number that ends the loop."""
        return len(self.actions) + 1

    async def run(self) -> None:
        """Show the menu and dispatch choices until exit is selected."""
        self.print_menu()
        while True:
            try:
                raw = self.input(f"Please enter operation number (1-{self.exit_choice}): ")
            except EOFError:
                self.output("Exiting program...")
                return

            try:
                choice = int(raw.strip())
            except ValueError:
                choice = 0

            if not 1 <= choice <= self.exit_choice:
                self.output(f"Invalid input, please enter a number between 1 and {self.exit_choice}!\n")
                continue
            if choice == self.exit_choice:
                self.output("Exiting program...")
                return

            label, action = self.actions[choice - 1]
            self.output(f"\n===== {label} =====")
            await action()
            self.output(f"\n{DIVIDER}\n")

    def print_menu(self) -> None:
        """Print the numbered list of operations."""
        self.output(f"===== {settings.app_name} CLI =====")
        self.output("Please select the operation to execute:")
        for number, (label, _) in enumerate(self.actions, start=1):
            self.output(f"{number}. {label}")
        self.output(f"{self.exit_choice}. Exit")
        self.output(f"{SEPARATOR}\n")

    def ask(self, prompt: str) -> str:
        """Prompt for one trimmed line of input."""
        try:
            return self.input(f"{prompt}: ").strip()
        except EOFError:
            return ""

    def report(self, ok: bool, operation: str) -> None:
        self.output(
            f"{operation} executed successfully!" if ok else f"{operation} executed failed!"
        )

    def show_result(self, result: CatalogResult) -> None:
        self.output(result.message)

    # ========== Config ==========

    async def load_config(self) -> RepositoryConfig:
        """Read the config, applying the --repository override."""
        config = await self.provider.read_config()
        if self.repository:
            config = config.model_copy(update={"repository_directory": self.repository})
        return config

    async def save_config(self) -> None:
        config = RepositoryConfig(
            user_name=self.ask("Please enter Git username"),
            user_email=self.ask("Please enter Git email address"),
            remote_address_https=self.ask(
                "Please enter remote repository URL in https "
                "(e.g. https://github.com/username/repo.git)"
            ) or None,
            remote_address_ssh=self.ask(
                "Please enter remote repository URL in ssh "
                "(e.g. git@github.com:username/repo.git)"
            ) or None,
            repository_directory=self.ask("Please enter local repository directory path"),
        )
        saved = await self.provider.write_config(config)
        if not saved:
            for error in config.core_config_errors() + config.clone_config_errors():
                self.output(f"Error: {error}")
        self.output("Save config successfully" if saved else "Save config failed")

    async def show_config(self) -> None:
        config = await self.load_config()
        self.output(f"Config file: {self.provider.config_file_path}")
        self.output(f"Current user name: {config.user_name or ''}")
        self.output(f"Current user email: {config.user_email or ''}")
        self.output(f"Current remote repository URL in https: {config.remote_address_https or ''}")
        self.output(f"Current remote repository URL in ssh: {config.remote_address_ssh or ''}")
        self.output(f"Current repository directory: {config.repository_directory or ''}")

    # ========== Git ==========

    async def clone(self) -> None:
        self.report(await self.git.clone(await self.load_config()), "Clone operation")

    async def stage_all(self) -> None:
        self.report(await self.git.stage_all(await self.load_config()), "Add operation")

    async def commit(self) -> None:
        message = self.ask("Please enter commit message")
        self.report(await self.git.commit(await self.load_config(), message), "Commit operation")

    async def push(self) -> None:
        self.report(await self.git.push(await self.load_config()), "Push operation")

    # ========== Catalog ==========

    @asynccontextmanager
    async def catalog_service(self) -> AsyncIterator[CatalogService | None]:
        """Open a catalog service for the configured repository.

        Yields None, after printing the reason, when no repository directory
        is configured. The service's engine is released on exit.
        """
        config = await self.load_config()
        try:
            service = CatalogService.from_config(config)
        except ValidationError:
            self.output("Error: RepositoryDirectory cannot be empty, save a config first")
            yield None
            return

        try:
            yield service
        finally:
            await service.close()

    async def create_catalog(self) -> None:
        async with self.catalog_service() as service:
            if service is not None:
                self.show_result(await service.create_catalog())

    async def add_file(self) -> None:
        async with self.catalog_service() as service:
            if service is None:
                return
            file_name = self.ask("Please enter the filename to add to catalog")
            result = await service.add_file(file_name)
            self.show_result(result)
            self.report(result.ok, "Add file")

    async def list_files(self) -> None:
        async with self.catalog_service() as service:
            if service is not None:
                await self.print_files(service)

    async def print_files(self, service: CatalogService) -> None:
        """Print every file with its tags."""
        result = await service.list_files_with_tags()
        if result.files:
            self.output(SEPARATOR)
            for entry in result.files:
                self.output(f"File Name: {entry.path}")
                self.output(f"Tags: {', '.join(entry.tags) if entry.tags else 'None'}")
                self.output(DIVIDER)
            self.output(SEPARATOR)
        self.show_result(result)

    async def attach_tag(self) -> None:
        async with self.catalog_service() as service:
            if service is None:
                return
            await self.print_files(service)
            file_name = self.ask("Please enter filename")
            tag_name = self.ask("Please enter tag")
            self.show_result(await service.attach_tag(file_name, tag_name))

    async def search_by_tag(self) -> None:
        async with self.catalog_service() as service:
            if service is None:
                return
            tag_name = self.ask("Please enter tag")
            result = await service.search_by_tag(tag_name)
            if result.paths:
                self.output(SEPARATOR)
                self.output(f"Files with tag '{tag_name.strip()}':")
                self.output(DIVIDER)
                for path in result.paths:
                    self.output(f"File Name: {path}")
                self.output(DIVIDER)
            self.show_result(result)

    async def detach_tag(self) -> None:
        async with self.catalog_service() as service:
            if service is None:
                return
            file_name = self.ask("Please enter filename")
            tag_name = self.ask("Please enter tag")
            self.show_result(await service.detach_tag(file_name, tag_name))

    async def delete_file(self) -> None:
        async with self.catalog_service() as service:
            if service is None:
                return
            file_name = self.ask("Please enter filename")
            self.show_result(await service.delete_file(file_name))

    async def list_tags(self) -> None:
        async with self.catalog_service() as service:
            if service is None:
                return
            result = await service.list_all_tags()
            for tag in result.tags:
                self.output(f"Tag: {tag}")
            self.show_result(result)

    async def reconcile(self) -> None:
        async with self.catalog_service() as service:
            if service is None:
                return
            result = await service.reconcile()
            self.show_result(result)
            self.report(result.ok, "Scan")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="kbcatalog",
        description="Catalog the files of a repository and tag them",
    )
    parser.add_argument(
        "--repository",
        help="Repository directory (default: RepositoryDirectory from the config file)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help=f"Log level (default: {settings.log_level})",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Run the interactive menu."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    menu = CatalogMenu(ConfigProvider(), repository=args.repository)
    try:
        asyncio.run(menu.run())
    except KeyboardInterrupt:
        logger.info("interrupted")


if __name__ == "__main__":
    main()
