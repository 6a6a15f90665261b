"""Catalog service orchestrating the scanner and the store.

Validates user input, converts store outcomes into printable results, and
contains storage failures so a caller never sees an exception.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from kbcatalog.core.config import settings
from kbcatalog.core.exceptions import (
    CatalogNotInitializedError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from kbcatalog.core.logging import get_logger
from kbcatalog.schemas.catalog import (
    CatalogResult,
    CatalogStatus,
    FileListResult,
    PathListResult,
    ReconcileResult,
    TagListResult,
)
from kbcatalog.services.catalog_store import CatalogStore
from kbcatalog.services.scanner import PathScanner
from kbcatalog.utils.validation import require_text

if TYPE_CHECKING:
    from kbcatalog.services.repository_config import RepositoryConfig

logger = get_logger(__name__)

NOT_INITIALIZED_MESSAGE = "There's no catalog, create one first"


class CatalogService:
    """Service for catalog creation, ingestion and tagging.

    One service instance is bound to one repository; the repository root is
    passed in explicitly rather than read from shared configuration.
    """

    def __init__(self, store: CatalogStore, scanner: PathScanner | None = None):
        """Initialize the catalog service.

        Args:
            store: The repository's catalog store.
            scanner: Scanner used by reconcile. Defaults to a PathScanner.
        """
        self.store = store
        self.scanner = scanner or PathScanner()

    @classmethod
    def for_repository(cls, repository_root: str | Path) -> CatalogService:
        """Build a service for the catalog of a repository."""
        return cls(CatalogStore(repository_root))

    @classmethod
    def from_config(cls, config: RepositoryConfig) -> CatalogService:
        """Build a service for the repository named in a config.

        Raises:
            ValidationError: If the config has no repository directory.
        """
        root = require_text(config.repository_directory, "RepositoryDirectory")
        return cls.for_repository(root)

    @property
    def repository_root(self) -> Path:
        """Get the repository this service catalogs."""
        return self.store.repository_root

    async def close(self) -> None:
        """Release the store's database engine."""
        await self.store.dispose()

    # ========== Catalog lifecycle ==========

    async def create_catalog(self) -> CatalogResult:
        """Create the catalog for this repository."""
        try:
            status = await self.store.create()
        except StorageError as e:
            return self._storage_failure("create_catalog", e)

        if status == CatalogStatus.CREATED:
            return CatalogResult(status=status, message="Catalog created successfully")
        return CatalogResult(status=status, message="Catalog already exists")

    async def reconcile(self) -> ReconcileResult:
        """Scan the repository and record files the catalog does not know yet.

        Creates the catalog first if it does not exist. Running this twice
        without filesystem changes adds nothing the second time.
        """
        root = self.repository_root
        try:
            paths = await self.scanner.scan_async(root)
        except NotFoundError as e:
            logger.warning("reconcile_root_missing", root=str(root))
            return ReconcileResult(status=CatalogStatus.NOT_FOUND, message=e.message)

        try:
            if not self.store.exists():
                logger.info("reconcile_creating_catalog", root=str(root))
                await self.store.create()

            added, skipped = await self.store.batch_add_files(paths)
        except StorageError as e:
            result = self._storage_failure("reconcile", e)
            return ReconcileResult(status=result.status, message=result.message)

        logger.info("reconcile_completed", root=str(root), added=added, skipped=skipped)
        return ReconcileResult(
            status=CatalogStatus.OK,
            message=f"Added {added} new files, skipped {skipped} already recorded",
            added=added,
            skipped=skipped,
        )

    # ========== Files ==========

    async def add_file(self, file_name: str) -> CatalogResult:
        """Record a single file by its relative path."""
        try:
            path = self._clean_path(file_name)
        except ValidationError as e:
            return self._invalid(e)

        try:
            status = await self.store.add_file(path)
        except StorageError as e:
            return self._storage_failure("add_file", e)

        messages = {
            CatalogStatus.ADDED: f"File '{path}' added successfully",
            CatalogStatus.DUPLICATE: f"File '{path}' already exists in catalog",
            CatalogStatus.NOT_INITIALIZED: NOT_INITIALIZED_MESSAGE,
        }
        return CatalogResult(status=status, message=messages[status])

    async def delete_file(self, file_name: str) -> CatalogResult:
        """Delete a file and its tag associations."""
        try:
            path = self._clean_path(file_name)
        except ValidationError as e:
            return self._invalid(e)

        try:
            status = await self.store.delete_file(path)
        except StorageError as e:
            return self._storage_failure("delete_file", e)

        messages = {
            CatalogStatus.DELETED: f"File '{path}' deleted successfully",
            CatalogStatus.FILE_NOT_FOUND: f"File '{path}' does not exist in catalog",
            CatalogStatus.NOT_INITIALIZED: NOT_INITIALIZED_MESSAGE,
        }
        return CatalogResult(status=status, message=messages[status])

    async def list_files_with_tags(self) -> FileListResult:
        """List every recorded file with its tags."""
        try:
            files = await self.store.list_files_with_tags()
        except CatalogNotInitializedError:
            return FileListResult(
                status=CatalogStatus.NOT_INITIALIZED, message=NOT_INITIALIZED_MESSAGE
            )
        except StorageError as e:
            result = self._storage_failure("list_files_with_tags", e)
            return FileListResult(status=result.status, message=result.message)

        message = f"Total files listed: {len(files)}" if files else "No files found in catalog"
        return FileListResult(status=CatalogStatus.OK, message=message, files=files)

    # ========== Tags ==========

    async def attach_tag(self, file_name: str, tag_name: str) -> CatalogResult:
        """Attach a tag to a recorded file."""
        try:
            path = self._clean_path(file_name)
            tag = self._clean_tag(tag_name)
        except ValidationError as e:
            return self._invalid(e)

        try:
            status = await self.store.attach_tag(path, tag)
        except StorageError as e:
            return self._storage_failure("attach_tag", e)

        messages = {
            CatalogStatus.ATTACHED: f"Tag '{tag}' added to file '{path}' successfully",
            CatalogStatus.FILE_NOT_FOUND: f"File '{path}' does not exist in catalog",
            CatalogStatus.TAG_ALREADY_ATTACHED: f"Tag '{tag}' already exists for file '{path}'",
            CatalogStatus.NOT_INITIALIZED: NOT_INITIALIZED_MESSAGE,
        }
        return CatalogResult(status=status, message=messages[status])

    async def detach_tag(self, file_name: str, tag_name: str) -> CatalogResult:
        """Remove a tag from a file. The tag stays in the vocabulary."""
        try:
            path = self._clean_path(file_name)
            tag = self._clean_tag(tag_name)
        except ValidationError as e:
            return self._invalid(e)

        try:
            status = await self.store.detach_tag(path, tag)
        except StorageError as e:
            return self._storage_failure("detach_tag", e)

        messages = {
            CatalogStatus.DETACHED: f"Tag '{tag}' removed from file '{path}' successfully",
            CatalogStatus.FILE_NOT_FOUND: f"File '{path}' does not exist in catalog",
            CatalogStatus.ASSOCIATION_NOT_FOUND: f"File '{path}' has no tag '{tag}'",
            CatalogStatus.NOT_INITIALIZED: NOT_INITIALIZED_MESSAGE,
        }
        return CatalogResult(status=status, message=messages[status])

    async def search_by_tag(self, tag_name: str) -> PathListResult:
        """Find the files carrying a tag."""
        try:
            tag = self._clean_tag(tag_name)
        except ValidationError as e:
            return PathListResult(status=CatalogStatus.INVALID, message=e.message)

        try:
            paths = await self.store.search_by_tag(tag)
        except CatalogNotInitializedError:
            return PathListResult(
                status=CatalogStatus.NOT_INITIALIZED, message=NOT_INITIALIZED_MESSAGE
            )
        except StorageError as e:
            result = self._storage_failure("search_by_tag", e)
            return PathListResult(status=result.status, message=result.message)

        if paths is None:
            return PathListResult(
                status=CatalogStatus.TAG_NOT_FOUND, message=f"Tag '{tag}' does not exist"
            )
        if not paths:
            message = f"No files found with tag '{tag}'"
        else:
            message = f"Total files found: {len(paths)}"
        return PathListResult(status=CatalogStatus.OK, message=message, paths=paths)

    async def list_all_tags(self) -> TagListResult:
        """List the tag vocabulary, including tags no file carries."""
        try:
            tags = await self.store.list_all_tags()
        except CatalogNotInitializedError:
            return TagListResult(
                status=CatalogStatus.NOT_INITIALIZED, message=NOT_INITIALIZED_MESSAGE
            )
        except StorageError as e:
            result = self._storage_failure("list_all_tags", e)
            return TagListResult(status=result.status, message=result.message)

        message = f"Total tags: {len(tags)}" if tags else "No tags found in catalog"
        return TagListResult(status=CatalogStatus.OK, message=message, tags=tags)

    # ========== Helpers ==========

    def _clean_path(self, file_name: str | None) -> str:
        return require_text(file_name, "File name", settings.max_path_length)

    def _clean_tag(self, tag_name: str | None) -> str:
        return require_text(tag_name, "Tag name", settings.max_tag_length)

    def _invalid(self, error: ValidationError) -> CatalogResult:
        logger.info("catalog_input_rejected", field=error.field, reason=error.message)
        return CatalogResult(status=CatalogStatus.INVALID, message=error.message)

    def _storage_failure(self, operation: str, error: StorageError) -> CatalogResult:
        if isinstance(error, CatalogNotInitializedError):
            return CatalogResult(
                status=CatalogStatus.NOT_INITIALIZED, message=NOT_INITIALIZED_MESSAGE
            )

        logger.error(
            "catalog_operation_failed",
            operation=operation,
            repository=str(self.repository_root),
            error=error.message,
            exc_info=error,
        )
        return CatalogResult(status=CatalogStatus.STORAGE_ERROR, message=error.message)
