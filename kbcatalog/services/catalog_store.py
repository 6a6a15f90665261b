"""Catalog store owning the per-repository file and tag database.

Each repository keeps its catalog in ``<repo>/.kbdatabase/KbInfo.db``. The
store never creates that file implicitly: :meth:`CatalogStore.create` is the
only way in, and every mutation checks :meth:`CatalogStore.exists` first so
``NOT_INITIALIZED`` stays an explicit outcome.

Each operation opens its own session and releases it before returning.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from alembic.util import CommandError
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from kbcatalog.core.config import settings
from kbcatalog.core.exceptions import (
    CatalogNotInitializedError,
    DuplicateError,
    NotFoundError,
    StorageError,
)
from kbcatalog.core.logging import get_logger
from kbcatalog.db.migrations import upgrade_to_head
from kbcatalog.db.models import CatalogFile, FileTag, Tag
from kbcatalog.db.session import create_catalog_engine, create_session_maker, scoped_session
from kbcatalog.schemas.catalog import CatalogStatus, FileWithTags

logger = get_logger(__name__)


class CatalogStore:
    """Persistent catalog of files and tags for one repository."""

    def __init__(self, repository_root: str | Path):
        """Initialize the store.

        Args:
            repository_root: Repository the catalog belongs to.
        """
        self.repository_root = Path(repository_root)
        self.catalog_dir = settings.catalog_path(self.repository_root)
        self.db_path = self.catalog_dir / settings.catalog_db_name
        self._engine: AsyncEngine | None = None
        self._session_maker: async_sessionmaker[AsyncSession] | None = None

    async def __aenter__(self) -> CatalogStore:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.dispose()

    @property
    def engine(self) -> AsyncEngine:
        """Get the engine, creating it on first use."""
        if self._engine is None:
            self._engine = create_catalog_engine(self.db_path)
            self._session_maker = create_session_maker(self._engine)
        return self._engine

    @property
    def session_maker(self) -> async_sessionmaker[AsyncSession]:
        """Get the session factory bound to this catalog."""
        if self._session_maker is None:
            self._session_maker = create_session_maker(self.engine)
        return self._session_maker

    async def dispose(self) -> None:
        """Release the engine."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_maker = None

    # ========== Lifecycle ==========

    def exists(self) -> bool:
        """Check whether the catalog database file is present."""
        return self.db_path.is_file()

    async def create(self) -> CatalogStatus:
        """Create the catalog database and its schema.

        Returns:
            CREATED, or ALREADY_EXISTS if the file was there already (it is
            left untouched).

        Raises:
            StorageError: If the directory or schema cannot be created.
        """
        if self.exists():
            logger.info("catalog_already_exists", db_path=str(self.db_path))
            return CatalogStatus.ALREADY_EXISTS

        try:
            self.catalog_dir.mkdir(parents=True, exist_ok=True)
            async with self.engine.begin() as conn:
                await conn.run_sync(upgrade_to_head)
        except (OSError, SQLAlchemyError, CommandError) as e:
            logger.error("catalog_create_failed", db_path=str(self.db_path), error=str(e))
            await self._remove_partial_catalog()
            raise StorageError(f"Failed to create catalog: {e}") from e

        logger.info("catalog_created", db_path=str(self.db_path))
        return CatalogStatus.CREATED

    async def migrate(self) -> None:
        """Upgrade an existing catalog to the latest schema revision.

        Raises:
            CatalogNotInitializedError: If the catalog does not exist.
            StorageError: If the migration fails.
        """
        self._require_catalog()
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(upgrade_to_head)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to migrate catalog: {e}") from e

        logger.info("catalog_migrated", db_path=str(self.db_path))

    # ========== Files ==========

    async def add_file(self, path: str) -> CatalogStatus:
        """Record a single file.

        Returns:
            ADDED, DUPLICATE if the path is already recorded, or
            NOT_INITIALIZED if the catalog does not exist.
        """
        if not self.exists():
            return CatalogStatus.NOT_INITIALIZED

        try:
            async with scoped_session(self.session_maker) as session:
                if await self._find_file(session, path) is not None:
                    logger.info("file_already_recorded", path=path)
                    return CatalogStatus.DUPLICATE

                session.add(CatalogFile(path=path))
        except IntegrityError:
            return CatalogStatus.DUPLICATE
        except (SQLAlchemyError, UnicodeError) as e:
            raise StorageError(f"Failed to add file '{path}': {e}") from e

        logger.info("file_added", path=path)
        return CatalogStatus.ADDED

    async def batch_add_files(self, paths: Iterable[str]) -> tuple[int, int]:
        """Record many files in one atomic transaction.

        Known paths are read once, the input is de-duplicated, and only new
        rows are inserted. Either every new row is committed or none is.

        Args:
            paths: Relative paths to record.

        Returns:
            Tuple of (added count, skipped count).

        Raises:
            CatalogNotInitializedError: If the catalog does not exist.
            StorageError: If the transaction fails (nothing is committed).
        """
        self._require_catalog()

        # dict keeps first-seen order while dropping repeats
        candidates = list(dict.fromkeys(paths))

        try:
            async with self.session_maker() as session:
                async with session.begin():
                    result = await session.execute(select(CatalogFile.path))
                    existing = set(result.scalars().all())

                    new_paths = [path for path in candidates if path not in existing]
                    session.add_all([CatalogFile(path=path) for path in new_paths])
        except (SQLAlchemyError, UnicodeError) as e:
            logger.error(
                "batch_add_failed",
                candidates=len(candidates),
                error=str(e),
                exc_info=True,
            )
            raise StorageError(f"Failed to add files: {e}") from e

        added = len(new_paths)
        skipped = len(candidates) - added
        logger.info("batch_add_completed", added=added, skipped=skipped)
        return added, skipped

    async def delete_file(self, path: str) -> CatalogStatus:
        """Delete a file and all of its associations.

        Tags are kept even when this removes their last association.

        Returns:
            DELETED, FILE_NOT_FOUND or NOT_INITIALIZED.
        """
        if not self.exists():
            return CatalogStatus.NOT_INITIALIZED

        try:
            async with scoped_session(self.session_maker) as session:
                file = await self._require_file(session, path)
                await session.execute(delete(FileTag).where(FileTag.file_id == file.id))
                await session.execute(delete(CatalogFile).where(CatalogFile.id == file.id))
        except NotFoundError:
            return CatalogStatus.FILE_NOT_FOUND
        except (SQLAlchemyError, UnicodeError) as e:
            raise StorageError(f"Failed to delete file '{path}': {e}") from e

        logger.info("file_deleted", path=path)
        return CatalogStatus.DELETED

    async def list_files_with_tags(self) -> list[FileWithTags]:
        """List every file with its tag names, in insertion order.

        Raises:
            CatalogNotInitializedError: If the catalog does not exist.
        """
        self._require_catalog()

        try:
            async with scoped_session(self.session_maker) as session:
                result = await session.execute(
                    select(CatalogFile)
                    .options(selectinload(CatalogFile.file_tags).selectinload(FileTag.tag))
                    .order_by(CatalogFile.id)
                )
                files = result.scalars().all()

                return [
                    FileWithTags(path=file.path, tags=file.tag_names)
                    for file in files
                ]
        except (SQLAlchemyError, UnicodeError) as e:
            raise StorageError(f"Failed to list files: {e}") from e

    async def count_files(self) -> int:
        """Count the files in the catalog.

        Raises:
            CatalogNotInitializedError: If the catalog does not exist.
        """
        self._require_catalog()

        try:
            async with scoped_session(self.session_maker) as session:
                result = await session.execute(select(func.count(CatalogFile.id)))
                return result.scalar() or 0
        except (SQLAlchemyError, UnicodeError) as e:
            raise StorageError(f"Failed to count files: {e}") from e

    # ========== Tags ==========

    async def attach_tag(self, path: str, tag_name: str) -> CatalogStatus:
        """Attach a tag to a file, creating the tag on first use.

        Returns:
            ATTACHED, FILE_NOT_FOUND, TAG_ALREADY_ATTACHED or NOT_INITIALIZED.
        """
        if not self.exists():
            return CatalogStatus.NOT_INITIALIZED

        try:
            async with scoped_session(self.session_maker) as session:
                file = await self._require_file(session, path)
                tag = await self._get_or_create_tag(session, tag_name)
                await self._ensure_not_attached(session, file, tag)

                session.add(FileTag(file_id=file.id, tag_id=tag.id))
        except NotFoundError:
            return CatalogStatus.FILE_NOT_FOUND
        except DuplicateError:
            return CatalogStatus.TAG_ALREADY_ATTACHED
        except IntegrityError:
            return CatalogStatus.TAG_ALREADY_ATTACHED
        except (SQLAlchemyError, UnicodeError) as e:
            raise StorageError(f"Failed to attach tag '{tag_name}' to '{path}': {e}") from e

        logger.info("tag_attached", path=path, tag=tag_name)
        return CatalogStatus.ATTACHED

    async def detach_tag(self, path: str, tag_name: str) -> CatalogStatus:
        """Remove a tag from a file. The tag itself is kept.

        Returns:
            DETACHED, FILE_NOT_FOUND, ASSOCIATION_NOT_FOUND or NOT_INITIALIZED.
        """
        if not self.exists():
            return CatalogStatus.NOT_INITIALIZED

        try:
            async with scoped_session(self.session_maker) as session:
                file = await self._find_file(session, path)
                if file is None:
                    return CatalogStatus.FILE_NOT_FOUND

                result = await session.execute(
                    select(FileTag)
                    .join(Tag, FileTag.tag_id == Tag.id)
                    .where(FileTag.file_id == file.id, Tag.name == tag_name)
                )
                file_tag = result.scalar_one_or_none()
                if file_tag is None:
                    return CatalogStatus.ASSOCIATION_NOT_FOUND

                await session.delete(file_tag)
        except (SQLAlchemyError, UnicodeError) as e:
            raise StorageError(f"Failed to detach tag '{tag_name}' from '{path}': {e}") from e

        logger.info("tag_detached", path=path, tag=tag_name)
        return CatalogStatus.DETACHED

    async def search_by_tag(self, tag_name: str) -> list[str] | None:
        """Find the files carrying a tag.

        Returns:
            Paths in insertion order, an empty list for a tag with no files,
            or None if no such tag exists.

        Raises:
            CatalogNotInitializedError: If the catalog does not exist.
        """
        self._require_catalog()

        try:
            async with scoped_session(self.session_maker) as session:
                tag = await self._find_tag(session, tag_name)
                if tag is None:
                    return None

                result = await session.execute(
                    select(CatalogFile.path)
                    .join(FileTag, FileTag.file_id == CatalogFile.id)
                    .where(FileTag.tag_id == tag.id)
                    .order_by(CatalogFile.id)
                )
                return list(result.scalars().all())
        except (SQLAlchemyError, UnicodeError) as e:
            raise StorageError(f"Failed to search tag '{tag_name}': {e}") from e

    async def list_all_tags(self) -> list[str]:
        """List every tag name, including unused ones.

        Raises:
            CatalogNotInitializedError: If the catalog does not exist.
        """
        self._require_catalog()

        try:
            async with scoped_session(self.session_maker) as session:
                result = await session.execute(select(Tag.name).order_by(Tag.id))
                return list(result.scalars().all())
        except (SQLAlchemyError, UnicodeError) as e:
            raise StorageError(f"Failed to list tags: {e}") from e

    # ========== Helpers ==========

    async def _remove_partial_catalog(self) -> None:
        # exists() must stay False until the schema is in place
        await self.dispose()
        for suffix in ("", "-journal", "-wal", "-shm"):
            self.db_path.with_name(self.db_path.name + suffix).unlink(missing_ok=True)

    def _require_catalog(self) -> None:
        if not self.exists():
            raise CatalogNotInitializedError(str(self.db_path))

    async def _find_file(self, session: AsyncSession, path: str) -> CatalogFile | None:
        result = await session.execute(
            select(CatalogFile).where(CatalogFile.path == path)
        )
        return result.scalar_one_or_none()

    async def _require_file(self, session: AsyncSession, path: str) -> CatalogFile:
        file = await self._find_file(session, path)
        if file is None:
            raise NotFoundError(f"File '{path}' does not exist in catalog", "FILE_NOT_FOUND")
        return file

    async def _find_tag(self, session: AsyncSession, name: str) -> Tag | None:
        result = await session.execute(select(Tag).where(Tag.name == name))
        return result.scalar_one_or_none()

    async def _get_or_create_tag(self, session: AsyncSession, name: str) -> Tag:
        tag = await self._find_tag(session, name)
        if tag is not None:
            return tag

        tag = Tag(name=name)
        session.add(tag)
        await session.flush()

        logger.info("tag_created", tag=name)
        return tag

    async def _ensure_not_attached(
        self, session: AsyncSession, file: CatalogFile, tag: Tag
    ) -> None:
        result = await session.execute(
            select(FileTag).where(
                FileTag.file_id == file.id,
                FileTag.tag_id == tag.id,
            )
        )
        if result.scalar_one_or_none() is not None:
            raise DuplicateError(f"Tag '{tag.name}' already attached to '{file.path}'")
