"""Repository scanner producing the relative paths a catalog should hold.

Walks a repository tree and yields root-relative, forward-slash separated
paths. Reserved directories (git metadata, the catalog itself) are pruned at
any depth, hidden files are skipped, and unreadable subtrees are logged and
passed over so a partial result is still returned.
"""

from __future__ import annotations

import asyncio
import os
import stat
import sys
from collections.abc import Iterable, Iterator
from pathlib import Path

from kbcatalog.core.config import settings
from kbcatalog.core.exceptions import AccessError, RepositoryNotFoundError
from kbcatalog.core.logging import get_logger

logger = get_logger(__name__)

IS_WINDOWS = sys.platform == "win32"


class PathScanner:
    """Enumerates catalogable files under a repository root."""

    def __init__(
        self,
        reserved_dirs: Iterable[str] | None = None,
        max_path_length: int | None = None,
    ):
        """Initialize the scanner.

        Args:
            reserved_dirs: Directory names to skip. Defaults to settings.
            max_path_length: Longest relative path to keep. Defaults to settings.
        """
        names = settings.reserved_dirs if reserved_dirs is None else reserved_dirs
        self.reserved_dirs = frozenset(name.casefold() for name in names)
        self.max_path_length = max_path_length or settings.max_path_length
        self.access_errors: list[AccessError] = []

    def scan(self, repository_root: str | Path) -> Iterator[str]:
        """Scan a repository for files.

        The root is checked immediately; the walk itself is lazy.

        Args:
            repository_root: Directory to scan.

        Returns:
            Iterator over normalized relative paths.

        Raises:
            RepositoryNotFoundError: If the root is missing or not a directory.
        """
        root = Path(repository_root)
        if not root.is_dir():
            raise RepositoryNotFoundError(str(root))

        self.access_errors = []
        return self._walk(root.resolve())

    async def scan_async(self, repository_root: str | Path) -> list[str]:
        """Scan a repository in a worker thread.

        Raises:
            RepositoryNotFoundError: If the root is missing or not a directory.
        """
        return await asyncio.to_thread(lambda: list(self.scan(repository_root)))

    def is_reserved(self, name: str) -> bool:
        """Check whether a directory name is excluded from scanning."""
        return name.casefold() in self.reserved_dirs

    def _walk(self, root: Path) -> Iterator[str]:
        count = 0
        for dirpath, dirnames, filenames in os.walk(root, onerror=self._on_walk_error):
            # Prune in place so os.walk never descends into reserved dirs
            dirnames[:] = [name for name in dirnames if not self.is_reserved(name)]

            for filename in filenames:
                full_path = os.path.join(dirpath, filename)
                if self._is_hidden(full_path, filename):
                    continue

                relative_path = normalize_relative_path(root, full_path)
                if not is_encodable(relative_path):
                    logger.warning("scan_path_unencodable", path=ascii(relative_path))
                    continue

                if len(relative_path) > self.max_path_length:
                    logger.warning(
                        "scan_path_too_long",
                        path=relative_path,
                        length=len(relative_path),
                        max_length=self.max_path_length,
                    )
                    continue

                count += 1
                yield relative_path

        logger.info(
            "scan_completed",
            root=str(root),
            files=count,
            access_errors=len(self.access_errors),
        )

    def _on_walk_error(self, error: OSError) -> None:
        path = error.filename or ""
        self.access_errors.append(AccessError(str(path), str(error)))
        logger.warning("scan_access_denied", path=str(path), error=str(error))

    def _is_hidden(self, full_path: str, filename: str) -> bool:
        if not IS_WINDOWS:
            return filename.startswith(".")

        try:
            attributes = os.stat(full_path, follow_symlinks=False).st_file_attributes
        except (OSError, AttributeError):
            # Unreadable attributes are treated as hidden
            return True
        return bool(attributes & (stat.FILE_ATTRIBUTE_HIDDEN | stat.FILE_ATTRIBUTE_SYSTEM))


def is_encodable(path: str) -> bool:
    """Check that a path can be stored as UTF-8.

    Undecodable bytes in POSIX file names surface as lone surrogates, which
    the database driver cannot encode.
    """
    try:
        path.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def normalize_relative_path(root: str | Path, full_path: str | Path) -> str:
    """Convert an absolute path to the catalog's relative path form.

    Args:
        root: Repository root.
        full_path: Path of a file under the root.

    Returns:
        Root-relative path using ``/`` separators, trimmed of whitespace.
    """
    relative = os.path.relpath(os.path.abspath(full_path), os.path.abspath(root))
    return relative.replace(os.sep, "/").strip()
