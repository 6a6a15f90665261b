"""Pytest configuration and fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from kbcatalog.services.catalog import CatalogService
from kbcatalog.services.catalog_store import CatalogStore


@pytest.fixture
def repo_dir(tmp_path: Path) -> Path:
    """Create an empty repository directory."""
    repo = tmp_path / "repo"
    repo.mkdir()
    return repo


@pytest.fixture
def make_files(repo_dir: Path):
    """Write files under the repository, creating parent directories."""

    def _make(*relative_paths: str) -> list[Path]:
        created = []
        for relative in relative_paths:
            path = repo_dir / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(f"content of {relative}")
            created.append(path)
        return created

    return _make


@pytest.fixture
async def store(repo_dir: Path):
    """Create a store whose catalog has not been created yet."""
    catalog_store = CatalogStore(repo_dir)
    yield catalog_store
    await catalog_store.dispose()


@pytest.fixture
async def created_store(store: CatalogStore) -> CatalogStore:
    """Create a store with an initialized catalog."""
    await store.create()
    return store


@pytest.fixture
async def service(store: CatalogStore) -> CatalogService:
    """Create a CatalogService over an uninitialized store."""
    return CatalogService(store)
