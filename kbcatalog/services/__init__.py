"""Business logic services for the catalog."""

from kbcatalog.services.catalog import CatalogService
from kbcatalog.services.catalog_store import CatalogStore
from kbcatalog.services.repository_config import ConfigProvider, RepositoryConfig
from kbcatalog.services.scanner import PathScanner, normalize_relative_path
from kbcatalog.services.version_control import VersionControlService

__all__ = [
    "CatalogService",
    "CatalogStore",
    "ConfigProvider",
    "PathScanner",
    "RepositoryConfig",
    "VersionControlService",
    "normalize_relative_path",
]
