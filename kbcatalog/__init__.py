"""Repository-scoped catalog of files and free-form tags."""

from kbcatalog.core.config import settings

__version__ = settings.version
