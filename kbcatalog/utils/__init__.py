"""Utility functions for the catalog."""

from kbcatalog.utils.validation import (
    is_valid_email,
    is_valid_remote_address,
    require_text,
)

__all__ = [
    "is_valid_email",
    "is_valid_remote_address",
    "require_text",
]
