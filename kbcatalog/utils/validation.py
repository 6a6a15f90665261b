"""Input validation helpers shared by the catalog and config layers."""

from __future__ import annotations

import re

from kbcatalog.core.exceptions import ValidationError

EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9.-]+$",
    re.IGNORECASE,
)

# https://github.com/owner/repo.git
HTTPS_REMOTE_PATTERN = re.compile(
    r"^https://(www\.)?[a-zA-Z0-9-]+\.[a-zA-Z0-9.-]+/[a-zA-Z0-9_-]+/[a-zA-Z0-9_-]+\.git$",
    re.IGNORECASE,
)

# git@gitee.com:owner/repo.git
SSH_REMOTE_PATTERN = re.compile(
    r"^git@[a-zA-Z0-9.-]+:[a-zA-Z0-9_-]+/[a-zA-Z0-9_-]+\.git$",
    re.IGNORECASE,
)


def require_text(value: str | None, field: str, max_length: int | None = None) -> str:
    """Trim a required string and check its bounds.

    Args:
        value: Raw user input.
        field: Name used in the error message.
        max_length: Optional upper bound on the trimmed length.

    Returns:
        The trimmed value.

    Raises:
        ValidationError: If the value is empty, whitespace or too long.
    """
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} cannot be empty or whitespace", field=field)
    if max_length is not None and len(text) > max_length:
        raise ValidationError(
            f"{field} is longer than {max_length} characters", field=field
        )
    return text


def is_valid_email(email: str | None) -> bool:
    """Check that an email address is present and well formed."""
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def is_valid_remote_address(address: str | None) -> bool:
    """Check that a git remote address is an HTTPS or SSH repository URL."""
    if not address:
        return False
    return bool(HTTPS_REMOTE_PATTERN.match(address) or SSH_REMOTE_PATTERN.match(address))
