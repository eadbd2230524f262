"""Filesystem-safe file names for page titles."""

import re

MAX_FILENAME_LENGTH = 200
FALLBACK_FILENAME = "untitled"

_RESERVED_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r'\s+')
_HYPHEN_RUNS = re.compile(r'-+')


def sanitize_filename(title: str) -> str:
    """
    Convert a page title to a filesystem-safe file name.

    Reserved characters and whitespace runs become single hyphens, the
    result is trimmed of hyphens and cut to 200 characters.

    Args:
        title: Page title

    Returns:
        Sanitized file name, ``"untitled"`` when nothing usable is left
    """
    if not title:
        return FALLBACK_FILENAME

    sanitized = _RESERVED_CHARS.sub('-', title)
    sanitized = _WHITESPACE.sub('-', sanitized)
    sanitized = _HYPHEN_RUNS.sub('-', sanitized)
    sanitized = sanitized.strip('-')

    # Truncation can expose a trailing hyphen again
    sanitized = sanitized[:MAX_FILENAME_LENGTH].rstrip('-')

    return sanitized or FALLBACK_FILENAME


__all__ = ['sanitize_filename', 'MAX_FILENAME_LENGTH', 'FALLBACK_FILENAME']
