"""Utility functions for ffsync."""

import hashlib
import re
from pathlib import Path
from typing import Union

# =============================================================================
# Constants for the sync round trip
# =============================================================================

# Request timeout for the sync call (seconds)
DEFAULT_TIMEOUT: float = 60.0

# Read size when hashing files (1 MB)
HASH_CHUNK_SIZE: int = 1024 * 1024


# =============================================================================
# Checksum utilities
# =============================================================================


def compute_checksum(file_path: Union[str, Path]) -> str:
    """Compute the SHA-256 digest of a file.

    Args:
        file_path: Path to the file

    Returns:
        Lowercase hex digest of the file content

    Raises:
        OSError: If the file cannot be read
    """
    digest = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


# =============================================================================
# Identifier naming utilities
# =============================================================================

_WORD_SPLIT_RE = re.compile(r"[^A-Za-z0-9]+")
_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _split_words(name: str) -> list[str]:
    words: list[str] = []
    for part in _WORD_SPLIT_RE.split(name):
        if part:
            words.extend(w for w in _CAMEL_BOUNDARY_RE.split(part) if w)
    return words


def to_pascal_case(name: str) -> str:
    """Convert a file stem to a widget style identifier.

    Examples:
        >>> to_pascal_case("my_custom_widget")
        'MyCustomWidget'
        >>> to_pascal_case("fancy-button")
        'FancyButton'
    """
    return "".join(w[:1].upper() + w[1:].lower() for w in _split_words(name))


def to_camel_case(name: str) -> str:
    """Convert a file stem to a function style identifier.

    Examples:
        >>> to_camel_case("fetch_user_data")
        'fetchUserData'
        >>> to_camel_case("SendEmail")
        'sendEmail'
    """
    pascal = to_pascal_case(name)
    return pascal[:1].lower() + pascal[1:]
