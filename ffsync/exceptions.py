"""Exceptions raised by ffsync."""

from typing import Optional


class FFSyncError(Exception):
    """Base exception for all ffsync errors."""


class FFSyncConfigError(FFSyncError):
    """Raised when configuration or project metadata is missing or invalid."""


class FFSyncPolicyError(FFSyncError):
    """Raised when an operation is forbidden for the record it targets.

    Examples are deleting the custom functions document or moving a record
    between categories. No state is mutated when this is raised.
    """


class FFSyncStructuralError(FFSyncError):
    """Raised when a document cannot be parsed.

    The offending text is kept on ``raw_text`` for diagnostics.
    """

    def __init__(self, message: str, raw_text: Optional[str] = None):
        super().__init__(message)
        self.raw_text = raw_text


class FFSyncIndexError(FFSyncStructuralError):
    """Raised when an index document is malformed."""


class FFSyncStateError(FFSyncStructuralError):
    """Raised when the file map snapshot is malformed."""


class FFSyncAPIError(FFSyncError):
    """Raised when a sync round trip with FlutterFlow fails."""


class FFSyncNetworkError(FFSyncAPIError):
    """Raised when the request could not be delivered."""


class FFSyncInvalidResponseError(FFSyncAPIError):
    """Raised when the response body cannot be decoded."""

    def __init__(self, message: str, raw_text: Optional[str] = None):
        super().__init__(message)
        self.raw_text = raw_text
