"""ffsync - change tracking and sync packaging for FlutterFlow custom code."""

from .api import FlutterFlowClient
from .exceptions import (
    FFSyncAPIError,
    FFSyncConfigError,
    FFSyncError,
    FFSyncIndexError,
    FFSyncInvalidResponseError,
    FFSyncNetworkError,
    FFSyncPolicyError,
    FFSyncStateError,
    FFSyncStructuralError,
)
from .models import CodeType, FileInfo, ProjectMetadata
from .utils import compute_checksum

__all__ = [
    "FlutterFlowClient",
    "CodeType",
    "FileInfo",
    "ProjectMetadata",
    "FFSyncError",
    "FFSyncAPIError",
    "FFSyncConfigError",
    "FFSyncIndexError",
    "FFSyncInvalidResponseError",
    "FFSyncNetworkError",
    "FFSyncPolicyError",
    "FFSyncStateError",
    "FFSyncStructuralError",
    "compute_checksum",
]
