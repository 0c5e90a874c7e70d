"""Packaging of local changes into a FlutterFlow sync request.

A sync round bundles every changed file into a zip archive, attaches the
file map and the custom function changes, sends everything in one request
and turns the response into per-file warnings. Committing the local state
is left to the caller once it accepts the result.
"""

import base64
import io
import json
import logging
import uuid
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import httpx

from ..api import FlutterFlowClient
from ..exceptions import FFSyncAPIError, FFSyncError, FFSyncInvalidResponseError
from ..layout import PUBSPEC_FILE
from ..models import CodeType
from .detector import ChangeDetector
from .functions import FunctionChange
from .state import FileStateStore

logger = logging.getLogger(__name__)

FileWarnings = dict[str, list[Any]]


@dataclass
class SyncPayload:
    """Everything sent for one sync round."""

    custom_code_paths: list[Path]
    """Absolute paths of changed files"""

    serialized_yaml: str
    """Raw pubspec.yaml content"""

    branch_name: str
    project_id: str
    request_id: str

    file_map_contents: str
    """JSON file map without the dependency record"""

    function_changes: str
    """JSON encoded function changes"""


@dataclass
class SyncResult:
    """Outcome of :meth:`SyncPackager.push`."""

    error: Optional[Exception] = None
    file_warnings: FileWarnings = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the round trip succeeded without any warnings."""
        return self.error is None and not any(self.file_warnings.values())


def build_archive(paths: list[Path]) -> bytes:
    """Zip files and directories into one archive.

    Files are stored under their base name. Directories are added
    recursively with entries relative to the directory itself.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for path in paths:
            if not path.exists():
                logger.warning(f"Skipping missing file {path}")
                continue
            if path.is_dir():
                for child in sorted(path.rglob("*")):
                    if child.is_file():
                        archive.write(child, child.relative_to(path).as_posix())
            else:
                archive.write(path, path.name)
    return buffer.getvalue()


def decode_response(response: httpx.Response) -> FileWarnings:
    """Turn a sync response into a mapping of filename to warnings.

    A failed request carries the mapping directly in its body. A
    successful one wraps it as an encoded JSON document in ``value``.

    Raises:
        FFSyncInvalidResponseError: If the body (or the wrapped document)
            is not a JSON object
    """
    try:
        body = response.json()
    except ValueError as e:
        raise FFSyncInvalidResponseError(response.text, raw_text=response.text) from e

    if not response.is_success:
        # Project level failure, surfaced per file
        warnings = body
    else:
        value = body.get("value") if isinstance(body, dict) else None
        if not isinstance(value, str):
            raise FFSyncInvalidResponseError(
                "Sync response has no encoded value", raw_text=response.text
            )
        try:
            warnings = json.loads(value)
        except json.JSONDecodeError as e:
            raise FFSyncInvalidResponseError(value, raw_text=value) from e

    if not isinstance(warnings, dict):
        raise FFSyncInvalidResponseError(
            "Sync response is not a mapping of files to warnings",
            raw_text=response.text,
        )
    return {
        str(name): file_warnings if isinstance(file_warnings, list) else [file_warnings]
        for name, file_warnings in warnings.items()
        if file_warnings is not None
    }


class SyncPackager:
    """Builds, sends and decodes sync requests for one project."""

    def __init__(self, client: FlutterFlowClient, detector: ChangeDetector):
        """Initialize sync packager.

        Args:
            client: FlutterFlow API client
            detector: Change detector holding the project state
        """
        self.client = client
        self.detector = detector

    @staticmethod
    def build_payload(
        store: FileStateStore,
        function_change: FunctionChange,
        yaml_text: str,
        branch_name: str,
        project_id: str,
        request_id: str,
    ) -> SyncPayload:
        """Collect the changed files and metadata of a sync round.

        Args:
            store: File map of the project
            function_change: Custom function changes since the last sync
            yaml_text: Raw pubspec.yaml content
            branch_name: Branch to push to
            project_id: FlutterFlow project id
            request_id: Unique id of this round

        Returns:
            SyncPayload
        """
        changed = [
            store.full_path(key, record)
            for key, record in store.items()
            if record.is_modified
        ]
        logger.debug(f"{len(changed)} changed file(s) to sync")
        return SyncPayload(
            custom_code_paths=changed,
            serialized_yaml=yaml_text,
            branch_name=branch_name,
            project_id=project_id,
            request_id=request_id,
            file_map_contents=json.dumps(store.to_dict(exclude=(CodeType.DEPENDENCIES,))),
            function_changes=function_change.to_json(),
        )

    @staticmethod
    def build_request(payload: SyncPayload) -> dict[str, str]:
        """Assemble the request body, archiving the changed files."""
        archive = build_archive(payload.custom_code_paths)
        return {
            "project_id": payload.project_id,
            "zipped_custom_code": base64.b64encode(archive).decode("ascii"),
            "uid": payload.request_id,
            "branch_name": payload.branch_name,
            "serialized_yaml": payload.serialized_yaml,
            "file_map": payload.file_map_contents,
            "functions_map": payload.function_changes,
        }

    def send(self, payload: SyncPayload) -> httpx.Response:
        """Send a payload and return the raw response."""
        request = self.build_request(payload)
        logger.info(
            f"Syncing {len(payload.custom_code_paths)} file(s) to "
            f"{payload.project_id} ({payload.branch_name or 'main'})"
        )
        return self.client.push_code(request)

    def decode_response(self, response: httpx.Response) -> FileWarnings:
        """See :func:`decode_response`."""
        return decode_response(response)

    def push(self, request_id: Optional[str] = None) -> SyncResult:
        """Run one sync round for the detector's project.

        Errors are returned in the result rather than raised. The local
        state is not committed.
        """
        root = self.detector.root
        payload = self.build_payload(
            self.detector.store,
            self.detector.function_change(),
            (root / PUBSPEC_FILE).read_text(encoding="utf-8"),
            self.client.branch_name,
            self.client.project_id,
            request_id or str(uuid.uuid4()),
        )
        try:
            response = self.send(payload)
            warnings = self.decode_response(response)
        except FFSyncError as e:
            logger.error(f"Sync failed: {e}")
            error = FFSyncAPIError(f"Error syncing with FlutterFlow: {e}")
            error.__cause__ = e
            return SyncResult(error=error)
        return SyncResult(file_warnings=warnings)

    def commit(self) -> None:
        """Mark the state as synced once the caller accepted the result."""
        self.detector.commit()
