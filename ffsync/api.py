"""API client for FlutterFlow."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import config
from .exceptions import FFSyncConfigError, FFSyncNetworkError
from .utils import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)


class FlutterFlowClient:
    """Client for the FlutterFlow custom code sync API."""

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        project_id: str = "",
        branch_name: str = "",
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize FlutterFlow API client.

        Args:
            api_key: Optional API key (uses config if not provided)
            api_url: Optional API URL (uses config if not provided)
            project_id: FlutterFlow project id
            branch_name: Branch to sync with (empty for the main branch)
            timeout: Request timeout in seconds (default: 60.0)
        """
        self.api_key = api_key or config.api_key
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.project_id = project_id
        self.branch_name = branch_name
        self.timeout = timeout

        if not self.api_key:
            raise FFSyncConfigError(
                "API key not configured. Please set FFSYNC_API_KEY environment "
                "variable or run 'ffsync init'."
            )

        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def _post(self, endpoint: str, payload: dict[str, Any]) -> httpx.Response:
        """POST a JSON payload without interpreting the response status.

        Raises:
            FFSyncNetworkError: If the request could not be completed
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        try:
            response = self._get_client().post(url, json=payload)
        except httpx.RequestError as e:
            raise FFSyncNetworkError(f"Network error: {e}") from e
        logger.debug(f"POST {url} -> {response.status_code}")
        return response

    # =========================
    # Custom Code Operations
    # =========================

    def push_code(self, request: dict[str, str]) -> httpx.Response:
        """Send a sync request.

        The call is made once. Retrying is up to the caller, and the raw
        response is returned whatever its status, since failed requests
        carry per-file warnings in their body.

        Args:
            request: Request body as built by
                :meth:`ffsync.sync.SyncPackager.build_request`

        Returns:
            Raw HTTP response

        Raises:
            FFSyncNetworkError: If the request could not be delivered
        """
        return self._post("/syncCustomCodeChanges", request)
