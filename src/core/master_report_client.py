from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

import httpx

from src.core.config import get_settings
from src.core.errors import UpstreamError

logger = logging.getLogger(__name__)

MASTER_REPORT_PATH = "/api/reports/master-report"


class MasterReportClient:
    _shared_client: httpx.Client | None = None
    _client_lock: Lock = Lock()

    def __init__(self, http_client: Optional[httpx.Client] = None) -> None:
        settings = get_settings()
        self.base_url = settings.master_report_api_url.rstrip("/")
        self.api_token = settings.master_report_api_token
        self.timeout = settings.master_report_timeout_seconds
        self._http_client = http_client

    @classmethod
    def _get_shared_client(cls, timeout: float) -> httpx.Client:
        if cls._shared_client is not None:
            return cls._shared_client
        with cls._client_lock:
            if cls._shared_client is None:
                cls._shared_client = httpx.Client(
                    timeout=timeout,
                    limits=httpx.Limits(max_keepalive_connections=10, max_connections=50),
                )
        return cls._shared_client

    @classmethod
    def close_shared_client(cls) -> None:
        with cls._client_lock:
            if cls._shared_client is not None:
                cls._shared_client.close()
                cls._shared_client = None

    def _http(self) -> httpx.Client:
        # Resolved per request: app shutdown closes and drops the shared client.
        if self._http_client is not None:
            return self._http_client
        return self._get_shared_client(self.timeout)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    def fetch_master_report(self, group_id: Optional[int] = None) -> Dict[str, Any]:
        params: List[Tuple[str, str]] = []
        if group_id is not None:
            params.append(("groupId", str(group_id)))
        url = f"{self.base_url}{MASTER_REPORT_PATH}"
        if params:
            url = f"{url}?{urlencode(params)}"

        try:
            response = self._http().get(url, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("master report upstream returned %s for %s", status, url)
            raise UpstreamError("Master report API returned an error", status=status) from exc
        except httpx.HTTPError as exc:
            logger.warning("master report upstream unreachable at %s: %s", url, exc)
            raise UpstreamError("Master report API is unreachable") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError("Master report API returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise UpstreamError("Master report API returned an unexpected body")
        return payload
