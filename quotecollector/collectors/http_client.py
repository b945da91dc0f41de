"""
HTTP transport shared by the collectors.

Wraps a synchronous ``httpx.Client`` and maps transport failures onto the
collector error taxonomy. No retries happen here; callers decide.
"""

from __future__ import annotations

import threading
from typing import Any, Mapping

import httpx

from quotecollector.core.config import CollectorConfig
from quotecollector.core.exceptions import NetworkError, RequestTimeoutError
from quotecollector.core.logging import get_logger

from .deadline import Deadline

logger = get_logger(__name__)


class HttpClient:
    """Blocking HTTP client bound to one collector's configuration."""

    def __init__(self, config: CollectorConfig, transport: httpx.BaseTransport | None = None):
        self.config = config
        self._transport = transport
        self._client: httpx.Client | None = None
        self._lock = threading.Lock()

    def _ensure_client(self) -> httpx.Client:
        with self._lock:
            if self._client is None:
                self._client = httpx.Client(
                    timeout=httpx.Timeout(self.config.timeout),
                    follow_redirects=True,
                    transport=self._transport,
                )
            return self._client

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None

    def get(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        deadline: Deadline | None = None,
    ) -> str:
        """GET ``url`` and return the decoded body.

        Raises:
            RequestTimeoutError: the deadline expired or was cancelled
            NetworkError: transport failure or non-2xx status
        """
        name = self.config.name
        timeout = self.config.timeout
        if deadline is not None:
            if deadline.expired:
                raise RequestTimeoutError("deadline expired before request", name, details={"url": url})
            timeout = deadline.clamp(timeout)

        client = self._ensure_client()
        logger.debug(f"{name} GET {url}")
        try:
            response = client.get(url, params=params, headers=dict(headers or {}), timeout=timeout)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(f"request timed out: {exc}", name, details={"url": url}) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"request failed: {exc}", name, details={"url": url}) from exc

        if not response.is_success:
            raise NetworkError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                name,
                status_code=response.status_code,
                details={"url": url},
            )
        return response.text
