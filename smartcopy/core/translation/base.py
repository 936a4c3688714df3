"""
Base class for HTTP upstream clients.

Owns the pooled httpx client and maps transport-level failures onto the
upstream exception hierarchy, so concrete clients only deal with payloads.
"""

from typing import Any, Dict, Optional
import json
import logging

import httpx

from smartcopy.config import REQUEST_TIMEOUT
from smartcopy.core.exceptions import (
    UpstreamError,
    UpstreamHTTPError,
    UpstreamMalformedError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)


class UpstreamClient:
    """Base class for translation and dictionary service clients"""

    def __init__(self, timeout: float = REQUEST_TIMEOUT, client: Optional[httpx.AsyncClient] = None):
        """
        Args:
            timeout: Per-request time bound in seconds
            client: Optional pre-built client (tests inject one with a MockTransport)
        """
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create a persistent HTTP client with connection pooling"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                timeout=httpx.Timeout(self.timeout),
                headers={"Accept": "application/json"}
            )
            self._owns_client = True
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a JSON document.

        Raises:
            UpstreamTimeoutError: Request exceeded the time bound
            UpstreamHTTPError: Non-success status
            UpstreamMalformedError: Body is not JSON
            UpstreamError: Any other transport failure
        """
        client = await self._get_client()
        try:
            response = await client.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(f"Request timed out after {self.timeout}s", {'url': url}) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            body = e.response.text[:200] if e.response is not None else ""
            raise UpstreamHTTPError(f"HTTP {status}: {body}", status, {'url': url}) from e
        except (json.JSONDecodeError, ValueError) as e:
            raise UpstreamMalformedError(f"Response is not valid JSON: {e}", {'url': url}) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Request failed: {e}", {'url': url}) from e
