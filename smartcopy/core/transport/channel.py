"""
Message channels between a surface and the dispatcher peer.

A channel delivers one request message and returns the peer's response
message. Failures are raised as ChannelError with a reason string; the
resilient transport decides whether the reason warrants a retry.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional
import asyncio
import json
import logging

import httpx

from smartcopy.config import PEER_TIMEOUT, PEER_URL
from smartcopy.core.exceptions import ChannelError, ChannelInvalidatedError, SmartCopyError

logger = logging.getLogger(__name__)

Message = Dict[str, Any]

# Gateway statuses seen while the peer process restarts
RESTART_STATUSES = {502, 503}


class MessageChannel(ABC):
    """One-shot request/response channel to a peer."""

    @abstractmethod
    async def send(self, message: Message) -> Message:
        """
        Deliver a message and wait for the reply.

        Raises:
            ChannelError: Delivery failed; `reason` describes why
        """
        pass


class LocalChannel(MessageChannel):
    """In-process channel calling a handler coroutine directly.

    Used when the surface and the dispatcher share one process, and in tests
    to script peer failures.
    """

    def __init__(self, handler: Callable[[Message], Awaitable[Message]]):
        self.handler = handler

    async def send(self, message: Message) -> Message:
        if self.handler is None:
            raise ChannelInvalidatedError("Receiving end does not exist")
        try:
            return await self.handler(message)
        except ChannelError:
            raise
        except SmartCopyError as e:
            # Same outcome as a 4xx reply from an HTTP peer
            raise ChannelError(e.message, recoverable=False) from e
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Same outcome as a 500 reply: the peer crashed on this message
            logger.exception("In-process peer failed to answer")
            raise ChannelError(f"Peer failed: {e}", recoverable=False) from e


class HttpChannel(MessageChannel):
    """Channel posting messages to the dispatcher peer's `/api/message` route."""

    def __init__(self, peer_url: str = PEER_URL, timeout: float = PEER_TIMEOUT,
                 client: Optional[httpx.AsyncClient] = None):
        self.peer_url = peer_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
            self._owns_client = True
        return self._client

    async def close(self):
        if self._client and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def send(self, message: Message) -> Message:
        client = await self._get_client()
        url = f"{self.peer_url}/api/message"
        try:
            response = await client.post(url, json=message)
        except httpx.ConnectError as e:
            raise ChannelInvalidatedError(f"Could not establish connection: {e}", {'url': url}) from e
        except httpx.ReadTimeout as e:
            # Request was delivered; resending repeats the whole translation
            raise ChannelError(f"Peer did not answer within {self.timeout}s", {'url': url},
                               recoverable=False) from e
        except httpx.TimeoutException as e:
            raise ChannelError(f"Peer did not answer within {self.timeout}s", {'url': url}) from e
        except httpx.HTTPError as e:
            raise ChannelError(f"Delivery failed: {e}", {'url': url}) from e

        if response.status_code in RESTART_STATUSES:
            raise ChannelInvalidatedError(f"Peer context invalidated (HTTP {response.status_code})", {'url': url})

        try:
            body = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise ChannelError(f"Peer sent a malformed reply: {e}", {'url': url}, recoverable=False) from e

        if response.status_code >= 400:
            reason = body.get("error") if isinstance(body, dict) else None
            # Client errors will not change on resend
            raise ChannelError(reason or f"HTTP {response.status_code}", {'url': url},
                               recoverable=response.status_code >= 500)

        if not isinstance(body, dict):
            raise ChannelError("Peer reply is not a message object", {'url': url}, recoverable=False)
        return body
