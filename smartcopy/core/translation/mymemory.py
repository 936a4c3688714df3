"""
MyMemory translation client.

Translates one chunk per request. The response exposes the translation in
`responseData.translatedText`; when that is empty, the first entry of
`matches` is used instead.
"""

from typing import Any, Optional
import logging

import httpx

from smartcopy.config import MYMEMORY_HOST, MYMEMORY_APP_ID, REQUEST_TIMEOUT
from smartcopy.core.exceptions import UpstreamHTTPError, UpstreamMalformedError
from .base import UpstreamClient

logger = logging.getLogger(__name__)


class MyMemoryClient(UpstreamClient):
    """Client for the MyMemory `/get` endpoint"""

    def __init__(self, host: str = MYMEMORY_HOST, app_id: str = MYMEMORY_APP_ID,
                 timeout: float = REQUEST_TIMEOUT, client: Optional[httpx.AsyncClient] = None):
        super().__init__(timeout=timeout, client=client)
        self.host = host.rstrip("/")
        self.app_id = app_id

    async def translate_chunk(self, text: str, source_lang: str, target_lang: str) -> str:
        """
        Translate a single chunk.

        Args:
            text: Chunk text
            source_lang: Source language code
            target_lang: Target language code

        Returns:
            Translated text; empty string when upstream legitimately returns nothing

        Raises:
            UpstreamError: On timeout, non-success response or malformed payload
        """
        params = {
            "q": text,
            "langpair": f"{source_lang}|{target_lang}",
        }
        if self.app_id:
            params["de"] = self.app_id

        logger.debug(f"MyMemory request: {len(text)} chars, {source_lang} -> {target_lang}")
        data = await self._get_json(f"{self.host}/get", params=params)
        return self.parse_response(data)

    @staticmethod
    def parse_response(data: Any) -> str:
        """Pull the translated text out of a MyMemory payload."""
        if not isinstance(data, dict):
            raise UpstreamMalformedError(f"Expected a JSON object, got {type(data).__name__}")

        status = data.get("responseStatus")
        if status is not None:
            try:
                status_code = int(status)
            except (TypeError, ValueError):
                status_code = 200
            if status_code >= 400:
                details = data.get("responseDetails") or "translation rejected"
                raise UpstreamHTTPError(f"MyMemory status {status_code}: {details}", status_code)

        response_data = data.get("responseData")
        if response_data is not None and not isinstance(response_data, dict):
            raise UpstreamMalformedError("responseData is not an object")

        translated = (response_data or {}).get("translatedText") or ""
        if not translated:
            matches = data.get("matches")
            if isinstance(matches, list) and matches:
                first = matches[0] if isinstance(matches[0], dict) else {}
                translated = first.get("translation") or first.get("translatedText") or ""
            elif response_data is None and matches is None:
                raise UpstreamMalformedError("Response has neither responseData nor matches")

        return translated if isinstance(translated, str) else str(translated)
