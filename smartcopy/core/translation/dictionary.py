"""
Dictionary lookup client (dictionaryapi.dev layout).

The endpoint is keyed by a single word and answers with a JSON array whose
first element groups definitions by meaning.
"""

from typing import Any, List, Optional
from urllib.parse import quote
import logging

import httpx

from smartcopy.config import (
    DICTIONARY_ENDPOINT,
    DICTIONARY_MAX_DEFINITIONS,
    DICTIONARY_SEPARATOR,
    REQUEST_TIMEOUT,
)
from smartcopy.core.exceptions import UpstreamError, UpstreamHTTPError, UpstreamMalformedError
from .base import UpstreamClient

logger = logging.getLogger(__name__)


class DictionaryClient(UpstreamClient):
    """Looks up short definitions for a word"""

    def __init__(self, endpoint: str = DICTIONARY_ENDPOINT, timeout: float = REQUEST_TIMEOUT,
                 max_definitions: int = DICTIONARY_MAX_DEFINITIONS,
                 client: Optional[httpx.AsyncClient] = None):
        super().__init__(timeout=timeout, client=client)
        self.endpoint = endpoint.rstrip("/")
        self.max_definitions = max_definitions

    async def lookup(self, word: str) -> str:
        """
        Look up a word.

        Returns:
            Up to `max_definitions` definitions joined with an em-dash separator

        Raises:
            UpstreamError: Unknown word, transport failure or unexpected payload
        """
        word = (word or "").strip()
        if not word:
            raise UpstreamError("No word to look up")

        try:
            data = await self._get_json(f"{self.endpoint}/{quote(word, safe='')}")
        except UpstreamHTTPError as e:
            if e.status_code == 404:
                raise UpstreamError(f"No definition found for '{word}'", {'word': word}) from e
            raise

        definitions = self.parse_definitions(data, self.max_definitions)
        if not definitions:
            raise UpstreamError(f"No definition found for '{word}'", {'word': word})
        return DICTIONARY_SEPARATOR.join(definitions)

    @staticmethod
    def parse_definitions(data: Any, limit: int = DICTIONARY_MAX_DEFINITIONS) -> List[str]:
        """Collect at most `limit` definitions across all meaning groups of the first entry."""
        if not isinstance(data, list):
            raise UpstreamMalformedError(f"Expected a JSON array, got {type(data).__name__}")
        if not data:
            return []
        first = data[0]
        if not isinstance(first, dict):
            raise UpstreamMalformedError("First dictionary entry is not an object")

        meanings = first.get("meanings") or []
        if not isinstance(meanings, list):
            raise UpstreamMalformedError(f"Expected a list of meanings, got {type(meanings).__name__}")

        definitions: List[str] = []
        for meaning in meanings:
            if not isinstance(meaning, dict):
                continue
            items = meaning.get("definitions") or []
            if not isinstance(items, list):
                raise UpstreamMalformedError(f"Expected a list of definitions, got {type(items).__name__}")
            for item in items:
                text = item.get("definition") if isinstance(item, dict) else item
                if isinstance(text, str) and text.strip():
                    definitions.append(text.strip())
                if len(definitions) >= limit:
                    return definitions
        return definitions
