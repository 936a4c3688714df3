"""
Chunked translation dispatcher.

Splits long text, translates the chunks strictly in order with a pacing
delay between requests, and reassembles whatever succeeded. A failed chunk
contributes nothing; partial output is preferred over no output.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Protocol

from smartcopy.config import CHUNK_MAX, CHUNK_PACING_SECONDS
from smartcopy.core.chunking.splitter import split_to_chunks
from smartcopy.core.events import EventBus, EventType
from smartcopy.core.exceptions import ChunkFailure, UpstreamError
from smartcopy.core.models import Chunk

logger = logging.getLogger(__name__)


class ChunkTranslator(Protocol):
    """Anything that translates one chunk (MyMemoryClient in production)."""

    async def translate_chunk(self, text: str, source_lang: str, target_lang: str) -> str:
        ...


class TranslationDispatcher:
    """Sequences per-chunk translation calls and reassembles the output."""

    def __init__(
        self,
        translator: ChunkTranslator,
        max_chunk_len: int = CHUNK_MAX,
        pacing_seconds: float = CHUNK_PACING_SECONDS,
        event_bus: Optional[EventBus] = None,
        log_callback: Optional[Callable[[str, str], None]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        """
        Args:
            translator: Per-chunk translation client
            max_chunk_len: Upstream request-size limit in characters
            pacing_seconds: Delay inserted between chunk requests
            event_bus: Optional bus receiving chunk progress events
            log_callback: Callback for logging (log_type, message)
            sleep: Awaitable delay function (tests inject a no-op)
        """
        self.translator = translator
        self.max_chunk_len = max_chunk_len
        self.pacing_seconds = pacing_seconds
        self.event_bus = event_bus
        self.log_callback = log_callback
        self._sleep = sleep

    def _log(self, log_type: str, message: str):
        if self.log_callback:
            self.log_callback(log_type, message)
        else:
            getattr(logger, log_type, logger.info)(message)

    def _emit(self, event_type: EventType, **data):
        if self.event_bus:
            self.event_bus.emit(event_type, source="dispatcher", **data)

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """
        Translate text of any length. Never raises for upstream failures.

        Returns:
            Translated text, the non-empty chunk results joined with single
            spaces; empty string if every chunk failed
        """
        chunks = split_to_chunks(text, self.max_chunk_len)
        self._emit(EventType.TRANSLATION_STARTED, total_chunks=len(chunks),
                   source_lang=source_lang, target_lang=target_lang)

        if len(chunks) == 1:
            failed = 0
            try:
                translated = await self._translate_one(chunks[0], source_lang, target_lang, 1)
            except ChunkFailure as e:
                failed = 1
                self._log("warning", f"Translation failed: {e.message}")
                translated = ""
            self._emit(EventType.TRANSLATION_COMPLETED, total_chunks=1, failed_chunks=failed)
            return translated

        results: List[str] = []
        failed = 0
        for chunk in chunks:
            # Pace every request after the first to stay under upstream throttling
            if chunk.index > 0 and self.pacing_seconds > 0:
                await self._sleep(self.pacing_seconds)
            try:
                results.append(await self._translate_one(chunk, source_lang, target_lang, len(chunks)))
            except ChunkFailure as e:
                failed += 1
                self._log("warning", f"Chunk {chunk.index + 1}/{len(chunks)} failed: {e.message}")
                results.append("")

        self._emit(EventType.TRANSLATION_COMPLETED, total_chunks=len(chunks), failed_chunks=failed)
        return " ".join(result for result in results if result)

    async def _translate_one(self, chunk: Chunk, source_lang: str, target_lang: str, total: int) -> str:
        """Translate a chunk, converting upstream errors into ChunkFailure."""
        try:
            translated = await self.translator.translate_chunk(chunk.text, source_lang, target_lang)
        except UpstreamError as e:
            self._emit(EventType.CHUNK_FAILED, chunk_index=chunk.index, total_chunks=total, error=e.message)
            raise ChunkFailure(e.message, chunk.index, e.context) from e
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Unexpected client bug: still isolated to this chunk
            logger.exception(f"Unexpected error translating chunk {chunk.index}")
            self._emit(EventType.CHUNK_FAILED, chunk_index=chunk.index, total_chunks=total, error=str(e))
            raise ChunkFailure(str(e), chunk.index) from e

        self._emit(EventType.CHUNK_TRANSLATED, chunk_index=chunk.index, total_chunks=total,
                   progress=(chunk.index + 1) / total if total else 1.0)
        return translated or ""
