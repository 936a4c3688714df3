"""
Unit tests for the chunked translation dispatcher.
"""

from unittest.mock import AsyncMock

import pytest

from smartcopy.core.events import EventType
from smartcopy.core.exceptions import UpstreamTimeoutError
from smartcopy.core.translation import TranslationDispatcher
from tests.fakes import FakeTranslator, no_sleep

THREE_CHUNKS = "Alpha one. Bravo two. Delta three."


class TestTranslationDispatcher:
    """Test sequencing, isolation and reassembly."""

    @pytest.mark.asyncio
    async def test_single_chunk_returns_raw_translation(self):
        translator = FakeTranslator(outputs=["Merhaba dünya"])
        dispatcher = TranslationDispatcher(translator, sleep=no_sleep)
        assert await dispatcher.translate("Hello world", "en", "tr") == "Merhaba dünya"
        assert translator.calls == [("Hello world", "en", "tr")]

    @pytest.mark.asyncio
    async def test_single_chunk_failure_yields_empty(self):
        translator = AsyncMock()
        translator.translate_chunk.side_effect = UpstreamTimeoutError("timed out")
        dispatcher = TranslationDispatcher(translator, sleep=no_sleep)
        assert await dispatcher.translate("Hello", "en", "tr") == ""

    @pytest.mark.asyncio
    async def test_middle_chunk_failure_is_isolated(self):
        translator = FakeTranslator(outputs=["c1", "c2", "c3"], failures={1})
        dispatcher = TranslationDispatcher(translator, max_chunk_len=12, sleep=no_sleep)
        assert await dispatcher.translate(THREE_CHUNKS, "en", "tr") == "c1 c3"
        assert [call[0] for call in translator.calls] == ["Alpha one. ", "Bravo two. ", "Delta three."]

    @pytest.mark.asyncio
    async def test_all_chunks_failed(self):
        translator = FakeTranslator(failures={0, 1, 2})
        dispatcher = TranslationDispatcher(translator, max_chunk_len=12, sleep=no_sleep)
        assert await dispatcher.translate(THREE_CHUNKS, "en", "tr") == ""

    @pytest.mark.asyncio
    async def test_empty_chunk_results_are_skipped(self):
        translator = FakeTranslator(outputs=["c1", "", "c3"])
        dispatcher = TranslationDispatcher(translator, max_chunk_len=12, sleep=no_sleep)
        assert await dispatcher.translate(THREE_CHUNKS, "en", "tr") == "c1 c3"

    @pytest.mark.asyncio
    async def test_pacing_between_chunks_only(self):
        delays = []

        async def record_sleep(delay):
            delays.append(delay)

        dispatcher = TranslationDispatcher(FakeTranslator(), max_chunk_len=12,
                                           pacing_seconds=0.25, sleep=record_sleep)
        await dispatcher.translate(THREE_CHUNKS, "en", "tr")
        assert delays == [0.25, 0.25]

    @pytest.mark.asyncio
    async def test_unexpected_client_error_is_isolated(self):
        translator = AsyncMock()
        translator.translate_chunk.side_effect = [RuntimeError("bug"), "ok2", "ok3"]
        dispatcher = TranslationDispatcher(translator, max_chunk_len=12, sleep=no_sleep)
        assert await dispatcher.translate(THREE_CHUNKS, "en", "tr") == "ok2 ok3"

    @pytest.mark.asyncio
    async def test_events_and_log_callback(self, event_bus):
        logs = []
        dispatcher = TranslationDispatcher(FakeTranslator(failures={1}), max_chunk_len=12,
                                           event_bus=event_bus, sleep=no_sleep,
                                           log_callback=lambda kind, message: logs.append((kind, message)))
        await dispatcher.translate(THREE_CHUNKS, "en", "tr")

        assert len(event_bus.get_events_by_type(EventType.CHUNK_TRANSLATED)) == 2
        failed = event_bus.get_events_by_type(EventType.CHUNK_FAILED)
        assert [e.data["chunk_index"] for e in failed] == [1]
        completed = event_bus.get_events_by_type(EventType.TRANSLATION_COMPLETED)
        assert completed[0].data == {"total_chunks": 3, "failed_chunks": 1}
        assert logs and logs[0][0] == "warning"

    @pytest.mark.asyncio
    async def test_empty_single_result_is_not_a_failure(self, event_bus):
        dispatcher = TranslationDispatcher(FakeTranslator(outputs=[""]), event_bus=event_bus, sleep=no_sleep)
        assert await dispatcher.translate("Hello", "en", "tr") == ""
        completed = event_bus.get_events_by_type(EventType.TRANSLATION_COMPLETED)
        assert completed[0].data == {"total_chunks": 1, "failed_chunks": 0}

    @pytest.mark.asyncio
    async def test_single_chunk_failure_is_counted(self, event_bus):
        dispatcher = TranslationDispatcher(FakeTranslator(failures={0}), event_bus=event_bus, sleep=no_sleep)
        assert await dispatcher.translate("Hello", "en", "tr") == ""
        completed = event_bus.get_events_by_type(EventType.TRANSLATION_COMPLETED)
        assert completed[0].data["failed_chunks"] == 1
