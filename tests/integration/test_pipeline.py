"""
End-to-end pipeline: HTML surface -> session -> transport -> peer -> history.
"""

from unittest.mock import MagicMock

import pytest

from smartcopy.api.handlers import PeerServices
from smartcopy.core.events import EventType
from smartcopy.core.extraction import HtmlSurface, UnitExtractor
from smartcopy.core.models import Point
from smartcopy.core.session import SmartCopySession
from smartcopy.core.transport import LocalChannel, ResilientTransport
from tests.fakes import FakeDictionary, FakeTranslator, no_sleep


@pytest.fixture
def translators():
    return []


@pytest.fixture
def services(store, event_bus, translators):
    def make_translator():
        translator = FakeTranslator(prefix="tr:")
        translators.append(translator)
        return translator

    return PeerServices(store, event_bus=event_bus, translator_factory=make_translator,
                        dictionary_factory=lambda: FakeDictionary({"quick": "Fast."}), sleep=no_sleep)


def make_session(html, services, store, event_bus):
    return SmartCopySession(
        extractor=UnitExtractor(HtmlSurface(html)),
        transport=ResilientTransport(LocalChannel(services.process), sleep=no_sleep, event_bus=event_bus),
        history=services.history,
        settings=services.settings,
        notifier=MagicMock(),
        toast_duration=0,
        event_bus=event_bus,
        page_title="Sample",
    )


@pytest.mark.asyncio
async def test_click_to_history(sample_article, services, store, event_bus):
    await services.settings.load()
    session = make_session(sample_article, services, store, event_bus)

    line = "The quick fox jumps. It lands softly on grass!"
    span = await session.handle_click(Point(1, line.index("lands")), alt_key=True)

    assert span.text == "It lands softly on grass!"
    entries = await services.history.entries()
    assert len(entries) == 1
    assert entries[0].translated == "tr:It lands softly on grass!"
    assert entries[0].title == "Sample"
    assert event_bus.get_events_by_type(EventType.TRANSLATION_COMPLETED)


@pytest.mark.asyncio
async def test_long_paragraph_is_chunked_and_reassembled(services, store, event_bus, translators):
    await services.settings.load()
    await services.settings.update(copyMode="paragraph")
    sentences = [f"Sentence number {i} carries some filler words to grow." for i in range(20)]
    html = f"<body><p>{' '.join(sentences)}</p></body>"
    session = make_session(html, services, store, event_bus)

    span = await session.handle_click(Point(0, 3), alt_key=True)

    calls = translators[-1].calls
    assert len(calls) > 1
    assert all(len(call[0]) <= 450 for call in calls)
    assert "".join(call[0] for call in calls) == span.text

    entry = (await services.history.entries())[0]
    assert entry.translated == " ".join(f"tr:{call[0]}" for call in calls)


@pytest.mark.asyncio
async def test_word_lookup_through_peer(sample_article, services, store, event_bus):
    await services.settings.load()
    session = make_session(sample_article, services, store, event_bus)

    assert await session.handle_double_click(Point(1, 5)) == "Fast."
    assert await services.history.entries() == []
