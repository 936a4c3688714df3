"""
Unit tests for settings snapshots and live reloading.
"""

import pytest

from smartcopy.core.events import EventType
from smartcopy.core.models import Granularity, LookupAction
from smartcopy.core.settings import LiveSettings, Settings
from smartcopy.persistence.storage import MemoryStore


class TestSettings:
    """Immutable snapshot."""

    def test_defaults(self):
        settings = Settings.from_mapping({})
        assert settings.granularity is Granularity.SENTENCE
        assert settings.active
        assert settings.dblclick_enabled
        assert settings.dblclick_action is LookupAction.DEFINITION
        assert settings.target_lang == "tr"
        assert not settings.dark_mode

    def test_invalid_values_fall_back(self):
        settings = Settings.from_mapping({
            "copyMode": "chapter",
            "dblclickAction": "shout",
            "targetLang": "   ",
            "active": "maybe",
        })
        assert settings == Settings()

    def test_string_booleans(self):
        settings = Settings.from_mapping({"active": "false", "darkMode": "on"})
        assert not settings.active
        assert settings.dark_mode

    def test_merged_ignores_unknown_keys(self):
        settings = Settings().merged({"copyMode": "word", "theme": "neon"})
        assert settings.granularity is Granularity.WORD
        assert "theme" not in settings.to_mapping()

    def test_snapshot_is_frozen(self):
        with pytest.raises(AttributeError):
            Settings().active = False


class TestLiveSettings:
    """Store-backed holder."""

    @pytest.mark.asyncio
    async def test_load_reads_store(self):
        live = LiveSettings(MemoryStore({"copyMode": "paragraph", "targetLang": "de"}))
        settings = await live.load()
        assert settings.granularity is Granularity.PARAGRAPH
        assert live.current.target_lang == "de"

    @pytest.mark.asyncio
    async def test_follows_edits_from_other_surfaces(self, store):
        live = LiveSettings(store)
        await live.load()
        await store.set("copyMode", "word")
        assert live.current.granularity is Granularity.WORD
        await store.set("unrelated", 1)
        assert live.current.granularity is Granularity.WORD

    @pytest.mark.asyncio
    async def test_update_persists_and_notifies(self, store, event_bus):
        seen = []
        live = LiveSettings(store, event_bus=event_bus)
        await live.load()
        live.subscribe(seen.append)

        await live.update(dblclickAction="translate")

        assert await store.get("dblclickAction") == "translate"
        assert live.current.dblclick_action is LookupAction.TRANSLATE
        assert len(seen) == 1
        events = event_bus.get_events_by_type(EventType.SETTINGS_CHANGED)
        assert events[-1].data["settings"]["dblclickAction"] == "translate"

    @pytest.mark.asyncio
    async def test_close_stops_following(self, store):
        live = LiveSettings(store)
        await live.load()
        live.close()
        await store.set("active", False)
        assert live.current.active

    @pytest.mark.asyncio
    async def test_failing_listener_is_contained(self, store):
        live = LiveSettings(store)
        await live.load()

        def broken(settings):
            raise RuntimeError("listener bug")

        live.subscribe(broken)
        await live.update(darkMode=True)
        assert live.current.dark_mode
