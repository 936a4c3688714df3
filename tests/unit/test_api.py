"""
Unit tests for the Flask dispatcher peer.
"""

import asyncio

import pytest

from smartcopy.api.handlers import PeerServices, handle_message
from smartcopy.core.events import EventBus
from smartcopy.core.exceptions import InvalidMessageError
from smartcopy.core.translation import TranslationDispatcher
from smartcopy.persistence.storage import MemoryStore
from tests.fakes import FakeDictionary, FakeTranslator, no_sleep
from translation_api import create_app


@pytest.fixture
def services():
    return PeerServices(
        MemoryStore(),
        event_bus=EventBus(),
        translator_factory=lambda: FakeTranslator(prefix="TR:"),
        dictionary_factory=lambda: FakeDictionary({"fox": "A wild canine."}),
        sleep=no_sleep,
    )


@pytest.fixture
def app_bundle(services):
    app, socketio, services = create_app(services=services)
    app.config['TESTING'] = True
    return app, socketio, services


@pytest.fixture
def client(app_bundle):
    return app_bundle[0].test_client()


class TestHandleMessage:
    """Message handling without HTTP."""

    @pytest.mark.asyncio
    async def test_translate_uses_defaults(self):
        translator = FakeTranslator(outputs=["Merhaba"])
        response = await handle_message({"type": "translate", "text": "Hello"},
                                        TranslationDispatcher(translator, sleep=no_sleep))
        assert response == {"type": "translation-result", "original": "Hello",
                            "translated": "Merhaba", "mode": "sentence"}
        assert translator.calls == [("Hello", "en", "tr")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", [
        {"type": "translate"},
        {"type": "define", "word": "  "},
        {"type": "explode"},
        {"type": "translate", "text": 5},
        {"type": "define", "word": ["fox"]},
        ["not", "a", "dict"],
    ])
    async def test_invalid_messages(self, message):
        with pytest.raises(InvalidMessageError):
            await handle_message(message, TranslationDispatcher(FakeTranslator(), sleep=no_sleep),
                                 FakeDictionary())

    @pytest.mark.asyncio
    async def test_unknown_word_is_reported_in_payload(self):
        response = await handle_message({"type": "define", "word": "qwzx"},
                                        TranslationDispatcher(FakeTranslator(), sleep=no_sleep),
                                        FakeDictionary())
        assert response["definition"] == ""
        assert "qwzx" in response["error"]


class TestMessageRoute:
    """POST /api/message"""

    def test_translate(self, client):
        response = client.post('/api/message', json={"type": "translate", "text": "Hello", "mode": "word"})
        assert response.status_code == 200
        assert response.get_json() == {"type": "translation-result", "original": "Hello",
                                       "translated": "TR:Hello", "mode": "word"}

    def test_define(self, client):
        response = client.post('/api/message', json={"type": "define", "word": "fox"})
        assert response.get_json()["definition"] == "A wild canine."

    def test_bad_body(self, client):
        assert client.post('/api/message', data="nope", content_type="text/plain").status_code == 400
        response = client.post('/api/message', json={"type": "translate"})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Missing text to translate"

    def test_non_string_text_is_rejected(self, client):
        response = client.post('/api/message', json={"type": "translate", "text": 5})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Text to translate must be a string"

    def test_target_follows_settings(self, client, app_bundle):
        client.put('/api/settings', json={"targetLang": "de"})
        client.post('/api/message', json={"type": "translate", "text": "Hi"})
        services = app_bundle[2]
        assert services.settings.current.target_lang == "de"

    def test_result_is_broadcast(self, app_bundle):
        app, socketio, _ = app_bundle
        ws = socketio.test_client(app)
        ws.get_received()
        app.test_client().post('/api/message', json={"type": "translate", "text": "Hello"})
        names = [event['name'] for event in ws.get_received()]
        assert "translation-result" in names
        ws.disconnect()


class TestHistoryRoutes:
    """History log management."""

    def test_list_and_clear(self, client, services):
        asyncio.run(services.history.add("Hello", "word"))
        data = client.get('/api/history').get_json()
        assert data["count"] == 1
        assert data["history"][0]["text"] == "Hello"

        assert client.delete('/api/history').get_json() == {"status": "cleared"}
        assert client.get('/api/history').get_json()["count"] == 0

    def test_note_and_delete(self, client, services):
        entry = asyncio.run(services.history.add("Hello", "word"))
        response = client.patch(f'/api/history/{entry.timestamp}', json={"note": "greeting"})
        assert response.get_json()["note"] == "greeting"
        assert client.patch(f'/api/history/{entry.timestamp}', json={"note": 5}).status_code == 400

        assert client.delete(f'/api/history/{entry.timestamp}').status_code == 200
        assert client.delete(f'/api/history/{entry.timestamp}').status_code == 404
        assert client.patch(f'/api/history/{entry.timestamp}', json={"note": "x"}).status_code == 404

    def test_retranslate(self, client, services):
        entry = asyncio.run(services.history.add("Hello", "word"))
        response = client.post(f'/api/history/{entry.timestamp}/translate')
        assert response.status_code == 200
        assert response.get_json()["translated"] == "TR:Hello"
        assert client.post('/api/history/1/translate').status_code == 404


class TestConfigRoutes:
    """Health and settings."""

    def test_health(self, client):
        data = client.get('/api/health').get_json()
        assert data["status"] == "ok"
        assert data["chunk_max"] == 450

    def test_settings_round_trip(self, client):
        assert client.get('/api/settings').get_json()["copyMode"] == "sentence"
        response = client.put('/api/settings', json={"copyMode": "word", "darkMode": True})
        assert response.get_json()["copyMode"] == "word"
        assert client.get('/api/settings').get_json()["darkMode"] is True

    def test_unknown_setting_rejected(self, client):
        response = client.put('/api/settings', json={"theme": "neon"})
        assert response.status_code == 400
        assert "theme" in response.get_json()["error"]

    def test_unknown_route(self, client):
        assert client.get('/api/nothing').status_code == 404
