"""
Dispatcher-peer message handling.

`handle_message` answers one inbound message. `PeerServices` owns the shared
state of the peer process (store, history, settings) and builds short-lived
upstream clients per request, since Flask routes run each request in its own
event loop.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from smartcopy.config import DEFAULT_SOURCE_LANGUAGE, DEFAULT_TARGET_LANGUAGE
from smartcopy.core.events import EventBus
from smartcopy.core.exceptions import InvalidMessageError, UpstreamError
from smartcopy.core.models import HistoryEntry, TranslationRequest, TranslationResult
from smartcopy.core.settings import LiveSettings
from smartcopy.core.translation.dictionary import DictionaryClient
from smartcopy.core.translation.dispatcher import TranslationDispatcher
from smartcopy.core.translation.mymemory import MyMemoryClient
from smartcopy.persistence.history import HistoryLog
from smartcopy.persistence.storage import KeyValueStore

logger = logging.getLogger(__name__)

Message = Dict[str, Any]


async def handle_message(
    message: Message,
    dispatcher: TranslationDispatcher,
    dictionary: Optional[DictionaryClient] = None,
    default_source: str = DEFAULT_SOURCE_LANGUAGE,
    default_target: str = DEFAULT_TARGET_LANGUAGE
) -> Message:
    """
    Answer a `translate` or `define` message.

    Raises:
        InvalidMessageError: Unknown type, or missing or non-string text/word
    """
    if not isinstance(message, dict):
        raise InvalidMessageError("Message must be a JSON object")

    msg_type = message.get("type")
    if msg_type == "translate":
        if not isinstance(message.get("text") or "", str):
            raise InvalidMessageError("Text to translate must be a string")
        request = TranslationRequest.from_message(message, default_source, default_target)
        if not request.text:
            raise InvalidMessageError("Missing text to translate")
        logger.debug(f"Translate request: {len(request.text)} chars, "
                     f"{request.source_lang} -> {request.target_lang}")
        try:
            translated = await dispatcher.translate(request.text, request.source_lang, request.target_lang)
        except Exception as e:
            logger.exception("Translation error")
            return TranslationResult(original=request.text, translated="", mode=request.mode,
                                     error=f"Translation failed: {e}").to_message()
        return TranslationResult(original=request.text, translated=translated, mode=request.mode).to_message()

    if msg_type == "define":
        word = message.get("word") or ""
        if not isinstance(word, str):
            raise InvalidMessageError("Word to define must be a string")
        word = word.strip()
        if not word:
            raise InvalidMessageError("Missing word to define")
        if dictionary is None:
            raise InvalidMessageError("Dictionary lookup is not available")
        payload = {"type": "definition-result", "word": word, "definition": ""}
        try:
            payload["definition"] = await dictionary.lookup(word)
        except UpstreamError as e:
            payload["error"] = e.message
        return payload

    raise InvalidMessageError(f"Unknown message type: {msg_type!r}")


class PeerServices:
    """Shared state and upstream access for the dispatcher peer."""

    def __init__(
        self,
        store: KeyValueStore,
        event_bus: Optional[EventBus] = None,
        translator_factory: Callable[[], MyMemoryClient] = MyMemoryClient,
        dictionary_factory: Callable[[], DictionaryClient] = DictionaryClient,
        log_callback: Optional[Callable[[str, str], None]] = None,
        sleep: Callable[[float], Any] = asyncio.sleep
    ):
        self.store = store
        self.event_bus = event_bus
        self.history = HistoryLog(store, event_bus=event_bus)
        self.settings = LiveSettings(store, event_bus=event_bus)
        self.translator_factory = translator_factory
        self.dictionary_factory = dictionary_factory
        self.log_callback = log_callback
        self._sleep = sleep

    async def process(self, message: Message) -> Message:
        """Answer one message with freshly built upstream clients."""
        async with self.translator_factory() as translator, self.dictionary_factory() as dictionary:
            dispatcher = TranslationDispatcher(translator, event_bus=self.event_bus,
                                               log_callback=self.log_callback, sleep=self._sleep)
            return await handle_message(message, dispatcher, dictionary,
                                        default_target=self.settings.current.target_lang)

    async def retranslate(self, timestamp: int) -> Optional[HistoryEntry]:
        """Translate a history entry again and overwrite its translation."""
        entry = await self.history.get(timestamp)
        if entry is None:
            return None
        response = await self.process(TranslationRequest(
            text=entry.text,
            source_lang=DEFAULT_SOURCE_LANGUAGE,
            target_lang=self.settings.current.target_lang,
            mode=entry.mode,
        ).to_message())
        return await self.history.set_translation(timestamp, response.get("translated") or "")
