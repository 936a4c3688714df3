"""
Extraction-surface session.

Ties pointer gestures on one rendered surface to extraction, history,
toasts and the translation round trip through the resilient transport.
Every user-visible failure ends up as text in the sidebar; nothing here
raises to the host.
"""

import logging
from dataclasses import replace
from typing import Optional

from smartcopy.config import DEFAULT_SOURCE_LANGUAGE, TOAST_DURATION_SECONDS, TOAST_MAX_PREVIEW
from smartcopy.core.events import EventBus, EventType
from smartcopy.core.extraction.extractor import UnitExtractor
from smartcopy.core.models import (
    Granularity,
    LookupAction,
    Point,
    TextSpan,
    TranslationRequest,
    TranslationResult,
)
from smartcopy.core.settings import LiveSettings
from smartcopy.core.transport.retry import ResilientTransport
from smartcopy.persistence.history import HistoryLog
from smartcopy.utils.timers import ScopedTimer, TimerScope

logger = logging.getLogger(__name__)

TRANSLATING_PLACEHOLDER = "Translating…"


def shorten(text: str, max_len: int = TOAST_MAX_PREVIEW) -> str:
    """Shorten text for a toast, ending with '...' when cut."""
    if not text:
        return ""
    return text if len(text) <= max_len else text[:max_len - 3] + "..."


class Notifier:
    """Presentation hooks of an extraction surface.

    The base class only logs; real surfaces override what they can render.
    """

    def copy(self, text: str):
        logger.debug(f"Copied {len(text)} chars")

    def show_toast(self, message: str):
        logger.info(message)

    def dismiss_toast(self, message: str):
        pass

    def update_sidebar(self, original: str, translated: str, mode: str):
        logger.info(f"[{mode}] {original} -> {translated}")

    def show_definition(self, word: str, text: str):
        logger.info(f"{word}: {text}")


class SmartCopySession:
    """Handles gestures for one surface."""

    def __init__(
        self,
        extractor: UnitExtractor,
        transport: ResilientTransport,
        history: HistoryLog,
        settings: LiveSettings,
        notifier: Optional[Notifier] = None,
        source_lang: str = DEFAULT_SOURCE_LANGUAGE,
        toast_duration: float = TOAST_DURATION_SECONDS,
        event_bus: Optional[EventBus] = None,
        page_url: Optional[str] = None,
        page_title: Optional[str] = None
    ):
        self.extractor = extractor
        self.transport = transport
        self.history = history
        self.settings = settings
        self.notifier = notifier or Notifier()
        self.source_lang = source_lang
        self.toast_duration = toast_duration
        self.event_bus = event_bus
        self.page_url = page_url
        self.page_title = page_title
        self.timers = TimerScope()

    def show_toast(self, message: str) -> ScopedTimer:
        """Show a toast that removes itself after the toast duration."""
        self.notifier.show_toast(message)
        if self.event_bus:
            self.event_bus.emit(EventType.TOAST_SHOWN, source="session", message=message)

        def dismiss():
            self.notifier.dismiss_toast(message)
            if self.event_bus:
                self.event_bus.emit(EventType.TOAST_DISMISSED, source="session", message=message)

        return self.timers.call_later(self.toast_duration, dismiss)

    async def handle_click(self, point: Point, alt_key: bool = False) -> Optional[TextSpan]:
        """
        Alt+click: copy the unit under the pointer, record it and translate it.

        Returns:
            The extracted span, or None when the gesture was ignored
        """
        settings = self.settings.current
        if not settings.active or not alt_key:
            return None

        span = self.extractor.extract(point, settings.granularity)
        if span is None:
            return None

        self.notifier.copy(span.text)
        self.show_toast(f'{span.granularity.label} copied: "{shorten(span.text)}"')
        await self.history.add(span.text, span.granularity.value, url=self.page_url, title=self.page_title)
        await self.request_translation(span.text, span.granularity.value)
        return span

    async def handle_context_copy(self, mode, selection: Optional[str] = None,
                                  viewport_center: Optional[Point] = None) -> Optional[str]:
        """
        Context-menu copy: a non-blank selection is used verbatim, otherwise
        the unit at the viewport centre.
        """
        granularity = Granularity.parse(mode)
        if selection and selection.strip():
            text = selection.strip()
        elif viewport_center is not None:
            span = self.extractor.extract(viewport_center, granularity)
            if span is None:
                return None
            text = span.text
        else:
            return None

        self.notifier.copy(text)
        self.show_toast(f"{granularity.label} copied")
        await self.history.add(text, granularity.value, url=self.page_url, title=self.page_title)
        await self.request_translation(text, granularity.value)
        return text

    async def handle_double_click(self, point: Point) -> Optional[str]:
        """
        Double-click lookup of the word under the pointer.

        Returns:
            The definition or translation shown, None when ignored
        """
        settings = self.settings.current
        if not settings.active or not settings.dblclick_enabled:
            return None

        span = self.extractor.extract(point, Granularity.WORD)
        if span is None:
            return None
        word = span.text

        if settings.dblclick_action is LookupAction.TRANSLATE:
            result = await self.request_translation(word, Granularity.WORD.value, record=False)
            return result.translated if result.ok else None

        outcome = await self.transport.send({"type": "define", "word": word})
        if not outcome.ok:
            text = f"Lookup request failed: {outcome.error}"
        else:
            response = outcome.response or {}
            text = response.get("definition") or response.get("error") or "(no definition)"
        self.notifier.show_definition(word, text)
        return text

    async def request_translation(self, text: str, mode: str, record: bool = True) -> TranslationResult:
        """
        Send a translate request through the transport and render the outcome.

        A delivered result is correlated into the history log when `record`
        is set.
        """
        self.notifier.update_sidebar(text, TRANSLATING_PLACEHOLDER, mode)
        request = TranslationRequest(text=text, source_lang=self.source_lang,
                                     target_lang=self.settings.current.target_lang, mode=mode)

        outcome = await self.transport.send(request.to_message())
        if not outcome.ok:
            logger.warning(f"Translation request failed: {outcome.error}")
            self.notifier.update_sidebar(text, f"Translation request failed: {outcome.error}", mode)
            return TranslationResult(original=text, translated="", mode=mode, error=outcome.error)

        result = TranslationResult.from_message(outcome.response or {})
        if not result.original:
            result = replace(result, original=text)
        if result.error:
            self.notifier.update_sidebar(result.original, f"Translation error: {result.error}", mode)
            return result

        self.notifier.update_sidebar(result.original, result.translated or "(no translation)", result.mode)
        if record:
            await self.history.apply_result(result)
        return result

    def close(self):
        """Cancel pending timers."""
        cancelled = self.timers.cancel_all()
        if cancelled:
            logger.debug(f"Cancelled {cancelled} pending timers")
