"""
Command-line interface for Smart Copy
"""
import sys
import argparse
import os
import asyncio

import aiofiles

from smartcopy.config import (
    DEFAULT_SOURCE_LANGUAGE,
    DEFAULT_TARGET_LANGUAGE,
    PEER_URL,
    SETTING_ACTIVE,
    SETTING_GRANULARITY,
    SETTING_TARGET_LANGUAGE,
    STORE_PATH
)
from smartcopy.api.handlers import PeerServices
from smartcopy.core.events import EventBus, EventType
from smartcopy.core.exceptions import UpstreamError
from smartcopy.core.extraction import HtmlSurface, TextBufferSurface, UnitExtractor
from smartcopy.core.models import Granularity, Point
from smartcopy.core.session import Notifier, SmartCopySession, TRANSLATING_PLACEHOLDER
from smartcopy.core.settings import LiveSettings
from smartcopy.core.translation import DictionaryClient, MyMemoryClient, TranslationDispatcher
from smartcopy.core.transport import HttpChannel, LocalChannel, ResilientTransport
from smartcopy.persistence.history import HistoryLog
from smartcopy.persistence.storage import MemoryStore, SQLiteStore
from smartcopy.utils.unified_logger import setup_cli_logger, LogType, Colors


class ConsoleNotifier(Notifier):
    """Renders surface notifications on the terminal"""

    def __init__(self, logger):
        self.logger = logger

    def copy(self, text):
        print(text, flush=True)

    def show_toast(self, message):
        self.logger.info(message)

    def update_sidebar(self, original, translated, mode):
        if translated == TRANSLATING_PLACEHOLDER:
            self.logger.debug(f"Translating {mode}...")
            return
        print(f"{Colors.GREEN}{translated}{Colors.ENDC}", flush=True)

    def show_definition(self, word, text):
        print(f"{Colors.WHITE}{word}{Colors.ENDC}: {text}", flush=True)


def attach_progress_logging(event_bus, logger):
    """Mirror dispatcher events to the console"""
    event_bus.subscribe(EventType.TRANSLATION_STARTED, lambda e: logger.info(
        "Translation Started", LogType.TRANSLATION_START, e.data))
    event_bus.subscribe(EventType.CHUNK_TRANSLATED, lambda e: logger.debug(
        "translated", LogType.CHUNK_INFO, e.data))
    event_bus.subscribe(EventType.CHUNK_FAILED, lambda e: logger.warning(
        e.data.get('error', 'chunk failed'), LogType.ERROR_DETAIL, e.data))
    event_bus.subscribe(EventType.TRANSLATION_COMPLETED, lambda e: logger.info(
        "Translation Completed", LogType.TRANSLATION_END, e.data))


async def read_text(path):
    async with aiofiles.open(path, 'r', encoding='utf-8') as f:
        return await f.read()


async def run_text(args, logger):
    text = args.text if args.text is not None else await read_text(args.input)
    if not text.strip():
        logger.error("Nothing to translate")
        return 1

    event_bus = EventBus()
    attach_progress_logging(event_bus, logger)
    async with MyMemoryClient() as client:
        dispatcher = TranslationDispatcher(client, event_bus=event_bus,
                                           log_callback=logger.create_legacy_callback())
        translated = await dispatcher.translate(text, args.source_lang, args.target_lang)

    if not translated:
        logger.error("Translation failed: no chunk could be translated")
        return 1

    if args.output:
        async with aiofiles.open(args.output, 'w', encoding='utf-8') as f:
            await f.write(translated)
        logger.info(f"Output saved to: {args.output}")
    else:
        print(translated)
    return 0


HTML_EXTENSIONS = ('.html', '.htm', '.xhtml')


async def run_extract(args, logger):
    content = await read_text(args.file)
    if os.path.splitext(args.file)[1].lower() in HTML_EXTENSIONS:
        surface = HtmlSurface(content)
    else:
        surface = TextBufferSurface.from_text(content)
    extractor = UnitExtractor(surface)
    granularity = Granularity.parse(args.mode)
    point = Point(args.line, args.column)

    if not args.translate:
        span = extractor.extract(point, granularity)
        if span is None:
            logger.warning(f"No text at line {args.line}, column {args.column}")
            return 1
        print(span.text)
        return 0

    store = SQLiteStore(args.store)
    event_bus = EventBus()
    services = PeerServices(store, event_bus=event_bus, log_callback=logger.create_legacy_callback())
    channel = HttpChannel(args.peer) if args.peer else LocalChannel(services.process)
    transport = ResilientTransport(channel, log_callback=logger.create_legacy_callback())
    stored = await services.settings.load()

    # Command-line overrides stay local to this run
    overrides = {SETTING_ACTIVE: True, SETTING_GRANULARITY: granularity.value}
    if args.target_lang:
        overrides[SETTING_TARGET_LANGUAGE] = args.target_lang
    settings = LiveSettings(MemoryStore(stored.merged(overrides).to_mapping()))
    await settings.load()

    session = SmartCopySession(extractor, transport, services.history, settings,
                               ConsoleNotifier(logger), toast_duration=0, page_url=args.file)
    try:
        span = await session.handle_click(point, alt_key=True)
    finally:
        session.close()
        if isinstance(channel, HttpChannel):
            await channel.close()
        store.close()

    if span is None:
        logger.warning(f"No text at line {args.line}, column {args.column}")
        return 1
    return 0


async def run_define(args, logger):
    async with DictionaryClient() as client:
        try:
            definition = await client.lookup(args.word)
        except UpstreamError as e:
            logger.error(e.message, LogType.ERROR_DETAIL, {'details': str(e)})
            return 1
    print(f"{Colors.WHITE}{args.word}{Colors.ENDC}: {definition}")
    return 0


async def run_history(args, logger):
    store = SQLiteStore(args.store)
    history = HistoryLog(store)
    try:
        if args.clear:
            await history.clear()
            logger.info("History cleared")
            return 0
        entries = await history.entries()
        if not entries:
            logger.info("History is empty")
        for entry in entries:
            print(f"{Colors.GRAY}[{entry.timestamp}] {entry.mode}{Colors.ENDC} {entry.text}")
            if entry.translated:
                print(f"    {Colors.GREEN}{entry.translated}{Colors.ENDC}")
            if entry.note:
                print(f"    Note: {entry.note}")
        return 0
    finally:
        store.close()


def build_parser():
    parser = argparse.ArgumentParser(description="Extract words, sentences or paragraphs and translate them.")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output.")
    parser.add_argument("--store", default=STORE_PATH, help=f"Path to the settings/history store (default: {STORE_PATH}).")
    sub = parser.add_subparsers(dest="command", required=True)

    extract = sub.add_parser("extract", help="Extract the text unit at a point of an HTML or text file.")
    extract.add_argument("file", help="Path to the HTML or plain-text file.")
    extract.add_argument("--line", type=int, required=True, help="Line of the rendered text (0-based).")
    extract.add_argument("--column", type=int, required=True, help="Column within the line (0-based).")
    extract.add_argument("-m", "--mode", default=Granularity.SENTENCE.value,
                         choices=[g.value for g in Granularity], help="Unit to extract (default: sentence).")
    extract.add_argument("--translate", action="store_true", help="Record in history and translate the unit.")
    extract.add_argument("-tl", "--target_lang", default=None, help="Target language (default: stored setting).")
    extract.add_argument("--peer", default=None, help=f"Send requests to a running peer, e.g. {PEER_URL}.")

    text = sub.add_parser("text", help="Translate text of any length.")
    source = text.add_mutually_exclusive_group(required=True)
    source.add_argument("text", nargs="?", default=None, help="Text to translate.")
    source.add_argument("-i", "--input", help="Path to a UTF-8 text file.")
    text.add_argument("-o", "--output", default=None, help="Write the translation to this file.")
    text.add_argument("-sl", "--source_lang", default=DEFAULT_SOURCE_LANGUAGE, help=f"Source language (default: {DEFAULT_SOURCE_LANGUAGE}).")
    text.add_argument("-tl", "--target_lang", default=DEFAULT_TARGET_LANGUAGE, help=f"Target language (default: {DEFAULT_TARGET_LANGUAGE}).")

    define = sub.add_parser("define", help="Look up a word in the dictionary.")
    define.add_argument("word")

    history = sub.add_parser("history", help="Show or clear the history log.")
    history.add_argument("--clear", action="store_true", help="Remove every entry.")

    sub.add_parser("serve", help="Run the dispatcher peer server.")
    return parser


COMMANDS = {
    "text": run_text,
    "extract": run_extract,
    "define": run_define,
    "history": run_history,
}


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        import translation_api
        translation_api.main()
        return 0

    logger = setup_cli_logger(enable_colors=not args.no_color)
    try:
        return asyncio.run(COMMANDS[args.command](args, logger))
    except OSError as e:
        logger.error(f"Cannot read input: {e}", LogType.ERROR_DETAIL, {'details': str(e)})
        return 1


if __name__ == "__main__":
    sys.exit(main())
