"""
Console and web logging shared by the CLI and the dispatcher peer.

Every entry is printed (optionally colored) and, when a web callback is set,
forwarded as a plain dict so WebSocket clients can render it. Entries tagged
with a LogType get a dedicated layout: run banners, chunk progress lines and
error blocks.
"""
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional


class LogLevel(Enum):
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


class LogType(Enum):
    """Layout tag of an entry"""
    GENERAL = "general"
    CHUNK_INFO = "chunk_info"
    TRANSLATION_START = "translation_start"
    TRANSLATION_END = "translation_end"
    ERROR_DETAIL = "error_detail"


def _colors_wanted() -> bool:
    return os.environ.get('NO_COLOR') is None and sys.stdout.isatty()


class Colors:
    """ANSI escapes; all empty when NO_COLOR is set or stdout is not a terminal"""
    _ON = _colors_wanted()

    YELLOW = '\033[93m' if _ON else ''
    WHITE = '\033[97m' if _ON else ''
    GRAY = '\033[90m' if _ON else ''
    GREEN = '\033[92m' if _ON else ''
    RED = '\033[91m' if _ON else ''
    ENDC = '\033[0m' if _ON else ''

    @classmethod
    def disable(cls):
        for name in ('YELLOW', 'WHITE', 'GRAY', 'GREEN', 'RED', 'ENDC'):
            setattr(cls, name, '')


LEVEL_COLORS = {
    LogLevel.DEBUG: 'GRAY',
    LogLevel.WARNING: 'YELLOW',
    LogLevel.ERROR: 'RED',
    LogLevel.CRITICAL: 'RED',
}


@dataclass
class RunSummary:
    """Chunked translation run currently being reported."""
    source_lang: str = ''
    target_lang: str = ''
    total_chunks: int = 0
    failed_chunks: int = 0
    started_at: Optional[datetime] = None

    @property
    def active(self) -> bool:
        return self.started_at is not None


@dataclass
class LogEntry:
    level: LogLevel
    message: str
    log_type: LogType = LogType.GENERAL
    data: Dict[str, Any] = field(default_factory=dict)
    created: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.created.isoformat(),
            'level': self.level.name,
            'type': self.log_type.value,
            'message': self.message,
            'data': self.data,
        }


class UnifiedLogger:
    """Leveled logger printing to the console and mirroring to a web callback"""

    def __init__(self,
                 name: str = "SmartCopy",
                 console_output: bool = True,
                 enable_colors: bool = True,
                 min_level: LogLevel = LogLevel.INFO,
                 web_callback: Optional[Callable[[Dict[str, Any]], None]] = None):
        """
        Args:
            name: Logger identifier
            console_output: Print entries to stdout
            enable_colors: Keep ANSI colors (False strips them globally)
            min_level: Entries below this level are dropped
            web_callback: Receives every kept entry as a dict
        """
        self.name = name
        self.console_output = console_output
        self.min_level = min_level
        self.web_callback = web_callback
        self.run = RunSummary()

        if not enable_colors:
            Colors.disable()

        self._layouts = {
            LogType.TRANSLATION_START: self._layout_run_start,
            LogType.TRANSLATION_END: self._layout_run_end,
            LogType.CHUNK_INFO: self._layout_chunk,
            LogType.ERROR_DETAIL: self._layout_error,
        }

    @staticmethod
    def _clock(entry: LogEntry) -> str:
        return entry.created.strftime("%H:%M:%S")

    def _layout_general(self, entry: LogEntry) -> str:
        color = getattr(Colors, LEVEL_COLORS.get(entry.level, 'WHITE'))
        tag = '' if entry.level is LogLevel.INFO else f"[{entry.level.name}] "
        return f"{color}[{self._clock(entry)}] {tag}{entry.message}{Colors.ENDC}"

    def _layout_run_start(self, entry: LogEntry) -> str:
        data = entry.data
        self.run = RunSummary(
            source_lang=data.get('source_lang', '?'),
            target_lang=data.get('target_lang', '?'),
            total_chunks=data.get('total_chunks', 0),
            started_at=entry.created,
        )
        lines = [
            f"{Colors.YELLOW}{entry.message.upper()}{Colors.ENDC}",
            f"{Colors.WHITE}{self.run.source_lang} -> {self.run.target_lang}, "
            f"{self.run.total_chunks} chunk(s){Colors.ENDC}",
        ]
        return '\n'.join(lines)

    def _layout_run_end(self, entry: LogEntry) -> str:
        lines = [f"{Colors.WHITE}{entry.message.upper()}{Colors.ENDC}"]
        if self.run.active:
            elapsed = (entry.created - self.run.started_at).total_seconds()
            lines.append(f"{Colors.GRAY}Took {elapsed:.2f}s{Colors.ENDC}")
        failed = entry.data.get('failed_chunks', self.run.failed_chunks)
        if failed:
            lines.append(f"{Colors.YELLOW}{failed} chunk(s) failed and were left out{Colors.ENDC}")
        self.run = RunSummary()
        return '\n'.join(lines)

    def _layout_chunk(self, entry: LogEntry) -> str:
        done = entry.data.get('chunk_index', 0) + 1
        total = entry.data.get('total_chunks') or self.run.total_chunks or done
        return (f"{Colors.GRAY}[{self._clock(entry)}] chunk {done}/{total} "
                f"({done / total:.0%}) {entry.message}{Colors.ENDC}")

    def _layout_error(self, entry: LogEntry) -> str:
        if self.run.active:
            self.run.failed_chunks += 1
        lines = [f"{Colors.RED}[{self._clock(entry)}] ERROR: {entry.message}{Colors.ENDC}"]
        for key in ('details', 'chunk_index'):
            if key in entry.data:
                lines.append(f"{Colors.RED}  {key}: {entry.data[key]}{Colors.ENDC}")
        return '\n'.join(lines)

    def _print(self, entry: LogEntry):
        text = self._layouts.get(entry.log_type, self._layout_general)(entry)
        try:
            print(text, flush=True)
        except UnicodeEncodeError:
            # Legacy console code pages
            print(text.encode('ascii', 'replace').decode('ascii'), flush=True)

    def log(self, level: LogLevel, message: str,
            log_type: LogType = LogType.GENERAL,
            data: Optional[Dict[str, Any]] = None):
        if level.value < self.min_level.value:
            return
        entry = LogEntry(level, message, log_type, dict(data or {}))
        if self.console_output:
            self._print(entry)
        if self.web_callback:
            self.web_callback(entry.to_dict())

    def debug(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.DEBUG, message, log_type, data)

    def info(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.INFO, message, log_type, data)

    def warning(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.WARNING, message, log_type, data)

    def error(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.ERROR, message, log_type, data)

    def create_legacy_callback(self) -> Callable[[str, str], None]:
        """
        Adapter for components reporting through `log_callback(log_type, message)`.
        Unknown log types are logged at INFO.
        """
        def legacy_callback(log_type: str, message: str):
            level = LogLevel.__members__.get(str(log_type).upper(), LogLevel.INFO)
            self.log(level, message)

        return legacy_callback


_global_logger: Optional[UnifiedLogger] = None


def get_logger(name: str = "SmartCopy", **kwargs) -> UnifiedLogger:
    """Return the process-wide logger, creating it on first use"""
    global _global_logger
    if _global_logger is None:
        _global_logger = UnifiedLogger(name, **kwargs)
    elif kwargs.get('web_callback') is not None:
        _global_logger.web_callback = kwargs['web_callback']
    return _global_logger


def _default_level() -> LogLevel:
    from smartcopy.config import DEBUG_MODE
    return LogLevel.DEBUG if DEBUG_MODE else LogLevel.INFO


def setup_cli_logger(enable_colors: bool = True) -> UnifiedLogger:
    return get_logger(console_output=True, enable_colors=enable_colors, min_level=_default_level())


def setup_web_logger(web_callback: Callable[[Dict[str, Any]], None]) -> UnifiedLogger:
    """Logger for the peer server, mirroring entries to WebSocket clients"""
    return get_logger(console_output=True, enable_colors=True, min_level=_default_level(),
                      web_callback=web_callback)
