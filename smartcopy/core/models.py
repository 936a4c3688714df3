"""
Data models shared by extraction, translation and history.

Messages exchanged between surfaces are plain dicts; the dataclasses here
convert to and from that wire shape.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Granularity(Enum):
    """Requested unit of extraction."""
    WORD = "word"
    SENTENCE = "sentence"
    PARAGRAPH = "paragraph"

    @classmethod
    def parse(cls, value: Any, default: "Granularity" = None) -> "Granularity":
        """Parse a granularity name, falling back to `default` (sentence) if unknown."""
        if isinstance(value, Granularity):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default if default is not None else cls.SENTENCE

    @property
    def label(self) -> str:
        return self.value.capitalize()


class LookupAction(Enum):
    """What a double-click does with the word under the pointer."""
    DEFINITION = "definition"
    TRANSLATE = "translate"


@dataclass(frozen=True)
class Point:
    """Pointer position on a rendered surface (text grid coordinates)."""
    line: int
    column: int


@dataclass(frozen=True)
class CaretPosition:
    """Anchor inside the flattened text stream of a surface."""
    node: Any
    offset: int


@dataclass(frozen=True)
class TextSpan:
    """Result of an extraction."""
    text: str
    granularity: Granularity


@dataclass(frozen=True)
class Chunk:
    """Ordered, contiguous piece of a longer text."""
    text: str
    index: int


@dataclass(frozen=True)
class TranslationRequest:
    """Inbound translate message.

    `mode` records the originating granularity for display only.
    """
    text: str
    source_lang: str
    target_lang: str
    mode: str = Granularity.SENTENCE.value

    def to_message(self) -> Dict[str, Any]:
        return {
            "type": "translate",
            "text": self.text,
            "mode": self.mode,
            "source": self.source_lang,
            "target": self.target_lang,
        }

    @classmethod
    def from_message(cls, message: Dict[str, Any], default_source: str, default_target: str) -> "TranslationRequest":
        return cls(
            text=message.get("text") or "",
            source_lang=message.get("source") or default_source,
            target_lang=message.get("target") or default_target,
            mode=message.get("mode") or Granularity.SENTENCE.value,
        )


@dataclass(frozen=True)
class TranslationResult:
    """Outbound translation-result message.

    An empty `translated` without `error` is legitimately empty upstream output.
    """
    original: str
    translated: str
    mode: str = Granularity.SENTENCE.value
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_message(self) -> Dict[str, Any]:
        payload = {
            "type": "translation-result",
            "original": self.original,
            "translated": self.translated,
            "mode": self.mode,
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> "TranslationResult":
        return cls(
            original=message.get("original") or "",
            translated=message.get("translated") or "",
            mode=message.get("mode") or Granularity.SENTENCE.value,
            error=message.get("error"),
        )


@dataclass
class HistoryEntry:
    """One item of the persisted history log, keyed by `(text, timestamp)`.

    Timestamps are epoch milliseconds.
    """
    text: str
    mode: str
    timestamp: int
    translated: Optional[str] = None
    translated_at: Optional[int] = None
    note: Optional[str] = None
    url: Optional[str] = None
    title: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_translated(self) -> bool:
        return self.translated is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted layout, omitting absent optional fields."""
        data = dict(self.extra)
        data.update({"text": self.text, "mode": self.mode, "timestamp": self.timestamp})
        optional = {
            "translated": self.translated,
            "translatedAt": self.translated_at,
            "note": self.note,
            "url": self.url,
            "title": self.title,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        known = {"text", "mode", "timestamp", "ts", "translated", "translatedAt", "note", "url", "title"}
        return cls(
            text=data.get("text", ""),
            mode=data.get("mode", Granularity.SENTENCE.value),
            # `ts` is the key older logs used
            timestamp=int(data.get("timestamp", data.get("ts", 0))),
            translated=data.get("translated"),
            translated_at=data.get("translatedAt"),
            note=data.get("note"),
            url=data.get("url"),
            title=data.get("title"),
            extra={k: v for k, v in data.items() if k not in known},
        )
