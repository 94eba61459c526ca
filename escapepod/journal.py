"""Reading structured service log lines from the system journal output."""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

TRACE_FUNCTION = "stt.(*Server).Parse"

_FIELDS = (
    ("function", "Function"),
    ("source", "Source"),
    ("incoming_text", "incoming_text"),
    ("level", "level"),
    ("msg", "msg"),
    ("result_intent", "result_intent"),
    ("time", "time"),
)


@dataclass(frozen=True)
class LogEntry:
    """One structured log line of the speech service."""

    function: str = ""
    source: str = ""
    incoming_text: str = ""
    level: str = ""
    msg: str = ""
    result_intent: str = ""
    time: str = ""

    @classmethod
    def from_json(cls, text: str | bytes) -> LogEntry:
        """Parse a JSON log line; unreadable input yields an empty entry."""
        try:
            data = json.loads(text)
        except ValueError:
            return cls()
        if not isinstance(data, dict):
            return cls()
        values = {
            attr: value
            for attr, key in _FIELDS
            if isinstance(value := data.get(key), str)
        }
        return cls(**values)

    def to_dict(self) -> dict[str, str]:
        return {key: getattr(self, attr) for attr, key in _FIELDS}


def format_entry(fields: Mapping[str, str]) -> str:
    """Render a journal entry as its message followed by a newline."""
    try:
        message = fields["MESSAGE"]
    except KeyError:
        raise ValueError("no MESSAGE field present in journal entry") from None
    return f"{message}\n"


def strip_ctl_and_ext(text: str) -> str:
    """Keep only printable ASCII characters."""
    return "".join(char for char in text if 32 <= ord(char) < 127)


def split_lines(chunks: Iterable[str | bytes]) -> Iterator[str]:
    """Yield complete newline-terminated lines from a stream of chunks.

    Bytes are taken one character per byte; a trailing partial line is dropped.
    """
    buffer = ""
    for chunk in chunks:
        if isinstance(chunk, (bytes, bytearray)):
            chunk = bytes(chunk).decode("latin-1")
        buffer += chunk
        *lines, buffer = buffer.split("\n")
        yield from lines


def parse_entries(chunks: Iterable[str | bytes]) -> Iterator[LogEntry]:
    """Yield one LogEntry per complete line."""
    for line in split_lines(chunks):
        yield LogEntry.from_json(strip_ctl_and_ext(line))


def trace_entries(chunks: Iterable[str | bytes]) -> Iterator[LogEntry]:
    """Yield the entries logged by the speech parser."""
    return (entry for entry in parse_entries(chunks) if entry.function == TRACE_FUNCTION)


def incoming_text_entries(chunks: Iterable[str | bytes]) -> Iterator[LogEntry]:
    """Yield the entries that carry recognised speech."""
    return (entry for entry in parse_entries(chunks) if entry.incoming_text)