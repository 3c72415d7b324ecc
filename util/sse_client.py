"""Incremental server-sent-event decoding.

The decoder only understands the SSE line grammar; payloads are passed through
untouched so callers decide what ``data`` means.
"""

from __future__ import annotations

import codecs
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Union

from requests.exceptions import RequestException

from util.errors import TransportError

_LINE_END = re.compile(r"\r\n|\r|\n")

Chunk = Union[bytes, str]


@dataclass
class EventRecord:
    """One dispatched SSE record.

    ``kind`` is "event" for data-carrying events and "retry" for a reconnect
    interval announcement.
    """
    kind: str
    data: str = ""
    event: Optional[str] = None
    id: Optional[str] = None


class SSEDecoder:
    """Turns arbitrarily split chunks into complete :class:`EventRecord`s."""

    def __init__(self) -> None:
        self._text = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""
        self._started = False
        self._data: List[str] = []
        self._event_name: Optional[str] = None
        self._last_id: Optional[str] = None

    def feed(self, chunk: Chunk) -> List[EventRecord]:
        """Feed a chunk, returning every record completed by it."""
        if isinstance(chunk, bytes):
            chunk = self._text.decode(chunk)
        return self._consume(chunk, final=False)

    def close(self) -> List[EventRecord]:
        """Flush at end of stream, dispatching a trailing unterminated event."""
        out = self._consume(self._text.decode(b"", final=True), final=True)
        if self._pending:
            line, self._pending = self._pending, ""
            record = self._process_line(line)
            if record is not None:
                out.append(record)
        record = self._dispatch()
        if record is not None:
            out.append(record)
        return out

    def _consume(self, text: str, *, final: bool) -> List[EventRecord]:
        out: List[EventRecord] = []
        if text and not self._started:
            self._started = True
            if text.startswith("\ufeff"):
                text = text[1:]
        self._pending += text

        while True:
            m = _LINE_END.search(self._pending)
            if not m:
                break
            # A trailing CR may be the first half of a CRLF split across chunks
            if m.group() == "\r" and m.end() == len(self._pending) and not final:
                break
            line = self._pending[:m.start()]
            self._pending = self._pending[m.end():]
            record = self._process_line(line)
            if record is not None:
                out.append(record)
        return out

    def _process_line(self, line: str) -> Optional[EventRecord]:
        if line == "":
            return self._dispatch()
        if line.startswith(":"):
            return None

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if field == "data":
            self._data.append(value)
        elif field == "event":
            self._event_name = value
        elif field == "id":
            if "\0" not in value:
                self._last_id = value
        elif field == "retry":
            if value.isdigit():
                return EventRecord(kind="retry", data=value)
        return None

    def _dispatch(self) -> Optional[EventRecord]:
        if not self._data:
            self._event_name = None
            return None
        record = EventRecord(
            kind="event",
            data="\n".join(self._data),
            event=self._event_name,
            id=self._last_id,
        )
        self._data = []
        self._event_name = None
        return record


def iter_events(chunks: Iterable[Chunk]) -> Iterator[EventRecord]:
    """Lazily decode a chunk source into records.

    Records completed before a transport failure are yielded first; the failure
    then surfaces as :class:`TransportError`.
    """
    decoder = SSEDecoder()
    try:
        for chunk in chunks:
            yield from decoder.feed(chunk)
    except (RequestException, OSError) as e:
        raise TransportError(f"Network error: {e}") from e
    yield from decoder.close()
