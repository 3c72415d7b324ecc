"""StreamingClient for chat-completion SSE interactions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

import requests
from requests.exceptions import RequestException

from providers.openai import DONE_SENTINEL, build_payload, parse_delta
from render.live_echo import FragmentSink, NullSink
from util.errors import APIError, TransportError
from util.settings import ApiConfig
from util.sse_client import EventRecord, iter_events


@dataclass
class StreamResult:
    """Result from streaming a completion request."""
    text: str
    done: bool = False
    partial: bool = False
    error: Optional[str] = None


class CompletionAccumulator:
    """Concatenates content deltas in arrival order and echoes each one."""

    def __init__(self, sink: Optional[FragmentSink] = None):
        self.sink = sink or NullSink()
        self._parts: List[str] = []
        self.finished = False

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def consume(self, record: EventRecord) -> bool:
        """Apply one record. Returns True once the end sentinel was seen."""
        if self.finished or record.kind != "event":
            return self.finished
        if record.data == DONE_SENTINEL:
            self.sink.on_fragment("\n\n")
            self.finished = True
            return True

        delta = parse_delta(record.data)
        if delta.is_header:
            return False
        content = delta.content or ""
        self._parts.append(content)
        self.sink.on_fragment(content)
        return False

    def run(self, records: Iterable[EventRecord]) -> StreamResult:
        """Drain ``records`` into a :class:`StreamResult`.

        A transport failure yields the text gathered so far, marked partial.
        Malformed payloads propagate.
        """
        try:
            for record in records:
                if self.consume(record):
                    return StreamResult(text=self.text, done=True)
        except TransportError as e:
            return StreamResult(text=self.text, partial=True, error=str(e))
        return StreamResult(text=self.text)


class StreamingClient:
    """Sends one completion request and accumulates its streamed answer."""

    def __init__(
        self,
        config: ApiConfig,
        *,
        session: Optional[requests.Session] = None,
        sink: Optional[FragmentSink] = None,
        timeout: Optional[float] = None,
    ):
        self.config = config
        self.session = session or requests.Session()
        self.sink = sink or NullSink()
        self.timeout = timeout

    def complete(
        self,
        instruction: str,
        prompt: str,
        *,
        model: str,
        temperature: float = 0.0,
        sink: Optional[FragmentSink] = None,
    ) -> StreamResult:
        """Request a streamed completion and return the accumulated text.

        Raises:
            APIError: the endpoint answered with a non-success status
            TransportError: the request could not be sent at all
            MalformedPayload: an event carried invalid JSON
        """
        payload = build_payload(instruction, prompt, model=model, temperature=temperature)
        accumulator = CompletionAccumulator(sink or self.sink)
        try:
            response = self.session.post(
                self.config.url,
                json=payload,
                headers=self.config.headers(),
                stream=True,
                timeout=self.timeout,
            )
        except RequestException as e:
            raise TransportError(f"Network error: {e}") from e

        with response as r:
            if not r.ok:
                raise APIError(r.status_code, r.reason or "", r.text)
            return accumulator.run(iter_events(r.iter_content(chunk_size=None)))
