"""Live echo of streamed completion fragments."""

from __future__ import annotations

from typing import List, Optional, Protocol

from rich.console import Console
from rich.text import Text


class FragmentSink(Protocol):
    def on_fragment(self, text: str) -> None: ...


class ConsoleSink:
    """Writes each fragment to the terminal as soon as it arrives."""

    def __init__(self, console: Optional[Console] = None, style: str = "magenta"):
        self.console = console or Console(soft_wrap=True, highlight=False)
        self.style = style

    def on_fragment(self, text: str) -> None:
        if not text:
            return
        self.console.print(Text(text, style=self.style), end="", soft_wrap=True)
        self.console.file.flush()


class BufferSink:
    """Collects fragments in memory."""

    def __init__(self) -> None:
        self.fragments: List[str] = []

    def on_fragment(self, text: str) -> None:
        self.fragments.append(text)

    @property
    def text(self) -> str:
        return "".join(self.fragments)


class NullSink:
    def on_fragment(self, text: str) -> None:
        pass
