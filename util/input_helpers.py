"""Input handling utilities."""

import sys
from typing import Callable, Optional

from prompt_toolkit import prompt as pt_prompt
from prompt_toolkit.completion import PathCompleter
from prompt_toolkit.formatted_text import ANSI
from rich.console import Console

# Reads one line of user input after showing the given prompt text.
LineReader = Callable[[str], str]


def _is_tty(stream) -> bool:
    return hasattr(stream, "isatty") and stream.isatty()


def read_line(console: Console, message: str, *, complete_paths: bool = False) -> str:
    """Show ``message`` and read one line from the terminal.

    On a TTY this uses prompt-toolkit (with filesystem completion when asked);
    on pipes and redirects it falls back to a plain read through the console.
    Raises EOFError when input is exhausted.
    """
    if _is_tty(sys.stdin) and _is_tty(sys.stdout):
        with console.capture() as capture:
            console.print(message, end="")
        completer = PathCompleter(expanduser=True) if complete_paths else None
        return pt_prompt(ANSI(capture.get()), completer=completer)
    return console.input(message)


def make_line_reader(console: Console, *, complete_paths: bool = False) -> LineReader:
    def _reader(message: str) -> str:
        return read_line(console, message, complete_paths=complete_paths)
    return _reader


def normalize_answer(answer: Optional[str]) -> str:
    """Lowercase and trim a prompt answer; ``None`` becomes an empty string."""
    if answer is None:
        return ""
    return answer.strip().lower()
