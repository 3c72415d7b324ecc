from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List


OPEN_FENCE_RE = re.compile(r"^```(?P<lang>[A-Za-z]*)[ \t]*$")
CLOSE_FENCE_RE = re.compile(r"^```[ \t]*$")
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+\Z")


@dataclass
class CodeBlock:
    language: str
    body: str


def _iter_lines(text: str) -> Iterator[str]:
    for m in _LINE_RE.finditer(text):
        yield m.group()


def extract_code_blocks(text: str) -> List[CodeBlock]:
    """Return the fenced code blocks of ``text`` in order of appearance.

    A block opens on a line of three backticks optionally followed by a
    language tag and closes on the next line that holds only three backticks.
    The body keeps every line in between verbatim, newlines included. A fence
    left open at the end of the text yields nothing.
    """
    blocks: List[CodeBlock] = []
    language = None
    body: List[str] = []

    for line in _iter_lines(text):
        bare = line.rstrip("\r\n")
        if language is None:
            m = OPEN_FENCE_RE.match(bare)
            if m:
                language = m.group("lang")
                body = []
            continue
        if CLOSE_FENCE_RE.match(bare):
            blocks.append(CodeBlock(language=language, body="".join(body)))
            language = None
            continue
        body.append(line)

    return blocks
