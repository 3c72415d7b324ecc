"""System instructions and prompt assembly."""

from pathlib import Path
from typing import List, Sequence

MODIFY_INSTRUCTION = (
    "You are a sophisticated, accurate, and modern AI programming assistant. "
    "Whenever you are prompted with a file to modify, you always return the complete code "
    "in a fenced code block ready to run without any placeholders and including the unchanged code."
)

IDENTIFY_PLACEHOLDERS_INSTRUCTION = (
    "Below is the code output by an AI programming assistant. This code may contain one or "
    "multiple placeholders that the AI creates to be filled in by the user. Please identify "
    "and list all the placeholders in this code. Examples: \"Rest of the code remains the same...\" "
    "OR \"YOUR CODE HERE\" OR \"Existing function code ...\""
)


def read_input_files(paths: Sequence[str]) -> List[str]:
    """Read every input file as UTF-8, replacing undecodable bytes. Missing files raise OSError."""
    return [Path(p).read_text(encoding="utf-8", errors="replace") for p in paths]


def build_prompt(prompt: str, input_paths: Sequence[str], input_contents: Sequence[str]) -> str:
    """Append each input file to the prompt under a ``### <path>:`` heading."""
    parts = [prompt]
    for path, content in zip(input_paths, input_contents):
        parts.append(f"\n\n### {path}:\n```\n{content}\n```\n")
    return "".join(parts)
