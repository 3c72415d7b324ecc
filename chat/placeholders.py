"""Ask the model to list leftover placeholders in generated code."""

from typing import Sequence

from rich.console import Console
from rich.markup import escape

from chat.code_blocks import CodeBlock
from chat.prompt_builder import IDENTIFY_PLACEHOLDERS_INSTRUCTION
from render.live_echo import FragmentSink
from streaming_client import StreamingClient


def review_placeholders(
    client: StreamingClient,
    blocks: Sequence[CodeBlock],
    *,
    model: str,
    console: Console,
    sink: FragmentSink,
) -> None:
    """Run one placeholder review per block, in order, and print each answer."""
    for block in blocks:
        result = client.complete(
            IDENTIFY_PLACEHOLDERS_INSTRUCTION,
            block.body,
            model=model,
            temperature=0,
            sink=sink,
        )
        console.print(f"Placeholders found: {escape(result.text)}")
