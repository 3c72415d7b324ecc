from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, List, Optional

from util.errors import MalformedPayload

DONE_SENTINEL = "[DONE]"


@dataclass
class CompletionDelta:
    """One incremental fragment of a streamed chat completion."""
    role: Optional[str] = None
    content: Optional[str] = None

    @property
    def is_header(self) -> bool:
        return bool(self.role)


def build_messages(instruction: str, prompt: str) -> List[dict]:
    return [
        {"role": "system", "content": instruction},
        {"role": "user", "content": prompt},
    ]


def build_payload(
    instruction: str, prompt: str, *, model: str, temperature: float = 0.0
) -> dict:
    """Construct an OpenAI Chat Completions streaming payload for a single prompt."""
    body: Dict = {
        "model": model,
        "temperature": temperature,
        "messages": build_messages(instruction, prompt),
        "stream": True,
        "n": 1,
    }
    return body


def parse_delta(data: str) -> CompletionDelta:
    """Decode ``choices[0].delta`` from a chunk payload.

    Raises :class:`MalformedPayload` when the payload is not JSON or does not
    have the chat-completion chunk shape. A chunk with no choices or no delta
    decodes to an empty delta.
    """
    try:
        evt = json.loads(data)
    except json.JSONDecodeError as e:
        raise MalformedPayload(data, str(e)) from e

    if not isinstance(evt, dict):
        raise MalformedPayload(data, "expected a JSON object")
    choices = evt.get("choices")
    if not choices:
        return CompletionDelta()
    if not isinstance(choices, list) or not isinstance(choices[0], dict):
        raise MalformedPayload(data, "choices must be a list of objects")
    delta = choices[0].get("delta") or {}
    if not isinstance(delta, dict):
        raise MalformedPayload(data, "delta must be an object")
    role = delta.get("role")
    content = delta.get("content")
    return CompletionDelta(
        role=role if isinstance(role, str) else None,
        content=content if isinstance(content, str) else None,
    )
