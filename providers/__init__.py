from __future__ import annotations

from providers.openai import (
    DONE_SENTINEL,
    CompletionDelta,
    build_payload,
    parse_delta,
)


__all__ = ["DONE_SENTINEL", "CompletionDelta", "build_payload", "parse_delta"]
