"""Endpoint configuration, resolved once at startup."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
PROXY_API_URL = "https://api.codemancer.codes/v1/chat/completions"
PROXY_WARNING = (
    "Warning: OPENAI_API_KEY not set. Using free codemancer OpenAI proxy, "
    "which is slower and rate limited."
)

DEFAULT_MODEL = "gpt-4"
DEFAULT_TEMPERATURE = 0.0
DEFAULT_VERBOSITY = 2


@dataclass(frozen=True)
class ApiConfig:
    """Where to send completion requests and with which credential."""
    url: str
    api_key: Optional[str]
    using_proxy: bool = False

    def headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers


def resolve_api_config(env: Optional[Mapping[str, str]] = None) -> ApiConfig:
    """Pick the endpoint from the environment.

    With ``OPENAI_API_KEY`` set requests go to OpenAI directly; without it they
    go to the public proxy. ``CODEMANCER_API_URL`` overrides the URL either way.
    """
    env = os.environ if env is None else env
    api_key = env.get("OPENAI_API_KEY") or None
    using_proxy = api_key is None
    url = PROXY_API_URL if using_proxy else OPENAI_API_URL
    override = (env.get("CODEMANCER_API_URL") or "").strip()
    if override:
        url = override
    return ApiConfig(url=url, api_key=api_key, using_proxy=using_proxy)
