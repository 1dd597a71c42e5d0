"""Claude analysis backend (Anthropic Messages API via PydanticAI)."""

from __future__ import annotations

import httpx

from Market_Copilot.agents.model_config import (
    ANTHROPIC_API_VERSION,
    ANTHROPIC_BASE_URL,
    DEFAULT_CLAUDE_MODEL,
    build_anthropic_model,
)
from Market_Copilot.agents.prompts import CLAUDE_SYSTEM_PROMPT
from Market_Copilot.agents.remote import RemoteAnalysisBackend
from Market_Copilot.models import BackendId


def build_claude_backend(
    api_key: str | None,
    model_name: str = DEFAULT_CLAUDE_MODEL,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RemoteAnalysisBackend:
    """Create the Claude backend; reachability is checked via ``GET /v1/models``."""
    return RemoteAnalysisBackend(
        BackendId.CLAUDE,
        api_key=api_key,
        model_name=model_name,
        system_prompt=CLAUDE_SYSTEM_PROMPT,
        model_builder=build_anthropic_model,
        reachability_url=f"{ANTHROPIC_BASE_URL}/v1/models",
        reachability_headers={
            "x-api-key": api_key or "",
            "anthropic-version": ANTHROPIC_API_VERSION,
        },
        transport=transport,
    )
