"""DeepSeek analysis backend (OpenAI-compatible chat API via PydanticAI)."""

from __future__ import annotations

import httpx

from Market_Copilot.agents.model_config import (
    DEFAULT_DEEPSEEK_BASE_URL,
    DEFAULT_DEEPSEEK_MODEL,
    build_deepseek_model,
)
from Market_Copilot.agents.prompts import DEEPSEEK_SYSTEM_PROMPT
from Market_Copilot.agents.remote import RemoteAnalysisBackend
from Market_Copilot.models import BackendId


def build_deepseek_backend(
    api_key: str | None,
    model_name: str = DEFAULT_DEEPSEEK_MODEL,
    base_url: str = DEFAULT_DEEPSEEK_BASE_URL,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RemoteAnalysisBackend:
    """Create the DeepSeek backend; reachability is checked via ``GET /models``."""
    base = base_url.rstrip("/")
    return RemoteAnalysisBackend(
        BackendId.DEEPSEEK,
        api_key=api_key,
        model_name=model_name,
        system_prompt=DEEPSEEK_SYSTEM_PROMPT,
        model_builder=lambda key, name: build_deepseek_model(key, name, base),
        reachability_url=f"{base}/models",
        reachability_headers={"Authorization": f"Bearer {api_key or ''}"},
        transport=transport,
    )
