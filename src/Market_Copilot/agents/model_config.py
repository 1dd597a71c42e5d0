"""Model configuration for the remote PydanticAI analysis agents.

Provides factory functions for the Anthropic (Claude) and DeepSeek models and
a reachability check used by health reporting and ``test_connection``.
DeepSeek speaks the OpenAI chat-completions protocol, so it is reached
through ``OpenAIChatModel`` with a custom base URL.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

import httpx
from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.anthropic import AnthropicProvider
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_CLAUDE_MODEL: str = "claude-3-5-sonnet-latest"
"""Default Anthropic model for the Claude backend."""

DEFAULT_DEEPSEEK_MODEL: str = "deepseek-chat"
"""Default DeepSeek chat model."""

ANTHROPIC_BASE_URL: str = "https://api.anthropic.com"
ANTHROPIC_API_VERSION: str = "2023-06-01"
DEFAULT_DEEPSEEK_BASE_URL: str = "https://api.deepseek.com"

DEFAULT_MODEL_SETTINGS: ModelSettings = ModelSettings(
    temperature=0.1,
    max_tokens=2000,
)
"""Model settings passed to every analysis run.

Low temperature keeps price levels and recommendations stable between
runs on the same snapshot.
"""

_REACHABILITY_TIMEOUT_SECONDS: float = 5.0
"""Timeout for the backend reachability check."""


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_anthropic_model(
    api_key: str,
    model_name: str = DEFAULT_CLAUDE_MODEL,
) -> AnthropicModel:
    """Create a PydanticAI ``AnthropicModel`` authenticated with *api_key*."""
    provider = AnthropicProvider(api_key=api_key)
    model = AnthropicModel(model_name, provider=provider)
    logger.info("Built AnthropicModel: model=%s", model_name)
    return model


def build_deepseek_model(
    api_key: str,
    model_name: str = DEFAULT_DEEPSEEK_MODEL,
    base_url: str = DEFAULT_DEEPSEEK_BASE_URL,
) -> OpenAIChatModel:
    """Create an ``OpenAIChatModel`` pointed at DeepSeek's OpenAI-compatible API."""
    provider = OpenAIProvider(base_url=base_url, api_key=api_key)
    model = OpenAIChatModel(model_name, provider=provider)
    logger.info("Built OpenAIChatModel for DeepSeek: model=%s, base_url=%s", model_name, base_url)
    return model


# ---------------------------------------------------------------------------
# Reachability
# ---------------------------------------------------------------------------


async def check_backend_reachable(
    url: str,
    *,
    headers: Mapping[str, str],
    transport: httpx.AsyncBaseTransport | None = None,
    timeout: float = _REACHABILITY_TIMEOUT_SECONDS,
) -> bool:
    """Return True if ``GET url`` answers HTTP 200 with the given credentials.

    Never raises: network errors, timeouts, and HTTP errors are caught and
    logged, and yield ``False``.
    """
    try:
        async with httpx.AsyncClient(transport=transport) as client:
            response = await asyncio.wait_for(
                client.get(url, headers=dict(headers)),
                timeout=timeout,
            )
        response.raise_for_status()
    except TimeoutError:
        logger.warning("Timeout reaching %s", url)
        return False
    except httpx.HTTPStatusError as exc:
        logger.warning("Backend returned HTTP %s at %s", exc.response.status_code, url)
        return False
    except httpx.HTTPError as exc:
        logger.warning("HTTP error contacting %s: %s", url, exc)
        return False
    logger.info("Backend reachable at %s", url)
    return True
