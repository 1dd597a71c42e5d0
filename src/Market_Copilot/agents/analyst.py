"""Remote analyst agent using PydanticAI.

Exposes a module-level ``analyst_agent`` shared by the Claude and DeepSeek
backends, and a ``run_analyst()`` wrapper that runs it with a backend's
system prompt and model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic_ai import Agent, ModelRetry, RunContext
from pydantic_ai.models import Model
from pydantic_ai.usage import RunUsage

from Market_Copilot.agents.model_config import DEFAULT_MODEL_SETTINGS
from Market_Copilot.models import RemoteAnalysisPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


@dataclass
class AnalystDeps:
    """Dependencies injected into the analyst agent at runtime."""

    system_prompt: str
    context_text: str
    query: str


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------

analyst_agent: Agent[AnalystDeps, RemoteAnalysisPayload] = Agent(
    output_type=RemoteAnalysisPayload,
    deps_type=AnalystDeps,
    retries=1,
    model_settings=DEFAULT_MODEL_SETTINGS,
)


@analyst_agent.system_prompt
async def _analyst_system_prompt(ctx: RunContext[AnalystDeps]) -> str:
    """Return the calling backend's system prompt."""
    return ctx.deps.system_prompt


@analyst_agent.output_validator
def _require_trade_plan(data: RemoteAnalysisPayload) -> RemoteAnalysisPayload:
    """Reject output that is neither an explicit error nor a complete plan."""
    if data.error is not None:
        return data
    if not data.recommendation.strip() or data.key_levels is None or data.risk_management is None:
        raise ModelRetry(
            "Return the full JSON object: recommendation, key_levels and risk_management "
            "are required."
        )
    return data


# ---------------------------------------------------------------------------
# Convenience runner
# ---------------------------------------------------------------------------


def build_user_prompt(deps: AnalystDeps) -> str:
    """Wrap the market snapshot and the user's question in delimiters."""
    return (
        "<market_data>\n"
        f"{deps.context_text}\n"
        "</market_data>\n"
        "\n"
        "<user_input>\n"
        f"{deps.query}\n"
        "</user_input>\n"
        "\n"
        "Answer the question using the market data above. Respond with JSON only."
    )


async def run_analyst(
    deps: AnalystDeps,
    model: Model,
) -> tuple[RemoteAnalysisPayload, RunUsage]:
    """Run the analyst agent and return ``(parsed_output, usage)``."""
    result = await analyst_agent.run(build_user_prompt(deps), deps=deps, model=model)
    usage = result.usage()
    logger.info(
        "Analyst agent completed (input_tokens=%d, output_tokens=%d)",
        usage.input_tokens,
        usage.output_tokens,
    )
    return result.output, usage
