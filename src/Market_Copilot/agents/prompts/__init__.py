"""Versioned system prompts for the remote analysis backends."""

from Market_Copilot.agents.prompts.claude_prompt import (
    CLAUDE_SYSTEM_PROMPT,
    OUTPUT_FORMAT_SECTION,
    PROMPT_VERSION,
)
from Market_Copilot.agents.prompts.deepseek_prompt import DEEPSEEK_SYSTEM_PROMPT

__all__ = [
    "CLAUDE_SYSTEM_PROMPT",
    "DEEPSEEK_SYSTEM_PROMPT",
    "OUTPUT_FORMAT_SECTION",
    "PROMPT_VERSION",
]
