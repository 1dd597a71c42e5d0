"""Analysis backends and the coordinator that routes between them."""

from Market_Copilot.agents.base import AnalysisBackend
from Market_Copilot.agents.claude import build_claude_backend
from Market_Copilot.agents.consensus import Consensus, compare_analyses
from Market_Copilot.agents.context_builder import build_context_text
from Market_Copilot.agents.coordinator import DEFAULT_PRIORITY, AnalysisCoordinator
from Market_Copilot.agents.deepseek import build_deepseek_backend
from Market_Copilot.agents.local import LocalHeuristicBackend, build_local_analysis
from Market_Copilot.agents.remote import RemoteAnalysisBackend

__all__ = [
    "AnalysisBackend",
    "AnalysisCoordinator",
    "Consensus",
    "DEFAULT_PRIORITY",
    "LocalHeuristicBackend",
    "RemoteAnalysisBackend",
    "build_claude_backend",
    "build_context_text",
    "build_deepseek_backend",
    "build_local_analysis",
    "compare_analyses",
]
