"""Agent modules for the AI companion."""

from .orchestrator import AgentOrchestrator
from .recap_agent import RecapAgent

__all__ = [
    "AgentOrchestrator",
    "RecapAgent",
]
