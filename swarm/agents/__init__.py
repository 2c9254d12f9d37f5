"""
Flow Studio Swarm Agents

Agent types available to a swarm:
- coordinator (Maestro): decomposes tasks and synthesizes results
- analyst: design trend research
- strategist: layout and UX structure
- stylist: design tokens and visual language
- builder: component markup and CSS
- curator: quality and accessibility review

Specialized wrappers add the design-system jobs on top of the generic agents:
ResearcherAgent (analyst), StylistAgent and CuratorAgent.
"""

from .base_agent import Agent, AgentResult, CollaborationResult, create_agent
from .researcher import ResearcherAgent
from .stylist import StylistAgent, TokenGenerationResult, validate_tokens
from .curator import CuratorAgent

__all__ = [
    "Agent",
    "AgentResult",
    "CollaborationResult",
    "create_agent",
    "ResearcherAgent",
    "StylistAgent",
    "TokenGenerationResult",
    "validate_tokens",
    "CuratorAgent",
]
