#!/usr/bin/env python3
"""
Flow Studio Swarm Configuration Module

This module provides centralized configuration for the design swarm:
- Completion service endpoint and authentication
- Default completion parameters (model, tokens, retry, batching)
- Memory store location and retention caps
- Swarm topology settings
- Agent profiles (identity and capabilities per agent type)

Environment variables (a local .env file is honoured):
- FLOW_STUDIO_API_KEY: credential for the completion service (required)
- FLOW_STUDIO_BASE_URL: OpenAI-compatible endpoint
- FLOW_STUDIO_MODEL: model identifier
- FLOW_STUDIO_TIMEOUT: request timeout in seconds
- FLOW_STUDIO_MEMORY_DIR: directory holding the persisted memory files
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union
from enum import Enum
from dotenv import load_dotenv

from errors import ConfigurationError, UnknownAgentTypeError

# Load environment variables
load_dotenv()


class Topology(Enum):
    """
    Swarm execution topologies

    HIERARCHICAL: Sequential chain
        - Subtasks run in plan order, agents in listed order
        - Every call sees all previously collected results

    MESH: Full concurrency
        - All subtasks and all of their agents run at once
        - No agent sees another agent's result

    ADAPTIVE: Heuristic choice between the two
        - complexity = min(1, subtasks * agents / 20)
        - Above 0.7 runs as mesh, otherwise hierarchical
    """
    HIERARCHICAL = "hierarchical"
    MESH = "mesh"
    ADAPTIVE = "adaptive"


class OutputKind(Enum):
    """Kind of output a completion request expects"""
    TEXT = "text"
    STRUCTURED = "structured"


class AgentType(Enum):
    """Closed set of agent kinds a swarm can host"""
    COORDINATOR = "coordinator"
    ANALYST = "analyst"
    STRATEGIST = "strategist"
    STYLIST = "stylist"
    BUILDER = "builder"
    CURATOR = "curator"


@dataclass(frozen=True)
class AgentProfile:
    """Identity and capability record for an agent type"""
    name: str
    role: str
    capabilities: List[str]
    personality: str = "professional"


AGENT_PROFILES: Dict[AgentType, AgentProfile] = {
    AgentType.COORDINATOR: AgentProfile(
        name="Maestro",
        role="Workflow Orchestrator",
        capabilities=[
            "Coordinate multi-agent workflows",
            "Decompose complex tasks",
            "Synthesize agent outputs",
            "Manage dependencies",
            "Optimize execution order",
        ],
        personality="strategic and organized",
    ),
    AgentType.ANALYST: AgentProfile(
        name="Analyst",
        role="Design Trend Analyst",
        capabilities=[
            "Analyze current web design trends",
            "Research color theory and modern palettes",
            "Identify typography trends",
            "Study motion design patterns",
            "Understand accessibility best practices",
        ],
        personality="analytical and thorough",
    ),
    AgentType.STRATEGIST: AgentProfile(
        name="Strategist",
        role="UX Strategist",
        capabilities=[
            "Design layout hierarchies",
            "Create responsive grid systems",
            "Define spacing and rhythm",
            "Plan component architecture",
            "Optimize user flows",
        ],
        personality="thoughtful and user-focused",
    ),
    AgentType.STYLIST: AgentProfile(
        name="Stylist",
        role="Visual Design Specialist",
        capabilities=[
            "Generate design tokens from brand configurations",
            "Create color palettes with WCAG compliance",
            "Select typography pairings",
            "Define motion and animation parameters",
            "Ensure visual coherence",
        ],
        personality="creative and precise",
    ),
    AgentType.BUILDER: AgentProfile(
        name="Builder",
        role="Component Engineer",
        capabilities=[
            "Generate semantic HTML structures",
            "Create token-driven CSS",
            "Build accessible components",
            "Implement responsive patterns",
            "Optimize for performance",
        ],
        personality="technical and detail-oriented",
    ),
    AgentType.CURATOR: AgentProfile(
        name="Curator",
        role="Quality Assurance Specialist",
        capabilities=[
            "Validate WCAG contrast ratios",
            "Check brand alignment",
            "Audit token usage",
            "Verify semantic HTML",
            "Generate quality reports",
        ],
        personality="meticulous and objective",
    ),
}

# Registration order used by the standard six-agent swarm
STANDARD_AGENT_TYPES: List[AgentType] = [
    AgentType.COORDINATOR,
    AgentType.ANALYST,
    AgentType.STRATEGIST,
    AgentType.STYLIST,
    AgentType.BUILDER,
    AgentType.CURATOR,
]

COORDINATOR_TYPE = AgentType.COORDINATOR

# Every agent keeps these in mind regardless of role
QUALITY_COMMITMENTS: List[str] = [
    "Brand alignment and consistency",
    "WCAG AAA accessibility standards",
    "Modern design trends (glassmorphism, kinetic typography, perceptual color)",
    "Performance and maintainability",
    "User experience excellence",
]

STRUCTURED_OUTPUT_DIRECTIVE = (
    "CRITICAL: You must respond with valid JSON only. "
    "No markdown, no explanations, just pure JSON."
)


DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o"


@dataclass
class APIConfig:
    """API configuration settings"""
    base_url: str
    api_key: str
    timeout: int = 120

    @classmethod
    def from_env(
        cls,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> "APIConfig":
        """Create APIConfig from environment variables"""
        api_key = api_key or os.getenv("FLOW_STUDIO_API_KEY")
        if not api_key:
            raise ConfigurationError(
                "FLOW_STUDIO_API_KEY environment variable not set. "
                "Set it in the environment or in a .env file."
            )
        return cls(
            base_url=base_url or os.getenv("FLOW_STUDIO_BASE_URL", DEFAULT_BASE_URL),
            api_key=api_key,
            timeout=int(os.getenv("FLOW_STUDIO_TIMEOUT", "120")),
        )


@dataclass
class CompletionConfig:
    """Default parameters for completion requests"""
    model: str = field(default_factory=lambda: os.getenv("FLOW_STUDIO_MODEL", DEFAULT_MODEL))
    max_tokens: int = 4096
    temperature: float = 1.0
    max_retries: int = 3
    retry_delay: float = 1.0  # seconds, multiplied by the attempt number
    max_concurrent: int = 3
    batch_pause: float = 0.5  # seconds between batch windows
    retry_malformed_output: bool = False


@dataclass
class MemoryConfig:
    """Location and retention of the persisted memory files"""
    memory_dir: str = field(
        default_factory=lambda: os.getenv("FLOW_STUDIO_MEMORY_DIR", ".flow-studio/memory")
    )
    agent_file: str = "agent-memory.json"
    workflow_file: str = "workflows.json"
    agent_cap: int = 100
    workflow_cap: int = 50


@dataclass
class SwarmConfig:
    """Configuration for swarm execution"""
    name: str = "Flow Studio Swarm"
    topology: Union[Topology, str] = Topology.HIERARCHICAL
    mesh_concurrency: Optional[int] = 6  # None restores unbounded fan-out
    call_timeout: Optional[float] = None  # seconds per agent call
    complexity_threshold: float = 0.7
    complexity_divisor: int = 20


# Default configurations
DEFAULT_COMPLETION_CONFIG = CompletionConfig()
DEFAULT_MEMORY_CONFIG = MemoryConfig()


def get_agent_profile(agent_type: Union[AgentType, str]) -> AgentProfile:
    """Get the profile for an agent type, accepting the enum or its key"""
    if isinstance(agent_type, AgentType):
        return AGENT_PROFILES[agent_type]
    try:
        return AGENT_PROFILES[AgentType(str(agent_type).lower())]
    except ValueError:
        raise UnknownAgentTypeError(
            f"Unknown agent type: {agent_type}. "
            f"Available: {[t.value for t in AgentType]}"
        ) from None


def validate_api_key() -> bool:
    """Check if a completion service credential is configured"""
    return bool(os.getenv("FLOW_STUDIO_API_KEY"))


def print_config_summary():
    """Print a summary of current configuration"""
    completion = CompletionConfig()
    memory = MemoryConfig()

    print("=" * 60)
    print("FLOW STUDIO SWARM CONFIGURATION SUMMARY")
    print("=" * 60)

    print(f"\nModel: {completion.model}")
    print(f"  Max Tokens: {completion.max_tokens:,}")
    print(f"  Retries: {completion.max_retries} (delay unit {completion.retry_delay}s)")
    print(f"  Batch Window: {completion.max_concurrent}")

    print(f"\nAPI Key: {'Configured' if validate_api_key() else 'NOT SET'}")
    print(f"Memory Dir: {memory.memory_dir}")

    print("\nAgent Types:")
    for agent_type, profile in AGENT_PROFILES.items():
        print(f"  - {agent_type.value}: {profile.name} ({profile.role})")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    print_config_summary()
