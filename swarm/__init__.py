"""
Flow Studio Swarm Module

Multi-agent orchestration turning a brand description into design tokens
and theme variations.

Architecture:
    ┌─────────────────────────────────────────────┐
    │                AGENT SWARM                  │
    │  - Task decomposition (Maestro)             │
    │  - Topology: hierarchical / mesh / adaptive │
    │  - Result aggregation and synthesis         │
    └────────────────┬────────────────────────────┘
                     │
         ┌───────────┼───────────┐
         │           │           │
    ┌────▼────┐ ┌────▼────┐ ┌────▼────┐
    │ Stylist │ │ Builder │ │ Curator │  ...
    └────┬────┘ └────┬────┘ └────┬────┘
         │           │           │
    ┌────▼───────────▼───────────▼────┐
    │  COMPLETION CLIENT + MEMORY     │
    └─────────────────────────────────┘

Example Usage:
    from swarm import AgentSwarm

    swarm = AgentSwarm.create_flow_studio_swarm()
    record = await swarm.execute(
        "Generate design tokens and three theme variations",
        context={"brand": brand_config},
        expect_structured=True,
    )
"""

from .orchestrator import (
    AgentSwarm,
    DecompositionPlan,
    Subtask,
    SlotOutcome,
    WorkflowRecord,
    create_quick_swarm,
)

from .agents.base_agent import (
    Agent,
    AgentResult,
    CollaborationResult,
    create_agent,
)

from .agents import CuratorAgent, ResearcherAgent, StylistAgent

from .memory import MemoryEntry, MemoryStore

from .workflows import (
    DesignSystemConfig,
    DesignSystemResult,
    DesignSystemWorkflow,
    generate_design_system,
)

__all__ = [
    "AgentSwarm",
    "DecompositionPlan",
    "Subtask",
    "SlotOutcome",
    "WorkflowRecord",
    "create_quick_swarm",
    "Agent",
    "AgentResult",
    "CollaborationResult",
    "create_agent",
    "CuratorAgent",
    "ResearcherAgent",
    "StylistAgent",
    "MemoryEntry",
    "MemoryStore",
    "DesignSystemConfig",
    "DesignSystemResult",
    "DesignSystemWorkflow",
    "generate_design_system",
]
