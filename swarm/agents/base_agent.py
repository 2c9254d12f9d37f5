#!/usr/bin/env python3
"""
Flow Studio Base Agent

Foundation class for swarm agents. Each agent:
- Has a fixed identity (name, role, capabilities, personality)
- Turns a task plus context into one completion request
- Keeps a window of its own recent tasks to give prompts continuity
- Records every completed task in the persistent Memory Store

Agents are created from a closed set of agent types:
coordinator, analyst, strategist, stylist, builder, curator.

Example:
    from swarm.agents import create_agent

    stylist = create_agent("stylist")
    result = await stylist.think(
        "Generate design tokens for this brand",
        {"brand": brand_config},
        expect_structured=True,
    )
    tokens = result.response
"""

import json
import time
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional, Union
from dataclasses import dataclass, field, asdict
import logging

from completion_client import CompletionClient, CompletionRequest
from config import (
    AgentType, OutputKind, QUALITY_COMMITMENTS, get_agent_profile,
)
from swarm.memory import MemoryEntry, MemoryStore

logger = logging.getLogger(__name__)

RECENT_EXPERIENCE_WINDOW = 3
RECENT_TASK_CHARS = 100


@dataclass
class AgentResult:
    """Result from an agent's think() call"""
    agent_name: str
    task: str
    context: Dict[str, Any]
    response: Any
    timestamp: str
    duration: float
    usage: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CollaborationResult:
    """Combined output of a two-agent collaboration"""
    agents: List[str]
    task: str
    results: Dict[str, Any]
    timestamp: str


class Agent:
    """
    A named, role-configured worker backed by the completion service.

    The agent performs no retry of its own; failures from the client are
    logged and re-raised.
    """

    def __init__(
        self,
        name: str,
        role: str,
        capabilities: List[str],
        personality: str = "professional",
        client: Optional[CompletionClient] = None,
        memory_store: Optional[MemoryStore] = None,
        agent_type: Optional[AgentType] = None,
    ):
        """
        Initialize an agent.

        Args:
            name: Agent name, also the key of its persisted memory
            role: Agent's primary role
            capabilities: Ordered capability descriptions
            personality: Communication style
            client: Completion client (created from the environment if omitted)
            memory_store: Persistent memory (default location if omitted)
            agent_type: The agent type this agent was built from, if any
        """
        self.name = name
        self.role = role
        self.capabilities = list(capabilities)
        self.personality = personality
        self.agent_type = agent_type
        self._client = client
        self.memory_store = memory_store or MemoryStore()

        self.memory: List[MemoryEntry] = []
        self.task_count = 0
        self.created_at = time.monotonic()

        logger.info(f"Initialized agent {self.name} ({self.role})")

    @property
    def client(self) -> CompletionClient:
        # Built on first use so agents can be registered before credentials exist
        if self._client is None:
            self._client = CompletionClient()
        return self._client

    def build_system_prompt(self) -> str:
        """System prompt defining the agent's identity and capabilities"""
        capabilities = "\n".join(f"- {cap}" for cap in self.capabilities)
        commitments = "\n".join(f"- {item}" for item in QUALITY_COMMITMENTS)

        return f"""You are {self.name}, a {self.role} in the Flow Studio design system.

Your Role: {self.role}

Your Capabilities:
{capabilities}

Personality: {self.personality}

Your task is to leverage your expertise to provide the highest quality output. You understand design systems, modern web aesthetics, accessibility, and current design trends. You always consider:
{commitments}

Approach every task systematically and provide detailed, actionable output."""

    def build_prompt(self, task: str, context: Optional[Dict[str, Any]] = None) -> str:
        """Build the complete prompt for a task"""
        prompt = f"Task: {task}\n\n"

        if context:
            prompt += f"Context:\n{json.dumps(context, indent=2, default=str)}\n\n"

        if self.memory:
            prompt += "Recent Experience:\n"
            for i, entry in enumerate(self.memory[-RECENT_EXPERIENCE_WINDOW:], 1):
                prompt += f"{i}. {entry.task[:RECENT_TASK_CHARS]}...\n"
            prompt += "\n"

        return prompt

    async def think(
        self,
        task: str,
        context: Optional[Dict[str, Any]] = None,
        expect_structured: bool = False,
        persist_memory: bool = True,
        **options
    ) -> AgentResult:
        """
        Execute a task through the completion service.

        Args:
            task: The task description
            context: Additional context, embedded in the prompt as JSON
            expect_structured: Request and parse a structured (JSON) response
            persist_memory: Record the result in the Memory Store
            **options: model, max_tokens or temperature overrides

        Returns:
            AgentResult with the response, timing and token usage
        """
        context = context or {}
        start = time.monotonic()
        self.task_count += 1

        logger.info(f"{self.name} is thinking about: {task[:100]}")

        output = OutputKind.STRUCTURED if expect_structured else OutputKind.TEXT
        request = CompletionRequest(
            prompt=self.build_prompt(task, context),
            output=output,
            system_prompt=self.build_system_prompt(),
            model=options.get("model"),
            max_tokens=options.get("max_tokens"),
            temperature=options.get("temperature"),
        )

        try:
            completion = await self.client.send(request)
        except Exception as e:
            logger.error(f"{self.name} failed: {e}")
            raise

        result = AgentResult(
            agent_name=self.name,
            task=task,
            context=context,
            response=completion.value,
            timestamp=datetime.now(timezone.utc).isoformat(),
            duration=time.monotonic() - start,
            usage=completion.usage,
        )

        self.memory.append(MemoryEntry(
            agent_name=self.name,
            task=task,
            response=result.response,
            timestamp=result.timestamp,
        ))

        if persist_memory:
            await self.memory_store.save(self.name, MemoryEntry(
                agent_name=self.name,
                task=task,
                response=result.response,
                duration=result.duration,
                context=context,
                usage=result.usage,
            ))

        logger.info(f"{self.name} completed task in {result.duration:.2f}s")
        return result

    async def collaborate_with(
        self,
        other: "Agent",
        task: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> CollaborationResult:
        """This agent works first, then the other builds on its response"""
        context = context or {}
        logger.info(f"{self.name} collaborating with {other.name}")

        mine = await self.think(task, {
            **context,
            "collaboration": f"Working with {other.name}",
        })
        theirs = await other.think(task, {
            **context,
            "collaboration": f"Building on {self.name}'s work",
            "previous_work": mine.response,
        })

        return CollaborationResult(
            agents=[self.name, other.name],
            task=task,
            results={self.name: mine.response, other.name: theirs.response},
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    async def refine(self, previous_work: Any, criteria: str, **options) -> AgentResult:
        """Review and refine previous work against criteria"""
        task = f"Review and refine this work based on the following criteria: {criteria}"
        return await self.think(task, {"previous_work": previous_work, "mode": "refinement"}, **options)

    async def load_history(self, limit: int = 10) -> List[MemoryEntry]:
        """Replace the in-process window with the newest persisted entries"""
        self.memory = await self.memory_store.load(self.name, limit)
        logger.info(f"{self.name} loaded {len(self.memory)} memories")
        return self.memory

    def clear_memory(self):
        """Clear in-process memory; persisted memory remains"""
        self.memory = []
        logger.info(f"{self.name}'s memory cleared")

    async def memory_stats(self) -> Dict[str, Any]:
        """Statistics of this agent's persisted memory"""
        return await self.memory_store.stats(self.name)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "role": self.role,
            "task_count": self.task_count,
            "memory_size": len(self.memory),
            "uptime": time.monotonic() - self.created_at,
            "capabilities": len(self.capabilities),
        }


def create_agent(
    agent_type: Union[AgentType, str],
    client: Optional[CompletionClient] = None,
    memory_store: Optional[MemoryStore] = None,
) -> Agent:
    """
    Factory function to create an agent of a known type.

    Args:
        agent_type: AgentType or its key ("stylist", "curator", ...)
        client: Completion client shared with the agent
        memory_store: Memory store shared with the agent

    Returns:
        Configured Agent

    Raises:
        UnknownAgentTypeError: agent_type is not a known agent type
    """
    profile = get_agent_profile(agent_type)
    resolved = agent_type if isinstance(agent_type, AgentType) else AgentType(str(agent_type).lower())

    return Agent(
        name=profile.name,
        role=profile.role,
        capabilities=profile.capabilities,
        personality=profile.personality,
        client=client,
        memory_store=memory_store,
        agent_type=resolved,
    )


if __name__ == "__main__":
    print("Flow Studio Base Agent Module")
    print("=" * 50)
    print("\nAvailable agent types:")
    for agent_type in AgentType:
        print(f"  - {agent_type.value}: {get_agent_profile(agent_type).name}")
    print("\nUsage:")
    print("  agent = create_agent('stylist')")
    print("  result = await agent.think('Generate design tokens', expect_structured=True)")
