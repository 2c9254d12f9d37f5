#!/usr/bin/env python3
"""
Flow Studio Swarm Orchestrator

The swarm owns a registry of agents and is responsible for:
1. Task decomposition - asking the coordinator (Maestro) for a plan, or
   assigning the whole task to every agent when no coordinator is registered
2. Execution - running the plan under the configured topology
3. Result aggregation - collecting per-agent responses into a workflow record
4. Synthesis - optionally merging per-agent results into one output

Topologies:
- hierarchical: subtasks in plan order, agents in listed order, each call
  sees every result collected so far
- mesh: every agent of every subtask at once, bounded by mesh_concurrency
- adaptive: mesh when min(1, subtasks * agents / 20) > 0.7, else hierarchical

A failure in any agent call aborts the whole execution; no partial results
are returned.

Example Usage:
    from swarm import AgentSwarm

    swarm = AgentSwarm.create_flow_studio_swarm()
    record = await swarm.execute(
        "Generate design tokens for the Line Creed brand",
        context={"brand": brand_config},
        expect_structured=True,
        workflow_name="design-system",
    )
    print(record.result["stylist"])
"""

import time
import asyncio
import warnings
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional, Union
import logging

from completion_client import CompletionClient
from config import (
    AgentType, SwarmConfig, Topology, COORDINATOR_TYPE, STANDARD_AGENT_TYPES,
)
from errors import PartialRegistryWarning, UnknownTopologyError
from swarm.agents.base_agent import Agent, create_agent
from swarm.memory import MemoryStore

logger = logging.getLogger(__name__)


PLAN_FORMAT = {
    "task": "the overall task",
    "subtasks": [
        {"task": "specific subtask description", "agents": ["agent type", "..."]}
    ],
}


@dataclass
class Subtask:
    """One unit of a decomposition plan"""
    task: str
    agents: List[str] = field(default_factory=list)

    @classmethod
    def from_value(cls, value: Any, default_task: str) -> "Subtask":
        if isinstance(value, str):
            return cls(task=value)

        agents = value.get("agents") or []
        if isinstance(agents, str):
            agents = [agents]
        return cls(
            task=value.get("task") or default_task,
            agents=[str(a) for a in agents],
        )


@dataclass
class DecompositionPlan:
    """Task -> subtasks -> agent assignment"""
    task: str
    subtasks: List[Subtask]

    @classmethod
    def from_response(cls, data: Any, task: str) -> Optional["DecompositionPlan"]:
        """Normalise a coordinator reply; None when it holds no subtask list"""
        if not isinstance(data, dict) or not isinstance(data.get("subtasks"), list):
            return None
        plan_task = data.get("task") or task
        return cls(
            task=plan_task,
            subtasks=[
                Subtask.from_value(item, plan_task)
                for item in data["subtasks"]
                if isinstance(item, (str, dict))
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SlotOutcome:
    """Settled outcome of one agent invocation"""
    agent_type: str
    response: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.response


@dataclass
class WorkflowRecord:
    """Summary of one completed swarm execution"""
    task: str
    topology: str
    agents_involved: List[str]
    result: Dict[str, Any]
    duration: float
    timestamp: str
    plan: Optional[DecompositionPlan] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class AgentSwarm:
    """
    Coordinates multiple agents working on one task.

    Agents are keyed by agent type; adding a type twice replaces the first
    registration.
    """

    def __init__(
        self,
        config: Optional[SwarmConfig] = None,
        client: Optional[CompletionClient] = None,
        memory_store: Optional[MemoryStore] = None,
    ):
        """
        Initialize the swarm.

        Args:
            config: Swarm configuration (name, topology, concurrency)
            client: Completion client shared by all agents
            memory_store: Memory store shared by all agents and workflows
        """
        self.config = config or SwarmConfig()
        self.name = self.config.name
        self.topology = self.config.topology
        self.client = client
        self.memory_store = memory_store or MemoryStore()

        self.agents: Dict[str, Agent] = {}
        self.results: List[WorkflowRecord] = []
        self.created_at = time.monotonic()

    def add_agent(self, agent_type: Union[AgentType, str]) -> Agent:
        """Create an agent of the given type and register it"""
        agent = create_agent(agent_type, client=self.client, memory_store=self.memory_store)
        self.agents[agent.agent_type.value] = agent
        logger.info(f"{agent.name} joined the swarm")
        return agent

    def get_agent(self, agent_type: Union[AgentType, str]) -> Optional[Agent]:
        key = agent_type.value if isinstance(agent_type, AgentType) else str(agent_type).lower()
        return self.agents.get(key)

    def _resolve_topology(self) -> Topology:
        if isinstance(self.topology, Topology):
            return self.topology
        try:
            return Topology(str(self.topology).lower())
        except ValueError:
            raise UnknownTopologyError(f"Unknown topology: {self.topology}") from None

    def _lookup(self, agent_type: str) -> Optional[Agent]:
        agent = self.agents.get(agent_type)
        if agent is None:
            message = f"Agent {agent_type} not found in swarm, skipping"
            logger.warning(message)
            warnings.warn(message, PartialRegistryWarning, stacklevel=3)
        return agent

    async def execute(
        self,
        task: str,
        workflow_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        subtasks: Optional[List[Any]] = None,
        expect_structured: bool = False,
        persist_memory: bool = True,
        **options
    ) -> WorkflowRecord:
        """
        Execute a task using the swarm.

        Args:
            task: The task to accomplish
            workflow_name: Persist the record under this workflow name
            context: Extra context passed to every agent call
            subtasks: Explicit subtasks, used when no coordinator is registered
            expect_structured: Ask agents for structured (JSON) responses
            persist_memory: Record agent calls in the Memory Store
            **options: model, max_tokens or temperature overrides

        Returns:
            WorkflowRecord with per-agent results
        """
        topology = self._resolve_topology()
        start = time.monotonic()
        logger.info(f"Swarm executing ({topology.value}): {task[:100]}")

        plan = await self.decompose(task, subtasks=subtasks, persist_memory=persist_memory, **options)
        logger.info(f"Decomposed into {len(plan.subtasks)} subtasks")

        strategies = {
            Topology.HIERARCHICAL: self.execute_hierarchical,
            Topology.MESH: self.execute_mesh,
            Topology.ADAPTIVE: self.execute_adaptive,
        }
        result = await strategies[topology](
            plan,
            context=context,
            expect_structured=expect_structured,
            persist_memory=persist_memory,
            **options
        )

        record = WorkflowRecord(
            task=task,
            topology=topology.value,
            agents_involved=list(self.agents),
            result=result,
            duration=time.monotonic() - start,
            timestamp=datetime.now(timezone.utc).isoformat(),
            plan=plan,
        )
        self.results.append(record)

        if workflow_name:
            await self.memory_store.save_workflow_result(workflow_name, record.to_dict())

        logger.info(f"Swarm completed task in {record.duration:.2f}s")
        return record

    def _default_plan(self, task: str, subtasks: Optional[List[Any]] = None) -> DecompositionPlan:
        if subtasks:
            return DecompositionPlan(
                task=task,
                subtasks=[Subtask.from_value(s, task) for s in subtasks],
            )
        return DecompositionPlan(task=task, subtasks=[Subtask(task=task, agents=list(self.agents))])

    async def decompose(
        self,
        task: str,
        subtasks: Optional[List[Any]] = None,
        **think_options
    ) -> DecompositionPlan:
        """
        Decompose a task into subtasks.

        With a coordinator registered, its structured reply is the plan.
        Otherwise the caller's subtasks, or the whole task for every agent.
        """
        coordinator = self.agents.get(COORDINATOR_TYPE.value)
        if coordinator is None:
            return self._default_plan(task, subtasks)

        topology = self.topology.value if isinstance(self.topology, Topology) else str(self.topology)
        reply = await coordinator.think(
            f"Decompose this task into subtasks for the swarm: {task}",
            {
                "available_agents": list(self.agents),
                "topology": topology,
                "plan_format": PLAN_FORMAT,
            },
            expect_structured=True,
            **think_options
        )

        plan = DecompositionPlan.from_response(reply.response, task)
        if plan is None:
            logger.warning("Coordinator reply has no subtask list, assigning task to every agent")
            return self._default_plan(task, subtasks)
        return plan

    async def _invoke(
        self,
        agent_type: str,
        agent: Agent,
        task: str,
        context: Dict[str, Any],
        think_options: Dict[str, Any],
    ) -> SlotOutcome:
        try:
            call = agent.think(task, context, **think_options)
            if self.config.call_timeout:
                result = await asyncio.wait_for(call, self.config.call_timeout)
            else:
                result = await call
        except Exception as e:
            return SlotOutcome(agent_type=agent_type, error=e)
        return SlotOutcome(agent_type=agent_type, response=result.response)

    async def execute_hierarchical(
        self,
        plan: DecompositionPlan,
        context: Optional[Dict[str, Any]] = None,
        **think_options
    ) -> Dict[str, Any]:
        """Run subtasks and their agents strictly in order, threading results"""
        results: Dict[str, Any] = {}

        for subtask in plan.subtasks:
            for agent_type in subtask.agents:
                agent = self._lookup(agent_type)
                if agent is None:
                    continue

                outcome = await self._invoke(
                    agent_type,
                    agent,
                    subtask.task,
                    {
                        "swarm_context": plan.task,
                        "previous_results": dict(results),
                        **(context or {}),
                    },
                    think_options,
                )
                results[agent_type] = outcome.unwrap()

        return results

    async def execute_mesh(
        self,
        plan: DecompositionPlan,
        context: Optional[Dict[str, Any]] = None,
        **think_options
    ) -> Dict[str, Any]:
        """Run every agent of every subtask concurrently"""
        limit = self.config.mesh_concurrency
        semaphore = asyncio.Semaphore(limit) if limit else None

        async def run_slot(subtask: Subtask, agent_type: str) -> Optional[SlotOutcome]:
            agent = self._lookup(agent_type)
            if agent is None:
                return None

            slot_context = {
                "swarm_context": plan.task,
                "topology": Topology.MESH.value,
                **(context or {}),
            }
            if semaphore is None:
                return await self._invoke(agent_type, agent, subtask.task, slot_context, think_options)
            async with semaphore:
                return await self._invoke(agent_type, agent, subtask.task, slot_context, think_options)

        async def run_subtask(subtask: Subtask) -> List[Optional[SlotOutcome]]:
            return await asyncio.gather(*[run_slot(subtask, t) for t in subtask.agents])

        settled = await asyncio.gather(*[run_subtask(s) for s in plan.subtasks])
        outcomes = [o for group in settled for o in group if o is not None]

        failures = [o for o in outcomes if not o.ok]
        if failures:
            logger.error(f"{len(failures)} of {len(outcomes)} mesh calls failed")
            failures[0].unwrap()

        organized: Dict[str, Any] = {}
        for outcome in outcomes:
            organized[outcome.agent_type] = outcome.response
        return organized

    def analyze_complexity(self, plan: DecompositionPlan) -> float:
        """Complexity score in [0, 1] from subtask and agent counts"""
        subtask_count = len(plan.subtasks) or 1
        return min(subtask_count * len(self.agents) / self.config.complexity_divisor, 1.0)

    async def execute_adaptive(
        self,
        plan: DecompositionPlan,
        context: Optional[Dict[str, Any]] = None,
        **think_options
    ) -> Dict[str, Any]:
        """Mesh for complex plans, hierarchical otherwise"""
        complexity = self.analyze_complexity(plan)

        if complexity > self.config.complexity_threshold:
            logger.info(f"Complexity {complexity:.2f}, using mesh topology")
            return await self.execute_mesh(plan, context=context, **think_options)

        logger.info(f"Complexity {complexity:.2f}, using hierarchical topology")
        return await self.execute_hierarchical(plan, context=context, **think_options)

    async def synthesize(self, results: Dict[str, Any], goal: str, **think_options) -> Any:
        """Merge per-agent results via the coordinator, or pass them through"""
        coordinator = self.agents.get(COORDINATOR_TYPE.value)
        if coordinator is None:
            return results

        reply = await coordinator.think(
            f"Synthesize these agent results into a coherent output for: {goal}",
            {"results": results},
            expect_structured=True,
            **think_options
        )
        return reply.response

    def get_stats(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "topology": self.topology.value if isinstance(self.topology, Topology) else self.topology,
            "agent_count": len(self.agents),
            "agents": [agent.get_stats() for agent in self.agents.values()],
            "tasks_completed": len(self.results),
            "uptime": time.monotonic() - self.created_at,
        }

    @classmethod
    def create_flow_studio_swarm(cls, **kwargs) -> "AgentSwarm":
        """Swarm with all six standard agents under hierarchical topology"""
        swarm = cls(
            config=SwarmConfig(name="Flow Studio Design Swarm", topology=Topology.HIERARCHICAL),
            **kwargs
        )
        for agent_type in STANDARD_AGENT_TYPES:
            swarm.add_agent(agent_type)

        logger.info(f"Flow Studio swarm initialized with {len(swarm.agents)} agents")
        return swarm


def create_quick_swarm(
    agent_types: List[Union[AgentType, str]],
    config: Optional[SwarmConfig] = None,
    **kwargs
) -> AgentSwarm:
    """Swarm holding just the given agent types"""
    swarm = AgentSwarm(config=config, **kwargs)
    for agent_type in agent_types:
        swarm.add_agent(agent_type)
    return swarm


if __name__ == "__main__":
    print("Flow Studio Swarm Orchestrator")
    print("=" * 50)
    print("\nTopologies:")
    for topology in Topology:
        print(f"  - {topology.value}")
    print("\nUsage:")
    print("  swarm = AgentSwarm.create_flow_studio_swarm()")
    print("  record = await swarm.execute('Generate design tokens', expect_structured=True)")
    print("  print(record.result)")
