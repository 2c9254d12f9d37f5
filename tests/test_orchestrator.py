#!/usr/bin/env python3
"""
Tests for swarm/orchestrator.py module
"""

import os
import sys
import asyncio
import pytest
from unittest.mock import AsyncMock, patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import AgentType, SwarmConfig, Topology
from errors import (
    PartialRegistryWarning, TransportError, UnknownAgentTypeError, UnknownTopologyError,
)
from swarm import (
    AgentSwarm, DecompositionPlan, SlotOutcome, Subtask, WorkflowRecord, create_quick_swarm,
)
from conftest import prompt_context


def make_swarm(client, memory_store, agent_types, topology=Topology.HIERARCHICAL, **config):
    swarm = AgentSwarm(
        config=SwarmConfig(topology=topology, **config),
        client=client,
        memory_store=memory_store,
    )
    for agent_type in agent_types:
        swarm.add_agent(agent_type)
    return swarm


def plan_of(*subtasks, task="overall"):
    return DecompositionPlan(
        task=task,
        subtasks=[Subtask(task=t, agents=list(agents)) for t, agents in subtasks],
    )


class TestPlanTypes:

    def test_from_response_normalises_agents(self):
        plan = DecompositionPlan.from_response(
            {"subtasks": [{"task": "a", "agents": "stylist"}, {"agents": ["builder"]}, "loose"]},
            "root",
        )
        assert plan.task == "root"
        assert plan.subtasks[0] == Subtask(task="a", agents=["stylist"])
        assert plan.subtasks[1] == Subtask(task="root", agents=["builder"])
        assert plan.subtasks[2] == Subtask(task="loose", agents=[])

    def test_from_response_without_subtasks(self):
        assert DecompositionPlan.from_response({"plan": "none"}, "root") is None
        assert DecompositionPlan.from_response(["not", "a", "dict"], "root") is None

    def test_slot_outcome(self):
        assert SlotOutcome("stylist", response=1).unwrap() == 1
        error = TransportError("down")
        with pytest.raises(TransportError):
            SlotOutcome("stylist", error=error).unwrap()
        assert not SlotOutcome("stylist", error=error).ok


class TestRegistry:

    def test_add_agent(self, scripted_client, memory_store):
        swarm = make_swarm(scripted_client(), memory_store, [])
        agent = swarm.add_agent("stylist")

        assert swarm.get_agent("stylist") is agent
        assert swarm.get_agent(AgentType.STYLIST) is agent
        assert agent.memory_store is memory_store

    def test_get_agent_is_case_insensitive(self, scripted_client, memory_store):
        swarm = make_swarm(scripted_client(), memory_store, [])
        agent = swarm.add_agent("STYLIST")

        assert swarm.get_agent("Stylist") is agent
        assert swarm.get_agent("stylist") is agent
        assert swarm.get_agent("wizard") is None

    def test_duplicate_type_overwrites(self, scripted_client, memory_store):
        swarm = make_swarm(scripted_client(), memory_store, ["stylist"])
        first = swarm.get_agent("stylist")
        second = swarm.add_agent("stylist")

        assert swarm.get_agent("stylist") is second
        assert second is not first
        assert len(swarm.agents) == 1

    def test_unknown_agent_type(self, scripted_client, memory_store):
        swarm = make_swarm(scripted_client(), memory_store, [])
        with pytest.raises(UnknownAgentTypeError):
            swarm.add_agent("wizard")

    def test_create_flow_studio_swarm(self, scripted_client, memory_store):
        swarm = AgentSwarm.create_flow_studio_swarm(client=scripted_client(), memory_store=memory_store)

        assert list(swarm.agents) == [
            "coordinator", "analyst", "strategist", "stylist", "builder", "curator",
        ]
        assert swarm.topology is Topology.HIERARCHICAL
        assert swarm.name == "Flow Studio Design Swarm"

    def test_create_quick_swarm(self, scripted_client, memory_store):
        swarm = create_quick_swarm(
            ["stylist", "curator"],
            config=SwarmConfig(topology=Topology.MESH),
            client=scripted_client(),
            memory_store=memory_store,
        )
        assert list(swarm.agents) == ["stylist", "curator"]
        assert swarm.topology is Topology.MESH


class TestDecompose:

    @pytest.mark.asyncio
    async def test_without_coordinator_assigns_everyone(self, scripted_client, memory_store):
        client = scripted_client()
        swarm = make_swarm(client, memory_store, ["stylist", "builder"])

        plan = await swarm.decompose("build tokens")

        assert plan.task == "build tokens"
        assert plan.subtasks == [Subtask(task="build tokens", agents=["stylist", "builder"])]
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_caller_subtasks_without_coordinator(self, scripted_client, memory_store):
        swarm = make_swarm(scripted_client(), memory_store, ["stylist"])

        plan = await swarm.decompose("t", subtasks=[{"task": "a", "agents": ["stylist"]}])

        assert plan.subtasks == [Subtask(task="a", agents=["stylist"])]

    @pytest.mark.asyncio
    async def test_coordinator_plan(self, scripted_client, memory_store):
        client = scripted_client({
            "Maestro": {"subtasks": [{"task": "generate tokens", "agents": ["stylist"]}]},
        })
        swarm = make_swarm(client, memory_store, ["coordinator", "stylist"])

        plan = await swarm.decompose("build tokens")

        assert plan.subtasks == [Subtask(task="generate tokens", agents=["stylist"])]
        request = client.calls[0]["request"]
        assert request.prompt.startswith("Task: Decompose this task into subtasks for the swarm: build tokens")
        context = prompt_context(request)
        assert context["available_agents"] == ["coordinator", "stylist"]
        assert context["topology"] == "hierarchical"

    @pytest.mark.asyncio
    async def test_coordinator_reply_without_subtasks_falls_back(self, scripted_client, memory_store):
        client = scripted_client({"Maestro": {"thoughts": "no plan"}})
        swarm = make_swarm(client, memory_store, ["coordinator", "stylist"])

        plan = await swarm.decompose("build tokens")

        assert plan.subtasks == [Subtask(task="build tokens", agents=["coordinator", "stylist"])]


class TestHierarchical:

    @pytest.mark.asyncio
    async def test_results_are_threaded_in_order(self, scripted_client, memory_store):
        client = scripted_client({"Stylist": "tokens", "Builder": "components"})
        swarm = make_swarm(client, memory_store, ["stylist", "builder"])

        results = await swarm.execute_hierarchical(
            plan_of(("t1", ["stylist"]), ("t2", ["builder"])),
            context={"brand": "X"},
        )

        assert results == {"stylist": "tokens", "builder": "components"}
        assert [c["agent"] for c in client.calls] == ["Stylist", "Builder"]
        assert client.max_in_flight == 1

        stylist_context = prompt_context(client.calls[0]["request"])
        builder_context = prompt_context(client.calls[1]["request"])
        assert stylist_context["previous_results"] == {}
        assert stylist_context["swarm_context"] == "overall"
        assert builder_context["previous_results"] == {"stylist": "tokens"}
        assert builder_context["brand"] == "X"

    @pytest.mark.asyncio
    async def test_listed_agent_order_within_subtask(self, scripted_client, memory_store):
        client = scripted_client()
        swarm = make_swarm(client, memory_store, ["stylist", "builder", "curator"])

        await swarm.execute_hierarchical(plan_of(("t", ["curator", "stylist", "builder"])))

        assert [c["agent"] for c in client.calls] == ["Curator", "Stylist", "Builder"]

    @pytest.mark.asyncio
    async def test_unregistered_agent_is_skipped(self, scripted_client, memory_store):
        client = scripted_client()
        swarm = make_swarm(client, memory_store, ["stylist", "builder"])

        with pytest.warns(PartialRegistryWarning, match="curator"):
            results = await swarm.execute_hierarchical(
                plan_of(("t1", ["stylist"]), ("t2", ["curator"]), ("t3", ["builder"])),
            )

        assert set(results) == {"stylist", "builder"}

    @pytest.mark.asyncio
    async def test_failure_aborts_chain(self, scripted_client, memory_store):
        client = scripted_client({"Stylist": TransportError("down")})
        swarm = make_swarm(client, memory_store, ["stylist", "builder"])

        with pytest.raises(TransportError):
            await swarm.execute_hierarchical(plan_of(("t1", ["stylist"]), ("t2", ["builder"])))

        assert client.calls_for("Builder") == []


class TestMesh:

    @pytest.mark.asyncio
    async def test_calls_overlap(self, scripted_client, memory_store):
        client = scripted_client({"Stylist": "s", "Builder": "b"}, delay=0.05)
        swarm = make_swarm(client, memory_store, ["stylist", "builder"], Topology.MESH)

        results = await swarm.execute_mesh(plan_of(("t1", ["stylist"]), ("t2", ["builder"])))

        assert results == {"stylist": "s", "builder": "b"}
        starts = [c["start"] for c in client.calls]
        ends = [c["end"] for c in client.calls]
        assert max(starts) < min(ends)

    @pytest.mark.asyncio
    async def test_no_agent_sees_another_result(self, scripted_client, memory_store):
        client = scripted_client()
        swarm = make_swarm(client, memory_store, ["stylist", "builder"], Topology.MESH)

        await swarm.execute_mesh(plan_of(("t1", ["stylist", "builder"])))

        for call in client.calls:
            context = prompt_context(call["request"])
            assert "previous_results" not in context
            assert context["topology"] == "mesh"

    @pytest.mark.asyncio
    async def test_last_writer_wins(self, scripted_client, memory_store):
        client = scripted_client({"Stylist": lambda request: request.prompt.split("\n")[0]})
        swarm = make_swarm(client, memory_store, ["stylist"], Topology.MESH)

        results = await swarm.execute_mesh(plan_of(("first", ["stylist"]), ("second", ["stylist"])))

        assert results == {"stylist": "Task: second"}

    @pytest.mark.asyncio
    async def test_concurrency_bound_respected(self, scripted_client, memory_store):
        client = scripted_client(delay=0.02)
        swarm = make_swarm(
            client, memory_store, ["analyst", "strategist", "stylist", "builder"],
            Topology.MESH, mesh_concurrency=2,
        )

        results = await swarm.execute_mesh(
            plan_of(("a", ["analyst", "strategist"]), ("b", ["stylist", "builder"])),
        )

        assert len(results) == 4
        assert client.max_in_flight == 2

    @pytest.mark.asyncio
    async def test_unbounded_when_disabled(self, scripted_client, memory_store):
        client = scripted_client(delay=0.02)
        types = ["analyst", "strategist", "stylist", "builder", "curator"]
        swarm = make_swarm(client, memory_store, types, Topology.MESH, mesh_concurrency=None)

        await swarm.execute_mesh(plan_of(("a", types)))

        assert client.max_in_flight == 5

    @pytest.mark.asyncio
    async def test_failure_aborts_after_all_settle(self, scripted_client, memory_store):
        client = scripted_client({"Stylist": TransportError("down")}, delay=0.01)
        swarm = make_swarm(client, memory_store, ["stylist", "builder"], Topology.MESH)

        with pytest.raises(TransportError, match="down"):
            await swarm.execute_mesh(plan_of(("t1", ["stylist"]), ("t2", ["builder"])))

        assert all(c["end"] is not None for c in client.calls)

    @pytest.mark.asyncio
    async def test_unregistered_agent_is_skipped(self, scripted_client, memory_store):
        swarm = make_swarm(scripted_client(), memory_store, ["stylist"], Topology.MESH)

        with pytest.warns(PartialRegistryWarning):
            results = await swarm.execute_mesh(plan_of(("t", ["stylist", "curator"])))

        assert results == {"stylist": "Stylist response"}


class TestAdaptive:

    FIVE = ["analyst", "strategist", "stylist", "builder", "curator"]

    def test_complexity_score(self, scripted_client, memory_store):
        swarm = make_swarm(scripted_client(), memory_store, self.FIVE)
        assert swarm.analyze_complexity(plan_of(("a", []), ("b", []), ("c", []))) == 0.75
        assert swarm.analyze_complexity(plan_of(("a", []), ("b", []))) == 0.5
        assert swarm.analyze_complexity(plan_of(*[(str(i), []) for i in range(10)])) == 1.0
        assert swarm.analyze_complexity(DecompositionPlan(task="t", subtasks=[])) == 0.25

    @pytest.mark.asyncio
    async def test_high_complexity_routes_to_mesh(self, scripted_client, memory_store):
        swarm = make_swarm(scripted_client(), memory_store, self.FIVE, Topology.ADAPTIVE)
        plan = plan_of(("a", []), ("b", []), ("c", []))

        with patch.object(swarm, "execute_mesh", AsyncMock(return_value={"m": 1})) as mesh, \
             patch.object(swarm, "execute_hierarchical", AsyncMock()) as hierarchical:
            assert await swarm.execute_adaptive(plan) == {"m": 1}

        mesh.assert_awaited_once()
        hierarchical.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_low_complexity_routes_to_hierarchical(self, scripted_client, memory_store):
        swarm = make_swarm(scripted_client(), memory_store, self.FIVE, Topology.ADAPTIVE)
        plan = plan_of(("a", []), ("b", []))

        with patch.object(swarm, "execute_mesh", AsyncMock()) as mesh, \
             patch.object(swarm, "execute_hierarchical", AsyncMock(return_value={"h": 1})) as hierarchical:
            assert await swarm.execute_adaptive(plan) == {"h": 1}

        hierarchical.assert_awaited_once()
        mesh.assert_not_awaited()


class TestExecute:

    @pytest.mark.asyncio
    async def test_end_to_end_with_coordinator(self, scripted_client, memory_store):
        tokens = {"colors": {"primary": {"value": "#2563EB"}}}
        client = scripted_client({
            "Maestro": {"subtasks": [{"task": "generate tokens", "agents": ["stylist"]}]},
            "Stylist": tokens,
        })
        swarm = make_swarm(client, memory_store, ["coordinator", "stylist"])

        record = await swarm.execute("build tokens", expect_structured=True)

        assert isinstance(record, WorkflowRecord)
        assert record.result["stylist"] == tokens
        assert record.agents_involved == ["coordinator", "stylist"]
        assert record.topology == "hierarchical"
        assert record.task == "build tokens"
        assert record.plan.subtasks == [Subtask(task="generate tokens", agents=["stylist"])]
        assert record.duration >= 0
        assert "coordinator" not in record.result

    @pytest.mark.asyncio
    async def test_unknown_topology(self, scripted_client, memory_store):
        client = scripted_client()
        swarm = make_swarm(client, memory_store, ["stylist"], topology="ring")

        with pytest.raises(UnknownTopologyError, match="ring"):
            await swarm.execute("anything")
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_topology_given_as_string(self, scripted_client, memory_store):
        swarm = make_swarm(scripted_client(), memory_store, ["stylist"], topology="mesh")

        record = await swarm.execute("t")

        assert record.topology == "mesh"

    @pytest.mark.asyncio
    async def test_workflow_record_persisted(self, scripted_client, memory_store):
        swarm = make_swarm(scripted_client(), memory_store, ["stylist"])

        await swarm.execute("t", workflow_name="design-system")

        history = await memory_store.load_workflow_history("design-system")
        assert len(history) == 1
        assert history[0]["result"] == {"stylist": "Stylist response"}
        assert history[0]["plan"]["subtasks"][0]["agents"] == ["stylist"]

    @pytest.mark.asyncio
    async def test_not_persisted_without_name(self, scripted_client, memory_store):
        swarm = make_swarm(scripted_client(), memory_store, ["stylist"])
        await swarm.execute("t", persist_memory=False)
        assert not memory_store.workflow_path.exists()
        assert not memory_store.agent_path.exists()

    @pytest.mark.asyncio
    async def test_failure_aborts_execute(self, scripted_client, memory_store):
        client = scripted_client({"Builder": TransportError("down")})
        swarm = make_swarm(client, memory_store, ["stylist", "builder"])

        with pytest.raises(TransportError):
            await swarm.execute("t", workflow_name="w")

        assert swarm.results == []
        assert await memory_store.load_workflow_history("w") == []

    @pytest.mark.asyncio
    async def test_call_timeout(self, scripted_client, memory_store):
        client = scripted_client(delay=0.5)
        swarm = make_swarm(client, memory_store, ["stylist"], call_timeout=0.01)

        with pytest.raises(asyncio.TimeoutError):
            await swarm.execute("slow")

    @pytest.mark.asyncio
    async def test_stats(self, scripted_client, memory_store):
        swarm = make_swarm(scripted_client(), memory_store, ["stylist", "builder"])
        await swarm.execute("t")

        stats = swarm.get_stats()

        assert stats["agent_count"] == 2
        assert stats["tasks_completed"] == 1
        assert stats["topology"] == "hierarchical"
        assert [a["task_count"] for a in stats["agents"]] == [1, 1]


class TestSynthesize:

    @pytest.mark.asyncio
    async def test_identity_without_coordinator(self, scripted_client, memory_store):
        swarm = make_swarm(scripted_client(), memory_store, ["stylist"])
        results = {"stylist": {"a": 1}}
        assert await swarm.synthesize(results, "goal") is results

    @pytest.mark.asyncio
    async def test_coordinator_merges(self, scripted_client, memory_store):
        client = scripted_client({"Maestro": {"merged": True}})
        swarm = make_swarm(client, memory_store, ["coordinator", "stylist"])

        merged = await swarm.synthesize({"stylist": "tokens"}, "a design system")

        assert merged == {"merged": True}
        request = client.calls[0]["request"]
        assert "coherent output for: a design system" in request.prompt
        assert prompt_context(request) == {"results": {"stylist": "tokens"}}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
