"""Tests for workflow topology resolution and workflow-type switching.

Covers:
  - Sequential / Collaborative keep input order, ignore parent ids
  - Hierarchical forest: roots, children, pre-order walk with depth
  - Cycle detection (two-node and self-parent) raises TopologyCycleError
  - Unknown parent ids are treated as roots
  - Switching away from Hierarchical clears parents and is not reversible
"""

from __future__ import annotations

import pytest

from agent_builder.compiler.models import Agent, WorkflowConfig, WorkflowType
from agent_builder.compiler.topology import (
    CompilerError,
    TopologyCycleError,
    TopologyError,
    resolve_topology,
    switch_workflow_type,
)


def _agent(agent_id: str, parent: str | None = None) -> Agent:
    return Agent(id=agent_id, name=f"agent {agent_id}", parent_id=parent)


_TREE = [
    _agent("sup"),
    _agent("research", "sup"),
    _agent("search", "research"),
    _agent("writer", "sup"),
    _agent("solo"),
]


class TestFlatTopologies:
    @pytest.mark.parametrize("wf", [WorkflowType.SEQUENTIAL, WorkflowType.COLLABORATIVE])
    def test_order_and_roots_follow_input(self, wf):
        topo = resolve_topology(_TREE, wf)
        assert topo.order == ("sup", "research", "search", "writer", "solo")
        assert topo.roots == topo.order
        assert topo.children == {}

    def test_sequential_ignores_cyclic_parents(self):
        agents = [_agent("a", "b"), _agent("b", "a")]
        topo = resolve_topology(agents, WorkflowType.SEQUENTIAL)
        assert topo.order == ("a", "b")


class TestHierarchy:
    def test_roots_and_children(self):
        topo = resolve_topology(_TREE, WorkflowType.HIERARCHICAL)
        assert topo.roots == ("sup", "solo")
        assert topo.children_of("sup") == ("research", "writer")
        assert topo.children_of("research") == ("search",)
        assert topo.children_of("writer") == ()

    def test_walk_is_preorder_with_depth(self):
        topo = resolve_topology(_TREE, WorkflowType.HIERARCHICAL)
        assert list(topo.walk()) == [
            ("sup", 0),
            ("research", 1),
            ("search", 2),
            ("writer", 1),
            ("solo", 0),
        ]

    def test_unknown_parent_becomes_root(self):
        topo = resolve_topology([_agent("a"), _agent("b", "ghost")], WorkflowType.HIERARCHICAL)
        assert topo.roots == ("a", "b")

    def test_two_node_cycle(self):
        with pytest.raises(TopologyCycleError) as exc_info:
            resolve_topology([_agent("a", "b"), _agent("b", "a")], WorkflowType.HIERARCHICAL)
        assert set(exc_info.value.cycle) == {"a", "b"}
        assert "Cyclic parent references" in str(exc_info.value)

    def test_self_parent_cycle(self):
        with pytest.raises(TopologyCycleError) as exc_info:
            resolve_topology([_agent("a", "a")], WorkflowType.HIERARCHICAL)
        assert exc_info.value.cycle == ["a"]

    def test_cycle_below_a_valid_root(self):
        agents = [_agent("root"), _agent("x", "y"), _agent("y", "x"), _agent("z", "root")]
        with pytest.raises(TopologyCycleError):
            resolve_topology(agents, WorkflowType.HIERARCHICAL)

    def test_cycle_error_is_a_compiler_error(self):
        assert issubclass(TopologyCycleError, TopologyError)
        assert issubclass(TopologyError, CompilerError)

    def test_duplicate_ids_rejected(self):
        with pytest.raises(TopologyError):
            resolve_topology([_agent("a"), _agent("a")], WorkflowType.SEQUENTIAL)


class TestWorkflowTypeSwitch:
    def test_switch_to_sequential_clears_parents(self):
        switched = switch_workflow_type(_TREE, WorkflowType.SEQUENTIAL)
        assert all(a.parent_id is None for a in switched)
        assert [a.id for a in switched] == [a.id for a in _TREE]

    def test_switch_to_hierarchical_keeps_parents(self):
        switched = switch_workflow_type(_TREE, WorkflowType.HIERARCHICAL)
        assert [a.parent_id for a in switched] == [a.parent_id for a in _TREE]

    def test_switch_is_lossy(self):
        config = WorkflowConfig(agents=tuple(_TREE), workflow_type=WorkflowType.HIERARCHICAL)
        round_trip = (
            config.with_workflow_type(WorkflowType.COLLABORATIVE)
            .with_workflow_type(WorkflowType.HIERARCHICAL)
        )
        assert round_trip.workflow_type is WorkflowType.HIERARCHICAL
        assert all(a.parent_id is None for a in round_trip.agents)
        topo = resolve_topology(round_trip.agents, round_trip.workflow_type)
        assert topo.roots == topo.order

    def test_switch_does_not_mutate_input(self):
        config = WorkflowConfig(agents=tuple(_TREE), workflow_type=WorkflowType.HIERARCHICAL)
        config.with_workflow_type(WorkflowType.SEQUENTIAL)
        assert config.agents[1].parent_id == "sup"
