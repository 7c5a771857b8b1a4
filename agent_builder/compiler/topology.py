"""Workflow topology resolution.

Agents arrive as a flat, ordered list where each agent may name a parent by
id. The resolver keeps that list as the only storage (indexed by id) and
computes a separate child-index map; no agent ever holds a reference to
another agent object.

  Sequential    input order is the chain; parent_id is ignored
  Hierarchical  forest built from parent_id edges
  Collaborative unordered peers (kept in input order for stable output)

The editor is expected to prevent parent cycles. If one slips through,
resolve_topology() raises TopologyCycleError after a walk bounded by the
number of agents.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from agent_builder.compiler.models import Agent, WorkflowType

logger = logging.getLogger("agent_builder.compiler.topology")


class CompilerError(Exception):
    """Base class for faults that abort code generation."""


class TopologyError(CompilerError):
    """The agent list cannot be arranged into the requested topology."""


class TopologyCycleError(TopologyError):
    """parent_id references form a cycle.

    cycle: agent ids on the cycle, in parent-walk order.
    """

    def __init__(self, cycle: list[str]) -> None:
        super().__init__(
            "Cyclic parent references between agents: " + " -> ".join(cycle + cycle[:1])
        )
        self.cycle = cycle


@dataclass(frozen=True)
class Topology:
    """Resolved structure of a workflow.

    order:     agent ids in input order (the chain for Sequential).
    roots:     top-level agent ids. Every agent for Sequential/Collaborative.
    children:  parent id → child ids in input order (Hierarchical only).
    """

    workflow_type: WorkflowType
    order: tuple[str, ...]
    roots: tuple[str, ...]
    children: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def children_of(self, agent_id: str) -> tuple[str, ...]:
        return self.children.get(agent_id, ())

    def walk(self) -> Iterator[tuple[str, int]]:
        """Yield (agent_id, depth) in pre-order. Iterative, no recursion."""
        stack: list[tuple[str, int]] = [(r, 0) for r in reversed(self.roots)]
        while stack:
            agent_id, depth = stack.pop()
            yield agent_id, depth
            for child in reversed(self.children_of(agent_id)):
                stack.append((child, depth + 1))


def index_agents(agents: Iterable[Agent]) -> dict[str, Agent]:
    """Build the id → agent arena index. Raises TopologyError on duplicate ids."""
    index: dict[str, Agent] = {}
    for agent in agents:
        if agent.id in index:
            raise TopologyError(f"Duplicate agent id {agent.id!r}")
        index[agent.id] = agent
    return index


def _find_cycle(index: dict[str, Agent]) -> list[str] | None:
    """Return the ids of one parent cycle, or None.

    Each agent's ancestor chain is followed at most len(index) steps. Agents
    already proven to reach a root are skipped on later walks.
    """
    settled: set[str] = set()
    limit = len(index)
    for start in index:
        path: list[str] = []
        on_path: set[str] = set()
        current: str | None = start
        steps = 0
        while current is not None and current in index and current not in settled:
            if current in on_path:
                return path[path.index(current):]
            if steps > limit:
                raise TopologyError(f"Parent walk from {start!r} exceeded {limit} steps")
            path.append(current)
            on_path.add(current)
            current = index[current].parent_id
            steps += 1
        settled.update(path)
    return None


def resolve_topology(agents: Iterable[Agent], workflow_type: WorkflowType) -> Topology:
    """Resolve the agent list into the structure required by `workflow_type`."""
    agents = list(agents)
    index = index_agents(agents)
    order = tuple(a.id for a in agents)

    if workflow_type is not WorkflowType.HIERARCHICAL:
        return Topology(workflow_type=workflow_type, order=order, roots=order)

    cycle = _find_cycle(index)
    if cycle is not None:
        logger.error("Cyclic agent hierarchy detected: %s", cycle)
        raise TopologyCycleError(cycle)

    roots: list[str] = []
    children: dict[str, list[str]] = {}
    for agent in agents:
        parent = agent.parent_id
        if parent is None:
            roots.append(agent.id)
        elif parent not in index:
            logger.warning(
                "Agent %r references unknown parent %r; treating it as a root",
                agent.id, parent,
            )
            roots.append(agent.id)
        else:
            children.setdefault(parent, []).append(agent.id)

    return Topology(
        workflow_type=workflow_type,
        order=order,
        roots=tuple(roots),
        children={k: tuple(v) for k, v in children.items()},
    )


def switch_workflow_type(agents: Iterable[Agent], target: WorkflowType) -> list[Agent]:
    """Prepare `agents` for a switch to `target`.

    Switching to Sequential or Collaborative clears every parent_id. This is
    lossy: switching back to Hierarchical afterwards does not restore the
    previous tree. Switching to Hierarchical leaves parent ids untouched.
    """
    agents = list(agents)
    if target is WorkflowType.HIERARCHICAL:
        return agents
    cleared = [a for a in agents if a.parent_id is not None]
    if cleared:
        logger.info(
            "Switching to %s clears parent references on %d agent(s)",
            target.value, len(cleared),
        )
    return [dataclasses.replace(a, parent_id=None) for a in agents]
