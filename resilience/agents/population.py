"""Population — the live set of agents.

Agents live in an arena list; a dict maps each stable ``agent_id`` to its
slot.  Deaths during a tick only flip the agent's ``alive`` flag, and
``compact`` drops the dead at tick end, so the collection is never
mutated while the scheduler is iterating it.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from numpy.random import Generator

from resilience.agents.agent import Agent


@dataclass
class Population:
    """Arena of agents with deferred removal.

    Attributes:
        agents: Slot list, dead agents included until the next compaction.
    """

    agents: list[Agent] = field(default_factory=list)
    _slots: dict[int, int] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        """Index any agents passed in at construction."""
        self._reindex()

    def __len__(self) -> int:
        return sum(1 for agent in self.agents if agent.alive)

    def __iter__(self) -> Iterator[Agent]:
        return (agent for agent in self.agents if agent.alive)

    def __contains__(self, agent_id: object) -> bool:
        if not isinstance(agent_id, int) or agent_id not in self._slots:
            return False
        return self.agents[self._slots[agent_id]].alive

    def add(self, agent: Agent) -> Agent:
        """Append an agent to the arena.

        Args:
            agent: The agent to add.

        Returns:
            The same agent.

        Raises:
            ValueError: If an agent with the same id is already present.
        """
        if agent.agent_id in self._slots:
            msg = f"duplicate agent id {agent.agent_id}"
            raise ValueError(msg)
        self._slots[agent.agent_id] = len(self.agents)
        self.agents.append(agent)
        return agent

    def get(self, agent_id: int) -> Agent:
        """Return the agent with the given id (alive or awaiting removal).

        Raises:
            KeyError: If no such agent is held.
        """
        return self.agents[self._slots[agent_id]]

    def activation_order(self, rng: Generator) -> list[Agent]:
        """Return the live agents in a freshly shuffled order.

        Args:
            rng: Seeded random generator, consumed once per call.
        """
        live = [slot for slot, agent in enumerate(self.agents) if agent.alive]
        order = rng.permutation(len(live))
        return [self.agents[live[i]] for i in order]

    def mark_dead(self, agent: Agent) -> None:
        """Flag an agent as dead; it is dropped on the next ``compact``."""
        agent.alive = False

    def compact(self) -> list[Agent]:
        """Remove and return agents that have died.

        Returns:
            List of agents that were removed.
        """
        dead = [a for a in self.agents if not a.alive]
        if dead:
            self.agents = [a for a in self.agents if a.alive]
            self._reindex()
        return dead

    def _reindex(self) -> None:
        self._slots = {agent.agent_id: slot for slot, agent in enumerate(self.agents)}
