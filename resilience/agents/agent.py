"""Agent — a single forager carrying energy and waste stores.

An agent occupies exactly one grid cell.  Its *static* store only ever
shrinks, its *dynamic* store is the working reserve capped at
``max_dynamic_store``, and its *waste* store only grows.  The agent dies
once waste exceeds the static reserve.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Agent:
    """A single foraging agent.

    Attributes:
        agent_id: Stable unique identifier.
        x: Current column position in the grid.
        y: Current row position in the grid.
        static_store: Depletion-only reserve; death threshold for waste.
        dynamic_store: Working reserve fed by gathering.
        waste_store: Accumulated personal waste.
        max_dynamic_store: Capacity of ``dynamic_store``.
        needed_energy: Target harvest per tick.
        alive: False once the agent has died and recycled its holdings.
    """

    agent_id: int
    x: int
    y: int
    static_store: float = 50.0
    dynamic_store: float = 0.0
    waste_store: float = 0.0
    max_dynamic_store: float = 100.0
    needed_energy: float = 5.0
    alive: bool = True

    @property
    def position(self) -> tuple[int, int]:
        """Return the agent's cell as ``(x, y)``."""
        return self.x, self.y

    @property
    def holdings(self) -> float:
        """Total of all three stores."""
        return self.static_store + self.dynamic_store + self.waste_store

    @property
    def is_overloaded(self) -> bool:
        """Return True if waste has overtaken the static reserve."""
        return self.waste_store > self.static_store
