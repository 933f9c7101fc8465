"""Aggregation queries — read-only reductions over grid and agents.

These never mutate state and are safe to call between ticks.  The
``TickMetrics`` snapshot bundles them so the engine can keep a per-tick
history for plotting or comparison across runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from resilience.world.grid import ResourceKind

if TYPE_CHECKING:
    from resilience.agents.population import Population
    from resilience.world.grid import GridEnvironment


def total_waste(grid: GridEnvironment) -> float:
    """Sum of waste over every cell."""
    return float(grid.waste.sum())


def total_energy(grid: GridEnvironment, population: Population) -> float:
    """Environment pools plus the holdings of every live agent.

    Waste counts toward the total on both the grid and the agent side.
    """
    env = sum(grid.totals().values())
    agents = sum(agent.holdings for agent in population)
    return env + agents


def live_agent_count(population: Population) -> int:
    """Number of agents still alive."""
    return len(population)


@dataclass(frozen=True)
class TickMetrics:
    """Aggregate state recorded at the end of a tick.

    Attributes:
        tick: Tick the snapshot was taken after (0 = initial state).
        total_waste: Grid-wide waste.
        total_energy: Environment plus agent holdings.
        live_agents: Live agent count.
        static_energy: Grid-wide static energy.
        dynamic_energy: Grid-wide dynamic energy.
    """

    tick: int
    total_waste: float
    total_energy: float
    live_agents: int
    static_energy: float
    dynamic_energy: float


def snapshot(tick: int, grid: GridEnvironment, population: Population) -> TickMetrics:
    """Build a ``TickMetrics`` record from the current state."""
    totals = grid.totals()
    return TickMetrics(
        tick=tick,
        total_waste=totals[ResourceKind.WASTE],
        total_energy=total_energy(grid, population),
        live_agents=live_agent_count(population),
        static_energy=totals[ResourceKind.STATIC],
        dynamic_energy=totals[ResourceKind.DYNAMIC],
    )
