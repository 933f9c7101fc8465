"""Resource-transfer protocol — the four per-agent phases of a tick.

Each live agent runs, in order:

1. **Move** to a random Moore neighbour and pay the locomotion cost,
   dynamic store first, static store for the shortfall.  Paid energy
   leaves the system.
2. **Gather** from its new cell, split between dynamic and static pools
   by the preference ratio.  A fraction of the harvest appears as new
   agent waste; overflow above capacity goes back to the cell, plus a
   further slice of new cell waste.
3. **Emit** a fraction of its dynamic store back to the cell, split
   between dynamic energy and waste.
4. **Death check**: once waste exceeds the static reserve the agent's
   holdings are recycled into the cell and the caller drops the agent.

Every phase records what it did in a ``TransferLedger``.  Emission and
recycling are pure transfers; gather/overflow waste are creations and
locomotion is a sink, so the ledger's ``energy_delta`` is the exact
change in total system energy over the phases it has seen.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from numpy.random import Generator

    from resilience.agents.agent import Agent
    from resilience.world.grid import GridEnvironment

from resilience.world.grid import ResourceKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferParams:
    """Model-wide constants consumed by the transfer phases.

    Attributes:
        rate_static_gather: Multiplier on the static harvest target.
        rate_dynamic_gather: Multiplier on the dynamic harvest target.
        percent_waste_generated: Fraction of each harvest turned into
            agent waste.
        dynamic_vs_static_preference: Share of ``needed_energy`` sought
            from the dynamic pool (the rest from the static pool).
        death_recycle_ratio: Share of a dead agent's holdings returned as
            dynamic energy (the rest becomes waste).
        movement_cost: Energy paid per move.
        emit_fraction: Fraction of the dynamic store emitted per tick.
        emit_waste_fraction: Share of the emitted amount that lands as
            cell waste.
        overflow_waste_fraction: Extra cell waste created per unit of
            capacity overflow.
        waste_impact_rate: Stored for completeness; no phase reads it.
    """

    rate_static_gather: float = 1.0
    rate_dynamic_gather: float = 1.0
    percent_waste_generated: float = 0.1
    dynamic_vs_static_preference: float = 0.5
    death_recycle_ratio: float = 0.7
    movement_cost: float = 1.0
    emit_fraction: float = 0.1
    emit_waste_fraction: float = 0.1
    overflow_waste_fraction: float = 0.1
    waste_impact_rate: float = 1.0


@dataclass
class TransferLedger:
    """Running account of quantities moved, created and destroyed.

    Attributes:
        harvested: Energy taken out of cells by gathering.
        agent_waste_created: New agent waste from gathering.
        overflow_returned: Capacity overflow handed back to cells.
        overflow_waste_created: New cell waste from overflow.
        emitted: Energy emitted back to cells.
        locomotion_dynamic: Movement cost paid from dynamic stores.
        locomotion_static: Movement cost paid from static stores.
        recycled: Holdings returned to cells by dying agents.
        deaths: Number of agents that died.
    """

    harvested: float = 0.0
    agent_waste_created: float = 0.0
    overflow_returned: float = 0.0
    overflow_waste_created: float = 0.0
    emitted: float = 0.0
    locomotion_dynamic: float = 0.0
    locomotion_static: float = 0.0
    recycled: float = 0.0
    deaths: int = 0

    @property
    def waste_created(self) -> float:
        """Waste that did not exist before (not a transfer)."""
        return self.agent_waste_created + self.overflow_waste_created

    @property
    def locomotion_spent(self) -> float:
        """Energy destroyed by movement."""
        return self.locomotion_dynamic + self.locomotion_static

    @property
    def energy_delta(self) -> float:
        """Expected change of total system energy."""
        return self.waste_created - self.locomotion_spent


def move(
    agent: Agent,
    grid: GridEnvironment,
    params: TransferParams,
    rng: Generator,
    ledger: TransferLedger,
) -> None:
    """Relocate the agent to a random neighbour and pay the movement cost.

    The cost comes out of ``dynamic_store`` first.  Any shortfall is taken
    from ``static_store``, floored at zero; whatever cannot be paid is
    simply forgiven.

    Args:
        agent: The moving agent.
        grid: The environment (for neighbourhood lookup).
        params: Model constants.
        rng: Seeded random generator.
        ledger: Account to record the locomotion cost in.
    """
    options = grid.neighbours(agent.x, agent.y)
    if options:
        agent.x, agent.y = options[int(rng.integers(len(options)))]

    cost = params.movement_cost
    if agent.dynamic_store >= cost:
        agent.dynamic_store -= cost
        ledger.locomotion_dynamic += cost
        return

    shortfall = cost - agent.dynamic_store
    ledger.locomotion_dynamic += agent.dynamic_store
    agent.dynamic_store = 0.0
    paid = min(shortfall, agent.static_store)
    agent.static_store = max(agent.static_store - shortfall, 0.0)
    ledger.locomotion_static += paid


def gather(
    agent: Agent,
    grid: GridEnvironment,
    params: TransferParams,
    ledger: TransferLedger,
) -> float:
    """Harvest from the agent's cell into its dynamic store.

    Args:
        agent: The gathering agent.
        grid: The environment to harvest from.
        params: Model constants.
        ledger: Account to record the harvest in.

    Returns:
        Total amount harvested from the cell.
    """
    x, y = agent.x, agent.y
    pref = params.dynamic_vs_static_preference
    dynamic_target = agent.needed_energy * pref * params.rate_dynamic_gather
    static_target = agent.needed_energy * (1.0 - pref) * params.rate_static_gather

    d_gather = min(grid.energy_at(ResourceKind.DYNAMIC, x, y), dynamic_target)
    s_gather = min(grid.energy_at(ResourceKind.STATIC, x, y), static_target)
    grid.adjust(ResourceKind.DYNAMIC, x, y, -d_gather)
    grid.adjust(ResourceKind.STATIC, x, y, -s_gather)

    collected = d_gather + s_gather
    agent.dynamic_store += collected
    new_waste = collected * params.percent_waste_generated
    agent.waste_store += new_waste
    ledger.harvested += collected
    ledger.agent_waste_created += new_waste

    if agent.dynamic_store > agent.max_dynamic_store:
        excess = agent.dynamic_store - agent.max_dynamic_store
        agent.dynamic_store = agent.max_dynamic_store
        overflow_waste = params.overflow_waste_fraction * excess
        grid.adjust(ResourceKind.DYNAMIC, x, y, excess)
        grid.adjust(ResourceKind.WASTE, x, y, overflow_waste)
        ledger.overflow_returned += excess
        ledger.overflow_waste_created += overflow_waste

    return collected


def emit(
    agent: Agent,
    grid: GridEnvironment,
    params: TransferParams,
    ledger: TransferLedger,
) -> float:
    """Release part of the dynamic store back into the agent's cell.

    Returns:
        Amount emitted.
    """
    output = min(agent.dynamic_store * params.emit_fraction, agent.dynamic_store)
    agent.dynamic_store -= output
    waste_part = output * params.emit_waste_fraction
    grid.adjust(ResourceKind.DYNAMIC, agent.x, agent.y, output - waste_part)
    grid.adjust(ResourceKind.WASTE, agent.x, agent.y, waste_part)
    ledger.emitted += output
    return output


def check_death(
    agent: Agent,
    grid: GridEnvironment,
    params: TransferParams,
    ledger: TransferLedger,
) -> bool:
    """Kill the agent if its waste exceeds its static reserve.

    A dying agent's holdings are split by ``death_recycle_ratio`` between
    the cell's dynamic energy and its waste and its stores are zeroed.
    Removing it from the live set is left to the caller.

    Returns:
        True if the agent died.
    """
    if not agent.is_overloaded:
        return False

    total = agent.holdings
    logger.debug(
        "agent %d died at %s: static=%.4f dynamic=%.4f waste=%.4f total=%.4f",
        agent.agent_id,
        agent.position,
        agent.static_store,
        agent.dynamic_store,
        agent.waste_store,
        total,
    )
    to_dynamic = params.death_recycle_ratio * total
    grid.adjust(ResourceKind.DYNAMIC, agent.x, agent.y, to_dynamic)
    grid.adjust(ResourceKind.WASTE, agent.x, agent.y, total - to_dynamic)
    agent.static_store = 0.0
    agent.dynamic_store = 0.0
    agent.waste_store = 0.0
    ledger.recycled += total
    ledger.deaths += 1
    return True


def step_agent(
    agent: Agent,
    grid: GridEnvironment,
    params: TransferParams,
    rng: Generator,
    ledger: TransferLedger,
) -> bool:
    """Run move, gather, emit and the death check for one agent.

    Returns:
        True if the agent died this tick.
    """
    move(agent, grid, params, rng, ledger)
    gather(agent, grid, params, ledger)
    emit(agent, grid, params, ledger)
    return check_death(agent, grid, params, ledger)
