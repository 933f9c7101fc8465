"""SimulationEngine — the main tick loop.

Owns all top-level simulation state (one grid, one population, one
seeded RNG) and advances it in the canonical tick order:

1. Shuffle the live agents into a fresh activation order
2. Run move / gather / emit / death check for each agent in turn
3. Apply model-wide hooks (none by default)
4. Drop agents that died this tick
5. Record aggregate metrics

Agents are processed strictly one after another, so later agents see
the cumulative effect of earlier ones on a shared cell.  The shuffle is
the only source of ordering variability and is driven by the seeded RNG.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np
from numpy.random import Generator

from resilience.agents.agent import Agent
from resilience.agents.population import Population
from resilience.agents.protocol import TransferLedger, TransferParams, step_agent
from resilience.simulation import metrics
from resilience.simulation.config import SimulationConfig
from resilience.world.grid import GridEnvironment, ResourceKind

logger = logging.getLogger(__name__)

ModelHook = Callable[["SimulationEngine"], None]


@dataclass
class SimulationEngine:
    """Drives the simulation forward tick by tick.

    Attributes:
        config: Validated simulation configuration.
        grid: The periodic resource grid.
        population: Live agents.
        params: Transfer constants derived from ``config``.
        rng: Master seeded random generator.
        tick: Current tick count.
        history_limit: Keep only this many most recent snapshots; ``None``
            keeps every tick.
        history: One ``TickMetrics`` per tick, starting with the initial state.
            Oldest entries are dropped once ``history_limit`` is reached.
        last_ledger: Transfer account of the most recent tick.
        model_hooks: Model-wide updates run after all agents have acted.
    """

    config: SimulationConfig
    grid: GridEnvironment = field(init=False)
    population: Population = field(init=False)
    params: TransferParams = field(init=False)
    rng: Generator = field(init=False)
    tick: int = 0
    history_limit: int | None = None
    history: deque[metrics.TickMetrics] = field(init=False, default_factory=deque)
    last_ledger: TransferLedger = field(init=False, default_factory=TransferLedger)
    model_hooks: list[ModelHook] = field(init=False, default_factory=list)

    def __post_init__(self) -> None:
        """Build grid, population and RNG from config."""
        self.config.validate()
        if self.history_limit is not None and self.history_limit < 1:
            msg = f"history_limit must be at least 1, got {self.history_limit!r}"
            raise ValueError(msg)
        self.history = deque(maxlen=self.history_limit)
        self.rng = np.random.default_rng(self.config.seed)
        self.params = self.config.transfer_params()
        self.grid = GridEnvironment(width=self.config.width, height=self.config.height)
        self.grid.distribute(
            self.config.total_energy,
            static_share=self.config.static_energy_share,
        )
        self.population = Population()
        self._seed_agents()
        self.history.append(self.snapshot())

    def add_model_hook(self, hook: ModelHook) -> None:
        """Register a model-wide update run once per tick.

        Args:
            hook: Callable receiving this engine.
        """
        self.model_hooks.append(hook)

    def step(self) -> TransferLedger:
        """Advance the simulation by one tick.

        Returns:
            The transfer ledger for this tick.
        """
        ledger = TransferLedger()
        for agent in self.population.activation_order(self.rng):
            if step_agent(agent, self.grid, self.params, self.rng, ledger):
                self.population.mark_dead(agent)

        self.model_step()
        self.population.compact()

        self.tick += 1
        self.last_ledger = ledger
        self.history.append(self.snapshot())
        return ledger

    def run(self, ticks: int) -> None:
        """Run the simulation for a fixed number of ticks.

        Args:
            ticks: Number of ticks to advance.
        """
        for _ in range(ticks):
            self.step()
        logger.info(
            "tick %d: %d agents, total waste %.4f, total energy %.4f",
            self.tick,
            self.live_agent_count(),
            self.total_waste(),
            self.total_energy(),
        )

    def model_step(self) -> None:
        """Apply model-wide updates after every agent has acted."""
        for hook in self.model_hooks:
            hook(self)

    def total_waste(self) -> float:
        """Grid-wide waste."""
        return metrics.total_waste(self.grid)

    def total_energy(self) -> float:
        """Environment energy and waste plus all live agent holdings."""
        return metrics.total_energy(self.grid, self.population)

    def live_agent_count(self) -> int:
        """Number of live agents."""
        return metrics.live_agent_count(self.population)

    def snapshot(self) -> metrics.TickMetrics:
        """Aggregate metrics for the current state."""
        return metrics.snapshot(self.tick, self.grid, self.population)

    def _seed_agents(self) -> None:
        """Place up to ``agent_count`` agents, paying their stores from the grid.

        Each slot draws one random cell.  The dynamic seed store comes from
        the cell's dynamic energy as far as it goes; the rest, plus the static
        seed store, must be covered by the cell's static energy or the slot
        is skipped.
        """
        cfg = self.config
        for agent_id in range(cfg.agent_count):
            x = int(self.rng.integers(0, cfg.width))
            y = int(self.rng.integers(0, cfg.height))

            available_dynamic = min(
                self.grid.energy_at(ResourceKind.DYNAMIC, x, y),
                cfg.initial_dynamic_store,
            )
            dynamic_shortfall = cfg.initial_dynamic_store - available_dynamic
            static_needed = cfg.initial_static_store + dynamic_shortfall

            if self.grid.energy_at(ResourceKind.STATIC, x, y) < static_needed:
                logger.debug(
                    "skipping agent %d: cell (%d, %d) cannot cover %.4f static",
                    agent_id,
                    x,
                    y,
                    static_needed,
                )
                continue

            self.grid.adjust(ResourceKind.DYNAMIC, x, y, -available_dynamic)
            self.grid.adjust(ResourceKind.STATIC, x, y, -static_needed)
            self.population.add(
                Agent(
                    agent_id=agent_id,
                    x=x,
                    y=y,
                    static_store=cfg.initial_static_store,
                    dynamic_store=cfg.initial_dynamic_store,
                    waste_store=cfg.initial_waste_store,
                    max_dynamic_store=cfg.max_dynamic_store,
                    needed_energy=cfg.needed_energy,
                ),
            )

        logger.debug(
            "seeded %d of %d requested agents",
            len(self.population),
            cfg.agent_count,
        )
