"""Shared fixtures for the Resilience test suite."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.random import Generator

from resilience.agents.protocol import TransferLedger, TransferParams
from resilience.simulation.config import SimulationConfig
from resilience.world.grid import GridEnvironment


class FixedChoiceRng:
    """Stand-in generator with a fixed neighbour index and activation order.

    ``integers`` always returns ``index``.  ``permutation`` returns
    ``order`` when one is given, else the identity order.
    """

    def __init__(self, index: int, order: list[int] | None = None) -> None:
        self.index = index
        self.order = order

    def integers(self, high: int) -> int:
        assert 0 <= self.index < high
        return self.index

    def permutation(self, n: int) -> np.ndarray:
        if self.order is None:
            return np.arange(n)
        assert sorted(self.order) == list(range(n))
        return np.asarray(self.order)


@pytest.fixture
def rng() -> Generator:
    """A deterministic random generator for reproducible tests."""
    return np.random.default_rng(seed=12345)


@pytest.fixture
def rich_grid() -> GridEnvironment:
    """A 5x5 grid with 100 static and 100 dynamic energy in every cell."""
    grid = GridEnvironment(width=5, height=5)
    grid.static_energy.fill(100.0)
    grid.dynamic_energy.fill(100.0)
    return grid


@pytest.fixture
def params() -> TransferParams:
    """Transfer constants with the reference defaults."""
    return TransferParams()


@pytest.fixture
def ledger() -> TransferLedger:
    """An empty transfer ledger."""
    return TransferLedger()


@pytest.fixture
def default_config() -> SimulationConfig:
    """Default simulation config (no YAML file needed)."""
    return SimulationConfig()


@pytest.fixture
def busy_config() -> SimulationConfig:
    """A small crowded run that exercises overflow, shortfall and death."""
    return SimulationConfig(
        seed=7,
        width=6,
        height=6,
        agent_count=30,
        total_energy=3600.0,
        initial_static_store=6.0,
        initial_dynamic_store=0.5,
        max_dynamic_store=6.0,
        needed_energy=8.0,
        percent_waste_generated=0.2,
        ticks=60,
    )


@pytest.fixture
def fixed_rng() -> type[FixedChoiceRng]:
    """Factory for generators with a fixed neighbour index and agent order."""
    return FixedChoiceRng
