"""Tests for resilience.agents.protocol - the four transfer phases."""

import pytest

from resilience.agents.agent import Agent
from resilience.agents.protocol import (
    TransferLedger,
    TransferParams,
    check_death,
    emit,
    gather,
    move,
    step_agent,
)
from resilience.world.grid import GridEnvironment, ResourceKind

# Index of the (dx=+1, dy=0) offset in the neighbourhood order
_EAST = 4


def _agent(**kwargs: float) -> Agent:
    defaults: dict = {"agent_id": 0, "x": 2, "y": 2}
    defaults.update(kwargs)
    return Agent(**defaults)


class TestMove:
    """Tests for movement and locomotion cost."""

    def test_moves_to_a_neighbour(
        self,
        rich_grid: GridEnvironment,
        params: TransferParams,
        ledger: TransferLedger,
        rng,
    ) -> None:
        agent = _agent(dynamic_store=10.0)
        move(agent, rich_grid, params, rng, ledger)
        assert agent.position in rich_grid.neighbours(2, 2)

    def test_east_edge_wraps(
        self,
        rich_grid: GridEnvironment,
        params: TransferParams,
        ledger: TransferLedger,
        fixed_rng,
    ) -> None:
        agent = _agent(x=4, y=3, dynamic_store=10.0)
        move(agent, rich_grid, params, fixed_rng(_EAST), ledger)
        assert agent.position == (0, 3)

    def test_cost_paid_from_dynamic(
        self,
        rich_grid: GridEnvironment,
        params: TransferParams,
        ledger: TransferLedger,
        rng,
    ) -> None:
        agent = _agent(static_store=10.0, dynamic_store=3.0)
        move(agent, rich_grid, params, rng, ledger)
        assert agent.dynamic_store == 2.0
        assert agent.static_store == 10.0
        assert ledger.locomotion_dynamic == 1.0
        assert ledger.locomotion_static == 0.0

    def test_shortfall_taken_from_static(
        self,
        rich_grid: GridEnvironment,
        params: TransferParams,
        ledger: TransferLedger,
        rng,
    ) -> None:
        agent = _agent(static_store=10.0, dynamic_store=0.4)
        move(agent, rich_grid, params, rng, ledger)
        assert agent.dynamic_store == 0.0
        assert agent.static_store == pytest.approx(9.4)
        assert ledger.locomotion_dynamic == pytest.approx(0.4)
        assert ledger.locomotion_static == pytest.approx(0.6)

    def test_static_floored_at_zero(
        self,
        rich_grid: GridEnvironment,
        params: TransferParams,
        ledger: TransferLedger,
        rng,
    ) -> None:
        agent = _agent(static_store=0.25, dynamic_store=0.0)
        move(agent, rich_grid, params, rng, ledger)
        assert agent.static_store == 0.0
        # Only what the agent actually had is counted as lost
        assert ledger.locomotion_static == pytest.approx(0.25)

    def test_locomotion_not_returned_to_grid(
        self,
        rich_grid: GridEnvironment,
        params: TransferParams,
        ledger: TransferLedger,
        rng,
    ) -> None:
        before = sum(rich_grid.totals().values())
        move(_agent(static_store=5.0, dynamic_store=0.5), rich_grid, params, rng, ledger)
        assert sum(rich_grid.totals().values()) == before


class TestGather:
    """Tests for harvesting, waste generation and overflow."""

    def test_harvest_split_by_preference_and_rate(
        self,
        rich_grid: GridEnvironment,
        ledger: TransferLedger,
    ) -> None:
        params = TransferParams(
            rate_dynamic_gather=1.0,
            rate_static_gather=0.8,
            dynamic_vs_static_preference=0.5,
            percent_waste_generated=0.1,
        )
        agent = _agent(dynamic_store=20.0, needed_energy=10.0)
        collected = gather(agent, rich_grid, params, ledger)

        # min(5 * 1.0, 100) + min(5 * 0.8, 100)
        assert collected == pytest.approx(9.0)
        assert agent.dynamic_store == pytest.approx(29.0)
        assert agent.waste_store == pytest.approx(0.9)
        assert rich_grid.energy_at(ResourceKind.DYNAMIC, 2, 2) == pytest.approx(95.0)
        assert rich_grid.energy_at(ResourceKind.STATIC, 2, 2) == pytest.approx(96.0)
        assert ledger.agent_waste_created == pytest.approx(0.9)

    def test_harvest_capped_by_cell(
        self,
        params: TransferParams,
        ledger: TransferLedger,
    ) -> None:
        grid = GridEnvironment(width=3, height=3)
        grid.adjust(ResourceKind.DYNAMIC, 1, 1, 1.5)
        grid.adjust(ResourceKind.STATIC, 1, 1, 0.5)
        agent = _agent(x=1, y=1, needed_energy=10.0)
        collected = gather(agent, grid, params, ledger)
        assert collected == pytest.approx(2.0)
        assert grid.energy_at(ResourceKind.DYNAMIC, 1, 1) == 0.0
        assert grid.energy_at(ResourceKind.STATIC, 1, 1) == 0.0

    def test_waste_is_created_not_taken_from_cell(
        self,
        rich_grid: GridEnvironment,
        params: TransferParams,
        ledger: TransferLedger,
    ) -> None:
        agent = _agent(needed_energy=10.0)
        gather(agent, rich_grid, params, ledger)
        # Cell lost exactly the harvest; the waste came on top
        assert 200.0 - rich_grid.energy_at(
            ResourceKind.DYNAMIC, 2, 2
        ) - rich_grid.energy_at(ResourceKind.STATIC, 2, 2) == pytest.approx(10.0)
        assert rich_grid.energy_at(ResourceKind.WASTE, 2, 2) == 0.0
        assert agent.waste_store == pytest.approx(1.0)

    def test_overflow_returned_with_extra_waste(
        self,
        rich_grid: GridEnvironment,
        params: TransferParams,
        ledger: TransferLedger,
    ) -> None:
        agent = _agent(dynamic_store=98.0, max_dynamic_store=100.0, needed_energy=10.0)
        gather(agent, rich_grid, params, ledger)

        # 98 + 10 harvested = 108, capped at 100 -> 8 excess
        assert agent.dynamic_store == 100.0
        assert rich_grid.energy_at(ResourceKind.DYNAMIC, 2, 2) == pytest.approx(103.0)
        assert rich_grid.energy_at(ResourceKind.WASTE, 2, 2) == pytest.approx(0.8)
        assert ledger.overflow_returned == pytest.approx(8.0)
        assert ledger.overflow_waste_created == pytest.approx(0.8)


class TestEmit:
    """Tests for emission back to the cell."""

    def test_emit_splits_output(
        self,
        rich_grid: GridEnvironment,
        params: TransferParams,
        ledger: TransferLedger,
    ) -> None:
        agent = _agent(dynamic_store=50.0)
        output = emit(agent, rich_grid, params, ledger)
        assert output == pytest.approx(5.0)
        assert agent.dynamic_store == pytest.approx(45.0)
        assert rich_grid.energy_at(ResourceKind.DYNAMIC, 2, 2) == pytest.approx(104.5)
        assert rich_grid.energy_at(ResourceKind.WASTE, 2, 2) == pytest.approx(0.5)

    def test_emit_with_empty_store(
        self,
        rich_grid: GridEnvironment,
        params: TransferParams,
        ledger: TransferLedger,
    ) -> None:
        agent = _agent(dynamic_store=0.0)
        assert emit(agent, rich_grid, params, ledger) == 0.0
        assert agent.dynamic_store == 0.0

    def test_emit_never_exceeds_store(
        self,
        rich_grid: GridEnvironment,
        ledger: TransferLedger,
    ) -> None:
        params = TransferParams(emit_fraction=1.0)
        agent = _agent(dynamic_store=3.0)
        assert emit(agent, rich_grid, params, ledger) == 3.0
        assert agent.dynamic_store == 0.0


class TestDeath:
    """Tests for the death check and recycling."""

    def test_survives_while_waste_within_static(
        self,
        rich_grid: GridEnvironment,
        params: TransferParams,
        ledger: TransferLedger,
    ) -> None:
        agent = _agent(static_store=5.0, waste_store=5.0)
        assert not check_death(agent, rich_grid, params, ledger)
        assert agent.static_store == 5.0
        assert ledger.deaths == 0

    def test_death_recycles_holdings(
        self,
        rich_grid: GridEnvironment,
        params: TransferParams,
        ledger: TransferLedger,
    ) -> None:
        agent = _agent(static_store=3.0, dynamic_store=10.0, waste_store=4.0)
        assert check_death(agent, rich_grid, params, ledger)

        # total 17, ratio 0.7
        assert rich_grid.energy_at(ResourceKind.DYNAMIC, 2, 2) == pytest.approx(111.9)
        assert rich_grid.energy_at(ResourceKind.WASTE, 2, 2) == pytest.approx(5.1)
        assert agent.holdings == 0.0
        assert ledger.recycled == pytest.approx(17.0)
        assert ledger.deaths == 1


class TestStepAgent:
    """Tests for the full per-agent sequence."""

    def test_phases_run_in_order(
        self,
        rich_grid: GridEnvironment,
        params: TransferParams,
        ledger: TransferLedger,
        fixed_rng,
    ) -> None:
        agent = _agent(
            static_store=50.0,
            dynamic_store=20.0,
            needed_energy=10.0,
        )
        died = step_agent(agent, rich_grid, params, fixed_rng(_EAST), ledger)

        assert not died
        assert agent.position == (3, 2)
        # 20 - 1 move + 10 gathered = 29, then 10% emitted
        assert agent.dynamic_store == pytest.approx(26.1)
        assert agent.waste_store == pytest.approx(1.0)
        assert rich_grid.energy_at(ResourceKind.DYNAMIC, 3, 2) == pytest.approx(97.61)
        assert rich_grid.energy_at(ResourceKind.STATIC, 3, 2) == pytest.approx(95.0)
        assert rich_grid.energy_at(ResourceKind.WASTE, 3, 2) == pytest.approx(0.29)
        # Origin cell untouched
        assert rich_grid.energy_at(ResourceKind.DYNAMIC, 2, 2) == 100.0

    def test_ledger_balances_single_agent(
        self,
        rich_grid: GridEnvironment,
        ledger: TransferLedger,
        rng,
    ) -> None:
        params = TransferParams(percent_waste_generated=0.5)
        agent = _agent(static_store=1.0, dynamic_store=0.3, max_dynamic_store=4.0)
        before = sum(rich_grid.totals().values()) + agent.holdings

        died = step_agent(agent, rich_grid, params, rng, ledger)

        after = sum(rich_grid.totals().values()) + agent.holdings
        assert died
        assert ledger.locomotion_static > 0
        assert ledger.overflow_waste_created > 0
        assert after - before == pytest.approx(ledger.energy_delta)
