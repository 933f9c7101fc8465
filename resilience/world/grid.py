"""GridEnvironment — the periodic resource grid.

Every cell carries three pools stored as separate NumPy 2D arrays:
depletion-only *static* energy, replenishable *dynamic* energy and
*waste*.  Arrays are indexed ``[y, x]`` and the grid wraps around in
both axes, so any coordinate arithmetic is taken modulo width/height.

The grid is a plain arithmetic container.  Callers (the transfer
protocol) are responsible for never driving a cell below zero.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

import numpy as np
from numpy.typing import NDArray


class ResourceKind(Enum):
    """Distinct per-cell pools, each with its own layer."""

    STATIC = auto()
    DYNAMIC = auto()
    WASTE = auto()


@dataclass
class GridEnvironment:
    """A toroidal width x height grid of energy and waste pools.

    Attributes:
        width: Number of columns in the grid.
        height: Number of rows in the grid.
        static_energy: Depletion-only energy per cell.
        dynamic_energy: Energy replenished by emission and recycling.
        waste: Accumulated waste per cell (never removed).
    """

    width: int
    height: int
    static_energy: NDArray[np.float64] = field(init=False, repr=False)
    dynamic_energy: NDArray[np.float64] = field(init=False, repr=False)
    waste: NDArray[np.float64] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Allocate all three layers, zeroed."""
        shape = (self.height, self.width)
        self.static_energy = np.zeros(shape, dtype=np.float64)
        self.dynamic_energy = np.zeros(shape, dtype=np.float64)
        self.waste = np.zeros(shape, dtype=np.float64)

    def layer(self, kind: ResourceKind) -> NDArray[np.float64]:
        """Return the raw NumPy array for a resource kind.

        Args:
            kind: Which pool.

        Returns:
            2D array of per-cell amounts.
        """
        match kind:
            case ResourceKind.STATIC:
                return self.static_energy
            case ResourceKind.DYNAMIC:
                return self.dynamic_energy
            case ResourceKind.WASTE:
                return self.waste

    def energy_at(self, kind: ResourceKind, x: int, y: int) -> float:
        """Read the amount of ``kind`` held at a cell.

        Args:
            kind: Which pool to read.
            x: Column index.
            y: Row index.

        Returns:
            Current amount.
        """
        return float(self.layer(kind)[y, x])

    def adjust(self, kind: ResourceKind, x: int, y: int, delta: float) -> None:
        """Add ``delta`` (possibly negative) to a cell's pool.

        Args:
            kind: Which pool to change.
            x: Column index.
            y: Row index.
            delta: Signed change.  Must not push the cell below zero.
        """
        self.layer(kind)[y, x] += delta

    def wrap(self, x: int, y: int) -> tuple[int, int]:
        """Map any integer coordinate onto the torus."""
        return x % self.width, y % self.height

    def neighbours(self, x: int, y: int, radius: int = 1) -> list[tuple[int, int]]:
        """Return the Moore neighbourhood of ``(x, y)`` with wrap-around.

        Offsets are visited row by row (``dy`` outer, ``dx`` inner), so the
        result order is deterministic.  The cell itself is excluded, and on
        grids too small for the radius the wrapped duplicates are dropped.

        Args:
            x: Column index.
            y: Row index.
            radius: Chebyshev radius of the neighbourhood.

        Returns:
            List of ``(x, y)`` positions (8 for radius 1 on a 3x3+ grid).
        """
        origin = self.wrap(x, y)
        seen: set[tuple[int, int]] = {origin}
        result: list[tuple[int, int]] = []
        for dy in range(-radius, radius + 1):
            for dx in range(-radius, radius + 1):
                if dx == 0 and dy == 0:
                    continue
                pos = self.wrap(x + dx, y + dy)
                if pos not in seen:
                    seen.add(pos)
                    result.append(pos)
        return result

    def distribute(self, total_energy: float, static_share: float = 0.8) -> None:
        """Spread a fixed energy budget uniformly over every cell.

        Each cell receives ``total_energy / cells``, split into
        ``static_share`` static and the remainder dynamic.  Waste is reset.

        Args:
            total_energy: Energy budget for the whole grid.
            static_share: Fraction of each cell's budget that is static.
        """
        per_cell = total_energy / (self.width * self.height)
        self.static_energy.fill(per_cell * static_share)
        self.dynamic_energy.fill(per_cell * (1.0 - static_share))
        self.waste.fill(0.0)

    def totals(self) -> dict[ResourceKind, float]:
        """Return the grid-wide sum of each pool."""
        return {kind: float(self.layer(kind).sum()) for kind in ResourceKind}
