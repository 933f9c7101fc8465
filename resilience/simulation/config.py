"""Config — load simulation parameters from YAML files.

All tunable constants (grid size, energy budget, gather rates, transfer
fractions, per-agent seed stores) live in YAML and are parsed into a
typed dataclass here.  Values are validated eagerly so that a bad
configuration fails at setup instead of producing negative or NaN state
deep inside a run.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from numbers import Real
from pathlib import Path

import yaml

from resilience.agents.protocol import TransferParams


class ConfigError(ValueError):
    """Raised when a configuration value has the wrong type or range."""


# Fields that must be whole numbers; every other field must be real.
_INTEGERS = ("seed", "width", "height", "agent_count", "ticks")

# Fields that must lie in [0, 1].
_FRACTIONS = (
    "static_energy_share",
    "percent_waste_generated",
    "dynamic_vs_static_preference",
    "death_recycle_ratio",
    "emit_fraction",
    "emit_waste_fraction",
    "overflow_waste_fraction",
)

# Fields that must be >= 0.
_NON_NEGATIVE = (
    "seed",
    "agent_count",
    "total_energy",
    "rate_static_gather",
    "rate_dynamic_gather",
    "waste_impact_rate",
    "initial_static_store",
    "initial_dynamic_store",
    "initial_waste_store",
    "movement_cost",
    "ticks",
)

# Fields that must be > 0.
_POSITIVE = ("width", "height", "max_dynamic_store", "needed_energy")


@dataclass
class SimulationConfig:
    """Top-level simulation configuration.

    Attributes:
        seed: RNG seed for deterministic replay.
        width: Number of grid columns.
        height: Number of rows.
        agent_count: Agents requested at start; slots whose cell cannot
            cover the seed stores are skipped.
        total_energy: Energy budget spread uniformly over the grid.
        static_energy_share: Fraction of each cell's budget that is static.
        rate_static_gather: Multiplier on the static harvest target.
        rate_dynamic_gather: Multiplier on the dynamic harvest target.
        percent_waste_generated: Fraction of harvest turned into agent waste.
        dynamic_vs_static_preference: Weight of dynamic vs static harvest.
        waste_impact_rate: Reserved multiplier, stored but not consumed.
        initial_static_store: Static store each agent is seeded with.
        initial_dynamic_store: Dynamic store each agent is seeded with.
        initial_waste_store: Waste store each agent is seeded with.
        death_recycle_ratio: Share of a dead agent's holdings returned as
            dynamic energy; the rest becomes waste.
        max_dynamic_store: Per-agent dynamic store capacity.
        needed_energy: Per-agent harvest target per tick.
        movement_cost: Energy paid for each move.
        emit_fraction: Fraction of the dynamic store emitted each tick.
        emit_waste_fraction: Share of emitted energy landing as waste.
        overflow_waste_fraction: Extra cell waste per unit of overflow.
        ticks: Default run length used by the command line.
    """

    seed: int = 42
    width: int = 20
    height: int = 20
    agent_count: int = 50
    total_energy: float = 6000.0
    static_energy_share: float = 0.8

    # Gathering
    rate_static_gather: float = 1.0
    rate_dynamic_gather: float = 1.0
    percent_waste_generated: float = 0.1
    dynamic_vs_static_preference: float = 0.5
    waste_impact_rate: float = 1.0

    # Agent seed stores and limits
    initial_static_store: float = 8.0
    initial_dynamic_store: float = 3.0
    initial_waste_store: float = 0.0
    max_dynamic_store: float = 50.0
    needed_energy: float = 5.0

    # Transfers
    death_recycle_ratio: float = 0.7
    movement_cost: float = 1.0
    emit_fraction: float = 0.1
    emit_waste_fraction: float = 0.1
    overflow_waste_fraction: float = 0.1

    ticks: int = 1000

    def __post_init__(self) -> None:
        """Reject invalid values as soon as the config is built."""
        self.validate()

    def validate(self) -> None:
        """Check every field's type and valid range.

        Raises:
            ConfigError: On the first mistyped or out-of-range value.
        """
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool):
                msg = f"{f.name} must be a number, got {value!r}"
                raise ConfigError(msg)
            if f.name in _INTEGERS:
                if not isinstance(value, int):
                    msg = f"{f.name} must be an integer, got {value!r}"
                    raise ConfigError(msg)
            elif not isinstance(value, Real):
                msg = f"{f.name} must be a real number, got {value!r}"
                raise ConfigError(msg)

        for name in _POSITIVE:
            value = getattr(self, name)
            if not value > 0:
                msg = f"{name} must be positive, got {value!r}"
                raise ConfigError(msg)
        for name in _NON_NEGATIVE:
            value = getattr(self, name)
            if not value >= 0:
                msg = f"{name} must be non-negative, got {value!r}"
                raise ConfigError(msg)
        for name in _FRACTIONS:
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                msg = f"{name} must be within [0, 1], got {value!r}"
                raise ConfigError(msg)

    def transfer_params(self) -> TransferParams:
        """Return the constants the transfer protocol needs."""
        return TransferParams(
            rate_static_gather=self.rate_static_gather,
            rate_dynamic_gather=self.rate_dynamic_gather,
            percent_waste_generated=self.percent_waste_generated,
            dynamic_vs_static_preference=self.dynamic_vs_static_preference,
            death_recycle_ratio=self.death_recycle_ratio,
            movement_cost=self.movement_cost,
            emit_fraction=self.emit_fraction,
            emit_waste_fraction=self.emit_waste_fraction,
            overflow_waste_fraction=self.overflow_waste_fraction,
            waste_impact_rate=self.waste_impact_rate,
        )

    def to_dict(self) -> dict[str, object]:
        """Return the configuration as a plain mapping."""
        return asdict(self)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a YAML file.

        Keys that are absent fall back to the dataclass defaults.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated, validated SimulationConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
            ConfigError: If the file holds unknown keys or bad values.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            msg = f"{path}: expected a mapping at top level"
            raise ConfigError(msg)

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            msg = f"{path}: unknown config keys {unknown}"
            raise ConfigError(msg)

        return cls(**data)
