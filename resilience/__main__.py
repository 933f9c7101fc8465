"""Entry point for ``python -m resilience``.

Loads the default YAML config, builds a simulation engine and either runs
it headless, logging a summary, or opens a Pygame window to watch the
grid drain and fill with waste.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import pathlib

from resilience.simulation.config import SimulationConfig
from resilience.simulation.engine import SimulationEngine

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)

logger = logging.getLogger("resilience")


def build_parser() -> argparse.ArgumentParser:
    """Return the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="resilience",
        description="Resilience - foraging, waste and mortality on a toroidal grid",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help="Number of ticks to run (default: value from config)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override the RNG seed from the config",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--view",
        action="store_true",
        help="Open the Pygame viewer instead of running headless",
    )
    parser.add_argument(
        "--cell-size",
        type=int,
        default=24,
        help="Pixel size per grid cell (default: 24)",
    )
    parser.add_argument(
        "--fps",
        type=int,
        default=30,
        help="Target frames per second (default: 30)",
    )
    parser.add_argument(
        "--speed",
        type=float,
        default=5.0,
        help="Simulation ticks per second in the viewer (default: 5)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI args, create engine, run headless or launch renderer."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = SimulationConfig.from_yaml(args.config)
    if args.seed is not None:
        config = dataclasses.replace(config, seed=args.seed)
    logger.debug("config: %s", config.to_dict())

    engine = SimulationEngine(config=config)
    logger.info(
        "seeded %d of %d agents on a %dx%d grid",
        engine.live_agent_count(),
        config.agent_count,
        config.width,
        config.height,
    )

    if args.view:
        from resilience.ui.pygame_client import PygameRenderer

        renderer = PygameRenderer(
            engine=engine,
            cell_size=args.cell_size,
            ticks_per_second=args.speed,
        )
        renderer.run(fps=args.fps)
        return

    ticks = config.ticks if args.ticks is None else args.ticks
    engine.run(ticks)

    final = engine.snapshot()
    logger.info("after %d steps:", ticks)
    logger.info("  total waste in environment = %.4f", final.total_waste)
    logger.info("  number of agents left      = %d", final.live_agents)
    logger.info("  total static energy        = %.4f", final.static_energy)
    logger.info("  total dynamic energy       = %.4f", final.dynamic_energy)


if __name__ == "__main__":
    main()
