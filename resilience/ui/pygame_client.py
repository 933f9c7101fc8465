"""Pygame 2D visualization for the Resilience simulation.

Renders one grid layer (static energy, dynamic energy or waste) as a heat
map with agents drawn on top.  The simulation steps at a configurable
tick rate while the display refreshes at the Pygame frame rate.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

import numpy as np
import pygame

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from resilience.simulation.engine import SimulationEngine

from resilience.world.grid import ResourceKind

# Colour palette
_BG = (15, 15, 20)
_AGENT = (240, 240, 240)
_TEXT = (200, 200, 200)

# Heat map ramps per layer (low -> high)
_RAMPS: dict[ResourceKind, tuple[NDArray[np.float64], NDArray[np.float64]]] = {
    ResourceKind.STATIC: (
        np.array([20, 20, 40], dtype=np.float64),
        np.array([90, 140, 255], dtype=np.float64),
    ),
    ResourceKind.DYNAMIC: (
        np.array([20, 40, 20], dtype=np.float64),
        np.array([80, 230, 60], dtype=np.float64),
    ),
    ResourceKind.WASTE: (
        np.array([30, 20, 15], dtype=np.float64),
        np.array([200, 120, 40], dtype=np.float64),
    ),
}

_LAYER_KEYS = {
    pygame.K_1: ResourceKind.STATIC,
    pygame.K_2: ResourceKind.DYNAMIC,
    pygame.K_3: ResourceKind.WASTE,
}


class PygameRenderer:
    """Renders a SimulationEngine state into a Pygame window.

    Attributes:
        engine: The simulation engine to visualise.
        cell_size: Pixel size of each grid cell.
        layer: Which grid pool is drawn as the heat map.
        screen: The Pygame display surface.
    """

    # Speed presets: ticks per second
    _SPEED_STEPS: ClassVar[list[float]] = [
        0.5,
        1.0,
        2.0,
        5.0,
        10.0,
        30.0,
        60.0,
        120.0,
    ]

    def __init__(
        self,
        engine: SimulationEngine,
        cell_size: int = 24,
        ticks_per_second: float = 5.0,
    ) -> None:
        """Initialise the renderer.

        Args:
            engine: The simulation engine to render.
            cell_size: Pixel width/height per grid cell.
            ticks_per_second: Simulation ticks per real-time second.
        """
        self.engine = engine
        self.cell_size = cell_size
        self.ticks_per_second = ticks_per_second
        self.layer = ResourceKind.DYNAMIC
        self._speed_index = self._nearest_speed(ticks_per_second)
        self._tick_accumulator = 0.0

        w = engine.grid.width * cell_size
        h = engine.grid.height * cell_size
        self._panel_width = 260
        self._win_w = w + self._panel_width
        self._win_h = max(h, 320)

        pygame.init()
        self.screen = pygame.display.set_mode((self._win_w, self._win_h))
        pygame.display.set_caption("Resilience")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("monospace", 14)
        self.running = True
        self.paused = False

    def _nearest_speed(self, tps: float) -> int:
        """Return the index of the closest speed preset."""
        diffs = [abs(s - tps) for s in self._SPEED_STEPS]
        return diffs.index(min(diffs))

    def run(self, fps: int = 30) -> None:
        """Main loop: handle events, step sim, render.

        Args:
            fps: Target frames per second.
        """
        while self.running:
            dt = self.clock.tick(fps) / 1000.0
            self._handle_events()
            if not self.paused:
                self._tick_accumulator += self.ticks_per_second * dt
                steps = int(self._tick_accumulator)
                self._tick_accumulator -= steps
                for _ in range(steps):
                    self.engine.step()
            self._draw()

        pygame.quit()

    def _handle_events(self) -> None:
        """Process Pygame input events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key == pygame.K_SPACE:
                    self.paused = not self.paused
                elif event.key in _LAYER_KEYS:
                    self.layer = _LAYER_KEYS[event.key]
                elif event.key in (pygame.K_PLUS, pygame.K_EQUALS):
                    self._speed_index = min(
                        len(self._SPEED_STEPS) - 1,
                        self._speed_index + 1,
                    )
                    self.ticks_per_second = self._SPEED_STEPS[self._speed_index]
                elif event.key == pygame.K_MINUS:
                    self._speed_index = max(0, self._speed_index - 1)
                    self.ticks_per_second = self._SPEED_STEPS[self._speed_index]

    def _draw(self) -> None:
        """Render one frame."""
        self.screen.fill(_BG)
        self._draw_layer()
        self._draw_agents()
        self._draw_info_panel()
        pygame.display.flip()

    def _draw_layer(self) -> None:
        """Draw the selected pool as a heat map scaled to its maximum."""
        cs = self.cell_size
        values = self.engine.grid.layer(self.layer)
        max_val = values.max()
        lo, hi = _RAMPS[self.layer]
        for y in range(values.shape[0]):
            for x in range(values.shape[1]):
                t = values[y, x] / max_val if max_val > 0 else 0.0
                colour = lo + t * (hi - lo)
                pygame.draw.rect(
                    self.screen,
                    colour.astype(int).tolist(),
                    (x * cs, y * cs, cs, cs),
                )

    def _draw_agents(self) -> None:
        """Draw each live agent as a dot sized by its dynamic store."""
        cs = self.cell_size
        for agent in self.engine.population:
            fill = agent.dynamic_store / agent.max_dynamic_store
            radius = max(2, int(cs / 3 * (0.5 + 0.5 * fill)))
            cx = agent.x * cs + cs // 2
            cy = agent.y * cs + cs // 2
            pygame.draw.circle(self.screen, _AGENT, (cx, cy), radius)

    def _draw_info_panel(self) -> None:
        """Draw a stats panel on the right side of the window."""
        panel_x = self.engine.grid.width * self.cell_size + 10
        y = 10
        stats = self.engine.snapshot()
        ledger = self.engine.last_ledger

        lines = [
            f"Tick: {self.engine.tick}",
            f"Speed: {self.ticks_per_second:.1f} t/s",
            f"{'PAUSED' if self.paused else 'RUNNING'}",
            f"Layer: {self.layer.name.lower()}",
            "",
            "--- Totals ---",
            f"Agents: {stats.live_agents}",
            f"Energy: {stats.total_energy:.1f}",
            f"Static: {stats.static_energy:.1f}",
            f"Dynamic: {stats.dynamic_energy:.1f}",
            f"Waste: {stats.total_waste:.1f}",
            "",
            "--- Last tick ---",
            f"Harvested: {ledger.harvested:.2f}",
            f"Waste made: {ledger.waste_created:.2f}",
            f"Locomotion: {ledger.locomotion_spent:.2f}",
            f"Deaths: {ledger.deaths}",
            "",
            "--- Controls ---",
            "1/2/3: static/dynamic/waste",
            "SPACE: pause",
            "+/-: speed",
            "ESC: quit",
        ]

        for line in lines:
            surf = self.font.render(line, True, _TEXT)
            self.screen.blit(surf, (panel_x, y))
            y += 18
