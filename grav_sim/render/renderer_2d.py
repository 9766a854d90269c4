"""2D renderer using matplotlib."""

import time
from typing import List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from grav_sim.physics.simulator import Frame
from grav_sim.render.base import Renderer


class Renderer2D(Renderer):
    """Top-down (x, y) view of the bodies in a frame."""

    def __init__(
        self,
        figsize: Tuple[int, int] = (8, 8),
        dpi: int = 100,
        show_trails: bool = False,
        trail_length: int = 200,
        show_names: bool = True,
        interactive: bool = True,
        target_fps: float = 30.0,
    ):
        """Initialize 2D renderer.

        Args:
            figsize: Figure size (width, height)
            dpi: Dots per inch
            show_trails: Whether to show body trails
            trail_length: Number of previous positions to keep
            show_names: Label each body with its name
            interactive: Open a window; False draws off-screen only
            target_fps: Frames arriving faster than this are skipped
        """
        self.figsize = figsize
        self.dpi = dpi
        self.show_trails = show_trails
        self.trail_length = trail_length
        self.show_names = show_names
        self.interactive = interactive

        self.fig: Optional[Figure] = None
        self.ax = None
        self.trails: List[np.ndarray] = []
        self.frames_drawn = 0

        # Frame rate limiting (interactive only)
        self.frame_time = 1.0 / target_fps if target_fps > 0 else 0.0
        self.last_render_time = 0.0

    def _initialize(self):
        if self.fig is None:
            self.fig, self.ax = plt.subplots(figsize=self.figsize, dpi=self.dpi)
            if self.interactive:
                plt.show(block=False)

    def _is_figure_open(self) -> bool:
        if self.fig is None:
            return False
        if not plt.fignum_exists(self.fig.number):
            self.fig = None
            self.ax = None
            return False
        return True

    def render(self, frame: Frame):
        """Render one frame."""
        if self.frames_drawn and self.interactive and not self._is_figure_open():
            return

        if self.interactive:
            now = time.time()
            if self.frames_drawn and (now - self.last_render_time) < self.frame_time:
                return
            self.last_render_time = now
        self._initialize()

        state = frame.state
        pos_2d = np.asarray(state.positions)[:, :2]

        if self.show_trails:
            self.trails.append(pos_2d.copy())
            if len(self.trails) > self.trail_length:
                self.trails.pop(0)

        self.ax.clear()
        self.ax.set_aspect("equal")
        self.ax.set_xlabel("X")
        self.ax.set_ylabel("Y")
        self.ax.grid(True, alpha=0.3)

        title = f"t = {state.time:.4g}  step {state.step_count}  [{frame.mode.value}]"
        if frame.diverged:
            title += "  DIVERGED"
        elif frame.error is not None:
            title += f"  error: {frame.error}"
        self.ax.set_title(title)

        if self.show_trails and len(self.trails) > 1:
            trail = np.stack(self.trails)
            for i in range(trail.shape[1]):
                self.ax.plot(trail[:, i, 0], trail[:, i, 1], "-", alpha=0.3, linewidth=0.8)

        masses = np.asarray(state.masses)
        sizes = 10 + 60 * np.sqrt(masses / masses.max()) if masses.size else 10.0
        self.ax.scatter(pos_2d[:, 0], pos_2d[:, 1], s=sizes, alpha=0.8, edgecolors="black", linewidths=0.5)
        if self.show_names and state.n_bodies <= 50:
            for name, (x, y) in zip(state.names, pos_2d):
                self.ax.annotate(name, (x, y), textcoords="offset points", xytext=(4, 4), fontsize=8)

        margin = 0.15
        x_min, x_max = pos_2d[:, 0].min(), pos_2d[:, 0].max()
        y_min, y_max = pos_2d[:, 1].min(), pos_2d[:, 1].max()
        max_range = max(x_max - x_min, y_max - y_min, 1e-6) * (1 + margin)
        x_center = (x_max + x_min) / 2
        y_center = (y_max + y_min) / 2
        self.ax.set_xlim(x_center - max_range / 2, x_center + max_range / 2)
        self.ax.set_ylim(y_center - max_range / 2, y_center + max_range / 2)

        self.frames_drawn += 1
        if self.interactive:
            self.fig.canvas.draw_idle()
            plt.pause(0.001)

    def capture_frame(self) -> np.ndarray:
        """Current figure as an ``(H, W, 3)`` uint8 RGB array."""
        if self.fig is None:
            raise RuntimeError("Renderer not initialized. Call render() first.")
        self.fig.canvas.draw()
        return np.asarray(self.fig.canvas.buffer_rgba())[..., :3].copy()

    def clear(self):
        self.trails = []
        if self.ax is not None:
            self.ax.clear()

    def close(self):
        if self.fig is not None:
            plt.close(self.fig)
            self.fig = None
            self.ax = None
