"""Tests for the matplotlib renderer (off-screen)."""

import numpy as np

from grav_sim.physics.simulator import Simulator
from grav_sim.render.renderer_2d import Renderer2D


def test_render_frames(binary_state):
    """Frames render and can be captured as RGB images."""
    sim = Simulator(binary_state)
    renderer = Renderer2D(figsize=(4, 4), dpi=50, show_trails=True, interactive=False)
    try:
        renderer.render(sim.latest_frame())
        sim.run_steps(3)
        renderer.render(sim.latest_frame())

        image = renderer.capture_frame()
        assert image.dtype == np.uint8
        assert image.shape == (200, 200, 3)
        assert renderer.frames_drawn == 2
        assert "step 3" in renderer.ax.get_title()
    finally:
        renderer.close()
    assert renderer.fig is None
