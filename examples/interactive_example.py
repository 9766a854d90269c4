"""Drive the background stepping loop and watch it live."""

import time

from grav_sim import RunMode, Simulator, build_state
from grav_sim.presets import FigureEight
from grav_sim.render import Renderer2D


def main():
    """Run the figure-eight, pausing and single-stepping along the way."""
    sim = Simulator(build_state(FigureEight(dt=0.002).generate()), step_interval=0.001)
    renderer = Renderer2D(show_trails=True)

    stepped = False
    sim.start()
    try:
        started = time.monotonic()
        while time.monotonic() - started < 10.0:
            frame = sim.latest_frame()
            renderer.render(frame)
            if not stepped and frame.state.step_count > 1500 and frame.mode is RunMode.RUNNING:
                sim.pause()
                for _ in range(50):
                    sim.step()
                sim.resume()
                stepped = True
            time.sleep(0.01)
    finally:
        sim.quit()
        sim.join(timeout=5.0)
        renderer.close()
    print(f"Stopped at step {sim.step_count}, t={sim.time:.3f}")


if __name__ == "__main__":
    main()
