"""Basic example of using the gravity simulator."""

from grav_sim import Simulator, build_state
from grav_sim.presets import SolarSystem


def main():
    """Run the solar system for one year."""
    state = build_state(SolarSystem(dt=0.001).generate())
    sim = Simulator(state)

    print("Running simulation...")
    print(f"Initial energy: {sim.get_energy():.10f}")

    for _ in range(10):
        sim.run_steps(100)
        print(f"Step {sim.step_count}: Time={sim.time:.2f} yr, Energy={sim.get_energy():.10f}")

    earth = sim.snapshot().bodies[3]
    print(f"Earth after one year: {earth.position}")
    print("Simulation complete!")


if __name__ == "__main__":
    main()
