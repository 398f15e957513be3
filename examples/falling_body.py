"""
Falling body with linear drag - a vector-valued state.

Velocity (vx, vy) of a thrown ball:
    dv/dt = g - (c / m) * v

The state is a single Quantity with an array magnitude, so both components
share the dimension m/s. Integration stops early when the ball starts
falling (vy < 0).
"""

import numpy as np
from unitful_sim import ODEProblem, Integrator, Q_, ureg
from unitful_sim.core.dimension import VELOCITY, MASS, TIME
from unitful_sim.core.quantity import Quantity

# Optional matplotlib import
try:
    import matplotlib
    matplotlib.use('Agg')  # Non-interactive backend
    import matplotlib.pyplot as plt
    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False


def drag(v, p, t):
    g, c, m = p
    return g - (c / m) * v


def main():
    print("=" * 60)
    print("FALLING BODY WITH LINEAR DRAG")
    print("=" * 60)

    g = Quantity([0.0, -9.81], VELOCITY / TIME)
    c = Quantity(0.05, MASS / TIME)     # drag coefficient [kg/s]
    m = Q_(145, 'g')                    # baseball
    v0 = Quantity([30.0, 20.0], VELOCITY)

    print(f"\nMass: {ureg.convert(m, 'kg')} kg")
    print(f"Drag coefficient: {c}")
    print(f"Initial velocity: {v0}")

    problem = ODEProblem(drag, v0, (Q_(0, 's'), Q_(10, 's')), (g, c, m))

    def rising_stopped(v, t):
        return v[1] < Quantity(0.0, VELOCITY)

    result = Integrator(method='rk4', dt=Q_(10, 'ms'),
                        stop_condition=rising_stopped).solve(problem)

    t_apex, v_apex = result.final
    print(f"\n{result.message} after {len(result) - 1} steps")
    print(f"Apex reached at t = {ureg.convert(t_apex, 'ms'):.0f} ms")
    speed = Quantity(np.linalg.norm(v_apex.magnitude), VELOCITY)
    km_per_h = ureg('km') / ureg('h')
    print(f"Speed at apex: {speed.magnitude:.2f} m/s ({float(speed / km_per_h):.1f} km/h)")

    if HAS_MATPLOTLIB:
        print("\nGenerating plots...")
        velocities = result.strip_u()
        fig, ax = plt.subplots(figsize=(10, 6))
        ax.plot(result.strip_t(), velocities[:, 0], 'b-', linewidth=2, label='vx')
        ax.plot(result.strip_t(), velocities[:, 1], 'r-', linewidth=2, label='vy')
        ax.set_xlabel('Time [s]')
        ax.set_ylabel('Velocity [m/s]')
        ax.set_title('Ball Velocity Until Apex')
        ax.grid(True, alpha=0.3)
        ax.legend()

        plt.tight_layout()
        plot_filename = 'falling_body.png'
        plt.savefig(plot_filename, dpi=150)
        print(f"✓ Plot saved to {plot_filename}")
    else:
        print("\n(Matplotlib not available - skipping plots)")

    print("\n" + "=" * 60)
    print("SIMULATION COMPLETE")
    print("=" * 60)


if __name__ == '__main__':
    main()
