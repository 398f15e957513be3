"""
Exponential growth with units - a force growing at a fixed relative rate.

Solves du/dt = alpha * u for u0 = 0.5 N, alpha = 1.01 / s over 0..1 s:
- Fixed-step RK4 and adaptive scipy results against u0 * exp(alpha * t)
- A derivative function with the wrong units, rejected at the first step
- Plot of the stripped magnitudes (if matplotlib is installed)
"""

import numpy as np
from unitful_sim import ODEProblem, Integrator, DimensionMismatch, Q_, ureg

# Optional matplotlib import
try:
    import matplotlib
    matplotlib.use('Agg')  # Non-interactive backend
    import matplotlib.pyplot as plt
    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False


def growth(u, alpha, t):
    """du/dt = alpha * u  ->  N/s"""
    return alpha * u


def growth_wrong_units(u, alpha, t):
    """Forgets the 1/s: returns N, not N/s"""
    return 1.01 * u


def main():
    print("=" * 60)
    print("EXPONENTIAL GROWTH WITH UNITS")
    print("=" * 60)

    u0 = Q_(0.5, 'N')
    alpha = 1.01 / ureg('s')
    tspan = (Q_(0.0, 's'), Q_(1.0, 's'))

    print(f"\nInitial state: {u0}")
    print(f"Growth rate:   {alpha}")
    print(f"Time span:     {tspan[0]} -> {tspan[1]}")

    problem = ODEProblem(growth, u0, tspan, alpha)

    print("\n" + "-" * 60)
    print("Fixed-step RK4 (100 steps)")
    print("-" * 60)
    rk4 = Integrator(method='rk4', n_steps=100).solve(problem)
    t_end, u_end = rk4.final
    exact = u0.magnitude * np.exp(1.01 * t_end.magnitude)
    print(f"u(1 s) = {u_end}   (exact {exact:.10f} N)")
    print(f"Derivative evaluations: {rk4.nfev}")

    print("\n" + "-" * 60)
    print("Adaptive scipy RK45")
    print("-" * 60)
    adaptive = Integrator(backend='scipy', rtol=1e-8, atol=1e-10).solve(problem)
    print(f"Solver status: {'SUCCESS' if adaptive.success else 'FAILED'}")
    print(f"Samples: {len(adaptive)}, evaluations: {adaptive.nfev}")
    print(f"u(1 s) = {adaptive.final[1]}")

    print("\n" + "-" * 60)
    print("Derivative with wrong units")
    print("-" * 60)
    try:
        Integrator(n_steps=10).solve(ODEProblem(growth_wrong_units, u0, tspan, alpha))
    except DimensionMismatch as e:
        print(f"✓ Rejected: {e}")

    if HAS_MATPLOTLIB:
        print("\nGenerating plots...")
        t_ms = rk4.strip_t('ms')
        fig, ax = plt.subplots(figsize=(10, 6))
        ax.plot(t_ms, rk4.strip_u('N'), 'b-', linewidth=2, label='RK4')
        ax.plot(adaptive.strip_t('ms'), adaptive.strip_u('N'), 'ro', label='RK45 (scipy)')
        ax.plot(t_ms, u0.magnitude * np.exp(1.01 * rk4.strip_t()), 'g--', label='Exact')
        ax.set_xlabel('Time [ms]')
        ax.set_ylabel('Force [N]')
        ax.set_title('Exponential Growth')
        ax.grid(True, alpha=0.3)
        ax.legend()

        plt.tight_layout()
        plot_filename = 'exponential_growth.png'
        plt.savefig(plot_filename, dpi=150)
        print(f"✓ Plot saved to {plot_filename}")
    else:
        print("\n(Matplotlib not available - skipping plots)")

    print("\n" + "=" * 60)
    print("SIMULATION COMPLETE")
    print("=" * 60)


if __name__ == '__main__':
    main()
