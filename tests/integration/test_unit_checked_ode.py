"""Integration tests: unit-checked ODE runs end to end."""

import pytest
import numpy as np
from unitful_sim import ODEProblem, Integrator, DimensionMismatch, Q_, ureg
from unitful_sim.core.dimension import FORCE, TIME, VELOCITY, MASS
from unitful_sim.core.quantity import Quantity


def growth(u, alpha, t):
    """du/dt = alpha * u"""
    return alpha * u


class TestForceScenarios:
    """u0 = 1.5 N over 0..1 s"""

    @pytest.fixture
    def tspan(self):
        return (Q_(0, 's'), Q_(1, 's'))

    def test_force_rate_integrates(self, tspan):
        """A derivative in N/s succeeds and keeps the state in N"""
        problem = ODEProblem(lambda u, p, t: Q_(0.5, 'N') / ureg('s'), Q_(1.5, 'N'), tspan)
        sol = Integrator(n_steps=20).solve(problem)

        times = sol.strip_t()
        assert times[0] == 0.0
        assert times[-1] == 1.0
        assert np.all(np.diff(times) > 0)
        assert all(u.dimension == FORCE for u in sol.u)
        assert sol.final[1].magnitude == pytest.approx(2.0)

    def test_force_instead_of_rate_rejected(self, tspan):
        """A derivative in N fails at step 0 naming N and N*s"""
        problem = ODEProblem(lambda u, p, t: Q_(0.5, 'N'), Q_(1.5, 'N'), tspan)
        with pytest.raises(DimensionMismatch) as excinfo:
            Integrator(n_steps=20).solve(problem)
        assert excinfo.value.step == 0
        assert excinfo.value.left == FORCE
        assert excinfo.value.right == FORCE * TIME

    @pytest.mark.parametrize('method', ['euler', 'midpoint', 'rk4'])
    def test_every_fixed_method_rejects_wrong_units(self, tspan, method):
        problem = ODEProblem(lambda u, p, t: u, Q_(1.5, 'N'), tspan)
        with pytest.raises(DimensionMismatch) as excinfo:
            Integrator(method=method, n_steps=5).solve(problem)
        assert excinfo.value.step == 0

    def test_scipy_rejects_wrong_units_before_solving(self, tspan):
        calls = []

        def f(u, p, t):
            calls.append(t)
            return u

        problem = ODEProblem(f, Q_(1.5, 'N'), tspan)
        with pytest.raises(DimensionMismatch) as excinfo:
            Integrator(backend='scipy').solve(problem)
        assert excinfo.value.step == 0
        assert len(calls) == 1


class TestExponentialGrowth:
    """du/dt = 1.01 u / s against the analytic solution"""

    @pytest.fixture
    def problem(self):
        return ODEProblem(growth, Q_(0.5, 'N'), (Q_(0, 's'), Q_(1, 's')), 1.01 / ureg('s'))

    def exact(self, t):
        return 0.5 * np.exp(1.01 * t)

    def test_rk4_accuracy(self, problem):
        sol = Integrator(method='rk4', n_steps=100).solve(problem)
        np.testing.assert_allclose(sol.strip_u(), self.exact(sol.strip_t()), rtol=1e-9)

    def test_euler_converges_first_order(self, problem):
        """Halving the step roughly halves the Euler error"""
        errors = []
        for n in (50, 100):
            t_end, u_end = Integrator(n_steps=n).solve(problem).final
            errors.append(abs(u_end.magnitude - self.exact(t_end.magnitude)))
        assert errors[1] < errors[0]
        assert errors[0] / errors[1] == pytest.approx(2.0, rel=0.05)

    def test_midpoint_beats_euler(self, problem):
        exact = self.exact(1.0)
        euler = Integrator(n_steps=20).solve(problem).final[1].magnitude
        midpoint = Integrator(method='midpoint', n_steps=20).solve(problem).final[1].magnitude
        assert abs(midpoint - exact) < abs(euler - exact)

    def test_scipy_backend(self, problem):
        sol = Integrator(backend='scipy', rtol=1e-10, atol=1e-12).solve(problem)
        assert sol.success
        assert sol.backend == 'scipy'
        assert all(u.dimension == FORCE for u in sol.u)
        t_end, u_end = sol.final
        assert t_end == Q_(1, 's')
        assert u_end.magnitude == pytest.approx(self.exact(1.0), rel=1e-8)

    def test_scipy_t_eval_in_units(self, problem):
        t_eval = Q_(np.linspace(0, 1000, 11), 'ms')
        sol = Integrator(backend='scipy', t_eval=t_eval, rtol=1e-9).solve(problem)
        assert len(sol) == 11
        np.testing.assert_allclose(sol.strip_t('ms'), np.linspace(0, 1000, 11))
        np.testing.assert_allclose(sol.strip_u('N'), self.exact(sol.strip_t()), rtol=1e-6)

    def test_scipy_time_option_must_be_time(self, problem):
        with pytest.raises(DimensionMismatch):
            Integrator(backend='scipy', max_step=Q_(1, 'm')).solve(problem)

    def test_scipy_mismatch_later_reports_evaluation(self):
        """A rate that goes wrong mid-run is caught inside the scipy loop"""
        def f(u, p, t):
            if t > Q_(0.5, 's'):
                return u
            return u / ureg('s')

        problem = ODEProblem(f, Q_(1.0, 'N'), (Q_(0, 's'), Q_(1, 's')))
        with pytest.raises(DimensionMismatch) as excinfo:
            Integrator(backend='scipy').solve(problem)
        assert excinfo.value.step > 0


class TestVectorState:
    """Velocity vector with linear drag"""

    @pytest.fixture
    def problem(self):
        g = Quantity([0.0, -9.81], VELOCITY / TIME)
        k = Quantity(0.5, MASS / TIME) / Q_(1, 'kg')

        def drag(v, p, t):
            g, k = p
            return g - k * v

        v0 = Quantity([30.0, 20.0], VELOCITY)
        return ODEProblem(drag, v0, (Q_(0, 's'), Q_(2, 's')), (g, k))

    def exact(self, t):
        k = 0.5
        v0 = np.array([30.0, 20.0])
        v_inf = np.array([0.0, -9.81 / k])
        return v_inf + (v0 - v_inf) * np.exp(-k * t)

    def test_rk4_vector(self, problem):
        sol = Integrator(method='rk4', dt=Q_(10, 'ms')).solve(problem)
        assert sol.final[1].shape == (2,)
        np.testing.assert_allclose(sol.final[1].magnitude, self.exact(2.0), rtol=1e-8)

    def test_scipy_vector(self, problem):
        sol = Integrator(backend='scipy', rtol=1e-9, atol=1e-11).solve(problem)
        assert sol.strip_u().shape == (len(sol), 2)
        np.testing.assert_allclose(sol.final[1].magnitude, self.exact(2.0), rtol=1e-7)

    def test_stop_at_apex(self, problem):
        """Stop once the vertical velocity turns negative"""
        sol = Integrator(method='rk4', dt=Q_(10, 'ms'),
                         stop_condition=lambda v, t: v[1] < Quantity(0.0, VELOCITY)).solve(problem)
        assert sol.message == 'Terminated by stop condition'
        assert sol.final[1][1] < Quantity(0.0, VELOCITY)
        assert sol.u[-2][1] >= Quantity(0.0, VELOCITY)
        assert sol.final[0] < Q_(2, 's')
