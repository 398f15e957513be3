"""
Unit-aware ODE integration.

Solves du/dt = f(u, p, t) where the state u and the time t are Quantities.
The derivative function must return a rate: a Quantity whose dimension is
u.dimension / TIME. Every state update is formed as

    u_next = u + k * h

where k is a rate and h a time step. The multiplication always succeeds; the
addition enforces that k * h has the state's dimension. A derivative function
with the wrong units therefore fails on the very first step, with the step
index and both dimensions in the error, instead of producing a wrong number.

Backends:
    'fixed': explicit fixed-step schemes (euler, midpoint, rk4) run entirely
             in Quantity arithmetic
    'scipy': adaptive scipy.integrate.solve_ivp on stripped SI magnitudes,
             re-checking the rate dimension at every evaluation
"""

import math
import warnings
from dataclasses import dataclass, field
from numbers import Integral
from typing import Callable, List, Optional, Tuple

import numpy as np
from scipy.integrate import solve_ivp

from unitful_sim.core.dimension import Dimension, TIME
from unitful_sim.core.errors import DimensionMismatch
from unitful_sim.core.quantity import Quantity


BACKENDS = ('fixed', 'scipy')

# Relative slack when deciding whether dt divides the time span
_STEP_TOL = 1e-9


# =============================================================================
# Fixed-step schemes
# =============================================================================


def _euler_step(f, u, p, t, h):
    k1 = f(u, p, t)
    return u + k1 * h


def _midpoint_step(f, u, p, t, h):
    half = h / 2
    k1 = f(u, p, t)
    k2 = f(u + k1 * half, p, t + half)
    return u + k2 * h


def _rk4_step(f, u, p, t, h):
    half = h / 2
    k1 = f(u, p, t)
    k2 = f(u + k1 * half, p, t + half)
    k3 = f(u + k2 * half, p, t + half)
    k4 = f(u + k3 * h, p, t + h)
    return u + (k1 * h + 2 * (k2 * h) + 2 * (k3 * h) + k4 * h) / 6


FIXED_STEP_METHODS = {
    'euler': _euler_step,
    'midpoint': _midpoint_step,
    'rk4': _rk4_step,
}

SCIPY_METHODS = ('RK45', 'RK23', 'DOP853', 'Radau', 'BDF', 'LSODA')


# =============================================================================
# Problem and solution records
# =============================================================================


def _require_time(value, what: str) -> Quantity:
    """Return value as a scalar TIME quantity or raise DimensionMismatch"""
    if not isinstance(value, Quantity):
        value = Quantity(value)
    if value.dimension != TIME:
        raise DimensionMismatch(TIME, value.dimension, f"use as {what}")
    if value.is_array:
        raise ValueError(f"{what.capitalize()} must be a scalar time, got shape {value.shape}")
    return value


def _check_rate_shape(du, shape: tuple, step: int) -> None:
    """Rate magnitudes must broadcast onto the state without reshaping it"""
    rate_shape = np.shape(du.magnitude if isinstance(du, Quantity) else du)
    try:
        fits = np.broadcast_shapes(rate_shape, shape) == shape
    except ValueError:
        fits = False
    if not fits:
        raise ValueError(
            f"Step {step}: rate of shape {rate_shape} does not fit state of shape {shape}"
        )


@dataclass(frozen=True)
class ODEProblem:
    """
    Initial value problem du/dt = f(u, p, t) on tspan.

    Attributes:
        f: Derivative function f(u, p, t) -> rate (dimension u / TIME)
        u0: Initial state (Quantity, scalar or array magnitude)
        tspan: (t0, t1) as TIME quantities; t1 < t0 integrates backwards
        p: Parameters passed through to f untouched

    Raises:
        TypeError: If u0 is not a Quantity or f is not callable
        DimensionMismatch: If either end of tspan is not a time
        ValueError: If the span is empty
    """
    f: Callable
    u0: Quantity
    tspan: Tuple[Quantity, Quantity]
    p: object = None

    def __post_init__(self):
        if not callable(self.f):
            raise TypeError(f"Derivative function must be callable, got {type(self.f).__name__}")
        if not isinstance(self.u0, Quantity):
            raise TypeError(f"Initial state must be a Quantity, got {type(self.u0).__name__}")
        if len(self.tspan) != 2:
            raise ValueError(f"tspan must be (t0, t1), got {len(self.tspan)} values")

        t0 = _require_time(self.tspan[0], 'start time')
        t1 = _require_time(self.tspan[1], 'end time')
        if t0 == t1:
            raise ValueError(f"Empty time span: t0 == t1 == {t0}")
        object.__setattr__(self, 'tspan', (t0, t1))

    @property
    def state_dimension(self) -> Dimension:
        return self.u0.dimension

    @property
    def rate_dimension(self) -> Dimension:
        """Dimension f must return"""
        return self.u0.dimension / TIME


@dataclass
class Solution:
    """
    Ordered (time, state) samples from one integration run.

    Attributes:
        t: Sample times (TIME quantities), monotonic in the direction of tspan
        u: States at those times, all with the initial state's dimension
        success: False only if the adaptive backend reported failure
        message: Solver status message
        method: Scheme used ('euler', 'rk4', 'RK45', ...)
        backend: 'fixed' or 'scipy'
        nfev: Number of derivative evaluations
    """
    t: List[Quantity] = field(default_factory=list)
    u: List[Quantity] = field(default_factory=list)
    success: bool = True
    message: str = ''
    method: str = ''
    backend: str = ''
    nfev: int = 0

    def append(self, t: Quantity, u: Quantity) -> None:
        self.t.append(t)
        self.u.append(u)

    @property
    def final(self) -> Tuple[Quantity, Quantity]:
        return self.t[-1], self.u[-1]

    def strip_t(self, unit: Optional[str] = None, registry=None) -> np.ndarray:
        """Sample times as a bare array (SI seconds, or `unit`) for plotting"""
        return self._strip(self.t, unit, registry)

    def strip_u(self, unit: Optional[str] = None, registry=None) -> np.ndarray:
        """
        States as a bare array for plotting.

        Shape is (n_samples,) for scalar states and (n_samples, *state_shape)
        for array states.
        """
        return self._strip(self.u, unit, registry)

    @staticmethod
    def _strip(values, unit, registry) -> np.ndarray:
        if unit is None:
            return np.array([q.magnitude for q in values])
        if registry is None:
            from unitful_sim.units import ureg
            registry = ureg
        return np.array([registry.convert(q, unit) for q in values])

    def __len__(self) -> int:
        return len(self.t)

    def __iter__(self):
        return iter(zip(self.t, self.u))

    def __getitem__(self, index) -> Tuple[Quantity, Quantity]:
        return self.t[index], self.u[index]

    def __repr__(self) -> str:
        status = 'success' if self.success else 'failed'
        return (f"Solution({self.backend}/{self.method}, {len(self)} samples, "
                f"{status}, nfev={self.nfev})")


# =============================================================================
# Integrator
# =============================================================================


class Integrator:
    """
    Unit-checked ODE driver.

    Usage:
        prob = ODEProblem(f, Q_(1.5, 'N'), (Q_(0, 's'), Q_(1, 's')))
        sol = Integrator(method='rk4', n_steps=100).solve(prob)
        sol = Integrator(backend='scipy', rtol=1e-8).solve(prob)

    Args:
        method: Scheme name. Fixed backend: 'euler' (default), 'midpoint', 'rk4'.
                Scipy backend: any solve_ivp method, default 'RK45'.
        backend: 'fixed' (default) or 'scipy'
        n_steps: Number of equal steps (fixed backend; exclusive with dt)
        dt: Step size as a TIME quantity (fixed backend; exclusive with n_steps).
            If it does not divide the span, the last step is shortened.
        stop_condition: Optional callable(u, t) -> bool checked after each
            fixed step; when true the run ends after that step.
        **solver_options: Passed to scipy.integrate.solve_ivp (scipy backend).
            rtol, atol: Tolerances (defaults 1e-6, 1e-8)
            max_step, first_step: TIME quantities
            t_eval: TIME quantity array of output times

    Raises:
        ValueError: For unknown backends/methods or invalid step settings
    """

    def __init__(self,
                 method: Optional[str] = None,
                 backend: str = 'fixed',
                 n_steps: Optional[int] = None,
                 dt: Optional[Quantity] = None,
                 stop_condition: Optional[Callable] = None,
                 **solver_options):
        if backend == 'fixed':
            method = method or 'euler'
            if method not in FIXED_STEP_METHODS:
                raise ValueError(
                    f"Unknown fixed-step method '{method}'. "
                    f"Choose from {', '.join(FIXED_STEP_METHODS)}"
                )
            if (n_steps is None) == (dt is None):
                raise ValueError("Fixed-step backend needs exactly one of n_steps or dt")
            if n_steps is not None and (isinstance(n_steps, bool)
                                        or not isinstance(n_steps, Integral) or n_steps < 1):
                raise ValueError(f"n_steps must be a positive integer, got {n_steps!r}")
            if dt is not None:
                dt = _require_time(dt, 'step size')
                if dt.magnitude == 0:
                    raise ValueError("Step size dt must be non-zero")
            if solver_options:
                raise ValueError(
                    f"Options {sorted(solver_options)} are only valid for the scipy backend"
                )
        elif backend == 'scipy':
            method = method or 'RK45'
            if method not in SCIPY_METHODS:
                raise ValueError(
                    f"Unknown scipy method '{method}'. Choose from {', '.join(SCIPY_METHODS)}"
                )
            if n_steps is not None or dt is not None:
                raise ValueError("n_steps/dt apply to the fixed-step backend only")
            if stop_condition is not None:
                raise ValueError("stop_condition is only supported by the fixed-step backend")
        else:
            raise ValueError(f"Unknown backend '{backend}'. Choose from {', '.join(BACKENDS)}")

        self.method = method
        self.backend = backend
        self.n_steps = n_steps
        self.dt = dt
        self.stop_condition = stop_condition
        self.solver_options = solver_options

    def solve(self, problem: ODEProblem) -> Solution:
        """
        Integrate the problem over its time span.

        Each call starts from problem.u0 and returns a fresh Solution.

        Raises:
            DimensionMismatch: If f's result is not a rate of the state.
                Carries the step index (fixed backend) or the derivative
                evaluation index (scipy backend) in .step.
        """
        if self.backend == 'fixed':
            return self._solve_fixed(problem)
        return self._solve_scipy(problem)

    # -- Fixed step -------------------------------------------------------

    def _step_times(self, t0: Quantity, t1: Quantity) -> List[Quantity]:
        """
        Sample times t0, t0 + h, ..., t1.

        Computed as t0 + h*i rather than by accumulation; the last time is
        exactly t1.
        """
        span = t1 - t0

        if self.n_steps is not None:
            n = int(self.n_steps)
            h = span / n
        else:
            h = self.dt
            ratio = float(span / h)
            if ratio <= 0:
                raise ValueError(
                    f"Step size {h} points away from the time span {t0} -> {t1}"
                )
            n = max(1, math.ceil(ratio - _STEP_TOL * ratio))
            if abs(n - ratio) > _STEP_TOL * ratio:
                warnings.warn(
                    f"dt does not divide the time span ({ratio:.6g} steps); "
                    f"last step shortened to land on t1"
                )

        times = [t0 + h * i for i in range(n)]
        times.append(t1)
        return times

    def _solve_fixed(self, problem: ODEProblem) -> Solution:
        step = FIXED_STEP_METHODS[self.method]
        t0, t1 = problem.tspan
        times = self._step_times(t0, t1)

        shape = problem.u0.shape
        nfev = [0]
        current = [0]

        def f(u, p, t):
            nfev[0] += 1
            du = problem.f(u, p, t)
            _check_rate_shape(du, shape, current[0])
            return du

        sol = Solution(method=self.method, backend='fixed')
        u = problem.u0
        sol.append(times[0], u)

        for i in range(len(times) - 1):
            current[0] = i
            t, h = times[i], times[i + 1] - times[i]
            try:
                u = step(f, u, problem.p, t, h)
            except DimensionMismatch as e:
                raise e.at_step(i) from e

            sol.append(times[i + 1], u)

            if self.stop_condition is not None and self.stop_condition(u, times[i + 1]):
                sol.message = 'Terminated by stop condition'
                break
        else:
            sol.message = 'Reached end of time span'

        sol.nfev = nfev[0]
        return sol

    # -- Adaptive (scipy) -------------------------------------------------

    def _time_option(self, options: dict, key: str) -> None:
        """Strip a TIME-quantity solver option in place"""
        if key not in options:
            return
        value = options[key]
        if not isinstance(value, Quantity):
            value = Quantity(value)
        if value.dimension != TIME:
            raise DimensionMismatch(TIME, value.dimension, f"use as {key}")
        options[key] = value.magnitude

    def _solve_scipy(self, problem: ODEProblem) -> Solution:
        t0, t1 = problem.tspan
        u0 = problem.u0
        state_dim = u0.dimension
        shape = u0.shape

        # Step 0: the same combination a fixed step performs, before handing
        # magnitudes to scipy
        du0 = problem.f(u0, problem.p, t0)
        _check_rate_shape(du0, shape, 0)
        try:
            _ = u0 + du0 * (t1 - t0)
        except DimensionMismatch as e:
            raise e.at_step(0) from e

        options = {
            'rtol': 1e-6,
            'atol': 1e-8,
        }
        options.update(self.solver_options)
        for key in ('t_eval', 'max_step', 'first_step'):
            self._time_option(options, key)

        nfev = [0]

        def wrap_state(y):
            if u0.is_array:
                return Quantity(np.reshape(y, shape), state_dim)
            return Quantity(y[0], state_dim)

        def rhs(t, y):
            nfev[0] += 1
            du = problem.f(wrap_state(y), problem.p, Quantity(t, TIME))
            if not isinstance(du, Quantity):
                du = Quantity(du)
            if du.dimension * TIME != state_dim:
                raise DimensionMismatch(state_dim, du.dimension * TIME, 'add', step=nfev[0])
            _check_rate_shape(du, shape, nfev[0])
            return np.broadcast_to(du.magnitude, shape).ravel()

        y0 = np.ravel(np.asarray(u0.magnitude, dtype=float))
        result = solve_ivp(
            rhs,
            (t0.magnitude, t1.magnitude),
            y0,
            method=self.method,
            **options
        )

        if not result.success:
            warnings.warn(f"Solver failed: {result.message}")

        sol = Solution(
            success=bool(result.success),
            message=result.message,
            method=self.method,
            backend='scipy',
            nfev=nfev[0],
        )
        for j, tj in enumerate(result.t):
            sol.append(Quantity(tj, TIME), wrap_state(result.y[:, j]))
        return sol

    def __repr__(self) -> str:
        return f"Integrator(method='{self.method}', backend='{self.backend}')"


def solve(problem: ODEProblem, **kwargs) -> Solution:
    """Shorthand for Integrator(**kwargs).solve(problem)"""
    return Integrator(**kwargs).solve(problem)
