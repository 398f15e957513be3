"""Physical quantities with checked dimensions, and an ODE integrator that uses them."""

from unitful_sim.core import (
    Dimension, Quantity, DimensionMismatch, DivisionByZero, IrrationalDimension,
    ODEProblem, Solution, Integrator, solve, strip,
)
from unitful_sim.units import UnitRegistry, ureg, Q_

__version__ = '0.1.0'

__all__ = [
    'Dimension',
    'Quantity',
    'DimensionMismatch',
    'DivisionByZero',
    'IrrationalDimension',
    'ODEProblem',
    'Solution',
    'Integrator',
    'solve',
    'strip',
    'UnitRegistry',
    'ureg',
    'Q_',
]
