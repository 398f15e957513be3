"""Core abstractions: dimensions, quantities and the unit-checked integrator."""

from unitful_sim.core.dimension import (
    Dimension, DIMENSIONLESS, LENGTH, MASS, TIME, CURRENT, TEMPERATURE, AMOUNT,
    LUMINOSITY, VELOCITY, ACCELERATION, FORCE, ENERGY, POWER, PRESSURE, FREQUENCY,
)
from unitful_sim.core.errors import DimensionMismatch, DivisionByZero, IrrationalDimension
from unitful_sim.core.quantity import (
    Quantity, add, subtract, multiply, divide, scale, root, strip, is_close,
)
from unitful_sim.core.integrator import ODEProblem, Solution, Integrator, solve

__all__ = [
    'Dimension',
    'DIMENSIONLESS',
    'LENGTH',
    'MASS',
    'TIME',
    'CURRENT',
    'TEMPERATURE',
    'AMOUNT',
    'LUMINOSITY',
    'VELOCITY',
    'ACCELERATION',
    'FORCE',
    'ENERGY',
    'POWER',
    'PRESSURE',
    'FREQUENCY',
    'DimensionMismatch',
    'DivisionByZero',
    'IrrationalDimension',
    'Quantity',
    'add',
    'subtract',
    'multiply',
    'divide',
    'scale',
    'root',
    'strip',
    'is_close',
    'ODEProblem',
    'Solution',
    'Integrator',
    'solve',
]
