"""
Physical dimensions as exponent vectors over the seven SI base quantities.

A Dimension identifies what kind of thing a quantity is (a length, a force,
a rate of change of force) independent of numeric scale. Dimensions form a
commutative group under multiplication: exponents add, the identity is
DIMENSIONLESS, and the inverse negates every exponent. Exponent arithmetic is
exact (fractions.Fraction), never floating point.
"""

from dataclasses import dataclass, fields
from fractions import Fraction
from numbers import Integral, Rational, Real
from typing import Tuple, Union

from unitful_sim.core.errors import IrrationalDimension


Exponent = Union[int, Fraction]

_SYMBOLS = ('L', 'M', 'T', 'I', 'Θ', 'N', 'J')


def _as_exponent(value) -> Fraction:
    """Coerce an exponent to an exact Fraction"""
    if isinstance(value, bool):
        raise TypeError(f"Dimension exponent must be a number, got {value!r}")
    if isinstance(value, Rational):
        return Fraction(value.numerator, value.denominator)
    if isinstance(value, Real):
        return Fraction(float(value)).limit_denominator(1000)
    raise TypeError(f"Dimension exponent must be a number, got {type(value).__name__}")


@dataclass(frozen=True)
class Dimension:
    """
    Immutable vector of rational exponents for the SI base dimensions.

    Attributes:
        length: Exponent of L [m]
        mass: Exponent of M [kg]
        time: Exponent of T [s]
        current: Exponent of I [A]
        temperature: Exponent of Θ [K]
        amount: Exponent of N [mol]
        luminosity: Exponent of J [cd]

    Example:
        >>> FORCE = MASS * LENGTH / TIME**2
        >>> str(FORCE)
        'L·M·T^-2'
        >>> (FORCE / TIME) * TIME == FORCE
        True
    """
    length: Exponent = 0
    mass: Exponent = 0
    time: Exponent = 0
    current: Exponent = 0
    temperature: Exponent = 0
    amount: Exponent = 0
    luminosity: Exponent = 0

    def __post_init__(self):
        for f in fields(self):
            object.__setattr__(self, f.name, _as_exponent(getattr(self, f.name)))

    @classmethod
    def from_tuple(cls, exponents) -> 'Dimension':
        exponents = tuple(exponents)
        if len(exponents) != len(_SYMBOLS):
            raise ValueError(
                f"Dimension needs {len(_SYMBOLS)} exponents (L, M, T, I, Θ, N, J), "
                f"got {len(exponents)}"
            )
        return cls(*exponents)

    def as_tuple(self) -> Tuple[Fraction, ...]:
        return tuple(getattr(self, f.name) for f in fields(self))

    @property
    def is_dimensionless(self) -> bool:
        return all(e == 0 for e in self.as_tuple())

    # -- Group operations -------------------------------------------------

    def __mul__(self, other: 'Dimension') -> 'Dimension':
        if not isinstance(other, Dimension):
            return NotImplemented
        return Dimension.from_tuple(a + b for a, b in zip(self.as_tuple(), other.as_tuple()))

    def __truediv__(self, other: 'Dimension') -> 'Dimension':
        if not isinstance(other, Dimension):
            return NotImplemented
        return Dimension.from_tuple(a - b for a, b in zip(self.as_tuple(), other.as_tuple()))

    def __pow__(self, k) -> 'Dimension':
        k = _as_exponent(k)
        return Dimension.from_tuple(e * k for e in self.as_tuple())

    def inverse(self) -> 'Dimension':
        return Dimension.from_tuple(-e for e in self.as_tuple())

    def root(self, n: int) -> 'Dimension':
        """
        n-th root of this dimension.

        Every exponent must be a whole multiple of n; otherwise the result
        would not be a dimension this system can represent and
        IrrationalDimension is raised. For example, the square root of
        L^2 is L, but the square root of L is rejected.

        Args:
            n: Root index (integer >= 1)

        Raises:
            ValueError: If n is not a positive integer
            IrrationalDimension: If any exponent is not a multiple of n
        """
        if isinstance(n, bool) or not isinstance(n, Integral) or n < 1:
            raise ValueError(f"Root index must be a positive integer, got {n!r}")

        exponents = self.as_tuple()
        if any(e % n != 0 for e in exponents):
            raise IrrationalDimension(self, int(n))
        return Dimension.from_tuple(e / n for e in exponents)

    # -- Display ----------------------------------------------------------

    def __str__(self) -> str:
        parts = []
        for symbol, e in zip(_SYMBOLS, self.as_tuple()):
            if e == 0:
                continue
            if e == 1:
                parts.append(symbol)
            elif e.denominator == 1:
                parts.append(f"{symbol}^{e.numerator}")
            else:
                parts.append(f"{symbol}^({e.numerator}/{e.denominator})")
        return '·'.join(parts) if parts else 'dimensionless'

    def __repr__(self) -> str:
        return f"Dimension({self})"


DIMENSIONLESS = Dimension()
LENGTH = Dimension(length=1)
MASS = Dimension(mass=1)
TIME = Dimension(time=1)
CURRENT = Dimension(current=1)
TEMPERATURE = Dimension(temperature=1)
AMOUNT = Dimension(amount=1)
LUMINOSITY = Dimension(luminosity=1)

VELOCITY = LENGTH / TIME
ACCELERATION = VELOCITY / TIME
FORCE = MASS * ACCELERATION
ENERGY = FORCE * LENGTH
POWER = ENERGY / TIME
PRESSURE = FORCE / LENGTH**2
FREQUENCY = TIME.inverse()
CHARGE = CURRENT * TIME
VOLTAGE = POWER / CURRENT
