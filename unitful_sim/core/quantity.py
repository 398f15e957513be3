"""
Quantity: a magnitude that carries its physical dimension.

Magnitudes are always held in coherent SI base scale (metres, kilograms,
seconds, ...). Converting a unit annotation such as 'km' or 'ms' into that
scale is the job of the unit registry (unitful_sim.units); once a Quantity
exists, addition of like dimensions is a plain sum of magnitudes.

Every arithmetic result recomputes its dimension from the operands. The only
way to drop a dimension is strip(), which is meant for display and plotting
boundaries only.
"""

import operator
from dataclasses import dataclass
from fractions import Fraction
from numbers import Integral, Real

import numpy as np

from unitful_sim.core.dimension import Dimension, DIMENSIONLESS
from unitful_sim.core.errors import DimensionMismatch, DivisionByZero


def _coerce_magnitude(value):
    """Float for scalars, read-only float ndarray for sequences and arrays"""
    if isinstance(value, Quantity):
        raise TypeError("Quantity magnitude cannot itself be a Quantity")
    if isinstance(value, bool):
        raise TypeError(f"Quantity magnitude must be a real number or array, got {value!r}")
    if isinstance(value, Real):
        return float(value)
    if isinstance(value, (list, tuple, np.ndarray)):
        arr = np.array(value, dtype=float)
        if arr.ndim == 0:
            return float(arr)
        arr.flags.writeable = False
        return arr
    raise TypeError(
        f"Quantity magnitude must be a real number or array, got {type(value).__name__}"
    )


@dataclass(frozen=True, eq=False)
class Quantity:
    """
    Immutable (magnitude, dimension) pair with dimension-checked arithmetic.

    Attributes:
        magnitude: Value in SI base scale (float or read-only numpy array)
        dimension: Physical dimension of the value

    Operators follow the functional API below:
        q1 + q2, q1 - q2   require equal dimensions (DimensionMismatch)
        q1 * q2, q1 / q2   combine dimensions (division checks for zero)
        q ** n             integer or Fraction exponent (Fraction goes via root)

    Bare numbers behave as dimensionless quantities, so 2 * q scales q while
    q + 1 is only allowed when q is dimensionless.

    Example:
        >>> force = Quantity(1.5, FORCE)
        >>> rate = force / Quantity(1.0, TIME)
        >>> (force + rate * Quantity(0.5, TIME)).magnitude
        2.25
    """
    magnitude: object
    dimension: Dimension = DIMENSIONLESS

    # Make numpy defer to our reflected operators (np.float64(2) * q)
    __array_ufunc__ = None

    def __post_init__(self):
        if not isinstance(self.dimension, Dimension):
            raise TypeError(
                f"Quantity dimension must be a Dimension, got {type(self.dimension).__name__}"
            )
        object.__setattr__(self, 'magnitude', _coerce_magnitude(self.magnitude))

    @property
    def is_array(self) -> bool:
        return isinstance(self.magnitude, np.ndarray)

    @property
    def shape(self) -> tuple:
        return np.shape(self.magnitude)

    # -- Arithmetic operators ---------------------------------------------

    def __add__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        return add(self, other)

    def __radd__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        return add(other, self)

    def __sub__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        return subtract(self, other)

    def __rsub__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        return subtract(other, self)

    def __mul__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        return multiply(self, other)

    def __rmul__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        return multiply(other, self)

    def __truediv__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        return divide(self, other)

    def __rtruediv__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        return divide(other, self)

    def __pow__(self, k):
        if isinstance(k, bool):
            return NotImplemented
        if isinstance(k, (Integral, Fraction)) and k < 0:
            # Reciprocal goes through divide for the zero check
            return divide(1, self ** -k)
        if isinstance(k, Integral):
            return Quantity(self.magnitude ** int(k), self.dimension ** int(k))
        if isinstance(k, Fraction):
            base = root(self, k.denominator)
            return Quantity(base.magnitude ** k.numerator, base.dimension ** k.numerator)
        return NotImplemented

    def __neg__(self):
        return Quantity(-self.magnitude, self.dimension)

    def __pos__(self):
        return self

    def __abs__(self):
        return Quantity(abs(self.magnitude), self.dimension)

    # -- Comparison -------------------------------------------------------

    def __eq__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        if self.dimension != other.dimension:
            return False
        if self.is_array or other.is_array:
            return bool(np.array_equal(self.magnitude, other.magnitude))
        return self.magnitude == other.magnitude

    def __hash__(self):
        if self.is_array:
            raise TypeError("unhashable Quantity: array magnitude")
        return hash((self.magnitude, self.dimension))

    def __lt__(self, other):
        return _compare(self, other, operator.lt)

    def __le__(self, other):
        return _compare(self, other, operator.le)

    def __gt__(self, other):
        return _compare(self, other, operator.gt)

    def __ge__(self, other):
        return _compare(self, other, operator.ge)

    # -- Conversions and containers ----------------------------------------

    def __float__(self):
        if not self.dimension.is_dimensionless:
            raise DimensionMismatch(self.dimension, DIMENSIONLESS, 'convert to float')
        if self.is_array:
            raise TypeError("Only scalar quantities can be converted to float")
        return self.magnitude

    def __len__(self):
        if not self.is_array:
            raise TypeError("Scalar Quantity has no len()")
        return len(self.magnitude)

    def __getitem__(self, index):
        if not self.is_array:
            raise TypeError("Scalar Quantity is not subscriptable")
        return Quantity(self.magnitude[index], self.dimension)

    def __iter__(self):
        if not self.is_array:
            raise TypeError("Scalar Quantity is not iterable")
        for value in self.magnitude:
            yield Quantity(value, self.dimension)

    def __repr__(self) -> str:
        return f"Quantity({self.magnitude!r}, {self.dimension})"

    def __str__(self) -> str:
        if self.dimension.is_dimensionless:
            return f"{self.magnitude}"
        return f"{self.magnitude} [{self.dimension}]"


def _lift(value):
    """Treat bare numbers and arrays as dimensionless quantities; None if unsupported"""
    if isinstance(value, Quantity):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (Real, list, tuple, np.ndarray)):
        return Quantity(value, DIMENSIONLESS)
    return None


def _as_quantity(value) -> Quantity:
    q = _lift(value)
    if q is None:
        raise TypeError(f"Expected a Quantity or real number, got {type(value).__name__}")
    return q


def _require_same_dimension(a: Quantity, b: Quantity, operation: str) -> None:
    if a.dimension != b.dimension:
        raise DimensionMismatch(a.dimension, b.dimension, operation)


def _compare(a, b, op):
    b = _lift(b)
    if b is None:
        return NotImplemented
    _require_same_dimension(a, b, 'compare')
    return op(a.magnitude, b.magnitude)


# =============================================================================
# Functional API
# =============================================================================


def add(a, b) -> Quantity:
    """
    Sum of two quantities of the same dimension.

    Raises:
        DimensionMismatch: If a and b have different dimensions
    """
    a, b = _as_quantity(a), _as_quantity(b)
    _require_same_dimension(a, b, 'add')
    return Quantity(a.magnitude + b.magnitude, a.dimension)


def subtract(a, b) -> Quantity:
    """
    Difference of two quantities of the same dimension.

    Raises:
        DimensionMismatch: If a and b have different dimensions
    """
    a, b = _as_quantity(a), _as_quantity(b)
    _require_same_dimension(a, b, 'subtract')
    return Quantity(a.magnitude - b.magnitude, a.dimension)


def multiply(a, b) -> Quantity:
    """Product of two quantities; always succeeds, exponents add"""
    a, b = _as_quantity(a), _as_quantity(b)
    return Quantity(a.magnitude * b.magnitude, a.dimension * b.dimension)


def divide(a, b) -> Quantity:
    """
    Quotient of two quantities; exponents subtract.

    Raises:
        DivisionByZero: If any element of b's magnitude is zero
    """
    a, b = _as_quantity(a), _as_quantity(b)
    if np.any(np.asarray(b.magnitude) == 0):
        raise DivisionByZero(a.dimension, b.dimension)
    return Quantity(a.magnitude / b.magnitude, a.dimension / b.dimension)


def scale(a, k) -> Quantity:
    """
    Multiply a quantity by a pure dimensionless factor.

    Args:
        a: Quantity to scale
        k: Bare real number (or dimensionless Quantity)

    Raises:
        DimensionMismatch: If k carries a dimension
    """
    a, k = _as_quantity(a), _as_quantity(k)
    if not k.dimension.is_dimensionless:
        raise DimensionMismatch(DIMENSIONLESS, k.dimension, 'scale by')
    return Quantity(a.magnitude * k.magnitude, a.dimension)


def root(a, n: int) -> Quantity:
    """
    n-th root of a quantity.

    The dimension is checked first (see Dimension.root). For even n the
    magnitude must be non-negative; odd roots keep the sign.

    Raises:
        IrrationalDimension: If some exponent of a.dimension is not a multiple of n
        ValueError: If n is invalid, or an even root of a negative magnitude
    """
    a = _as_quantity(a)
    dimension = a.dimension.root(n)

    magnitude = np.asarray(a.magnitude)
    if n % 2 == 0 and np.any(magnitude < 0):
        raise ValueError(f"Even root {n} of negative magnitude {a.magnitude!r}")
    result = np.sign(magnitude) * np.abs(magnitude) ** (1.0 / n)
    return Quantity(result, dimension)


def strip(a):
    """
    Bare SI magnitude of a quantity, discarding its dimension.

    For display and plotting only. Bare numbers are returned unchanged.
    """
    if isinstance(a, Quantity):
        return a.magnitude
    return a


def is_close(a, b, rtol: float = 1e-05, atol: float = 1e-08) -> bool:
    """
    True if a and b have the same dimension and numerically close magnitudes.

    Raises:
        DimensionMismatch: If a and b have different dimensions
    """
    a, b = _as_quantity(a), _as_quantity(b)
    _require_same_dimension(a, b, 'compare')
    return bool(np.allclose(a.magnitude, b.magnitude, rtol=rtol, atol=atol))
