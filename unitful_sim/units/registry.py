"""
Unit registry: a lookup table from unit symbols to (SI scale, Dimension).

The registry is deliberately flat. There is no parsing grammar and no prefix
machinery: 'km' is in the table because someone put it there. Compound units
are built with Quantity arithmetic instead:

    >>> N, s = ureg('N'), ureg('s')
    >>> rate = Q_(1.5, 'N') / s          # 1.5 N/s
    >>> ureg.convert(Q_(250, 'ms'), 's')
    0.25
"""

from typing import Dict, List, Mapping, Optional, Tuple

from unitful_sim.core.dimension import (
    Dimension, DIMENSIONLESS, LENGTH, MASS, TIME, CURRENT, TEMPERATURE, AMOUNT,
    LUMINOSITY, FORCE, ENERGY, POWER, PRESSURE, FREQUENCY, CHARGE, VOLTAGE,
)
from unitful_sim.core.errors import DimensionMismatch
from unitful_sim.core.quantity import Quantity


DEFAULT_UNITS: Dict[str, Tuple[float, Dimension]] = {
    # Dimensionless
    '1': (1.0, DIMENSIONLESS),

    # SI base units
    'm': (1.0, LENGTH),
    'kg': (1.0, MASS),
    's': (1.0, TIME),
    'A': (1.0, CURRENT),
    'K': (1.0, TEMPERATURE),
    'mol': (1.0, AMOUNT),
    'cd': (1.0, LUMINOSITY),

    # Scaled variants in common use
    'km': (1e3, LENGTH),
    'cm': (1e-2, LENGTH),
    'mm': (1e-3, LENGTH),
    'g': (1e-3, MASS),
    'ms': (1e-3, TIME),
    'min': (60.0, TIME),
    'h': (3600.0, TIME),

    # Derived SI units
    'N': (1.0, FORCE),
    'J': (1.0, ENERGY),
    'W': (1.0, POWER),
    'Pa': (1.0, PRESSURE),
    'Hz': (1.0, FREQUENCY),
    'C': (1.0, CHARGE),
    'V': (1.0, VOLTAGE),
}


class UnitRegistry:
    """
    Table of named units.

    Each entry maps a symbol to the factor that converts one of that unit
    into SI base scale, plus the unit's dimension.

    Example:
        ureg = UnitRegistry()
        ureg.define('bar', 1e5, PRESSURE)
        p = ureg.quantity(2.0, 'bar')      # Quantity(2e5, PRESSURE)
        ureg.convert(p, 'Pa')              # 200000.0
    """

    def __init__(self, table: Optional[Mapping[str, Tuple[float, Dimension]]] = None):
        """
        Args:
            table: Initial symbol -> (scale, dimension) entries.
                   Defaults to a copy of DEFAULT_UNITS.
        """
        self._units: Dict[str, Tuple[float, Dimension]] = {}
        source = DEFAULT_UNITS if table is None else table
        for symbol, (factor, dimension) in source.items():
            self.define(symbol, factor, dimension)

    def define(self, symbol: str, factor: float, dimension: Dimension) -> None:
        """
        Add a unit to the table.

        Raises:
            ValueError: If the symbol already exists or the scale is not positive
            TypeError: If dimension is not a Dimension
        """
        if symbol in self._units:
            raise ValueError(f"Unit '{symbol}' already defined")
        if not isinstance(dimension, Dimension):
            raise TypeError(f"Unit dimension must be a Dimension, got {type(dimension).__name__}")
        if factor <= 0:
            raise ValueError(f"Unit scale must be positive, got {factor} for '{symbol}'")
        self._units[symbol] = (float(factor), dimension)

    def lookup(self, symbol: str) -> Tuple[float, Dimension]:
        """Return (scale, dimension) for a unit symbol"""
        try:
            return self._units[symbol]
        except KeyError:
            raise KeyError(f"Unknown unit '{symbol}'") from None

    def quantity(self, magnitude, symbol: str) -> Quantity:
        """Quantity of `magnitude` units of `symbol`, held in SI scale"""
        factor, dimension = self.lookup(symbol)
        return Quantity(magnitude, DIMENSIONLESS) * Quantity(factor, dimension)

    def convert(self, q: Quantity, symbol: str):
        """
        Bare magnitude of q expressed in the given unit.

        This is a display boundary: the result no longer carries a dimension.

        Raises:
            DimensionMismatch: If q's dimension differs from the unit's
        """
        factor, dimension = self.lookup(symbol)
        if not isinstance(q, Quantity):
            q = Quantity(q, DIMENSIONLESS)
        if q.dimension != dimension:
            raise DimensionMismatch(q.dimension, dimension, f"convert to '{symbol}'")
        return q.magnitude / factor

    def symbols(self) -> List[str]:
        return list(self._units)

    def __call__(self, symbol: str) -> Quantity:
        return self.quantity(1.0, symbol)

    def __getitem__(self, symbol: str) -> Quantity:
        return self.quantity(1.0, symbol)

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._units

    def __len__(self) -> int:
        return len(self._units)

    def __repr__(self) -> str:
        return f"UnitRegistry({len(self._units)} units)"


ureg = UnitRegistry()


def Q_(magnitude, symbol: str) -> Quantity:
    """Shorthand for ureg.quantity(magnitude, symbol)"""
    return ureg.quantity(magnitude, symbol)
