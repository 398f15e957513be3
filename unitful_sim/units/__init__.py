"""Unit lookup tables: symbol -> (SI scale, Dimension)."""

from unitful_sim.units.registry import UnitRegistry, DEFAULT_UNITS, ureg, Q_

__all__ = [
    'UnitRegistry',
    'DEFAULT_UNITS',
    'ureg',
    'Q_',
]
