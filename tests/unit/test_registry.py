"""Unit tests for the unit lookup table."""

import pytest
from unitful_sim.core.dimension import DIMENSIONLESS, LENGTH, TIME, FORCE, PRESSURE, VELOCITY
from unitful_sim.core.errors import DimensionMismatch
from unitful_sim.core.quantity import Quantity
from unitful_sim.units import UnitRegistry, DEFAULT_UNITS, ureg, Q_


class TestRegistryLookup:
    """Test the default table"""

    @pytest.fixture
    def registry(self):
        return UnitRegistry()

    def test_default_table_loaded(self, registry):
        assert len(registry) == len(DEFAULT_UNITS)
        assert 'N' in registry
        assert 'furlong' not in registry

    def test_lookup(self, registry):
        assert registry.lookup('km') == (1000.0, LENGTH)
        assert registry.lookup('N') == (1.0, FORCE)

    def test_unknown_symbol(self, registry):
        with pytest.raises(KeyError, match="furlong"):
            registry.lookup('furlong')

    def test_no_parsing_of_compound_symbols(self, registry):
        """Compound units are built with arithmetic, not parsed"""
        with pytest.raises(KeyError):
            registry.lookup('N/s')

    def test_unit_as_quantity(self, registry):
        assert registry('min') == Quantity(60.0, TIME)
        assert registry['h'] == Quantity(3600.0, TIME)

    def test_quantity_in_si_scale(self, registry):
        assert registry.quantity(250, 'ms') == Quantity(0.25, TIME)
        assert registry.quantity(1.5, 'km') == Quantity(1500.0, LENGTH)

    def test_array_quantity(self, registry):
        q = registry.quantity([1.0, 2.0], 'km')
        assert q.is_array
        assert list(q.magnitude) == [1000.0, 2000.0]

    def test_symbols(self, registry):
        assert 's' in registry.symbols()


class TestRegistryDefine:
    """Test custom unit definitions"""

    def test_define_custom_unit(self):
        registry = UnitRegistry()
        registry.define('bar', 1e5, PRESSURE)
        assert registry.quantity(2.0, 'bar') == Quantity(2e5, PRESSURE)

    def test_custom_table_replaces_defaults(self):
        registry = UnitRegistry({'ft': (0.3048, LENGTH)})
        assert len(registry) == 1
        assert 'm' not in registry

    def test_duplicate_rejected(self):
        registry = UnitRegistry()
        with pytest.raises(ValueError, match="already defined"):
            registry.define('m', 1.0, LENGTH)

    def test_non_positive_scale_rejected(self):
        registry = UnitRegistry({})
        with pytest.raises(ValueError, match="must be positive"):
            registry.define('nothing', 0.0, LENGTH)

    def test_dimension_type_checked(self):
        registry = UnitRegistry({})
        with pytest.raises(TypeError):
            registry.define('m', 1.0, 'length')


class TestRegistryConvert:
    """Test conversion to display units"""

    def test_convert_same_dimension(self):
        assert ureg.convert(Q_(250, 'ms'), 's') == 0.25
        assert ureg.convert(Q_(2, 'min'), 's') == 120.0

    def test_convert_mismatch(self):
        with pytest.raises(DimensionMismatch, match="convert to 'm'"):
            ureg.convert(Q_(1, 's'), 'm')

    def test_convert_bare_number_to_dimensionless(self):
        assert ureg.convert(3.0, '1') == 3.0

    def test_compound_unit_by_arithmetic(self):
        """km/h assembled from the table"""
        km_per_h = ureg('km') / ureg('h')
        assert km_per_h.dimension == VELOCITY
        speed = Quantity(10.0, VELOCITY)
        assert float(speed / km_per_h) == pytest.approx(36.0)

    def test_rate_dimension(self):
        """N/s is a force per time"""
        rate = Q_(1.5, 'N') / ureg('s')
        assert rate.dimension == FORCE / TIME
        assert (rate * Q_(1, 's')).dimension == FORCE

    def test_dimensionless_unit(self):
        assert Q_(3, '1').dimension == DIMENSIONLESS
