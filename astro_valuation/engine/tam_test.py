import math

import numpy as np
import pytest

from astro_valuation.domain.errors import InvalidInput
from astro_valuation.domain.errors import LookupTableEmpty
from astro_valuation.domain.errors import NumericOverflow
from astro_valuation.engine.tam import TamLookupTable


class TestTamLookup:
  """Tests for TamLookupTable.lookup."""

  def test_interpolation(self, small_tam_table):
    """Manual calculation.

    Rows (100, 1.0), (200, 0.5):
    lookup(150) = 1.0 + (0.5 - 1.0) * 50 / 100 = 0.75
    lookup(125) = 1.0 + (0.5 - 1.0) * 25 / 100 = 0.875
    """
    assert small_tam_table.lookup(150.0) == pytest.approx(0.75)
    assert small_tam_table.lookup(125.0) == pytest.approx(0.875)

  def test_clamp_below_min(self, small_tam_table):
    """Keys below the minimum return the first value."""
    assert small_tam_table.lookup(50.0) == 1.0
    assert small_tam_table.lookup(-1e9) == 1.0

  def test_clamp_above_max(self, small_tam_table):
    """Keys above the maximum return the last value."""
    assert small_tam_table.lookup(900.0) == 0.5
    assert small_tam_table.lookup(1e12) == 0.5

  def test_exact_keys(self, small_tam_table):
    """Lookup at a stored key returns its value."""
    assert small_tam_table.lookup(100.0) == 1.0
    assert small_tam_table.lookup(200.0) == 0.5

  def test_non_finite_key(self, small_tam_table):
    """NaN and infinite keys raise NumericOverflow."""
    with pytest.raises(NumericOverflow):
      small_tam_table.lookup(math.nan)
    with pytest.raises(NumericOverflow):
      small_tam_table.lookup(math.inf)

  def test_monotone_on_packaged_table(self, tam_table):
    """The packaged values decline with the key, so lookups do too."""
    xs = np.linspace(tam_table.min_key - 1e5, tam_table.max_key + 1e5, 500)
    ys = [tam_table.lookup(float(x)) for x in xs]
    assert all(a >= b for a, b in zip(ys, ys[1:]))

  def test_interpolated_value_between_neighbours(self, tam_table):
    """Interpolated values stay between the neighbouring row values."""
    x = 250_000.0
    y = tam_table.lookup(x)
    assert tam_table.lookup(300_000.0) <= y <= tam_table.lookup(200_000.0)


class TestTamLoad:
  """Tests for TamLookupTable.load."""

  def test_unsorted_rows_are_sorted(self):
    """Provider rows in any order are sorted ascending by key."""
    table = TamLookupTable.load([(300, 0.2), (100, 1.0), (200, 0.5)])

    assert table.rows() == [(100.0, 1.0), (200.0, 0.5), (300.0, 0.2)]
    assert table.lookup(250.0) == pytest.approx(0.35)

  def test_duplicate_keys_keep_first(self):
    """When a key repeats, the first occurrence wins."""
    table = TamLookupTable.load([(100, 1.0), (200, 0.5), (100, 9.0)])

    assert len(table) == 2
    assert table.lookup(100.0) == 1.0

  def test_mapping_rows(self):
    """Rows may be {'key': .., 'value': ..} mappings."""
    table = TamLookupTable.load([{'key': 1, 'value': 2}, {'key': 3, 'value': 4}])

    assert table.min_key == 1.0
    assert table.max_key == 3.0
    assert table.lookup(2.0) == pytest.approx(3.0)

  def test_empty(self):
    """No rows raises LookupTableEmpty."""
    with pytest.raises(LookupTableEmpty):
      TamLookupTable.load([])

  def test_nan_value(self):
    """A NaN entry names the offending row."""
    with pytest.raises(InvalidInput, match=r'tam\[1\]\.value'):
      TamLookupTable.load([(100, 1.0), (200, float('nan'))])

  def test_missing_value(self):
    """A None entry raises InvalidInput."""
    with pytest.raises(InvalidInput) as exc_info:
      TamLookupTable.load([(None, 1.0)])

    assert exc_info.value.field == 'tam[0].key'

  def test_non_numeric_value(self):
    """Text entries raise InvalidInput."""
    with pytest.raises(InvalidInput, match='not a number'):
      TamLookupTable.load([(100, 'lots')])

  def test_malformed_row(self):
    """Rows that are not pairs raise InvalidInput."""
    with pytest.raises(InvalidInput):
      TamLookupTable.load([(100, 1.0, 'extra')])

  def test_read_only(self, small_tam_table):
    """The backing arrays cannot be modified."""
    with pytest.raises(ValueError):
      small_tam_table.keys[0] = 0.0
    with pytest.raises(ValueError):
      small_tam_table.values[0] = 0.0
