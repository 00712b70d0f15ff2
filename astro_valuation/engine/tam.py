"""
Total-addressable-market lookup table.

Maps the constellation capacity, adjusted for bandwidth price decline, to a
market-size multiplier. The table is an empirically sourced set of roughly a
thousand (key, value) rows supplied by a data provider (see data_loader.py);
it is loaded once and shared read-only by every valuation, including the
Monte Carlo workers.

Lookup semantics:
  - x below the minimum key clamps to the first value
  - x above the maximum key clamps to the last value
  - otherwise, linear interpolation between the largest key <= x and the
    next key
"""

from collections.abc import Iterable
from collections.abc import Mapping
from math import isfinite
from typing import Any

import numpy as np

from astro_valuation.domain.errors import InvalidInput
from astro_valuation.domain.errors import LookupTableEmpty
from astro_valuation.domain.errors import NumericOverflow


def _parse_row(row: Any, index: int) -> tuple[float, float]:
  """Extract a finite (key, value) pair from a tuple or mapping row."""
  if isinstance(row, Mapping):
    key, value = row.get('key'), row.get('value')
  else:
    try:
      key, value = row
    except (TypeError, ValueError) as e:
      raise InvalidInput(f'tam[{index}]',
                         f'expected a (key, value) pair, got {row!r}') from e

  pair = []
  for name, x in (('key', key), ('value', value)):
    if x is None or isinstance(x, bool):
      raise InvalidInput(f'tam[{index}].{name}', f'missing or invalid: {x!r}')
    try:
      x = float(x)
    except (TypeError, ValueError) as e:
      raise InvalidInput(f'tam[{index}].{name}', f'not a number: {x!r}') from e
    if not isfinite(x):
      raise InvalidInput(f'tam[{index}].{name}', f'not finite: {x}')
    pair.append(x)
  return pair[0], pair[1]


class TamLookupTable:
  """
  Sorted, de-duplicated key -> value table with clamped interpolation.

  Instances are immutable: the backing numpy arrays are flagged read-only.
  Use TamLookupTable.load() to construct one from provider rows.
  """

  def __init__(self, keys: np.ndarray, values: np.ndarray):
    if len(keys) == 0:
      raise LookupTableEmpty('TAM table has no rows')
    if len(keys) != len(values):
      raise ValueError('keys and values must have the same length')
    self._keys = np.array(keys, dtype=float)
    self._values = np.array(values, dtype=float)
    self._keys.setflags(write=False)
    self._values.setflags(write=False)

  @classmethod
  def load(cls, rows: Iterable[Any]) -> 'TamLookupTable':
    """
    Build a table from provider rows.

    Args:
      rows: Iterable of (key, value) pairs or {'key': .., 'value': ..}
        mappings, in any order

    Returns:
      TamLookupTable sorted ascending by key. When a key appears more than
      once, the first occurrence is kept.

    Raises:
      LookupTableEmpty: rows is empty
      InvalidInput: a row has a missing, non-numeric or non-finite entry
    """
    pairs = [_parse_row(row, i) for i, row in enumerate(rows)]
    if not pairs:
      raise LookupTableEmpty('TAM table has no rows')

    keys = np.array([k for k, _ in pairs], dtype=float)
    values = np.array([v for _, v in pairs], dtype=float)

    # Stable sort keeps the first occurrence of a duplicate key in front.
    order = np.argsort(keys, kind='stable')
    keys, values = keys[order], values[order]
    keep = np.concatenate(([True], np.diff(keys) > 0))
    return cls(keys[keep], values[keep])

  @property
  def keys(self) -> np.ndarray:
    return self._keys

  @property
  def values(self) -> np.ndarray:
    return self._values

  @property
  def min_key(self) -> float:
    return float(self._keys[0])

  @property
  def max_key(self) -> float:
    return float(self._keys[-1])

  def __len__(self) -> int:
    return len(self._keys)

  def rows(self) -> list[tuple[float, float]]:
    """Return the table as a list of (key, value) tuples."""
    return list(zip(self._keys.tolist(), self._values.tolist()))

  def lookup(self, x: float) -> float:
    """
    Interpolated table value at x, clamped at both ends.

    Manual example with rows (100, 1.0), (200, 0.5):
      lookup(50)  -> 1.0   (below min, clamp to first)
      lookup(150) -> 0.75  (1.0 + (0.5 - 1.0) * 50 / 100)
      lookup(900) -> 0.5   (above max, clamp to last)

    Raises:
      NumericOverflow: x is NaN or infinite
    """
    if not isfinite(x):
      raise NumericOverflow(f'TAM lookup key is not finite: {x}')

    keys = self._keys
    if x <= keys[0]:
      return float(self._values[0])
    if x >= keys[-1]:
      return float(self._values[-1])

    # Largest index with keys[lo] <= x; keys[0] < x < keys[-1] here.
    lo = int(np.searchsorted(keys, x, side='right')) - 1
    k_lo, k_hi = keys[lo], keys[lo + 1]
    v_lo, v_hi = self._values[lo], self._values[lo + 1]
    return float(v_lo + (v_hi - v_lo) * (x - k_lo) / (k_hi - k_lo))
