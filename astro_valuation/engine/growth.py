"""
Growth curve primitives.

Pure functions shared by the Earth and Mars models. No I/O and no state;
every result is checked finite before it is returned.

Key functions:
  compound_growth: v0 * (1 + rate)^t
  exponential_decline: max(0, v0 * (1 - rate)^t)
  wrights_law: Learning-curve cost after cumulative production
"""

from math import log2

from astro_valuation.domain.errors import NumericOverflow
from astro_valuation.domain.errors import require_finite


def compound_growth(v0: float, rate: float, t: float) -> float:
  """
  Grow v0 at a constant rate for t periods.

  Args:
    v0: Starting value
    rate: Growth rate per period (0.25 = +25%)
    t: Number of periods

  Returns:
    v0 * (1 + rate)^t
  """
  try:
    value = v0 * (1.0 + rate)**t
  except (OverflowError, ZeroDivisionError) as e:
    raise NumericOverflow(f'compound_growth({v0}, {rate}, {t}): {e}') from e
  if isinstance(value, complex):
    raise NumericOverflow(f'compound_growth({v0}, {rate}, {t}) is complex')
  return require_finite(value, 'compound_growth')


def exponential_decline(v0: float, rate: float, t: float) -> float:
  """
  Decline v0 by a constant fraction each period, floored at zero.

  Args:
    v0: Starting value
    rate: Decline per period (0.08 = -8%)
    t: Number of periods

  Returns:
    max(0, v0 * (1 - rate)^t)
  """
  if rate >= 1.0:
    return 0.0 if t > 0 else max(0.0, v0)
  try:
    value = v0 * (1.0 - rate)**t
  except (OverflowError, ZeroDivisionError) as e:
    raise NumericOverflow(f'exponential_decline({v0}, {rate}, {t}): {e}') from e
  return max(0.0, require_finite(value, 'exponential_decline'))


def learning_exponent(learning_rate: float) -> float:
  """
  Wright's Law exponent b for a given learning rate.

  Cost falls by learning_rate for every doubling of cumulative units, so
  cost(n) = cost(1) * n^(-b) with b = -log2(1 - learning_rate).
  """
  if not 0.0 <= learning_rate < 1.0:
    raise NumericOverflow(
        f'learning_rate must be in [0, 1), got {learning_rate}')
  return -log2(1.0 - learning_rate)


def wrights_law(
    initial_cost: float,
    cumulative_units: float,
    learning_rate: float,
) -> float:
  """
  Unit cost after cumulative_units of production.

  Manual example: initial_cost=100, learning_rate=0.2, 4 units
    b = -log2(0.8) = 0.3219
    cost = 100 * 4^-0.3219 = 64.0 (two doublings at -20% each)

  Args:
    initial_cost: Cost of the first unit
    cumulative_units: Cumulative units produced (must be > 0)
    learning_rate: Cost reduction per doubling, in [0, 1)

  Returns:
    Cost of the unit at cumulative_units

  Raises:
    NumericOverflow: cumulative_units <= 0 or a non-finite result
  """
  if not cumulative_units > 0:
    raise NumericOverflow(
        f'wrights_law requires cumulative_units > 0, got {cumulative_units}')
  b = learning_exponent(learning_rate)
  try:
    value = initial_cost * cumulative_units**(-b)
  except OverflowError as e:
    raise NumericOverflow(f'wrights_law overflow: {e}') from e
  return require_finite(value, 'wrights_law')
