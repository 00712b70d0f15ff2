"""
Typed errors raised by the valuation engine.

Every failure of a single valuation call surfaces as a subclass of
ValuationError. Callers never receive NaN or infinity; non-finite
intermediate values are converted into NumericOverflow at the point where
they are produced.
"""

from math import isfinite
from typing import Optional


class ValuationError(Exception):
  """Base class for all valuation engine errors."""


class InvalidInput(ValuationError, ValueError):
  """
  A scenario field is missing, malformed or outside its documented range.

  Attributes:
    field: Dotted path of the offending field (e.g. 'earth.launch_volume')
  """

  def __init__(self, field: str, message: str):
    self.field = field
    super().__init__(f'{field}: {message}')


class DivergentTerminalValue(ValuationError, ArithmeticError):
  """Gordon growth perpetuity with discount_rate <= terminal_growth."""

  def __init__(self, discount_rate: float, terminal_growth: float):
    self.discount_rate = discount_rate
    self.terminal_growth = terminal_growth
    super().__init__(
        f'terminal value diverges: discount_rate ({discount_rate}) must be '
        f'greater than terminal_growth ({terminal_growth})')


class LookupTableEmpty(ValuationError, LookupError):
  """The TAM lookup table was loaded without any rows."""


class NumericOverflow(ValuationError, ArithmeticError):
  """A non-finite intermediate value was produced."""


class AggregateSimulationFailure(ValuationError):
  """
  Too many Monte Carlo samples failed.

  Attributes:
    failed: Number of discarded samples
    total: Number of attempted samples
    threshold: Maximum tolerated failure rate
    last_error: Message of the most recent sample failure
  """

  def __init__(
      self,
      failed: int,
      total: int,
      threshold: float,
      last_error: Optional[str] = None,
  ):
    self.failed = failed
    self.total = total
    self.threshold = threshold
    self.last_error = last_error
    message = (f'{failed}/{total} samples failed '
               f'(threshold {threshold:.1%})')
    if last_error:
      message += f'; last error: {last_error}'
    super().__init__(message)


class SimulationCancelled(ValuationError):
  """A Monte Carlo run was cancelled before completion."""


def require_finite(x: float, name: str) -> float:
  """Return x, raising NumericOverflow when it is NaN or infinite."""
  if not isfinite(x):
    raise NumericOverflow(f'{name} is not finite: {x}')
  return x
