"""
Pure discounting engine.

This module contains pure functions for present-value calculations. No
pandas, no I/O, just numeric computations on prepared cash-flow sequences.

Conventions:
  - Cash flows are indexed from t=0 (the first projected year is not
    discounted).
  - The terminal value is a Gordon growth perpetuity on the final cash flow,
    discounted back by the final period index.

Key functions:
  compute_enterprise_value: Main entry point, PV + terminal value + dilution
  compute_present_value: PV of the explicit projection
  compute_terminal_value: Gordon growth terminal value (undiscounted)
  internal_rate_of_return: Root of the NPV curve
"""

from collections.abc import Sequence
from dataclasses import dataclass
from math import isfinite

from scipy.optimize import brentq

from astro_valuation.domain.errors import DivergentTerminalValue
from astro_valuation.domain.errors import InvalidInput
from astro_valuation.domain.errors import NumericOverflow
from astro_valuation.domain.errors import require_finite

IRR_LOWER_BOUND = -0.99
IRR_UPPER_BOUND = 10.0


@dataclass(frozen=True)
class DiscountedValue:
  """
  Breakdown of a discounted cash-flow valuation.

  Attributes:
    pv_explicit: PV of the explicit projection
    tv_component: Discounted terminal value
    enterprise_value: pv_explicit + tv_component
    equity_value: enterprise_value after dilution
  """
  pv_explicit: float
  tv_component: float
  enterprise_value: float
  equity_value: float


def _check_rate(discount_rate: float) -> None:
  if not isfinite(discount_rate) or discount_rate <= -1.0:
    raise InvalidInput('financial.discount_rate',
                       f'must be finite and > -1, got {discount_rate}')


def compute_present_value(
    cash_flows: Sequence[float],
    discount_rate: float,
) -> float:
  """
  Present value of a cash-flow sequence.

  PV = sum(CF[t] / (1 + r)^t) for t = 0..N-1

  Args:
    cash_flows: Yearly cash flows, first entry at t=0
    discount_rate: Required return (r)

  Returns:
    Present value
  """
  _check_rate(discount_rate)
  pv = 0.0
  for t, cf in enumerate(cash_flows):
    pv += cf / ((1.0 + discount_rate)**t)
  return require_finite(pv, 'present value')


def compute_terminal_value(
    final_cash_flow: float,
    terminal_growth: float,
    discount_rate: float,
) -> float:
  """
  Undiscounted Gordon growth terminal value.

  TV = CF_final * (1 + g) / (r - g)

  Raises:
    DivergentTerminalValue: discount_rate <= terminal_growth
  """
  if discount_rate <= terminal_growth:
    raise DivergentTerminalValue(discount_rate, terminal_growth)
  tv = final_cash_flow * (1.0 + terminal_growth) / (discount_rate -
                                                    terminal_growth)
  return require_finite(tv, 'terminal value')


def discount_terminal_value(
    terminal_value: float,
    discount_rate: float,
    final_period: int,
) -> float:
  """Discount a terminal value back from final_period to t=0."""
  _check_rate(discount_rate)
  return require_finite(terminal_value / ((1.0 + discount_rate)**final_period),
                        'discounted terminal value')


def apply_dilution(enterprise_value: float, dilution_factor: float) -> float:
  """Equity value after dilution: EV * (1 - d)."""
  return require_finite(enterprise_value * (1.0 - dilution_factor),
                        'diluted value')


def compute_enterprise_value(
    cash_flows: Sequence[float],
    discount_rate: float,
    terminal_growth: float,
    dilution_factor: float,
) -> DiscountedValue:
  """
  Two-stage discounted cash-flow valuation.

  Stage 1: PV of the explicit projection
  Stage 2: Gordon growth terminal value on the final year's cash flow

  Manual example: cash_flows=[10, 10, 10], r=0.10, g=0.0, d=0.0
    PV = 10 + 9.091 + 8.264 = 27.355
    TV = 10 * 1.0 / 0.10 = 100, discounted by 1.1^2 -> 82.645
    EV = 110.0

  Args:
    cash_flows: Yearly cash flows, first entry at t=0
    discount_rate: Required return (r)
    terminal_growth: Perpetual growth after the projection (g)
    dilution_factor: Fraction of value lost to dilution (d)

  Returns:
    DiscountedValue with all components

  Raises:
    DivergentTerminalValue: discount_rate <= terminal_growth
    InvalidInput: cash_flows is empty
  """
  if len(cash_flows) < 1:
    raise InvalidInput('cash_flows', 'at least one year is required')
  if discount_rate <= terminal_growth:
    raise DivergentTerminalValue(discount_rate, terminal_growth)

  pv_explicit = compute_present_value(cash_flows, discount_rate)
  tv = compute_terminal_value(cash_flows[-1], terminal_growth, discount_rate)
  tv_component = discount_terminal_value(tv, discount_rate,
                                         len(cash_flows) - 1)
  enterprise_value = pv_explicit + tv_component
  return DiscountedValue(
      pv_explicit=pv_explicit,
      tv_component=tv_component,
      enterprise_value=enterprise_value,
      equity_value=apply_dilution(enterprise_value, dilution_factor),
  )


def net_present_value(cash_flows: Sequence[float], rate: float) -> float:
  """NPV at rate, without finiteness checks (used by the IRR solver)."""
  return sum(cf / ((1.0 + rate)**t) for t, cf in enumerate(cash_flows))


def internal_rate_of_return(cash_flows: Sequence[float]) -> float:
  """
  Internal rate of return of a cash-flow sequence.

  Solved with Brent's method on [-0.99, 10].

  Returns:
    The IRR; float('inf') when no cash flow is negative and at least one is
    positive (the investment never costs anything); float('nan') when the
    NPV does not change sign on the bracket (no IRR exists)

  Raises:
    NumericOverflow: the solver failed to converge
  """
  if not cash_flows or not all(isfinite(cf) for cf in cash_flows):
    raise NumericOverflow('IRR requires finite, non-empty cash flows')
  if all(cf >= 0 for cf in cash_flows):
    return float('inf') if any(cf > 0 for cf in cash_flows) else float('nan')

  lo = net_present_value(cash_flows, IRR_LOWER_BOUND)
  hi = net_present_value(cash_flows, IRR_UPPER_BOUND)
  if not (isfinite(lo) and isfinite(hi)) or lo * hi > 0:
    return float('nan')
  if lo == 0:
    return IRR_LOWER_BOUND
  if hi == 0:
    return IRR_UPPER_BOUND

  try:
    return float(
        brentq(lambda r: net_present_value(cash_flows, r),
               IRR_LOWER_BOUND,
               IRR_UPPER_BOUND,
               xtol=1e-10,
               maxiter=200))
  except (RuntimeError, ValueError) as e:
    raise NumericOverflow(f'IRR solver failed: {e}') from e
