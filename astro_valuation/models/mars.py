"""
Mars colonization program valuation model.

The program is valued as a real option: the company keeps paying for
precursor cargo flights until the first colony year, then decides whether
to continue (colony cash flows) or abandon.

  option_value = colony_value + early_investment_value - abandonment_cost

The option is a European call on the colony. The underlying V is the PV of
colony output and the strike K the PV of everything the program spends
(precursor flights, imports and robots), both discounted to 2025:

  call = V N(d1) - K N(d2)
  d1 = (ln(V / K) + sigma^2 T / 2) / (sigma sqrt(T)),  d2 = d1 - sigma sqrt(T)

with T the years until the first colony. colony_value is the program NPV
V - K, the intrinsic value max(V - K, 0) is counted directly and the rest of
the call is the early investment value. When the program IRR misses the
Earth-only return plus irr_threshold_earth_to_mars the colony is abandoned
and the abandonment cost (a share of the call) is deducted.

Colony economics per year (after first_colony_year):
  population: 1,000 * (1 + population_growth)^(year - first_colony_year)
  output: population * output per colonist, scaled up by robotic labour
  imports: population * import mass * transport cost per kg
  robots: newcomers * robots per colonist * learning-curve unit cost

Without industrial bootstrap, imports are 50x heavier and most of the
output is consumed by imported manufactured goods.

All money amounts are in billions.
"""

from dataclasses import dataclass
import logging
from math import isfinite
from math import log
from math import sqrt
from typing import Optional

from scipy.stats import norm

from astro_valuation.domain.errors import NumericOverflow
from astro_valuation.domain.types import MarsInputs
from astro_valuation.domain.types import ModelOutput
from astro_valuation.domain.types import ScenarioInputs
from astro_valuation.domain.types import YearProjection
from astro_valuation.engine.dcf import apply_dilution
from astro_valuation.engine.dcf import compute_present_value
from astro_valuation.engine.dcf import internal_rate_of_return
from astro_valuation.engine.growth import compound_growth
from astro_valuation.engine.growth import exponential_decline
from astro_valuation.engine.growth import wrights_law
from astro_valuation.scenarios.registry import base_scenario

logger = logging.getLogger(__name__)

START_YEAR = 2025
END_YEAR = 2060

# Legacy base-case Mars value ($B).
MARS_REFERENCE_VALUE = 0.745

INITIAL_COLONISTS = 1_000.0
TRANSPORT_COST_PER_KG_2025 = 1e-5  # $B ($10,000/kg)
PRECURSOR_CARGO_KG = 500_000.0
PAYLOAD_PER_COLONIST_KG = 10_000.0
ROBOT_MASS_KG = 60.0
OPTIMUS_BASE_YEAR = 2026
OUTPUT_PER_COLONIST = 5e-4  # $B per colonist-year
BOOTSTRAP_IMPORT_KG = 100.0  # per colonist-year
NO_BOOTSTRAP_IMPORT_KG = 5_000.0
IMPORTED_GOODS_SHARE = 0.9
PROGRAM_VOLATILITY = 0.5
ABANDONMENT_COST_SHARE = 0.1
# Colony years the option sees when the colony starts late in the horizon.
MIN_OPERATING_YEARS = 10


def call_value(underlying: float, strike: float, sigma: float,
               maturity: float) -> float:
  """
  Black-Scholes value of a call on present values (no further discounting).

  Args:
    underlying: PV of what exercising delivers (> 0)
    strike: PV of what exercising costs (> 0)
    sigma: Annual volatility of the underlying (> 0)
    maturity: Years until exercise (> 0)
  """
  vol = sigma * sqrt(maturity)
  d1 = (log(underlying / strike) + vol * vol / 2) / vol
  d2 = d1 - vol
  return float(underlying * norm.cdf(d1) - strike * norm.cdf(d2))


@dataclass(frozen=True)
class MarsOption:
  """
  Real-option decomposition of the Mars program.

  Attributes:
    colony_value: Program NPV, colony output less all program spend (may be
      negative)
    early_investment_value: Time value of the call, what waiting for the
      precursor flights to resolve uncertainty is worth
    abandonment_cost: Share of the call lost when the colony is abandoned
      (0 when the program continues)
    irr: Program IRR (inf when no cash flow is negative, nan when none
      exists)
    hurdle_rate: discount_rate + irr_threshold_earth_to_mars
    continue_program: Whether the IRR clears the hurdle
    option_value: max(colony_value, 0) + early investment - abandonment
  """
  colony_value: float
  early_investment_value: float
  abandonment_cost: float
  irr: float
  hurdle_rate: float
  continue_program: bool
  option_value: float


class MarsValuationModel:
  """
  Mars program model.

  Immutable after construction and safe to share between threads. The
  calibration anchor is computed once, from anchor_inputs.
  """

  def __init__(
      self,
      anchor_inputs: Optional[ScenarioInputs] = None,
      reference_value: float = MARS_REFERENCE_VALUE,
  ):
    if anchor_inputs is None:
      anchor_inputs = base_scenario()

    self.reference_value = reference_value
    anchor = self.option_value(anchor_inputs)
    self.anchor_raw_value = apply_dilution(
        anchor.option_value, anchor_inputs.financial.dilution_factor)
    if self.anchor_raw_value <= 0:
      raise NumericOverflow(
          f'Mars calibration anchor must be positive, got '
          f'{self.anchor_raw_value}')
    logger.debug('Mars anchor: raw=%.6f -> %.3fB', self.anchor_raw_value,
                 reference_value)

  def project(self, inputs: ScenarioInputs) -> tuple[YearProjection, ...]:
    """
    Year-by-year projection over START_YEAR..END_YEAR.

    Before first_colony_year the only cash flow is precursor cargo spend
    and population is 0.
    """
    return self._project(inputs, END_YEAR)

  def _project(self, inputs: ScenarioInputs,
               end_year: int) -> tuple[YearProjection, ...]:
    m: MarsInputs = inputs.mars
    robots_per_colonist = (m.mars_payload_optimus_vs_tooling *
                           PAYLOAD_PER_COLONIST_KG / ROBOT_MASS_KG)
    import_kg = (BOOTSTRAP_IMPORT_KG
                 if m.industrial_bootstrap else NO_BOOTSTRAP_IMPORT_KG)

    projection = []
    previous_population = 0.0
    cumulative_robots = 0.0
    first_robots = 0.0

    for t, year in enumerate(range(START_YEAR, end_year + 1)):
      transport_cost = exponential_decline(TRANSPORT_COST_PER_KG_2025,
                                           m.transport_cost_decline, t)

      if year < m.first_colony_year:
        precursor_cost = PRECURSOR_CARGO_KG * transport_cost
        projection.append(
            YearProjection(
                year=year,
                revenue=0.0,
                cost=precursor_cost,
                cash_flow=-precursor_cost,
                components={
                    'population': 0.0,
                    'transport_cost_per_kg': transport_cost,
                    'precursor_cost': precursor_cost,
                },
            ))
        continue

      population = compound_growth(INITIAL_COLONISTS, m.population_growth,
                                   year - m.first_colony_year)
      newcomers = population - previous_population
      previous_population = population

      new_robots = newcomers * robots_per_colonist
      cumulative_robots += new_robots
      if first_robots == 0:
        first_robots = cumulative_robots
      if robots_per_colonist > 0:
        # Annual decline from the 2026 price, then along the fleet's
        # learning curve.
        unit_cost = exponential_decline(m.optimus_cost_2026 * 1e-9,
                                        m.optimus_annual_cost_decline,
                                        year - OPTIMUS_BASE_YEAR)
        robot_cost = new_robots * wrights_law(
            unit_cost, cumulative_robots / first_robots,
            m.optimus_learning_rate)
      else:
        robot_cost = 0.0

      labor_multiplier = (1.0 +
                          m.optimus_productivity_multiplier * robots_per_colonist)
      output = population * OUTPUT_PER_COLONIST * labor_multiplier
      if not m.industrial_bootstrap:
        output *= 1.0 - IMPORTED_GOODS_SHARE
      imports = population * import_kg * transport_cost

      cost = imports + robot_cost
      projection.append(
          YearProjection(
              year=year,
              revenue=output,
              cost=cost,
              cash_flow=output - cost,
              components={
                  'population': population,
                  'transport_cost_per_kg': transport_cost,
                  'labor_multiplier': labor_multiplier,
                  'import_cost': imports,
                  'robot_cost': robot_cost,
              },
          ))
    return tuple(projection)

  def option_value(self, inputs: ScenarioInputs) -> MarsOption:
    """
    Real-option value of the program, before calibration and dilution.

    Manual logic for the base scenario (r = 12%, threshold 0%):
      precursor flights 2025-2029, colony from 2030, T = 5 years
      V ~ 10,153 (colony output), K ~ 71 (all program spend)
      deep in the money: call ~ V - K, early investment ~ 0
      program IRR ~41% >= 12% hurdle -> continue, no abandonment cost

    A colony starting after END_YEAR - MIN_OPERATING_YEARS is valued over
    MIN_OPERATING_YEARS colony years; the IRR gate only sees the projection
    horizon.
    """
    m = inputs.mars
    r = inputs.financial.discount_rate
    projection = self.project(inputs)
    irr = internal_rate_of_return([p.cash_flow for p in projection])
    hurdle = r + inputs.earth.irr_threshold_earth_to_mars
    if isfinite(irr):
      continue_program = irr >= hurdle
    else:
      # inf: the program never costs anything; nan: no IRR exists.
      continue_program = irr > 0

    end_year = max(END_YEAR, m.first_colony_year + MIN_OPERATING_YEARS - 1)
    if end_year != END_YEAR:
      projection = self._project(inputs, end_year)
    underlying = compute_present_value([p.revenue for p in projection], r)
    strike = compute_present_value([p.cost for p in projection], r)
    maturity = max(m.first_colony_year - START_YEAR, 1)

    colony_value = underlying - strike
    intrinsic = max(colony_value, 0.0)
    call = call_value(underlying, strike, PROGRAM_VOLATILITY, maturity)
    if not isfinite(call):
      raise NumericOverflow(f'Mars option value is not finite: {call}')

    early_investment_value = call - intrinsic
    abandonment_cost = 0.0
    if not continue_program:
      abandonment_cost = ABANDONMENT_COST_SHARE * call
    return MarsOption(
        colony_value=colony_value,
        early_investment_value=early_investment_value,
        abandonment_cost=abandonment_cost,
        irr=irr,
        hurdle_rate=hurdle,
        continue_program=continue_program,
        option_value=intrinsic + early_investment_value - abandonment_cost,
    )

  def value(self, inputs: ScenarioInputs) -> ModelOutput[float]:
    """
    Calibrated, diluted Mars value ($B).

    Returns:
      ModelOutput with the value and option diagnostics
    """
    option = self.option_value(inputs)
    diluted = apply_dilution(option.option_value,
                             inputs.financial.dilution_factor)
    scale = self.reference_value / self.anchor_raw_value
    value = max(0.0, diluted * scale)
    return ModelOutput(value=value,
                       diag={
                           'mars_irr':
                               option.irr if isfinite(option.irr) else None,
                           'mars_hurdle_rate': option.hurdle_rate,
                           'mars_continue': option.continue_program,
                           'mars_colony_value': option.colony_value * scale,
                           'mars_early_investment_value':
                               option.early_investment_value * scale,
                           'mars_abandonment_cost':
                               option.abandonment_cost * scale,
                           'mars_calibration_scale': scale,
                       })
