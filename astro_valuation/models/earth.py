"""
Earth business valuation model.

Projects satellite-broadband and launch-services revenue and cost for each
year of the horizon, discounts the cash flows with a Gordon terminal value
and dilution, then scales the result onto the legacy calibration anchor.

Yearly drivers:
  launches: launch_volume grown at max_rocket_production_increase; the
    production ramp saturates after RAMP_YEARS
  cumulative units: cumulative launches / first-year launches (the Wright's
    Law production counter, 1.0 in the first year)
  capacity (Gbps): previous capacity after attrition + capacity launched
  TAM key: capacity adjusted for bandwidth price decline

All money amounts are in billions.
"""

import logging
from typing import Optional

from astro_valuation.domain.errors import NumericOverflow
from astro_valuation.domain.types import EarthInputs
from astro_valuation.domain.types import ModelOutput
from astro_valuation.domain.types import ScenarioInputs
from astro_valuation.domain.types import YearProjection
from astro_valuation.engine.dcf import compute_enterprise_value
from astro_valuation.engine.growth import compound_growth
from astro_valuation.engine.growth import exponential_decline
from astro_valuation.engine.growth import wrights_law
from astro_valuation.engine.tam import TamLookupTable
from astro_valuation.models.milestones import resolve_milestone
from astro_valuation.scenarios.registry import base_scenario

logger = logging.getLogger(__name__)

START_YEAR = 2025
END_YEAR = 2040
RAMP_YEARS = 8

# Legacy base-case Earth value ($B).
EARTH_REFERENCE_VALUE = 124.48

INITIAL_CAPACITY_GBPS = 100_000.0
CONSTELLATION_ATTRITION = 0.20
GBPS_PER_KG_2025 = 0.01
BANDWIDTH_PRICE = 0.001  # $B per Gbps-year at a TAM multiplier of 1
CAPACITY_OPERATING_COST = 1e-6  # $B per Gbps-year
LAUNCH_PRICE_2025 = 0.07  # $B per external launch
SATELLITE_COST_PER_KG = 1.5e-7  # $B
VEHICLE_COST_PER_LAUNCH = 0.005  # $B
TAX_RATE = 0.09


class EarthValuationModel:
  """
  Terrestrial business model.

  The model is immutable after construction and safe to share between
  threads. The calibration anchor is computed once, from anchor_inputs.
  """

  def __init__(
      self,
      tam_table: TamLookupTable,
      anchor_inputs: Optional[ScenarioInputs] = None,
      reference_value: float = EARTH_REFERENCE_VALUE,
  ):
    """
    Initialize the Earth model.

    Args:
      tam_table: Shared read-only TAM lookup table
      anchor_inputs: Scenario mapped onto reference_value (default: the
        legacy base scenario)
      reference_value: Calibrated value of anchor_inputs ($B)
    """
    if anchor_inputs is None:
      anchor_inputs = base_scenario()

    self.tam_table = tam_table
    self.reference_value = reference_value
    self.anchor_raw_value = self._raw_value(anchor_inputs)
    if self.anchor_raw_value <= 0:
      raise NumericOverflow(
          f'Earth calibration anchor must be positive, got '
          f'{self.anchor_raw_value}')
    logger.debug('Earth anchor: raw=%.4f -> %.2fB', self.anchor_raw_value,
                 reference_value)

  def project(self, inputs: ScenarioInputs) -> tuple[YearProjection, ...]:
    """
    Year-by-year projection over START_YEAR..END_YEAR.

    Edge cases:
      starlink_penetration <= 0: broadband revenue is exactly 0
      launch_volume <= 0: no launches, launch revenue is exactly 0
    """
    e: EarthInputs = inputs.earth
    has_launches = e.launch_volume > 0

    projection = []
    capacity = INITIAL_CAPACITY_GBPS
    cumulative_launches = 0.0
    first_year_launches = 0.0

    for t, year in enumerate(range(START_YEAR, END_YEAR + 1)):
      launches = compound_growth(e.launch_volume,
                                 e.max_rocket_production_increase,
                                 min(t, RAMP_YEARS))
      if t == 0:
        first_year_launches = launches
      cumulative_launches += launches

      starlink_launches = launches * e.starship_launches_for_starlink
      external_launches = compound_growth(
          launches * (1.0 - e.starship_launches_for_starlink),
          e.non_starlink_launch_market_growth, t)

      payload_kg = resolve_milestone('commercial_viability', e, year)
      gbps_per_kg = compound_growth(GBPS_PER_KG_2025,
                                    e.wrights_law_satellite_gbps, t)
      capacity = (capacity * (1.0 - CONSTELLATION_ATTRITION) +
                  starlink_launches * payload_kg * gbps_per_kg)

      tam_key = exponential_decline(capacity, e.bandwidth_price_decline, t)
      tam_multiplier = self.tam_table.lookup(tam_key)
      if e.starlink_penetration > 0:
        broadband_revenue = (e.starlink_penetration * BANDWIDTH_PRICE *
                             e.realized_bandwidth_tam_multiplier *
                             tam_multiplier * capacity)
      else:
        broadband_revenue = 0.0

      cost_basis = resolve_milestone('reusability', e, year)
      if has_launches:
        units = cumulative_launches / first_year_launches
        launch_price = wrights_law(LAUNCH_PRICE_2025, units,
                                   e.launch_price_decline)
        cost_per_launch = wrights_law(cost_basis, units,
                                      e.wrights_law_turnaround_time)
        production_factor = wrights_law(1.0, units, e.wrights_law_launch_cost)
      else:
        units = 0.0
        launch_price = 0.0
        cost_per_launch = 0.0
        production_factor = 0.0
      launch_revenue = external_launches * launch_price

      revenue = broadband_revenue + launch_revenue
      operating_cost = (launches * cost_per_launch +
                        capacity * CAPACITY_OPERATING_COST)
      capital_cost = (starlink_launches * payload_kg * SATELLITE_COST_PER_KG +
                      launches * VEHICLE_COST_PER_LAUNCH) * production_factor
      tax_and_reserve = (TAX_RATE + e.cash_buffer_percent) * revenue
      cost = operating_cost + capital_cost + tax_and_reserve

      projection.append(
          YearProjection(
              year=year,
              revenue=revenue,
              cost=cost,
              cash_flow=revenue - cost,
              components={
                  'launches': launches,
                  'cumulative_units': units,
                  'starlink_launches': starlink_launches,
                  'external_launches': external_launches,
                  'payload_kg': payload_kg,
                  'capacity_gbps': capacity,
                  'tam_key': tam_key,
                  'tam_multiplier': tam_multiplier,
                  'broadband_revenue': broadband_revenue,
                  'launch_price': launch_price,
                  'launch_revenue': launch_revenue,
                  'cost_per_launch': cost_per_launch,
                  'operating_cost': operating_cost,
                  'capital_cost': capital_cost,
                  'tax_and_reserve': tax_and_reserve,
              },
          ))
    return tuple(projection)

  def _raw_value(self, inputs: ScenarioInputs) -> float:
    """Diluted DCF value of the projection, before calibration."""
    f = inputs.financial
    cash_flows = [p.cash_flow for p in self.project(inputs)]
    return compute_enterprise_value(cash_flows, f.discount_rate,
                                    f.terminal_growth,
                                    f.dilution_factor).equity_value

  def value(self, inputs: ScenarioInputs) -> ModelOutput[float]:
    """
    Calibrated Earth value ($B), floored at zero.

    Returns:
      ModelOutput with the value and DCF diagnostics
    """
    f = inputs.financial
    projection = self.project(inputs)
    dcf = compute_enterprise_value([p.cash_flow for p in projection],
                                   f.discount_rate, f.terminal_growth,
                                   f.dilution_factor)
    scale = self.reference_value / self.anchor_raw_value
    value = max(0.0, dcf.equity_value * scale)
    return ModelOutput(value=value,
                       diag={
                           'earth_pv_explicit': dcf.pv_explicit * scale,
                           'earth_tv_component': dcf.tv_component * scale,
                           'earth_enterprise_value':
                               dcf.enterprise_value * scale,
                           'earth_calibration_scale': scale,
                           'earth_final_cash_flow': projection[-1].cash_flow,
                       })
