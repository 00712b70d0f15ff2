"""
Scenario registry for mapping string names to ScenarioInputs factories.

This enables scenarios to be selected by name (CLI and JSON friendly) while
still producing fully validated ScenarioInputs objects.

To add a new scenario:
1. Write a factory that derives it from base_scenario() with overrides
2. Register it in SCENARIOS

Example:
  def _high_penetration():
    return base_scenario().with_overrides({'earth.starlink_penetration': 0.3})

  SCENARIOS['high_penetration'] = _high_penetration
"""

from collections.abc import Callable

from astro_valuation.domain.types import EarthInputs
from astro_valuation.domain.types import FinancialInputs
from astro_valuation.domain.types import MarsInputs
from astro_valuation.domain.types import ScenarioInputs


def base_scenario() -> ScenarioInputs:
  """
  Legacy base case.

  The reference valuation (Earth 124.48B, Mars 0.745B, total ~2,241B) is
  computed from exactly these inputs.
  """
  return ScenarioInputs(
      earth=EarthInputs(
          starlink_penetration=0.15,
          bandwidth_price_decline=0.08,
          launch_volume=150,
          launch_price_decline=0.08,
          starship_reusability_year=2026,
          starship_commercial_viability_year=2025,
          starship_payload_capacity=75000,
          max_rocket_production_increase=0.25,
          wrights_law_turnaround_time=0.05,
          wrights_law_launch_cost=0.05,
          wrights_law_satellite_gbps=0.07,
          realized_bandwidth_tam_multiplier=0.5,
          starship_launches_for_starlink=0.9,
          non_starlink_launch_market_growth=0.01,
          irr_threshold_earth_to_mars=0.0,
          cash_buffer_percent=0.10,
      ),
      mars=MarsInputs(
          first_colony_year=2030,
          transport_cost_decline=0.20,
          population_growth=0.50,
          industrial_bootstrap=True,
          optimus_cost_2026=50000,
          optimus_annual_cost_decline=0.05,
          optimus_productivity_multiplier=0.25,
          optimus_learning_rate=0.05,
          mars_payload_optimus_vs_tooling=0.01,
      ),
      financial=FinancialInputs(
          discount_rate=0.12,
          terminal_growth=0.03,
          dilution_factor=0.15,
      ),
  )


def bear_scenario() -> ScenarioInputs:
  """Conservative adoption, late colony, expensive capital."""
  return base_scenario().with_overrides({
      'earth.starlink_penetration': 0.10,
      'earth.bandwidth_price_decline': 0.10,
      'earth.launch_volume': 100,
      'earth.launch_price_decline': 0.10,
      'mars.first_colony_year': 2035,
      'mars.transport_cost_decline': 0.15,
      'mars.population_growth': 0.30,
      'financial.discount_rate': 0.15,
      'financial.dilution_factor': 0.20,
      'financial.terminal_growth': 0.025,
  })


def bull_scenario() -> ScenarioInputs:
  """Fast adoption, early colony, cheap capital."""
  return base_scenario().with_overrides({
      'earth.starlink_penetration': 0.25,
      'earth.bandwidth_price_decline': 0.05,
      'earth.launch_volume': 200,
      'earth.launch_price_decline': 0.05,
      'mars.first_colony_year': 2028,
      'mars.transport_cost_decline': 0.30,
      'mars.population_growth': 0.70,
      'financial.discount_rate': 0.10,
      'financial.dilution_factor': 0.10,
      'financial.terminal_growth': 0.035,
  })


SCENARIOS: dict[str, Callable[[], ScenarioInputs]] = {
    'base': base_scenario,
    'bear': bear_scenario,
    'bull': bull_scenario,
}


def create_scenario(name: str) -> ScenarioInputs:
  """
  Create scenario inputs by name.

  Raises:
    KeyError: If the scenario name is not found in the registry
  """
  try:
    factory = SCENARIOS[name]
  except KeyError as e:
    raise KeyError(f"Unknown scenario: '{name}'. "
                   f'Available: {list(SCENARIOS.keys())}') from e
  return factory()


def list_scenarios() -> list[str]:
  """List all registered scenario names."""
  return list(SCENARIOS.keys())
