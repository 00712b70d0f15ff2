"""
Finite-difference sensitivities ("Greeks") of the valuation.

Delta and gamma are measured by bumping one scenario field and re-running
the orchestrator; rho is the delta with respect to the discount rate and
theta the forward difference with respect to the first colony year. Vega
bumps the sigma of one sampled input and compares the simulated base case
(mean) of two runs drawn with the same seed.

  delta (central) = (V(x + h) - V(x - h)) / 2h
  delta (forward) = (V(x + h) - V(x)) / h
  gamma           = (V(x + h) - 2 V(x) + V(x - h)) / h^2

Bump size h depends on the input type: percentage 0.01, absolute 1,
time 1 year, rate 0.001, volatility 0.01. A bump that leaves the field's
documented range raises InvalidInput.
"""

from dataclasses import dataclass
from dataclasses import replace
import logging
from typing import Any, Optional

import pandas as pd

from astro_valuation.domain.types import field_spec
from astro_valuation.domain.types import ScenarioInputs
from astro_valuation.domain.types import ValuationResult
from astro_valuation.run import ValuationOrchestrator
from astro_valuation.scenarios.config import SimulationConfig
from astro_valuation.simulation.monte_carlo import MonteCarloSimulator

logger = logging.getLogger(__name__)

DEFAULT_BUMP_SIZES = {
    'percentage': 0.01,
    'absolute': 1.0,
    'time': 1,
    'rate': 0.001,
    'volatility': 0.01,
}

UNITS = {
    'percentage': ('$B/%', '$B/%^2'),
    'absolute': ('$B/unit', '$B/unit^2'),
    'time': ('$B/year', '$B/year^2'),
    'rate': ('$B/%', '$B/%^2'),
    'volatility': ('$B/%vol', '$B/%vol^2'),
}

# (path, label, input type) of the inputs reported by calculate_all_greeks.
GREEK_INPUTS = [
    ('earth.starlink_penetration', 'Starlink Penetration', 'percentage'),
    ('earth.launch_volume', 'Launch Volume', 'absolute'),
    ('mars.first_colony_year', 'Colony Year', 'time'),
    ('mars.population_growth', 'Population Growth', 'percentage'),
    ('financial.discount_rate', 'Discount Rate', 'rate'),
]

# Sampled input whose volatility vega reports by default.
VEGA_INPUT = 'earth.realized_bandwidth_tam_multiplier'


@dataclass(frozen=True)
class Sensitivity:
  """Sensitivity of each valuation component."""
  earth: float
  mars: float
  total: float

  @classmethod
  def from_results(
      cls,
      up: ValuationResult,
      down: ValuationResult,
      denominator: float,
  ) -> 'Sensitivity':
    return cls(
        earth=(up.earth - down.earth) / denominator,
        mars=(up.mars - down.mars) / denominator,
        total=(up.total - down.total) / denominator,
    )


def default_input_type(path: str) -> str:
  """Bump category implied by a field's kind."""
  if path == 'financial.discount_rate':
    return 'rate'
  kind = field_spec(path).kind
  if kind == 'year':
    return 'time'
  if kind == 'amount':
    return 'absolute'
  if kind == 'flag':
    raise ValueError(f'{path} is a flag and has no sensitivity')
  return 'percentage'


class GreeksCalculator:
  """
  Finite-difference Greeks over a ValuationOrchestrator.

  Args:
    orchestrator: Pipeline to re-run for each bump
    bump_sizes: Overrides of DEFAULT_BUMP_SIZES by input type
    central: Central differences for delta and rho (forward otherwise)
  """

  def __init__(
      self,
      orchestrator: ValuationOrchestrator,
      bump_sizes: Optional[dict[str, float]] = None,
      central: bool = True,
  ):
    self.orchestrator = orchestrator
    self.bump_sizes = {**DEFAULT_BUMP_SIZES, **(bump_sizes or {})}
    self.central = central

  def bump_size(self, input_type: str) -> float:
    try:
      return self.bump_sizes[input_type]
    except KeyError as e:
      raise KeyError(f"Unknown input type: '{input_type}'. "
                     f'Available: {list(self.bump_sizes.keys())}') from e

  def _value_at(
      self,
      inputs: ScenarioInputs,
      path: str,
      value: Any,
  ) -> ValuationResult:
    return self.orchestrator.value(inputs.with_overrides({path: value}))

  def _bumped(self, inputs: ScenarioInputs, path: str, h: float, sign: int):
    x = inputs.get(path)
    if field_spec(path).kind == 'year':
      return self._value_at(inputs, path, x + sign * int(h))
    return self._value_at(inputs, path, x + sign * h)

  def delta(
      self,
      inputs: ScenarioInputs,
      path: str,
      input_type: Optional[str] = None,
  ) -> Sensitivity:
    """First-order sensitivity of earth/mars/total to the field at path."""
    h = self.bump_size(input_type or default_input_type(path))
    up = self._bumped(inputs, path, h, +1)
    if self.central:
      down = self._bumped(inputs, path, h, -1)
      return Sensitivity.from_results(up, down, 2 * h)
    return Sensitivity.from_results(up, self.orchestrator.value(inputs), h)

  def gamma(
      self,
      inputs: ScenarioInputs,
      path: str,
      input_type: Optional[str] = None,
  ) -> Sensitivity:
    """Second-order sensitivity (convexity)."""
    h = self.bump_size(input_type or default_input_type(path))
    up = self._bumped(inputs, path, h, +1)
    base = self.orchestrator.value(inputs)
    down = self._bumped(inputs, path, h, -1)
    return Sensitivity(
        earth=(up.earth - 2 * base.earth + down.earth) / h**2,
        mars=(up.mars - 2 * base.mars + down.mars) / h**2,
        total=(up.total - 2 * base.total + down.total) / h**2,
    )

  def rho(self, inputs: ScenarioInputs) -> Sensitivity:
    """Sensitivity to the discount rate."""
    return self.delta(inputs, 'financial.discount_rate', 'rate')

  def theta(self, inputs: ScenarioInputs) -> Sensitivity:
    """Value change per year of colony delay (forward difference)."""
    h = self.bump_size('time')
    up = self._bumped(inputs, 'mars.first_colony_year', h, +1)
    return Sensitivity.from_results(up, self.orchestrator.value(inputs), h)

  def vega(
      self,
      inputs: ScenarioInputs,
      config: Optional[SimulationConfig] = None,
      path: str = VEGA_INPUT,
  ) -> Sensitivity:
    """
    Sensitivity of the simulated base case to the sigma of a sampled input.

    Both runs use the same seed, so the draws differ only through sigma
    (forward difference).

    Args:
      inputs: Scenario providing every non-sampled field
      config: Simulation configuration (legacy default when omitted); an
        unseeded configuration is seeded with 0
      path: Sampled field whose distribution carries a 'sigma'

    Raises:
      KeyError: path is not sampled or its distribution has no sigma
    """
    config = config or SimulationConfig.default()
    if config.seed is None:
      config = replace(config, seed=0)
    try:
      spec = config.distributions[path]
    except KeyError as e:
      raise KeyError(f"Unknown sampled input: '{path}'. "
                     f'Available: {list(config.distributions.keys())}') from e
    if 'sigma' not in spec:
      raise KeyError(f"Distribution of '{path}' has no sigma: {spec}")

    h = self.bump_size('volatility')
    bumped = replace(config,
                     distributions={
                         **config.distributions,
                         path: {
                             **spec, 'sigma': spec['sigma'] + h
                         },
                     })
    simulator = MonteCarloSimulator(self.orchestrator)
    logger.debug('Vega on %s: sigma %.3f -> %.3f', path, spec['sigma'],
                 spec['sigma'] + h)
    base = simulator.run(inputs, config)
    up = simulator.run(inputs, bumped)
    return Sensitivity(
        earth=(up.earth.base - base.earth.base) / h,
        mars=(up.mars.base - base.mars.base) / h,
        total=(up.total.base - base.total.base) / h,
    )

  def calculate_all_greeks(self, inputs: ScenarioInputs) -> pd.DataFrame:
    """
    Delta and gamma for each reported input, plus rho and theta.

    Returns:
      DataFrame with columns greek, input, component, value, unit. Earth
      inputs report earth and total, Mars inputs report mars and total,
      financial inputs report all three components.
    """
    rows = []

    def add(greek: str, label: str, s: Sensitivity, components: list[str],
            unit: str) -> None:
      for component in components:
        rows.append({
            'greek': greek,
            'input': label,
            'component': component,
            'value': getattr(s, component),
            'unit': unit,
        })

    for path, label, input_type in GREEK_INPUTS:
      group = path.split('.')[0]
      components = ([group, 'total']
                    if group in ('earth', 'mars') else ['earth', 'mars', 'total'])
      delta_unit, gamma_unit = UNITS[input_type]
      logger.debug('Greeks for %s', path)
      add('delta', label, self.delta(inputs, path, input_type), components,
          delta_unit)
      add('gamma', label, self.gamma(inputs, path, input_type), components,
          gamma_unit)

    add('rho', 'Discount Rate', self.rho(inputs), ['earth', 'mars', 'total'],
        '$B/%')
    add('theta', 'Time Decay', self.theta(inputs), ['mars', 'total'],
        '$B/year')
    return pd.DataFrame(rows,
                        columns=['greek', 'input', 'component', 'value', 'unit'])
