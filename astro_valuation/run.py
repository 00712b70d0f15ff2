'''
Valuation entrypoint.

This module composes the engine into the public entry points. It:
1. Loads the shared TAM table (once per orchestrator)
2. Values the Earth business and the Mars program
3. Combines them into the total enterprise value
4. Optionally runs the Monte Carlo simulation for a bear/base/optimistic
   breakdown

Usage:
  from astro_valuation.run import run_valuation
  from astro_valuation.scenarios.registry import create_scenario

  result = run_valuation(create_scenario('base'))
  print(f"Total: ${result.total:,.1f}B")
'''

import argparse
from dataclasses import replace
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd

from astro_valuation.data_loader import TamDataLoader
from astro_valuation.domain.errors import require_finite
from astro_valuation.domain.types import projection_frame
from astro_valuation.domain.types import ScenarioInputs
from astro_valuation.domain.types import ValuationResult
from astro_valuation.engine.tam import TamLookupTable
from astro_valuation.models.earth import EarthValuationModel
from astro_valuation.models.mars import MarsOption
from astro_valuation.models.mars import MarsValuationModel
from astro_valuation.scenarios.config import SimulationConfig
from astro_valuation.scenarios.registry import create_scenario
from astro_valuation.scenarios.registry import list_scenarios
from astro_valuation.simulation.monte_carlo import CancellationToken
from astro_valuation.simulation.monte_carlo import MonteCarloSimulator
from astro_valuation.simulation.monte_carlo import SimulationSummary

logger = logging.getLogger(__name__)

# Legacy weighting: total = (earth * EARTH_WEIGHT + mars) / NORMALIZATION
EARTH_WEIGHT = 18.0
NORMALIZATION = 1.0


def combine_total(earth: float, mars: float) -> float:
  '''Total enterprise value from the two business-line values.'''
  return require_finite((earth * EARTH_WEIGHT + mars) / NORMALIZATION,
                        'total enterprise value')


class ValuationOrchestrator:
  '''
  Public valuation pipeline.

  Every entry point is synchronous and side-effect free given its inputs.
  The orchestrator holds only immutable collaborators, so one instance can
  be shared across threads and pickled to worker processes.
  '''

  def __init__(
      self,
      tam_table: Optional[TamLookupTable] = None,
      earth_model: Optional[EarthValuationModel] = None,
      mars_model: Optional[MarsValuationModel] = None,
  ):
    '''
    Initialize the orchestrator.

    Args:
      tam_table: Shared TAM table (default: packaged dataset)
      earth_model: Earth model (default: built on tam_table)
      mars_model: Mars model (default: legacy calibration)
    '''
    if tam_table is None and earth_model is None:
      tam_table = TamDataLoader().load_table()
    self.earth_model = earth_model or EarthValuationModel(tam_table)
    self.mars_model = mars_model or MarsValuationModel()

  def calculate_earth_valuation(self, inputs: ScenarioInputs) -> float:
    '''Earth business value ($B), finite and non-negative.'''
    return require_finite(self.earth_model.value(inputs).value, 'earth value')

  def calculate_mars_valuation(self, inputs: ScenarioInputs) -> float:
    '''Mars program value ($B), finite and non-negative.'''
    return require_finite(self.mars_model.value(inputs).value, 'mars value')

  def calculate_total_enterprise_value(self, inputs: ScenarioInputs) -> float:
    '''Weighted total of the Earth and Mars values ($B).'''
    return combine_total(self.calculate_earth_valuation(inputs),
                         self.calculate_mars_valuation(inputs))

  def calculate_mars_option_value(self, inputs: ScenarioInputs) -> MarsOption:
    '''Uncalibrated real-option decomposition of the Mars program.'''
    return self.mars_model.option_value(inputs)

  def value(self, inputs: ScenarioInputs) -> ValuationResult:
    '''
    Value all business lines with merged diagnostics.

    Returns:
      ValuationResult with earth, mars and total ($B)
    '''
    earth = self.earth_model.value(inputs)
    mars = self.mars_model.value(inputs)
    earth_value = require_finite(earth.value, 'earth value')
    mars_value = require_finite(mars.value, 'mars value')

    diag: Dict[str, Any] = {}
    diag.update(earth.diag)
    diag.update(mars.diag)
    return ValuationResult(
        earth=earth_value,
        mars=mars_value,
        total=combine_total(earth_value, mars_value),
        diag=diag,
    )

  def simulate(
      self,
      inputs: ScenarioInputs,
      config: Optional[SimulationConfig] = None,
      cancel_token: Optional[CancellationToken] = None,
  ) -> ValuationResult:
    '''
    Deterministic valuation plus Monte Carlo breakdown.

    Args:
      inputs: Scenario providing every non-sampled field
      config: SimulationConfig (default: SimulationConfig.default())
      cancel_token: Optional cooperative cancellation token

    Returns:
      ValuationResult whose breakdown holds bear/base/optimistic totals
    '''
    if config is None:
      config = SimulationConfig.default()

    result = self.value(inputs)
    summary: SimulationSummary = MonteCarloSimulator(self).run(
        inputs, config, cancel_token)
    result.breakdown = summary.total
    result.diag.update({f'mc_{k}': v for k, v in summary.to_dict().items()})
    return result

  def earth_projection(self, inputs: ScenarioInputs) -> pd.DataFrame:
    '''Year-by-year Earth projection as a DataFrame.'''
    return projection_frame(self.earth_model.project(inputs))

  def mars_projection(self, inputs: ScenarioInputs) -> pd.DataFrame:
    '''Year-by-year Mars projection as a DataFrame.'''
    return projection_frame(self.mars_model.project(inputs))


def run_valuation(
    inputs: Optional[ScenarioInputs] = None,
    config: Optional[SimulationConfig] = None,
    simulate: bool = False,
    tam_csv: Optional[Path] = None,
) -> ValuationResult:
  '''
  Value a single scenario.

  Args:
    inputs: ScenarioInputs (default: the 'base' scenario)
    config: SimulationConfig used when simulate is True
    simulate: Whether to add the Monte Carlo breakdown
    tam_csv: Optional TAM dataset (default: packaged dataset)

  Returns:
    ValuationResult with diagnostics
  '''
  if inputs is None:
    inputs = create_scenario('base')

  orchestrator = ValuationOrchestrator(
      tam_table=TamDataLoader(tam_csv).load_table())
  if simulate:
    return orchestrator.simulate(inputs, config)
  return orchestrator.value(inputs)


def main() -> None:
  '''CLI entrypoint.'''
  parser = argparse.ArgumentParser(description='Run enterprise valuation')
  parser.add_argument(
      '--scenario',
      type=str,
      default='base',
      choices=list_scenarios(),
      help='Scenario preset',
  )
  parser.add_argument('--inputs-json',
                      type=Path,
                      help='ScenarioInputs JSON file (overrides --scenario)')
  parser.add_argument('--tam-csv',
                      type=Path,
                      help='TAM dataset CSV (default: packaged dataset)')
  parser.add_argument('--simulate',
                      action='store_true',
                      help='Run the Monte Carlo simulation')
  parser.add_argument('--config-json',
                      type=Path,
                      help='SimulationConfig JSON file')
  parser.add_argument('--samples', type=int, help='Number of samples')
  parser.add_argument('--seed', type=int, help='Random seed')
  parser.add_argument('--workers', type=int, help='Worker processes')
  args = parser.parse_args()

  if args.inputs_json:
    inputs = ScenarioInputs.from_json(
        args.inputs_json.read_text(encoding='utf-8'))
    scenario_name = args.inputs_json.stem
  else:
    inputs = create_scenario(args.scenario)
    scenario_name = args.scenario

  if args.config_json:
    config = SimulationConfig.from_json(
        args.config_json.read_text(encoding='utf-8'))
  else:
    config = SimulationConfig.default()
  overrides = {
      'n_samples': args.samples,
      'seed': args.seed,
      'max_workers': args.workers,
  }
  config = replace(config,
                   **{k: v for k, v in overrides.items() if v is not None})

  result = run_valuation(inputs,
                         config=config,
                         simulate=args.simulate,
                         tam_csv=args.tam_csv)

  separator = '=' * 70
  logger.info('\n%s', separator)
  logger.info('Enterprise Valuation - %s', scenario_name)
  logger.info(separator)

  f = inputs.financial
  logger.info('\nFinancial Inputs:')
  logger.info('  Discount Rate (r): %.2f%%', f.discount_rate * 100)
  logger.info('  Terminal Growth (g): %.2f%%', f.terminal_growth * 100)
  logger.info('  Dilution: %.2f%%', f.dilution_factor * 100)

  logger.info('\nValuation Result:')
  logger.info('  Earth: $%.2fB', result.earth)
  logger.info('  Mars: $%.3fB', result.mars)
  logger.info('  Total: $%sB', f'{result.total:,.1f}')
  mars_irr = result.diag.get('mars_irr')
  if mars_irr is not None:
    logger.info('  Mars IRR: %.2f%% (%s)', mars_irr * 100,
                'continue' if result.diag['mars_continue'] else 'abandon')

  if result.breakdown:
    logger.info('\nMonte Carlo (%d samples, %d failed):',
                result.diag['mc_n_samples'], result.diag['mc_n_failed'])
    logger.info('  Bear (P25): $%sB', f'{result.breakdown.bear:,.1f}')
    logger.info('  Base (mean): $%sB', f'{result.breakdown.base:,.1f}')
    logger.info('  Optimistic (P75): $%sB',
                f'{result.breakdown.optimistic:,.1f}')

  logger.info('%s\n', separator)


if __name__ == '__main__':
  logging.basicConfig(
      level=logging.INFO,
      format='%(message)s',
  )
  main()
