'''
Batch valuation of several named scenarios.

This module provides tools to:
1. Value several scenario presets at once
2. Compare bear/base/bull outcomes side by side
3. Export results to CSV for further analysis

Usage (CLI):
  python -m astro_valuation.analysis.batch_valuation \
    --scenarios bear base bull \
    --output results/scenarios.csv

  python -m astro_valuation.analysis.batch_valuation \
    --scenarios base bull --simulate --samples 2000 --seed 7 \
    --output results/simulated.csv -v

Usage (Python API):
  from astro_valuation.analysis.batch_valuation import batch_valuation

  df = batch_valuation(['bear', 'base', 'bull'])
  df.to_csv('results.csv', index=False)
'''

import argparse
from dataclasses import replace
import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd

from astro_valuation.data_loader import TamDataLoader
from astro_valuation.domain.errors import ValuationError
from astro_valuation.domain.types import ValuationResult
from astro_valuation.run import ValuationOrchestrator
from astro_valuation.scenarios.config import SimulationConfig
from astro_valuation.scenarios.registry import create_scenario
from astro_valuation.scenarios.registry import list_scenarios

logger = logging.getLogger(__name__)


def _result_to_dict(scenario_name: str, result: ValuationResult) -> dict:
  '''Convert ValuationResult to flat dictionary for DataFrame row.'''
  row = {'scenario': scenario_name}
  row.update(result.to_dict())
  return row


def batch_valuation(
    scenarios: List[str],
    orchestrator: Optional[ValuationOrchestrator] = None,
    simulate: bool = False,
    config: Optional[SimulationConfig] = None,
    verbose: bool = False,
) -> pd.DataFrame:
  '''
  Value several registered scenarios.

  Args:
    scenarios: Scenario names from the registry
    orchestrator: Valuation pipeline (default: packaged TAM dataset)
    simulate: Add the Monte Carlo breakdown to each row
    config: SimulationConfig used when simulate is True
    verbose: Enable verbose logging

  Returns:
    DataFrame with columns:
    - scenario: Scenario name
    - earth, mars, total: Values ($B)
    - bear, base, optimistic: Simulated totals (simulate=True only)
    - ... all model diagnostics ...

  Raises:
    KeyError: If a scenario name is not registered
    ValueError: If no scenario could be valued
  '''
  if orchestrator is None:
    orchestrator = ValuationOrchestrator()

  results = []
  for i, name in enumerate(scenarios, 1):
    inputs = create_scenario(name)
    if verbose:
      logger.info('[%d/%d] Valuing %s...', i, len(scenarios), name)

    try:
      if simulate:
        result = orchestrator.simulate(inputs, config)
      else:
        result = orchestrator.value(inputs)
    except ValuationError as e:
      logger.warning('Failed to value %s: %s', name, e)
      continue

    results.append(_result_to_dict(name, result))
    if verbose:
      logger.info('  Earth: $%.2fB, Mars: $%.3fB, Total: $%.1fB',
                  result.earth, result.mars, result.total)

  if not results:
    raise ValueError(f'No successful results for any scenario in {scenarios}')

  return pd.DataFrame(results)


def _print_summary(df: pd.DataFrame) -> None:
  '''Log a side-by-side comparison of the valued scenarios.'''
  logger.info('')
  logger.info('=' * 70)
  logger.info('Scenario Comparison')
  logger.info('=' * 70)
  for _, row in df.iterrows():
    logger.info('%-8s Earth=$%8.2fB  Mars=$%8.3fB  Total=$%10.1fB',
                row['scenario'], row['earth'], row['mars'], row['total'])
  if 'base' in df.columns:
    logger.info('')
    logger.info('Simulated totals (bear / base / optimistic):')
    for _, row in df.iterrows():
      logger.info('%-8s $%.1fB / $%.1fB / $%.1fB', row['scenario'], row['bear'],
                  row['base'], row['optimistic'])
  logger.info('=' * 70)


def main() -> None:
  '''CLI entrypoint for batch valuation.'''
  parser = argparse.ArgumentParser(
      description='Batch valuation of scenario presets',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog=__doc__,
  )
  parser.add_argument('--scenarios',
                      nargs='+',
                      default=list_scenarios(),
                      choices=list_scenarios(),
                      help='Scenario names (default: all)')
  parser.add_argument('--output',
                      type=Path,
                      required=True,
                      help='Output CSV file path')
  parser.add_argument('--tam-csv',
                      type=Path,
                      help='TAM dataset CSV (default: packaged dataset)')
  parser.add_argument('--simulate',
                      action='store_true',
                      help='Run the Monte Carlo simulation per scenario')
  parser.add_argument('--samples', type=int, help='Number of samples')
  parser.add_argument('--seed', type=int, help='Random seed')
  parser.add_argument('-v',
                      '--verbose',
                      action='store_true',
                      help='Verbose output')

  args = parser.parse_args()

  logging.basicConfig(
      level=logging.DEBUG if args.verbose else logging.INFO,
      format='%(asctime)s [%(levelname)s] %(message)s',
      datefmt='%Y-%m-%d %H:%M:%S',
  )

  config = SimulationConfig.default()
  if args.samples is not None:
    config = replace(config, n_samples=args.samples)
  if args.seed is not None:
    config = replace(config, seed=args.seed)

  orchestrator = ValuationOrchestrator(
      tam_table=TamDataLoader(args.tam_csv).load_table())
  df = batch_valuation(
      scenarios=args.scenarios,
      orchestrator=orchestrator,
      simulate=args.simulate,
      config=config,
      verbose=args.verbose,
  )

  args.output.parent.mkdir(parents=True, exist_ok=True)
  df.to_csv(args.output, index=False)
  logger.info('Saved %d rows to %s', len(df), args.output)

  _print_summary(df)


if __name__ == '__main__':
  main()
