"""
Sensitivity analysis for the enterprise valuation.

This module provides tools to generate 2D sensitivity tables that show how
a valuation metric (total, earth or mars) varies across discount rates and
the values of a second scenario field.

CLI Usage:
  python -m astro_valuation.analysis.sensitivity \\
      --scenario base \\
      --discount-rates 0.10,0.12,0.14 \\
      --param earth.starlink_penetration \\
      --values 0.10,0.15,0.20
"""

import argparse
import logging
from pathlib import Path
from typing import Any

import pandas as pd

from astro_valuation.data_loader import TamDataLoader
from astro_valuation.domain.errors import DivergentTerminalValue
from astro_valuation.domain.types import field_spec
from astro_valuation.domain.types import ScenarioInputs
from astro_valuation.run import ValuationOrchestrator
from astro_valuation.scenarios.registry import create_scenario
from astro_valuation.scenarios.registry import list_scenarios

logger = logging.getLogger(__name__)

METRICS = ('total', 'earth', 'mars')


class SensitivityTableBuilder:
  """
  Build 2D sensitivity tables of a valuation metric.

  Varies the discount rate and one other scenario field while keeping every
  other input at its value in the base scenario.
  """

  def __init__(
      self,
      orchestrator: ValuationOrchestrator,
      base_inputs: ScenarioInputs,
  ):
    """
    Args:
        orchestrator: Valuation pipeline
        base_inputs: Scenario providing every non-varied field
    """
    self.orchestrator = orchestrator
    self.base_inputs = base_inputs

    f = base_inputs.financial
    logger.info('Sensitivity grid around the supplied scenario')
    logger.info('  Discount rate: %.2f%%', f.discount_rate * 100)
    logger.info('  Terminal growth: %.2f%%', f.terminal_growth * 100)
    logger.info('  Dilution: %.2f%%', f.dilution_factor * 100)

  def build(
      self,
      discount_rates: list[float],
      param: str,
      values: list[Any],
      metric: str = 'total',
  ) -> pd.DataFrame:
    """
    Value every (discount rate, param value) pair.

    Args:
        discount_rates: List of discount rates (e.g., [0.10, 0.12, 0.14])
        param: Dotted path of the second field (e.g.,
               'earth.starlink_penetration')
        values: Values of the second field
        metric: 'total', 'earth' or 'mars'

    Returns:
        DataFrame with discount rates as index, param values as columns,
        and the metric ($B) as cell values. Cells where the discount rate
        does not exceed terminal growth are NaN (logged as warnings).
    """
    if not discount_rates:
      raise ValueError('discount_rates cannot be empty')
    if not values:
      raise ValueError('values cannot be empty')
    if metric not in METRICS:
      raise ValueError(f"Unknown metric: '{metric}'. Available: {list(METRICS)}")
    spec = field_spec(param)

    logger.info('Valuing %d x %d grid (%s x %s)', len(discount_rates),
                len(values), 'financial.discount_rate', param)

    data_rows = []
    for r in discount_rates:
      row_data = []
      for v in values:
        inputs = self.base_inputs.with_overrides({
            'financial.discount_rate': r,
            param: v,
        })
        try:
          result = self.orchestrator.value(inputs)
        except DivergentTerminalValue as e:
          logger.warning('r=%.3f, %s=%s: %s', r, param, v, e)
          row_data.append(float('nan'))
          continue
        row_data.append(getattr(result, metric))
      data_rows.append(row_data)

    r_labels = [f'{r:.1%}' for r in discount_rates]
    if spec.kind in ('ratio', 'rate'):
      v_labels = [f'{v:.1%}' for v in values]
    else:
      v_labels = [str(v) for v in values]

    df = pd.DataFrame(data_rows, index=r_labels, columns=v_labels)
    df.index.name = 'Discount Rate'
    df.columns.name = param

    return df


def _parse_float_list(s: str) -> list[float]:
  """'0.1,0.2' -> [0.1, 0.2]."""
  return [float(x.strip()) for x in s.split(',')]


def _frange(start: float, stop: float, step: float) -> list[float]:
  """
  Evenly spaced values from start to stop, both ends included.

  Args:
      start: Start value
      stop: Stop value (inclusive)
      step: Step size

  Returns:
      List of floats from start to stop (inclusive)
  """
  if step <= 0:
    raise ValueError('step must be > 0')
  n = int(round((stop - start) / step))
  if n < 0:
    return []
  return [round(start + k * step, 12) for k in range(n + 1)]


def main() -> None:
  """Print (and optionally save) a sensitivity grid for one scenario."""
  parser = argparse.ArgumentParser(
      description='Enterprise Valuation Sensitivity Analysis',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  # Discount rate x Starlink penetration
  python -m astro_valuation.analysis.sensitivity \\
      --discount-rates 0.10,0.12,0.14 \\
      --param earth.starlink_penetration --values 0.10,0.15,0.20

  # Ranges instead of lists, Mars value only
  python -m astro_valuation.analysis.sensitivity \\
      --discount-min 0.08 --discount-max 0.14 --discount-step 0.02 \\
      --param mars.population_growth \\
      --value-min 0.3 --value-max 0.7 --value-step 0.1 \\
      --metric mars
      """)

  parser.add_argument('--scenario',
                      type=str,
                      default='base',
                      choices=list_scenarios(),
                      help='Scenario preset')

  parser.add_argument('--tam-csv',
                      type=Path,
                      help='TAM dataset CSV (default: packaged dataset)')

  parser.add_argument('--param',
                      type=str,
                      default='earth.starlink_penetration',
                      help='Dotted path of the second field')

  parser.add_argument('--metric',
                      type=str,
                      default='total',
                      choices=list(METRICS),
                      help='Valuation metric')

  parser.add_argument('--discount-rates',
                      type=str,
                      help='Comma-separated discount rates (e.g., 0.10,0.12)')

  parser.add_argument('--values',
                      type=str,
                      help='Comma-separated values of --param')

  # Or an inclusive range per axis
  parser.add_argument('--discount-min',
                      type=float,
                      help='Minimum discount rate')
  parser.add_argument('--discount-max',
                      type=float,
                      help='Maximum discount rate')
  parser.add_argument('--discount-step',
                      type=float,
                      default=0.01,
                      help='Discount rate step (default: 0.01)')

  parser.add_argument('--value-min', type=float, help='Minimum value')
  parser.add_argument('--value-max', type=float, help='Maximum value')
  parser.add_argument('--value-step',
                      type=float,
                      default=0.01,
                      help='Value step (default: 0.01)')

  parser.add_argument('--output', type=Path, help='Output CSV path (optional)')

  parser.add_argument('--verbose',
                      '-v',
                      action='store_true',
                      help='Verbose output')

  args = parser.parse_args()

  logging.basicConfig(
      level=logging.DEBUG if args.verbose else logging.INFO,
      format='%(asctime)s [%(levelname)s] %(message)s',
      datefmt='%Y-%m-%d %H:%M:%S',
  )

  inputs = create_scenario(args.scenario)
  logger.info('Using scenario: %s', args.scenario)

  # Parse discount rates
  if args.discount_rates:
    discount_rates = _parse_float_list(args.discount_rates)
  elif args.discount_min is not None and args.discount_max is not None:
    discount_rates = _frange(args.discount_min, args.discount_max,
                             args.discount_step)
  else:
    discount_rates = [0.10, 0.12, 0.14]
    logger.warning('No discount rates specified, using default: %s',
                   discount_rates)

  # Parse values of the second field
  if args.values:
    values: list[Any] = _parse_float_list(args.values)
  elif args.value_min is not None and args.value_max is not None:
    values = _frange(args.value_min, args.value_max, args.value_step)
  else:
    current = inputs.get(args.param)
    values = [current]
    logger.warning('No values specified, using scenario value: %s', values)
  if field_spec(args.param).kind == 'year':
    values = [int(v) for v in values]

  logger.info('Discount rates: %s', discount_rates)
  logger.info('%s: %s', args.param, values)

  orchestrator = ValuationOrchestrator(
      tam_table=TamDataLoader(args.tam_csv).load_table())
  builder = SensitivityTableBuilder(orchestrator, inputs)

  table = builder.build(
      discount_rates=discount_rates,
      param=args.param,
      values=values,
      metric=args.metric,
  )

  print('\n' + '=' * 80)
  print(f'Sensitivity Analysis: {args.scenario} scenario')
  print('=' * 80)
  print(f'Terminal Growth: {inputs.financial.terminal_growth * 100:.2f}%')
  print(f'Dilution: {inputs.financial.dilution_factor * 100:.2f}%')
  print('\n' + '=' * 80)
  print(f'{args.metric.capitalize()} Value ($B)')
  print('=' * 80)
  print(table.to_string(float_format=lambda x: f'${x:,.1f}'))
  print('=' * 80 + '\n')

  if args.output:
    table.to_csv(args.output)
    logger.info('Wrote %s', args.output)


if __name__ == '__main__':
  main()
