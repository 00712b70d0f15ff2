"""
Monte Carlo simulation of the full valuation pipeline.

Each sample resamples every configured uncertain input independently,
applies the draws to the scenario and runs the orchestrator. Samples are
grouped into chunks; each chunk owns a numpy Generator spawned from one
SeedSequence, so a seeded run gives identical results whatever the
executor or worker count.

Statistics over the sampled values:
  bear: 25th percentile
  base: arithmetic mean (legacy behaviour, not the median)
  optimistic: 75th percentile

A sample that raises ValuationError is discarded. The run fails with
AggregateSimulationFailure when the discarded share exceeds the configured
threshold.
"""

from concurrent.futures import as_completed
from concurrent.futures import Future
from concurrent.futures import ProcessPoolExecutor
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import logging
import threading
from typing import Any, Optional, Protocol

import numpy as np

from astro_valuation.domain.errors import AggregateSimulationFailure
from astro_valuation.domain.errors import SimulationCancelled
from astro_valuation.domain.errors import ValuationError
from astro_valuation.domain.types import MonteCarloRun
from astro_valuation.domain.types import ScenarioBreakdown
from astro_valuation.domain.types import ScenarioInputs
from astro_valuation.domain.types import ValuationResult
from astro_valuation.scenarios.config import SimulationConfig
from astro_valuation.simulation.distributions import Distribution

logger = logging.getLogger(__name__)


class Valuer(Protocol):
  """Anything that values a scenario (the orchestrator)."""

  def value(self, inputs: ScenarioInputs) -> ValuationResult:
    ...


class CancellationToken:
  """
  Cooperative cancellation flag shared with a running simulation.

  The simulator checks the token between samples (serial and thread
  executors) or between chunks (process executor).
  """

  def __init__(self):
    self._event = threading.Event()

  def cancel(self) -> None:
    self._event.set()

  @property
  def cancelled(self) -> bool:
    return self._event.is_set()

  def raise_if_cancelled(self) -> None:
    if self._event.is_set():
      raise SimulationCancelled('simulation cancelled')


@dataclass(frozen=True)
class SimulationSummary:
  """
  Summary statistics of a Monte Carlo run.

  Attributes:
    total: Bear/base/optimistic of total enterprise value
    earth: Bear/base/optimistic of the Earth value
    mars: Bear/base/optimistic of the Mars value
    n_samples: Successful samples
    n_failed: Discarded samples
    median: Median total (reported beside the mean-based base case)
    std: Standard deviation of the total
    minimum: Smallest total
    maximum: Largest total
  """
  total: ScenarioBreakdown
  earth: ScenarioBreakdown
  mars: ScenarioBreakdown
  n_samples: int
  n_failed: int
  median: float
  std: float
  minimum: float
  maximum: float

  def to_dict(self) -> dict[str, Any]:
    result: dict[str, Any] = {
        'n_samples': self.n_samples,
        'n_failed': self.n_failed,
        'median': self.median,
        'std': self.std,
        'min': self.minimum,
        'max': self.maximum,
    }
    for name in ('total', 'earth', 'mars'):
      breakdown: ScenarioBreakdown = getattr(self, name)
      result.update(
          {f'{name}_{k}': v for k, v in breakdown.to_dict().items()})
    return result


def summarize(values: np.ndarray) -> ScenarioBreakdown:
  """
  Bear/base/optimistic statistics of sampled values.

  Percentiles use linear interpolation between order statistics, the same
  rule as the spreadsheet QUARTILE function.
  """
  if len(values) == 0:
    raise ValueError('cannot summarize an empty sample')
  return ScenarioBreakdown(
      bear=float(np.percentile(values, 25)),
      base=float(np.mean(values)),
      optimistic=float(np.percentile(values, 75)),
  )


@dataclass
class _ChunkResult:
  samples: list[ValuationResult]
  failed: int
  last_error: Optional[str]


def _simulate_chunk(
    valuer: Valuer,
    inputs: ScenarioInputs,
    distributions: dict[str, Distribution],
    seed: np.random.SeedSequence,
    n_samples: int,
    cancel_token: Optional[CancellationToken] = None,
) -> _ChunkResult:
  """Run n_samples draws with a generator built from seed."""
  rng = np.random.default_rng(seed)
  samples: list[ValuationResult] = []
  failed = 0
  last_error = None

  for _ in range(n_samples):
    if cancel_token is not None:
      cancel_token.raise_if_cancelled()

    draws = {path: dist.sample(rng) for path, dist in distributions.items()}
    try:
      result = valuer.value(inputs.with_overrides(draws))
    except ValuationError as e:
      failed += 1
      last_error = f'{type(e).__name__}: {e}'
      logger.debug('Discarding sample %s: %s', draws, last_error)
      continue
    samples.append(
        ValuationResult(earth=result.earth, mars=result.mars,
                        total=result.total))

  return _ChunkResult(samples=samples, failed=failed, last_error=last_error)


class MonteCarloSimulator:
  """
  Repeats the valuation pipeline over resampled inputs.

  Usage:
    simulator = MonteCarloSimulator(orchestrator)
    summary = simulator.run(base_scenario(), SimulationConfig(seed=42))
    print(summary.total.bear, summary.total.base, summary.total.optimistic)
  """

  def __init__(self, valuer: Valuer):
    """
    Args:
      valuer: Object whose value(inputs) returns a ValuationResult. It is
        shared by every worker (pickled once per chunk in process mode), so
        it must be immutable.
    """
    self.valuer = valuer

  def sample(
      self,
      inputs: ScenarioInputs,
      config: SimulationConfig,
      cancel_token: Optional[CancellationToken] = None,
  ) -> MonteCarloRun:
    """
    Draw config.n_samples samples.

    Returns:
      MonteCarloRun with the successful samples in chunk order

    Raises:
      SimulationCancelled: cancel_token was triggered; partial results are
        discarded
      AggregateSimulationFailure: too many samples failed
    """
    distributions = config.build_distributions()
    sizes = [config.chunk_size] * (config.n_samples // config.chunk_size)
    if config.n_samples % config.chunk_size:
      sizes.append(config.n_samples % config.chunk_size)
    seeds = np.random.SeedSequence(config.seed).spawn(len(sizes))

    logger.info('Simulating %d samples (%d chunks, executor=%s, seed=%s)',
                config.n_samples, len(sizes), config.executor, config.seed)

    if cancel_token is not None:
      cancel_token.raise_if_cancelled()

    if config.executor == 'serial':
      chunks = [
          _simulate_chunk(self.valuer, inputs, distributions, seed, size,
                          cancel_token) for seed, size in zip(seeds, sizes)
      ]
    else:
      chunks = self._sample_parallel(inputs, config, distributions, seeds,
                                     sizes, cancel_token)

    run = MonteCarloRun()
    last_error = None
    for chunk in chunks:
      run.samples.extend(chunk.samples)
      run.failed += chunk.failed
      last_error = chunk.last_error or last_error

    if run.failed:
      logger.warning('Discarded %d of %d samples (last error: %s)',
                     run.failed, run.attempted, last_error)
    failure_rate = run.failed / run.attempted
    if not run.samples or failure_rate > config.failure_threshold:
      raise AggregateSimulationFailure(run.failed, run.attempted,
                                       config.failure_threshold, last_error)
    return run

  def _sample_parallel(
      self,
      inputs: ScenarioInputs,
      config: SimulationConfig,
      distributions: dict[str, Distribution],
      seeds: list[np.random.SeedSequence],
      sizes: list[int],
      cancel_token: Optional[CancellationToken],
  ) -> list[_ChunkResult]:
    """Dispatch chunks to a pool, keeping results in chunk order."""
    if config.executor == 'process':
      pool_cls: Any = ProcessPoolExecutor
      # Events do not cross process boundaries; the parent polls instead.
      worker_token = None
    else:
      pool_cls = ThreadPoolExecutor
      worker_token = cancel_token

    results: list[Optional[_ChunkResult]] = [None] * len(sizes)
    with pool_cls(max_workers=config.max_workers) as executor:
      futures: dict[Future, int] = {
          executor.submit(_simulate_chunk, self.valuer, inputs, distributions,
                          seed, size, worker_token): i
          for i, (seed, size) in enumerate(zip(seeds, sizes))
      }
      try:
        for future in as_completed(futures):
          if cancel_token is not None:
            cancel_token.raise_if_cancelled()
          results[futures[future]] = future.result()
          logger.debug('Chunk %d/%d done', futures[future] + 1, len(sizes))
      except BaseException:
        for future in futures:
          future.cancel()
        raise

    return [r for r in results if r is not None]

  def run(
      self,
      inputs: ScenarioInputs,
      config: SimulationConfig,
      cancel_token: Optional[CancellationToken] = None,
  ) -> SimulationSummary:
    """
    Simulate and reduce the samples to summary statistics.

    Args:
      inputs: Scenario providing every non-sampled field
      config: Simulation configuration
      cancel_token: Optional cooperative cancellation token

    Returns:
      SimulationSummary for total, Earth and Mars values
    """
    frame = self.sample(inputs, config, cancel_token).to_frame()
    failed = config.n_samples - len(frame)
    totals = frame['total'].to_numpy()

    summary = SimulationSummary(
        total=summarize(totals),
        earth=summarize(frame['earth'].to_numpy()),
        mars=summarize(frame['mars'].to_numpy()),
        n_samples=len(frame),
        n_failed=failed,
        median=float(np.median(totals)),
        std=float(np.std(totals)),
        minimum=float(np.min(totals)),
        maximum=float(np.max(totals)),
    )
    logger.info('Simulation done: bear=%.1f base=%.1f optimistic=%.1f (%d ok, '
                '%d failed)', summary.total.bear, summary.total.base,
                summary.total.optimistic, summary.n_samples, summary.n_failed)
    return summary
