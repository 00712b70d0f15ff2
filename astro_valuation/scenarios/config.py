"""
Simulation configuration for Monte Carlo experiments.

SimulationConfig is a serializable (JSON-friendly) configuration class that
specifies how many samples to draw, how to parallelize them, and which
scenario fields are uncertain (with their sampling distributions).
"""

from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field
import json
from typing import Any, Optional

from astro_valuation.domain.types import field_spec
from astro_valuation.simulation.distributions import create_distribution
from astro_valuation.simulation.distributions import Distribution

EXECUTORS = ('serial', 'thread', 'process')


def _base_case_distributions() -> dict[str, dict[str, Any]]:
  """
  Documented base-case input distributions.

  Calibrated against the legacy 5,000-sample run (mean 2,509.8, P25
  1,710.5, P75 3,112.6). Fields not listed stay at their scenario value.
  """
  return {
      'earth.realized_bandwidth_tam_multiplier': {
          'kind': 'lognormal',
          'median': 0.515,
          'sigma': 0.28,
      },
      'earth.cash_buffer_percent': {
          'kind': 'uniform',
          'low': 0.08,
          'high': 0.12,
      },
      'earth.starship_launches_for_starlink': {
          'kind': 'uniform',
          'low': 0.85,
          'high': 0.95,
      },
      'earth.wrights_law_launch_cost': {
          'kind': 'uniform',
          'low': 0.03,
          'high': 0.07,
      },
      'earth.non_starlink_launch_market_growth': {
          'kind': 'uniform',
          'low': 0.0,
          'high': 0.02,
      },
      'earth.starship_reusability_year': {
          'kind': 'integer_uniform',
          'low': 2025,
          'high': 2027,
      },
      'mars.population_growth': {
          'kind': 'uniform',
          'low': 0.45,
          'high': 0.55,
      },
      'mars.optimus_cost_2026': {
          'kind': 'uniform',
          'low': 40000,
          'high': 60000,
      },
  }


@dataclass
class SimulationConfig:
  """
  Configuration for a Monte Carlo run.

  Attributes:
    name: Human-readable configuration name
    n_samples: Number of samples to draw
    seed: Random seed (None for a fresh, non-reproducible run)
    executor: 'serial', 'thread' or 'process'
    max_workers: Pool size (None lets concurrent.futures decide)
    chunk_size: Samples per work unit; cancellation is checked between
      chunks in process mode
    failure_threshold: Maximum tolerated share of failed samples
    distributions: Dotted field path -> {'kind': ..., **params}
  """
  name: str = 'default'
  n_samples: int = 5000
  seed: Optional[int] = None
  executor: str = 'process'
  max_workers: Optional[int] = None
  chunk_size: int = 250
  failure_threshold: float = 0.10
  distributions: dict[str, dict[str, Any]] = field(
      default_factory=_base_case_distributions)

  def __post_init__(self) -> None:
    if self.n_samples < 1:
      raise ValueError(f'n_samples must be >= 1, got {self.n_samples}')
    if self.chunk_size < 1:
      raise ValueError(f'chunk_size must be >= 1, got {self.chunk_size}')
    if not 0.0 <= self.failure_threshold <= 1.0:
      raise ValueError(
          f'failure_threshold must be in [0, 1], got {self.failure_threshold}')
    if self.executor not in EXECUTORS:
      raise ValueError(f"Unknown executor: '{self.executor}'. "
                       f'Available: {list(EXECUTORS)}')
    for path in self.distributions:
      field_spec(path)
    # Fail fast on malformed distribution specs.
    self.build_distributions()

  @classmethod
  def default(cls) -> 'SimulationConfig':
    """
    Create the legacy base-case simulation.

    Uses:
      - 5,000 samples
      - Base-case distributions of eight uncertain inputs
      - Process pool sized to the machine
    """
    return cls(name='default')

  def build_distributions(self) -> dict[str, Distribution]:
    """Instantiate the configured distributions, keyed by field path."""
    return {
        path: create_distribution(spec)
        for path, spec in self.distributions.items()
    }

  def to_dict(self) -> dict[str, Any]:
    """Convert to dictionary."""
    return asdict(self)

  def to_json(self) -> str:
    """Serialize to JSON string."""
    return json.dumps(self.to_dict(), indent=2)

  @classmethod
  def from_dict(cls, data: dict[str, Any]) -> 'SimulationConfig':
    """Create from dictionary."""
    return cls(**data)

  @classmethod
  def from_json(cls, json_str: str) -> 'SimulationConfig':
    """Create from JSON string."""
    return cls.from_dict(json.loads(json_str))
