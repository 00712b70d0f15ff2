"""
Sampling distributions for Monte Carlo inputs.

Each distribution draws one value per call from a numpy Generator and can be
round-tripped through a plain dict ({'kind': ..., **params}) so simulation
configurations stay JSON friendly.

To add a new distribution:
1. Subclass Distribution and implement sample() and params()
2. Register it in DISTRIBUTIONS under its kind name
"""

from abc import ABC
from abc import abstractmethod
from collections.abc import Mapping
from collections.abc import Sequence
from math import exp
from math import log
from typing import Any, Optional

import numpy as np


class Distribution(ABC):
  """Base class for input distributions."""

  kind = ''

  @abstractmethod
  def sample(self, rng: np.random.Generator) -> Any:
    """Draw one value."""

  @abstractmethod
  def params(self) -> dict[str, Any]:
    """Constructor parameters, for serialization."""

  def to_dict(self) -> dict[str, Any]:
    return {'kind': self.kind, **self.params()}

  def __repr__(self) -> str:
    args = ', '.join(f'{k}={v!r}' for k, v in self.params().items())
    return f'{type(self).__name__}({args})'


class Uniform(Distribution):
  """Continuous uniform on [low, high)."""

  kind = 'uniform'

  def __init__(self, low: float, high: float):
    if not low < high:
      raise ValueError(f'uniform requires low < high, got {low}, {high}')
    self.low = float(low)
    self.high = float(high)

  def sample(self, rng: np.random.Generator) -> float:
    return float(rng.uniform(self.low, self.high))

  def params(self) -> dict[str, Any]:
    return {'low': self.low, 'high': self.high}


class Normal(Distribution):
  """Normal distribution, optionally clipped to [low, high]."""

  kind = 'normal'

  def __init__(
      self,
      mean: float,
      std: float,
      low: Optional[float] = None,
      high: Optional[float] = None,
  ):
    if std <= 0:
      raise ValueError(f'normal requires std > 0, got {std}')
    if low is not None and high is not None and low > high:
      raise ValueError(f'normal requires low <= high, got {low}, {high}')
    self.mean = float(mean)
    self.std = float(std)
    self.low = low
    self.high = high

  def sample(self, rng: np.random.Generator) -> float:
    x = float(rng.normal(self.mean, self.std))
    if self.low is not None:
      x = max(self.low, x)
    if self.high is not None:
      x = min(self.high, x)
    return x

  def params(self) -> dict[str, Any]:
    return {
        'mean': self.mean,
        'std': self.std,
        'low': self.low,
        'high': self.high,
    }


class LogNormal(Distribution):
  """
  Log-normal distribution parameterized by its median.

  median * exp(sigma * Z) with Z standard normal; the mean is
  median * exp(sigma^2 / 2).
  """

  kind = 'lognormal'

  def __init__(self, median: float, sigma: float):
    if median <= 0:
      raise ValueError(f'lognormal requires median > 0, got {median}')
    if sigma <= 0:
      raise ValueError(f'lognormal requires sigma > 0, got {sigma}')
    self.median = float(median)
    self.sigma = float(sigma)

  @property
  def mean(self) -> float:
    return self.median * exp(self.sigma**2 / 2)

  def sample(self, rng: np.random.Generator) -> float:
    return float(rng.lognormal(log(self.median), self.sigma))

  def params(self) -> dict[str, Any]:
    return {'median': self.median, 'sigma': self.sigma}


class Triangular(Distribution):
  """Triangular distribution on [low, high] peaking at mode."""

  kind = 'triangular'

  def __init__(self, low: float, mode: float, high: float):
    if not low <= mode <= high or low == high:
      raise ValueError(
          f'triangular requires low <= mode <= high, got {low}, {mode}, {high}')
    self.low = float(low)
    self.mode = float(mode)
    self.high = float(high)

  def sample(self, rng: np.random.Generator) -> float:
    return float(rng.triangular(self.low, self.mode, self.high))

  def params(self) -> dict[str, Any]:
    return {'low': self.low, 'mode': self.mode, 'high': self.high}


class IntegerUniform(Distribution):
  """Discrete uniform over the integers low..high (inclusive)."""

  kind = 'integer_uniform'

  def __init__(self, low: int, high: int):
    if int(low) != low or int(high) != high or low > high:
      raise ValueError(
          f'integer_uniform requires integers low <= high, got {low}, {high}')
    self.low = int(low)
    self.high = int(high)

  def sample(self, rng: np.random.Generator) -> int:
    return int(rng.integers(self.low, self.high + 1))

  def params(self) -> dict[str, Any]:
    return {'low': self.low, 'high': self.high}


class Choice(Distribution):
  """Draw one of a fixed set of values, optionally weighted."""

  kind = 'choice'

  def __init__(
      self,
      values: Sequence[Any],
      weights: Optional[Sequence[float]] = None,
  ):
    if not values:
      raise ValueError('choice requires at least one value')
    if weights is not None:
      if len(weights) != len(values):
        raise ValueError('choice weights must match values')
      total = float(sum(weights))
      if total <= 0 or any(w < 0 for w in weights):
        raise ValueError('choice weights must be non-negative, sum > 0')
      self._p: Optional[np.ndarray] = np.asarray(weights, dtype=float) / total
    else:
      self._p = None
    self.values = list(values)
    self.weights = list(weights) if weights is not None else None

  def sample(self, rng: np.random.Generator) -> Any:
    return self.values[int(rng.choice(len(self.values), p=self._p))]

  def params(self) -> dict[str, Any]:
    return {'values': self.values, 'weights': self.weights}


DISTRIBUTIONS: dict[str, type[Distribution]] = {
    'uniform': Uniform,
    'normal': Normal,
    'lognormal': LogNormal,
    'triangular': Triangular,
    'integer_uniform': IntegerUniform,
    'choice': Choice,
}


def create_distribution(spec: Mapping[str, Any]) -> Distribution:
  """
  Create a distribution from a {'kind': ..., **params} mapping.

  Raises:
    KeyError: If the kind is not found in the registry
    ValueError: If the parameters are missing or invalid
  """
  params = dict(spec)
  kind = params.pop('kind', None)
  try:
    cls = DISTRIBUTIONS[kind]
  except KeyError as e:
    raise KeyError(f"Unknown distribution: '{kind}'. "
                   f'Available: {list(DISTRIBUTIONS.keys())}') from e
  try:
    return cls(**params)
  except TypeError as e:
    raise ValueError(f'Invalid parameters for {kind} distribution: {e}') from e
