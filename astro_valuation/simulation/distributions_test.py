import numpy as np
import pytest

from astro_valuation.simulation.distributions import Choice
from astro_valuation.simulation.distributions import create_distribution
from astro_valuation.simulation.distributions import IntegerUniform
from astro_valuation.simulation.distributions import LogNormal
from astro_valuation.simulation.distributions import Normal
from astro_valuation.simulation.distributions import Triangular
from astro_valuation.simulation.distributions import Uniform


@pytest.fixture
def rng() -> np.random.Generator:
  return np.random.default_rng(1234)


class TestDistributions:
  """Tests for the individual distributions."""

  def test_uniform_range(self, rng):
    """Draws stay in [low, high)."""
    dist = Uniform(0.08, 0.12)
    draws = [dist.sample(rng) for _ in range(1000)]

    assert min(draws) >= 0.08
    assert max(draws) < 0.12

  def test_normal_clipped(self, rng):
    """Clipped normal never leaves [low, high]."""
    dist = Normal(0.0, 1.0, low=-0.5, high=0.5)
    draws = [dist.sample(rng) for _ in range(1000)]

    assert min(draws) == -0.5
    assert max(draws) == 0.5

  def test_lognormal_median(self, rng):
    """Half the draws fall below the median."""
    dist = LogNormal(0.515, 0.28)
    draws = np.array([dist.sample(rng) for _ in range(20000)])

    assert np.median(draws) == pytest.approx(0.515, rel=0.02)
    assert dist.mean == pytest.approx(0.515 * np.exp(0.28**2 / 2))
    assert draws.min() > 0

  def test_triangular_range(self, rng):
    """Draws stay in [low, high]."""
    dist = Triangular(1.0, 2.0, 4.0)
    draws = [dist.sample(rng) for _ in range(1000)]

    assert 1.0 <= min(draws)
    assert max(draws) <= 4.0

  def test_integer_uniform_inclusive(self, rng):
    """Both ends are drawn, and only integers."""
    dist = IntegerUniform(2025, 2027)
    draws = {dist.sample(rng) for _ in range(300)}

    assert draws == {2025, 2026, 2027}
    assert all(isinstance(d, int) for d in draws)

  def test_choice_weights(self, rng):
    """Zero-weight values are never drawn."""
    dist = Choice([0.12, 0.03], weights=[1.0, 0.0])

    assert {dist.sample(rng) for _ in range(100)} == {0.12}

  def test_choice_uniform(self, rng):
    """Unweighted choice draws every value."""
    dist = Choice(['a', 'b'])

    assert {dist.sample(rng) for _ in range(100)} == {'a', 'b'}

  def test_same_seed_same_draws(self):
    """Generators with the same seed give identical draws."""
    dist = Uniform(0.0, 1.0)
    a = [dist.sample(np.random.default_rng(7)) for _ in range(3)]
    b = [dist.sample(np.random.default_rng(7)) for _ in range(3)]

    assert a == b

  @pytest.mark.parametrize('factory', [
      lambda: Uniform(1.0, 1.0),
      lambda: Normal(0.0, 0.0),
      lambda: LogNormal(-1.0, 0.2),
      lambda: Triangular(1.0, 5.0, 4.0),
      lambda: IntegerUniform(3, 1),
      lambda: Choice([]),
      lambda: Choice([1, 2], weights=[1.0]),
  ])
  def test_invalid_parameters(self, factory):
    """Degenerate parameters raise ValueError."""
    with pytest.raises(ValueError):
      factory()


class TestCreateDistribution:
  """Tests for the distribution registry."""

  def test_from_spec(self):
    """A {'kind': ..} mapping builds the matching class."""
    dist = create_distribution({'kind': 'uniform', 'low': 0.0, 'high': 0.02})

    assert isinstance(dist, Uniform)
    assert dist.high == 0.02

  def test_to_dict_rebuilds(self):
    """to_dict output is accepted by create_distribution."""
    dist = LogNormal(0.515, 0.28)
    rebuilt = create_distribution(dist.to_dict())

    assert isinstance(rebuilt, LogNormal)
    assert rebuilt.params() == dist.params()

  def test_unknown_kind(self):
    """Unknown kinds list the registered distributions."""
    with pytest.raises(KeyError, match='Unknown distribution'):
      create_distribution({'kind': 'cauchy'})

  def test_bad_parameters(self):
    """Wrong parameter names raise ValueError."""
    with pytest.raises(ValueError, match='Invalid parameters'):
      create_distribution({'kind': 'uniform', 'lo': 0.0, 'hi': 1.0})
