import math

import pytest

from astro_valuation.analysis.greeks import default_input_type
from astro_valuation.analysis.greeks import GreeksCalculator
from astro_valuation.domain.errors import InvalidInput
from astro_valuation.scenarios.config import SimulationConfig


@pytest.fixture(scope='module')
def calculator(orchestrator) -> GreeksCalculator:
  return GreeksCalculator(orchestrator)


class TestDefaultInputType:
  """Tests for default_input_type function."""

  def test_categories(self):
    """Bump categories follow the field kind."""
    assert default_input_type('financial.discount_rate') == 'rate'
    assert default_input_type('mars.first_colony_year') == 'time'
    assert default_input_type('earth.launch_volume') == 'absolute'
    assert default_input_type('earth.starlink_penetration') == 'percentage'

  def test_flag(self):
    """Flags have no sensitivity."""
    with pytest.raises(ValueError, match='flag'):
      default_input_type('mars.industrial_bootstrap')


class TestGreeksCalculator:
  """Tests for GreeksCalculator."""

  def test_delta_penetration(self, calculator, base_inputs):
    """Penetration raises Earth value and leaves Mars untouched."""
    delta = calculator.delta(base_inputs, 'earth.starlink_penetration')

    assert delta.earth > 0
    assert delta.mars == 0.0
    assert delta.total == pytest.approx(18 * delta.earth)

  def test_forward_close_to_central(self, orchestrator, base_inputs):
    """Forward and central deltas agree in sign and magnitude."""
    central = GreeksCalculator(orchestrator).delta(
        base_inputs, 'earth.starlink_penetration')
    forward = GreeksCalculator(orchestrator, central=False).delta(
        base_inputs, 'earth.starlink_penetration')

    assert forward.earth == pytest.approx(central.earth, rel=0.1)

  def test_rho_negative(self, calculator, base_inputs):
    """Higher discount rates lower the value."""
    rho = calculator.rho(base_inputs)

    assert rho.earth < 0
    assert rho.total < 0

  def test_theta_negative(self, calculator, base_inputs):
    """A later colony is worth less; Earth is unaffected."""
    theta = calculator.theta(base_inputs)

    assert theta.mars < 0
    assert theta.earth == 0.0

  def test_gamma_finite(self, calculator, base_inputs):
    """Second-order sensitivity is finite."""
    gamma = calculator.gamma(base_inputs, 'mars.population_growth')

    assert math.isfinite(gamma.mars)
    assert math.isfinite(gamma.total)

  def test_bump_out_of_range(self, calculator, base_inputs):
    """A bump leaving the documented range raises InvalidInput."""
    inputs = base_inputs.with_overrides({'earth.starlink_penetration': 0.0})

    with pytest.raises(InvalidInput, match='earth.starlink_penetration'):
      calculator.delta(inputs, 'earth.starlink_penetration')

  def test_custom_bump_size(self, orchestrator):
    """bump_sizes overrides the defaults by input type."""
    calculator = GreeksCalculator(orchestrator, bump_sizes={'rate': 0.005})

    assert calculator.bump_size('rate') == 0.005
    assert calculator.bump_size('percentage') == 0.01
    with pytest.raises(KeyError, match='Unknown input type'):
      calculator.bump_size('duration')

  def test_calculate_all_greeks(self, calculator, base_inputs):
    """Delta/gamma for five inputs plus rho and theta.

    Rows:
    2 Earth inputs x 2 greeks x (earth, total) = 8
    2 Mars inputs x 2 greeks x (mars, total) = 8
    discount rate x 2 greeks x 3 components = 6
    rho x 3 components = 3
    theta x (mars, total) = 2
    Total: 27
    """
    df = calculator.calculate_all_greeks(base_inputs)

    assert len(df) == 27
    assert list(df.columns) == ['greek', 'input', 'component', 'value', 'unit']
    assert set(df['greek']) == {'delta', 'gamma', 'rho', 'theta'}
    assert df['value'].notna().all()


class TestVega:
  """Tests for GreeksCalculator.vega."""

  def test_tam_volatility(self, calculator, base_inputs):
    """A wider TAM realization raises the mean Earth value only.

    The TAM multiplier is median * exp(sigma * Z); with the draws held fixed
    d/dsigma E[m] = E[m Z] = median * sigma * exp(sigma^2 / 2) > 0.
    """
    config = SimulationConfig(n_samples=400, seed=3, executor='serial')
    vega = calculator.vega(base_inputs, config)

    assert vega.earth > 0
    assert vega.mars == 0.0
    assert vega.total == pytest.approx(18 * vega.earth)

  def test_unseeded_config_is_reproducible(self, calculator, base_inputs):
    """Both runs share a seed even when the configuration has none."""
    config = SimulationConfig(n_samples=50, executor='serial')

    assert calculator.vega(base_inputs, config) == calculator.vega(
        base_inputs, config)

  def test_unknown_or_unsuitable_input(self, calculator, base_inputs):
    """Only sampled inputs with a sigma parameter have a vega."""
    config = SimulationConfig(n_samples=10, seed=1, executor='serial')

    with pytest.raises(KeyError, match='Unknown sampled input'):
      calculator.vega(base_inputs, config, 'earth.launch_volume')
    with pytest.raises(KeyError, match='no sigma'):
      calculator.vega(base_inputs, config, 'earth.cash_buffer_percent')
