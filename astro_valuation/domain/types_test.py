import math

import pandas as pd
import pytest

from astro_valuation.domain.errors import InvalidInput
from astro_valuation.domain.types import field_paths
from astro_valuation.domain.types import field_spec
from astro_valuation.domain.types import FinancialInputs
from astro_valuation.domain.types import MonteCarloRun
from astro_valuation.domain.types import projection_frame
from astro_valuation.domain.types import ScenarioBreakdown
from astro_valuation.domain.types import ScenarioInputs
from astro_valuation.domain.types import ValuationResult
from astro_valuation.domain.types import YearProjection


class TestFieldSpec:
  """Tests for per-field validation."""

  def test_field_count(self):
    """28 fields in three groups."""
    paths = field_paths()

    assert len(paths) == 28
    assert paths[0] == 'earth.starlink_penetration'
    assert paths[-1] == 'financial.dilution_factor'

  def test_unknown_path(self):
    """Unknown paths raise InvalidInput naming the path."""
    with pytest.raises(InvalidInput) as exc_info:
      field_spec('earth.warp_drive')

    assert exc_info.value.field == 'earth.warp_drive'

  def test_open_bounds(self):
    """discount_rate is in (0, 1]: zero is rejected, one accepted."""
    spec = field_spec('financial.discount_rate')

    assert spec.validate('financial.discount_rate', 1) == 1.0
    with pytest.raises(InvalidInput, match=r'outside \(0.0, 1.0\]'):
      spec.validate('financial.discount_rate', 0.0)


class TestScenarioInputsValidation:
  """Tests for ScenarioInputs construction."""

  def test_negative_launch_volume(self, base_inputs):
    """Out-of-range values name the offending field."""
    with pytest.raises(InvalidInput) as exc_info:
      base_inputs.with_overrides({'earth.launch_volume': -1})

    assert exc_info.value.field == 'earth.launch_volume'
    assert 'earth.launch_volume' in str(exc_info.value)

  def test_penetration_above_one(self, base_inputs):
    """Ratios above 1 are rejected."""
    with pytest.raises(InvalidInput, match='earth.starlink_penetration'):
      base_inputs.with_overrides({'earth.starlink_penetration': 1.5})

  def test_nan_rejected(self, base_inputs):
    """NaN is not a valid value for any numeric field."""
    with pytest.raises(InvalidInput, match='must be finite'):
      base_inputs.with_overrides({'mars.population_growth': math.nan})

  def test_bool_rejected_for_number(self, base_inputs):
    """True is not accepted as a number."""
    with pytest.raises(InvalidInput, match='expected a number'):
      base_inputs.with_overrides({'earth.launch_volume': True})

  def test_number_rejected_for_flag(self, base_inputs):
    """industrial_bootstrap must be a real boolean."""
    with pytest.raises(InvalidInput, match='mars.industrial_bootstrap'):
      base_inputs.with_overrides({'mars.industrial_bootstrap': 1})

  def test_fractional_year_rejected(self, base_inputs):
    """Years must be integers."""
    with pytest.raises(InvalidInput, match='integer year'):
      base_inputs.with_overrides({'mars.first_colony_year': 2030.5})

  def test_numeric_normalization(self):
    """Integers for float fields are stored as floats."""
    financial = FinancialInputs(discount_rate=1,
                                terminal_growth=0,
                                dilution_factor=0)

    assert isinstance(financial.discount_rate, float)
    assert financial.discount_rate == 1.0

  def test_missing_field(self, base_inputs):
    """from_dict requires every field."""
    data = base_inputs.to_dict()
    del data['mars']['optimus_cost_2026']

    with pytest.raises(InvalidInput) as exc_info:
      ScenarioInputs.from_dict(data)

    assert exc_info.value.field == 'mars.optimus_cost_2026'

  def test_missing_group(self, base_inputs):
    """from_dict requires all three groups."""
    data = base_inputs.to_dict()
    del data['financial']

    with pytest.raises(InvalidInput, match='financial'):
      ScenarioInputs.from_dict(data)

  def test_unknown_field(self, base_inputs):
    """from_dict rejects fields it does not know."""
    data = base_inputs.to_dict()
    data['earth']['hyperloop_share'] = 0.5

    with pytest.raises(InvalidInput, match='earth.hyperloop_share'):
      ScenarioInputs.from_dict(data)


class TestScenarioInputsOverrides:
  """Tests for get / with_overrides."""

  def test_get(self, base_inputs):
    """Dotted paths resolve to field values."""
    assert base_inputs.get('mars.first_colony_year') == 2030
    assert base_inputs.get('financial.discount_rate') == 0.12

  def test_with_overrides_returns_new_object(self, base_inputs):
    """The original scenario is left unchanged."""
    changed = base_inputs.with_overrides({
        'earth.starlink_penetration': 0.2,
        'financial.discount_rate': 0.10,
    })

    assert changed.get('earth.starlink_penetration') == 0.2
    assert changed.get('financial.discount_rate') == 0.10
    assert base_inputs.get('earth.starlink_penetration') == 0.15
    assert changed.mars is base_inputs.mars

  def test_frozen(self, base_inputs):
    """Fields cannot be assigned after construction."""
    with pytest.raises(AttributeError):
      base_inputs.earth.launch_volume = 10.0

  def test_json_round_trip(self, base_inputs):
    """to_json / from_json reproduce an equal scenario."""
    restored = ScenarioInputs.from_json(base_inputs.to_json())

    assert restored == base_inputs

  def test_invalid_json(self):
    """Malformed JSON raises InvalidInput."""
    with pytest.raises(InvalidInput, match='invalid JSON'):
      ScenarioInputs.from_json('{not json')

  def test_flat_dict(self, base_inputs):
    """to_flat_dict keys are the dotted paths."""
    flat = base_inputs.to_flat_dict()

    assert list(flat) == field_paths()
    assert flat['mars.industrial_bootstrap'] is True


class TestResultTypes:
  """Tests for projection and result containers."""

  def test_projection_frame(self):
    """Projection rows become a year-indexed DataFrame."""
    projection = (
        YearProjection(2025, 10.0, 4.0, 6.0, {'launches': 150.0}),
        YearProjection(2026, 12.0, 5.0, 7.0, {'launches': 187.5}),
    )
    df = projection_frame(projection)

    assert list(df.index) == [2025, 2026]
    assert df.loc[2026, 'cash_flow'] == 7.0
    assert df.loc[2025, 'launches'] == 150.0

  def test_valuation_result_to_dict(self):
    """Breakdown and diagnostics are flattened into one row."""
    result = ValuationResult(
        earth=1.0,
        mars=2.0,
        total=20.0,
        breakdown=ScenarioBreakdown(bear=10.0, base=20.0, optimistic=30.0),
        diag={'mars_irr': 0.4},
    )
    row = result.to_dict()

    assert row['total'] == 20.0
    assert row['bear'] == 10.0
    assert row['optimistic'] == 30.0
    assert row['mars_irr'] == 0.4

  def test_monte_carlo_run_frame(self):
    """to_frame has one row per successful sample."""
    run = MonteCarloRun(
        samples=[ValuationResult(1.0, 2.0, 20.0),
                 ValuationResult(2.0, 3.0, 39.0)],
        failed=1,
    )
    df = run.to_frame()

    assert run.attempted == 3
    assert list(df.columns) == ['earth', 'mars', 'total']
    pd.testing.assert_series_equal(df['total'],
                                   pd.Series([20.0, 39.0], name='total'))
