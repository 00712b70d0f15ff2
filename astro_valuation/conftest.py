import pytest

from astro_valuation.data_loader import TamDataLoader
from astro_valuation.domain.types import ScenarioInputs
from astro_valuation.engine.tam import TamLookupTable
from astro_valuation.run import ValuationOrchestrator
from astro_valuation.scenarios.registry import base_scenario


@pytest.fixture(scope='session')
def tam_table() -> TamLookupTable:
  """Packaged TAM dataset (1,000 rows), loaded once per test session."""
  return TamDataLoader().load_table()


@pytest.fixture(scope='session')
def orchestrator(tam_table: TamLookupTable) -> ValuationOrchestrator:
  """Orchestrator calibrated on the legacy base scenario."""
  return ValuationOrchestrator(tam_table=tam_table)


@pytest.fixture
def base_inputs() -> ScenarioInputs:
  """Legacy base scenario."""
  return base_scenario()


@pytest.fixture
def small_tam_table() -> TamLookupTable:
  """Two-row table used for hand-checked interpolation."""
  return TamLookupTable.load([(100.0, 1.0), (200.0, 0.5)])
