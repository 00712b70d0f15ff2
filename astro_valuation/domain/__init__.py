"""Domain types and errors for the valuation engine."""

from astro_valuation.domain.errors import AggregateSimulationFailure
from astro_valuation.domain.errors import DivergentTerminalValue
from astro_valuation.domain.errors import InvalidInput
from astro_valuation.domain.errors import LookupTableEmpty
from astro_valuation.domain.errors import NumericOverflow
from astro_valuation.domain.errors import SimulationCancelled
from astro_valuation.domain.errors import ValuationError
from astro_valuation.domain.types import EarthInputs
from astro_valuation.domain.types import FinancialInputs
from astro_valuation.domain.types import MarsInputs
from astro_valuation.domain.types import ModelOutput
from astro_valuation.domain.types import MonteCarloRun
from astro_valuation.domain.types import ScenarioBreakdown
from astro_valuation.domain.types import ScenarioInputs
from astro_valuation.domain.types import ValuationResult
from astro_valuation.domain.types import YearProjection

__all__ = [
    'ValuationError',
    'InvalidInput',
    'DivergentTerminalValue',
    'LookupTableEmpty',
    'NumericOverflow',
    'AggregateSimulationFailure',
    'SimulationCancelled',
    'EarthInputs',
    'MarsInputs',
    'FinancialInputs',
    'ScenarioInputs',
    'ModelOutput',
    'YearProjection',
    'ScenarioBreakdown',
    'ValuationResult',
    'MonteCarloRun',
]
