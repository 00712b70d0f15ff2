'''Pure math engine: growth curves, TAM lookup and discounting.'''

from astro_valuation.engine.dcf import (
    compute_enterprise_value,
    compute_present_value,
    compute_terminal_value,
    internal_rate_of_return,
)
from astro_valuation.engine.growth import (
    compound_growth,
    exponential_decline,
    wrights_law,
)
from astro_valuation.engine.tam import TamLookupTable

__all__ = [
    'compute_enterprise_value',
    'compute_present_value',
    'compute_terminal_value',
    'internal_rate_of_return',
    'compound_growth',
    'exponential_decline',
    'wrights_law',
    'TamLookupTable',
]
