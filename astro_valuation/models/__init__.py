"""
Business-line valuation models.

Each model projects yearly cash flows for one business line and returns a
ModelOutput with the calibrated value and its diagnostics.
"""

from astro_valuation.models.earth import EarthValuationModel
from astro_valuation.models.mars import MarsValuationModel

__all__ = [
    'EarthValuationModel',
    'MarsValuationModel',
]
