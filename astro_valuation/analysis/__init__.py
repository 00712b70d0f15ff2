'''
Valuation analysis utilities.

Note: To avoid RuntimeWarning when using -m flag, import directly:
  from astro_valuation.analysis.batch_valuation import batch_valuation
  from astro_valuation.analysis.greeks import GreeksCalculator
  from astro_valuation.analysis.sensitivity import SensitivityTableBuilder
'''
