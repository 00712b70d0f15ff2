'''
Aerospace enterprise valuation engine.

This package values a two-business-line aerospace company (terrestrial
satellite/launch business and Mars colonization program) from a validated
set of scenario inputs: year-by-year projections, discounting with a
terminal perpetuity, and a Monte Carlo bear/base/optimistic breakdown.

Usage:
  from astro_valuation.run import ValuationOrchestrator
  from astro_valuation.scenarios.registry import create_scenario

  orchestrator = ValuationOrchestrator()
  result = orchestrator.value(create_scenario('base'))
'''
