'''
Monte Carlo simulation.

Note: import submodules directly; monte_carlo depends on the scenarios
package, which itself imports simulation.distributions:
  from astro_valuation.simulation.monte_carlo import MonteCarloSimulator
  from astro_valuation.simulation.distributions import create_distribution
'''
