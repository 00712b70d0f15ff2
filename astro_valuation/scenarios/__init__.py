"""Scenario presets and simulation configuration."""

from astro_valuation.scenarios.config import SimulationConfig
from astro_valuation.scenarios.registry import create_scenario
from astro_valuation.scenarios.registry import list_scenarios
from astro_valuation.scenarios.registry import SCENARIOS

__all__ = [
    'SimulationConfig',
    'SCENARIOS',
    'create_scenario',
    'list_scenarios',
]
