"""
Milestone state table.

A milestone is a named year at which a capability becomes available. From
that year on, a different formula branch applies; the switch is hard and
discrete (current_year >= milestone_year), never a blend.

Each entry maps a milestone name to the scenario field holding its year and
a (before_fn, after_fn) pair. Both functions take the EarthInputs and return
the parameter value for that branch.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from astro_valuation.domain.types import EarthInputs

FALCON_PAYLOAD_KG = 17_400.0
EXPENDABLE_COST_PER_LAUNCH = 0.05  # $B
REUSABLE_COST_PER_LAUNCH = 0.015  # $B


@dataclass(frozen=True)
class Milestone:
  """
  One milestone-driven parameter.

  Attributes:
    name: Milestone name
    year_field: EarthInputs attribute holding the milestone year
    before: Parameter value before the milestone year
    after: Parameter value at and after the milestone year
  """
  name: str
  year_field: str
  before: Callable[[EarthInputs], Any]
  after: Callable[[EarthInputs], Any]

  def year(self, inputs: EarthInputs) -> int:
    return getattr(inputs, self.year_field)

  def reached(self, inputs: EarthInputs, current_year: int) -> bool:
    return current_year >= self.year(inputs)

  def resolve(self, inputs: EarthInputs, current_year: int) -> Any:
    if self.reached(inputs, current_year):
      return self.after(inputs)
    return self.before(inputs)


MILESTONES: dict[str, Milestone] = {
    # Payload per launch (kg): Falcon until Starship is commercially viable.
    'commercial_viability':
        Milestone(
            name='commercial_viability',
            year_field='starship_commercial_viability_year',
            before=lambda _: FALCON_PAYLOAD_KG,
            after=lambda e: e.starship_payload_capacity,
        ),
    # First-unit cost per launch ($B): expendable until full reuse.
    'reusability':
        Milestone(
            name='reusability',
            year_field='starship_reusability_year',
            before=lambda _: EXPENDABLE_COST_PER_LAUNCH,
            after=lambda _: REUSABLE_COST_PER_LAUNCH,
        ),
}


def resolve_milestone(name: str, inputs: EarthInputs, current_year: int) -> Any:
  """
  Parameter value of a milestone branch for the given year.

  Raises:
    KeyError: If the milestone name is not registered
  """
  try:
    milestone = MILESTONES[name]
  except KeyError as e:
    raise KeyError(f"Unknown milestone: '{name}'. "
                   f'Available: {list(MILESTONES.keys())}') from e
  return milestone.resolve(inputs, current_year)
