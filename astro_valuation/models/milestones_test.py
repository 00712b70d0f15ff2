import pytest

from astro_valuation.models.milestones import EXPENDABLE_COST_PER_LAUNCH
from astro_valuation.models.milestones import FALCON_PAYLOAD_KG
from astro_valuation.models.milestones import MILESTONES
from astro_valuation.models.milestones import resolve_milestone
from astro_valuation.models.milestones import REUSABLE_COST_PER_LAUNCH


class TestResolveMilestone:
  """Tests for the milestone state table."""

  def test_payload_switches_at_viability_year(self, base_inputs):
    """Falcon payload before the year, Starship payload from it on."""
    earth = base_inputs.with_overrides({
        'earth.starship_commercial_viability_year': 2030
    }).earth

    assert resolve_milestone('commercial_viability', earth,
                             2029) == FALCON_PAYLOAD_KG
    assert resolve_milestone('commercial_viability', earth, 2030) == 75000
    assert resolve_milestone('commercial_viability', earth, 2040) == 75000

  def test_cost_basis_switches_at_reusability_year(self, base_inputs):
    """Expendable cost basis before the year, reusable from it on."""
    earth = base_inputs.earth

    assert resolve_milestone('reusability', earth,
                             2025) == EXPENDABLE_COST_PER_LAUNCH
    assert resolve_milestone('reusability', earth,
                             2026) == REUSABLE_COST_PER_LAUNCH

  def test_reached(self, base_inputs):
    """The switch is current_year >= milestone year, never a blend."""
    milestone = MILESTONES['reusability']

    assert milestone.year(base_inputs.earth) == 2026
    assert not milestone.reached(base_inputs.earth, 2025)
    assert milestone.reached(base_inputs.earth, 2026)

  def test_unknown_milestone(self, base_inputs):
    """Unknown names list the registered milestones."""
    with pytest.raises(KeyError, match='Unknown milestone'):
      resolve_milestone('warp_drive', base_inputs.earth, 2030)
