'''
Domain types for the valuation engine.

These dataclasses provide typed interfaces between components: the models
never read raw dictionaries, and every scenario field is validated once when
ScenarioInputs is constructed.
'''

from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field
from dataclasses import fields
from dataclasses import replace
import json
from math import isfinite
import numbers
from typing import Any, Dict, Generic, List, Mapping, Optional, Tuple, TypeVar

import pandas as pd

from astro_valuation.domain.errors import InvalidInput

T = TypeVar('T')


@dataclass(frozen=True)
class FieldSpec:
  '''
  Documented kind and range of one scenario field.

  Attributes:
    kind: 'ratio', 'rate', 'amount', 'year' or 'flag'
    lo: Lower bound (None for flags)
    hi: Upper bound (None for flags)
    lo_open: Lower bound is exclusive
    hi_open: Upper bound is exclusive
  '''
  kind: str
  lo: Optional[float] = None
  hi: Optional[float] = None
  lo_open: bool = False
  hi_open: bool = False

  def describe(self) -> str:
    left = '(' if self.lo_open else '['
    right = ')' if self.hi_open else ']'
    return f'{left}{self.lo}, {self.hi}{right}'

  def validate(self, path: str, value: Any) -> Any:
    '''Return the normalized value, raising InvalidInput when out of range.'''
    if value is None:
      raise InvalidInput(path, 'required value is missing')

    if self.kind == 'flag':
      if not isinstance(value, bool):
        raise InvalidInput(path, f'expected a boolean, got {value!r}')
      return value

    if isinstance(value, bool):
      raise InvalidInput(path, f'expected a number, got {value!r}')

    if self.kind == 'year':
      if not isinstance(value, numbers.Integral):
        raise InvalidInput(path, f'expected an integer year, got {value!r}')
      value = int(value)
    else:
      if not isinstance(value, numbers.Real):
        raise InvalidInput(path, f'expected a number, got {value!r}')
      value = float(value)
      if not isfinite(value):
        raise InvalidInput(path, f'must be finite, got {value}')

    below = value <= self.lo if self.lo_open else value < self.lo
    above = value >= self.hi if self.hi_open else value > self.hi
    if below or above:
      raise InvalidInput(path, f'{value} outside {self.describe()}')
    return value


RATIO = FieldSpec('ratio', 0.0, 1.0)
DECLINE = FieldSpec('rate', 0.0, 1.0, hi_open=True)
YEAR = FieldSpec('year', 2000, 2100)
FLAG = FieldSpec('flag')

EARTH_FIELDS: Dict[str, FieldSpec] = {
    'starlink_penetration': RATIO,
    'bandwidth_price_decline': DECLINE,
    'launch_volume': FieldSpec('amount', 0.0, 1e5),
    'launch_price_decline': DECLINE,
    'starship_reusability_year': YEAR,
    'starship_commercial_viability_year': YEAR,
    'starship_payload_capacity': FieldSpec('amount', 0.0, 1e6, lo_open=True),
    'max_rocket_production_increase': FieldSpec('rate', 0.0, 5.0),
    'wrights_law_turnaround_time': DECLINE,
    'wrights_law_launch_cost': DECLINE,
    'wrights_law_satellite_gbps': RATIO,
    'realized_bandwidth_tam_multiplier': FieldSpec('ratio',
                                                   0.0,
                                                   10.0,
                                                   lo_open=True),
    'starship_launches_for_starlink': RATIO,
    'non_starlink_launch_market_growth': FieldSpec('rate', -0.5, 1.0),
    'irr_threshold_earth_to_mars': FieldSpec('rate', -1.0, 1.0),
    'cash_buffer_percent': DECLINE,
}

MARS_FIELDS: Dict[str, FieldSpec] = {
    'first_colony_year': YEAR,
    'transport_cost_decline': DECLINE,
    'population_growth': FieldSpec('rate', 0.0, 2.0),
    'industrial_bootstrap': FLAG,
    'optimus_cost_2026': FieldSpec('amount', 0.0, 1e7, lo_open=True),
    'optimus_annual_cost_decline': DECLINE,
    'optimus_productivity_multiplier': FieldSpec('ratio', 0.0, 10.0),
    'optimus_learning_rate': DECLINE,
    'mars_payload_optimus_vs_tooling': RATIO,
}

FINANCIAL_FIELDS: Dict[str, FieldSpec] = {
    'discount_rate': FieldSpec('rate', 0.0, 1.0, lo_open=True),
    'terminal_growth': FieldSpec('rate', -1.0, 1.0, hi_open=True),
    'dilution_factor': DECLINE,
}

FIELD_SPECS: Dict[str, Dict[str, FieldSpec]] = {
    'earth': EARTH_FIELDS,
    'mars': MARS_FIELDS,
    'financial': FINANCIAL_FIELDS,
}


def field_spec(path: str) -> FieldSpec:
  '''Look up the FieldSpec for a dotted path such as "earth.launch_volume".'''
  group, _, name = path.partition('.')
  try:
    return FIELD_SPECS[group][name]
  except KeyError as e:
    raise InvalidInput(path, 'unknown scenario field') from e


def field_paths() -> List[str]:
  '''All dotted field paths, in declaration order.'''
  return [f'{group}.{name}'
          for group, specs in FIELD_SPECS.items()
          for name in specs]


class _ValidatedGroup:
  '''Mixin validating every field of a frozen group dataclass.'''

  GROUP = ''

  def __post_init__(self) -> None:
    specs = FIELD_SPECS[self.GROUP]
    for f in fields(self):  # type: ignore[arg-type]
      path = f'{self.GROUP}.{f.name}'
      value = specs[f.name].validate(path, getattr(self, f.name))
      object.__setattr__(self, f.name, value)

  @classmethod
  def from_dict(cls, data: Mapping[str, Any]):
    '''Create from a mapping; every field is required.'''
    if not isinstance(data, Mapping):
      raise InvalidInput(cls.GROUP, f'expected a mapping, got {data!r}')
    specs = FIELD_SPECS[cls.GROUP]
    unknown = sorted(set(data) - set(specs))
    if unknown:
      raise InvalidInput(f'{cls.GROUP}.{unknown[0]}', 'unknown scenario field')
    for name in specs:
      if name not in data:
        raise InvalidInput(f'{cls.GROUP}.{name}', 'required value is missing')
    return cls(**{name: data[name] for name in specs})


@dataclass(frozen=True)
class EarthInputs(_ValidatedGroup):
  '''
  Terrestrial business drivers (satellite broadband and launch services).

  Attributes:
    starlink_penetration: Share of the broadband TAM captured
    bandwidth_price_decline: Annual decline of bandwidth price
    launch_volume: Launches in the first projected year
    launch_price_decline: Learning rate of launch price per doubling
    starship_reusability_year: First year of reusable-vehicle cost basis
    starship_commercial_viability_year: First year of Starship payload
    starship_payload_capacity: Payload per Starship launch (kg)
    max_rocket_production_increase: Annual launch cadence growth
    wrights_law_turnaround_time: Learning rate of per-launch operating cost
    wrights_law_launch_cost: Learning rate of production cost
    wrights_law_satellite_gbps: Annual growth of satellite Gbps per kg
    realized_bandwidth_tam_multiplier: Share of theoretical TAM realized
    starship_launches_for_starlink: Share of launches flying Starlink
    non_starlink_launch_market_growth: Growth of the external launch market
    irr_threshold_earth_to_mars: Extra return Mars must clear over Earth
    cash_buffer_percent: Cash reserve withheld as a share of revenue
  '''
  GROUP = 'earth'

  starlink_penetration: float
  bandwidth_price_decline: float
  launch_volume: float
  launch_price_decline: float
  starship_reusability_year: int
  starship_commercial_viability_year: int
  starship_payload_capacity: float
  max_rocket_production_increase: float
  wrights_law_turnaround_time: float
  wrights_law_launch_cost: float
  wrights_law_satellite_gbps: float
  realized_bandwidth_tam_multiplier: float
  starship_launches_for_starlink: float
  non_starlink_launch_market_growth: float
  irr_threshold_earth_to_mars: float
  cash_buffer_percent: float


@dataclass(frozen=True)
class MarsInputs(_ValidatedGroup):
  '''
  Mars colonization program drivers.

  Attributes:
    first_colony_year: Year the first 1,000 colonists arrive
    transport_cost_decline: Annual decline of Earth-Mars cost per kg
    population_growth: Annual colony population growth
    industrial_bootstrap: Local manufacturing is available
    optimus_cost_2026: Unit cost of a humanoid robot in 2026 ($)
    optimus_annual_cost_decline: Annual robot cost decline
    optimus_productivity_multiplier: Output added per robot, per colonist
    optimus_learning_rate: Robot cost learning rate per fleet doubling
    mars_payload_optimus_vs_tooling: Share of payload mass that is robots
  '''
  GROUP = 'mars'

  first_colony_year: int
  transport_cost_decline: float
  population_growth: float
  industrial_bootstrap: bool
  optimus_cost_2026: float
  optimus_annual_cost_decline: float
  optimus_productivity_multiplier: float
  optimus_learning_rate: float
  mars_payload_optimus_vs_tooling: float


@dataclass(frozen=True)
class FinancialInputs(_ValidatedGroup):
  '''
  Discounting parameters shared by both business lines.

  Attributes:
    discount_rate: Required return (r)
    terminal_growth: Perpetual growth after the projection (g)
    dilution_factor: Share of enterprise value lost to dilution
  '''
  GROUP = 'financial'

  discount_rate: float
  terminal_growth: float
  dilution_factor: float


@dataclass(frozen=True)
class ScenarioInputs:
  '''
  Immutable scenario value object (28 fields in three groups).

  Variations are derived with with_overrides(), which returns a new,
  validated instance.
  '''
  earth: EarthInputs
  mars: MarsInputs
  financial: FinancialInputs

  def __post_init__(self) -> None:
    for name, cls in (('earth', EarthInputs), ('mars', MarsInputs),
                      ('financial', FinancialInputs)):
      if not isinstance(getattr(self, name), cls):
        raise InvalidInput(name, f'expected {cls.__name__}')

  def get(self, path: str) -> Any:
    '''Value at a dotted path such as "mars.population_growth".'''
    field_spec(path)
    group, _, name = path.partition('.')
    return getattr(getattr(self, group), name)

  def with_overrides(self, overrides: Mapping[str, Any]) -> 'ScenarioInputs':
    '''
    Return a copy with some fields replaced.

    Args:
      overrides: Mapping of dotted path -> new value

    Raises:
      InvalidInput: unknown path or out-of-range value
    '''
    grouped: Dict[str, Dict[str, Any]] = {}
    for path, value in overrides.items():
      field_spec(path)
      group, _, name = path.partition('.')
      grouped.setdefault(group, {})[name] = value
    changes = {
        group: replace(getattr(self, group), **values)
        for group, values in grouped.items()
    }
    return replace(self, **changes)

  def to_dict(self) -> Dict[str, Dict[str, Any]]:
    '''Convert to a nested dictionary.'''
    return asdict(self)

  def to_flat_dict(self) -> Dict[str, Any]:
    '''Convert to a {dotted path: value} dictionary.'''
    return {path: self.get(path) for path in field_paths()}

  def to_json(self) -> str:
    '''Serialize to JSON string.'''
    return json.dumps(self.to_dict(), indent=2)

  @classmethod
  def from_dict(cls, data: Mapping[str, Any]) -> 'ScenarioInputs':
    '''Create from a nested dictionary; every field is required.'''
    if not isinstance(data, Mapping):
      raise InvalidInput('scenario', f'expected a mapping, got {data!r}')
    unknown = sorted(set(data) - set(FIELD_SPECS))
    if unknown:
      raise InvalidInput(unknown[0], 'unknown scenario group')
    for group in FIELD_SPECS:
      if group not in data:
        raise InvalidInput(group, 'required group is missing')
    return cls(
        earth=EarthInputs.from_dict(data['earth']),
        mars=MarsInputs.from_dict(data['mars']),
        financial=FinancialInputs.from_dict(data['financial']),
    )

  @classmethod
  def from_json(cls, json_str: str) -> 'ScenarioInputs':
    '''Create from JSON string.'''
    try:
      data = json.loads(json_str)
    except json.JSONDecodeError as e:
      raise InvalidInput('scenario', f'invalid JSON: {e}') from e
    return cls.from_dict(data)


@dataclass
class ModelOutput(Generic[T]):
  '''
  Standard output from a valuation model.

  Every model returns both a computed value and diagnostic information
  explaining how the value was computed.

  Attributes:
    value: The computed value
    diag: Dictionary of diagnostic information
  '''
  value: T
  diag: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class YearProjection:
  '''
  One projected year of a business line.

  Attributes:
    year: Calendar year
    revenue: Total revenue ($B)
    cost: Total cost ($B)
    cash_flow: revenue - cost ($B)
    components: Named revenue/cost components and drivers
  '''
  year: int
  revenue: float
  cost: float
  cash_flow: float
  components: Dict[str, float] = field(default_factory=dict)

  def to_dict(self) -> Dict[str, float]:
    row: Dict[str, float] = {
        'year': self.year,
        'revenue': self.revenue,
        'cost': self.cost,
        'cash_flow': self.cash_flow,
    }
    row.update(self.components)
    return row


def projection_frame(projection: Tuple[YearProjection, ...]) -> pd.DataFrame:
  '''Year-indexed DataFrame of a projection, one column per component.'''
  df = pd.DataFrame([p.to_dict() for p in projection])
  return df.set_index('year')


@dataclass(frozen=True)
class ScenarioBreakdown:
  '''
  Simulation statistics of one quantity.

  Attributes:
    bear: 25th percentile
    base: Arithmetic mean
    optimistic: 75th percentile
  '''
  bear: float
  base: float
  optimistic: float

  def to_dict(self) -> Dict[str, float]:
    return asdict(self)


@dataclass
class ValuationResult:
  '''
  Complete valuation result with diagnostics.

  Attributes:
    earth: Earth business value ($B)
    mars: Mars program value ($B)
    total: Total enterprise value ($B)
    breakdown: Bear/base/optimistic totals (simulation mode only)
    diag: Merged diagnostics from the models
  '''
  earth: float
  mars: float
  total: float
  breakdown: Optional[ScenarioBreakdown] = None
  diag: Dict[str, Any] = field(default_factory=dict)

  def to_dict(self) -> Dict[str, Any]:
    '''Convert to dictionary for DataFrame creation or persistence.'''
    result: Dict[str, Any] = {
        'earth': self.earth,
        'mars': self.mars,
        'total': self.total,
    }
    if self.breakdown:
      result.update({
          'bear': self.breakdown.bear,
          'base': self.breakdown.base,
          'optimistic': self.breakdown.optimistic,
      })
    result.update(self.diag)
    return result


@dataclass
class MonteCarloRun:
  '''
  Samples collected by one simulation request.

  Attributes:
    samples: Successful per-sample results
    failed: Number of discarded samples
  '''
  samples: List[ValuationResult] = field(default_factory=list)
  failed: int = 0

  @property
  def attempted(self) -> int:
    return len(self.samples) + self.failed

  def to_frame(self) -> pd.DataFrame:
    '''One row per successful sample with earth/mars/total columns.'''
    return pd.DataFrame(
        [{
            'earth': s.earth,
            'mars': s.mars,
            'total': s.total,
        } for s in self.samples],
        columns=['earth', 'mars', 'total'],
    )
