"""
Caching loader for the market-sizing (TAM) dataset.

The TAM rows are extracted upstream from the market-sizing source and
shipped as a two-column CSV (key,value). The loader reads them with pandas,
builds the shared read-only TamLookupTable once, and hands the same
instance to every valuation.

Usage:
  loader = TamDataLoader()
  table = loader.load_table()          # packaged dataset
  table = TamDataLoader(Path('my_tam.csv')).load_table()
"""

from importlib import resources
import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from astro_valuation.domain.errors import InvalidInput
from astro_valuation.domain.errors import LookupTableEmpty
from astro_valuation.engine.tam import TamLookupTable

logger = logging.getLogger(__name__)

PACKAGED_TAM_CSV = 'earth_bandwidth_tam.csv'
REQUIRED_COLUMNS = ('key', 'value')


def default_tam_path() -> Path:
  """Path of the TAM dataset shipped with the package."""
  return Path(str(resources.files('astro_valuation') / 'data' /
                  PACKAGED_TAM_CSV))


class TamDataLoader:
  """
  Cached TAM table loader.

  Loads and caches:
  - Raw TAM rows (DataFrame)
  - The TamLookupTable built from them

  This avoids re-reading the CSV for every valuation or simulation.
  """

  def __init__(self, csv_path: Optional[Path] = None):
    """
    Initialize data loader.

    Args:
      csv_path: Path to a key,value CSV (default: packaged dataset)
    """
    self.csv_path = csv_path if csv_path is not None else default_tam_path()

    self._rows: Optional[pd.DataFrame] = None
    self._table: Optional[TamLookupTable] = None

  def load_rows(self) -> pd.DataFrame:
    """
    Load and cache the raw TAM rows.

    Returns:
      DataFrame with float 'key' and 'value' columns, in file order

    Raises:
      FileNotFoundError: If the CSV does not exist
      LookupTableEmpty: If the CSV has no data rows
      InvalidInput: If a column is missing or a cell is not numeric
    """
    if self._rows is not None:
      return self._rows

    if not self.csv_path.exists():
      raise FileNotFoundError(f'TAM dataset not found: {self.csv_path}')

    try:
      rows = pd.read_csv(self.csv_path)
    except pd.errors.EmptyDataError as e:
      raise LookupTableEmpty(f'TAM dataset is empty: {self.csv_path}') from e

    missing = [c for c in REQUIRED_COLUMNS if c not in rows.columns]
    if missing:
      raise InvalidInput(f'tam.{missing[0]}',
                         f'column missing from {self.csv_path}')
    if rows.empty:
      raise LookupTableEmpty(f'TAM dataset has no rows: {self.csv_path}')

    rows = rows[list(REQUIRED_COLUMNS)]
    for column in REQUIRED_COLUMNS:
      numeric = pd.to_numeric(rows[column], errors='coerce')
      bad = numeric.isna()
      if bad.any():
        index = int(bad.to_numpy().nonzero()[0][0])
        raise InvalidInput(f'tam[{index}].{column}',
                           f'not a number: {rows[column].iloc[index]!r}')
      rows = rows.assign(**{column: numeric.astype(float)})

    logger.info('Loaded %d TAM rows from %s', len(rows), self.csv_path)
    self._rows = rows
    return rows

  def load_table(self) -> TamLookupTable:
    """Load and cache the TamLookupTable."""
    if self._table is not None:
      return self._table

    rows = self.load_rows()
    self._table = TamLookupTable.load(
        zip(rows['key'].tolist(), rows['value'].tolist()))
    if len(self._table) < len(rows):
      logger.warning('Dropped %d duplicate TAM keys',
                     len(rows) - len(self._table))
    return self._table

  def clear_cache(self) -> None:
    """Clear cached data to free memory."""
    self._rows = None
    self._table = None
