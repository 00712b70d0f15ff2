from pathlib import Path
from unittest import mock

import pandas as pd
import pytest

from astro_valuation.data_loader import default_tam_path
from astro_valuation.data_loader import TamDataLoader
from astro_valuation.domain.errors import InvalidInput
from astro_valuation.domain.errors import LookupTableEmpty


class TestTamDataLoader:

  def test_initialization(self):
    """Default initialization points at the packaged dataset."""
    loader = TamDataLoader()

    assert loader.csv_path == default_tam_path()
    assert loader.csv_path.name == 'earth_bandwidth_tam.csv'

  def test_custom_path(self):
    """Custom path initialization."""
    loader = TamDataLoader(Path('custom/tam.csv'))

    assert loader.csv_path == Path('custom/tam.csv')

  def test_packaged_dataset(self):
    """The shipped table has 1,000 rows from 1e5 to 1e8."""
    table = TamDataLoader().load_table()

    assert len(table) == 1000
    assert table.min_key == pytest.approx(1e5)
    assert table.max_key == pytest.approx(1e8)
    assert table.lookup(table.min_key) == pytest.approx(1.0)

  def test_load_rows_caching(self):
    """Rows are cached after first load."""
    loader = TamDataLoader()
    mock_rows = pd.DataFrame({'key': [100.0, 200.0], 'value': [1.0, 0.5]})

    with mock.patch.object(Path, 'exists', return_value=True):
      with mock.patch('pandas.read_csv', return_value=mock_rows) as mock_read:
        rows1 = loader.load_rows()
        assert mock_read.call_count == 1

        rows2 = loader.load_rows()
        assert mock_read.call_count == 1

        pd.testing.assert_frame_equal(rows1, rows2)

  def test_load_table_caching(self):
    """The same table instance is returned until the cache is cleared."""
    loader = TamDataLoader()
    mock_rows = pd.DataFrame({'key': [100.0, 200.0], 'value': [1.0, 0.5]})

    with mock.patch.object(Path, 'exists', return_value=True):
      with mock.patch('pandas.read_csv', return_value=mock_rows) as mock_read:
        table1 = loader.load_table()
        table2 = loader.load_table()
        assert table1 is table2

        loader.clear_cache()
        table3 = loader.load_table()
        assert table3 is not table1
        assert mock_read.call_count == 2

  def test_missing_file(self, tmp_path):
    """A missing CSV raises FileNotFoundError."""
    loader = TamDataLoader(tmp_path / 'missing.csv')

    with pytest.raises(FileNotFoundError, match='TAM dataset not found'):
      loader.load_rows()

  def test_empty_file(self, tmp_path):
    """An empty CSV raises LookupTableEmpty."""
    path = tmp_path / 'empty.csv'
    path.write_text('')

    with pytest.raises(LookupTableEmpty):
      TamDataLoader(path).load_table()

  def test_header_only(self, tmp_path):
    """A CSV with a header but no rows raises LookupTableEmpty."""
    path = tmp_path / 'header.csv'
    path.write_text('key,value\n')

    with pytest.raises(LookupTableEmpty):
      TamDataLoader(path).load_table()

  def test_missing_column(self, tmp_path):
    """A CSV without a value column names the column."""
    path = tmp_path / 'bad.csv'
    path.write_text('key,amount\n1,2\n')

    with pytest.raises(InvalidInput) as exc_info:
      TamDataLoader(path).load_rows()

    assert exc_info.value.field == 'tam.value'

  def test_non_numeric_cell(self, tmp_path):
    """Non-numeric cells name the row and column."""
    path = tmp_path / 'text.csv'
    path.write_text('key,value\n1,2\n3,lots\n')

    with pytest.raises(InvalidInput) as exc_info:
      TamDataLoader(path).load_rows()

    assert exc_info.value.field == 'tam[1].value'

  def test_duplicates_dropped(self, tmp_path):
    """Duplicate keys keep the first row."""
    path = tmp_path / 'dup.csv'
    path.write_text('key,value\n1,2\n1,5\n3,4\n')

    table = TamDataLoader(path).load_table()

    assert len(table) == 2
    assert table.lookup(1.0) == 2.0
