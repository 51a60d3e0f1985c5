"""ZIP parser: typing, canonical flag and rejects."""

import pandas as pd
import pytest

from asc_registry.exceptions import SchemaMismatchError
from asc_registry.ingestion.contracts import ZIP_GEO_COLUMNS
from asc_registry.ingestion.parsers import parse_zip_file, parse_zip_frame
from asc_registry.ingestion.parsers.zip_parser import parse_county_weights, parse_flag, parse_pipe_list
from tests.helpers import make_zip_row


@pytest.mark.unit
def test_sample_rows_are_typed(zip_frame):
    tampa = zip_frame[zip_frame['zip'] == '33601'].iloc[0]

    assert tampa['population'] == 1000
    assert tampa['density'] == pytest.approx(100.5)
    assert bool(tampa['zcta']) is True
    assert tampa['county_weights'] == {'12057': 100.0}
    assert tampa['state_id'] == 'FL'


@pytest.mark.unit
def test_unknown_population_is_absent(zip_frame):
    anchorage = zip_frame[zip_frame['zip'] == '99501'].iloc[0]
    assert pd.isna(anchorage['population'])


@pytest.mark.unit
def test_invalid_and_duplicate_zips_are_rejected():
    df = pd.DataFrame([
        make_zip_row(zip='33601', city='Tampa', state_id='fl', zcta='TRUE', population='10'),
        make_zip_row(zip='ABCDE', city='Nowhere', state_id='FL', zcta='TRUE', population='10'),
        make_zip_row(zip='33601', city='Tampa Dup', state_id='FL', zcta='TRUE', population='99'),
        make_zip_row(zip='501', city='Holtsville', state_id='NY', zcta='FALSE', population=''),
    ], columns=ZIP_GEO_COLUMNS)

    result = parse_zip_frame(df)

    assert list(result.data['zip']) == ['00501', '33601']
    assert result.data.set_index('zip').loc['33601', 'city'] == 'Tampa'
    assert sorted(result.rejects['reject_reason']) == ['duplicate_zip', 'invalid_zip']
    assert result.metrics['valid_rows'] == 2
    assert result.metrics['reject_rows'] == 2
    assert result.metrics['canonical_rows'] == 1


@pytest.mark.unit
def test_required_columns_only():
    """Optional columns may be missing from the file entirely."""
    content = b"zip,city,state_id,zcta,population\n33601,Tampa,FL,TRUE,1000\n"

    result = parse_zip_file(content)

    assert list(result.data.columns) == ZIP_GEO_COLUMNS
    assert result.data.iloc[0]['county_weights'] == {}
    assert result.data.iloc[0]['county_fips_all'] == []
    assert bool(result.data.iloc[0]['military']) is False


@pytest.mark.unit
def test_missing_required_column():
    content = b"zip,city,state_id,population\n33601,Tampa,FL,1000\n"

    with pytest.raises(SchemaMismatchError) as exc_info:
        parse_zip_file(content)
    assert exc_info.value.missing_columns == ['zcta']


@pytest.mark.unit
@pytest.mark.parametrize("raw,expected", [
    ("TRUE", True), ("true", True), ("1", True), ("FALSE", False), ("", False), (None, False),
])
def test_parse_flag(raw, expected):
    assert parse_flag(raw) is expected


@pytest.mark.unit
def test_parse_county_weights():
    assert parse_county_weights('{"12057": 60, "12103": "40"}') == {'12057': 60.0, '12103': 40.0}
    assert parse_county_weights('not json') == {}
    assert parse_county_weights('[1, 2]') == {}
    assert parse_county_weights('') == {}


@pytest.mark.unit
def test_parse_pipe_list():
    assert parse_pipe_list('Hillsborough|Pasco') == ['Hillsborough', 'Pasco']
    assert parse_pipe_list('') == []
