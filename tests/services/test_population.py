"""Geo/population joiner: canonical ZIPs only, unknown sums stay unknown."""

import pandas as pd
import pytest

from asc_registry.ingestion.parsers import build_region_definitions
from asc_registry.services.population import build_population_tables, canonical_zips


@pytest.mark.unit
def test_non_canonical_zips_are_excluded(zip_frame):
    zips = canonical_zips(zip_frame)
    assert '33603' not in set(zips['zip'])
    assert len(zips) == 5


@pytest.mark.unit
def test_state_population(population_tables):
    states = population_tables.states.set_index('state_id')

    assert states.loc['FL', 'total_population'] == 6000
    assert states.loc['FL', 'zip_codes'] == 3
    assert states.loc['GA', 'total_population'] == 4000


@pytest.mark.unit
def test_all_unknown_population_is_absent(population_tables):
    """Anchorage has no population figure: the state total is unknown, not 0."""
    states = population_tables.states.set_index('state_id')
    assert pd.isna(states.loc['AK', 'total_population'])


@pytest.mark.unit
def test_region_population_counts_overlapping_regions(population_tables):
    regions = population_tables.regions.set_index('region')

    assert regions.loc['South', 'total_population'] == 10000
    assert regions.loc['Southeast', 'total_population'] == 6000
    assert regions.loc['South', 'states_in_region'] == 2
    assert pd.isna(regions.loc['West', 'total_population'])


@pytest.mark.unit
def test_region_without_zips(zip_frame):
    tables = build_population_tables(zip_frame, build_region_definitions({'Pacific': ['HI']}))
    assert pd.isna(tables.regions.iloc[0]['total_population'])


@pytest.mark.unit
def test_city_population(population_tables):
    cities = population_tables.cities.set_index(['state_id', 'city_name'])
    tampa = cities.loc[('FL', 'Tampa')]

    assert tampa['total_population'] == 3000
    assert tampa['zip_codes'] == 2
    assert tampa['avg_density'] == pytest.approx(150.5)
    assert tampa['city_lat'] == pytest.approx(27.9)
    assert tampa['city_lng'] == pytest.approx(-82.45)


@pytest.mark.unit
def test_city_labels_are_normalized():
    zip_df = pd.DataFrame([{
        'zip': '63101', 'city': "ST. LOUIS", 'state_id': 'MO', 'zcta': True,
        'population': 10, 'density': 1.0, 'lat': 38.6, 'lng': -90.2,
    }])
    tables = build_population_tables(zip_df, [])
    assert tables.cities.iloc[0]['city_name'] == 'St. Louis'


@pytest.mark.unit
def test_empty_zip_table(regions):
    tables = build_population_tables(pd.DataFrame(columns=['zip', 'zcta']), regions)

    assert tables.states.empty
    assert tables.cities.empty
    assert len(tables.regions) == 3
    assert tables.regions['total_population'].isna().all()
