"""
Aggregator Tests

Hand-checked rollups of the sample registry, ratio rounding, the
"zero denominator is absent" rule and the city <= state inequality.
"""

import pandas as pd
import pytest

from asc_registry.ingestion.normalize import normalize_license_frame
from asc_registry.services.aggregation import (
    CITY_STATS_COLUMNS,
    COMPANY_STATS_COLUMNS,
    REGION_STATS_COLUMNS,
    STATE_STATS_COLUMNS,
    Aggregator,
    company_size,
    license_counts,
    safe_ratio,
)
from asc_registry.services.population import build_population_tables
from tests.helpers import AS_OF, make_raw_row


@pytest.fixture
def aggregator():
    return Aggregator(as_of=AS_OF)


@pytest.mark.unit
class TestStateStats:
    def test_columns_and_order(self, aggregator, normalized_frame, population_tables):
        stats = aggregator.state_stats(normalized_frame, population_tables)

        assert list(stats.columns) == STATE_STATS_COLUMNS
        assert list(stats['state_id']) == ['FL', 'GA']

    def test_florida(self, aggregator, normalized_frame, population_tables):
        fl = aggregator.state_stats(normalized_frame, population_tables).set_index('state_id').loc['FL']

        assert fl['total_licenses'] == 4
        assert fl['total_appraisers'] == 2
        assert fl['certified_general_licenses'] == 2
        assert fl['certified_residential_licenses'] == 1
        assert fl['licensed_licenses'] == 1
        assert fl['certified_general_appraisers'] == 1
        assert fl['certified_residential_appraisers'] == 1
        assert fl['licensed_appraisers'] == 1
        assert fl['total_population'] == 6000
        assert fl['population_per_appraiser'] == 3000.0
        assert fl['certified_general_pct'] == 50.0
        assert fl['licenses_per_appraiser'] == 2.0
        assert fl['appraisers_per_100k_pop'] == 33.33

    def test_inactive_rows_are_ignored(self, aggregator, normalized_frame, population_tables):
        ga = aggregator.state_stats(normalized_frame, population_tables).set_index('state_id').loc['GA']

        assert ga['total_licenses'] == 1
        assert ga['total_appraisers'] == 1
        assert ga['appraisers_per_100k_pop'] == 25.0

    def test_missing_population_gives_absent_ratios(self, aggregator, population_tables):
        normalized = normalize_license_frame(pd.DataFrame([
            make_raw_row(licensing_state='AK', state_license_number='A1', first_name='Sam', last_name='North',
                         status='Active', city='Anchorage'),
            make_raw_row(licensing_state='TX', state_license_number='T1', first_name='Tex', last_name='Ranger',
                         status='Active'),
        ]))
        stats = aggregator.state_stats(normalized, population_tables).set_index('state_id')

        # AK population is unknown, TX has no ZIP rows at all
        for state in ('AK', 'TX'):
            assert pd.isna(stats.loc[state, 'total_population'])
            assert pd.isna(stats.loc[state, 'population_per_appraiser'])
            assert pd.isna(stats.loc[state, 'appraisers_per_100k_pop'])
            assert stats.loc[state, 'licenses_per_appraiser'] == 1.0


@pytest.mark.unit
def test_zero_appraisers_gives_absent_ratios_not_zero(aggregator, population_tables):
    """A group whose only license has no first name has licenses but no appraisers."""
    normalized = normalize_license_frame(pd.DataFrame([
        make_raw_row(licensing_state='FL', state_license_number='X', last_name='Nameless', status='Active',
                     license_certificate_type='Certified General'),
    ]))
    fl = aggregator.state_stats(normalized, population_tables).iloc[0]

    assert fl['total_licenses'] == 1
    assert fl['total_appraisers'] == 0
    for col in ('population_per_appraiser', 'certified_general_pct', 'certified_residential_pct',
                'licensed_pct', 'licenses_per_appraiser'):
        assert pd.isna(fl[col]), col
    assert fl['appraisers_per_100k_pop'] == 0.0


@pytest.mark.unit
def test_region_stats(aggregator, normalized_frame, population_tables, regions):
    stats = aggregator.region_stats(normalized_frame, population_tables, regions)

    assert list(stats.columns) == REGION_STATS_COLUMNS
    # West (AK) has no active licenses and produces no row
    assert list(stats['region']) == ['South', 'Southeast']

    south = stats.set_index('region').loc['South']
    assert south['total_licenses'] == 5
    assert south['total_appraisers'] == 3
    assert south['states_in_region'] == 2
    assert south['total_population'] == 10000
    assert south['appraisers_per_100k_pop'] == 30.0


@pytest.mark.unit
def test_city_stats(aggregator, normalized_frame, population_tables):
    stats = aggregator.city_stats(normalized_frame, population_tables)

    assert list(stats.columns) == CITY_STATS_COLUMNS
    # "Nowhere" has no geo match and is dropped
    assert list(zip(stats['state_id'], stats['city_name'])) == [('FL', 'Miami'), ('FL', 'Tampa'), ('GA', 'Atlanta')]

    tampa = stats.set_index(['state_id', 'city_name']).loc[('FL', 'Tampa')]
    assert tampa['total_licenses'] == 2
    assert tampa['total_appraisers'] == 1
    assert tampa['total_population'] == 3000
    assert tampa['zip_codes'] == 2
    assert tampa['avg_density'] == pytest.approx(150.5)
    assert tampa['population_per_appraiser'] == 3000.0


@pytest.mark.unit
def test_city_appraisers_never_exceed_state_for_single_city_people(aggregator, normalized_frame, population_tables):
    states = aggregator.state_stats(normalized_frame, population_tables).set_index('state_id')
    cities = aggregator.city_stats(normalized_frame, population_tables)

    city_totals = cities.groupby('state_id')['total_appraisers'].sum()
    for state_id, total in city_totals.items():
        assert total <= states.loc[state_id, 'total_appraisers']


@pytest.mark.unit
def test_company_stats(aggregator, normalized_frame):
    stats = aggregator.company_stats(normalized_frame)

    assert list(stats.columns) == COMPANY_STATS_COLUMNS
    assert list(stats['company_name']) == ['Abc', 'Sunshine Valuation']

    abc = stats.iloc[0]
    assert abc['total_licenses'] == 3
    assert abc['total_appraisers'] == 2
    assert abc['state_count'] == 2
    assert abc['location_count'] == 3
    assert abc['states_present'] == ['FL', 'GA']
    assert abc['cities_present'] == ['Atlanta', 'Tampa']
    # (15 + 10 + 7) / 3 = 10.67
    assert abc['avg_years_licensed'] == 11
    assert abc['certified_general_pct'] == 100.0
    assert abc['certified_residential_pct'] == 50.0
    assert abc['licensed_pct'] == 0.0
    assert abc['licenses_per_appraiser'] == 1.5
    assert abc['market_coverage'] == 'local'
    assert abc['company_size'] == 'micro'


@pytest.mark.unit
def test_company_stats_only_count_active_rows(aggregator):
    normalized = normalize_license_frame(pd.DataFrame([
        make_raw_row(licensing_state='FL', state_license_number='1', first_name='A', last_name='B',
                     status='Active', company_name='Acme'),
        make_raw_row(licensing_state='GA', state_license_number='2', first_name='C', last_name='D',
                     status='Expired', company_name='Acme'),
    ]))
    acme = aggregator.company_stats(normalized).iloc[0]

    assert acme['total_licenses'] == 1
    assert acme['states_present'] == ['FL']


@pytest.mark.unit
def test_company_coverage_counts_licensing_states(aggregator):
    """Appraisers living in one state but licensed in four make a regional firm."""
    normalized = normalize_license_frame(pd.DataFrame([
        make_raw_row(licensing_state=licensing_state, state_license_number=f'W{i}', first_name='Pat',
                     last_name='Lee', status='Active', company_name='Westfield Appraisal', state='TX',
                     city='Dallas')
        for i, licensing_state in enumerate(['TX', 'OK', 'NM', 'LA'])
    ]))
    westfield = aggregator.company_stats(normalized).iloc[0]

    assert westfield['state_count'] == 4
    assert westfield['states_present'] == ['LA', 'NM', 'OK', 'TX']
    assert westfield['market_coverage'] == 'regional'
    assert westfield['cities_present'] == ['Dallas']


@pytest.mark.unit
@pytest.mark.parametrize("appraisers,expected", [(1, 'micro'), (5, 'small'), (19, 'small'), (20, 'medium'), (100, 'large')])
def test_company_size(appraisers, expected):
    assert company_size(appraisers) == expected


@pytest.mark.unit
def test_safe_ratio():
    assert safe_ratio(1, 3) == 0.33
    assert safe_ratio(1, 3, precision=4) == 0.3333
    assert safe_ratio(1, 0) is None
    assert safe_ratio(None, 3) is None
    assert safe_ratio(1, float('nan')) is None


@pytest.mark.unit
def test_ratio_precision_is_configurable(normalized_frame, population_tables):
    stats = Aggregator(as_of=AS_OF, precision=4).state_stats(normalized_frame, population_tables)
    assert stats.set_index('state_id').loc['FL', 'appraisers_per_100k_pop'] == 33.3333


@pytest.mark.unit
def test_license_counts_distinct_people(normalized_frame):
    active = normalized_frame[normalized_frame['status_license'] == 'Active']
    counts = license_counts(active)

    assert counts['total_licenses'] == 5
    assert counts['total_appraisers'] == 3


@pytest.mark.unit
def test_ties_are_ordered_by_key(aggregator, population_tables):
    normalized = normalize_license_frame(pd.DataFrame([
        make_raw_row(licensing_state='GA', state_license_number='1', first_name='A', last_name='B', status='Active'),
        make_raw_row(licensing_state='FL', state_license_number='2', first_name='C', last_name='D', status='Active'),
    ]))
    stats = aggregator.state_stats(normalized, population_tables)
    assert list(stats['state_id']) == ['FL', 'GA']


@pytest.mark.unit
def test_no_active_rows(aggregator, population_tables, regions):
    normalized = normalize_license_frame(pd.DataFrame([make_raw_row(status='Inactive')]))
    results = aggregator.aggregate_all(normalized, population_tables, regions)

    assert set(results) == {'state_stats', 'region_stats', 'city_stats', 'company_stats'}
    assert all(df.empty for df in results.values())
    assert list(results['company_stats'].columns) == COMPANY_STATS_COLUMNS


@pytest.mark.unit
def test_empty_population_tables(aggregator, normalized_frame, regions):
    tables = build_population_tables(pd.DataFrame(columns=['zip', 'zcta']), regions)
    stats = aggregator.state_stats(normalized_frame, tables)

    assert stats['total_population'].isna().all()
    assert aggregator.city_stats(normalized_frame, tables).empty
