"""
State, region, city and company rollups of active license rows.

Every rollup shares the same count block (distinct licenses, distinct
appraisers, per-certification counts) and, where a population denominator
exists, the same ratio block. Ratios with a zero or absent denominator are
absent (NaN in the output frame), never 0, so "no data" never looks like
"0%".
"""

import math
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
import structlog

from asc_registry.config import settings
from asc_registry.ingestion.contracts import CERTIFICATION_BREAKDOWN
from asc_registry.ingestion.parsers.region_parser import RegionDefinition
from asc_registry.services.entity_resolver import market_coverage, years_between
from asc_registry.services.population import PopulationTables

logger = structlog.get_logger(__name__)

COUNT_COLUMNS = [
    'total_licenses',
    'total_appraisers',
    'certified_general_licenses',
    'certified_residential_licenses',
    'licensed_licenses',
    'certified_general_appraisers',
    'certified_residential_appraisers',
    'licensed_appraisers',
]

PCT_COLUMNS = [
    'certified_general_pct',
    'certified_residential_pct',
    'licensed_pct',
    'licenses_per_appraiser',
]

STATE_STATS_COLUMNS = (
    ['state_id'] + COUNT_COLUMNS + ['total_population']
    + ['population_per_appraiser'] + PCT_COLUMNS + ['appraisers_per_100k_pop']
)

REGION_STATS_COLUMNS = (
    ['region'] + COUNT_COLUMNS + ['states_in_region', 'total_population']
    + ['population_per_appraiser'] + PCT_COLUMNS + ['appraisers_per_100k_pop']
)

CITY_STATS_COLUMNS = (
    ['state_id', 'city_name'] + COUNT_COLUMNS + ['total_population', 'zip_codes']
    + ['population_per_appraiser'] + PCT_COLUMNS + ['appraisers_per_100k_pop']
    + ['avg_density', 'city_lat', 'city_lng']
)

COMPANY_STATS_COLUMNS = (
    ['company_name'] + COUNT_COLUMNS
    + ['state_count', 'location_count', 'avg_years_licensed', 'states_present', 'cities_present']
    + PCT_COLUMNS + ['market_coverage', 'company_size']
)


def safe_ratio(numerator: Any, denominator: Any, precision: int = 2) -> Optional[float]:
    """numerator / denominator, or None when either side is absent or the denominator is 0."""
    if numerator is None or denominator is None:
        return None
    if pd.isna(numerator) or pd.isna(denominator) or denominator == 0:
        return None
    return round(float(numerator) / float(denominator), precision)


def company_size(appraisers: int) -> str:
    if appraisers >= 100:
        return 'large'
    if appraisers >= 20:
        return 'medium'
    if appraisers >= 5:
        return 'small'
    return 'micro'


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _name_pairs(rows: pd.DataFrame) -> set:
    named = rows[rows['first_name'].notna() & rows['last_name'].notna()]
    return set(zip(named['first_name'], named['last_name']))


def license_counts(rows: pd.DataFrame) -> Dict[str, int]:
    """
    Shared count block for any group of license rows.

    License totals count distinct license numbers; appraiser totals count
    distinct (first, last) pairs where both names are present. The
    per-certification ``*_licenses`` counts are row counts.
    """
    counts = {
        'total_licenses': int(rows['license_number'].dropna().nunique()),
        'total_appraisers': len(_name_pairs(rows)),
    }
    for prefix, certification in CERTIFICATION_BREAKDOWN.items():
        cert_rows = rows[rows['certification_type'] == certification]
        counts[f'{prefix}_licenses'] = len(cert_rows)
        counts[f'{prefix}_appraisers'] = len(_name_pairs(cert_rows))
    return counts


def certification_ratios(counts: Dict[str, int], precision: int) -> Dict[str, Optional[float]]:
    appraisers = counts['total_appraisers']
    ratios = {
        f'{prefix}_pct': safe_ratio(counts[f'{prefix}_appraisers'] * 100.0, appraisers, precision)
        for prefix in CERTIFICATION_BREAKDOWN
    }
    ratios['licenses_per_appraiser'] = safe_ratio(counts['total_licenses'], appraisers, precision)
    return ratios


def population_ratios(counts: Dict[str, int], population: Any, precision: int) -> Dict[str, Optional[float]]:
    appraisers = counts['total_appraisers']
    return {
        'population_per_appraiser': safe_ratio(population, appraisers, precision),
        'appraisers_per_100k_pop': safe_ratio(appraisers * 100000.0, population, precision),
    }


def _finalize(rows: List[Dict[str, Any]], columns: List[str], keys: List[str]) -> pd.DataFrame:
    frame = pd.DataFrame(rows, columns=columns)
    if frame.empty:
        return frame
    frame = frame.sort_values(
        ['total_appraisers'] + keys,
        ascending=[False] + [True] * len(keys),
        kind='mergesort',
    )
    return frame.reset_index(drop=True)


class Aggregator:
    """Builds the four statistics datasets from normalized license rows."""

    def __init__(
        self,
        as_of: Optional[date] = None,
        active_status: Optional[str] = None,
        precision: Optional[int] = None,
    ):
        self.as_of = as_of
        self.active_status = active_status or settings.active_status
        self.precision = settings.ratio_precision if precision is None else precision

    def active_rows(self, normalized_df: pd.DataFrame) -> pd.DataFrame:
        if normalized_df.empty:
            return normalized_df
        return normalized_df[normalized_df['status_license'] == self.active_status]

    def state_stats(self, normalized_df: pd.DataFrame, population: PopulationTables) -> pd.DataFrame:
        active = self.active_rows(normalized_df)
        state_population = dict(zip(population.states['state_id'], population.states['total_population']))

        rows = []
        if not active.empty:
            for state_id, group in active.dropna(subset=['state_code']).groupby('state_code', sort=True):
                counts = license_counts(group)
                total_population = state_population.get(state_id)
                rows.append({
                    'state_id': state_id,
                    **counts,
                    'total_population': total_population,
                    **population_ratios(counts, total_population, self.precision),
                    **certification_ratios(counts, self.precision),
                })
        return _finalize(rows, STATE_STATS_COLUMNS, ['state_id'])

    def region_stats(
        self,
        normalized_df: pd.DataFrame,
        population: PopulationTables,
        regions: Iterable[RegionDefinition],
    ) -> pd.DataFrame:
        """Regions with no active rows produce no row."""
        active = self.active_rows(normalized_df)
        region_population = dict(zip(population.regions['region'], population.regions['total_population']))

        rows = []
        for definition in regions:
            if active.empty:
                break
            group = active[active['state_code'].isin(sorted(definition.state_ids))]
            if group.empty:
                continue
            counts = license_counts(group)
            total_population = region_population.get(definition.region)
            rows.append({
                'region': definition.region,
                **counts,
                'states_in_region': definition.state_count,
                'total_population': total_population,
                **population_ratios(counts, total_population, self.precision),
                **certification_ratios(counts, self.precision),
            })
        return _finalize(rows, REGION_STATS_COLUMNS, ['region'])

    def city_stats(self, normalized_df: pd.DataFrame, population: PopulationTables) -> pd.DataFrame:
        """
        Inner join on (state code, normalized city name).

        Cities missing from either side are dropped silently, so per-city
        appraiser totals need not add up to the state total.
        """
        active = self.active_rows(normalized_df)
        city_population = {
            (row['state_id'], row['city_name']): row
            for row in population.cities.to_dict('records')
        }

        rows = []
        unmatched = 0
        if not active.empty:
            located = active.dropna(subset=['state_code', 'city_name'])
            for (state_id, city_name), group in located.groupby(['state_code', 'city_name'], sort=True):
                geo = city_population.get((state_id, city_name))
                if geo is None:
                    unmatched += 1
                    continue
                counts = license_counts(group)
                rows.append({
                    'state_id': state_id,
                    'city_name': city_name,
                    **counts,
                    'total_population': geo['total_population'],
                    'zip_codes': geo['zip_codes'],
                    **population_ratios(counts, geo['total_population'], self.precision),
                    **certification_ratios(counts, self.precision),
                    'avg_density': geo['avg_density'],
                    'city_lat': geo['city_lat'],
                    'city_lng': geo['city_lng'],
                })

        if unmatched:
            logger.info("Dropped cities without geo match", cities=unmatched)
        return _finalize(rows, CITY_STATS_COLUMNS, ['state_id', 'city_name'])

    def company_stats(self, normalized_df: pd.DataFrame) -> pd.DataFrame:
        active = self.active_rows(normalized_df)
        as_of = self.as_of or date.today()

        rows = []
        if not active.empty:
            for company_name, group in active.dropna(subset=['company_name']).groupby('company_name', sort=True):
                counts = license_counts(group)
                states = sorted(group['licensing_state'].dropna().unique())
                cities = sorted(group['city_name'].dropna().unique())
                tenures = [
                    years_between(effective, as_of)
                    for effective in group['effective_date']
                    if effective is not None and not pd.isna(effective)
                ]
                rows.append({
                    'company_name': company_name,
                    **counts,
                    'state_count': len(states),
                    'location_count': int(group['zip_code'].dropna().nunique()),
                    'avg_years_licensed': _round_half_up(sum(tenures) / len(tenures)) if tenures else None,
                    'states_present': list(states),
                    'cities_present': list(cities),
                    **certification_ratios(counts, self.precision),
                    'market_coverage': market_coverage(len(states)),
                    'company_size': company_size(counts['total_appraisers']),
                })
        return _finalize(rows, COMPANY_STATS_COLUMNS, ['company_name'])

    def aggregate_all(
        self,
        normalized_df: pd.DataFrame,
        population: PopulationTables,
        regions: Iterable[RegionDefinition],
    ) -> Dict[str, pd.DataFrame]:
        regions = list(regions)
        results = {
            'state_stats': self.state_stats(normalized_df, population),
            'region_stats': self.region_stats(normalized_df, population, regions),
            'city_stats': self.city_stats(normalized_df, population),
            'company_stats': self.company_stats(normalized_df),
        }
        logger.info("Aggregated statistics", **{name: len(df) for name, df in results.items()})
        return results
