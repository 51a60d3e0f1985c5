"""Geo/population joiner: ZIP rows → state, region and city population denominators"""

from typing import Iterable, NamedTuple

import pandas as pd
import structlog

from asc_registry.ingestion.normalize.fields import normalize_city
from asc_registry.ingestion.parsers.region_parser import RegionDefinition

logger = structlog.get_logger(__name__)

STATE_POPULATION_COLUMNS = ['state_id', 'total_population', 'zip_codes']
REGION_POPULATION_COLUMNS = ['region', 'total_population', 'states_in_region']
CITY_POPULATION_COLUMNS = [
    'state_id',
    'city_name',
    'total_population',
    'zip_codes',
    'avg_density',
    'city_lat',
    'city_lng',
]


class PopulationTables(NamedTuple):
    """Population denominators, one frame per grouping level"""
    states: pd.DataFrame
    regions: pd.DataFrame
    cities: pd.DataFrame


def canonical_zips(zip_df: pd.DataFrame) -> pd.DataFrame:
    """
    Restrict to canonical reporting ZIPs (ZCTA rows).

    Non-ZCTA ZIPs (PO boxes, unique-business ZIPs) overlap ZCTA areas and
    would double-count population.
    """
    if zip_df.empty:
        return zip_df.copy()
    zips = zip_df[zip_df['zcta'].fillna(False).astype(bool)].copy()
    for col in ('population', 'density', 'lat', 'lng'):
        zips[col] = pd.to_numeric(zips[col], errors='coerce')
    return zips


def _sum_population(series: pd.Series):
    # All-unknown sums stay unknown instead of becoming 0
    total = series.sum(min_count=1)
    return None if pd.isna(total) else int(total)


def state_population(zips: pd.DataFrame) -> pd.DataFrame:
    if zips.empty:
        return pd.DataFrame(columns=STATE_POPULATION_COLUMNS)

    grouped = zips.dropna(subset=['state_id']).groupby('state_id', sort=True)
    rows = [
        {
            'state_id': state_id,
            'total_population': _sum_population(group['population']),
            'zip_codes': int(group['zip'].nunique()),
        }
        for state_id, group in grouped
    ]
    return pd.DataFrame(rows, columns=STATE_POPULATION_COLUMNS)


def region_population(zips: pd.DataFrame, regions: Iterable[RegionDefinition]) -> pd.DataFrame:
    """Population per region; a ZIP counts toward every region containing its state."""
    rows = []
    for definition in regions:
        if zips.empty:
            members = zips
        else:
            members = zips[zips['state_id'].isin(sorted(definition.state_ids))]
        rows.append({
            'region': definition.region,
            'total_population': _sum_population(members['population']) if len(members) else None,
            'states_in_region': definition.state_count,
        })
    return pd.DataFrame(rows, columns=REGION_POPULATION_COLUMNS)


def city_population(zips: pd.DataFrame) -> pd.DataFrame:
    """
    Population per (state, city).

    City labels go through the same normalizer as license addresses so the
    join compares like with like.
    """
    if zips.empty:
        return pd.DataFrame(columns=CITY_POPULATION_COLUMNS)

    keyed = zips.assign(city_name=zips['city'].map(normalize_city))
    keyed = keyed.dropna(subset=['state_id', 'city_name'])

    rows = []
    for (state_id, city_name), group in keyed.groupby(['state_id', 'city_name'], sort=True):
        avg_density = group['density'].mean()
        min_lat = group['lat'].min()
        min_lng = group['lng'].min()
        rows.append({
            'state_id': state_id,
            'city_name': city_name,
            'total_population': _sum_population(group['population']),
            'zip_codes': int(group['zip'].nunique()),
            'avg_density': None if pd.isna(avg_density) else round(float(avg_density), 2),
            'city_lat': None if pd.isna(min_lat) else round(float(min_lat), 4),
            'city_lng': None if pd.isna(min_lng) else round(float(min_lng), 4),
        })
    return pd.DataFrame(rows, columns=CITY_POPULATION_COLUMNS)


def build_population_tables(zip_df: pd.DataFrame, regions: Iterable[RegionDefinition]) -> PopulationTables:
    """Build all population denominators from parsed ZIP rows."""
    zips = canonical_zips(zip_df)
    tables = PopulationTables(
        states=state_population(zips),
        regions=region_population(zips, list(regions)),
        cities=city_population(zips),
    )
    logger.info(
        "Built population tables",
        canonical_zips=len(zips),
        states=len(tables.states),
        regions=len(tables.regions),
        cities=len(tables.cities),
    )
    return tables
