"""
Appraiser entity resolution.

The registry has no national person identifier, so rows are clustered on an
exact (first name, last name, state code) match of the normalized fields.
Spelling variants and people licensed in several states under different
spellings are NOT merged: a person licensed in three states yields three
entities.

``identity_confidence`` grades how consistent the company and phone values
are inside a cluster. It is a heuristic proxy for "these rows are the same
person", trading recall (exact keys only) for precision, and is not an
identity proof.
"""

from collections import OrderedDict
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd
import structlog

from asc_registry.config import settings
from asc_registry.ingestion.contracts import ACTIVE_LICENSE_COLUMNS

logger = structlog.get_logger(__name__)

APPRAISER_ENTITY_COLUMNS = [
    'first_name',
    'last_name',
    'state_code',
    'license_count',
    'licenses',
    'years_licensed',
    'companies',
    'phone_numbers',
    'earliest_license_date',
    'latest_expiration_date',
    'market_coverage',
    'identity_confidence',
]

NATIONAL_THRESHOLD = 10
REGIONAL_THRESHOLD = 3


def market_coverage(count: int) -> str:
    """Coverage tier shared by appraisers (license count) and companies (state count)."""
    if count >= NATIONAL_THRESHOLD:
        return 'national'
    if count >= REGIONAL_THRESHOLD:
        return 'regional'
    return 'local'


def identity_confidence(distinct_companies: int, distinct_phones: int) -> str:
    if distinct_companies == 1 and distinct_phones == 1:
        return 'high'
    if distinct_companies <= 2 and distinct_phones <= 2:
        return 'medium'
    return 'low'


def years_between(start: Optional[date], as_of: date) -> Optional[int]:
    """Whole calendar years from ``start`` to ``as_of`` (age semantics)."""
    if start is None:
        return None
    years = as_of.year - start.year
    if (as_of.month, as_of.day) < (start.month, start.day):
        years -= 1
    return years


def nulls_last(value: Any) -> Tuple[bool, Any]:
    """Sort key placing absent values after present ones."""
    absent = value is None or (not isinstance(value, (str, date)) and pd.isna(value))
    return (absent, '' if absent else value)


def _license_sort_key(license_: Dict[str, Any]):
    return (
        nulls_last(license_['state']),
        nulls_last(license_['certification_type']),
        nulls_last(license_['number']),
        nulls_last(license_['effective_date']),
    )


def _distinct(values: Iterable[Any]) -> List[Any]:
    return sorted(set(v for v in values if v is not None))


class AppraiserResolver:
    """Clusters active license rows into appraiser entities.

    Consumers only depend on ``resolve(frame) -> DataFrame`` with
    APPRAISER_ENTITY_COLUMNS, so a similarity-based resolver can replace
    this one without touching the aggregator or the orchestrator.
    """

    key_columns = ('first_name', 'last_name', 'state_code')

    def __init__(self, as_of: Optional[date] = None, active_status: Optional[str] = None):
        self.as_of = as_of
        self.active_status = active_status or settings.active_status

    def eligible_records(self, normalized_df: pd.DataFrame) -> List[Dict[str, Any]]:
        if normalized_df.empty:
            return []
        mask = (
            (normalized_df['status_license'] == self.active_status)
            & normalized_df['first_name'].notna()
            & normalized_df['last_name'].notna()
        )
        return normalized_df[mask].to_dict('records')

    def group(self, records: List[Dict[str, Any]]) -> "OrderedDict[Tuple, List[Dict[str, Any]]]":
        groups: Dict[Tuple, List[Dict[str, Any]]] = {}
        for record in records:
            key = tuple(record[col] for col in self.key_columns)
            groups.setdefault(key, []).append(record)

        ordered = sorted(
            groups.items(),
            key=lambda item: (
                nulls_last(item[0][2]),
                nulls_last(item[0][1]),
                nulls_last(item[0][0]),
            ),
        )
        return OrderedDict(ordered)

    def build_entity(self, key: Tuple, rows: List[Dict[str, Any]], as_of: date) -> Dict[str, Any]:
        first_name, last_name, state_code = key

        licenses = sorted(
            (
                {
                    'certification_type': row['certification_type'],
                    'state': row['licensing_state'],
                    'number': row['license_number'],
                    'status_license': row['status_license'],
                    'effective_date': row['effective_date'],
                    'expiration_date': row['expiration_date'],
                }
                for row in rows
            ),
            key=_license_sort_key,
        )

        effective_dates = [row['effective_date'] for row in rows if row['effective_date'] is not None]
        expiration_dates = [row['expiration_date'] for row in rows if row['expiration_date'] is not None]
        earliest = min(effective_dates) if effective_dates else None

        companies = _distinct(row['company_name'] for row in rows)
        phone_numbers = _distinct(row['phone_number'] for row in rows)

        return {
            'first_name': first_name,
            'last_name': last_name,
            'state_code': state_code,
            'license_count': len(rows),
            'licenses': licenses,
            'years_licensed': years_between(earliest, as_of),
            'companies': companies,
            'phone_numbers': phone_numbers,
            'earliest_license_date': earliest,
            'latest_expiration_date': max(expiration_dates) if expiration_dates else None,
            'market_coverage': market_coverage(len(rows)),
            'identity_confidence': identity_confidence(len(companies), len(phone_numbers)),
        }

    def resolve(self, normalized_df: pd.DataFrame) -> pd.DataFrame:
        """
        Resolve normalized license rows into appraiser entities.

        Args:
            normalized_df: Output of the record normalization stage

        Returns:
            One row per entity, ordered by state code, last name, first name
        """
        as_of = self.as_of or date.today()
        records = self.eligible_records(normalized_df)
        groups = self.group(records)

        entities = [self.build_entity(key, rows, as_of) for key, rows in groups.items()]
        result = pd.DataFrame(entities, columns=APPRAISER_ENTITY_COLUMNS, dtype=object)

        if len(result):
            confidence = result['identity_confidence'].value_counts().to_dict()
        else:
            confidence = {}
        logger.info(
            "Resolved appraiser entities",
            eligible_rows=len(records),
            entities=len(result),
            confidence=confidence,
        )
        return result


def build_active_licenses(normalized_df: pd.DataFrame, active_status: Optional[str] = None) -> pd.DataFrame:
    """Every active license row, projected to the license-list columns."""
    active_status = active_status or settings.active_status
    if normalized_df.empty:
        return pd.DataFrame(columns=ACTIVE_LICENSE_COLUMNS, dtype=object)
    active = normalized_df[normalized_df['status_license'] == active_status]
    return active[ACTIVE_LICENSE_COLUMNS].reset_index(drop=True)
