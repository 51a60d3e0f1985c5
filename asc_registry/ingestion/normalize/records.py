"""
Record Normalization Stage

Applies the field normalizers to every raw license row. Rows are independent,
so the frame may be split into chunks and normalized on a thread pool; the
output keeps the input order and has exactly one row per input row.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import pandas as pd
import structlog

from asc_registry.ingestion.contracts import NORMALIZED_LICENSE_COLUMNS, RAW_LICENSE_COLUMNS
from asc_registry.ingestion.normalize.fields import (
    clean_text,
    normalize_address,
    normalize_certification_type,
    normalize_city,
    normalize_company_name,
    normalize_county,
    normalize_date,
    normalize_person_name,
    normalize_phone,
    normalize_state_code,
    normalize_status,
    normalize_zip,
)

logger = structlog.get_logger(__name__)

# Chunks smaller than this are not worth a thread hop
MIN_CHUNK_ROWS = 5000


def normalize_license_record(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize a single raw license record (dict keyed by raw snake_case columns)."""
    phone = normalize_phone(raw.get('telephone_number'))
    licensing_state = normalize_state_code(raw.get('licensing_state'))

    return {
        'licensing_state': licensing_state,
        'license_number': clean_text(raw.get('state_license_number')),
        'first_name': normalize_person_name(raw.get('first_name')),
        'middle_name': normalize_person_name(raw.get('middle_name')),
        'last_name': normalize_person_name(raw.get('last_name')),
        'name_suffix': clean_text(raw.get('name_suffix')),
        'effective_date': normalize_date(raw.get('effective_date_of_license')),
        'expiration_date': normalize_date(raw.get('expiration_date_of_license')),
        'certification_type': normalize_certification_type(raw.get('license_certificate_type')),
        'status_license': normalize_status(raw.get('status')),
        'company_name': normalize_company_name(raw.get('company_name')),
        'phone_number': phone.number if phone else None,
        'phone_extension': phone.extension if phone else None,
        'address_line1': normalize_address(raw.get('street_address')),
        'city_name': normalize_city(raw.get('city')),
        'state_code': normalize_state_code(raw.get('state'), fallback=licensing_state),
        'county_name': normalize_county(raw.get('county')),
        'zip_code': normalize_zip(raw.get('zip_code')),
        'aqb_compliant': clean_text(raw.get('conforms_to_aqb_criteria')),
        'disciplinary_action': clean_text(raw.get('disciplinary_action')),
        'disciplinary_start_date': normalize_date(raw.get('disciplinary_action_effective_date')),
        'disciplinary_end_date': normalize_date(raw.get('disciplinary_action_ending_date')),
    }


def _normalize_chunk(raw_df: pd.DataFrame) -> pd.DataFrame:
    records = raw_df.reindex(columns=RAW_LICENSE_COLUMNS).to_dict('records')
    normalized = [normalize_license_record(record) for record in records]
    return pd.DataFrame(normalized, columns=NORMALIZED_LICENSE_COLUMNS, dtype=object)


def empty_normalized_frame() -> pd.DataFrame:
    return pd.DataFrame(columns=NORMALIZED_LICENSE_COLUMNS, dtype=object)


def normalize_license_frame(raw_df: pd.DataFrame, workers: Optional[int] = 1) -> pd.DataFrame:
    """
    Normalize a frame of raw license rows.

    Args:
        raw_df: Raw license rows with snake_case raw column names
        workers: Thread pool size; 1 normalizes inline

    Returns:
        DataFrame with NORMALIZED_LICENSE_COLUMNS (object dtype, ``None`` for absent)
    """
    if raw_df.empty:
        return empty_normalized_frame()

    workers = max(1, workers or 1)
    chunk_rows = max(MIN_CHUNK_ROWS, -(-len(raw_df) // workers))

    if workers == 1 or len(raw_df) <= chunk_rows:
        result = _normalize_chunk(raw_df)
    else:
        chunks: List[pd.DataFrame] = [
            raw_df.iloc[start:start + chunk_rows]
            for start in range(0, len(raw_df), chunk_rows)
        ]
        with ThreadPoolExecutor(max_workers=workers) as pool:
            parts = list(pool.map(_normalize_chunk, chunks))
        result = pd.concat(parts, ignore_index=True)

    logger.info(
        "Normalized license records",
        rows=len(result),
        workers=workers,
        missing_names=int((result['first_name'].isna() | result['last_name'].isna()).sum()),
        missing_phones=int(result['phone_number'].isna().sum()),
        missing_zips=int(result['zip_code'].isna().sum()),
    )
    return result
