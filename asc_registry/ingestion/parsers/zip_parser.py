"""
Parser for Input B: ZIP-level geography and population (SimpleMaps uszips layout).

Rows without a usable five-digit ZIP are rejected; everything else is typed:
numbers are coerced (bad values become absent), flags become booleans,
county weights become dicts and the pipe-delimited county lists become lists.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd
import structlog

from asc_registry.ingestion.contracts import ZIP_GEO_COLUMNS, ZIP_GEO_REQUIRED_COLUMNS
from asc_registry.ingestion.normalize.fields import clean_text, normalize_state_code
from asc_registry.ingestion.parsers._parser_kit import (
    ParseResult,
    build_metrics,
    map_headers,
    read_text_table,
)

logger = structlog.get_logger(__name__)

SOURCE_NAME = "uszips"

_TRUE_VALUES = {'true', 't', '1', 'yes', 'y'}
_NUMERIC_COLUMNS = ['lat', 'lng', 'population', 'density']


def parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = clean_text(value)
    return text is not None and text.lower() in _TRUE_VALUES


def parse_county_weights(value: Any) -> Dict[str, float]:
    if isinstance(value, dict):
        return {str(k): float(v) for k, v in value.items()}
    text = clean_text(value)
    if text is None:
        return {}
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return {}
    if not isinstance(parsed, dict):
        return {}
    weights = {}
    for fips, weight in parsed.items():
        try:
            weights[str(fips)] = float(weight)
        except (TypeError, ValueError):
            continue
    return weights


def parse_pipe_list(value: Any) -> List[str]:
    if isinstance(value, list):
        return value
    text = clean_text(value)
    if text is None:
        return []
    return [part.strip() for part in text.split('|') if part.strip()]


def _zip5(value: Any) -> Optional[str]:
    text = clean_text(value)
    if text is None or not text.isdigit() or len(text) > 5:
        return None
    return text.zfill(5)


def parse_zip_frame(df: pd.DataFrame) -> ParseResult:
    """Type an already-loaded ZIP frame."""
    data = map_headers(df, ZIP_GEO_COLUMNS, ZIP_GEO_REQUIRED_COLUMNS, SOURCE_NAME)

    data['zip'] = data['zip'].map(_zip5)
    invalid = data['zip'].isna()
    rejects = data[invalid].copy()
    rejects['reject_reason'] = 'invalid_zip'
    data = data[~invalid].copy()

    for col in _NUMERIC_COLUMNS:
        data[col] = pd.to_numeric(data[col], errors='coerce')

    for col in ['zcta', 'imprecise', 'military']:
        data[col] = data[col].map(parse_flag).astype(bool)

    for col in ['city', 'state_name', 'parent_zcta', 'county_fips', 'county_name', 'timezone']:
        data[col] = data[col].map(clean_text)

    data['state_id'] = data['state_id'].map(normalize_state_code)
    data['county_weights'] = data['county_weights'].map(parse_county_weights)
    data['county_names_all'] = data['county_names_all'].map(parse_pipe_list)
    data['county_fips_all'] = data['county_fips_all'].map(parse_pipe_list)

    data = data.sort_values('zip', kind='mergesort')
    duplicated = data['zip'].duplicated(keep='first')
    if duplicated.any():
        dupes = data[duplicated].copy()
        dupes['reject_reason'] = 'duplicate_zip'
        rejects = pd.concat([rejects, dupes])
        data = data[~duplicated]
    data = data.reset_index(drop=True)

    metrics = build_metrics(len(df), len(data), SOURCE_NAME)
    metrics['canonical_rows'] = int(data['zcta'].sum())
    if len(rejects):
        logger.warning(
            "Rejected ZIP rows",
            rejects=len(rejects),
            reasons=rejects['reject_reason'].value_counts().to_dict(),
        )
    logger.info("Parsed ZIP rows", **metrics)
    return ParseResult(data=data, rejects=rejects.reset_index(drop=True), metrics=metrics)


def parse_zip_file(source: Union[str, Path, bytes], sep: str = ',') -> ParseResult:
    """
    Parse a uszips-style file.

    Raises:
        ParseError: unreadable file
        SchemaMismatchError: zip, city, state_id, zcta or population missing
    """
    return parse_zip_frame(read_text_table(source, sep=sep))
