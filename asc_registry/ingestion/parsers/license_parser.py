"""
Parser for Input A: the raw ASC registry license export.

Every row is kept as text. Malformed values are the normalizers' business;
the parser only guarantees the 21 source fields are present.
"""

from pathlib import Path
from typing import Union

import pandas as pd
import structlog

from asc_registry.ingestion.contracts import RAW_LICENSE_COLUMNS
from asc_registry.ingestion.parsers._parser_kit import (
    ParseResult,
    build_metrics,
    map_headers,
    read_text_table,
)

logger = structlog.get_logger(__name__)

SOURCE_NAME = "asc_licenses"


def parse_license_frame(df: pd.DataFrame) -> ParseResult:
    """Map an already-loaded frame onto the raw license columns."""
    data = map_headers(df, RAW_LICENSE_COLUMNS, RAW_LICENSE_COLUMNS, SOURCE_NAME)
    data = data.astype(object).where(data.notna(), None).reset_index(drop=True)

    rejects = pd.DataFrame(columns=RAW_LICENSE_COLUMNS + ['reject_reason'])
    metrics = build_metrics(len(df), len(data), SOURCE_NAME)
    logger.info("Parsed license rows", **metrics)
    return ParseResult(data=data, rejects=rejects, metrics=metrics)


def parse_license_file(source: Union[str, Path, bytes], sep: str = ',') -> ParseResult:
    """
    Parse a registry export file.

    Raises:
        ParseError: unreadable file
        SchemaMismatchError: one of the 21 source fields is missing
    """
    return parse_license_frame(read_text_table(source, sep=sep))
