"""
Shared parser utilities (internal).

Centralizes the logic every input parser needs so the license and ZIP parsers
cannot drift apart:
- Encoding detection (UTF-8 BOM → UTF-8 → CP1252 → Latin-1)
- Header-driven column mapping with fail-fast required-column checks
- ParseResult return type (data, rejects, metrics)
- Deterministic frame digests
"""

import hashlib
import io
from pathlib import Path
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

import pandas as pd
import structlog

from asc_registry.exceptions import ParseError, SchemaMismatchError
from asc_registry.ingestion.contracts import header_key

logger = structlog.get_logger(__name__)


class ParseResult(NamedTuple):
    """
    Structured parser output.

    Attributes:
        data: Canonical DataFrame (valid rows, canonical column names)
        rejects: Rejected rows with a ``reject_reason`` column (empty if all valid)
        metrics: Parse metrics dict (total_rows, valid_rows, reject_rows, ...)
    """
    data: pd.DataFrame
    rejects: pd.DataFrame
    metrics: Dict[str, Any]


def detect_encoding(content: bytes) -> Tuple[str, bytes]:
    """
    Detect encoding and strip BOM.

    Examples:
        >>> encoding, clean = detect_encoding(b'\\xef\\xbb\\xbfdata')
        >>> encoding
        'utf-8'
        >>> clean
        b'data'
    """
    if content.startswith(b'\xef\xbb\xbf'):  # UTF-8 BOM
        logger.debug("Detected UTF-8 BOM, stripping")
        return 'utf-8', content[3:]

    try:
        content.decode('utf-8')
        return 'utf-8', content
    except UnicodeDecodeError:
        pass

    try:
        content.decode('cp1252')
        logger.debug("Detected CP1252 encoding")
        return 'cp1252', content
    except UnicodeDecodeError:
        pass

    # Latin-1 never fails, maps bytes 1:1
    logger.warning("Falling back to Latin-1 encoding")
    return 'latin-1', content


def read_text_table(source: Union[str, Path, bytes], sep: str = ',') -> pd.DataFrame:
    """
    Read a delimited file as all-string columns.

    Blank cells stay as empty strings (``keep_default_na=False``) so that the
    normalizers, not pandas, decide what counts as absent.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise ParseError(f"Input file not found: {path}")
        content = path.read_bytes()
    else:
        content = source

    encoding, content = detect_encoding(content)
    try:
        return pd.read_csv(
            io.BytesIO(content),
            sep=sep,
            dtype=str,
            keep_default_na=False,
            encoding=encoding,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise ParseError(f"Could not parse delimited input: {e}") from e


def map_headers(
    df: pd.DataFrame,
    expected_columns: Iterable[str],
    required_columns: Iterable[str],
    source: str,
) -> pd.DataFrame:
    """
    Rename source headers onto canonical snake_case columns.

    Headers are compared through ``header_key``, so only the field names
    matter, not their position, case or punctuation. Unknown headers are
    dropped with a warning.

    Raises:
        SchemaMismatchError: if any required column has no matching header
    """
    expected = list(expected_columns)
    expected_keys = {header_key(col): col for col in expected}

    renames: Dict[str, str] = {}
    unexpected: List[str] = []
    for header in df.columns:
        canonical = expected_keys.get(header_key(header))
        if canonical is None:
            unexpected.append(str(header))
        elif canonical not in renames.values():
            renames[header] = canonical

    missing = [col for col in required_columns if col not in renames.values()]
    if missing:
        raise SchemaMismatchError(source, missing)

    if unexpected:
        logger.warning("Ignoring unexpected columns", source=source, columns=unexpected)

    mapped = df[list(renames.keys())].rename(columns=renames)
    return mapped.reindex(columns=expected)


def compute_frame_digest(df: pd.DataFrame) -> str:
    """SHA-256 of a frame's JSON serialization (column order and row order matter)."""
    payload = df.to_json(orient='split', index=False, date_format='iso', default_handler=str)
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


def build_metrics(total_rows: int, valid_rows: int, source: Optional[str] = None) -> Dict[str, Any]:
    reject_rows = total_rows - valid_rows
    return {
        'source': source,
        'total_rows': total_rows,
        'valid_rows': valid_rows,
        'reject_rows': reject_rows,
        'reject_rate': (reject_rows / total_rows) if total_rows else 0.0,
    }
