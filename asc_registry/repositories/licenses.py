"""Store for raw license rows (table ``asc_data``)"""

from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional

import pandas as pd
import structlog
from sqlalchemy.orm import Session, sessionmaker

from asc_registry.database import SessionLocal
from asc_registry.ingestion.contracts import RAW_LICENSE_COLUMNS
from asc_registry.models import RawLicense

logger = structlog.get_logger(__name__)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """Commit on success, roll back and re-raise on failure."""
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def _clean_value(value: Any) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    return str(value)


def raw_license_values(record: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """Project a record onto the raw license columns, dropping anything else."""
    return {col: _clean_value(record.get(col)) for col in RAW_LICENSE_COLUMNS}


class LicenseRecordStore:
    """
    Reads and writes raw license rows.

    Each write method runs in its own transaction; the refresh hooks see one
    commit per call.
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or SessionLocal

    def insert(self, records: Iterable[Dict[str, Any]]) -> List[int]:
        with session_scope(self.session_factory) as db:
            rows = [RawLicense(**raw_license_values(record)) for record in records]
            db.add_all(rows)
            db.flush()
            ids = [row.id for row in rows]
        logger.info("Inserted license rows", rows=len(ids))
        return ids

    def update(self, record_id: int, **fields: Any) -> bool:
        unknown = sorted(set(fields) - set(RAW_LICENSE_COLUMNS))
        if unknown:
            raise ValueError(f"Unknown license columns: {unknown}")

        with session_scope(self.session_factory) as db:
            row = db.get(RawLicense, record_id)
            if row is None:
                return False
            for col, value in fields.items():
                setattr(row, col, _clean_value(value))
        logger.info("Updated license row", record_id=record_id, columns=sorted(fields))
        return True

    def delete(self, record_id: int) -> bool:
        with session_scope(self.session_factory) as db:
            row = db.get(RawLicense, record_id)
            if row is None:
                return False
            db.delete(row)
        logger.info("Deleted license row", record_id=record_id)
        return True

    def bulk_replace(self, raw_df: pd.DataFrame) -> int:
        """Replace the whole table with ``raw_df`` in one transaction."""
        records = [raw_license_values(record) for record in raw_df.to_dict('records')]
        with session_scope(self.session_factory) as db:
            db.query(RawLicense).delete()
            db.add_all(RawLicense(**record) for record in records)
        logger.info("Replaced license rows", rows=len(records))
        return len(records)

    def count(self) -> int:
        with session_scope(self.session_factory) as db:
            return db.query(RawLicense).count()

    def load_raw_frame(self) -> pd.DataFrame:
        """All rows in insertion order, as the raw-column frame the normalizer expects."""
        with session_scope(self.session_factory) as db:
            rows = db.query(RawLicense).order_by(RawLicense.id).all()
            records = [{col: getattr(row, col) for col in RAW_LICENSE_COLUMNS} for row in rows]
        return pd.DataFrame(records, columns=RAW_LICENSE_COLUMNS, dtype=object)
