"""Store for ZIP geography rows (table ``uszips``)"""

from typing import Any, Dict, Optional

import pandas as pd
import structlog
from sqlalchemy.orm import sessionmaker

from asc_registry.database import SessionLocal
from asc_registry.ingestion.contracts import ZIP_GEO_COLUMNS
from asc_registry.models import ZipGeo
from asc_registry.repositories.licenses import session_scope

logger = structlog.get_logger(__name__)


def _zip_values(record: Dict[str, Any]) -> Dict[str, Any]:
    values = {}
    for col in ZIP_GEO_COLUMNS:
        value = record.get(col)
        if not isinstance(value, (dict, list)) and value is not None and pd.isna(value):
            value = None
        values[col] = value
    if values['population'] is not None:
        values['population'] = int(values['population'])
    for col in ('lat', 'lng', 'density'):
        if values[col] is not None:
            values[col] = float(values[col])
    for col in ('zcta', 'imprecise', 'military'):
        values[col] = bool(values[col]) if values[col] is not None else None
    return values


class ZipGeoRepository:
    """Bulk load and full read of the ZIP geography table"""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or SessionLocal

    def bulk_load(self, zip_df: pd.DataFrame) -> int:
        """Replace every ZIP row with the parsed frame."""
        records = [_zip_values(record) for record in zip_df.to_dict('records')]
        with session_scope(self.session_factory) as db:
            db.query(ZipGeo).delete()
            db.add_all(ZipGeo(**record) for record in records)
        logger.info("Loaded ZIP rows", rows=len(records))
        return len(records)

    def count(self) -> int:
        with session_scope(self.session_factory) as db:
            return db.query(ZipGeo).count()

    def load_frame(self) -> pd.DataFrame:
        with session_scope(self.session_factory) as db:
            rows = db.query(ZipGeo).order_by(ZipGeo.zip).all()
            records = [{col: getattr(row, col) for col in ZIP_GEO_COLUMNS} for row in rows]
        frame = pd.DataFrame(records, columns=ZIP_GEO_COLUMNS)
        for col in ('zcta', 'imprecise', 'military'):
            frame[col] = frame[col].fillna(False).astype(bool)
        return frame
