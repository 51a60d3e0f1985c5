"""
Wiring for the whole pipeline: base-table stores, the refresh orchestrator
and the commit hooks between them.
"""

from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence, Union

import structlog
from sqlalchemy.orm import sessionmaker

from asc_registry.config import settings
from asc_registry.database import build_engine, build_session_factory, init_db
from asc_registry.ingestion.parsers import (
    ParseResult,
    RegionDefinition,
    load_region_definitions,
    parse_license_file,
    parse_zip_file,
)
from asc_registry.repositories import LicenseRecordStore, ZipGeoRepository, install_refresh_hooks
from asc_registry.services import RefreshOrchestrator, SnapshotGeneration

logger = structlog.get_logger(__name__)


class Registry:
    """
    One pipeline bound to one database.

    Region definitions are loaded and validated up front, so a bad regions
    file fails here rather than halfway through a rebuild.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        regions: Optional[Sequence[RegionDefinition]] = None,
        regions_path: Optional[Union[str, Path]] = None,
        auto_refresh: Optional[bool] = None,
        workers: Optional[int] = None,
        as_of: Optional[date] = None,
    ):
        self.session_factory = session_factory
        self.licenses = LicenseRecordStore(session_factory)
        self.zips = ZipGeoRepository(session_factory)
        self.regions: List[RegionDefinition] = (
            list(regions) if regions is not None
            else load_region_definitions(regions_path or settings.regions_path)
        )
        self.orchestrator = RefreshOrchestrator(
            license_source=self.licenses.load_raw_frame,
            zip_source=self.zips.load_frame,
            regions=self.regions,
            workers=workers,
            auto_refresh=auto_refresh,
            as_of=as_of,
        )
        self._remove_hooks = install_refresh_hooks(session_factory, self.orchestrator.notify_mutation)

    def load_license_csv(self, path: Union[str, Path], sep: str = ',') -> ParseResult:
        """Parse Input A and replace the license table with it."""
        result = parse_license_file(path, sep=sep)
        self.licenses.bulk_replace(result.data)
        return result

    def load_zip_csv(self, path: Union[str, Path], sep: str = ',') -> ParseResult:
        """Parse Input B and replace the ZIP table with it."""
        result = parse_zip_file(path, sep=sep)
        self.zips.bulk_load(result.data)
        return result

    def recompute_all(self) -> SnapshotGeneration:
        return self.orchestrator.recompute_all()

    def current(self) -> Optional[SnapshotGeneration]:
        return self.orchestrator.current()

    def close(self) -> None:
        self._remove_hooks()


def create_registry(database_url: Optional[str] = None, **kwargs) -> Registry:
    """Build a Registry on a fresh engine, creating the base tables if needed."""
    url = database_url or settings.database_url
    if url.startswith('sqlite:///') and ':memory:' not in url:
        Path(url[len('sqlite:///'):]).parent.mkdir(parents=True, exist_ok=True)

    engine = build_engine(url)
    init_db(engine)
    logger.debug("Database ready", database_url=url)
    return Registry(build_session_factory(engine), **kwargs)
