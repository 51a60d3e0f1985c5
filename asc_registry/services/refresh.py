"""
Refresh Orchestrator

Rebuilds every derived dataset from the base tables, in dependency order:

    normalized records -> {appraiser entities, active licenses}
                       -> {state, region, city, company statistics}

Each rebuild produces a brand new SnapshotGeneration which is published with
a single swap once every stage has succeeded. A failed rebuild publishes
nothing, so readers keep seeing the last good generation.

Rebuilds are serialized. Every base-table mutation bumps a sequence number;
a trigger that waited for an in-flight rebuild skips its own rebuild when the
published generation already covers its sequence number.
"""

import threading
import time
from datetime import date
from typing import Callable, Iterable, List, Optional, Sequence, Union

import pandas as pd
import structlog

from asc_registry.config import settings
from asc_registry.exceptions import RefreshError
from asc_registry.ingestion.normalize import normalize_license_frame
from asc_registry.ingestion.parsers import RegionDefinition
from asc_registry.services.aggregation import Aggregator
from asc_registry.services.entity_resolver import AppraiserResolver, build_active_licenses
from asc_registry.services.population import build_population_tables
from asc_registry.services.snapshots import (
    ACTIVE_LICENSES,
    APPRAISER_ENTITIES,
    NORMALIZED_RECORDS,
    DatasetSnapshot,
    SnapshotGeneration,
    SnapshotStore,
)

logger = structlog.get_logger(__name__)

FrameSource = Callable[[], pd.DataFrame]
RegionSource = Union[Sequence[RegionDefinition], Callable[[], Iterable[RegionDefinition]]]


class RefreshOrchestrator:
    """Serialized full rebuild with snapshot-swap publishing."""

    def __init__(
        self,
        license_source: FrameSource,
        zip_source: FrameSource,
        regions: RegionSource,
        store: Optional[SnapshotStore] = None,
        resolver: Optional[AppraiserResolver] = None,
        aggregator: Optional[Aggregator] = None,
        workers: Optional[int] = None,
        auto_refresh: Optional[bool] = None,
        as_of: Optional[date] = None,
    ):
        self.license_source = license_source
        self.zip_source = zip_source
        self.regions = regions
        self.store = store or SnapshotStore()
        self.resolver = resolver or AppraiserResolver(as_of=as_of)
        self.aggregator = aggregator or Aggregator(as_of=as_of)
        self.workers = workers or settings.normalize_workers
        self.auto_refresh = settings.auto_refresh if auto_refresh is None else auto_refresh

        self._rebuild_lock = threading.Lock()
        self._seq_lock = threading.Lock()
        self._mutation_seq = 0
        self._version = 0

    @property
    def mutation_seq(self) -> int:
        with self._seq_lock:
            return self._mutation_seq

    def current(self) -> Optional[SnapshotGeneration]:
        return self.store.current()

    def notify_mutation(self) -> Optional[SnapshotGeneration]:
        """
        Record one committed base-table mutation.

        Marks every dataset STALE and, with auto refresh on, rebuilds (or
        coalesces into a rebuild that already covers this mutation).
        """
        with self._seq_lock:
            self._mutation_seq += 1
            target = self._mutation_seq
        self.store.mark_stale()
        logger.debug("Base tables mutated", mutation_seq=target)

        if not self.auto_refresh:
            return None
        return self._rebuild(target, force=False)

    def recompute_all(self) -> SnapshotGeneration:
        """Rebuild every dataset from the current base tables and publish the result."""
        return self._rebuild(self.mutation_seq, force=True)

    def _rebuild(self, target_seq: int, force: bool) -> SnapshotGeneration:
        with self._rebuild_lock:
            current = self.store.current()
            if not force and current is not None and current.source_seq >= target_seq:
                logger.debug(
                    "Rebuild coalesced",
                    mutation_seq=target_seq,
                    published_seq=current.source_seq,
                    version=current.version,
                )
                return current

            # Read the sequence number before the sources: later commits get
            # a higher number and their own trigger
            source_seq = self.mutation_seq
            generation = self._build_generation(self._version + 1, source_seq)
            self._version = generation.version
            self.store.publish(generation)
            if self.mutation_seq > source_seq:
                # Mutations landed while building; their trigger is queued
                self.store.mark_stale()
            return generation

    def _resolve_regions(self) -> List[RegionDefinition]:
        if callable(self.regions):
            return list(self.regions())
        return list(self.regions)

    def _run_stage(self, stage: str, func, *args):
        start_time = time.perf_counter()
        try:
            result = func(*args)
        except Exception as e:
            logger.error("Rebuild stage failed", stage=stage, error=str(e), exc_info=True)
            raise RefreshError(stage, e) from e
        logger.debug(
            "Rebuild stage complete",
            stage=stage,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 1),
        )
        return result

    def _build_generation(self, version: int, source_seq: int) -> SnapshotGeneration:
        start_time = time.perf_counter()
        logger.info("Starting rebuild", version=version, source_seq=source_seq)

        raw_df = self._run_stage('load_licenses', self.license_source)
        zip_df = self._run_stage('load_zips', self.zip_source)
        regions = self._run_stage('load_regions', self._resolve_regions)

        normalized = self._run_stage('normalize', normalize_license_frame, raw_df, self.workers)
        population = self._run_stage('population', build_population_tables, zip_df, regions)

        entities = self._run_stage('appraiser_entities', self.resolver.resolve, normalized)
        active = self._run_stage(
            'active_licenses', build_active_licenses, normalized, self.aggregator.active_status
        )
        stats = self._run_stage('aggregate', self.aggregator.aggregate_all, normalized, population, regions)

        frames = {
            NORMALIZED_RECORDS: normalized,
            APPRAISER_ENTITIES: entities,
            ACTIVE_LICENSES: active,
            **stats,
        }
        generation = self._run_stage(
            'snapshot',
            lambda: SnapshotGeneration.build(
                version=version,
                source_seq=source_seq,
                snapshots=[DatasetSnapshot.capture(name, version, frame) for name, frame in frames.items()],
            ),
        )

        logger.info(
            "Rebuild complete",
            version=version,
            source_seq=source_seq,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 1),
            **{name: len(frame) for name, frame in frames.items()},
        )
        return generation
