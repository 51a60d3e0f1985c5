"""Immutable dataset snapshots, snapshot generations and the store that publishes them"""

import copy
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

import pandas as pd
import structlog

from asc_registry.ingestion.parsers import compute_frame_digest

logger = structlog.get_logger(__name__)

NORMALIZED_RECORDS = 'normalized_records'
APPRAISER_ENTITIES = 'appraiser_entities'
ACTIVE_LICENSES = 'active_licenses'
STATE_STATS = 'state_stats'
REGION_STATS = 'region_stats'
CITY_STATS = 'city_stats'
COMPANY_STATS = 'company_stats'

# Dependency order of the derived datasets
DATASET_NAMES = (
    NORMALIZED_RECORDS,
    APPRAISER_ENTITIES,
    ACTIVE_LICENSES,
    STATE_STATS,
    REGION_STATS,
    CITY_STATS,
    COMPANY_STATS,
)


def detached_copy(frame: pd.DataFrame) -> pd.DataFrame:
    """Deep copy, including the list and dict cells pandas would otherwise share."""
    out = frame.copy(deep=True)
    for col in out.columns:
        if out[col].dtype != object:
            continue
        present = out[col].dropna()
        if len(present) and isinstance(present.iloc[0], (list, dict)):
            out[col] = out[col].map(copy.deepcopy)
    return out


class DatasetState(str, Enum):
    STALE = "stale"
    FRESH = "fresh"


@dataclass(frozen=True)
class DatasetSnapshot:
    """
    One derived dataset as produced by a single rebuild.

    The frame is copied on the way in and on the way out, so no caller can
    mutate a published snapshot.
    """
    name: str
    version: int
    digest: str
    built_at: datetime
    _frame: pd.DataFrame = field(repr=False, compare=False)

    @classmethod
    def capture(cls, name: str, version: int, frame: pd.DataFrame) -> "DatasetSnapshot":
        frame = detached_copy(frame)
        return cls(
            name=name,
            version=version,
            digest=compute_frame_digest(frame),
            built_at=datetime.now(timezone.utc),
            _frame=frame,
        )

    @property
    def row_count(self) -> int:
        return len(self._frame)

    def to_frame(self) -> pd.DataFrame:
        return detached_copy(self._frame)


@dataclass(frozen=True)
class SnapshotGeneration:
    """A complete, consistent set of derived datasets from one rebuild."""
    version: int
    source_seq: int
    built_at: datetime
    datasets: Mapping[str, DatasetSnapshot]

    @classmethod
    def build(
        cls,
        version: int,
        source_seq: int,
        snapshots: Iterable[DatasetSnapshot],
    ) -> "SnapshotGeneration":
        datasets = {snapshot.name: snapshot for snapshot in snapshots}
        missing = [name for name in DATASET_NAMES if name not in datasets]
        if missing:
            raise ValueError(f"Generation {version} is missing datasets: {missing}")
        return cls(
            version=version,
            source_seq=source_seq,
            built_at=datetime.now(timezone.utc),
            datasets=MappingProxyType(datasets),
        )

    def dataset(self, name: str) -> pd.DataFrame:
        return self.datasets[name].to_frame()

    @property
    def normalized_records(self) -> pd.DataFrame:
        return self.dataset(NORMALIZED_RECORDS)

    @property
    def appraiser_entities(self) -> pd.DataFrame:
        return self.dataset(APPRAISER_ENTITIES)

    @property
    def active_licenses(self) -> pd.DataFrame:
        return self.dataset(ACTIVE_LICENSES)

    @property
    def state_stats(self) -> pd.DataFrame:
        return self.dataset(STATE_STATS)

    @property
    def region_stats(self) -> pd.DataFrame:
        return self.dataset(REGION_STATS)

    @property
    def city_stats(self) -> pd.DataFrame:
        return self.dataset(CITY_STATS)

    @property
    def company_stats(self) -> pd.DataFrame:
        return self.dataset(COMPANY_STATS)

    def summary(self) -> Dict[str, Dict[str, object]]:
        return {
            name: {'rows': snapshot.row_count, 'digest': snapshot.digest}
            for name, snapshot in self.datasets.items()
        }


class SnapshotStore:
    """
    Holds the published generation and the per-dataset STALE/FRESH flags.

    Publishing is a single reference swap under a short lock; readers call
    ``current()`` once per query and keep working against that generation
    even if a newer one is published meanwhile.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._current: Optional[SnapshotGeneration] = None
        self._states: Dict[str, DatasetState] = {name: DatasetState.STALE for name in DATASET_NAMES}

    def current(self) -> Optional[SnapshotGeneration]:
        with self._lock:
            return self._current

    def publish(self, generation: SnapshotGeneration) -> None:
        with self._lock:
            previous = self._current
            self._current = generation
            for name in DATASET_NAMES:
                self._states[name] = DatasetState.FRESH
        logger.info(
            "Published snapshot generation",
            version=generation.version,
            previous_version=previous.version if previous else None,
            source_seq=generation.source_seq,
        )

    def mark_stale(self, names: Optional[Iterable[str]] = None) -> None:
        with self._lock:
            for name in names or DATASET_NAMES:
                self._states[name] = DatasetState.STALE

    def states(self) -> Dict[str, DatasetState]:
        with self._lock:
            return dict(self._states)

    def is_fresh(self) -> bool:
        with self._lock:
            return all(state is DatasetState.FRESH for state in self._states.values())
