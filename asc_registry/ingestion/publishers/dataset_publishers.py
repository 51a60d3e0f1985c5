"""
Snapshot generation publishers.

Writes every dataset of one generation to ``<output_dir>/v<version>/`` as
Parquet or CSV, plus a ``manifest.json`` carrying row counts and digests so
an export can be matched back to the generation that produced it.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd
import structlog

from asc_registry.services.snapshots import SnapshotGeneration

logger = structlog.get_logger(__name__)

MANIFEST_NAME = "manifest.json"


@dataclass
class PublishResult:
    """Result of publishing one generation"""
    version: int
    output_dir: str
    output_format: str
    file_paths: List[str] = field(default_factory=list)
    manifest_path: str = ""
    record_counts: Dict[str, int] = field(default_factory=dict)


class DatasetPublisher(ABC):
    """Base class for dataset writers"""

    extension: str = ""
    output_format: str = ""

    @abstractmethod
    def write(self, df: pd.DataFrame, path: Path) -> None:
        pass

    def publish(self, generation: SnapshotGeneration, output_dir: Union[str, Path]) -> PublishResult:
        target = Path(output_dir) / f"v{generation.version}"
        target.mkdir(parents=True, exist_ok=True)

        result = PublishResult(
            version=generation.version,
            output_dir=str(target),
            output_format=self.output_format,
        )
        datasets: Dict[str, Any] = {}
        for name, snapshot in generation.datasets.items():
            path = target / f"{name}.{self.extension}"
            self.write(snapshot.to_frame(), path)
            result.file_paths.append(str(path))
            result.record_counts[name] = snapshot.row_count
            datasets[name] = {
                'file': path.name,
                'rows': snapshot.row_count,
                'digest': snapshot.digest,
                'built_at': snapshot.built_at.isoformat(),
            }

        manifest = {
            'version': generation.version,
            'source_seq': generation.source_seq,
            'built_at': generation.built_at.isoformat(),
            'published_at': datetime.now(timezone.utc).isoformat(),
            'format': self.output_format,
            'datasets': datasets,
        }
        manifest_path = target / MANIFEST_NAME
        manifest_path.write_text(json.dumps(manifest, indent=2, sort_keys=True), encoding="utf-8")
        result.manifest_path = str(manifest_path)

        logger.info(
            "Published generation",
            version=generation.version,
            output_dir=str(target),
            format=self.output_format,
            datasets=len(datasets),
        )
        return result


class ParquetPublisher(DatasetPublisher):
    """Parquet via pyarrow; nested list/dict cells are kept as nested types"""

    extension = "parquet"
    output_format = "parquet"

    def __init__(self, compression: str = "snappy"):
        self.compression = compression

    def write(self, df: pd.DataFrame, path: Path) -> None:
        df.to_parquet(path, compression=self.compression, index=False)


def _json_cell(value: Any) -> Any:
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=str, sort_keys=True)
    return value


class CsvPublisher(DatasetPublisher):
    """CSV; list and dict cells are written as JSON text"""

    extension = "csv"
    output_format = "csv"

    def write(self, df: pd.DataFrame, path: Path) -> None:
        out = df.copy()
        for col in out.columns:
            if out[col].dtype == object:
                out[col] = out[col].map(_json_cell)
        out.to_csv(path, index=False)


PUBLISHERS = {
    ParquetPublisher.output_format: ParquetPublisher,
    CsvPublisher.output_format: CsvPublisher,
}


def publish_generation(
    generation: SnapshotGeneration,
    output_dir: Union[str, Path],
    fmt: str = "parquet",
) -> PublishResult:
    """Write one generation with the publisher registered for ``fmt``."""
    publisher_cls = PUBLISHERS.get(fmt)
    if publisher_cls is None:
        raise ValueError(f"Unsupported output format '{fmt}', expected one of {sorted(PUBLISHERS)}")
    return publisher_cls().publish(generation, output_dir)
