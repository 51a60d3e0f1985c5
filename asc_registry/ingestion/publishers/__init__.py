"""Writers for published snapshot generations"""

from .dataset_publishers import (
    CsvPublisher,
    DatasetPublisher,
    ParquetPublisher,
    PublishResult,
    publish_generation,
)

__all__ = [
    'CsvPublisher',
    'DatasetPublisher',
    'ParquetPublisher',
    'PublishResult',
    'publish_generation',
]
