"""Entity resolution, population joins, aggregation and the refresh orchestrator"""

from .aggregation import Aggregator
from .entity_resolver import AppraiserResolver, build_active_licenses
from .population import PopulationTables, build_population_tables
from .refresh import RefreshOrchestrator
from .snapshots import DatasetSnapshot, DatasetState, SnapshotGeneration, SnapshotStore

__all__ = [
    "Aggregator",
    "AppraiserResolver",
    "DatasetSnapshot",
    "DatasetState",
    "PopulationTables",
    "RefreshOrchestrator",
    "SnapshotGeneration",
    "SnapshotStore",
    "build_active_licenses",
    "build_population_tables",
]
