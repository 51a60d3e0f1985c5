"""
Test configuration and fixtures for the ASC registry test suite.
"""

import pandas as pd
import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from asc_registry.database import Base, build_session_factory
from asc_registry.ingestion.contracts import RAW_LICENSE_COLUMNS, ZIP_GEO_COLUMNS
from asc_registry.ingestion.normalize import normalize_license_frame
from asc_registry.ingestion.parsers import build_region_definitions, parse_zip_frame
from asc_registry.services.population import build_population_tables
from tests.helpers import SAMPLE_RAW_ROWS, SAMPLE_REGIONS, SAMPLE_ZIP_ROWS


@pytest.fixture
def raw_license_frame() -> pd.DataFrame:
    return pd.DataFrame(SAMPLE_RAW_ROWS, columns=RAW_LICENSE_COLUMNS)


@pytest.fixture
def normalized_frame(raw_license_frame) -> pd.DataFrame:
    return normalize_license_frame(raw_license_frame)


@pytest.fixture
def zip_frame() -> pd.DataFrame:
    return parse_zip_frame(pd.DataFrame(SAMPLE_ZIP_ROWS, columns=ZIP_GEO_COLUMNS)).data


@pytest.fixture
def regions():
    return build_region_definitions(SAMPLE_REGIONS)


@pytest.fixture
def population_tables(zip_frame, regions):
    return build_population_tables(zip_frame, regions)


@pytest.fixture
def session_factory():
    """Session factory on a fresh in-memory SQLite database"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # Registers the models on Base.metadata
    from asc_registry import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    try:
        yield build_session_factory(engine)
    finally:
        engine.dispose()


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: mark test as unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (database, files, CLI)"
    )
    config.addinivalue_line(
        "markers", "concurrency: mark test as exercising threaded refreshes"
    )
