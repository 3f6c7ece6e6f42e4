"""
Pytest configuration for dbrecords.

Provides fixtures for:
- In-memory datasources and the demo catalog bound to them
- Settings cache isolation
- PostgreSQL connection management for integration tests
"""

from __future__ import annotations

import os
from typing import Generator

import psycopg
import pytest

from dbrecords.catalog import TABLES, catalog_tables
from dbrecords.config import Settings, build_dsn, get_settings
from dbrecords.datasource.memory import MemoryDataSource
from dbrecords.datasource.postgres import PostgresDataSource
from dbrecords.tableset import TableSet


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """
    Drop cached Settings around each test so env overrides take effect.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def memory_datasource() -> MemoryDataSource:
    return MemoryDataSource()


@pytest.fixture
def catalog(memory_datasource: MemoryDataSource) -> Generator[TableSet, None, None]:
    """
    Demo catalog classes bound to a fresh in-memory datasource with tables created.
    """
    tables = catalog_tables(memory_datasource)
    tables.create_tables()
    yield tables
    for cls in TABLES:
        cls.bind_table(None)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "dbrecords"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return build_dsn(test_settings)


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture
def postgres_datasource(test_dsn: str, db_connection_available: bool):
    """
    PostgreSQL datasource for integration tests; skips when the database is unreachable.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    datasource = PostgresDataSource(dsn=test_dsn)
    try:
        yield datasource
    finally:
        datasource.close()
