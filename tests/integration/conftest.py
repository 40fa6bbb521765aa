import os
import uuid
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

import wasteflow.database.connection as connection_module
from wasteflow.config.settings import Settings
from wasteflow.database.connection import close_pool, get_connection, init_pool
from wasteflow.database.models import BatchRecord, JobRecord
from wasteflow.database.repositories.batch_repository import BatchRepository


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "wasteflow_test")
    return Settings()


def _apply_schema() -> None:
    schema = (Path(connection_module.__file__).parent / "schema.sql").read_text(encoding="utf-8")
    with get_connection() as conn:
        conn.execute(schema)
        conn.execute("TRUNCATE batches CASCADE")
        conn.commit()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        _apply_schema()
    except Exception as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(integration_pool: None) -> Generator[list[str], None, None]:
    """Batch IDs to delete after the test; jobs and records cascade."""
    cleanup: list[str] = []
    yield cleanup
    if not cleanup:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            for batch_id in cleanup:
                cur.execute("DELETE FROM batches WHERE id = %s", (batch_id,))
        conn.commit()


@pytest.fixture
def scope() -> str:
    return f"test-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def seed_batch(
    db_conn: psycopg.Connection[Any],
    integration_cleanup: list[str],
    scope: str,
) -> BatchRecord:
    batch = BatchRepository().create(scope, "export.csv")
    integration_cleanup.append(batch.id)
    return batch


@pytest.fixture
def seed_job(
    db_conn: psycopg.Connection[Any],
    seed_batch: BatchRecord,
) -> JobRecord:
    with db_conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO ingest_jobs (batch_id, status, attempts)
            VALUES (%s, 'pending', 0)
            RETURNING id
            """,
            (seed_batch.id,),
        )
        row = cur.fetchone()
        assert row is not None
        job_id = row[0]
    db_conn.commit()
    return JobRecord(id=job_id, batch_id=seed_batch.id, status="pending", attempts=0)
