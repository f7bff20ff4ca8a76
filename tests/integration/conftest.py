import os
from collections.abc import Generator
import psycopg
import pytest

from invoice_service.config.settings import Settings
from invoice_service.database.connection import (
    apply_schema,
    build_conninfo,
    close_pool,
    get_connection,
    init_pool,
)
from invoice_service.database.repositories.binary_repository import PostgresBinaryRepository
from invoice_service.database.repositories.document_repository import PostgresDocumentRepository
from invoice_service.database.repositories.invoice_payload_repository import (
    PostgresInvoicePayloadRepository,
)


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "invoice_service_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        psycopg.connect(build_conninfo(test_settings), connect_timeout=3).close()
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run.")
    init_pool(test_settings)
    apply_schema()
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def integration_cleanup(integration_pool: None) -> Generator[list[tuple[str, str]], None, None]:
    cleanup: list[tuple[str, str]] = []
    yield cleanup
    if not cleanup:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            for table, row_id in cleanup:
                if table == "documents":
                    cur.execute("DELETE FROM documents WHERE id = %s", (row_id,))
                elif table == "binaries":
                    cur.execute("DELETE FROM binaries WHERE id = %s", (row_id,))
                elif table == "invoice_payloads":
                    cur.execute("DELETE FROM invoice_payloads WHERE id = %s", (row_id,))
                elif table == "document_identifiers":
                    cur.execute(
                        "DELETE FROM document_identifiers WHERE identifier = %s", (row_id,)
                    )
        conn.commit()


@pytest.fixture
def pg_doc_repo(integration_pool: None) -> PostgresDocumentRepository:
    return PostgresDocumentRepository()


@pytest.fixture
def pg_binary_repo(integration_pool: None) -> PostgresBinaryRepository:
    return PostgresBinaryRepository()


@pytest.fixture
def pg_payload_repo(integration_pool: None) -> PostgresInvoicePayloadRepository:
    return PostgresInvoicePayloadRepository()
