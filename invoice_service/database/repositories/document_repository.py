import uuid
from dataclasses import replace

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from invoice_service.database.connection import get_connection
from invoice_service.database.repositories.base import DocumentRepository
from invoice_service.documents.exceptions import DocumentNotFoundError, DuplicateIdentifierError
from invoice_service.documents.models import DocumentRecord
from invoice_service.documents.serialization import record_from_dict, record_to_dict


class PostgresDocumentRepository(DocumentRepository):
    """Database operations for the documents table."""

    def create(self, record: DocumentRecord) -> DocumentRecord:
        stored = record if record.id is not None else replace(record, id=str(uuid.uuid4()))
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO documents (id, kind, identifier, body)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT DO NOTHING
                    """,
                    (
                        stored.id,
                        stored.kind.value,
                        stored.identifier,
                        Jsonb(record_to_dict(stored)),
                    ),
                )
                if cur.rowcount == 0:
                    raise DuplicateIdentifierError(f"Document {stored.id} already exists")
            conn.commit()
        return stored

    def get(self, document_id: str) -> DocumentRecord:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    "SELECT body FROM documents WHERE id = %s",
                    (document_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return record_from_dict(row["body"])

    def exists(self, identifier: str) -> bool:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT 1 FROM documents WHERE id = %s OR identifier = %s LIMIT 1",
                    (identifier, identifier),
                )
                row = cur.fetchone()
        return row is not None

    def reserve_identifier(self, identifier: str) -> bool:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO document_identifiers (identifier)
                    VALUES (%s)
                    ON CONFLICT DO NOTHING
                    """,
                    (identifier,),
                )
                reserved = cur.rowcount == 1
            conn.commit()
        return reserved

    def update(self, record: DocumentRecord) -> DocumentRecord:
        if record.id is None:
            raise ValueError("Cannot update a document without an id")
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE documents
                    SET body = %s, updated_at = now()
                    WHERE id = %s
                    """,
                    (Jsonb(record_to_dict(record)), record.id),
                )
                if cur.rowcount == 0:
                    raise DocumentNotFoundError(f"Document {record.id} not found")
            conn.commit()
        return record

    def delete(self, document_id: str) -> None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM documents WHERE id = %s", (document_id,))
                if cur.rowcount == 0:
                    raise DocumentNotFoundError(f"Document {document_id} not found")
            conn.commit()
