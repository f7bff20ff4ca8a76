import uuid
from dataclasses import replace

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from invoice_service.database.connection import get_connection
from invoice_service.database.repositories.base import InvoicePayloadRepository
from invoice_service.documents.exceptions import DocumentNotFoundError
from invoice_service.documents.models import InvoicePayload


class PostgresInvoicePayloadRepository(InvoicePayloadRepository):
    """Database operations for the invoice_payloads table.

    The raw bytes are stored next to the parsed resource so retrieval can
    hand back exactly what was submitted.
    """

    def create(self, payload: InvoicePayload) -> InvoicePayload:
        stored = replace(payload, id=str(uuid.uuid4()))
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO invoice_payloads
                    (id, content_type, raw, resource, subject_reference)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (
                        stored.id,
                        stored.content_type,
                        stored.raw,
                        Jsonb(stored.resource),
                        stored.subject_reference,
                    ),
                )
            conn.commit()
        return stored

    def get(self, payload_id: str) -> InvoicePayload:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, content_type, raw, resource, subject_reference
                    FROM invoice_payloads
                    WHERE id = %s
                    """,
                    (payload_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise DocumentNotFoundError(f"Invoice {payload_id} not found")
        return InvoicePayload(
            id=row["id"],
            content_type=row["content_type"],
            raw=bytes(row["raw"]),
            resource=row["resource"],
            subject_reference=row["subject_reference"],
        )

    def delete(self, payload_id: str) -> None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM invoice_payloads WHERE id = %s", (payload_id,))
                if cur.rowcount == 0:
                    raise DocumentNotFoundError(f"Invoice {payload_id} not found")
            conn.commit()
