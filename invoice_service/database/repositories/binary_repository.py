import uuid

from psycopg.rows import dict_row

from invoice_service.database.connection import get_connection
from invoice_service.database.repositories.base import BinaryRepository
from invoice_service.documents.exceptions import DocumentNotFoundError
from invoice_service.documents.models import BinaryObject


class PostgresBinaryRepository(BinaryRepository):
    """Database operations for the binaries table."""

    def create(self, data: bytes, content_type: str) -> BinaryObject:
        binary = BinaryObject(id=str(uuid.uuid4()), content_type=content_type, data=data)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "INSERT INTO binaries (id, content_type, data) VALUES (%s, %s, %s)",
                    (binary.id, binary.content_type, binary.data),
                )
            conn.commit()
        return binary

    def get(self, binary_id: str) -> BinaryObject:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    "SELECT id, content_type, data FROM binaries WHERE id = %s",
                    (binary_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise DocumentNotFoundError(f"Binary {binary_id} not found")
        return BinaryObject(
            id=row["id"],
            content_type=row["content_type"],
            data=bytes(row["data"]),
        )

    def delete(self, binary_id: str) -> None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM binaries WHERE id = %s", (binary_id,))
                if cur.rowcount == 0:
                    raise DocumentNotFoundError(f"Binary {binary_id} not found")
            conn.commit()
