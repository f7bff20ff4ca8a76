"""Persistence ports, one per stored entity kind.

Components receive these through their constructors. The PostgreSQL
adapters live next to this module.
"""

from abc import ABC, abstractmethod

from invoice_service.documents.models import BinaryObject, DocumentRecord, InvoicePayload


class DocumentRepository(ABC):
    """Storage contract for document records."""

    @abstractmethod
    def create(self, record: DocumentRecord) -> DocumentRecord:
        """Persist a new record and return it with its id set.

        Records without an id get a store-assigned one. Records that carry
        an id (transformed records, keyed by token) are stored under it.

        Raises:
            DuplicateIdentifierError: if the id or identifier is already taken.
        """

    @abstractmethod
    def get(self, document_id: str) -> DocumentRecord:
        """Raises:
        DocumentNotFoundError: if no record with this id exists.
        """

    @abstractmethod
    def exists(self, identifier: str) -> bool:
        """Return True if a record uses this value as id or identifier."""

    @abstractmethod
    def reserve_identifier(self, identifier: str) -> bool:
        """Claim an identifier at write time. False if it was already claimed."""

    @abstractmethod
    def update(self, record: DocumentRecord) -> DocumentRecord:
        """Replace the stored body in a single write.

        Raises:
            DocumentNotFoundError: if the record does not exist.
        """

    @abstractmethod
    def delete(self, document_id: str) -> None:
        """Raises:
        DocumentNotFoundError: if the record does not exist.
        """


class BinaryRepository(ABC):
    """Storage contract for raw binary objects."""

    @abstractmethod
    def create(self, data: bytes, content_type: str) -> BinaryObject:
        ...

    @abstractmethod
    def get(self, binary_id: str) -> BinaryObject:
        ...

    @abstractmethod
    def delete(self, binary_id: str) -> None:
        ...


class InvoicePayloadRepository(ABC):
    """Storage contract for parsed structured invoices."""

    @abstractmethod
    def create(self, payload: InvoicePayload) -> InvoicePayload:
        ...

    @abstractmethod
    def get(self, payload_id: str) -> InvoicePayload:
        ...

    @abstractmethod
    def delete(self, payload_id: str) -> None:
        ...
