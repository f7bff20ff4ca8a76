from invoice_service.database.repositories.base import DocumentRepository
from invoice_service.documents.exceptions import DocumentNotFoundError
from invoice_service.documents.models import DocumentKind, DocumentRecord


def get_transformed(doc_repo: DocumentRepository, token: str) -> DocumentRecord:
    """Load the token-addressed record. Tokens never address originals or attachments.

    Raises:
        DocumentNotFoundError: if no transformed record carries this token.
    """
    record = doc_repo.get(token)
    if record.kind is not DocumentKind.TRANSFORMED:
        raise DocumentNotFoundError(f"Document {token} not found")
    return record
