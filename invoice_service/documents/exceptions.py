class DocumentError(Exception):
    """Base exception for document store and lifecycle errors."""


class DocumentNotFoundError(DocumentError):
    """Raised when a document, binary or payload cannot be found."""


class DocumentConflictError(DocumentError):
    """Raised when an operation violates the document's current state."""


class InvalidRequestError(DocumentError):
    """Raised when a request carries an unrecognised code or missing field."""


class DuplicateIdentifierError(DocumentError):
    """Raised when a write collides with an existing document identifier."""
