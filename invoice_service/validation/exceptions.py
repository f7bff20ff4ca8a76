class ValidationServiceError(Exception):
    """Raised when the validator itself cannot be reached or answers garbage."""


class InvoiceParseError(Exception):
    """Raised when structured invoice content cannot be parsed."""


class NotAnInvoiceError(InvoiceParseError):
    """Raised when well-formed structured content holds some other resource."""
