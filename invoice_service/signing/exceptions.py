class SigningError(Exception):
    """Raised when a detached signature cannot be produced."""


class KeyLoadError(SigningError):
    """Raised when the signing keystore cannot be read or lacks a key."""
