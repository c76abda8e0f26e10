"""Domain errors for payment provider management.

Every error carries a stable ``code`` (the error kind callers branch on) and the
HTTP status the API layer maps it to.
"""


class AppError(Exception):
    """Base application error."""

    code = "app_error"
    http_status = 400

    def __init__(self, message: str, code: str | None = None, http_status: int | None = None):
        """Initialize error."""
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        super().__init__(message)


class NotFoundError(AppError):
    """Requested provider or binding does not exist."""

    code = "not_found"
    http_status = 404


class ConflictError(AppError):
    """Duplicate provider code, or a binding already exists for the cooperative."""

    code = "conflict"
    http_status = 409


class InUseError(AppError):
    """Provider cannot be deleted while bindings reference it."""

    code = "in_use"
    http_status = 409


class ValidationError(AppError):
    """Input rejected before reaching persistence."""

    code = "validation_error"
    http_status = 422


class VaultError(AppError):
    """Credential vault failure. Messages never carry secret material."""

    code = "vault_error"
    http_status = 500


class EncryptionError(VaultError):
    """Secret could not be encrypted (missing master key or cipher failure)."""

    code = "encryption_error"


class DecryptionError(VaultError):
    """Envelope is malformed, tampered with, or was sealed with another key."""

    code = "decryption_error"


__all__ = [
    "AppError",
    "NotFoundError",
    "ConflictError",
    "InUseError",
    "ValidationError",
    "VaultError",
    "EncryptionError",
    "DecryptionError",
]
