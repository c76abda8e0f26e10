"""API error handling and response helpers."""

from typing import Any, Dict, NoReturn

from fastapi import HTTPException

from src.services.errors import AppError, VaultError


def error_response(error: AppError) -> Dict[str, Any]:
    """Create a standardized error response."""
    return {
        "error": {
            "code": error.code,
            "message": error.message,
        }
    }


def raise_app_error(error: AppError) -> NoReturn:
    """Raise an HTTPException from an AppError."""
    if isinstance(error, VaultError):
        # Vault details stay server-side
        error = type(error)("Credential processing failed")
    raise HTTPException(
        status_code=error.http_status,
        detail=error_response(error),
    )
