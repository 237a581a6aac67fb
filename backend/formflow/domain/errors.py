"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


# Authentication & Authorization Errors
class AuthenticationError(DomainError):
    """No authenticated principal (token missing, invalid, or expired)"""
    error_code = "AUTHENTICATION_ERROR"
    http_status = 401


class AuthorizationError(DomainError):
    """User lacks permission for action"""
    error_code = "AUTHORIZATION_ERROR"
    http_status = 403


class PermissionDeniedError(AuthorizationError):
    """Permission evaluator denied the operation"""
    error_code = "PERMISSION_DENIED"

    def __init__(
        self,
        message: str,
        reason_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        if reason_code:
            details.setdefault("reason_code", reason_code)
        super().__init__(message, details=details)
        self.reason_code = reason_code


# Validation Errors
class ValidationError(DomainError):
    """Input validation failed"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


class InvalidTransitionError(ValidationError):
    """Target status is not a recognized workflow status"""
    error_code = "INVALID_TRANSITION"


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


class FormEntryNotFoundError(NotFoundError):
    """Form entry not found"""
    error_code = "FORM_ENTRY_NOT_FOUND"


class FolioCounterNotFoundError(NotFoundError):
    """Folio counter not found"""
    error_code = "FOLIO_COUNTER_NOT_FOUND"


# Conflict Errors
class ConflictError(DomainError):
    """Resource conflict (e.g., concurrent modification)"""
    error_code = "CONFLICT"
    http_status = 409


class ConflictingFolioError(ConflictError):
    """Atomic folio increment hit a race it could not resolve"""
    error_code = "CONFLICTING_FOLIO"


# Storage Errors
class StorageUnavailableError(DomainError):
    """Backing store could not complete the operation"""
    error_code = "STORAGE_UNAVAILABLE"
    http_status = 503
