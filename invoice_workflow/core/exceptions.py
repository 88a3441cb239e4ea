"""Error taxonomy shared by the approval, payment and invoice services"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """Base exception for application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id '{identifier}' not found"
        super().__init__(message=message, status_code=404)


class AuthorizationError(AppException):
    def __init__(self, message: str = "Access denied"):
        super().__init__(message=message, status_code=403)


class StateConflictError(AppException):
    def __init__(self, message: str, current_status: Any = None):
        details = {}
        if current_status is not None:
            details["current_status"] = getattr(current_status, "value", current_status)
        super().__init__(message=message, status_code=409, details=details)

    @property
    def current_status(self) -> Optional[str]:
        return self.details.get("current_status")


class ValidationError(AppException):
    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message=message, status_code=422, details=details)


class JournalImbalanceError(ValidationError):
    """Raised when a generated journal entry would not balance"""

    def __init__(self, message: str, total_debit: Any, total_credit: Any):
        super().__init__(
            message,
            details={"total_debit": str(total_debit), "total_credit": str(total_credit)},
        )


class ExternalServiceError(AppException):
    def __init__(self, service: str, message: str):
        super().__init__(
            message=f"{service} error: {message}",
            status_code=502,
            details={"service": service},
        )
