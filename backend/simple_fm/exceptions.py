"""
Simple-FM exception hierarchy

Every error raised by the inventory layer derives from SimpleFMException and
carries the HTTP status it maps to, so the exception handlers in main.py can
turn it into an error page or a JSON body without knowing the subclass.
"""
from typing import Any, Dict, Optional


class SimpleFMException(Exception):
    """Base class for all inventory errors"""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.error_code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(SimpleFMException):
    """Required field missing or malformed on create/update"""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class NotFoundError(SimpleFMException):
    """Referenced record does not exist"""

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            f"{resource_type.capitalize()} {resource_id} not found",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class ConflictError(SimpleFMException):
    """Delete blocked because other records still reference the target"""

    status_code = 400
    error_code = "CONFLICT"


class StorageError(SimpleFMException):
    """Underlying database failure"""

    status_code = 500
    error_code = "DATABASE_ERROR"
