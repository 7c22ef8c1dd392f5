"""
Application error types.

Services raise :class:`AppError` (or one of its subclasses) and the server's
exception handler renders it as ``{"success": false, "error", "code", "details"}``.
"""

from typing import Any, Optional


class ErrorCode:
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    UNAUTHORIZED = "UNAUTHORIZED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"
    UNSUPPORTED_MEDIA_TYPE = "UNSUPPORTED_MEDIA_TYPE"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    AI_SERVICE_ERROR = "AI_SERVICE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppError(Exception):
    """Error carrying an HTTP status, a stable code and optional details."""

    def __init__(
        self,
        status_code: int,
        message: str,
        code: str = ErrorCode.INTERNAL_ERROR,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.message, "code": self.code, "details": self.details}


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None) -> None:
        super().__init__(404, message, ErrorCode.NOT_FOUND, details)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Forbidden", details: Optional[Any] = None) -> None:
        super().__init__(403, message, ErrorCode.FORBIDDEN, details)


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized", details: Optional[Any] = None) -> None:
        super().__init__(401, message, ErrorCode.UNAUTHORIZED, details)


class ValidationError(AppError):
    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(400, message, ErrorCode.VALIDATION_ERROR, details)


class ConflictError(AppError):
    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(409, message, ErrorCode.CONFLICT, details)


class UnsupportedMediaTypeError(AppError):
    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(415, message, ErrorCode.UNSUPPORTED_MEDIA_TYPE, details)


class PayloadTooLargeError(AppError):
    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(413, message, ErrorCode.PAYLOAD_TOO_LARGE, details)


class AIServiceError(AppError):
    def __init__(self, message: str = "AI service request failed", details: Optional[Any] = None) -> None:
        super().__init__(502, message, ErrorCode.AI_SERVICE_ERROR, details)
