"""
Error taxonomy and HTTP error mapping for Sol-Chap handlers.

Every failure a handler can surface is a BaseServiceError subclass carrying an
error code, severity and category. The handler boundary turns these into JSON
responses with a stable ``message`` field and the status from
``get_http_status_code``.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from aws_lambda_powertools.metrics import MetricUnit

from solchap.handlers.utils.observability import logger, metrics, tracer


class ErrorSeverity(str, Enum):
    """Error severity levels for classification."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ErrorCategory(str, Enum):
    """Error categories for classification."""
    VALIDATION = "VALIDATION"
    BUSINESS_LOGIC = "BUSINESS_LOGIC"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"
    INFRASTRUCTURE = "INFRASTRUCTURE"
    SECURITY = "SECURITY"


class BaseServiceError(Exception):
    """Base exception class for service errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.BUSINESS_LOGIC,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.category = category
        self.operation = operation
        self.details = details or {}
        self.error_id = str(uuid.uuid4())

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error_id": self.error_id,
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "operation": self.operation,
            "details": self.details,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


class BadRequestError(BaseServiceError):
    """Raised when the request body is malformed or misses required fields."""

    def __init__(self, message: str, field_errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
        )
        self.field_errors = field_errors or []


class AlreadyExistsError(BaseServiceError):
    """Raised when a create-if-absent write finds an existing record."""

    def __init__(self, message: str, resource_type: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="ALREADY_EXISTS",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.BUSINESS_LOGIC,
            details={"resource_type": resource_type} if resource_type else None,
        )


class ResourceNotFoundError(BaseServiceError):
    """Raised when a lookup by (re-encrypted) key finds nothing."""

    def __init__(self, resource_type: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"{resource_type} not found",
            error_code="RESOURCE_NOT_FOUND",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.BUSINESS_LOGIC,
            details={"resource_type": resource_type},
        )
        self.resource_type = resource_type


class ForbiddenError(BaseServiceError):
    """Raised when the caller does not own the record it is changing."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="FORBIDDEN",
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.SECURITY,
        )


class InvalidCredentialsError(BaseServiceError):
    """Raised when a login password does not match."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(
            message=message,
            error_code="INVALID_CREDENTIALS",
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.SECURITY,
        )


class ExternalServiceError(BaseServiceError):
    """Raised when a downstream AWS service call fails."""

    def __init__(self, message: str, service_name: str, error_code: str = "EXTERNAL_SERVICE_ERROR"):
        super().__init__(
            message=message,
            error_code=error_code,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.EXTERNAL_SERVICE,
            details={"service_name": service_name},
        )
        self.service_name = service_name


class EncryptionFailedError(ExternalServiceError):
    """The encryption function failed or returned an unusable payload."""

    def __init__(self, message: str = "Encryption failed"):
        super().__init__(message=message, service_name="encryption", error_code="ENCRYPTION_FAILED")


class DecryptionFailedError(ExternalServiceError):
    """The decryption function failed or returned an unusable payload."""

    def __init__(self, message: str = "Decryption failed"):
        super().__init__(message=message, service_name="decryption", error_code="DECRYPTION_FAILED")


class StorageFailedError(ExternalServiceError):
    """A DynamoDB operation was rejected or errored."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message=message, service_name="dynamodb", error_code="STORAGE_FAILED")
        self.operation = operation


HTTP_STATUS_BY_ERROR_CODE = {
    "VALIDATION_ERROR": 400,
    "ALREADY_EXISTS": 400,
    "INVALID_CREDENTIALS": 401,
    "FORBIDDEN": 403,
    "RESOURCE_NOT_FOUND": 404,
    "ENCRYPTION_FAILED": 500,
    "DECRYPTION_FAILED": 500,
    "STORAGE_FAILED": 500,
    "EXTERNAL_SERVICE_ERROR": 500,
}


def get_http_status_code(error: BaseServiceError) -> int:
    """Get appropriate HTTP status code for error."""
    return HTTP_STATUS_BY_ERROR_CODE.get(error.error_code, 500)


@tracer.capture_method
def log_error_metrics(error: BaseServiceError) -> None:
    """Log error metrics for monitoring and alerting."""
    metrics.add_metric(name="ErrorCount", unit=MetricUnit.Count, value=1)
    metrics.add_metric(name=f"Error{error.category.value}Count", unit=MetricUnit.Count, value=1)

    tracer.put_annotation("error_code", error.error_code)
    tracer.put_metadata("error_details", error.to_dict())

    log = logger.warning if error.severity in (ErrorSeverity.LOW, ErrorSeverity.MEDIUM) else logger.error
    log(
        "Service error occurred",
        extra={
            "error_id": error.error_id,
            "error_code": error.error_code,
            "error_severity": error.severity.value,
            "error_category": error.category.value,
            "error_message": error.message,
        },
    )


def format_error_response(error: BaseServiceError) -> Dict[str, Any]:
    """Format error for API response."""
    response: Dict[str, Any] = {
        "message": error.message,
        "error": error.error_code,
        "errorId": error.error_id,
    }

    if isinstance(error, BadRequestError) and error.field_errors:
        response["fieldErrors"] = error.field_errors

    return response
