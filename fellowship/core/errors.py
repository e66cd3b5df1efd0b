"""Error Hierarchy — typed, categorized exceptions for all Fellowship failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are local to one write attempt; nothing is retried here
    - to_response() produces the REST envelope used by the global handlers
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with FellowshipError base: FastAPI global handler catches all
    - ErrorContext as dataclass: carries who/what for logs without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    AUTHENTICATION = "authentication"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    username: str | None = None
    entity_kind: str | None = None
    entity_id: str | None = None
    operation: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class FellowshipError(Exception):
    """Base exception for all Fellowship errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "entity_kind": self.context.entity_kind,
                    "entity_id": self.context.entity_id,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationFailedError(FellowshipError):
    """A field constraint was violated before any write happened."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_FAILED", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["field"] = self.field
        return response


class PermissionDeniedError(FellowshipError):
    """The permission engine returned Deny."""
    def __init__(
        self, reason: str, deny_code: str = "PERMISSION_DENIED",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            reason, "PERMISSION_DENIED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )
        self.deny_code = deny_code

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["deny_code"] = self.deny_code
        return response


class ForbiddenUsernameError(FellowshipError):
    """Requested username contains a forbidden word. Account is not created."""
    def __init__(self, username: str, context: ErrorContext | None = None):
        super().__init__(
            "Username contains forbidden words.",
            "FORBIDDEN_USERNAME", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )
        self.username = username


class IdentityRequiredError(FellowshipError):
    """No caller identity could be resolved from the request."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "IDENTITY_REQUIRED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class ResourceNotFoundError(FellowshipError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class ConflictError(FellowshipError):
    """Write collides with an existing row (duplicate like, word, account)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(FellowshipError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
