"""Domain exceptions for the RBAC service.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.

Read paths (permission checks, effective sets) never raise these; they
return decision values. Mutation outcomes are raised only at the HTTP
boundary (see rbac.api.v1.outcomes).
"""

from typing import Any


class RbacException(Exception):
    """Base exception for all RBAC application errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(RbacException):
    """Raised when input validation fails (e.g. malformed permission code)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationException(RbacException):
    """Raised when the caller cannot be identified (missing or invalid token)."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class AuthorizationException(RbacException):
    """Raised when the caller lacks the permission or role required for the operation."""

    def __init__(
        self,
        permission: str | None = None,
        message: str = "Permission denied",
        reason: str | None = None,
    ) -> None:
        """Initialize with optional permission code and resolver reason.

        Args:
            permission: Permission code (or role requirement) that was not satisfied.
            message: Human-readable message; replaced when permission is given.
            reason: Optional denial reason reported by the resolver.
        """
        if permission:
            message = f"Permission denied: {permission}"
        details: dict[str, Any] = {}
        if permission:
            details["permission"] = permission
        if reason:
            details["reason"] = reason
        super().__init__(message, "PERMISSION_DENIED", details)


class ResourceNotFoundException(RbacException):
    """Raised when a subject, role, team, application or resource is not found."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "RESOURCE_NOT_FOUND", details)


class DuplicateAssignmentException(RbacException):
    """Raised when an assignment (role, team role, membership, grant) already exists."""

    def __init__(
        self,
        message: str,
        assignment_type: str,
        details_extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with message and assignment context.

        Args:
            message: Human-readable description (e.g. 'Role already assigned to subject').
            assignment_type: e.g. 'subject_role', 'team_role', 'team_member'.
            details_extra: Optional extra keys (e.g. role_code, subject_id).
        """
        details = dict(details_extra or {})
        details["assignment_type"] = assignment_type
        super().__init__(message, "DUPLICATE_ASSIGNMENT", details)


class ConflictException(RbacException):
    """Raised when an operation conflicts with current state (e.g. deleting a system role)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "CONFLICT", details)


class SqlNotConfiguredException(RbacException):
    """Raised when an operation requires the database but it is not configured."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
