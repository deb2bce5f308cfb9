"""Tests for domain exceptions (error_code, message, details)."""

from rbac.domain.exceptions import (
    AuthenticationException,
    AuthorizationException,
    ConflictException,
    DuplicateAssignmentException,
    RbacException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    ValidationException,
)


def test_rbac_exception_default_error_code() -> None:
    """Base RbacException uses class name as error_code when not provided."""
    exc = RbacException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "RbacException"
    assert exc.details == {}


def test_rbac_exception_to_dict() -> None:
    exc = RbacException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.to_dict() == {"error": "CUSTOM", "message": "Oops", "details": {"key": "value"}}


def test_validation_exception() -> None:
    """ValidationException sets VALIDATION_ERROR and optional field in details."""
    exc = ValidationException("Invalid format", field="permission")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.details == {"field": "permission"}
    assert ValidationException("Invalid").details == {}


def test_authentication_exception() -> None:
    exc = AuthenticationException()
    assert exc.message == "Authentication failed"
    assert exc.error_code == "AUTHENTICATION_ERROR"


def test_authorization_exception_default() -> None:
    """AuthorizationException with no permission uses default message."""
    exc = AuthorizationException()
    assert exc.message == "Permission denied"
    assert exc.error_code == "PERMISSION_DENIED"
    assert exc.details == {}


def test_authorization_exception_with_permission_and_reason() -> None:
    exc = AuthorizationException(permission="docs:document:read", reason="Subject is inactive")
    assert exc.message == "Permission denied: docs:document:read"
    assert exc.details == {"permission": "docs:document:read", "reason": "Subject is inactive"}


def test_resource_not_found_exception() -> None:
    exc = ResourceNotFoundException("Role 'editor' not found", {"role_code": "editor"})
    assert exc.message == "Role 'editor' not found"
    assert exc.error_code == "RESOURCE_NOT_FOUND"
    assert exc.details == {"role_code": "editor"}


def test_duplicate_assignment_exception() -> None:
    exc = DuplicateAssignmentException(
        "Role already assigned", assignment_type="subject_role", details_extra={"role_code": "x"}
    )
    assert exc.error_code == "DUPLICATE_ASSIGNMENT"
    assert exc.details == {"role_code": "x", "assignment_type": "subject_role"}


def test_conflict_exception() -> None:
    exc = ConflictException("System role cannot be deleted", {"role_code": "admin"})
    assert exc.error_code == "CONFLICT"
    assert exc.details == {"role_code": "admin"}


def test_sql_not_configured_exception() -> None:
    exc = SqlNotConfiguredException()
    assert exc.error_code == "SERVICE_UNAVAILABLE"
