"""Mutation outcome translation for the HTTP layer."""

from rbac.application.dtos.mutation import MutationResult
from rbac.domain.enums import MutationOutcome
from rbac.domain.exceptions import (
    ConflictException,
    ResourceNotFoundException,
    ValidationException,
)
from rbac.schemas.assignment import MutationResponse


def raise_for_outcome(result: MutationResult) -> MutationResponse:
    """Return the response body for a successful result; raise the matching domain exception otherwise."""
    if result.outcome is MutationOutcome.NOT_FOUND:
        raise ResourceNotFoundException(result.message, dict(result.details))
    if result.outcome is MutationOutcome.CONFLICT:
        raise ConflictException(result.message, dict(result.details))
    if result.outcome is MutationOutcome.INVALID:
        exc = ValidationException(result.message)
        exc.details.update(result.details)
        raise exc
    return MutationResponse(
        outcome=result.outcome.value, message=result.message, details=dict(result.details)
    )
