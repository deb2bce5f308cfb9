"""Typed mutation result shared by assignment and role-graph operations."""

from dataclasses import dataclass, field
from typing import Any

from rbac.domain.enums import MutationOutcome


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a mutation. Callers branch on outcome, never on message text."""

    outcome: MutationOutcome
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.outcome is MutationOutcome.SUCCESS

    @classmethod
    def success(cls, message: str, **details: Any) -> "MutationResult":
        return cls(MutationOutcome.SUCCESS, message, details)

    @classmethod
    def not_found(cls, message: str, **details: Any) -> "MutationResult":
        return cls(MutationOutcome.NOT_FOUND, message, details)

    @classmethod
    def conflict(cls, message: str, **details: Any) -> "MutationResult":
        return cls(MutationOutcome.CONFLICT, message, details)

    @classmethod
    def invalid(cls, message: str, **details: Any) -> "MutationResult":
        return cls(MutationOutcome.INVALID, message, details)
