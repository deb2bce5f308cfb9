"""Permission code value object.

Permission codes are "{application}:{resource_type}:{action}" triples
(e.g. "docs:document:read"). Callers working inside a single known
application may omit the application segment ("document:read"); parse()
qualifies such codes with a default application code.
"""

import re
from dataclasses import dataclass

from rbac.core.constants import PERMISSION_CODE_SEGMENTS, PERMISSION_CODE_SEP

# A segment is any non-empty run without whitespace or the separator.
_SEGMENT_RE = re.compile(r"^[^\s:]+$")


def _validate_segment(value: str, field_name: str) -> None:
    """Raise ValueError if value is not a valid permission code segment."""
    if not value:
        raise ValueError(f"{field_name} must be a non-empty string")
    if not _SEGMENT_RE.match(value):
        raise ValueError(
            f"{field_name} must not contain whitespace or '{PERMISSION_CODE_SEP}' (got {value!r})"
        )


@dataclass(frozen=True)
class PermissionCode:
    """Value object for a fully qualified permission code."""

    application: str
    resource_type: str
    action: str

    def __post_init__(self) -> None:
        _validate_segment(self.application, "Application code")
        _validate_segment(self.resource_type, "Resource type code")
        _validate_segment(self.action, "Action code")

    @classmethod
    def parse(cls, value: str, default_application: str | None = None) -> "PermissionCode":
        """Parse a wire permission code, qualifying short codes.

        Args:
            value: "app:resource:action", or "resource:action" when a default
                application is available.
            default_application: Application code used for codes with fewer
                than three segments.

        Returns:
            PermissionCode.

        Raises:
            ValueError: If the code is empty, has too many segments, has empty
                segments, or is short with no default application.
        """
        if not value or not value.strip():
            raise ValueError("Permission code must be a non-empty string")
        parts = value.strip().split(PERMISSION_CODE_SEP)
        if len(parts) > PERMISSION_CODE_SEGMENTS:
            raise ValueError(
                f"Permission code {value!r} has more than {PERMISSION_CODE_SEGMENTS} segments"
            )
        if len(parts) < PERMISSION_CODE_SEGMENTS:
            if not default_application:
                raise ValueError(
                    f"Permission code {value!r} is missing the application segment"
                )
            parts = [default_application, *parts]
        if len(parts) != PERMISSION_CODE_SEGMENTS:
            raise ValueError(
                f"Permission code {value!r} must have the form application:resource_type:action"
            )
        return cls(application=parts[0], resource_type=parts[1], action=parts[2])

    @classmethod
    def try_parse(
        cls, value: str, default_application: str | None = None
    ) -> "PermissionCode | None":
        """Like parse() but returns None instead of raising."""
        try:
            return cls.parse(value, default_application)
        except ValueError:
            return None

    @property
    def code(self) -> str:
        """Wire representation "{application}:{resource_type}:{action}"."""
        return PERMISSION_CODE_SEP.join((self.application, self.resource_type, self.action))

    def __str__(self) -> str:
        return self.code
