"""Domain value objects."""

from rbac.domain.value_objects.permission_code import PermissionCode

__all__ = ["PermissionCode"]
