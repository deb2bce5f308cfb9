"""Security: JWT bearer token helpers."""

from rbac.infrastructure.security.jwt import create_access_token, verify_token

__all__ = ["create_access_token", "verify_token"]
