"""RBAC permission resolution service."""
