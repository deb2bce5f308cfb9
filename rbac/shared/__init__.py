"""Shared utilities used across layers."""
