"""Shared utility helpers (datetime, id generation)."""

from rbac.shared.utils.datetime import ensure_utc, utc_now
from rbac.shared.utils.generators import generate_cuid

__all__ = ["ensure_utc", "generate_cuid", "utc_now"]
