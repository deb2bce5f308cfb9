"""Cache key builders. Single place for key format (DRY).

The subject external id is always the last key component, so it may
contain the separator without making keys ambiguous.
"""

from rbac.core.constants import CACHE_KEY_SEP, CACHE_PREFIX_ACCESS


def access_key(subject_id: str) -> str:
    """Cache key for the resolved access (permissions + roles) of one subject."""
    if not subject_id:
        raise ValueError("Cache key component 'subject_id' must be non-empty")
    return f"{CACHE_PREFIX_ACCESS}{CACHE_KEY_SEP}{subject_id}"


def access_pattern() -> str:
    """Glob pattern matching every resolved access entry."""
    return f"{CACHE_PREFIX_ACCESS}{CACHE_KEY_SEP}*"
