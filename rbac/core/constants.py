"""Core constants: cache key prefixes and shared literal values."""

# Cache key prefix for per-subject resolved access (permissions + roles)
CACHE_PREFIX_ACCESS = "rbac:access"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Permission code wire format: "{application}:{resource_type}:{action}"
PERMISSION_CODE_SEP = ":"
PERMISSION_CODE_SEGMENTS = 3

# Denial reasons returned by the resolver (values, not errors)
REASON_SUBJECT_NOT_FOUND = "Subject not found"
REASON_SUBJECT_INACTIVE = "Subject is inactive"
REASON_PERMISSION_DENIED = "Permission denied"
REASON_NONE_MATCHED = "None of the required permissions found"
REASON_NO_PERMISSIONS = "No permissions specified"
