"""Domain layer: value objects, enums and exceptions (no framework imports)."""
