"""Infrastructure: persistence, cache backends and security adapters."""
