"""blobcache Shared Module.

This package contains constants, error handling, logging helpers and type
conversion utilities used across blobcache.
"""

__all__ = ["constants", "errors", "logging", "types"]
