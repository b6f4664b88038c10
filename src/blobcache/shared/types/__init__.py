"""
blobcache Type Utilities

Conversion helpers between JSON text and caller-specified Python types.
"""

from __future__ import annotations

from .conversion import TypeConverter

__all__ = ["TypeConverter"]
