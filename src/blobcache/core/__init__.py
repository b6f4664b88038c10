"""blobcache core: stored values, the document codec and type coercion."""

from .codec import CacheDocument, decode, decode_value, encode, encode_value
from .stored_value import JsonNumber, StoredValue, to_stored

__all__ = [
    "CacheDocument",
    "JsonNumber",
    "StoredValue",
    "decode",
    "decode_value",
    "encode",
    "encode_value",
    "to_stored",
]
