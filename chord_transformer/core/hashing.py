"""Content hashing for the chord detection cache.

The hash is a 64-bit rolling polynomial hash. It is not collision resistant and
must only be used as a cache key.
"""

_MASK_64 = (1 << 64) - 1


def content_hash(data: bytes) -> str:
    """Hash file content as 16 lowercase hex digits (hash = hash * 31 + byte)."""
    value = 0
    for byte in data:
        value = (value * 31 + byte) & _MASK_64
    return f"{value:016x}"
