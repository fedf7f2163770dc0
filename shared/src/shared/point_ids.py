"""Deterministic numeric point ids for the vector store."""
import hashlib

MAX_POINT_ID = 2**64 - 1

_SLICE = 8


def derive_point_id(external_id: str) -> int:
    """Map a string id to a non-zero unsigned 64-bit integer.

    Reads the SHA-256 digest of the UTF-8 id in 8-byte little-endian slices and
    returns the first non-zero one. A digest made only of zero slices maps to
    MAX_POINT_ID. The vector store rejects 0 as a point id.
    """
    digest = hashlib.sha256(external_id.encode("utf-8")).digest()
    for offset in range(0, len(digest), _SLICE):
        value = int.from_bytes(digest[offset:offset + _SLICE], "little", signed=False)
        if value != 0:
            return value
    return MAX_POINT_ID
