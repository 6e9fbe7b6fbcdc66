"""Utility modules for the roster kernel."""

from roster_kernel.utils.hashing import canonicalize_json, hash_payload

__all__ = [
    "hash_payload",
    "canonicalize_json",
]
