"""Utility functions for the library server."""

from library_server.utils.passwords import hash_password, verify_password

__all__ = [
    "hash_password",
    "verify_password",
]
