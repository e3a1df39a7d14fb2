"""
Object key validation.

Keys are checked before any storage call is made. Two modes:

- tenancy: the key must live under ``users/<subject_id>/``
- prefix:  the key must start with one of the configured allowed prefixes
"""

import posixpath

from dictation_mail.config import Settings
from dictation_mail.errors import Forbidden, InvalidKey


def tenancy_prefix(subject_id: str) -> str:
    return f"users/{subject_id}/"


def _check_shape(key: str) -> None:
    if not key or key.startswith("/"):
        raise InvalidKey(f"Invalid object key: {key!r}")
    if any(ord(ch) < 32 or ord(ch) == 127 for ch in key):
        raise InvalidKey("Object key contains control characters")
    if ".." in key.split("/"):
        raise InvalidKey(f"Object key must not contain '..' segments: {key}")


def validate_key(key: str, subject_id: str, settings: Settings) -> str:
    """
    Return ``key`` unchanged if the caller may reference it.

    Raises:
        Forbidden: tenancy mode and the key is outside the caller's subtree
        InvalidKey: prefix mode and the key matches no allowed prefix, or the
            key is malformed
    """
    _check_shape(key)

    if settings.require_uid_prefix:
        expected = tenancy_prefix(subject_id)
        if not key.startswith(expected):
            raise Forbidden(f"key must start with '{expected}' for this user")
        return key

    if not any(key.startswith(prefix) for prefix in settings.allowed_prefixes):
        raise InvalidKey(
            f"key must start with one of: {' '.join(settings.allowed_prefixes)}"
        )
    return key


def filename_for_key(key: str) -> str:
    """Final path segment of an object key, e.g. ``recordings/a/b.m4a`` -> ``b.m4a``."""
    return posixpath.basename(key.rstrip("/")) or key
