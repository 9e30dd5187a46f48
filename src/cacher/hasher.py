"""Destination naming for cached objects.

Object keys are derived from the normalized origin URL alone, so repeated
or concurrent relocations of the same origin always target the same object.
"""

import hashlib
from urllib.parse import urlsplit


def origin_digest(origin: str) -> str:
    """Compute the MD5 hex digest of an origin URL.

    Args:
        origin: Normalized origin URL

    Returns:
        32-character hex digest
    """
    return hashlib.md5(origin.encode("utf-8")).hexdigest()


def destination_name(origin: str) -> str:
    """Build the object key for an origin URL.

    The key is ``{host}/{digest}``, grouping objects by origin host.

    Args:
        origin: Normalized origin URL

    Returns:
        Object key within the destination bucket
    """
    # Host and port, without any userinfo
    host = urlsplit(origin).netloc.rpartition("@")[2]
    return f"{host}/{origin_digest(origin)}"
