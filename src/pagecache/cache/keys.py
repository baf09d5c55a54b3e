"""Cache key derivation.

A request maps to a key only when its response may be shared between
visitors: anonymous ``GET`` requests while the cache directory is available.
Everything else is "not cacheable" and is signalled with ``None``.

The key is the request path with every ``/`` replaced by ``_``, prefixed with
``m`` for mobile clients so the two layouts of a page never share an entry::

    >>> derive_key("GET", "/articles/42", logged_in=False, mobile=False)
    '_articles_42'
    >>> derive_key("get", "/articles/42", logged_in=False, mobile=True)
    'm_articles_42'
    >>> derive_key("POST", "/articles/42", logged_in=False, mobile=False) is None
    True

The scheme is not collision-proof (``/a_b`` and ``/a/b`` share a key); that is
an accepted trade-off for human-readable file names.
"""

from __future__ import annotations

from typing import Optional

from pagecache.models import RequestInfo

MOBILE_PREFIX = "m"


def derive_key(
    method: str,
    path: str,
    logged_in: bool,
    mobile: bool,
    *,
    directory_available: bool = True,
) -> Optional[str]:
    """Return the cache key for a request, or ``None`` if it is not cacheable.

    Args:
        method: HTTP method; only ``GET`` (any case) is cacheable.
        path: Request URI path.
        logged_in: Whether the visitor has an authenticated session.
            Personalised pages are never cached nor served from cache.
        mobile: Whether the device classifier flagged a mobile client.
        directory_available: Whether the cache directory was initialised.

    Returns:
        The key, or ``None`` when the request must bypass the cache.
    """
    if logged_in:
        return None
    if method.upper() != "GET":
        return None
    if not directory_available:
        return None

    key = path.replace("/", "_")
    if mobile:
        key = MOBILE_PREFIX + key
    return key


def key_for(request: RequestInfo, *, directory_available: bool = True) -> Optional[str]:
    """Derive the key for a :class:`~pagecache.models.RequestInfo`."""
    return derive_key(
        request.method,
        request.path,
        request.logged_in,
        request.mobile,
        directory_available=directory_available,
    )
