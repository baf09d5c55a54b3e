"""pagecache -- full-page response cache for server-rendered sites.

This package stores the fully rendered output of a page on disk, gzip
compressed, keyed by the identity of the request that produced it. Identical
anonymous ``GET`` requests are then answered straight from disk until the
entry goes stale, skipping the rendering pipeline entirely.

Typical embedding::

    from pagecache import PageCache, RequestInfo
    from pagecache.config import resolve_config

    config = resolve_config()
    cache = PageCache.from_config(config.cache)

    request = RequestInfo(method="GET", path="/articles/42")
    html = cache.get(request)
    if html is None:
        body = render_page()
        cache.put(request, body)

Modules:
    cache: Key derivation, freshness, compression, storage and the facade.
    middleware: ASGI adapter wiring the cache in front of an application.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration loading and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    results: ``Result`` container returned at the storage boundaries.
    output: stdout/stderr formatting for the ``pagecache`` CLI.
"""

__version__ = "0.1.0"

from pagecache.cache import PageCache  # noqa: E402
from pagecache.models import CacheConfig, RequestInfo  # noqa: E402

__all__ = ["CacheConfig", "PageCache", "RequestInfo", "__version__"]
