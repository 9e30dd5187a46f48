"""cacher - A content-caching gateway.

Given a source URL, returns the cached copy's location, fetching the
content into object storage and recording the mapping on first request.
"""

__version__ = "0.1.0"
