"""Document caching for swaggen.

This package provides :class:`DocumentCache`, the two-tier cache (process
memory plus a :mod:`diskcache` directory) that sits in front of document
acquisition. Entries are keyed by the document reference and its request
headers and expire after a TTL checked at read time.

The cache is created once per process by :func:`~swaggen.services.create_services`
and handed to every :class:`~swaggen.parser.loader.DocumentFetcher`.
"""

from swaggen.cache.cache import DocumentCache

__all__ = ["DocumentCache"]
