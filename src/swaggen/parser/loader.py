"""Acquire raw OpenAPI/Swagger documents from a URL or local file.

This module handles all I/O for fetching raw documents and converting them
into Python dictionaries. It supports JSON and YAML with automatic format
detection, bounds every network read by a timeout and a maximum size, and
sits behind the two-tier :class:`~swaggen.cache.DocumentCache`.

Many services publish a human-facing documentation page (Swagger UI,
``doc.html``) rather than a link to the machine-readable document.
:func:`DocumentFetcher.resolve_document_url` recognises those pages and
probes a fixed list of conventional document endpoints derived from the
page's base path, once each, accepting the first response that looks like
a document. When every candidate fails the original URL is used and the
real fetch reports the error.

The main entry point is :class:`DocumentFetcher`. The module-level
helpers (:func:`is_ui_url`, :func:`derive_base_url`,
:func:`candidate_document_urls`, :func:`looks_like_document`,
:func:`parse_content`) are pure and exposed for reuse and testing.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

import httpx
import yaml

from swaggen.cache import DocumentCache
from swaggen.exceptions import DocumentParseError, FetchError
from swaggen.models import MIB, DocumentReference
from swaggen.progress import ProgressPhase, ProgressSink, ProgressTracker, ensure_tracker

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_PROBE_TIMEOUT = 5.0
DEFAULT_MAX_BYTES = 50 * MIB

# Fragments that identify a URL as already pointing at the document itself.
_DOCUMENT_MARKERS = ("/api-docs", "/swagger.json")
# Fragments that identify a documentation UI page.
_UI_MARKERS = ("doc.html", "swagger-ui.html", "swagger-ui/", "swagger/index.html")
# Endpoints tried below the UI page's base path, in order.
_CANDIDATE_SUFFIXES = (
    "/v3/api-docs",
    "/v2/api-docs",
    "/api-docs",
    "/swagger/v3/api-docs",
    "/swagger/v2/api-docs",
    "/swagger/api-docs",
)
# In-place rewrites of the UI page URL itself, tried after the suffixes.
_UI_PAGE_REWRITES = (
    ("swagger-ui/index.html", "v3/api-docs"),
    ("swagger-ui.html", "v3/api-docs"),
    ("doc.html", "v3/api-docs"),
)


# ------------------------------------------------------------------ #
# Pure helpers
# ------------------------------------------------------------------ #


def is_remote(reference: str) -> bool:
    """Return True for ``http://`` and ``https://`` references."""
    return reference.startswith(("http://", "https://"))


def is_ui_url(url: str) -> bool:
    """Return True if *url* looks like a documentation UI page.

    URLs that already name a document endpoint (``/api-docs``,
    ``/swagger.json``) are never treated as UI pages.
    """
    if any(marker in url for marker in _DOCUMENT_MARKERS):
        return False
    return any(marker in url for marker in _UI_MARKERS)


def derive_base_url(url: str) -> str:
    """Derive the service base path from a UI page URL.

    The fragment is dropped first. Then everything from ``swagger-ui/`` or
    ``swagger/`` onwards is removed, or, when neither occurs, everything
    after the last ``/``.

    Example::

        derive_base_url("https://api.example.com/app/swagger-ui/index.html")
        # -> "https://api.example.com/app"
    """
    url = url.split("#", 1)[0]
    for marker in ("swagger-ui/", "swagger/"):
        index = url.find(marker)
        if index != -1:
            return url[:index].rstrip("/")
    return url[: url.rfind("/")] if "/" in url else url


def candidate_document_urls(url: str) -> list[str]:
    """Return the ordered, de-duplicated document endpoints to probe for a UI page."""
    base = derive_base_url(url)
    candidates = [f"{base}{suffix}" for suffix in _CANDIDATE_SUFFIXES]
    page = url.split("#", 1)[0]
    for fragment, replacement in _UI_PAGE_REWRITES:
        if fragment in page:
            candidates.append(page.replace(fragment, replacement))
    return list(dict.fromkeys(candidates))


def looks_like_document(data: Any) -> bool:
    """Return True if *data* plausibly is an OpenAPI/Swagger document.

    A mapping qualifies when it declares a ``swagger`` or ``openapi``
    version marker or carries a non-empty ``paths`` table.
    """
    if not isinstance(data, dict):
        return False
    if "swagger" in data or "openapi" in data:
        return True
    paths = data.get("paths")
    return isinstance(paths, dict) and bool(paths)


def parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.
    Valid JSON is also valid YAML, but JSON parsing is stricter and faster.

    Args:
        content: The raw string content.
        hint: Optional format hint ('json' or 'yaml').

    Returns:
        The parsed dictionary.

    Raises:
        DocumentParseError: If the content cannot be parsed as either
            format or does not decode to a mapping.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if not content.strip():
        raise DocumentParseError("Document is empty")

    if hint != "yaml":
        try:
            result = json.loads(content)
            if not isinstance(result, dict):
                raise DocumentParseError(
                    f"Document must be a JSON/YAML object (got {type(result).__name__})"
                )
            return result
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise DocumentParseError(f"Invalid JSON: {exc}") from exc

    try:
        result = yaml.safe_load(content)
        if not isinstance(result, dict):
            raise DocumentParseError(
                "Document must be a JSON/YAML object (got "
                f"{type(result).__name__ if result is not None else 'empty document'})"
            )
        return result
    except yaml.YAMLError as exc:
        yaml_error = exc

    msg = "Failed to parse document as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise DocumentParseError(msg)


def _format_hint(name: str, content_type: str = "") -> str:
    """Guess the document format from a file name or content type."""
    lowered = name.lower()
    if "json" in content_type or lowered.endswith(".json"):
        return "json"
    if "yaml" in content_type or "yml" in content_type or lowered.endswith((".yaml", ".yml")):
        return "yaml"
    return ""


# ------------------------------------------------------------------ #
# Fetcher
# ------------------------------------------------------------------ #


class DocumentFetcher:
    """Fetch raw documents with caching, UI-URL resolution and size limits.

    One fetcher is created per process (see :mod:`swaggen.services`) and
    shared by every parser, so the cache it wraps is shared too.

    Args:
        cache: The shared document cache, or ``None`` to disable caching.
        timeout: Timeout in seconds for the primary document request.
        probe_timeout: Timeout in seconds for each UI-URL candidate probe.
        max_bytes: Largest document accepted, from the network or disk.
        transport: Optional :mod:`httpx` transport. Tests pass an
            :class:`httpx.MockTransport`.

    Example::

        fetcher = DocumentFetcher(DocumentCache("/tmp/cache"))
        document = await fetcher.fetch(DocumentReference(url="https://petstore3.swagger.io/api/v3/openapi.json"))
    """

    def __init__(
        self,
        cache: Optional[DocumentCache] = None,
        timeout: float = DEFAULT_TIMEOUT,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        max_bytes: int = DEFAULT_MAX_BYTES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._cache = cache
        self._timeout = timeout
        self._probe_timeout = probe_timeout
        self._max_bytes = max_bytes
        self._transport = transport

    @property
    def cache(self) -> Optional[DocumentCache]:
        return self._cache

    async def fetch(
        self,
        reference: DocumentReference,
        use_cache: bool = True,
        ttl_seconds: Optional[int] = None,
        progress: "ProgressTracker | ProgressSink | None" = None,
    ) -> dict[str, Any]:
        """Return the raw document for *reference*.

        Looks in the cache first (memory, then disk, each against the TTL).
        On a miss the document is read from the network or disk and stored
        in both cache tiers.

        The returned dictionary may be shared with the cache and must not
        be mutated by the caller.

        Args:
            reference: URL or path plus request headers.
            use_cache: Skip both the lookup and the store when ``False``.
            ttl_seconds: Freshness window for the lookup. Defaults to the
                cache's own TTL.
            progress: Optional tracker or sink for acquisition milestones.

        Returns:
            The decoded document.

        Raises:
            FetchError: If the document cannot be acquired.
            DocumentParseError: If the acquired bytes cannot be decoded.
        """
        tracker = ensure_tracker(progress)
        key = DocumentCache.make_key(reference.url, reference.headers)

        if use_cache and self._cache is not None and self._cache.enabled:
            tracker.emit(ProgressPhase.CACHE_LOOKUP, "Checking document cache")
            cached = self._cache.get(key, ttl_seconds)
            if cached is not None:
                logger.info("Using cached document for %s", reference.url)
                return cached
            logger.debug("Cache miss for %s", reference.url)

        tracker.emit(ProgressPhase.ACQUIRE_START, f"Fetching {reference.url}")
        document = await self._acquire(reference)
        tracker.emit(ProgressPhase.ACQUIRE_DONE, "Document acquired")

        if use_cache and self._cache is not None:
            self._cache.set(key, document)
        return document

    def clear_cache(
        self, url: Optional[str] = None, headers: Optional[Mapping[str, str]] = None
    ) -> None:
        """Evict one document (when *url* is given) or the whole cache."""
        if self._cache is None:
            return
        if url is None:
            self._cache.clear()
            logger.info("Cleared document cache")
        else:
            self._cache.evict(DocumentCache.make_key(url, headers))
            logger.info("Evicted %s from document cache", url)

    async def resolve_document_url(
        self, url: str, headers: Optional[Mapping[str, str]] = None
    ) -> str:
        """Turn a documentation UI URL into the machine-readable document URL.

        URLs that are not UI pages are returned unchanged without any
        network traffic. For UI pages each candidate from
        :func:`candidate_document_urls` is requested once with the probe
        timeout; the first one answering with a plausible document wins.

        Returns:
            The resolved document URL, or *url* itself when nothing matched.
        """
        if not is_ui_url(url):
            return url

        candidates = candidate_document_urls(url)
        logger.info("Resolving documentation page %s (%d candidates)", url, len(candidates))
        async with httpx.AsyncClient(
            timeout=self._probe_timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            for candidate in candidates:
                try:
                    response = await client.get(candidate, headers=dict(headers or {}))
                except httpx.HTTPError as exc:
                    logger.debug("Probe %s failed: %s", candidate, exc)
                    continue
                if response.status_code != 200:
                    logger.debug("Probe %s returned HTTP %d", candidate, response.status_code)
                    continue
                try:
                    data = response.json()
                except ValueError:
                    logger.debug("Probe %s did not return JSON", candidate)
                    continue
                if looks_like_document(data):
                    logger.info("Resolved document URL: %s", candidate)
                    return candidate

        logger.warning("No document endpoint found for %s; using it as-is", url)
        return url

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _acquire(self, reference: DocumentReference) -> dict[str, Any]:
        """Read the document from its source without touching the cache."""
        if is_remote(reference.url):
            url = await self.resolve_document_url(reference.url, reference.headers)
            return await self._fetch_url(url, reference.headers)
        location = reference.url
        if location.startswith("file://"):
            location = location[len("file://"):]
        return await self._read_file(location)

    async def _fetch_url(self, url: str, headers: Mapping[str, str]) -> dict[str, Any]:
        """Fetch a document over HTTP, enforcing the timeout and size limit.

        Raises:
            FetchError: On HTTP error statuses, network errors, timeouts,
                or bodies larger than ``max_bytes``.
            DocumentParseError: If the body cannot be decoded.
        """
        logger.info("Fetching document from %s", url)
        chunks: list[bytes] = []
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                async with client.stream("GET", url, headers=dict(headers)) as response:
                    response.raise_for_status()
                    declared = response.headers.get("content-length", "")
                    if declared.isdigit() and int(declared) > self._max_bytes:
                        raise FetchError(self._too_large(url))
                    size = 0
                    async for chunk in response.aiter_bytes():
                        size += len(chunk)
                        if size > self._max_bytes:
                            raise FetchError(self._too_large(url))
                        chunks.append(chunk)
                    encoding = response.charset_encoding or "utf-8"
                    content_type = response.headers.get("content-type", "")
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"HTTP {exc.response.status_code} fetching document from {url}"
            ) from exc
        except httpx.TimeoutException as exc:
            raise FetchError(
                f"Timed out after {self._timeout:g}s fetching document from {url}"
            ) from exc
        except httpx.RequestError as exc:
            raise FetchError(f"Failed to fetch document from {url}: {exc}") from exc

        body = b"".join(chunks)
        try:
            text = body.decode(encoding)
        except (UnicodeDecodeError, LookupError) as exc:
            raise DocumentParseError(f"Cannot decode document from {url}: {exc}") from exc
        return parse_content(text, hint=_format_hint(url, content_type))

    async def _read_file(self, location: str) -> dict[str, Any]:
        """Read a local document file.

        Raises:
            FetchError: If the file is missing, unreadable or too large.
            DocumentParseError: If the file is not valid UTF-8 JSON/YAML.
        """
        path = Path(location)
        if not path.is_file():
            raise FetchError(f"Document file not found: {location}")
        try:
            if path.stat().st_size > self._max_bytes:
                raise FetchError(self._too_large(location))
            raw = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise FetchError(f"Failed to read document file {location}: {exc}") from exc

        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise DocumentParseError(
                f"Document file {location} is not valid UTF-8: {exc}"
            ) from exc
        return parse_content(text, hint=_format_hint(path.name))

    def _too_large(self, source: str) -> str:
        return f"Document at {source} exceeds the {self._max_bytes // MIB} MiB size limit"
