"""Process-wide collaborators built once at startup.

:func:`create_services` turns the effective :class:`~swaggen.models.GlobalConfig`
into one :class:`Services` object holding the document cache, the fetcher
that uses it and the template manager. The MCP server and every CLI
command receive this object explicitly; nothing in the package keeps a
module-level cache or manager of its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import httpx

from swaggen.cache import DocumentCache
from swaggen.config import default_document_cache_dir, resolve_config
from swaggen.models import DocumentReference, GlobalConfig
from swaggen.parser import ApiParser, DocumentFetcher, create_parser
from swaggen.progress import ProgressSink, ProgressTracker
from swaggen.templates.manager import TemplateManager

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Shared cache, fetcher and template manager for one process.

    Attributes:
        cache: The two-tier document cache.
        fetcher: Document fetcher bound to :attr:`cache`.
        templates: Built-in and custom template store.
        config: The configuration the services were built from.
    """

    cache: DocumentCache
    fetcher: DocumentFetcher
    templates: TemplateManager
    config: GlobalConfig = field(default_factory=GlobalConfig)

    @property
    def default_ttl_seconds(self) -> int:
        return self.config.cache.ttl_minutes * 60

    def open_parser(
        self,
        url: str,
        headers: Optional[dict[str, str]] = None,
        *,
        lazy: bool = False,
        strict: bool = True,
        use_cache: bool = True,
        cache_ttl_seconds: Optional[int] = None,
        progress: "ProgressTracker | ProgressSink | None" = None,
    ) -> ApiParser:
        """Return an unloaded parser for *url* wired to the shared fetcher."""
        reference = DocumentReference(url=url, headers=dict(headers or {}))
        return create_parser(
            reference,
            self.fetcher,
            lazy=lazy,
            strict=strict,
            use_cache=use_cache,
            cache_ttl_seconds=cache_ttl_seconds,
            progress=progress,
        )

    def close(self) -> None:
        self.cache.close()


def create_services(
    config: Optional[GlobalConfig] = None,
    *,
    templates_dir: Optional[Path] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Services:
    """Build the :class:`Services` for a process.

    Args:
        config: Effective configuration. Defaults to :func:`resolve_config`.
        templates_dir: Overrides the custom template directory.
        transport: ``httpx`` transport for the fetcher, used by tests.
    """
    config = config or resolve_config()
    cache_dir = (
        Path(config.cache.directory) if config.cache.directory else default_document_cache_dir()
    )
    cache = DocumentCache(
        cache_dir,
        ttl_seconds=config.cache.ttl_minutes * 60,
        enabled=config.cache.enabled,
    )
    fetcher = DocumentFetcher(
        cache,
        timeout=config.fetch.timeout,
        probe_timeout=config.fetch.probe_timeout,
        max_bytes=config.fetch.max_bytes,
        transport=transport,
    )
    custom_dir = templates_dir or (Path(config.templates_dir) if config.templates_dir else None)
    templates = TemplateManager(custom_dir=custom_dir)
    logger.debug("Services ready (cache=%s)", cache_dir)
    return Services(cache=cache, fetcher=fetcher, templates=templates, config=config)
