"""Eager and lazy document parsers producing an :class:`~swaggen.models.ApiModel`.

:class:`ApiParser` parses the whole document at once. When strict parsing
is requested it validates the normalized document and resolves references
strictly; any failure there is logged, recorded in :attr:`ApiParser.warnings`
and followed by a lenient reparse of the same raw document::

    strict --(failure)--> lenient --(success | failure)

:class:`LazyApiParser` builds only the operation list on
:meth:`~LazyApiParser.load` and materializes named schemas one at a time
the first time they are requested. Both parsers expose the same accessors,
so generators and tool handlers work with either.

Neither parser performs I/O of its own. Documents come from the shared
:class:`~swaggen.parser.loader.DocumentFetcher`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError

from swaggen.exceptions import DocumentParseError
from swaggen.models import ApiModel, DocumentReference, Operation
from swaggen.parser.dialect import detect_dialect, normalize_document, normalize_schema
from swaggen.parser.extractor import (
    extract_info,
    extract_operations,
    extract_servers,
    schema_section,
)
from swaggen.parser.loader import DocumentFetcher
from swaggen.parser.resolver import resolve_refs
from swaggen.parser.validator import validate_normalized
from swaggen.progress import ProgressPhase, ProgressSink, ProgressTracker, ensure_tracker
from swaggen.projections import filter_operations_by_path_prefix, filter_operations_by_tag

logger = logging.getLogger(__name__)

FALLBACK_WARNING = "Strict validation failed; fell back to lenient parsing: {error}"
LAZY_VALIDATION_WARNING = "Strict validation is not performed in lazy mode"


class ApiParser:
    """Parse a document eagerly into an :class:`~swaggen.models.ApiModel`.

    Args:
        reference: Where to load the document from.
        fetcher: The shared document fetcher.
        strict: Validate the document and resolve references strictly,
            falling back to lenient parsing on failure.
        use_cache: Read and write the document cache.
        cache_ttl_seconds: Freshness window for the cache lookup. Defaults
            to the cache's own TTL.
        progress: Optional tracker or sink notified at each milestone.

    Example::

        parser = ApiParser(DocumentReference(url="./petstore.json"), fetcher)
        model = await parser.load()
        pet = parser.get_schema("Pet")
    """

    def __init__(
        self,
        reference: DocumentReference,
        fetcher: DocumentFetcher,
        strict: bool = True,
        use_cache: bool = True,
        cache_ttl_seconds: Optional[int] = None,
        progress: "ProgressTracker | ProgressSink | None" = None,
    ) -> None:
        self._reference = reference
        self._fetcher = fetcher
        self._strict = strict
        self._use_cache = use_cache
        self._cache_ttl_seconds = cache_ttl_seconds
        self._tracker = ensure_tracker(progress)
        self._model: Optional[ApiModel] = None
        self._warnings: list[str] = []

    # ------------------------------------------------------------------ #
    # Loading
    # ------------------------------------------------------------------ #

    async def load(self, finish: bool = True) -> ApiModel:
        """Fetch and parse the document.

        Args:
            finish: Emit the completion event once parsed. Callers that keep
                working on the tracker, such as generators, pass ``False``
                and report completion themselves. Failures are always
                reported.

        Returns:
            The parsed model.

        Raises:
            FetchError: If the document cannot be acquired.
            DocumentParseError: If even lenient parsing fails.
        """
        try:
            raw = await self._fetcher.fetch(
                self._reference,
                use_cache=self._use_cache,
                ttl_seconds=self._cache_ttl_seconds,
                progress=self._tracker,
            )
            self._tracker.emit(ProgressPhase.PARSE_START, "Parsing document")
            self._model = self._parse(raw)
        except Exception as exc:
            self._tracker.fail(f"Parsing failed: {exc}")
            raise
        summary = f"Parsed {len(self._model.operations)} operations from {self._model.info.title}"
        if finish:
            self._tracker.complete(summary)
        else:
            logger.debug(summary)
        return self._model

    def _parse(self, raw: dict[str, Any]) -> ApiModel:
        if not isinstance(raw, dict):
            raise DocumentParseError("Document is not a JSON/YAML object")

        if self._strict:
            try:
                return self._build_model(raw, strict=True)
            except DocumentParseError as exc:
                logger.warning("Strict parsing of %s failed, retrying leniently: %s",
                               self._reference.url, exc)
                self._warnings.append(FALLBACK_WARNING.format(error=exc))
                self._tracker.emit(
                    ProgressPhase.VALIDATION_FALLBACK, "Falling back to lenient parsing"
                )
        return self._build_model(raw, strict=False)

    def _build_model(self, raw: dict[str, Any], strict: bool) -> ApiModel:
        document = normalize_document(raw)
        if strict:
            validate_normalized(document)
        resolved = resolve_refs(document, strict=strict)
        try:
            return ApiModel(
                info=extract_info(resolved),
                dialect=detect_dialect(raw),
                servers=extract_servers(resolved),
                operations=extract_operations(resolved),
                schemas=dict(schema_section(resolved)),
            )
        except ValidationError as exc:
            raise DocumentParseError(f"Malformed document: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    @property
    def reference(self) -> DocumentReference:
        return self._reference

    @property
    def tracker(self) -> ProgressTracker:
        """The progress tracker of the last :meth:`load` call."""
        return self._tracker

    @property
    def warnings(self) -> list[str]:
        """Non-fatal problems recorded while parsing."""
        return list(self._warnings)

    @property
    def model(self) -> ApiModel:
        """The parsed model.

        Raises:
            DocumentParseError: If :meth:`load` has not completed.
        """
        return self._require_model()

    def get_operations(self) -> list[Operation]:
        return list(self._require_model().operations)

    def get_schemas(self) -> dict[str, dict[str, Any]]:
        """Return the schemas resolved so far."""
        return dict(self._require_model().schemas)

    def get_schema(self, name: str) -> Optional[dict[str, Any]]:
        """Return the named schema, or ``None`` if the document has no such schema."""
        return self._require_model().schemas.get(name)

    def get_all_schemas(self) -> dict[str, dict[str, Any]]:
        """Return every named schema in the document."""
        return self.get_schemas()

    def get_operations_by_tag(self, tag: str) -> list[Operation]:
        return filter_operations_by_tag(self.get_operations(), tag)

    def get_operations_by_path_prefix(self, prefix: str) -> list[Operation]:
        return filter_operations_by_path_prefix(self.get_operations(), prefix)

    def _require_model(self) -> ApiModel:
        if self._model is None:
            raise DocumentParseError("Document has not been loaded; call load() first")
        return self._model


class LazyApiParser(ApiParser):
    """Parse the operation list up front and named schemas on demand.

    :meth:`load` normalizes the document without its schema table and
    resolves references only under ``paths``. Schema references stay as
    names, so the operation list is complete without touching any schema.

    :meth:`get_schema` slices one schema out of the raw document,
    normalizes and resolves it in isolation, and memoizes the result.
    Operation accessors never trigger schema resolution.

    Lazy parsing does not validate the document. Requesting strict parsing
    records a warning instead.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._raw: Optional[dict[str, Any]] = None
        self._skeleton: dict[str, Any] = {}
        self._dialect = "unknown"
        self._schemas: dict[str, dict[str, Any]] = {}

    def _parse(self, raw: dict[str, Any]) -> ApiModel:
        if not isinstance(raw, dict):
            raise DocumentParseError("Document is not a JSON/YAML object")
        if self._strict:
            self._warnings.append(LAZY_VALIDATION_WARNING)

        self._raw = raw
        self._dialect = detect_dialect(raw)
        self._skeleton = normalize_document(raw, include_schemas=False)
        paths = resolve_refs(self._skeleton.get("paths") or {}, root=self._skeleton)
        logger.debug("Built lazy skeleton with %d paths", len(paths))
        return ApiModel(
            info=extract_info(self._skeleton),
            dialect=self._dialect,
            servers=extract_servers(self._skeleton),
            operations=extract_operations({"paths": paths}),
        )

    @property
    def model(self) -> ApiModel:
        """The parsed model, with the schemas materialized so far."""
        return self._require_model().model_copy(update={"schemas": dict(self._schemas)})

    @property
    def resolved_schema_names(self) -> list[str]:
        """Names of the schemas materialized so far, in materialization order."""
        return list(self._schemas)

    def schema_names(self) -> list[str]:
        """Every schema name declared in the document, materialized or not."""
        self._require_model()
        return list(schema_section(self._raw or {}).keys())

    def get_schemas(self) -> dict[str, dict[str, Any]]:
        self._require_model()
        return dict(self._schemas)

    def get_schema(self, name: str) -> Optional[dict[str, Any]]:
        self._require_model()
        if name in self._schemas:
            return self._schemas[name]
        section = schema_section(self._raw or {})
        if name not in section:
            return None
        schema = resolve_refs(
            normalize_schema(section[name], self._dialect), root=self._skeleton
        )
        self._schemas[name] = schema
        logger.debug("Materialized schema %s", name)
        return schema

    def get_all_schemas(self) -> dict[str, dict[str, Any]]:
        for name in self.schema_names():
            self.get_schema(name)
        return dict(self._schemas)


def create_parser(
    reference: DocumentReference,
    fetcher: DocumentFetcher,
    *,
    lazy: bool = False,
    strict: bool = True,
    use_cache: bool = True,
    cache_ttl_seconds: Optional[int] = None,
    progress: "ProgressTracker | ProgressSink | None" = None,
) -> ApiParser:
    """Return an eager or lazy parser for *reference* (not yet loaded)."""
    parser_class = LazyApiParser if lazy else ApiParser
    return parser_class(
        reference,
        fetcher,
        strict=strict,
        use_cache=use_cache,
        cache_ttl_seconds=cache_ttl_seconds,
        progress=progress,
    )

