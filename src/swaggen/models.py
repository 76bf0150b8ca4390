"""Canonical Pydantic models shared across all swaggen modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into four groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`CacheConfig`, :class:`FetchConfig` and :class:`GlobalConfig`.

**Document models** -- produced by the parser and consumed by projections
and generators:
    :class:`DocumentReference`, :class:`HTTPMethod`,
    :class:`ParameterLocation`, :class:`Parameter`, :class:`RequestBody`,
    :class:`Response`, :class:`Operation`, :class:`ApiInfo` and
    :class:`ApiModel`.

**Template models** -- the template manager's manifest entries:
    :class:`TemplateType`, :class:`Framework` and :class:`TemplateInfo`.

**Generator models** -- options and results of the code generators:
    :class:`GroupBy`, :class:`ClientType`, :class:`TypesGeneratorOptions`,
    :class:`ClientGeneratorOptions` and :class:`GenerationResult`.

Schemas themselves are kept as plain JSON-schema dictionaries. They are
interpreted structurally by :mod:`swaggen.generator.type_resolver`.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

MIB = 1024 * 1024

# --- Configuration ---


class CacheConfig(BaseModel):
    """Document cache settings stored in :class:`GlobalConfig`."""

    enabled: bool = Field(default=True, description="Enable document caching")
    ttl_minutes: int = Field(default=60, ge=0, description="Cache TTL in minutes")
    directory: Optional[str] = Field(
        default=None,
        description="Directory of the on-disk cache tier (defaults to <cache_dir>/documents)",
    )


class FetchConfig(BaseModel):
    """Limits applied when acquiring documents over the network."""

    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    probe_timeout: float = Field(
        default=5.0, gt=0, description="Timeout for each UI-URL candidate probe"
    )
    max_bytes: int = Field(
        default=50 * MIB, gt=0, description="Maximum accepted document size in bytes"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/swaggen/config.json``.

    Loaded and saved by :func:`~swaggen.config.load_global_config` and
    :func:`~swaggen.config.save_global_config`. Environment variables are
    applied on top by :func:`~swaggen.config.resolve_config`.
    """

    cache: CacheConfig = Field(default_factory=CacheConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    templates_dir: Optional[str] = Field(
        default=None, description="Directory holding user-supplied templates"
    )
    log_level: str = Field(default="INFO", description="Default log level")


# --- Documents ---


class DocumentReference(BaseModel):
    """Where a document lives: a URL or local path plus request headers.

    Immutable once created so that a parse in progress always works on the
    same reference.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    headers: dict[str, str] = Field(default_factory=dict)


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised on path items, in extraction order."""

    GET = "get"
    POST = "post"
    PUT = "put"
    DELETE = "delete"
    PATCH = "patch"
    OPTIONS = "options"
    HEAD = "head"


class ParameterLocation(str, enum.Enum):
    """Locations where an operation parameter can appear, per the ``in`` field."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class Parameter(BaseModel):
    """A single operation parameter with its type schema."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    location: ParameterLocation
    required: bool = False
    description: Optional[str] = None
    schema_: Optional[dict[str, Any]] = Field(default=None, alias="schema")


class RequestBody(BaseModel):
    """Request body metadata: accepted content types and the first declared schema."""

    model_config = ConfigDict(populate_by_name=True)

    required: bool = False
    description: Optional[str] = None
    content_types: list[str] = Field(default_factory=list)
    schema_: Optional[dict[str, Any]] = Field(default=None, alias="schema")


class Response(BaseModel):
    """Response metadata for a single status code."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: str
    description: Optional[str] = None
    content_types: list[str] = Field(default_factory=list)
    schema_: Optional[dict[str, Any]] = Field(default=None, alias="schema")


SUCCESS_STATUS_CODES = ("200", "201", "204")


class Operation(BaseModel):
    """One HTTP method and path pair extracted from a document.

    ``operation_id`` is either the document's own ``operationId`` or one
    synthesized from the method and path. Synthesized ids are not
    de-duplicated.
    """

    operation_id: str
    method: HTTPMethod
    path: str
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    parameters: list[Parameter] = Field(default_factory=list)
    request_body: Optional[RequestBody] = None
    responses: dict[str, Response] = Field(default_factory=dict)
    deprecated: bool = False

    def parameters_in(self, location: ParameterLocation) -> list[Parameter]:
        """Return the parameters declared at *location*, in document order."""
        return [p for p in self.parameters if p.location == location]

    def success_response(self) -> Optional[Response]:
        """Return the first declared 200, 201 or 204 response, if any."""
        for code in SUCCESS_STATUS_CODES:
            if code in self.responses:
                return self.responses[code]
        return None


class ApiInfo(BaseModel):
    """Document metadata from the *Info Object*."""

    title: str = "Untitled API"
    version: str = "0.0.0"
    description: Optional[str] = None


class ApiModel(BaseModel):
    """The result of one parse: metadata, operations and the schema table.

    In eager mode the schema table is complete. In lazy mode it only holds
    the schemas materialized so far.
    """

    info: ApiInfo = Field(default_factory=ApiInfo)
    dialect: str = "unknown"
    servers: list[str] = Field(default_factory=list)
    operations: list[Operation] = Field(default_factory=list)
    schemas: dict[str, dict[str, Any]] = Field(default_factory=dict)


# --- Templates ---


class TemplateType(str, enum.Enum):
    """What a template produces."""

    API_CLIENT = "api-client"
    TYPESCRIPT_TYPES = "typescript-types"
    CONFIG_FILE = "config-file"


class Framework(str, enum.Enum):
    """Client framework a template targets."""

    AXIOS = "axios"
    FETCH = "fetch"
    REACT_QUERY = "react-query"
    SWR = "swr"
    ANGULAR = "angular"
    VUE = "vue"


class TemplateInfo(BaseModel):
    """A template manifest entry, optionally carrying its body.

    ``path`` is relative to the directory of the manifest that declares the
    template. ``built_in`` is derived from which manifest the entry came
    from and is never persisted.
    """

    id: str
    name: str
    type: TemplateType
    framework: Optional[Framework] = None
    path: Optional[str] = None
    description: Optional[str] = None
    built_in: bool = False
    content: Optional[str] = None

    def manifest_entry(self) -> dict[str, Any]:
        """Return the JSON form written to ``templates.json``."""
        return self.model_dump(
            mode="json", exclude={"built_in", "content"}, exclude_none=True
        )


# --- Generators ---


class GroupBy(str, enum.Enum):
    """How client operations are split into files."""

    TAG = "tag"
    PATH = "path"
    NONE = "none"


class ClientType(str, enum.Enum):
    """Supported client code styles."""

    AXIOS = "axios"
    FETCH = "fetch"
    REACT_QUERY = "react-query"


class GeneratorOptions(BaseModel):
    """Options shared by every generator."""

    output_dir: str = "./generated"
    overwrite: bool = False
    file_prefix: str = ""
    file_suffix: str = ""


class TypesGeneratorOptions(GeneratorOptions):
    """Options for :class:`~swaggen.generator.types_generator.TypesGenerator`.

    ``include_schemas`` takes precedence over ``exclude_schemas`` when both
    are given.
    """

    use_namespace: bool = False
    namespace: str = "API"
    generate_enums: bool = True
    strict_types: bool = True
    type_mapping: dict[str, str] = Field(default_factory=dict)
    include_schemas: list[str] = Field(default_factory=list)
    exclude_schemas: list[str] = Field(default_factory=list)
    generate_index: bool = True


class ClientGeneratorOptions(GeneratorOptions):
    """Options for :class:`~swaggen.generator.client_generator.ClientGenerator`.

    ``include_tags`` takes precedence over ``exclude_tags`` when both are
    given.
    """

    output_dir: str = "./generated/api"
    client_type: ClientType = ClientType.AXIOS
    generate_type_imports: bool = True
    types_import_path: str = "../types"
    group_by: GroupBy = GroupBy.TAG
    include_tags: list[str] = Field(default_factory=list)
    exclude_tags: list[str] = Field(default_factory=list)


class GenerationResult(BaseModel):
    """Outcome of a generator run.

    Generators never raise past their boundary. A run either succeeds with
    the written ``files`` (and per-item ``warnings``) or fails with
    ``error``.
    """

    success: bool
    files: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    error: Optional[str] = None
    progress: Optional[float] = None

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready form used by the tool surface."""
        payload: dict[str, Any] = {"success": self.success, "files": self.files}
        if self.warnings:
            payload["warnings"] = self.warnings
        if self.error is not None:
            payload["error"] = self.error
        if self.progress is not None:
            payload["progress"] = self.progress
        return payload
