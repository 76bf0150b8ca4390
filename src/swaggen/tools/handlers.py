"""Implementations of the tool operations.

Each public coroutine on :class:`ToolHandlers` takes a validated parameter
model and returns a JSON-ready ``dict`` with a ``success`` flag. Nothing
here raises past the handler: acquisition, parse and generation failures
come back as ``{"success": False, "error": ...}``.

Parameter models accept the camelCase names of the external interface
(``swaggerUrl``, ``includeSchemas``) as well as their snake_case field
names.

Defaults per tool family:

==========================  =======  ==========  ========
Tool                        cache    validation  lazy
==========================  =======  ==========  ========
parse-swagger               on       strict      no
parse-swagger-optimized     on       skipped     no
parse-swagger-lite          on       skipped     forced
generate-* (standard)       on       skipped     no
generate-*-optimized        on       skipped     yes
==========================  =======  ==========  ========

The optimized variants honour the caller's ``useCache``,
``skipValidation``, ``cacheTTLMinutes`` and ``lazyLoading`` and report
``progress`` / ``progressMessage``.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from swaggen.cache import DocumentCache
from swaggen.exceptions import SwaggenError, TemplateCollisionError
from swaggen.generator import ClientGenerator, TypeResolver, TypesGenerator
from swaggen.models import (
    ClientGeneratorOptions,
    ClientType,
    Framework,
    GroupBy,
    Operation,
    TemplateType,
    TypesGeneratorOptions,
)
from swaggen.parser import ApiParser, LazyApiParser
from swaggen.progress import ProgressTracker
from swaggen.projections import filter_operations_by_path_prefix, filter_operations_by_tag
from swaggen.services import Services

logger = logging.getLogger(__name__)

DEFAULT_OPTIMIZED_TTL_MINUTES = 60


class ToolParams(BaseModel):
    """Base of every tool parameter model."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ParseParams(ToolParams):
    url: str = Field(description="Swagger/OpenAPI document URL or file path")
    headers: dict[str, str] = Field(default_factory=dict, description="Request headers")
    include_schemas: bool = Field(default=False, description="Include schema definitions")
    include_details: bool = Field(
        default=False, description="Include parameters, request bodies and responses"
    )


class OptimizedParseParams(ParseParams):
    skip_validation: bool = Field(
        default=True, description="Skip strict validation of non-compliant documents"
    )
    use_cache: bool = Field(default=True, description="Use the document cache")
    cache_ttl_minutes: float = Field(
        default=DEFAULT_OPTIMIZED_TTL_MINUTES, ge=0, alias="cacheTTLMinutes",
        description="Cache TTL in minutes",
    )
    lazy_loading: bool = Field(default=False, description="Resolve schemas on demand")
    filter_tag: Optional[str] = Field(default=None, description="Only operations with this tag")
    path_prefix: Optional[str] = Field(
        default=None, description="Only operations whose path starts with this prefix"
    )


class LoadingParams(ToolParams):
    """Document loading switches shared by the generator tools."""

    swagger_url: str = Field(description="Swagger/OpenAPI document URL or file path")
    headers: dict[str, str] = Field(default_factory=dict, description="Request headers")
    use_cache: Optional[bool] = Field(default=None, description="Use the document cache")
    cache_ttl_minutes: Optional[float] = Field(
        default=None, ge=0, alias="cacheTTLMinutes", description="Cache TTL in minutes"
    )
    skip_validation: Optional[bool] = Field(default=None, description="Skip strict validation")
    lazy_loading: Optional[bool] = Field(default=None, description="Resolve schemas on demand")
    output_dir: Optional[str] = Field(default=None, description="Output directory")
    overwrite: bool = Field(default=False, description="Overwrite existing files")
    file_prefix: str = Field(default="", description="File name prefix")
    file_suffix: str = Field(default="", description="File name suffix")


class TypesParams(LoadingParams):
    use_namespace: bool = Field(default=False, description="Wrap declarations in a namespace")
    namespace: str = Field(default="API", description="Namespace name")
    generate_enums: bool = Field(default=True, description="Generate enum declarations")
    strict_types: bool = Field(default=True, description="Keep required properties required")
    include_schemas: list[str] = Field(default_factory=list, description="Schemas to include")
    exclude_schemas: list[str] = Field(default_factory=list, description="Schemas to exclude")
    generate_index: bool = Field(default=True, description="Write an index.ts")
    type_mapping: dict[str, str] = Field(
        default_factory=dict, description="Replace referenced type names"
    )


class ClientParams(LoadingParams):
    client_type: ClientType = Field(default=ClientType.AXIOS, description="Client style")
    generate_type_imports: bool = Field(default=True, description="Import schema types")
    types_import_path: str = Field(default="../types", description="Import path of the types")
    group_by: GroupBy = Field(default=GroupBy.TAG, description="How operations are grouped")
    include_tags: list[str] = Field(default_factory=list, description="Tags to include")
    exclude_tags: list[str] = Field(default_factory=list, description="Tags to exclude")


class TemplateListParams(ToolParams):
    type: Union[TemplateType, Literal["all"], None] = Field(
        default=None, description="Template type filter"
    )
    framework: Optional[Framework] = Field(default=None, description="Framework filter")
    include_content: bool = Field(default=False, description="Include template bodies")


class TemplateIdParams(ToolParams):
    id: str = Field(description="Template id")


class TemplateSaveParams(ToolParams):
    id: str = Field(description="Template id")
    name: str = Field(description="Template name")
    type: TemplateType = Field(description="Template type")
    content: str = Field(description="Template body")
    framework: Optional[Framework] = Field(default=None, description="Target framework")
    description: Optional[str] = Field(default=None, description="Template description")


class CacheClearParams(ToolParams):
    url: Optional[str] = Field(
        default=None, description="Document to evict; the whole cache when omitted"
    )
    headers: dict[str, str] = Field(default_factory=dict, description="Request headers")


def _failure(exc: BaseException) -> dict[str, Any]:
    return {"success": False, "error": str(exc)}


def operation_summary(operation: Operation, include_details: bool) -> dict[str, Any]:
    """Return the JSON form of one operation, trimmed unless *include_details*."""
    summary: dict[str, Any] = {
        "operationId": operation.operation_id,
        "method": operation.method.value,
        "path": operation.path,
        "summary": operation.summary,
        "tags": operation.tags,
    }
    if include_details:
        summary["parameters"] = [
            p.model_dump(mode="json", by_alias=True, exclude_none=True)
            for p in operation.parameters
        ]
        summary["requestBody"] = (
            operation.request_body.model_dump(mode="json", by_alias=True, exclude_none=True)
            if operation.request_body
            else None
        )
        summary["responses"] = {
            code: r.model_dump(mode="json", by_alias=True, exclude_none=True)
            for code, r in operation.responses.items()
        }
    return summary


def referenced_schemas(parser: ApiParser, operations: list[Operation]) -> dict[str, Any]:
    """Return the schemas reachable from *operations*, materializing only those."""
    roots: list[Any] = []
    for op in operations:
        roots.extend(p.schema_ for p in op.parameters if p.schema_)
        if op.request_body and op.request_body.schema_:
            roots.append(op.request_body.schema_)
        roots.extend(r.schema_ for r in op.responses.values() if r.schema_)
    names = TypeResolver(lookup=parser.get_schema).collect_references(*roots)
    schemas = {}
    for name in names:
        schema = parser.get_schema(name)
        if schema is not None:
            schemas[name] = schema
    return schemas


class ToolHandlers:
    """Tool operations bound to one :class:`~swaggen.services.Services`."""

    def __init__(self, services: Services) -> None:
        self._services = services

    # ------------------------------------------------------------------ #
    # Parsing
    # ------------------------------------------------------------------ #

    async def parse_swagger(self, params: ParseParams) -> dict[str, Any]:
        """Parse eagerly with strict validation and lenient fallback."""
        logger.info("Parsing document %s", params.url)
        parser = self._services.open_parser(params.url, params.headers, strict=True)
        try:
            model = await parser.load()
        except Exception as exc:
            logger.error("Parsing %s failed: %s", params.url, exc)
            return _failure(exc)

        result: dict[str, Any] = {
            "success": True,
            "info": model.info.model_dump(mode="json"),
            "operationsCount": len(model.operations),
            "operations": [
                operation_summary(op, params.include_details) for op in model.operations
            ],
        }
        if params.include_schemas:
            result["schemas"] = parser.get_all_schemas()
        if parser.warnings:
            result["warnings"] = parser.warnings
        logger.info("Parsed %d operations from %s", len(model.operations), params.url)
        return result

    async def parse_swagger_optimized(
        self, params: OptimizedParseParams, lite: bool = False
    ) -> dict[str, Any]:
        """Parse with caller-controlled caching, validation and laziness.

        Args:
            params: Tool parameters.
            lite: Force lazy loading (the ``parse-swagger-lite`` tool).
        """
        lazy = lite or params.lazy_loading
        tracker = ProgressTracker()
        parser = self._services.open_parser(
            params.url,
            params.headers,
            lazy=lazy,
            strict=not params.skip_validation,
            use_cache=params.use_cache,
            cache_ttl_seconds=int(params.cache_ttl_minutes * 60),
            progress=tracker,
        )
        try:
            model = await parser.load()
        except Exception as exc:
            logger.error("Parsing %s failed: %s", params.url, exc)
            return {
                **_failure(exc),
                "progress": tracker.fraction,
                "progressMessage": tracker.message,
            }

        if params.filter_tag:
            operations = filter_operations_by_tag(model.operations, params.filter_tag)
        elif params.path_prefix:
            operations = filter_operations_by_path_prefix(model.operations, params.path_prefix)
        else:
            operations = list(model.operations)

        result: dict[str, Any] = {
            "success": True,
            "progress": tracker.fraction,
            "progressMessage": tracker.message,
            "info": model.info.model_dump(mode="json"),
            "operationsCount": len(operations),
            "operations": [operation_summary(op, params.include_details) for op in operations],
        }
        if params.include_schemas:
            if isinstance(parser, LazyApiParser):
                result["schemas"] = referenced_schemas(parser, operations)
            else:
                result["schemas"] = parser.get_all_schemas()
        if parser.warnings:
            result["warnings"] = parser.warnings
        return result

    # ------------------------------------------------------------------ #
    # Generation
    # ------------------------------------------------------------------ #

    async def generate_types(
        self, params: TypesParams, optimized: bool = False
    ) -> dict[str, Any]:
        options = TypesGeneratorOptions(
            use_namespace=params.use_namespace,
            namespace=params.namespace,
            generate_enums=params.generate_enums,
            strict_types=params.strict_types,
            type_mapping=params.type_mapping,
            include_schemas=params.include_schemas,
            exclude_schemas=params.exclude_schemas,
            generate_index=params.generate_index,
            overwrite=params.overwrite,
            file_prefix=params.file_prefix,
            file_suffix=params.file_suffix,
            **({"output_dir": params.output_dir} if params.output_dir else {}),
        )
        return await self._generate(params, optimized, TypesGenerator(), options)

    async def generate_client(
        self, params: ClientParams, optimized: bool = False
    ) -> dict[str, Any]:
        options = ClientGeneratorOptions(
            client_type=params.client_type,
            generate_type_imports=params.generate_type_imports,
            types_import_path=params.types_import_path,
            group_by=params.group_by,
            include_tags=params.include_tags,
            exclude_tags=params.exclude_tags,
            overwrite=params.overwrite,
            file_prefix=params.file_prefix,
            file_suffix=params.file_suffix,
            **({"output_dir": params.output_dir} if params.output_dir else {}),
        )
        generator = ClientGenerator(self._services.templates)
        return await self._generate(params, optimized, generator, options)

    async def _generate(
        self,
        params: LoadingParams,
        optimized: bool,
        generator: Union[TypesGenerator, ClientGenerator],
        options: Any,
    ) -> dict[str, Any]:
        tracker = ProgressTracker()
        ttl_minutes = params.cache_ttl_minutes
        if ttl_minutes is None and optimized:
            ttl_minutes = DEFAULT_OPTIMIZED_TTL_MINUTES
        parser = self._services.open_parser(
            params.swagger_url,
            params.headers,
            lazy=optimized and _flag(params.lazy_loading, True),
            strict=optimized and not _flag(params.skip_validation, True),
            use_cache=_flag(params.use_cache, True) if optimized else True,
            cache_ttl_seconds=int(ttl_minutes * 60) if ttl_minutes is not None else None,
            progress=tracker,
        )
        logger.info("Running %s for %s", generator.name, params.swagger_url)
        try:
            await parser.load(finish=False)
        except Exception as exc:
            logger.error("Loading %s failed: %s", params.swagger_url, exc)
            payload = _failure(exc)
        else:
            result = await generator.generate(parser, options)
            result.warnings = parser.warnings + result.warnings
            payload = result.to_payload()

        if optimized:
            payload["progress"] = tracker.fraction
            payload["progressMessage"] = tracker.message
        return payload

    # ------------------------------------------------------------------ #
    # Templates
    # ------------------------------------------------------------------ #

    async def template_list(self, params: TemplateListParams) -> dict[str, Any]:
        template_type = None if params.type in (None, "all") else TemplateType(params.type)
        try:
            templates = self._services.templates.list_templates(
                type=template_type,
                framework=params.framework,
                include_content=params.include_content,
            )
        except SwaggenError as exc:
            return _failure(exc)
        return {
            "success": True,
            "templates": [
                t.model_dump(mode="json", exclude_none=True) for t in templates
            ],
        }

    async def template_get(self, params: TemplateIdParams) -> dict[str, Any]:
        try:
            template = self._services.templates.get_template(params.id)
        except SwaggenError as exc:
            return _failure(exc)
        if template is None:
            return {"success": False, "error": f"Template not found with ID: {params.id}"}
        return {"success": True, "template": template.model_dump(mode="json", exclude_none=True)}

    async def template_save(self, params: TemplateSaveParams) -> dict[str, Any]:
        try:
            template = self._services.templates.save_template(
                params.id,
                params.name,
                params.type,
                params.content,
                framework=params.framework,
                description=params.description,
            )
        except TemplateCollisionError as exc:
            logger.warning("%s", exc)
            return _failure(exc)
        except SwaggenError as exc:
            logger.error("Saving template %s failed: %s", params.id, exc)
            return _failure(exc)
        return {"success": True, "template": template.model_dump(mode="json", exclude_none=True)}

    async def template_delete(self, params: TemplateIdParams) -> dict[str, Any]:
        try:
            deleted = self._services.templates.delete_template(params.id)
        except SwaggenError as exc:
            return _failure(exc)
        if not deleted:
            return {
                "success": False,
                "error": (
                    f"Failed to delete template with ID: {params.id}. "
                    "It may be a built-in template or not exist."
                ),
            }
        return {"success": True, "message": f"Template with ID: {params.id} has been deleted."}

    # ------------------------------------------------------------------ #
    # Cache
    # ------------------------------------------------------------------ #

    async def cache_clear(self, params: CacheClearParams) -> dict[str, Any]:
        if params.url:
            self._services.fetcher.clear_cache(params.url, params.headers)
            return {
                "success": True,
                "message": f"Evicted {params.url} from the document cache",
                "key": DocumentCache.make_key(params.url, params.headers),
            }
        self._services.fetcher.clear_cache()
        return {"success": True, "message": "Document cache cleared"}


def _flag(value: Optional[bool], default: bool) -> bool:
    return default if value is None else value
