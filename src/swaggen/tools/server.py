"""MCP tool server exposing the handlers over stdio.

:func:`create_server` registers every tool on a :class:`mcp.server.FastMCP`
instance bound to one :class:`~swaggen.services.Services`. Tool arguments
use the camelCase names of the external interface; each tool collects the
arguments it was given, validates them into the handler's parameter model
and returns the handler's result as indented JSON text.

Tools: ``parse-swagger``, ``parse-swagger-optimized``, ``parse-swagger-lite``,
``generate-typescript-types``, ``generate-typescript-types-optimized``,
``generate-api-client``, ``generate-api-client-optimized``,
``template-list``, ``template-get``, ``template-save``, ``template-delete``,
``file_writer`` and ``cache-clear``.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Optional

from mcp.server import FastMCP
from pydantic import ValidationError

from swaggen import __version__
from swaggen.services import Services
from swaggen.tools.file_writer import FileWriteParams, write_file
from swaggen.tools.handlers import (
    CacheClearParams,
    ClientParams,
    OptimizedParseParams,
    ParseParams,
    TemplateIdParams,
    TemplateListParams,
    TemplateSaveParams,
    ToolHandlers,
    ToolParams,
    TypesParams,
)

logger = logging.getLogger(__name__)

SERVER_NAME = "swaggen"
INSTRUCTIONS = """\
Parse Swagger/OpenAPI documents and generate TypeScript code from them.

Typical workflow:
1. parse-swagger-lite (large documents) or parse-swagger to inspect the API.
2. generate-typescript-types to write one declaration file per schema.
3. generate-api-client with clientType axios, fetch or react-query.
Templates used by the client generator can be listed, read and customised
with the template-* tools.
"""


def _json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, default=str)


async def _call(
    model: type[ToolParams],
    handler: Callable[[Any], Awaitable[dict[str, Any]]],
    arguments: dict[str, Any],
) -> str:
    """Validate the non-``None`` *arguments* into *model* and run *handler*."""
    try:
        params = model.model_validate({k: v for k, v in arguments.items() if v is not None})
    except ValidationError as exc:
        return _json({"success": False, "error": f"Invalid parameters: {exc}"})
    try:
        return _json(await handler(params))
    except Exception as exc:
        logger.exception("Tool handler failed")
        return _json({"success": False, "error": str(exc)})


def create_server(services: Services) -> FastMCP:
    """Build the MCP server for *services*."""
    server = FastMCP(name=SERVER_NAME, instructions=INSTRUCTIONS)
    handlers = ToolHandlers(services)

    # --- Parsing ---

    @server.tool(
        name="parse-swagger",
        description="Parse a Swagger/OpenAPI document and return its API operations.",
    )
    async def parse_swagger(
        url: str,
        headers: Optional[dict[str, str]] = None,
        includeSchemas: Optional[bool] = None,
        includeDetails: Optional[bool] = None,
    ) -> str:
        return await _call(ParseParams, handlers.parse_swagger, dict(locals()))

    @server.tool(
        name="parse-swagger-optimized",
        description=(
            "Parse a Swagger/OpenAPI document with caching, optional lazy schema "
            "loading and tag or path filtering."
        ),
    )
    async def parse_swagger_optimized(
        url: str,
        headers: Optional[dict[str, str]] = None,
        includeSchemas: Optional[bool] = None,
        includeDetails: Optional[bool] = None,
        skipValidation: Optional[bool] = None,
        useCache: Optional[bool] = None,
        cacheTTLMinutes: Optional[float] = None,
        lazyLoading: Optional[bool] = None,
        filterTag: Optional[str] = None,
        pathPrefix: Optional[str] = None,
    ) -> str:
        return await _call(
            OptimizedParseParams, handlers.parse_swagger_optimized, dict(locals())
        )

    @server.tool(
        name="parse-swagger-lite",
        description=(
            "Lightweight parse of a large Swagger/OpenAPI document. Schemas are "
            "resolved only when requested."
        ),
    )
    async def parse_swagger_lite(
        url: str,
        headers: Optional[dict[str, str]] = None,
        includeSchemas: Optional[bool] = None,
        includeDetails: Optional[bool] = None,
        skipValidation: Optional[bool] = None,
        useCache: Optional[bool] = None,
        cacheTTLMinutes: Optional[float] = None,
        filterTag: Optional[str] = None,
        pathPrefix: Optional[str] = None,
    ) -> str:
        async def run(params: OptimizedParseParams) -> dict[str, Any]:
            return await handlers.parse_swagger_optimized(params, lite=True)

        return await _call(OptimizedParseParams, run, dict(locals()))

    # --- Type generation ---

    async def types_tool(arguments: dict[str, Any], optimized: bool) -> str:
        async def run(params: TypesParams) -> dict[str, Any]:
            return await handlers.generate_types(params, optimized=optimized)

        return await _call(TypesParams, run, arguments)

    @server.tool(
        name="generate-typescript-types",
        description="Generate TypeScript type definitions from a Swagger/OpenAPI document.",
    )
    async def generate_typescript_types(
        swaggerUrl: str,
        outputDir: Optional[str] = None,
        overwrite: Optional[bool] = None,
        filePrefix: Optional[str] = None,
        fileSuffix: Optional[str] = None,
        useNamespace: Optional[bool] = None,
        namespace: Optional[str] = None,
        generateEnums: Optional[bool] = None,
        strictTypes: Optional[bool] = None,
        excludeSchemas: Optional[list[str]] = None,
        includeSchemas: Optional[list[str]] = None,
        generateIndex: Optional[bool] = None,
        headers: Optional[dict[str, str]] = None,
        typeMapping: Optional[dict[str, str]] = None,
    ) -> str:
        return await types_tool(dict(locals()), optimized=False)

    @server.tool(
        name="generate-typescript-types-optimized",
        description=(
            "Generate TypeScript type definitions with caching and lazy schema loading "
            "for large documents."
        ),
    )
    async def generate_typescript_types_optimized(
        swaggerUrl: str,
        outputDir: Optional[str] = None,
        overwrite: Optional[bool] = None,
        filePrefix: Optional[str] = None,
        fileSuffix: Optional[str] = None,
        useNamespace: Optional[bool] = None,
        namespace: Optional[str] = None,
        generateEnums: Optional[bool] = None,
        strictTypes: Optional[bool] = None,
        excludeSchemas: Optional[list[str]] = None,
        includeSchemas: Optional[list[str]] = None,
        generateIndex: Optional[bool] = None,
        headers: Optional[dict[str, str]] = None,
        typeMapping: Optional[dict[str, str]] = None,
        useCache: Optional[bool] = None,
        cacheTTLMinutes: Optional[float] = None,
        skipValidation: Optional[bool] = None,
        lazyLoading: Optional[bool] = None,
    ) -> str:
        return await types_tool(dict(locals()), optimized=True)

    # --- Client generation ---

    async def client_tool(arguments: dict[str, Any], optimized: bool) -> str:
        async def run(params: ClientParams) -> dict[str, Any]:
            return await handlers.generate_client(params, optimized=optimized)

        return await _call(ClientParams, run, arguments)

    @server.tool(
        name="generate-api-client",
        description="Generate API client code (axios, fetch or react-query) from a document.",
    )
    async def generate_api_client(
        swaggerUrl: str,
        outputDir: Optional[str] = None,
        overwrite: Optional[bool] = None,
        filePrefix: Optional[str] = None,
        fileSuffix: Optional[str] = None,
        clientType: Optional[str] = None,
        generateTypeImports: Optional[bool] = None,
        typesImportPath: Optional[str] = None,
        groupBy: Optional[str] = None,
        includeTags: Optional[list[str]] = None,
        excludeTags: Optional[list[str]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> str:
        return await client_tool(dict(locals()), optimized=False)

    @server.tool(
        name="generate-api-client-optimized",
        description=(
            "Generate API client code with caching and lazy schema loading for large "
            "documents."
        ),
    )
    async def generate_api_client_optimized(
        swaggerUrl: str,
        outputDir: Optional[str] = None,
        overwrite: Optional[bool] = None,
        filePrefix: Optional[str] = None,
        fileSuffix: Optional[str] = None,
        clientType: Optional[str] = None,
        generateTypeImports: Optional[bool] = None,
        typesImportPath: Optional[str] = None,
        groupBy: Optional[str] = None,
        includeTags: Optional[list[str]] = None,
        excludeTags: Optional[list[str]] = None,
        headers: Optional[dict[str, str]] = None,
        useCache: Optional[bool] = None,
        cacheTTLMinutes: Optional[float] = None,
        skipValidation: Optional[bool] = None,
        lazyLoading: Optional[bool] = None,
    ) -> str:
        return await client_tool(dict(locals()), optimized=True)

    # --- Templates ---

    @server.tool(name="template-list", description="List the available code templates.")
    async def template_list(
        type: Optional[str] = None,
        framework: Optional[str] = None,
        includeContent: Optional[bool] = None,
    ) -> str:
        return await _call(TemplateListParams, handlers.template_list, dict(locals()))

    @server.tool(name="template-get", description="Return one template, body included.")
    async def template_get(id: str) -> str:
        return await _call(TemplateIdParams, handlers.template_get, dict(locals()))

    @server.tool(
        name="template-save",
        description="Create or replace a custom template. Built-in ids are rejected.",
    )
    async def template_save(
        id: str,
        name: str,
        type: str,
        content: str,
        framework: Optional[str] = None,
        description: Optional[str] = None,
    ) -> str:
        return await _call(TemplateSaveParams, handlers.template_save, dict(locals()))

    @server.tool(name="template-delete", description="Delete a custom template.")
    async def template_delete(id: str) -> str:
        return await _call(TemplateIdParams, handlers.template_delete, dict(locals()))

    # --- Utilities ---

    @server.tool(
        name="file_writer",
        description="Write content to a file, creating parent directories when needed.",
    )
    async def file_writer(
        filePath: str,
        content: str,
        createDirs: Optional[bool] = None,
        append: Optional[bool] = None,
        encoding: Optional[str] = None,
    ) -> str:
        return await _call(FileWriteParams, write_file, dict(locals()))

    @server.tool(
        name="cache-clear",
        description="Evict one document from the cache, or clear the whole cache.",
    )
    async def cache_clear(
        url: Optional[str] = None, headers: Optional[dict[str, str]] = None
    ) -> str:
        return await _call(CacheClearParams, handlers.cache_clear, dict(locals()))

    logger.debug("Registered tools for swaggen %s", __version__)
    return server


def run_server(services: Services) -> None:
    """Serve the tools over stdio until the client disconnects."""
    server = create_server(services)
    logger.info("Starting MCP server on stdio")
    server.run("stdio")
