"""Document commands -- parse a document and generate code from it.

Implements the ``swaggen parse``, ``swaggen types`` and ``swaggen client``
top-level commands. They run the same parser and generators as the MCP
tools, but let errors propagate as :class:`~swaggen.exceptions.SwaggenError`
so that :func:`swaggen.app.main` can map them to exit codes.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import typer

from swaggen.commands.common import get_services, parse_headers
from swaggen.exceptions import GenerationError
from swaggen.models import (
    ClientGeneratorOptions,
    ClientType,
    GenerationResult,
    GroupBy,
    TypesGeneratorOptions,
)
from swaggen.output import OutputFormat, get_output, info, print_json, print_table, success, warning

HEADER_HELP = "Request header as 'Name: value' (repeatable)."


def _json_mode() -> bool:
    return get_output().format == OutputFormat.JSON


def _report(result: GenerationResult, parser_warnings: list[str]) -> None:
    """Print a generator result, or raise when it failed."""
    if not result.success:
        raise GenerationError(result.error or "Generation failed")
    result.warnings = parser_warnings + result.warnings
    if _json_mode():
        print_json(result.to_payload())
        return
    for message in result.warnings:
        warning(message)
    print_table(["File"], [[f] for f in result.files], title="Generated files")
    success(f"Generated {len(result.files)} files")


def parse_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Document URL, documentation page URL or file path."),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help=HEADER_HELP),
    schemas: bool = typer.Option(False, "--schemas", help="Include schema definitions."),
    details: bool = typer.Option(
        False, "--details", help="Include parameters, request bodies and responses."
    ),
    lazy: bool = typer.Option(False, "--lazy", help="Resolve schemas on demand."),
    strict: bool = typer.Option(
        True, "--strict/--lenient", help="Validate the document before extracting."
    ),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the document cache."),
    tag: Optional[str] = typer.Option(None, "--tag", help="Only operations with this tag."),
    path_prefix: Optional[str] = typer.Option(
        None, "--path-prefix", help="Only operations whose path starts with this prefix."
    ),
) -> None:
    """Parse a document and list its operations.

    Rich and plain output show an operation table; ``--json`` prints the
    payload shape of the ``parse-swagger-optimized`` tool.

    Example::

        swaggen parse https://petstore3.swagger.io/api/v3/openapi.json
        swaggen --json parse ./openapi.yaml --tag pet --schemas
    """
    from swaggen.parser import LazyApiParser
    from swaggen.tools.handlers import operation_summary, referenced_schemas

    services = get_services(ctx)
    parser = services.open_parser(
        url, parse_headers(header), lazy=lazy, strict=strict, use_cache=not no_cache
    )
    model = asyncio.run(parser.load())

    operations = model.operations
    if tag:
        operations = parser.get_operations_by_tag(tag)
    elif path_prefix:
        operations = parser.get_operations_by_path_prefix(path_prefix)

    schema_table: dict[str, Any] = {}
    if schemas:
        if isinstance(parser, LazyApiParser):
            schema_table = referenced_schemas(parser, operations)
        else:
            schema_table = parser.get_all_schemas()

    if _json_mode():
        payload: dict[str, Any] = {
            "success": True,
            "info": model.info.model_dump(mode="json"),
            "operationsCount": len(operations),
            "operations": [operation_summary(op, details) for op in operations],
        }
        if schemas:
            payload["schemas"] = schema_table
        if parser.warnings:
            payload["warnings"] = parser.warnings
        print_json(payload)
        return

    for message in parser.warnings:
        warning(message)
    info(f"{model.info.title} {model.info.version} (OpenAPI {model.dialect})")
    rows = [
        [op.method.value.upper(), op.path, op.operation_id, ", ".join(op.tags), op.summary or ""]
        for op in operations
    ]
    print_table(["Method", "Path", "Operation", "Tags", "Summary"], rows, title="Operations")
    if schemas:
        print_table(["Schema"], [[name] for name in schema_table], title="Schemas")
    success(f"Parsed {len(operations)} operations")


def types_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Document URL, documentation page URL or file path."),
    output_dir: str = typer.Option("./generated", "--output", "-o", help="Output directory."),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help=HEADER_HELP),
    include: Optional[list[str]] = typer.Option(
        None, "--include", help="Schema to generate (repeatable). Wins over --exclude."
    ),
    exclude: Optional[list[str]] = typer.Option(
        None, "--exclude", help="Schema to skip (repeatable)."
    ),
    namespace: Optional[str] = typer.Option(
        None, "--namespace", help="Wrap every declaration in this namespace."
    ),
    enums: bool = typer.Option(True, "--enums/--no-enums", help="Generate enum declarations."),
    strict_types: bool = typer.Option(
        True, "--strict-types/--loose-types", help="Keep required properties required."
    ),
    index: bool = typer.Option(True, "--index/--no-index", help="Write an index.ts."),
    prefix: str = typer.Option("", "--prefix", help="File name prefix."),
    suffix: str = typer.Option("", "--suffix", help="File name suffix."),
    overwrite: bool = typer.Option(False, "--overwrite", help="Overwrite existing files."),
    lazy: bool = typer.Option(False, "--lazy", help="Resolve schemas on demand."),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the document cache."),
) -> None:
    """Generate one TypeScript declaration file per schema.

    Example::

        swaggen types ./openapi.json -o src/types
        swaggen types https://api.example.com/doc.html --include Pet --include Owner
    """
    from swaggen.generator import TypesGenerator

    services = get_services(ctx)
    parser = services.open_parser(
        url, parse_headers(header), lazy=lazy, strict=False, use_cache=not no_cache
    )
    options = TypesGeneratorOptions(
        output_dir=output_dir,
        overwrite=overwrite,
        file_prefix=prefix,
        file_suffix=suffix,
        use_namespace=namespace is not None,
        namespace=namespace or "API",
        generate_enums=enums,
        strict_types=strict_types,
        include_schemas=include or [],
        exclude_schemas=exclude or [],
        generate_index=index,
    )

    async def run() -> GenerationResult:
        await parser.load(finish=False)
        return await TypesGenerator().generate(parser, options)

    _report(asyncio.run(run()), parser.warnings)


def client_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Document URL, documentation page URL or file path."),
    output_dir: str = typer.Option(
        "./generated/api", "--output", "-o", help="Output directory."
    ),
    client_type: ClientType = typer.Option(
        ClientType.AXIOS, "--client-type", "-t", help="Client style."
    ),
    group_by: GroupBy = typer.Option(GroupBy.TAG, "--group-by", help="How to split modules."),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help=HEADER_HELP),
    include_tag: Optional[list[str]] = typer.Option(
        None, "--include-tag", help="Tag to generate (repeatable). Wins over --exclude-tag."
    ),
    exclude_tag: Optional[list[str]] = typer.Option(
        None, "--exclude-tag", help="Tag to skip (repeatable)."
    ),
    types_import_path: str = typer.Option(
        "../types", "--types-import-path", help="Module the schema types are imported from."
    ),
    type_imports: bool = typer.Option(
        True, "--type-imports/--no-type-imports", help="Import schema types."
    ),
    prefix: str = typer.Option("", "--prefix", help="File name prefix."),
    suffix: str = typer.Option("", "--suffix", help="File name suffix."),
    overwrite: bool = typer.Option(False, "--overwrite", help="Overwrite existing files."),
    lazy: bool = typer.Option(False, "--lazy", help="Resolve schemas on demand."),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the document cache."),
) -> None:
    """Generate API client modules from templates.

    Example::

        swaggen client ./openapi.json -t react-query --group-by path
    """
    from swaggen.generator import ClientGenerator

    services = get_services(ctx)
    parser = services.open_parser(
        url, parse_headers(header), lazy=lazy, strict=False, use_cache=not no_cache
    )
    options = ClientGeneratorOptions(
        output_dir=output_dir,
        overwrite=overwrite,
        file_prefix=prefix,
        file_suffix=suffix,
        client_type=client_type,
        generate_type_imports=type_imports,
        types_import_path=types_import_path,
        group_by=group_by,
        include_tags=include_tag or [],
        exclude_tags=exclude_tag or [],
    )

    async def run() -> GenerationResult:
        await parser.load(finish=False)
        return await ClientGenerator(services.templates).generate(parser, options)

    _report(asyncio.run(run()), parser.warnings)
