"""HTTP client bindings rendered from templates.

Operations are filtered by tag, split into groups (see
:func:`~swaggen.projections.group_operations`) and each group is rendered
into one ``.ts`` module from the ``api-client`` template whose id matches
the requested :class:`~swaggen.models.ClientType`. Next to the group
modules the generator writes:

* the shared client configuration module, ``axios-client.ts`` for the
  axios and react-query styles or ``fetch-client.ts`` for fetch, rendered
  from the ``axios-config`` / ``fetch-config`` template. An existing file
  is kept unless ``overwrite`` is set, so local edits survive;
* ``index.ts`` re-exporting every group module and the configuration
  module.

Group templates use ``{{`` / ``}}`` delimiters. Each group is rendered
with::

    apiTitle, apiVersion, groupName
    typeImports       true when there are schema types to import
    typeImportList    "Pet, Error"
    typesImportPath   from the options
    operations        list of per-operation contexts (see operation_context)

A group that fails to render becomes a warning and the other groups are
still written.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional

from swaggen.generator.base import INDEX_FILE_NAME, BaseGenerator, index_content
from swaggen.generator.naming import (
    capitalize,
    format_function_name,
    format_group_name,
    is_identifier,
)
from swaggen.generator.type_resolver import TypeResolver, referenced_names
from swaggen.models import (
    ApiModel,
    ClientGeneratorOptions,
    ClientType,
    GenerationResult,
    HTTPMethod,
    Operation,
    ParameterLocation,
)
from swaggen.parser.api_parser import ApiParser
from swaggen.progress import ProgressPhase
from swaggen.projections import filter_operations_by_tags, group_operations
from swaggen.templates.engine import TemplateEngine
from swaggen.templates.manager import TemplateManager

logger = logging.getLogger(__name__)

_PATH_PARAM = re.compile(r"\{([^}]+)\}")

CONFIG_MODULES = {
    ClientType.AXIOS: ("axios-client", "axios-config"),
    ClientType.REACT_QUERY: ("axios-client", "axios-config"),
    ClientType.FETCH: ("fetch-client", "fetch-config"),
}


def url_template(path: str) -> str:
    """Turn ``/pets/{id}`` into the template literal body ``/pets/${params.id}``."""

    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if is_identifier(name):
            return "${params." + name + "}"
        return "${params['" + name + "']}"

    return _PATH_PARAM.sub(replace, path)


def doc_comment(operation: Operation) -> str:
    lines = []
    for text in (operation.summary, operation.description):
        if text and text.strip() and text.strip() not in lines:
            lines.append(text.strip())
    if operation.deprecated:
        lines.append("@deprecated")
    if not lines:
        return ""
    body = "".join(f" * {line}\n" for text in lines for line in text.splitlines())
    return f"/**\n{body} */\n"


class ClientGenerator(BaseGenerator):
    """Render API client modules through the template manager.

    Args:
        templates: Source of the group and configuration templates.
    """

    def __init__(self, templates: TemplateManager) -> None:
        super().__init__("api-client-generator", "Generate API client code from OpenAPI")
        self._templates = templates
        self._engine = TemplateEngine(tag_start="{{", tag_end="}}")

    async def generate(
        self, parser: ApiParser, options: Optional[ClientGeneratorOptions] = None
    ) -> GenerationResult:
        """Generate client modules for the operations of a loaded *parser*.

        Returns:
            A :class:`GenerationResult`. Failures never raise.
        """
        options = options or ClientGeneratorOptions()
        try:
            result = await self._generate(parser, options)
        except Exception as exc:
            logger.error("Client generation failed: %s", exc)
            result = GenerationResult(success=False, error=str(exc))
        if not result.success:
            parser.tracker.fail(f"Client generation failed: {result.error}")
        return result

    async def _generate(
        self, parser: ApiParser, options: ClientGeneratorOptions
    ) -> GenerationResult:
        operations = parser.get_operations()
        if not operations:
            return GenerationResult(success=False, error="No API operations found in document")

        group_template = self._templates.get_template_content(options.client_type.value)
        if group_template is None:
            return GenerationResult(
                success=False, error=f"Template not found: {options.client_type.value}"
            )

        operations = filter_operations_by_tags(
            operations, options.include_tags or None, options.exclude_tags or None
        )
        groups = group_operations(operations, options.group_by)
        parser.tracker.emit(
            ProgressPhase.GENERATE, f"Generating {len(groups)} client modules"
        )

        model = parser.model
        resolver = TypeResolver()
        output_dir = Path(options.output_dir)
        await self._ensure_directory(output_dir)

        files: list[str] = []
        warnings: list[str] = []
        module_stems: list[str] = []
        for group_name, group_ops in groups.items():
            stem = f"{options.file_prefix}{format_group_name(group_name)}{options.file_suffix}"
            path = output_dir / f"{stem}.ts"
            try:
                if await self._file_exists(path) and not options.overwrite:
                    warnings.append(f"File {path} already exists. Skipping.")
                    module_stems.append(stem)
                    continue
                context = self.group_context(
                    model, group_name, group_ops, resolver, parser, options
                )
                await self._write_file(path, self._engine.render(group_template, context))
            except Exception as exc:
                logger.warning("Failed to generate client group %s: %s", group_name, exc)
                warnings.append(f"Failed to generate client for group {group_name}: {exc}")
                continue
            files.append(str(path))
            module_stems.append(stem)

        config_stem, config_template_id = CONFIG_MODULES[options.client_type]
        config_path = output_dir / f"{config_stem}.ts"
        if options.overwrite or not await self._file_exists(config_path):
            config_template = self._templates.get_template_content(config_template_id)
            if config_template is None:
                warnings.append(f"Template not found: {config_template_id}")
            else:
                await self._write_file(
                    config_path, self._engine.render(config_template, self.config_context(model))
                )
                files.append(str(config_path))

        index_path = output_dir / INDEX_FILE_NAME
        await self._write_file(index_path, index_content(module_stems + [config_stem]))
        files.append(str(index_path))

        parser.tracker.complete(f"Generated {len(files)} client files")
        return GenerationResult(
            success=True, files=files, warnings=warnings, progress=parser.tracker.fraction
        )

    # ------------------------------------------------------------------ #
    # Render contexts
    # ------------------------------------------------------------------ #

    def group_context(
        self,
        model: ApiModel,
        group_name: str,
        operations: list[Operation],
        resolver: TypeResolver,
        parser: ApiParser,
        options: ClientGeneratorOptions,
    ) -> dict[str, Any]:
        """Return the template context for one group module."""
        type_imports: list[str] = []
        if options.generate_type_imports:
            for op in operations:
                for name in referenced_names(_operation_schemas(op)):
                    if name not in type_imports and parser.get_schema(name) is not None:
                        type_imports.append(name)
        return {
            "apiTitle": model.info.title,
            "apiVersion": model.info.version,
            "groupName": group_name,
            "typeImports": bool(type_imports),
            "typeImportList": ", ".join(type_imports),
            "typesImportPath": options.types_import_path,
            "operations": [self.operation_context(op, resolver) for op in operations],
        }

    def operation_context(self, operation: Operation, resolver: TypeResolver) -> dict[str, Any]:
        """Return the template context for one operation.

        Keys: ``functionName``, ``hookName``, ``method``, ``path``,
        ``urlTemplate``, ``paramsTypeName``, ``paramsInterface``,
        ``docComment``, ``responseType``, ``summary``, plus ``queryHook``
        and ``mutationHook``, each ``[{}]`` or ``[]`` so that a template can
        loop over them as an item-level switch.
        """
        function_name = format_function_name(operation.operation_id)
        params_type_name = capitalize(function_name) + "Params"
        is_query = operation.method == HTTPMethod.GET
        return {
            "functionName": function_name,
            "hookName": "use" + capitalize(function_name),
            "method": operation.method.value.upper(),
            "path": operation.path,
            "urlTemplate": url_template(operation.path),
            "paramsTypeName": params_type_name,
            "paramsInterface": self.params_interface(operation, params_type_name, resolver),
            "docComment": doc_comment(operation),
            "responseType": self.response_type(operation, resolver),
            "summary": operation.summary or "",
            "queryHook": [{}] if is_query else [],
            "mutationHook": [] if is_query else [{}],
        }

    def params_interface(
        self, operation: Operation, type_name: str, resolver: TypeResolver
    ) -> str:
        """Return the ``export interface <Op>Params`` declaration.

        Path parameters are required top-level members; query parameters
        are nested under an optional ``queryParams``; the request body is
        ``data`` (optional unless the body is required).
        """
        lines = [f"export interface {type_name} {{"]
        for param in operation.parameters_in(ParameterLocation.PATH):
            lines.append(f"  {resolver.property_signature(param.name, param.schema_, True)};")

        query = operation.parameters_in(ParameterLocation.QUERY)
        if query:
            lines.append("  queryParams?: {")
            for param in query:
                signature = resolver.property_signature(param.name, param.schema_, param.required)
                lines.append(f"    {signature};")
            lines.append("  };")

        body = operation.request_body
        if body is not None:
            marker = "" if body.required else "?"
            lines.append(f"  data{marker}: {resolver.type_expression(body.schema_)};")

        lines.append("  headers?: Record<string, string>;")
        lines.append("}")
        return "\n".join(lines)

    def response_type(self, operation: Operation, resolver: TypeResolver) -> str:
        response = operation.success_response()
        if response is None or response.schema_ is None:
            return "any"
        return resolver.type_expression(response.schema_)

    def config_context(self, model: ApiModel) -> dict[str, Any]:
        return {
            "apiTitle": model.info.title,
            "apiVersion": model.info.version,
            "baseUrl": model.servers[0] if model.servers else "",
        }


def _operation_schemas(operation: Operation) -> list[Any]:
    """Schemas whose types appear in an operation's generated signature."""
    schemas: list[Any] = [
        p.schema_
        for p in operation.parameters
        if p.location in (ParameterLocation.PATH, ParameterLocation.QUERY)
    ]
    if operation.request_body is not None:
        schemas.append(operation.request_body.schema_)
    response = operation.success_response()
    if response is not None:
        schemas.append(response.schema_)
    return [s for s in schemas if s is not None]
