"""TypeScript declarations from a document's named schemas.

One ``.ts`` file is written per retained schema, named after the schema in
kebab case (``PetOwner`` -> ``pet-owner.ts``) with the configured prefix
and suffix. Each file holds a single exported declaration:

* objects with properties become ``export interface``;
* string and number enums become a literal union type, other enums an
  ``export enum`` (both only when ``generate_enums`` is set);
* arrays become ``export type X = T[];``;
* everything else becomes ``export type X = <expression>;``.

Schemas referenced from a declaration are imported with ``import type``
from their sibling files. An ``index.ts`` re-exporting every written file
is added when ``generate_index`` is set.

A schema that fails to render, or whose file exists while ``overwrite`` is
off, becomes a warning; the remaining schemas are still generated.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from swaggen.generator.base import INDEX_FILE_NAME, BaseGenerator, index_content
from swaggen.generator.naming import enum_member_name, schema_file_name
from swaggen.generator.type_resolver import (
    SchemaKind,
    TypeResolver,
    classify_schema,
    literal,
    referenced_names,
)
from swaggen.models import GenerationResult, TypesGeneratorOptions
from swaggen.parser.api_parser import ApiParser, LazyApiParser
from swaggen.progress import ProgressPhase
from swaggen.projections import filter_schemas

logger = logging.getLogger(__name__)

DATE_TYPE = "Date"


def _comment_block(schema: dict[str, Any], indent: str = "") -> str:
    lines = []
    description = schema.get("description")
    if isinstance(description, str) and description.strip():
        lines.extend(description.strip().splitlines())
    if schema.get("deprecated") is True:
        lines.append("@deprecated")
    if not lines:
        return ""
    body = "".join(f"{indent} * {line}\n" for line in lines)
    return f"{indent}/**\n{body}{indent} */\n"


class TypesGenerator(BaseGenerator):
    """Write one TypeScript declaration file per named schema."""

    def __init__(self) -> None:
        super().__init__(
            "typescript-types-generator",
            "Generate TypeScript type definitions from OpenAPI schemas",
        )

    async def generate(
        self, parser: ApiParser, options: Optional[TypesGeneratorOptions] = None
    ) -> GenerationResult:
        """Generate declaration files for the schemas of a loaded *parser*.

        Args:
            parser: A parser whose :meth:`~ApiParser.load` has completed.
                A lazy parser materializes every schema here.
            options: Output location and rendering switches.

        Returns:
            A :class:`GenerationResult`. Failures never raise.
        """
        options = options or TypesGeneratorOptions()
        try:
            result = await self._generate(parser, options)
        except Exception as exc:
            logger.error("Type generation failed: %s", exc)
            result = GenerationResult(success=False, error=str(exc))
        if not result.success:
            parser.tracker.fail(f"Type generation failed: {result.error}")
        return result

    async def _generate(
        self, parser: ApiParser, options: TypesGeneratorOptions
    ) -> GenerationResult:
        if isinstance(parser, LazyApiParser):
            all_schemas = parser.get_all_schemas()
        else:
            all_schemas = parser.get_schemas()
        if not all_schemas:
            return GenerationResult(success=False, error="No schemas found in document")

        schemas = filter_schemas(
            all_schemas, options.include_schemas or None, options.exclude_schemas or None
        )
        parser.tracker.emit(
            ProgressPhase.GENERATE, f"Generating types for {len(schemas)} schemas"
        )
        resolver = TypeResolver(type_mapping=options.type_mapping, date_type=DATE_TYPE)
        output_dir = Path(options.output_dir)
        await self._ensure_directory(output_dir)

        files: list[str] = []
        warnings: list[str] = []
        index_stems: list[str] = []
        for name, schema in schemas.items():
            stem = f"{options.file_prefix}{schema_file_name(name)}{options.file_suffix}"
            path = output_dir / f"{stem}.ts"
            try:
                if await self._file_exists(path) and not options.overwrite:
                    warnings.append(f"File {path} already exists. Skipping.")
                    index_stems.append(stem)
                    continue
                content = self.render_schema_file(name, schema, resolver, options, schemas)
                await self._write_file(path, content)
            except Exception as exc:
                logger.warning("Failed to generate type %s: %s", name, exc)
                warnings.append(f"Failed to generate type {name}: {exc}")
                continue
            files.append(str(path))
            index_stems.append(stem)

        if options.generate_index and index_stems:
            index_path = output_dir / INDEX_FILE_NAME
            await self._write_file(index_path, index_content(index_stems))
            files.append(str(index_path))

        parser.tracker.complete(f"Generated {len(files)} type files")
        return GenerationResult(
            success=True, files=files, warnings=warnings, progress=parser.tracker.fraction
        )

    def render_schema_file(
        self,
        name: str,
        schema: dict[str, Any],
        resolver: TypeResolver,
        options: TypesGeneratorOptions,
        available: Optional[dict[str, Any]] = None,
    ) -> str:
        """Return the full text of the declaration file for one schema.

        Args:
            name: Schema name, used as the declared type name.
            schema: The resolved schema.
            resolver: Shared type resolver.
            options: Rendering switches.
            available: Schemas written alongside this one; only these are
                imported.
        """
        imports = [
            ref
            for ref in referenced_names(schema)
            if ref != name
            and ref not in options.type_mapping
            and (available is None or ref in available)
        ]
        header = "".join(
            f"import type {{ {ref} }} from './{options.file_prefix}"
            f"{schema_file_name(ref)}{options.file_suffix}';\n"
            for ref in imports
        )
        if header:
            header += "\n"

        if options.use_namespace:
            declaration = self.render_declaration(name, schema, resolver, options, indent="  ")
            body = f"export namespace {options.namespace} {{\n{declaration}}}\n"
        else:
            body = self.render_declaration(name, schema, resolver, options)
        return header + body

    def render_declaration(
        self,
        name: str,
        schema: dict[str, Any],
        resolver: TypeResolver,
        options: TypesGeneratorOptions,
        indent: str = "",
    ) -> str:
        """Return the exported declaration of one schema."""
        comment = _comment_block(schema, indent)
        kind = classify_schema(schema)

        if kind == SchemaKind.ENUM and options.generate_enums:
            values = schema["enum"]
            if values and isinstance(values[0], (str, int, float)) and not isinstance(
                values[0], bool
            ):
                union = " | ".join(literal(v) for v in values)
                return f"{comment}{indent}export type {name} = {union};\n"
            members = "".join(
                f"{indent}  {enum_member_name(v, i)} = {literal(v)},\n"
                for i, v in enumerate(values)
            )
            return f"{comment}{indent}export enum {name} {{\n{members}{indent}}}\n"

        if kind == SchemaKind.OBJECT and isinstance(schema.get("properties"), dict):
            return comment + self._interface(name, schema, resolver, options, indent)

        if kind == SchemaKind.OBJECT and not schema.get("additionalProperties"):
            return f"{comment}{indent}export type {name} = Record<string, any>;\n"

        return f"{comment}{indent}export type {name} = {resolver.type_expression(schema)};\n"

    def _interface(
        self,
        name: str,
        schema: dict[str, Any],
        resolver: TypeResolver,
        options: TypesGeneratorOptions,
        indent: str,
    ) -> str:
        required = set(schema.get("required") or [])
        lines = [f"{indent}export interface {name} {{\n"]
        for prop_name, prop_schema in schema["properties"].items():
            if isinstance(prop_schema, dict):
                lines.append(_comment_block(prop_schema, indent + "  "))
            is_required = options.strict_types and prop_name in required
            signature = resolver.property_signature(prop_name, prop_schema, is_required)
            lines.append(f"{indent}  {signature};\n")
        additional = schema.get("additionalProperties")
        if isinstance(additional, dict):
            lines.append(f"{indent}  [key: string]: {resolver.type_expression(additional)};\n")
        elif additional is True:
            lines.append(f"{indent}  [key: string]: any;\n")
        lines.append(f"{indent}}}\n")
        return "".join(lines)
