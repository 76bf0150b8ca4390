"""Extract metadata, operations and the schema table from normalized documents.

This module walks a normalized, ``$ref``-resolved document and builds the
pieces of an :class:`~swaggen.models.ApiModel`. Named schema references
are still present as ``{"$ref": ...}`` dicts at this point; they are
interpreted later by the type resolver.

Public helpers, each handling one section of the OpenAPI structure:

* :func:`extract_info` -- the ``info`` object.
* :func:`extract_servers` -- the ``servers`` array, as URL strings.
* :func:`extract_operations` -- the ``paths`` object, iterating over every
  path and recognised HTTP method in a fixed order.
* :func:`schema_section` / :func:`extract_schema_names` -- the named
  schema table of either dialect.

Parameter merging follows the OpenAPI specification: path-level parameters
provide defaults, and operation-level parameters override them when they
share the same ``name`` and ``in`` values.
"""

from __future__ import annotations

import re
from typing import Any

from swaggen.models import (
    ApiInfo,
    HTTPMethod,
    Operation,
    Parameter,
    ParameterLocation,
    RequestBody,
    Response,
)

# Order in which methods are read from a path item.
_HTTP_METHODS = tuple(m.value for m in HTTPMethod)

_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")


def extract_info(document: dict[str, Any]) -> ApiInfo:
    """Extract API metadata from the document's ``info`` object.

    Missing titles and versions fall back to ``"Untitled API"`` and
    ``"0.0.0"``.
    """
    info = document.get("info") or {}
    if not isinstance(info, dict):
        info = {}
    return ApiInfo(
        title=str(info.get("title") or "Untitled API"),
        version=str(info.get("version") or "0.0.0"),
        description=_text(info.get("description")),
    )


def _text(value: Any) -> str | None:
    """Coerce a scalar document value to text; containers and ``None`` give ``None``."""
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def extract_servers(document: dict[str, Any]) -> list[str]:
    """Return the URL of every entry in the ``servers`` array."""
    return [
        str(server.get("url", "/"))
        for server in _as_list(document.get("servers"))
        if isinstance(server, dict)
    ]


def schema_section(document: dict[str, Any]) -> dict[str, Any]:
    """Return the named schema table of *document*.

    Reads ``components.schemas`` and falls back to the Swagger 2.0
    ``definitions`` table, so it works on raw and normalized documents
    alike.
    """
    components = document.get("components")
    if isinstance(components, dict) and isinstance(components.get("schemas"), dict):
        return components["schemas"]
    definitions = document.get("definitions")
    if isinstance(definitions, dict):
        return definitions
    return {}


def extract_schema_names(document: dict[str, Any]) -> list[str]:
    """Return the declared schema names in document order."""
    return list(schema_section(document).keys())


def synthesize_operation_id(method: str, path: str) -> str:
    """Build an id from the method and the path with non-alphanumerics removed.

    Example::

        synthesize_operation_id("get", "/pets/{id}")  # -> "getpetsid"
    """
    return f"{method}{_NON_ALPHANUMERIC.sub('', path)}"


def extract_operations(document: dict[str, Any]) -> list[Operation]:
    """Extract all operations from the document's ``paths`` object.

    Paths are visited in document order and, within a path, methods in the
    order of :class:`~swaggen.models.HTTPMethod`. Operations without an
    ``operationId`` get one from :func:`synthesize_operation_id`.

    Args:
        document: The normalized, resolved document.

    Returns:
        One :class:`~swaggen.models.Operation` per path and method pair.
    """
    paths = document.get("paths") or {}
    if not isinstance(paths, dict):
        return []

    operations: list[Operation] = []

    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        path = str(path)

        # Path-level parameters apply to all operations under this path
        path_params = path_item.get("parameters") or []

        for method in _HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue

            merged_params = _merge_parameters(path_params, operation.get("parameters") or [])
            tags = operation.get("tags") or []
            if not isinstance(tags, list):
                tags = [tags]

            operations.append(
                Operation(
                    operation_id=_text(operation.get("operationId"))
                    or synthesize_operation_id(method, path),
                    method=HTTPMethod(method),
                    path=path,
                    summary=_text(operation.get("summary")),
                    description=_text(operation.get("description")),
                    tags=[str(tag) for tag in tags if _text(tag)],
                    parameters=_extract_parameters(merged_params),
                    request_body=_extract_request_body(operation.get("requestBody")),
                    responses=_extract_responses(operation.get("responses") or {}),
                    deprecated=bool(operation.get("deprecated", False)),
                )
            )

    return operations


def _merge_parameters(
    path_params: list[Any],
    op_params: list[Any],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    name and location (``in`` field). Entries that are not dicts are
    dropped.
    """
    path_params = [p for p in _as_list(path_params) if isinstance(p, dict)]
    op_params = [p for p in _as_list(op_params) if isinstance(p, dict)]

    op_keys = {_parameter_key(param) for param in op_params}
    merged = [param for param in path_params if _parameter_key(param) not in op_keys]
    merged.extend(op_params)
    return merged


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _parameter_key(param: dict[str, Any]) -> tuple[str, str]:
    return _text(param.get("name")) or "", _text(param.get("in")) or ""


def _extract_parameters(params_list: list[dict[str, Any]]) -> list[Parameter]:
    """Convert raw parameter dicts into :class:`~swaggen.models.Parameter` models.

    Path parameters are always required regardless of the ``required``
    field in the source. Parameters with unrecognised ``in`` locations (and
    unresolved references, which have none) are skipped.
    """
    parameters: list[Parameter] = []

    for param in params_list:
        try:
            location = ParameterLocation(_text(param.get("in")) or "")
        except ValueError:
            continue

        schema = param.get("schema")
        required = bool(param.get("required", False))
        if location == ParameterLocation.PATH:
            required = True

        parameters.append(
            Parameter(
                name=_text(param.get("name")) or "",
                location=location,
                required=required,
                description=_text(param.get("description")),
                schema=schema if isinstance(schema, dict) else None,
            )
        )

    return parameters


def _first_content_schema(content: Any) -> tuple[list[str], dict[str, Any] | None]:
    """Return the content types and the first schema declared under them."""
    if not isinstance(content, dict):
        return [], None
    schema: dict[str, Any] | None = None
    for media in content.values():
        if isinstance(media, dict) and isinstance(media.get("schema"), dict):
            schema = media["schema"]
            break
    return [str(key) for key in content], schema


def _extract_request_body(body: Any) -> RequestBody | None:
    """Extract request body metadata, or ``None`` when there is no body."""
    if not isinstance(body, dict):
        return None

    content_types, schema = _first_content_schema(body.get("content"))
    return RequestBody(
        required=bool(body.get("required", False)),
        description=_text(body.get("description")),
        content_types=content_types,
        schema=schema,
    )


def _extract_responses(responses: Any) -> dict[str, Response]:
    """Extract response metadata for all declared status codes, keyed by code."""
    result: dict[str, Response] = {}
    if not isinstance(responses, dict):
        return result

    for status_code, response in responses.items():
        if not isinstance(response, dict):
            continue
        content_types, schema = _first_content_schema(response.get("content"))
        code = str(status_code)
        result[code] = Response(
            status_code=code,
            description=_text(response.get("description")),
            content_types=content_types,
            schema=schema,
        )

    return result
