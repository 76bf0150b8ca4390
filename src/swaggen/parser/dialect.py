"""Detect the document dialect and normalize Swagger 2.0 into OpenAPI 3 shape.

Downstream code (the extractor, the type resolver, the generators) only
understands the OpenAPI 3 layout: schemas under ``components.schemas``,
request bodies as ``requestBody.content``, response schemas under
``responses.<code>.content``. :func:`normalize_document` rewrites a
Swagger 2.0 document into that layout; OpenAPI 3.0 and 3.1 documents are
copied unchanged.

The conversion covers what code generation needs and nothing more.
Security definitions, examples and vendor extensions outside the moved
sections are carried over untouched.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

logger = logging.getLogger(__name__)

DIALECT_SWAGGER_2 = "2.0"
DIALECT_OPENAPI_30 = "3.0"
DIALECT_OPENAPI_31 = "3.1"
DIALECT_UNKNOWN = "unknown"

_NORMALIZED_OPENAPI_VERSION = "3.0.3"
_DEFAULT_MEDIA_TYPE = "application/json"

# Swagger 2.0 pointer prefixes and their OpenAPI 3 equivalents.
_REF_REWRITES = (
    ("#/definitions/", "#/components/schemas/"),
    ("#/parameters/", "#/components/parameters/"),
    ("#/responses/", "#/components/responses/"),
)

# Keys of a Swagger 2.0 non-body parameter that belong in its ``schema``.
_PARAMETER_SCHEMA_KEYS = (
    "type",
    "format",
    "items",
    "enum",
    "default",
    "minimum",
    "maximum",
    "minLength",
    "maxLength",
    "pattern",
)


def detect_dialect(document: dict[str, Any]) -> str:
    """Return ``"2.0"``, ``"3.0"``, ``"3.1"`` or ``"unknown"``.

    Detection looks only at the top-level ``swagger`` and ``openapi``
    version markers.
    """
    swagger = document.get("swagger")
    if swagger is not None and str(swagger).startswith("2"):
        return DIALECT_SWAGGER_2
    openapi = document.get("openapi")
    if openapi is not None:
        version = str(openapi)
        if version.startswith("3.1"):
            return DIALECT_OPENAPI_31
        if version.startswith("3"):
            return DIALECT_OPENAPI_30
    return DIALECT_UNKNOWN


def normalize_document(raw: dict[str, Any], include_schemas: bool = True) -> dict[str, Any]:
    """Return an OpenAPI 3 shaped copy of *raw*.

    The input is never mutated.

    Args:
        raw: The raw document as fetched.
        include_schemas: When ``False`` the (possibly large) schema table
            is not copied or converted. Lazy parsing converts schemas one
            at a time with :func:`normalize_schema` instead.

    Returns:
        A new document dictionary.
    """
    dialect = detect_dialect(raw)
    if dialect != DIALECT_SWAGGER_2:
        if include_schemas:
            return copy.deepcopy(raw)
        shallow = {key: value for key, value in raw.items() if key != "components"}
        components = {
            key: value
            for key, value in (raw.get("components") or {}).items()
            if key != "schemas"
        }
        result = copy.deepcopy(shallow)
        result["components"] = copy.deepcopy(components)
        return result

    logger.debug("Normalizing Swagger 2.0 document")
    return _convert_swagger_2(raw, include_schemas)


def normalize_schema(schema: Any, dialect: str) -> Any:
    """Normalize a single schema taken from a document of *dialect*.

    Only Swagger 2.0 schemas need work: their references are rewritten to
    the OpenAPI 3 locations.
    """
    if dialect == DIALECT_SWAGGER_2:
        return _rewrite_refs(schema)
    return copy.deepcopy(schema)


# ------------------------------------------------------------------ #
# Swagger 2.0 conversion
# ------------------------------------------------------------------ #


def _convert_swagger_2(raw: dict[str, Any], include_schemas: bool) -> dict[str, Any]:
    source = _rewrite_refs(
        {key: value for key, value in raw.items() if include_schemas or key != "definitions"}
    )
    consumes = source.get("consumes") or [_DEFAULT_MEDIA_TYPE]
    produces = source.get("produces") or [_DEFAULT_MEDIA_TYPE]

    components: dict[str, Any] = {}
    if include_schemas:
        components["schemas"] = source.get("definitions") or {}
    if source.get("parameters"):
        components["parameters"] = {
            name: _convert_parameter(param)
            for name, param in source["parameters"].items()
            if isinstance(param, dict) and param.get("in") not in ("body", "formData")
        }
    if source.get("responses"):
        components["responses"] = {
            name: _convert_response(response, produces)
            for name, response in source["responses"].items()
            if isinstance(response, dict)
        }
    if source.get("securityDefinitions"):
        components["securitySchemes"] = source["securityDefinitions"]

    document: dict[str, Any] = {
        "openapi": _NORMALIZED_OPENAPI_VERSION,
        "info": source.get("info") or {},
        "paths": {},
        "components": components,
    }
    servers = _servers_from_host(source)
    if servers:
        document["servers"] = servers
    for key in ("tags", "security", "externalDocs"):
        if key in source:
            document[key] = source[key]

    for path, path_item in (source.get("paths") or {}).items():
        if not isinstance(path_item, dict):
            continue
        document["paths"][path] = _convert_path_item(
            path_item, source.get("parameters") or {}, consumes, produces
        )
    return document


def _rewrite_refs(node: Any) -> Any:
    """Return a copy of *node* with Swagger 2.0 pointers rewritten."""
    if isinstance(node, dict):
        result: dict[str, Any] = {}
        for key, value in node.items():
            if key == "$ref" and isinstance(value, str):
                for old, new in _REF_REWRITES:
                    if value.startswith(old):
                        value = new + value[len(old):]
                        break
                result[key] = value
            else:
                result[key] = _rewrite_refs(value)
        return result
    if isinstance(node, list):
        return [_rewrite_refs(item) for item in node]
    return node


def _servers_from_host(source: dict[str, Any]) -> list[dict[str, str]]:
    host = source.get("host")
    base_path = source.get("basePath") or ""
    if not host:
        return [{"url": base_path}] if base_path else []
    schemes = source.get("schemes") or ["https"]
    return [{"url": f"{scheme}://{host}{base_path}"} for scheme in schemes]


def _convert_path_item(
    path_item: dict[str, Any],
    shared_parameters: dict[str, Any],
    consumes: list[str],
    produces: list[str],
) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in path_item.items():
        if key == "parameters" and isinstance(value, list):
            result[key] = [
                _convert_parameter(p)
                for p in value
                if _parameter_location(p, shared_parameters) not in ("body", "formData")
            ]
        elif isinstance(value, dict) and key in (
            "get", "post", "put", "delete", "patch", "options", "head"
        ):
            result[key] = _convert_operation(value, shared_parameters, consumes, produces)
        else:
            result[key] = value
    return result


def _convert_operation(
    operation: dict[str, Any],
    shared_parameters: dict[str, Any],
    consumes: list[str],
    produces: list[str],
) -> dict[str, Any]:
    op_consumes = operation.get("consumes") or consumes
    op_produces = operation.get("produces") or produces
    result = {
        key: value
        for key, value in operation.items()
        if key not in ("parameters", "responses", "consumes", "produces", "schemes")
    }

    parameters: list[Any] = []
    body: dict[str, Any] | None = None
    form_properties: dict[str, Any] = {}
    form_required: list[str] = []
    for param in operation.get("parameters") or []:
        location = _parameter_location(param, shared_parameters)
        if location == "body":
            body = param if "$ref" not in param else shared_parameters.get(
                param["$ref"].rsplit("/", 1)[-1], {}
            )
        elif location == "formData" and isinstance(param, dict):
            form_properties[param.get("name", "")] = _parameter_schema(param)
            if param.get("required"):
                form_required.append(param.get("name", ""))
        else:
            parameters.append(_convert_parameter(param))
    if parameters:
        result["parameters"] = parameters

    if body is not None:
        request_body: dict[str, Any] = {
            "content": {ct: {"schema": body.get("schema") or {}} for ct in op_consumes},
        }
        if body.get("required"):
            request_body["required"] = True
        if body.get("description"):
            request_body["description"] = body["description"]
        result["requestBody"] = request_body
    elif form_properties:
        form_schema: dict[str, Any] = {"type": "object", "properties": form_properties}
        if form_required:
            form_schema["required"] = form_required
        form_types = [ct for ct in op_consumes if "form" in ct] or [
            "application/x-www-form-urlencoded"
        ]
        result["requestBody"] = {
            "content": {ct: {"schema": form_schema} for ct in form_types},
            "required": bool(form_required),
        }

    responses = operation.get("responses")
    if isinstance(responses, dict):
        result["responses"] = {
            str(code): _convert_response(response, op_produces)
            for code, response in responses.items()
            if isinstance(response, dict)
        }
    return result


def _parameter_location(param: Any, shared_parameters: dict[str, Any]) -> str:
    if not isinstance(param, dict):
        return ""
    if "$ref" in param:
        target = shared_parameters.get(str(param["$ref"]).rsplit("/", 1)[-1])
        return target.get("in", "") if isinstance(target, dict) else ""
    return str(param.get("in", ""))


def _parameter_schema(param: dict[str, Any]) -> dict[str, Any]:
    schema = {key: param[key] for key in _PARAMETER_SCHEMA_KEYS if key in param}
    if schema.get("type") == "file":
        schema = {"type": "string", "format": "binary"}
    return schema


def _convert_parameter(param: Any) -> Any:
    """Move a Swagger 2.0 parameter's type keys into a ``schema`` object."""
    if not isinstance(param, dict) or "$ref" in param or "schema" in param:
        return param
    converted = {
        key: value for key, value in param.items() if key not in _PARAMETER_SCHEMA_KEYS
    }
    schema = _parameter_schema(param)
    if schema:
        converted["schema"] = schema
    converted.pop("collectionFormat", None)
    return converted


def _convert_response(response: dict[str, Any], produces: list[str]) -> dict[str, Any]:
    if "$ref" in response:
        return response
    converted = {
        key: value for key, value in response.items() if key not in ("schema", "examples")
    }
    if "description" not in converted:
        converted["description"] = ""
    if "schema" in response:
        converted["content"] = {ct: {"schema": response["schema"]} for ct in produces}
    return converted
