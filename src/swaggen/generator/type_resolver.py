"""Map JSON schemas to TypeScript type expressions.

Both generators use :class:`TypeResolver`. The types generator turns each
named schema into a declaration; the client generator turns parameter,
request and response schemas into the types used in function signatures
and collects the named schemas it must import.

Named schemas are always referred to by name, never inlined. A schema that
refers to itself (a tree node with ``children: Node[]``) therefore renders
as ``Node[]`` and the walk terminates without any cycle bookkeeping.
:meth:`TypeResolver.collect_references`, which does follow references
through a lookup function, tracks visited names instead.

Mapping rules, in order of precedence:

========================  ==========================================
Schema                    TypeScript
========================  ==========================================
``$ref``                  the referenced name (after ``type_mapping``)
``oneOf`` / ``anyOf``     ``A | B``
``allOf``                 ``A & B``
``type: array``           ``T[]`` (``any[]`` without ``items``)
``enum``                  literal union ``'a' | 'b' | 1``
``integer`` / ``number``  ``number``
``string``                ``string``; ``date``/``date-time`` formats
                          map to the configured date type
``boolean``               ``boolean``
``object``                inline ``{ a: T; b?: U }`` or
                          ``Record<string, T>``
missing / unknown         ``any``
========================  ==========================================

``nullable: true`` (OpenAPI 3.0) and ``"null"`` in a type array
(OpenAPI 3.1) add ``| null``.
"""

from __future__ import annotations

import enum
from typing import Any, Callable, Iterator, Optional

from swaggen.generator.naming import property_key
from swaggen.parser.resolver import schema_name_from_ref

SchemaLookup = Callable[[str], Optional[dict[str, Any]]]

_PRIMITIVES = {
    "integer": "number",
    "number": "number",
    "boolean": "boolean",
    "string": "string",
    "null": "null",
}
_DATE_FORMATS = ("date", "date-time")


class SchemaKind(str, enum.Enum):
    """Structural category of a schema node."""

    REFERENCE = "reference"
    UNION = "union"
    INTERSECTION = "intersection"
    ARRAY = "array"
    ENUM = "enum"
    OBJECT = "object"
    PRIMITIVE = "primitive"
    ANY = "any"


def _schema_types(schema: dict[str, Any]) -> list[str]:
    """Return the declared ``type`` as a list (3.1 allows an array)."""
    declared = schema.get("type")
    if isinstance(declared, list):
        return [str(t) for t in declared]
    if isinstance(declared, str):
        return [declared]
    return []


def classify_schema(schema: Any) -> SchemaKind:
    """Return the :class:`SchemaKind` of *schema*."""
    if not isinstance(schema, dict) or not schema:
        return SchemaKind.ANY
    if isinstance(schema.get("$ref"), str):
        return SchemaKind.REFERENCE
    if schema.get("oneOf") or schema.get("anyOf"):
        return SchemaKind.UNION
    if schema.get("allOf"):
        return SchemaKind.INTERSECTION
    types = [t for t in _schema_types(schema) if t != "null"]
    if "array" in types:
        return SchemaKind.ARRAY
    if isinstance(schema.get("enum"), list):
        return SchemaKind.ENUM
    if "object" in types or "properties" in schema or "additionalProperties" in schema:
        return SchemaKind.OBJECT
    if types and all(t in _PRIMITIVES for t in types):
        return SchemaKind.PRIMITIVE
    return SchemaKind.ANY


def literal(value: Any) -> str:
    """Render an enum value as a TypeScript literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(int(value)) if isinstance(value, float) and value.is_integer() else str(value)
    text = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{text}'"


class TypeResolver:
    """Produce TypeScript type expressions for schema nodes.

    Args:
        lookup: Returns the named schema for a reference name, or ``None``.
            Only :meth:`collect_references` uses it, so a lazy parser's
            ``get_schema`` can be passed without materializing anything up
            front.
        type_mapping: Overrides for referenced names, e.g.
            ``{"DateTime": "Date"}``.
        date_type: Type used for ``date`` and ``date-time`` strings.

    Example::

        resolver = TypeResolver()
        resolver.type_expression({"type": "array", "items": {"$ref": "#/components/schemas/Pet"}})
        # -> "Pet[]"
    """

    def __init__(
        self,
        lookup: Optional[SchemaLookup] = None,
        type_mapping: Optional[dict[str, str]] = None,
        date_type: str = "string",
    ) -> None:
        self._lookup = lookup
        self._type_mapping = dict(type_mapping or {})
        self._date_type = date_type

    def type_expression(self, schema: Any) -> str:
        """Return the TypeScript type for *schema*."""
        kind = classify_schema(schema)
        if kind == SchemaKind.REFERENCE:
            return self.reference_name(schema["$ref"])
        if kind == SchemaKind.ANY:
            return "any"

        if kind == SchemaKind.UNION:
            members = schema.get("oneOf") or schema.get("anyOf")
            expression = " | ".join(self.type_expression(m) for m in members)
        elif kind == SchemaKind.INTERSECTION:
            expression = " & ".join(self.type_expression(m) for m in schema["allOf"])
        elif kind == SchemaKind.ARRAY:
            expression = self.array_expression(schema)
        elif kind == SchemaKind.ENUM:
            expression = " | ".join(literal(v) for v in schema["enum"]) or "any"
        elif kind == SchemaKind.OBJECT:
            expression = self.object_expression(schema)
        else:
            expression = " | ".join(
                dict.fromkeys(self._primitive(t, schema) for t in _schema_types(schema))
            )
        return self._with_null(schema, expression)

    def reference_name(self, ref: str) -> str:
        """Return the type name for a ``$ref`` string, after ``type_mapping``."""
        name = schema_name_from_ref(ref)
        return self._type_mapping.get(name, name)

    def array_expression(self, schema: dict[str, Any]) -> str:
        items = schema.get("items")
        if not isinstance(items, dict):
            return "any[]"
        item_type = self.type_expression(items)
        if (" | " in item_type or " & " in item_type) and not item_type.startswith("{"):
            item_type = f"({item_type})"
        return f"{item_type}[]"

    def object_expression(self, schema: dict[str, Any]) -> str:
        properties = schema.get("properties")
        if isinstance(properties, dict) and properties:
            required = set(schema.get("required") or [])
            members = [
                self.property_signature(name, prop, name in required)
                for name, prop in properties.items()
            ]
            return "{ " + "; ".join(members) + " }"
        additional = schema.get("additionalProperties")
        if isinstance(additional, dict):
            return f"Record<string, {self.type_expression(additional)}>"
        if additional is False:
            return "{}"
        return "Record<string, any>"

    def property_signature(self, name: str, schema: Any, required: bool) -> str:
        """Return ``name: T`` or ``name?: T``, quoting *name* when needed."""
        marker = "" if required else "?"
        return f"{property_key(name)}{marker}: {self.type_expression(schema)}"

    def collect_references(self, *schemas: Any) -> list[str]:
        """Return the named schemas reachable from *schemas*, in discovery order.

        References are followed transitively through the lookup function.
        Each name is visited once, so reference cycles terminate.
        """
        found: dict[str, None] = {}
        pending = list(schemas)
        while pending:
            node = pending.pop(0)
            for ref in _iter_refs(node):
                name = schema_name_from_ref(ref)
                if name in found:
                    continue
                found[name] = None
                if self._lookup is not None:
                    target = self._lookup(name)
                    if target is not None:
                        pending.append(target)
        return list(found)

    def _primitive(self, type_name: str, schema: dict[str, Any]) -> str:
        if type_name == "string" and schema.get("format") in _DATE_FORMATS:
            return self._date_type
        return _PRIMITIVES.get(type_name, "any")

    def _with_null(self, schema: dict[str, Any], expression: str) -> str:
        nullable = schema.get("nullable") is True or (
            "null" in _schema_types(schema) and len(_schema_types(schema)) > 1
        )
        if nullable and not expression.endswith("| null") and expression != "null":
            return f"{expression} | null"
        return expression


def _iter_refs(node: Any) -> Iterator[str]:
    """Yield every ``$ref`` string inside *node*, depth-first in document order."""
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str):
            yield ref
            return
        for value in node.values():
            yield from _iter_refs(value)
    elif isinstance(node, list):
        for item in node:
            yield from _iter_refs(item)


def referenced_names(schema: Any) -> list[str]:
    """Return the names *schema* refers to directly, without following them."""
    return list(dict.fromkeys(schema_name_from_ref(ref) for ref in _iter_refs(schema)))
