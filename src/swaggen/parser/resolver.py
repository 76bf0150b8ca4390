"""Resolve ``$ref`` JSON Reference pointers in normalized documents.

OpenAPI documents commonly use ``$ref`` pointers (e.g.,
``{"$ref": "#/components/schemas/Pet"}``) to avoid repetition. This module
performs a recursive copying traversal of a document subtree, replacing
``$ref`` dicts with the objects they point to.

Named schema references are treated specially. Generators emit one
declaration per named schema and refer to it by name, so by default
:func:`resolve_refs` keeps ``#/components/schemas/...`` (and the Swagger
2.0 ``#/definitions/...``) pointers in place after checking that their
target exists. Every other internal reference (parameters, responses,
request bodies, path items) is inlined.

Only **internal** references (those starting with ``#/``) are supported.
How the remaining failures are handled depends on the mode:

* **strict** -- an external or dangling reference raises
  :class:`~swaggen.exceptions.DocumentParseError`.
* **lenient** -- the offending ``$ref`` dict is left in place.

Circular references are detected via a ``seen`` set and left unresolved to
prevent infinite recursion.
"""

from __future__ import annotations

from typing import Any, Optional

from swaggen.exceptions import DocumentParseError

SCHEMA_REF_PREFIXES = ("#/components/schemas/", "#/definitions/")


def resolve_refs(
    node: Any,
    root: Optional[dict[str, Any]] = None,
    *,
    keep_schema_refs: bool = True,
    strict: bool = False,
) -> Any:
    """Resolve ``$ref`` pointers within *node*.

    The input is never mutated; dicts and lists in the result are new
    objects.

    Args:
        node: The subtree to resolve. Usually the whole document, or just
            its ``paths`` table when parsing lazily.
        root: The document that pointers are resolved against. Defaults to
            *node* itself.
        keep_schema_refs: Leave named schema references in place instead of
            inlining them.
        strict: Raise on external or dangling references instead of
            leaving them unresolved.

    Returns:
        The resolved copy of *node*.

    Raises:
        DocumentParseError: In strict mode, if a reference is external or
            points to a non-existent location.

    Example::

        doc = {"paths": {...}, "components": {"parameters": {"Id": {...}}}}
        resolved = resolve_refs(doc)
        # Parameter refs are inlined; {"$ref": "#/components/schemas/Pet"}
        # stays as-is.
    """
    if root is None:
        root = node if isinstance(node, dict) else {}
    return _deep_resolve(node, root, frozenset(), keep_schema_refs, strict)


def is_schema_ref(ref: str) -> bool:
    """Return True if *ref* points at a named schema."""
    return ref.startswith(SCHEMA_REF_PREFIXES)


def schema_name_from_ref(ref: str) -> str:
    """Return the unescaped last segment of a reference.

    Example::

        schema_name_from_ref("#/components/schemas/Pet")  # -> "Pet"
    """
    segment = ref.rsplit("/", 1)[-1]
    return segment.replace("~1", "/").replace("~0", "~")


def resolve_pointer(root: dict[str, Any], ref: str) -> Any:
    """Resolve a single ``$ref`` string against *root*.

    Parses JSON Pointer references like ``#/components/schemas/Pet`` and
    navigates the root dict to locate the referenced value. Handles
    RFC 6901 JSON Pointer escaping (``~0`` for ``~``, ``~1`` for ``/``).

    Args:
        root: The document to resolve against.
        ref: The ``$ref`` string.

    Returns:
        The value found at the referenced path.

    Raises:
        DocumentParseError: If the reference is external (does not start
            with ``#/``), or if any segment in the pointer path does not
            exist in the document.
    """
    if not isinstance(ref, str) or not ref.startswith("#/"):
        raise DocumentParseError(
            f"External $ref not supported: {ref}. "
            "Only internal references (#/...) are handled."
        )

    current: Any = root
    for segment in ref[2:].split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise DocumentParseError(
                    f"Cannot resolve $ref '{ref}': key '{segment}' not found at path"
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise DocumentParseError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                ) from exc
        else:
            raise DocumentParseError(
                f"Cannot resolve $ref '{ref}': cannot navigate into {type(current).__name__}"
            )

    return current


def _deep_resolve(
    obj: Any,
    root: dict[str, Any],
    seen: frozenset[str],
    keep_schema_refs: bool,
    strict: bool,
) -> Any:
    """Recursively resolve all ``$ref`` pointers within *obj*.

    ``seen`` holds the references currently on the resolution stack. Each
    branch extends its own copy so that sibling references to the same
    target do not count as cycles.
    """
    if isinstance(obj, dict):
        ref = obj.get("$ref")
        if isinstance(ref, str):
            if ref in seen:
                return dict(obj)
            try:
                target = resolve_pointer(root, ref)
            except DocumentParseError:
                if strict:
                    raise
                return dict(obj)
            if keep_schema_refs and is_schema_ref(ref):
                return dict(obj)
            return _deep_resolve(target, root, seen | {ref}, keep_schema_refs, strict)

        return {
            key: _deep_resolve(value, root, seen, keep_schema_refs, strict)
            for key, value in obj.items()
        }

    if isinstance(obj, list):
        return [_deep_resolve(item, root, seen, keep_schema_refs, strict) for item in obj]

    return obj
