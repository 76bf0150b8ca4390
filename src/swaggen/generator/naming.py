"""Identifier and file-name conventions for generated TypeScript.

All generated names are derived here so that the types generator, the
client generator and their tests agree:

* schema names become kebab-case file names (``PetOwner`` ->
  ``pet-owner``);
* group names (tags or path segments) become camelCase module names;
* operation ids become camelCase function names;
* property names that are not valid identifiers are quoted.
"""

from __future__ import annotations

import re

_NON_FILE_CHARS = re.compile(r"[^a-zA-Z0-9_-]")
_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")
_LOWER_UPPER = re.compile(r"([a-z])([A-Z])")
_UPPER_UPPER_LOWER = re.compile(r"([A-Z])([A-Z][a-z])")
_DASH_LOWER = re.compile(r"-([a-z])")
_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

FALLBACK_GROUP_NAME = "api"


def schema_file_name(schema_name: str) -> str:
    """Convert a schema name to a kebab-case file stem.

    Example::

        schema_file_name("HTTPStatusCode")  # -> "http-status-code"
    """
    name = _NON_FILE_CHARS.sub("", schema_name)
    name = _LOWER_UPPER.sub(r"\1-\2", name)
    name = _UPPER_UPPER_LOWER.sub(r"\1-\2", name)
    return name.lower()


def format_group_name(name: str) -> str:
    """Convert a group name to a camelCase module name.

    Dashes followed by a lowercase letter are folded into camelCase, a
    leading capital is lowered, and a leading digit gets an ``api``
    prefix. Names with no usable characters become ``api``.

    Example::

        format_group_name("Pet-store")  # -> "petStore"
    """
    formatted = _NON_FILE_CHARS.sub("", name)
    formatted = _DASH_LOWER.sub(lambda m: m.group(1).upper(), formatted)
    if formatted[:1].isupper():
        formatted = formatted[0].lower() + formatted[1:]
    if formatted[:1].isdigit():
        formatted = FALLBACK_GROUP_NAME + formatted
    return formatted or FALLBACK_GROUP_NAME


def format_function_name(operation_id: str) -> str:
    """Convert an operation id to a camelCase function name.

    The id is split on every non-alphanumeric character. The first word
    starts lower-case and the rest start upper-case; existing camelCase
    inside a word is kept, and all-caps words are lowered first.

    Example::

        format_function_name("get_pet-by id")  # -> "getPetById"
    """
    words = [w for w in _NON_ALPHANUMERIC.sub(" ", operation_id).split(" ") if w]
    words = [w.lower() if w.isupper() else w for w in words]
    name = "".join(
        word[:1].lower() + word[1:] if index == 0 else capitalize(word)
        for index, word in enumerate(words)
    )
    if name[:1].isdigit():
        name = "op" + name
    return name or "operation"


def capitalize(text: str) -> str:
    """Upper-case the first character only."""
    return text[:1].upper() + text[1:]


def is_identifier(name: str) -> bool:
    return bool(_IDENTIFIER.match(name))


def property_key(name: str) -> str:
    """Return *name* as an object key, quoted unless it is a valid identifier."""
    if is_identifier(name):
        return name
    return "'" + name.replace("\\", "\\\\").replace("'", "\\'") + "'"


def enum_member_name(value: object, index: int) -> str:
    """Return the member name used for an enum value in an ``export enum``."""
    if isinstance(value, str):
        key = re.sub(r"[^a-zA-Z0-9_]", "_", value).upper()
        if key and not key[0].isdigit():
            return key
    return f"VALUE_{index}"
