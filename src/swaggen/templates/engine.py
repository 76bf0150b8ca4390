"""A small logic-light template language for generated source files.

Templates are plain text with four kinds of tags (shown with the default
``{`` / ``}`` delimiters):

* ``{path.to.value}`` -- variable, replaced by the value at the dotted
  path. Integer segments index into lists.
* ``{?path}...{/path}`` -- conditional, kept when the value is truthy.
* ``{#path}...{/path}`` -- loop, rendered once per list element.
* ``{>name}`` -- partial, replaced by a registered template rendered with
  the same context.

Each :meth:`TemplateEngine.render` call resolves conditionals first, then
loops, then partials, then the remaining variables. Conditionals and loops
are therefore evaluated against the outer context before any loop scope
exists; a loop body is then processed per item with the item's scope.

The engine is total. Undefined values render as an empty string (or the
literal tag when ``preserve_unmatched`` is set), non-list loop values render
nothing, unknown partials render a placeholder comment, and unterminated
blocks are left as literal text.

Render contexts are JSON-like data, typed here as :data:`TemplateValue`.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping, Optional, Union

logger = logging.getLogger(__name__)

TemplateValue = Union[
    None, bool, int, float, str, list["TemplateValue"], dict[str, "TemplateValue"]
]
TemplateContext = Mapping[str, Any]

MAX_PARTIAL_DEPTH = 16

_MISSING = object()


def resolve_path(context: Any, path: str) -> Any:
    """Resolve a dotted *path* against *context*.

    A path that names a key of *context* exactly (``@index``, ``.``) is
    returned directly. Otherwise the path is split on ``.`` and walked one
    segment at a time: mappings by key, lists by integer index. An empty
    path or ``.`` returns *context* itself.

    Returns:
        The value found, or ``None`` when any segment is missing.
    """
    if isinstance(context, Mapping) and path in context:
        return context[path]
    if path in ("", "."):
        return context

    current = context
    for segment in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(segment, _MISSING)
        elif isinstance(current, (list, tuple)):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                return None
        else:
            return None
        if current is _MISSING:
            return None
    return current


def is_truthy(value: Any) -> bool:
    """Return the truthiness of a context value.

    Lists and mappings are true when non-empty, whatever they contain.
    Everything else uses Python truthiness, so ``0`` and ``""`` are false
    while the string ``"0"`` is true.
    """
    if isinstance(value, (list, tuple, Mapping)):
        return len(value) > 0
    return bool(value)


def format_value(value: Any) -> str:
    """Render a context value as text.

    ``None`` renders empty, booleans as ``true``/``false``, lists as their
    comma-joined items, mappings as compact JSON and integral floats without
    a fractional part.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(format_value(item) for item in value)
    if isinstance(value, Mapping):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


class TemplateEngine:
    """Render templates against JSON-like contexts.

    Args:
        tag_start: Opening delimiter of every tag.
        tag_end: Closing delimiter of every tag.
        preserve_unmatched: Leave variable tags with no value as literal
            text instead of removing them.
        enable_conditionals: Process ``?`` blocks.
        enable_loops: Process ``#`` blocks.
        enable_partials: Process ``>`` includes.

    Example::

        engine = TemplateEngine()
        engine.register_partial("greeting", "Hello {name}")
        engine.render("{>greeting}{?admin} (admin){/admin}", {"name": "Ada", "admin": True})
        # -> "Hello Ada (admin)"
    """

    def __init__(
        self,
        tag_start: str = "{",
        tag_end: str = "}",
        preserve_unmatched: bool = False,
        enable_conditionals: bool = True,
        enable_loops: bool = True,
        enable_partials: bool = True,
    ) -> None:
        self._tag_start = tag_start
        self._tag_end = tag_end
        self._preserve_unmatched = preserve_unmatched
        self._enable_conditionals = enable_conditionals
        self._enable_loops = enable_loops
        self._enable_partials = enable_partials
        self._partials: dict[str, str] = {}

        s, e = re.escape(tag_start), re.escape(tag_end)
        self._variable_re = re.compile(rf"{s}([^#/?>{{}}]+?){e}")
        self._conditional_re = re.compile(rf"{s}\?([^{{}}]+?){e}([\s\S]*?){s}/\1{e}")
        self._loop_re = re.compile(rf"{s}#([^{{}}]+?){e}([\s\S]*?){s}/\1{e}")
        self._partial_re = re.compile(rf"{s}>([^{{}}]+?){e}")

    # ------------------------------------------------------------------ #
    # Partials
    # ------------------------------------------------------------------ #

    def register_partial(self, name: str, template: str) -> None:
        self._partials[name] = template

    def register_partials(self, partials: Mapping[str, str]) -> None:
        self._partials.update(partials)

    def unregister_partial(self, name: str) -> None:
        self._partials.pop(name, None)

    @property
    def partial_names(self) -> list[str]:
        return sorted(self._partials)

    # ------------------------------------------------------------------ #
    # Rendering
    # ------------------------------------------------------------------ #

    def render(self, template: str, context: Optional[TemplateContext] = None) -> str:
        """Render *template* against *context*.

        Args:
            template: Template text.
            context: Mapping of values; ``None`` is treated as empty.

        Returns:
            The rendered text.
        """
        return self._render(template, dict(context or {}), depth=0)

    def _render(self, template: str, context: dict[str, Any], depth: int) -> str:
        result = template
        if self._enable_conditionals:
            result = self._process_conditionals(result, context)
        if self._enable_loops:
            result = self._process_loops(result, context)
        if self._enable_partials:
            result = self._process_partials(result, context, depth)
        return self._process_variables(result, context)

    def _process_variables(self, template: str, context: dict[str, Any]) -> str:
        def replace(match: re.Match[str]) -> str:
            value = resolve_path(context, match.group(1).strip())
            if value is None:
                return match.group(0) if self._preserve_unmatched else ""
            return format_value(value)

        return self._variable_re.sub(replace, template)

    def _process_conditionals(self, template: str, context: dict[str, Any]) -> str:
        def replace(match: re.Match[str]) -> str:
            if is_truthy(resolve_path(context, match.group(1).strip())):
                return self._process_conditionals(match.group(2), context)
            return ""

        return self._conditional_re.sub(replace, template)

    def _process_loops(self, template: str, context: dict[str, Any]) -> str:
        def replace(match: re.Match[str]) -> str:
            items = resolve_path(context, match.group(1).strip())
            if not isinstance(items, (list, tuple)):
                return ""
            body = match.group(2)
            rendered = []
            last = len(items) - 1
            for index, item in enumerate(items):
                scope = {
                    **context,
                    "@index": index,
                    "@first": index == 0,
                    "@last": index == last,
                    "@key": index,
                    ".": item,
                    "this": item,
                }
                if isinstance(item, Mapping):
                    scope.update(item)
                text = self._process_conditionals(body, scope)
                text = self._process_loops(text, scope)
                rendered.append(self._process_variables(text, scope))
            return "".join(rendered)

        return self._loop_re.sub(replace, template)

    def _process_partials(self, template: str, context: dict[str, Any], depth: int) -> str:
        def replace(match: re.Match[str]) -> str:
            name = match.group(1).strip()
            partial = self._partials.get(name)
            if partial is None:
                return f"<!-- Partial '{name}' not found -->"
            if depth >= MAX_PARTIAL_DEPTH:
                logger.warning("Partial '%s' exceeds the nesting limit of %d", name,
                               MAX_PARTIAL_DEPTH)
                return f"<!-- Partial '{name}' nested too deeply -->"
            return self._render(partial, context, depth + 1)

        return self._partial_re.sub(replace, template)
