"""Pure filters and grouping over parsed operations and schema tables.

Every function here is stateless and returns new containers. None of them
triggers schema resolution, so they are safe to call on the skeleton
operation list of a lazy parser.

Precedence rule shared by the filters: when both an include list and an
exclude list are supplied, the include list wins and the exclude list is
ignored. Empty or missing lists leave the input unchanged.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from swaggen.models import GroupBy, Operation

DEFAULT_GROUP = "default"
UNGROUPED_NAME = "api"


def filter_operations_by_tags(
    operations: Iterable[Operation],
    include_tags: Optional[list[str]] = None,
    exclude_tags: Optional[list[str]] = None,
) -> list[Operation]:
    """Filter operations by tag allow-list or deny-list.

    An operation is kept when ANY of its tags is in *include_tags*. With no
    include list, it is kept when NONE of its tags is in *exclude_tags*.
    """
    operations = list(operations)
    if include_tags:
        wanted = set(include_tags)
        return [op for op in operations if wanted.intersection(op.tags)]
    if exclude_tags:
        unwanted = set(exclude_tags)
        return [op for op in operations if not unwanted.intersection(op.tags)]
    return operations


def filter_operations_by_tag(operations: Iterable[Operation], tag: str) -> list[Operation]:
    """Return the operations carrying *tag*."""
    return [op for op in operations if tag in op.tags]


def filter_operations_by_path_prefix(
    operations: Iterable[Operation], prefix: str
) -> list[Operation]:
    """Return the operations whose raw path template starts with *prefix*."""
    return [op for op in operations if op.path.startswith(prefix)]


def filter_schemas(
    schemas: dict[str, Any],
    include: Optional[list[str]] = None,
    exclude: Optional[list[str]] = None,
) -> dict[str, Any]:
    """Filter a schema table by name.

    With an include list the result holds the listed names that exist, in
    include-list order. Otherwise names in *exclude* are dropped.
    """
    if include:
        return {name: schemas[name] for name in include if name in schemas}
    if exclude:
        unwanted = set(exclude)
        return {name: schema for name, schema in schemas.items() if name not in unwanted}
    return dict(schemas)


def group_operations(
    operations: Iterable[Operation], group_by: GroupBy
) -> dict[str, list[Operation]]:
    """Split operations into named groups.

    * ``tag`` -- one group per tag; an operation with several tags appears
      in each of them, untagged operations land in ``"default"``.
    * ``path`` -- grouped by the first path segment, ``"default"`` for
      ``/``.
    * ``none`` -- a single group named ``"api"``.

    Groups are returned in first-seen order.
    """
    operations = list(operations)
    if group_by == GroupBy.NONE:
        return {UNGROUPED_NAME: operations}

    groups: dict[str, list[Operation]] = {}
    for op in operations:
        if group_by == GroupBy.TAG:
            names = op.tags or [DEFAULT_GROUP]
        else:
            segments = [s for s in op.path.split("/") if s]
            names = [segments[0] if segments else DEFAULT_GROUP]
        for name in names:
            groups.setdefault(name, []).append(op)
    return groups
