"""Helpers shared by the command modules."""

from __future__ import annotations

from typing import Optional

import typer

from swaggen.exceptions import InvalidUsageError
from swaggen.services import Services, create_services


def get_services(ctx: typer.Context) -> Services:
    """Return the :class:`Services` of this invocation, building them on first use."""
    root = ctx.find_root()
    root.ensure_object(dict)
    services = root.obj.get("services")
    if services is None:
        services = create_services()
        root.obj["services"] = services
        root.call_on_close(services.close)
    return services


def parse_headers(values: Optional[list[str]]) -> dict[str, str]:
    """Turn repeated ``--header 'Name: value'`` options into a mapping.

    Raises:
        InvalidUsageError: If a value has no ``:`` separator or an empty name.
    """
    headers: dict[str, str] = {}
    for raw in values or []:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise InvalidUsageError(f"Invalid header {raw!r}; expected 'Name: value'")
        headers[name.strip()] = value.strip()
    return headers
