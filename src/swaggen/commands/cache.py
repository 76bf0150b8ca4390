"""Cache commands -- inspect and clear the document cache."""

from __future__ import annotations

from typing import Optional

import typer

from swaggen.commands.common import get_services, parse_headers
from swaggen.output import OutputFormat, get_output, print_json, print_table, success

cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("clear")
def cache_clear(
    ctx: typer.Context,
    url: Optional[str] = typer.Argument(
        None, help="Document to evict. Clears every entry when omitted."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Request header the document was fetched with."
    ),
) -> None:
    """Evict one document, or clear the whole cache.

    Example::

        swaggen cache clear
        swaggen cache clear https://api.example.com/openapi.json
    """
    fetcher = get_services(ctx).fetcher
    if url:
        fetcher.clear_cache(url, parse_headers(header))
        success(f"Evicted {url}")
    else:
        fetcher.clear_cache()
        success("Document cache cleared")


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show cache location, TTL and entry counts."""
    stats = get_services(ctx).cache.stats()
    if get_output().format == OutputFormat.JSON:
        print_json(stats)
        return
    rows = [[key, "" if value is None else str(value)] for key, value in stats.items()]
    print_table(["Setting", "Value"], rows, title="Document cache")
