"""Built-in CLI sub-commands for swaggen.

This package groups the Typer command modules that form the CLI's
top-level command tree:

* :mod:`~swaggen.commands.generate` -- ``parse``, ``types`` and ``client``,
  registered directly on the root app.
* :mod:`~swaggen.commands.templates` -- list, show, save and delete
  templates.
* :mod:`~swaggen.commands.cache` -- inspect and clear the document cache.

Shared helpers live in :mod:`~swaggen.commands.common`.
"""
