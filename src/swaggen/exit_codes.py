"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~swaggen.exceptions.SwaggenError` subclass.
Shell wrappers can inspect the exit code to determine the failure class
without parsing stderr.

Example::

    $ swaggen parse https://example.com/missing.json
    $ echo $?
    6   # EXIT_FETCH_ERROR -- the document could not be acquired
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_NOT_FOUND = 4
"""A requested template, schema or file does not exist."""

EXIT_FETCH_ERROR = 6
"""The document could not be acquired (network error, timeout, size limit, unreadable file)."""

EXIT_DOCUMENT_PARSE_ERROR = 7
"""The document could not be decoded or normalized."""

EXIT_TEMPLATE_ERROR = 8
"""A template could not be loaded, saved or deleted."""

EXIT_GENERATION_ERROR = 9
"""Code generation failed as a whole."""
