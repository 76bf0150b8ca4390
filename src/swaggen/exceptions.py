"""Exception hierarchy for swaggen.

All exceptions inherit from :class:`SwaggenError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`swaggen.exit_codes`.
The CLI entry point in :func:`swaggen.app.main` catches ``SwaggenError``
and exits with the appropriate code. Tool handlers in
:mod:`swaggen.tools.handlers` convert it into a ``success: false`` result.

Subclass hierarchy::

    SwaggenError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- NotFoundError            (exit 4)
    +-- FetchError               (exit 6)
    +-- DocumentParseError       (exit 7)
    |   +-- DocumentValidationError
    +-- TemplateError            (exit 8)
    |   +-- TemplateCollisionError
    +-- GenerationError          (exit 9)
    +-- ConfigError              (exit 1)
"""

from swaggen.exit_codes import (
    EXIT_DOCUMENT_PARSE_ERROR,
    EXIT_FETCH_ERROR,
    EXIT_GENERATION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_TEMPLATE_ERROR,
)


class SwaggenError(Exception):
    """Base exception for all swaggen errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`swaggen.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SwaggenError):
    """Raised for invalid CLI arguments or tool parameters."""

    exit_code = EXIT_INVALID_USAGE


class NotFoundError(SwaggenError):
    """Raised when a named template or file does not exist."""

    exit_code = EXIT_NOT_FOUND


class FetchError(SwaggenError):
    """Raised when a document cannot be acquired.

    Covers network failures, HTTP error statuses, timeouts, responses
    larger than the configured limit, and unreadable local files. The
    caller may retry; nothing is retried automatically.
    """

    exit_code = EXIT_FETCH_ERROR


class DocumentParseError(SwaggenError):
    """Raised when a document cannot be decoded or normalized."""

    exit_code = EXIT_DOCUMENT_PARSE_ERROR


class DocumentValidationError(DocumentParseError):
    """Raised by strict validation. The parser recovers from it by reparsing leniently."""


class TemplateError(SwaggenError):
    """Raised when a template manifest or body cannot be read or written."""

    exit_code = EXIT_TEMPLATE_ERROR


class TemplateCollisionError(TemplateError):
    """Raised when a custom template would reuse a built-in template id."""


class GenerationError(SwaggenError):
    """Raised when a generator cannot run at all (as opposed to per-item failures)."""

    exit_code = EXIT_GENERATION_ERROR


class ConfigError(SwaggenError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE
