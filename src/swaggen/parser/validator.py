"""Structural validation of normalized documents with :mod:`openapi_pydantic`.

Strict parsing validates the normalized document against the OpenAPI
object model before extracting anything. OpenAPI 3.1 documents are checked
with the 3.1 models; everything else (3.0 and converted Swagger 2.0) with
the 3.0 models.

Validation failures are not fatal to a parse.
:class:`~swaggen.parser.api_parser.ApiParser` catches
:class:`~swaggen.exceptions.DocumentValidationError` and reparses the
document leniently.
"""

from __future__ import annotations

import logging
from typing import Any

from openapi_pydantic import OpenAPI
from openapi_pydantic.v3.v3_0 import OpenAPI as OpenAPI_30
from pydantic import ValidationError

from swaggen.exceptions import DocumentValidationError
from swaggen.parser.dialect import DIALECT_OPENAPI_31, DIALECT_UNKNOWN, detect_dialect

logger = logging.getLogger(__name__)

_MAX_REPORTED_ERRORS = 5


def validate_normalized(document: dict[str, Any]) -> str:
    """Validate a normalized document.

    Args:
        document: Output of :func:`~swaggen.parser.dialect.normalize_document`.

    Returns:
        The version string the document declared.

    Raises:
        DocumentValidationError: If the version is unrecognised or the
            document does not match the OpenAPI object model.
    """
    dialect = detect_dialect(document)
    if dialect == DIALECT_UNKNOWN:
        raise DocumentValidationError(
            "Document declares neither a 'swagger: 2.x' nor an 'openapi: 3.x' version"
        )

    model = OpenAPI if dialect == DIALECT_OPENAPI_31 else OpenAPI_30
    try:
        parsed = model.model_validate(document)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()[:_MAX_REPORTED_ERRORS]
        )
        if exc.error_count() > _MAX_REPORTED_ERRORS:
            details += f" (and {exc.error_count() - _MAX_REPORTED_ERRORS} more)"
        logger.debug("Validation errors: %s", exc.errors())
        raise DocumentValidationError(f"Invalid OpenAPI document: {details}") from exc

    logger.debug("Document validated as OpenAPI %s", parsed.openapi)
    return str(parsed.openapi)
