"""Document parser -- fetch, normalize, resolve ``$ref`` pointers, and extract operations.

This sub-package is responsible for the first half of the swaggen pipeline:
turning a raw OpenAPI 3.x or Swagger 2.0 document (JSON or YAML, local file
or remote URL, possibly behind a Swagger UI page) into an
:class:`~swaggen.models.ApiModel` that the generators can consume.

Typical usage::

    from swaggen.parser import ApiParser, DocumentFetcher

    fetcher = DocumentFetcher(cache)
    parser = ApiParser(DocumentReference(url="https://petstore3.swagger.io/api/v3/openapi.json"), fetcher)
    model = await parser.load()

Sub-modules:

* :mod:`~swaggen.parser.loader` -- I/O layer (URL, file) plus UI-URL
  resolution and format detection.
* :mod:`~swaggen.parser.dialect` -- Swagger 2.0 to OpenAPI 3 normalization.
* :mod:`~swaggen.parser.resolver` -- ``$ref`` resolution with
  circular-reference detection.
* :mod:`~swaggen.parser.validator` -- strict validation with
  ``openapi-pydantic``.
* :mod:`~swaggen.parser.extractor` -- walks the resolved document and
  produces :class:`~swaggen.models.Operation` objects.
* :mod:`~swaggen.parser.api_parser` -- the eager and lazy parsers.
"""

from swaggen.parser.api_parser import ApiParser, LazyApiParser, create_parser
from swaggen.parser.loader import DocumentFetcher

__all__ = ["ApiParser", "LazyApiParser", "DocumentFetcher", "create_parser"]
