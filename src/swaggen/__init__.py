"""swaggen -- parse OpenAPI/Swagger documents and generate TypeScript code.

Turns an OpenAPI 3.x or Swagger 2.0 document into a normalized API model
and renders it into TypeScript type definitions and HTTP client bindings.
The functionality is exposed as MCP tools (``swaggen serve``) and as a
regular command-line interface.
"""

__version__ = "0.1.0"
