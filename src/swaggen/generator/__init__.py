"""TypeScript code generation from a parsed document.

* :mod:`~swaggen.generator.type_resolver` -- schema to TypeScript type
  expressions, shared by both generators.
* :mod:`~swaggen.generator.naming` -- file, module and identifier names.
* :mod:`~swaggen.generator.types_generator` -- one declaration file per
  named schema.
* :mod:`~swaggen.generator.client_generator` -- one client module per
  operation group, rendered from templates.

Typical usage::

    parser = create_parser(reference, fetcher)
    await parser.load()
    result = await TypesGenerator().generate(parser, TypesGeneratorOptions(output_dir="src/types"))
"""

from swaggen.generator.client_generator import ClientGenerator
from swaggen.generator.type_resolver import TypeResolver
from swaggen.generator.types_generator import TypesGenerator

__all__ = ["ClientGenerator", "TypeResolver", "TypesGenerator"]
