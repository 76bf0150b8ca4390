"""Template language and template storage for the client generator.

* :mod:`~swaggen.templates.engine` -- renders ``{{variable}}``,
  conditional, loop and partial tags against a context.
* :mod:`~swaggen.templates.manager` -- built-in and custom templates,
  described by ``templates.json`` manifests.
"""

from swaggen.templates.engine import TemplateEngine
from swaggen.templates.manager import TemplateManager

__all__ = ["TemplateEngine", "TemplateManager"]
