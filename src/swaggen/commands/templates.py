"""Template commands -- manage the templates used by ``swaggen client``.

Provides the ``swaggen templates`` sub-command group. Built-in templates
ship with the package and are read-only; custom templates live in the
templates directory (``<config_dir>/templates`` unless
``SWAGGEN_TEMPLATES_DIR`` or ``templates_dir`` in the config says
otherwise).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from swaggen.commands.common import get_services
from swaggen.exceptions import InvalidUsageError, NotFoundError, TemplateError
from swaggen.models import Framework, TemplateType
from swaggen.output import OutputFormat, get_output, print_data, print_json, print_table, success

templates_app = typer.Typer(no_args_is_help=True)


@templates_app.command("list")
def templates_list(
    ctx: typer.Context,
    type: Optional[TemplateType] = typer.Option(None, "--type", help="Only this template type."),
    framework: Optional[Framework] = typer.Option(
        None, "--framework", help="Only templates for this framework."
    ),
) -> None:
    """List built-in and custom templates.

    Example::

        swaggen templates list --type api-client
    """
    templates = get_services(ctx).templates.list_templates(type=type, framework=framework)
    if get_output().format == OutputFormat.JSON:
        print_json([t.model_dump(mode="json", exclude_none=True) for t in templates])
        return
    rows = [
        [
            t.id,
            t.name,
            t.type.value,
            t.framework.value if t.framework else "",
            "built-in" if t.built_in else "custom",
        ]
        for t in templates
    ]
    print_table(["ID", "Name", "Type", "Framework", "Source"], rows, title="Templates")


@templates_app.command("show")
def templates_show(
    ctx: typer.Context,
    template_id: str = typer.Argument(help="Template id."),
) -> None:
    """Print a template body to stdout.

    Example::

        swaggen templates show axios > my-axios.tpl
    """
    template = get_services(ctx).templates.get_template(template_id)
    if template is None:
        raise NotFoundError(f"Template not found: {template_id}")
    if get_output().format == OutputFormat.JSON:
        print_json(template.model_dump(mode="json", exclude_none=True))
    else:
        print_data(template.content or "")


@templates_app.command("save")
def templates_save(
    ctx: typer.Context,
    template_id: str = typer.Argument(help="Template id (must not be a built-in id)."),
    file: Path = typer.Option(..., "--file", "-f", help="File holding the template body."),
    type: TemplateType = typer.Option(..., "--type", help="Template type."),
    name: Optional[str] = typer.Option(None, "--name", help="Display name (defaults to the id)."),
    framework: Optional[Framework] = typer.Option(None, "--framework", help="Target framework."),
    description: Optional[str] = typer.Option(None, "--description", help="Description."),
) -> None:
    """Create or replace a custom template.

    Example::

        swaggen templates save my-axios -f my-axios.tpl --type api-client --framework axios
    """
    try:
        content = file.read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidUsageError(f"Cannot read {file}: {exc}") from exc
    template = get_services(ctx).templates.save_template(
        template_id,
        name or template_id,
        type,
        content,
        framework=framework,
        description=description,
    )
    success(f"Saved template {template.id} ({template.path})")


@templates_app.command("delete")
def templates_delete(
    ctx: typer.Context,
    template_id: str = typer.Argument(help="Custom template id."),
) -> None:
    """Delete a custom template.

    Example::

        swaggen templates delete my-axios
    """
    manager = get_services(ctx).templates
    if manager.is_built_in(template_id):
        raise TemplateError(f"Cannot delete built-in template: {template_id}")
    if not manager.delete_template(template_id):
        raise NotFoundError(f"Template not found: {template_id}")
    success(f"Deleted template {template_id}")
