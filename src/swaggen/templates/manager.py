"""Built-in and user-supplied template storage.

Templates live in two directories, each with a ``templates.json`` manifest
of the shape ``{"templates": [<entry>, ...]}`` next to the template bodies:

* the **built-in** set, shipped inside the package under
  ``swaggen/templates/built_in/`` and never written to;
* the **custom** set, under ``<config_dir>/templates/`` by default, which
  :meth:`TemplateManager.save_template` and
  :meth:`TemplateManager.delete_template` modify.

Every manifest entry carries ``id``, ``name``, ``type``, an optional
``framework``, the body ``path`` relative to the manifest, and an optional
``description`` (see :class:`~swaggen.models.TemplateInfo`). Custom bodies
are stored by type as ``api-client/<id>.tpl``, ``typescript-types/<id>.tpl``
or ``config/<id>.tpl``.

A custom template can never take a built-in id: saving one raises
:class:`~swaggen.exceptions.TemplateCollisionError` before anything is
written. Manifest writes go through :func:`~swaggen.config.atomic_write`.
"""

from __future__ import annotations

import json
import logging
import re
import threading
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from swaggen.config import atomic_write, default_templates_dir
from swaggen.exceptions import TemplateCollisionError, TemplateError
from swaggen.models import Framework, TemplateInfo, TemplateType

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "templates.json"
BUILT_IN_DIR = Path(__file__).parent / "built_in"

_BODY_DIRECTORIES = {
    TemplateType.API_CLIENT: "api-client",
    TemplateType.TYPESCRIPT_TYPES: "typescript-types",
    TemplateType.CONFIG_FILE: "config",
}

# Custom ids name their body files.
TEMPLATE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def template_body_path(template_id: str, template_type: TemplateType) -> str:
    """Return the manifest-relative body path for a custom template.

    Raises:
        TemplateError: If *template_id* is not a plain file name.
    """
    if not TEMPLATE_ID_PATTERN.match(template_id) or template_id in (".", ".."):
        raise TemplateError(f"Invalid template id: {template_id!r}")
    return f"{_BODY_DIRECTORIES[template_type]}/{template_id}.tpl"


class TemplateManager:
    """Load, list, save and delete templates.

    Both sets are read on first use and kept in memory; :meth:`reload`
    re-reads them from disk.

    Args:
        built_in_dir: Directory of the read-only built-in set.
        custom_dir: Directory of the user-supplied set. Defaults to
            :func:`~swaggen.config.default_templates_dir`.

    Example::

        manager = TemplateManager()
        manager.save_template("my-axios", "My Axios", TemplateType.API_CLIENT, body,
                              framework=Framework.AXIOS)
        manager.get_template_content("my-axios")
    """

    def __init__(
        self,
        built_in_dir: Optional[Path] = None,
        custom_dir: Optional[Path] = None,
    ) -> None:
        self._built_in_dir = Path(built_in_dir) if built_in_dir else BUILT_IN_DIR
        self._custom_dir = Path(custom_dir) if custom_dir else None
        self._lock = threading.Lock()
        self._built_in: Optional[dict[str, TemplateInfo]] = None
        self._custom: dict[str, TemplateInfo] = {}
        self._custom_loaded = False

    @property
    def custom_dir(self) -> Path:
        if self._custom_dir is None:
            self._custom_dir = default_templates_dir()
        return self._custom_dir

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def list_templates(
        self,
        type: Optional[TemplateType] = None,
        framework: Optional[Framework] = None,
        include_content: bool = False,
    ) -> list[TemplateInfo]:
        """List built-in templates followed by custom ones.

        Args:
            type: Only templates of this type.
            framework: Only templates targeting this framework.
            include_content: Keep template bodies in the result.
        """
        result = []
        for template in self._all():
            if type is not None and template.type != type:
                continue
            if framework is not None and template.framework != framework:
                continue
            result.append(
                template if include_content else template.model_copy(update={"content": None})
            )
        return result

    def get_template(self, template_id: str) -> Optional[TemplateInfo]:
        """Return the template with *template_id*, body included, or ``None``."""
        for template in self._all():
            if template.id == template_id:
                return template
        return None

    def get_template_content(self, template_id: str) -> Optional[str]:
        template = self.get_template(template_id)
        return template.content if template else None

    def find_template(
        self, type: TemplateType, framework: Optional[Framework] = None
    ) -> Optional[TemplateInfo]:
        """Return the first template of *type* (and *framework*, if given)."""
        templates = self.list_templates(type=type, framework=framework, include_content=True)
        return templates[0] if templates else None

    def is_built_in(self, template_id: str) -> bool:
        return template_id in self._built_ins()

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def save_template(
        self,
        template_id: str,
        name: str,
        type: TemplateType,
        content: str,
        framework: Optional[Framework] = None,
        description: Optional[str] = None,
    ) -> TemplateInfo:
        """Create or replace a custom template.

        Returns:
            The saved template, body included.

        Raises:
            TemplateCollisionError: If *template_id* names a built-in.
            TemplateError: If *template_id* is not a plain file name, or the
                body or manifest cannot be written.
        """
        if self.is_built_in(template_id):
            raise TemplateCollisionError(f"Cannot override built-in template: {template_id}")

        path = template_body_path(template_id, type)
        template = TemplateInfo(
            id=template_id,
            name=name,
            type=type,
            framework=framework,
            path=path,
            description=description,
            built_in=False,
            content=content,
        )
        with self._lock:
            self._load_custom()
            previous = self._custom.get(template_id)
            try:
                atomic_write(self._body_file(path), content)
                self._custom[template_id] = template
                self._write_manifest()
            except OSError as exc:
                if previous is None:
                    self._custom.pop(template_id, None)
                else:
                    self._custom[template_id] = previous
                raise TemplateError(f"Failed to save template {template_id}: {exc}") from exc
            if previous is not None and previous.path and previous.path != template.path:
                self._remove_body(previous.path)

        logger.info("Saved template %s", template_id)
        return template

    def delete_template(self, template_id: str) -> bool:
        """Delete a custom template.

        Returns:
            ``True`` if it was deleted, ``False`` for built-in or unknown ids.
        """
        if self.is_built_in(template_id):
            logger.warning("Refusing to delete built-in template %s", template_id)
            return False
        with self._lock:
            self._load_custom()
            template = self._custom.pop(template_id, None)
            if template is None:
                return False
            try:
                self._write_manifest()
            except OSError as exc:
                self._custom[template_id] = template
                logger.error("Failed to update template manifest: %s", exc)
                return False
            if template.path:
                self._remove_body(template.path)
        logger.info("Deleted template %s", template_id)
        return True

    def reload(self) -> None:
        """Forget both loaded sets so the next call re-reads them from disk."""
        with self._lock:
            self._built_in = None
            self._custom = {}
            self._custom_loaded = False

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _all(self) -> list[TemplateInfo]:
        built_in = self._built_ins()
        with self._lock:
            self._load_custom()
            custom = list(self._custom.values())
        return list(built_in.values()) + custom

    def _built_ins(self) -> dict[str, TemplateInfo]:
        if self._built_in is None:
            self._built_in = {
                t.id: t for t in self._read_manifest(self._built_in_dir, built_in=True)
            }
        return self._built_in

    def _load_custom(self) -> None:
        """Read the custom set once. Callers hold ``self._lock``."""
        if self._custom_loaded:
            return
        self._custom = {
            t.id: t
            for t in self._read_manifest(self.custom_dir, built_in=False)
            if t.id not in self._built_ins()
        }
        self._custom_loaded = True

    def _read_manifest(self, directory: Path, built_in: bool) -> list[TemplateInfo]:
        manifest = directory / MANIFEST_FILENAME
        if not manifest.is_file():
            if built_in:
                raise TemplateError(f"Built-in template manifest missing: {manifest}")
            return []
        try:
            data = json.loads(manifest.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            if built_in:
                raise TemplateError(f"Invalid template manifest {manifest}: {exc}") from exc
            logger.warning("Ignoring unreadable template manifest %s: %s", manifest, exc)
            return []

        templates: list[TemplateInfo] = []
        for entry in data.get("templates", []) if isinstance(data, dict) else []:
            try:
                template = TemplateInfo.model_validate({**entry, "built_in": built_in})
            except ValidationError as exc:
                logger.warning("Skipping invalid template entry in %s: %s", manifest, exc)
                continue
            if not template.path:
                logger.warning("Skipping template %s without a body path", template.id)
                continue
            try:
                body = (directory / template.path).read_text(encoding="utf-8")
            except OSError as exc:
                if built_in:
                    raise TemplateError(
                        f"Cannot read built-in template {template.id}: {exc}"
                    ) from exc
                logger.warning("Cannot load custom template %s: %s", template.id, exc)
                continue
            templates.append(template.model_copy(update={"content": body}))
        return templates

    def _write_manifest(self) -> None:
        data: dict[str, Any] = {
            "templates": [t.manifest_entry() for t in self._custom.values()]
        }
        atomic_write(
            self.custom_dir / MANIFEST_FILENAME, json.dumps(data, indent=2) + "\n"
        )

    def _body_file(self, relative_path: str) -> Path:
        root = self.custom_dir.resolve()
        target = (root / relative_path).resolve()
        if not target.is_relative_to(root):
            raise TemplateError(f"Template path escapes {root}: {relative_path}")
        return target

    def _remove_body(self, relative_path: str) -> None:
        try:
            self._body_file(relative_path).unlink(missing_ok=True)
        except TemplateError as exc:
            logger.warning("Not removing template body: %s", exc)
        except OSError as exc:
            logger.warning("Could not remove template body %s: %s", relative_path, exc)
