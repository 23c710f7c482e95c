"""
Certificate templates and per-course template selection.

Templates come from a TemplateProvider, an interface with one capability,
``list_templates``. The shipped provider reads the template folders of the
Tutor Pro certificate addon; tests inject their own.
"""
import json
import logging
from pathlib import Path
from typing import Any, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError

from tutorpress.config import settings
from tutorpress.exceptions import (
    DependencyMissingException,
    NotFoundException,
    StorageFailureException,
    UnexpectedException,
)
from tutorpress.services.store import WordPressStore

logger = logging.getLogger(__name__)

TEMPLATE_META_KEY = "tutor_course_certificate_template"
DEFAULT_TEMPLATE_KEY = "default"
NONE_TEMPLATE_KEY = "none"
OFF_TEMPLATE_KEY = "off"


class TemplateProvider(Protocol):
    def list_templates(self, include_off_and_none: bool) -> dict[str, dict[str, Any]]:
        ...


class DirectoryTemplateProvider:
    """
    Templates laid out as the certificate addon ships them:

        <base_dir>/<key>/template.json    optional {name, orientation, is_default}
        <base_dir>/<key>/preview.png      optional
        <base_dir>/<key>/background.png   optional
    """

    def __init__(self, base_dir: Path, base_url: str = ""):
        self.base_dir = Path(base_dir)
        self.base_url = base_url.rstrip("/")

    def _read_config(self, template_dir: Path) -> dict:
        config_file = template_dir / "template.json"
        if not config_file.is_file():
            return {}
        with open(config_file, encoding="utf-8") as f:
            config = json.load(f)
        return config if isinstance(config, dict) else {}

    def list_templates(self, include_off_and_none: bool) -> dict[str, dict[str, Any]]:
        templates: dict[str, dict[str, Any]] = {}

        if include_off_and_none:
            templates[NONE_TEMPLATE_KEY] = {"name": "None", "orientation": "landscape"}
            templates[OFF_TEMPLATE_KEY] = {"name": "Off", "orientation": "landscape"}

        if not self.base_dir.is_dir():
            raise FileNotFoundError(f"Certificate template directory missing: {self.base_dir}")

        for template_dir in sorted(p for p in self.base_dir.iterdir() if p.is_dir()):
            key = template_dir.name
            config = self._read_config(template_dir)
            url = f"{self.base_url}/{key}/" if self.base_url else ""

            template = {
                "name": config.get("name", key.replace("_", " ").title()),
                "orientation": config.get("orientation", "landscape"),
                "is_default": bool(config.get("is_default", key == DEFAULT_TEMPLATE_KEY)),
                "path": f"{template_dir}/",
                "url": url,
            }
            if (template_dir / "preview.png").is_file():
                template["preview_src"] = f"{url}preview.png"
            if (template_dir / "background.png").is_file():
                template["background_src"] = f"{url}background.png"
            templates[key] = template

        return templates


def get_template_provider() -> Optional[TemplateProvider]:
    """Dependency returning the configured provider, None when the addon ships no templates."""
    if settings.certificate_templates_dir is None:
        return None
    return DirectoryTemplateProvider(settings.certificate_templates_dir, settings.certificate_templates_url)


def format_template(key: str, template: dict) -> dict:
    return {
        "key": key,
        "slug": key,
        "name": template.get("name") or key,
        "orientation": template.get("orientation") or "landscape",
        "is_default": bool(template.get("is_default", False)),
        "path": template.get("path") or "",
        "url": template.get("url") or "",
        "preview_src": template.get("preview_src") or "",
        "background_src": template.get("background_src") or "",
    }


def list_templates(provider: Optional[TemplateProvider]) -> list[dict]:
    """
    Public template list.

    The provider is always asked for every template including "none"; "off" is
    then dropped so only one "no certificate" option remains.
    """
    if provider is None:
        raise DependencyMissingException(
            code="certificate_class_missing",
            message="Certificate class not available.",
        )

    try:
        templates = provider.list_templates(True)
    except Exception as e:
        logger.exception("Certificate template provider failed")
        raise UnexpectedException(
            code="template_fetch_error",
            message=f"Error fetching templates: {e}",
        )

    if not templates:
        raise NotFoundException(code="no_templates", message="No certificate templates found.")

    return [
        format_template(key, template)
        for key, template in templates.items()
        if key != OFF_TEMPLATE_KEY
    ]


def is_valid_template_key(provider: Optional[TemplateProvider], template_key: Optional[str]) -> bool:
    """
    True when the key is one of the provider's templates.

    If the provider fails while listing, the key is accepted and the save path
    surfaces any real problem.
    """
    if not template_key:
        return False
    if provider is None:
        return False
    try:
        templates = provider.list_templates(True)
    except Exception:
        logger.warning("Could not list certificate templates; accepting key %r", template_key)
        return True
    return template_key in templates


def save_selection(store: WordPressStore, course_id: int, template_key: str) -> dict:
    """Write the course's template and read it back to confirm the write landed."""
    try:
        store.update_post_meta(course_id, TEMPLATE_META_KEY, template_key)
        saved_template = store.get_post_meta(course_id, TEMPLATE_META_KEY)
    except SQLAlchemyError as e:
        raise UnexpectedException(
            code="save_error",
            message=f"Error saving template selection: {e}",
        )

    if saved_template != template_key:
        raise StorageFailureException(
            code="save_failed",
            message=(
                "Failed to save certificate template selection. "
                f"Expected: {template_key}, Got: {saved_template}"
            ),
        )

    logger.info("Course %s certificate template set to %s", course_id, template_key)
    return {
        "course_id": course_id,
        "template_key": saved_template,
        "meta_key": TEMPLATE_META_KEY,
    }


def get_selection(store: WordPressStore, course_id: int) -> dict:
    try:
        template_key = store.get_post_meta(course_id, TEMPLATE_META_KEY)
    except SQLAlchemyError as e:
        raise UnexpectedException(
            code="get_selection_error",
            message=f"Error retrieving template selection: {e}",
        )

    return {
        "course_id": course_id,
        "template_key": template_key or DEFAULT_TEMPLATE_KEY,
        "meta_key": TEMPLATE_META_KEY,
    }
