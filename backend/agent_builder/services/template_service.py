"""Library of starter canvases bundled with the backend."""

import logging
import yaml
from pathlib import Path

from pydantic import ValidationError

from ..core.config import settings
from ..models.graph import ProjectConfig
from ..models.template import Template, TemplateCategoryCount, TemplateSummary

logger = logging.getLogger(__name__)

CATEGORY_ORDER = ("agent", "tool", "workflow", "complete")


class TemplateService:
    """Read-only template library.

    Each template is one ``<templates_dir>/<id>.yaml`` file holding its
    metadata and a ``project`` canvas in the editor's wire format. Files are
    read once, on first access.
    """

    def __init__(self, templates_dir: Path | None = None):
        self.templates_dir = Path(templates_dir or settings.templates_dir)
        self._templates: dict[str, Template] | None = None

    def _load_file(self, template_file: Path) -> Template | None:
        try:
            with open(template_file, "r") as f:
                data = yaml.safe_load(f)
            if not isinstance(data, dict):
                raise ValueError("template must be a mapping")
            data.setdefault("id", template_file.stem)
            template = Template.model_validate(data)
        except (OSError, yaml.YAMLError, ValidationError, ValueError) as e:
            logger.warning("Skipping invalid template %s: %s", template_file.name, e)
            return None

        template.node_count = len(template.project.nodes)
        if not template.project.name:
            template.project.name = template.name
        return template

    def _library(self) -> dict[str, Template]:
        if self._templates is None:
            templates = {}
            if self.templates_dir.exists():
                for template_file in sorted(self.templates_dir.glob("*.yaml")):
                    template = self._load_file(template_file)
                    if template is None:
                        continue
                    if template.id in templates:
                        logger.warning("Duplicate template id %s in %s", template.id, template_file.name)
                        continue
                    templates[template.id] = template
            logger.info("Loaded %d templates from %s", len(templates), self.templates_dir)
            self._templates = templates
        return self._templates

    def reload(self) -> None:
        self._templates = None

    def list_templates(self, category: str | None = None) -> list[TemplateSummary]:
        """Template metadata grouped by category, then by name."""
        templates = [
            template for template in self._library().values()
            if category is None or template.category == category
        ]
        templates.sort(key=lambda t: (CATEGORY_ORDER.index(t.category), t.name.lower()))
        return [TemplateSummary(**template.model_dump(exclude={"project"})) for template in templates]

    def get_template(self, template_id: str) -> Template | None:
        return self._library().get(template_id)

    def get_template_project(self, template_id: str) -> ProjectConfig | None:
        """A fresh copy of the template's canvas, without a project id."""
        template = self.get_template(template_id)
        if template is None:
            return None
        return template.project.model_copy(deep=True, update={"id": ""})

    def categories(self) -> list[TemplateCategoryCount]:
        counts: dict[str, int] = {}
        for template in self._library().values():
            counts[template.category] = counts.get(template.category, 0) + 1
        return [
            TemplateCategoryCount(id=category, name=category.title(), count=counts[category])
            for category in CATEGORY_ORDER
            if category in counts
        ]


template_service = TemplateService()
