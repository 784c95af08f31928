"""Built-in agent templates loaded from the bundled YAML file."""

from importlib import resources
from pathlib import Path

import yaml

from agentdeck.domain.models import AgentTemplate
from agentdeck.infrastructure.logger import get_logger

logger = get_logger(__name__)

ALL_CATEGORIES = "All"


class TemplateLibrary:
    """Read-only catalogue of agent templates."""

    def __init__(self, templates_path: Path | None = None):
        """Initialize template library.

        Args:
            templates_path: YAML file to load (default: bundled templates.yaml)
        """
        self.templates_path = templates_path
        self._templates: list[AgentTemplate] | None = None

    def _load(self) -> list[AgentTemplate]:
        if self._templates is not None:
            return self._templates

        if self.templates_path is not None:
            raw = self.templates_path.read_text(encoding="utf-8")
        else:
            raw = (
                resources.files("agentdeck")
                .joinpath("data")
                .joinpath("templates.yaml")
                .read_text(encoding="utf-8")
            )

        data = yaml.safe_load(raw) or {}
        self._templates = [AgentTemplate(**entry) for entry in data.get("templates", [])]
        logger.debug("templates_loaded", count=len(self._templates))
        return self._templates

    def list_templates(self, category: str | None = None) -> list[AgentTemplate]:
        """List templates, optionally restricted to one category.

        Args:
            category: Category name; None or "All" returns everything
        """
        templates = self._load()
        if category is None or category == ALL_CATEGORIES:
            return list(templates)
        return [t for t in templates if t.category.lower() == category.lower()]

    def get_template(self, template_id: str) -> AgentTemplate | None:
        return next((t for t in self._load() if t.id == template_id), None)

    def categories(self) -> list[str]:
        """Category names in first-seen order, prefixed with "All"."""
        seen: list[str] = []
        for template in self._load():
            if template.category not in seen:
                seen.append(template.category)
        return [ALL_CATEGORIES, *seen]
