"""Service for managing stored editor projects."""

import json
import logging
import re
import uuid
import yaml
from pathlib import Path
from datetime import datetime

from pydantic import ValidationError

from ..core.config import settings
from ..core.errors import ProjectLoadError, ProjectNotFoundError
from ..models.graph import ProjectConfig
from ..models.project import Project, ProjectSummary

logger = logging.getLogger(__name__)

_PROJECT_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class ProjectService:
    """Service for project CRUD operations.

    Each project is one ``<projects_dir>/<id>.json`` file in the editor's
    camelCase wire format.
    """

    def __init__(self, projects_dir: Path | None = None):
        self.projects_dir = Path(projects_dir or settings.projects_dir)

    def _get_project_file(self, project_id: str) -> Path:
        """Get the path to a project's JSON file."""
        return self.projects_dir / f"{project_id}.json"

    def _is_valid_id(self, project_id: str) -> bool:
        return bool(project_id) and _PROJECT_ID_RE.match(project_id) is not None

    def create_project(self, config: ProjectConfig) -> Project:
        """Store a new project, assigning an id when the snapshot has none."""
        project_id = config.id if self._is_valid_id(config.id) else str(uuid.uuid4())
        if self._get_project_file(project_id).exists():
            project_id = str(uuid.uuid4())

        now = datetime.now()
        data = config.model_dump(exclude={"id", "created_at", "updated_at"})
        project = Project(**data, id=project_id, created_at=now, updated_at=now)
        if not project.name:
            project.name = project.settings.project_name or "Untitled project"

        self._save_project(project)
        logger.info("Created project %s (%s)", project.id, project.name)
        return project

    def get_project(self, project_id: str) -> Project | None:
        """Get a project by ID."""
        if not self._is_valid_id(project_id):
            return None

        project_file = self._get_project_file(project_id)
        if not project_file.exists():
            return None

        with open(project_file, "r") as f:
            data = json.load(f)
        logger.debug("Loaded project %s from %s", project_id, project_file)
        return Project.model_validate(data)

    def require_project(self, project_id: str) -> Project:
        """Get a project by ID or raise ProjectNotFoundError."""
        project = self.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def list_projects(self) -> list[ProjectSummary]:
        """List all projects with minimal metadata, most recently updated first."""
        if not self.projects_dir.exists():
            return []

        projects = []
        for project_file in self.projects_dir.glob("*.json"):
            try:
                with open(project_file, "r") as f:
                    data = json.load(f)
                projects.append(
                    ProjectSummary(
                        id=data.get("id"),
                        name=data.get("name") or "",
                        description=data.get("description"),
                        node_count=len(data.get("nodes") or []),
                        created_at=data.get("createdAt"),
                        updated_at=data.get("updatedAt"),
                    )
                )
            except (OSError, ValueError) as e:
                # Skip invalid project files
                logger.warning("Skipping invalid project file %s: %s", project_file, e)
                continue

        projects.sort(key=lambda p: p.updated_at, reverse=True)
        return projects

    def update_project(self, project_id: str, config: ProjectConfig) -> Project | None:
        """Replace a project's canvas snapshot, keeping its id and creation time."""
        existing = self.get_project(project_id)
        if existing is None:
            return None

        data = config.model_dump(exclude={"id", "created_at", "updated_at"})
        project = Project(**data, id=project_id, created_at=existing.created_at, updated_at=datetime.now())
        if not project.name:
            project.name = existing.name

        self._save_project(project)
        logger.info("Updated project %s", project_id)
        return project

    def delete_project(self, project_id: str) -> bool:
        """Delete a project file."""
        if not self._is_valid_id(project_id):
            return False

        project_file = self._get_project_file(project_id)
        if not project_file.exists():
            return False

        project_file.unlink()
        logger.info("Deleted project %s", project_id)
        return True

    def load_project_text(self, text: str, fmt: str = "json") -> ProjectConfig:
        """Parse exported project content into a ProjectConfig.

        Args:
            text: Serialized project
            fmt: ``json`` or ``yaml``

        Returns:
            The validated snapshot

        Raises:
            ProjectLoadError: If the content cannot be parsed or has the wrong shape
        """
        try:
            if fmt == "yaml":
                data = yaml.safe_load(text)
            elif fmt == "json":
                data = json.loads(text)
            else:
                raise ProjectLoadError(f"Unsupported project format: {fmt}")
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ProjectLoadError(f"Could not parse project {fmt.upper()}: {e}") from e

        if not isinstance(data, dict):
            raise ProjectLoadError("Project content must be an object")

        # Editor exports wrap the snapshot as {"project": {...}}
        if "project" in data and isinstance(data["project"], dict):
            data = data["project"]

        try:
            return ProjectConfig.model_validate(data)
        except ValidationError as e:
            raise ProjectLoadError(f"Invalid project: {e.error_count()} validation error(s): {e}") from e

    def import_project(self, text: str, fmt: str = "json") -> Project:
        """Parse exported content and store it as a new project."""
        config = self.load_project_text(text, fmt)
        project = self.create_project(config)
        logger.info("Imported project %s from %s", project.id, fmt)
        return project

    def export_project(self, project_id: str) -> str:
        """Serialize a stored project as editor JSON."""
        project = self.require_project(project_id)
        return json.dumps(project.to_wire(), indent=2)

    def _save_project(self, project: Project):
        """Save a project to disk."""
        self.projects_dir.mkdir(parents=True, exist_ok=True)
        project_file = self._get_project_file(project.id)

        with open(project_file, "w") as f:
            json.dump(project.to_wire(), f, indent=2, default=str)


project_service = ProjectService()
