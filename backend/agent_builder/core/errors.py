"""Exceptions raised by the agent builder services."""


class AgentBuilderError(Exception):
    """Base class for agent builder errors."""


class ProjectNotFoundError(AgentBuilderError):
    """Raised when a stored project does not exist."""

    def __init__(self, project_id: str):
        super().__init__(f"Project {project_id} not found")
        self.project_id = project_id


class ProjectLoadError(AgentBuilderError):
    """Raised when project content cannot be parsed into a ProjectConfig."""


class PreviewError(AgentBuilderError):
    """Raised when the preview runner fails to boot, install or start."""
