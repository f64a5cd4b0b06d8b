from pydantic import BaseModel, Field
from datetime import datetime
from typing import Literal

from .base import CamelModel
from .graph import ProjectConfig


class Project(ProjectConfig):
    """A stored project: the canvas snapshot plus bookkeeping timestamps."""

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class ProjectSummary(CamelModel):
    """Lightweight project metadata for list views."""

    id: str
    name: str
    description: str | None = None
    node_count: int = 0
    created_at: datetime
    updated_at: datetime


class ProjectSummaryListResponse(BaseModel):
    """Response containing lightweight list of project summaries."""

    projects: list[ProjectSummary]
    total: int


class ProjectImportRequest(BaseModel):
    """Request to import a project exported from the editor."""

    content: str = Field(..., description="Serialized project", min_length=1)
    format: Literal["json", "yaml"] = Field("json", description="Serialization format of content")
