from pydantic import BaseModel, Field
from typing import Literal

from .base import CamelModel
from .graph import ProjectConfig

TemplateCategory = Literal["agent", "workflow", "tool", "complete"]


class TemplateSummary(CamelModel):
    """Template metadata for the library view."""

    id: str = Field(..., description="Template ID")
    name: str = Field(..., description="Display name")
    description: str = ""
    category: TemplateCategory = Field(..., description="Library section the template is listed under")
    icon: str | None = None
    tags: list[str] = Field(default_factory=list)
    node_count: int = 0


class Template(TemplateSummary):
    """A starter canvas the editor can open as a new project."""

    project: ProjectConfig = Field(..., description="Canvas snapshot the template opens as")


class TemplateListResponse(BaseModel):
    templates: list[TemplateSummary]
    total: int


class TemplateCategoryCount(BaseModel):
    id: TemplateCategory
    name: str
    count: int


class TemplateCategoryListResponse(BaseModel):
    categories: list[TemplateCategoryCount]
