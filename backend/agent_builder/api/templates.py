"""API endpoints for the template library.

Templates are starter canvases grouped by category. The editor lists them,
opens one as an unsaved canvas, or stores it straight away as a new project.
"""

from fastapi import APIRouter, HTTPException

from ..models.project import Project
from ..models.template import (
    Template,
    TemplateCategory,
    TemplateCategoryListResponse,
    TemplateListResponse,
)
from ..services.project_service import project_service
from ..services.template_service import template_service

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("", response_model=TemplateListResponse)
async def list_templates(category: TemplateCategory | None = None):
    """List template metadata, optionally for one category."""
    templates = template_service.list_templates(category)
    return TemplateListResponse(templates=templates, total=len(templates))


@router.get("/categories", response_model=TemplateCategoryListResponse)
async def get_template_categories():
    """Get the template categories with their counts for filtering."""
    return TemplateCategoryListResponse(categories=template_service.categories())


@router.get("/{template_id}", response_model=Template)
async def get_template(template_id: str):
    template = template_service.get_template(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail=f"Template {template_id} not found")
    return template


@router.post("/{template_id}/projects", response_model=Project, status_code=201)
async def create_project_from_template(template_id: str):
    """Store a new project whose canvas is a copy of the template."""
    config = template_service.get_template_project(template_id)
    if config is None:
        raise HTTPException(status_code=404, detail=f"Template {template_id} not found")
    try:
        return project_service.create_project(config)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Project creation failed: {e}")
