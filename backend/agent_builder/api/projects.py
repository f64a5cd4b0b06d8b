"""API endpoints for project management."""

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from ..core.errors import ProjectLoadError, ProjectNotFoundError
from ..models.graph import ProjectConfig
from ..models.project import Project, ProjectImportRequest, ProjectSummaryListResponse
from ..services.project_service import project_service

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=Project, status_code=201)
async def create_project(config: ProjectConfig):
    """Store a new project."""
    try:
        return project_service.create_project(config)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Project creation failed: {e}")


@router.get("", response_model=ProjectSummaryListResponse)
async def list_projects():
    """List all projects with minimal metadata."""
    projects = project_service.list_projects()
    return ProjectSummaryListResponse(projects=projects, total=len(projects))


@router.post("/import", response_model=Project, status_code=201)
async def import_project(request: ProjectImportRequest):
    """Import a project exported from the editor as JSON or YAML."""
    try:
        return project_service.import_project(request.content, request.format)
    except ProjectLoadError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Import failed: {e}")


@router.get("/{project_id}", response_model=Project)
async def get_project(project_id: str):
    """Get a project by ID."""
    project = project_service.get_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail=f"Project {project_id} not found")
    return project


@router.put("/{project_id}", response_model=Project)
async def update_project(project_id: str, config: ProjectConfig):
    """Replace a project's canvas snapshot."""
    project = project_service.update_project(project_id, config)
    if not project:
        raise HTTPException(status_code=404, detail=f"Project {project_id} not found")
    return project


@router.delete("/{project_id}", status_code=204)
async def delete_project(project_id: str):
    """Delete a project."""
    if not project_service.delete_project(project_id):
        raise HTTPException(status_code=404, detail=f"Project {project_id} not found")


@router.get("/{project_id}/export")
async def export_project(project_id: str):
    """Export a project as editor JSON."""
    try:
        content = project_service.export_project(project_id)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{project_id}.json"'},
    )
