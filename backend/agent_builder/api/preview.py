"""API endpoints for running a generated project locally."""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..core.errors import PreviewError
from ..models.graph import ProjectConfig
from ..services.codegen_service import codegen_service
from ..services.preview_service import preview_service

router = APIRouter(prefix="/preview", tags=["preview"])


class PreviewStartRequest(BaseModel):
    """Request to start a preview of a canvas snapshot."""

    project: ProjectConfig
    secrets: dict[str, str] = Field(default_factory=dict, description="Provider name or env var -> API key")


class PreviewStatus(BaseModel):
    """Status of the preview server."""

    running: bool
    url: str | None = None
    project_id: str | None = None


@router.post("/start")
def start_preview(request: PreviewStartRequest):
    """Generate the project, install its dependencies and start its dev server."""
    try:
        files = codegen_service.generate_files(request.project)
        url = preview_service.start(files, request.secrets, project_id=request.project.id or None)
    except PreviewError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Preview failed: {e}")

    return {"url": url}


@router.post("/stop")
def stop_preview():
    """Stop the running preview."""
    return {"stopped": preview_service.stop()}


@router.get("/status", response_model=PreviewStatus)
def preview_status():
    """Get the status of the preview server."""
    return PreviewStatus(**preview_service.status())
