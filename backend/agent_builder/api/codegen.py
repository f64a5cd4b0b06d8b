"""API endpoints for code generation."""

import re
import shutil
import tempfile
from pathlib import Path
from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse
from pydantic import BaseModel
from starlette.background import BackgroundTask

from ..models.codegen import GenerationResult, ValidationIssue
from ..models.graph import ProjectConfig
from ..services.codegen_service import codegen_service
from ..services.instance_generator import project_display_name
from ..services.node_validators import validate_project
from ..services.project_service import project_service

router = APIRouter(prefix="/codegen", tags=["codegen"])


class ValidateResponse(BaseModel):
    """Validation issues for a project snapshot."""

    valid: bool
    issues: list[ValidationIssue]


@router.post("/generate", response_model=GenerationResult)
async def generate_code(project: ProjectConfig):
    """Generate Mastra source files from a canvas snapshot."""
    try:
        return codegen_service.generate(project)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Generation failed: {e}")


@router.post("/validate", response_model=ValidateResponse)
async def validate_code(project: ProjectConfig):
    """Run graph and node validation without generating code.

    ``valid`` is false when any issue has error severity.
    """
    try:
        issues = validate_project(project)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Validation failed: {e}")

    return ValidateResponse(
        valid=not any(issue.severity == "error" for issue in issues),
        issues=issues,
    )


@router.post("/download")
async def download_code(project: ProjectConfig):
    """Generate the project and return it as a zip archive."""
    temp_dir = Path(tempfile.mkdtemp())

    try:
        result = codegen_service.generate(project)

        source_dir = temp_dir / "project"
        for generated in result.files:
            target = source_dir / generated.path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(generated.content)

        # Create zip archive
        archive_path = temp_dir / "mastra_project"
        shutil.make_archive(str(archive_path), "zip", source_dir)

        filename = re.sub(r"[^A-Za-z0-9_-]+", "_", project_display_name(project)) or "mastra_project"
        return FileResponse(
            path=f"{archive_path}.zip",
            media_type="application/zip",
            filename=f"{filename}.zip",
            background=BackgroundTask(shutil.rmtree, temp_dir, ignore_errors=True),
        )

    except Exception as e:
        # Cleanup temp directory on error
        shutil.rmtree(temp_dir, ignore_errors=True)
        raise HTTPException(status_code=500, detail=f"Download failed: {e}")


@router.get("/preview/{project_id}", response_model=GenerationResult)
async def preview_code(project_id: str):
    """Preview generated code for a stored project.

    Args:
        project_id: Project ID
    """
    project = project_service.get_project(project_id)

    if not project:
        raise HTTPException(status_code=404, detail="Project not found")

    try:
        return codegen_service.generate(project)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Preview failed: {e}")
