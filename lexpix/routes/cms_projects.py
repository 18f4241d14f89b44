"""
CMS routes for featured projects and each project's image gallery.
"""
from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from typing import List
import logging

from lexpix.context import AppContext, get_context
from lexpix.routes.deps import api_error, read_uploads, require_admin, validate_image_uploads
from lexpix.schemas import (
    FeaturedProject,
    FeaturedProjectCreate,
    FeaturedProjectImage,
    FeaturedProjectImageCreate,
    FeaturedProjectUpdate,
    ReorderRequest,
)
from lexpix.services import project_service
from lexpix.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cms", tags=["CMS"], dependencies=[Depends(require_admin)])


async def _require_project(ctx: AppContext, project_id: str) -> FeaturedProject:
    project = await project_service.get_featured_project(ctx, project_id)
    if project is None:
        raise api_error(status.HTTP_404_NOT_FOUND, "Project not found", f"No featured project with id {project_id}")
    return project


@router.get("/featured-projects", response_model=List[FeaturedProject])
async def list_featured_projects(ctx: AppContext = Depends(get_context)):
    return await project_service.get_featured_projects(ctx)


@router.post("/featured-projects", response_model=FeaturedProject, status_code=status.HTTP_201_CREATED)
async def create_featured_project(project: FeaturedProjectCreate, ctx: AppContext = Depends(get_context)):
    created = await project_service.create_featured_project(ctx, project)
    if created is None:
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create featured project")
    return created


@router.put("/featured-projects/reorder")
async def reorder_featured_projects(payload: ReorderRequest, ctx: AppContext = Depends(get_context)):
    """Persist the drag-and-drop order: each id's sort_order becomes its index."""
    if not await project_service.reorder_featured_projects(ctx, payload.ids):
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to reorder projects")
    return {"message": "Projects reordered successfully", "ids": payload.ids}


@router.put("/featured-projects/{project_id}", response_model=FeaturedProject)
async def update_featured_project(project_id: str, updates: FeaturedProjectUpdate,
                                  ctx: AppContext = Depends(get_context)):
    updated = await project_service.update_featured_project(ctx, project_id, updates)
    if updated is None:
        raise api_error(status.HTTP_404_NOT_FOUND, "Project not found", f"No featured project with id {project_id}")
    return updated


@router.delete("/featured-projects/{project_id}")
async def delete_featured_project(project_id: str, ctx: AppContext = Depends(get_context)):
    if not await project_service.delete_featured_project(ctx, project_id):
        raise api_error(status.HTTP_404_NOT_FOUND, "Project not found", f"No featured project with id {project_id}")
    return {"message": "Project deleted successfully", "id": project_id}


# ---------------------------------------------------------------------------
# Project gallery
# ---------------------------------------------------------------------------

@router.get("/featured-projects/{project_id}/images", response_model=List[FeaturedProjectImage])
async def list_project_images(project_id: str, ctx: AppContext = Depends(get_context)):
    await _require_project(ctx, project_id)
    return await project_service.get_featured_project_images(ctx, project_id)


@router.post("/featured-projects/{project_id}/images", response_model=FeaturedProjectImage,
             status_code=status.HTTP_201_CREATED)
async def add_project_image(project_id: str, image: FeaturedProjectImageCreate,
                            ctx: AppContext = Depends(get_context)):
    """Attach an already-uploaded image URL to the project."""
    await _require_project(ctx, project_id)
    added = await project_service.add_featured_project_image(
        ctx, project_id, image.title, image.url, sort_order=image.sort_order
    )
    if added is None:
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to add project image")
    return added


@router.post("/featured-projects/{project_id}/images/upload", response_model=List[FeaturedProjectImage],
             status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["upload"])
async def upload_project_images(
    request: Request,
    project_id: str,
    files: List[UploadFile] = File(...),
    ctx: AppContext = Depends(get_context),
):
    await _require_project(ctx, project_id)
    validate_image_uploads(files)
    uploads = await read_uploads(files)
    added = await project_service.upload_featured_project_images(ctx, project_id, uploads)
    if not added:
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "All uploads failed")
    return added


@router.put("/featured-projects/{project_id}/images/reorder")
async def reorder_project_images(project_id: str, payload: ReorderRequest, ctx: AppContext = Depends(get_context)):
    await _require_project(ctx, project_id)
    own_ids = {image.id for image in await project_service.get_featured_project_images(ctx, project_id)}
    foreign = [image_id for image_id in payload.ids if image_id not in own_ids]
    if foreign:
        raise api_error(status.HTTP_400_BAD_REQUEST, "Invalid image ids",
                        f"Not images of project {project_id}: {', '.join(foreign)}")
    if not await project_service.reorder_featured_project_images(ctx, payload.ids):
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to reorder images")
    return {"message": "Images reordered successfully", "ids": payload.ids}


@router.delete("/featured-project-images/{image_id}")
async def delete_project_image(image_id: str, ctx: AppContext = Depends(get_context)):
    if not await project_service.delete_featured_project_image(ctx, image_id):
        raise api_error(status.HTTP_404_NOT_FOUND, "Image not found", f"No project image with id {image_id}")
    return {"message": "Image deleted successfully", "id": image_id}
