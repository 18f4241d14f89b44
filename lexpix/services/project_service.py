"""
Featured projects on the home page and the image gallery of each project.
"""
import logging
from typing import List, Optional, Sequence

from lexpix.context import PROJECTS_BUCKET, AppContext
from lexpix.repositories import Repository
from lexpix.schemas import (
    FeaturedProject,
    FeaturedProjectCreate,
    FeaturedProjectImage,
    FeaturedProjectUpdate,
)
from lexpix.services.uploads import UploadedFile, upload_image
from lexpix.store.query import utc_now_iso

logger = logging.getLogger(__name__)


async def _next_sort_order(repo: Repository, filters: Optional[dict] = None) -> int:
    """One past the highest sort_order among matching rows, or 0 when there are none."""
    last = await repo.list(filters=filters, order_by="sort_order", descending=True, limit=1)
    if last and last[0].get("sort_order") is not None:
        return last[0]["sort_order"] + 1
    return 0


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

async def get_featured_projects(ctx: AppContext) -> List[FeaturedProject]:
    try:
        rows = await ctx.repos.featured_projects.list(order_by="sort_order")
        return [FeaturedProject.model_validate(row) for row in rows]
    except Exception as e:
        logger.error(f"Error fetching featured projects: {str(e)}", exc_info=True)
        return []


async def get_featured_project(ctx: AppContext, project_id: str) -> Optional[FeaturedProject]:
    try:
        row = await ctx.repos.featured_projects.get_by_id(project_id)
        return FeaturedProject.model_validate(row) if row else None
    except Exception as e:
        logger.error(f"Error fetching featured project {project_id}: {str(e)}", exc_info=True)
        return None


async def create_featured_project(ctx: AppContext, project: FeaturedProjectCreate) -> Optional[FeaturedProject]:
    try:
        values = project.model_dump()
        if values["sort_order"] is None:
            values["sort_order"] = await _next_sort_order(ctx.repos.featured_projects)
        row = await ctx.repos.featured_projects.insert(values)
        logger.info(f"Created featured project '{project.title}'")
        return FeaturedProject.model_validate(row)
    except Exception as e:
        logger.error(f"Error creating featured project: {str(e)}", exc_info=True)
        return None


async def update_featured_project(ctx: AppContext, project_id: str,
                                  updates: FeaturedProjectUpdate) -> Optional[FeaturedProject]:
    values = updates.model_dump(exclude_unset=True)
    values["updated_at"] = utc_now_iso()
    try:
        row = await ctx.repos.featured_projects.update(project_id, values)
        return FeaturedProject.model_validate(row) if row else None
    except Exception as e:
        logger.error(f"Error updating featured project {project_id}: {str(e)}", exc_info=True)
        return None


async def delete_featured_project(ctx: AppContext, project_id: str) -> bool:
    """Delete a project and its gallery rows."""
    try:
        await ctx.repos.featured_project_images.delete_where(project_id=project_id)
        return await ctx.repos.featured_projects.delete(project_id)
    except Exception as e:
        logger.error(f"Error deleting featured project {project_id}: {str(e)}", exc_info=True)
        return False


async def reorder_featured_projects(ctx: AppContext, project_ids: Sequence[str]) -> bool:
    try:
        await ctx.repos.featured_projects.reorder(project_ids)
        return True
    except Exception as e:
        logger.error(f"Error reordering featured projects: {str(e)}", exc_info=True)
        return False


# ---------------------------------------------------------------------------
# Project images
# ---------------------------------------------------------------------------

async def get_featured_project_images(ctx: AppContext, project_id: str) -> List[FeaturedProjectImage]:
    try:
        rows = await ctx.repos.featured_project_images.list(
            filters={"project_id": project_id}, order_by="sort_order"
        )
        return [FeaturedProjectImage.model_validate(row) for row in rows]
    except Exception as e:
        logger.error(f"Error fetching images for project {project_id}: {str(e)}", exc_info=True)
        return []


async def add_featured_project_image(ctx: AppContext, project_id: str, title: str, url: str,
                                     sort_order: Optional[int] = None) -> Optional[FeaturedProjectImage]:
    """
    Append an image to a project. Without an explicit ``sort_order`` the image
    goes after the current last one (or at 0 for the first image).
    """
    try:
        if sort_order is None:
            sort_order = await _next_sort_order(ctx.repos.featured_project_images, {"project_id": project_id})
        row = await ctx.repos.featured_project_images.insert({
            "project_id": project_id,
            "title": title,
            "url": url,
            "sort_order": sort_order,
        })
        return FeaturedProjectImage.model_validate(row)
    except Exception as e:
        logger.error(f"Error adding image to project {project_id}: {str(e)}", exc_info=True)
        return None


async def upload_featured_project_images(ctx: AppContext, project_id: str,
                                         files: Sequence[UploadedFile]) -> List[FeaturedProjectImage]:
    """Upload files into the projects bucket and append them to the project in order."""
    added = []
    for file in files:
        url = await upload_image(
            ctx.storage, file, folder=project_id, bucket=PROJECTS_BUCKET,
            convert=ctx.settings.CONVERT_UPLOADS_TO_WEBP,
        )
        if not url:
            continue
        image = await add_featured_project_image(ctx, project_id, file.stem or file.filename, url)
        if image:
            added.append(image)
    return added


async def delete_featured_project_image(ctx: AppContext, image_id: str) -> bool:
    try:
        return await ctx.repos.featured_project_images.delete(image_id)
    except Exception as e:
        logger.error(f"Error deleting featured project image {image_id}: {str(e)}", exc_info=True)
        return False


async def reorder_featured_project_images(ctx: AppContext, image_ids: Sequence[str]) -> bool:
    try:
        await ctx.repos.featured_project_images.reorder(image_ids)
        return True
    except Exception as e:
        logger.error(f"Error reordering featured project images: {str(e)}", exc_info=True)
        return False
