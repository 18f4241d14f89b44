"""
Public site routes: everything the portfolio pages read, plus the two forms
visitors can submit (reviews and contact).
"""
from fastapi import APIRouter, Depends, Request, status
from typing import List
import logging

from lexpix.context import AppContext, get_context
from lexpix.exceptions import ServiceError
from lexpix.routes.deps import api_error
from lexpix.schemas import (
    AboutImage,
    ContactMessage,
    ContentSection,
    Counter,
    EventDetailResponse,
    EventItem,
    FeaturedProject,
    FeaturedProjectDetailResponse,
    GalleryImagesPageResponse,
    PricingCard,
    ReviewCreate,
    ReviewPublic,
)
from lexpix.services import (
    about_image_service,
    contact_service,
    content_service,
    counter_service,
    event_service,
    gallery_service,
    pricing_service,
    project_service,
    review_service,
)
from lexpix.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/gallery-images", response_model=GalleryImagesPageResponse)
async def get_gallery_images(limit: int = 20, offset: int = 0, ctx: AppContext = Depends(get_context)):
    """
    Get one page of gallery images, newest first.

    Args:
        limit: Number of images to return (1-100, default 20)
        offset: Number of images to skip

    Raises:
        HTTPException: 400 if limit/offset are out of range
    """
    if limit < 1 or limit > 100:
        raise api_error(status.HTTP_400_BAD_REQUEST, "Invalid limit", "Limit must be between 1 and 100")
    if offset < 0:
        raise api_error(status.HTTP_400_BAD_REQUEST, "Invalid offset", "Offset must not be negative")

    page = await gallery_service.get_gallery_page(ctx, limit=limit, offset=offset)
    logger.info(
        f"Retrieved {len(page.images)} gallery images "
        f"(offset: {offset}, next: {page.pagination.next_offset}, has_more: {page.pagination.has_more})"
    )
    return page


@router.get("/events", response_model=List[EventItem])
async def get_events(ctx: AppContext = Depends(get_context)):
    return await event_service.get_events(ctx)


@router.get("/events/{event_id}", response_model=EventDetailResponse)
async def get_event(event_id: str, ctx: AppContext = Depends(get_context)):
    """Event details plus its images in upload order; 404 when the event is unknown."""
    event = await event_service.get_event(ctx, event_id)
    if event is None:
        raise api_error(status.HTTP_404_NOT_FOUND, "Event not found", f"No event with id {event_id}")
    images = await event_service.get_event_images(ctx, event_id)
    return EventDetailResponse(event=event, images=images)


@router.get("/pricing", response_model=List[PricingCard])
async def get_pricing(ctx: AppContext = Depends(get_context)):
    try:
        return await pricing_service.get_pricing_cards(ctx)
    except ServiceError as e:
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to load pricing", e.message)


@router.get("/reviews", response_model=List[ReviewPublic])
async def get_reviews(ctx: AppContext = Depends(get_context)):
    """Published reviews, newest first. Email addresses are never exposed."""
    return await review_service.get_published_reviews(ctx)


@router.post("/reviews", response_model=ReviewPublic, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["review"])
async def submit_review(request: Request, review: ReviewCreate, ctx: AppContext = Depends(get_context)):
    created = await review_service.submit_review(ctx, review)
    if created is None:
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to submit review")
    return created


@router.get("/featured-projects", response_model=List[FeaturedProject])
async def get_featured_projects(ctx: AppContext = Depends(get_context)):
    return await project_service.get_featured_projects(ctx)


@router.get("/featured-projects/{project_id}", response_model=FeaturedProjectDetailResponse)
async def get_featured_project(project_id: str, ctx: AppContext = Depends(get_context)):
    project = await project_service.get_featured_project(ctx, project_id)
    if project is None:
        raise api_error(status.HTTP_404_NOT_FOUND, "Project not found", f"No featured project with id {project_id}")
    images = await project_service.get_featured_project_images(ctx, project_id)
    return FeaturedProjectDetailResponse(project=project, images=images)


@router.get("/about-images", response_model=List[AboutImage])
async def get_about_images(ctx: AppContext = Depends(get_context)):
    try:
        return await about_image_service.get_display_about_images(ctx)
    except ServiceError as e:
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to load about images", e.message)


@router.get("/counters", response_model=List[Counter])
async def get_counters(ctx: AppContext = Depends(get_context)):
    try:
        return await counter_service.get_counters(ctx)
    except ServiceError as e:
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to load counters", e.message)


@router.get("/content", response_model=List[ContentSection])
async def get_content_sections(ctx: AppContext = Depends(get_context)):
    return await content_service.get_all_content_sections(ctx)


@router.get("/content/{name}", response_model=ContentSection)
async def get_content_section(name: str, ctx: AppContext = Depends(get_context)):
    section = await content_service.get_content_section(ctx, name)
    if section is None:
        raise api_error(status.HTTP_404_NOT_FOUND, "Content section not found", f"No content section named '{name}'")
    return section


@router.post("/contact")
@limiter.limit(RATE_LIMITS["contact"])
async def submit_contact(request: Request, message: ContactMessage):
    """Validate and record a contact form submission."""
    try:
        await contact_service.submit_contact_message(message)
    except Exception as e:
        logger.error(f"Error handling contact message: {str(e)}", exc_info=True)
        raise api_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to send message", "Failed to send message. Please try again."
        )
    return {"message": "Message sent successfully!"}
