"""
CMS routes for review moderation and team invitations.
"""
from fastapi import APIRouter, Depends, Request, status
from typing import List
import logging

from lexpix.context import AppContext, get_context
from lexpix.exceptions import ServiceError
from lexpix.routes.deps import api_error, require_admin
from lexpix.schemas import InviteLinkResponse, Review, ReviewStatusUpdate
from lexpix.services import invite_service, review_service
from lexpix.store.auth import AuthUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cms", tags=["CMS"], dependencies=[Depends(require_admin)])


@router.get("/reviews", response_model=List[Review])
async def list_reviews(ctx: AppContext = Depends(get_context)):
    """Every review, published or not, newest first."""
    return await review_service.get_all_reviews(ctx)


@router.put("/reviews/{review_id}/status")
async def update_review_status(review_id: str, payload: ReviewStatusUpdate, ctx: AppContext = Depends(get_context)):
    if not await review_service.update_review_status(ctx, review_id, payload.published):
        raise api_error(status.HTTP_404_NOT_FOUND, "Review not found", f"No review with id {review_id}")
    return {"message": "Review updated successfully", "id": review_id, "published": payload.published}


@router.delete("/reviews/{review_id}")
async def delete_review(review_id: str, ctx: AppContext = Depends(get_context)):
    if not await review_service.delete_review(ctx, review_id):
        raise api_error(status.HTTP_404_NOT_FOUND, "Review not found", f"No review with id {review_id}")
    return {"message": "Review deleted successfully", "id": review_id}


@router.post("/team/invites", response_model=InviteLinkResponse, status_code=status.HTTP_201_CREATED)
async def create_invite(request: Request, user: AuthUser = Depends(require_admin),
                        ctx: AppContext = Depends(get_context)):
    """
    Generate a single-use signup link for a new team member.
    The link points at the site the request came from when that origin is
    an allowed CORS origin, otherwise at SITE_URL.
    """
    origin = request.headers.get("origin")
    base_url = origin if origin in ctx.settings.CORS_ORIGINS else None
    try:
        return await invite_service.generate_invite_link(ctx, user, base_url=base_url)
    except ServiceError as e:
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Could not generate invite link", e.message)
