"""
Client reviews: public submission, moderation and the published feed.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from lexpix.context import AppContext
from lexpix.schemas import Review, ReviewCreate

logger = logging.getLogger(__name__)

SAMPLE_REVIEWS = [
    {
        "name": "John Smith",
        "email": "john@example.com",
        "rating": 5,
        "text": "Absolutely amazing photography! Lucas captured our wedding beautifully.",
        "days_ago": 7,
    },
    {
        "name": "Sarah Johnson",
        "email": "sarah@example.com",
        "rating": 4,
        "text": "Great work on our family portraits. Everyone loved them!",
        "days_ago": 14,
    },
    {
        "name": "Michael Williams",
        "email": "michael@example.com",
        "rating": 5,
        "text": "Professional service and stunning results. Highly recommended!",
        "days_ago": 21,
    },
]


async def get_published_reviews(ctx: AppContext) -> List[Review]:
    """Published reviews, newest first."""
    try:
        rows = await ctx.repos.reviews.list(
            filters={"published": True}, order_by="created_at", descending=True
        )
        return [Review.model_validate(row) for row in rows]
    except Exception as e:
        logger.error(f"Error fetching published reviews: {str(e)}", exc_info=True)
        return []


async def get_all_reviews(ctx: AppContext) -> List[Review]:
    try:
        rows = await ctx.repos.reviews.list(order_by="created_at", descending=True)
        return [Review.model_validate(row) for row in rows]
    except Exception as e:
        logger.error(f"Error fetching all reviews: {str(e)}", exc_info=True)
        return []


async def submit_review(ctx: AppContext, review: ReviewCreate) -> Optional[Review]:
    """
    Store a visitor's review. Reviews go live immediately unless
    REVIEWS_REQUIRE_APPROVAL is set, in which case an admin publishes them.
    """
    try:
        row = await ctx.repos.reviews.insert({
            "name": review.name,
            "email": str(review.email),
            "rating": review.rating,
            "text": review.text,
            "published": not ctx.settings.REVIEWS_REQUIRE_APPROVAL,
        })
        logger.info(f"Review submitted by {review.name} (rating {review.rating})")
        return Review.model_validate(row)
    except Exception as e:
        logger.error(f"Error submitting review: {str(e)}", exc_info=True)
        return None


async def update_review_status(ctx: AppContext, review_id: str, published: bool) -> bool:
    try:
        updated = await ctx.repos.reviews.update(review_id, {"published": published})
        return updated is not None
    except Exception as e:
        logger.error(f"Error updating review status: {str(e)}", exc_info=True)
        return False


async def delete_review(ctx: AppContext, review_id: str) -> bool:
    """False when no review was deleted."""
    try:
        return await ctx.repos.reviews.delete(review_id)
    except Exception as e:
        logger.error(f"Error deleting review: {str(e)}", exc_info=True)
        return False


async def initialize_reviews(ctx: AppContext) -> int:
    """Seed a few published sample reviews when the table is empty; returns rows added."""
    repo = ctx.repos.reviews
    if await repo.count() > 0:
        return 0

    now = datetime.now(timezone.utc)
    for sample in SAMPLE_REVIEWS:
        values = {k: v for k, v in sample.items() if k != "days_ago"}
        values["created_at"] = now - timedelta(days=sample["days_ago"])
        values["published"] = True
        await repo.insert(values)
    logger.info(f"Seeded {len(SAMPLE_REVIEWS)} sample reviews")
    return len(SAMPLE_REVIEWS)
