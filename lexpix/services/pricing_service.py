"""
Pricing cards shown on the pricing page.

Unlike the gallery services, failures here propagate (as ServiceError) so the
admin screen can show what went wrong.
"""
import logging
from typing import List

from lexpix.context import AppContext
from lexpix.exceptions import NotFoundError, ServiceError
from lexpix.schemas import PricingCard, PricingCardCreate, PricingCardUpdate
from lexpix.store.query import utc_now_iso

logger = logging.getLogger(__name__)


async def get_pricing_cards(ctx: AppContext) -> List[PricingCard]:
    try:
        rows = await ctx.repos.pricing_cards.list(order_by="sort_order")
    except Exception as e:
        logger.error(f"Error fetching pricing cards: {str(e)}", exc_info=True)
        raise ServiceError("Error fetching pricing cards") from e
    return [PricingCard.model_validate(row) for row in rows]


async def create_pricing_card(ctx: AppContext, card: PricingCardCreate) -> PricingCard:
    try:
        row = await ctx.repos.pricing_cards.insert(card.model_dump())
    except Exception as e:
        logger.error(f"Error creating pricing card: {str(e)}", exc_info=True)
        raise ServiceError("Error creating pricing card") from e
    logger.info(f"Created pricing card '{card.title}'")
    return PricingCard.model_validate(row)


async def update_pricing_card(ctx: AppContext, card_id: str, updates: PricingCardUpdate) -> PricingCard:
    values = updates.model_dump(exclude_unset=True)
    values["updated_at"] = utc_now_iso()
    try:
        row = await ctx.repos.pricing_cards.update(card_id, values)
    except Exception as e:
        logger.error(f"Error updating pricing card {card_id}: {str(e)}", exc_info=True)
        raise ServiceError("Error updating pricing card") from e
    if row is None:
        raise NotFoundError(f"Pricing card {card_id} not found")
    return PricingCard.model_validate(row)


async def delete_pricing_card(ctx: AppContext, card_id: str) -> None:
    try:
        deleted = await ctx.repos.pricing_cards.delete(card_id)
    except Exception as e:
        logger.error(f"Error deleting pricing card {card_id}: {str(e)}", exc_info=True)
        raise ServiceError("Error deleting pricing card") from e
    if not deleted:
        raise NotFoundError(f"Pricing card {card_id} not found")
