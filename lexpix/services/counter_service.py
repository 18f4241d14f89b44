"""
Statistic counters on the home page ("Happy clients", "Events covered", ...).
"""
import logging
from typing import List

from lexpix.context import AppContext
from lexpix.exceptions import NotFoundError, ServiceError
from lexpix.schemas import Counter, CounterCreate, CounterUpdate

logger = logging.getLogger(__name__)

DEFAULT_COUNTERS = [
    {"name": "clients", "label": "Happy Clients", "value": 0, "sort_order": 0},
    {"name": "events", "label": "Events Covered", "value": 0, "sort_order": 1},
    {"name": "photos", "label": "Photos Taken", "value": 0, "sort_order": 2},
]


async def get_counters(ctx: AppContext) -> List[Counter]:
    try:
        rows = await ctx.repos.counters.list(order_by="sort_order")
    except Exception as e:
        logger.error(f"Error fetching counters: {str(e)}", exc_info=True)
        raise ServiceError("Error fetching counters") from e
    return [Counter.model_validate(row) for row in rows]


async def create_counter(ctx: AppContext, counter: CounterCreate) -> Counter:
    try:
        row = await ctx.repos.counters.insert(counter.model_dump())
    except Exception as e:
        logger.error(f"Error creating counter: {str(e)}", exc_info=True)
        raise ServiceError("Error creating counter") from e
    return Counter.model_validate(row)


async def update_counter(ctx: AppContext, counter_id: str, updates: CounterUpdate) -> Counter:
    try:
        row = await ctx.repos.counters.update(counter_id, updates.model_dump(exclude_unset=True))
    except Exception as e:
        logger.error(f"Error updating counter {counter_id}: {str(e)}", exc_info=True)
        raise ServiceError("Error updating counter") from e
    if row is None:
        raise NotFoundError(f"Counter {counter_id} not found")
    return Counter.model_validate(row)


async def delete_counter(ctx: AppContext, counter_id: str) -> None:
    try:
        deleted = await ctx.repos.counters.delete(counter_id)
    except Exception as e:
        logger.error(f"Error deleting counter {counter_id}: {str(e)}", exc_info=True)
        raise ServiceError("Error deleting counter") from e
    if not deleted:
        raise NotFoundError(f"Counter {counter_id} not found")


async def initialize_counters(ctx: AppContext) -> int:
    """Seed the default counters into an empty table; returns rows added."""
    if await ctx.repos.counters.count() > 0:
        return 0
    for counter in DEFAULT_COUNTERS:
        await ctx.repos.counters.insert(dict(counter))
    logger.info(f"Seeded {len(DEFAULT_COUNTERS)} default counters")
    return len(DEFAULT_COUNTERS)
