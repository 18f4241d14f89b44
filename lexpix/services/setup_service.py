"""
One-time setup run at startup: storage buckets, SQL tables and seed data.
"""
import logging

from lexpix.context import IMAGES_BUCKET, PROJECTS_BUCKET, AppContext
from lexpix.services.content_service import initialize_content_sections
from lexpix.services.counter_service import initialize_counters
from lexpix.services.review_service import initialize_reviews

logger = logging.getLogger(__name__)


async def setup_database(ctx: AppContext) -> bool:
    """
    Make sure the buckets exist and, in remote mode, that the database is
    reachable (creating tables when AUTO_CREATE_TABLES is set). A fresh local
    store is seeded with sample reviews, counters and content sections.
    """
    logger.info("Setting up database...")
    try:
        if ctx.mode == "remote":
            from lexpix.database import init_db
            await init_db(create_tables=ctx.settings.AUTO_CREATE_TABLES)

        for bucket in (IMAGES_BUCKET, PROJECTS_BUCKET):
            await ctx.storage.ensure_bucket(bucket)

        if ctx.mode == "local":
            await initialize_reviews(ctx)
            await initialize_counters(ctx)
            await initialize_content_sections(ctx)
    except Exception as e:
        logger.error(f"Error setting up database: {str(e)}", exc_info=True)
        return False

    logger.info("Database setup complete")
    return True
