"""
Editable text sections of the public site, addressed by a unique name.
"""
import logging
from typing import List, Optional

from lexpix.context import AppContext
from lexpix.schemas import ContentSection
from lexpix.store.query import utc_now_iso

logger = logging.getLogger(__name__)

# "about" is fixed copy on the site and hidden from the content editor
FIXED_SECTIONS = ("about",)

DEFAULT_SECTIONS = [
    {"name": "about", "title": "About Me", "content": ""},
    {"name": "services", "title": "Services", "content": ""},
    {"name": "contact", "title": "Get In Touch", "content": ""},
]


async def get_content_section(ctx: AppContext, name: str) -> Optional[ContentSection]:
    try:
        row = await ctx.repos.content_sections.find_one(name=name)
        return ContentSection.model_validate(row) if row else None
    except Exception as e:
        logger.error(f"Error fetching content section '{name}': {str(e)}", exc_info=True)
        return None


async def get_all_content_sections(ctx: AppContext, include_fixed: bool = True) -> List[ContentSection]:
    """All sections ordered by name."""
    try:
        rows = await ctx.repos.content_sections.list(order_by="name")
    except Exception as e:
        logger.error(f"Error fetching content sections: {str(e)}", exc_info=True)
        return []
    sections = [ContentSection.model_validate(row) for row in rows]
    if not include_fixed:
        sections = [s for s in sections if s.name not in FIXED_SECTIONS]
    return sections


async def update_content_section(ctx: AppContext, section_id: str, title: Optional[str] = None,
                                 content: Optional[str] = None) -> bool:
    values = {"updated_at": utc_now_iso()}
    if title is not None:
        values["title"] = title
    if content is not None:
        values["content"] = content
    try:
        return await ctx.repos.content_sections.update(section_id, values) is not None
    except Exception as e:
        logger.error(f"Error updating content section {section_id}: {str(e)}", exc_info=True)
        return False


async def upsert_content_section(ctx: AppContext, name: str, title: Optional[str] = None,
                                 content: str = "") -> Optional[ContentSection]:
    """Update the section called ``name``, creating it when it does not exist yet."""
    repo = ctx.repos.content_sections
    try:
        existing = await repo.find_one(name=name)
        if existing:
            row = await repo.update(existing["id"], {
                "title": title, "content": content, "updated_at": utc_now_iso(),
            })
        else:
            row = await repo.insert({
                "name": name, "title": title, "content": content, "updated_at": utc_now_iso(),
            })
        return ContentSection.model_validate(row)
    except Exception as e:
        logger.error(f"Error saving content section '{name}': {str(e)}", exc_info=True)
        return None


async def initialize_content_sections(ctx: AppContext) -> int:
    """Create any missing default sections; returns rows added."""
    added = 0
    for section in DEFAULT_SECTIONS:
        if await ctx.repos.content_sections.find_one(name=section["name"]) is None:
            await ctx.repos.content_sections.insert({**section, "updated_at": utc_now_iso()})
            added += 1
    if added:
        logger.info(f"Seeded {added} default content sections")
    return added
