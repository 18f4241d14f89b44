"""
CMS routes for the site's editable catalog: pricing cards, counters,
content sections and about images.
"""
from fastapi import APIRouter, Depends, status
from typing import List
import logging

from lexpix.context import AppContext, get_context
from lexpix.exceptions import NotFoundError, ServiceError
from lexpix.routes.deps import api_error, require_admin
from lexpix.schemas import (
    AboutImage,
    AboutImageCreate,
    AboutImageUpdate,
    ContentSection,
    ContentSectionUpdate,
    Counter,
    CounterCreate,
    CounterUpdate,
    PricingCard,
    PricingCardCreate,
    PricingCardUpdate,
)
from lexpix.services import about_image_service, content_service, counter_service, pricing_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cms", tags=["CMS"], dependencies=[Depends(require_admin)])


def _service_failure(e: ServiceError, what: str):
    if isinstance(e, NotFoundError):
        return api_error(status.HTTP_404_NOT_FOUND, f"{what} not found", e.message)
    return api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, f"{what} operation failed", e.message)


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------

@router.get("/pricing", response_model=List[PricingCard])
async def list_pricing_cards(ctx: AppContext = Depends(get_context)):
    try:
        return await pricing_service.get_pricing_cards(ctx)
    except ServiceError as e:
        raise _service_failure(e, "Pricing card")


@router.post("/pricing", response_model=PricingCard, status_code=status.HTTP_201_CREATED)
async def create_pricing_card(card: PricingCardCreate, ctx: AppContext = Depends(get_context)):
    try:
        return await pricing_service.create_pricing_card(ctx, card)
    except ServiceError as e:
        raise _service_failure(e, "Pricing card")


@router.put("/pricing/{card_id}", response_model=PricingCard)
async def update_pricing_card(card_id: str, updates: PricingCardUpdate, ctx: AppContext = Depends(get_context)):
    try:
        return await pricing_service.update_pricing_card(ctx, card_id, updates)
    except ServiceError as e:
        raise _service_failure(e, "Pricing card")


@router.delete("/pricing/{card_id}")
async def delete_pricing_card(card_id: str, ctx: AppContext = Depends(get_context)):
    try:
        await pricing_service.delete_pricing_card(ctx, card_id)
    except ServiceError as e:
        raise _service_failure(e, "Pricing card")
    return {"message": "Pricing card deleted successfully", "id": card_id}


# ---------------------------------------------------------------------------
# Counters
# ---------------------------------------------------------------------------

@router.get("/counters", response_model=List[Counter])
async def list_counters(ctx: AppContext = Depends(get_context)):
    try:
        return await counter_service.get_counters(ctx)
    except ServiceError as e:
        raise _service_failure(e, "Counter")


@router.post("/counters", response_model=Counter, status_code=status.HTTP_201_CREATED)
async def create_counter(counter: CounterCreate, ctx: AppContext = Depends(get_context)):
    try:
        return await counter_service.create_counter(ctx, counter)
    except ServiceError as e:
        raise _service_failure(e, "Counter")


@router.put("/counters/{counter_id}", response_model=Counter)
async def update_counter(counter_id: str, updates: CounterUpdate, ctx: AppContext = Depends(get_context)):
    try:
        return await counter_service.update_counter(ctx, counter_id, updates)
    except ServiceError as e:
        raise _service_failure(e, "Counter")


@router.delete("/counters/{counter_id}")
async def delete_counter(counter_id: str, ctx: AppContext = Depends(get_context)):
    try:
        await counter_service.delete_counter(ctx, counter_id)
    except ServiceError as e:
        raise _service_failure(e, "Counter")
    return {"message": "Counter deleted successfully", "id": counter_id}


# ---------------------------------------------------------------------------
# Content sections
# ---------------------------------------------------------------------------

@router.get("/content", response_model=List[ContentSection])
async def list_content_sections(ctx: AppContext = Depends(get_context)):
    """Editable sections; the fixed "about" copy is left out."""
    return await content_service.get_all_content_sections(ctx, include_fixed=False)


@router.put("/content/by-name/{name}", response_model=ContentSection)
async def save_content_section(name: str, updates: ContentSectionUpdate, ctx: AppContext = Depends(get_context)):
    section = await content_service.upsert_content_section(ctx, name, title=updates.title,
                                                           content=updates.content or "")
    if section is None:
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to save content section")
    return section


@router.put("/content/{section_id}")
async def update_content_section(section_id: str, updates: ContentSectionUpdate,
                                 ctx: AppContext = Depends(get_context)):
    if not await content_service.update_content_section(ctx, section_id, title=updates.title,
                                                        content=updates.content):
        raise api_error(status.HTTP_404_NOT_FOUND, "Content section not found", f"No section with id {section_id}")
    return {"message": "Content section updated successfully", "id": section_id}


# ---------------------------------------------------------------------------
# About images
# ---------------------------------------------------------------------------

@router.get("/about-images", response_model=List[AboutImage])
async def list_about_images(ctx: AppContext = Depends(get_context)):
    try:
        return await about_image_service.get_about_images(ctx)
    except ServiceError as e:
        raise _service_failure(e, "About image")


@router.post("/about-images", response_model=AboutImage, status_code=status.HTTP_201_CREATED)
async def create_about_image(image: AboutImageCreate, ctx: AppContext = Depends(get_context)):
    try:
        return await about_image_service.create_about_image(ctx, image)
    except ServiceError as e:
        raise _service_failure(e, "About image")


@router.put("/about-images/{image_id}", response_model=AboutImage)
async def update_about_image(image_id: str, updates: AboutImageUpdate, ctx: AppContext = Depends(get_context)):
    try:
        return await about_image_service.update_about_image(ctx, image_id, updates)
    except ServiceError as e:
        raise _service_failure(e, "About image")


@router.delete("/about-images/{image_id}")
async def delete_about_image(image_id: str, ctx: AppContext = Depends(get_context)):
    try:
        await about_image_service.delete_about_image(ctx, image_id)
    except ServiceError as e:
        raise _service_failure(e, "About image")
    return {"message": "About image deleted successfully", "id": image_id}
