"""
Pydantic schemas for request and response data validation.
Rows coming out of either repository backend are validated into these
view-models before they reach a route.
"""
from datetime import date, datetime, timezone
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


def _ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; every stored timestamp is UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_ensure_utc)]


class RowModel(BaseModel):
    """Base for models validated from repository rows."""
    model_config = ConfigDict(from_attributes=True, extra="ignore")


# ---------------------------------------------------------------------------
# Gallery
# ---------------------------------------------------------------------------

class ImageItem(RowModel):
    """Minimal image view used by the public grids and lightboxes."""
    id: str
    title: str
    url: str


class GalleryImageResponse(ImageItem):
    created_at: Optional[UtcDatetime] = None


class GalleryImageCreate(BaseModel):
    title: str = Field(min_length=1)
    url: str = Field(min_length=1)


class PaginationMetadata(BaseModel):
    """
    Offset pagination metadata for the public gallery.
    """
    next_offset: Optional[int] = None
    has_more: bool
    total_count: int


class GalleryImagesPageResponse(BaseModel):
    images: List[ImageItem]
    pagination: PaginationMetadata


class BulkDeleteRequest(BaseModel):
    """
    Request schema for bulk deleting rows by id.
    """
    ids: List[str] = Field(min_length=1)


class ReorderRequest(BaseModel):
    """
    Ids in the desired display order; sort_order becomes the list index.
    """
    ids: List[str]

    @field_validator('ids')
    @classmethod
    def validate_unique_ids(cls, v):
        if len(v) != len(set(v)):
            raise ValueError('Duplicate ids are not allowed')
        return v


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

class EventItem(RowModel):
    id: str
    title: str
    description: str = ""
    date: date
    cover_image: str
    image_count: int = 0

    @field_validator('description', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        return v or ""

    @field_validator('image_count', mode='before')
    @classmethod
    def none_to_zero(cls, v):
        return v or 0


class EventCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    date: date


class EventDetailResponse(BaseModel):
    event: EventItem
    images: List[ImageItem]


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------

class ReviewPublic(RowModel):
    """Review as shown on the public site (no email address)."""
    id: str
    name: str
    rating: int
    text: str
    created_at: Optional[UtcDatetime] = None


class Review(ReviewPublic):
    email: str
    published: bool = True

    @field_validator('published', mode='before')
    @classmethod
    def none_to_false(cls, v):
        return bool(v)


class ReviewCreate(BaseModel):
    name: str = Field(min_length=2)
    email: EmailStr
    rating: int = Field(ge=1, le=5)
    text: str = Field(min_length=1)

    @field_validator('name', 'text')
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('must not be blank')
        return v


class ReviewStatusUpdate(BaseModel):
    published: bool


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------

class PricingCard(RowModel):
    id: str
    title: str
    description: str = ""
    price: float
    currency: str = "USD"
    features: List[str] = []
    is_featured: bool = False
    sort_order: int = 0
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None

    @field_validator('features', mode='before')
    @classmethod
    def none_to_list(cls, v):
        return v or []

    @field_validator('is_featured', mode='before')
    @classmethod
    def none_to_false(cls, v):
        return bool(v)

    @field_validator('sort_order', mode='before')
    @classmethod
    def none_to_zero(cls, v):
        return v or 0


class PricingCardCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    price: float = Field(ge=0)
    currency: str = "USD"
    features: List[str] = []
    is_featured: bool = False
    sort_order: int = 0


class PricingCardUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    features: Optional[List[str]] = None
    is_featured: Optional[bool] = None
    sort_order: Optional[int] = None


# ---------------------------------------------------------------------------
# Featured projects
# ---------------------------------------------------------------------------

class FeaturedProject(RowModel):
    id: str
    title: str
    description: str = ""
    image_url: str
    link: str = ""
    sort_order: Optional[int] = None
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None


class FeaturedProjectCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    image_url: str = Field(min_length=1)
    link: str = ""
    sort_order: Optional[int] = None


class FeaturedProjectUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None
    link: Optional[str] = None
    sort_order: Optional[int] = None


class FeaturedProjectImage(RowModel):
    id: str
    project_id: str
    title: str
    url: str
    sort_order: int = 0
    created_at: Optional[UtcDatetime] = None

    @field_validator('sort_order', mode='before')
    @classmethod
    def none_to_zero(cls, v):
        return v or 0


class FeaturedProjectImageCreate(BaseModel):
    title: str = Field(min_length=1)
    url: str = Field(min_length=1)
    sort_order: Optional[int] = None


class FeaturedProjectDetailResponse(BaseModel):
    project: FeaturedProject
    images: List[FeaturedProjectImage]


# ---------------------------------------------------------------------------
# About images, counters, content
# ---------------------------------------------------------------------------

class AboutImage(RowModel):
    id: str
    image_url: str
    alt_text: Optional[str] = None
    sort_order: int = 0
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None


class AboutImageCreate(BaseModel):
    image_url: str = Field(min_length=1)
    alt_text: Optional[str] = None
    sort_order: int = 0


class AboutImageUpdate(BaseModel):
    image_url: Optional[str] = None
    alt_text: Optional[str] = None
    sort_order: Optional[int] = None


class Counter(RowModel):
    id: str
    name: str
    label: str
    value: int = 0
    sort_order: Optional[int] = None


class CounterCreate(BaseModel):
    name: str = Field(min_length=1)
    label: str = Field(min_length=1)
    value: int = 0
    sort_order: Optional[int] = None


class CounterUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    label: Optional[str] = Field(default=None, min_length=1)
    value: Optional[int] = None
    sort_order: Optional[int] = None


class ContentSection(RowModel):
    id: str
    name: str
    title: Optional[str] = None
    content: str = ""
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None


class ContentSectionUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None


# ---------------------------------------------------------------------------
# Auth and invitations
# ---------------------------------------------------------------------------

class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class AuthUserResponse(BaseModel):
    id: str
    email: str


class InviteToken(RowModel):
    token: str
    expires_at: UtcDatetime
    used: bool = False
    used_by: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[UtcDatetime] = None

    @field_validator('used', mode='before')
    @classmethod
    def none_to_false(cls, v):
        return bool(v)


class InviteLinkResponse(BaseModel):
    link: str
    token: str
    expires_at: datetime


class InviteSignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    confirm_password: Optional[str] = None

    @model_validator(mode='after')
    def passwords_match(self):
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError('Passwords do not match')
        return self


# ---------------------------------------------------------------------------
# Contact form and storage housekeeping
# ---------------------------------------------------------------------------

class ContactMessage(BaseModel):
    name: str = Field(min_length=2, description="Name must be at least 2 characters.")
    email: EmailStr
    message: str = Field(min_length=10, description="Message must be at least 10 characters.")


class StorageFile(BaseModel):
    name: str
    size: int
    bucket_id: str
    created_at: str = ""
    mimetype: str = "unknown"


class StorageUsageResponse(BaseModel):
    total_size: int
    total_size_formatted: str
    limit: int
    percent_used: float
    files: List[StorageFile]


class StorageLimitCheck(BaseModel):
    can_upload: bool
    current_usage: int
    limit: int
    percent_used: float
