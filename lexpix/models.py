"""
SQLAlchemy models for remote mode.
All database models inherit from Base (declarative base). Table and column
names match the rows written by the local store so both backends exchange
the same dictionaries.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text

from lexpix.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class GalleryImage(Base):
    __tablename__ = "gallery_images"

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String, nullable=False)
    url = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False, index=True)


class Event(Base):
    """
    Photographed event. image_count is a cached count of EventImage rows,
    maintained by the events service.
    """
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False, index=True)
    cover_image = Column(Text, nullable=False)
    image_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)


class EventImage(Base):
    __tablename__ = "event_images"

    id = Column(String(36), primary_key=True, default=_uuid)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    url = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)


class Review(Base):
    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    rating = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)
    published = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)


class FeaturedProject(Base):
    __tablename__ = "featured_projects"

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    image_url = Column(Text, nullable=False)
    link = Column(String, nullable=False, default="")
    sort_order = Column(Integer, nullable=True, default=0, index=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, nullable=False)


class FeaturedProjectImage(Base):
    __tablename__ = "featured_project_images"

    id = Column(String(36), primary_key=True, default=_uuid)
    project_id = Column(String(36), ForeignKey("featured_projects.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    url = Column(Text, nullable=False)
    sort_order = Column(Integer, nullable=True, default=0)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)


class PricingCard(Base):
    __tablename__ = "pricing_cards"

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(8), nullable=False, default="USD")
    features = Column(JSON, nullable=True)
    is_featured = Column(Boolean, nullable=True, default=False)
    sort_order = Column(Integer, nullable=True, default=0, index=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, nullable=False)


class AboutImage(Base):
    __tablename__ = "about_images"

    id = Column(String(36), primary_key=True, default=_uuid)
    image_url = Column(Text, nullable=False)
    alt_text = Column(String, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, nullable=False)


class Counter(Base):
    __tablename__ = "counters"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False, unique=True)
    label = Column(String, nullable=False)
    value = Column(Integer, nullable=False, default=0)
    sort_order = Column(Integer, nullable=True, default=0)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)


class ContentSection(Base):
    __tablename__ = "content_sections"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False, unique=True)
    title = Column(String, nullable=True)
    content = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, nullable=False)


class InviteToken(Base):
    """Single-use, time-limited admin invitation."""
    __tablename__ = "invite_tokens"

    token = Column(String(64), primary_key=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    used_by = Column(String(36), nullable=True)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)


class AdminAccount(Base):
    """Admin created through an invitation; the fixed admin is not stored here."""
    __tablename__ = "admin_accounts"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)


# Table name -> model, used to build repositories
MODELS = {
    model.__tablename__: model
    for model in (
        GalleryImage, Event, EventImage, Review, FeaturedProject, FeaturedProjectImage,
        PricingCard, AboutImage, Counter, ContentSection, InviteToken, AdminAccount,
    )
}
