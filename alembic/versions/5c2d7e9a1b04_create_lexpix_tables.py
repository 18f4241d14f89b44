"""create_lexpix_tables

Revision ID: 5c2d7e9a1b04
Revises:
Create Date: 2026-10-19 10:12:31.408215

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c2d7e9a1b04'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(*, updated: bool = False) -> list:
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)]
    if updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
        )
    return columns


def upgrade() -> None:
    op.create_table(
        'gallery_images',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('url', sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index(op.f('ix_gallery_images_created_at'), 'gallery_images', ['created_at'], unique=False)

    op.create_table(
        'events',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('cover_image', sa.Text(), nullable=False),
        sa.Column('image_count', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index(op.f('ix_events_date'), 'events', ['date'], unique=False)

    op.create_table(
        'event_images',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('event_id', sa.String(length=36), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('url', sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index(op.f('ix_event_images_event_id'), 'event_images', ['event_id'], unique=False)

    op.create_table(
        'reviews',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('published', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index(op.f('ix_reviews_published'), 'reviews', ['published'], unique=False)

    op.create_table(
        'featured_projects',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('image_url', sa.Text(), nullable=False),
        sa.Column('link', sa.String(), nullable=False, server_default=''),
        sa.Column('sort_order', sa.Integer(), nullable=True, server_default='0'),
        *_timestamps(updated=True),
    )
    op.create_index(op.f('ix_featured_projects_sort_order'), 'featured_projects', ['sort_order'], unique=False)

    op.create_table(
        'featured_project_images',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('project_id', sa.String(length=36),
                  sa.ForeignKey('featured_projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=True, server_default='0'),
        *_timestamps(),
    )
    op.create_index(
        op.f('ix_featured_project_images_project_id'), 'featured_project_images', ['project_id'], unique=False
    )

    op.create_table(
        'pricing_cards',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False, server_default='USD'),
        sa.Column('features', sa.JSON(), nullable=True),
        sa.Column('is_featured', sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column('sort_order', sa.Integer(), nullable=True, server_default='0'),
        *_timestamps(updated=True),
    )
    op.create_index(op.f('ix_pricing_cards_sort_order'), 'pricing_cards', ['sort_order'], unique=False)

    op.create_table(
        'about_images',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('image_url', sa.Text(), nullable=False),
        sa.Column('alt_text', sa.String(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(updated=True),
    )
    op.create_index(op.f('ix_about_images_sort_order'), 'about_images', ['sort_order'], unique=False)

    op.create_table(
        'counters',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('label', sa.String(), nullable=False),
        sa.Column('value', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sort_order', sa.Integer(), nullable=True, server_default='0'),
        *_timestamps(),
    )

    op.create_table(
        'content_sections',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('content', sa.Text(), nullable=False, server_default=''),
        *_timestamps(updated=True),
    )

    op.create_table(
        'invite_tokens',
        sa.Column('token', sa.String(length=64), primary_key=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('used_by', sa.String(length=36), nullable=True),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'admin_accounts',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('email', sa.String(), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(), nullable=False),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table('admin_accounts')
    op.drop_table('invite_tokens')
    op.drop_table('content_sections')
    op.drop_table('counters')
    op.drop_index(op.f('ix_about_images_sort_order'), table_name='about_images')
    op.drop_table('about_images')
    op.drop_index(op.f('ix_pricing_cards_sort_order'), table_name='pricing_cards')
    op.drop_table('pricing_cards')
    op.drop_index(op.f('ix_featured_project_images_project_id'), table_name='featured_project_images')
    op.drop_table('featured_project_images')
    op.drop_index(op.f('ix_featured_projects_sort_order'), table_name='featured_projects')
    op.drop_table('featured_projects')
    op.drop_index(op.f('ix_reviews_published'), table_name='reviews')
    op.drop_table('reviews')
    op.drop_index(op.f('ix_event_images_event_id'), table_name='event_images')
    op.drop_table('event_images')
    op.drop_index(op.f('ix_events_date'), table_name='events')
    op.drop_table('events')
    op.drop_index(op.f('ix_gallery_images_created_at'), table_name='gallery_images')
    op.drop_table('gallery_images')
