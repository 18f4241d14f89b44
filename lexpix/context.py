"""
Application context: the repositories, object storage and settings every
service and route works against. Built once at startup and passed
explicitly, so tests can swap in an in-memory context.
"""
import logging
from dataclasses import dataclass, fields
from typing import Optional

from fastapi import Request

from lexpix.config import Settings
from lexpix.repositories import LocalRepository, Repository, SqlRepository
from lexpix.store.auth import AuthShim, SessionStore
from lexpix.store.kv import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore, TableStore
from lexpix.store.objects import LocalObjectStorage, ObjectStorage
from lexpix.store.query import LocalQueryClient

logger = logging.getLogger(__name__)

IMAGES_BUCKET = "images"
PROJECTS_BUCKET = "featured-projects"

PRIMARY_KEYS = {"invite_tokens": "token"}


@dataclass
class Repositories:
    gallery_images: Repository
    events: Repository
    event_images: Repository
    reviews: Repository
    featured_projects: Repository
    featured_project_images: Repository
    pricing_cards: Repository
    about_images: Repository
    counters: Repository
    content_sections: Repository
    invite_tokens: Repository
    admin_accounts: Repository


TABLES = tuple(f.name for f in fields(Repositories))


@dataclass
class AppContext:
    settings: Settings
    repos: Repositories
    storage: ObjectStorage
    mode: str = "local"
    kv: Optional[KeyValueStore] = None

    def auth(self, session_store: SessionStore) -> AuthShim:
        return AuthShim(
            session_store,
            admin_email=self.settings.ADMIN_EMAIL,
            admin_password=self.settings.ADMIN_PASSWORD,
            password_hash=self.settings.ADMIN_PASSWORD_HASH,
            accounts=self.repos.admin_accounts,
        )


def build_local_context(settings: Settings, kv: Optional[KeyValueStore] = None) -> AppContext:
    """Everything on the key-value store: file-backed when LOCAL_STORE_PATH is set."""
    if kv is None:
        if settings.LOCAL_STORE_PATH:
            kv = FileKeyValueStore(settings.LOCAL_STORE_PATH, quota_bytes=settings.LOCAL_STORE_QUOTA_BYTES)
        else:
            kv = MemoryKeyValueStore(quota_bytes=settings.LOCAL_STORE_QUOTA_BYTES)
    client = LocalQueryClient(TableStore(kv))
    repos = Repositories(**{
        table: LocalRepository(client, table, PRIMARY_KEYS.get(table, "id")) for table in TABLES
    })
    return AppContext(settings=settings, repos=repos, storage=LocalObjectStorage(kv), mode="local", kv=kv)


def build_remote_context(settings: Settings, session_factory=None, storage: Optional[ObjectStorage] = None) -> AppContext:
    """SQL repositories and Cloudinary storage."""
    from lexpix.database import get_session_factory
    from lexpix.models import MODELS

    if session_factory is None:
        session_factory = get_session_factory()
    if storage is None:
        from lexpix.services.cloudinary_service import CloudinaryObjectStorage
        storage = CloudinaryObjectStorage()
    repos = Repositories(**{table: SqlRepository(MODELS[table], session_factory) for table in TABLES})
    return AppContext(settings=settings, repos=repos, storage=storage, mode="remote")


def build_context(settings: Settings) -> AppContext:
    if settings.use_remote_backend:
        logger.info("Using remote backend (SQL database + Cloudinary)")
        return build_remote_context(settings)
    logger.info(f"Using local backend ({settings.LOCAL_STORE_PATH or 'in-memory'})")
    return build_local_context(settings)


def get_context(request: Request) -> AppContext:
    """FastAPI dependency returning the context created at startup."""
    return request.app.state.context
