import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from lexpix.config import Settings
from lexpix.context import build_local_context, get_context
from lexpix.main import app
from lexpix.store.kv import MemoryKeyValueStore
from lexpix.utils.rate_limit import limiter

# Rate limits are keyed on the client address, which is the same for every test
limiter.enabled = False


@pytest.fixture
def settings() -> Settings:
    """Local-mode settings that ignore any .env file on the machine."""
    return Settings(
        _env_file=None,
        BACKEND_MODE="local",
        LOCAL_STORE_PATH="",
        CONVERT_UPLOADS_TO_WEBP=False,
        REVIEWS_REQUIRE_APPROVAL=False,
    )


@pytest.fixture
def ctx(settings):
    """A fresh in-memory application context."""
    return build_local_context(settings, kv=MemoryKeyValueStore())


@pytest.fixture
def client(ctx) -> TestClient:
    """
    Test client bound to the in-memory context. Entering the client runs the
    startup event, so buckets exist and the sample data is seeded.
    """
    app.state.context = ctx
    app.dependency_overrides[get_context] = lambda: ctx
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    app.state.context = None


@pytest.fixture
def admin_client(client, settings) -> TestClient:
    """Test client holding a signed-in admin's session cookie."""
    response = client.post(
        "/api/auth/login",
        json={"email": settings.ADMIN_EMAIL, "password": settings.ADMIN_PASSWORD},
    )
    assert response.status_code == 200
    return client


def make_png(color=(200, 30, 30), size=(8, 8)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()
