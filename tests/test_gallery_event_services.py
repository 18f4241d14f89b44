"""
Tests for the gallery and event services against an in-memory context.
"""
from datetime import date

import pytest

from lexpix.config import Settings
from lexpix.context import build_local_context
from lexpix.schemas import EventCreate
from lexpix.services import event_service, gallery_service
from lexpix.services.uploads import UploadedFile, upload_image
from lexpix.store.kv import MemoryKeyValueStore


def png_file(png_bytes, name="beach.png") -> UploadedFile:
    return UploadedFile(filename=name, content=png_bytes, content_type="image/png")


# ---------------------------------------------------------------------------
# Gallery
# ---------------------------------------------------------------------------

async def test_upload_gallery_images_titles_from_file_name(ctx, png_bytes):
    created = await gallery_service.upload_gallery_images(
        ctx, [png_file(png_bytes, "beach.png"), png_file(png_bytes, "city.lights.png")]
    )

    assert [image.title for image in created] == ["beach", "city"]
    assert all(image.url.startswith("data:image/png;base64,") for image in created)


async def test_upload_converts_to_webp_when_enabled(png_bytes):
    settings = Settings(_env_file=None, CONVERT_UPLOADS_TO_WEBP=True)
    ctx = build_local_context(settings, kv=MemoryKeyValueStore())

    created = await gallery_service.upload_gallery_images(ctx, [png_file(png_bytes)])

    assert created[0].url.startswith("data:image/webp;base64,")
    stored = await ctx.storage.from_("images").list()
    assert stored[0].name.endswith(".webp")


async def test_gallery_images_newest_first(ctx):
    for title in ("first", "second", "third"):
        await gallery_service.create_gallery_image(ctx, title, f"https://img/{title}.jpg")

    images = await gallery_service.get_gallery_images(ctx)

    assert [image.title for image in images] == ["third", "second", "first"]


async def test_gallery_page_pagination(ctx):
    for i in range(5):
        await gallery_service.create_gallery_image(ctx, f"img{i}", f"https://img/{i}.jpg")

    first = await gallery_service.get_gallery_page(ctx, limit=2, offset=0)
    assert [image.title for image in first.images] == ["img4", "img3"]
    assert first.pagination.has_more
    assert first.pagination.next_offset == 2
    assert first.pagination.total_count == 5

    last = await gallery_service.get_gallery_page(ctx, limit=2, offset=4)
    assert [image.title for image in last.images] == ["img0"]
    assert not last.pagination.has_more
    assert last.pagination.next_offset is None


async def test_delete_gallery_images_reports_removed_ids(ctx):
    image = await gallery_service.create_gallery_image(ctx, "a", "https://img/a.jpg")

    deleted = await gallery_service.delete_gallery_images(ctx, [image.id, "missing"])

    assert deleted == [image.id]
    assert await gallery_service.get_gallery_images(ctx) == []
    assert not await gallery_service.delete_gallery_image(ctx, image.id)


async def test_upload_image_returns_none_when_quota_is_full(png_bytes):
    ctx = build_local_context(Settings(_env_file=None), kv=MemoryKeyValueStore(quota_bytes=64))
    assert await upload_image(ctx.storage, png_file(png_bytes)) is None


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

async def _create_event(ctx, png_bytes, title="Wedding", event_date=date(2024, 6, 1), images=2):
    files = [png_file(png_bytes, f"photo{i}.png") for i in range(images)]
    return await event_service.create_event(
        ctx, EventCreate(title=title, date=event_date), png_file(png_bytes, "cover.png"), files
    )


async def test_create_event_stores_cover_and_images(ctx, png_bytes):
    event = await _create_event(ctx, png_bytes)

    assert event.title == "Wedding"
    assert event.description == ""
    assert event.cover_image.startswith("data:image/png;base64,")
    assert event.image_count == 2

    images = await event_service.get_event_images(ctx, event.id)
    assert [image.title for image in images] == ["photo0", "photo1"]


async def test_image_count_reflects_failed_uploads(ctx, png_bytes, monkeypatch):
    real_upload = event_service.upload_image

    async def flaky_upload(storage, file, **kwargs):
        if file.filename == "photo1.png":
            return None
        return await real_upload(storage, file, **kwargs)

    monkeypatch.setattr(event_service, "upload_image", flaky_upload)

    event = await _create_event(ctx, png_bytes, images=3)

    assert event.image_count == 2
    assert (await event_service.get_event(ctx, event.id)).image_count == 2


async def test_failed_event_insert_removes_cover(ctx, png_bytes, monkeypatch):
    async def broken_insert(values):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(ctx.repos.events, "insert", broken_insert)

    assert await _create_event(ctx, png_bytes, images=0) is None
    assert await ctx.storage.from_("images").list() == []


async def test_image_count_follows_adds_and_deletes(ctx, png_bytes):
    event = await _create_event(ctx, png_bytes, images=1)

    added = await event_service.add_event_images(ctx, event.id, [png_file(png_bytes, "extra.png")])
    assert [image.title for image in added] == ["extra"]
    assert (await event_service.get_event(ctx, event.id)).image_count == 2

    assert await event_service.delete_event_image(ctx, added[0].id)
    assert (await event_service.get_event(ctx, event.id)).image_count == 1
    assert not await event_service.delete_event_image(ctx, added[0].id)


async def test_add_images_to_missing_event(ctx, png_bytes):
    assert await event_service.add_event_images(ctx, "missing", [png_file(png_bytes)]) is None


async def test_events_ordered_by_date_descending(ctx, png_bytes):
    await _create_event(ctx, png_bytes, title="Spring", event_date=date(2024, 3, 1), images=0)
    await _create_event(ctx, png_bytes, title="Autumn", event_date=date(2024, 10, 1), images=0)
    await _create_event(ctx, png_bytes, title="Summer", event_date=date(2024, 7, 1), images=0)

    events = await event_service.get_events(ctx)

    assert [event.title for event in events] == ["Autumn", "Summer", "Spring"]


async def test_delete_event_removes_its_images(ctx, png_bytes):
    event = await _create_event(ctx, png_bytes, images=2)
    other = await _create_event(ctx, png_bytes, title="Other", images=1)

    assert await event_service.delete_event(ctx, event.id)

    assert await event_service.get_event(ctx, event.id) is None
    assert await event_service.get_event_images(ctx, event.id) == []
    assert len(await event_service.get_event_images(ctx, other.id)) == 1
    assert not await event_service.delete_event(ctx, event.id)


@pytest.mark.parametrize("filename,content_type,expected", [
    ("photo.JPG", "image/jpeg", "jpg"),
    ("noext", "image/png", "png"),
    ("", None, "bin"),
])
def test_uploaded_file_extension(filename, content_type, expected):
    assert UploadedFile(filename=filename, content=b"", content_type=content_type).extension == expected
