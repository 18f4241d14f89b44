"""
Tests for team invitations and the storage housekeeping service.
"""
from datetime import datetime, timedelta, timezone

import pytest

from lexpix.exceptions import AuthError, ConflictError, InviteTokenError, ServiceError
from lexpix.schemas import InviteSignupRequest
from lexpix.services import gallery_service, invite_service, storage_service
from lexpix.services.uploads import UploadedFile
from lexpix.store.auth import ADMIN_USER_ID, AuthUser, MemorySessionStore

ADMIN = AuthUser(id=ADMIN_USER_ID, email="admin@lexpix.com")


def signup(email="newbie@lexpix.com") -> InviteSignupRequest:
    return InviteSignupRequest(email=email, password="team-pass", confirm_password="team-pass")


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

async def test_generate_invite_link(ctx):
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    invite = await invite_service.generate_invite_link(ctx, ADMIN, base_url="https://lexpix.com/", now=now)

    assert invite.link == f"https://lexpix.com/invite/{invite.token}"
    assert invite.expires_at == now + timedelta(days=7)
    stored = await ctx.repos.invite_tokens.get_by_id(invite.token)
    assert stored["used"] is False
    assert stored["created_by"] == ADMIN_USER_ID


async def test_invite_link_defaults_to_site_url(ctx):
    invite = await invite_service.generate_invite_link(ctx, ADMIN)
    assert invite.link.startswith(f"{ctx.settings.SITE_URL}/invite/")


async def test_invite_requires_signed_in_user(ctx):
    with pytest.raises(AuthError):
        await invite_service.generate_invite_link(ctx, None)


async def test_expired_and_unknown_tokens_are_rejected(ctx):
    invite = await invite_service.generate_invite_link(ctx, ADMIN)

    assert (await invite_service.validate_invite_token(ctx, invite.token)).token == invite.token
    with pytest.raises(InviteTokenError):
        await invite_service.validate_invite_token(ctx, invite.token, now=invite.expires_at)
    with pytest.raises(InviteTokenError):
        await invite_service.validate_invite_token(ctx, "unknown")
    with pytest.raises(InviteTokenError):
        await invite_service.validate_invite_token(ctx, "")


async def test_signup_consumes_token_and_allows_login(ctx):
    invite = await invite_service.generate_invite_link(ctx, ADMIN)

    user = await invite_service.sign_up_with_invite(ctx, invite.token, signup("NewBie@LexPix.com"))

    assert user.email == "newbie@lexpix.com"
    token_row = await ctx.repos.invite_tokens.get_by_id(invite.token)
    assert token_row["used"] is True
    assert token_row["used_by"] == user.id

    result = await ctx.auth(MemorySessionStore()).sign_in("newbie@lexpix.com", "team-pass")
    assert result.ok
    assert result.user.id == user.id

    with pytest.raises(InviteTokenError, match="already been used"):
        await invite_service.sign_up_with_invite(ctx, invite.token, signup("other@lexpix.com"))


async def test_signup_rejects_existing_emails(ctx):
    first = await invite_service.generate_invite_link(ctx, ADMIN)
    second = await invite_service.generate_invite_link(ctx, ADMIN)
    await invite_service.sign_up_with_invite(ctx, first.token, signup())

    with pytest.raises(ConflictError):
        await invite_service.sign_up_with_invite(ctx, second.token, signup())
    with pytest.raises(ConflictError):
        await invite_service.sign_up_with_invite(ctx, second.token, signup(ctx.settings.ADMIN_EMAIL))

    # The failed attempts did not spend the second invitation
    assert not (await ctx.repos.invite_tokens.get_by_id(second.token))["used"]


async def test_signup_releases_token_when_account_insert_fails(ctx, monkeypatch):
    invite = await invite_service.generate_invite_link(ctx, ADMIN)

    async def broken_insert(values):
        raise RuntimeError("disk full")

    monkeypatch.setattr(ctx.repos.admin_accounts, "insert", broken_insert)

    with pytest.raises(ServiceError):
        await invite_service.sign_up_with_invite(ctx, invite.token, signup())

    token_row = await ctx.repos.invite_tokens.get_by_id(invite.token)
    assert token_row["used"] is False
    assert token_row["used_by"] is None
    monkeypatch.undo()
    user = await invite_service.sign_up_with_invite(ctx, invite.token, signup())
    assert user.email == "newbie@lexpix.com"


async def test_token_is_consumed_only_once(ctx):
    invite = await invite_service.generate_invite_link(ctx, ADMIN)

    assert await invite_service.mark_invite_token_used(ctx, invite.token, "first")
    assert not await invite_service.mark_invite_token_used(ctx, invite.token, "second")
    assert (await ctx.repos.invite_tokens.get_by_id(invite.token))["used_by"] == "first"


async def test_signup_fails_when_token_is_claimed_first(ctx, monkeypatch):
    invite = await invite_service.generate_invite_link(ctx, ADMIN)

    async def claimed_elsewhere(ctx, token, used_by):
        return False

    monkeypatch.setattr(invite_service, "mark_invite_token_used", claimed_elsewhere)

    with pytest.raises(InviteTokenError, match="already been used"):
        await invite_service.sign_up_with_invite(ctx, invite.token, signup())
    assert await ctx.repos.admin_accounts.find_one(email="newbie@lexpix.com") is None


def test_signup_passwords_must_match():
    with pytest.raises(ValueError):
        InviteSignupRequest(email="a@lexpix.com", password="abcdef", confirm_password="abcdeg")


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("num_bytes,expected", [
    (0, "0 Bytes"),
    (-5, "0 Bytes"),
    (512, "512 Bytes"),
    (1024, "1 KB"),
    (1536, "1.5 KB"),
    (5 * 1024 * 1024, "5 MB"),
    (1024 ** 3, "1 GB"),
])
def test_format_bytes(num_bytes, expected):
    assert storage_service.format_bytes(num_bytes) == expected


def test_get_file_sizes():
    files = [UploadedFile("a.png", b"12345"), UploadedFile("b.png", b"123")]
    assert storage_service.get_file_sizes(files) == 8


async def _upload(ctx, name, size):
    bucket = ctx.storage.from_("images")
    await ctx.storage.ensure_bucket("images")
    await bucket.upload(name, b"x" * size, content_type="image/jpeg")
    return bucket.get_public_url(name)


async def test_storage_usage_only_counts_existing_buckets(ctx):
    total, files = await storage_service.get_current_storage_usage(ctx)
    assert (total, files) == (0, [])

    await _upload(ctx, "gallery/a.jpg", 300)
    await _upload(ctx, "gallery/b.jpg", 200)

    total, files = await storage_service.get_current_storage_usage(ctx)
    assert total == 500
    assert {f.name for f in files} == {"gallery/a.jpg", "gallery/b.jpg"}
    assert all(f.bucket_id == "images" and f.mimetype == "image/jpeg" for f in files)


async def test_check_storage_limit(ctx):
    ctx.settings.STORAGE_LIMIT_BYTES = 1000
    await _upload(ctx, "gallery/a.jpg", 600)

    fits = await storage_service.check_storage_limit(ctx, additional_size=400)
    assert fits.can_upload
    assert fits.current_usage == 600
    assert fits.percent_used == 100.0

    too_big = await storage_service.check_storage_limit(ctx, additional_size=401)
    assert not too_big.can_upload


async def test_large_files_sorted_largest_first(ctx):
    await _upload(ctx, "small.jpg", 100)
    await _upload(ctx, "edge.jpg", 500)
    await _upload(ctx, "big.jpg", 900)
    await _upload(ctx, "bigger.jpg", 1200)

    large = await storage_service.get_large_files(ctx, threshold=500)

    assert [f.name for f in large] == ["bigger.jpg", "big.jpg"]


async def test_delete_storage_file_removes_gallery_rows(ctx):
    url = await _upload(ctx, "gallery/a.jpg", 50)
    await gallery_service.create_gallery_image(ctx, "a", url)
    keep = await gallery_service.create_gallery_image(ctx, "b", "https://img/b.jpg")

    assert await storage_service.delete_storage_file(ctx, "images", "gallery/a.jpg")

    remaining = await gallery_service.get_gallery_images(ctx)
    assert [image.id for image in remaining] == [keep.id]
    assert not await storage_service.delete_storage_file(ctx, "images", "gallery/a.jpg")
