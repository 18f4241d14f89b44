"""
Tests for the fixed-credential auth shim and its session stores.
"""
import pytest

from lexpix.store.auth import (
    ADMIN_USER_ID,
    AuthShim,
    KeyValueSessionStore,
    MemorySessionStore,
    TokenSessionStore,
)
from lexpix.store.kv import MemoryKeyValueStore, TableStore
from lexpix.repositories import LocalRepository
from lexpix.store.query import LocalQueryClient
from lexpix.utils.auth import hash_password

ADMIN_EMAIL = "admin@lexpix.com"
ADMIN_PASSWORD = "admin123"


def make_shim(store=None, **kwargs) -> AuthShim:
    return AuthShim(store or MemorySessionStore(), admin_email=ADMIN_EMAIL, admin_password=ADMIN_PASSWORD, **kwargs)


@pytest.fixture
def accounts():
    client = LocalQueryClient(TableStore(MemoryKeyValueStore()))
    return LocalRepository(client, "admin_accounts")


async def test_sign_in_with_fixed_credential():
    store = MemorySessionStore()
    shim = make_shim(store)

    result = await shim.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)

    assert result.ok
    assert result.user.id == ADMIN_USER_ID
    assert result.session["user"].email == ADMIN_EMAIL
    assert store.get_email() == ADMIN_EMAIL
    assert await shim.is_authenticated()
    assert (await shim.get_session())["user"].email == ADMIN_EMAIL


async def test_sign_in_normalizes_email():
    result = await make_shim().sign_in("  Admin@LexPix.com ", ADMIN_PASSWORD)
    assert result.ok


async def test_wrong_password_leaves_session_untouched():
    store = MemorySessionStore()
    shim = make_shim(store)

    result = await shim.sign_in(ADMIN_EMAIL, "wrong")

    assert not result.ok
    assert result.error == "Invalid login credentials"
    assert store.get_email() is None
    assert await shim.get_current_user() is None
    assert await shim.get_session() is None


async def test_sign_out_clears_session():
    shim = make_shim()
    await shim.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
    await shim.sign_out()
    assert not await shim.is_authenticated()


async def test_password_hash_replaces_plain_password():
    shim = make_shim(password_hash=hash_password("s3cret-pass", rounds=4))

    assert not (await shim.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)).ok
    assert (await shim.sign_in(ADMIN_EMAIL, "s3cret-pass")).ok


async def test_key_value_session_survives_new_shim():
    kv = MemoryKeyValueStore()
    await make_shim(KeyValueSessionStore(kv)).sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)

    assert kv.get_item("admin_email") == ADMIN_EMAIL
    user = await make_shim(KeyValueSessionStore(kv)).get_current_user()
    assert user.email == ADMIN_EMAIL


def test_token_session_store_round_trip():
    store = TokenSessionStore()
    assert store.get_email() is None

    store.set_email(ADMIN_EMAIL)
    assert store.changed
    assert TokenSessionStore(store.token).get_email() == ADMIN_EMAIL

    store.clear()
    assert store.token is None
    assert TokenSessionStore("not-a-jwt").get_email() is None


async def test_invited_account_can_sign_in(accounts):
    account = await accounts.insert({
        "email": "team@lexpix.com",
        "password_hash": hash_password("team-pass", rounds=4),
    })
    store = MemorySessionStore()
    shim = make_shim(store, accounts=accounts)

    result = await shim.sign_in("team@lexpix.com", "team-pass")

    assert result.ok
    assert result.user.id == account["id"]
    assert (await shim.get_current_user()).email == "team@lexpix.com"

    # A session for a removed account is no longer valid
    await accounts.delete(account["id"])
    assert await shim.get_current_user() is None


async def test_unknown_account_is_rejected(accounts):
    result = await make_shim(accounts=accounts).sign_in("nobody@lexpix.com", "whatever")
    assert result.error == "Invalid login credentials"
