"""
Team invitations.

A signed-in admin generates a single-use link; whoever opens it before it
expires can create their own admin account. Tokens move one way:
unused -> used. Expired tokens are simply rejected and stay in the table.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from lexpix.context import AppContext
from lexpix.exceptions import AuthError, ConflictError, InviteTokenError, ServiceError
from lexpix.schemas import InviteLinkResponse, InviteSignupRequest, InviteToken
from lexpix.store.auth import AuthUser
from lexpix.utils.auth import hash_password

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def generate_invite_link(ctx: AppContext, created_by: Optional[AuthUser],
                               base_url: Optional[str] = None,
                               now: Optional[datetime] = None) -> InviteLinkResponse:
    """
    Create an invitation token and return the signup link for it.

    Raises:
        AuthError: no signed-in user
        ServiceError: the token could not be stored
    """
    if created_by is None:
        raise AuthError("You must be logged in to generate an invite link")

    token = str(uuid.uuid4())
    expires_at = (now or _utcnow()) + timedelta(days=ctx.settings.INVITE_EXPIRY_DAYS)
    try:
        await ctx.repos.invite_tokens.insert({
            "token": token,
            "expires_at": expires_at,
            "used": False,
            "created_by": created_by.id,
        })
    except Exception as e:
        logger.error(f"Could not store invite token: {str(e)}", exc_info=True)
        raise ServiceError("Could not generate invite link") from e

    base_url = (base_url or ctx.settings.SITE_URL).rstrip("/")
    logger.info(f"Invite link generated by {created_by.email}, expires {expires_at.isoformat()}")
    return InviteLinkResponse(link=f"{base_url}/invite/{token}", token=token, expires_at=expires_at)


async def validate_invite_token(ctx: AppContext, token: str, now: Optional[datetime] = None) -> InviteToken:
    """
    Return the invitation if it can still be used.

    Raises:
        InviteTokenError: unknown, already used, or past ``expires_at``
    """
    row = await ctx.repos.invite_tokens.get_by_id(token) if token else None
    if not row:
        raise InviteTokenError("Invalid or expired invitation link")

    invite = InviteToken.model_validate(row)
    if invite.used:
        raise InviteTokenError("This invitation has already been used")
    if invite.expires_at <= (now or _utcnow()):
        raise InviteTokenError("Invalid or expired invitation link")
    return invite


async def mark_invite_token_used(ctx: AppContext, token: str, used_by: str) -> bool:
    """
    Consume an unused token. The update only matches while ``used`` is still
    false, so of two concurrent callers exactly one gets True.
    """
    touched = await ctx.repos.invite_tokens.update_where(
        {"token": token, "used": False}, {"used": True, "used_by": used_by}
    )
    return touched > 0


async def release_invite_token(ctx: AppContext, token: str) -> None:
    await ctx.repos.invite_tokens.update_where({"token": token}, {"used": False, "used_by": None})


async def sign_up_with_invite(ctx: AppContext, token: str, signup: InviteSignupRequest,
                              now: Optional[datetime] = None) -> AuthUser:
    """
    Create an admin account from an invitation and consume the token.

    The token is claimed before the account is written; when the account
    cannot be created the token is released again.
    """
    await validate_invite_token(ctx, token, now=now)

    email = str(signup.email).strip().lower()
    accounts = ctx.repos.admin_accounts
    if email == ctx.settings.ADMIN_EMAIL.lower() or await accounts.find_one(email=email):
        raise ConflictError("An account with this email already exists")

    account_id = str(uuid.uuid4())
    if not await mark_invite_token_used(ctx, token, account_id):
        raise InviteTokenError("This invitation has already been used")

    try:
        account = await accounts.insert({
            "id": account_id,
            "email": email,
            "password_hash": hash_password(signup.password),
        })
    except Exception as e:
        logger.error(f"Error creating invited account: {str(e)}", exc_info=True)
        await release_invite_token(ctx, token)
        raise ServiceError("An error occurred during signup") from e

    logger.info(f"Admin account created via invitation: {email}")
    return AuthUser(id=account["id"], email=account["email"])
