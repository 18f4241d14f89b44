"""
Authentication routes: admin login/logout and signup through team invitations.
The session is a JWT carried in the httpOnly ``cms_token`` cookie.
"""
from fastapi import APIRouter, Depends, Request, Response, status
import logging

from lexpix.config import settings
from lexpix.context import AppContext, get_context
from lexpix.exceptions import ConflictError, InviteTokenError, ServiceError
from lexpix.routes.deps import api_error, require_admin
from lexpix.schemas import AuthUserResponse, InviteSignupRequest, LoginRequest
from lexpix.services import invite_service
from lexpix.store.auth import AuthUser, TokenSessionStore
from lexpix.utils.jwt_auth import COOKIE_NAME
from lexpix.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _write_session(response: Response, request: Request, store: TokenSessionStore) -> None:
    if not store.changed:
        return
    if store.token is None:
        response.delete_cookie(COOKIE_NAME, path="/")
        return
    response.set_cookie(
        key=COOKIE_NAME,
        value=store.token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=request.url.scheme == "https",
        samesite="lax",
        path="/",
    )


@router.post("/login")
@limiter.limit(RATE_LIMITS["login"])
async def login(request: Request, response: Response, credentials: LoginRequest,
                ctx: AppContext = Depends(get_context)):
    """
    Sign an admin in and set the session cookie.

    Returns:
        dict: the signed-in user plus the access token (for clients that
        prefer the Authorization header over the cookie)

    Raises:
        HTTPException: 401 on invalid credentials
    """
    store = TokenSessionStore()
    result = await ctx.auth(store).sign_in(credentials.email, credentials.password)
    if not result.ok:
        raise api_error(status.HTTP_401_UNAUTHORIZED, "Invalid credentials", result.error)

    _write_session(response, request, store)
    return {
        "user": AuthUserResponse(id=result.user.id, email=result.user.email),
        "access_token": store.token,
        "token_type": "bearer",
    }


@router.post("/logout")
async def logout(request: Request, response: Response, ctx: AppContext = Depends(get_context)):
    store = TokenSessionStore()
    await ctx.auth(store).sign_out()
    _write_session(response, request, store)
    return {"message": "Logged out"}


@router.get("/me", response_model=AuthUserResponse)
async def me(user: AuthUser = Depends(require_admin)):
    return AuthUserResponse(id=user.id, email=user.email)


@router.get("/invites/{token}")
async def check_invite(token: str, ctx: AppContext = Depends(get_context)):
    """Tell the signup page whether an invitation link can still be used."""
    try:
        invite = await invite_service.validate_invite_token(ctx, token)
    except InviteTokenError as e:
        raise api_error(status.HTTP_400_BAD_REQUEST, "Invalid invitation", e.message)
    return {"valid": True, "expires_at": invite.expires_at}


@router.post("/invites/{token}/signup", response_model=AuthUserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["signup"])
async def signup_with_invite(request: Request, token: str, signup: InviteSignupRequest,
                             ctx: AppContext = Depends(get_context)):
    """
    Create an admin account from an invitation link.

    Raises:
        HTTPException: 400 if the invitation is invalid, used or expired;
        409 if the email already belongs to an admin
    """
    try:
        user = await invite_service.sign_up_with_invite(ctx, token, signup)
    except InviteTokenError as e:
        raise api_error(status.HTTP_400_BAD_REQUEST, "Invalid invitation", e.message)
    except ConflictError as e:
        raise api_error(status.HTTP_409_CONFLICT, "Account exists", e.message)
    except ServiceError as e:
        raise api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Signup failed", e.message)
    return AuthUserResponse(id=user.id, email=user.email)
