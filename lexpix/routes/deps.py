"""
Shared route dependencies: the admin gate and multipart upload helpers.
"""
from fastapi import Depends, HTTPException, Request, UploadFile, status
from typing import List, Optional, Sequence
import logging

from lexpix.context import AppContext, get_context
from lexpix.services.uploads import UploadedFile
from lexpix.store.auth import AuthUser, TokenSessionStore
from lexpix.utils.jwt_auth import token_from_request

logger = logging.getLogger(__name__)


def api_error(status_code: int, error: str, detail: Optional[str] = None) -> HTTPException:
    """HTTPException carrying the API's ``{"error", "detail"}`` body."""
    return HTTPException(status_code=status_code, detail={"error": error, "detail": detail or error})


async def require_admin(request: Request, ctx: AppContext = Depends(get_context)) -> AuthUser:
    """
    FastAPI dependency guarding the admin (CMS) routes.
    Reads the session JWT from the ``cms_token`` cookie or a Bearer header.

    Returns:
        AuthUser: the signed-in admin

    Raises:
        HTTPException: 401 if the token is missing, invalid, expired, or
        belongs to an account that no longer exists
    """
    token = token_from_request(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Missing token", "detail": "Authentication required"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await ctx.auth(TokenSessionStore(token)).get_current_user()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token", "detail": "Authentication token is invalid or expired"},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def validate_image_uploads(files: Sequence[UploadFile]) -> None:
    """Reject the whole request if any part is not an image."""
    if not files:
        raise api_error(status.HTTP_400_BAD_REQUEST, "No files provided", "At least one image file is required")
    for i, file in enumerate(files):
        if not file.content_type or not file.content_type.startswith('image/'):
            filename = file.filename or f'file_{i}'
            raise api_error(
                status.HTTP_400_BAD_REQUEST, "Invalid file type", f"File '{filename}' is not a valid image file"
            )


async def read_uploads(files: Sequence[UploadFile]) -> List[UploadedFile]:
    uploads = []
    for file in files:
        content = await file.read()
        uploads.append(UploadedFile(filename=file.filename or "", content=content, content_type=file.content_type))
    return uploads
