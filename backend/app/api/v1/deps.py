# app/api/v1/deps.py
from functools import lru_cache

from fastapi import Depends, Header

from app.config import settings
from app.core.errors import Unauthenticated
from app.core.security import TokenCodec
from app.models.user import User
from app.services.accounts import AccountService
from app.services.avatar_storage import AvatarUploader, get_avatar_uploader

BEARER_PREFIX = "Bearer "


@lru_cache
def get_token_codec() -> TokenCodec:
    """
    Token codec built once from settings.

    The signing secret is injected here; request handlers never read the
    environment themselves.
    """
    return TokenCodec(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.access_token_expire_minutes,
    )


def get_uploader() -> AvatarUploader:
    return get_avatar_uploader()


def get_account_service(
    codec: TokenCodec = Depends(get_token_codec),
    uploader: AvatarUploader = Depends(get_uploader),
) -> AccountService:
    return AccountService(codec, uploader)


async def resolve_identity(
    authorization: str | None,
    codec: TokenCodec,
    check_store: bool = True,
) -> str:
    """
    Recover the caller's identity (email) from an Authorization header.

    Steps:
    1. Require "Authorization: Bearer <token>"
    2. Verify the token signature and its email claim
    3. If check_store, require that the account still exists, so deleting
       an account revokes its tokens

    Raises:
        Unauthenticated: Header missing/wrong scheme, token invalid, or
            account gone (when check_store)
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise Unauthenticated()
    token = authorization[len(BEARER_PREFIX):].strip()

    email = codec.verify(token)

    if check_store and not await User.filter(email=email).exists():
        raise Unauthenticated()
    return email


async def get_current_identity(
    authorization: str | None = Header(default=None),
    codec: TokenCodec = Depends(get_token_codec),
) -> str:
    """
    FastAPI dependency: email of the authenticated caller, confirmed against
    the store.

    Usage:
        @router.get("/protected")
        async def protected_route(identity: str = Depends(get_current_identity)):
            ...
    """
    return await resolve_identity(authorization, codec, check_store=True)


async def get_token_identity(
    authorization: str | None = Header(default=None),
    codec: TokenCodec = Depends(get_token_codec),
) -> str:
    """Signature-only variant: the account may no longer exist."""
    return await resolve_identity(authorization, codec, check_store=False)
