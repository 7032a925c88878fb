"""
Unit tests for the identity resolver in api.v1.deps.
"""
import pytest
from unittest.mock import patch

from app.api.v1.deps import get_token_codec, resolve_identity
from app.core.errors import InvalidToken, Unauthenticated
from app.core.security import TokenCodec

pytestmark = pytest.mark.asyncio


async def test_resolves_email_from_bearer_token(db, codec, create_user):
    user, _ = await create_user()
    token = codec.issue(user.email)
    assert await resolve_identity(f"Bearer {token}", codec) == user.email


async def test_missing_header_is_unauthenticated(codec):
    with pytest.raises(Unauthenticated):
        await resolve_identity(None, codec, check_store=False)


async def test_wrong_scheme_is_unauthenticated(codec):
    token = codec.issue("a@x.com")
    with pytest.raises(Unauthenticated):
        await resolve_identity(f"Basic {token}", codec, check_store=False)
    with pytest.raises(Unauthenticated):
        await resolve_identity(token, codec, check_store=False)


async def test_token_signed_with_other_secret_fails(codec):
    foreign = TokenCodec("some-other-secret-that-is-long-enough").issue("a@x.com")
    with pytest.raises(InvalidToken):
        await resolve_identity(f"Bearer {foreign}", codec, check_store=False)


async def test_store_check_rejects_deleted_account(db, codec, create_user):
    user, _ = await create_user()
    token = codec.issue(user.email)
    await user.delete()

    with pytest.raises(Unauthenticated):
        await resolve_identity(f"Bearer {token}", codec, check_store=True)
    # Signature-only variant still accepts it
    assert await resolve_identity(f"Bearer {token}", codec, check_store=False) == user.email


async def test_codec_dependency_uses_settings():
    get_token_codec.cache_clear()
    try:
        with patch("app.api.v1.deps.settings") as mock_settings:
            mock_settings.jwt_secret = "configured-secret-value-long-enough"
            mock_settings.jwt_algorithm = "HS384"
            mock_settings.access_token_expire_minutes = 0
            codec = get_token_codec()
        assert codec.algorithm == "HS384"
        assert codec.verify(codec.issue("a@x.com")) == "a@x.com"
    finally:
        get_token_codec.cache_clear()
