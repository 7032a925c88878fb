"""
Account Service

Orchestrates sign-up, login, profile updates, password changes and account
deletion on top of the User store, the token codec and the avatar uploader.
Every operation fails fast on the first violated precondition by raising an
AccountError subclass.
"""
import asyncio
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Optional

from tortoise.exceptions import IntegrityError, ValidationError
from tortoise.expressions import Q
from tortoise.transactions import in_transaction

from app.core.errors import Conflict, Forbidden, InvalidInput, NotFound, Unauthenticated
from app.core.security import TokenCodec, hash_password, verify_password
from app.models.user import (
    COUNTRY_MAX_LENGTH,
    EMAIL_MAX_LENGTH,
    USERNAME_MAX_LENGTH,
    User,
    UserRole,
    UserStatus,
)
from app.services.avatar_storage import AvatarUploader

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
MAX_AVATAR_BYTES = 5 * 1024 * 1024  # 5 MiB
BIRTH_DATE_FORMAT = "%Y-%m-%d"

# Same message for unknown email and wrong password (no account enumeration)
INVALID_CREDENTIALS = "Invalid email or password"


def utc_now() -> dt.datetime:
    """Current UTC datetime with timezone information."""
    return dt.datetime.now(dt.timezone.utc)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _check_length(field: str, value: str, limit: int) -> None:
    if len(value) > limit:
        raise InvalidInput(f"{field} must be at most {limit} characters")


async def _hash(plain: str) -> str:
    # bcrypt is CPU-bound; keep it off the event loop
    return await asyncio.to_thread(hash_password, plain)


async def _matches(plain: str, hashed: str) -> bool:
    return await asyncio.to_thread(verify_password, plain, hashed)


def _rfc3339(value: dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.isoformat()


def _enum_value(value) -> str:
    return getattr(value, "value", value)


def user_profile(u: User) -> dict:
    """
    Sanitized profile view of a user.

    Required fields are always present; optional profile fields and
    last_login only appear when they hold a value. The hash never leaves.
    """
    profile = {
        "email": u.email,
        "username": u.username,
        "role": _enum_value(u.role),
        "status": _enum_value(u.status),
        "email_verified": u.email_verified,
        "created_at": _rfc3339(u.created_at),
        "updated_at": _rfc3339(u.updated_at),
    }
    if u.avatar_url is not None:
        profile["avatar_url"] = u.avatar_url
    if u.bio is not None:
        profile["bio"] = u.bio
    if u.birth_date is not None:
        profile["birth_date"] = u.birth_date.strftime(BIRTH_DATE_FORMAT)
    if u.country is not None:
        profile["country"] = u.country
    if u.last_login is not None:
        profile["last_login"] = _rfc3339(u.last_login)
    return profile


def user_summary(u: User) -> dict:
    """Public listing entry for /user/allusers."""
    return {
        "username": u.username,
        "email": u.email,
        "role": _enum_value(u.role),
        "status": _enum_value(u.status),
        "created_at": _rfc3339(u.created_at),
        "avatar_url": u.avatar_url,
    }


def parse_birth_date(raw: str) -> dt.date:
    try:
        return dt.datetime.strptime(raw.strip(), BIRTH_DATE_FORMAT).date()
    except ValueError as exc:
        raise InvalidInput("Invalid birth_date, expected YYYY-MM-DD") from exc


@dataclass
class AvatarUpload:
    """Avatar file as received from the client"""
    filename: str
    content_type: Optional[str]
    content: bytes


class AccountService:
    """
    Account operations.

    Args:
        codec: Token codec used to issue session tokens at login
        uploader: Remote store used for avatar images
    """

    def __init__(self, codec: TokenCodec, uploader: AvatarUploader):
        self.codec = codec
        self.uploader = uploader

    async def _get_user(self, identity: str) -> User:
        user = await User.get_or_none(email=identity)
        if not user:
            raise NotFound()
        return user

    async def _stamp_login(self, user: User) -> None:
        user.last_login = utc_now()
        await user.save(update_fields=["last_login"])

    async def sign_up(self, username: str, email: str, password: str) -> dict:
        """
        Register a new account with default role and status.

        The existence query is a fast path; the unique constraints on the
        table are what guarantees a single winner for concurrent sign-ups.

        Raises:
            InvalidInput: A field is blank or too long
            Conflict: Email or username already registered
        """
        if _blank(username) or _blank(email) or _blank(password):
            raise InvalidInput("username, email and password are required")
        username = username.strip()
        email = email.strip()
        _check_length("email", email, EMAIL_MAX_LENGTH)
        _check_length("username", username, USERNAME_MAX_LENGTH)

        if await User.filter(Q(email=email) | Q(username=username)).exists():
            raise Conflict()

        password_hash = await _hash(password)
        try:
            async with in_transaction() as conn:
                await User.create(
                    email=email,
                    username=username,
                    password_hash=password_hash,
                    role=UserRole.USUARIO,
                    status=UserStatus.ACTIVO,
                    using_db=conn,
                )
        except IntegrityError as exc:
            raise Conflict() from exc
        except ValidationError as exc:
            raise InvalidInput() from exc

        logger.info("[accounts] signed up %s", email)
        return {"username": username, "email": email}

    async def login(self, email: str, password: str) -> dict:
        """
        Check credentials and issue a session token.

        Returns:
            dict with "token" and the sanitized "user" profile

        Raises:
            InvalidInput: A field is blank
            Unauthenticated: Unknown email or wrong password (same message)
            SigningError: No signing secret configured
        """
        if _blank(email) or _blank(password):
            raise InvalidInput("email and password are required")

        user = await User.get_or_none(email=email.strip())
        if not user or not await _matches(password, user.password_hash):
            raise Unauthenticated(INVALID_CREDENTIALS)

        token = self.codec.issue(user.email)
        await self._stamp_login(user)
        return {"token": token, "user": user_profile(user)}

    async def verify_and_fetch(self, identity: str) -> dict:
        """Profile of the token holder; NotFound if the account is gone."""
        user = await self._get_user(identity)
        await self._stamp_login(user)
        return user_profile(user)

    async def update_profile(
        self,
        identity: str,
        username: Optional[str] = None,
        bio: Optional[str] = None,
        birth_date: Optional[str] = None,
        country: Optional[str] = None,
        avatar: Optional[AvatarUpload] = None,
    ) -> dict:
        """
        Apply any subset of profile changes as one update.

        Blank values count as "not supplied". If the avatar upload fails
        nothing is persisted.

        Raises:
            InvalidInput: Bad birth date, bad avatar, field too long, or
                nothing supplied
            Conflict: Username taken by another account
            NotFound: Account vanished before the update
            UploadError: Remote avatar store failed
        """
        changes: dict = {}

        if not _blank(username):
            username = username.strip()
            _check_length("username", username, USERNAME_MAX_LENGTH)
            taken = await User.filter(username=username).exclude(email=identity).exists()
            if taken:
                raise Conflict("Username already taken")
            changes["username"] = username

        if not _blank(bio):
            changes["bio"] = bio

        if not _blank(birth_date):
            changes["birth_date"] = parse_birth_date(birth_date)

        if not _blank(country):
            country = country.strip()
            _check_length("country", country, COUNTRY_MAX_LENGTH)
            changes["country"] = country

        if avatar is not None:
            if not (avatar.content_type or "").startswith("image/"):
                raise InvalidInput("Avatar must be an image")
            if len(avatar.content) > MAX_AVATAR_BYTES:
                raise InvalidInput("Avatar exceeds the 5 MB limit")
            result = await self.uploader.upload(avatar.content, avatar.filename)
            if result.degraded:
                logger.warning("[accounts] avatar for %s stored without public link", identity)
            changes["avatar_url"] = result.url

        if not changes:
            raise InvalidInput("No fields to update")

        changes["updated_at"] = utc_now()
        try:
            async with in_transaction() as conn:
                updated = await User.filter(email=identity).using_db(conn).update(**changes)
        except IntegrityError as exc:
            raise Conflict("Username already taken") from exc
        except ValidationError as exc:
            raise InvalidInput() from exc
        if not updated:
            raise NotFound()

        user = await self._get_user(identity)
        return user_profile(user)

    async def change_password(self, identity: str, current_password: str, new_password: str) -> None:
        """
        Raises:
            InvalidInput: Blank field, new password too short or unchanged
            Forbidden: Current password does not match
            NotFound: Account is gone
        """
        if _blank(current_password) or _blank(new_password):
            raise InvalidInput("current_password and new_password are required")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise InvalidInput(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")

        user = await self._get_user(identity)
        if not await _matches(current_password, user.password_hash):
            raise Forbidden("Current password is incorrect")
        if await _matches(new_password, user.password_hash):
            raise InvalidInput("New password must differ from the current one")

        user.password_hash = await _hash(new_password)
        user.updated_at = utc_now()
        await user.save(update_fields=["password_hash", "updated_at"])
        logger.info("[accounts] password changed for %s", identity)

    async def delete_account(self, identity: str, password: str) -> None:
        """
        Permanently delete the account after re-authentication.

        Raises:
            InvalidInput: Blank password
            Forbidden: Password does not match
            NotFound: Account is gone
        """
        if _blank(password):
            raise InvalidInput("password is required")

        user = await self._get_user(identity)
        if not await _matches(password, user.password_hash):
            raise Forbidden()

        await user.delete()
        logger.info("[accounts] deleted account %s", identity)

    async def list_users(self) -> list[dict]:
        """Every account, unpaginated."""
        rows = await User.all().order_by("created_at")
        return [user_summary(u) for u in rows]
