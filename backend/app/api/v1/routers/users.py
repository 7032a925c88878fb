# app/api/v1/routers/users.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.api.v1.deps import get_account_service, get_current_identity
from app.core.errors import InvalidInput
from app.services.accounts import MAX_AVATAR_BYTES, AccountService, AvatarUpload

router = APIRouter(prefix="/user", tags=["users"])


@router.get("/allusers")
async def all_users(
    identity: str = Depends(get_current_identity),
    service: AccountService = Depends(get_account_service),
):
    """
    List every account (username, email, role, status, created_at, avatar_url).

    No pagination or filtering.
    """
    return await service.list_users()


@router.put("/update")
async def update_profile(
    username: Optional[str] = Form(default=None),
    bio: Optional[str] = Form(default=None),
    birth_date: Optional[str] = Form(default=None),
    country: Optional[str] = Form(default=None),
    avatar: Optional[UploadFile] = File(default=None),
    identity: str = Depends(get_current_identity),
    service: AccountService = Depends(get_account_service),
):
    """
    Update any subset of the caller's profile (multipart form).

    Errors:
        - 400: Nothing to update, bad birth_date (YYYY-MM-DD), avatar not an
          image or larger than 5 MB
        - 409: Username already taken
        - 500: Avatar upload failed (no field is saved)
    """
    upload = None
    if avatar is not None and avatar.filename:
        if avatar.size is not None and avatar.size > MAX_AVATAR_BYTES:
            raise InvalidInput("Avatar exceeds the 5 MB limit")
        # One byte past the limit is enough for the service to reject it
        upload = AvatarUpload(
            filename=avatar.filename,
            content_type=avatar.content_type,
            content=await avatar.read(MAX_AVATAR_BYTES + 1),
        )

    user = await service.update_profile(
        identity,
        username=username,
        bio=bio,
        birth_date=birth_date,
        country=country,
        avatar=upload,
    )
    return {"message": "Profile updated successfully", "user": user}


@router.put("/change-password")
async def change_password(
    current_password: str = Form(default=""),
    new_password: str = Form(default=""),
    identity: str = Depends(get_current_identity),
    service: AccountService = Depends(get_account_service),
):
    """
    Errors:
        - 400: Missing field, new password under 6 characters or unchanged
        - 403: Current password is incorrect
    """
    await service.change_password(identity, current_password, new_password)
    return {"message": "Password updated successfully"}


@router.delete("/delete-account")
async def delete_account(
    password: str = Form(default=""),
    identity: str = Depends(get_current_identity),
    service: AccountService = Depends(get_account_service),
):
    """
    Permanently delete the caller's account after confirming the password.

    Errors:
        - 400: Missing password
        - 403: Incorrect password
        - 404: Account not found
    """
    await service.delete_account(identity, password)
    return {"message": "Account deleted successfully"}
