"""
Services Module

Provides the account operations and their external collaborators:
- Accounts: sign-up, login, profile, password and deletion flows
- Avatar storage: Nextcloud WebDAV upload + public share link
"""

from .accounts import (
    AccountService,
    AvatarUpload,
    user_profile,
    user_summary,
)
from .avatar_storage import (
    AvatarUploader,
    LinkKind,
    NextcloudAvatarUploader,
    UploadResult,
    get_avatar_uploader,
)

__all__ = [
    # Accounts
    "AccountService",
    "AvatarUpload",
    "user_profile",
    "user_summary",
    # Avatar storage
    "AvatarUploader",
    "LinkKind",
    "NextcloudAvatarUploader",
    "UploadResult",
    "get_avatar_uploader",
]
