"""
Avatar Storage Interface

Uploads avatar images to a remote file-sharing service and returns a URL the
profile can point at. The Nextcloud implementation talks WebDAV for the upload
and the OCS share API for the public link.
"""
import logging
import os
import time
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import quote

import httpx

from app.config import settings
from app.core.errors import UploadError

logger = logging.getLogger(__name__)

MKCOL_TIMEOUT_SEC = 10.0
UPLOAD_TIMEOUT_SEC = 30.0
SHARE_TIMEOUT_SEC = 10.0

# OCS share parameters: public link, read-only
SHARE_TYPE_PUBLIC_LINK = 3
SHARE_PERMISSION_READ = 1


class LinkKind(str, Enum):
    PUBLIC = "public"  # Unauthenticated share link
    DIRECT = "direct"  # Degraded: WebDAV URL of the uploaded file


@dataclass
class UploadResult:
    """Where the uploaded avatar can be fetched from"""
    url: str
    kind: LinkKind

    @property
    def degraded(self) -> bool:
        return self.kind is LinkKind.DIRECT


class AvatarUploader(ABC):
    """Avatar Uploader Abstract Base Class"""

    @abstractmethod
    async def upload(self, content: bytes, filename: str) -> UploadResult:
        """
        Store the avatar bytes remotely

        Parameters:
        - content: Raw image bytes
        - filename: Original client filename (only its extension is kept)

        Raises:
        - UploadError: Uploader not configured, or the binary upload failed
        """

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if credentials are present"""


def make_avatar_filename(original: str) -> str:
    """Collision-resistant name: time-based suffix + original extension"""
    ext = os.path.splitext(original or "")[1].lower()
    return f"avatar_{time.time_ns()}{ext}"


class NextcloudAvatarUploader(AvatarUploader):
    """Nextcloud (WebDAV + OCS) avatar storage"""

    def __init__(
        self,
        base_url: Optional[str],
        username: Optional[str],
        password: Optional[str],
        directory: str = "avatars",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.username = username
        self.password = password
        self.directory = directory.strip("/")
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self.base_url and self.username and self.password)

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            auth=(self.username, self.password),
            timeout=timeout,
            transport=self._transport,
        )

    def _dav_url(self, *parts: str) -> str:
        path = "/".join(quote(p) for p in parts if p)
        return f"{self.base_url}/remote.php/dav/files/{quote(self.username)}/{path}"

    async def _ensure_directory(self) -> None:
        # Best effort: 405 (already exists) and transport errors are both fine
        try:
            async with self._client(MKCOL_TIMEOUT_SEC) as client:
                resp = await client.request("MKCOL", self._dav_url(self.directory))
                logger.debug("[avatar] MKCOL %s -> %s", self.directory, resp.status_code)
        except httpx.HTTPError as e:
            logger.debug("[avatar] MKCOL %s ignored: %s", self.directory, e)

    async def _create_share(self, remote_path: str) -> Optional[str]:
        url = f"{self.base_url}/ocs/v2.php/apps/files_sharing/api/v1/shares"
        data = {
            "path": remote_path,
            "shareType": str(SHARE_TYPE_PUBLIC_LINK),
            "permissions": str(SHARE_PERMISSION_READ),
        }
        try:
            async with self._client(SHARE_TIMEOUT_SEC) as client:
                resp = await client.post(url, data=data, headers={"OCS-APIRequest": "true"})
                resp.raise_for_status()
            node = ET.fromstring(resp.content).find(".//url")
        except (httpx.HTTPError, ET.ParseError) as e:
            logger.warning("[avatar] share link for %s failed: %s", remote_path, e)
            return None
        if node is None or not (node.text or "").strip():
            logger.warning("[avatar] share response for %s had no <url>", remote_path)
            return None
        return node.text.strip()

    async def upload(self, content: bytes, filename: str) -> UploadResult:
        if not self.is_configured():
            raise UploadError("Avatar storage is not configured")

        name = make_avatar_filename(filename)
        await self._ensure_directory()

        file_url = self._dav_url(self.directory, name)
        try:
            async with self._client(UPLOAD_TIMEOUT_SEC) as client:
                resp = await client.put(file_url, content=content)
        except httpx.HTTPError as e:
            logger.error("[avatar] upload of %s failed: %s", name, e)
            raise UploadError() from e
        if not resp.is_success:
            logger.error("[avatar] upload of %s rejected: HTTP %s", name, resp.status_code)
            raise UploadError()

        share_url = await self._create_share(f"/{self.directory}/{name}")
        if share_url:
            return UploadResult(url=share_url, kind=LinkKind.PUBLIC)
        return UploadResult(url=file_url, kind=LinkKind.DIRECT)


def get_avatar_uploader() -> AvatarUploader:
    """
    Get the avatar uploader configured from settings

    Note:
    - Need NEXTCLOUD_URL / NEXTCLOUD_USER / NEXTCLOUD_PASSWORD in .env,
      otherwise every upload fails with UploadError
    """
    return NextcloudAvatarUploader(
        base_url=settings.nextcloud_url,
        username=settings.nextcloud_user,
        password=settings.nextcloud_password,
        directory=settings.nextcloud_avatar_dir,
    )
