import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from app.api.v1.deps import get_token_codec, get_uploader
from app.core import db as db_module
from app.core.errors import UploadError
from app.core.security import TokenCodec, hash_password
from app.main import app
from app.models.user import User
from app.services.avatar_storage import AvatarUploader, LinkKind, UploadResult


TEST_DB_URL = "sqlite://:memory:"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL

TEST_SECRET = "test-secret-key-with-enough-length-for-hs256"


class FakeUploader(AvatarUploader):
    """In-memory stand-in for the remote avatar store."""

    def __init__(self):
        self.uploads: list[tuple[bytes, str]] = []
        self.fail = False
        self.kind = LinkKind.PUBLIC

    def is_configured(self) -> bool:
        return True

    async def upload(self, content: bytes, filename: str) -> UploadResult:
        if self.fail:
            raise UploadError()
        self.uploads.append((content, filename))
        return UploadResult(url=f"https://cloud.example.com/s/{len(self.uploads)}", kind=self.kind)


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest_asyncio.fixture
async def db():
    """Fresh database without the HTTP layer (service/unit tests)."""
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(TEST_SECRET)


@pytest.fixture
def uploader() -> FakeUploader:
    return FakeUploader()


@pytest_asyncio.fixture
async def client(db, codec, uploader):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    Token codec and avatar uploader are replaced by test doubles.
    """
    app.dependency_overrides[get_token_codec] = lambda: codec
    app.dependency_overrides[get_uploader] = lambda: uploader
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def create_user():
    """
    Factory fixture to create regular users directly via ORM.
    """

    async def _create_user(password: str = "UserPass!23", **fields) -> tuple[User, str]:
        tag = uuid.uuid4().hex[:6]
        fields.setdefault("username", f"user_{tag}")
        fields.setdefault("email", f"{tag}@example.com")
        user = await User.create(password_hash=hash_password(password), **fields)
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(email: str, password: str) -> dict[str, str]:
        resp = await client.post("/login", data={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        token = resp.json()["token"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers
