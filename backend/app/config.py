# app/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _split_csv(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "User Accounts API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # Routers are mounted under this prefix (empty keeps /login, /user/... at the root)
    API_PREFIX: str = os.getenv("API_PREFIX", "")

    # CORS origins for frontend
    CORS_ORIGINS: list[str] = _split_csv(
        os.getenv(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000",
        )
    )

    # Token signing
    # A missing secret does not stop startup; signing and verification fail instead
    jwt_secret: str | None = os.getenv("JWT_SECRET")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    # 0 = tokens carry no iat/exp and never expire
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "0"))

    # Remote avatar storage (Nextcloud WebDAV + OCS share API)
    nextcloud_url: str | None = os.getenv("NEXTCLOUD_URL")
    nextcloud_user: str | None = os.getenv("NEXTCLOUD_USER")
    nextcloud_password: str | None = os.getenv("NEXTCLOUD_PASSWORD")
    nextcloud_avatar_dir: str = os.getenv("NEXTCLOUD_AVATAR_DIR", "avatars")


settings = Settings()  # Instantiate configuration
