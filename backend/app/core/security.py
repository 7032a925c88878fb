# app/core/security.py
"""
Security module for authentication.
Handles password hashing and the signing/verification of bearer tokens.
"""
import datetime as dt
import jwt  # PyJWT
from passlib.context import CryptContext

from app.core.errors import InvalidToken, SigningError

# Fixed bcrypt cost factor (same work factor for every stored hash)
BCRYPT_ROUNDS = 10

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)

# Only HMAC-family algorithms are accepted for signing
HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")

# Name of the single identity claim carried by every token
EMAIL_CLAIM = "email"


def hash_password(plain: str) -> str:
    """
    Hash a plain text password using bcrypt.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (salted, safe to store in database)
    """
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a plain text password against a hashed password.

    Returns False (instead of raising) when the stored hash is unreadable.
    """
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False


class TokenCodec:
    """
    Signs and verifies the stateless identity token.

    The token carries one claim, the user's email. When ``expire_minutes`` is
    positive the token also gets ``iat``/``exp`` and expired tokens stop
    verifying; with the default of 0 a token stays valid until the secret
    changes.
    """

    def __init__(self, secret: str | None, algorithm: str = "HS256", expire_minutes: int = 0):
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"Unsupported signing algorithm: {algorithm}")
        self._secret = secret or ""
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, email: str) -> str:
        """
        Create a signed token for the given identity.

        Raises:
            SigningError: If no signing secret is configured
        """
        if not self._secret:
            raise SigningError()
        payload: dict = {EMAIL_CLAIM: email}
        if self.expire_minutes > 0:
            now = dt.datetime.now(dt.timezone.utc)
            payload["iat"] = now
            payload["exp"] = now + dt.timedelta(minutes=self.expire_minutes)
        try:
            return jwt.encode(payload, self._secret, algorithm=self.algorithm)
        except jwt.PyJWTError as exc:
            raise SigningError() from exc

    def verify(self, token: str) -> str:
        """
        Check the token signature and return the email claim.

        Only the configured algorithm is accepted, so a token signed with a
        different one (or unsigned, ``alg=none``) is rejected.

        Raises:
            InvalidToken: Bad signature, malformed/expired token, missing
                secret, or email claim absent / not a string
        """
        if not self._secret or not token:
            raise InvalidToken()
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except jwt.PyJWTError as exc:
            raise InvalidToken() from exc

        email = payload.get(EMAIL_CLAIM)
        if not isinstance(email, str) or not email:
            raise InvalidToken()
        return email
