"""
Database model for users.
Represents a user account: login credentials, profile fields, role and status.
"""
from enum import Enum

from tortoise import fields, models


# Column limits, also checked by the service before writing
EMAIL_MAX_LENGTH = 255
USERNAME_MAX_LENGTH = 50
COUNTRY_MAX_LENGTH = 100


class UserRole(str, Enum):
    """Authorization tier (stored only, not enforced by any route)."""

    USUARIO = "usuario"
    ADMIN = "admin"


class UserStatus(str, Enum):
    """Account status (informational, not checked at login)."""

    ACTIVO = "activo"
    INACTIVO = "inactivo"
    BANEADO = "baneado"


class User(models.Model):
    """
    User database model.

    The email is the primary key and the business key for every lookup.
    Username is a separate unique display name and may change.

    Security:
    - Password is stored as a bcrypt hash (never plain text)
    - Email and username uniqueness is enforced by the database itself
    """
    email = fields.CharField(max_length=EMAIL_MAX_LENGTH, pk=True)
    username = fields.CharField(max_length=USERNAME_MAX_LENGTH, unique=True, index=True)
    password_hash = fields.CharField(max_length=255)
    role = fields.CharEnumField(UserRole, max_length=20, default=UserRole.USUARIO)
    status = fields.CharEnumField(UserStatus, max_length=20, default=UserStatus.ACTIVO)

    # Optional profile attributes
    avatar_url = fields.TextField(null=True)
    bio = fields.TextField(null=True)
    birth_date = fields.DateField(null=True)
    country = fields.CharField(max_length=COUNTRY_MAX_LENGTH, null=True)

    email_verified = fields.BooleanField(default=False)  # No verification flow sets it yet
    last_login = fields.DatetimeField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now_add=True)  # Refreshed explicitly on every mutation

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"
