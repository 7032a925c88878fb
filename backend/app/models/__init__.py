"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: User account, credentials and profile
"""
from .user import User, UserRole, UserStatus
