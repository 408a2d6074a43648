"""
Users module - Marketplace accounts and profiles.
"""

from edubridge.modules.users.models import User, UserRole
from edubridge.modules.users.repository import UserRepository

__all__ = ["User", "UserRole", "UserRepository"]
