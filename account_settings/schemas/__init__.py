"""
Pydantic schemas for the account settings API.
"""

from account_settings.schemas.account import AccountSnapshot, AvatarActionField

__all__ = ["AccountSnapshot", "AvatarActionField"]
