"""
Account Settings API Routers.
"""

from account_settings.routers.account import router as account_router

__all__ = [
    "account_router",
]
