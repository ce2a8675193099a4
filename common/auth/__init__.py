"""
Authentication module - Token verification and user-scoped identity providers.
"""

from common.auth.base import AuthProvider, IdentityProvider
from common.auth.firebase_auth import FirebaseAuth, FirebaseIdentityProvider
from common.auth.dependencies import create_auth_dependency

__all__ = [
    "AuthProvider",
    "IdentityProvider",
    "FirebaseAuth",
    "FirebaseIdentityProvider",
    "create_auth_dependency",
]
