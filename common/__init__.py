"""
Shared infrastructure for the account settings service.

- auth: Firebase token verification and the user-scoped identity provider
- config: Environment-driven base settings
- database: Motor connection owned by the app lifespan
- utils: Error codes and response envelopes
"""

from common.auth import (
    AuthProvider,
    IdentityProvider,
    FirebaseAuth,
    FirebaseIdentityProvider,
    create_auth_dependency,
)
from common.config import BaseAppSettings
from common.database import MongoDB
from common.utils import (
    APIException,
    ProviderException,
    ReauthenticationException,
    exception_response,
    success_response,
    error_response,
)

__all__ = [
    "AuthProvider",
    "IdentityProvider",
    "FirebaseAuth",
    "FirebaseIdentityProvider",
    "create_auth_dependency",
    "BaseAppSettings",
    "MongoDB",
    "APIException",
    "ProviderException",
    "ReauthenticationException",
    "exception_response",
    "success_response",
    "error_response",
]
