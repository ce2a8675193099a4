"""
Abstract authentication and identity provider interfaces.

Two contracts live here:

* ``AuthProvider`` - server-side token verification used by the HTTP layer to
  find out *who* is calling.
* ``IdentityProvider`` - user-scoped account operations performed *as* the
  caller (profile fields, credentials, re-authentication).

Example:
    from common.auth import FirebaseAuth, FirebaseIdentityProvider

    verifier = FirebaseAuth(credentials_path=settings.FIREBASE_CREDENTIALS_PATH)
    claims = await verifier.verify_token(id_token)

    provider = FirebaseIdentityProvider(api_key=settings.FIREBASE_API_KEY, id_token=id_token)
    account = await provider.get_current_account()
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any


class AuthProvider(ABC):
    """
    Abstract authentication provider.

    Implement this interface for different token strategies.
    """

    @abstractmethod
    async def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify an authentication token.

        Args:
            token: The token to verify

        Returns:
            Dictionary containing decoded token claims (at minimum: sub/uid)

        Raises:
            ValueError: If token is invalid, expired, or revoked
        """
        pass


class IdentityProvider(ABC):
    """
    User-scoped identity provider.

    Every method acts on the currently signed-in account. Implementations map
    provider-specific failure codes onto ``ProviderException`` (mutations) or
    ``ReauthenticationException`` (re-authentication).
    """

    @abstractmethod
    async def get_current_account(self) -> Dict[str, Any]:
        """
        Fetch the signed-in account.

        Returns:
            Dict with uid, email, emailVerified, displayName, photoUrl
        """
        pass

    @abstractmethod
    async def update_display_name(self, name: str) -> None:
        """Set the account display name."""
        pass

    @abstractmethod
    async def update_avatar_reference(self, reference: Optional[str]) -> None:
        """
        Set the avatar reference.

        Args:
            reference: Durable storage reference, or None to reset to default
        """
        pass

    @abstractmethod
    async def update_email(self, new_email: str) -> None:
        """Change the sign-in email address."""
        pass

    @abstractmethod
    async def update_password(self, new_password: str) -> None:
        """Change the account password."""
        pass

    @abstractmethod
    async def reauthenticate(self, identifier: str, secret: str) -> None:
        """
        Prove possession of the current credential.

        Args:
            identifier: Current sign-in email
            secret: Current password

        Raises:
            ReauthenticationException: If the credential is rejected
        """
        pass

    @abstractmethod
    async def send_verification_email(self) -> None:
        """Ask the provider to mail a verification link to the current address."""
        pass
