"""
Firebase authentication and identity providers.

``FirebaseAuth`` uses the Firebase Admin SDK to verify ID tokens presented by
clients. ``FirebaseIdentityProvider`` performs account changes *as the user*
through the Identity Toolkit REST API, the same endpoints the Firebase client
SDK calls for updateProfile / updateEmail / updatePassword /
reauthenticateWithCredential.

Example:
    auth = FirebaseAuth(credentials_path="path/to/serviceAccount.json")
    claims = await auth.verify_token(id_token)

    provider = FirebaseIdentityProvider(api_key="AIza...", id_token=id_token)
    await provider.reauthenticate("user@example.com", "old-password")
    await provider.update_password("new-password")
"""

import logging
import os
from typing import Dict, Any, Optional

import firebase_admin
import httpx
from firebase_admin import auth, credentials

from common.auth.base import AuthProvider, IdentityProvider
from common.utils.exceptions import ProviderException, ReauthenticationException

logger = logging.getLogger(__name__)


DEFAULT_IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1/accounts"

# Identity Toolkit error codes -> user-facing messages
PROVIDER_ERROR_MESSAGES = {
    "EMAIL_EXISTS": "The email address is already in use by another account",
    "INVALID_EMAIL": "The email address is invalid",
    "WEAK_PASSWORD": "Password should be at least 6 characters",
    "CREDENTIAL_TOO_OLD_LOGIN_AGAIN": "Please sign in again to make this change",
    "TOKEN_EXPIRED": "Your session has expired. Please sign in again",
    "INVALID_ID_TOKEN": "Your session has expired. Please sign in again",
    "USER_NOT_FOUND": "Account not found",
    "USER_DISABLED": "Account has been disabled",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later.",
    "OPERATION_NOT_ALLOWED": "This operation is not allowed for this account",
}

REAUTH_REJECTED_CODES = {"EMAIL_NOT_FOUND", "INVALID_PASSWORD", "INVALID_LOGIN_CREDENTIALS"}


def _get_firebase_credentials_from_env() -> Optional[Dict[str, Any]]:
    """
    Check if Firebase credentials are present in environment variables.
    Returns credentials dict if all required fields are present, None otherwise.
    """
    required_fields = [
        "PROJECT_ID",
        "PRIVATE_KEY",
        "CLIENT_EMAIL",
    ]

    for field in required_fields:
        if not os.environ.get(field):
            return None

    return {
        "type": os.environ.get("TYPE", "service_account").strip('"').strip(","),
        "project_id": os.environ.get("PROJECT_ID", "").strip('"').strip(","),
        "private_key_id": os.environ.get("PRIVATE_KEY_ID", "").strip('"').strip(","),
        "private_key": os.environ.get("PRIVATE_KEY", "").strip('"').strip(",").replace("\\n", "\n"),
        "client_email": os.environ.get("CLIENT_EMAIL", "").strip('"').strip(","),
        "client_id": os.environ.get("CLIENT_ID", "").strip('"').strip(","),
        "token_uri": os.environ.get("TOKEN_URI", "https://oauth2.googleapis.com/token").strip('"').strip(","),
    }


def _parse_error_code(response: httpx.Response) -> str:
    """
    Extract the Identity Toolkit error code from a failed response.

    Messages look like "WEAK_PASSWORD : Password should be at least 6 characters",
    only the leading code is kept.
    """
    try:
        message = response.json().get("error", {}).get("message", "")
    except ValueError:
        message = ""

    code = message.split(":", 1)[0].strip()
    return code or f"HTTP_{response.status_code}"


class FirebaseAuth(AuthProvider):
    """
    Firebase Admin SDK token verifier.
    """

    def __init__(
        self,
        credentials_path: Optional[str] = None,
        credentials_dict: Optional[Dict[str, Any]] = None,
        project_id: Optional[str] = None,
    ):
        """
        Initialize Firebase auth provider.

        Args:
            credentials_path: Path to service account JSON file
            credentials_dict: Service account credentials as dict (alternative to path)
            project_id: Firebase project ID (optional, can be inferred from credentials)
        """
        if not firebase_admin._apps:
            if credentials_path:
                cred = credentials.Certificate(credentials_path)
            elif credentials_dict:
                cred = credentials.Certificate(credentials_dict)
            else:
                env_credentials = _get_firebase_credentials_from_env()
                if env_credentials:
                    cred = credentials.Certificate(env_credentials)
                else:
                    # Use default credentials (for GCP environments)
                    cred = credentials.ApplicationDefault()

            options = {}
            if project_id:
                options["projectId"] = project_id

            firebase_admin.initialize_app(cred, options)

        self._auth = auth

    async def verify_token(self, token: str) -> Dict[str, Any]:
        """Verify a Firebase ID token."""
        try:
            decoded = self._auth.verify_id_token(token)
            # 'sub' mirrors 'uid' for callers that expect JWT claims
            decoded["sub"] = decoded.get("uid")
            return decoded
        except self._auth.RevokedIdTokenError:
            raise ValueError("Token has been revoked")
        except self._auth.ExpiredIdTokenError:
            raise ValueError("Token has expired")
        except self._auth.InvalidIdTokenError as e:
            raise ValueError(f"Invalid token: {e}")
        except Exception as e:
            raise ValueError(f"Token verification failed: {e}")


class FirebaseIdentityProvider(IdentityProvider):
    """
    Identity Toolkit REST client bound to one signed-in user.

    Holds the caller's ID token. Calls that return a fresh token (password and
    email changes, re-authentication) replace it so later calls in the same run
    keep working after Firebase invalidates the old one.
    """

    def __init__(
        self,
        api_key: str,
        id_token: str,
        uid: Optional[str] = None,
        base_url: str = DEFAULT_IDENTITY_TOOLKIT_URL,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            api_key: Firebase Web API key
            id_token: The caller's current ID token
            uid: Expected account ID, used to reject credentials of another user
            base_url: Identity Toolkit accounts endpoint
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        if not api_key:
            raise ValueError(
                "Firebase API key is required for identity operations. "
                "Set FIREBASE_API_KEY environment variable."
            )

        self._api_key = api_key
        self._id_token = id_token
        self._uid = uid
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def id_token(self) -> str:
        """The most recent ID token for the signed-in user."""
        return self._id_token

    async def get_current_account(self) -> Dict[str, Any]:
        data = await self._call("lookup", {"idToken": self._id_token})

        users = data.get("users") or []
        if not users:
            raise ProviderException(
                message=PROVIDER_ERROR_MESSAGES["USER_NOT_FOUND"],
                code="USER_NOT_FOUND",
                provider_code="USER_NOT_FOUND",
            )

        user = users[0]
        self._uid = user.get("localId") or self._uid

        return {
            "uid": user.get("localId"),
            "email": user.get("email"),
            "emailVerified": bool(user.get("emailVerified", False)),
            "displayName": user.get("displayName"),
            "photoUrl": user.get("photoUrl"),
        }

    async def update_display_name(self, name: str) -> None:
        await self._update({"displayName": name})

    async def update_avatar_reference(self, reference: Optional[str]) -> None:
        if reference:
            await self._update({"photoUrl": reference})
        else:
            await self._update({"deleteAttribute": ["PHOTO_URL"]})

    async def update_email(self, new_email: str) -> None:
        await self._update({"email": new_email, "returnSecureToken": True})

    async def update_password(self, new_password: str) -> None:
        await self._update({"password": new_password, "returnSecureToken": True})

    async def reauthenticate(self, identifier: str, secret: str) -> None:
        """
        Re-authenticate with email and password via signInWithPassword.

        Raises:
            ReauthenticationException: Wrong password, disabled account,
                throttled, or a credential belonging to another account
        """
        try:
            data = await self._call(
                "signInWithPassword",
                {
                    "email": identifier,
                    "password": secret,
                    "returnSecureToken": True,
                },
            )
        except ProviderException as e:
            if e.provider_code in REAUTH_REJECTED_CODES:
                raise ReauthenticationException(
                    message="Current password is incorrect",
                    code="INVALID_CREDENTIALS",
                )
            raise ReauthenticationException(message=e.message, code=e.code)

        if self._uid and data.get("localId") and data["localId"] != self._uid:
            raise ReauthenticationException(
                message="The supplied credential does not belong to this account",
                code="USER_MISMATCH",
            )

        self._id_token = data.get("idToken") or self._id_token

    async def send_verification_email(self) -> None:
        await self._call(
            "sendOobCode",
            {"requestType": "VERIFY_EMAIL", "idToken": self._id_token},
        )

    async def _update(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        payload = {"idToken": self._id_token, **fields}
        data = await self._call("update", payload)

        if data.get("idToken"):
            self._id_token = data["idToken"]

        return data

    async def _call(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST to an Identity Toolkit accounts method.

        Args:
            method: Method name after the colon (e.g. "update")
            payload: JSON body

        Returns:
            Decoded JSON response

        Raises:
            ProviderException: Rejected request or unreachable provider
        """
        url = f"{self._base_url}:{method}"

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    url,
                    params={"key": self._api_key},
                    json=payload,
                    timeout=self._timeout,
                )
        except httpx.RequestError as e:
            logger.error(f"Identity Toolkit request error on {method}: {e}")
            raise ProviderException(
                message="Failed to reach the identity provider",
                code="PROVIDER_UNAVAILABLE",
                status_code=502,
            )

        if response.status_code != 200:
            provider_code = _parse_error_code(response)
            logger.error(
                f"Identity Toolkit {method} failed: {response.status_code} - {provider_code}"
            )
            raise ProviderException(
                message=PROVIDER_ERROR_MESSAGES.get(
                    provider_code, f"Identity provider error: {provider_code}"
                ),
                code=provider_code,
                provider_code=provider_code,
            )

        return response.json()
