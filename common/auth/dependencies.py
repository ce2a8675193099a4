"""
FastAPI authentication dependencies.

Provides a factory that creates an auth dependency for any AuthProvider.
The dependency returns the verified claims together with the raw token,
since user-scoped identity calls must be made with the caller's own token.

Example:
    from common.auth import FirebaseAuth, create_auth_dependency

    auth = FirebaseAuth(credentials_path="serviceAccount.json")
    require_user = create_auth_dependency(lambda: auth)

    @app.get("/account")
    async def get_account(user: dict = Depends(require_user)):
        return {"uid": user["uid"]}
"""

from typing import Callable, Optional, Dict, Any
from fastapi import Header

from common.auth.base import AuthProvider
from common.utils.exceptions import UnauthorizedException


def create_auth_dependency(
    get_auth_provider: Callable[[], AuthProvider],
    header_name: str = "Authorization",
    scheme: str = "Bearer",
):
    """
    Factory to create FastAPI auth dependencies.

    Args:
        get_auth_provider: Callable that returns the AuthProvider instance
        header_name: Header to extract token from (default: Authorization)
        scheme: Auth scheme prefix (default: Bearer)

    Returns:
        A FastAPI dependency returning {"uid", "email", "token", "claims"}
    """

    async def get_current_user(
        authorization: Optional[str] = Header(None, alias=header_name),
    ) -> Dict[str, Any]:
        """
        Extract and verify the caller from the authorization header.

        Raises:
            UnauthorizedException: If token is missing, invalid, or expired
        """
        if not authorization:
            raise UnauthorizedException(
                message="Missing authorization header",
                code="UNAUTHORIZED",
            )

        prefix = f"{scheme} "
        if not authorization.startswith(prefix):
            raise UnauthorizedException(
                message=f"Invalid authorization scheme. Expected: {scheme}",
                code="INVALID_AUTH_SCHEME",
            )

        token = authorization[len(prefix):].strip()

        if not token:
            raise UnauthorizedException(message="Token is empty", code="EMPTY_TOKEN")

        auth = get_auth_provider()
        try:
            claims = await auth.verify_token(token)
        except ValueError as e:
            raise UnauthorizedException(message=str(e), code="INVALID_TOKEN")

        user_id = claims.get("uid") or claims.get("sub")
        if not user_id:
            raise UnauthorizedException(
                message="Token has no subject",
                code="INVALID_TOKEN",
            )

        return {
            "uid": user_id,
            "email": claims.get("email"),
            "token": token,
            "claims": claims,
        }

    return get_current_user
