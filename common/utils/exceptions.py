"""
API exceptions with error codes.

Each subclass fixes its HTTP status and default message, so services raise
the same exception that the router later renders. The message is shown to the
user verbatim; the code is for clients and logs.

Example:
    from common.utils import ValidationException

    if new_password != new_password_confirm:
        raise ValidationException(
            "New passwords do not match",
            code="PASSWORD_MISMATCH",
        )
"""

from typing import Optional, Any, Dict
from fastapi import HTTPException


class APIException(HTTPException):
    """
    Base API exception.

    ``detail`` mirrors the error envelope so FastAPI's default handler and
    ``exception_response`` agree.
    """

    status: int = 500
    default_message: str = "Internal server error"
    default_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        status_code: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details

        detail: Dict[str, Any] = {"message": self.message, "code": self.code}
        if details is not None:
            detail["details"] = details

        super().__init__(
            status_code=status_code or self.status,
            detail=detail,
            headers=headers,
        )

    def __str__(self) -> str:
        return self.message


class UnauthorizedException(APIException):
    """Missing, malformed or rejected bearer token."""
    status = 401
    default_message = "Unauthorized"
    default_code = "UNAUTHORIZED"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message, code, headers={"WWW-Authenticate": "Bearer"})


class ConflictException(APIException):
    status = 409
    default_message = "Conflict"
    default_code = "CONFLICT"


class ValidationException(APIException):
    """Form rejected before any network call."""
    status = 422
    default_message = "Validation error"
    default_code = "VALIDATION_ERROR"


class ImageProcessingException(APIException):
    """Selected avatar could not be decoded or compressed."""
    status = 422
    default_message = "Image could not be processed"
    default_code = "IMAGE_PROCESSING_FAILED"


class ReauthenticationException(APIException):
    """Current password was rejected by the identity provider."""
    status = 401
    default_message = "Current password is incorrect"
    default_code = "REAUTHENTICATION_FAILED"


class UploadException(APIException):
    """Object storage rejected or never answered the upload."""
    status = 502
    default_message = "Failed to upload avatar"
    default_code = "UPLOAD_FAILED"


class ProviderException(APIException):
    """
    Identity provider rejected a mutation.

    Keeps the raw provider code (e.g. EMAIL_EXISTS) so callers can branch on
    it without parsing the message. 400 for rejections, 502 when the provider
    could not be reached.
    """
    status = 400
    default_message = "Identity provider rejected the request"
    default_code = "PROVIDER_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        provider_code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        details = {"providerCode": provider_code} if provider_code else None
        super().__init__(message, code, details, status_code=status_code)
        self.provider_code = provider_code


class InternalServerException(APIException):
    """Unexpected failure, reported without internals."""
