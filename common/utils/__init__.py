"""
Utilities module - Common helpers for API responses and exceptions.
"""

from common.utils.responses import success_response, error_response, exception_response
from common.utils.exceptions import (
    APIException,
    UnauthorizedException,
    ConflictException,
    ValidationException,
    ImageProcessingException,
    UploadException,
    ReauthenticationException,
    ProviderException,
    InternalServerException,
)

__all__ = [
    "success_response",
    "error_response",
    "exception_response",
    "APIException",
    "UnauthorizedException",
    "ConflictException",
    "ValidationException",
    "ImageProcessingException",
    "UploadException",
    "ReauthenticationException",
    "ProviderException",
    "InternalServerException",
]
