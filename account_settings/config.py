"""
Account settings application configuration.

Extends the base settings with avatar, storage and update-policy options.
"""

from typing import Literal, Optional
from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """Account settings service configuration."""

    # ==========================================================================
    # Avatar Processing
    # ==========================================================================
    # Larger side of the stored avatar, in pixels
    AVATAR_MAX_DIMENSION: int = 512

    # Upper bound for the encoded avatar payload, in bytes (10MB)
    AVATAR_MAX_BYTES: int = 10 * 1024 * 1024

    # Upper bound for the raw file a user may submit (25MB)
    AVATAR_MAX_UPLOAD_BYTES: int = 25 * 1024 * 1024

    # ==========================================================================
    # Object Storage
    # ==========================================================================
    STORAGE_UPLOAD_URL: str = "http://localhost:3000/api/utils/upload"
    STORAGE_API_KEY: Optional[str] = None
    STORAGE_TIMEOUT_SECONDS: float = 30.0

    # ==========================================================================
    # Update Policy
    # ==========================================================================
    # What to do when the email differs but no current password was given:
    # "skip" leaves the email untouched, "reject" fails validation
    EMAIL_CHANGE_WITHOUT_PASSWORD: Literal["skip", "reject"] = "skip"

    DISPLAY_NAME_MAX_LENGTH: int = 50

    # ==========================================================================
    # Session Snapshots
    # ==========================================================================
    SESSION_COLLECTION: str = "accountSessions"


# Global settings instance
settings = Settings()
