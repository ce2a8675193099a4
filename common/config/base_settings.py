"""
Base settings shared by services that act on Firebase accounts.

Values come from the environment (and a local .env file). Subclass it for
service-specific options.

Example:
    from common.config import BaseAppSettings

    class Settings(BaseAppSettings):
        STORAGE_UPLOAD_URL: str = ""

    settings = Settings()
    settings.validate_required()
"""

from typing import List, Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseAppSettings(BaseSettings):
    """
    Mongo, Firebase and server settings.
    """

    # ==========================================================================
    # Database Settings
    # ==========================================================================
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "spb_accounts"
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = 5000

    # ==========================================================================
    # Firebase Settings
    # ==========================================================================
    # Service account for ID token verification (admin SDK)
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None
    FIREBASE_PROJECT_ID: Optional[str] = None

    # Web API key for user-scoped Identity Toolkit calls
    FIREBASE_API_KEY: Optional[str] = None
    IDENTITY_TOOLKIT_URL: str = "https://identitytoolkit.googleapis.com/v1/accounts"
    IDENTITY_TOOLKIT_TIMEOUT_SECONDS: float = 15.0

    # ==========================================================================
    # Server Settings
    # ==========================================================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    LOG_LEVEL: str = "INFO"

    # Comma-separated origins of the settings page, or "*"
    CORS_ORIGINS: str = "*"
    CORS_ALLOW_CREDENTIALS: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
        case_sensitive=True,
    )

    def get_cors_origins(self) -> List[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    def validate_required(self) -> None:
        """
        Fail startup when the service could not reach Firebase.

        Raises:
            ValueError: Listing every missing setting
        """
        missing = []

        if not self.FIREBASE_API_KEY:
            missing.append("FIREBASE_API_KEY is required for user-scoped identity calls")

        # Outside production the admin SDK may fall back to application default credentials
        if self.is_production() and not self.FIREBASE_CREDENTIALS_PATH:
            missing.append("FIREBASE_CREDENTIALS_PATH is required in production")

        if missing:
            raise ValueError("Configuration errors:\n- " + "\n- ".join(missing))
