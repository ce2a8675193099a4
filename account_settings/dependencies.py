"""
FastAPI dependencies for the account settings service.

Provides dependency injection for all services.
"""

from typing import Annotated, Optional, Dict, Any

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth.base import AuthProvider
from common.auth.dependencies import create_auth_dependency
from common.auth.firebase_auth import FirebaseAuth, FirebaseIdentityProvider

from account_settings.config import Settings, settings as default_settings
from account_settings.services.account.run_control import SubmissionGuard
from account_settings.services.media.avatar_image_service import AvatarImageService
from account_settings.services.session.session_store import SessionStore
from account_settings.services.storage.upload_client import UploadClient


# ─────────────────────────────────────────────────────────────────
# Global service instances
# ─────────────────────────────────────────────────────────────────

_settings: Optional[Settings] = None
_main_db: Optional[AsyncIOMotorDatabase] = None
_auth_provider: Optional[AuthProvider] = None
_session_store: Optional[SessionStore] = None
_upload_client: Optional[UploadClient] = None
_image_service: Optional[AvatarImageService] = None
_submission_guard: Optional[SubmissionGuard] = None


# ─────────────────────────────────────────────────────────────────
# Initialization
# ─────────────────────────────────────────────────────────────────

def init_account_services(
    db: AsyncIOMotorDatabase,
    app_settings: Optional[Settings] = None,
    auth_provider: Optional[AuthProvider] = None
) -> None:
    """
    Initialize all services at application startup.

    Args:
        db: Main MongoDB database connection
        app_settings: Settings override (tests)
        auth_provider: Token verifier override; defaults to FirebaseAuth
    """
    global _settings, _main_db, _auth_provider, _session_store
    global _upload_client, _image_service, _submission_guard

    _settings = app_settings or default_settings
    _main_db = db

    _auth_provider = auth_provider or FirebaseAuth(
        credentials_path=_settings.FIREBASE_CREDENTIALS_PATH,
        project_id=_settings.FIREBASE_PROJECT_ID,
    )

    _session_store = SessionStore(db=db, collection_name=_settings.SESSION_COLLECTION)

    _upload_client = UploadClient(
        upload_url=_settings.STORAGE_UPLOAD_URL,
        api_key=_settings.STORAGE_API_KEY,
        timeout=_settings.STORAGE_TIMEOUT_SECONDS,
    )

    _image_service = AvatarImageService(
        max_dimension=_settings.AVATAR_MAX_DIMENSION,
        max_bytes=_settings.AVATAR_MAX_BYTES,
    )

    _submission_guard = SubmissionGuard()


# ─────────────────────────────────────────────────────────────────
# Getters
# ─────────────────────────────────────────────────────────────────

def get_settings() -> Settings:
    """Get application settings."""
    if _settings is None:
        raise RuntimeError("Account services not initialized. Call init_account_services first.")
    return _settings


def get_main_db() -> AsyncIOMotorDatabase:
    """Get main database instance."""
    if _main_db is None:
        raise RuntimeError("Main database not initialized.")
    return _main_db


def get_auth_provider() -> AuthProvider:
    """Get token verifier."""
    if _auth_provider is None:
        raise RuntimeError("Account services not initialized. Call init_account_services first.")
    return _auth_provider


def get_session_store() -> SessionStore:
    """Get session snapshot store."""
    if _session_store is None:
        raise RuntimeError("Account services not initialized. Call init_account_services first.")
    return _session_store


def get_upload_client() -> UploadClient:
    """Get storage upload client."""
    if _upload_client is None:
        raise RuntimeError("Account services not initialized. Call init_account_services first.")
    return _upload_client


def get_image_service() -> AvatarImageService:
    """Get avatar image service."""
    if _image_service is None:
        raise RuntimeError("Account services not initialized. Call init_account_services first.")
    return _image_service


def get_submission_guard() -> SubmissionGuard:
    """Get the per-account single-flight guard."""
    if _submission_guard is None:
        raise RuntimeError("Account services not initialized. Call init_account_services first.")
    return _submission_guard


# ─────────────────────────────────────────────────────────────────
# Request-scoped dependencies
# ─────────────────────────────────────────────────────────────────

require_firebase_user = create_auth_dependency(lambda: get_auth_provider())


def get_identity_provider(
    user: Annotated[Dict[str, Any], Depends(require_firebase_user)],
    app_settings: Annotated[Settings, Depends(get_settings)],
) -> FirebaseIdentityProvider:
    """Identity provider acting as the caller, with the caller's own ID token."""
    return FirebaseIdentityProvider(
        api_key=app_settings.FIREBASE_API_KEY,
        id_token=user["token"],
        uid=user["uid"],
        base_url=app_settings.IDENTITY_TOOLKIT_URL,
        timeout=app_settings.IDENTITY_TOOLKIT_TIMEOUT_SECONDS,
    )
