"""
FastAPI router for account settings.

The settings form posts here as multipart/form-data so the avatar file can
travel with the other fields in one submission.
"""

import asyncio
import contextlib
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from common.auth.firebase_auth import FirebaseIdentityProvider
from common.utils import ValidationException, exception_response, success_response

from account_settings.config import Settings
from account_settings.dependencies import (
    get_identity_provider,
    get_image_service,
    get_session_store,
    get_settings,
    get_submission_guard,
    get_upload_client,
    require_firebase_user,
)
from account_settings.models import AvatarAction, UpdateRequest
from account_settings.pipelines import account_update as pipelines
from account_settings.schemas.account import AccountSnapshot, AvatarActionField
from account_settings.services.account.result_reporter import ResultReporter
from account_settings.services.account.run_control import CancellationToken, SubmissionGuard
from account_settings.services.media.avatar_image_service import AvatarImageService
from account_settings.services.session.session_store import SessionStore
from account_settings.services.storage.upload_client import UploadClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/account", tags=["account"])

DISCONNECT_POLL_SECONDS = 0.5


async def _read_avatar_action(
    action: str,
    upload: Optional[UploadFile],
    max_upload_bytes: int
) -> AvatarAction:
    """Turn the avatarAction field and optional file into an AvatarAction."""
    if action == "reset":
        return AvatarAction.reset_to_default()

    if action == "unchanged":
        return AvatarAction.unchanged()

    if upload is None:
        raise ValidationException(
            message="An image file is required to change the avatar",
            code="AVATAR_IMAGE_REQUIRED"
        )

    if upload.content_type and not upload.content_type.startswith("image/"):
        raise ValidationException(
            message="Avatar must be an image file",
            code="INVALID_FILE_TYPE"
        )

    raw = await upload.read(max_upload_bytes + 1)
    if len(raw) > max_upload_bytes:
        raise ValidationException(
            message=f"File too large. Maximum size is {max_upload_bytes // (1024 * 1024)}MB",
            code="FILE_TOO_LARGE"
        )

    return AvatarAction.set_to(raw, content_type=upload.content_type)


async def _cancel_on_disconnect(request: Request, token: CancellationToken) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)
    token.cancel("client disconnected")


# =============================================================================
# GET /api/account
# =============================================================================
@router.get("")
async def get_account(
    user: Annotated[dict, Depends(require_firebase_user)],
    identity_provider: Annotated[FirebaseIdentityProvider, Depends(get_identity_provider)],
    session_store: Annotated[SessionStore, Depends(get_session_store)],
):
    """
    Get the account snapshot shown when the settings form opens.
    """
    profile = await pipelines.get_account_pipeline(
        session_store=session_store,
        identity_provider=identity_provider,
        user_id=user["uid"]
    )

    return success_response(AccountSnapshot(**profile.to_dict()).model_dump())


# =============================================================================
# POST /api/account
# =============================================================================
@router.post("")
async def update_account(
    request: Request,
    user: Annotated[dict, Depends(require_firebase_user)],
    identity_provider: Annotated[FirebaseIdentityProvider, Depends(get_identity_provider)],
    session_store: Annotated[SessionStore, Depends(get_session_store)],
    upload_client: Annotated[UploadClient, Depends(get_upload_client)],
    image_service: Annotated[AvatarImageService, Depends(get_image_service)],
    guard: Annotated[SubmissionGuard, Depends(get_submission_guard)],
    app_settings: Annotated[Settings, Depends(get_settings)],
    displayName: Annotated[str, Form()] = "",
    email: Annotated[str, Form()] = "",
    avatarAction: Annotated[AvatarActionField, Form()] = "unchanged",
    avatar: Annotated[Optional[UploadFile], File()] = None,
    oldPassword: Annotated[Optional[str], Form()] = None,
    newPassword: Annotated[Optional[str], Form()] = None,
    newPasswordConfirm: Annotated[Optional[str], Form()] = None,
):
    """
    Apply one settings form submission.

    Returns a single outcome: success, or the first error's message.
    """
    try:
        avatar_action = await _read_avatar_action(
            avatarAction,
            avatar,
            app_settings.AVATAR_MAX_UPLOAD_BYTES
        )
    except ValidationException as e:
        return exception_response(e)

    update_request = UpdateRequest(
        display_name=displayName,
        email=email,
        avatar=avatar_action,
        old_password=oldPassword,
        new_password=newPassword,
        new_password_confirm=newPasswordConfirm,
    )

    token = CancellationToken()
    watcher = asyncio.create_task(_cancel_on_disconnect(request, token))

    try:
        outcome = await pipelines.submit_account_update_pipeline(
            request=update_request,
            user_id=user["uid"],
            identity_provider=identity_provider,
            session_store=session_store,
            upload_client=upload_client,
            image_service=image_service,
            guard=guard,
            reporter=ResultReporter(session_store=session_store),
            email_policy=app_settings.EMAIL_CHANGE_WITHOUT_PASSWORD,
            display_name_max_length=app_settings.DISPLAY_NAME_MAX_LENGTH,
            token=token,
        )
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher

    return JSONResponse(status_code=outcome.status_code, content=outcome.to_response())


# =============================================================================
# POST /api/account/verification-email
# =============================================================================
@router.post("/verification-email")
async def send_verification_email(
    user: Annotated[dict, Depends(require_firebase_user)],
    identity_provider: Annotated[FirebaseIdentityProvider, Depends(get_identity_provider)],
):
    """
    Send a verification link to the account's current email address.
    """
    await pipelines.send_verification_email_pipeline(
        identity_provider=identity_provider,
        user_id=user["uid"]
    )

    return success_response(message="Verification email sent")
