"""
Pipelines for account settings.

Stateless orchestration functions called by the router: read the account,
submit one update, send the verification email.
"""

import logging
from typing import Optional

from common.auth.base import IdentityProvider
from common.utils.exceptions import APIException

from account_settings.models import AccountProfile, Outcome, UpdateRequest
from account_settings.services.account.mutation_plan import (
    EMAIL_POLICY_SKIP,
    build_mutation_plan,
    validate_update_request,
)
from account_settings.services.account.orchestrator import ProfileMutationOrchestrator, RunResult
from account_settings.services.account.result_reporter import ResultReporter
from account_settings.services.account.run_control import CancellationToken, SubmissionGuard
from account_settings.services.media.avatar_image_service import AvatarImageService
from account_settings.services.session.session_store import SessionStore
from account_settings.services.storage.upload_client import UploadClient

logger = logging.getLogger(__name__)


async def get_account_pipeline(
    session_store: SessionStore,
    identity_provider: IdentityProvider,
    user_id: str
) -> AccountProfile:
    """
    Read the snapshot shown when the settings form opens.

    Seeds the snapshot from the provider the first time an account is seen.

    Args:
        session_store: Snapshot store
        identity_provider: Provider bound to the signed-in user
        user_id: Account ID

    Returns:
        AccountProfile
    """
    profile = await session_store.get_snapshot(user_id)
    if profile is None:
        profile = await session_store.refresh(user_id, identity_provider)
    return profile


async def submit_account_update_pipeline(
    request: UpdateRequest,
    user_id: str,
    identity_provider: IdentityProvider,
    session_store: SessionStore,
    upload_client: UploadClient,
    image_service: AvatarImageService,
    guard: SubmissionGuard,
    reporter: ResultReporter,
    email_policy: str = EMAIL_POLICY_SKIP,
    display_name_max_length: int = 50,
    token: Optional[CancellationToken] = None
) -> Outcome:
    """
    Apply one settings form submission.

    Order of work:
        1. Validate the form (no network).
        2. Take the per-account single-flight slot.
        3. Re-read the account from the provider and plan the changed fields.
        4. Execute the plan: avatar, display name, password, email.
        5. Report one outcome and refresh the session if anything changed.

    Args:
        request: Submitted form values
        user_id: Signed-in account ID
        identity_provider: Provider bound to the signed-in user
        session_store: Snapshot store
        upload_client: Storage client for avatars
        image_service: Avatar compression
        guard: Per-account single-flight guard
        reporter: Outcome reporter
        email_policy: Email-change-without-password policy ("skip" | "reject")
        display_name_max_length: Display name length limit
        token: Cancellation token for this run

    Returns:
        Outcome (success, or failure with the first error's message)
    """
    token = token or CancellationToken()

    try:
        validate_update_request(request, display_name_max_length)

        async with guard.acquire(user_id):
            # Plan against the live account; the stored snapshot may be stale
            profile = await session_store.refresh(user_id, identity_provider)

            plan = build_mutation_plan(
                request,
                profile,
                email_policy=email_policy,
                display_name_max_length=display_name_max_length,
            )

            orchestrator = ProfileMutationOrchestrator(
                identity_provider=identity_provider,
                upload_client=upload_client,
                image_service=image_service,
            )
            result = await orchestrator.execute(plan, user_id, token)

            return await reporter.report(result, user_id, identity_provider, token)

    except APIException as e:
        logger.info(f"Account update rejected for user {user_id}: {e.code}")
        return await reporter.report(
            RunResult(error=e),
            user_id,
            identity_provider,
            token,
        )


async def send_verification_email_pipeline(
    identity_provider: IdentityProvider,
    user_id: str
) -> None:
    """
    Ask the provider to mail a verification link to the current address.

    Args:
        identity_provider: Provider bound to the signed-in user
        user_id: Account ID (logging only)
    """
    await identity_provider.send_verification_email()
    logger.info(f"Verification email requested for user {user_id}")
