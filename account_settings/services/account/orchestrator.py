"""
Profile mutation orchestrator.

Executes a MutationPlan against the identity provider, one awaited call at a
time, in the fixed order avatar -> display name -> password -> email. The
first failure stops the run. Nothing already applied is reverted.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from common.auth.base import IdentityProvider
from common.utils.exceptions import APIException, InternalServerException

from account_settings.models import AvatarActionKind, MutationStep
from account_settings.services.account.mutation_plan import MutationPlan
from account_settings.services.account.run_control import CancellationToken, RunCancelled
from account_settings.services.auth.credential_gate import CredentialGate
from account_settings.services.media.avatar_image_service import AvatarImageService, ProcessedImage
from account_settings.services.storage.upload_client import UploadClient

logger = logging.getLogger(__name__)

AVATAR_ASSET_KIND = "avatar"


@dataclass
class RunResult:
    """What one run did before it finished, failed or was cancelled."""
    applied_steps: List[MutationStep] = field(default_factory=list)
    error: Optional[APIException] = None
    failed_step: Optional[MutationStep] = None
    cancelled: bool = False
    avatar_reference: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and not self.cancelled


class ProfileMutationOrchestrator:
    """
    Runs one plan. Create a new orchestrator per submission: it owns the
    run's CredentialGate.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        upload_client: UploadClient,
        image_service: AvatarImageService,
        credential_gate: Optional[CredentialGate] = None
    ):
        """
        Args:
            identity_provider: Provider bound to the signed-in user
            upload_client: Storage client for avatar payloads
            image_service: Avatar compression
            credential_gate: Re-authentication gate for this run
        """
        self._identity_provider = identity_provider
        self._upload_client = upload_client
        self._image_service = image_service
        self._credential_gate = credential_gate or CredentialGate(identity_provider)

    @property
    def credential_gate(self) -> CredentialGate:
        return self._credential_gate

    async def execute(
        self,
        plan: MutationPlan,
        user_id: str,
        token: Optional[CancellationToken] = None
    ) -> RunResult:
        """
        Apply the plan.

        Args:
            plan: Steps to apply, already validated
            user_id: Account ID, also the storage key for the avatar
            token: Checked before every step

        Returns:
            RunResult with the applied steps and the first error, if any
        """
        token = token or CancellationToken()
        result = RunResult()
        current_step: Optional[MutationStep] = None

        try:
            # Compress before the first network call of the run
            processed = None
            if plan.includes(MutationStep.AVATAR) and plan.avatar.kind == AvatarActionKind.SET_TO:
                current_step = MutationStep.AVATAR
                processed = await self._image_service.process_async(plan.avatar.image)

            for step in plan.steps:
                current_step = step
                token.raise_if_cancelled()
                await self._apply(step, plan, user_id, processed, result)
                result.applied_steps.append(step)
                logger.info(f"Applied {step.value} change for user {user_id}")

        except RunCancelled:
            result.cancelled = True
            logger.info(
                f"Account update for user {user_id} cancelled before {current_step.value}"
            )
        except APIException as e:
            result.error = e
            result.failed_step = current_step
            logger.error(
                f"Account update for user {user_id} failed at {current_step.value}: "
                f"{e.code} - {e.message}"
            )
        except Exception:
            logger.exception(
                f"Unexpected error during {current_step.value if current_step else 'run'} "
                f"for user {user_id}"
            )
            result.error = InternalServerException(
                message="Unexpected error while updating your account",
                code="INTERNAL_ERROR"
            )
            result.failed_step = current_step

        return result

    async def _apply(
        self,
        step: MutationStep,
        plan: MutationPlan,
        user_id: str,
        processed: Optional[ProcessedImage],
        result: RunResult
    ) -> None:
        if step == MutationStep.AVATAR:
            await self._apply_avatar(plan, user_id, processed, result)

        elif step == MutationStep.DISPLAY_NAME:
            await self._identity_provider.update_display_name(plan.display_name)

        elif step == MutationStep.PASSWORD:
            await self._credential_gate.ensure_authenticated(plan.credential)
            await self._identity_provider.update_password(plan.new_password)

        elif step == MutationStep.EMAIL:
            await self._credential_gate.ensure_authenticated(plan.credential)
            await self._identity_provider.update_email(plan.new_email)

    async def _apply_avatar(
        self,
        plan: MutationPlan,
        user_id: str,
        processed: Optional[ProcessedImage],
        result: RunResult
    ) -> None:
        if plan.avatar.kind == AvatarActionKind.RESET_TO_DEFAULT:
            await self._identity_provider.update_avatar_reference(None)
            return

        reference = await self._upload_client.upload(
            processed.payload,
            key=user_id,
            kind=AVATAR_ASSET_KIND,
        )
        await self._identity_provider.update_avatar_reference(reference)
        result.avatar_reference = reference
