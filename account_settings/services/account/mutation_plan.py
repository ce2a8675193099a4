"""
Mutation planning.

Turns a submitted form and the current account snapshot into the ordered list
of provider mutations for one run. Pure functions; all validation happens here
so a rejected request never reaches the network.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from common.utils.exceptions import ValidationException

from account_settings.models import (
    AccountProfile,
    AvatarAction,
    AvatarActionKind,
    Credential,
    MutationStep,
    STEP_ORDER,
    UpdateRequest,
)

logger = logging.getLogger(__name__)

EMAIL_POLICY_SKIP = "skip"
EMAIL_POLICY_REJECT = "reject"
EMAIL_POLICIES = (EMAIL_POLICY_SKIP, EMAIL_POLICY_REJECT)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class MutationPlan:
    """Ordered steps for one run plus the values they apply."""
    steps: Tuple[MutationStep, ...]
    avatar: AvatarAction
    display_name: str
    new_password: Optional[str] = None
    new_email: Optional[str] = None
    credential: Optional[Credential] = None
    # (step, reason) for changes that were requested but left out
    skipped: Tuple[Tuple[MutationStep, str], ...] = ()

    def includes(self, step: MutationStep) -> bool:
        return step in self.steps

    @property
    def gated_steps(self) -> Tuple[MutationStep, ...]:
        return tuple(step for step in self.steps if step.gated)


def validate_update_request(
    request: UpdateRequest,
    display_name_max_length: int = 50
) -> None:
    """
    Check the form before anything is sent anywhere.

    Raises:
        ValidationException: Missing or malformed field, or a new password
            that does not match its confirmation
    """
    if not request.display_name:
        raise ValidationException(
            message="Display name is required",
            code="DISPLAY_NAME_REQUIRED"
        )

    if len(request.display_name) > display_name_max_length:
        raise ValidationException(
            message=f"Display name exceeds maximum length of {display_name_max_length}",
            code="DISPLAY_NAME_TOO_LONG"
        )

    if not request.email:
        raise ValidationException(
            message="Email is required",
            code="EMAIL_REQUIRED"
        )

    if not EMAIL_PATTERN.match(request.email):
        raise ValidationException(
            message="Email address is invalid",
            code="INVALID_EMAIL"
        )

    if request.new_password != request.new_password_confirm:
        raise ValidationException(
            message="New passwords do not match",
            code="PASSWORD_MISMATCH"
        )


def _emails_differ(proposed: str, current: Optional[str]) -> bool:
    # Case-only edits are not an email change
    if current is None:
        return True
    return proposed.lower() != current.lower()


def build_mutation_plan(
    request: UpdateRequest,
    profile: AccountProfile,
    email_policy: str = EMAIL_POLICY_SKIP,
    display_name_max_length: int = 50
) -> MutationPlan:
    """
    Diff the request against the snapshot.

    Args:
        request: Submitted form values
        profile: Account snapshot read when the form was opened
        email_policy: "skip" drops an email change that came without the
            current password, "reject" fails validation instead
        display_name_max_length: Display name length limit

    Returns:
        MutationPlan with steps in execution order

    Raises:
        ValidationException: Invalid request, or an email change without the
            current password under the "reject" policy
    """
    if email_policy not in EMAIL_POLICIES:
        raise ValueError(f"Unknown email policy: {email_policy}")

    validate_update_request(request, display_name_max_length)

    steps = set()
    skipped = []

    if request.avatar.kind != AvatarActionKind.UNCHANGED:
        steps.add(MutationStep.AVATAR)

    # Always written; the provider treats an unchanged value as a no-op
    steps.add(MutationStep.DISPLAY_NAME)

    new_password = None
    if request.new_password:
        if not request.old_password:
            skipped.append((MutationStep.PASSWORD, "current password not supplied"))
        elif request.old_password == request.new_password:
            skipped.append((MutationStep.PASSWORD, "new password equals current password"))
        else:
            steps.add(MutationStep.PASSWORD)
            new_password = request.new_password

    new_email = None
    if _emails_differ(request.email, profile.email):
        if request.old_password:
            steps.add(MutationStep.EMAIL)
            new_email = request.email
        elif email_policy == EMAIL_POLICY_REJECT:
            raise ValidationException(
                message="Enter your current password to change your email address",
                code="CURRENT_PASSWORD_REQUIRED"
            )
        else:
            skipped.append((MutationStep.EMAIL, "current password not supplied"))

    credential = None
    if any(step.gated for step in steps):
        if not profile.email:
            raise ValidationException(
                message="This account has no email address to verify the password against",
                code="NO_EMAIL_CREDENTIAL"
            )
        credential = Credential(identifier=profile.email, secret=request.old_password)

    for step, reason in skipped:
        log = logger.warning if step == MutationStep.EMAIL else logger.info
        log(f"Skipping {step.value} change for user {profile.user_id}: {reason}")

    return MutationPlan(
        steps=tuple(step for step in STEP_ORDER if step in steps),
        avatar=request.avatar,
        display_name=request.display_name,
        new_password=new_password,
        new_email=new_email,
        credential=credential,
        skipped=tuple(skipped),
    )
