"""
Domain types for account updates.

Plain dataclasses shared by the pipeline, services and router.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any

from common.utils import ValidationException, success_response, error_response


class AvatarActionKind(str, Enum):
    UNCHANGED = "unchanged"
    SET_TO = "set"
    RESET_TO_DEFAULT = "reset"


@dataclass(frozen=True)
class AvatarAction:
    """
    What to do with the avatar. Exactly one variant; build it through the
    classmethods rather than the constructor.
    """
    kind: AvatarActionKind
    image: Optional[bytes] = field(default=None, repr=False)
    content_type: Optional[str] = None

    def __post_init__(self):
        if self.kind == AvatarActionKind.SET_TO and not self.image:
            raise ValidationException(
                message="An image file is required to change the avatar",
                code="AVATAR_IMAGE_REQUIRED"
            )
        if self.kind != AvatarActionKind.SET_TO and self.image is not None:
            raise ValidationException(
                message=f"Avatar action '{self.kind.value}' does not take an image",
                code="INVALID_AVATAR_ACTION"
            )

    @classmethod
    def unchanged(cls) -> "AvatarAction":
        return cls(AvatarActionKind.UNCHANGED)

    @classmethod
    def set_to(cls, image: bytes, content_type: Optional[str] = None) -> "AvatarAction":
        return cls(AvatarActionKind.SET_TO, image=image, content_type=content_type)

    @classmethod
    def reset_to_default(cls) -> "AvatarAction":
        return cls(AvatarActionKind.RESET_TO_DEFAULT)


class MutationStep(str, Enum):
    """Profile mutations in execution order."""
    AVATAR = "avatar"
    DISPLAY_NAME = "displayName"
    PASSWORD = "password"
    EMAIL = "email"

    @property
    def gated(self) -> bool:
        """True when the step needs a fresh re-authentication."""
        return self in (MutationStep.PASSWORD, MutationStep.EMAIL)


# Fixed execution order: soft fields first, credentials last
STEP_ORDER = (
    MutationStep.AVATAR,
    MutationStep.DISPLAY_NAME,
    MutationStep.PASSWORD,
    MutationStep.EMAIL,
)


@dataclass
class AccountProfile:
    """Snapshot of the account as the identity provider last reported it."""
    user_id: str
    display_name: Optional[str]
    email: Optional[str]
    email_verified: bool = False
    avatar_reference: Optional[str] = None

    @classmethod
    def from_provider(cls, account: Dict[str, Any]) -> "AccountProfile":
        """Build from an IdentityProvider.get_current_account() dict."""
        return cls(
            user_id=account["uid"],
            display_name=account.get("displayName"),
            email=account.get("email"),
            email_verified=bool(account.get("emailVerified", False)),
            avatar_reference=account.get("photoUrl") or None,
        )

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "AccountProfile":
        """Build from a stored session snapshot document."""
        return cls(
            user_id=doc["userId"],
            display_name=doc.get("displayName"),
            email=doc.get("email"),
            email_verified=bool(doc.get("emailVerified", False)),
            avatar_reference=doc.get("avatarReference"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "displayName": self.display_name,
            "email": self.email,
            "emailVerified": self.email_verified,
            "avatarReference": self.avatar_reference,
        }


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    return value


@dataclass
class UpdateRequest:
    """
    One form submission. Created per submit and discarded after the run.

    Empty strings are treated as "not supplied", which is how browsers post
    untouched password inputs.
    """
    display_name: Optional[str]
    email: Optional[str]
    avatar: AvatarAction = field(default_factory=AvatarAction.unchanged)
    old_password: Optional[str] = field(default=None, repr=False)
    new_password: Optional[str] = field(default=None, repr=False)
    new_password_confirm: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        self.display_name = _blank_to_none(self.display_name.strip() if self.display_name else None)
        self.email = _blank_to_none(self.email.strip() if self.email else None)
        self.old_password = _blank_to_none(self.old_password)
        self.new_password = _blank_to_none(self.new_password)
        self.new_password_confirm = _blank_to_none(self.new_password_confirm)


@dataclass(frozen=True)
class Credential:
    """Current email + current password, used once for re-authentication."""
    identifier: str
    secret: str = field(repr=False)


@dataclass
class Outcome:
    """Result of one submission as seen by the presentation layer."""
    success: bool
    message: str
    code: Optional[str] = None
    applied_steps: List[MutationStep] = field(default_factory=list)
    cancelled: bool = False
    status_code: int = 200

    @classmethod
    def succeeded(cls, message: str, applied_steps: List[MutationStep]) -> "Outcome":
        return cls(success=True, message=message, applied_steps=list(applied_steps))

    @classmethod
    def failed(
        cls,
        message: str,
        code: Optional[str] = None,
        applied_steps: Optional[List[MutationStep]] = None,
        status_code: int = 400,
    ) -> "Outcome":
        return cls(
            success=False,
            message=message,
            code=code,
            applied_steps=list(applied_steps or []),
            status_code=status_code,
        )

    def to_response(self) -> Dict[str, Any]:
        if self.success:
            return success_response(message=self.message)
        return error_response(self.message, code=self.code)
