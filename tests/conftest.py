"""Shared test fixtures for account settings tests."""

import pytest
from io import BytesIO
from typing import Any, Callable, Dict, Optional
from unittest.mock import AsyncMock, MagicMock

from PIL import Image

from common.auth.base import IdentityProvider
from common.utils.exceptions import ReauthenticationException

from account_settings.models import AccountProfile
from account_settings.services.account.result_reporter import ResultReporter
from account_settings.services.account.run_control import SubmissionGuard
from account_settings.services.media.avatar_image_service import AvatarImageService
from account_settings.services.session.session_store import SessionStore


USER_ID = "uid_alice_0001"
USER_EMAIL = "alice@example.com"
USER_PASSWORD = "correct-horse"
UPLOADED_REFERENCE = "https://storage.example.com/avatars/uid_alice_0001.jpg"


class FakeIdentityProvider(IdentityProvider):
    """
    In-memory identity provider.

    Records every call as (method, args) and mutates its account like the real
    provider would. Secrets are never recorded.
    """

    def __init__(
        self,
        uid: str = USER_ID,
        email: Optional[str] = USER_EMAIL,
        password: str = USER_PASSWORD,
        display_name: Optional[str] = "Alice",
        photo_url: Optional[str] = None,
    ):
        self.account: Dict[str, Any] = {
            "uid": uid,
            "email": email,
            "emailVerified": True,
            "displayName": display_name,
            "photoUrl": photo_url,
        }
        self.password = password
        self.calls = []
        self.failures: Dict[str, Exception] = {}
        self.hooks: Dict[str, Callable[[], None]] = {}

    def fail(self, method: str, error: Exception) -> None:
        self.failures[method] = error

    def after(self, method: str, hook: Callable[[], None]) -> None:
        """Run hook once method has been applied."""
        self.hooks[method] = hook

    def _applied(self, name: str) -> None:
        if name in self.hooks:
            self.hooks[name]()

    @property
    def call_names(self):
        return [name for name, _ in self.calls]

    @property
    def mutation_calls(self):
        """Calls that change something, leaving out the session refresh read."""
        return [c for c in self.calls if c[0] != "get_current_account"]

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, args))
        if name in self.failures:
            raise self.failures[name]

    async def get_current_account(self) -> Dict[str, Any]:
        self._record("get_current_account")
        return dict(self.account)

    async def update_display_name(self, name: str) -> None:
        self._record("update_display_name", name)
        self.account["displayName"] = name
        self._applied("update_display_name")

    async def update_avatar_reference(self, reference: Optional[str]) -> None:
        self._record("update_avatar_reference", reference)
        self.account["photoUrl"] = reference

    async def update_email(self, new_email: str) -> None:
        self._record("update_email", new_email)
        self.account["email"] = new_email
        self.account["emailVerified"] = False

    async def update_password(self, new_password: str) -> None:
        self._record("update_password")
        self.password = new_password

    async def reauthenticate(self, identifier: str, secret: str) -> None:
        self._record("reauthenticate", identifier)
        if identifier != self.account["email"] or secret != self.password:
            raise ReauthenticationException(
                message="Current password is incorrect",
                code="INVALID_CREDENTIALS",
            )

    async def send_verification_email(self) -> None:
        self._record("send_verification_email")


class FakeAuthProvider:
    """Token verifier that accepts exactly one token."""

    def __init__(self, valid_token: str = "valid-token", uid: str = USER_ID):
        self.valid_token = valid_token
        self.uid = uid

    async def verify_token(self, token: str) -> Dict[str, Any]:
        if token != self.valid_token:
            raise ValueError("Invalid token: signature mismatch")
        return {"uid": self.uid, "sub": self.uid, "email": USER_EMAIL}


def make_image_bytes(
    size=(1024, 768),
    color=(220, 20, 20),
    mode: str = "RGB",
    fmt: str = "PNG",
) -> bytes:
    output = BytesIO()
    Image.new(mode, size, color).save(output, format=fmt)
    return output.getvalue()


# ─────────────────────────────────────────────────────────────────
# Accounts
# ─────────────────────────────────────────────────────────────────

@pytest.fixture
def sample_user_id():
    return USER_ID


@pytest.fixture
def sample_profile():
    return AccountProfile(
        user_id=USER_ID,
        display_name="Alice",
        email=USER_EMAIL,
        email_verified=True,
        avatar_reference=None,
    )


@pytest.fixture
def sample_snapshot_doc(sample_profile):
    return sample_profile.to_dict()


@pytest.fixture
def fake_provider():
    return FakeIdentityProvider()


# ─────────────────────────────────────────────────────────────────
# MongoDB
# ─────────────────────────────────────────────────────────────────

@pytest.fixture
def mock_collection(sample_snapshot_doc):
    collection = AsyncMock()
    collection.find_one.return_value = sample_snapshot_doc
    collection.find = MagicMock()
    return collection


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=mock_collection)
    return db


@pytest.fixture
def session_store(mock_db):
    return SessionStore(db=mock_db)


# ─────────────────────────────────────────────────────────────────
# Services
# ─────────────────────────────────────────────────────────────────

@pytest.fixture
def mock_upload_client():
    client = AsyncMock()
    client.upload.return_value = UPLOADED_REFERENCE
    return client


@pytest.fixture
def image_service():
    return AvatarImageService(max_dimension=512, max_bytes=10 * 1024 * 1024)


@pytest.fixture
def guard():
    return SubmissionGuard()


@pytest.fixture
def presenter():
    return MagicMock()


@pytest.fixture
def reporter(session_store, presenter):
    return ResultReporter(session_store=session_store, presenter=presenter)


@pytest.fixture
def png_bytes():
    return make_image_bytes()
