"""Tests for the Identity Toolkit REST client."""

import json
import pytest

import httpx

from common.auth.firebase_auth import FirebaseIdentityProvider
from common.utils.exceptions import ProviderException, ReauthenticationException

BASE_URL = "https://identitytoolkit.test/v1/accounts"


class RecordingTransport:
    """Answers Identity Toolkit calls from a queue of canned responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    def method(self, index: int) -> str:
        return self.requests[index].url.path.rsplit(":", 1)[1]

    def body(self, index: int) -> dict:
        return json.loads(self.requests[index].content)


def _provider(transport: RecordingTransport, uid="uid_1", id_token="token-1") -> FirebaseIdentityProvider:
    return FirebaseIdentityProvider(
        api_key="api-key",
        id_token=id_token,
        uid=uid,
        base_url=BASE_URL,
        transport=httpx.MockTransport(transport),
    )


def _error(message: str, status: int = 400) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": status, "message": message}})


# ─────────────────────────────────────────────────────────────────
# Reads
# ─────────────────────────────────────────────────────────────────

class TestGetCurrentAccount:

    @pytest.mark.asyncio
    async def test_maps_lookup_response(self):
        transport = RecordingTransport(httpx.Response(200, json={"users": [{
            "localId": "uid_1",
            "email": "alice@example.com",
            "emailVerified": True,
            "displayName": "Alice",
            "photoUrl": "https://storage.example.com/a.jpg",
        }]}))

        account = await _provider(transport).get_current_account()

        assert account == {
            "uid": "uid_1",
            "email": "alice@example.com",
            "emailVerified": True,
            "displayName": "Alice",
            "photoUrl": "https://storage.example.com/a.jpg",
        }
        assert transport.method(0) == "lookup"
        assert transport.requests[0].url.params["key"] == "api-key"
        assert transport.body(0) == {"idToken": "token-1"}

    @pytest.mark.asyncio
    async def test_no_users(self):
        transport = RecordingTransport(httpx.Response(200, json={"users": []}))

        with pytest.raises(ProviderException) as exc_info:
            await _provider(transport).get_current_account()

        assert exc_info.value.code == "USER_NOT_FOUND"

    def test_api_key_required(self):
        with pytest.raises(ValueError):
            FirebaseIdentityProvider(api_key="", id_token="token-1")


# ─────────────────────────────────────────────────────────────────
# Updates
# ─────────────────────────────────────────────────────────────────

class TestUpdates:

    @pytest.mark.asyncio
    async def test_display_name(self):
        transport = RecordingTransport(httpx.Response(200, json={"localId": "uid_1"}))

        await _provider(transport).update_display_name("Alicia")

        assert transport.method(0) == "update"
        assert transport.body(0) == {"idToken": "token-1", "displayName": "Alicia"}

    @pytest.mark.asyncio
    async def test_avatar_reference_set(self):
        transport = RecordingTransport(httpx.Response(200, json={}))

        await _provider(transport).update_avatar_reference("https://storage.example.com/a.jpg")

        assert transport.body(0)["photoUrl"] == "https://storage.example.com/a.jpg"

    @pytest.mark.asyncio
    async def test_avatar_reference_cleared(self):
        transport = RecordingTransport(httpx.Response(200, json={}))

        await _provider(transport).update_avatar_reference(None)

        assert transport.body(0) == {"idToken": "token-1", "deleteAttribute": ["PHOTO_URL"]}

    @pytest.mark.asyncio
    async def test_password_change_swaps_token(self):
        transport = RecordingTransport(
            httpx.Response(200, json={"localId": "uid_1", "idToken": "token-2"}),
            httpx.Response(200, json={"localId": "uid_1", "idToken": "token-3"}),
        )
        provider = _provider(transport)

        await provider.update_password("new-secret-1")
        await provider.update_email("alice@new.example.com")

        assert transport.body(0) == {
            "idToken": "token-1",
            "password": "new-secret-1",
            "returnSecureToken": True,
        }
        assert transport.body(1)["idToken"] == "token-2"
        assert transport.body(1)["email"] == "alice@new.example.com"
        assert provider.id_token == "token-3"

    @pytest.mark.asyncio
    async def test_error_code_mapped_to_message(self):
        transport = RecordingTransport(_error("EMAIL_EXISTS"))

        with pytest.raises(ProviderException) as exc_info:
            await _provider(transport).update_email("bob@example.com")

        assert exc_info.value.code == "EMAIL_EXISTS"
        assert exc_info.value.provider_code == "EMAIL_EXISTS"
        assert exc_info.value.message == "The email address is already in use by another account"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_error_code_with_detail_suffix(self):
        transport = RecordingTransport(
            _error("WEAK_PASSWORD : Password should be at least 6 characters")
        )

        with pytest.raises(ProviderException) as exc_info:
            await _provider(transport).update_password("abc")

        assert exc_info.value.code == "WEAK_PASSWORD"

    @pytest.mark.asyncio
    async def test_unknown_error_code(self):
        transport = RecordingTransport(_error("SOMETHING_NEW"))

        with pytest.raises(ProviderException) as exc_info:
            await _provider(transport).update_display_name("Alicia")

        assert exc_info.value.message == "Identity provider error: SOMETHING_NEW"

    @pytest.mark.asyncio
    async def test_unreachable_provider(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        provider = FirebaseIdentityProvider(
            api_key="api-key",
            id_token="token-1",
            base_url=BASE_URL,
            transport=httpx.MockTransport(handler),
        )

        with pytest.raises(ProviderException) as exc_info:
            await provider.update_display_name("Alicia")

        assert exc_info.value.code == "PROVIDER_UNAVAILABLE"
        assert exc_info.value.status_code == 502


# ─────────────────────────────────────────────────────────────────
# Re-authentication
# ─────────────────────────────────────────────────────────────────

class TestReauthenticate:

    @pytest.mark.asyncio
    async def test_success_swaps_token(self):
        transport = RecordingTransport(
            httpx.Response(200, json={"localId": "uid_1", "idToken": "fresh-token"})
        )
        provider = _provider(transport)

        await provider.reauthenticate("alice@example.com", "old-secret")

        assert transport.method(0) == "signInWithPassword"
        assert transport.body(0) == {
            "email": "alice@example.com",
            "password": "old-secret",
            "returnSecureToken": True,
        }
        assert provider.id_token == "fresh-token"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["INVALID_PASSWORD", "INVALID_LOGIN_CREDENTIALS", "EMAIL_NOT_FOUND"])
    async def test_wrong_password(self, code):
        transport = RecordingTransport(_error(code))

        with pytest.raises(ReauthenticationException) as exc_info:
            await _provider(transport).reauthenticate("alice@example.com", "wrong")

        assert exc_info.value.code == "INVALID_CREDENTIALS"
        assert exc_info.value.message == "Current password is incorrect"
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_throttled(self):
        transport = RecordingTransport(_error("TOO_MANY_ATTEMPTS_TRY_LATER"))

        with pytest.raises(ReauthenticationException) as exc_info:
            await _provider(transport).reauthenticate("alice@example.com", "wrong")

        assert exc_info.value.code == "TOO_MANY_ATTEMPTS_TRY_LATER"

    @pytest.mark.asyncio
    async def test_credential_of_another_account(self):
        transport = RecordingTransport(
            httpx.Response(200, json={"localId": "uid_other", "idToken": "other-token"})
        )
        provider = _provider(transport)

        with pytest.raises(ReauthenticationException) as exc_info:
            await provider.reauthenticate("bob@example.com", "bobs-password")

        assert exc_info.value.code == "USER_MISMATCH"
        assert provider.id_token == "token-1"


class TestSendVerificationEmail:

    @pytest.mark.asyncio
    async def test_sends_oob_code_request(self):
        transport = RecordingTransport(httpx.Response(200, json={"email": "alice@example.com"}))

        await _provider(transport).send_verification_email()

        assert transport.method(0) == "sendOobCode"
        assert transport.body(0) == {"requestType": "VERIFY_EMAIL", "idToken": "token-1"}
