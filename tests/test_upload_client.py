"""Tests for the storage upload client."""

import json
import pytest

import httpx

from common.utils.exceptions import UploadException
from account_settings.services.storage.upload_client import UploadClient

UPLOAD_URL = "https://storage.example.com/api/utils/upload"
PAYLOAD = "data:image/jpeg;base64,/9j/4AAQSkZJRg=="


def _client(handler, api_key=None) -> UploadClient:
    return UploadClient(
        upload_url=UPLOAD_URL,
        api_key=api_key,
        transport=httpx.MockTransport(handler),
    )


class TestUploadSuccess:

    @pytest.mark.asyncio
    async def test_posts_kind_key_and_payload(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"reference": "https://cdn.example.com/a.jpg"})

        reference = await _client(handler).upload(PAYLOAD, key="uid_1")

        assert reference == "https://cdn.example.com/a.jpg"
        assert seen["url"] == UPLOAD_URL
        assert seen["body"] == {"kind": "avatar", "key": "uid_1", "payload": PAYLOAD}
        assert seen["auth"] is None

    @pytest.mark.asyncio
    async def test_sends_bearer_key_when_configured(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(201, json={"reference": "ref"})

        await _client(handler, api_key="secret-key").upload(PAYLOAD, key="uid_1")

        assert seen["auth"] == "Bearer secret-key"

    @pytest.mark.asyncio
    async def test_accepts_url_field(self):
        def handler(request):
            return httpx.Response(200, json={"url": "https://cdn.example.com/legacy.jpg"})

        reference = await _client(handler).upload(PAYLOAD, key="uid_1")

        assert reference == "https://cdn.example.com/legacy.jpg"


class TestUploadFailure:

    @pytest.mark.asyncio
    async def test_rejected_status(self):
        def handler(request):
            return httpx.Response(500, text="boom")

        with pytest.raises(UploadException) as exc_info:
            await _client(handler).upload(PAYLOAD, key="uid_1")

        assert exc_info.value.code == "UPLOAD_REJECTED"
        assert exc_info.value.status_code == 502
        assert exc_info.value.details == {"status": 500}

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UploadException) as exc_info:
            await _client(handler).upload(PAYLOAD, key="uid_1")

        assert exc_info.value.code == "UPLOAD_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        def handler(request):
            return httpx.Response(200, text="<html>ok</html>")

        with pytest.raises(UploadException) as exc_info:
            await _client(handler).upload(PAYLOAD, key="uid_1")

        assert exc_info.value.code == "UPLOAD_INVALID_RESPONSE"

    @pytest.mark.asyncio
    async def test_missing_reference(self):
        def handler(request):
            return httpx.Response(200, json={"ok": True})

        with pytest.raises(UploadException) as exc_info:
            await _client(handler).upload(PAYLOAD, key="uid_1")

        assert exc_info.value.code == "UPLOAD_INVALID_RESPONSE"
