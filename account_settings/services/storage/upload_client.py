"""
Object storage upload client.

Sends one encoded payload to the storage endpoint and returns the durable
reference it answers with.
"""

import logging
from typing import Optional

import httpx

from common.utils.exceptions import UploadException

logger = logging.getLogger(__name__)


class UploadClient:
    """
    Posts {kind, key, payload} to the storage endpoint.
    """

    def __init__(
        self,
        upload_url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize UploadClient.

        Args:
            upload_url: Storage endpoint accepting JSON uploads
            api_key: Optional bearer token for the endpoint
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self._upload_url = upload_url
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def upload(self, payload: str, key: str, kind: str = "avatar") -> str:
        """
        Upload a payload and wait for its durable reference.

        Args:
            payload: Encoded content (data URL)
            key: Logical key, the account identifier
            kind: Asset kind tag

        Returns:
            Durable reference (URL) of the stored object

        Raises:
            UploadException: Network failure, rejected response, or a response
                without a reference
        """
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    self._upload_url,
                    headers=headers,
                    json={"kind": kind, "key": key, "payload": payload},
                    timeout=self._timeout,
                )
        except httpx.RequestError as e:
            logger.error(f"Storage request error for {kind}/{key}: {e}")
            raise UploadException(
                message="Failed to connect to the storage service",
                code="UPLOAD_UNAVAILABLE"
            )

        if response.status_code not in (200, 201):
            logger.error(
                f"Storage rejected {kind}/{key}: {response.status_code} - {response.text[:200]}"
            )
            raise UploadException(
                message="The storage service rejected the upload",
                code="UPLOAD_REJECTED",
                details={"status": response.status_code},
            )

        try:
            body = response.json()
        except ValueError:
            raise UploadException(
                message="The storage service returned an invalid response",
                code="UPLOAD_INVALID_RESPONSE"
            )

        # Older endpoints answer with "url" instead of "reference"
        reference = None
        if isinstance(body, dict):
            reference = body.get("reference") or body.get("url")
        if not reference:
            raise UploadException(
                message="The storage service returned no reference",
                code="UPLOAD_INVALID_RESPONSE"
            )

        logger.info(f"Uploaded {kind} for {key}")
        return reference
