"""Object storage services."""

from account_settings.services.storage.upload_client import UploadClient

__all__ = ["UploadClient"]
