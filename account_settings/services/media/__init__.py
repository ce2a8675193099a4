"""Media services."""

from account_settings.services.media.avatar_image_service import AvatarImageService, ProcessedImage

__all__ = ["AvatarImageService", "ProcessedImage"]
