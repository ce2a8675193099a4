"""
Configuration module - environment-driven settings shared by services.
"""

from common.config.base_settings import BaseAppSettings

__all__ = ["BaseAppSettings"]
