"""Session snapshot services."""

from account_settings.services.session.session_store import SessionStore

__all__ = ["SessionStore"]
