"""Credential gate."""

from account_settings.services.auth.credential_gate import CredentialGate, ReauthState

__all__ = ["CredentialGate", "ReauthState"]
